"""Shared fixtures: an isolated XDG layout under tmp_path."""

from pathlib import Path

import pytest

from startupmanager.config import Settings


def write_entry(directory: Path, file_name: str, **fields: str) -> Path:
    """Write a minimal desktop entry; keyword arguments become keys.

    Keys containing brackets can be passed with a dict splat, e.g.
    write_entry(d, "a.desktop", **{"Name[de]": "Hallo"}).
    """
    directory.mkdir(parents=True, exist_ok=True)
    lines = ["[Desktop Entry]", "Type=Application"]
    lines.extend(f"{key}={value}" for key, value in fields.items())
    path = directory / file_name
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def xdg(tmp_path):
    """Directories and environment of a fake user session."""
    home = tmp_path / "home"
    dirs = {
        "home": home,
        "config_home": home / ".config",
        "data_home": home / ".local" / "share",
        "system_config": tmp_path / "etc" / "xdg",
        "system_data": tmp_path / "usr" / "share",
        "local_data": tmp_path / "usr" / "local" / "share",
    }
    home.mkdir()
    environ = {
        "HOME": str(home),
        "XDG_CONFIG_HOME": str(dirs["config_home"]),
        "XDG_CONFIG_DIRS": str(dirs["system_config"]),
        "XDG_DATA_HOME": str(dirs["data_home"]),
        "XDG_DATA_DIRS": f"{dirs['local_data']}:{dirs['system_data']}",
    }
    dirs["environ"] = environ
    return dirs


@pytest.fixture
def settings(xdg):
    return Settings(environ=xdg["environ"])


@pytest.fixture
def user_autostart(xdg):
    return xdg["config_home"] / "autostart"
