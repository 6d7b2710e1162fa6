"""Tests for scope and search-path resolution."""

from pathlib import Path

import pytest

from startupmanager.config import Settings
from startupmanager.discovery.paths import (
    ConfigDirUnavailable,
    DirectoryScope,
    application_dirs,
    get_config_home,
    load_search_paths,
    resolve_scope,
    sandbox_export_dirs,
    to_host_path,
    to_sandbox_path,
)


class TestUserScope:
    def test_uses_xdg_config_home(self, settings, xdg):
        assert resolve_scope(DirectoryScope.USER, settings) == [xdg["config_home"] / "autostart"]

    def test_defaults_to_home_config(self, tmp_path):
        settings = Settings(environ={"HOME": str(tmp_path)})
        assert resolve_scope(DirectoryScope.USER, settings) == [tmp_path / ".config" / "autostart"]

    def test_relative_xdg_config_home_ignored(self, tmp_path):
        settings = Settings(environ={"HOME": str(tmp_path), "XDG_CONFIG_HOME": "relative/dir"})
        assert get_config_home(settings) == tmp_path / ".config"

    def test_no_config_root_is_fatal(self, monkeypatch):
        def no_home():
            raise RuntimeError("Could not determine home directory.")

        monkeypatch.setattr(Path, "home", staticmethod(no_home))
        with pytest.raises(ConfigDirUnavailable):
            resolve_scope(DirectoryScope.USER, Settings(environ={}))

    def test_not_remapped_in_sandbox(self, xdg):
        settings = Settings(environ=xdg["environ"], sandboxed=True)
        assert resolve_scope(DirectoryScope.USER, settings) == [xdg["config_home"] / "autostart"]


class TestSystemScope:
    def test_one_directory_per_config_dir(self):
        settings = Settings(environ={"XDG_CONFIG_DIRS": "/etc/xdg/xdg-cosmic:/etc/xdg"})
        assert resolve_scope(DirectoryScope.SYSTEM, settings) == [
            Path("/etc/xdg/xdg-cosmic/autostart"),
            Path("/etc/xdg/autostart"),
        ]

    @pytest.mark.parametrize("environ", [{}, {"XDG_CONFIG_DIRS": ""}, {"XDG_CONFIG_DIRS": "::"}])
    def test_falls_back_to_etc_xdg(self, environ):
        assert resolve_scope(DirectoryScope.SYSTEM, Settings(environ=environ)) == [
            Path("/etc/xdg/autostart"),
        ]

    def test_remapped_in_sandbox(self):
        settings = Settings(environ={"XDG_CONFIG_DIRS": "/etc/xdg:/opt/xdg"}, sandboxed=True)
        assert resolve_scope(DirectoryScope.SYSTEM, settings) == [
            Path("/run/host/etc/xdg/autostart"),
            Path("/opt/xdg/autostart"),
        ]

    def test_default_remapped_in_sandbox(self):
        settings = Settings(environ={}, sandboxed=True)
        assert resolve_scope(DirectoryScope.SYSTEM, settings) == [
            Path("/run/host/etc/xdg/autostart"),
        ]

    def test_recomputed_on_every_call(self):
        environ = {"XDG_CONFIG_DIRS": "/a"}
        settings = Settings(environ=environ)
        assert resolve_scope(DirectoryScope.SYSTEM, settings) == [Path("/a/autostart")]

        environ["XDG_CONFIG_DIRS"] = "/b"
        assert resolve_scope(DirectoryScope.SYSTEM, settings) == [Path("/b/autostart")]


class TestSandboxRemapping:
    @pytest.fixture
    def sandboxed(self):
        return Settings(environ={"HOME": "/home/u"}, sandboxed=True)

    @pytest.mark.parametrize("path, expected", [
        ("/etc/xdg/autostart", "/run/host/etc/xdg/autostart"),
        ("/usr/share/applications", "/run/host/usr/share/applications"),
        ("/usr", "/run/host/usr"),
        ("/home/u/.config/autostart", "/home/u/.config/autostart"),
        ("/usrlocal/share", "/usrlocal/share"),
        ("/var/lib/flatpak/app", "/var/lib/flatpak/app"),
    ])
    def test_to_sandbox_path(self, sandboxed, path, expected):
        assert to_sandbox_path(Path(path), sandboxed) == Path(expected)

    def test_no_remap_outside_sandbox(self):
        settings = Settings(environ={})
        assert to_sandbox_path(Path("/etc/xdg"), settings) == Path("/etc/xdg")

    def test_custom_host_root(self):
        settings = Settings(environ={}, sandboxed=True, host_root=Path("/host"))
        assert to_sandbox_path(Path("/usr/share"), settings) == Path("/host/usr/share")

    @pytest.mark.parametrize("path, expected", [
        ("/run/host/etc/xdg/autostart", "/etc/xdg/autostart"),
        ("/home/u/.var/app/org.example.Startup/config/autostart", "/home/u/.config/autostart"),
        ("/home/u/.config/autostart", "/home/u/.config/autostart"),
        ("/home/u/.var/app/org.example.Startup/data", "/home/u/.var/app/org.example.Startup/data"),
    ])
    def test_to_host_path(self, sandboxed, path, expected):
        assert to_host_path(Path(path), sandboxed) == Path(expected)

    def test_to_host_path_only_maps_own_config_home(self):
        settings = Settings(environ={"HOME": "/home/u"}, sandboxed=True, app_id="org.example.Startup")
        own = Path("/home/u/.var/app/org.example.Startup/config/autostart")
        other = Path("/home/u/.var/app/org.other.App/config/autostart")

        assert to_host_path(own, settings) == Path("/home/u/.config/autostart")
        assert to_host_path(other, settings) == other


class TestApplicationDirs:
    def test_xdg_order(self, settings, xdg):
        assert application_dirs(settings) == [
            xdg["data_home"] / "applications",
            xdg["local_data"] / "applications",
            xdg["system_data"] / "applications",
        ]

    def test_defaults(self, tmp_path):
        settings = Settings(environ={"HOME": str(tmp_path)})
        assert application_dirs(settings) == [
            tmp_path / ".local" / "share" / "applications",
            Path("/usr/local/share/applications"),
            Path("/usr/share/applications"),
        ]

    def test_extra_dirs_appended(self, xdg):
        extra = Path("/opt/apps/share/applications")
        settings = Settings(environ=xdg["environ"], extra_application_dirs=[extra])
        assert application_dirs(settings)[-1] == extra

    def test_duplicates_kept_once(self, tmp_path):
        share = tmp_path / "share"
        settings = Settings(environ={
            "HOME": str(tmp_path),
            "XDG_DATA_HOME": str(share),
            "XDG_DATA_DIRS": f"{share}:{share}",
        })
        assert application_dirs(settings) == [share / "applications"]

    def test_sandbox_adds_export_and_host_dirs(self, tmp_path):
        home = tmp_path / "home"
        flatpak_root = tmp_path / "flatpak" / "app"
        suffix = "current/active/export/share/applications"
        (flatpak_root / "org.example.B" / suffix).mkdir(parents=True)
        (flatpak_root / "org.example.A" / suffix).mkdir(parents=True)
        (flatpak_root / "org.example.NoExport").mkdir(parents=True)
        search_paths = {
            "sandbox": {
                "application_roots": [str(flatpak_root), str(tmp_path / "missing")],
                "export_suffix": suffix,
                "extra_dirs": ["~/.local/share/applications", "/var/lib/snapd/desktop/applications"],
            }
        }
        settings = Settings(environ={"HOME": str(home), "XDG_DATA_HOME": str(tmp_path / "sbx")},
                            sandboxed=True)

        assert application_dirs(settings, search_paths) == [
            tmp_path / "sbx" / "applications",
            Path("/run/host/usr/local/share/applications"),
            Path("/run/host/usr/share/applications"),
            flatpak_root / "org.example.A" / suffix,
            flatpak_root / "org.example.B" / suffix,
            home / ".local" / "share" / "applications",
            Path("/var/lib/snapd/desktop/applications"),
        ]

    def test_sandbox_entries_ignored_outside_sandbox(self, settings, xdg):
        search_paths = {"sandbox": {"extra_dirs": ["/var/lib/snapd/desktop/applications"]}}
        assert Path("/var/lib/snapd/desktop/applications") not in application_dirs(settings, search_paths)


def test_sandbox_export_dirs_skips_missing_roots(tmp_path):
    assert sandbox_export_dirs([tmp_path / "nope"], "export") == []


def test_bundled_search_paths():
    data = load_search_paths()
    sandbox = data["sandbox"]
    assert "/var/lib/flatpak/app" in sandbox["application_roots"]
    assert sandbox["export_suffix"] == "current/active/export/share/applications"
    assert "/var/lib/snapd/desktop/applications" in sandbox["extra_dirs"]
