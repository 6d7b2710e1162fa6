"""Runtime settings for startupmanager.

A Settings object is the single switch that decides how the resolver and
the reconciliation engine behave: which environment they read, whether
host paths must be remapped through the sandbox's host mount, and which
extra directories hold installed applications. It carries no descriptor
state and is safe to share.

Settings come from three places, later ones winning:
    1. Built-in defaults
    2. Environment detection ($FLATPAK_ID, /.flatpak-info)
    3. An optional YAML file, $XDG_CONFIG_HOME/startupmanager/config.yaml

Example config.yaml:
    sandboxed: auto          # auto | true | false
    host_root: /run/host
    extra_application_dirs:
      - /opt/apps/share/applications
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

from .utils.constants import APPLET_KEY, DEFAULT_HOST_ROOT
from .utils.file_ops import is_flatpak

CONFIG_DIR_NAME = "startupmanager"
CONFIG_FILE_NAME = "config.yaml"


class ConfigError(ValueError):
    """Raised when the configuration file is malformed."""
    pass


def load_config_file(config_path: Path) -> dict[str, Any]:
    """Load and validate a startupmanager YAML configuration file.

    Args:
        config_path: Path to config.yaml

    Returns:
        Dictionary of settings overrides (empty for an empty file)

    Raises:
        FileNotFoundError: If the file doesn't exist
        ConfigError: If the structure or a value is invalid
        yaml.YAMLError: If YAML is malformed
    """
    import yaml

    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}

    if not isinstance(data, dict):
        raise ConfigError(f"Top level of {config_path} must be a mapping")

    sandboxed = data.get("sandboxed", "auto")
    if sandboxed not in ("auto", True, False):
        raise ConfigError(f"sandboxed must be auto, true or false, got {sandboxed!r}")

    host_root = data.get("host_root")
    if host_root is not None and not str(host_root).startswith("/"):
        raise ConfigError(f"host_root must be an absolute path: {host_root}")

    extra_dirs = data.get("extra_application_dirs") or []
    if not isinstance(extra_dirs, list):
        raise ConfigError("extra_application_dirs must be a list")
    for path in extra_dirs:
        if not str(path).startswith(("/", "~")):
            raise ConfigError(f"Relative paths not allowed in extra_application_dirs: {path}")

    return data


def get_default_config_path(environ: Mapping[str, str]) -> Optional[Path]:
    """Get the default config.yaml location, or None without a home."""
    xdg_config = environ.get("XDG_CONFIG_HOME")
    if xdg_config and os.path.isabs(xdg_config):
        return Path(xdg_config) / CONFIG_DIR_NAME / CONFIG_FILE_NAME

    home = environ.get("HOME")
    if home:
        return Path(home) / ".config" / CONFIG_DIR_NAME / CONFIG_FILE_NAME

    return None


@dataclass
class Settings:
    """Execution mode and environment for one run.

    Attributes:
        environ: Environment variables the resolver reads
        sandboxed: Whether host paths are remapped and files copied
        host_root: Mount point of the host filesystem in the sandbox
        app_id: Sandbox application id ($FLATPAK_ID), if known
        extra_application_dirs: Additional installed-application roots
        applet_key: Descriptor key that marks panel applets
    """
    environ: Mapping[str, str] = field(default_factory=lambda: os.environ)
    sandboxed: bool = False
    host_root: Path = Path(DEFAULT_HOST_ROOT)
    app_id: Optional[str] = None
    extra_application_dirs: list[Path] = field(default_factory=list)
    applet_key: str = APPLET_KEY

    @property
    def home(self) -> Optional[Path]:
        """The user's home directory, or None if it cannot be determined."""
        home = self.environ.get("HOME")
        if home:
            return Path(home)
        try:
            return Path.home()
        except (RuntimeError, KeyError):
            return None

    @property
    def session_desktop(self) -> Optional[str]:
        """Current desktop identifier from $XDG_SESSION_DESKTOP."""
        return self.environ.get("XDG_SESSION_DESKTOP") or None

    def expand(self, path: str) -> Path:
        """Expand a leading "~" against this settings' home directory."""
        if path.startswith("~") and self.home is not None:
            return self.home / path[1:].lstrip("/")
        return Path(path)

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        config_path: Optional[Path] = None,
    ) -> "Settings":
        """Build settings from the environment and the optional config file.

        Args:
            environ: Environment to read (default: os.environ)
            config_path: Explicit config file; a missing explicit file is an
                error, a missing default file is not

        Returns:
            Settings for this run

        Raises:
            ConfigError: If the config file is malformed
            FileNotFoundError: If an explicit config_path does not exist
        """
        if environ is None:
            environ = os.environ

        overrides: dict[str, Any] = {}
        if config_path is not None:
            overrides = load_config_file(config_path)
        else:
            default_path = get_default_config_path(environ)
            if default_path is not None and default_path.is_file():
                overrides = load_config_file(default_path)

        sandboxed = overrides.get("sandboxed", "auto")
        if sandboxed == "auto":
            sandboxed = is_flatpak(environ)

        settings = cls(
            environ=environ,
            sandboxed=bool(sandboxed),
            app_id=environ.get("FLATPAK_ID") or None,
        )
        if overrides.get("host_root"):
            settings.host_root = Path(overrides["host_root"])
        settings.extra_application_dirs = [
            settings.expand(str(p)) for p in overrides.get("extra_application_dirs") or []
        ]
        return settings
