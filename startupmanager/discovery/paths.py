"""Path resolution for autostart scopes and installed applications.

Computes the ordered directories each operation searches:
    - User scope: $XDG_CONFIG_HOME/autostart (one directory)
    - System scope: every $XDG_CONFIG_DIRS entry joined with autostart
    - Installed applications: $XDG_DATA_HOME and $XDG_DATA_DIRS
      "applications" folders, plus sandbox-only host roots loaded from
      data/search-paths.yaml

Order is precedence: discovery keeps the first descriptor it sees for an
id, and reconciliation writes into the first directory of a scope.

Inside a Flatpak sandbox the host's /etc and /usr are only visible under
the host mount (normally /run/host). to_sandbox_path() is the only place
that rewrite happens; to_host_path() undoes it for paths handed back to
host programs.
"""

import enum
import os
from pathlib import Path, PurePosixPath
from typing import Any, Iterable, Optional

from ..config import Settings
from ..utils.constants import (
    AUTOSTART_DIR,
    DEFAULT_CONFIG_DIRS,
    DEFAULT_DATA_DIRS,
    HOST_REMAP_PREFIXES,
)


class ConfigDirUnavailable(RuntimeError):
    """Raised when the user's configuration root cannot be determined."""
    pass


class DirectoryScope(enum.Enum):
    """Which set of autostart directories an operation targets."""

    USER = "user"
    SYSTEM = "system"

    def __str__(self) -> str:
        return self.value


def _split_search_path(value: Optional[str]) -> list[str]:
    """Split a colon-separated XDG search path, dropping empty and relative items."""
    if not value:
        return []
    return [item for item in value.split(":") if item and os.path.isabs(item)]


def _unique(paths: Iterable[Path]) -> list[Path]:
    seen = set()
    result = []
    for path in paths:
        if path not in seen:
            seen.add(path)
            result.append(path)
    return result


def to_sandbox_path(path: Path, settings: Settings) -> Path:
    """Rewrite a host path to the location the sandbox can see it at.

    Only paths under /etc and /usr are rewritten, and only when
    settings.sandboxed is set. The home directory is shared with the
    sandbox and stays as is.

    Examples:
        /etc/xdg/autostart -> /run/host/etc/xdg/autostart
        /usr/share/applications -> /run/host/usr/share/applications
        /home/u/.config/autostart -> /home/u/.config/autostart
    """
    if not settings.sandboxed:
        return path

    posix = PurePosixPath(path)
    for prefix in HOST_REMAP_PREFIXES:
        if posix == PurePosixPath(prefix) or posix.is_relative_to(prefix):
            return settings.host_root / posix.relative_to("/")

    return path


def to_host_path(path: Path, settings: Settings) -> Path:
    """Translate a sandbox-visible path back to the host's spelling.

    Handles the host mount (/run/host/etc/... -> /etc/...) and the
    sandbox's private config home (~/.var/app/<app-id>/config/... ->
    ~/.config/...), restricted to settings.app_id when it is known.
    Other paths are returned unchanged.
    """
    if not settings.sandboxed:
        return path

    if path.is_relative_to(settings.host_root):
        return Path("/") / path.relative_to(settings.host_root)

    home = settings.home
    if home is not None:
        var_app = home / ".var" / "app"
        if path.is_relative_to(var_app):
            parts = path.relative_to(var_app).parts
            # parts: (<app-id>, "config", ...)
            own_app = settings.app_id is None or parts[:1] == (settings.app_id,)
            if own_app and len(parts) >= 2 and parts[1] == "config":
                return home.joinpath(".config", *parts[2:])

    return path


def get_config_home(settings: Settings) -> Path:
    """Get the user's configuration root.

    Returns:
        $XDG_CONFIG_HOME when set and absolute, otherwise ~/.config

    Raises:
        ConfigDirUnavailable: If neither can be determined
    """
    xdg_config = settings.environ.get("XDG_CONFIG_HOME")
    if xdg_config and os.path.isabs(xdg_config):
        return Path(xdg_config)

    home = settings.home
    if home is None:
        raise ConfigDirUnavailable(
            "Cannot determine the user configuration directory: "
            "neither $XDG_CONFIG_HOME nor a home directory is available"
        )

    return home / ".config"


def get_data_home(settings: Settings) -> Optional[Path]:
    """Get $XDG_DATA_HOME (default ~/.local/share), or None without a home."""
    xdg_data = settings.environ.get("XDG_DATA_HOME")
    if xdg_data and os.path.isabs(xdg_data):
        return Path(xdg_data)

    home = settings.home
    if home is None:
        return None

    return home / ".local" / "share"


def resolve_scope(scope: DirectoryScope, settings: Settings) -> list[Path]:
    """Resolve the ordered autostart directories of a scope.

    The first directory is the write target for reconciliation. Nothing
    is cached: every call reads settings.environ again.

    Args:
        scope: DirectoryScope.USER or DirectoryScope.SYSTEM
        settings: Runtime settings

    Returns:
        Ordered list of autostart directories (may not exist)

    Raises:
        ConfigDirUnavailable: For USER scope without a config root
    """
    if scope is DirectoryScope.USER:
        dirs = [get_config_home(settings) / AUTOSTART_DIR]
    elif scope is DirectoryScope.SYSTEM:
        config_dirs = _split_search_path(settings.environ.get("XDG_CONFIG_DIRS"))
        if not config_dirs:
            config_dirs = list(DEFAULT_CONFIG_DIRS)
        dirs = [Path(d) / AUTOSTART_DIR for d in config_dirs]
    else:
        raise ValueError(f"Unknown directory scope: {scope!r}")

    return _unique(to_sandbox_path(d, settings) for d in dirs)


def get_default_search_paths_path() -> Path:
    """Get the path to the bundled search-paths.yaml."""
    return Path(__file__).parent.parent / "data" / "search-paths.yaml"


def load_search_paths(search_paths_path: Optional[Path] = None) -> dict[str, Any]:
    """Load the installed-application search-root database.

    Args:
        search_paths_path: Path to a search-paths.yaml (default: bundled file)

    Returns:
        Parsed database, empty dict for an empty file

    Raises:
        FileNotFoundError: If the file doesn't exist
        yaml.YAMLError: If YAML is malformed
    """
    import yaml

    with open(search_paths_path or get_default_search_paths_path(), encoding="utf-8") as f:
        data = yaml.safe_load(f)

    return data or {}


def sandbox_export_dirs(roots: Iterable[Path], export_suffix: str) -> list[Path]:
    """Expand sandboxed-application roots to their exported descriptor folders.

    Each subdirectory of a root is one installed application; the
    export_suffix locates the descriptors of its active deployment.
    Missing roots and applications without exports are skipped.

    Args:
        roots: Sandboxed-application roots, e.g. /var/lib/flatpak/app
        export_suffix: Relative path appended to every application folder

    Returns:
        Existing export directories, sorted per root
    """
    dirs = []
    for root in roots:
        if not root.is_dir():
            continue
        try:
            app_dirs = sorted(p for p in root.iterdir() if p.is_dir())
        except OSError:
            continue
        for app_dir in app_dirs:
            export_dir = app_dir / export_suffix
            if export_dir.is_dir():
                dirs.append(export_dir)
    return dirs


def application_dirs(
    settings: Settings,
    search_paths: Optional[dict[str, Any]] = None,
) -> list[Path]:
    """Resolve the ordered installed-application search directories.

    Args:
        settings: Runtime settings
        search_paths: Parsed search-paths database (loaded on demand when
            sandboxed and not given)

    Returns:
        Ordered, de-duplicated list of directories (may not exist)
    """
    dirs: list[Path] = []

    data_home = get_data_home(settings)
    if data_home is not None:
        dirs.append(data_home / "applications")

    data_dirs = _split_search_path(settings.environ.get("XDG_DATA_DIRS"))
    if not data_dirs:
        data_dirs = list(DEFAULT_DATA_DIRS)
    dirs.extend(Path(d) / "applications" for d in data_dirs)

    dirs.extend(settings.extra_application_dirs)

    if settings.sandboxed:
        if search_paths is None:
            search_paths = load_search_paths()
        sandbox = search_paths.get("sandbox") or {}

        roots = [settings.expand(r) for r in sandbox.get("application_roots") or []]
        export_suffix = sandbox.get("export_suffix")
        if export_suffix:
            dirs.extend(sandbox_export_dirs(roots, export_suffix))

        dirs.extend(settings.expand(d) for d in sandbox.get("extra_dirs") or [])

    return _unique(to_sandbox_path(d, settings) for d in dirs)
