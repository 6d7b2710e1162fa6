"""Discovery engine: installed-application and autostart inventories.

Combines the path resolver and the desktop entry reader:
    list_installed: every launchable application the user could add,
        filtered and de-duplicated, in discovery order
    list_autostart: every entry physically present in a scope's
        autostart directories, sorted by display name

Both functions re-read the filesystem on every call. Nothing is cached
between calls; callers keep the last inventory and ask again after any
reconciliation action.
"""

import logging
from typing import Iterable, Optional, Sequence

from ..config import Settings
from ..scanners.desktop_entries import DesktopEntry, read_entries
from .paths import DirectoryScope, application_dirs, resolve_scope

logger = logging.getLogger(__name__)


def is_installable(entry: DesktopEntry, desktop: Optional[str]) -> bool:
    """Check whether an entry belongs in the installed-application picker.

    Entries without Exec cannot be launched, applets are panel plugins,
    and OnlyShowIn/NotShowIn are honoured when a desktop is known.
    """
    if entry.exec_cmd is None:
        return False
    if entry.is_applet:
        return False
    return entry.visible_in(desktop)


def dedupe_entries(entries: Iterable[DesktopEntry]) -> list[DesktopEntry]:
    """Keep the first entry for every id, preserving order."""
    seen: set[str] = set()
    result = []
    for entry in entries:
        if entry.id in seen:
            logger.debug("Dropping duplicate %s from %s", entry.id, entry.path)
            continue
        seen.add(entry.id)
        result.append(entry)
    return result


def list_installed(
    locales: Optional[Sequence[str]] = None,
    settings: Optional[Settings] = None,
) -> list[DesktopEntry]:
    """List installed applications that can be added to autostart.

    Args:
        locales: Locale preference list used for localized values
        settings: Runtime settings (default: from environment)

    Returns:
        Launchable, visible entries with unique ids, in discovery order
    """
    if settings is None:
        settings = Settings.from_env()

    desktop = settings.session_desktop
    entries = read_entries(application_dirs(settings), locales, settings.applet_key)
    return dedupe_entries(e for e in entries if is_installable(e, desktop))


def sort_entries(entries: Iterable[DesktopEntry], locales: Sequence[str] = ()) -> list[DesktopEntry]:
    """Sort entries by resolved display name.

    Plain str ordering: case-sensitive, by code point ("Beta" < "Zeta" < "alpha").
    """
    return sorted(entries, key=lambda e: e.name(locales))


def list_autostart(
    scope: DirectoryScope,
    locales: Optional[Sequence[str]] = None,
    settings: Optional[Settings] = None,
) -> list[DesktopEntry]:
    """List the entries currently autostarted in a scope.

    No visibility or applet filtering: whatever sits in the directory
    runs at login. When several directories hold the same id only the
    first (highest-precedence) copy is kept, as only that one runs.

    Args:
        scope: DirectoryScope.USER or DirectoryScope.SYSTEM
        locales: Locale preference list used for sorting and display
        settings: Runtime settings (default: from environment)

    Returns:
        Entries sorted by resolved display name

    Raises:
        ConfigDirUnavailable: For USER scope without a config root
    """
    if settings is None:
        settings = Settings.from_env()

    locales = list(locales or [])
    entries = read_entries(resolve_scope(scope, settings), locales, settings.applet_key)
    return sort_entries(dedupe_entries(entries), locales)


def list_all_autostart(
    locales: Optional[Sequence[str]] = None,
    settings: Optional[Settings] = None,
) -> dict[DirectoryScope, list[DesktopEntry]]:
    """List autostart inventories for every scope."""
    if settings is None:
        settings = Settings.from_env()

    return {scope: list_autostart(scope, locales, settings) for scope in DirectoryScope}


def find_entry(entries: Iterable[DesktopEntry], entry_id: str) -> Optional[DesktopEntry]:
    """Find an entry by id, falling back to the filename-derived appid."""
    entries = list(entries)
    for entry in entries:
        if entry.id == entry_id:
            return entry
    for entry in entries:
        if entry.appid == entry_id:
            return entry
    return None
