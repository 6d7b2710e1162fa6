"""Presentation state for the autostart manager.

One AppState record holds everything a front end needs between events:
the installed-application picker, the autostart inventory of each scope,
the current selection and the search texts. Event handlers receive the
record, change it, and call refresh() after any reconciliation action;
the discovery engine itself keeps nothing.

Search matching mirrors the listing: a case-insensitive substring of the
resolved name or of the Exec line.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from ..config import Settings
from ..discovery.inventory import list_all_autostart, list_installed
from ..discovery.paths import DirectoryScope
from ..scanners.desktop_entries import DesktopEntry, get_languages_from_env

# Section states shown under each scope heading
SECTION_OK = "ok"
SECTION_EMPTY = "empty"            # nothing autostarted in this scope
SECTION_NO_MATCHES = "no_matches"  # entries exist but the search hides all


def matches_search(entry: DesktopEntry, query: Optional[str], locales: Sequence[str] = ()) -> bool:
    """Check if an entry matches a search text.

    An empty or whitespace-only query matches everything.
    """
    needle = (query or "").strip().lower()
    if not needle:
        return True
    if needle in entry.name(locales).lower():
        return True
    return entry.exec_cmd is not None and needle in entry.exec_cmd.lower()


def filter_inventory(
    entries: Iterable[DesktopEntry],
    query: Optional[str],
    locales: Sequence[str] = (),
) -> list[DesktopEntry]:
    """Keep the entries matching a search text, preserving order."""
    return [e for e in entries if matches_search(e, query, locales)]


def section_status(entries: Sequence[DesktopEntry], visible: Sequence[DesktopEntry]) -> str:
    """Classify a scope section for display.

    Args:
        entries: Full inventory of the scope
        visible: Entries left after search filtering

    Returns:
        SECTION_EMPTY, SECTION_NO_MATCHES or SECTION_OK
    """
    if not entries:
        return SECTION_EMPTY
    if not visible:
        return SECTION_NO_MATCHES
    return SECTION_OK


@dataclass
class AppState:
    """Single-owner state record for the presentation layer.

    Attributes:
        locales: Locale preference list for display names
        installed: Last installed-application inventory
        inventories: Last autostart inventory per scope
        selected_scope: Scope of the selected entry, if any
        selected_index: Index of the selected entry in its inventory
        global_search: Text filtering the autostart sections; None when
            the search box is closed
        application_search: Text filtering the installed-application picker
        popover_index: Entry whose action menu is open, if any
    """
    locales: list[str] = field(default_factory=list)
    installed: list[DesktopEntry] = field(default_factory=list)
    inventories: dict[DirectoryScope, list[DesktopEntry]] = field(default_factory=dict)
    selected_scope: Optional[DirectoryScope] = None
    selected_index: Optional[int] = None
    global_search: Optional[str] = None
    application_search: str = ""
    popover_index: Optional[int] = None

    @classmethod
    def load(cls, settings: Settings) -> "AppState":
        """Create a state record and fill it from the filesystem."""
        state = cls(locales=get_languages_from_env(settings.environ))
        state.refresh(settings)
        return state

    def refresh(self, settings: Settings) -> None:
        """Re-read every inventory and drop a selection that no longer exists."""
        self.installed = list_installed(self.locales, settings)
        self.inventories = list_all_autostart(self.locales, settings)
        if self.selected_entry() is None:
            self.clear_selection()

    def select(self, scope: DirectoryScope, index: int) -> Optional[DesktopEntry]:
        """Select an entry of a scope inventory; out-of-range indexes clear it."""
        self.selected_scope = scope
        self.selected_index = index
        entry = self.selected_entry()
        if entry is None:
            self.clear_selection()
        return entry

    def selected_entry(self) -> Optional[DesktopEntry]:
        if self.selected_scope is None or self.selected_index is None:
            return None
        entries = self.inventories.get(self.selected_scope, [])
        if 0 <= self.selected_index < len(entries):
            return entries[self.selected_index]
        return None

    def clear_selection(self) -> None:
        self.selected_scope = None
        self.selected_index = None
        self.popover_index = None

    def visible_autostart(self, scope: DirectoryScope) -> list[DesktopEntry]:
        return filter_inventory(self.inventories.get(scope, []), self.global_search, self.locales)

    def visible_installed(self) -> list[DesktopEntry]:
        return filter_inventory(self.installed, self.application_search, self.locales)

    def status(self, scope: DirectoryScope) -> str:
        """Section status of a scope under the current global search."""
        return section_status(self.inventories.get(scope, []), self.visible_autostart(scope))
