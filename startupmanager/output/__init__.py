"""Output modules for presenting inventories.

Modules:
    state: Presentation state record, search filtering, section status
"""

from .state import (
    SECTION_EMPTY,
    SECTION_NO_MATCHES,
    SECTION_OK,
    AppState,
    filter_inventory,
    matches_search,
    section_status,
)

__all__ = [
    "SECTION_EMPTY",
    "SECTION_NO_MATCHES",
    "SECTION_OK",
    "AppState",
    "filter_inventory",
    "matches_search",
    "section_status",
]
