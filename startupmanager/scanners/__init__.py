"""Scanner modules for reading desktop entries from disk.

Modules:
    desktop_entries: Parse *.desktop files in application and autostart directories
"""

from .desktop_entries import (
    DesktopEntry,
    ParseFailure,
    format_desktop_entry,
    get_languages_from_env,
    iter_desktop_files,
    parse_desktop_file,
    quote_exec_arg,
    read_entries,
)

__all__ = [
    "DesktopEntry",
    "ParseFailure",
    "format_desktop_entry",
    "get_languages_from_env",
    "iter_desktop_files",
    "parse_desktop_file",
    "quote_exec_arg",
    "read_entries",
]
