"""Discovery modules for locating and inventorying desktop entries.

Modules:
    paths: Scope -> directory resolution and sandbox path remapping
    inventory: Installed-application and autostart inventories

Usage:
    from startupmanager.discovery import DirectoryScope, list_autostart

    for entry in list_autostart(DirectoryScope.USER, locales):
        print(entry.name(locales), entry.exec_cmd)
"""

from .paths import (
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
from .inventory import (
    dedupe_entries,
    find_entry,
    is_installable,
    list_all_autostart,
    list_autostart,
    list_installed,
    sort_entries,
)

__all__ = [
    # paths.py
    'ConfigDirUnavailable',
    'DirectoryScope',
    'application_dirs',
    'get_config_home',
    'load_search_paths',
    'resolve_scope',
    'sandbox_export_dirs',
    'to_host_path',
    'to_sandbox_path',
    # inventory.py
    'dedupe_entries',
    'find_entry',
    'is_installable',
    'list_all_autostart',
    'list_autostart',
    'list_installed',
    'sort_entries',
]
