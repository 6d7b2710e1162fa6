"""startupmanager: manage the applications a Linux desktop starts at login.

Subpackages:
    scanners: Desktop entry parsing
    discovery: Directory resolution and inventories
    autostart: Reconciliation of autostart directories and launching
    output: Presentation state and search filtering
    utils: Constants, path safety and file operations
"""

__version__ = "1.0.0"
