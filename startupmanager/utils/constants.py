"""Centralized constants for startupmanager.

Directory names, descriptor keys and timeout values shared by the
resolver, the reader and the reconciliation engine. Centralizing these
values keeps the freedesktop naming conventions in one place.
"""

# =============================================================================
# FILESYSTEM LAYOUT
# =============================================================================

# Subdirectory of every config root that the session scans at login
AUTOSTART_DIR = "autostart"

# Descriptor file suffix
DESKTOP_SUFFIX = ".desktop"

# System autostart search path when $XDG_CONFIG_DIRS is unset
DEFAULT_CONFIG_DIRS = ("/etc/xdg",)

# Installed-application roots when $XDG_DATA_DIRS is unset
DEFAULT_DATA_DIRS = ("/usr/local/share", "/usr/share")

# Where the host filesystem is mounted inside a Flatpak sandbox
DEFAULT_HOST_ROOT = "/run/host"

# Host prefixes that are only reachable through the host mount
HOST_REMAP_PREFIXES = ("/etc", "/usr")

# Marker file present in every Flatpak sandbox
FLATPAK_INFO_FILE = "/.flatpak-info"

# =============================================================================
# DESCRIPTOR KEYS
# =============================================================================

DESKTOP_ENTRY_GROUP = "Desktop Entry"

# Sandbox identity, overrides the filename-derived id
FLATPAK_KEY = "X-Flatpak"

# Panel applets advertise themselves with this key
APPLET_KEY = "X-CosmicApplet"

# Field codes that carry no meaning outside a launcher
EXEC_FIELD_CODES = frozenset(
    ["%f", "%F", "%u", "%U", "%d", "%D", "%n", "%N", "%i", "%c", "%k", "%v", "%m"]
)

# =============================================================================
# SUBPROCESS TIMEOUTS (in seconds)
# =============================================================================

# Used for: xdg-open, flatpak-spawn --host xdg-open
TIMEOUT_SYSTEM_QUICK = 5

# =============================================================================
# PERMISSION MODES
# =============================================================================

# Bits added to a registered script copied into the autostart directory
EXEC_BITS = 0o111

# Mode for autostart directories created on demand
DIR_MODE = 0o755

# Mode for synthesized descriptor files
FILE_MODE = 0o644

# =============================================================================
# SANDBOX CONVENTIONS
# =============================================================================

# Host-side spelling of the user autostart directory, used in the Exec
# line of scripts registered from inside the sandbox
HOST_AUTOSTART_DIR = "~/.config/autostart"
