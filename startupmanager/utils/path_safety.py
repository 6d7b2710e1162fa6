"""Path safety utilities for writing into autostart directories.

Descriptor ids and script names end up as file names inside an
autostart directory. An id such as "../../.bashrc" or "a/b" must never
let a write escape that directory, so every target is built through
safe_join().
"""

from pathlib import Path
from typing import Union

from .constants import DESKTOP_SUFFIX


class PathTraversalError(ValueError):
    """Raised when a target file name would escape its directory."""
    pass


def validate_file_name(name: str) -> bool:
    """Check that a name is a single, plain path component.

    Args:
        name: Candidate file name

    Returns:
        True if the name is safe to join onto a directory

    Examples:
        >>> validate_file_name("org.gnome.Terminal.desktop")
        True
        >>> validate_file_name("../evil.desktop")
        False
        >>> validate_file_name("a/b.desktop")
        False
    """
    if not name or name in (".", ".."):
        return False

    if "/" in name or "\\" in name or "\0" in name:
        return False

    return True


def safe_join(base: Path, name: Union[str, Path]) -> Path:
    """Join a directory and a file name with traversal protection.

    The directory does not need to exist. Only the lexical form is
    checked; the result is not resolved so symlinked directories keep
    their spelling.

    Args:
        base: Directory the file must live in
        name: File name to join

    Returns:
        The joined path

    Raises:
        PathTraversalError: If the name is not a single path component
    """
    name = str(name)
    if not validate_file_name(name):
        raise PathTraversalError(f"Invalid file name: {name!r}")

    dest = base / name
    if dest.parent != base:
        raise PathTraversalError(f"Path traversal detected: {name} escapes {base}")

    return dest


def desktop_file_name(entry_id: str) -> str:
    """Build the autostart file name for a descriptor id.

    Examples:
        >>> desktop_file_name("firefox")
        'firefox.desktop'
        >>> desktop_file_name("run.sh")
        'run.sh.desktop'
    """
    return f"{entry_id}{DESKTOP_SUFFIX}"
