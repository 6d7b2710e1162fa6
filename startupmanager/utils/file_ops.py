"""Platform-specific file operations for Linux desktops.

Handles the few filesystem operations the reconciliation engine needs
and the sandbox detection that decides how they behave:
- Flatpak sandbox detection
- Single-file copies that never leave a half-written target
- Atomic text writes for synthesized descriptors
- Execute permission handling for registered scripts

When running inside a Flatpak sandbox, symlinks written into the user's
autostart directory would point at paths only the sandbox can see, so
files are copied instead.
"""

import os
import shutil
import stat
import tempfile
from pathlib import Path
from typing import Any, Mapping, Optional

from .constants import EXEC_BITS, FILE_MODE, FLATPAK_INFO_FILE


def is_flatpak(environ: Optional[Mapping[str, str]] = None) -> bool:
    """Check if running inside a Flatpak sandbox.

    Args:
        environ: Environment to inspect (default: os.environ)

    Returns:
        True if the sandbox marker file or $FLATPAK_ID is present
    """
    if environ is None:
        environ = os.environ

    if environ.get("FLATPAK_ID"):
        return True

    return Path(FLATPAK_INFO_FILE).exists()


def lexists(path: Path) -> bool:
    """Check if a path exists without following symlinks.

    A dangling symlink in an autostart directory still occupies the
    file name, so existence checks must not follow it. Unlike
    os.path.lexists(), errors other than a missing file are raised.

    Raises:
        OSError: If the path cannot be inspected (e.g. permission denied)
    """
    try:
        path.lstat()
    except FileNotFoundError:
        return False
    return True


def add_execute_bits(path: Path) -> int:
    """Add owner, group and other execute permission to a file.

    Args:
        path: File to mark executable

    Returns:
        The new permission bits

    Raises:
        OSError: If the mode cannot be read or changed
    """
    mode = stat.S_IMODE(path.stat().st_mode) | EXEC_BITS
    os.chmod(path, mode)
    return mode


def write_text_atomic(path: Path, text: str, mode: int = FILE_MODE) -> None:
    """Write a text file so readers see either nothing or the full file.

    The content goes to a temporary file in the target directory which is
    then renamed over the destination.

    Args:
        path: Destination file
        text: File contents
        mode: Permission bits for the new file

    Raises:
        OSError: If the temporary file cannot be written or renamed
    """
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise


def copy_file_safe(src: Path, dst: Path) -> dict[str, Any]:
    """Copy a single file, following symlinks on the source side.

    The copy lands in a temporary file next to the destination first, so a
    failed copy never leaves a truncated target behind.

    Args:
        src: Source file path
        dst: Destination file path (parent must exist)

    Returns:
        Dictionary with copy results:
        - status: 'success' or 'error'
        - source: Source path
        - dest: Destination path
        - error: Error message if failed
    """
    result: dict[str, Any] = {
        'status': 'success',
        'source': str(src),
        'dest': str(dst),
    }

    tmp_name = None
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{dst.name}.", dir=dst.parent)
        os.close(fd)
        shutil.copy2(src, tmp_name)
        os.replace(tmp_name, dst)
        tmp_name = None
    except OSError as e:
        result['status'] = 'error'
        result['error'] = str(e)
    finally:
        if tmp_name is not None:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass

    return result
