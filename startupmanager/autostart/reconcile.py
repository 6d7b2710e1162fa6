"""Reconciliation engine for autostart directories.

Applies the user's intent to the first (canonical) directory of a scope:
    enable: create <id>.desktop, a symlink to the installed entry or, in
        the sandbox, a copy of it
    disable: remove <id>.desktop
    register_script: synthesize a descriptor that runs an arbitrary script
    reveal: open an entry's directory in the host file manager

Every transition touches a single file (two for a sandboxed
register_script, where the script copy must succeed before the
descriptor is written). Failures are returned, never raised, so a failed
step leaves the directory as it was and the caller decides how to show it.

Each operation returns a dictionary:
    - status: 'created', 'exists', 'removed', 'absent', 'revealed',
      'cancelled' or 'error'
    - path: The file or directory the operation acted on
    - error: Error message if failed
    - error_type: 'IoFailure' if failed

The engine never patches an inventory; call list_autostart() again to
observe the new state.
"""

import logging
import os
import shlex
import subprocess
from pathlib import Path
from typing import Any, Callable, Optional, Sequence, Union

from ..config import Settings
from ..discovery.paths import DirectoryScope, resolve_scope, to_host_path
from ..scanners.desktop_entries import DesktopEntry, format_desktop_entry, quote_exec_arg
from ..utils.constants import DIR_MODE, HOST_AUTOSTART_DIR, TIMEOUT_SYSTEM_QUICK
from ..utils.file_ops import add_execute_bits, copy_file_safe, lexists, write_text_atomic
from ..utils.path_safety import PathTraversalError, desktop_file_name, safe_join

logger = logging.getLogger(__name__)


class IoFailure(OSError):
    """Raised when a reconciliation step cannot read or write a file."""
    pass


def _failure(path: Optional[Path], error: Exception) -> dict[str, Any]:
    logger.warning("Autostart change failed for %s: %s", path, error)
    return {
        'status': 'error',
        'path': str(path) if path is not None else None,
        'error': str(error),
        'error_type': 'IoFailure',
    }


def canonical_dir(scope: DirectoryScope, settings: Settings) -> Path:
    """Get the directory reconciliation writes into for a scope.

    Raises:
        ConfigDirUnavailable: For USER scope without a config root
    """
    return resolve_scope(scope, settings)[0]


def autostart_target(scope: DirectoryScope, entry_id: str, settings: Settings) -> Path:
    """Get the autostart file for an id: <canonical dir>/<id>.desktop.

    Raises:
        PathTraversalError: If the id is not a plain file name
    """
    return safe_join(canonical_dir(scope, settings), desktop_file_name(entry_id))


def _ensure_dir(directory: Path) -> None:
    directory.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)


def enable(
    scope: DirectoryScope,
    entry: DesktopEntry,
    settings: Optional[Settings] = None,
) -> dict[str, Any]:
    """Add an entry to a scope's autostart directory.

    Creates <canonical dir>/<entry.id>.desktop as a symlink to entry.path,
    or as a copy when sandboxed (a symlink would point at a path only the
    sandbox can see). An existing file of that name, even a dangling
    symlink, makes this a no-op. A missing autostart directory is created.

    Args:
        scope: Target scope
        entry: Entry to autostart, usually from list_installed()
        settings: Runtime settings (default: from environment)

    Returns:
        Result dictionary; status 'created', 'exists' or 'error'
    """
    if settings is None:
        settings = Settings.from_env()

    try:
        target = autostart_target(scope, entry.id, settings)
    except PathTraversalError as e:
        return _failure(None, e)

    try:
        if lexists(target):
            return {'status': 'exists', 'path': str(target)}

        _ensure_dir(target.parent)

        if settings.sandboxed:
            copy_result = copy_file_safe(entry.path, target)
            if copy_result['status'] != 'success':
                raise IoFailure(copy_result['error'])
            method = 'copy'
        else:
            os.symlink(os.path.abspath(entry.path), target)
            method = 'symlink'
    except OSError as e:
        return _failure(target, e)

    logger.debug("Enabled %s via %s at %s", entry.id, method, target)
    return {'status': 'created', 'path': str(target), 'method': method}


def disable(
    scope: DirectoryScope,
    entry: DesktopEntry,
    settings: Optional[Settings] = None,
) -> dict[str, Any]:
    """Remove an entry from a scope's autostart directory.

    Args:
        scope: Target scope
        entry: Entry to remove, usually from list_autostart()
        settings: Runtime settings (default: from environment)

    Returns:
        Result dictionary; status 'removed', 'absent' or 'error'
    """
    if settings is None:
        settings = Settings.from_env()

    try:
        target = autostart_target(scope, entry.id, settings)
    except PathTraversalError as e:
        return _failure(None, e)

    try:
        if not lexists(target):
            return {'status': 'absent', 'path': str(target)}
        target.unlink()
    except OSError as e:
        return _failure(target, e)

    logger.debug("Disabled %s at %s", entry.id, target)
    return {'status': 'removed', 'path': str(target)}


def script_exec_line(script: Path, settings: Settings) -> str:
    """Build the Exec value for a registered script.

    Regular installs run the script from where it lives. Sandboxed
    installs run the copy in the host's autostart directory through sh,
    since the original location may not exist outside the sandbox.
    The path is quoted and escaped following the Exec value rules.
    """
    if settings.sandboxed:
        return "sh -c " + quote_exec_arg(f"{HOST_AUTOSTART_DIR}/{shlex.quote(script.name)}")
    return quote_exec_arg(str(script))


def register_script(
    scope: DirectoryScope,
    script_path: Optional[Union[str, Path]],
    settings: Optional[Settings] = None,
) -> dict[str, Any]:
    """Autostart an arbitrary script by synthesizing a descriptor for it.

    Writes <canonical dir>/<script name>.desktop with Type, Name and Exec.
    When sandboxed, the script is first copied next to the descriptor and
    made executable; if that fails no descriptor is written. Registering
    the same script again rewrites its descriptor.

    Args:
        scope: Target scope
        script_path: Script chosen by the user; None means the file chooser
            was cancelled
        settings: Runtime settings (default: from environment)

    Returns:
        Result dictionary; status 'created', 'cancelled' or 'error'
    """
    if script_path is None:
        return {'status': 'cancelled', 'path': None}

    if settings is None:
        settings = Settings.from_env()

    script = Path(script_path).expanduser().absolute()
    if not script.is_file() or not os.access(script, os.R_OK):
        return _failure(script, IoFailure(f"Cannot read script: {script}"))

    try:
        target = autostart_target(scope, script.name, settings)
    except PathTraversalError as e:
        return _failure(script, e)

    result: dict[str, Any] = {'status': 'created', 'path': str(target), 'script': str(script)}
    try:
        _ensure_dir(target.parent)

        if settings.sandboxed:
            copied = safe_join(target.parent, script.name)
            copy_result = copy_file_safe(script, copied)
            if copy_result['status'] != 'success':
                raise IoFailure(copy_result['error'])
            add_execute_bits(copied)
            result['script'] = str(copied)

        write_text_atomic(target, format_desktop_entry({
            "Type": "Application",
            "Name": script.name,
            "Exec": script_exec_line(script, settings),
        }))
    except (OSError, PathTraversalError) as e:
        return _failure(target, e)

    logger.debug("Registered script %s at %s", script, target)
    return result


def _run_opener(command: Sequence[str]) -> None:
    """Run a file-manager command, raising IoFailure if it fails."""
    try:
        completed = subprocess.run(
            list(command),
            capture_output=True,
            text=True,
            timeout=TIMEOUT_SYSTEM_QUICK,
            check=False,
        )
    except (OSError, subprocess.SubprocessError) as e:
        raise IoFailure(f"{command[0]} failed: {e}") from e

    if completed.returncode != 0:
        detail = completed.stderr.strip() or f"exit code {completed.returncode}"
        raise IoFailure(f"{command[0]} failed: {detail}")


def reveal(
    entry: DesktopEntry,
    settings: Optional[Settings] = None,
    opener: Optional[Callable[[Sequence[str]], None]] = None,
) -> dict[str, Any]:
    """Open the directory containing an entry in the file manager.

    In the sandbox the directory is translated back to its host spelling
    and opened by the host, since the sandbox-internal path means nothing
    to the host file manager.

    Args:
        entry: Entry whose directory to show
        settings: Runtime settings (default: from environment)
        opener: Callable receiving the command to run (default: subprocess)

    Returns:
        Result dictionary; status 'revealed' or 'error'
    """
    if settings is None:
        settings = Settings.from_env()

    directory = Path(os.path.abspath(entry.path)).parent
    command = ["xdg-open"]
    if settings.sandboxed:
        directory = to_host_path(directory, settings)
        command = ["flatpak-spawn", "--host", "xdg-open"]
    command.append(str(directory))

    try:
        (opener or _run_opener)(command)
    except OSError as e:
        return _failure(directory, e)

    return {'status': 'revealed', 'path': str(directory)}
