"""Launches desktop entries.

Fire-and-forget: the child runs in its own session with its standard
streams detached, and nothing waits on it or checks how it went.
"""

import shlex
import subprocess
from typing import Callable, Optional

from ..config import Settings
from ..scanners.desktop_entries import DesktopEntry
from ..utils.constants import EXEC_FIELD_CODES


def strip_field_codes(exec_line: str) -> list[str]:
    """Split an Exec line into argv without launcher field codes.

    Examples:
        >>> strip_field_codes("firefox %u")
        ['firefox']
        >>> strip_field_codes('"/opt/my app/run" --name %c --pct 100%%')
        ['/opt/my app/run', '--name', '--pct', '100%']

    Raises:
        ValueError: If the quoting is unbalanced
    """
    args = []
    for arg in shlex.split(exec_line):
        if arg in EXEC_FIELD_CODES:
            continue
        args.append(arg.replace("%%", "%"))
    return args


def build_command(entry: DesktopEntry, settings: Settings) -> list[str]:
    """Build the argv that launches an entry.

    Raises:
        ValueError: If the entry has no usable Exec line
    """
    if entry.exec_cmd is None:
        raise ValueError(f"{entry.id} has no Exec line")

    argv = strip_field_codes(entry.exec_cmd)
    if not argv:
        raise ValueError(f"{entry.id} has an empty Exec line")

    if settings.sandboxed:
        argv = ["flatpak-spawn", "--host"] + argv

    return argv


def launch(
    entry: DesktopEntry,
    settings: Optional[Settings] = None,
    popen: Callable[..., subprocess.Popen] = subprocess.Popen,
) -> int:
    """Start an entry's program and return its pid.

    Raises:
        ValueError: If the entry has no usable Exec line
        OSError: If the program cannot be started
    """
    if settings is None:
        settings = Settings.from_env()

    argv = build_command(entry, settings)
    home = settings.home
    process = popen(
        argv,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        cwd=str(home) if home is not None else None,
        start_new_session=True,
    )
    return process.pid
