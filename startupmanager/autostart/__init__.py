"""Autostart modules for changing what runs at login.

Modules:
    reconcile: Enable, disable, register scripts, reveal in file manager
    launcher: Start a desktop entry's program
"""

from .reconcile import (
    IoFailure,
    autostart_target,
    canonical_dir,
    disable,
    enable,
    register_script,
    reveal,
    script_exec_line,
)

from .launcher import (
    build_command,
    launch,
    strip_field_codes,
)

__all__ = [
    # reconcile
    'IoFailure',
    'autostart_target',
    'canonical_dir',
    'disable',
    'enable',
    'register_script',
    'reveal',
    'script_exec_line',
    # launcher
    'build_command',
    'launch',
    'strip_field_codes',
]
