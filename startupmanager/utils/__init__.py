"""Utility modules for common operations.

Modules:
    constants: Directory names, descriptor keys, timeouts and modes
    path_safety: Traversal-safe file name joins
    file_ops: Sandbox detection and single-file write primitives
"""

from .path_safety import (
    PathTraversalError,
    desktop_file_name,
    safe_join,
    validate_file_name,
)

from .file_ops import (
    add_execute_bits,
    copy_file_safe,
    is_flatpak,
    lexists,
    write_text_atomic,
)

__all__ = [
    # path_safety
    'PathTraversalError',
    'desktop_file_name',
    'safe_join',
    'validate_file_name',
    # file_ops
    'add_execute_bits',
    'copy_file_safe',
    'is_flatpak',
    'lexists',
    'write_text_atomic',
]
