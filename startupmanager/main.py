#!/usr/bin/env python3
"""startupmanager command-line entry point.

Lists, adds and removes the applications a Linux desktop session starts
at login. Every command prints a JSON document on stdout.

Usage:
    startupmanager list [--scope user|system|all]
    startupmanager installed [--search TEXT]
    startupmanager enable ID [--scope user|system]
    startupmanager disable ID [--scope user|system]
    startupmanager add-script PATH [--scope user|system]
    startupmanager reveal ID [--scope user|system]
    startupmanager launch ID

Global options:
    --config PATH   YAML settings file (default: $XDG_CONFIG_HOME/startupmanager/config.yaml)
    --verbose       Progress and debug logging on stderr

Exit codes:
    0  success (including no-op changes)
    1  the requested change failed or the entry was not found
    2  fatal configuration problem (no config directory, bad settings file)
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

import yaml

from .autostart import launcher, reconcile
from .config import ConfigError, Settings
from .discovery.inventory import find_entry, list_autostart, list_installed
from .discovery.paths import ConfigDirUnavailable, DirectoryScope
from .output.state import filter_inventory, section_status
from .scanners.desktop_entries import get_languages_from_env

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_FATAL = 2

# Result statuses that count as success
_OK_STATUSES = {"success", "created", "exists", "removed", "absent", "revealed", "launched"}


def _progress(args: argparse.Namespace, message: str) -> None:
    if args.verbose:
        print(message, file=sys.stderr, flush=True)


def _scopes(value: str) -> list[DirectoryScope]:
    if value == "all":
        return list(DirectoryScope)
    return [DirectoryScope(value)]


def _not_found(entry_id: str, where: str) -> dict[str, Any]:
    return {"status": "error", "error": f"No entry with id '{entry_id}' in {where}"}


def run_list(args: argparse.Namespace, settings: Settings, locales: list[str]) -> dict[str, Any]:
    """List autostarted entries per scope."""
    scopes: dict[str, Any] = {}
    total = 0
    for scope in _scopes(args.scope):
        _progress(args, f"Scanning {scope} autostart directories...")
        entries = list_autostart(scope, locales, settings)
        visible = filter_inventory(entries, args.search, locales)
        total += len(visible)
        scopes[str(scope)] = {
            "entries": [e.to_dict(locales) for e in visible],
            "section": section_status(entries, visible),
        }
    return {"status": "success", "scopes": scopes, "count": total}


def run_installed(args: argparse.Namespace, settings: Settings, locales: list[str]) -> dict[str, Any]:
    """List installed applications that can be added."""
    _progress(args, "Scanning installed applications...")
    entries = filter_inventory(list_installed(locales, settings), args.search, locales)
    return {
        "status": "success",
        "applications": [e.to_dict(locales) for e in entries],
        "count": len(entries),
    }


def run_enable(args: argparse.Namespace, settings: Settings, locales: list[str]) -> dict[str, Any]:
    """Add an installed application to autostart."""
    scope = DirectoryScope(args.scope)
    entry = find_entry(list_installed(locales, settings), args.id)
    if entry is None:
        return _not_found(args.id, "installed applications")
    return reconcile.enable(scope, entry, settings)


def run_disable(args: argparse.Namespace, settings: Settings, locales: list[str]) -> dict[str, Any]:
    """Remove an entry from autostart."""
    scope = DirectoryScope(args.scope)
    entry = find_entry(list_autostart(scope, locales, settings), args.id)
    if entry is None:
        return {"status": "absent", "path": None}

    result = reconcile.disable(scope, entry, settings)
    if result["status"] == "absent":
        # The listed file is not <id>.desktop in the first directory, so it stays
        result["entry_path"] = str(entry.path)
    return result


def run_add_script(args: argparse.Namespace, settings: Settings, locales: list[str]) -> dict[str, Any]:
    """Autostart an arbitrary script."""
    return reconcile.register_script(DirectoryScope(args.scope), Path(args.path), settings)


def run_reveal(args: argparse.Namespace, settings: Settings, locales: list[str]) -> dict[str, Any]:
    """Open the directory holding an autostart entry."""
    entry = find_entry(list_autostart(DirectoryScope(args.scope), locales, settings), args.id)
    if entry is None:
        return _not_found(args.id, f"{args.scope} autostart directories")
    return reconcile.reveal(entry, settings)


def run_launch(args: argparse.Namespace, settings: Settings, locales: list[str]) -> dict[str, Any]:
    """Start an installed or autostarted application once."""
    entry = find_entry(list_installed(locales, settings), args.id)
    if entry is None:
        for scope in DirectoryScope:
            entry = find_entry(list_autostart(scope, locales, settings), args.id)
            if entry is not None:
                break
    if entry is None:
        return _not_found(args.id, "installed or autostart entries")

    try:
        pid = launcher.launch(entry, settings)
    except (OSError, ValueError) as e:
        return {"status": "error", "error": str(e)}
    return {"status": "launched", "id": entry.id, "pid": pid}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="startupmanager",
        description="Manage the applications started at desktop login",
    )
    parser.add_argument("--config", type=Path, help="YAML settings file")
    parser.add_argument("--verbose", action="store_true", help="Log progress to stderr")

    sub = parser.add_subparsers(dest="command", required=True)
    scope_choices = [s.value for s in DirectoryScope]

    p = sub.add_parser("list", help="List autostarted applications")
    p.add_argument("--scope", choices=scope_choices + ["all"], default="all")
    p.add_argument("--search", help="Only entries whose name or command contains TEXT")
    p.set_defaults(handler=run_list)

    p = sub.add_parser("installed", help="List installed applications")
    p.add_argument("--search", help="Only entries whose name or command contains TEXT")
    p.set_defaults(handler=run_installed)

    p = sub.add_parser("enable", help="Start an installed application at login")
    p.add_argument("id")
    p.add_argument("--scope", choices=scope_choices, default="user")
    p.set_defaults(handler=run_enable)

    p = sub.add_parser(
        "disable",
        help="Stop starting an application at login (removes <id>.desktop from the first scope directory)",
    )
    p.add_argument("id")
    p.add_argument("--scope", choices=scope_choices, default="user")
    p.set_defaults(handler=run_disable)

    p = sub.add_parser("add-script", help="Start a script at login")
    p.add_argument("path")
    p.add_argument("--scope", choices=scope_choices, default="user")
    p.set_defaults(handler=run_add_script)

    p = sub.add_parser("reveal", help="Show an autostart entry in the file manager")
    p.add_argument("id")
    p.add_argument("--scope", choices=scope_choices, default="user")
    p.set_defaults(handler=run_reveal)

    p = sub.add_parser("launch", help="Start an application now")
    p.add_argument("id")
    p.set_defaults(handler=run_launch)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for startupmanager."""
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr,
                            format="%(levelname)s %(name)s: %(message)s")

    try:
        settings = Settings.from_env(config_path=args.config)
        locales = get_languages_from_env(settings.environ)
        result = args.handler(args, settings, locales)
    except (ConfigDirUnavailable, ConfigError, FileNotFoundError, yaml.YAMLError) as e:
        print(json.dumps({
            "status": "error",
            "error": str(e),
            "exception_type": type(e).__name__,
        }))
        return EXIT_FATAL

    print(json.dumps(result, indent=2, default=str))
    return EXIT_OK if result.get("status") in _OK_STATUSES else EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
