"""Scanner for freedesktop desktop entry files.

Walks application and autostart directories for *.desktop files and
parses them into DesktopEntry records with localized names, icon, Exec
line and visibility rules.

The reader neither filters nor de-duplicates; it only drops files it
cannot parse. Those decisions belong to discovery.inventory.
"""

import configparser
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping, Optional, Sequence

from ..utils.constants import (
    APPLET_KEY,
    DESKTOP_ENTRY_GROUP,
    DESKTOP_SUFFIX,
    FLATPAK_KEY,
)

logger = logging.getLogger(__name__)

# Name[de_DE@euro] -> ("Name", "de_DE@euro")
_LOCALIZED_KEY = re.compile(r"^([A-Za-z0-9-]+)\[([^\]]+)\]$")

_ESCAPES = {"s": " ", "n": "\n", "t": "\t", "r": "\r", "\\": "\\"}


class ParseFailure(ValueError):
    """Raised when a file cannot be represented as a desktop entry."""
    pass


@dataclass(frozen=True)
class DesktopEntry:
    """A parsed application launch descriptor.

    Attributes:
        appid: Identifier derived from the file name (without .desktop)
        path: File the entry was loaded from
        names: Localized names; the None key holds the plain Name value
        comments: Localized comments, same layout as names
        icon: Icon name or path, if any
        exec_cmd: Literal Exec line including field codes, if any
        entry_type: Value of Type (Application, Link, ...)
        only_show_in: Desktops allowed to show the entry, if restricted
        not_show_in: Desktops that must not show the entry, if any
        flatpak: Sandbox application id from X-Flatpak, if any
        is_applet: Whether the entry is a panel applet
        terminal: Whether the program runs in a terminal
        hidden: Whether the entry is marked deleted (Hidden=true)
        no_display: Whether the entry is hidden from menus
    """
    appid: str
    path: Path
    names: dict[Optional[str], str] = field(default_factory=dict)
    comments: dict[Optional[str], str] = field(default_factory=dict)
    icon: Optional[str] = None
    exec_cmd: Optional[str] = None
    entry_type: Optional[str] = None
    only_show_in: Optional[list[str]] = None
    not_show_in: Optional[list[str]] = None
    flatpak: Optional[str] = None
    is_applet: bool = False
    terminal: bool = False
    hidden: bool = False
    no_display: bool = False

    def __hash__(self) -> int:
        # names/comments are dicts; hash on the fields that locate the file
        return hash((self.appid, self.path))

    @property
    def id(self) -> str:
        """Identity used for de-duplication and autostart file names."""
        return self.flatpak or self.appid

    def name(self, locales: Sequence[str] = ()) -> str:
        """Resolve the display name.

        Tries each locale in order, then the plain Name, then the id.
        """
        for locale in locales:
            if locale in self.names:
                return self.names[locale]
        return self.names.get(None) or self.id

    def comment(self, locales: Sequence[str] = ()) -> Optional[str]:
        for locale in locales:
            if locale in self.comments:
                return self.comments[locale]
        return self.comments.get(None)

    def visible_in(self, desktop: Optional[str]) -> bool:
        """Check OnlyShowIn/NotShowIn against a desktop identifier.

        Without a desktop identifier every entry is visible.
        """
        if not desktop:
            return True
        if self.only_show_in is not None and desktop not in self.only_show_in:
            return False
        if self.not_show_in is not None and desktop in self.not_show_in:
            return False
        return True

    def to_dict(self, locales: Sequence[str] = ()) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'id': self.id,
            'appid': self.appid,
            'name': self.name(locales),
            'comment': self.comment(locales),
            'icon': self.icon,
            'exec': self.exec_cmd,
            'path': str(self.path),
            'flatpak': self.flatpak,
            'only_show_in': self.only_show_in,
            'not_show_in': self.not_show_in,
        }


def unescape_value(value: str) -> str:
    r"""Decode the \s \n \t \r \\ escapes of a desktop entry string."""
    if "\\" not in value:
        return value

    out = []
    chars = iter(value)
    for ch in chars:
        if ch == "\\":
            nxt = next(chars, "")
            out.append(_ESCAPES.get(nxt, "\\" + nxt))
        else:
            out.append(ch)
    return "".join(out)


def escape_value(value: str) -> str:
    """Encode a string for a desktop entry value (inverse of unescape_value)."""
    return (
        value.replace("\\", "\\\\")
        .replace("\n", "\\n")
        .replace("\t", "\\t")
        .replace("\r", "\\r")
    )


def _split_list(value: str) -> list[str]:
    return [item for item in value.split(";") if item]


def _is_true(value: Optional[str]) -> bool:
    return value is not None and value.strip().lower() == "true"


def _new_parser() -> configparser.ConfigParser:
    parser = configparser.ConfigParser(
        interpolation=None,
        strict=False,
        delimiters=("=",),
        comment_prefixes=("#",),
        empty_lines_in_values=False,
        default_section="\0",
    )
    parser.optionxform = str  # type: ignore[assignment,method-assign]
    return parser


def parse_desktop_file(
    path: Path,
    locales: Optional[Sequence[str]] = None,
    applet_key: str = APPLET_KEY,
) -> DesktopEntry:
    """Parse a single .desktop file.

    Args:
        path: Path to the .desktop file
        locales: Locales whose localized values are kept (default: all)
        applet_key: Key whose presence marks a panel applet

    Returns:
        The parsed DesktopEntry

    Raises:
        ParseFailure: If the file cannot be read, is not valid key/value
            syntax, or has no [Desktop Entry] group
    """
    parser = _new_parser()
    try:
        with open(path, encoding="utf-8") as f:
            parser.read_file(f, source=str(path))
    except (OSError, UnicodeDecodeError, configparser.Error) as e:
        raise ParseFailure(f"Cannot parse {path}: {e}") from e

    if not parser.has_section(DESKTOP_ENTRY_GROUP):
        raise ParseFailure(f"No [{DESKTOP_ENTRY_GROUP}] group in {path}")

    section = parser[DESKTOP_ENTRY_GROUP]
    wanted = set(locales) if locales is not None else None

    plain: dict[str, str] = {}
    localized: dict[str, dict[Optional[str], str]] = {}
    for key, raw in section.items():
        value = unescape_value(raw)
        match = _LOCALIZED_KEY.match(key)
        if match:
            base, locale = match.groups()
            if wanted is None or locale in wanted:
                localized.setdefault(base, {})[locale] = value
        else:
            plain[key] = value

    names = dict(localized.get("Name", {}))
    if "Name" in plain:
        names[None] = plain["Name"]
    comments = dict(localized.get("Comment", {}))
    if "Comment" in plain:
        comments[None] = plain["Comment"]

    only_show_in = plain.get("OnlyShowIn")
    not_show_in = plain.get("NotShowIn")

    return DesktopEntry(
        appid=path.stem,
        path=path,
        names=names,
        comments=comments,
        icon=plain.get("Icon") or None,
        exec_cmd=plain.get("Exec") or None,
        entry_type=plain.get("Type"),
        only_show_in=_split_list(only_show_in) if only_show_in is not None else None,
        not_show_in=_split_list(not_show_in) if not_show_in is not None else None,
        flatpak=plain.get(FLATPAK_KEY) or None,
        is_applet=applet_key in plain,
        terminal=_is_true(plain.get("Terminal")),
        hidden=_is_true(plain.get("Hidden")),
        no_display=_is_true(plain.get("NoDisplay")),
    )


def iter_desktop_files(directories: Iterable[Path]) -> Iterator[Path]:
    """Yield *.desktop files under each directory, in directory order.

    Directories are walked recursively with sorted names so results are
    stable between runs. Missing and unreadable directories yield nothing.
    """
    for directory in directories:
        if not directory.is_dir():
            logger.debug("Skipping missing directory %s", directory)
            continue

        for root, dirs, files in os.walk(directory):
            dirs.sort()
            for name in sorted(files):
                if name.endswith(DESKTOP_SUFFIX):
                    yield Path(root) / name


def read_entries(
    directories: Iterable[Path],
    locales: Optional[Sequence[str]] = None,
    applet_key: str = APPLET_KEY,
) -> Iterator[DesktopEntry]:
    """Lazily parse every desktop entry found in the given directories.

    Files that fail to parse are logged and skipped. The returned
    generator is single-pass.

    Args:
        directories: Ordered search directories
        locales: Locales whose localized values are kept (default: all)
        applet_key: Key whose presence marks a panel applet

    Yields:
        DesktopEntry for every parseable file, in directory order
    """
    for path in iter_desktop_files(directories):
        try:
            yield parse_desktop_file(path, locales, applet_key)
        except ParseFailure as e:
            logger.debug("Skipping %s", e)


def _expand_locale(value: str) -> list[str]:
    """Expand "de_DE.UTF-8@euro" into its lookup variants, most specific first."""
    value = value.strip()
    if not value or value in ("C", "POSIX") or value.startswith("C."):
        return []

    lang_country, _, modifier = value.partition("@")
    lang_country = lang_country.split(".", 1)[0]
    lang, _, country = lang_country.partition("_")
    if not lang:
        return []

    variants = []
    if country and modifier:
        variants.append(f"{lang}_{country}@{modifier}")
    if country:
        variants.append(f"{lang}_{country}")
    if modifier:
        variants.append(f"{lang}@{modifier}")
    variants.append(lang)
    return variants


def get_languages_from_env(environ: Optional[Mapping[str, str]] = None) -> list[str]:
    """Build the locale preference list from the environment.

    $LANGUAGE (colon separated) comes first, followed by the first set
    variable of $LC_ALL, $LC_MESSAGES and $LANG.

    Examples:
        LANG=de_DE.UTF-8 -> ["de_DE", "de"]
        LANGUAGE=fr:en, LANG=fr_FR.UTF-8 -> ["fr", "en", "fr_FR"]
    """
    if environ is None:
        environ = os.environ

    values = [v for v in (environ.get("LANGUAGE") or "").split(":") if v]
    for var in ("LC_ALL", "LC_MESSAGES", "LANG"):
        if environ.get(var):
            values.append(environ[var])
            break

    languages: list[str] = []
    for value in values:
        for variant in _expand_locale(value):
            if variant not in languages:
                languages.append(variant)
    return languages


def format_desktop_entry(fields: Mapping[str, str]) -> str:
    """Render a [Desktop Entry] document from ordered key/value pairs.

    Example:
        >>> print(format_desktop_entry({"Type": "Application", "Name": "run.sh"}), end="")
        [Desktop Entry]
        Type=Application
        Name=run.sh
    """
    lines = [f"[{DESKTOP_ENTRY_GROUP}]"]
    lines.extend(f"{key}={escape_value(value)}" for key, value in fields.items())
    return "\n".join(lines) + "\n"


def quote_exec_arg(arg: str) -> str:
    """Quote one argument for an Exec line.

    Inside the double quotes ", `, $ and backslash are backslash-escaped,
    and every % is doubled so it is not read as a field code.

    Example:
        >>> quote_exec_arg("/home/u/50%off.sh")
        '"/home/u/50%%off.sh"'
    """
    escaped = "".join("\\" + ch if ch in '"`$\\' else ch for ch in arg)
    return '"' + escaped.replace("%", "%%") + '"'
