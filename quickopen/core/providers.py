"""Data providers supplied by the host: recent files, open documents, user dirs.

The core never talks to an editor directly. A host hands it a
`RecentFilesProvider` and an `OpenDocumentsProvider`; the file backed
implementations here read the same freedesktop files GTK applications use.
"""

import os
import re
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional, Protocol, Sequence
from urllib.parse import unquote, urlparse

from loguru import logger

from .config import config_home
from .errors import SourceUnavailableError
from .models import RecentEntry

BOOKMARK_NS = "http://www.freedesktop.org/standards/desktop-bookmarks"


class RecentFilesProvider(Protocol):
    """Read-only view of a recently-used registry."""

    def entries(self) -> List[RecentEntry]:
        ...


class OpenDocumentsProvider(Protocol):
    """Absolute paths of the documents currently open in the host."""

    def paths(self) -> List[str]:
        ...


class StaticRecentFiles:
    """In-memory registry, used by hosts that track recent files themselves."""

    def __init__(self, entries: Iterable[RecentEntry] = ()):
        self._entries = list(entries)

    def entries(self) -> List[RecentEntry]:
        return list(self._entries)


class StaticOpenDocuments:
    """Open documents given as a plain list."""

    def __init__(self, paths: Iterable[str] = ()):
        self._paths = [str(p) for p in paths]

    def paths(self) -> List[str]:
        return list(self._paths)


def data_home() -> Path:
    xdg = os.environ.get("XDG_DATA_HOME")
    return Path(xdg) if xdg else Path.home() / ".local" / "share"


def _parse_timestamp(value: Optional[str]) -> float:
    """Parse an XBEL ISO 8601 timestamp into epoch seconds, 0 if unusable."""
    if not value:
        return 0.0
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        return 0.0
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


class XbelRecentFiles:
    """
    Reads the freedesktop ``recently-used.xbel`` registry.

    Each ``<bookmark>`` carries ``href`` and ``modified`` attributes; group
    membership is stored under ``info/metadata/bookmark:groups``.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = path or data_home() / "recently-used.xbel"

    def entries(self) -> List[RecentEntry]:
        try:
            tree = ET.parse(self.path)
        except FileNotFoundError as e:
            raise SourceUnavailableError("recent", f"no registry at {self.path}") from e
        except (OSError, ET.ParseError) as e:
            raise SourceUnavailableError("recent", f"cannot parse {self.path}: {e}") from e

        result = []
        for bookmark in tree.getroot().iter("bookmark"):
            href = bookmark.get("href")
            if not href:
                continue
            modified = bookmark.get("modified") or bookmark.get("visited") or bookmark.get("added")
            groups = tuple(
                (g.text or "").strip()
                for g in bookmark.iter(f"{{{BOOKMARK_NS}}}group")
            )
            title = bookmark.findtext("title")
            result.append(RecentEntry(
                uri=href,
                modified=_parse_timestamp(modified),
                groups=groups,
                display_name=title.strip() if title and title.strip() else None
            ))

        logger.debug(f"Read {len(result)} recent entries from {self.path}")
        return result


def uri_to_path(uri: str) -> Optional[str]:
    """Convert a ``file://`` URI to a local path; None for anything else."""
    parsed = urlparse(uri)
    if parsed.scheme != "file":
        return None
    if parsed.netloc not in ("", "localhost"):
        return None
    path = unquote(parsed.path, errors="surrogateescape")
    if not path:
        return None
    return path


def read_gtk_bookmarks(paths: Optional[Sequence[Path]] = None) -> List[str]:
    """
    Return local directories listed in the GTK bookmarks file.

    Lines are ``URI [label]``; only ``file://`` URIs are kept.
    """
    if paths is None:
        paths = [
            config_home() / "gtk-3.0" / "bookmarks",
            Path.home() / ".gtk-bookmarks",
        ]

    for bookmarks_file in paths:
        try:
            text = Path(bookmarks_file).read_text(encoding="utf-8", errors="replace")
        except FileNotFoundError:
            continue
        except OSError as e:
            raise SourceUnavailableError("bookmarks", str(e)) from e

        dirs = []
        for line in text.splitlines():
            line = line.strip()
            if not line:
                continue
            local = uri_to_path(line.split(" ", 1)[0])
            if local:
                dirs.append(local)
        return dirs

    raise SourceUnavailableError("bookmarks", "no GTK bookmarks file")


_USER_DIR_LINE = re.compile(r'^\s*(XDG_[A-Z]+_DIR)\s*=\s*"(.*)"\s*$')


def xdg_user_dir(name: str, user_dirs_file: Optional[Path] = None) -> Optional[str]:
    """Look up ``XDG_<NAME>_DIR`` in ``user-dirs.dirs``, expanding ``$HOME``."""
    user_dirs_file = user_dirs_file or config_home() / "user-dirs.dirs"
    key = f"XDG_{name.upper()}_DIR"
    try:
        lines = user_dirs_file.read_text(encoding="utf-8", errors="replace").splitlines()
    except OSError:
        return None

    for line in lines:
        match = _USER_DIR_LINE.match(line)
        if not match or match.group(1) != key:
            continue
        value = match.group(2)
        if value.startswith("$HOME"):
            value = str(Path.home()) + value[len("$HOME"):]
        if not os.path.isabs(value):
            return None
        return value
    return None


def desktop_dir(user_dirs_file: Optional[Path] = None) -> str:
    return xdg_user_dir("desktop", user_dirs_file) or str(Path.home() / "Desktop")


def home_dir() -> str:
    return str(Path.home())
