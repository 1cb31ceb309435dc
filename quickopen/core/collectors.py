"""Source collectors.

Each collector turns one origin into a list of absolute paths. Collectors do
not deduplicate and do not look up metadata. A source that cannot be read
contributes an empty list; the failure is logged and recorded, never raised.
"""

import os
from typing import Iterable, List, Optional, Tuple

from loguru import logger

from .config import MAX_RECENT_FILES
from .errors import ErrorLog, SourceUnavailableError, record_recovered
from .models import RecentEntry, SourceKind
from .providers import (
    OpenDocumentsProvider, RecentFilesProvider, desktop_dir, home_dir,
    read_gtk_bookmarks, uri_to_path,
)
from .ranking import sort_by_recency


def collect_recent_entries(provider: RecentFilesProvider,
                           group: str = "geany",
                           max_count: int = MAX_RECENT_FILES,
                           errors: Optional[ErrorLog] = None) -> List[Tuple[str, RecentEntry]]:
    """
    Read the recent-files registry.

    Entries outside `group` are ignored. The rest are visited newest first and
    kept while their local path is still a regular file, up to `max_count` paths.

    Returns:
        (path, entry) pairs, most recently modified first
    """
    try:
        entries = provider.entries()
    except (SourceUnavailableError, OSError) as e:
        record_recovered(errors, SourceKind.RECENT.value, e)
        return []

    in_group = [e for e in entries if e.has_group(group)]

    result = []
    for entry in sort_by_recency(in_group):
        if len(result) >= max_count:
            break
        path = uri_to_path(entry.uri)
        if path is None:
            continue
        if os.path.isfile(path):
            result.append((path, entry))

    logger.debug(f"Recent files: {len(result)} of {len(in_group)} in group '{group}'")
    return result


def collect_recent_files(provider: RecentFilesProvider,
                         group: str = "geany",
                         max_count: int = MAX_RECENT_FILES,
                         errors: Optional[ErrorLog] = None) -> List[str]:
    return [path for path, _ in collect_recent_entries(provider, group, max_count, errors)]


def _is_hidden(name: str) -> bool:
    return name.startswith(".")


def scan_directory(directory: str,
                   depth: int = 0,
                   limit: int = 10_000,
                   skip_hidden: bool = False) -> List[str]:
    """
    List regular files below `directory`.

    `depth` is how many levels of subdirectories to descend into (0 lists
    only the directory itself). Symlinks are neither returned nor followed.
    Entries that vanish while being checked are skipped.

    Raises:
        OSError: If `directory` itself cannot be listed
    """
    found: List[str] = []
    pending = [(directory, 0)]
    first = True

    while pending and len(found) < limit:
        current, level = pending.pop(0)
        try:
            with os.scandir(current) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError:
            if first:
                raise
            logger.debug(f"Skipping unreadable directory: {current}")
            continue
        finally:
            first = False

        for entry in entries:
            if skip_hidden and _is_hidden(entry.name):
                continue
            try:
                if entry.is_symlink():
                    continue
                if entry.is_dir(follow_symlinks=False):
                    if level < depth:
                        pending.append((entry.path, level + 1))
                    continue
                if not entry.is_file(follow_symlinks=False):
                    continue
            except OSError:
                continue
            found.append(os.path.abspath(entry.path))
            if len(found) >= limit:
                logger.debug(f"File limit {limit} reached in {directory}")
                break

    return found


def collect_directories(directories: Iterable[str],
                        source: SourceKind,
                        depth: int = 0,
                        limit: int = 10_000,
                        skip_hidden: bool = False,
                        errors: Optional[ErrorLog] = None) -> List[str]:
    """Scan each directory; unreadable ones contribute nothing."""
    paths: List[str] = []
    for directory in directories:
        remaining = limit - len(paths)
        if remaining <= 0:
            logger.debug(f"File limit {limit} reached for {source.value}")
            break
        try:
            paths.extend(scan_directory(directory, depth, remaining, skip_hidden))
        except OSError as e:
            record_recovered(
                errors,
                source.value,
                SourceUnavailableError(source.value, f"{directory}: {e.strerror or e}"),
                directory=directory
            )
    return paths


def open_document_dirs(documents: Iterable[str]) -> List[str]:
    """Distinct parent directories of the open documents that still exist."""
    seen = set()
    dirs = []
    for document in documents:
        if not document or not os.path.exists(document):
            continue
        parent = os.path.dirname(os.path.abspath(document))
        if parent not in seen:
            seen.add(parent)
            dirs.append(parent)
    return dirs


def collect_open_document_dirs(provider: OpenDocumentsProvider,
                               depth: int = 0,
                               limit: int = 10_000,
                               skip_hidden: bool = False,
                               errors: Optional[ErrorLog] = None) -> List[str]:
    try:
        documents = provider.paths()
    except (SourceUnavailableError, OSError) as e:
        record_recovered(errors, SourceKind.OPEN_DOCUMENTS.value, e)
        return []
    return collect_directories(
        open_document_dirs(documents), SourceKind.OPEN_DOCUMENTS,
        depth, limit, skip_hidden, errors
    )


def collect_desktop_dir(depth: int = 0,
                        limit: int = 10_000,
                        skip_hidden: bool = False,
                        errors: Optional[ErrorLog] = None,
                        directory: Optional[str] = None) -> List[str]:
    return collect_directories(
        [directory or desktop_dir()], SourceKind.DESKTOP,
        depth, limit, skip_hidden, errors
    )


def collect_home_dir(depth: int = 0,
                     limit: int = 10_000,
                     skip_hidden: bool = False,
                     errors: Optional[ErrorLog] = None,
                     directory: Optional[str] = None) -> List[str]:
    return collect_directories(
        [directory or home_dir()], SourceKind.HOME,
        depth, limit, skip_hidden, errors
    )


def collect_bookmark_dirs(depth: int = 0,
                          limit: int = 10_000,
                          skip_hidden: bool = False,
                          errors: Optional[ErrorLog] = None,
                          directories: Optional[List[str]] = None) -> List[str]:
    if directories is None:
        try:
            directories = read_gtk_bookmarks()
        except SourceUnavailableError as e:
            record_recovered(errors, SourceKind.BOOKMARKS.value, e)
            return []
    return collect_directories(
        directories, SourceKind.BOOKMARKS, depth, limit, skip_hidden, errors
    )
