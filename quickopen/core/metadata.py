"""Resolve display metadata for candidate paths."""

import mimetypes
import os
import stat
from typing import FrozenSet, Optional, Tuple

from .errors import ErrorLog, StaleEntryError, record_recovered
from .models import CandidateFile, FileKind, SourceKind

ARCHIVE_TYPES = {
    "application/zip",
    "application/gzip",
    "application/x-tar",
    "application/x-bzip2",
    "application/x-xz",
    "application/x-7z-compressed",
    "application/vnd.rar",
    "application/x-rar-compressed",
}

TEXT_LIKE_APPLICATION_TYPES = {
    "application/json",
    "application/xml",
    "application/javascript",
    "application/x-sh",
    "application/x-python-code",
    "application/toml",
    "application/yaml",
}

ICON_NAMES = {
    FileKind.TEXT: "text-x-generic",
    FileKind.IMAGE: "image-x-generic",
    FileKind.AUDIO: "audio-x-generic",
    FileKind.VIDEO: "video-x-generic",
    FileKind.ARCHIVE: "package-x-generic",
    FileKind.APPLICATION: "application-x-executable",
    FileKind.UNKNOWN: "text-x-generic",
}


def display_name_for(path: str) -> str:
    """Basename made safe for display; undecodable bytes become U+FFFD."""
    name = os.path.basename(path.rstrip(os.sep)) if path != os.sep else ""
    return name.encode("utf-8", "surrogateescape").decode("utf-8", "replace")


def classify(path: str, mode: int = 0) -> Tuple[FileKind, str]:
    """Guess (kind, content type) from the file name and mode bits."""
    content_type, _ = mimetypes.guess_type(path, strict=False)
    if content_type is None:
        if mode & (stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH):
            return FileKind.APPLICATION, "application/x-executable"
        return FileKind.UNKNOWN, "application/octet-stream"

    major = content_type.split("/", 1)[0]
    if major == "text" or content_type in TEXT_LIKE_APPLICATION_TYPES:
        return FileKind.TEXT, content_type
    if major == "image":
        return FileKind.IMAGE, content_type
    if major == "audio":
        return FileKind.AUDIO, content_type
    if major == "video":
        return FileKind.VIDEO, content_type
    if content_type in ARCHIVE_TYPES:
        return FileKind.ARCHIVE, content_type
    return FileKind.APPLICATION, content_type


def resolve(path: str,
            display_name: Optional[str] = None,
            exclude_symlinks: bool = True,
            recency_rank: Optional[int] = None,
            sources: FrozenSet[SourceKind] = frozenset()) -> CandidateFile:
    """
    Build a candidate for `path`.

    Raises:
        StaleEntryError: If the path vanished, is a directory, is an
            excluded symlink, cannot be inspected or has no usable name
    """
    try:
        st = os.lstat(path)
        if stat.S_ISLNK(st.st_mode):
            if exclude_symlinks:
                raise StaleEntryError(path, "symbolic link")
            st = os.stat(path)
    except FileNotFoundError as e:
        raise StaleEntryError(path, "vanished") from e
    except OSError as e:
        raise StaleEntryError(path, e.strerror or str(e)) from e

    if stat.S_ISDIR(st.st_mode):
        raise StaleEntryError(path, "is a directory")

    name = (display_name or "").strip() or display_name_for(path)
    if not name:
        raise StaleEntryError(path, "no display name")

    kind, content_type = classify(path, st.st_mode)
    return CandidateFile(
        path=path,
        display_name=name,
        kind=kind,
        content_type=content_type,
        icon_name=ICON_NAMES[kind],
        recency_rank=recency_rank,
        sources=frozenset(sources)
    )


def try_resolve(path: str,
                errors: Optional[ErrorLog] = None,
                **kwargs) -> Optional[CandidateFile]:
    """Like `resolve`, but a stale path is recorded and skipped."""
    try:
        return resolve(path, **kwargs)
    except StaleEntryError as e:
        record_recovered(errors, "metadata", e)
        return None
