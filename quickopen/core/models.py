"""Data models for the quick open picker."""

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional, Tuple


class SourceKind(Enum):
    """Origins a candidate path can come from."""
    RECENT = "recent"
    OPEN_DOCUMENTS = "open_documents"
    DESKTOP = "desktop"
    HOME = "home"
    BOOKMARKS = "bookmarks"


class FileKind(Enum):
    """Coarse file classification used to pick an icon."""
    TEXT = "text"
    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"
    ARCHIVE = "archive"
    APPLICATION = "application"
    UNKNOWN = "unknown"


class MatchMode(Enum):
    """How a query is matched against display names."""
    SUBSTRING = "substring"
    FUZZY = "fuzzy"
    WORDS = "words"


@dataclass(frozen=True)
class RecentEntry:
    """One item of the recently-used registry."""
    uri: str
    modified: float  # epoch seconds
    groups: Tuple[str, ...] = ()
    display_name: Optional[str] = None

    def has_group(self, group: str) -> bool:
        return group in self.groups


@dataclass(frozen=True)
class CandidateFile:
    """A file that can be shown in the picker."""
    path: str
    display_name: str
    kind: FileKind = FileKind.UNKNOWN
    content_type: str = "application/octet-stream"
    icon_name: str = "text-x-generic"
    recency_rank: Optional[int] = None
    sources: FrozenSet[SourceKind] = field(default_factory=frozenset)

    @property
    def is_recent(self) -> bool:
        return self.recency_rank is not None
