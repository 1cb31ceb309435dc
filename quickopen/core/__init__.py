"""Candidate aggregation, filtering and selection core."""

from .config import PickerConfig, load_config, save_config
from .models import CandidateFile, FileKind, MatchMode, RecentEntry, SourceKind
from .query_filter import filter_candidates
from .session import HostSources, QuerySession, build_session, open_session

__all__ = [
    "CandidateFile", "FileKind", "HostSources", "MatchMode", "PickerConfig",
    "QuerySession", "RecentEntry", "SourceKind", "build_session",
    "filter_candidates", "load_config", "open_session", "save_config",
]
