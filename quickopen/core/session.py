"""Picker sessions: one aggregation pass followed by interactive filtering.

Aggregation runs every enabled collector as its own task, joins them, and
only then merges, resolves and orders the candidates:

    collectors (parallel) -> merge -> resolve -> rank -> QuerySession

Cancelling `build_session` while collectors are running discards everything
collected so far.
"""

import asyncio
import time
from dataclasses import dataclass, replace
from functools import partial
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from loguru import logger

from .aggregator import canonical_path, merge_sources
from .collectors import (
    collect_bookmark_dirs, collect_desktop_dir, collect_home_dir,
    collect_open_document_dirs, collect_recent_entries,
)
from .config import PickerConfig
from .errors import ErrorLog
from .metadata import try_resolve
from .models import CandidateFile, SourceKind
from .providers import OpenDocumentsProvider, RecentFilesProvider
from .ranking import order_candidates, recency_ranks
from .selection import (
    Activate, Cancel, NavigateSelection, QueryChanged, SelectIndex,
    SelectionEvent, SelectionState, SelectionStatus, initial_state, transition,
)


@dataclass
class HostSources:
    """
    What the host supplies for a session.

    Directory overrides are mostly for tests and non-XDG hosts; when left as
    None the user's desktop, home and GTK bookmarks are used.
    """
    recent: Optional[RecentFilesProvider] = None
    open_documents: Optional[OpenDocumentsProvider] = None
    desktop_dir: Optional[str] = None
    home_dir: Optional[str] = None
    bookmark_dirs: Optional[List[str]] = None


class QuerySession:
    """Candidate set of one picker invocation and its selection state."""

    def __init__(self,
                 full_set: Sequence[CandidateFile],
                 config: Optional[PickerConfig] = None,
                 diagnostics: Optional[ErrorLog] = None):
        self.config = config or PickerConfig()
        self.full_set: Tuple[CandidateFile, ...] = tuple(full_set)
        self.diagnostics = diagnostics if diagnostics is not None else ErrorLog()
        self.state: SelectionState = initial_state(self.full_set)

    @property
    def query(self) -> str:
        return self.state.query

    @property
    def visible(self) -> Tuple[CandidateFile, ...]:
        return self.state.visible

    @property
    def selected(self) -> Optional[CandidateFile]:
        return self.state.selected

    @property
    def status(self) -> SelectionStatus:
        return self.state.status

    @property
    def finished(self) -> bool:
        return self.state.is_terminal

    @property
    def result(self) -> Optional[str]:
        """Activated path, None until activation or after cancellation."""
        return self.state.result

    def dispatch(self, event: SelectionEvent) -> SelectionState:
        self.state = transition(self.state, event, self.full_set, self.config.match_mode)
        return self.state

    def set_query(self, text: str) -> SelectionState:
        return self.dispatch(QueryChanged(text))

    def move(self, delta: int) -> SelectionState:
        return self.dispatch(NavigateSelection(delta))

    def select(self, index: int) -> SelectionState:
        return self.dispatch(SelectIndex(index))

    def activate(self) -> Optional[str]:
        """Activate the selection; returns the path, or None if nothing was selected."""
        state = self.dispatch(Activate())
        if state.status is SelectionStatus.ACTIVATED:
            logger.info(f"Activated: {state.result}")
        return state.result

    def cancel(self) -> None:
        self.dispatch(Cancel())


def _collector_jobs(config: PickerConfig,
                    sources: HostSources) -> Dict[SourceKind, Callable[[ErrorLog], list]]:
    scan = dict(
        depth=config.scan_depth,
        limit=config.max_files_per_source,
        skip_hidden=config.skip_hidden,
    )
    jobs: Dict[SourceKind, Callable[[ErrorLog], list]] = {}

    # Recent files go first so shared paths keep their recency rank.
    if config.include_recent_files and sources.recent is not None:
        jobs[SourceKind.RECENT] = lambda errors: collect_recent_entries(
            sources.recent, config.recent_files_group, config.max_recent_files, errors
        )
    if config.include_open_document_dir_files and sources.open_documents is not None:
        jobs[SourceKind.OPEN_DOCUMENTS] = lambda errors: collect_open_document_dirs(
            sources.open_documents, errors=errors, **scan
        )
    if config.include_desktop_dir_files:
        jobs[SourceKind.DESKTOP] = lambda errors: collect_desktop_dir(
            errors=errors, directory=sources.desktop_dir, **scan
        )
    if config.include_home_dir_files:
        jobs[SourceKind.HOME] = lambda errors: collect_home_dir(
            errors=errors, directory=sources.home_dir, **scan
        )
    if config.include_bookmark_dir_files:
        jobs[SourceKind.BOOKMARKS] = lambda errors: collect_bookmark_dirs(
            errors=errors, directories=sources.bookmark_dirs, **scan
        )
    return jobs


def _run_collector(job: Callable[[ErrorLog], list]) -> Tuple[list, ErrorLog]:
    errors = ErrorLog()
    return job(errors), errors


async def build_session(config: Optional[PickerConfig] = None,
                        sources: Optional[HostSources] = None) -> QuerySession:
    """
    Collect, merge, resolve and rank candidates into a new session.

    Args:
        config: Picker configuration, defaults when None
        sources: Host-supplied providers

    Returns:
        A session with an empty query and the first candidate selected
    """
    config = config or PickerConfig()
    sources = sources or HostSources()
    start = time.time()

    jobs = _collector_jobs(config, sources)
    outputs = await asyncio.gather(*(
        asyncio.to_thread(_run_collector, job) for job in jobs.values()
    ))

    diagnostics = ErrorLog()
    collected: Dict[SourceKind, List[str]] = {}
    hints: Dict[str, str] = {}
    ranks: Dict[str, int] = {}
    for source, (paths, errors) in zip(jobs, outputs):
        diagnostics.extend(errors)
        if source is SourceKind.RECENT:
            recent_paths = [canonical_path(path) for path, _ in paths]
            ranks = recency_ranks(recent_paths)
            for path, (_, entry) in zip(recent_paths, paths):
                if entry.display_name and path not in hints:
                    hints[path] = entry.display_name
            collected[source] = recent_paths
        else:
            collected[source] = paths

    origins = merge_sources(collected)
    resolve = partial(try_resolve, errors=diagnostics, exclude_symlinks=config.exclude_symlinks)
    candidates = [
        candidate for candidate in (
            resolve(path,
                    display_name=hints.get(path),
                    recency_rank=ranks.get(path),
                    sources=frozenset(found_in))
            for path, found_in in origins.items()
        )
        if candidate is not None
    ]

    full_set = _renumber_recent(order_candidates(candidates))

    logger.info(
        f"Session ready: {len(full_set)} candidates from {len(jobs)} sources "
        f"in {(time.time() - start) * 1000:.1f}ms"
    )
    if diagnostics:
        logger.debug(f"Recovered errors: {diagnostics.summary()}")
    return QuerySession(full_set, config, diagnostics)


def _renumber_recent(ordered: List[CandidateFile]) -> List[CandidateFile]:
    """Make recency ranks contiguous after stale entries were dropped."""
    result = []
    rank = 0
    for candidate in ordered:
        if candidate.recency_rank is not None:
            if candidate.recency_rank != rank:
                candidate = replace(candidate, recency_rank=rank)
            rank += 1
        result.append(candidate)
    return result


def open_session(config: Optional[PickerConfig] = None,
                 sources: Optional[HostSources] = None) -> QuerySession:
    """Synchronous wrapper around `build_session` for hosts without a loop."""
    return asyncio.run(build_session(config, sources))
