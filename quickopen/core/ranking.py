"""Recency ordering for the recent-files source."""

from typing import Dict, Iterable, List, Sequence

from .models import CandidateFile, RecentEntry


def sort_by_recency(entries: Iterable[RecentEntry]) -> List[RecentEntry]:
    """Most recently modified first; entries with equal timestamps keep their order."""
    return sorted(entries, key=lambda e: e.modified, reverse=True)


def recency_ranks(paths: Sequence[str]) -> Dict[str, int]:
    """Map each path to its position in `paths` (0 = most recent)."""
    ranks: Dict[str, int] = {}
    for path in paths:
        if path not in ranks:
            ranks[path] = len(ranks)
    return ranks


def order_candidates(candidates: Iterable[CandidateFile]) -> List[CandidateFile]:
    """
    Order a candidate set for display.

    Recent candidates come first by rank; the rest follow by case-folded
    display name, then path.
    """
    recent = []
    rest = []
    for candidate in candidates:
        if candidate.recency_rank is not None:
            recent.append(candidate)
        else:
            rest.append(candidate)

    recent.sort(key=lambda c: c.recency_rank)
    rest.sort(key=lambda c: (c.display_name.casefold(), c.path))
    return recent + rest
