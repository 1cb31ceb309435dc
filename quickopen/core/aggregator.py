"""Merge collector output into one set of unique paths."""

import os
from typing import Dict, Iterable, List, Set

from .models import SourceKind


def canonical_path(path: str) -> str:
    """Absolute, normalized form used as the identity of a candidate."""
    return os.path.normpath(os.path.abspath(path))


def merge(*sequences: Iterable[str]) -> List[str]:
    """
    Merge path sequences, keeping each canonical path once.

    The first occurrence wins; callers should not rely on the order.
    """
    seen: Set[str] = set()
    merged: List[str] = []
    for sequence in sequences:
        for path in sequence:
            key = canonical_path(path)
            if key not in seen:
                seen.add(key)
                merged.append(key)
    return merged


def merge_sources(collected: Dict[SourceKind, List[str]]) -> Dict[str, Set[SourceKind]]:
    """Merge per-source output, remembering which sources emitted each path."""
    origins: Dict[str, Set[SourceKind]] = {}
    for source, paths in collected.items():
        for path in paths:
            origins.setdefault(canonical_path(path), set()).add(source)
    return origins
