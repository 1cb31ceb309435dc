"""Query filtering over the candidate set.

Every match mode is monotonic: appending characters to a query can only
shrink the visible set, and the empty query shows everything.
"""

import re
import unicodedata
from typing import Callable, Dict, List, Sequence

from .models import CandidateFile, MatchMode

_WORD_SPLIT = re.compile(r"[\W_]+")


def fold(text: str) -> str:
    """Case- and accent-insensitive form of `text`."""
    decomposed = unicodedata.normalize("NFKD", text.casefold())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def match_substring(needle: str, haystack: str) -> bool:
    return needle in haystack


def match_fuzzy(needle: str, haystack: str) -> bool:
    """True if the characters of `needle` appear in `haystack` in order."""
    it = iter(haystack)
    return all(ch in it for ch in needle)


def match_words(needle: str, haystack: str) -> bool:
    """True if every word of `needle` is a prefix of some word of `haystack`."""
    tokens = [t for t in _WORD_SPLIT.split(needle) if t]
    if not tokens:
        return True
    words = [w for w in _WORD_SPLIT.split(haystack) if w]
    return all(any(w.startswith(t) for w in words) for t in tokens)


MATCHERS: Dict[MatchMode, Callable[[str, str], bool]] = {
    MatchMode.SUBSTRING: match_substring,
    MatchMode.FUZZY: match_fuzzy,
    MatchMode.WORDS: match_words,
}


def filter_candidates(full_set: Sequence[CandidateFile],
                      query: str,
                      mode: MatchMode = MatchMode.SUBSTRING) -> List[CandidateFile]:
    """
    Candidates whose display name matches `query`, in `full_set` order.

    Args:
        full_set: All candidates of the session
        query: Current filter text; empty shows everything
        mode: Matching strategy

    Returns:
        The visible candidates
    """
    if not query:
        return list(full_set)

    matcher = MATCHERS[mode]
    needle = fold(query)
    return [c for c in full_set if matcher(needle, fold(c.display_name))]
