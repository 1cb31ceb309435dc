"""Tests for query filtering."""

import pytest

from quickopen.core.models import CandidateFile, MatchMode
from quickopen.core.query_filter import filter_candidates, fold, match_fuzzy, match_words

NAMES = [
    "notes.md",
    "foo.txt",
    "Makefile",
    "main.c",
    "README.rst",
    "quick_open_plugin.c",
    "Résumé.pdf",
    "test_notes_backup.md",
]


def candidates(names=NAMES):
    return [CandidateFile(path=f"/work/{name}", display_name=name) for name in names]


def names(result):
    return [c.display_name for c in result]


class TestSubstring:
    """Test the default substring matcher."""

    def test_scenario_not(self):
        """Test 'not' keeps only names containing it."""
        full_set = candidates(["notes.md", "foo.txt"])

        assert names(filter_candidates(full_set, "not")) == ["notes.md"]

    def test_empty_query_shows_everything(self):
        full_set = candidates()

        assert filter_candidates(full_set, "") == full_set

    def test_case_insensitive(self):
        full_set = candidates()

        assert names(filter_candidates(full_set, "readme")) == ["README.rst"]
        assert names(filter_candidates(full_set, "MAKE")) == ["Makefile"]

    def test_accents_folded(self):
        full_set = candidates()

        assert names(filter_candidates(full_set, "resume")) == ["Résumé.pdf"]
        assert names(filter_candidates(full_set, "RÉSU")) == ["Résumé.pdf"]

    def test_keeps_full_set_order(self):
        full_set = candidates()

        assert names(filter_candidates(full_set, "notes")) == ["notes.md", "test_notes_backup.md"]

    def test_no_match(self):
        assert filter_candidates(candidates(), "zzz") == []


class TestFuzzy:
    """Test subsequence matching."""

    def test_subsequence(self):
        assert match_fuzzy("qop", "quick_open_plugin.c")
        assert not match_fuzzy("poq", "quick_open_plugin.c")

    def test_filter(self):
        result = filter_candidates(candidates(), "mkf", MatchMode.FUZZY)

        assert names(result) == ["Makefile"]


class TestWords:
    """Test word-prefix matching."""

    def test_every_token_prefixes_a_word(self):
        assert match_words("qu pl", fold("quick_open_plugin.c"))
        assert not match_words("uick", fold("quick_open_plugin.c"))

    def test_filter(self):
        result = filter_candidates(candidates(), "notes back", MatchMode.WORDS)

        assert names(result) == ["test_notes_backup.md"]

    def test_punctuated_query(self):
        """Test the query is split into words the same way as the name."""
        full_set = candidates()

        assert names(filter_candidates(full_set, "main.c", MatchMode.WORDS)) == ["main.c"]
        assert names(filter_candidates(full_set, "quick_open", MatchMode.WORDS)) == ["quick_open_plugin.c"]
        assert match_words("notes.b", fold("test_notes_backup.md"))


@pytest.mark.parametrize("mode", list(MatchMode))
@pytest.mark.parametrize("query", ["n", "no", "not", "note", "notes", "notes.", "notes.m", "NoTeS b"])
def test_extending_query_never_widens(mode, query):
    """Test visible(q + suffix) is a subset of visible(q)."""
    full_set = candidates()
    prefixes = [query[:i] for i in range(len(query) + 1)]

    previous = {c.path for c in filter_candidates(full_set, "", mode)}
    assert previous == {c.path for c in full_set}
    for prefix in prefixes[1:]:
        current = {c.path for c in filter_candidates(full_set, prefix, mode)}
        assert current <= previous
        previous = current


@pytest.mark.parametrize("mode", list(MatchMode))
def test_empty_query_is_superset(mode):
    full_set = candidates()
    everything = set(filter_candidates(full_set, "", mode))

    for query in ["a", "main", ".c", "x y", "é"]:
        assert set(filter_candidates(full_set, query, mode)) <= everything
