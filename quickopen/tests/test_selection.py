"""Tests for the selection and activation state machine."""

import pytest

from quickopen.core.models import CandidateFile
from quickopen.core.selection import (
    Activate, Cancel, NavigateSelection, QueryChanged, SelectIndex,
    SelectionStatus, initial_state, transition,
)


@pytest.fixture
def full_set():
    names = ["alpha.txt", "beta.txt", "gamma.md", "alphabet.py"]
    return tuple(CandidateFile(path=f"/w/{n}", display_name=n) for n in names)


def run(state, full_set, *events):
    for event in events:
        state = transition(state, event, full_set)
    return state


class TestInitialState:
    """Test session start."""

    def test_first_candidate_selected(self, full_set):
        state = initial_state(full_set)

        assert state.status is SelectionStatus.SELECTED
        assert state.selected == full_set[0]
        assert state.visible == full_set
        assert state.status_line == "/w/alpha.txt"

    def test_empty_set_has_no_selection(self):
        """Test an empty candidate set starts without a selection."""
        state = initial_state(())

        assert state.status is SelectionStatus.NO_SELECTION
        assert state.selected is None
        assert state.status_line == ""

    def test_activation_without_selection_is_noop(self):
        state = initial_state(())

        after = transition(state, Activate(), ())

        assert after is state
        assert after.result is None


class TestQueryChange:
    """Test re-anchoring after the query changes."""

    def test_selection_kept_when_still_visible(self, full_set):
        """Test a visible selection survives, at its new index."""
        state = run(initial_state(full_set), full_set, NavigateSelection(3))
        assert state.selected.display_name == "alphabet.py"

        state = transition(state, QueryChanged("alpha"), full_set)

        assert [c.display_name for c in state.visible] == ["alpha.txt", "alphabet.py"]
        assert state.selected.display_name == "alphabet.py"
        assert state.index == 1

    def test_first_selected_when_selection_filtered_out(self, full_set):
        state = run(initial_state(full_set), full_set, NavigateSelection(2))
        assert state.selected.display_name == "gamma.md"

        state = transition(state, QueryChanged("bet"), full_set)

        assert state.status is SelectionStatus.SELECTED
        assert state.selected.display_name == "beta.txt"

    def test_no_selection_when_nothing_visible(self, full_set):
        state = transition(initial_state(full_set), QueryChanged("zzz"), full_set)

        assert state.status is SelectionStatus.NO_SELECTION
        assert state.index is None
        assert state.visible == ()

    def test_selection_recovers_after_widening(self, full_set):
        state = run(initial_state(full_set), full_set, QueryChanged("zzz"), QueryChanged(""))

        assert state.status is SelectionStatus.SELECTED
        assert state.selected == full_set[0]

    @pytest.mark.parametrize("query", ["", "a", "al", "alp", "t", "zz", ".md", "bet"])
    def test_selection_never_dangles(self, full_set, query):
        """Test the selection is always a visible candidate or nothing."""
        state = run(initial_state(full_set), full_set, NavigateSelection(2), QueryChanged(query))

        if state.index is None:
            assert state.status is SelectionStatus.NO_SELECTION
            assert state.visible == ()
        else:
            assert state.selected in state.visible


class TestNavigation:
    """Test moving the selection."""

    def test_moves_and_clamps(self, full_set):
        state = initial_state(full_set)

        state = transition(state, NavigateSelection(1), full_set)
        assert state.index == 1
        state = transition(state, NavigateSelection(10), full_set)
        assert state.index == 3
        state = transition(state, NavigateSelection(-10), full_set)
        assert state.index == 0

    def test_no_visible_candidates(self, full_set):
        state = transition(initial_state(full_set), QueryChanged("zzz"), full_set)

        assert transition(state, NavigateSelection(1), full_set) is state

    def test_select_index(self, full_set):
        state = transition(initial_state(full_set), SelectIndex(2), full_set)

        assert state.selected.display_name == "gamma.md"
        assert transition(state, SelectIndex(9), full_set) is state
        assert transition(state, SelectIndex(-1), full_set) is state


class TestTerminalStates:
    """Test activation and cancellation."""

    def test_activate_yields_selected_path(self, full_set):
        state = run(initial_state(full_set), full_set, QueryChanged("gam"), Activate())

        assert state.status is SelectionStatus.ACTIVATED
        assert state.result == "/w/gamma.md"

    def test_activation_does_not_touch_visible(self, full_set):
        before = transition(initial_state(full_set), QueryChanged("alpha"), full_set)

        after = transition(before, Activate(), full_set)

        assert after.visible == before.visible
        assert after.query == "alpha"

    def test_activate_from_no_selection_is_noop(self, full_set):
        state = transition(initial_state(full_set), QueryChanged("zzz"), full_set)

        assert transition(state, Activate(), full_set) is state

    def test_cancel_from_any_state(self, full_set):
        for state in (
            initial_state(full_set),
            initial_state(()),
            transition(initial_state(full_set), QueryChanged("zzz"), full_set),
        ):
            cancelled = transition(state, Cancel(), full_set)
            assert cancelled.status is SelectionStatus.CANCELLED
            assert cancelled.result is None

    def test_terminal_states_ignore_events(self, full_set):
        activated = run(initial_state(full_set), full_set, Activate())

        for event in (QueryChanged("beta"), NavigateSelection(1), Cancel(), Activate()):
            assert transition(activated, event, full_set) is activated

    def test_unknown_event(self, full_set):
        with pytest.raises(TypeError):
            transition(initial_state(full_set), object(), full_set)
