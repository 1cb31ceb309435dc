"""Selection and activation state machine.

The host turns key presses and clicks into events and feeds them to
`transition`, which returns a new `SelectionState`:

    QueryChanged(text)       typing in the search entry
    NavigateSelection(delta) arrow keys, page up/down
    SelectIndex(index)       pointer click on a row
    Activate()               Enter or double click
    Cancel()                 Escape or closing the picker

`ACTIVATED` and `CANCELLED` are terminal.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Sequence, Tuple, Union

from loguru import logger

from .models import CandidateFile, MatchMode
from .query_filter import filter_candidates


class SelectionStatus(Enum):
    NO_SELECTION = "no_selection"
    SELECTED = "selected"
    ACTIVATED = "activated"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class QueryChanged:
    text: str


@dataclass(frozen=True)
class NavigateSelection:
    delta: int


@dataclass(frozen=True)
class SelectIndex:
    index: int


@dataclass(frozen=True)
class Activate:
    pass


@dataclass(frozen=True)
class Cancel:
    pass


SelectionEvent = Union[QueryChanged, NavigateSelection, SelectIndex, Activate, Cancel]


@dataclass(frozen=True)
class SelectionState:
    """Visible candidates plus the current selection."""
    status: SelectionStatus
    query: str
    visible: Tuple[CandidateFile, ...]
    index: Optional[int] = None
    result: Optional[str] = None

    @property
    def selected(self) -> Optional[CandidateFile]:
        if self.index is None:
            return None
        return self.visible[self.index]

    @property
    def is_terminal(self) -> bool:
        return self.status in (SelectionStatus.ACTIVATED, SelectionStatus.CANCELLED)

    @property
    def status_line(self) -> str:
        """Full path of the selected candidate, empty when nothing is selected."""
        candidate = self.selected
        return candidate.path if candidate is not None else ""


def _anchored(query: str,
              visible: Tuple[CandidateFile, ...],
              keep: Optional[CandidateFile] = None) -> SelectionState:
    if not visible:
        return SelectionState(SelectionStatus.NO_SELECTION, query, visible)

    index = 0
    if keep is not None:
        for i, candidate in enumerate(visible):
            if candidate.path == keep.path:
                index = i
                break
    return SelectionState(SelectionStatus.SELECTED, query, visible, index)


def initial_state(full_set: Sequence[CandidateFile]) -> SelectionState:
    """Everything visible, first candidate selected when there is one."""
    return _anchored("", tuple(full_set))


def transition(state: SelectionState,
               event: SelectionEvent,
               full_set: Sequence[CandidateFile],
               mode: MatchMode = MatchMode.SUBSTRING) -> SelectionState:
    """
    Apply one event.

    Args:
        state: Current state
        event: Event dispatched by the host
        full_set: The session's candidate set
        mode: Match mode for query changes

    Returns:
        The next state; `state` itself when the event does not apply
    """
    if state.is_terminal:
        logger.debug(f"Ignoring {type(event).__name__} after session ended")
        return state

    if isinstance(event, QueryChanged):
        visible = tuple(filter_candidates(full_set, event.text, mode))
        return _anchored(event.text, visible, keep=state.selected)

    if isinstance(event, NavigateSelection):
        if not state.visible:
            return state
        last = len(state.visible) - 1
        if state.index is None:
            index = 0 if event.delta >= 0 else last
        else:
            index = max(0, min(last, state.index + event.delta))
        return replace(state, status=SelectionStatus.SELECTED, index=index)

    if isinstance(event, SelectIndex):
        if not 0 <= event.index < len(state.visible):
            return state
        return replace(state, status=SelectionStatus.SELECTED, index=event.index)

    if isinstance(event, Activate):
        if state.status is not SelectionStatus.SELECTED or state.selected is None:
            logger.debug("Activation ignored, nothing selected")
            return state
        return replace(state, status=SelectionStatus.ACTIVATED, result=state.selected.path)

    if isinstance(event, Cancel):
        return replace(state, status=SelectionStatus.CANCELLED, result=None)

    raise TypeError(f"Unknown selection event: {event!r}")
