"""Selection state machine.

:func:`transition` is the only place the selection set changes. It is
pure: the same state and event always produce the same result, which
makes every interactive session replayable from its event log.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import replace

from sweep.models.record import FileRecord
from sweep.selection.models import (
    DEFAULT_PAGE_SIZE,
    NAVIGATION_EVENTS,
    Effect,
    Event,
    EventKind,
    SelectionMode,
    SelectionState,
    SortKey,
    is_critical,
)

logger = logging.getLogger(__name__)

Transition = tuple[SelectionState, tuple[Effect, ...]]

_NO_EFFECTS: tuple[Effect, ...] = ()


def transition(state: SelectionState, event: Event) -> Transition:
    """Apply one event to a selection state.

    Args:
        state: Current state.
        event: Input event.

    Returns:
        Tuple of (new state, effects). Terminal states are returned
        unchanged with no effects.
    """
    if state.mode.is_terminal:
        return state, _NO_EFFECTS

    if state.mode is SelectionMode.FILTER_EDITING:
        return _filter_editing(state, event)

    if state.mode is SelectionMode.SORT_CYCLING and event.kind is not EventKind.CYCLE_SORT:
        state = replace(state, mode=SelectionMode.BROWSING)

    return _browsing(state, event)


def replay(state: SelectionState, events: Iterable[Event]) -> SelectionState:
    """Fold a sequence of events over a state."""
    for event in events:
        state, _ = transition(state, event)
    return state


def _browsing(state: SelectionState, event: Event) -> Transition:
    kind = event.kind

    if kind in NAVIGATION_EVENTS:
        return _navigate(state, kind)

    if kind is EventKind.TOGGLE:
        return _toggle(state)

    if kind is EventKind.TOGGLE_ALL:
        return _toggle_all(state)

    if kind is EventKind.CYCLE_SORT:
        focused = state.focused
        cycled = replace(state, sort_key=state.sort_key.next, mode=SelectionMode.SORT_CYCLING)
        return _refocus(cycled, focused), (Effect.SORT_CHANGED,)

    if kind is EventKind.BEGIN_FILTER:
        return replace(state, mode=SelectionMode.FILTER_EDITING), _NO_EFFECTS

    if kind is EventKind.CLEAR_FILTER:
        if not state.filter_text:
            return state, _NO_EFFECTS
        return _set_filter(state, "", SelectionMode.BROWSING)

    if kind is EventKind.CONFIRM:
        if not state.selected:
            return state, (Effect.EMPTY_SELECTION,)
        logger.debug("Selection confirmed with %d items", len(state.selected))
        return replace(state, mode=SelectionMode.CONFIRMED), (Effect.CONFIRMED,)

    if kind is EventKind.CANCEL:
        return (
            replace(state, mode=SelectionMode.CANCELLED, selected=frozenset()),
            (Effect.CANCELLED,),
        )

    if kind is EventKind.HELP:
        return replace(state, show_help=not state.show_help), (Effect.HELP_TOGGLED,)

    # FILTER_CHAR, FILTER_BACKSPACE and APPLY_FILTER only apply while editing
    return state, _NO_EFFECTS


def _filter_editing(state: SelectionState, event: Event) -> Transition:
    kind = event.kind

    if kind is EventKind.FILTER_CHAR:
        return _set_filter(state, state.filter_text + event.text, SelectionMode.FILTER_EDITING)

    if kind is EventKind.FILTER_BACKSPACE:
        if not state.filter_text:
            return state, _NO_EFFECTS
        return _set_filter(state, state.filter_text[:-1], SelectionMode.FILTER_EDITING)

    if kind is EventKind.APPLY_FILTER:
        return replace(state, mode=SelectionMode.BROWSING), _NO_EFFECTS

    if kind in (EventKind.CLEAR_FILTER, EventKind.CANCEL):
        return _set_filter(state, "", SelectionMode.BROWSING)

    if kind in NAVIGATION_EVENTS:
        return _navigate(state, kind)

    return state, _NO_EFFECTS


def _navigate(state: SelectionState, kind: EventKind) -> Transition:
    count = len(state.view)
    if count == 0:
        return state, _NO_EFFECTS

    cursor = min(state.cursor, count - 1)
    if kind is EventKind.UP:
        cursor = (cursor - 1) % count
    elif kind is EventKind.DOWN:
        cursor = (cursor + 1) % count
    elif kind is EventKind.PAGE_UP:
        cursor = max(0, cursor - state.page_size)
    elif kind is EventKind.PAGE_DOWN:
        cursor = min(count - 1, cursor + state.page_size)
    elif kind is EventKind.HOME:
        cursor = 0
    elif kind is EventKind.END:
        cursor = count - 1

    if cursor == state.cursor:
        return state, _NO_EFFECTS
    return replace(state, cursor=cursor), (Effect.MOVED,)


def _toggle(state: SelectionState) -> Transition:
    record = state.focused
    if record is None:
        return state, _NO_EFFECTS

    if record.key in state.selected:
        return replace(state, selected=state.selected - {record.key}), (Effect.SELECTION_CHANGED,)

    if not state.is_selectable(record):
        logger.debug("Refusing to select Critical record %s", record.path)
        return state, (Effect.REJECTED_CRITICAL,)

    return replace(state, selected=state.selected | {record.key}), (Effect.SELECTION_CHANGED,)


def _toggle_all(state: SelectionState) -> Transition:
    # Bulk selection never includes Critical records, override or not
    eligible = {r.key for r in state.view if not is_critical(r)}
    if not eligible:
        return state, _NO_EFFECTS

    if eligible <= state.selected:
        selected = state.selected - eligible
    else:
        selected = state.selected | eligible
    return replace(state, selected=selected), (Effect.SELECTION_CHANGED,)


def _set_filter(state: SelectionState, text: str, mode: SelectionMode) -> Transition:
    focused = state.focused
    filtered = replace(state, filter_text=text, mode=mode)
    effects = (Effect.FILTER_CHANGED,) if text != state.filter_text else _NO_EFFECTS
    return _refocus(filtered, focused), effects


def _refocus(state: SelectionState, record: FileRecord | None) -> SelectionState:
    """Move the cursor back onto ``record`` by identity, or to the top."""
    if record is not None:
        for index, candidate in enumerate(state.view):
            if candidate.key == record.key:
                return replace(state, cursor=index)
    return replace(state, cursor=0)


class SelectionController:
    """Stateful wrapper around :func:`transition`.

    Args:
        records: Candidates to choose from.
        allow_critical: Session override permitting Critical toggles.
        sort_key: Initial ordering.
        page_size: Rows moved by page events.

    Example:
        >>> controller = SelectionController(records)
        >>> controller.replay([Event(EventKind.TOGGLE), Event(EventKind.CONFIRM)])
        >>> controller.selected_records()
    """

    def __init__(
        self,
        records: Sequence[FileRecord],
        *,
        allow_critical: bool = False,
        sort_key: SortKey = SortKey.SIZE,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self._state = SelectionState(
            records=tuple(records),
            sort_key=sort_key,
            allow_critical=allow_critical,
            page_size=page_size,
        )
        self._events: list[Event] = []

    @property
    def state(self) -> SelectionState:
        """Current state snapshot."""
        return self._state

    @property
    def events(self) -> list[Event]:
        """Events dispatched so far, in order."""
        return list(self._events)

    @property
    def is_finished(self) -> bool:
        """Whether a terminal mode has been reached."""
        return self._state.mode.is_terminal

    def dispatch(self, event: Event) -> tuple[Effect, ...]:
        """Apply one event and return its effects."""
        self._events.append(event)
        self._state, effects = transition(self._state, event)
        return effects

    def replay(self, events: Iterable[Event]) -> SelectionState:
        """Apply a sequence of events and return the resulting state."""
        for event in events:
            self.dispatch(event)
        return self._state

    def selected_records(self) -> list[FileRecord]:
        """Selected records, flagged as selected.

        Empty unless the selection has been confirmed.
        """
        if self._state.mode is not SelectionMode.CONFIRMED:
            return []
        return self._state.selected_records
