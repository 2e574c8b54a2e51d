"""Interactive selection state machine and its pure renderer."""

from sweep.selection.controller import SelectionController, replay, transition
from sweep.selection.models import (
    Effect,
    Event,
    EventKind,
    SelectionMode,
    SelectionState,
    SortKey,
)
from sweep.selection.view import ViewFrame, ViewRow, render

__all__ = [
    "Effect",
    "Event",
    "EventKind",
    "SelectionController",
    "SelectionMode",
    "SelectionState",
    "SortKey",
    "ViewFrame",
    "ViewRow",
    "render",
    "replay",
    "transition",
]
