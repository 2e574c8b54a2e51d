"""Pure rendering of a selection state into a displayable frame.

The frame holds only strings and flags. Terminal drawing lives in
:mod:`sweep.cli.tui`.
"""

from dataclasses import dataclass

from sweep.models.record import FileRecord, RiskLevel
from sweep.selection.models import SelectionMode, SelectionState
from sweep.utils.formatting import format_age, format_size

MARKER_SELECTED = "[x]"
MARKER_UNSELECTED = "[ ]"
MARKER_LOCKED = "[-]"

HELP_LINES: tuple[str, ...] = (
    "Navigation:",
    "  Up/Down, k/j   Move the cursor (wraps around)",
    "  PgUp/PgDn      Move one page",
    "  Home/End, g/G  First or last item",
    "",
    "Selection:",
    "  Space          Toggle the current item",
    "  a              Toggle all non-Critical items in view",
    "",
    "View:",
    "  s              Cycle sort order (size, age, risk, path)",
    "  /              Edit the path filter (Enter applies, Esc clears)",
    "",
    "Actions:",
    "  Enter          Confirm selection and proceed",
    "  q/Esc          Cancel and exit",
    "  h/?            Toggle this help",
    "",
    "Critical items [-] cannot be selected unless --include-protected is set.",
)


@dataclass(frozen=True, slots=True)
class ViewRow:
    """One displayed record.

    Attributes:
        marker: Selection marker.
        risk: Risk tier of the record.
        risk_label: Human-readable tier.
        size: Formatted size.
        age: Formatted time since last modification.
        path: Record path.
        focused: Whether the cursor is on this row.
        selected: Whether the record is selected.
    """

    marker: str
    risk: RiskLevel | None
    risk_label: str
    size: str
    age: str
    path: str
    focused: bool
    selected: bool


@dataclass(frozen=True, slots=True)
class ViewFrame:
    """Everything the renderer needs to draw one screen.

    Attributes:
        rows: Visible rows, in view order.
        mode: State machine mode.
        sort_label: Description of the current ordering.
        filter_text: Current filter.
        total_count: Number of records in the session.
        visible_count: Number of records matching the filter.
        selected_count: Number of selected records.
        selected_size: Formatted total size of the selection.
        offset: View index of the first row.
        show_help: Whether the help overlay is visible.
        help_lines: Help overlay content.
    """

    rows: tuple[ViewRow, ...]
    mode: SelectionMode
    sort_label: str
    filter_text: str
    total_count: int
    visible_count: int
    selected_count: int
    selected_size: str
    offset: int = 0
    show_help: bool = False
    help_lines: tuple[str, ...] = ()

    @property
    def header(self) -> str:
        """One-line summary of the selection."""
        text = (
            f"Selected: {self.selected_count}/{self.total_count} ({self.selected_size})"
            f" - Sort: {self.sort_label}"
        )
        if self.filter_text or self.mode is SelectionMode.FILTER_EDITING:
            text += f" - Filter: {self.filter_text}"
            if self.visible_count != self.total_count:
                text += f" ({self.visible_count} shown)"
        return text


def render(state: SelectionState, now: float, height: int | None = None) -> ViewFrame:
    """Render a selection state.

    Args:
        state: State to render.
        now: Reference time for ages (epoch seconds).
        height: Maximum number of rows. The window scrolls to keep the
            cursor visible. None renders every row.

    Returns:
        ViewFrame for the state.
    """
    view = state.view
    cursor = min(state.cursor, len(view) - 1) if view else 0

    offset = 0
    if height is not None and height > 0 and len(view) > height:
        offset = max(0, cursor - height + 1)
        window = view[offset : offset + height]
    else:
        window = view

    rows = tuple(
        _row(record, state, focused=(offset + index == cursor), now=now)
        for index, record in enumerate(window)
    )
    return ViewFrame(
        rows=rows,
        mode=state.mode,
        sort_label=state.sort_key.label,
        filter_text=state.filter_text,
        total_count=len(state.records),
        visible_count=len(view),
        selected_count=len(state.selected),
        selected_size=format_size(state.selected_bytes),
        offset=offset,
        show_help=state.show_help,
        help_lines=HELP_LINES if state.show_help else (),
    )


def _row(record: FileRecord, state: SelectionState, focused: bool, now: float) -> ViewRow:
    selected = record.key in state.selected
    if selected:
        marker = MARKER_SELECTED
    elif not state.is_selectable(record):
        marker = MARKER_LOCKED
    else:
        marker = MARKER_UNSELECTED
    return ViewRow(
        marker=marker,
        risk=record.risk,
        risk_label=record.risk.label if record.risk is not None else "Unscored",
        size=format_size(record.size),
        age=format_age(now - record.modified),
        path=record.path,
        focused=focused,
        selected=selected,
    )
