"""Selection state machine models.

The selection layer is a pure state machine: a SelectionState and an
Event go in, a new SelectionState and a tuple of Effects come out.
Nothing here touches the terminal or the filesystem, so a session can
be replayed from a recorded event sequence.
"""

from dataclasses import dataclass, field
from enum import Enum

from sweep.models.record import FileRecord, RiskLevel


class SelectionMode(str, Enum):
    """Mode of the selection state machine.

    Attributes:
        BROWSING: Initial mode; navigation, toggling and confirmation.
        SORT_CYCLING: Entered by cycling the sort key; any other event
            leaves it and is handled as in BROWSING.
        FILTER_EDITING: Text events edit the path filter live.
        CONFIRMED: Terminal; the selection is handed to cleanup.
        CANCELLED: Terminal; the selection is discarded.
    """

    BROWSING = "browsing"
    SORT_CYCLING = "sort_cycling"
    FILTER_EDITING = "filter_editing"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        """Whether no further events are accepted."""
        return self in (SelectionMode.CONFIRMED, SelectionMode.CANCELLED)


class EventKind(str, Enum):
    """Kinds of input events."""

    UP = "up"
    DOWN = "down"
    PAGE_UP = "page_up"
    PAGE_DOWN = "page_down"
    HOME = "home"
    END = "end"
    TOGGLE = "toggle"
    TOGGLE_ALL = "toggle_all"
    CYCLE_SORT = "cycle_sort"
    BEGIN_FILTER = "begin_filter"
    FILTER_CHAR = "filter_char"
    FILTER_BACKSPACE = "filter_backspace"
    APPLY_FILTER = "apply_filter"
    CLEAR_FILTER = "clear_filter"
    CONFIRM = "confirm"
    CANCEL = "cancel"
    HELP = "help"


NAVIGATION_EVENTS: frozenset[EventKind] = frozenset(
    {
        EventKind.UP,
        EventKind.DOWN,
        EventKind.PAGE_UP,
        EventKind.PAGE_DOWN,
        EventKind.HOME,
        EventKind.END,
    }
)


@dataclass(frozen=True, slots=True)
class Event:
    """A single input event.

    Attributes:
        kind: What happened.
        text: Typed text for FILTER_CHAR events, empty otherwise.
    """

    kind: EventKind
    text: str = ""

    def __post_init__(self) -> None:
        """Validate event data after initialization."""
        if self.kind is EventKind.FILTER_CHAR and not self.text:
            msg = "FILTER_CHAR events require text"
            raise ValueError(msg)

    @classmethod
    def char(cls, text: str) -> "Event":
        """Shorthand for a FILTER_CHAR event."""
        return cls(EventKind.FILTER_CHAR, text)


class SortKey(str, Enum):
    """Ordering of the selection view.

    Attributes:
        SIZE: Largest first.
        AGE: Oldest modification first.
        RISK: Most protective tier first.
        PATH: Alphabetical by path.
    """

    SIZE = "size"
    AGE = "age"
    RISK = "risk"
    PATH = "path"

    @property
    def next(self) -> "SortKey":
        """The key that follows this one in the sort cycle."""
        order = list(SortKey)
        return order[(order.index(self) + 1) % len(order)]

    @property
    def label(self) -> str:
        """Short description for the view header."""
        return _SORT_LABELS[self]


_SORT_LABELS: dict[SortKey, str] = {
    SortKey.SIZE: "size (largest first)",
    SortKey.AGE: "age (oldest first)",
    SortKey.RISK: "risk (highest first)",
    SortKey.PATH: "path (A-Z)",
}


class Effect(str, Enum):
    """Observable outcome of a transition, for the renderer.

    Attributes:
        MOVED: The cursor moved.
        SELECTION_CHANGED: The selection set changed.
        REJECTED_CRITICAL: Toggling a Critical item was refused.
        SORT_CHANGED: The view was re-ordered.
        FILTER_CHANGED: The filter text changed.
        EMPTY_SELECTION: Confirmation was refused with nothing selected.
        HELP_TOGGLED: The help overlay was shown or hidden.
        CONFIRMED: The selection was confirmed.
        CANCELLED: The session was cancelled.
    """

    MOVED = "moved"
    SELECTION_CHANGED = "selection_changed"
    REJECTED_CRITICAL = "rejected_critical"
    SORT_CHANGED = "sort_changed"
    FILTER_CHANGED = "filter_changed"
    EMPTY_SELECTION = "empty_selection"
    HELP_TOGGLED = "help_toggled"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


DEFAULT_PAGE_SIZE = 10


@dataclass(frozen=True, slots=True)
class SelectionState:
    """Immutable snapshot of an interactive selection.

    Attributes:
        records: Candidates in the order they were supplied.
        mode: Current state machine mode.
        sort_key: Current view ordering.
        cursor: Index of the focused row in the filtered view.
        selected: Paths of the selected records.
        filter_text: Case-insensitive path substring filter.
        allow_critical: Session override permitting Critical toggles.
        show_help: Whether the help overlay is visible.
        page_size: Rows moved by PAGE_UP and PAGE_DOWN.
    """

    records: tuple[FileRecord, ...] = ()
    mode: SelectionMode = SelectionMode.BROWSING
    sort_key: SortKey = SortKey.SIZE
    cursor: int = 0
    selected: frozenset[str] = field(default_factory=frozenset)
    filter_text: str = ""
    allow_critical: bool = False
    show_help: bool = False
    page_size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self) -> None:
        """Validate state data after initialization."""
        if self.page_size < 1:
            msg = f"Page size must be positive, got {self.page_size}"
            raise ValueError(msg)

    @property
    def view(self) -> tuple[FileRecord, ...]:
        """Records matching the filter, in sort order."""
        needle = self.filter_text.lower()
        visible = [r for r in self.records if needle in r.path.lower()]
        return tuple(sorted(visible, key=_SORT_FUNCTIONS[self.sort_key]))

    @property
    def focused(self) -> FileRecord | None:
        """Record under the cursor, None for an empty view."""
        view = self.view
        if not view:
            return None
        return view[min(self.cursor, len(view) - 1)]

    @property
    def selected_records(self) -> list[FileRecord]:
        """Selected records in supply order, flagged as selected."""
        return [r.with_selected(True) for r in self.records if r.key in self.selected]

    @property
    def selected_bytes(self) -> int:
        """Total size of the selected records."""
        return sum(r.size for r in self.records if r.key in self.selected)

    def is_selectable(self, record: FileRecord) -> bool:
        """Whether an individual toggle may add ``record``."""
        return self.allow_critical or not is_critical(record)


def is_critical(record: FileRecord) -> bool:
    """Unscored records count as Critical."""
    return record.risk is None or record.risk == RiskLevel.CRITICAL


def _risk_value(record: FileRecord) -> int:
    # Unscored records sort with the most protective tier
    return int(record.risk) if record.risk is not None else int(RiskLevel.CRITICAL)


_SORT_FUNCTIONS = {
    SortKey.SIZE: lambda r: (-r.size, r.path),
    SortKey.AGE: lambda r: (r.modified, r.path),
    SortKey.RISK: lambda r: (-_risk_value(r), -r.size, r.path),
    SortKey.PATH: lambda r: r.path,
}
