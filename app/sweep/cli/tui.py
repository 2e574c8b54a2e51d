"""Interactive terminal selector.

Reads single keys, maps them to selection events, and redraws the
rendered frame on the terminal's alternate screen. All selection logic
lives in :mod:`sweep.selection`; this module only translates keys and
draws frames.
"""

import time
from collections.abc import Callable

import typer
from rich.console import Console, Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from sweep.selection.controller import SelectionController
from sweep.selection.models import Effect, Event, EventKind, SelectionMode
from sweep.selection.view import ViewFrame, render
from sweep.utils.formatting import risk_style

KeyReader = Callable[[], str]

# Lines used by the header, footer and table chrome
_CHROME_HEIGHT = 9

_BROWSING_KEYS: dict[str, EventKind] = {
    "\x1b[A": EventKind.UP,
    "\x1bOA": EventKind.UP,
    "k": EventKind.UP,
    "\x1b[B": EventKind.DOWN,
    "\x1bOB": EventKind.DOWN,
    "j": EventKind.DOWN,
    "\x1b[5~": EventKind.PAGE_UP,
    "\x1b[6~": EventKind.PAGE_DOWN,
    "\x1b[H": EventKind.HOME,
    "\x1bOH": EventKind.HOME,
    "\x1b[1~": EventKind.HOME,
    "g": EventKind.HOME,
    "\x1b[F": EventKind.END,
    "\x1bOF": EventKind.END,
    "\x1b[4~": EventKind.END,
    "G": EventKind.END,
    " ": EventKind.TOGGLE,
    "a": EventKind.TOGGLE_ALL,
    "s": EventKind.CYCLE_SORT,
    "/": EventKind.BEGIN_FILTER,
    "\r": EventKind.CONFIRM,
    "\n": EventKind.CONFIRM,
    "q": EventKind.CANCEL,
    "\x1b": EventKind.CANCEL,
    "\x03": EventKind.CANCEL,
    "h": EventKind.HELP,
    "?": EventKind.HELP,
}

_FILTER_KEYS: dict[str, EventKind] = {
    "\r": EventKind.APPLY_FILTER,
    "\n": EventKind.APPLY_FILTER,
    "\x1b": EventKind.CLEAR_FILTER,
    "\x03": EventKind.CLEAR_FILTER,
    "\x7f": EventKind.FILTER_BACKSPACE,
    "\x08": EventKind.FILTER_BACKSPACE,
    "\x1b[A": EventKind.UP,
    "\x1b[B": EventKind.DOWN,
    "\x1b[5~": EventKind.PAGE_UP,
    "\x1b[6~": EventKind.PAGE_DOWN,
}

_MESSAGES: dict[Effect, str] = {
    Effect.REJECTED_CRITICAL: "Critical files cannot be selected (use --include-protected)",
    Effect.EMPTY_SELECTION: "Nothing selected; press space to select or q to quit",
}

FOOTER = (
    "Space: Toggle | Enter: Confirm | a: Toggle All | s: Sort | /: Filter | q: Cancel | h: Help"
)
FILTER_FOOTER = "Type to filter | Enter: Apply | Esc: Clear | Backspace: Delete"


def key_to_event(key: str, mode: SelectionMode) -> Event | None:
    """Translate a key press into a selection event.

    Args:
        key: Key as returned by :func:`typer.getchar`.
        mode: Current selection mode.

    Returns:
        The event, or None for an unmapped key.
    """
    if mode is SelectionMode.FILTER_EDITING:
        kind = _FILTER_KEYS.get(key)
        if kind is not None:
            return Event(kind)
        if key.isprintable():
            return Event.char(key)
        return None

    kind = _BROWSING_KEYS.get(key)
    return Event(kind) if kind is not None else None


def render_frame(frame: ViewFrame, message: str | None = None) -> RenderableType:
    """Build the Rich renderable for a frame."""
    header = Panel(Text(frame.header), title="sweep", border_style="border")

    if frame.show_help:
        body: RenderableType = Panel(Text("\n".join(frame.help_lines)), title="Help")
    else:
        table = Table(
            show_header=True, header_style="bold_header", border_style="border", expand=True
        )
        table.add_column("", width=3, no_wrap=True)
        table.add_column("Risk", no_wrap=True)
        table.add_column("Size", justify="right", no_wrap=True)
        table.add_column("Age", justify="right", no_wrap=True)
        table.add_column("Path", overflow="ellipsis", no_wrap=True)
        for row in frame.rows:
            table.add_row(
                Text(row.marker, style="selected" if row.selected else ""),
                Text(row.risk_label, style=risk_style(row.risk)),
                Text(row.size, style="info"),
                Text(row.age, style="muted"),
                Text(row.path),
                style="cursor" if row.focused else None,
            )
        if not frame.rows:
            table.add_row("", "", "", "", Text("No matching files", style="muted"))
        body = table

    footer_text = FILTER_FOOTER if frame.mode is SelectionMode.FILTER_EDITING else FOOTER
    footer = Text(message, style="warning") if message else Text(footer_text, style="muted")
    return Group(header, body, footer)


def run_selector(
    controller: SelectionController,
    console: Console,
    read_key: KeyReader = typer.getchar,
) -> SelectionMode:
    """Drive a controller from the keyboard until it terminates.

    Args:
        controller: Selection controller to drive.
        console: Console to draw on.
        read_key: Function returning the next key press.

    Returns:
        The terminal mode reached (CONFIRMED or CANCELLED).
    """
    message: str | None = None
    with console.screen() as screen:
        while not controller.is_finished:
            height = max(1, console.size.height - _CHROME_HEIGHT)
            frame = render(controller.state, time.time(), height=height)
            screen.update(render_frame(frame, message))

            event = key_to_event(read_key(), controller.state.mode)
            if event is None:
                continue
            effects = controller.dispatch(event)
            message = next((_MESSAGES[e] for e in effects if e in _MESSAGES), None)

    return controller.state.mode
