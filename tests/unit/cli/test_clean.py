"""Unit tests for clean command.

The interactive selector is replaced by a function that feeds a fixed
event sequence to the session's controller.
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest
from sweep.cli.main import app
from sweep.selection.controller import SelectionController
from sweep.selection.models import Event, EventKind, SelectionMode
from typer.testing import CliRunner

runner = CliRunner()

TOGGLE = Event(EventKind.TOGGLE)
CONFIRM = Event(EventKind.CONFIRM)
CANCEL = Event(EventKind.CANCEL)


def scripted_selector(*events: Event) -> Callable[..., SelectionMode]:
    """Build a run_selector replacement that dispatches ``events``."""

    def _run(controller: SelectionController, console: Any, *args: Any) -> SelectionMode:
        controller.replay(events)
        return controller.state.mode

    return _run


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Point the settings file at an empty config directory."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))


@pytest.fixture
def files(make_file: Callable[..., Path]) -> tuple[Path, Path]:
    """Two old log files; the larger sorts first."""
    big = make_file("data/big.log", 4096, age_days=90)
    return big, make_file("data/small.log", 2048, age_days=90)


def _invoke(tmp_path: Path, *extra: str, answer: str | None = None) -> Any:
    return runner.invoke(app, ["clean", str(tmp_path / "data"), "-t", "1KB", *extra], input=answer)


class TestCleanCommand:
    """Tests for sweep clean command."""

    def test_clean_help(self) -> None:
        """Clean command shows help."""
        result = runner.invoke(app, ["clean", "--help"])

        assert result.exit_code == 0
        assert "--include-protected" in result.stdout

    def test_confirmed_selection_deleted(self, tmp_path: Path, files: tuple[Path, Path]) -> None:
        """Confirming the prompt deletes only the selected file."""
        big, small = files
        with patch(
            "sweep.cli.commands.clean.run_selector", side_effect=scripted_selector(TOGGLE, CONFIRM)
        ):
            result = _invoke(tmp_path, answer="y\n")

        assert result.exit_code == 0
        assert "Deleted 1 item(s), freed 4.00 KB." in result.stdout
        assert not big.exists()
        assert small.exists()

    def test_declined_prompt_deletes_nothing(
        self, tmp_path: Path, files: tuple[Path, Path]
    ) -> None:
        """Answering no to the prompt aborts."""
        big, _ = files
        with patch(
            "sweep.cli.commands.clean.run_selector", side_effect=scripted_selector(TOGGLE, CONFIRM)
        ):
            result = _invoke(tmp_path, answer="n\n")

        assert result.exit_code == 0
        assert "Aborted. Nothing was deleted." in result.stdout
        assert big.exists()

    def test_dry_run(self, tmp_path: Path, files: tuple[Path, Path]) -> None:
        """--dry-run reports without prompting or deleting."""
        big, _ = files
        with patch(
            "sweep.cli.commands.clean.run_selector", side_effect=scripted_selector(TOGGLE, CONFIRM)
        ):
            result = _invoke(tmp_path, "--dry-run")

        assert result.exit_code == 0
        assert "Dry-run: would delete 1 item(s), freeing 4.00 KB." in result.stdout
        assert big.exists()

    def test_cancel(self, tmp_path: Path, files: tuple[Path, Path]) -> None:
        """Cancelling the selector deletes nothing."""
        big, small = files
        with patch(
            "sweep.cli.commands.clean.run_selector", side_effect=scripted_selector(TOGGLE, CANCEL)
        ):
            result = _invoke(tmp_path)

        assert result.exit_code == 0
        assert "Cancelled. Nothing was deleted." in result.stdout
        assert big.exists()
        assert small.exists()

    def test_nothing_to_select(self, tmp_path: Path, make_file: Callable[..., Path]) -> None:
        """Without candidates the selector never opens."""
        make_file("data/tiny.log", 10)
        with patch("sweep.cli.commands.clean.run_selector") as mock_selector:
            result = _invoke(tmp_path)

        assert result.exit_code == 0
        assert "No files matched" in result.stdout
        mock_selector.assert_not_called()

    def test_failed_deletion_exit_code(self, tmp_path: Path, files: tuple[Path, Path]) -> None:
        """A failed deletion exits with code 1."""
        big, _ = files
        with (
            patch(
                "sweep.cli.commands.clean.run_selector",
                side_effect=scripted_selector(TOGGLE, CONFIRM),
            ),
            patch(
                "sweep.filesystem.operator.Path.unlink",
                side_effect=PermissionError(13, "Permission denied"),
            ),
        ):
            result = _invoke(tmp_path, answer="y\n")

        assert result.exit_code == 1
        assert "Permission denied" in result.output
        assert big.exists()

    def test_missing_git_warning(self, tmp_path: Path, files: tuple[Path, Path]) -> None:
        """Without git a warning explains the Critical fallback."""
        with (
            patch("sweep.cli.commands.clean.command_exists", return_value=False),
            patch(
                "sweep.cli.commands.clean.run_selector", side_effect=scripted_selector(CANCEL)
            ),
        ):
            result = _invoke(tmp_path)

        assert result.exit_code == 0
        assert "git not found" in result.output

    def test_missing_path(self, tmp_path: Path) -> None:
        """A nonexistent root is a configuration error."""
        result = runner.invoke(app, ["clean", str(tmp_path / "missing")])

        assert result.exit_code == 2
