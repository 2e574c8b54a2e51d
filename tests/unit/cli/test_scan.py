"""Unit tests for scan command."""

import json
from collections.abc import Callable
from pathlib import Path

import pytest
from sweep.cli.main import app
from typer.testing import CliRunner

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Point the settings file at an empty config directory."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))


@pytest.fixture
def data_dir(tmp_path: Path, make_file: Callable[..., Path]) -> Path:
    """Directory with two old log files and one small file."""
    make_file("data/big.log", 4096, age_days=90)
    make_file("data/nested/medium.log", 2048, age_days=90)
    make_file("data/tiny.txt", 10, age_days=90)
    return tmp_path / "data"


class TestScanCommand:
    """Tests for sweep scan command."""

    def test_scan_help(self) -> None:
        """Scan command shows help."""
        result = runner.invoke(app, ["scan", "--help"])

        assert result.exit_code == 0
        assert "risk" in result.stdout

    def test_scan_table(self, data_dir: Path) -> None:
        """Table output ends with a summary line."""
        result = runner.invoke(app, ["scan", str(data_dir), "-t", "1KB"])

        assert result.exit_code == 0
        assert "Cleanup Candidates" in result.stdout
        assert "2 candidates, 6.00 KB total." in result.stdout

    def test_scan_limit(self, data_dir: Path) -> None:
        """--limit shows fewer rows and says so."""
        result = runner.invoke(app, ["scan", str(data_dir), "-t", "1KB", "--limit", "1"])

        assert result.exit_code == 0
        assert "Showing 1 of 2 candidates" in result.stdout

    def test_scan_json(self, data_dir: Path) -> None:
        """JSON output lists records largest first with their risk."""
        result = runner.invoke(app, ["scan", str(data_dir), "-t", "1KB", "--format", "json"])

        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert payload["total"] == 2
        assert payload["total_bytes"] == 6144
        assert [r["path"] for r in payload["records"]] == [
            str(data_dir / "big.log"),
            str(data_dir / "nested" / "medium.log"),
        ]
        assert {r["risk"] for r in payload["records"]} == {"Safe"}
        assert payload["records"][0]["file_type"] == "log"
        assert payload["records"][0]["source"] == "large-files"
        assert payload["warnings"] == []

    def test_scan_nothing_found(self, data_dir: Path) -> None:
        """A threshold above every file reports no matches."""
        result = runner.invoke(app, ["scan", str(data_dir), "-t", "1GB"])

        assert result.exit_code == 0
        assert "No files matched" in result.stdout

    def test_scan_age_filter(self, tmp_path: Path, make_file: Callable[..., Path]) -> None:
        """--older-than hides recently accessed files."""
        make_file("data/recent.log", 4096, age_days=90, accessed_days=1)
        make_file("data/stale.log", 4096, age_days=90, accessed_days=90)

        result = runner.invoke(
            app,
            ["scan", str(tmp_path / "data"), "-t", "1KB", "--older-than", "30", "-f", "json"],
        )

        assert result.exit_code == 0
        paths = [r["path"] for r in json.loads(result.stdout)["records"]]
        assert paths == [str(tmp_path / "data" / "stale.log")]

    def test_scan_invalid_size(self, data_dir: Path) -> None:
        """A malformed size is a usage error."""
        result = runner.invoke(app, ["scan", str(data_dir), "-t", "lots"])

        assert result.exit_code == 2

    def test_scan_missing_path(self, tmp_path: Path) -> None:
        """A nonexistent root fails before scanning."""
        result = runner.invoke(app, ["scan", str(tmp_path / "missing")])

        assert result.exit_code == 2
        assert "does not exist" in result.output

    def test_scan_unknown_plugin(self, data_dir: Path) -> None:
        """An unknown plugin name fails before scanning."""
        result = runner.invoke(app, ["scan", str(data_dir), "--plugin", "cobol"])

        assert result.exit_code == 2
        assert "Unknown plugin" in result.output

    def test_scan_invalid_settings_file(self, tmp_path: Path, data_dir: Path) -> None:
        """A broken settings file is a configuration error."""
        settings = tmp_path / "config" / "sweep" / "config.toml"
        settings.parent.mkdir(parents=True)
        settings.write_text("size_threshold = [\n")

        result = runner.invoke(app, ["scan", str(data_dir)])

        assert result.exit_code == 2
        assert "Invalid TOML" in result.output

    def test_scan_project_plugin(self, tmp_path: Path, make_file: Callable[..., Path]) -> None:
        """Project plugins report build directories as records."""
        make_file("src/app/Cargo.toml", 10)
        make_file("src/app/target/debug/app", 4096)

        result = runner.invoke(
            app, ["scan", str(tmp_path / "src"), "-p", "rust", "-t", "1KB", "-f", "json"]
        )

        assert result.exit_code == 0
        (record,) = json.loads(result.stdout)["records"]
        assert record["path"] == str(tmp_path / "src" / "app" / "target")
        assert record["is_dir"] is True
        assert record["source"] == "rust"
