"""Unit tests for the git status index.

Tests porcelain parsing, per-repository lookups, repository discovery
and the unreadable-repository fallback.
"""

import shutil
import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from sweep.git.index import (
    NOT_IN_REPO,
    GitRepoHandle,
    GitStatusIndex,
    find_enclosing_repo,
    parse_porcelain,
)
from sweep.models.record import GitStatus
from sweep.utils.shell import CommandResult

TRACKED_OUTPUT = "data/big.bin\0src/main.rs\0assets/logo.png\0"
STATUS_OUTPUT = "?? new.bin\0!! build/\0!! debug.log\0 M src/main.rs\0"


def _ok(stdout: str = "") -> CommandResult:
    return CommandResult(stdout=stdout, stderr="", returncode=0)


def _fatal(message: str = "fatal: not a git repository") -> CommandResult:
    return CommandResult(stdout="", stderr=message, returncode=128)


def _make_repo(path: Path) -> Path:
    (path / ".git").mkdir(parents=True)
    return path


class TestParsePorcelain:
    """Tests for parse_porcelain function."""

    def test_parses_states(self) -> None:
        """Untracked, ignored and changed entries map to their status."""
        status, ignored_dirs = parse_porcelain(STATUS_OUTPUT)

        assert status == {
            "new.bin": GitStatus.UNTRACKED,
            "build": GitStatus.IGNORED,
            "debug.log": GitStatus.IGNORED,
            "src/main.rs": GitStatus.MODIFIED,
        }
        assert ignored_dirs == ["build/"]

    def test_rename_consumes_original_path(self) -> None:
        """Renames carry the original path as an extra field."""
        status, _ = parse_porcelain("R  new_name.bin\0old_name.bin\0?? other.bin\0")

        assert status == {"new_name.bin": GitStatus.MODIFIED, "other.bin": GitStatus.UNTRACKED}

    def test_staged_and_deleted(self) -> None:
        """Any index or work tree change counts as modified."""
        status, _ = parse_porcelain("A  added.bin\0 D removed.bin\0MM both.bin\0")

        assert set(status.values()) == {GitStatus.MODIFIED}
        assert set(status) == {"added.bin", "removed.bin", "both.bin"}

    def test_empty_output(self) -> None:
        """A clean tree yields no entries."""
        assert parse_porcelain("") == ({}, [])

    def test_paths_with_spaces(self) -> None:
        """NUL separation keeps spaces intact."""
        status, _ = parse_porcelain("?? my data/big file.bin\0")

        assert status == {"my data/big file.bin": GitStatus.UNTRACKED}


class TestGitRepoHandle:
    """Tests for GitRepoHandle build and lookup."""

    @patch("sweep.git.index.run_command")
    def test_lookup_states(self, mock_run: MagicMock, tmp_path: Path) -> None:
        """Paths resolve to tracked, modified, ignored and untracked states."""
        mock_run.side_effect = [_ok(TRACKED_OUTPUT), _ok(STATUS_OUTPUT)]
        root = str(tmp_path)
        handle = GitRepoHandle(root)
        handle.build()

        tracked = handle.lookup(f"{root}/data/big.bin")
        assert tracked.tracked is True
        assert tracked.status is GitStatus.TRACKED
        assert tracked.repo_root == root

        modified = handle.lookup(f"{root}/src/main.rs")
        assert modified.tracked is True
        assert modified.status is GitStatus.MODIFIED

        assert handle.lookup(f"{root}/data").status is GitStatus.TRACKED
        assert handle.lookup(f"{root}/build/out/app.o").status is GitStatus.IGNORED
        assert handle.lookup(f"{root}/debug.log").status is GitStatus.IGNORED
        assert handle.lookup(f"{root}/new.bin").status is GitStatus.UNTRACKED
        assert handle.lookup(f"{root}/never-seen.bin").status is GitStatus.UNTRACKED
        assert handle.lookup(f"{root}/never-seen.bin").tracked is False

    @patch("sweep.git.index.run_command")
    def test_build_runs_once(self, mock_run: MagicMock, tmp_path: Path) -> None:
        """Repeated builds reuse the first result."""
        mock_run.side_effect = [_ok(TRACKED_OUTPUT), _ok("")]
        handle = GitRepoHandle(str(tmp_path))

        handle.build()
        handle.build()

        assert mock_run.call_count == 2
        assert handle.is_built is True
        assert "data/big.bin" in handle.tracked_paths

    @patch("sweep.git.index.run_command")
    def test_git_invoked_against_root(self, mock_run: MagicMock, tmp_path: Path) -> None:
        """git runs with -C pointing at the repository root."""
        mock_run.side_effect = [_ok(), _ok()]

        GitRepoHandle(str(tmp_path)).build()

        first_args = mock_run.call_args_list[0].args[0]
        assert first_args[:3] == ["git", "-C", str(tmp_path)]
        assert "ls-files" in first_args

    @patch("sweep.git.index.run_command")
    def test_unreadable_repository(self, mock_run: MagicMock, tmp_path: Path) -> None:
        """A failing git command marks every path unverified."""
        mock_run.return_value = _fatal("fatal: bad object HEAD")
        handle = GitRepoHandle(str(tmp_path))

        handle.build()
        lookup = handle.lookup(f"{tmp_path}/data/big.bin")

        assert handle.broken is True
        assert handle.error == "fatal: bad object HEAD"
        assert lookup.tracked is False
        assert lookup.status is GitStatus.UNVERIFIED

    @patch("sweep.git.index.run_command")
    def test_git_not_installed(self, mock_run: MagicMock, tmp_path: Path) -> None:
        """A missing git executable is treated like an unreadable repository."""
        mock_run.side_effect = FileNotFoundError("git")
        handle = GitRepoHandle(str(tmp_path))

        handle.build()

        assert handle.broken is True
        assert handle.lookup(f"{tmp_path}/a.bin").status is GitStatus.UNVERIFIED

    @patch("sweep.git.index.run_command")
    def test_timeout(self, mock_run: MagicMock, tmp_path: Path) -> None:
        """A hung git command is treated like an unreadable repository."""
        mock_run.side_effect = subprocess.TimeoutExpired(["git"], 1.0)
        handle = GitRepoHandle(str(tmp_path), timeout=1.0)

        handle.build()

        assert handle.broken is True


class TestFindEnclosingRepo:
    """Tests for find_enclosing_repo function."""

    def test_finds_ancestor(self, tmp_path: Path) -> None:
        """The nearest directory with .git is returned."""
        repo = _make_repo(tmp_path / "repo")
        nested = repo / "a" / "b"
        nested.mkdir(parents=True)

        assert find_enclosing_repo(str(nested)) == str(repo)

    def test_git_file_counts(self, tmp_path: Path) -> None:
        """A .git file (worktree or submodule) marks a repository."""
        (tmp_path / ".git").write_text("gitdir: /elsewhere\n")

        assert find_enclosing_repo(str(tmp_path)) == str(tmp_path)


class TestGitStatusIndex:
    """Tests for GitStatusIndex discovery and lookup."""

    @patch("sweep.git.index.run_command")
    def test_discovers_repositories_beneath_root(
        self, mock_run: MagicMock, tmp_path: Path
    ) -> None:
        """Every repository below the root gets one handle; nested ones do not."""
        mock_run.return_value = _ok()
        first = _make_repo(tmp_path / "first")
        second = _make_repo(tmp_path / "group" / "second")
        _make_repo(first / "vendor" / "nested")

        with GitStatusIndex() as index:
            handles = index.discover(str(tmp_path))

        assert sorted(h.root for h in handles) == sorted([str(first), str(second)])

    @patch("sweep.git.index.run_command")
    def test_root_inside_repository(self, mock_run: MagicMock, tmp_path: Path) -> None:
        """A root inside a repository resolves to the enclosing repository."""
        mock_run.return_value = _ok()
        repo = _make_repo(tmp_path / "repo")
        sub = repo / "sub"
        sub.mkdir()

        with GitStatusIndex() as index:
            handles = index.discover(str(sub))

        assert [h.root for h in handles] == [str(repo)]

    @patch("sweep.git.index.run_command")
    def test_discover_is_idempotent(self, mock_run: MagicMock, tmp_path: Path) -> None:
        """Discovering the same repository twice reuses its handle."""
        mock_run.return_value = _ok()
        _make_repo(tmp_path / "repo")

        with GitStatusIndex() as index:
            index.discover(str(tmp_path))
            index.discover(str(tmp_path))
            assert len(index.handles) == 1

    def test_lookup_outside_repositories(self, tmp_path: Path) -> None:
        """Paths outside every repository are NOT_IN_REPO."""
        (tmp_path / "plain").mkdir()

        with GitStatusIndex() as index:
            index.start_discovery(str(tmp_path / "plain"))
            assert index.lookup(str(tmp_path / "plain" / "a.bin")) == NOT_IN_REPO

    @patch("sweep.git.index.run_command")
    def test_lookup_waits_for_discovery(self, mock_run: MagicMock, tmp_path: Path) -> None:
        """A lookup right after starting discovery sees the repository."""
        mock_run.side_effect = [_ok("data/big.bin\0"), _ok("")]
        repo = _make_repo(tmp_path / "repo")

        with GitStatusIndex() as index:
            index.start_discovery(str(tmp_path))
            lookup = index.lookup(str(repo / "data" / "big.bin"))

        assert lookup.tracked is True
        assert lookup.repo_root == str(repo)

    @patch("sweep.git.index.run_command")
    def test_deepest_repository_owns_path(self, mock_run: MagicMock, tmp_path: Path) -> None:
        """With several roots discovered, the innermost repository answers."""
        mock_run.return_value = _ok()
        outer = _make_repo(tmp_path / "outer")
        inner = _make_repo(outer / "inner")

        with GitStatusIndex() as index:
            index.discover(str(outer))
            index.discover(str(inner))
            lookup = index.lookup(str(inner / "file.bin"))

        assert lookup.repo_root == str(inner)

    @patch("sweep.git.index.run_command")
    def test_nested_repository_answers_for_its_files(
        self, mock_run: MagicMock, tmp_path: Path
    ) -> None:
        """A file committed in a repository nested in another is tracked."""
        outer = _make_repo(tmp_path / "outer")
        inner = _make_repo(outer / "vendor" / "inner")

        def git(args: list[str], **_kwargs: object) -> CommandResult:
            root, command = args[2], args[3]
            if root == str(inner) and command == "ls-files":
                return _ok("movie.mp4\0")
            if root == str(outer) and command == "status":
                return _ok("?? vendor/inner/\0")
            return _ok()

        mock_run.side_effect = git

        with GitStatusIndex() as index:
            index.start_discovery(str(tmp_path))
            lookup = index.lookup(str(inner / "movie.mp4"))
            root_lookup = index.lookup(str(inner))

        assert lookup.tracked is True
        assert lookup.status is GitStatus.TRACKED
        assert lookup.repo_root == str(inner)
        assert root_lookup.tracked is True

    @patch("sweep.git.index.run_command")
    def test_broken_repository_recorded_as_warning(
        self, mock_run: MagicMock, tmp_path: Path
    ) -> None:
        """Unreadable repositories are reported and their files unverified."""
        mock_run.return_value = _fatal()
        repo = _make_repo(tmp_path / "repo")

        index = GitStatusIndex()
        index.start_discovery(str(tmp_path))
        lookup = index.lookup(str(repo / "big.bin"))
        index.close()

        assert lookup.status is GitStatus.UNVERIFIED
        assert len(index.warnings) == 1
        assert index.warnings[0].root == str(repo)

    @patch("sweep.git.index.run_command")
    def test_fresh_lookup_tracked(self, mock_run: MagicMock, tmp_path: Path) -> None:
        """fresh_lookup queries git directly for a single path."""
        mock_run.side_effect = [_ok("big.bin\0"), _ok("")]
        repo = _make_repo(tmp_path / "repo")

        with GitStatusIndex() as index:
            lookup = index.fresh_lookup(str(repo / "big.bin"))

        assert lookup.status is GitStatus.TRACKED
        assert mock_run.call_args_list[0].args[0][-2:] == ["--", "big.bin"]

    @patch("sweep.git.index.run_command")
    def test_fresh_lookup_modified(self, mock_run: MagicMock, tmp_path: Path) -> None:
        """A changed path resolves as modified."""
        mock_run.side_effect = [_ok("big.bin\0"), _ok(" M big.bin\0")]
        repo = _make_repo(tmp_path / "repo")

        with GitStatusIndex() as index:
            assert index.fresh_lookup(str(repo / "big.bin")).status is GitStatus.MODIFIED

    @patch("sweep.git.index.run_command")
    def test_fresh_lookup_ignored(self, mock_run: MagicMock, tmp_path: Path) -> None:
        """An ignored path resolves as ignored."""
        mock_run.side_effect = [_ok(""), _ok("!! build/\0")]
        repo = _make_repo(tmp_path / "repo")

        with GitStatusIndex() as index:
            assert index.fresh_lookup(str(repo / "build" / "app.o")).status is GitStatus.IGNORED

    @patch("sweep.git.index.run_command")
    def test_fresh_lookup_failure_is_unverified(self, mock_run: MagicMock, tmp_path: Path) -> None:
        """If git cannot answer, the lookup is unverified."""
        mock_run.return_value = _fatal()
        repo = _make_repo(tmp_path / "repo")

        with GitStatusIndex() as index:
            assert index.fresh_lookup(str(repo / "big.bin")).status is GitStatus.UNVERIFIED

    def test_fresh_lookup_outside_repository(self, tmp_path: Path) -> None:
        """Paths outside every repository resolve as NOT_IN_REPO."""
        with GitStatusIndex() as index:
            assert index.fresh_lookup(str(tmp_path / "a.bin")) == NOT_IN_REPO


@pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")
class TestGitStatusIndexWithGit:
    """Tests against real repositories."""

    def _git(self, repo: Path, *args: str) -> None:
        subprocess.run(["git", "-C", str(repo), *args], check=True, capture_output=True)

    def test_staged_file_is_tracked(self, tmp_path: Path) -> None:
        """A file in the index is tracked; an untracked sibling is not."""
        repo = tmp_path / "repo"
        repo.mkdir()
        self._git(repo, "init", "-q")
        (repo / "tracked.bin").write_bytes(b"x")
        (repo / "loose.bin").write_bytes(b"y")
        self._git(repo, "add", "tracked.bin")

        with GitStatusIndex() as index:
            index.start_discovery(str(tmp_path))
            assert index.lookup(str(repo / "tracked.bin")).tracked is True
            assert index.lookup(str(repo / "loose.bin")).status is GitStatus.UNTRACKED

    def test_gitignored_file(self, tmp_path: Path) -> None:
        """Files matched by .gitignore are ignored."""
        repo = tmp_path / "repo"
        (repo / "logs").mkdir(parents=True)
        self._git(repo, "init", "-q")
        (repo / ".gitignore").write_text("logs/\n")
        (repo / "logs" / "app.log").write_text("x")

        with GitStatusIndex() as index:
            index.start_discovery(str(repo))
            assert index.lookup(str(repo / "logs" / "app.log")).status is GitStatus.IGNORED

    def test_corrupt_repository(self, tmp_path: Path) -> None:
        """A .git entry git cannot open makes every file unverified."""
        repo = tmp_path / "repo"
        repo.mkdir()
        (repo / ".git").write_text("gitdir: /nonexistent/metadata\n")

        with GitStatusIndex() as index:
            index.start_discovery(str(tmp_path))
            assert index.lookup(str(repo / "big.bin")).status is GitStatus.UNVERIFIED

    def test_nested_repository(self, tmp_path: Path) -> None:
        """Files staged in a repository inside another are tracked."""
        outer = tmp_path / "outer"
        inner = outer / "vendor" / "inner"
        inner.mkdir(parents=True)
        self._git(outer, "init", "-q")
        self._git(inner, "init", "-q")
        (inner / "movie.mp4").write_bytes(b"frames")
        self._git(inner, "add", "movie.mp4")

        with GitStatusIndex() as index:
            index.start_discovery(str(tmp_path))
            lookup = index.lookup(str(inner / "movie.mp4"))

        assert lookup.tracked is True
        assert lookup.repo_root == str(inner)
