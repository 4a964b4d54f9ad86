"""Real-repository tests for listing and lazily loading changed files.

Each test builds a throwaway git repository and checks all three comparison
targets: working tree, single commit, and branch merge-base.
"""

from __future__ import annotations

import shutil
import subprocess
import tempfile
import unittest
from pathlib import Path

from diffreview.git.models import BranchTarget, CommitTarget, DirtyTarget, FileStatus
from diffreview.git.resolver import ComparisonResolver


def _git(root: Path, *args: str) -> str:
    proc = subprocess.run(["git", *args], cwd=root, check=True, capture_output=True, text=True)
    return proc.stdout


def _init_repo(root: Path) -> None:
    _git(root, "init", "-q")
    _git(root, "symbolic-ref", "HEAD", "refs/heads/main")
    _git(root, "config", "user.email", "tests@example.com")
    _git(root, "config", "user.name", "Tests")
    _git(root, "config", "commit.gpgsign", "false")


def _commit_all(root: Path, message: str) -> str:
    _git(root, "add", "-A")
    _git(root, "commit", "-q", "-m", message)
    return _git(root, "rev-parse", "HEAD").strip()


@unittest.skipIf(shutil.which("git") is None, "git is required for repository tests")
class DirtyTargetRepositoryTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name).resolve()
        _init_repo(self.root)
        (self.root / "a.txt").write_text("one\ntwo\nthree\n", encoding="utf-8")
        (self.root / "gone.txt").write_text("bye\n", encoding="utf-8")
        _commit_all(self.root, "initial")

        (self.root / "a.txt").write_text("one\nTWO\nthree\n", encoding="utf-8")
        (self.root / "gone.txt").unlink()
        (self.root / "new").mkdir()
        (self.root / "new" / "notes.md").write_text("x\ny\nz\n", encoding="utf-8")
        (self.root / "staged.txt").write_text("s\n", encoding="utf-8")
        _git(self.root, "add", "staged.txt")
        self.resolver = ComparisonResolver(self.root)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _files(self):
        files, error = self.resolver.list_files(DirtyTarget())
        self.assertIsNone(error)
        return {file.path: file for file in files}

    def test_listing_reports_each_status_without_loading(self) -> None:
        files = self._files()
        self.assertEqual(
            {path: file.status for path, file in files.items()},
            {
                "a.txt": FileStatus.MODIFIED,
                "gone.txt": FileStatus.DELETED,
                "new/notes.md": FileStatus.UNTRACKED,
                "staged.txt": FileStatus.ADDED,
            },
        )
        self.assertTrue(all(file.diff == "" and file.content == "" for file in files.values()))

    def test_untracked_file_loads_as_fully_added(self) -> None:
        loaded = self.resolver.load_details(self._files()["new/notes.md"], DirtyTarget())
        self.assertEqual((loaded.additions, loaded.deletions), (3, 0))
        self.assertEqual(loaded.changed_lines, frozenset({0, 1, 2}))
        self.assertEqual(loaded.content, "x\ny\nz\n")
        self.assertEqual(loaded.first_change_line, 0)

    def test_untracked_rows_follow_newlines_not_form_feeds(self) -> None:
        (self.root / "new.c").write_bytes(b"int a;\x0cint b;\nint c;\n")
        loaded = self.resolver.load_details(self._files()["new.c"], DirtyTarget())
        self.assertEqual(loaded.content.split("\n")[:2], ["int a;\x0cint b;", "int c;"])
        self.assertEqual((loaded.additions, loaded.deletions), (2, 0))
        self.assertEqual(loaded.changed_lines, frozenset({0, 1}))

    def test_modified_file_loads_working_content_and_changed_row(self) -> None:
        loaded = self.resolver.load_details(self._files()["a.txt"], DirtyTarget())
        self.assertEqual(loaded.content, "one\nTWO\nthree\n")
        self.assertEqual((loaded.additions, loaded.deletions), (1, 1))
        self.assertEqual(loaded.changed_lines, frozenset({1}))
        self.assertEqual(loaded.first_change_line, 1)

    def test_deleted_file_shows_last_committed_content(self) -> None:
        loaded = self.resolver.load_details(self._files()["gone.txt"], DirtyTarget())
        self.assertEqual(loaded.content, "bye\n")
        self.assertEqual((loaded.additions, loaded.deletions), (0, 1))
        self.assertEqual(loaded.changed_lines, frozenset({0}))

    def test_staged_new_file_uses_cached_diff(self) -> None:
        loaded = self.resolver.load_details(self._files()["staged.txt"], DirtyTarget())
        self.assertEqual((loaded.additions, loaded.deletions), (1, 0))
        self.assertEqual(loaded.changed_lines, frozenset({0}))

    def test_binary_untracked_file_is_flagged(self) -> None:
        (self.root / "blob.bin").write_bytes(b"\x00\x01\x02binary")
        loaded = self.resolver.load_details(self._files()["blob.bin"], DirtyTarget())
        self.assertTrue(loaded.is_binary)
        self.assertEqual(loaded.content, "")
        self.assertEqual(loaded.changed_lines, frozenset())

    def test_discover_finds_root_from_subdirectory(self) -> None:
        discovered = ComparisonResolver.discover(self.root / "new")
        assert discovered is not None
        self.assertEqual(discovered.repo_root, self.root)


@unittest.skipIf(shutil.which("git") is None, "git is required for repository tests")
class HistoricalTargetRepositoryTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name).resolve()
        _init_repo(self.root)
        (self.root / "a.txt").write_text("one\ntwo\nthree\n", encoding="utf-8")
        (self.root / "b.txt").write_text("same content\nline two\nline three\n", encoding="utf-8")
        self.first = _commit_all(self.root, "initial")
        _git(self.root, "branch", "base")

        (self.root / "a.txt").write_text("one\ntwo\nTHREE\nfour\n", encoding="utf-8")
        _git(self.root, "mv", "b.txt", "c.txt")
        self.second = _commit_all(self.root, "second")
        self.resolver = ComparisonResolver(self.root)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_commits_are_listed_newest_first(self) -> None:
        commits, error = self.resolver.list_commits()
        self.assertIsNone(error)
        self.assertEqual([commit.hash for commit in commits], [self.second, self.first])
        self.assertEqual(commits[0].subject, "second")
        self.assertEqual(commits[0].author, "Tests")
        self.assertEqual(self.resolver.resolve_commit("HEAD~1"), self.first)
        self.assertIsNone(self.resolver.resolve_commit("no-such-rev"))

    def test_commit_listing_detects_renames(self) -> None:
        files, error = self.resolver.list_files(CommitTarget(self.second))
        self.assertIsNone(error)
        by_path = {file.path: file for file in files}
        self.assertEqual(by_path["a.txt"].status, FileStatus.MODIFIED)
        self.assertEqual(by_path["c.txt"].status, FileStatus.RENAMED)
        self.assertEqual(by_path["c.txt"].old_path, "b.txt")

    def test_commit_details_load_new_revision_content(self) -> None:
        files, _error = self.resolver.list_files(CommitTarget(self.second))
        a_file = next(file for file in files if file.path == "a.txt")
        loaded = self.resolver.load_details(a_file, CommitTarget(self.second))
        self.assertEqual(loaded.content, "one\ntwo\nTHREE\nfour\n")
        self.assertEqual((loaded.additions, loaded.deletions), (2, 1))
        self.assertEqual(loaded.changed_lines, frozenset({2, 3}))

    def test_root_commit_compares_against_empty_tree(self) -> None:
        files, error = self.resolver.list_files(CommitTarget(self.first))
        self.assertIsNone(error)
        self.assertEqual({file.path: file.status for file in files}, {"a.txt": FileStatus.ADDED, "b.txt": FileStatus.ADDED})
        loaded = self.resolver.load_details(files[0], CommitTarget(self.first))
        self.assertEqual(loaded.additions, 3)
        self.assertEqual(loaded.changed_lines, frozenset({0, 1, 2}))

    def test_branch_target_compares_head_with_merge_base(self) -> None:
        branches, error = self.resolver.list_branches()
        self.assertIsNone(error)
        self.assertEqual({branch.name: branch.is_current for branch in branches}, {"main": True, "base": False})
        self.assertEqual(self.resolver.current_branch(), "main")

        files, error = self.resolver.list_files(BranchTarget("base"))
        self.assertIsNone(error)
        self.assertEqual(sorted(file.path for file in files), ["a.txt", "c.txt"])

    def test_unknown_commit_yields_error_not_exception(self) -> None:
        with self.assertLogs("diffreview.git.resolver", level="WARNING"):
            files, error = self.resolver.list_files(CommitTarget("f" * 40))
        self.assertEqual(files, [])
        self.assertIn("not found", error or "")


if __name__ == "__main__":
    unittest.main()
