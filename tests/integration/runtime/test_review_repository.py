"""End-to-end review flows against a real repository.

Drives ``ReviewSession`` and ``cli.main`` with synchronous and threaded task
runners over a throwaway git repository.
"""

from __future__ import annotations

import io
import logging
import shutil
import subprocess
import tempfile
import time
import unittest
from pathlib import Path
from unittest import mock

from diffreview import cli
from diffreview.git.models import ComparisonMode
from diffreview.git.resolver import ComparisonResolver
from diffreview.logs import PACKAGE_LOGGER
from diffreview.runtime.session import ReviewSession
from diffreview.runtime.state import ViewLevel
from diffreview.runtime.tasks import BackgroundTasks, SynchronousTasks


def _git(root: Path, *args: str) -> str:
    return subprocess.run(["git", *args], cwd=root, check=True, capture_output=True, text=True).stdout


@unittest.skipIf(shutil.which("git") is None, "git is required for repository tests")
class ReviewRepositoryTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name).resolve()
        _git(self.root, "init", "-q")
        _git(self.root, "symbolic-ref", "HEAD", "refs/heads/main")
        _git(self.root, "config", "user.email", "tests@example.com")
        _git(self.root, "config", "user.name", "Tests")
        _git(self.root, "config", "commit.gpgsign", "false")
        body = "\n".join(f"value_{idx} = {idx}" for idx in range(30)) + "\n"
        (self.root / "mod.py").write_text(body, encoding="utf-8")
        _git(self.root, "add", "-A")
        _git(self.root, "commit", "-q", "-m", "initial")
        _git(self.root, "branch", "base")

        lines = body.splitlines()
        lines[3] = "value_3 = 'changed'"
        lines[20] = "value_20 = 'changed'"
        (self.root / "mod.py").write_text("\n".join(lines) + "\n", encoding="utf-8")
        _git(self.root, "commit", "-q", "-am", "edit mod")
        (self.root / "scratch.txt").write_text("todo\nneedle\n", encoding="utf-8")
        self.head = _git(self.root, "rev-parse", "HEAD").strip()
        self.resolver = ComparisonResolver(self.root)

    def tearDown(self) -> None:
        logger = logging.getLogger(PACKAGE_LOGGER)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.propagate = True
        logger.setLevel(logging.NOTSET)
        self._tmp.cleanup()

    def test_session_walks_commit_files_and_chunks(self) -> None:
        session = ReviewSession(self.resolver, tasks=SynchronousTasks(), viewport_height=10, context_lines=2)
        session.set_mode(ComparisonMode.COMMIT)
        session.settle()
        self.assertEqual(session.state.commits[0].hash, self.head)

        session.activate()
        session.settle()
        state = session.state
        self.assertEqual([file.path for file in state.files], ["mod.py"])
        self.assertEqual(state.files[0].changed_lines, frozenset({3, 20}))
        self.assertEqual(state.scroll_offset, 1)

        session.next_chunk()
        session.next_chunk()
        self.assertEqual(session.state.scroll_offset, 18)
        session.next_chunk()
        self.assertEqual(session.state.status_message, "wrapped to first change")

    def test_background_tasks_deliver_dirty_listing(self) -> None:
        tasks = BackgroundTasks()
        session = ReviewSession(self.resolver, tasks=tasks)
        session.start()
        deadline = time.monotonic() + 10.0
        while time.monotonic() < deadline and not session.state.selected_file_loaded:
            session.poll()
            time.sleep(0.02)

        state = session.state
        self.assertEqual([file.path for file in state.files], ["scratch.txt"])
        self.assertTrue(state.selected_file_loaded)
        self.assertEqual(state.files[0].additions, 2)

    def test_cli_prints_working_tree_report_with_search(self) -> None:
        stdout = io.StringIO()
        with (
            mock.patch("diffreview.runtime.config.CONFIG_PATH", self.root / "no-config.json"),
            mock.patch("sys.stdout", stdout),
        ):
            cli.main([str(self.root), "--no-color", "--file", "scratch.txt", "--search", "needle"])

        output = stdout.getvalue()
        self.assertIn("# working tree", output)
        self.assertIn("> ? +2 -0 scratch.txt", output)
        self.assertIn("# scratch.txt [Untracked] +2 -0 | 1 chunks", output)
        self.assertIn("1 matches for 'needle'", output)
        self.assertIn("2:1: needle", output)

    def test_cli_reports_commit_by_revision(self) -> None:
        stdout = io.StringIO()
        with (
            mock.patch("diffreview.runtime.config.CONFIG_PATH", self.root / "no-config.json"),
            mock.patch("sys.stdout", stdout),
        ):
            cli.main([str(self.root), "--no-color", "--commit", "HEAD", "--file", "mod.py"])

        output = stdout.getvalue()
        self.assertIn(f"# commit {self.head[:7]}", output)
        self.assertIn("+value_3 = 'changed'", output)
        self.assertIn("-value_20 = 20", output)

    def test_cli_reports_commit_older_than_listing_limit(self) -> None:
        stdout = io.StringIO()
        with (
            mock.patch("diffreview.runtime.config.CONFIG_PATH", self.root / "no-config.json"),
            mock.patch("sys.stdout", stdout),
        ):
            cli.main([str(self.root), "--no-color", "--commit", "HEAD~1", "--limit", "1", "--file", "mod.py"])

        output = stdout.getvalue()
        first = _git(self.root, "rev-parse", "HEAD~1").strip()
        self.assertIn(f"# commit {first[:7]}", output)
        self.assertIn("> A +30 -0 mod.py", output)

    def test_cli_refuses_current_branch_with_message(self) -> None:
        with mock.patch("diffreview.runtime.config.CONFIG_PATH", self.root / "no-config.json"):
            with self.assertRaises(SystemExit) as ctx:
                cli.main([str(self.root), "--no-color", "--branch", "main"])
        self.assertEqual(str(ctx.exception), "main is the current branch")

    def test_cli_lists_branches(self) -> None:
        stdout = io.StringIO()
        with (
            mock.patch("diffreview.runtime.config.CONFIG_PATH", self.root / "no-config.json"),
            mock.patch("sys.stdout", stdout),
        ):
            cli.main([str(self.root), "--list-branches"])

        lines = stdout.getvalue().splitlines()
        self.assertTrue(any(line.startswith("* main") for line in lines))
        self.assertTrue(any(line.startswith("  base") for line in lines))

    def test_branch_list_refuses_current_branch(self) -> None:
        session = ReviewSession(self.resolver, tasks=SynchronousTasks())
        session.set_mode(ComparisonMode.BRANCH)
        session.settle()
        names = [branch.name for branch in session.state.branches]
        session.move_cursor(names.index("main") - session.state.list_index)
        session.select_list_entry()
        self.assertEqual(session.state.view_level, ViewLevel.LIST)
        self.assertIn("current branch", session.state.status_message)


if __name__ == "__main__":
    unittest.main()
