"""Tests for package logging setup."""

from __future__ import annotations

import logging
import tempfile
import unittest
from pathlib import Path

from diffreview.logs import PACKAGE_LOGGER, configure_logging, parse_level


class LoggingSetupTests(unittest.TestCase):
    def tearDown(self) -> None:
        logger = logging.getLogger(PACKAGE_LOGGER)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.setLevel(logging.NOTSET)
        logger.propagate = True

    def test_parse_level_accepts_names_and_numbers(self) -> None:
        self.assertEqual(parse_level("debug"), logging.DEBUG)
        self.assertEqual(parse_level(" Error "), logging.ERROR)
        self.assertEqual(parse_level("15"), 15)
        self.assertEqual(parse_level(logging.INFO), logging.INFO)
        self.assertEqual(parse_level("chatty"), logging.WARNING)

    def test_reconfiguring_replaces_previous_handler(self) -> None:
        configure_logging("info")
        logger = configure_logging("debug")
        self.assertEqual(len(logger.handlers), 1)
        self.assertEqual(logger.level, logging.DEBUG)
        self.assertFalse(logger.propagate)

    def test_log_file_receives_package_records(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            log_path = Path(tmp) / "review.log"
            logger = configure_logging("info", log_path)
            logging.getLogger("diffreview.git.runner").info("listed %d files", 3)
            for handler in logger.handlers:
                handler.flush()
            text = log_path.read_text(encoding="utf-8")
            self.tearDown()

        self.assertIn("diffreview.git.runner: listed 3 files", text)


if __name__ == "__main__":
    unittest.main()
