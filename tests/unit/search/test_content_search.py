"""Tests for in-file literal search and match stepping.

Validates per-line scanning, overlap behavior, and scroll targets.
"""

from __future__ import annotations

import unittest

from diffreview.search.content import (
    SearchMatch,
    SearchResults,
    line_highlight_ranges,
    next_match,
    prev_match,
    scroll_target_for_line,
    search_content,
)


class SearchContentTests(unittest.TestCase):
    def test_finds_every_occurrence_left_to_right(self) -> None:
        matches = search_content("foo bar foofoo", "foo")
        self.assertEqual([match.start for match in matches], [0, 8, 11])
        self.assertTrue(all(match.line == 0 and match.length == 3 for match in matches))

    def test_overlapping_runs_are_all_reported(self) -> None:
        self.assertEqual([match.start for match in search_content("aaa", "aa")], [0, 1])

    def test_matches_are_ordered_by_line_then_column(self) -> None:
        matches = search_content("x1\nnone\n1x x\n", "x")
        self.assertEqual([(match.line, match.start) for match in matches], [(0, 0), (2, 1), (2, 3)])

    def test_search_is_case_sensitive_and_literal(self) -> None:
        self.assertEqual(search_content("Foo foo", "foo"), [SearchMatch(0, 4, 3)])
        self.assertEqual(search_content("a.b axb", "a.b"), [SearchMatch(0, 0, 3)])

    def test_empty_query_or_content_yields_nothing(self) -> None:
        self.assertEqual(search_content("anything", ""), [])
        self.assertEqual(search_content("", "x"), [])

    def test_match_never_exceeds_its_line(self) -> None:
        content = "alpha\nbeta alpha\nalphalpha"
        lines = content.split("\n")
        for match in search_content(content, "alpha"):
            self.assertLessEqual(match.end, len(lines[match.line]))


class MatchSteppingTests(unittest.TestCase):
    def test_next_and_prev_wrap(self) -> None:
        self.assertEqual(next_match(2, 3), 0)
        self.assertEqual(prev_match(0, 3), 2)
        self.assertEqual(next_match(0, 0), 0)

    def test_stepping_count_times_is_identity(self) -> None:
        count = 4
        for start in range(count):
            index = start
            for _ in range(count):
                index = next_match(index, count)
            self.assertEqual(index, start)
            for _ in range(count):
                index = prev_match(index, count)
            self.assertEqual(index, start)

    def test_results_expose_current_match(self) -> None:
        results = SearchResults("q", (SearchMatch(0, 0, 1), SearchMatch(3, 2, 1)), current=1)
        self.assertEqual(results.count, 2)
        self.assertEqual(results.current_match, SearchMatch(3, 2, 1))
        self.assertIsNone(SearchResults("q").current_match)


class ScrollAndOverlayTests(unittest.TestCase):
    def test_scroll_target_keeps_context_above(self) -> None:
        self.assertEqual(scroll_target_for_line(50, 5, 200, 40), 45)

    def test_scroll_target_clamps_to_file_bounds(self) -> None:
        self.assertEqual(scroll_target_for_line(2, 5, 200, 40), 0)
        self.assertEqual(scroll_target_for_line(195, 5, 200, 40), 160)
        self.assertEqual(scroll_target_for_line(3, 5, 10, 40), 0)

    def test_line_highlight_ranges_flags_current(self) -> None:
        matches = [SearchMatch(0, 0, 2), SearchMatch(1, 1, 2), SearchMatch(1, 5, 2)]
        self.assertEqual(line_highlight_ranges(matches, 1, current_index=2), [(1, 3, False), (5, 7, True)])
        self.assertEqual(line_highlight_ranges(matches, 4), [])


if __name__ == "__main__":
    unittest.main()
