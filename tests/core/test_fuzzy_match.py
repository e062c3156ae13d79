# tests/core/test_fuzzy_match.py
import pytest

from tiny_console.core.services.fuzzy_match_service import (
    closest_match,
    match_span,
    osa_distance,
    rank,
    score_entry,
)


def test_match_span_finds_tightest_window():
    assert match_span("abc", "a_b_c_abc") == (6, 3)


def test_match_span_is_case_insensitive():
    assert match_span("GS", "git status") == (0, 5)


def test_match_span_requires_subsequence():
    assert match_span("sg", "git status") is None
    assert match_span("abc", "") is None


def test_rank_orders_by_tightness():
    matches = rank("gs", ["git status", "grep string", "gs"])
    assert [m.entry for m in matches] == ["gs", "git status", "grep string"]
    assert matches[0].score == 1.0
    assert matches[1].span == 5


def test_rank_earlier_start_scores_higher():
    """Equal spans: the earlier start wins on score, even against a more recent entry."""
    matches = rank("ab", ["ab", "xab"])
    assert [m.entry for m in matches] == ["ab", "xab"]
    assert matches[0].score > matches[1].score


def test_score_entry_discounts_late_starts():
    early, _, _ = score_entry("log", "log --all")
    late, start, span = score_entry("log", "git log")
    assert early == 1.0
    assert (start, span) == (4, 3)
    assert 0.9 <= late < early


def test_rank_tie_goes_to_more_recent_entry():
    matches = rank("ab", ["abc", "abd"])
    assert [m.entry for m in matches] == ["abd", "abc"]


def test_rank_reports_repeated_entries_once():
    matches = rank("ls", ["ls", "pwd", "ls -la", "ls"])
    entries = [m.entry for m in matches]
    assert entries.count("ls") == 1
    assert matches[0].entry == "ls"
    assert matches[0].order == 3


def test_rank_empty_query_lists_everything_recent_first():
    assert [m.entry for m in rank("", ["ls", "pwd", "ls"])] == ["ls", "pwd"]


def test_rank_no_match():
    assert rank("zz", ["ls", "pwd"]) == []


@pytest.mark.parametrize("a, b, expected", [
    ("help", "help", 0),
    ("hepl", "help", 1),
    ("ca", "ac", 1),
    ("hlp", "help", 1),
    ("kitten", "sitting", 3),
    ("", "abc", 3),
])
def test_osa_distance(a, b, expected):
    assert osa_distance(a, b) == expected


def test_closest_match_within_distance():
    assert closest_match("hlep", ["echo", "help", "history"]) == "help"


def test_closest_match_respects_max_distance():
    assert closest_match("xyzzy", ["help", "echo"]) is None
    assert closest_match("ehco", ["echo"], max_distance=0) is None
