"""Tests for keytrace.core.weakness – post-session weakness analysis."""

from __future__ import annotations

from typing import List, Sequence

import pytest

from keytrace.core.models import ErrorEvent, ErrorType, TypingRhythm, WeaknessAnalysis
from keytrace.core.settings import EngineSettings
from keytrace.core.weakness import FINGER_MAP, WeaknessAnalyzer, finger_for


def _rhythm(entries: Sequence[tuple]) -> List[TypingRhythm]:
    """Build rhythm entries from (char, latency_ms, position) tuples."""
    return [
        TypingRhythm(timestamp=i * 0.1, latency_ms=latency, position=position, char_typed=char)
        for i, (char, latency, position) in enumerate(entries)
    ]


def _error(position: int, expected: str = "a", actual: str = "x") -> ErrorEvent:
    return ErrorEvent(
        error_type=ErrorType.SUBSTITUTION,
        position=position,
        expected_char=expected,
        actual_char=actual,
        timestamp=0.0,
    )


# ===========================================================================
# Finger map
# ===========================================================================

class TestFingerMap:
    def test_home_row(self):
        assert finger_for("a") == "L-Pinky"
        assert finger_for("f") == "L-Index"
        assert finger_for("j") == "R-Index"
        assert finger_for("l") == "R-Ring"

    def test_space_is_thumb(self):
        assert finger_for(" ") == "Thumb"

    def test_unmapped(self):
        assert finger_for("A") == "Unknown"
        assert finger_for("1") == "Unknown"

    def test_covers_all_lowercase_letters(self):
        assert set("abcdefghijklmnopqrstuvwxyz") <= set(FINGER_MAP)

    def test_is_read_only(self):
        with pytest.raises(TypeError):
            FINGER_MAP["a"] = "Thumb"  # type: ignore[index]


# ===========================================================================
# Slowest digraphs
# ===========================================================================

class TestSlowestDigraphs:
    def test_requires_two_observations(self):
        analyzer = WeaknessAnalyzer("abab")
        rhythm = _rhythm([("a", 0, 0), ("b", 200, 1), ("a", 900, 2), ("b", 300, 3)])
        assert analyzer.slowest_digraphs(rhythm) == [("ab", 250.0)]

    def test_position_zero_has_no_digraph(self):
        analyzer = WeaknessAnalyzer("aa")
        rhythm = _rhythm([("a", 500, 0), ("a", 500, 0)])
        assert analyzer.slowest_digraphs(rhythm) == []

    def test_uses_typed_char_not_target(self):
        analyzer = WeaknessAnalyzer("ab")
        rhythm = _rhythm([("x", 100, 1), ("x", 300, 1)])
        assert analyzer.slowest_digraphs(rhythm) == [("ax", 200.0)]

    def test_sorted_descending_and_truncated(self):
        target = "abcdefghijklmnop"
        entries = []
        for pos in range(1, 13):
            entries += [("z", pos * 10, pos), ("z", pos * 10, pos)]
        result = WeaknessAnalyzer(target).slowest_digraphs(_rhythm(entries))
        assert len(result) == 10
        averages = [avg for _, avg in result]
        assert averages == sorted(averages, reverse=True)
        assert result[0] == ("lz", 120.0)


# ===========================================================================
# Error clusters
# ===========================================================================

class TestErrorClusters:
    def test_empty(self):
        assert WeaknessAnalyzer("abc").error_clusters([]) == []

    def test_single_error(self):
        assert WeaknessAnalyzer("abc").error_clusters([_error(2)]) == [(2, 2)]

    def test_gap_splits_clusters(self):
        errors = [_error(p) for p in [0, 5, 16, 40, 45]]
        assert WeaknessAnalyzer("x" * 50).error_clusters(errors) == [(0, 5), (16, 16), (40, 45)]

    def test_gap_of_exactly_ten_joins(self):
        errors = [_error(p) for p in [0, 10, 20]]
        assert WeaknessAnalyzer("x" * 30).error_clusters(errors) == [(0, 20)]

    def test_walks_in_position_order(self):
        errors = [_error(p) for p in [40, 0, 5]]
        assert WeaknessAnalyzer("x" * 50).error_clusters(errors) == [(0, 5), (40, 40)]


# ===========================================================================
# Finger errors
# ===========================================================================

class TestFingerErrors:
    def test_counts_differing_fingers(self):
        errors = [
            _error(0, "a", "s"),
            _error(1, "a", "s"),
            _error(2, "r", "t"),  # both L-Index
            _error(3, "A", "a"),
            _error(4, " ", "x"),
        ]
        assert WeaknessAnalyzer("x" * 5).finger_errors(errors) == {
            "L-Pinky -> L-Ring": 2,
            "Unknown -> L-Pinky": 1,
            "Thumb -> L-Ring": 1,
        }

    def test_missing_chars_skipped(self):
        error = ErrorEvent(ErrorType.SUBSTITUTION, 0, None, "x", 0.0)
        assert WeaknessAnalyzer("a").finger_errors([error]) == {}


# ===========================================================================
# Rhythm breaks
# ===========================================================================

class TestRhythmBreaks:
    def test_break_detected(self):
        rhythm = _rhythm([("a", 100, i) for i in range(5)] + [("b", 450, 5)])
        assert WeaknessAnalyzer("x" * 10).rhythm_breaks(rhythm) == [5]

    def test_needs_absolute_floor(self):
        rhythm = _rhythm([("a", 100, i) for i in range(5)] + [("b", 350, 5)])
        assert WeaknessAnalyzer("x" * 10).rhythm_breaks(rhythm) == []

    def test_needs_relative_jump(self):
        rhythm = _rhythm([("a", 300, i) for i in range(5)] + [("b", 500, 5)])
        assert WeaknessAnalyzer("x" * 10).rhythm_breaks(rhythm) == []

    def test_too_short(self):
        rhythm = _rhythm([("a", 100, 0)] * 4 + [("b", 900, 4)])
        assert WeaknessAnalyzer("x" * 10).rhythm_breaks(rhythm) == []

    def test_reports_keystroke_position(self):
        rhythm = _rhythm([("a", 50, 3)] * 5 + [("b", 800, 7)])
        assert WeaknessAnalyzer("x" * 10).rhythm_breaks(rhythm) == [7]


# ===========================================================================
# Problematic transitions
# ===========================================================================

class TestProblematicTransitions:
    def test_slow_repeated_pair(self):
        rhythm = _rhythm([("a", 0, 0), ("b", 400, 1), ("a", 100, 2), ("b", 500, 3), ("a", 100, 4), ("b", 600, 5)])
        assert WeaknessAnalyzer("ababab").problematic_transitions(rhythm) == [("a", "b", 500.0)]

    def test_single_observation_excluded(self):
        rhythm = _rhythm([("a", 0, 0), ("b", 900, 1)])
        assert WeaknessAnalyzer("ab").problematic_transitions(rhythm) == []

    def test_threshold_is_exclusive(self):
        rhythm = _rhythm([("a", 0, 0), ("b", 300, 1), ("a", 0, 2), ("b", 300, 3)])
        assert WeaknessAnalyzer("abab").problematic_transitions(rhythm) == []

    def test_sorted_and_truncated(self):
        entries = []
        for i in range(12):
            first, second = chr(ord("a") + i), chr(ord("A") + i)
            entries += [(first, 0, 0), (second, 400 + i, 0)] * 2
        result = WeaknessAnalyzer("x").problematic_transitions(_rhythm(entries))
        assert len(result) == 10
        assert result[0] == ("l", "L", 411.0)
        averages = [avg for _, _, avg in result]
        assert averages == sorted(averages, reverse=True)


# ===========================================================================
# analyze
# ===========================================================================

class TestAnalyze:
    def test_empty_logs(self):
        assert WeaknessAnalyzer("abc").analyze([], []) == WeaknessAnalysis()

    def test_respects_settings(self):
        settings = EngineSettings(top_n=1, min_pair_occurrences=1)
        rhythm = _rhythm([("b", 100, 1), ("c", 200, 2)])
        analysis = WeaknessAnalyzer("abc", settings).analyze(rhythm, [])
        assert analysis.slowest_digraphs == (("bc", 200.0),)
