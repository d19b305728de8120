"""Post-session analysis of the rhythm and error logs."""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from keytrace.core.models import ErrorEvent, TypingRhythm, WeaknessAnalysis
from keytrace.core.settings import EngineSettings


def _build_finger_map() -> Mapping[str, str]:
    rows = {
        "L-Pinky": "qaz",
        "L-Ring": "wsx",
        "L-Middle": "edc",
        "L-Index": "rtfgvb",
        "R-Index": "yuhjnm",
        "R-Middle": "ik",
        "R-Ring": "ol",
        "R-Pinky": "p",
        "Thumb": " ",
    }
    mapping = {char: finger for finger, chars in rows.items() for char in chars}
    return MappingProxyType(mapping)


# QWERTY touch-typing finger assignment for lowercase letters and space.
FINGER_MAP: Mapping[str, str] = _build_finger_map()
UNKNOWN_FINGER = "Unknown"


def finger_for(char: str) -> str:
    return FINGER_MAP.get(char, UNKNOWN_FINGER)


def _ranked_averages(
    samples: Dict[tuple, List[int]], min_count: int, top_n: int, floor_ms: Optional[float] = None
) -> List[Tuple[tuple, float]]:
    averaged = [
        (pair, sum(latencies) / len(latencies))
        for pair, latencies in samples.items()
        if len(latencies) >= min_count
    ]
    if floor_ms is not None:
        averaged = [item for item in averaged if item[1] > floor_ms]
    averaged.sort(key=lambda item: item[1], reverse=True)
    return averaged[:top_n]


class WeaknessAnalyzer:
    """Derives slow digraphs, error clusters, finger errors, rhythm breaks
    and slow transitions from a finished session's logs."""

    def __init__(self, target_text: str, settings: Optional[EngineSettings] = None) -> None:
        self._target = target_text
        self._settings = settings or EngineSettings()

    def analyze(self, rhythm: Sequence[TypingRhythm], errors: Sequence[ErrorEvent]) -> WeaknessAnalysis:
        return WeaknessAnalysis(
            slowest_digraphs=tuple(self.slowest_digraphs(rhythm)),
            error_clusters=tuple(self.error_clusters(errors)),
            finger_errors=self.finger_errors(errors),
            rhythm_breaks=tuple(self.rhythm_breaks(rhythm)),
            problematic_transitions=tuple(self.problematic_transitions(rhythm)),
        )

    def slowest_digraphs(self, rhythm: Sequence[TypingRhythm]) -> List[Tuple[str, float]]:
        """Average latency of (previous target char, typed char) pairs."""
        samples: Dict[tuple, List[int]] = {}
        for entry in rhythm:
            if 0 < entry.position <= len(self._target):
                digraph = self._target[entry.position - 1] + entry.char_typed
                samples.setdefault((digraph,), []).append(entry.latency_ms)
        ranked = _ranked_averages(samples, self._settings.min_pair_occurrences, self._settings.top_n)
        return [(key[0], avg) for key, avg in ranked]

    def error_clusters(self, errors: Sequence[ErrorEvent]) -> List[Tuple[int, int]]:
        clusters: List[Tuple[int, int]] = []
        positions = sorted(error.position for error in errors)
        if not positions:
            return clusters
        start = last = positions[0]
        for position in positions[1:]:
            if position > last + self._settings.cluster_gap:
                clusters.append((start, last))
                start = position
            last = position
        clusters.append((start, last))
        return clusters

    def finger_errors(self, errors: Sequence[ErrorEvent]) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for error in errors:
            if error.expected_char is None or error.actual_char is None:
                continue
            expected = finger_for(error.expected_char)
            actual = finger_for(error.actual_char)
            if expected != actual:
                label = f"{expected} -> {actual}"
                counts[label] = counts.get(label, 0) + 1
        return counts

    def rhythm_breaks(self, rhythm: Sequence[TypingRhythm]) -> List[int]:
        """Positions where latency jumped well above the recent moving average."""
        window = self._settings.rhythm_window
        latencies = [entry.latency_ms for entry in rhythm]
        breaks: List[int] = []
        if window <= 0:
            return breaks
        for i in range(window, len(latencies)):
            moving_avg = sum(latencies[i - window:i]) / window
            latency = latencies[i]
            if latency > moving_avg * self._settings.rhythm_break_factor and latency > self._settings.rhythm_break_min_ms:
                breaks.append(rhythm[i].position)
        return breaks

    def problematic_transitions(self, rhythm: Sequence[TypingRhythm]) -> List[Tuple[str, str, float]]:
        samples: Dict[tuple, List[int]] = {}
        for prev, curr in zip(rhythm, rhythm[1:]):
            samples.setdefault((prev.char_typed, curr.char_typed), []).append(curr.latency_ms)
        ranked = _ranked_averages(
            samples,
            self._settings.min_pair_occurrences,
            self._settings.top_n,
            floor_ms=self._settings.slow_transition_ms,
        )
        return [(pair[0], pair[1], avg) for pair, avg in ranked]
