"""Value types produced by a typing session and its report."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class ErrorType(str, Enum):
    SUBSTITUTION = "Substitution"
    REPEAT = "Repeat"


class HesitationType(str, Enum):
    LONG_PAUSE = "LongPause"
    DOUBLE_DIGRAPH = "DoubleDigraph"
    TRANSITION = "Transition"
    PUNCTUATION = "Punctuation"
    CASE_CHANGE = "CaseChange"
    NUMBER_SYMBOL = "NumberSymbol"


@dataclass
class ErrorEvent:
    """A single mistyped keystroke.

    ``timestamp`` and the correction fields are seconds since session start.
    """

    error_type: ErrorType
    position: int
    expected_char: Optional[str]
    actual_char: Optional[str]
    timestamp: float
    correction_timestamp: Optional[float] = None
    correction_latency: Optional[float] = None

    @property
    def is_corrected(self) -> bool:
        return self.correction_timestamp is not None

    def mark_corrected(self, timestamp: float) -> None:
        self.correction_timestamp = timestamp
        self.correction_latency = max(0.0, timestamp - self.timestamp)


@dataclass
class KeyStat:
    """Per-character aggregate of every keystroke of ``key``."""

    key: str
    count: int = 0
    total_latency_ms: int = 0
    error_count: int = 0
    latencies: List[int] = field(default_factory=list)
    positions: List[int] = field(default_factory=list)

    @property
    def average_latency_ms(self) -> float:
        return self.total_latency_ms / self.count if self.count else 0.0


@dataclass(frozen=True)
class TypingRhythm:
    timestamp: float
    latency_ms: int
    position: int
    char_typed: str


@dataclass(frozen=True)
class HesitationPattern:
    position: int
    duration_ms: int
    preceding_chars: str
    following_chars: str
    pattern_type: HesitationType


@dataclass(frozen=True)
class WeaknessAnalysis:
    slowest_digraphs: Tuple[Tuple[str, float], ...] = ()
    error_clusters: Tuple[Tuple[int, int], ...] = ()
    finger_errors: Dict[str, int] = field(default_factory=dict)
    rhythm_breaks: Tuple[int, ...] = ()
    problematic_transitions: Tuple[Tuple[str, str, float], ...] = ()


@dataclass(frozen=True)
class SessionReport:
    """Immutable snapshot of a finished (or abandoned) session.

    Durations are seconds, latencies are milliseconds.
    """

    session_duration: float
    total_characters: int
    correct_characters: int
    wpm: float
    accuracy: float
    average_latency_ms: float
    errors: Tuple[ErrorEvent, ...]
    key_stats: Dict[str, KeyStat]
    total_corrections: int
    average_correction_latency: Optional[float]
    typing_rhythm: Tuple[TypingRhythm, ...]
    hesitation_patterns: Tuple[HesitationPattern, ...]
    weakness_analysis: WeaknessAnalysis
    wpm_over_time: Tuple[Tuple[float, float], ...]

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-ready mapping with the same field names as the report."""
        payload = asdict(self)
        payload["errors"] = [_with_enum_values(e) for e in payload["errors"]]
        payload["hesitation_patterns"] = [
            _with_enum_values(h) for h in payload["hesitation_patterns"]
        ]
        for stat in payload["key_stats"].values():
            stat["average_latency_ms"] = (
                stat["total_latency_ms"] / stat["count"] if stat["count"] else 0.0
            )
        return payload


def _with_enum_values(record: Dict[str, Any]) -> Dict[str, Any]:
    return {k: (v.value if isinstance(v, Enum) else v) for k, v in record.items()}
