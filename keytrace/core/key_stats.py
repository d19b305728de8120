from __future__ import annotations

from typing import Callable, Dict, List, Tuple

from keytrace.core.models import KeyStat, TypingRhythm


class KeyStatsCollector:
    """Accumulates per-character statistics, the rhythm log and WPM samples."""

    def __init__(self, wpm_sample_interval: int = 10) -> None:
        self._wpm_sample_interval = wpm_sample_interval
        self._key_stats: Dict[str, KeyStat] = {}
        self._rhythm: List[TypingRhythm] = []
        self._wpm_samples: List[Tuple[float, float]] = []

    @property
    def key_stats(self) -> Dict[str, KeyStat]:
        return self._key_stats

    @property
    def rhythm(self) -> List[TypingRhythm]:
        return self._rhythm

    @property
    def wpm_samples(self) -> List[Tuple[float, float]]:
        """(monotonic instant, wpm) pairs in the order they were taken."""
        return self._wpm_samples

    def stat_for(self, key: str) -> KeyStat:
        """Return the stat record for ``key``, creating an empty one on first use."""
        stat = self._key_stats.get(key)
        if stat is None:
            stat = KeyStat(key=key)
            self._key_stats[key] = stat
        return stat

    def record(
        self,
        key: str,
        latency_ms: int,
        position: int,
        in_error: bool,
        now: float,
        elapsed: float,
        current_wpm: Callable[[], float],
    ) -> None:
        """Record one non-backspace keystroke.

        ``position`` and ``in_error`` describe the session as it was when the
        key arrived. ``elapsed`` is seconds since session start.
        """
        stat = self.stat_for(key)
        stat.count += 1
        stat.total_latency_ms += latency_ms
        stat.latencies.append(latency_ms)
        stat.positions.append(position)
        if in_error:
            stat.error_count += 1

        self._rhythm.append(
            TypingRhythm(
                timestamp=elapsed,
                latency_ms=latency_ms,
                position=position,
                char_typed=key,
            )
        )

        if position > 0 and self._wpm_sample_interval and position % self._wpm_sample_interval == 0:
            self._wpm_samples.append((now, current_wpm()))

    def total_keys(self) -> int:
        return sum(stat.count for stat in self._key_stats.values())

    def total_latency_ms(self) -> int:
        return sum(stat.total_latency_ms for stat in self._key_stats.values())
