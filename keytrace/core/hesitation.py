from __future__ import annotations

import string
from typing import List, Optional

from keytrace.core.models import HesitationPattern, HesitationType

COMMON_DIGRAPHS = frozenset({"th", "er", "on", "an", "re", "he", "in", "ed", "nd", "ha"})
NUMBER_SYMBOLS = frozenset("!@#$%^&*()_+{}|:<>?")
ASCII_PUNCTUATION = frozenset(string.punctuation)


def classify_hesitation(key: str, latency_ms: int, preceding: str, long_pause_ms: int = 1000) -> HesitationType:
    """Guess why the typist paused before ``key``.

    Checks run in priority order; the first match wins. ``preceding`` is the
    target text just before the current position.
    """
    if latency_ms > long_pause_ms:
        return HesitationType.LONG_PAUSE
    if key in ASCII_PUNCTUATION:
        return HesitationType.PUNCTUATION
    if key in string.digits or key in NUMBER_SYMBOLS:
        return HesitationType.NUMBER_SYMBOL

    previous = preceding[-1] if preceding else None
    previous_upper = previous.isupper() if previous is not None else False
    if key.isupper() != previous_upper:
        return HesitationType.CASE_CHANGE
    if previous is not None and previous + key in COMMON_DIGRAPHS:
        return HesitationType.DOUBLE_DIGRAPH
    return HesitationType.TRANSITION


class HesitationDetector:
    """Logs keystrokes whose latency exceeds the hesitation threshold."""

    def __init__(
        self,
        target_text: str,
        threshold_ms: int = 500,
        long_pause_ms: int = 1000,
        context_window: int = 3,
    ) -> None:
        self._target = target_text
        self._threshold_ms = threshold_ms
        self._long_pause_ms = long_pause_ms
        self._window = context_window
        self._patterns: List[HesitationPattern] = []

    @property
    def patterns(self) -> List[HesitationPattern]:
        return self._patterns

    def context(self, position: int) -> tuple[str, str]:
        """Return the target windows before and after ``position``, clipped to the text."""
        preceding = self._target[max(0, position - self._window):position]
        following = self._target[position + 1:position + 1 + self._window]
        return preceding, following

    def observe(self, key: str, latency_ms: int, position: int) -> Optional[HesitationPattern]:
        if latency_ms <= self._threshold_ms:
            return None
        preceding, following = self.context(position)
        pattern = HesitationPattern(
            position=position,
            duration_ms=latency_ms,
            preceding_chars=preceding,
            following_chars=following,
            pattern_type=classify_hesitation(key, latency_ms, preceding, self._long_pause_ms),
        )
        self._patterns.append(pattern)
        return pattern
