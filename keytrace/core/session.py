from __future__ import annotations

import logging
import time
from typing import Callable, Dict, List, Optional, Tuple

from keytrace.core.hesitation import HesitationDetector
from keytrace.core.key_stats import KeyStatsCollector
from keytrace.core.models import (
    ErrorEvent,
    ErrorType,
    HesitationPattern,
    KeyStat,
    SessionReport,
    TypingRhythm,
)
from keytrace.core.report import ReportGenerator
from keytrace.core.settings import EngineSettings
from keytrace.ui.styled_text import Line, build_styled_lines

logger = logging.getLogger(__name__)

BACKSPACE = "\x08"


def to_ms(seconds: float) -> int:
    return int(round(seconds * 1000))


class TypingSession:
    """Keystroke state machine for one pass over a target text.

    States:
      * **Ready** – every typed character so far matches the target.
      * **Error buffering** – wrong characters are held after the last
        correct position until removed with backspace or overtyped with
        the expected character.
      * **Frozen** – after ``freeze_threshold`` consecutive errors only
        backspace is accepted.

    Every call to :meth:`handle_key` refreshes the last-keystroke clock, so
    the next latency is always measured from the most recent physical key.
    """

    def __init__(
        self,
        target_text: str,
        settings: Optional[EngineSettings] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize a session for ``target_text``; ``clock`` returns monotonic seconds."""
        self._target = target_text
        self._settings = settings or EngineSettings()
        self._clock = clock
        self._session_start = clock()
        self._session_end: Optional[float] = None
        self._last_keystroke: Optional[float] = None

        self._user_input = ""
        self._position = 0
        self._has_error = False
        self._consecutive_errors = 0
        self._is_frozen = False
        self._total_corrections = 0

        self._errors: List[ErrorEvent] = []
        self._uncorrected: List[ErrorEvent] = []
        self._stats = KeyStatsCollector(self._settings.wpm_sample_interval)
        self._hesitations = HesitationDetector(
            target_text,
            threshold_ms=self._settings.hesitation_threshold_ms,
            long_pause_ms=self._settings.long_pause_ms,
            context_window=self._settings.context_window,
        )

    @property
    def target_text(self) -> str:
        return self._target

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    @property
    def user_input(self) -> str:
        """Characters actually typed, including the uncorrected error tail."""
        return self._user_input

    @property
    def current_position(self) -> int:
        """Index of the next target character to type correctly."""
        return self._position

    @property
    def has_error(self) -> bool:
        return self._has_error

    @property
    def consecutive_errors(self) -> int:
        return self._consecutive_errors

    @property
    def is_frozen(self) -> bool:
        return self._is_frozen

    @property
    def total_corrections(self) -> int:
        """Backspaces used to remove buffered errors."""
        return self._total_corrections

    @property
    def session_start(self) -> float:
        return self._session_start

    @property
    def session_end(self) -> Optional[float]:
        """Clock reading when the last character was typed, or None."""
        return self._session_end

    @property
    def errors(self) -> List[ErrorEvent]:
        return self._errors

    @property
    def key_stats(self) -> Dict[str, KeyStat]:
        return self._stats.key_stats

    @property
    def typing_rhythm(self) -> List[TypingRhythm]:
        return self._stats.rhythm

    @property
    def hesitation_patterns(self) -> List[HesitationPattern]:
        return self._hesitations.patterns

    @property
    def wpm_samples(self) -> List[Tuple[float, float]]:
        return self._stats.wpm_samples

    @property
    def stats(self) -> KeyStatsCollector:
        return self._stats

    def handle_key(self, key: str) -> None:
        """Feed one key event: a single character or :data:`BACKSPACE`."""
        if not isinstance(key, str) or len(key) != 1:
            raise ValueError(f"expected a single character or backspace, got {key!r}")

        now = self._clock()
        latency = now - self._last_keystroke if self._last_keystroke is not None else 0.0
        self._last_keystroke = now

        if key == BACKSPACE:
            self._handle_backspace(now)
            return
        if self._is_frozen:
            return
        if self._position >= len(self._target):
            # Nothing left to type.
            return

        latency_ms = to_ms(latency)
        position = self._position
        self._user_input += key
        self._stats.record(
            key,
            latency_ms,
            position,
            self._has_error,
            now=now,
            elapsed=now - self._session_start,
            current_wpm=lambda: self.calculate_wpm(now),
        )
        self._hesitations.observe(key, latency_ms, position)

        expected = self._target[position]
        if key != expected:
            self._handle_error(key, expected, now)
            return

        if self._has_error:
            self._correct_by_overtype(now)
        else:
            self._position += 1
        if self._position >= len(self._target):
            self._session_end = now
            logger.debug("Session complete after %d keystrokes", len(self._stats.rhythm))

    def _handle_backspace(self, now: float) -> None:
        if not self._user_input:
            return
        self._user_input = self._user_input[:-1]
        if self._has_error:
            if self._consecutive_errors > 0:
                self._consecutive_errors -= 1
            if self._consecutive_errors == 0:
                self._has_error = False
            if self._is_frozen:
                logger.debug("Unfrozen at position %d", self._position)
            self._is_frozen = False
            self._total_corrections += 1
            if self._uncorrected:
                self._uncorrected.pop().mark_corrected(now - self._session_start)
            if not self._has_error:
                self._mark_buffer_corrected(now)
        elif self._position > 0:
            self._position -= 1

    def _handle_error(self, actual: str, expected: str, now: float) -> None:
        error_type = ErrorType.REPEAT if actual == expected else ErrorType.SUBSTITUTION
        error = ErrorEvent(
            error_type=error_type,
            position=self._position,
            expected_char=expected,
            actual_char=actual,
            timestamp=now - self._session_start,
        )
        self._errors.append(error)
        self._uncorrected.append(error)
        self._has_error = True
        self._consecutive_errors += 1
        if self._consecutive_errors >= self._settings.freeze_threshold:
            self._is_frozen = True
            logger.debug(
                "Frozen after %d consecutive errors at position %d",
                self._consecutive_errors,
                self._position,
            )

    def _correct_by_overtype(self, now: float) -> None:
        """The expected character was typed over the error tail: drop the tail."""
        self._has_error = False
        self._consecutive_errors = 0
        self._position += 1
        # The input buffer becomes exactly the committed prefix again.
        self._user_input = self._target[: self._position]
        self._mark_buffer_corrected(now)
        logger.debug("Overtype correction, advanced to position %d", self._position)

    def _mark_buffer_corrected(self, now: float) -> None:
        for error in self._uncorrected:
            error.mark_corrected(now - self._session_start)
        self._uncorrected = []

    def is_complete(self) -> bool:
        """Return True once the whole target is typed with no pending error."""
        return self._position >= len(self._target) and not self._has_error

    def elapsed(self, now: Optional[float] = None) -> float:
        """Seconds since the session started."""
        if now is None:
            now = self._clock()
        return max(0.0, now - self._session_start)

    def calculate_wpm(self, now: Optional[float] = None) -> float:
        """Words per minute so far, counting only correctly typed characters."""
        return self.calculate_wpm_with_duration(self.elapsed(now))

    def calculate_wpm_with_duration(self, duration: float) -> float:
        minutes = duration / 60.0
        if minutes <= 0:
            return 0.0
        return (self._position / self._settings.chars_per_word) / minutes

    def calculate_accuracy(self) -> float:
        """Correct progress relative to every character currently in the input buffer."""
        if not self._user_input:
            return 100.0
        return self._position / len(self._user_input) * 100.0

    def get_status(self) -> str:
        limit = self._settings.freeze_threshold
        if self._is_frozen:
            return f"FROZEN: {limit} consecutive errors! Use backspace to correct."
        if self._has_error:
            return f"ERROR BUFFER: {self._consecutive_errors} of {limit} errors - use backspace to correct"
        return "Ready"

    def generate_styled_text(self) -> List[Line]:
        return build_styled_lines(
            self._target,
            self._user_input,
            self._position,
            self._has_error,
            self._is_frozen,
            self._consecutive_errors,
            error_display_limit=self._settings.error_display_limit,
            tab_width=self._settings.tab_width,
        )

    def generate_report(self) -> SessionReport:
        return ReportGenerator(self._settings).generate(self)
