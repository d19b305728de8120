from __future__ import annotations

import copy
import logging
from typing import TYPE_CHECKING, Optional

from keytrace.core.models import SessionReport
from keytrace.core.settings import EngineSettings
from keytrace.core.weakness import WeaknessAnalyzer

if TYPE_CHECKING:
    from keytrace.core.session import TypingSession

logger = logging.getLogger(__name__)


class ReportGenerator:
    """Builds a :class:`SessionReport` from a session's accumulated logs.

    The report holds copies of everything it reads, so it stays valid after
    the session is discarded.
    """

    def __init__(self, settings: Optional[EngineSettings] = None) -> None:
        self._settings = settings or EngineSettings()

    def generate(self, session: TypingSession) -> SessionReport:
        start = session.session_start
        if session.session_end is not None:
            duration = session.session_end - start
        else:
            duration = session.elapsed()

        total_keys = session.stats.total_keys()
        average_latency_ms = session.stats.total_latency_ms() / total_keys if total_keys else 0.0

        corrected = [e.correction_latency for e in session.errors if e.correction_latency is not None]
        average_correction = sum(corrected) / len(corrected) if corrected else None

        analyzer = WeaknessAnalyzer(session.target_text, self._settings)
        analysis = analyzer.analyze(session.typing_rhythm, session.errors)

        report = SessionReport(
            session_duration=duration,
            total_characters=len(session.user_input),
            correct_characters=session.current_position,
            wpm=session.calculate_wpm_with_duration(duration),
            accuracy=session.calculate_accuracy(),
            average_latency_ms=average_latency_ms,
            errors=tuple(copy.deepcopy(session.errors)),
            key_stats=copy.deepcopy(session.key_stats),
            total_corrections=session.total_corrections,
            average_correction_latency=average_correction,
            typing_rhythm=tuple(session.typing_rhythm),
            hesitation_patterns=tuple(session.hesitation_patterns),
            weakness_analysis=analysis,
            wpm_over_time=tuple((instant - start, wpm) for instant, wpm in session.wpm_samples),
        )
        logger.info(
            "Report: %d chars, %.1f wpm, %.1f%% accuracy, %d errors",
            report.correct_characters,
            report.wpm,
            report.accuracy,
            report.error_count,
        )
        return report
