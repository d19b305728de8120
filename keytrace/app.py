"""Entry points used by front ends embedding the keytrace engine."""

import logging
from pathlib import Path
from typing import Iterable, Optional, Union

from keytrace.core.models import SessionReport
from keytrace.core.session import TypingSession
from keytrace.core.settings import EngineSettings, load_settings

logger = logging.getLogger(__name__)


def configure_logging(level: int = logging.INFO) -> None:
    """Configure application-wide logging with a standard format."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def start_session(
    target_text: str,
    settings: Optional[EngineSettings] = None,
    settings_path: Optional[Union[str, Path]] = None,
    **session_kwargs,
) -> TypingSession:
    """Create a session, loading settings from YAML unless they are given."""
    if settings is None:
        settings = load_settings(settings_path)
    session = TypingSession(target_text, settings=settings, **session_kwargs)
    logger.info("Started session: %d characters", len(target_text))
    return session


def replay(target_text: str, keys: Iterable[str], settings: Optional[EngineSettings] = None, **session_kwargs) -> SessionReport:
    """Feed ``keys`` through a fresh session and return its report."""
    session = start_session(target_text, settings=settings, **session_kwargs)
    for key in keys:
        session.handle_key(key)
    return session.generate_report()
