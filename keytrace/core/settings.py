from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = Path(__file__).resolve().parent.parent / "data" / "settings.yaml"


@dataclass(frozen=True)
class EngineSettings:
    """Thresholds used by the session state machine and the analyzers.

    Millisecond values apply to inter-key latency, position values to
    character offsets in the target text.
    """

    freeze_threshold: int = 10
    hesitation_threshold_ms: int = 500
    long_pause_ms: int = 1000
    wpm_sample_interval: int = 10
    context_window: int = 3
    cluster_gap: int = 10
    rhythm_window: int = 5
    rhythm_break_factor: float = 2.0
    rhythm_break_min_ms: int = 400
    slow_transition_ms: int = 300
    min_pair_occurrences: int = 2
    top_n: int = 10
    error_display_limit: int = 10
    tab_width: int = 4
    chars_per_word: float = 5.0


def load_settings(path: Optional[Union[str, Path]] = None) -> EngineSettings:
    """Load settings from a YAML mapping, overlaying it on the built-in defaults.

    Without ``path`` the packaged ``data/settings.yaml`` is used.
    """
    settings_path = Path(path) if path is not None else DEFAULT_SETTINGS_PATH
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    raw = yaml.safe_load(settings_path.read_text(encoding="utf-8"))
    if raw is None:
        logger.warning("Settings file %s is empty, using defaults", settings_path)
        return EngineSettings()
    if not isinstance(raw, dict):
        raise ValueError(f"{settings_path.name}: expected a YAML mapping of settings")
    return settings_from_mapping(raw, source=settings_path.name)


def settings_from_mapping(raw: Dict[str, Any], source: str = "settings") -> EngineSettings:
    known = {f.name: f for f in fields(EngineSettings)}
    unknown = sorted(set(raw) - set(known))
    if unknown:
        raise ValueError(f"{source}: unknown settings {', '.join(unknown)}")

    defaults = EngineSettings()
    values: Dict[str, Any] = {}
    for key, value in raw.items():
        default = getattr(defaults, key)
        # bool is an int subclass but never a valid threshold
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"{source}: '{key}' must be a number, got {value!r}")
        if value < 0:
            raise ValueError(f"{source}: '{key}' must not be negative")
        if isinstance(default, int) and not isinstance(value, int):
            raise ValueError(f"{source}: '{key}' must be an integer")
        values[key] = float(value) if isinstance(default, float) else value

    if values.get("freeze_threshold", defaults.freeze_threshold) < 1:
        raise ValueError(f"{source}: 'freeze_threshold' must be at least 1")
    if values.get("chars_per_word", defaults.chars_per_word) <= 0:
        raise ValueError(f"{source}: 'chars_per_word' must be positive")
    return replace(defaults, **values)
