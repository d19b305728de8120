"""Shared fixtures: a controllable clock for deterministic latencies."""

from __future__ import annotations

from typing import Iterable

import pytest

from keytrace.core.session import TypingSession


class FakeClock:
    """Monotonic clock that only moves when told to (values in seconds)."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000.0


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


def type_keys(session: TypingSession, clock: FakeClock, keys: Iterable[str], latency_ms: float = 100) -> None:
    """Advance the clock by ``latency_ms`` before each key and feed it to the session."""
    for key in keys:
        clock.advance_ms(latency_ms)
        session.handle_key(key)


def type_with_latencies(session: TypingSession, clock: FakeClock, pairs: Iterable[tuple]) -> None:
    for key, latency_ms in pairs:
        clock.advance_ms(latency_ms)
        session.handle_key(key)
