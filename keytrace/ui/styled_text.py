"""Styled line model for renderers: typed prefix, error tail, pending text."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List


class SpanStyle(str, Enum):
    CORRECT = "correct"
    CURSOR = "cursor"
    ERROR = "error"
    ERROR_CURSOR = "error_cursor"
    PENDING = "pending"
    END_CURSOR = "end_cursor"


@dataclass(frozen=True)
class StyledSpan:
    text: str
    style: SpanStyle


Line = List[StyledSpan]


class _LineBuilder:
    def __init__(self, tab_width: int) -> None:
        self._tab = " " * tab_width
        self.lines: List[Line] = []
        self._current: Line = []

    def add(self, char: str, style: SpanStyle) -> None:
        if char == "\n":
            self.lines.append(self._current)
            self._current = []
        elif char == "\t":
            self._current.append(StyledSpan(self._tab, style))
        else:
            self._current.append(StyledSpan(char, style))

    def finish(self) -> List[Line]:
        if self._current:
            self.lines.append(self._current)
            self._current = []
        return self.lines


def build_styled_lines(
    target_text: str,
    user_input: str,
    position: int,
    has_error: bool,
    is_frozen: bool,
    consecutive_errors: int,
    error_display_limit: int = 10,
    tab_width: int = 4,
) -> List[Line]:
    """Lay out the session as lines of styled spans.

    The last correct character carries the cursor unless the session is in
    an error state, in which case the last displayed error character does.
    """
    builder = _LineBuilder(tab_width)
    typed = min(position, len(target_text))
    show_cursor = not has_error and not is_frozen

    for i in range(typed):
        style = SpanStyle.CURSOR if show_cursor and i == typed - 1 else SpanStyle.CORRECT
        builder.add(target_text[i], style)

    if has_error and len(user_input) > position:
        stop = min(len(user_input), position + error_display_limit)
        wrong = [
            user_input[i]
            for i in range(position, stop)
            if i >= len(target_text) or user_input[i] != target_text[i]
        ]
        for idx, char in enumerate(wrong):
            style = SpanStyle.ERROR_CURSOR if idx == len(wrong) - 1 else SpanStyle.ERROR
            builder.add(char, style)

    pending_start = min(position + consecutive_errors, len(target_text)) if has_error else position
    for char in target_text[pending_start:]:
        builder.add(char, SpanStyle.PENDING)

    if position >= len(target_text) and not has_error:
        builder.add("|", SpanStyle.END_CURSOR)

    return builder.finish()


def line_text(line: Line) -> str:
    return "".join(span.text for span in line)
