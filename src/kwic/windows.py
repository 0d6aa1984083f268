"""Context-window extraction around a match span.

Word windows and character windows are separate policies: ``size`` counts
units in the first and characters in the second. Both truncate at document
edges and never pad.
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from kwic.errors import InvalidConfigurationError
from kwic.patterns import MatchSpan
from kwic.units import Unit, validate_unit_mode


@dataclass(frozen=True, slots=True)
class ContextWindow:
    """Preceding/following context for one match.

    ``start_offset``/``end_offset`` give the character extent of the whole
    window (preceding context through following context).
    """

    preceding_text: str
    following_text: str
    preceding_units: int
    following_units: int
    start_offset: int
    end_offset: int


def check_context_size(size: object) -> int:
    """Return *size* as a validated non-negative int."""
    if isinstance(size, bool) or not isinstance(size, int):
        raise InvalidConfigurationError(
            f"Context size must be an integer, got {size!r}"
        )
    if size < 0:
        raise InvalidConfigurationError(f"Context size must be >= 0, got {size}")
    return size


def word_window(
    text: str,
    units: Sequence[Unit],
    span: MatchSpan,
    size: int,
) -> ContextWindow:
    """Window of up to *size* word units on each side of *span*.

    Window text is sliced from the raw document between the first and last
    window unit, so separators inside the window survive while the
    separators touching the match do not.
    """
    size = check_context_size(size)
    start = span.start_unit_index
    end = span.end_unit_index

    lo = max(0, start - size)
    if lo < start:
        preceding = text[units[lo].start_offset:units[start - 1].end_offset]
        window_start = units[lo].start_offset
    else:
        preceding = ""
        window_start = span.start_offset

    hi = min(len(units) - 1, end + size)
    if hi > end:
        following = text[units[end + 1].start_offset:units[hi].end_offset]
        window_end = units[hi].end_offset
    else:
        following = ""
        window_end = span.end_offset

    return ContextWindow(
        preceding_text=preceding,
        following_text=following,
        preceding_units=start - lo,
        following_units=hi - end,
        start_offset=window_start,
        end_offset=window_end,
    )


def character_window(text: str, span: MatchSpan, size: int) -> ContextWindow:
    """Window of up to *size* characters on each side of *span*."""
    size = check_context_size(size)
    lo = max(0, span.start_offset - size)
    hi = min(len(text), span.end_offset + size)
    return ContextWindow(
        preceding_text=text[lo:span.start_offset],
        following_text=text[span.end_offset:hi],
        preceding_units=span.start_offset - lo,
        following_units=hi - span.end_offset,
        start_offset=lo,
        end_offset=hi,
    )


def extract_window(
    text: str,
    units: Sequence[Unit],
    span: MatchSpan,
    size: int,
    mode: str,
) -> ContextWindow:
    """Dispatch to :func:`word_window` or :func:`character_window` by *mode*."""
    if validate_unit_mode(mode) == "word":
        return word_window(text, units, span, size)
    return character_window(text, span, size)
