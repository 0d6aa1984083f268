"""Unit model: split a document into addressable words or characters.

Every unit carries half-open character offsets into the raw document, so
windows and keywords can always be sliced back out of the original text.

Two modes:

* ``word``: tokens matched by a token pattern (default: runs of word
  characters with internal apostrophes/hyphens). Separators and
  punctuation between tokens are not units.
* ``character``: one unit per code point, ``end_offset == start_offset + 1``.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal, TypeAlias

from kwic.errors import InvalidConfigurationError

UnitMode: TypeAlias = Literal["word", "character"]

UNIT_MODES: tuple[str, ...] = ("word", "character")

WORD_TOKEN_PATTERN = r"\w+(?:['’-]\w+)*"
_WORD_TOKEN_RE: re.Pattern[str] = re.compile(WORD_TOKEN_PATTERN)


@dataclass(frozen=True, slots=True)
class Unit:
    """One addressable unit of a document."""

    text: str
    start_offset: int
    end_offset: int


def validate_unit_mode(mode: str) -> UnitMode:
    """Return *mode* if it is a known unit mode, else raise."""
    if mode == "word":
        return "word"
    if mode == "character":
        return "character"
    raise InvalidConfigurationError(
        f"Unknown unit mode {mode!r}; expected one of {', '.join(UNIT_MODES)}"
    )


def compile_token_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a word-token regex, rejecting patterns that can match empty."""
    if pattern == WORD_TOKEN_PATTERN:
        return _WORD_TOKEN_RE
    try:
        compiled = re.compile(pattern)
    except re.error as exc:
        raise InvalidConfigurationError(
            f"Invalid token pattern {pattern!r}: {exc}"
        ) from exc
    if compiled.fullmatch("") is not None:
        raise InvalidConfigurationError(
            f"Token pattern {pattern!r} matches the empty string"
        )
    return compiled


def segment_words(
    text: str,
    *,
    token_pattern: str = WORD_TOKEN_PATTERN,
) -> tuple[Unit, ...]:
    """Split *text* into word units in document order."""
    token_re = compile_token_pattern(token_pattern)
    return tuple(
        Unit(m.group(0), m.start(), m.end())
        for m in token_re.finditer(text)
        if m.end() > m.start()
    )


def segment_characters(text: str) -> tuple[Unit, ...]:
    """Split *text* into one unit per character."""
    return tuple(Unit(ch, i, i + 1) for i, ch in enumerate(text))


def segment(
    text: str,
    mode: str,
    *,
    token_pattern: str = WORD_TOKEN_PATTERN,
) -> tuple[Unit, ...]:
    """Segment *text* according to *mode* (``word`` or ``character``).

    The mode has no default: it decides what a context size measures.
    """
    checked = validate_unit_mode(mode)
    if checked == "word":
        return segment_words(text, token_pattern=token_pattern)
    return segment_characters(text)


def units_text(units: tuple[Unit, ...], mode: str) -> str:
    """Join unit texts with the separator natural to *mode*."""
    joiner = " " if validate_unit_mode(mode) == "word" else ""
    return joiner.join(u.text for u in units)
