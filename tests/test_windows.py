"""Tests for kwic.windows module."""
from __future__ import annotations

import pytest

from kwic.errors import InvalidConfigurationError
from kwic.patterns import LiteralPattern, PhrasePattern, RegexPattern, find_matches
from kwic.units import segment
from kwic.windows import (
    ContextWindow,
    character_window,
    check_context_size,
    extract_window,
    word_window,
)

DOC = "the quick brown fox the lazy dog"


def _first_span(text: str, spec, mode: str = "word"):
    units = segment(text, mode)
    return units, next(iter(find_matches(units, spec, mode=mode)))


class TestWordWindow:
    def test_clamped_at_start(self) -> None:
        units, span = _first_span(DOC, LiteralPattern("the"))
        w = word_window(DOC, units, span, 1)
        assert w.preceding_text == ""
        assert w.following_text == "quick"
        assert w.preceding_units == 0
        assert w.following_units == 1

    def test_clamped_at_end(self) -> None:
        units, span = _first_span(DOC, LiteralPattern("dog"))
        w = word_window(DOC, units, span, 3)
        assert w.preceding_text == "fox the lazy"
        assert w.following_text == ""
        assert w.following_units == 0

    def test_phrase_window(self) -> None:
        units, span = _first_span(DOC, PhrasePattern(("brown", "fox")))
        w = word_window(DOC, units, span, 2)
        assert w == ContextWindow(
            preceding_text="the quick",
            following_text="the lazy",
            preceding_units=2,
            following_units=2,
            start_offset=0,
            end_offset=28,
        )

    def test_zero_size_is_empty(self) -> None:
        units, span = _first_span(DOC, LiteralPattern("fox"))
        w = word_window(DOC, units, span, 0)
        assert (w.preceding_text, w.following_text) == ("", "")
        assert (w.start_offset, w.end_offset) == (span.start_offset, span.end_offset)

    def test_separators_inside_window_preserved(self) -> None:
        text = "Enter, GHOST! fox; runs"
        units, span = _first_span(text, LiteralPattern("fox"))
        w = word_window(text, units, span, 2)
        assert w.preceding_text == "Enter, GHOST"
        assert w.following_text == "runs"

    def test_larger_than_document(self) -> None:
        units, span = _first_span(DOC, LiteralPattern("fox"))
        w = word_window(DOC, units, span, 100)
        assert w.preceding_text == "the quick brown"
        assert w.following_text == "the lazy dog"
        assert (w.start_offset, w.end_offset) == (0, len(DOC))


class TestCharacterWindow:
    def test_counts_characters(self) -> None:
        units, span = _first_span(DOC, LiteralPattern("fox"), "character")
        w = character_window(DOC, span, 4)
        assert w.preceding_text == "own "
        assert w.following_text == " the"
        assert (w.preceding_units, w.following_units) == (4, 4)

    def test_clamped_both_edges(self) -> None:
        text = "fox"
        units, span = _first_span(text, LiteralPattern("fox"), "character")
        w = character_window(text, span, 10)
        assert (w.preceding_text, w.following_text) == ("", "")
        assert (w.start_offset, w.end_offset) == (0, 3)

    def test_regex_span(self) -> None:
        text = "cat bat tap mat"
        units, span = _first_span(text, RegexPattern(r"\bt\w+"), "character")
        w = character_window(text, span, 2)
        assert (w.preceding_text, w.following_text) == ("t ", " m")


class TestExtractWindow:
    def test_modes_are_independent(self) -> None:
        word_units, word_span = _first_span(DOC, LiteralPattern("fox"), "word")
        char_units, char_span = _first_span(DOC, LiteralPattern("fox"), "character")
        by_word = extract_window(DOC, word_units, word_span, 1, "word")
        by_char = extract_window(DOC, char_units, char_span, 1, "character")
        assert by_word.preceding_text == "brown"
        assert by_char.preceding_text == " "

    def test_negative_size_rejected(self) -> None:
        units, span = _first_span(DOC, LiteralPattern("fox"))
        with pytest.raises(InvalidConfigurationError, match=">= 0"):
            extract_window(DOC, units, span, -1, "word")


class TestCheckContextSize:
    def test_accepts_zero(self) -> None:
        assert check_context_size(0) == 0

    @pytest.mark.parametrize("value", [1.5, "3", True, None])
    def test_rejects_non_int(self, value: object) -> None:
        with pytest.raises(InvalidConfigurationError, match="integer"):
            check_context_size(value)
