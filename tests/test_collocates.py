"""Tests for kwic.collocates module."""
from __future__ import annotations

from kwic.collocates import (
    KEY_FUNCTIONS,
    count_keys,
    following_word,
    normalize_key,
    preceding_word,
    rank_by_key_frequency,
)
from kwic.concordance import ConcordanceRow, ConcordanceTable, build_concordance
from kwic.config import KwicConfig
from kwic.patterns import LiteralPattern


def _row(row_id: int, *, preceding: str = "", following: str = "") -> ConcordanceRow:
    return ConcordanceRow(
        id=row_id,
        document="d",
        preceding_context=preceding,
        keyword="kw",
        following_context=following,
        start_offset=0,
        end_offset=2,
        context_start=0,
        context_end=2,
    )


class TestNormalizeKey:
    def test_strips_punctuation_and_case(self) -> None:
        assert normalize_key("“Whale,”") == "whale"

    def test_keeps_inner_apostrophe(self) -> None:
        assert normalize_key("Don't!") == "don't"

    def test_pure_punctuation(self) -> None:
        assert normalize_key("--") == ""


class TestKeyFunctions:
    def test_following_word(self) -> None:
        assert following_word(_row(1, following="Brown, fox")) == "brown"

    def test_following_word_skips_punctuation_tokens(self) -> None:
        assert following_word(_row(1, following="-- Fox")) == "fox"

    def test_following_word_empty(self) -> None:
        assert following_word(_row(1)) == ""

    def test_preceding_word(self) -> None:
        assert preceding_word(_row(1, preceding="the Quick.")) == "quick"

    def test_registry(self) -> None:
        assert KEY_FUNCTIONS["post_word"] is following_word
        assert KEY_FUNCTIONS["pre_word"] is preceding_word


class TestGrouping:
    def test_scenario_counts_and_stable_order(self) -> None:
        table = ConcordanceTable(rows=(
            _row(1, following="a"),
            _row(2, following="b"),
            _row(3, following="a"),
        ))
        assert dict(count_keys(table, following_word)) == {"a": 2, "b": 1}

        ranked = rank_by_key_frequency(table, following_word)
        assert [r.id for r in ranked] == [1, 3, 2]
        assert [r.derived for r in ranked] == [
            {"post_word": "a", "frequency": 2},
            {"post_word": "a", "frequency": 2},
            {"post_word": "b", "frequency": 1},
        ]

    def test_ties_keep_insertion_order(self) -> None:
        table = ConcordanceTable(rows=tuple(
            _row(i, following=key) for i, key in enumerate(["c", "b", "a"], start=1)
        ))
        ranked = rank_by_key_frequency(table, following_word)
        assert [r.id for r in ranked] == [1, 2, 3]
        assert count_keys(table, following_word) == [("c", 1), ("b", 1), ("a", 1)]

    def test_custom_columns(self) -> None:
        table = ConcordanceTable(rows=(_row(1, preceding="x y"),))
        ranked = rank_by_key_frequency(
            table, preceding_word, key_column="pre_word", count_column="n",
        )
        assert ranked.rows[0].to_record()["pre_word"] == "y"
        assert ranked.rows[0].to_record()["n"] == 1

    def test_ranking_does_not_mutate_input(self) -> None:
        table = ConcordanceTable(rows=(_row(1, following="a"), _row(2, following="b")))
        rank_by_key_frequency(table, following_word)
        assert table.rows[0].derived == {}

    def test_on_built_table(self) -> None:
        text = "the whale. the whale! the sea, the WHALE the end"
        table = build_concordance(
            {"moby": text},
            LiteralPattern("the"),
            KwicConfig(context_size=1, unit_mode="word"),
        )
        ranked = rank_by_key_frequency(table, following_word)
        assert [r.derived["post_word"] for r in ranked] == [
            "whale", "whale", "whale", "sea", "end",
        ]
        assert ranked.columns()[-2:] == ["post_word", "frequency"]
        assert ranked.warnings == table.warnings

    def test_empty_table(self) -> None:
        assert len(rank_by_key_frequency(ConcordanceTable(), following_word)) == 0
        assert count_keys(ConcordanceTable(), following_word) == []
