"""Derived-key grouping and frequency ranking of concordance rows.

Ranking is two explicit passes: first compute every row's key and a count
side table, then stable-sort rows by the looked-up count (descending), so
rows sharing a count keep their original relative order.
"""
from __future__ import annotations

import re
from collections import Counter
from collections.abc import Callable
from typing import TypeAlias

from kwic.concordance import ConcordanceRow, ConcordanceTable

KeyFunction: TypeAlias = Callable[[ConcordanceRow], str]

_EDGE_PUNCT_RE = re.compile(r"^[^\w']+|[^\w']+$")


def normalize_key(token: str) -> str:
    """Lower-case *token* and strip surrounding punctuation.

    Inner apostrophes and hyphens are kept (``don't``, ``well-known``).
    """
    return _EDGE_PUNCT_RE.sub("", token.strip()).lower()


def following_word(row: ConcordanceRow) -> str:
    """First word of the following context, normalized; ``""`` if none."""
    for token in row.following_context.split():
        key = normalize_key(token)
        if key:
            return key
    return ""


def preceding_word(row: ConcordanceRow) -> str:
    """Last word of the preceding context, normalized; ``""`` if none."""
    for token in reversed(row.preceding_context.split()):
        key = normalize_key(token)
        if key:
            return key
    return ""


KEY_FUNCTIONS: dict[str, KeyFunction] = {
    "post_word": following_word,
    "pre_word": preceding_word,
}


def count_keys(table: ConcordanceTable, key_fn: KeyFunction) -> list[tuple[str, int]]:
    """Group rows by ``key_fn`` and count them.

    Returns (key, count) pairs, most frequent first; ties keep the order in
    which keys first appear in the table.
    """
    counts = Counter(key_fn(row) for row in table.rows)
    return sorted(counts.items(), key=lambda kv: -kv[1])


def rank_by_key_frequency(
    table: ConcordanceTable,
    key_fn: KeyFunction,
    *,
    key_column: str = "post_word",
    count_column: str = "frequency",
) -> ConcordanceTable:
    """Attach ``key_column``/``count_column`` and reorder by descending count."""
    # Pass 1: derived key per row plus the per-key count side table.
    keys = [key_fn(row) for row in table.rows]
    counts = Counter(keys)

    # Pass 2: stable sort on the looked-up count.
    order = sorted(range(len(keys)), key=lambda i: -counts[keys[i]])
    rows = [
        table.rows[i].with_derived(**{key_column: keys[i], count_column: counts[keys[i]]})
        for i in order
    ]
    return table.with_rows(rows)
