"""Recover an enclosing attribute (e.g. a speaker) from an oversized window.

The attribute is not inside the normal context window, so the corpus is
matched a second time with a much larger context size and a separate
marker grammar is applied to that oversized preceding window (widened by
the opener's length, so a marker just before the window is not cut). The
extracted value is joined back onto the normal rows by row id, which is
the row's insertion position in both runs.
"""
from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from kwic.concordance import (
    ConcordanceTable,
    Document,
    build_concordance,
    decode_document,
    document_inputs,
)
from kwic.config import KwicConfig
from kwic.errors import InvalidConfigurationError, InvalidPatternError, KwicError
from kwic.patterns import PatternSpec
from kwic.windows import check_context_size

DEFAULT_IDENTIFIER = r"\w[\w .'-]*?"


@dataclass(frozen=True, slots=True)
class DelimiterGrammar:
    """Marker grammar: ``open`` + identifier + ``close``.

    ``identifier`` is a regex for the captured value; it must not contain
    capturing groups of its own.
    """

    open: str
    close: str
    identifier: str = DEFAULT_IDENTIFIER
    _regex: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.open or not self.close:
            raise InvalidPatternError("Marker delimiters cannot be empty")
        source = f"{re.escape(self.open)}({self.identifier}){re.escape(self.close)}"
        try:
            compiled = re.compile(source)
        except re.error as exc:
            raise InvalidPatternError(
                f"Invalid marker identifier {self.identifier!r}: {exc}"
            ) from exc
        if compiled.groups != 1:
            raise InvalidPatternError(
                "Marker identifier must not contain capturing groups"
            )
        object.__setattr__(self, "_regex", compiled)

    @property
    def regex(self) -> re.Pattern[str]:
        return self._regex


def extract_last_marker(text: str, grammar: DelimiterGrammar) -> str | None:
    """Identifier of the last marker in *text*, stripped; None if absent."""
    last: str | None = None
    for m in grammar.regex.finditer(text):
        last = m.group(1).strip()
    return last or None


def recover_attribute(
    documents: Mapping[str, Any] | Sequence[Document],
    pattern: PatternSpec,
    config: KwicConfig,
    table: ConcordanceTable,
    *,
    grammar: DelimiterGrammar,
    context_size: int,
    column: str = "speaker",
    metadata: Mapping[str, Mapping[str, Any]] | None = None,
) -> ConcordanceTable:
    """Attach ``column`` to every row of *table* from an oversized window.

    *table* must come from ``build_concordance(documents, pattern, config)``
    (it may have been re-sorted or filtered since; rows are joined by id).

    Raises:
        InvalidConfigurationError: ``context_size`` below ``config.context_size``.
        KwicError: a row id of *table* is missing from the oversized run.
    """
    context_size = check_context_size(context_size)
    if context_size < config.context_size:
        raise InvalidConfigurationError(
            f"Oversized context ({context_size}) must be >= the normal "
            f"context ({config.context_size})"
        )
    wide = build_concordance(
        documents, pattern, config.with_context_size(context_size), metadata=metadata,
    )
    raw_by_id = dict(document_inputs(documents))
    texts: dict[str, str] = {}
    values: dict[int, str | None] = {}
    for wide_row in wide.rows:
        if wide_row.document not in texts:
            texts[wide_row.document] = decode_document(
                wide_row.document, raw_by_id[wide_row.document], encoding=config.encoding,
            ).text
        text = texts[wide_row.document]
        # A word window starts at its first unit, which would cut an opener
        # sitting directly in front of it.
        lo = max(0, wide_row.context_start - len(grammar.open))
        values[wide_row.id] = extract_last_marker(text[lo:wide_row.start_offset], grammar)

    rows = []
    for row in table.rows:
        if row.id not in values:
            raise KwicError(f"Row id {row.id} has no oversized counterpart")
        rows.append(row.with_derived(**{column: values[row.id]}))
    return table.with_rows(rows)
