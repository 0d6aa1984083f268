"""Concordance builder: run segmentation, matching and windowing over a corpus.

The single entry point is :func:`build_concordance`, a pure function of
``(documents, pattern, config)``. Documents are processed independently
(optionally on a thread pool) and their rows concatenated in document
order before global row ids are assigned, so output order never depends on
completion order.
"""
from __future__ import annotations

import dataclasses
import logging
from collections import Counter
from collections.abc import Iterator, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

from kwic.config import KwicConfig
from kwic.errors import DocumentError, InvalidConfigurationError
from kwic.patterns import PatternSpec, find_matches, validate_pattern
from kwic.units import segment
from kwic.windows import extract_window

log = logging.getLogger(__name__)

CORE_COLUMNS: tuple[str, ...] = (
    "id",
    "document",
    "preceding_context",
    "keyword",
    "following_context",
    "start_offset",
    "end_offset",
)


@dataclass(frozen=True, slots=True)
class Document:
    """An immutable, already-decoded document."""

    doc_id: str
    text: str
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def length(self) -> int:
        return len(self.text)


@dataclass(frozen=True, slots=True)
class DocumentWarning:
    """A document skipped in non-strict mode."""

    doc_id: str
    code: str  # "decode_error" | "invalid_type"
    message: str


@dataclass(frozen=True, slots=True)
class ConcordanceRow:
    """One keyword-in-context hit."""

    id: int
    document: str
    preceding_context: str
    keyword: str
    following_context: str
    start_offset: int
    end_offset: int
    context_start: int
    context_end: int
    metadata: dict[str, Any] = field(default_factory=dict)
    derived: dict[str, Any] = field(default_factory=dict)

    def with_derived(self, **fields: Any) -> ConcordanceRow:
        """Copy of this row with extra derived columns."""
        return dataclasses.replace(self, derived={**self.derived, **fields})

    def to_record(self) -> dict[str, Any]:
        """Flat dict: core columns, then metadata, then derived columns."""
        record: dict[str, Any] = {
            "id": self.id,
            "document": self.document,
            "preceding_context": self.preceding_context,
            "keyword": self.keyword,
            "following_context": self.following_context,
            "start_offset": self.start_offset,
            "end_offset": self.end_offset,
        }
        record.update(self.metadata)
        record.update(self.derived)
        return record


@dataclass(frozen=True, slots=True)
class ConcordanceTable:
    """Ordered rows plus the per-document warning report."""

    rows: tuple[ConcordanceRow, ...] = ()
    warnings: tuple[DocumentWarning, ...] = ()

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[ConcordanceRow]:
        return iter(self.rows)

    def with_rows(self, rows: Sequence[ConcordanceRow]) -> ConcordanceTable:
        return ConcordanceTable(rows=tuple(rows), warnings=self.warnings)

    def columns(self) -> list[str]:
        """Column names in record order (union across rows)."""
        cols = list(CORE_COLUMNS)
        seen = set(cols)
        for row in self.rows:
            for key in (*row.metadata, *row.derived):
                if key not in seen:
                    seen.add(key)
                    cols.append(key)
        return cols

    def to_records(self) -> list[dict[str, Any]]:
        return [row.to_record() for row in self.rows]

    def document_counts(self) -> dict[str, int]:
        """Row count per document, in first-appearance order."""
        return dict(Counter(row.document for row in self.rows))


# ---------------------------------------------------------------------------
# Input normalization
# ---------------------------------------------------------------------------

def decode_document(
    doc_id: str,
    raw: Any,
    *,
    encoding: str = "utf-8",
    metadata: Mapping[str, Any] | None = None,
) -> Document:
    """Turn raw text or bytes into a :class:`Document`.

    *doc_id* always names the result, even when *raw* is a
    :class:`Document` filed under a different key.

    Raises:
        DocumentError: bytes that do not decode, or an unsupported type.
    """
    meta = dict(metadata or {})
    if isinstance(raw, Document):
        return Document(doc_id, raw.text, {**raw.metadata, **meta})
    if isinstance(raw, str):
        return Document(doc_id, raw, meta)
    if isinstance(raw, bytes | bytearray):
        try:
            text = bytes(raw).decode(encoding)
        except UnicodeDecodeError as exc:
            raise DocumentError(
                doc_id, "decode_error", f"cannot decode as {encoding}: {exc}"
            ) from exc
        return Document(doc_id, text, meta)
    raise DocumentError(
        doc_id, "invalid_type", f"unsupported document type {type(raw).__name__}"
    )


def document_inputs(
    documents: Mapping[str, Any] | Sequence[Document],
) -> list[tuple[str, Any]]:
    """(name, raw) pairs in caller order."""
    if isinstance(documents, Mapping):
        return [(str(k), v) for k, v in documents.items()]
    return [(doc.doc_id, doc) for doc in documents]


def _check_metadata(metadata: Mapping[str, Mapping[str, Any]]) -> None:
    reserved = set(CORE_COLUMNS)
    for doc_id, meta in metadata.items():
        clash = sorted(reserved & set(meta))
        if clash:
            raise InvalidConfigurationError(
                f"Metadata for {doc_id!r} uses reserved column(s): {', '.join(clash)}"
            )


# ---------------------------------------------------------------------------
# Per-document pass
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class _DocumentResult:
    """Rows (without ids) or a warning for one document."""

    rows: tuple[ConcordanceRow, ...] = ()
    warning: DocumentWarning | None = None


def _process_document(
    doc_id: str,
    raw: Any,
    pattern: PatternSpec,
    config: KwicConfig,
    metadata: Mapping[str, Any] | None,
) -> _DocumentResult:
    try:
        doc = decode_document(doc_id, raw, encoding=config.encoding, metadata=metadata)
    except DocumentError as exc:
        if config.strict:
            raise
        log.warning("Skipping document %s: %s", exc.doc_id, exc.message)
        return _DocumentResult(
            warning=DocumentWarning(exc.doc_id, exc.code, exc.message),
        )

    units = segment(doc.text, config.unit_mode, token_pattern=config.token_pattern)
    scan = find_matches(
        units,
        pattern,
        mode=config.unit_mode,
        case_sensitive=config.case_sensitive,
        document_id=doc.doc_id,
        text=doc.text,
    )
    rows: list[ConcordanceRow] = []
    for span in scan:
        window = extract_window(
            doc.text, units, span, config.context_size, config.unit_mode,
        )
        rows.append(ConcordanceRow(
            id=0,
            document=doc.doc_id,
            preceding_context=window.preceding_text,
            keyword=doc.text[span.start_offset:span.end_offset],
            following_context=window.following_text,
            start_offset=span.start_offset,
            end_offset=span.end_offset,
            context_start=window.start_offset,
            context_end=window.end_offset,
            metadata=dict(doc.metadata),
        ))
    log.debug("%s: %d matches over %d units", doc.doc_id, len(rows), len(units))
    return _DocumentResult(rows=tuple(rows))


def build_concordance(
    documents: Mapping[str, Any] | Sequence[Document],
    pattern: PatternSpec,
    config: KwicConfig,
    *,
    metadata: Mapping[str, Mapping[str, Any]] | None = None,
) -> ConcordanceTable:
    """Build the concordance table for *pattern* over *documents*.

    Args:
        documents: Mapping of document name to raw text (``str`` or
            ``bytes``), or a sequence of :class:`Document`. Iteration order
            is the row order.
        pattern: Literal, phrase or regex pattern spec.
        config: Window/matching configuration.
        metadata: Optional per-document fields keyed by document name,
            copied onto every row of that document.

    Returns:
        ConcordanceTable with 1-based global ids. Malformed documents are
        reported in ``table.warnings`` unless ``config.strict`` is set, in
        which case the first :class:`DocumentError` propagates.

    Raises:
        InvalidPatternError: the pattern does not compile.
        InvalidConfigurationError: reserved metadata keys.
    """
    validate_pattern(pattern, mode=config.unit_mode, case_sensitive=config.case_sensitive)
    metadata = metadata or {}
    _check_metadata(metadata)

    inputs = document_inputs(documents)
    if not inputs:
        return ConcordanceTable()

    def run(item: tuple[str, Any]) -> _DocumentResult:
        doc_id, raw = item
        return _process_document(doc_id, raw, pattern, config, metadata.get(doc_id))

    if config.workers > 1 and len(inputs) > 1:
        with ThreadPoolExecutor(max_workers=config.workers) as pool:
            # map() yields in submission order, i.e. document order.
            results = list(pool.map(run, inputs))
    else:
        results = [run(item) for item in inputs]

    rows: list[ConcordanceRow] = []
    warnings: list[DocumentWarning] = []
    next_id = 1
    for result in results:
        if result.warning is not None:
            warnings.append(result.warning)
        for row in result.rows:
            rows.append(dataclasses.replace(row, id=next_id))
            next_id += 1
    return ConcordanceTable(rows=tuple(rows), warnings=tuple(warnings))
