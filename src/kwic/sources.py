"""Corpus loaders: read documents into memory before the engine runs.

Loaders return ordered mappings of document name to raw content. Text files
are returned as bytes so that decoding failures surface as per-document
warnings in :func:`kwic.concordance.build_concordance` instead of aborting
the load.
"""
from __future__ import annotations

import importlib
import re
from pathlib import Path
from typing import Any

# Dynamic DuckDB import for pyright compatibility
_duckdb_mod = importlib.import_module("duckdb")

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _quote_identifier(name: str) -> str:
    if not _IDENTIFIER_RE.match(name):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return f'"{name}"'


def read_text_dir(root: Path, pattern: str = "*.txt") -> dict[str, bytes]:
    """Read every file under *root* matching *pattern* (recursive).

    Keys are POSIX paths relative to *root*; order is sorted by key so the
    corpus order is stable across filesystems.
    """
    if not root.is_dir():
        raise FileNotFoundError(f"Corpus directory not found: {root}")
    paths = sorted(
        (p for p in root.rglob(pattern) if p.is_file()),
        key=lambda p: p.relative_to(root).as_posix(),
    )
    return {p.relative_to(root).as_posix(): p.read_bytes() for p in paths}


def read_duckdb_documents(
    db_path: Path,
    *,
    table: str = "documents",
    id_column: str = "doc_id",
    text_column: str = "text",
    order_by: str | None = None,
) -> dict[str, Any]:
    """Read ``(id, text)`` pairs from a DuckDB table, opened read-only.

    Rows are ordered by ``order_by`` (default: the id column).
    """
    if not db_path.exists():
        raise FileNotFoundError(f"Database not found: {db_path}")
    query = (
        f"SELECT {_quote_identifier(id_column)}, {_quote_identifier(text_column)} "
        f"FROM {_quote_identifier(table)} "
        f"ORDER BY {_quote_identifier(order_by or id_column)}"
    )
    conn: Any = _duckdb_mod.connect(str(db_path), read_only=True)
    try:
        rows = conn.execute(query).fetchall()
    finally:
        conn.close()
    return {str(r[0]): ("" if r[1] is None else r[1]) for r in rows}
