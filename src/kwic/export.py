"""Writers for concordance tables: JSONL, CSV and DuckDB."""
from __future__ import annotations

import importlib
from pathlib import Path
from typing import Any

from kwic.concordance import ConcordanceTable
from kwic.io_utils import save_jsonl

# Dynamic DuckDB import for pyright compatibility
_duckdb_mod = importlib.import_module("duckdb")


def _column_type(values: list[Any]) -> str:
    present = [v for v in values if v is not None]
    if present and all(isinstance(v, bool) for v in present):
        return "BOOLEAN"
    if present and all(isinstance(v, int) and not isinstance(v, bool) for v in present):
        return "BIGINT"
    if present and all(
        isinstance(v, int | float) and not isinstance(v, bool) for v in present
    ):
        return "DOUBLE"
    return "VARCHAR"


def _cell(value: Any, sql_type: str) -> Any:
    if value is None or sql_type != "VARCHAR":
        return value
    return str(value)


def write_jsonl(table: ConcordanceTable, path: Path) -> None:
    """One JSON object per row."""
    save_jsonl(table.to_records(), path)


def write_duckdb(
    table: ConcordanceTable,
    db_path: Path,
    *,
    table_name: str = "concordance",
    replace: bool = True,
) -> int:
    """Write *table* into a DuckDB table; returns the number of rows written.

    Column types are inferred per column (BIGINT, DOUBLE, BOOLEAN, VARCHAR).
    """
    if not table_name.replace("_", "").isalnum():
        raise ValueError(f"Invalid table name: {table_name!r}")
    columns = table.columns()
    records = table.to_records()
    types = {
        col: _column_type([r.get(col) for r in records]) for col in columns
    }
    types["id"] = "BIGINT"
    types["start_offset"] = "BIGINT"
    types["end_offset"] = "BIGINT"

    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn: Any = _duckdb_mod.connect(str(db_path))
    try:
        if replace:
            conn.execute(f'DROP TABLE IF EXISTS "{table_name}"')
        col_defs = ", ".join(f'"{c}" {types[c]}' for c in columns)
        conn.execute(f'CREATE TABLE "{table_name}" ({col_defs})')
        if records:
            placeholders = ", ".join(["?"] * len(columns))
            conn.executemany(
                f'INSERT INTO "{table_name}" VALUES ({placeholders})',
                [
                    [_cell(r.get(c), types[c]) for c in columns]
                    for r in records
                ],
            )
    finally:
        conn.close()
    return len(records)


def write_csv(table: ConcordanceTable, path: Path) -> None:
    """Comma-delimited export with a header row, via an in-memory DuckDB."""
    path.parent.mkdir(parents=True, exist_ok=True)
    columns = table.columns()
    records = table.to_records()
    conn: Any = _duckdb_mod.connect(":memory:")
    try:
        col_defs = ", ".join(f'"{c}" VARCHAR' for c in columns)
        conn.execute(f"CREATE TABLE concordance ({col_defs})")
        if records:
            placeholders = ", ".join(["?"] * len(columns))
            conn.executemany(
                f"INSERT INTO concordance VALUES ({placeholders})",
                [
                    [None if r.get(c) is None else str(r.get(c)) for c in columns]
                    for r in records
                ],
            )
        target = str(path).replace("'", "''")
        conn.execute(
            f"COPY concordance TO '{target}' (HEADER, DELIMITER ',')"
        )
    finally:
        conn.close()
