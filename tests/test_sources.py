"""Tests for kwic.sources module."""
from __future__ import annotations

from pathlib import Path

import duckdb
import pytest

from kwic.concordance import build_concordance
from kwic.config import KwicConfig
from kwic.patterns import LiteralPattern
from kwic.sources import read_duckdb_documents, read_text_dir


def _create_docs_db(path: Path) -> None:
    con = duckdb.connect(str(path))
    con.execute("CREATE TABLE plays (play_id VARCHAR, body VARCHAR, year INTEGER)")
    con.execute(
        "INSERT INTO plays VALUES "
        "('macbeth', 'out, damned spot', 1606), "
        "('hamlet', 'to be or not to be', 1600), "
        "('blank', NULL, 1700)"
    )
    con.close()


class TestReadTextDir:
    def test_sorted_relative_keys(self, tmp_path: Path) -> None:
        (tmp_path / "b.txt").write_text("second")
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "a.txt").write_text("nested")
        (tmp_path / "a.txt").write_text("first")
        (tmp_path / "skip.md").write_text("ignored")
        docs = read_text_dir(tmp_path)
        assert list(docs) == ["a.txt", "b.txt", "sub/a.txt"]
        assert docs["a.txt"] == b"first"

    def test_missing_dir(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            read_text_dir(tmp_path / "nope")

    def test_bad_file_becomes_warning(self, tmp_path: Path) -> None:
        (tmp_path / "good.txt").write_text("a fox")
        (tmp_path / "bad.txt").write_bytes(b"\xff fox")
        table = build_concordance(
            read_text_dir(tmp_path),
            LiteralPattern("fox"),
            KwicConfig(context_size=1, unit_mode="word"),
        )
        assert [r.document for r in table] == ["good.txt"]
        assert [w.doc_id for w in table.warnings] == ["bad.txt"]


class TestReadDuckdbDocuments:
    def test_ordered_by_id(self, tmp_path: Path) -> None:
        db_path = tmp_path / "plays.duckdb"
        _create_docs_db(db_path)
        docs = read_duckdb_documents(
            db_path, table="plays", id_column="play_id", text_column="body",
        )
        assert list(docs) == ["blank", "hamlet", "macbeth"]
        assert docs["blank"] == ""

    def test_custom_order(self, tmp_path: Path) -> None:
        db_path = tmp_path / "plays.duckdb"
        _create_docs_db(db_path)
        docs = read_duckdb_documents(
            db_path, table="plays", id_column="play_id", text_column="body",
            order_by="year",
        )
        assert list(docs) == ["hamlet", "macbeth", "blank"]

    def test_rejects_unsafe_identifier(self, tmp_path: Path) -> None:
        db_path = tmp_path / "plays.duckdb"
        _create_docs_db(db_path)
        with pytest.raises(ValueError, match="Invalid SQL identifier"):
            read_duckdb_documents(db_path, table="plays; DROP TABLE plays")

    def test_missing_db(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            read_duckdb_documents(tmp_path / "none.duckdb")
