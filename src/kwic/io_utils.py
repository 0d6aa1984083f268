"""I/O utilities for JSON and JSONL files, backed by orjson."""
from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any

import orjson


def load_json(path: Path) -> Any:
    """Load JSON from a file."""
    return orjson.loads(path.read_bytes())


def dumps_json(obj: Any, *, pretty: bool = True) -> bytes:
    """Encode *obj* as JSON bytes; keys keep insertion order."""
    return orjson.dumps(obj, option=orjson.OPT_INDENT_2 if pretty else 0)


def load_jsonl(path: Path) -> list[dict[str, Any]]:
    """Load a JSON Lines file (one JSON object per line). Blank lines skipped."""
    records: list[dict[str, Any]] = []
    for line in path.read_bytes().split(b"\n"):
        line = line.strip()
        if line:
            records.append(orjson.loads(line))
    return records


def save_jsonl(records: Iterable[dict[str, Any]], path: Path) -> None:
    """Save dicts as a JSON Lines file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [orjson.dumps(r) for r in records]
    path.write_bytes(b"\n".join(lines) + b"\n" if lines else b"")
