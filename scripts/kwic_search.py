#!/usr/bin/env python3
"""Keyword-in-context search across a text corpus.

Loads documents from a directory of text files or a DuckDB table, builds
the concordance, and writes rows as JSON to stdout (or to --output) with
summary messages to stderr.

Usage:
    python3 scripts/kwic_search.py --input-dir corpus/ --literal whale \
      --unit word --context 5 --rank-following

    python3 scripts/kwic_search.py --db corpus.duckdb --table plays \
      --regex "^love" --unit word --context 4 \
      --speaker-open "<" --speaker-close ">" --speaker-context 200 \
      --output hits.csv
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from kwic.attributes import DelimiterGrammar, recover_attribute
from kwic.collocates import following_word, rank_by_key_frequency
from kwic.concordance import ConcordanceTable, build_concordance
from kwic.config import KwicConfig, load_config
from kwic.errors import InvalidConfigurationError, InvalidPatternError, KwicError
from kwic.export import write_csv, write_duckdb, write_jsonl
from kwic.io_utils import dumps_json
from kwic.patterns import LiteralPattern, PatternSpec, PhrasePattern, RegexPattern
from kwic.sources import read_duckdb_documents, read_text_dir

log = logging.getLogger("kwic_search")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Keyword-in-context search across a text corpus."
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--input-dir", type=Path, default=None,
        help="Directory of text files (searched recursively)",
    )
    source.add_argument(
        "--db", type=Path, default=None, help="DuckDB file holding documents",
    )
    parser.add_argument(
        "--glob", default="*.txt",
        help="File pattern for --input-dir (default: *.txt)",
    )
    parser.add_argument(
        "--table", default="documents", help="DuckDB table (default: documents)",
    )
    parser.add_argument("--id-column", default="doc_id")
    parser.add_argument("--text-column", default="text")

    pattern = parser.add_mutually_exclusive_group(required=True)
    pattern.add_argument("--literal", help="Match a single word")
    pattern.add_argument("--phrase", help="Match a whitespace-separated phrase")
    pattern.add_argument("--regex", help="Match units against a regular expression")

    parser.add_argument(
        "--config", type=Path, default=None,
        help="JSON config file; command-line options override it",
    )
    parser.add_argument(
        "--unit", choices=("word", "character"), default=None,
        help="Unit that --context counts (required unless set in --config)",
    )
    parser.add_argument(
        "--context", type=int, default=None,
        help="Context size in units (default: 5, or the --config value)",
    )
    parser.add_argument(
        "--case-sensitive", action="store_true", default=None,
        help="Match case-sensitively",
    )
    parser.add_argument(
        "--strict", action="store_true", default=None,
        help="Abort on the first malformed document",
    )
    parser.add_argument(
        "--workers", type=int, default=None, help="Parallel document workers",
    )
    parser.add_argument(
        "--rank-following", action="store_true",
        help="Add post_word/frequency columns and sort by frequency",
    )
    parser.add_argument("--speaker-open", default=None, help="Speaker marker opener")
    parser.add_argument("--speaker-close", default=None, help="Speaker marker closer")
    parser.add_argument(
        "--speaker-context", type=int, default=500,
        help="Oversized context used to recover speakers (default: 500)",
    )
    parser.add_argument(
        "--output", type=Path, default=None,
        help="Write rows to .jsonl, .csv or .duckdb instead of stdout",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Verbose logging",
    )
    return parser


def pattern_from_args(args: argparse.Namespace) -> PatternSpec:
    if args.literal is not None:
        return LiteralPattern(args.literal)
    if args.phrase is not None:
        return PhrasePattern.from_text(args.phrase)
    return RegexPattern(args.regex)


def config_from_args(args: argparse.Namespace) -> KwicConfig:
    overrides = {
        "unit_mode": args.unit,
        "context_size": args.context,
        "case_sensitive": args.case_sensitive,
        "strict": args.strict,
        "workers": args.workers,
    }
    if args.config is not None:
        return load_config(args.config, **overrides)
    if args.unit is None:
        raise InvalidConfigurationError("--unit is required without --config")
    data = {k: v for k, v in overrides.items() if v is not None}
    data.setdefault("context_size", 5)
    return KwicConfig.from_mapping(data)


def write_output(table: ConcordanceTable, output: Path) -> None:
    suffix = output.suffix.lower()
    if suffix == ".jsonl":
        write_jsonl(table, output)
    elif suffix == ".csv":
        write_csv(table, output)
    elif suffix == ".duckdb":
        write_duckdb(table, output)
    else:
        raise InvalidConfigurationError(f"Unsupported output format: {output}")


def main() -> None:
    args = build_parser().parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.config is not None and not args.config.exists():
        print(f"Error: config not found: {args.config}", file=sys.stderr)
        sys.exit(1)

    if args.input_dir is not None:
        if not args.input_dir.is_dir():
            print(f"Error: input directory not found: {args.input_dir}", file=sys.stderr)
            sys.exit(1)
        documents = read_text_dir(args.input_dir, args.glob)
    else:
        if not args.db.exists():
            print(f"Error: database not found: {args.db}", file=sys.stderr)
            sys.exit(1)
        documents = read_duckdb_documents(
            args.db,
            table=args.table,
            id_column=args.id_column,
            text_column=args.text_column,
        )
    log.info("Loaded %d documents", len(documents))

    try:
        config = config_from_args(args)
        pattern = pattern_from_args(args)
        table = build_concordance(documents, pattern, config)
        if args.speaker_open is not None or args.speaker_close is not None:
            if not (args.speaker_open and args.speaker_close):
                raise InvalidConfigurationError(
                    "--speaker-open and --speaker-close must be given together"
                )
            grammar = DelimiterGrammar(args.speaker_open, args.speaker_close)
            table = recover_attribute(
                documents, pattern, config, table,
                grammar=grammar, context_size=args.speaker_context,
            )
        if args.rank_following:
            table = rank_by_key_frequency(table, following_word)
    except (InvalidPatternError, InvalidConfigurationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)
    except KwicError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    for warning in table.warnings:
        print(
            f"Warning: skipped {warning.doc_id} ({warning.code}): {warning.message}",
            file=sys.stderr,
        )
    print(
        f"Found {len(table)} matches across {len(table.document_counts())} documents",
        file=sys.stderr,
    )

    if args.output is not None:
        try:
            write_output(table, args.output)
        except InvalidConfigurationError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            sys.exit(2)
        print(f"Wrote {len(table)} rows to {args.output}", file=sys.stderr)
    else:
        sys.stdout.buffer.write(dumps_json(table.to_records()))
        sys.stdout.buffer.write(b"\n")


if __name__ == "__main__":
    main()
