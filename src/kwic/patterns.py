"""Pattern specs and the single-pass matcher over a unit sequence.

Three pattern kinds, each a frozen dataclass carrying an explicit ``kind``
tag that the matcher dispatches on:

* **LiteralPattern**: one word, compared against whole units.
* **PhrasePattern**: N words, compared against N contiguous units.
* **RegexPattern**: tested against each unit independently (word mode) or
  against the character stream (character mode).

Functions:

* ``find_matches``: build a lazy, restartable :class:`MatchScan`.
* ``pattern_from_json`` / ``pattern_to_json``: JSON round-trip.
"""
from __future__ import annotations

import re
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, ClassVar, Literal, TypeAlias

from kwic.errors import InvalidPatternError
from kwic.units import Unit, units_text, validate_unit_mode

PatternKind: TypeAlias = Literal["literal", "phrase", "regex"]
RegexSpan: TypeAlias = Literal["unit", "multi"]

_WHITESPACE_RE = re.compile(r"\s")


# ---------------------------------------------------------------------------
# Pattern variants
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class LiteralPattern:
    """Match a single unit equal to ``word``."""

    kind: ClassVar[PatternKind] = "literal"
    word: str


@dataclass(frozen=True, slots=True)
class PhrasePattern:
    """Match a contiguous run of units equal to ``words`` in order."""

    kind: ClassVar[PatternKind] = "phrase"
    words: tuple[str, ...]

    @classmethod
    def from_text(cls, text: str) -> PhrasePattern:
        """Build a phrase by splitting *text* on whitespace."""
        return cls(tuple(text.split()))


@dataclass(frozen=True, slots=True)
class RegexPattern:
    """Match units whose text satisfies ``pattern``.

    ``case_sensitive=None`` inherits the call-level case flag.
    ``span="multi"`` (regex across several word units) is reserved and
    currently rejected.
    """

    kind: ClassVar[PatternKind] = "regex"
    pattern: str
    case_sensitive: bool | None = None
    span: RegexSpan = "unit"


PatternSpec: TypeAlias = LiteralPattern | PhrasePattern | RegexPattern


@dataclass(frozen=True, slots=True)
class MatchSpan:
    """One match: inclusive unit-index range plus character offsets."""

    document_id: str
    start_unit_index: int
    end_unit_index: int
    matched_text: str
    start_offset: int
    end_offset: int

    @property
    def unit_count(self) -> int:
        return self.end_unit_index - self.start_unit_index + 1


# ---------------------------------------------------------------------------
# Validation / compilation
# ---------------------------------------------------------------------------

def _check_word(word: str, *, what: str) -> None:
    if not word:
        raise InvalidPatternError(f"{what} cannot be empty")
    if _WHITESPACE_RE.search(word):
        raise InvalidPatternError(
            f"{what} {word!r} contains whitespace; use a phrase pattern"
        )


def _compile_regex(spec: RegexPattern, *, case_sensitive: bool) -> re.Pattern[str]:
    if spec.span != "unit":
        raise InvalidPatternError(
            f"Regex span {spec.span!r} is not supported; regex patterns match "
            "single units only"
        )
    if not spec.pattern:
        raise InvalidPatternError("Regex pattern cannot be empty")
    effective = case_sensitive if spec.case_sensitive is None else spec.case_sensitive
    flags = 0 if effective else re.IGNORECASE
    try:
        return re.compile(spec.pattern, flags)
    except re.error as exc:
        raise InvalidPatternError(
            f"Invalid regex {spec.pattern!r}: {exc}"
        ) from exc


def _whole_word_regex(words: Sequence[str], *, case_sensitive: bool) -> re.Pattern[str]:
    body = r"\s+".join(re.escape(w) for w in words)
    flags = 0 if case_sensitive else re.IGNORECASE
    return re.compile(rf"(?<!\w){body}(?!\w)", flags)


# ---------------------------------------------------------------------------
# Matcher
# ---------------------------------------------------------------------------

class MatchScan:
    """Lazy, finite, restartable sequence of :class:`MatchSpan`.

    The pattern is validated and compiled on construction, so an
    :class:`InvalidPatternError` surfaces before any unit is scanned.
    Every ``iter()`` performs a fresh left-to-right scan.

    When the document *text* is given, ``matched_text`` is sliced from it
    verbatim; otherwise word units are joined with single spaces.
    """

    def __init__(
        self,
        units: Sequence[Unit],
        spec: PatternSpec,
        *,
        mode: str,
        case_sensitive: bool = False,
        document_id: str = "",
        text: str | None = None,
    ) -> None:
        self._units = units
        self._spec = spec
        self._mode = validate_unit_mode(mode)
        self._case_sensitive = case_sensitive
        self._document_id = document_id
        self._text = text
        self._regex: re.Pattern[str] | None = None
        self._targets: tuple[str, ...] = ()

        if spec.kind == "literal":
            _check_word(spec.word, what="Literal word")
            self._targets = (self._norm(spec.word),)
            if self._mode == "character":
                self._regex = _whole_word_regex(
                    (spec.word,), case_sensitive=case_sensitive,
                )
        elif spec.kind == "phrase":
            if not spec.words:
                raise InvalidPatternError("Phrase must contain at least one word")
            for w in spec.words:
                _check_word(w, what="Phrase word")
            self._targets = tuple(self._norm(w) for w in spec.words)
            if self._mode == "character":
                self._regex = _whole_word_regex(
                    spec.words, case_sensitive=case_sensitive,
                )
        elif spec.kind == "regex":
            self._regex = _compile_regex(spec, case_sensitive=case_sensitive)
        else:
            raise InvalidPatternError(f"Unknown pattern kind {spec.kind!r}")

    def _norm(self, text: str) -> str:
        return text if self._case_sensitive else text.lower()

    def __iter__(self) -> Iterator[MatchSpan]:
        if self._mode == "character":
            return self._scan_characters()
        if self._spec.kind == "literal":
            return self._scan_literal()
        if self._spec.kind == "phrase":
            return self._scan_phrase()
        return self._scan_unit_regex()

    def _span(self, start: int, end: int) -> MatchSpan:
        units = tuple(self._units[start:end + 1])
        start_offset = units[0].start_offset
        end_offset = units[-1].end_offset
        if self._text is not None:
            matched = self._text[start_offset:end_offset]
        else:
            matched = units_text(units, self._mode)
        return MatchSpan(
            document_id=self._document_id,
            start_unit_index=start,
            end_unit_index=end,
            matched_text=matched,
            start_offset=start_offset,
            end_offset=end_offset,
        )

    def _scan_literal(self) -> Iterator[MatchSpan]:
        target = self._targets[0]
        for i, unit in enumerate(self._units):
            if self._norm(unit.text) == target:
                yield self._span(i, i)

    def _scan_phrase(self) -> Iterator[MatchSpan]:
        targets = self._targets
        n = len(targets)
        units = self._units
        i = 0
        last_start = len(units) - n
        while i <= last_start:
            if all(
                self._norm(units[i + k].text) == targets[k] for k in range(n)
            ):
                yield self._span(i, i + n - 1)
                i += n
            else:
                i += 1

    def _scan_unit_regex(self) -> Iterator[MatchSpan]:
        regex = self._regex
        assert regex is not None
        for i, unit in enumerate(self._units):
            if regex.search(unit.text) is not None:
                yield self._span(i, i)

    def _scan_characters(self) -> Iterator[MatchSpan]:
        regex = self._regex
        assert regex is not None
        # Character units map 1:1 onto code points, so the unit stream is
        # the text and unit indices are character offsets relative to it.
        stream = units_text(tuple(self._units), "character")
        base = self._units[0].start_offset if self._units else 0
        for m in regex.finditer(stream):
            if m.end() == m.start():
                continue
            yield MatchSpan(
                document_id=self._document_id,
                start_unit_index=m.start(),
                end_unit_index=m.end() - 1,
                matched_text=m.group(0),
                start_offset=base + m.start(),
                end_offset=base + m.end(),
            )


def find_matches(
    units: Sequence[Unit],
    spec: PatternSpec,
    *,
    mode: str,
    case_sensitive: bool = False,
    document_id: str = "",
    text: str | None = None,
) -> MatchScan:
    """Resolve *spec* against *units* into an ordered, non-overlapping scan."""
    return MatchScan(
        units,
        spec,
        mode=mode,
        case_sensitive=case_sensitive,
        document_id=document_id,
        text=text,
    )


def validate_pattern(spec: PatternSpec, *, mode: str, case_sensitive: bool = False) -> None:
    """Compile *spec* against an empty unit sequence, raising on a bad pattern."""
    MatchScan((), spec, mode=mode, case_sensitive=case_sensitive)


# ---------------------------------------------------------------------------
# JSON round-trip
# ---------------------------------------------------------------------------

def pattern_to_json(spec: PatternSpec) -> dict[str, Any]:
    """Serialize *spec* to a JSON-compatible dict."""
    if spec.kind == "literal":
        return {"kind": "literal", "word": spec.word}
    if spec.kind == "phrase":
        return {"kind": "phrase", "words": list(spec.words)}
    return {
        "kind": "regex",
        "pattern": spec.pattern,
        "case_sensitive": spec.case_sensitive,
        "span": spec.span,
    }


def pattern_from_json(data: Mapping[str, Any]) -> PatternSpec:
    """Deserialize a pattern spec produced by :func:`pattern_to_json`."""
    kind = data.get("kind")
    if kind == "literal":
        return LiteralPattern(str(data.get("word", "")))
    if kind == "phrase":
        words = data.get("words", [])
        if isinstance(words, str):
            return PhrasePattern.from_text(words)
        return PhrasePattern(tuple(str(w) for w in words))
    if kind == "regex":
        case_sensitive = data.get("case_sensitive")
        span = str(data.get("span", "unit"))
        if span not in ("unit", "multi"):
            raise InvalidPatternError(f"Unknown regex span {span!r}")
        return RegexPattern(
            str(data.get("pattern", "")),
            case_sensitive=None if case_sensitive is None else bool(case_sensitive),
            span="multi" if span == "multi" else "unit",
        )
    raise InvalidPatternError(f"Unknown pattern kind {kind!r}")
