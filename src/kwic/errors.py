"""Exception taxonomy for the concordance engine."""
from __future__ import annotations


class KwicError(Exception):
    """Base class for all concordance engine errors."""


class InvalidPatternError(KwicError, ValueError):
    """Raised when a pattern spec cannot be compiled. Always raised before scanning."""


class InvalidConfigurationError(KwicError, ValueError):
    """Raised at call entry for a bad context size, unit mode, or option."""


class DocumentError(KwicError):
    """Raised for a single malformed document (undecodable bytes, wrong type)."""

    def __init__(self, doc_id: str, code: str, message: str) -> None:
        super().__init__(f"{doc_id}: {message}")
        self.doc_id = doc_id
        self.code = code
        self.message = message
