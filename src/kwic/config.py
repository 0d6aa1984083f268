"""Immutable run configuration threaded into every engine call."""
from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from kwic.errors import InvalidConfigurationError
from kwic.io_utils import load_json
from kwic.units import WORD_TOKEN_PATTERN, compile_token_pattern, validate_unit_mode
from kwic.windows import check_context_size


@dataclass(frozen=True, slots=True)
class KwicConfig:
    """Window and matching options for one concordance run.

    ``context_size`` and ``unit_mode`` have no defaults: the mode decides
    whether the size counts words or characters.
    """

    context_size: int
    unit_mode: str
    case_sensitive: bool = False
    strict: bool = False
    workers: int = 1
    encoding: str = "utf-8"
    token_pattern: str = WORD_TOKEN_PATTERN

    def __post_init__(self) -> None:
        check_context_size(self.context_size)
        validate_unit_mode(self.unit_mode)
        for name in ("case_sensitive", "strict"):
            value = getattr(self, name)
            if not isinstance(value, bool):
                raise InvalidConfigurationError(
                    f"{name} must be a boolean, got {value!r}"
                )
        if isinstance(self.workers, bool) or not isinstance(self.workers, int):
            raise InvalidConfigurationError(
                f"workers must be an integer, got {self.workers!r}"
            )
        if self.workers < 1:
            raise InvalidConfigurationError(f"workers must be >= 1, got {self.workers}")
        if not self.encoding:
            raise InvalidConfigurationError("encoding cannot be empty")
        compile_token_pattern(self.token_pattern)

    def with_context_size(self, size: int) -> KwicConfig:
        """Copy of this config with a different context size."""
        return dataclasses.replace(self, context_size=size)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> KwicConfig:
        """Build a config from a dict, rejecting unknown keys."""
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise InvalidConfigurationError(
                f"Unknown config keys: {', '.join(unknown)}"
            )
        missing = [k for k in ("context_size", "unit_mode") if k not in data]
        if missing:
            raise InvalidConfigurationError(
                f"Missing required config keys: {', '.join(missing)}"
            )
        return cls(**dict(data))


def config_to_dict(config: KwicConfig) -> dict[str, Any]:
    """Plain-dict view of *config* for manifests and JSON output."""
    return dataclasses.asdict(config)


def load_config(path: Path, **overrides: Any) -> KwicConfig:
    """Load a config JSON object from *path*; non-None overrides win."""
    data = load_json(path)
    if not isinstance(data, dict):
        raise InvalidConfigurationError(f"Invalid config payload in {path}")
    merged = dict(data)
    merged.update({k: v for k, v in overrides.items() if v is not None})
    return KwicConfig.from_mapping(merged)
