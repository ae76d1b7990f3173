"""
Load a pipeline configuration from JSON.

The load functions never raise for bad input: they return a ``LoadResult``
holding either the configuration or one of ``FileOpenError``,
``ParseError`` or ``SchemaError``. A failed load never exposes a partially
built configuration.
"""

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel

from .configuration import SECTION_MODELS, PipelineConfig, SymbolRegistryConfig
from .errors import FileOpenError, LoadError, ParseError, SchemaError

logger = logging.getLogger(__name__)

_STRING_OR_CONSTANT = re.compile(r'"(?:[^"\\]|\\.)*"|(-?Infinity|NaN)')


@dataclass(frozen=True)
class LoadResult:
    """Outcome of a load call: exactly one of ``config`` and ``error`` is set."""

    config: Optional[PipelineConfig] = None
    error: Optional[LoadError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> PipelineConfig:
        if self.error is not None:
            raise self.error
        return self.config


def build_section(key: str, raw: Any):
    """Build the section stored under top-level ``key`` from its JSON subtree."""
    model = SECTION_MODELS.get(key)
    if model is None:
        raise KeyError(f"Unknown configuration section: {key}")
    return model.from_json(raw, section=key)


def build_config(payload: Any) -> PipelineConfig:
    """
    Build a PipelineConfig from a parsed JSON document.

    Unknown top-level keys are ignored. Any shape error raises SchemaError;
    sections built before the failure are discarded with it.
    """
    if not isinstance(payload, dict):
        raise SchemaError(
            f"Top-level JSON value must be an object, got {type(payload).__name__}."
        )
    sections = {}
    for key in SECTION_MODELS:
        if key in payload:
            sections[key] = build_section(key, payload[key])
    return PipelineConfig(**sections)


class _NonStandardConstant(ValueError):
    def __init__(self, name: str):
        super().__init__(name)
        self.name = name


def _reject_constant(name: str):
    raise _NonStandardConstant(name)


def _constant_position(text: str, name: str) -> Optional[int]:
    # First bare occurrence, skipping string literals.
    for match in _STRING_OR_CONSTANT.finditer(text):
        if match.group(1) == name:
            return match.start(1)
    return None


def _parse_json(text: str, source: str) -> Any:
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except json.JSONDecodeError as exc:
        raise ParseError(
            exc.msg,
            source=source,
            lineno=exc.lineno,
            colno=exc.colno,
            pos=exc.pos,
        ) from exc
    except _NonStandardConstant as exc:
        pos = _constant_position(text, exc.name)
        lineno = colno = None
        if pos is not None:
            lineno = text.count("\n", 0, pos) + 1
            colno = pos - text.rfind("\n", 0, pos)
        raise ParseError(
            f"Invalid literal {exc.name!r}: not a JSON value",
            source=source,
            lineno=lineno,
            colno=colno,
            pos=pos,
        ) from exc
    except RecursionError as exc:
        raise ParseError("Document nested too deeply", source=source) from exc


def _load(text: str, source: str) -> LoadResult:
    try:
        payload = _parse_json(text, source)
        config = build_config(payload)
    except LoadError as exc:
        if exc.source is None:
            exc.source = source
        logger.warning("Failed to load configuration (%s): %s", exc.kind, exc)
        return LoadResult(error=exc)
    logger.debug(
        "Loaded configuration from %s with sections: %s",
        source,
        ", ".join(config.present_sections()) or "none",
    )
    return LoadResult(config=config)


def load_from_string(text: str, source: str = "<string>") -> LoadResult:
    """
    Parse ``text`` as JSON and build a configuration from it.

    Useful for tests, injected configuration and runtime overrides.
    """
    return _load(text, source)


def load_from_file(path: Union[str, Path]) -> LoadResult:
    """Read ``path`` and build a configuration from its JSON content."""
    path = str(path)
    try:
        with open(path, "r", encoding="utf-8") as fh:
            text = fh.read()
    except UnicodeDecodeError as exc:
        error = ParseError(
            f"File is not valid UTF-8: {exc.reason}", source=path, pos=exc.start
        )
        logger.warning("Failed to load configuration (%s): %s", error.kind, error)
        return LoadResult(error=error)
    except OSError as exc:
        error = FileOpenError(
            f"Failed to open the config file: {exc.strerror or exc}", path=path
        )
        logger.warning("Failed to load configuration (%s): %s", error.kind, error)
        return LoadResult(error=error)
    return _load(text, path)


def _render(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple, dict)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


def _flatten(prefix: str, model: BaseModel, out: Dict[str, str]) -> None:
    if isinstance(model, SymbolRegistryConfig):
        for asset, symbols in model.mappings.items():
            out[f"{prefix}.{asset}"] = _render(symbols)
        return
    for name in type(model).model_fields:
        value = getattr(model, name)
        key = f"{prefix}.{name}"
        if isinstance(value, BaseModel):
            _flatten(key, value, out)
        else:
            out[key] = _render(value)


def to_flat_map(config: PipelineConfig) -> Dict[str, str]:
    """
    Flatten a configuration into ``section.field`` -> string.

    Nested records extend the dotted path; sequences and maps are rendered
    as compact JSON. Meant for display and debugging only.
    """
    out: Dict[str, str] = {}
    for key in config.present_sections():
        _flatten(key, getattr(config, key), out)
    return out
