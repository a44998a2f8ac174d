from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Iterable

from pydantic import BaseModel, ValidationError

from clickdown import config
from clickdown.wire.normalize import ErrorType, rule_at


class ErrorKind:
    FIELD_TYPE_MISMATCH = "FieldTypeMismatch"
    FIELD_PARSE_FAILURE = "FieldParseFailure"
    MISSING_REQUIRED_FIELD = "MissingRequiredField"
    ORPHAN_REFERENCE = "OrphanReference"


# Expected kinds for pydantic's own error types (nested objects, arrays,
# required strings that were never normalized).
BUILTIN_EXPECTED: dict[str, str] = {
    "model_type": "object",
    "model_attributes_type": "object",
    "dict_type": "object",
    "tuple_type": "array",
    "list_type": "array",
    "string_type": "string",
    "int_type": "integer",
    "bool_type": "bool",
    "json_invalid": "JSON document",
    "json_type": "JSON document",
}


@dataclass(frozen=True)
class Diagnostic:
    path: str
    expected_kind: str
    raw_excerpt: str
    error_kind: str
    entity: str = ""
    message: str = ""

    def __str__(self) -> str:
        where = self.path or "<root>"
        prefix = f"{self.entity}: " if self.entity else ""
        return (
            f"{prefix}{self.error_kind} at {where}: expected {self.expected_kind}"
            f" (got {self.raw_excerpt})"
        )


class DecodeError(ValueError):
    def __init__(self, diagnostic: Diagnostic) -> None:
        super().__init__(str(diagnostic))
        self.diagnostic = diagnostic


def format_path(loc: Iterable[str | int]) -> str:
    path = ""
    for segment in loc:
        if isinstance(segment, int):
            path += f"[{segment}]"
        elif path:
            path += f".{segment}"
        else:
            path = str(segment)
    return path


def excerpt(value: Any, limit: int = config.EXCERPT_LIMIT) -> str:
    if isinstance(value, (bytes, bytearray)):
        text = value.decode("utf-8", errors="replace")
    else:
        try:
            text = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
        except (TypeError, ValueError):
            text = repr(value)
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def _classify(error_type: str) -> str:
    if error_type == "missing":
        return ErrorKind.MISSING_REQUIRED_FIELD
    if error_type in (ErrorType.PARSE_FAILURE, "json_invalid"):
        return ErrorKind.FIELD_PARSE_FAILURE
    return ErrorKind.FIELD_TYPE_MISMATCH


def _expected_kind(error: dict[str, Any], model: type[BaseModel] | None, loc: tuple) -> str:
    ctx = error.get("ctx") or {}
    if "expected" in ctx:
        return str(ctx["expected"])
    if error["type"] == "missing" and model is not None:
        rule = rule_at(model, loc)
        if rule is not None:
            return rule.kind
    return BUILTIN_EXPECTED.get(error["type"], error["type"])


def diagnostic_from_error(
    exc: ValidationError,
    model: type[BaseModel] | None = None,
    limit: int = config.EXCERPT_LIMIT,
    entity: str = "",
) -> Diagnostic:
    """Report the first failing field of a pydantic validation error."""
    error = exc.errors(include_url=False)[0]
    loc = tuple(error["loc"])
    raw = error.get("input")
    if error["type"] == "missing":
        # the input of a missing field is the enclosing object
        raw_text = excerpt(raw, limit) if raw is not None else ""
    else:
        raw_text = excerpt(raw, limit)
    return Diagnostic(
        path=format_path(loc),
        expected_kind=_expected_kind(error, model, loc),
        raw_excerpt=raw_text,
        error_kind=_classify(error["type"]),
        entity=entity or (model.__name__ if model is not None else ""),
        message=error.get("msg", ""),
    )
