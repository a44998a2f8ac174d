from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Annotated, Any, Iterable, Optional, TypeVar, get_args

from pydantic import AfterValidator, BaseModel, BeforeValidator, JsonValue, PlainSerializer
from pydantic_core import PydanticCustomError


INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
DECIMAL_INT_RE = re.compile(r"[+-]?[0-9]+")


class FieldKind:
    NULLABLE_STRING = "nullable string"
    ID = "id"
    OPTIONAL_ID = "optional id"
    NULLABLE_BOOL = "nullable bool"
    NULLABLE_INT_ID = "nullable integer id"
    TIMESTAMP = "timestamp"
    OPTIONAL_INT = "optional integer"
    OPTIONAL_STRING = "optional string"
    REQUIRED_STRING = "string"
    RICH_TEXT = "rich text"
    LIST = "array"
    OBJECT = "object"
    JSON = "json"


class ErrorType:
    TYPE_MISMATCH = "field_type_mismatch"
    PARSE_FAILURE = "field_parse_failure"


@dataclass(frozen=True)
class WireRule:
    kind: str


@dataclass(frozen=True)
class FieldRule:
    name: str
    wire_names: tuple[str, ...]
    kind: str
    required: bool
    default: Any
    model: type[BaseModel] | None = None


def json_kind(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "float"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _mismatch(value: Any, expected: str) -> PydanticCustomError:
    return PydanticCustomError(
        ErrorType.TYPE_MISMATCH,
        "expected {expected}, got {actual}",
        {"expected": expected, "actual": json_kind(value)},
    )


def _parse_failure(value: Any, expected: str, reason: str) -> PydanticCustomError:
    return PydanticCustomError(
        ErrorType.PARSE_FAILURE,
        "expected {expected}: {reason}",
        {"expected": expected, "reason": reason},
    )


def _int64(value: int, expected: str) -> int:
    if value < INT64_MIN or value > INT64_MAX:
        raise _parse_failure(value, expected, "integer out of 64-bit range")
    return value


def nullable_string(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    raise _mismatch(value, FieldKind.NULLABLE_STRING)


def optional_string(value: Any) -> str | None:
    if value is None or isinstance(value, str):
        return value
    raise _mismatch(value, FieldKind.OPTIONAL_STRING)


def required_string(value: Any) -> str:
    if isinstance(value, str):
        return value
    raise _mismatch(value, FieldKind.REQUIRED_STRING)


def _id_text(value: Any, expected: str) -> str:
    # bool is an int subclass and must not pass as an identifier
    if isinstance(value, bool):
        raise _mismatch(value, expected)
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        return value
    raise _mismatch(value, expected)


def wire_id(value: Any) -> str:
    if value is None:
        return ""
    return _id_text(value, FieldKind.ID)


def optional_id(value: Any) -> str | None:
    if value is None:
        return None
    return _id_text(value, FieldKind.OPTIONAL_ID)


def nullable_bool(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    raise _mismatch(value, FieldKind.NULLABLE_BOOL)


def nullable_int_id(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, int) and not isinstance(value, bool):
        return _int64(value, FieldKind.NULLABLE_INT_ID)
    raise _mismatch(value, FieldKind.NULLABLE_INT_ID)


def _flexible_int(value: Any, expected: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise _mismatch(value, expected)
    if isinstance(value, int):
        return _int64(value, expected)
    if isinstance(value, str):
        if not DECIMAL_INT_RE.fullmatch(value):
            raise _parse_failure(value, expected, "not a base-10 integer string")
        return _int64(int(value), expected)
    # floats are refused: coercing them would hide an upstream format change
    raise _mismatch(value, expected)


def timestamp(value: Any) -> int | None:
    return _flexible_int(value, FieldKind.TIMESTAMP)


def optional_int(value: Any) -> int | None:
    return _flexible_int(value, FieldKind.OPTIONAL_INT)


def rich_text(value: Any) -> str:
    """Flatten a plain or rich (markdown/text/html object) body to its text.

    Preference order is markdown, then plain text, then html.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        for key in ("markdown", "text", "html"):
            part = value.get(key)
            if part is None:
                continue
            if not isinstance(part, str):
                raise _mismatch(part, FieldKind.RICH_TEXT)
            if part:
                return part
        return ""
    raise _mismatch(value, FieldKind.RICH_TEXT)


def nullable_list(value: Any) -> Any:
    if value is None:
        return ()
    if isinstance(value, (list, tuple)):
        return value
    raise _mismatch(value, FieldKind.LIST)


class FrozenJsonObject(Mapping):
    """Read-only, hashable view of a decoded JSON object."""

    __slots__ = ("_items",)

    def __init__(self, items: dict[str, Any]) -> None:
        self._items = items

    def __getitem__(self, key: str) -> Any:
        return self._items[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __hash__(self) -> int:
        return hash(frozenset(self._items.items()))

    def __repr__(self) -> str:
        return f"FrozenJsonObject({self._items!r})"


def freeze_json(value: Any) -> Any:
    if isinstance(value, dict):
        return FrozenJsonObject({key: freeze_json(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze_json(item) for item in value)
    return value


def thaw_json(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: thaw_json(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [thaw_json(item) for item in value]
    return value


T = TypeVar("T")

NullableStr = Annotated[str, WireRule(FieldKind.NULLABLE_STRING), BeforeValidator(nullable_string)]
OptionalStr = Annotated[Optional[str], WireRule(FieldKind.OPTIONAL_STRING), BeforeValidator(optional_string)]
RequiredStr = Annotated[str, WireRule(FieldKind.REQUIRED_STRING), BeforeValidator(required_string)]
WireId = Annotated[str, WireRule(FieldKind.ID), BeforeValidator(wire_id)]
OptionalId = Annotated[Optional[str], WireRule(FieldKind.OPTIONAL_ID), BeforeValidator(optional_id)]
NullableBool = Annotated[bool, WireRule(FieldKind.NULLABLE_BOOL), BeforeValidator(nullable_bool)]
NullableIntId = Annotated[int, WireRule(FieldKind.NULLABLE_INT_ID), BeforeValidator(nullable_int_id)]
Timestamp = Annotated[Optional[int], WireRule(FieldKind.TIMESTAMP), BeforeValidator(timestamp)]
OptionalInt = Annotated[Optional[int], WireRule(FieldKind.OPTIONAL_INT), BeforeValidator(optional_int)]
RichText = Annotated[str, WireRule(FieldKind.RICH_TEXT), BeforeValidator(rich_text)]
NullableList = Annotated[tuple[T, ...], WireRule(FieldKind.LIST), BeforeValidator(nullable_list)]
FrozenJson = Annotated[
    JsonValue, WireRule(FieldKind.JSON), AfterValidator(freeze_json), PlainSerializer(thaw_json)
]


def _nested_model(annotation: Any) -> type[BaseModel] | None:
    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return annotation
    for arg in get_args(annotation):
        found = _nested_model(arg)
        if found is not None:
            return found
    return None


def _wire_names(name: str, field: Any) -> tuple[str, ...]:
    alias = field.validation_alias
    choices = getattr(alias, "choices", None)
    if choices is not None:
        return tuple(choice for choice in choices if isinstance(choice, str))
    if isinstance(alias, str):
        return (alias,)
    if field.alias:
        return (field.alias,)
    return (name,)


def field_rules(model: type[BaseModel]) -> tuple[FieldRule, ...]:
    rules: list[FieldRule] = []
    for name, field in model.model_fields.items():
        marker = next((item for item in field.metadata if isinstance(item, WireRule)), None)
        nested = _nested_model(field.annotation)
        if marker is not None:
            kind = marker.kind
        elif nested is not None:
            kind = FieldKind.OBJECT
        else:
            kind = FieldKind.JSON
        required = field.is_required()
        rules.append(
            FieldRule(
                name=name,
                wire_names=_wire_names(name, field),
                kind=kind,
                required=required,
                default=None if required else field.get_default(call_default_factory=True),
                model=nested,
            )
        )
    return tuple(rules)


def rule_for(model: type[BaseModel], wire_name: str) -> FieldRule | None:
    for rule in field_rules(model):
        if wire_name in rule.wire_names or wire_name == rule.name:
            return rule
    return None


def rule_at(model: type[BaseModel], loc: Iterable[str | int]) -> FieldRule | None:
    """Follow a decode location through nested record classes to its rule."""
    current: type[BaseModel] | None = model
    rule: FieldRule | None = None
    for segment in loc:
        if isinstance(segment, int):
            continue
        if current is None:
            return None
        rule = rule_for(current, segment)
        if rule is None:
            return None
        current = rule.model
    return rule
