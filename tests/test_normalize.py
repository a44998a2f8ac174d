from __future__ import annotations

import pytest
from pydantic_core import PydanticCustomError

from clickdown.schema import Comment, Task, TasksResponse, User
from clickdown.wire.normalize import (
    ErrorType,
    FieldKind,
    field_rules,
    nullable_bool,
    nullable_int_id,
    nullable_list,
    nullable_string,
    optional_id,
    required_string,
    rich_text,
    rule_at,
    timestamp,
    wire_id,
)


def test_integer_id_becomes_decimal_text() -> None:
    assert wire_id(90160168435702) == "90160168435702"
    assert wire_id("abc123") == "abc123"
    assert wire_id(None) == ""


@pytest.mark.parametrize("value", [True, 1.5, [], {}])
def test_id_rejects_other_json_kinds(value: object) -> None:
    with pytest.raises(PydanticCustomError) as info:
        wire_id(value)
    assert info.value.type == ErrorType.TYPE_MISMATCH


def test_optional_id_keeps_absence() -> None:
    assert optional_id(None) is None
    assert optional_id(42) == "42"


def test_nullable_string_and_bool_defaults() -> None:
    assert nullable_string(None) == ""
    assert nullable_string("hi") == "hi"
    assert nullable_bool(None) is False
    assert nullable_bool(True) is True
    with pytest.raises(PydanticCustomError):
        nullable_bool("true")
    with pytest.raises(PydanticCustomError):
        nullable_string(7)


def test_nullable_int_id() -> None:
    assert nullable_int_id(None) == 0
    assert nullable_int_id(183) == 183
    for value in ("183", 1.0, False):
        with pytest.raises(PydanticCustomError) as info:
            nullable_int_id(value)
        assert info.value.type == ErrorType.TYPE_MISMATCH


def test_timestamp_accepts_integers_and_numeric_strings() -> None:
    assert timestamp("1234567890") == 1234567890
    assert timestamp(1568036964079) == 1568036964079
    assert timestamp("-5") == -5
    assert timestamp(None) is None


def test_timestamp_rejects_float() -> None:
    with pytest.raises(PydanticCustomError) as info:
        timestamp(1234567890.5)
    assert info.value.type == ErrorType.TYPE_MISMATCH
    assert info.value.context["expected"] == FieldKind.TIMESTAMP


@pytest.mark.parametrize("value", ["2024-01-15T10:30:00Z", "", "12.5", " 12", "1_000", "1234567890\n", "12 "])
def test_timestamp_rejects_non_integer_strings(value: str) -> None:
    with pytest.raises(PydanticCustomError) as info:
        timestamp(value)
    assert info.value.type == ErrorType.PARSE_FAILURE


def test_timestamp_rejects_bool_and_out_of_range() -> None:
    with pytest.raises(PydanticCustomError) as info:
        timestamp(True)
    assert info.value.type == ErrorType.TYPE_MISMATCH
    with pytest.raises(PydanticCustomError) as info:
        timestamp(str(2**63))
    assert info.value.type == ErrorType.PARSE_FAILURE


def test_required_string_rejects_null() -> None:
    assert required_string("Test Task") == "Test Task"
    with pytest.raises(PydanticCustomError):
        required_string(None)


def test_rich_text_prefers_markdown_then_text_then_html() -> None:
    assert rich_text("plain") == "plain"
    assert rich_text(None) == ""
    assert rich_text({"html": "<p>x</p>", "markdown": "**x**"}) == "**x**"
    assert rich_text({"markdown": "", "text": "x", "html": "<p>x</p>"}) == "x"
    assert rich_text({"html": "<p>x</p>"}) == "<p>x</p>"
    assert rich_text({}) == ""
    with pytest.raises(PydanticCustomError):
        rich_text({"markdown": 5})


def test_nullable_list() -> None:
    assert nullable_list(None) == ()
    assert nullable_list([1]) == [1]
    with pytest.raises(PydanticCustomError):
        nullable_list("x")


def test_comment_rule_table() -> None:
    rules = {rule.name: rule for rule in field_rules(Comment)}

    assert rules["id"].kind == FieldKind.ID
    assert rules["id"].default == ""
    assert rules["text"].wire_names == ("comment_text",)
    assert rules["text"].kind == FieldKind.NULLABLE_STRING
    assert rules["created_at"].wire_names == ("date",)
    assert rules["created_at"].kind == FieldKind.TIMESTAMP
    assert rules["resolved"].default is False
    assert rules["parent_id"].kind == FieldKind.OPTIONAL_ID
    assert rules["author"].kind == FieldKind.OBJECT
    assert rules["author"].model is User
    assert not any(rule.required for rule in rules.values())


def test_task_rule_table_marks_name_required() -> None:
    rules = {rule.name: rule for rule in field_rules(Task)}

    assert rules["name"].required
    assert rules["name"].kind == FieldKind.REQUIRED_STRING
    assert rules["created_at"].wire_names == ("date_created", "created_at")
    assert rules["time_estimate"].wire_names == ("time_estimate", "timeEstimate")
    assert rules["assignees"].kind == FieldKind.LIST
    assert rules["assignees"].model is User


def test_rule_at_walks_nested_records() -> None:
    rule = rule_at(TasksResponse, ("tasks", 3, "creator", "id"))
    assert rule is not None
    assert rule.kind == FieldKind.NULLABLE_INT_ID
    assert rule_at(TasksResponse, ("tasks", 0, "nope")) is None
