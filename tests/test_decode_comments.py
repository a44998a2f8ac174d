from __future__ import annotations

import io
import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from clickdown.schema import Comment
from clickdown.wire.decode import decode_comment, decode_comments, decode_record
from clickdown.wire.diagnostics import DecodeError, ErrorKind


FIXTURE = Path(__file__).parent / "fixtures" / "comments_thread.json"


def test_null_id_decodes_to_empty_defaults() -> None:
    comment = decode_comment({"id": None, "comment_text": "hi"})

    assert comment.id == ""
    assert comment.text == "hi"
    assert comment.resolved is False
    assert comment.created_at is None
    assert comment.parent_id is None
    assert comment.author is None


def test_minimal_comment() -> None:
    comment = decode_comment('{"id": "123", "comment_text": "Hello world"}')

    assert comment.id == "123"
    assert comment.text == "Hello world"
    assert comment.text_preview == ""
    assert comment.updated_at is None


def test_null_fields_use_defaults() -> None:
    comment = decode_comment(
        {
            "id": "789",
            "comment_text": None,
            "text_preview": None,
            "user": None,
            "date": None,
            "date_updated": None,
            "resolved": None,
            "reactions": None,
        }
    )

    assert comment.text == ""
    assert comment.text_preview == ""
    assert comment.author is None
    assert comment.created_at is None
    assert comment.resolved is False


def test_numeric_ids_become_strings() -> None:
    comment = decode_comment({"id": 90160168435702, "parent_id": 90160168435701})

    assert comment.id == "90160168435702"
    assert comment.parent_id == "90160168435701"


def test_string_and_integer_timestamps() -> None:
    comment = decode_comment({"id": "1", "date": "1568036964079", "date_updated": 1568036964080})

    assert comment.created_at == 1568036964079
    assert comment.updated_at == 1568036964080


def test_float_timestamp_fails_with_diagnostic() -> None:
    with pytest.raises(DecodeError) as info:
        decode_comment({"id": "123", "date": 1234567890.123})

    diagnostic = info.value.diagnostic
    assert diagnostic.path == "date"
    assert diagnostic.expected_kind == "timestamp"
    assert diagnostic.error_kind == ErrorKind.FIELD_TYPE_MISMATCH
    assert diagnostic.raw_excerpt == "1234567890.123"


def test_date_string_timestamp_is_a_parse_failure() -> None:
    with pytest.raises(DecodeError) as info:
        decode_comment({"id": "123", "date": "2024-01-15T10:30:00Z"})

    assert info.value.diagnostic.error_kind == ErrorKind.FIELD_PARSE_FAILURE
    assert info.value.diagnostic.raw_excerpt == '"2024-01-15T10:30:00Z"'


def test_reactions_are_ignored() -> None:
    comment = decode_comment({"id": "1", "reactions": ["thumbsup", "heart"]})

    assert "reactions" not in comment.model_dump()


def test_records_are_frozen() -> None:
    comment = decode_comment({"id": "1", "comment_text": "original"})

    with pytest.raises(ValidationError):
        comment.text = "changed"


def test_comments_response_keeps_delivery_order() -> None:
    comments = decode_comments(FIXTURE.read_bytes())

    assert [comment.id for comment in comments] == [
        "90160168435701",
        "90160168435702",
        "90160168435703",
        "90160168435704",
        "90160168435705",
    ]
    assert isinstance(comments, tuple)
    assert comments[0].author is not None
    assert comments[0].author.username == "John Doe"
    assert comments[0].author.profile_picture == "https://example.com/pic.jpg"
    assert comments[2].parent_id == "90160168435701"
    assert comments[3].resolved is False


def test_decode_from_stream() -> None:
    stream = io.BytesIO(FIXTURE.read_bytes())

    comments = decode_comments(stream)

    assert len(comments) == 5


def test_one_bad_comment_fails_the_batch() -> None:
    payload = json.loads(FIXTURE.read_text(encoding="utf-8"))
    payload["comments"][3]["date"] = 1.5

    with pytest.raises(DecodeError) as info:
        decode_comments(payload)

    assert info.value.diagnostic.path == "comments[3].date"


def test_null_comments_list_is_empty() -> None:
    assert decode_comments({"comments": None}) == ()
    assert decode_comments({}) == ()


def test_non_object_payload_is_a_type_mismatch() -> None:
    with pytest.raises(DecodeError) as info:
        decode_record(Comment, ["not", "an", "object"])

    diagnostic = info.value.diagnostic
    assert diagnostic.path == ""
    assert diagnostic.expected_kind == "object"
    assert diagnostic.error_kind == ErrorKind.FIELD_TYPE_MISMATCH


def test_timestamp_with_trailing_newline_fails_the_record() -> None:
    with pytest.raises(DecodeError) as info:
        decode_comment({"id": "1", "date": "1234567890\n"})

    assert info.value.diagnostic.path == "date"
    assert info.value.diagnostic.error_kind == ErrorKind.FIELD_PARSE_FAILURE
