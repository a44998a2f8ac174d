from __future__ import annotations

import json
import logging
from typing import IO, Any, Iterable, TypeVar, Union

from pydantic import BaseModel, TypeAdapter, ValidationError
from pydantic_core import from_json

from clickdown import config
from clickdown.schema import (
    Comment,
    CommentsResponse,
    Document,
    DocumentsResponse,
    Folder,
    FoldersResponse,
    ListsResponse,
    Page,
    PagesResponse,
    Space,
    SpacesResponse,
    Task,
    TaskList,
    TasksResponse,
    Workspace,
    WorkspacesResponse,
)
from clickdown.wire.diagnostics import DecodeError, diagnostic_from_error


logger = logging.getLogger("clickdown.wire")

R = TypeVar("R", bound=BaseModel)
Payload = Union[str, bytes, bytearray, dict, list, IO[str], IO[bytes]]

# entity name -> (record class, collection envelope)
ENTITIES: dict[str, tuple[type[BaseModel], type[BaseModel]]] = {
    "task": (Task, TasksResponse),
    "comment": (Comment, CommentsResponse),
    "document": (Document, DocumentsResponse),
    "page": (Page, PagesResponse),
    "workspace": (Workspace, WorkspacesResponse),
    "space": (Space, SpacesResponse),
    "folder": (Folder, FoldersResponse),
    "list": (TaskList, ListsResponse),
}

# Built once at import and never mutated afterwards.
_BATCH_ADAPTERS: dict[type[BaseModel], TypeAdapter] = {
    model: TypeAdapter(tuple[model, ...]) for model, _ in ENTITIES.values()
}


def _read(payload: Any) -> Any:
    read = getattr(payload, "read", None)
    if callable(read):
        return read()
    return payload


def _is_json_text(payload: Any) -> bool:
    return isinstance(payload, (str, bytes, bytearray))


def _fail(exc: ValidationError, model: type[BaseModel], limit: int) -> DecodeError:
    diagnostic = diagnostic_from_error(exc, model, limit)
    logger.warning("decode failed: %s", diagnostic)
    return DecodeError(diagnostic)


def decode_record(
    model: type[R], payload: Payload, *, excerpt_limit: int = config.EXCERPT_LIMIT
) -> R:
    """Decode one record from a parsed tree, JSON text, or a readable file.

    A file object is read to the end before decoding; there is no
    incremental streaming.
    """
    payload = _read(payload)
    try:
        if _is_json_text(payload):
            return model.model_validate_json(payload)
        return model.model_validate(payload)
    except ValidationError as exc:
        raise _fail(exc, model, excerpt_limit) from exc


def decode_records(
    model: type[R], payload: Payload, *, excerpt_limit: int = config.EXCERPT_LIMIT
) -> tuple[R, ...]:
    """Decode a bare JSON array of records; one bad element fails the batch."""
    adapter = _BATCH_ADAPTERS.get(model) or TypeAdapter(tuple[model, ...])
    payload = _read(payload)
    try:
        if _is_json_text(payload):
            return adapter.validate_json(payload)
        return adapter.validate_python(payload)
    except ValidationError as exc:
        raise _fail(exc, model, excerpt_limit) from exc


def decode_collection(
    envelope: type[BaseModel], payload: Payload, *, excerpt_limit: int = config.EXCERPT_LIMIT
) -> tuple[Any, ...]:
    """Decode an envelope such as ``{"tasks": [...]}`` and return its batch."""
    response = decode_record(envelope, payload, excerpt_limit=excerpt_limit)
    (field_name,) = type(response).model_fields
    return getattr(response, field_name)


def decode_task(payload: Payload, *, excerpt_limit: int = config.EXCERPT_LIMIT) -> Task:
    return decode_record(Task, payload, excerpt_limit=excerpt_limit)


def decode_tasks(payload: Payload, *, excerpt_limit: int = config.EXCERPT_LIMIT) -> tuple[Task, ...]:
    return decode_collection(TasksResponse, payload, excerpt_limit=excerpt_limit)


def decode_comment(payload: Payload, *, excerpt_limit: int = config.EXCERPT_LIMIT) -> Comment:
    return decode_record(Comment, payload, excerpt_limit=excerpt_limit)


def decode_comments(
    payload: Payload, *, excerpt_limit: int = config.EXCERPT_LIMIT
) -> tuple[Comment, ...]:
    return decode_collection(CommentsResponse, payload, excerpt_limit=excerpt_limit)


def decode_document(payload: Payload, *, excerpt_limit: int = config.EXCERPT_LIMIT) -> Document:
    return decode_record(Document, payload, excerpt_limit=excerpt_limit)


def decode_documents(
    payload: Payload, *, excerpt_limit: int = config.EXCERPT_LIMIT
) -> tuple[Document, ...]:
    return decode_collection(DocumentsResponse, payload, excerpt_limit=excerpt_limit)


def decode_pages(payload: Payload, *, excerpt_limit: int = config.EXCERPT_LIMIT) -> tuple[Page, ...]:
    """Decode pages sent either as ``{"pages": [...]}`` or as a bare array."""
    payload = _read(payload)
    if _is_json_text(payload):
        try:
            payload = from_json(payload)
        except ValueError:
            # malformed text: the batch decoder reports it as a diagnostic
            return decode_records(Page, payload, excerpt_limit=excerpt_limit)
    if isinstance(payload, dict):
        return decode_collection(PagesResponse, payload, excerpt_limit=excerpt_limit)
    return decode_records(Page, payload, excerpt_limit=excerpt_limit)


def decode_workspaces(
    payload: Payload, *, excerpt_limit: int = config.EXCERPT_LIMIT
) -> tuple[Workspace, ...]:
    return decode_collection(WorkspacesResponse, payload, excerpt_limit=excerpt_limit)


def decode_spaces(payload: Payload, *, excerpt_limit: int = config.EXCERPT_LIMIT) -> tuple[Space, ...]:
    return decode_collection(SpacesResponse, payload, excerpt_limit=excerpt_limit)


def decode_folders(payload: Payload, *, excerpt_limit: int = config.EXCERPT_LIMIT) -> tuple[Folder, ...]:
    return decode_collection(FoldersResponse, payload, excerpt_limit=excerpt_limit)


def decode_lists(payload: Payload, *, excerpt_limit: int = config.EXCERPT_LIMIT) -> tuple[TaskList, ...]:
    return decode_collection(ListsResponse, payload, excerpt_limit=excerpt_limit)


def encode_record(record: BaseModel) -> dict[str, Any]:
    return record.model_dump(mode="json", by_alias=True)


def canonical_json(records: BaseModel | Iterable[BaseModel], indent: int | None = 2) -> str:
    if isinstance(records, BaseModel):
        data: Any = encode_record(records)
    else:
        data = [encode_record(record) for record in records]
    return json.dumps(data, indent=indent, ensure_ascii=False)
