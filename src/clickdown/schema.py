from __future__ import annotations

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from clickdown.wire.normalize import (
    FrozenJson,
    NullableBool,
    NullableIntId,
    NullableList,
    NullableStr,
    OptionalId,
    OptionalInt,
    OptionalStr,
    RequiredStr,
    RichText,
    Timestamp,
    WireId,
)


def _wire(*names: str) -> dict:
    """Accept every listed wire name, re-encode under the first."""
    return {"validation_alias": AliasChoices(*names), "serialization_alias": names[0]}


class Record(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class User(Record):
    id: NullableIntId = 0
    username: NullableStr = ""
    color: OptionalStr = None
    email: OptionalStr = None
    profile_picture: OptionalStr = Field(None, alias="profilePicture")
    initials: OptionalStr = None


class LocationRef(Record):
    id: WireId = ""
    name: OptionalStr = None


class Comment(Record):
    id: WireId = ""
    text: NullableStr = Field("", alias="comment_text")
    text_preview: NullableStr = ""
    author: Optional[User] = Field(None, alias="user")
    assignee: Optional[User] = None
    assigned_by: Optional[User] = None
    created_at: Timestamp = Field(None, alias="date")
    updated_at: Timestamp = Field(None, alias="date_updated")
    resolved: NullableBool = False
    parent_id: OptionalId = None
    # "reactions" is left undecoded until its wire shape is pinned down.


class TaskStatus(Record):
    id: OptionalId = None
    status: RequiredStr
    color: OptionalStr = None
    kind: OptionalStr = Field(None, alias="type")
    orderindex: OptionalInt = None
    status_group: OptionalStr = None


class Priority(Record):
    id: OptionalId = None
    priority: NullableStr = ""
    color: OptionalStr = None
    orderindex: OptionalId = None


class Checklist(Record):
    id: WireId = ""
    name: RequiredStr
    orderindex: OptionalInt = None
    resolved: NullableIntId = 0
    unresolved: NullableIntId = 0


class Tag(Record):
    name: RequiredStr
    tag_fg: OptionalStr = None
    tag_bg: OptionalStr = None


class CustomField(Record):
    id: WireId = ""
    name: RequiredStr
    kind: OptionalStr = Field(None, alias="type")
    value: FrozenJson = None


class Attachment(Record):
    id: WireId = ""
    version: OptionalInt = None
    date: Timestamp = None
    title: OptionalStr = None
    extension: OptionalStr = None
    url: OptionalStr = None


class Task(Record):
    id: WireId = ""
    custom_id: OptionalId = None
    name: RequiredStr
    description: RichText = ""
    content: RichText = ""
    text_content: NullableStr = ""
    status: Optional[TaskStatus] = None
    orderindex: OptionalId = None
    created_at: Timestamp = Field(None, **_wire("date_created", "created_at"))
    updated_at: Timestamp = Field(None, **_wire("date_updated", "updated_at"))
    closed_at: Timestamp = Field(None, **_wire("date_closed", "closed_at"))
    done_at: Timestamp = Field(None, **_wire("date_done", "done_at"))
    due_date: Timestamp = None
    start_date: Timestamp = None
    archived: NullableBool = False
    creator: Optional[User] = None
    assignees: NullableList[User] = ()
    watchers: NullableList[User] = ()
    checklists: NullableList[Checklist] = ()
    tags: NullableList[Tag] = ()
    parent: OptionalId = None
    top_level_parent: OptionalId = None
    priority: Optional[Priority] = None
    points: OptionalInt = None
    time_estimate: OptionalInt = Field(None, **_wire("time_estimate", "timeEstimate"))
    time_spent: OptionalInt = Field(None, **_wire("time_spent", "timeSpent"))
    custom_fields: NullableList[CustomField] = ()
    attachments: NullableList[Attachment] = ()
    list: Optional[LocationRef] = None
    folder: Optional[LocationRef] = None
    space: Optional[LocationRef] = None
    team_id: OptionalId = None
    url: OptionalStr = None


class Page(Record):
    id: WireId = ""
    name: RequiredStr
    doc_id: OptionalId = None
    parent_page_id: OptionalId = None
    content: NullableStr = ""
    orderindex: OptionalInt = Field(None, **_wire("orderindex", "order"))
    created_at: Timestamp = Field(None, **_wire("date_created", "created_at"))
    updated_at: Timestamp = Field(None, **_wire("date_updated", "updated_at"))
    archived: NullableBool = False
    children: NullableList[Page] = Field((), **_wire("pages", "children"))


class Document(Record):
    id: WireId = ""
    name: RequiredStr
    created_at: Timestamp = Field(None, **_wire("date_created", "created_at"))
    updated_at: Timestamp = Field(None, **_wire("date_updated", "updated_at"))
    created_by: Optional[User] = None
    updated_by: Optional[User] = None
    workspace_id: OptionalId = None
    space: Optional[LocationRef] = None
    folder: Optional[LocationRef] = None
    url: OptionalStr = None
    deleted: NullableBool = False
    pages: NullableList[Page] = ()


class Workspace(Record):
    id: WireId = ""
    name: RequiredStr
    color: OptionalStr = None
    avatar: OptionalStr = None
    member_count: OptionalInt = None


class StatusDefinition(Record):
    id: OptionalId = None
    status: RequiredStr
    color: OptionalStr = None
    kind: OptionalStr = Field(None, alias="type")
    orderindex: OptionalInt = None


class TaskList(Record):
    id: WireId = ""
    name: RequiredStr
    orderindex: OptionalInt = None
    content: OptionalStr = None
    status: Optional[StatusDefinition] = None
    priority: Optional[Priority] = None
    archived: NullableBool = False
    task_count: OptionalInt = None
    due_date: Timestamp = None
    start_date: Timestamp = None
    folder: Optional[LocationRef] = None
    space: Optional[LocationRef] = None


class Folder(Record):
    id: WireId = ""
    name: RequiredStr
    orderindex: OptionalInt = None
    hidden: NullableBool = False
    archived: NullableBool = False
    task_count: OptionalInt = None
    space: Optional[LocationRef] = None
    lists: NullableList[TaskList] = ()


class Space(Record):
    id: WireId = ""
    name: RequiredStr
    color: OptionalStr = None
    private: NullableBool = False
    archived: NullableBool = False
    statuses: NullableList[StatusDefinition] = ()
    folders: NullableList[Folder] = ()
    lists: NullableList[TaskList] = ()


class TasksResponse(Record):
    tasks: NullableList[Task] = ()


class CommentsResponse(Record):
    comments: NullableList[Comment] = ()


class DocumentsResponse(Record):
    docs: NullableList[Document] = ()


class PagesResponse(Record):
    pages: NullableList[Page] = ()


class WorkspacesResponse(Record):
    teams: NullableList[Workspace] = ()


class SpacesResponse(Record):
    spaces: NullableList[Space] = ()


class FoldersResponse(Record):
    folders: NullableList[Folder] = ()


class ListsResponse(Record):
    lists: NullableList[TaskList] = ()
