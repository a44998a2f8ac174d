"""Threaded views over a flat batch of decoded comments.

The API delivers a task's comments as one flat list in which a reply names
its parent through ``parent_id``. Every function here is a pure projection:
it takes the batch as delivered, never re-sorts it and never mutates it.
A reply whose parent is missing from the batch is an orphan; orphans are a
normal data shape and only ever shrink a thread view to its replies.
"""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable

from clickdown import config
from clickdown.schema import Comment
from clickdown.wire.diagnostics import ErrorKind


logger = logging.getLogger("clickdown.comments")


class CommentViewMode:
    TOP_LEVEL = "top_level"
    THREAD = "thread"


@dataclass(frozen=True)
class ViewState:
    mode: str = CommentViewMode.TOP_LEVEL
    parent_id: str | None = None


def top_level_view(comments: Iterable[Comment]) -> tuple[Comment, ...]:
    return tuple(comment for comment in comments if comment.parent_id is None)


def thread_view(comments: Iterable[Comment], parent_id: str) -> tuple[Comment, ...]:
    batch = tuple(comments)
    parent = next((comment for comment in batch if comment.id == parent_id), None)
    replies = tuple(comment for comment in batch if comment.parent_id == parent_id)
    if parent is None:
        logger.debug("thread %s has no parent in batch; showing %d replies", parent_id, len(replies))
        return replies
    return (parent, *replies)


def reply_counts(comments: Iterable[Comment]) -> dict[str, int]:
    counts = Counter(comment.parent_id for comment in comments if comment.parent_id is not None)
    return dict(counts)


def orphan_replies(comments: Iterable[Comment]) -> tuple[Comment, ...]:
    batch = tuple(comments)
    known_ids = {comment.id for comment in batch}
    orphans = tuple(
        comment
        for comment in batch
        if comment.parent_id is not None and comment.parent_id not in known_ids
    )
    for orphan in orphans:
        logger.debug(
            "%s: comment %s replies to %s, which is not in the batch",
            ErrorKind.ORPHAN_REFERENCE,
            orphan.id,
            orphan.parent_id,
        )
    return orphans


def annotate_top_level(comments: Iterable[Comment]) -> tuple[tuple[Comment, int], ...]:
    batch = tuple(comments)
    counts = reply_counts(batch)
    return tuple((comment, counts.get(comment.id, 0)) for comment in top_level_view(batch))


def reply_label(count: int) -> str:
    if count == 1:
        return "1 reply"
    return f"{count} replies"


def visible_comments(comments: Iterable[Comment], state: ViewState) -> tuple[Comment, ...]:
    if state.mode == CommentViewMode.THREAD and state.parent_id is not None:
        return thread_view(comments, state.parent_id)
    return top_level_view(comments)


def enter_thread(state: ViewState, comment: Comment) -> ViewState:
    # replies cannot be opened as threads of their own
    if comment.parent_id is not None:
        return state
    return ViewState(mode=CommentViewMode.THREAD, parent_id=comment.id)


def exit_thread() -> ViewState:
    return ViewState()


def is_edited(comment: Comment) -> bool:
    return comment.updated_at is not None and comment.updated_at != comment.created_at


def author_name(comment: Comment) -> str:
    if comment.author is None or not comment.author.username:
        return "Anonymous"
    return comment.author.username


def format_timestamp(millis: int | None, fmt: str = config.DATE_FORMAT) -> str:
    if millis is None:
        return "Unknown date"
    try:
        moment = datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return "Unknown date"
    return moment.strftime(fmt)
