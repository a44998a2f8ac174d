from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

import pyarrow as pa
import pyarrow.dataset as ds

from clickdown.comments.threads import reply_counts
from clickdown.schema import Comment


logger = logging.getLogger("clickdown.export")

COMMENT_PARQUET_SCHEMA = pa.schema(
    [
        ("comment_id", pa.string()),
        ("parent_id", pa.string()),
        ("author_id", pa.int64()),
        ("author", pa.string()),
        ("text", pa.string()),
        ("created_at", pa.int64()),
        ("updated_at", pa.int64()),
        ("resolved", pa.bool_()),
        ("is_top_level", pa.bool_()),
        ("reply_count", pa.int64()),
        ("position", pa.int64()),
        ("task_id", pa.string()),
        ("year", pa.string()),
        ("month", pa.string()),
    ]
)
PARTITION_SCHEMA = pa.schema(
    [
        ("task_id", pa.string()),
        ("year", pa.string()),
        ("month", pa.string()),
    ]
)


def export_comments(comments: Iterable[Comment], output_dir: str | Path, task_id: str) -> int:
    """Write one task's comment batch to a hive-partitioned parquet dataset."""
    batch = tuple(comments)
    if not batch:
        logger.info("no comments to export for task %s", task_id)
        return 0

    counts = reply_counts(batch)
    rows = [_comment_row(comment, position, task_id, counts) for position, comment in enumerate(batch)]

    table = pa.Table.from_pylist(rows, schema=COMMENT_PARQUET_SCHEMA)
    ds.write_dataset(
        table,
        base_dir=str(output_dir),
        format="parquet",
        partitioning=ds.partitioning(PARTITION_SCHEMA, flavor="hive"),
        existing_data_behavior="overwrite_or_ignore",
        basename_template=f"comments-{task_id}-{{i}}.parquet",
    )
    logger.info("exported %d comments for task %s to %s", len(rows), task_id, output_dir)
    return len(rows)


def _comment_row(comment: Comment, position: int, task_id: str, counts: dict[str, int]) -> dict[str, Any]:
    year, month = _partition_date(comment.created_at)
    return {
        "comment_id": comment.id,
        "parent_id": comment.parent_id,
        "author_id": comment.author.id if comment.author is not None else None,
        "author": comment.author.username if comment.author is not None else None,
        "text": comment.text,
        "created_at": comment.created_at,
        "updated_at": comment.updated_at,
        "resolved": comment.resolved,
        "is_top_level": comment.parent_id is None,
        "reply_count": counts.get(comment.id, 0),
        "position": position,
        "task_id": task_id,
        "year": year,
        "month": month,
    }


def _partition_date(millis: int | None) -> tuple[str, str]:
    if millis is None:
        return "unknown", "unknown"
    try:
        created = datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return "unknown", "unknown"
    return f"{created.year:04d}", f"{created.month:02d}"
