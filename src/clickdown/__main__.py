from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import NoReturn

import typer

from clickdown import config
from clickdown.comments.threads import (
    annotate_top_level,
    author_name,
    format_timestamp,
    is_edited,
    orphan_replies,
    reply_label,
    thread_view,
)
from clickdown.export.comments import export_comments
from clickdown.schema import Comment
from clickdown.wire.decode import (
    ENTITIES,
    canonical_json,
    decode_collection,
    decode_comments,
    decode_pages,
    decode_record,
)
from clickdown.wire.diagnostics import DecodeError, ErrorKind

app = typer.Typer(help="Decode task-management API payloads and inspect comment threads.")


@app.callback()
def main_callback(
    log_level: str = typer.Option(config.LOG_LEVEL, "--log-level", help="Logging level."),
) -> None:
    logging.basicConfig(level=log_level.upper(), format="%(levelname)s %(name)s: %(message)s")


def _read_input(input: str) -> bytes:
    if input == "-":
        return sys.stdin.buffer.read()
    path = Path(input)
    if not path.is_file():
        raise typer.BadParameter(f"Input file not found: {input}", param_hint="--input")
    return path.read_bytes()


def _report(exc: DecodeError) -> NoReturn:
    diagnostic = exc.diagnostic
    typer.echo(f"error: {diagnostic.error_kind}", err=True)
    typer.echo(f"path: {diagnostic.path or '<root>'}", err=True)
    typer.echo(f"expected: {diagnostic.expected_kind}", err=True)
    typer.echo(f"raw: {diagnostic.raw_excerpt}", err=True)
    raise typer.Exit(code=1)


@app.command("decode")
def decode_command(
    entity: str = typer.Option(..., "--entity", help=f"One of: {', '.join(ENTITIES)}."),
    input: str = typer.Option(..., "--input", help="Path to a JSON response body, or - for stdin."),
    batch: bool = typer.Option(False, "--batch", help="Decode a collection response."),
) -> None:
    if entity not in ENTITIES:
        raise typer.BadParameter(f"Unknown entity: {entity}", param_hint="--entity")
    model, envelope = ENTITIES[entity]
    payload = _read_input(input)
    try:
        if batch and entity == "page":
            decoded = decode_pages(payload)
        elif batch:
            decoded = decode_collection(envelope, payload)
        else:
            decoded = decode_record(model, payload)
    except DecodeError as exc:
        _report(exc)
        return
    typer.echo(canonical_json(decoded))


def _echo_comment(comment: Comment, suffix: str = "", indent: str = "") -> None:
    edited = " (edited)" if is_edited(comment) else ""
    header = f"{indent}[{comment.id}] {author_name(comment)} - {format_timestamp(comment.created_at)}{edited}"
    typer.echo(f"{header}{suffix}")
    for line in comment.text.splitlines() or [""]:
        typer.echo(f"{indent}    {line}")


@app.command("comments")
def comments_command(
    input: str = typer.Option(..., "--input", help="Path to a comments response body, or - for stdin."),
    thread: str | None = typer.Option(None, "--thread", help="Show one parent comment and its replies."),
) -> None:
    try:
        comments = decode_comments(_read_input(input))
    except DecodeError as exc:
        _report(exc)
        return

    if thread is not None:
        view = thread_view(comments, thread)
        if not view:
            typer.echo("No comments in this thread.")
            return
        for comment in view:
            indent = "  " if comment.parent_id == thread else ""
            _echo_comment(comment, indent=indent)
        return

    annotated = annotate_top_level(comments)
    if not annotated:
        typer.echo("No comments yet.")
    for comment, count in annotated:
        suffix = f" ({reply_label(count)})" if count else ""
        _echo_comment(comment, suffix=suffix)
    orphans = orphan_replies(comments)
    if orphans:
        typer.echo(
            f"Orphaned replies (parent not in this batch): {len(orphans)} [{ErrorKind.ORPHAN_REFERENCE}]"
        )


@app.command("export-comments")
def export_comments_command(
    input: str = typer.Option(..., "--input", help="Path to a comments response body."),
    task_id: str = typer.Option(..., "--task-id", help="Task the comments belong to."),
    output: str = typer.Option(..., "--output", help="Output directory."),
) -> None:
    try:
        comments = decode_comments(_read_input(input))
    except DecodeError as exc:
        _report(exc)
        return
    written = export_comments(comments, output, task_id)
    typer.echo(f"total_read={len(comments)} total_written={written}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
