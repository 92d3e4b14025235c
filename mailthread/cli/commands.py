"""CLI command implementations — normalize a thread file, draft a reply."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import IO, Any

import anthropic
import click
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from mailthread.drafting.drafter import DraftError, ReplyDrafter
from mailthread.drafting.prompts import REPLY_LANGUAGES, REPLY_TONES
from mailthread.normalizer.pipeline import normalize_from_raw_messages, normalize_from_thread
from mailthread.normalizer.types import NormalizationOptions, NormalizationResult

logger = logging.getLogger(__name__)
console = Console(width=200)

_BODY_PREVIEW_CHARS = 80


# ── Shared helpers ─────────────────────────────────────────────────────────────


def _load_json(source: IO[str]) -> Any:
    try:
        return json.load(source)
    except json.JSONDecodeError as exc:
        raise click.ClickException(f"{source.name} is not valid JSON: {exc}") from exc


def _normalize(
    data: Any, raw: bool, thread_id: str | None, options: NormalizationOptions
) -> NormalizationResult:
    """Dispatch to the right entry point for the file's shape.

    Raw input may be a bare list of Gmail messages or a ``threads.get``
    response (``{"id": ..., "messages": [...]}``).  Without ``--thread-id``
    the thread ID comes from that response, or from the first message.
    """
    if not raw:
        return normalize_from_thread(data, options)

    messages = data
    if isinstance(data, dict) and "messages" in data:
        messages = data["messages"]
        thread_id = thread_id or data.get("id")
    if not thread_id and isinstance(messages, list) and messages:
        first = messages[0]
        thread_id = first.get("threadId") if isinstance(first, dict) else None
    return normalize_from_raw_messages(messages, thread_id or "", options)


def _print_errors(errors: list[str] | None) -> None:
    for error in errors or []:
        console.print(f"[yellow]⚠ {escape(error)}[/yellow]")


def _is_hard_failure(result: NormalizationResult) -> bool:
    return bool(
        result.errors
        and not result.normalized_thread.messages
        and any(e.startswith("Validation error") for e in result.errors)
    )


# ── mailthread normalize ───────────────────────────────────────────────────────


@click.command()
@click.argument("source", type=click.File("r", encoding="utf-8"))
@click.option("--raw", is_flag=True, help="Input is Gmail API message records.")
@click.option("--thread-id", default=None, help="Thread ID for --raw input.")
@click.option("--no-html-conversion", is_flag=True, help="Keep HTML markup in bodies.")
@click.option("--no-sort", is_flag=True, help="Keep input order instead of sorting by date.")
@click.option("--keep-empty", is_flag=True, help="Keep messages with an empty body.")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON.")
def normalize(
    source: IO[str],
    raw: bool,
    thread_id: str | None,
    no_html_conversion: bool,
    no_sort: bool,
    keep_empty: bool,
    as_json: bool,
) -> None:
    """Normalize a thread (or raw Gmail messages) from a JSON file; '-' reads stdin."""
    options = NormalizationOptions(
        convert_html_to_text=not no_html_conversion,
        sort_messages=not no_sort,
        exclude_empty_messages=not keep_empty,
    )
    result = _normalize(_load_json(source), raw, thread_id, options)

    if as_json:
        click.echo(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    else:
        thread = result.normalized_thread
        table = Table(box=box.ROUNDED, show_header=True, header_style="bold cyan")
        table.add_column("#", style="dim", width=3)
        table.add_column("Date", width=24)
        table.add_column("From", max_width=30)
        table.add_column("To", max_width=30)
        table.add_column("Subject", max_width=36)
        table.add_column("Body", max_width=_BODY_PREVIEW_CHARS)

        for i, message in enumerate(thread.messages, start=1):
            preview = message.body[:_BODY_PREVIEW_CHARS]
            if len(message.body) > _BODY_PREVIEW_CHARS:
                preview += "…"
            table.add_row(
                str(i),
                message.date,
                escape(message.sender),
                escape(", ".join(message.recipients)),
                escape(message.subject),
                escape(preview),
            )

        console.print(
            f"\nThread [bold]{thread.thread_id}[/bold] — "
            f"{result.processed_message_count} processed, {len(thread.messages)} shown\n"
        )
        console.print(table)
        _print_errors(result.errors)

    if _is_hard_failure(result):
        raise SystemExit(1)


# ── mailthread draft ───────────────────────────────────────────────────────────


@click.command()
@click.argument("source", type=click.File("r", encoding="utf-8"))
@click.option("--raw", is_flag=True, help="Input is Gmail API message records.")
@click.option("--thread-id", default=None, help="Thread ID for --raw input.")
@click.option(
    "--tone",
    type=click.Choice(sorted(REPLY_TONES)),
    default="business",
    show_default=True,
    help="Reply tone.",
)
@click.option(
    "--language",
    type=click.Choice(sorted(REPLY_LANGUAGES)),
    default="en",
    show_default=True,
    help="Reply language.",
)
@click.option("--instructions", default=None, help="Extra instructions for the draft.")
def draft(
    source: IO[str],
    raw: bool,
    thread_id: str | None,
    tone: str,
    language: str,
    instructions: str | None,
) -> None:
    """Draft a reply to the latest message of a thread using Claude."""
    result = _normalize(_load_json(source), raw, thread_id, NormalizationOptions())
    _print_errors(result.errors)
    if not result.normalized_thread.messages:
        console.print("[red]Nothing to reply to — the thread has no usable messages.[/red]")
        raise SystemExit(1)

    if not asyncio.run(_draft_async(result, tone, language, instructions)):
        raise SystemExit(1)


async def _draft_async(
    result: NormalizationResult, tone: str, language: str, instructions: str | None
) -> bool:
    thread = result.normalized_thread
    drafter = ReplyDrafter()
    console.print(
        f"Drafting a {tone} reply to {len(thread.messages)} message(s) "
        f"with [dim]{drafter.model}[/dim]..."
    )
    try:
        reply = await drafter.draft(
            thread,
            reply_type=tone,
            custom_instructions=instructions,
            language=language,
        )
    except (DraftError, anthropic.APIError) as exc:
        logger.error("Reply drafting failed for thread %s: %s", thread.thread_id, exc)
        console.print(f"[red]Drafting failed: {exc}[/red]")
        return False

    latest = thread.messages[-1]
    console.print(
        Panel(
            escape(reply.text),
            title=f"[bold]Re: {escape(latest.subject or thread.thread_id)}[/bold]",
            border_style="blue",
        )
    )
    return True
