"""Render result sets as a human-readable report or as JSON."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Literal

from exa_search.results import ResultItem, ResultSet

OutputFormat = Literal["text", "json"]
OUTPUT_FORMATS: tuple[str, ...] = ("text", "json")

RULE = "─" * 60
PREVIEW_LENGTH = 300
ELLIPSIS = "..."
UNTITLED = "Untitled"


def format_results(result_set: ResultSet, fmt: OutputFormat | str = "text") -> str:
    if fmt == "json":
        return render_json(result_set)
    if fmt == "text":
        return render_text(result_set)
    raise ValueError(f"Unknown output format: {fmt!r}")


def render_json(result_set: ResultSet) -> str:
    return json.dumps(result_set.payload, indent=2, ensure_ascii=False, default=str)


def render_text(result_set: ResultSet) -> str:
    lines = [f"\n🔍 Found {len(result_set.items)} results\n", RULE]
    for item in result_set.items:
        lines.extend(_item_lines(item))
    return "\n".join(lines)


def preview(text: str) -> str:
    """Return the body preview shown under a result."""
    snippet = text[:PREVIEW_LENGTH].replace("\n", " ")
    if len(text) > PREVIEW_LENGTH:
        snippet += ELLIPSIS
    return snippet


def format_published_date(value: str) -> str:
    """Render an ISO timestamp as a calendar date in the local time zone and locale.

    Values the API sends in another shape are shown verbatim.
    """
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return value
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone()
    return parsed.strftime("%x")


def _item_lines(item: ResultItem) -> list[str]:
    lines = ["", f"📄 {item.title or UNTITLED}", f"🔗 {item.url}"]
    if item.published_date:
        lines.append(f"📅 {format_published_date(item.published_date)}")
    if item.author:
        lines.append(f"✍️  {item.author}")
    if item.summary:
        lines.extend(["", f"📝 {item.summary}"])
    if item.text:
        lines.extend(["", preview(item.text)])
    lines.extend(["", RULE])
    return lines


__all__ = [
    "OUTPUT_FORMATS",
    "OutputFormat",
    "format_published_date",
    "format_results",
    "preview",
    "render_json",
    "render_text",
]
