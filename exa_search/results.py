"""Result records returned by the Exa API, normalised to plain Python data."""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

__all__ = ["ResultItem", "ResultSet", "to_plain"]


@dataclass(frozen=True, slots=True)
class ResultItem:
    url: str
    title: str | None = None
    published_date: str | None = None
    author: str | None = None
    summary: str | None = None
    text: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ResultItem:
        return cls(
            url=str(data.get("url") or ""),
            title=_optional_str(data, "title"),
            published_date=_optional_str(data, "published_date", "publishedDate"),
            author=_optional_str(data, "author"),
            summary=_optional_str(data, "summary"),
            text=_optional_str(data, "text"),
        )


@dataclass(frozen=True, slots=True)
class ResultSet:
    """Ranked items plus the complete response they came from.

    ``payload`` keeps every field the API attached, in the order received, so
    JSON output can pass it through untouched.
    """

    items: tuple[ResultItem, ...] = ()
    payload: Mapping[str, Any] = dataclasses.field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.items)

    @classmethod
    def from_response(cls, response: Any) -> ResultSet:
        payload = to_plain(response)
        if isinstance(payload, list):
            payload = {"results": payload}
        elif not isinstance(payload, dict):
            payload = {}
        raw_items = payload.get("results") or []
        items = tuple(
            ResultItem.from_mapping(item) for item in raw_items if isinstance(item, Mapping)
        )
        return cls(items=items, payload=payload)


def to_plain(value: Any) -> Any:
    """Convert SDK response objects into JSON-compatible dicts and lists."""

    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            field.name: to_plain(getattr(value, field.name))
            for field in dataclasses.fields(value)
        }
    if isinstance(value, Mapping):
        return {str(key): to_plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(item) for item in value]
    if hasattr(value, "model_dump"):
        return to_plain(value.model_dump())
    if hasattr(value, "__dict__"):
        return {
            key: to_plain(item) for key, item in vars(value).items() if not key.startswith("_")
        }
    return str(value)


def _optional_str(data: Mapping[str, Any], *keys: str) -> str | None:
    for key in keys:
        value = data.get(key)
        if value is None:
            continue
        text = str(value)
        if text:
            return text
    return None
