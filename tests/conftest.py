from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import exa_search.config as app_config
import pytest
from exa_search import client, query

FROZEN_NOW = datetime(2026, 10, 18, 15, 30, 12, tzinfo=UTC)
CONFIG_ENV_KEYS = ("EXA_API_KEY", "EXA_BASE_URL")


@dataclass
class FakeResult:
    url: str
    id: str
    title: str | None = None
    score: float | None = None
    published_date: str | None = None
    author: str | None = None
    text: str | None = None
    summary: str | None = None


@dataclass
class FakeResponse:
    results: list[FakeResult]
    resolved_search_type: str | None = None
    request_id: str | None = None


def sample_response() -> FakeResponse:
    return FakeResponse(
        results=[
            FakeResult(
                url="https://example.com/llm-agents",
                id="https://example.com/llm-agents",
                title="Agents in production",
                score=0.91,
                published_date="2026-10-01T08:00:00.000Z",
                author="Ada Lovelace",
                text="First paragraph.\nSecond paragraph.",
                summary="How teams ship agents.",
            ),
            FakeResult(url="https://example.org/bare", id="https://example.org/bare"),
        ],
        resolved_search_type="neural",
        request_id="req-123",
    )


@dataclass
class ExaRecorder:
    """Collects every fake SDK client the code under test creates."""

    response: Any = field(default_factory=sample_response)
    error: Exception | None = None
    instances: list[FakeExa] = field(default_factory=list)

    @property
    def calls(self) -> list[tuple[str, tuple[Any, ...], dict[str, Any]]]:
        return [call for instance in self.instances for call in instance.calls]


class FakeExa:
    def __init__(self, recorder: ExaRecorder, *, api_key: str, base_url: str) -> None:
        self.recorder = recorder
        self.api_key = api_key
        self.base_url = base_url
        self.calls: list[tuple[str, tuple[Any, ...], dict[str, Any]]] = []

    def _call(self, name: str, *args: Any, **kwargs: Any) -> Any:
        self.calls.append((name, args, kwargs))
        if self.recorder.error is not None:
            raise self.recorder.error
        return self.recorder.response

    def search(self, query: str, **kwargs: Any) -> Any:
        return self._call("search", query, **kwargs)

    def search_and_contents(self, query: str, **kwargs: Any) -> Any:
        return self._call("search_and_contents", query, **kwargs)

    def find_similar(self, url: str, **kwargs: Any) -> Any:
        return self._call("find_similar", url, **kwargs)

    def find_similar_and_contents(self, url: str, **kwargs: Any) -> Any:
        return self._call("find_similar_and_contents", url, **kwargs)

    def get_contents(self, urls: list[str], **kwargs: Any) -> Any:
        return self._call("get_contents", urls, **kwargs)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for key in CONFIG_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv(app_config.ENV_FILE_ENV_VAR, str(tmp_path / "missing.env"))
    monkeypatch.setenv(app_config.CONFIG_FILE_ENV_VAR, str(tmp_path / "missing.toml"))
    monkeypatch.setattr(app_config, "_CONFIG_CACHE", None)


@pytest.fixture(autouse=True)
def _restore_root_logging() -> Iterator[None]:
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    try:
        yield
    finally:
        root.handlers[:] = handlers
        root.setLevel(level)


@pytest.fixture()
def api_key(monkeypatch: pytest.MonkeyPatch) -> str:
    value = "exa-test-key-0123456789"
    monkeypatch.setenv("EXA_API_KEY", value)
    return value


@pytest.fixture()
def fake_exa(monkeypatch: pytest.MonkeyPatch) -> ExaRecorder:
    recorder = ExaRecorder()

    def factory(*, api_key: str, base_url: str) -> FakeExa:
        instance = FakeExa(recorder, api_key=api_key, base_url=base_url)
        recorder.instances.append(instance)
        return instance

    monkeypatch.setattr(client, "Exa", factory)
    return recorder


@pytest.fixture()
def frozen_now(monkeypatch: pytest.MonkeyPatch) -> datetime:
    monkeypatch.setattr(query, "_utcnow", lambda: FROZEN_NOW)
    return FROZEN_NOW
