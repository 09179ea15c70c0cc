from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest
from exa_search import client
from exa_search.config import ExaConfig
from exa_search.query import CommandOptions, QueryRequest, SearchMode, build_request
from tests.conftest import ExaRecorder


def build_config() -> ExaConfig:
    return ExaConfig(api_key="exa-key", base_url="https://api.exa.test")


@pytest.mark.parametrize(
    ("command", "target", "options", "expected"),
    [
        (
            "search",
            "llm evals",
            CommandOptions(),
            ("search", ("llm evals",), {"num_results": 10, "type": "auto", "contents": False}),
        ),
        (
            "search",
            "llm evals",
            CommandOptions(num="3", domain="example.com", contents=True),
            (
                "search_and_contents",
                ("llm evals",),
                {
                    "num_results": 3,
                    "type": "auto",
                    "include_domains": ["example.com"],
                    "text": True,
                },
            ),
        ),
        (
            "similar",
            "https://a.test",
            CommandOptions(),
            ("find_similar", ("https://a.test",), {"num_results": 10, "contents": False}),
        ),
        (
            "similar",
            "https://a.test",
            CommandOptions(num="2", contents=True),
            ("find_similar_and_contents", ("https://a.test",), {"num_results": 2, "text": True}),
        ),
        (
            "contents",
            ["https://a.test", "https://b.test"],
            CommandOptions(),
            ("get_contents", (["https://a.test", "https://b.test"],), {"text": True}),
        ),
        (
            "research",
            "quantum",
            CommandOptions(),
            (
                "search_and_contents",
                ("quantum",),
                {"num_results": 5, "type": "neural", "text": True, "summary": True},
            ),
        ),
        (
            "papers",
            "transformers",
            CommandOptions(),
            (
                "search_and_contents",
                ("transformers",),
                {
                    "num_results": 10,
                    "type": "neural",
                    "include_domains": [
                        "arxiv.org",
                        "scholar.google.com",
                        "semanticscholar.org",
                        "papers.ssrn.com",
                        "researchgate.net",
                    ],
                    "summary": True,
                },
            ),
        ),
    ],
)
def test_plan_call_maps_requests_to_sdk_methods(
    command: str,
    target: str | list[str],
    options: CommandOptions,
    expected: tuple[str, tuple[object, ...], dict[str, object]],
) -> None:
    assert client.plan_call(build_request(command, target, options)) == expected


@pytest.mark.parametrize(
    ("command", "target"),
    [("search", "llm evals"), ("similar", "https://a.test")],
)
def test_plan_call_switches_off_default_contents(command: str, target: str) -> None:
    operation, _, kwargs = client.plan_call(build_request(command, target))

    assert operation in {"search", "find_similar"}
    assert kwargs["contents"] is False
    assert "text" not in kwargs


@pytest.mark.parametrize(
    ("command", "target", "options"),
    [
        ("search", "llm evals", CommandOptions(contents=True)),
        ("search", "llm evals", CommandOptions(summary=True)),
        ("similar", "https://a.test", CommandOptions(contents=True)),
        ("research", "quantum", CommandOptions()),
        ("news", "quantum", CommandOptions()),
    ],
)
def test_plan_call_leaves_contents_to_text_and_summary_flags(
    command: str, target: str, options: CommandOptions, frozen_now: datetime
) -> None:
    _, _, kwargs = client.plan_call(build_request(command, target, options))

    assert "contents" not in kwargs
    assert kwargs.get("text") or kwargs.get("summary")


def test_plan_call_for_news_includes_date_floor(frozen_now: datetime) -> None:
    operation, args, kwargs = client.plan_call(build_request("news", "topic X"))

    assert operation == "search_and_contents"
    assert args == ("topic X",)
    assert kwargs == {
        "num_results": 10,
        "type": "neural",
        "start_published_date": "2026-10-11T00:00:00.000Z",
        "summary": True,
    }


def test_search_client_passes_configuration_to_sdk(fake_exa: ExaRecorder) -> None:
    client.SearchClient(build_config())

    assert len(fake_exa.instances) == 1
    assert fake_exa.instances[0].api_key == "exa-key"
    assert fake_exa.instances[0].base_url == "https://api.exa.test"


def test_execute_issues_exactly_one_call(fake_exa: ExaRecorder) -> None:
    search_client = client.SearchClient(build_config())
    request = QueryRequest(
        command="contents",
        url_list=("https://a.test", "https://b.test"),
        include_text=True,
        include_summary=True,
    )

    result_set = search_client.execute(request)

    assert fake_exa.calls == [
        ("get_contents", (["https://a.test", "https://b.test"],), {"text": True, "summary": True})
    ]
    assert len(result_set.items) == 2
    assert result_set.payload["request_id"] == "req-123"


def test_execute_wraps_sdk_errors(fake_exa: ExaRecorder) -> None:
    fake_exa.error = RuntimeError("quota exceeded")
    search_client = client.SearchClient(build_config())
    request = QueryRequest(
        command="search", query_text="q", result_count=1, mode=SearchMode.AUTO
    )

    with pytest.raises(client.CollaboratorError) as excinfo:
        search_client.execute(request)

    assert excinfo.value.operation == "search"
    assert str(excinfo.value) == "search failed: quota exceeded"
    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert len(fake_exa.calls) == 1


def test_execute_names_errors_without_message(fake_exa: ExaRecorder) -> None:
    fake_exa.error = TimeoutError()
    search_client = client.SearchClient(build_config())

    with pytest.raises(client.CollaboratorError, match="TimeoutError"):
        search_client.execute(QueryRequest(command="similar", subject_url="https://a.test"))


def test_doctor_reports_success(
    fake_exa: ExaRecorder, capsys: pytest.CaptureFixture[str]
) -> None:
    status = client.doctor(config=build_config())
    captured = capsys.readouterr()

    assert status is True
    assert "api.exa.test" in captured.out
    assert fake_exa.calls == [("search", ("exa",), {"num_results": 1, "contents": False})]


def test_doctor_handles_errors(
    fake_exa: ExaRecorder, capsys: pytest.CaptureFixture[str]
) -> None:
    fake_exa.error = RuntimeError("invalid api key")

    status = client.doctor(config=build_config())
    captured = capsys.readouterr()

    assert status is False
    assert "invalid api key" in captured.err


def test_doctor_reports_missing_configuration(
    fake_exa: ExaRecorder, capsys: pytest.CaptureFixture[str]
) -> None:
    status = client.doctor()
    captured = capsys.readouterr()

    assert status is False
    assert "EXA_API_KEY" in captured.err
    assert fake_exa.instances == []


def test_main_runs_config_check_then_api_check(
    fake_exa: ExaRecorder, api_key: str, capsys: pytest.CaptureFixture[str]
) -> None:
    assert client.main([]) == 0

    captured = capsys.readouterr()
    assert "Configuration looks good." in captured.out
    assert "Exa API reachable" in captured.out
    assert api_key not in captured.out
    assert fake_exa.instances[0].api_key == api_key
    assert len(fake_exa.calls) == 1


def test_main_offline_reads_env_file_without_calling_api(
    fake_exa: ExaRecorder, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    env_file = tmp_path / "exa.env"
    env_file.write_text("EXA_API_KEY=from-file-0123456789\n", encoding="utf-8")

    assert client.main(["--env-file", str(env_file), "--offline"]) == 0

    captured = capsys.readouterr()
    assert "from...6789" in captured.out
    assert fake_exa.instances == []


def test_main_stops_when_configuration_is_invalid(
    fake_exa: ExaRecorder, capsys: pytest.CaptureFixture[str]
) -> None:
    assert client.main([]) == 1

    captured = capsys.readouterr()
    assert "Configuration invalid:" in captured.err
    assert "EXA_API_KEY" in captured.err
    assert fake_exa.instances == []


def test_main_reports_rejected_credential(
    fake_exa: ExaRecorder, api_key: str, capsys: pytest.CaptureFixture[str]
) -> None:
    fake_exa.error = RuntimeError("invalid api key")

    assert client.main([]) == 1
    assert "invalid api key" in capsys.readouterr().err
