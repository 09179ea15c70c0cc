from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

from exa_search.config import ConfigError, ExaConfig, get_config, load_config
from exa_search.config import doctor as check_config
from exa_search.query import QueryRequest
from exa_search.results import ResultSet

try:  # pragma: no cover - exercised in tests via monkeypatching
    from exa_py import Exa
except ImportError as exc:  # pragma: no cover - dependency missing at runtime
    raise RuntimeError("exa-py is required. Install it with `pip install exa-py`.") from exc

logger = logging.getLogger(__name__)

__all__ = ["CollaboratorError", "SearchClient", "doctor", "main", "plan_call"]


class CollaboratorError(RuntimeError):
    """Raised when a call to the Exa API fails."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation


class SearchClient:
    """Issues exactly one Exa API call per request."""

    def __init__(self, config: ExaConfig) -> None:
        self._exa = Exa(api_key=config.api_key, base_url=config.base_url)

    def execute(self, request: QueryRequest) -> ResultSet:
        operation, args, kwargs = plan_call(request)
        logger.debug(
            "Calling Exa",
            extra={"operation": operation, "command": request.command, "options": kwargs},
        )
        try:
            response = getattr(self._exa, operation)(*args, **kwargs)
        except Exception as exc:
            logger.debug(
                "Exa request failed",
                exc_info=True,
                extra={"operation": operation, "command": request.command},
            )
            raise CollaboratorError(operation, str(exc) or type(exc).__name__) from exc

        result_set = ResultSet.from_response(response)
        logger.info(
            "Exa returned %d results",
            len(result_set.items),
            extra={"operation": operation, "command": request.command},
        )
        return result_set


def plan_call(request: QueryRequest) -> tuple[str, tuple[Any, ...], dict[str, Any]]:
    """Choose the SDK method and keyword arguments for ``request``."""

    contents = _contents_options(request)
    if request.url_list is not None:
        return "get_contents", (list(request.url_list),), contents

    options = _search_options(request)
    if request.subject_url is not None:
        if request.include_text:
            return "find_similar_and_contents", (request.subject_url,), {**options, "text": True}
        # exa-py 2.x fetches page text unless contents are switched off explicitly.
        return "find_similar", (request.subject_url,), {**options, "contents": False}

    if contents:
        return "search_and_contents", (request.query_text,), {**options, **contents}
    return "search", (request.query_text,), {**options, "contents": False}


def _search_options(request: QueryRequest) -> dict[str, Any]:
    options: dict[str, Any] = {}
    if request.result_count is not None:
        options["num_results"] = request.result_count
    if request.mode is not None:
        options["type"] = request.mode.value
    if request.since_date is not None:
        options["start_published_date"] = request.since_date
    if request.include_domains:
        options["include_domains"] = list(request.include_domains)
    return options


def _contents_options(request: QueryRequest) -> dict[str, Any]:
    options: dict[str, Any] = {}
    if request.include_text:
        options["text"] = True
    if request.include_summary:
        options["summary"] = True
    return options


def doctor(*, config: ExaConfig | None = None) -> bool:
    """Run a one-result search to confirm the credential is accepted."""

    try:
        resolved = config or get_config().exa
        client = SearchClient(resolved)
        client.execute(QueryRequest(command="doctor", query_text="exa", result_count=1))
    except (ConfigError, CollaboratorError) as exc:
        print(f"Exa API check failed: {exc}", file=sys.stderr)
        return False
    print(f"Exa API reachable at {resolved.base_url}.", file=sys.stdout)
    return True


def main(argv: list[str] | None = None) -> int:
    """Validate the configuration sources, then probe the API with the loaded key."""

    parser = argparse.ArgumentParser(
        prog="exa-search-doctor",
        description="Check the exa-search configuration and the Exa API key.",
    )
    parser.add_argument("--env-file", type=Path, help="Path to the .env file to read.")
    parser.add_argument(
        "--config-file", type=Path, help="Path to the user config file (config.toml)."
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Only validate configuration sources; skip the API request.",
    )
    args = parser.parse_args(argv)

    if not check_config(env_file=args.env_file, config_file=args.config_file):
        return 1
    if args.offline:
        return 0
    app_config = load_config(env_file=args.env_file, config_file=args.config_file)
    return 0 if doctor(config=app_config.exa) else 1


if __name__ == "__main__":  # pragma: no cover - manual execution guard
    raise SystemExit(main())
