"""`exa-search` CLI entrypoint."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Sequence

from exa_search import client, query
from exa_search.cli import _common
from exa_search.formatting import format_results

PROG_NAME = "exa-search"
DESCRIPTION = "Semantic search using Exa AI"
VERSION = "1.0.0"

_PROGRESS_MESSAGES = {
    "research": "Researching: %s...",
    "news": "Searching news: %s...",
    "papers": "Searching papers: %s...",
}


def build_parser() -> argparse.ArgumentParser:
    parser = _common.build_parser(prog=PROG_NAME, description=DESCRIPTION, version=VERSION)
    subparsers = parser.add_subparsers(dest="command", required=True, metavar="COMMAND")

    search = _common.add_command(subparsers, "search", help="Search the web semantically")
    search.add_argument("target", metavar="query", help="Search query")
    _add_num_option(search, default=query.DEFAULT_RESULT_COUNT)
    search.add_argument(
        "-t",
        "--type",
        default=query.SearchMode.AUTO.value,
        choices=[mode.value for mode in query.SearchMode],
        help="Search type",
    )
    _add_contents_flag(search)
    _add_summary_flag(search)
    _add_days_option(search, help="Limit to last N days")
    search.add_argument("--domain", help="Limit to specific domain")

    similar = _common.add_command(subparsers, "similar", help="Find pages similar to a URL")
    similar.add_argument("target", metavar="url", help="URL to find similar pages to")
    _add_num_option(similar, default=query.DEFAULT_RESULT_COUNT)
    _add_contents_flag(similar)

    contents = _common.add_command(subparsers, "contents", help="Get contents of specific URLs")
    contents.add_argument("target", metavar="urls", nargs="+", help="URLs to get contents from")
    _add_summary_flag(contents)

    research = _common.add_command(
        subparsers,
        "research",
        help="Deep research a topic (search + contents + AI summary)",
    )
    research.add_argument("target", metavar="topic", help="Topic to research")
    _add_num_option(research, default=query.DEFAULT_RESEARCH_RESULT_COUNT, help="Number of sources")
    _add_days_option(research, help="Limit to last N days")

    news = _common.add_command(subparsers, "news", help="Search recent news on a topic")
    news.add_argument("target", metavar="topic", help="News topic")
    _add_num_option(news, default=query.DEFAULT_RESULT_COUNT)
    _add_days_option(news, default=query.DEFAULT_NEWS_DAYS, help="Last N days")

    papers = _common.add_command(subparsers, "papers", help="Search academic papers on a topic")
    papers.add_argument("target", metavar="topic", help="Research topic")
    _add_num_option(papers, default=query.DEFAULT_RESULT_COUNT)

    return parser


def run(args: argparse.Namespace) -> int:
    """Build the request, issue the single Exa call and print the formatted results."""

    logger = logging.getLogger(f"exa_search.cli.{args.command}")
    try:
        request = query.build_request(args.command, args.target, command_options(args))
    except query.InvalidArgumentError as exc:
        _common.report_error(f"Invalid argument: {exc}")
        return 1

    progress = _PROGRESS_MESSAGES.get(args.command)
    if progress:
        logger.info(progress, request.query_text)

    search_client = client.SearchClient(args.app_config.exa)
    try:
        result_set = search_client.execute(request)
    except client.CollaboratorError as exc:
        _common.report_error(f"Error: {exc}")
        return 1

    print(format_results(result_set, args.format))
    return 0


def command_options(args: argparse.Namespace) -> query.CommandOptions:
    return query.CommandOptions(
        num=getattr(args, "num", None),
        type=getattr(args, "type", None),
        days=getattr(args, "days", None),
        domain=getattr(args, "domain", None),
        contents=getattr(args, "contents", False),
        summary=getattr(args, "summary", False),
    )


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    return _common.run_cli(parser, argv, cli_name="search", runner=run)


def _add_num_option(
    parser: argparse.ArgumentParser, *, default: str, help: str = "Number of results"
) -> None:
    parser.add_argument("-n", "--num", metavar="NUMBER", default=default, help=help)


def _add_days_option(
    parser: argparse.ArgumentParser, *, help: str, default: str | None = None
) -> None:
    parser.add_argument("-d", "--days", metavar="DAYS", default=default, help=help)


def _add_contents_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-c", "--contents", action="store_true", help="Include page contents")


def _add_summary_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-s", "--summary", action="store_true", help="Include AI summary")


if __name__ == "__main__":  # pragma: no cover - manual execution guard
    raise SystemExit(main())


__all__ = ["build_parser", "command_options", "main", "run"]
