"""Translate subcommand flags into typed Exa query requests.

Every subcommand owns a builder that applies its own defaulting rules to the
raw option strings collected by the CLI. Builders never touch the network; the
only ambient input is the wall clock, read once when a date floor is derived.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum

__all__ = [
    "ACADEMIC_DOMAINS",
    "COMMANDS",
    "CommandOptions",
    "InvalidArgumentError",
    "QueryRequest",
    "SearchMode",
    "build_contents_request",
    "build_news_request",
    "build_papers_request",
    "build_request",
    "build_research_request",
    "build_search_request",
    "build_similar_request",
    "derive_since_date",
    "parse_day_offset",
    "parse_result_count",
]

ACADEMIC_DOMAINS: tuple[str, ...] = (
    "arxiv.org",
    "scholar.google.com",
    "semanticscholar.org",
    "papers.ssrn.com",
    "researchgate.net",
)

DEFAULT_RESULT_COUNT = "10"
DEFAULT_RESEARCH_RESULT_COUNT = "5"
DEFAULT_NEWS_DAYS = "7"


class InvalidArgumentError(ValueError):
    """Raised when a command-line option cannot be turned into a request field."""

    def __init__(self, option: str, message: str) -> None:
        super().__init__(f"{option}: {message}")
        self.option = option


class SearchMode(str, Enum):
    NEURAL = "neural"
    KEYWORD = "keyword"
    AUTO = "auto"

    @classmethod
    def coerce(cls, value: SearchMode | str | None) -> SearchMode:
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.AUTO
        normalized = str(value).strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        expected = ", ".join(member.value for member in cls)
        raise InvalidArgumentError("--type", f"unknown search type {value!r} (expected {expected})")


@dataclass(frozen=True, slots=True)
class CommandOptions:
    """Raw option values as typed on the command line.

    ``None`` means the flag was not given; the per-command builder decides the
    default.
    """

    num: str | None = None
    type: str | None = None
    days: str | None = None
    domain: str | None = None
    contents: bool = False
    summary: bool = False


@dataclass(frozen=True, slots=True)
class QueryRequest:
    """Everything one Exa call needs, independent of the SDK's calling convention."""

    command: str
    query_text: str | None = None
    subject_url: str | None = None
    url_list: tuple[str, ...] | None = None
    result_count: int | None = None
    mode: SearchMode | None = None
    since_date: str | None = None
    include_domains: tuple[str, ...] | None = None
    include_text: bool = False
    include_summary: bool = False

    def __post_init__(self) -> None:
        populated = [
            value
            for value in (self.query_text, self.subject_url, self.url_list)
            if value is not None
        ]
        if len(populated) != 1:
            raise ValueError("exactly one of query_text, subject_url, url_list must be set")
        if self.url_list is not None and not self.url_list:
            raise ValueError("url_list must contain at least one URL")
        if self.result_count is not None and self.result_count <= 0:
            raise ValueError("result_count must be positive")


def parse_result_count(raw: str | None, *, default: str = DEFAULT_RESULT_COUNT) -> int:
    value = default if raw is None else raw
    count = _parse_integer(value)
    if count is None or count <= 0:
        raise InvalidArgumentError("--num", f"expected a positive integer, got {value!r}")
    return count


def parse_day_offset(raw: str) -> int:
    days = _parse_integer(raw)
    if days is None:
        raise InvalidArgumentError("--days", f"expected an integer, got {raw!r}")
    return days


def derive_since_date(days: int, *, now: datetime | None = None) -> str:
    """Return midnight UTC ``days`` calendar days before ``now`` as an ISO-8601 string."""

    current = (now or _utcnow()).astimezone(UTC)
    try:
        floor = current - timedelta(days=days)
    except OverflowError:
        raise InvalidArgumentError("--days", f"offset out of range: {days}") from None
    floor = floor.replace(hour=0, minute=0, second=0, microsecond=0)
    return floor.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _parse_integer(value: object) -> int | None:
    # ASCII digits with an optional sign; int() alone also takes "1_000" and "١٢".
    text = str(value).strip()
    digits = text[1:] if text[:1] in ("+", "-") else text
    if not (digits.isascii() and digits.isdecimal()):
        return None
    try:
        return int(text)
    except ValueError:  # longer than sys.get_int_max_str_digits()
        return None


def build_search_request(
    query: str, options: CommandOptions, *, now: datetime | None = None
) -> QueryRequest:
    since_date = None
    if options.days is not None:
        since_date = derive_since_date(parse_day_offset(options.days), now=now)
    return QueryRequest(
        command="search",
        query_text=query,
        result_count=parse_result_count(options.num),
        mode=SearchMode.coerce(options.type),
        since_date=since_date,
        include_domains=(options.domain,) if options.domain else None,
        include_text=options.contents,
        include_summary=options.summary,
    )


def build_similar_request(
    url: str, options: CommandOptions, *, now: datetime | None = None
) -> QueryRequest:
    return QueryRequest(
        command="similar",
        subject_url=url,
        result_count=parse_result_count(options.num),
        include_text=options.contents,
    )


def build_contents_request(
    urls: Sequence[str], options: CommandOptions, *, now: datetime | None = None
) -> QueryRequest:
    if not urls:
        raise InvalidArgumentError("urls", "at least one URL is required")
    return QueryRequest(
        command="contents",
        url_list=tuple(urls),
        include_text=True,
        include_summary=options.summary,
    )


def build_research_request(
    topic: str, options: CommandOptions, *, now: datetime | None = None
) -> QueryRequest:
    since_date = None
    if options.days is not None:
        since_date = derive_since_date(parse_day_offset(options.days), now=now)
    return QueryRequest(
        command="research",
        query_text=topic,
        result_count=parse_result_count(options.num, default=DEFAULT_RESEARCH_RESULT_COUNT),
        mode=SearchMode.NEURAL,
        since_date=since_date,
        include_text=True,
        include_summary=True,
    )


def build_news_request(
    topic: str, options: CommandOptions, *, now: datetime | None = None
) -> QueryRequest:
    days = options.days if options.days is not None else DEFAULT_NEWS_DAYS
    return QueryRequest(
        command="news",
        query_text=topic,
        result_count=parse_result_count(options.num),
        mode=SearchMode.NEURAL,
        since_date=derive_since_date(parse_day_offset(days), now=now),
        include_summary=True,
    )


def build_papers_request(
    topic: str, options: CommandOptions, *, now: datetime | None = None
) -> QueryRequest:
    return QueryRequest(
        command="papers",
        query_text=topic,
        result_count=parse_result_count(options.num),
        mode=SearchMode.NEURAL,
        include_domains=ACADEMIC_DOMAINS,
        include_summary=True,
    )


RequestBuilder = Callable[..., QueryRequest]

COMMANDS: Mapping[str, RequestBuilder] = {
    "search": build_search_request,
    "similar": build_similar_request,
    "contents": build_contents_request,
    "research": build_research_request,
    "news": build_news_request,
    "papers": build_papers_request,
}


def build_request(
    command: str,
    target: str | Sequence[str],
    options: CommandOptions | None = None,
    *,
    now: datetime | None = None,
) -> QueryRequest:
    """Build the request for ``command`` from its positional target and raw options."""

    builder = COMMANDS.get(command)
    if builder is None:
        raise InvalidArgumentError("command", f"unknown command {command!r}")
    if command == "contents":
        urls = [target] if isinstance(target, str) else list(target)
        return builder(urls, options or CommandOptions(), now=now)
    if not isinstance(target, str):
        raise InvalidArgumentError(command, "expected a single argument")
    return builder(target, options or CommandOptions(), now=now)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)
