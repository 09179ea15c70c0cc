"""Utilities shared by CLI entrypoints."""

from __future__ import annotations

import argparse
import locale
import logging
import sys
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, cast

from exa_search.config import ConfigError, load_config
from exa_search.formatting import OUTPUT_FORMATS
from exa_search.logging import configure_logging, redact_secrets

if TYPE_CHECKING:
    from exa_search.config import AppConfig


_LOG_LEVEL_CHOICES = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET")
_LOG_FORMAT_CHOICES = ("text", "json")
_LOG_DESTINATION_CHOICES = ("stderr", "stdout")


CliRunner = Callable[[argparse.Namespace], int]


class CLIArgs(argparse.Namespace):
    log_level: str
    log_format: str
    log_destination: str
    config: Path | None
    env_file: Path | None
    format: str
    command: str
    app_config: AppConfig


def build_parser(*, prog: str, description: str, version: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=prog,
        description=description,
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {version}")
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to a TOML configuration file overriding defaults.",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        help="Optional .env file containing the Exa API key.",
    )
    parser.add_argument(
        "--log-level",
        type=_log_level_type,
        choices=_LOG_LEVEL_CHOICES,
        default="WARNING",
        help="Logging verbosity (case-insensitive).",
    )
    parser.add_argument(
        "--log-format",
        type=_log_format_type,
        choices=_LOG_FORMAT_CHOICES,
        default="text",
        help="Structured JSON or human-readable text logs.",
    )
    parser.add_argument(
        "--log-destination",
        type=_log_destination_type,
        choices=_LOG_DESTINATION_CHOICES,
        default="stderr",
        help="Stream that receives log records; results always go to stdout.",
    )
    parser.add_argument(
        "-f",
        "--format",
        type=_output_format_type,
        choices=OUTPUT_FORMATS,
        default="text",
        help="Output format for results.",
    )
    return parser


def add_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
    name: str,
    *,
    help: str,
) -> argparse.ArgumentParser:
    """Register a subcommand that also accepts ``-f/--format`` after its arguments."""

    command = subparsers.add_parser(
        name,
        help=help,
        description=help,
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    # SUPPRESS keeps the global value unless the flag is repeated here.
    command.add_argument(
        "-f",
        "--format",
        type=_output_format_type,
        choices=OUTPUT_FORMATS,
        default=argparse.SUPPRESS,
        help="Output format for results: text, json.",
    )
    return command


def run_cli(
    parser: argparse.ArgumentParser,
    argv: Sequence[str] | None,
    *,
    cli_name: str,
    runner: CliRunner,
) -> int:
    args = cast(CLIArgs, parser.parse_args(argv))
    configure_logging(
        level=args.log_level,
        fmt=args.log_format,
        destination=args.log_destination,
    )
    _apply_user_locale()
    logger = logging.getLogger(f"exa_search.cli.{cli_name}")
    try:
        config = load_config(env_file=args.env_file, config_file=args.config)
    except ConfigError as exc:
        logger.debug("Configuration invalid", extra={"cli": cli_name, "error": str(exc)})
        report_error(f"Configuration error: {exc}")
        return 1

    redact_secrets(config.exa.api_key)
    args.app_config = config
    logger.debug(
        "%s CLI ready",
        cli_name,
        extra={"cli": cli_name, "command": getattr(args, "command", None)},
    )
    return runner(args)


def report_error(message: str) -> None:
    """Write a one-line diagnostic to stderr."""

    print(" ".join(message.split()), file=sys.stderr)


def _apply_user_locale() -> None:
    try:
        locale.setlocale(locale.LC_TIME, "")
    except locale.Error:
        logging.getLogger(__name__).debug("Falling back to the C locale for dates")


def _log_level_type(value: str) -> str:
    normalized = value.upper()
    if normalized not in _LOG_LEVEL_CHOICES:
        raise argparse.ArgumentTypeError(
            f"Invalid log level '{value}'. Expected one of: {', '.join(_LOG_LEVEL_CHOICES)}"
        )
    return normalized


def _log_format_type(value: str) -> str:
    normalized = value.lower()
    if normalized not in _LOG_FORMAT_CHOICES:
        raise argparse.ArgumentTypeError(
            f"Invalid log format '{value}'. Expected one of: {', '.join(_LOG_FORMAT_CHOICES)}"
        )
    return normalized


def _log_destination_type(value: str) -> str:
    normalized = value.lower()
    if normalized not in _LOG_DESTINATION_CHOICES:
        expected = ", ".join(_LOG_DESTINATION_CHOICES)
        raise argparse.ArgumentTypeError(
            f"Invalid log destination '{value}'. Expected one of: {expected}"
        )
    return normalized


def _output_format_type(value: str) -> str:
    normalized = value.lower()
    if normalized not in OUTPUT_FORMATS:
        raise argparse.ArgumentTypeError(
            f"Invalid output format '{value}'. Expected one of: {', '.join(OUTPUT_FORMATS)}"
        )
    return normalized


__all__ = [
    "CliRunner",
    "add_command",
    "build_parser",
    "report_error",
    "run_cli",
]
