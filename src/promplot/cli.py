"""Command line interface: fetch, plot and deliver Prometheus metrics.

Flow is strictly linear: parse flags, query the server, render the chart,
then write it to a file (or stdout) or post it to a Slack channel. Any
failure aborts the run with exit status 1.
"""

import argparse
import platform
import sys
from dataclasses import dataclass
from datetime import datetime, timedelta
from importlib import metadata
from typing import Optional, Sequence, Union

from .durations import format_duration, parse_duration
from .env import get_config
from .errors import (
    ConfigurationError,
    FetchError,
    PromplotError,
    RenderError,
    SinkError,
)
from .metrics import fetch_metrics
from .output import staged_chart, write_file
from .plot import DEFAULT_FORMAT, render_chart
from .slack import post_to_slack
from .unixtime import format_unix_date, parse_unix_date
from . import log

DISTRIBUTION = "promplot"
DEFAULT_TITLE = "Prometheus metrics"

DESCRIPTION = """\
Create and deliver plots from your Prometheus metrics.

Save plot to file or send it right to a slack channel.
Exactly one of -file or -slack/-channel must be set.
"""


@dataclass(frozen=True)
class FileTarget:
    """Write the chart to a path ("-" for stdout)."""
    path: str


@dataclass(frozen=True)
class SlackTarget:
    """Post the chart to a Slack channel."""
    token: str
    channel: str


OutputTarget = Union[FileTarget, SlackTarget]


class _Parser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of exiting with status 2."""

    def error(self, message):
        raise ConfigurationError(message)


def _duration_arg(value: str) -> timedelta:
    try:
        return parse_duration(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _time_arg(value: str) -> datetime:
    try:
        return parse_unix_date(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_parser() -> argparse.ArgumentParser:
    """Build the flag parser; flag defaults come from the environment."""
    cfg = get_config()
    parser = _Parser(
        prog=DISTRIBUTION,
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
    )
    parser.add_argument(
        "-silent", "--silent", action="store_true",
        help="Optional. Suppress all output.",
    )
    parser.add_argument(
        "-version", "--version", action="store_true",
        help="Optional. Print binary version.",
    )
    parser.add_argument(
        "-url", "--url", default=cfg.prometheus_url,
        help="Required. URL of Prometheus server.",
    )
    parser.add_argument("-query", "--query", default="", help="Required. PQL query.")
    parser.add_argument(
        "-time", "--time", type=_time_arg, default=None,
        help="Time for query (default is now). "
             "Format like the default format of the Unix date command.",
    )
    parser.add_argument(
        "-range", "--range", dest="duration", type=_duration_arg, default=None,
        help="Required. Time to look back to. Format: 5d12h34m56s",
    )
    parser.add_argument(
        "-title", "--title", default=DEFAULT_TITLE,
        help="Optional. Title of graph.",
    )
    parser.add_argument(
        "-format", "--format", default=DEFAULT_FORMAT,
        help="Optional. Image format, e.g. png, svg or pdf.",
    )
    parser.add_argument(
        "-file", "--file", default="",
        help="File to save image to. Should have same extension as -format. "
             "Set -file to - to write to stdout.",
    )
    parser.add_argument(
        "-slack", "--slack", dest="slack_token", default=cfg.slack_token or "",
        help="Slack API token. Set to post plot to Slack.",
    )
    parser.add_argument(
        "-channel", "--channel", default="",
        help="Required when -slack is set. Slack channel to post to.",
    )
    return parser


def validate_options(opts: argparse.Namespace) -> OutputTarget:
    """Check required flags and pick the single output target.

    Raises:
        ConfigurationError: If a required flag is missing or targets conflict
    """
    if not opts.url:
        raise ConfigurationError("-url is required")
    if not opts.query:
        raise ConfigurationError("-query is required")
    if not opts.duration:
        raise ConfigurationError("-range is required and must not be zero")
    if opts.duration < timedelta(0):
        raise ConfigurationError("-range must not be negative")
    end = opts.time or datetime.now().astimezone()
    try:
        end - opts.duration
    except OverflowError:
        raise ConfigurationError(
            f"-range {format_duration(opts.duration)} reaches before year 1"
        ) from None

    if opts.slack_token and not opts.channel:
        raise ConfigurationError("-channel is required when -slack is set")
    if opts.channel and not opts.slack_token:
        raise ConfigurationError("-slack is required when -channel is set")

    wants_slack = bool(opts.slack_token and opts.channel)
    if opts.file and wants_slack:
        raise ConfigurationError("-file and -slack cannot be used together")
    if opts.file:
        return FileTarget(path=opts.file)
    if wants_slack:
        return SlackTarget(token=opts.slack_token, channel=opts.channel)
    raise ConfigurationError("one of -file or -slack must be set")


def _error_context(error: PromplotError, target: OutputTarget) -> str:
    if isinstance(error, FetchError):
        return "failed getting metrics"
    if isinstance(error, RenderError):
        return "failed creating plot"
    if isinstance(error, SinkError) and isinstance(target, SlackTarget):
        return "failed uploading to Slack"
    return "failed writing file"


def run_pipeline(opts: argparse.Namespace, target: OutputTarget) -> None:
    """Fetch, render and deliver one chart."""
    end = opts.time or datetime.now().astimezone()

    log.info(
        f'Querying Prometheus "{opts.query}" '
        f"({format_duration(opts.duration)} until {format_unix_date(end)})"
    )
    metrics = fetch_metrics(opts.url, opts.query, end, opts.duration)
    log.debug(f"Fetched {len(metrics)} series")

    log.info(f'Creating plot "{opts.title}"')
    chart = render_chart(metrics, opts.title, opts.format)

    with staged_chart(chart) as tmp:
        if isinstance(target, FileTarget):
            write_file(tmp, target.path)
        else:
            log.info(f'Uploading to Slack channel "{target.channel}"')
            post_to_slack(target.token, target.channel, tmp, opts.title, chart.filename)

    log.info("Done")


def main(argv: Optional[Sequence[str]] = None, version: str = "dev") -> int:
    """Run the command line tool.

    Args:
        argv: Arguments without the program name (default: sys.argv[1:])
        version: Build version reported by -version

    Returns:
        Process exit status
    """
    parser = build_parser()
    try:
        opts = parser.parse_args(argv)
    except ConfigurationError as e:
        parser.print_help(sys.stderr)
        log.error(str(e))
        return 1

    if opts.version:
        print(f"{DISTRIBUTION} {version} {sys.platform} {platform.machine()}")
        return 0

    if opts.silent:
        get_config().silent = True

    try:
        target = validate_options(opts)
    except ConfigurationError as e:
        parser.print_help(sys.stderr)
        log.error(str(e))
        return 1

    try:
        run_pipeline(opts, target)
    except PromplotError as e:
        log.error(f"{_error_context(e, target)}: {e}")
        return 1
    return 0


def installed_version() -> str:
    """Version of the installed distribution, or "dev" from a source tree."""
    try:
        return metadata.version(DISTRIBUTION)
    except metadata.PackageNotFoundError:
        return "dev"


def run() -> None:
    """Console script entry point."""
    sys.exit(main(version=installed_version()))
