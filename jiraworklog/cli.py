"""Command line entry point: ``jwl log``, ``jwl view`` and ``jwl config``."""
from __future__ import annotations

import argparse
import getpass
import logging
import sys
from pathlib import Path
from typing import Callable, Optional, Sequence

from .contexts import resolve
from .errors import ConfigExistsError, JiraWorklogError, MalformedConfigError
from .jira_client import DEFAULT_TIMEOUT, JiraClient
from .models import AccessToken, BasicApiToken, Config, Context, WorkLog, WorkLogEntry, validate_domain
from .storage import default_config_path, load_config, write_config
from .utils import (
    format_duration,
    local_day_bounds,
    local_now,
    parse_date,
    parse_duration,
    parse_start_time,
)

LOGGER = logging.getLogger(__name__)

API_TOKEN = "api token"
ACCESS_TOKEN = "access token"
AUTH_METHODS = (ACCESS_TOKEN, API_TOKEN)


def _load_context(args: argparse.Namespace) -> Context:
    config = load_config(args.config_file)
    return resolve(config, args.context)


def format_worklog(issue_key: str, worklog: WorkLog) -> str:
    started = worklog.started.strftime("%Y-%m-%d %H:%M") if worklog.started else "?"
    comment = worklog.comment or "`no comment`"
    return f"> {issue_key} <{worklog.author}> `{worklog.time_spent}` {started} {comment}"


# ---------------------------------------------------------------- commands --
def log_command(args: argparse.Namespace) -> int:
    seconds = parse_duration(args.duration)
    started = parse_start_time(args.started, local_now())
    entry = WorkLogEntry(
        issue_key=args.issue,
        time_spent=seconds,
        started=started,
        comment=args.comment or None,
    )
    context = _load_context(args)
    with JiraClient.for_context(context, timeout=args.timeout) as client:
        worklog_id = client.create_work_log(entry)
    print(f"Logged {format_duration(seconds)} on {entry.issue_key} (worklog {worklog_id})")
    return 0


def view_command(args: argparse.Namespace) -> int:
    started_after = started_before = None
    if args.date:
        started_after, started_before = local_day_bounds(parse_date(args.date, local_now().date()))
    context = _load_context(args)
    with JiraClient.for_context(context, timeout=args.timeout) as client:
        worklogs = client.list_work_logs(args.issue, started_after, started_before)
    if not worklogs:
        print(f"No worklogs found for {args.issue}")
        return 0
    for worklog in worklogs:
        print(format_worklog(args.issue, worklog))
    return 0


def _prompt(prompt: str, reader: Callable[[str], str]) -> str:
    while True:
        value = reader(f"{prompt}: ").strip()
        if value:
            return value
        print(f"{prompt} cannot be empty", file=sys.stderr)


def _prompt_secret(prompt: str, secret_reader: Callable[[str], str]) -> str:
    while True:
        value = _prompt(prompt, secret_reader)
        confirmation = secret_reader(f"{prompt} confirmation: ").strip()
        if value == confirmation:
            return value
        print(f"The confirmation differed from the entered {prompt.lower()}", file=sys.stderr)


def prompt_context(
    reader: Optional[Callable[[str], str]] = None,
    secret_reader: Optional[Callable[[str], str]] = None,
) -> Context:
    reader = reader or input
    secret_reader = secret_reader or getpass.getpass
    jira_domain = validate_domain(_prompt("Jira domain to connect to", reader))
    choices = ", ".join(f"{index + 1}) {method}" for index, method in enumerate(AUTH_METHODS))
    selection = reader(f"Authorization method [{choices}] (default 1): ").strip().lower()
    if selection in ("", "1", ACCESS_TOKEN):
        authorization = AccessToken(access_token=_prompt_secret("Access token", secret_reader))
    elif selection in ("2", API_TOKEN):
        authorization = BasicApiToken(
            username=_prompt("Username", reader),
            api_token=_prompt_secret("Api token", secret_reader),
        )
    else:
        raise MalformedConfigError(f"A invalid authorization method was selected: {selection}")
    return Context(jira_domain=jira_domain, authorization=authorization)


def config_command(args: argparse.Namespace) -> int:
    path = default_config_path(args.config_file)
    if path.exists():
        raise ConfigExistsError(path)
    context = prompt_context()
    written = write_config(Config(contexts=(context,), single=True), args.config_file)
    print(f"Config created at {written}, application ready for use")
    return 0


# ------------------------------------------------------------------ parser --
def _add_context_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-c",
        "--context",
        help="Context to use by name, only required when using a config with multiple contexts",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jwl",
        description="Create and view Jira worklogs.",
    )
    parser.add_argument(
        "--config-file",
        type=Path,
        help="Path to the config file (default: $JWL_CONFIG or the user config directory)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help=f"Seconds to wait for each Jira request (default: {DEFAULT_TIMEOUT:g})",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Log more details, repeat for debug output",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    log_parser = subparsers.add_parser("log", aliases=["add"], help="Create a new worklog")
    log_parser.add_argument("issue", help="Key of the issue, e.g. PROJ-123")
    log_parser.add_argument(
        "duration",
        help="Time spent as days (#d), hours (#h) or minutes (#m or #), e.g. 1h30m",
    )
    log_parser.add_argument(
        "-s",
        "--started",
        default="now",
        help="When the work started: now, today, yesterday, yyyy-mm-dd, "
        "'yyyy-mm-dd HH:MM' or HH:MM (default: now)",
    )
    log_parser.add_argument("-m", "--comment", help="Comment to add to the worklog")
    _add_context_argument(log_parser)
    log_parser.set_defaults(func=log_command)

    view_parser = subparsers.add_parser("view", help="View the worklogs of an issue")
    view_parser.add_argument("issue", help="Key of the issue, e.g. PROJ-123")
    view_parser.add_argument(
        "-d",
        "--date",
        help="Only show worklogs started on this day (yyyy-mm-dd, today or yesterday); "
        "without it every worklog of the issue is listed",
    )
    _add_context_argument(view_parser)
    view_parser.set_defaults(func=view_command)

    config_parser = subparsers.add_parser("config", help="Set up the configuration using a prompt")
    config_parser.set_defaults(func=config_command)

    return parser


def configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    try:
        return args.func(args)
    except JiraWorklogError as exc:
        LOGGER.debug("Command %s failed", args.command, exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("error: interrupted", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
