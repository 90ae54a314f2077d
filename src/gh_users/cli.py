"""Command-line interface.

Each sub-command runs exactly one user command (or one natural-language request) and exits with a
code from the shared exit-code table. Payloads are printed as JSON on stdout; failures print
`Error: <message>` on stderr.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path
from typing import Any

import psycopg

from gh_users import __version__
from gh_users.app import create_app
from gh_users.config.logging import configure_logging
from gh_users.config.settings import load_settings
from gh_users.errors import CommandResult, exit_code_for
from gh_users.intent.schema import UserFilter

CommandRunner = Callable[[Any], Awaitable[CommandResult]]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="github-cli",
        description="Interact with GitHub users and store them in the database.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add-user", help="Fetch a GitHub user and store it in the database.")
    add.add_argument("username")

    update = sub.add_parser("update-user", help="Refresh an existing user from GitHub.")
    update.add_argument("username")

    delete = sub.add_parser("delete-user", help="Remove an existing user from the database.")
    delete.add_argument("username")

    get_one = sub.add_parser("get-user", help="Get a user by username.")
    get_one.add_argument("username")

    get_many = sub.add_parser("get-users", help="Get all users, optionally filtered and sorted.")
    get_many.add_argument("-l", "--location", help="Filter users by location.")
    get_many.add_argument("-c", "--company", help="Filter users by company.")
    get_many.add_argument("-L", "--language", help="Filter users by language.")
    get_many.add_argument(
        "-s",
        "--sort",
        help="Sort by username, location, company (ascending) or followers, following "
             "(descending).",
    )

    sub.add_parser("populate", help="Load the sample users file into the database.")

    ai = sub.add_parser("ai", help="Ask the AI to run a command described in plain text.")
    ai.add_argument("text", nargs="+")

    voice = sub.add_parser("voice", help="Run a command described in an audio recording.")
    voice.add_argument("audio_file", type=Path)

    return parser


def _runner_for(args: argparse.Namespace) -> CommandRunner:
    """Map parsed arguments to a call on the application container."""

    runners: dict[str, CommandRunner] = {
        "add-user": lambda app: app.commands.create(args.username),
        "update-user": lambda app: app.commands.update(args.username),
        "delete-user": lambda app: app.commands.delete(args.username),
        "get-user": lambda app: app.commands.get_one(args.username),
        "get-users": lambda app: app.commands.get_many(
            UserFilter(
                location=args.location,
                company=args.company,
                language=args.language,
                sort=args.sort,
            )
        ),
        "populate": lambda app: app.commands.populate(),
        "ai": lambda app: app.resolver.resolve(" ".join(args.text)),
        "voice": lambda app: app.resolver.resolve_audio(
            args.audio_file.read_bytes(), args.audio_file.name
        ),
    }
    return runners[args.command]


def render_result(result: CommandResult) -> int:
    """Print a result and return the process exit code."""

    if result.ok:
        if isinstance(result.data, str):
            print(result.data)
        else:
            print(json.dumps(result.data, indent=2, ensure_ascii=False))
    else:
        print(f"Error: {result.error}", file=sys.stderr)
    return exit_code_for(result)


async def _run(args: argparse.Namespace) -> int:
    settings = load_settings()
    configure_logging(settings.log_level)

    app = create_app(settings)
    try:
        await app.open()
        result = await _runner_for(args)(app)
    except psycopg.Error as exc:
        raise RuntimeError(f"Database unavailable: {exc}") from exc
    finally:
        await app.close()
    return render_result(result)


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point."""

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "voice" and not args.audio_file.is_file():
        parser.error(f"audio file not found: {args.audio_file}")

    try:
        return asyncio.run(_run(args))
    except RuntimeError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
