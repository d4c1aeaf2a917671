"""CLI entry point for taskboard."""

import argparse
import asyncio
from pathlib import Path

from pydantic import ValidationError

from . import __version__
from .config import Settings
from .errors import StoreError
from .logging import setup_logging


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="taskboard",
        description="Kanban board ordering engine",
    )
    parser.add_argument(
        "--board-root",
        type=Path,
        default=None,
        help="Directory holding local boards (default: .boards)",
    )
    parser.add_argument(
        "--board",
        default=None,
        help="Board id to operate on",
    )
    parser.add_argument(
        "--backend",
        choices=["filesystem", "rest"],
        default=None,
        help="Storage backend (default: filesystem)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase logging verbosity (-v for INFO, -vv for DEBUG)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Path to write logs to file",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    show = commands.add_parser("show", help="Print the board")
    show.add_argument("--filter", default=None, help="Filter expression, e.g. 'priority:high'")

    move = commands.add_parser("move", help="Drop a task onto a task or a column")
    move.add_argument("task_id")
    target = move.add_mutually_exclusive_group(required=True)
    target.add_argument("--onto", metavar="TASK_ID", help="Drop onto another task")
    target.add_argument("--column", metavar="KEY", help="Drop onto a column")

    add_column = commands.add_parser("add-column", help="Create a column")
    add_column.add_argument("name")
    add_column.add_argument("--icon", default=None)
    add_column.add_argument("--color", default=None, help="Hex color, e.g. #3B82F6")

    delete_column = commands.add_parser("delete-column", help="Delete a column")
    delete_column.add_argument("key")

    add_task = commands.add_parser("add-task", help="Create a task (filesystem backend)")
    add_task.add_argument("title")
    add_task.add_argument("--status", default=None, help="Column key (default: first column)")

    return parser.parse_args(argv)


async def run(settings: Settings, args: argparse.Namespace) -> int:
    """Run the selected command against the configured board."""
    from .cli import commands

    async with commands.open_engine(settings) as engine:
        if args.command == "show":
            return await commands.run_show(engine, args.filter)
        if args.command == "move":
            return await commands.run_move(engine, args.task_id, args.onto, args.column)
        if args.command == "add-column":
            return await commands.run_add_column(engine, args.name, args.icon, args.color)
        if args.command == "delete-column":
            return await commands.run_delete_column(engine, args.key)
        return await commands.run_add_task(engine, args.title, args.status)


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    from .cli.output import error

    args = parse_args(argv)

    # Build settings from CLI args
    settings_kwargs: dict = {}
    if args.board_root:
        settings_kwargs["board_root"] = args.board_root
    if args.board:
        settings_kwargs["board_id"] = args.board
    if args.backend:
        settings_kwargs["backend"] = args.backend
    if args.verbose:
        settings_kwargs["verbose"] = args.verbose
    if args.log_file:
        settings_kwargs["log_file"] = args.log_file

    try:
        settings = Settings(**settings_kwargs)
    except ValidationError as e:
        error(f"Invalid configuration: {e.errors()[0]['msg']}")
        raise SystemExit(1) from None

    setup_logging(settings.verbose, settings.log_file)

    try:
        exit_code = asyncio.run(run(settings, args))
    except StoreError as e:
        error(f"Could not load board '{settings.board_id}': {e}")
        exit_code = 1
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
