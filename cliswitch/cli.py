"""Diagnostic command line for the delegating services.

Usage:
    cliswitch backend
    cliswitch models
    cliswitch resolve sonnet
    cliswitch default gpt-5
    cliswitch --new-sdk sessions --create --model "Claude Opus 4.5"

Sessions are held in memory, so ``sessions`` only shows what the same
invocation created.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from .config import ConfigKey, ConfigurationService
from .errors import CLISwitchError
from .models import SessionOptions
from .services import Services, create_services

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cliswitch",
        description="Inspect the legacy/new SDK CLI agent backends",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Settings YAML file (default: $CLISWITCH_CONFIG or ~/.cliswitch/settings.yaml)",
    )
    flag = parser.add_mutually_exclusive_group()
    flag.add_argument(
        "--new-sdk",
        dest="new_sdk",
        action="store_true",
        default=None,
        help="Route calls to the new SDK backend for this run (overrides CLISWITCH_NEW_SDK_ENABLED)",
    )
    flag.add_argument(
        "--legacy",
        dest="new_sdk",
        action="store_false",
        help="Route calls to the legacy backend for this run (overrides CLISWITCH_NEW_SDK_ENABLED)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("backend", help="Show which backend is selected")
    sub.add_parser("models", help="List models of the selected backend")

    resolve = sub.add_parser("resolve", help="Resolve a model name to its id")
    resolve.add_argument("model")

    default = sub.add_parser("default", help="Show or set the default model")
    default.add_argument("model", nargs="?", default=None)
    default.add_argument(
        "--clear", action="store_true", help="Clear the stored default model",
    )

    sessions = sub.add_parser("sessions", help="List (and optionally create) sessions")
    sessions.add_argument(
        "--create", action="store_true", help="Create a session first",
    )
    sessions.add_argument("--model", default=None)
    sessions.add_argument("--cwd", default=None)
    sessions.add_argument(
        "--isolated", action="store_true", help="Use an isolated worktree path",
    )
    return parser


async def _cmd_backend(services: Services, console: Console) -> int:
    use_new_sdk = await services.selector.resolve()
    source = services.configuration.inspect(ConfigKey.NEW_SDK_ENABLED)
    console.print(f"{'sdk' if use_new_sdk else 'legacy'} (from {source})")
    return 0


async def _cmd_models(services: Services, console: Console) -> int:
    models = await services.models.get_models()
    default = await services.models.get_default_model()
    table = Table(title="Models")
    table.add_column("Id")
    table.add_column("Name")
    table.add_column("Provider")
    table.add_column("Default")
    for info in models:
        table.add_row(info.id, info.name, info.provider, "*" if info.id == default else "")
    console.print(table)
    return 0


async def _cmd_resolve(services: Services, console: Console, model: str) -> int:
    resolved = await services.models.resolve_model(model)
    if resolved is None:
        console.print(f"Model '{model}' is not recognized by the selected backend")
        return 1
    console.print(resolved)
    return 0


async def _cmd_default(
    services: Services, console: Console, model: str | None, clear: bool,
) -> int:
    if clear:
        await services.models.set_default_model(None)
    elif model is not None:
        await services.models.set_default_model(model)
    console.print(await services.models.get_default_model() or "(none)")
    return 0


async def _cmd_sessions(
    services: Services, console: Console, args: argparse.Namespace,
) -> int:
    if args.create:
        options = SessionOptions(
            model=args.model,
            working_directory=Path(args.cwd) if args.cwd else None,
            isolation_enabled=args.isolated,
        )
        ref = await services.sessions.create_session(options)
        console.print(f"Created session {ref.object.session_id}")
    items = await services.sessions.get_all_sessions(lambda _: True)
    table = Table(title="Sessions")
    table.add_column("Id")
    table.add_column("Label")
    table.add_column("Model")
    table.add_column("Working directory")
    for item in items:
        table.add_row(
            item.id, item.label, item.model or "",
            str(item.working_directory) if item.working_directory else "",
        )
    console.print(table)
    return 0


async def run(args: argparse.Namespace, console: Console) -> int:
    command_line: dict[str, bool] = {}
    if args.new_sdk is not None:
        command_line[ConfigKey.NEW_SDK_ENABLED.id] = args.new_sdk
    configuration = ConfigurationService.load(args.config, command_line)
    services = create_services(configuration)
    logger.debug("Running command %s", args.command)
    try:
        if args.command == "backend":
            return await _cmd_backend(services, console)
        if args.command == "models":
            return await _cmd_models(services, console)
        if args.command == "resolve":
            return await _cmd_resolve(services, console, args.model)
        if args.command == "default":
            return await _cmd_default(services, console, args.model, args.clear)
        return await _cmd_sessions(services, console, args)
    finally:
        services.dispose()


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )

    console = Console(highlight=False, markup=False)
    try:
        return asyncio.run(run(args, console))
    except CLISwitchError as exc:
        console.print(f"Error: {exc}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
