"""cronwise CLI -- the `cronwise` command.

Usage:
    cronwise validate "0 9 * * 1-5"         Check an expression
    cronwise next "0 9 * * 1-5" [-n 5]      Show upcoming run times
    cronwise generate "every day at 9am"    Natural language -> cron (needs an AI provider)
    cronwise explain "0 9 * * 1-5"          Cron -> natural language (needs an AI provider)
    cronwise history [--clear]              Show or clear recent conversions
    cronwise status                         Show configuration status
    cronwise start                          Start the HTTP server
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from datetime import datetime
from pathlib import Path


def _load_config(args: argparse.Namespace):
    from core.config import load_config

    if args.home:
        os.environ["CRONWISE_HOME"] = str(Path(args.home).expanduser())
    return load_config()


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate an expression. Exit code 1 when invalid."""
    from scheduler.cron import validate_cron_expression

    result = validate_cron_expression(args.expression)
    print(f"  {'OK' if result.is_valid else 'INVALID'}: {result.message}")
    return 0 if result.is_valid else 1


def cmd_next(args: argparse.Namespace) -> int:
    """Print the next run times of an expression."""
    from scheduler.cron import (
        DEFAULT_SEARCH_LIMIT,
        format_occurrence,
        next_run_times,
        validate_cron_expression,
    )

    result = validate_cron_expression(args.expression)
    if not result.is_valid:
        print(f"  INVALID: {result.message}")
        return 1

    reference = None
    if args.reference:
        try:
            reference = datetime.fromisoformat(args.reference)
        except ValueError:
            print(f"  Invalid --from datetime: {args.reference!r} (expected ISO format)")
            return 2

    search_limit = args.limit if args.limit is not None else DEFAULT_SEARCH_LIMIT
    runs = next_run_times(args.expression, reference=reference, count=args.count, search_limit=search_limit)
    if not runs:
        print("  No upcoming run times found within the search window.")
        return 0

    for run in runs:
        print(f"  {run.isoformat(sep=' ', timespec='minutes')}  ({format_occurrence(run)})")
    if len(runs) < args.count:
        print(f"  Only {len(runs)} run time(s) found within the search window.")
    return 0


async def _translate(config, direction: str, text: str) -> str:
    from main import select_translator
    from plugins.ai_providers import load_providers

    providers = load_providers(config.ai.providers)
    translator = select_translator(config, providers)
    if translator is None:
        raise RuntimeError("No AI provider configured. Set GEMINI_API_KEY or edit config.yaml.")
    try:
        if direction == "nl-to-cron":
            return await translator.to_cron(text)
        return await translator.to_natural_language(text)
    finally:
        for provider in providers.values():
            await provider.close()


def _cmd_translate(args: argparse.Namespace, direction: str) -> int:
    from core.data.store import HistoryStore
    from engine.translator import TranslationError

    config = _load_config(args)
    try:
        output = asyncio.run(_translate(config, direction, args.text))
    except (RuntimeError, TranslationError) as e:
        print(f"  {e}")
        return 1

    store = HistoryStore(config.home_path / "history.sqlite", max_items=config.history.max_items)
    try:
        store.add(args.text, output, direction)
    finally:
        store.close()

    print(f"  {output}")
    return 0


def cmd_generate(args: argparse.Namespace) -> int:
    """Natural language -> cron."""
    return _cmd_translate(args, "nl-to-cron")


def cmd_explain(args: argparse.Namespace) -> int:
    """Cron -> natural language."""
    return _cmd_translate(args, "cron-to-nl")


def cmd_history(args: argparse.Namespace) -> int:
    """Show or clear recent conversions."""
    from core.data.store import HistoryStore

    config = _load_config(args)
    store = HistoryStore(config.home_path / "history.sqlite", max_items=config.history.max_items)
    try:
        if args.clear:
            removed = store.clear()
            print(f"  Removed {removed} history item(s).")
            return 0

        items = store.recent()
        if not items:
            print("  No history yet")
            return 0
        for item in items:
            label = "NL->CRON" if item.type == "nl-to-cron" else "CRON->NL"
            print(f"  [{label}] {item.input}  ->  {item.output}")
        return 0
    finally:
        store.close()


def cmd_status(args: argparse.Namespace) -> int:
    """Show configuration status."""
    from core.config import resolve_home

    home = Path(args.home).expanduser() if args.home else resolve_home()
    config_path = home / "config.yaml"
    db_path = home / "history.sqlite"

    print(f"  Home:     {home}")
    print(f"  Config:   {config_path} ({'exists' if config_path.exists() else 'NOT FOUND'})")
    print(f"  History:  {db_path} ({'exists' if db_path.exists() else 'NOT FOUND'})")

    config = _load_config(args)
    configured = [name for name, p in config.ai.providers.items() if p.api_key]
    print(f"  AI providers: {', '.join(configured) if configured else 'none'}"
          f" (default: {config.ai.default_provider})")
    limit = config.rate_limit
    print(f"  Rate limit:   {f'{limit.requests} per {limit.window}' if limit.enabled else 'off'}")
    print()
    return 0


def cmd_start(args: argparse.Namespace) -> int:
    """Start the cronwise server."""
    from main import run, setup_logging

    if args.home:
        os.environ["CRONWISE_HOME"] = str(Path(args.home).expanduser())
    setup_logging("INFO")

    try:
        asyncio.run(run(config_path=args.config))
    except KeyboardInterrupt:
        pass
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="cronwise",
        description="cronwise -- CRON expression helper",
    )
    parser.add_argument("--home", type=str, default=None, help="cronwise home directory")

    sub = parser.add_subparsers(dest="command")

    # validate
    validate_parser = sub.add_parser("validate", help="Check a CRON expression")
    validate_parser.add_argument("expression", type=str, help='5-field expression, e.g. "0 9 * * 1-5"')

    # next
    next_parser = sub.add_parser("next", help="Show upcoming run times")
    next_parser.add_argument("expression", type=str, help='5-field expression, e.g. "0 9 * * 1-5"')
    next_parser.add_argument("-n", "--count", type=int, default=5, help="How many run times (default: 5)")
    next_parser.add_argument(
        "--from",
        dest="reference",
        type=str,
        default=None,
        help="Reference time in ISO format (default: now)",
    )
    next_parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Search window in minutes (default: 8 years)",
    )

    # generate
    generate_parser = sub.add_parser("generate", help="Natural language -> CRON")
    generate_parser.add_argument("text", type=str, help='e.g. "every weekday at 9am"')

    # explain
    explain_parser = sub.add_parser("explain", help="CRON -> natural language")
    explain_parser.add_argument("text", type=str, help='e.g. "0 9 * * 1-5"')

    # history
    history_parser = sub.add_parser("history", help="Show recent conversions")
    history_parser.add_argument("--clear", action="store_true", help="Remove all history")

    # status
    sub.add_parser("status", help="Show configuration status")

    # start
    start_parser = sub.add_parser("start", help="Start the HTTP server")
    start_parser.add_argument("--config", "-c", type=str, default=None, help="Path to config.yaml")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    commands = {
        "validate": cmd_validate,
        "next": cmd_next,
        "generate": cmd_generate,
        "explain": cmd_explain,
        "history": cmd_history,
        "status": cmd_status,
        "start": cmd_start,
    }

    handler = commands.get(args.command)
    if handler:
        sys.exit(handler(args))
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
