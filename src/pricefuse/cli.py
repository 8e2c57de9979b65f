"""Command-line interface for PRICEFUSE.

Provides commands for valuing collectible items from the terminal.

Usage:
    pricefuse value "Charizard" --set "Base Set" --number 4
    pricefuse value "Charizard" --condition "Near Mint" --window-days 90 --format json
    pricefuse status
"""

import argparse
import asyncio
import json
import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from pricefuse import __version__
from pricefuse.config import settings
from pricefuse.errors import ValuationError
from pricefuse.models import PriceQuery, ValuationResult
from pricefuse.pipeline import PricingOrchestrator, ValuationIdentity

logger = logging.getLogger(__name__)

_executor = ThreadPoolExecutor(max_workers=1)


def create_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser.

    Returns:
        Configured ArgumentParser with all commands and arguments.
    """
    parser = argparse.ArgumentParser(
        prog="pricefuse",
        description="PRICEFUSE — multi-source collectible valuation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pricefuse value "Charizard" --set "Base Set" --number 4
  pricefuse value "Pikachu" --condition "Near Mint" --format json
  pricefuse status
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # value command
    value_parser = subparsers.add_parser(
        "value",
        help="Value an item from all configured providers",
        description="Fetch comparable prices and fuse them into one valuation",
    )
    value_parser.add_argument("item_name", type=str, help="Item name (e.g., 'Charizard')")
    value_parser.add_argument("--set", dest="set_name", type=str, default=None, help="Set or series name")
    value_parser.add_argument("--number", type=str, default=None, help="Collector number within the set")
    value_parser.add_argument("--condition", type=str, default=None, help="Restrict to a condition (e.g., 'Near Mint')")
    value_parser.add_argument(
        "--window-days",
        type=int,
        default=30,
        help="Maximum observation age in days (default: 30)",
    )
    value_parser.add_argument("--caller", type=str, default=None, help="Caller id (enables the cache with --item)")
    value_parser.add_argument("--item", type=str, default=None, help="Item id (enables the cache with --caller)")
    value_parser.add_argument(
        "--force-refresh",
        action="store_true",
        help="Ignore cached valuations and fetch fresh data",
    )
    value_parser.add_argument(
        "--format",
        type=str,
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )

    # status command
    subparsers.add_parser("status", help="Show provider availability and breaker state")

    # version command
    subparsers.add_parser("version", help="Show version information")

    return parser


def _run_async(coro):
    """Run an async coroutine from synchronous CLI context.

    Spins up a new event loop in a dedicated thread to avoid conflicts
    with any existing event loop.
    """
    def _target():
        loop = asyncio.new_event_loop()
        try:
            return loop.run_until_complete(coro)
        finally:
            loop.close()

    future = _executor.submit(_target)
    return future.result()


def format_valuation(result: ValuationResult) -> str:
    """Human-readable valuation summary."""
    lines = [
        f"Median:      ${result.value_median:,.2f}",
        f"Range:       ${result.value_low:,.2f} – ${result.value_high:,.2f} (P10–P90)",
        f"Observations:{result.observation_count:>5} over {result.window_days} days",
        f"Sources:     {', '.join(result.sources)}",
        f"Confidence:  {result.confidence:.2f}",
        f"Volatility:  {result.volatility:.2f}",
    ]
    return "\n".join(lines)


def cmd_value(args: argparse.Namespace) -> int:
    """Execute the value command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 success, 2 no providers/no data, 1 other failure)
    """
    try:
        query = PriceQuery(
            item_name=args.item_name,
            set_name=args.set_name,
            number=args.number,
            condition=args.condition,
            window_days=args.window_days,
        )
        identity = None
        if args.caller and args.item:
            identity = ValuationIdentity(caller_id=args.caller, item_id=args.item)

        logger.info(
            "Valuing %r (window=%dd, cached=%s, force_refresh=%s)",
            query.keywords(), query.window_days, identity is not None, args.force_refresh,
        )

        orchestrator = PricingOrchestrator()
        result = _run_async(
            orchestrator.fetch_valuation(
                query,
                identity=identity,
                force_refresh=args.force_refresh,
            )
        )

        # Output in requested format
        if args.format == "json":
            print(json.dumps(result.to_dict(), indent=2))
        else:
            print(format_valuation(result))

        return 0

    except ValuationError as e:
        logger.error("Valuation failed (%s): %s", e.kind.value, e)
        print(f"Error [{e.kind.value}]: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 130
    except Exception as e:
        logger.error("Valuation failed: %s", e, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_status(args: argparse.Namespace) -> int:
    """Print provider availability and breaker state as JSON."""
    orchestrator = PricingOrchestrator()
    statuses = _run_async(orchestrator.sources_status())
    print(json.dumps(statuses, indent=2))
    return 0


def cmd_version(args: argparse.Namespace) -> int:
    """Execute the version command."""
    print(f"PRICEFUSE v{__version__}")
    print("Multi-source collectible valuation")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    parser = create_parser()
    args = parser.parse_args(argv)

    # Route to command handler
    if args.command == "value":
        return cmd_value(args)
    elif args.command == "status":
        return cmd_status(args)
    elif args.command == "version":
        return cmd_version(args)
    else:
        # No command specified
        parser.print_help()
        return 0


def cli_entry() -> None:
    """Console script entry point for setuptools."""
    sys.exit(main())


if __name__ == "__main__":
    cli_entry()
