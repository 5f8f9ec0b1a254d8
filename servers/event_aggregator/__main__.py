"""
Command line entry point for the regional event aggregator.

Run with: python -m servers.event_aggregator [--date weekend] [--json]
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

import structlog
from dotenv import load_dotenv
from jinja2 import TemplateError

from .aggregator import EventAggregator
from .cache import ResultCache
from .config import load_settings
from .errors import CacheError, InvalidDateExpression
from .logging_config import configure_logging
from .render import render_json, render_text

log = structlog.get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_BAD_INPUT = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="region-events",
        description="Aggregate local events from APIs and city websites.",
    )
    parser.add_argument("--city", help="City shown in output and used in the cache key")
    parser.add_argument("--radius", type=int, help="Search radius in km")
    parser.add_argument("--type", default="all", help="Event category filter (default: all)")
    parser.add_argument("--limit", type=int, help="Maximum number of events")
    parser.add_argument(
        "--date",
        help="today | weekend | YYYY-MM-DD | YYYY-MM-DD:YYYY-MM-DD (default: next 7 days)",
    )
    parser.add_argument("--json", action="store_true", help="Output JSON instead of text")
    parser.add_argument("--no-cache", action="store_true", help="Bypass the result cache")
    parser.add_argument("--config", type=Path, help="JSON config file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser


def _apply_overrides(settings, args: argparse.Namespace):
    location = settings.location.model_copy(
        update={k: v for k, v in {"city": args.city, "radius_km": args.radius}.items() if v is not None}
    )
    update = {"location": location}
    if args.limit is not None:
        update["limit"] = args.limit
    return settings.model_copy(update=update)


async def run(args: argparse.Namespace) -> int:
    settings = _apply_overrides(load_settings(args.config), args)
    cache = None if args.no_cache else ResultCache(
        settings.cache_dir, ttl_seconds=settings.cache_ttl_minutes * 60
    )

    aggregator = EventAggregator(settings, cache=cache)
    result = await aggregator.fetch_events(date_expr=args.date, category=args.type)

    if args.json:
        print(render_json(result.events))
    else:
        print(render_text(result.events, result.date_range, settings.location.city), end="")
    return EXIT_OK


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    load_dotenv()

    try:
        return asyncio.run(run(args))
    except InvalidDateExpression as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_BAD_INPUT
    except (CacheError, TemplateError, OSError, ValueError) as e:
        log.error("run_failed", error=str(e))
        print(f"error: {e}", file=sys.stderr)
        return EXIT_FAILURE


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
