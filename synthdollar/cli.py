"""Command-line interface for the synthetic-dollar engine."""
from __future__ import annotations

import argparse
import asyncio
import sys

from .config import AppConfig, load_config
from .errors import PriceUnavailable
from .logging_setup import configure_logging
from .oracles import OracleAdapter, PythPriceSource
from .simulation import format_report, load_scenario, run_scenario
from .units import from_wei, normalize_price


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="synthdollar",
        description="Over-collateralised synthetic dollar engine",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("prices", help="Fetch and validate collateral prices from Pyth")

    simulate_parser = sub.add_parser(
        "simulate", help="Run a scenario against an in-memory engine"
    )
    simulate_parser.add_argument("scenario", help="Path to scenario YAML")
    simulate_parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 1 if any step failed",
    )

    return parser


async def _show_prices(config: AppConfig) -> None:
    source = PythPriceSource(config.oracle.pyth)
    await source.refresh(list(config.price_feeds))
    oracle = OracleAdapter(source, timeout=config.oracle.staleness_timeout_seconds)

    for entry in config.engine.collateral:
        try:
            reading = oracle.latest_price(entry.price_feed)
        except PriceUnavailable as e:
            print(f"{entry.token}: unavailable — {e}")
            continue
        usd = from_wei(normalize_price(reading.price, reading.decimals))
        print(f"{entry.token}: ${usd:,.4f}")


def _simulate(config: AppConfig, args: argparse.Namespace) -> int:
    report = run_scenario(config, load_scenario(args.scenario))
    print(format_report(report))
    if args.strict and report.failed_steps:
        return 1
    return 0


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    configure_logging(args.log_level)
    config = load_config(args.config)

    if args.command == "prices":
        asyncio.run(_show_prices(config))
    elif args.command == "simulate":
        sys.exit(_simulate(config, args))
