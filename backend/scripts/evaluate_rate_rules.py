#!/usr/bin/env python
"""Evaluate a rate rules script against rates given on the command line.

Run from the backend directory:
    python -m scripts.evaluate_rate_rules --pair BTC_USD \\
        --rules "BTC_X = 2 * kraken(BTC_X);" --rate kraken:BTC_USD=50000

Or with a script file and a spread:
    python -m scripts.evaluate_rate_rules --rules-file rules.txt \\
        --pair BTC_USD --pair BTC_EUR --multiplier 1.01 \\
        --rate kraken:BTC_USD=50000 --rate kraken:BTC_EUR=46000
"""

import argparse
import asyncio
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, ".")

from app.core.config import get_settings
from app.core.logging import get_logger, setup_logging
from app.rate_engine.application.exceptions import ApplicationError
from app.rate_engine.application.use_cases import FetchRatesUseCase, LoadRateRulesUseCase
from app.rate_engine.domain.value_objects.currency_pair import CurrencyPair
from app.rate_engine.infrastructure.external import (
    RateProviderRegistry,
    StaticRateProvider,
)

logger = get_logger(__name__)


def parse_rate(value: str) -> tuple[str, CurrencyPair, Decimal]:
    """Parse ``exchange:PAIR=rate`` (e.g. ``kraken:BTC_USD=50000``)."""
    try:
        source, rate = value.split("=", 1)
        exchange, pair = source.split(":", 1)
        return exchange.strip().lower(), CurrencyPair.parse(pair.strip()), Decimal(rate.strip())
    except (ValueError, InvalidOperation) as e:
        raise argparse.ArgumentTypeError(
            f"invalid rate '{value}', expected exchange:PAIR=rate"
        ) from e


def parse_pair(value: str) -> CurrencyPair:
    try:
        return CurrencyPair.parse(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_registry(rates: list[tuple[str, CurrencyPair, Decimal]]) -> RateProviderRegistry:
    """Create a registry with one static provider per exchange."""
    providers: dict[str, StaticRateProvider] = {}
    for exchange, pair, rate in rates:
        provider = providers.setdefault(exchange, StaticRateProvider(exchange))
        provider.set_rate(pair, rate)

    registry = RateProviderRegistry()
    for provider in providers.values():
        registry.register(provider)
    return registry


async def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Evaluate rate rules for currency pairs")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--rules", help="Rule script text")
    source.add_argument("--rules-file", type=Path, help="File containing the rule script")
    parser.add_argument(
        "--pair", type=parse_pair, action="append", required=True,
        help="Pair to evaluate, e.g. BTC_USD (repeatable)",
    )
    parser.add_argument(
        "--rate", type=parse_rate, action="append", default=[],
        help="Known rate as exchange:PAIR=value (repeatable)",
    )
    parser.add_argument("--multiplier", type=Decimal, help="Global multiplier")
    parser.add_argument("--debug", action="store_true", help="Log resolution details")

    args = parser.parse_args()

    settings = get_settings()
    setup_logging(level="DEBUG" if args.debug or settings.debug else settings.log_level)
    logger.debug(f"Evaluating {len(args.pair)} pairs ({settings.app_env})")

    script = args.rules
    if args.rules_file is not None:
        script = args.rules_file.read_text(encoding="utf-8")

    try:
        rules = LoadRateRulesUseCase(settings).execute(script, args.multiplier)
    except ApplicationError as e:
        print(f"✗ {e.message}")
        for error in getattr(e, "errors", []):
            print(f"    {error}")
        return 1

    print("=" * 50)
    print("Rate rules")
    print("=" * 50)
    print(rules)

    async with build_registry(args.rate) as registry:
        use_case = FetchRatesUseCase(registry, timeout_seconds=settings.rate_fetch_timeout_seconds)
        try:
            results = await use_case.execute(args.pair, rules)
        except ApplicationError as e:
            print(f"✗ {e.message}")
            return 1

    exit_code = 0
    for pair, result in results.items():
        print(f"\n{pair}")
        print(f"    Rule:      {result.rule}")
        print(f"    Evaluated: {result.evaluated_rule}")
        if result.value is not None:
            print(f"  ✓ Rate: {result.value}")
        else:
            exit_code = 1
            print(f"  ✗ Errors: {', '.join(result.errors)}")
            for error in result.exchange_errors:
                print(f"    {error.exchange_name}({error.currency_pair}): {error.message}")

    return exit_code


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
