"""Pytest configuration and fixtures.

This file sets up the Python path so tests can import from the backend package,
and provides fixtures shared by the rate engine tests.
"""

import sys
from decimal import Decimal
from pathlib import Path
from typing import Callable, Optional

import pytest

# Add backend directory to Python path for imports
backend_path = Path(__file__).parent / "backend"
sys.path.insert(0, str(backend_path))

from app.rate_engine.domain.value_objects.currency_pair import CurrencyPair  # noqa: E402
from app.rate_engine.domain.value_objects.exchange_rate import ExchangeRates  # noqa: E402

RateLookup = Callable[[str, CurrencyPair], Optional[Decimal]]


@pytest.fixture
def make_rate_lookup() -> Callable[..., RateLookup]:
    """Build a rate lookup from a {(exchange, "PAIR"): rate} table."""

    def factory(rates: Optional[dict[tuple[str, str], str]] = None) -> RateLookup:
        table = ExchangeRates()
        for (exchange, pair), rate in (rates or {}).items():
            table.add(exchange, CurrencyPair.parse(pair), Decimal(rate))
        return table.get_rate

    return factory


@pytest.fixture
def empty_rate_lookup(make_rate_lookup: Callable[..., RateLookup]) -> RateLookup:
    """Rate lookup that knows no rates."""
    return make_rate_lookup()
