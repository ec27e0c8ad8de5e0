"""Exchange rate value objects: what a rule needs and what was fetched."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterator, Optional

from app.rate_engine.domain.value_objects.currency_pair import CurrencyPair


@dataclass(frozen=True)
class ExchangeRateRequirement:
    """A concrete rate lookup needed before a rule can be evaluated.

    Attributes:
        exchange: Normalized (lowercase) exchange name (e.g., "kraken").
        currency_pair: The pair to look up on that exchange.
    """

    exchange: str
    currency_pair: CurrencyPair

    def __str__(self) -> str:
        return f"{self.exchange}({self.currency_pair})"


class ExchangeRates:
    """Table of fetched rates keyed by exchange and currency pair.

    Exchange names are matched case-insensitively. ``get_rate`` has the
    shape of a rate lookup and can be passed straight to
    ``RateRule.evaluate``.
    """

    def __init__(self) -> None:
        self._rates: dict[tuple[str, CurrencyPair], Decimal] = {}

    def add(self, exchange: str, currency_pair: CurrencyPair, rate: Decimal) -> None:
        """Record a fetched rate, replacing any previous value."""
        self._rates[(exchange.lower(), currency_pair)] = Decimal(rate)

    def get_rate(self, exchange: str, currency_pair: CurrencyPair) -> Optional[Decimal]:
        """Return the rate for the exchange and pair, or None if unknown."""
        return self._rates.get((exchange.lower(), currency_pair))

    def __contains__(self, requirement: object) -> bool:
        if not isinstance(requirement, ExchangeRateRequirement):
            return False
        return (requirement.exchange.lower(), requirement.currency_pair) in self._rates

    def __iter__(self) -> Iterator[ExchangeRateRequirement]:
        for exchange, currency_pair in self._rates:
            yield ExchangeRateRequirement(exchange, currency_pair)

    def __len__(self) -> int:
        return len(self._rates)
