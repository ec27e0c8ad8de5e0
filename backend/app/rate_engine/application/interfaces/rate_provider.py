"""Rate provider interfaces for fetching exchange rates required by rules."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Optional

from app.rate_engine.domain.value_objects.currency_pair import CurrencyPair
from app.rate_engine.domain.value_objects.exchange_rate import (
    ExchangeRateRequirement,
    ExchangeRates,
)


@dataclass(frozen=True)
class ExchangeFetchError:
    """A failure to fetch one rate from one exchange.

    Attributes:
        exchange: Name of the exchange that failed (e.g., "kraken").
        currency_pair: The pair that was requested.
        message: Human-readable reason.
    """

    exchange: str
    currency_pair: CurrencyPair
    message: str


@dataclass
class FetchedRates:
    """Rates fetched for a set of requirements, plus per-exchange failures.

    Attributes:
        rates: Every rate that was fetched successfully.
        errors: Failures, one per requirement that could not be fetched.
    """

    rates: ExchangeRates = field(default_factory=ExchangeRates)
    errors: list[ExchangeFetchError] = field(default_factory=list)

    def errors_for(
        self, requirements: Iterable[ExchangeRateRequirement]
    ) -> list[ExchangeFetchError]:
        """Return the failures affecting any of the given requirements."""
        wanted = set(requirements)
        return [
            e for e in self.errors
            if ExchangeRateRequirement(e.exchange, e.currency_pair) in wanted
        ]


class RateProvider(ABC):
    """Abstract base class for a single exchange's rate source.

    Each exchange adapter must implement this interface so that rule
    requirements such as ``kraken(BTC_USD)`` can be fetched uniformly.
    """

    @property
    @abstractmethod
    def exchange_name(self) -> str:
        """Return the exchange name as written in rule scripts."""
        ...

    @abstractmethod
    async def fetch_rate(self, currency_pair: CurrencyPair) -> Optional[Decimal]:
        """Fetch the rate of a pair on this exchange.

        Args:
            currency_pair: The concrete pair to price (e.g., BTC_USD).

        Returns:
            The rate, or None if the exchange does not list the pair.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections or resources."""
        ...


class RateSource(ABC):
    """Fetches a batch of exchange rate requirements at once."""

    @abstractmethod
    async def fetch_rates(
        self,
        requirements: Iterable[ExchangeRateRequirement],
        timeout_seconds: float = 10.0,
    ) -> FetchedRates:
        """Fetch every requirement, isolating failures per exchange.

        Args:
            requirements: The (exchange, pair) lookups to perform.
            timeout_seconds: Maximum time to wait for all responses.

        Returns:
            The fetched rates and the failures.
        """
        ...
