"""Rate provider serving fixed rates from memory.

Used for pinned rates (e.g. a stablecoin fixed at 1 USD), for command line
evaluation of rule scripts, and in tests.
"""

from decimal import Decimal
from typing import Mapping, Optional

from app.rate_engine.application.interfaces.rate_provider import RateProvider
from app.rate_engine.domain.value_objects.currency_pair import CurrencyPair


class StaticRateProvider(RateProvider):
    """Serves a fixed table of rates for one exchange name.

    Args:
        exchange_name: Name rules use to call this provider.
        rates: Rates keyed by CurrencyPair or by pair text ("BTC_USD").
    """

    def __init__(
        self,
        exchange_name: str,
        rates: Mapping[CurrencyPair | str, Decimal] | None = None,
    ) -> None:
        self._exchange_name = exchange_name.lower()
        self._rates: dict[CurrencyPair, Decimal] = {}
        for pair, rate in (rates or {}).items():
            self.set_rate(pair, rate)

    @property
    def exchange_name(self) -> str:
        return self._exchange_name

    def set_rate(self, currency_pair: CurrencyPair | str, rate: Decimal) -> None:
        if isinstance(currency_pair, str):
            currency_pair = CurrencyPair.parse(currency_pair)
        self._rates[currency_pair] = Decimal(rate)

    async def fetch_rate(self, currency_pair: CurrencyPair) -> Optional[Decimal]:
        return self._rates.get(currency_pair)

    async def close(self) -> None:
        pass
