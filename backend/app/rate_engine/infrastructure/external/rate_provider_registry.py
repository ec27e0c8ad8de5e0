"""Rate provider registry for fetching rule requirements from many exchanges.

The registry manages one provider per exchange and fetches the rates a
set of rules needs concurrently.
"""

import asyncio
import logging
from typing import Iterable, Optional

from app.rate_engine.application.interfaces.rate_provider import (
    ExchangeFetchError,
    FetchedRates,
    RateProvider,
    RateSource,
)
from app.rate_engine.domain.value_objects.exchange_rate import ExchangeRateRequirement

logger = logging.getLogger(__name__)


class RateProviderRegistry(RateSource):
    """Registry that dispatches rate requirements to exchange providers.

    Exchange names are matched case-insensitively, the way rule scripts
    normalize them.

    Attributes:
        _providers: Registered providers keyed by lowercase exchange name.
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._providers: dict[str, RateProvider] = {}

    def register(self, provider: RateProvider) -> None:
        """Register a rate provider, replacing any for the same exchange.

        Args:
            provider: RateProvider implementation to add to the registry.
        """
        self._providers[provider.exchange_name.lower()] = provider
        logger.info(f"Registered rate provider: {provider.exchange_name}")

    def unregister(self, exchange_name: str) -> bool:
        """Remove a provider by exchange name.

        Args:
            exchange_name: Name of the exchange to remove.

        Returns:
            True if a provider was removed, False otherwise.
        """
        if self._providers.pop(exchange_name.lower(), None) is None:
            return False
        logger.info(f"Unregistered rate provider: {exchange_name}")
        return True

    def get_provider(self, exchange_name: str) -> Optional[RateProvider]:
        return self._providers.get(exchange_name.lower())

    @property
    def registered_exchanges(self) -> list[str]:
        """Get names of all registered exchanges."""
        return [provider.exchange_name for provider in self._providers.values()]

    async def fetch_rates(
        self,
        requirements: Iterable[ExchangeRateRequirement],
        timeout_seconds: float = 10.0,
    ) -> FetchedRates:
        """Fetch every requirement concurrently.

        Args:
            requirements: The (exchange, pair) lookups to perform.
            timeout_seconds: Maximum time to wait for all responses.

        Returns:
            FetchedRates with every rate obtained. Unknown exchanges,
            unlisted pairs, provider exceptions and timeouts are recorded
            as errors, never raised.
        """
        result = FetchedRates()
        pending: list[ExchangeRateRequirement] = []

        for requirement in dict.fromkeys(requirements):
            if self.get_provider(requirement.exchange) is None:
                logger.warning(f"No rate provider for exchange: {requirement.exchange}")
                result.errors.append(
                    ExchangeFetchError(
                        exchange=requirement.exchange,
                        currency_pair=requirement.currency_pair,
                        message=f"Exchange '{requirement.exchange}' is not supported",
                    )
                )
            else:
                pending.append(requirement)

        if not pending:
            return result

        async def fetch_with_error_handling(
            requirement: ExchangeRateRequirement,
        ) -> ExchangeFetchError | None:
            """Fetch one rate with error isolation."""
            provider = self._providers[requirement.exchange.lower()]
            try:
                rate = await provider.fetch_rate(requirement.currency_pair)
            except Exception as e:
                logger.error(f"Error fetching {requirement} from {provider.exchange_name}: {e}")
                return ExchangeFetchError(
                    exchange=requirement.exchange,
                    currency_pair=requirement.currency_pair,
                    message=str(e) or type(e).__name__,
                )
            if rate is None:
                return ExchangeFetchError(
                    exchange=requirement.exchange,
                    currency_pair=requirement.currency_pair,
                    message=f"Rate for {requirement.currency_pair} not available",
                )
            result.rates.add(requirement.exchange, requirement.currency_pair, rate)
            return None

        tasks = [fetch_with_error_handling(requirement) for requirement in pending]

        try:
            errors = await asyncio.wait_for(
                asyncio.gather(*tasks),
                timeout=timeout_seconds,
            )
            result.errors.extend(e for e in errors if e is not None)
        except asyncio.TimeoutError:
            logger.error(f"Timeout fetching {len(pending)} exchange rates")
            for requirement in pending:
                if requirement not in result.rates:
                    result.errors.append(
                        ExchangeFetchError(
                            exchange=requirement.exchange,
                            currency_pair=requirement.currency_pair,
                            message=f"Timed out after {timeout_seconds}s",
                        )
                    )

        logger.info(f"Fetched {len(result.rates)}/{len(pending)} exchange rates")
        return result

    async def close_all(self) -> None:
        """Close all registered providers."""
        for provider in self._providers.values():
            try:
                await provider.close()
                logger.debug(f"Closed rate provider: {provider.exchange_name}")
            except Exception as e:
                logger.error(f"Error closing rate provider {provider.exchange_name}: {e}")
        self._providers.clear()

    async def __aenter__(self) -> "RateProviderRegistry":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close_all()
