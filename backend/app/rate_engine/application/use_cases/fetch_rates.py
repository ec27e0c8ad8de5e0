"""Use case for computing rates of several currency pairs from rate rules.

Orchestrates the full pipeline for a batch of pairs:
- Rule resolution via RateRules.get_rule_for
- One concurrent fetch of every exchange rate any rule requires
- Rule evaluation against the fetched rates
"""

import logging
from typing import Iterable

from app.rate_engine.application.dto.rate_dto import ExchangeErrorDTO, RateResultDTO
from app.rate_engine.application.exceptions import InvalidCurrencyPairError
from app.rate_engine.application.interfaces.rate_provider import FetchedRates, RateSource
from app.rate_engine.domain.exceptions import InvalidXCurrencyError
from app.rate_engine.domain.services.rate_rules import RateRule, RateRules
from app.rate_engine.domain.value_objects.currency_pair import CurrencyPair
from app.rate_engine.domain.value_objects.exchange_rate import ExchangeRateRequirement

logger = logging.getLogger(__name__)


class FetchRatesUseCase:
    """Application service for computing rates from rules and live data.

    All requirements of all requested pairs are fetched once, so a rate
    shared by several rules hits its exchange a single time.
    """

    def __init__(self, rate_source: RateSource, timeout_seconds: float = 10.0) -> None:
        """Initialize the use case with required dependencies.

        Args:
            rate_source: Fetches exchange rate requirements.
            timeout_seconds: Maximum time to wait for all exchanges.
        """
        self._rate_source = rate_source
        self._timeout_seconds = timeout_seconds

    async def execute(
        self,
        currency_pairs: Iterable[CurrencyPair],
        rules: RateRules,
    ) -> dict[CurrencyPair, RateResultDTO]:
        """Compute the rate of every requested pair.

        Args:
            currency_pairs: Concrete pairs to price (e.g., BTC_USD).
            rules: The rule table to resolve them with.

        Returns:
            A RateResultDTO per requested pair. Failures are reported in the
            DTOs, not raised.

        Raises:
            InvalidCurrencyPairError: If a requested pair contains a wildcard.
        """
        # 1. Resolve a rule per pair
        rules_by_pair: dict[CurrencyPair, RateRule] = {}
        for pair in currency_pairs:
            if pair in rules_by_pair:
                continue
            try:
                rules_by_pair[pair] = rules.get_rule_for(pair)
            except InvalidXCurrencyError as e:
                raise InvalidCurrencyPairError(str(pair)) from e

        # 2. Collect what every rule needs
        requirements: set[ExchangeRateRequirement] = set()
        for rule in rules_by_pair.values():
            requirements.update(rule.required_rates())

        # 3. Fetch everything at once
        if requirements:
            fetched = await self._rate_source.fetch_rates(
                requirements, timeout_seconds=self._timeout_seconds
            )
        else:
            fetched = FetchedRates()
        logger.info(
            f"Fetched {len(fetched.rates)}/{len(requirements)} exchange rates "
            f"for {len(rules_by_pair)} pairs"
        )

        # 4. Evaluate each rule against the fetched rates
        return {
            pair: self._build_result(rule, fetched)
            for pair, rule in rules_by_pair.items()
        }

    def _build_result(self, rule: RateRule, fetched: FetchedRates) -> RateResultDTO:
        """Evaluate a rule and build its DTO.

        Args:
            rule: The resolved rule.
            fetched: Rates and failures from the rate source.

        Returns:
            RateResultDTO with value or diagnostics.
        """
        result = rule.evaluate(fetched.rates.get_rate)
        exchange_errors = [
            ExchangeErrorDTO(
                exchange_name=e.exchange,
                currency_pair=str(e.currency_pair),
                message=e.message,
            )
            for e in fetched.errors_for(rule.required_rates())
        ]

        return RateResultDTO(
            currency_pair=str(rule.currency_pair),
            value=result.value,
            errors=[str(error) for error in result.errors],
            exchange_errors=exchange_errors,
            rule=str(rule),
            evaluated_rule=result.evaluated,
        )
