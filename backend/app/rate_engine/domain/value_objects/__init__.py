"""Domain value objects for the rate engine.

This module exports immutable value objects used throughout the domain layer:
- CurrencyPair: Ordered currency code pair, possibly with wildcards
- RateRulesError: Error kinds recorded while building or evaluating rules
- ExchangeRateRequirement / ExchangeRates: Rates a rule needs and rates fetched
- EvaluationResult: Value or errors produced by evaluating a rule
"""

from app.rate_engine.domain.value_objects.currency_pair import WILDCARD, CurrencyPair
from app.rate_engine.domain.value_objects.evaluation_result import EvaluationResult
from app.rate_engine.domain.value_objects.exchange_rate import (
    ExchangeRateRequirement,
    ExchangeRates,
)
from app.rate_engine.domain.value_objects.rate_rules_error import RateRulesError

__all__ = [
    "WILDCARD",
    "CurrencyPair",
    "EvaluationResult",
    "ExchangeRateRequirement",
    "ExchangeRates",
    "RateRulesError",
]
