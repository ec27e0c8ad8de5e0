# Domain layer - pure business rules, no framework dependencies

from app.rate_engine.domain.value_objects import (
    WILDCARD,
    CurrencyPair,
    EvaluationResult,
    ExchangeRateRequirement,
    ExchangeRates,
    RateRulesError,
)
from app.rate_engine.domain.exceptions import (
    InvalidXCurrencyError,
    RateRulesException,
    RateRulesParseError,
    RateRulesValidationError,
)
from app.rate_engine.domain.services import (
    MAX_NESTED_CALLS,
    RateRule,
    RateRules,
    RuleDefinition,
)

__all__ = [
    # Value objects
    "WILDCARD",
    "CurrencyPair",
    "EvaluationResult",
    "ExchangeRateRequirement",
    "ExchangeRates",
    "RateRulesError",
    # Exceptions
    "RateRulesException",
    "RateRulesParseError",
    "RateRulesValidationError",
    "InvalidXCurrencyError",
    # Rule engine
    "MAX_NESTED_CALLS",
    "RateRule",
    "RateRules",
    "RuleDefinition",
]
