"""Domain exceptions raised while building rate rules.

Only construction problems are exceptions. Failures while resolving or
evaluating a rule are recorded as RateRulesError values instead.
"""

from typing import Iterable, Optional

from app.rate_engine.domain.value_objects.currency_pair import CurrencyPair
from app.rate_engine.domain.value_objects.rate_rules_error import RateRulesError


class RateRulesException(Exception):
    """Base class for rate rule construction errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class RateRulesParseError(RateRulesException):
    """Raised when rule script text is not valid syntax."""

    def __init__(
        self,
        reason: str,
        line: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> None:
        location = f" (line {line}, column {offset})" if line is not None else ""
        super().__init__(f"Invalid rate rules script{location}: {reason}")
        self.reason = reason
        self.line = line
        self.offset = offset


class RateRulesValidationError(RateRulesException):
    """Raised when a parsed script fails normalization or rule building."""

    def __init__(self, errors: Iterable[RateRulesError]) -> None:
        self.errors = list(errors)
        super().__init__(
            "Invalid rate rules: " + ", ".join(str(e) for e in self.errors)
        )


class InvalidXCurrencyError(RateRulesException, ValueError):
    """Raised when a rule is requested for a wildcard pair."""

    def __init__(self, currency_pair: CurrencyPair) -> None:
        super().__init__(
            f"Invalid X currency: cannot get a rule for wildcard pair {currency_pair}"
        )
        self.currency_pair = currency_pair
