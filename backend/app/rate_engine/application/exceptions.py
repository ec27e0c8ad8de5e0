"""Application-layer exceptions for use case error handling.

These exceptions represent errors that can occur during use case
execution. Each carries a machine-readable code so callers can map them
to their own error responses.
"""

from typing import Iterable


class ApplicationError(Exception):
    """Base class for all application-layer exceptions."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class InvalidRateRulesError(ApplicationError):
    """Raised when a rate rules script cannot be loaded."""

    def __init__(self, reason: str, errors: Iterable[str] = ()) -> None:
        super().__init__(
            message=f"Invalid rate rules: {reason}",
            code="INVALID_RATE_RULES"
        )
        self.reason = reason
        self.errors = list(errors)


class InvalidCurrencyPairError(ApplicationError):
    """Raised when a requested currency pair cannot be priced.

    Wildcard pairs such as BTC_X only exist as rule patterns; a rate can
    only be requested for a concrete pair.
    """

    def __init__(self, currency_pair: str) -> None:
        super().__init__(
            message=f"Invalid currency pair '{currency_pair}'",
            code="INVALID_CURRENCY_PAIR"
        )
        self.currency_pair = currency_pair
