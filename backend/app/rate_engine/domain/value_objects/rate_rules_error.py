"""Error kinds reported by rate rule construction and evaluation."""

from enum import Enum


class RateRulesError(str, Enum):
    """Expected failure conditions of the rate rule engine.

    These are recorded, not raised. A rule that accumulates any of them
    produces no value.
    """

    TOO_MUCH_NESTED_CALLS = "TooMuchNestedCalls"
    INVALID_CURRENCY_IDENTIFIER = "InvalidCurrencyIdentifier"
    NESTED_INVOCATION = "NestedInvocation"
    UNSUPPORTED_OPERATOR = "UnsupportedOperator"
    MISSING_ARGUMENT = "MissingArgument"
    DIVIDE_BY_ZERO = "DivideByZero"
    PREPROCESS_ERROR = "PreprocessError"
    RATE_UNAVAILABLE = "RateUnavailable"
    INVALID_EXCHANGE_NAME = "InvalidExchangeName"
    DUPLICATE_CURRENCY_PAIR = "DuplicateCurrencyPair"
    ARITHMETIC_ERROR = "ArithmeticError"

    def __str__(self) -> str:
        return self.value
