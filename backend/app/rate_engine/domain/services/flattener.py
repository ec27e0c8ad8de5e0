"""Inlines pair references until only exchange lookups remain.

Starting from the candidate expression of the requested pair:
- ``kraken(BTC_X)`` becomes ``kraken(BTC_USD)`` when resolving BTC_USD, and
  (kraken, BTC_USD) is recorded as a required rate.
- A bare ``BTC_EUR`` is replaced by the flattened best candidate for
  BTC_EUR, in parentheses when it contains a binary operation.

Resolution depth is capped at MAX_NESTED_CALLS. Rules that reference each
other in a cycle hit the cap and end in an error marker instead of
recursing forever. Long acyclic chains beyond the cap are rejected the
same way.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Final, Optional

from app.rate_engine.domain.services.expressions import (
    ERROR_PREFIX,
    BinaryOp,
    Call,
    Expression,
    PairRef,
    Parenthesized,
    UnaryOp,
    contains_binary_operation,
    error_marker,
)
from app.rate_engine.domain.value_objects.currency_pair import CurrencyPair
from app.rate_engine.domain.value_objects.exchange_rate import ExchangeRateRequirement
from app.rate_engine.domain.value_objects.rate_rules_error import RateRulesError

logger = logging.getLogger(__name__)

MAX_NESTED_CALLS: Final[int] = 8

CandidateFinder = Callable[[CurrencyPair], Expression]


@dataclass(frozen=True)
class FlattenResult:
    """A flattened expression and what it needs to be evaluated.

    Attributes:
        expression: Expression whose only pair references are call arguments.
        requirements: Distinct exchange rate lookups, in discovery order.
        errors: Errors recorded while flattening.
    """

    expression: Expression
    requirements: tuple[ExchangeRateRequirement, ...]
    errors: tuple[RateRulesError, ...]


def flatten(
    expression: Expression,
    currency_pair: CurrencyPair,
    find_candidate: CandidateFinder,
) -> FlattenResult:
    """Flatten the candidate expression chosen for ``currency_pair``.

    Args:
        expression: The candidate expression for the requested pair.
        currency_pair: The requested pair, used to fill wildcards.
        find_candidate: Returns the best candidate expression for a pair.

    Returns:
        The flattened expression with its requirements and errors.
    """
    context = [currency_pair]
    requirements: dict[ExchangeRateRequirement, None] = {}
    errors: list[RateRulesError] = []

    flattened = _flatten(expression, find_candidate, context, requirements, errors, None)

    if errors:
        logger.debug(f"Flattening {currency_pair} recorded errors: {errors}")
    return FlattenResult(flattened, tuple(requirements), tuple(errors))


def _flatten(
    expression: Expression,
    find_candidate: CandidateFinder,
    context: list[CurrencyPair],
    requirements: dict[ExchangeRateRequirement, None],
    errors: list[RateRulesError],
    exchange: Optional[str],
) -> Expression:
    if isinstance(expression, PairRef):
        pair = expression.pair.with_wildcards_from(context[-1])
        if exchange is not None:
            return _exchange_argument(pair, exchange, requirements)
        return _inline_pair(pair, find_candidate, context, requirements, errors)

    if isinstance(expression, Call):
        callee_name = expression.callee_name
        args = tuple(
            _flatten(arg, find_candidate, context, requirements, errors, callee_name)
            for arg in expression.args
        )
        return Call(expression.callee, args)

    if isinstance(expression, UnaryOp):
        return UnaryOp(
            expression.op,
            _flatten(expression.operand, find_candidate, context, requirements, errors, exchange),
        )

    if isinstance(expression, BinaryOp):
        return BinaryOp(
            expression.op,
            _flatten(expression.left, find_candidate, context, requirements, errors, exchange),
            _flatten(expression.right, find_candidate, context, requirements, errors, exchange),
        )

    if isinstance(expression, Parenthesized):
        return Parenthesized(
            _flatten(expression.expression, find_candidate, context, requirements, errors, exchange)
        )

    return expression


def _exchange_argument(
    pair: CurrencyPair,
    exchange: str,
    requirements: dict[ExchangeRateRequirement, None],
) -> Expression:
    # Error markers such as ERR_NO_RULE_MATCH(BTC_USD) are not rates to fetch
    if not exchange.upper().startswith(ERROR_PREFIX):
        requirements[ExchangeRateRequirement(exchange, pair)] = None
    return PairRef(pair)


def _inline_pair(
    pair: CurrencyPair,
    find_candidate: CandidateFinder,
    context: list[CurrencyPair],
    requirements: dict[ExchangeRateRequirement, None],
    errors: list[RateRulesError],
) -> Expression:
    if len(context) > MAX_NESTED_CALLS:
        errors.append(RateRulesError.TOO_MUCH_NESTED_CALLS)
        return error_marker("TOO_MUCH_NESTED_CALLS", PairRef(pair))

    candidate = find_candidate(pair)
    logger.debug(f"Inlining {pair} at depth {len(context)}")

    context.append(pair)
    try:
        replaced = _flatten(candidate, find_candidate, context, requirements, errors, None)
    finally:
        context.pop()

    if RateRulesError.TOO_MUCH_NESTED_CALLS in errors:
        return error_marker("TOO_MUCH_NESTED_CALLS", PairRef(pair))
    if contains_binary_operation(replaced):
        return Parenthesized(replaced)
    return replaced
