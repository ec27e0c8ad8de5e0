"""Rate substitution and arithmetic evaluation of flattened rules.

Evaluation runs in two passes:
1. Every exchange call is replaced by the looked-up rate, or by an
   ``ERR_RATE_UNAVAILABLE`` marker when the lookup has no value.
2. If the first pass recorded no error, the numeric tree is reduced with
   a post-order value stack.

A division by zero pushes no result, so the operators above it run out of
operands and record MissingArgument. Evaluation stops cleanly that way.
An operation that overflows or has no defined result (e.g. Infinity /
Infinity) records ArithmeticError and stops the same way.
"""

import logging
from decimal import Decimal, DecimalException, DefaultContext, localcontext
from typing import Callable, Optional

from app.rate_engine.domain.services.expressions import (
    ARITHMETIC_OPERATORS,
    UNARY_OPERATORS,
    BinaryOp,
    Call,
    ExchangeName,
    Expression,
    Number,
    PairRef,
    Parenthesized,
    UnaryOp,
    error_marker,
)
from app.rate_engine.domain.value_objects.currency_pair import CurrencyPair
from app.rate_engine.domain.value_objects.rate_rules_error import RateRulesError

logger = logging.getLogger(__name__)

RateLookup = Callable[[str, CurrencyPair], Optional[Decimal]]


def substitute_rates(
    expression: Expression,
    rate_lookup: RateLookup,
    errors: list[RateRulesError],
) -> Expression:
    """Replace exchange calls with looked-up rates.

    Args:
        expression: A flattened rule expression.
        rate_lookup: Returns the rate of a pair on an exchange, or None.
            A lookup that raises or returns a non-finite value counts as
            unavailable.
        errors: Receives PreprocessError, InvalidCurrencyIdentifier and
            RateUnavailable as they are found.

    Returns:
        The expression with every resolvable call replaced by a Number.
    """
    if isinstance(expression, Call):
        return _substitute_call(expression, rate_lookup, errors)
    if isinstance(expression, UnaryOp):
        return UnaryOp(expression.op, substitute_rates(expression.operand, rate_lookup, errors))
    if isinstance(expression, BinaryOp):
        return BinaryOp(
            expression.op,
            substitute_rates(expression.left, rate_lookup, errors),
            substitute_rates(expression.right, rate_lookup, errors),
        )
    if isinstance(expression, Parenthesized):
        return Parenthesized(substitute_rates(expression.expression, rate_lookup, errors))
    return expression


def _substitute_call(
    call: Call,
    rate_lookup: RateLookup,
    errors: list[RateRulesError],
) -> Expression:
    exchange = call.callee_name
    if call.is_error_marker:
        errors.append(RateRulesError.PREPROCESS_ERROR)
        return call

    argument = call.args[0] if call.args else None
    if not isinstance(argument, PairRef):
        errors.append(RateRulesError.INVALID_CURRENCY_IDENTIFIER)
        return error_marker("INVALID_CURRENCY_PAIR", call)

    rate: Optional[Decimal] = None
    try:
        value = rate_lookup(exchange, argument.pair)
        if value is not None:
            rate = Decimal(value)
    except Exception as e:
        logger.error(f"Rate lookup failed for {exchange}({argument.pair}): {e}")

    if rate is not None and not rate.is_finite():
        logger.warning(f"Ignoring non-finite rate {rate} for {exchange}({argument.pair})")
        rate = None

    if rate is None:
        errors.append(RateRulesError.RATE_UNAVAILABLE)
        return error_marker("RATE_UNAVAILABLE", ExchangeName(exchange), argument)
    return Number(rate)


def calculate(expression: Expression) -> tuple[list[Decimal], list[RateRulesError]]:
    """Reduce a numeric expression tree on a value stack.

    Args:
        expression: An expression containing only numbers and operators.

    Returns:
        The values left on the stack and the errors recorded. Exactly one
        value and no errors means success.
    """
    values: list[Decimal] = []
    errors: list[RateRulesError] = []
    # Same precision and traps whatever context the caller runs in
    with localcontext(DefaultContext):
        _calculate(expression, values, errors)
    return values, errors


def _calculate(
    expression: Expression,
    values: list[Decimal],
    errors: list[RateRulesError],
) -> None:
    if isinstance(expression, Number):
        values.append(expression.value)
    elif isinstance(expression, Parenthesized):
        _calculate(expression.expression, values, errors)
    elif isinstance(expression, UnaryOp):
        _calculate(expression.operand, values, errors)
        _apply_unary(expression.op, values, errors)
    elif isinstance(expression, BinaryOp):
        _calculate(expression.left, values, errors)
        _calculate(expression.right, values, errors)
        _apply_binary(expression.op, values, errors)
    # Anything else carries no value and leaves the stack short


def _apply_unary(op: str, values: list[Decimal], errors: list[RateRulesError]) -> None:
    if op not in UNARY_OPERATORS:
        errors.append(RateRulesError.UNSUPPORTED_OPERATOR)
        return
    if len(values) < 1:
        errors.append(RateRulesError.MISSING_ARGUMENT)
        return
    value = values.pop()
    if op == "-":
        _push_result(values, errors, lambda: -value)
    else:
        values.append(value)


def _apply_binary(op: str, values: list[Decimal], errors: list[RateRulesError]) -> None:
    if op not in ARITHMETIC_OPERATORS:
        errors.append(RateRulesError.UNSUPPORTED_OPERATOR)
        return
    if len(values) < 2:
        errors.append(RateRulesError.MISSING_ARGUMENT)
        return

    b = values.pop()
    a = values.pop()
    if op == "+":
        _push_result(values, errors, lambda: a + b)
    elif op == "-":
        _push_result(values, errors, lambda: a - b)
    elif op == "*":
        _push_result(values, errors, lambda: a * b)
    elif b == 0:
        errors.append(RateRulesError.DIVIDE_BY_ZERO)
    else:
        _push_result(values, errors, lambda: a / b)


def _push_result(
    values: list[Decimal],
    errors: list[RateRulesError],
    operation: Callable[[], Decimal],
) -> None:
    try:
        result = operation()
    except DecimalException as e:
        logger.debug(f"Arithmetic failed: {type(e).__name__}")
        errors.append(RateRulesError.ARITHMETIC_ERROR)
        return
    values.append(result)
