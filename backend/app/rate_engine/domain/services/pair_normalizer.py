"""Canonicalizes identifiers of a parsed rule script.

Every bare identifier must name a currency pair and is rewritten to its
canonical form (``btc_usd`` -> ``BTC_USD``). Every call must have a plain
exchange name as callee, which is lowercased. Calls may not appear inside
another call's arguments.
"""

from app.rate_engine.domain.services.expressions import (
    Assignment,
    BinaryOp,
    Call,
    ExchangeName,
    Expression,
    ExpressionStatement,
    Name,
    PairRef,
    Parenthesized,
    Statement,
    UnaryOp,
)
from app.rate_engine.domain.value_objects.currency_pair import CurrencyPair
from app.rate_engine.domain.value_objects.rate_rules_error import RateRulesError


def normalize_statements(
    statements: list[Statement],
) -> tuple[list[Statement], list[RateRulesError]]:
    """Normalize all statements of a script.

    Args:
        statements: Statements as returned by the script parser.

    Returns:
        The rewritten statements and every error found. The statements
        must not be used when the error list is non-empty.
    """
    errors: list[RateRulesError] = []
    normalized: list[Statement] = []
    for statement in statements:
        if isinstance(statement, Assignment):
            normalized.append(
                Assignment(
                    normalize_expression(statement.target, errors),
                    normalize_expression(statement.value, errors),
                    statement.position,
                    statement.operator,
                )
            )
        else:
            normalized.append(
                ExpressionStatement(normalize_expression(statement.expression, errors))
            )
    return normalized, errors


def normalize_expression(
    expression: Expression,
    errors: list[RateRulesError],
    in_call: bool = False,
) -> Expression:
    """Return a normalized copy of ``expression``, appending to ``errors``."""
    if isinstance(expression, Name):
        pair = CurrencyPair.try_parse(expression.identifier)
        if pair is None:
            errors.append(RateRulesError.INVALID_CURRENCY_IDENTIFIER)
            return expression
        return PairRef(pair)
    if isinstance(expression, UnaryOp):
        return UnaryOp(expression.op, normalize_expression(expression.operand, errors, in_call))
    if isinstance(expression, BinaryOp):
        return BinaryOp(
            expression.op,
            normalize_expression(expression.left, errors, in_call),
            normalize_expression(expression.right, errors, in_call),
        )
    if isinstance(expression, Parenthesized):
        return Parenthesized(normalize_expression(expression.expression, errors, in_call))
    if isinstance(expression, Call):
        return _normalize_call(expression, errors, in_call)
    return expression


def _normalize_call(call: Call, errors: list[RateRulesError], in_call: bool) -> Expression:
    if in_call:
        errors.append(RateRulesError.NESTED_INVOCATION)
        return call

    callee = call.callee
    if (
        not isinstance(callee, Name)
        or CurrencyPair.try_parse(callee.identifier) is not None
    ):
        errors.append(RateRulesError.INVALID_EXCHANGE_NAME)
        return call

    args = tuple(normalize_expression(arg, errors, in_call=True) for arg in call.args)
    return Call(ExchangeName(callee.identifier.lower()), args)
