"""Builds the currency pair -> expression table from normalized statements."""

import logging
from dataclasses import dataclass

from app.rate_engine.domain.services.expressions import (
    Assignment,
    Expression,
    PairRef,
    Statement,
)
from app.rate_engine.domain.value_objects.currency_pair import CurrencyPair
from app.rate_engine.domain.value_objects.rate_rules_error import RateRulesError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuleDefinition:
    """One ``PAIR = EXPR`` rule of a script.

    Attributes:
        pair: The pair or wildcard pattern the rule defines.
        expression: The normalized defining expression.
        position: (line, column) of the expression in the script, used to
            break ties between equally good candidates.
    """

    pair: CurrencyPair
    expression: Expression
    position: tuple[int, int]


def build_rule_table(
    statements: list[Statement],
) -> tuple[dict[CurrencyPair, RuleDefinition], list[RateRulesError]]:
    """Collect the rule definitions of a normalized script.

    Only simple assignments to a currency pair are rules. Any other
    statement is ignored. Defining the same pair twice is an error.

    Args:
        statements: Statements returned by ``normalize_statements``.

    Returns:
        The rules keyed by pair, in script order, and the errors found.
    """
    rules: dict[CurrencyPair, RuleDefinition] = {}
    errors: list[RateRulesError] = []

    for statement in statements:
        if not (
            isinstance(statement, Assignment)
            and statement.operator == "="
            and isinstance(statement.target, PairRef)
        ):
            continue

        pair = statement.target.pair
        if pair in rules:
            logger.warning(f"Currency pair {pair} is defined more than once")
            errors.append(RateRulesError.DUPLICATE_CURRENCY_PAIR)
            continue

        rules[pair] = RuleDefinition(pair, statement.value, statement.position)

    return rules, errors
