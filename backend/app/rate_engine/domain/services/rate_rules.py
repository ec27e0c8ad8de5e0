"""Rate rules: the parsed rule table and the rules resolved from it.

A script maps currency pairs (or wildcard patterns) to expressions::

    BTC_USD = kraken(BTC_USD);
    BTC_X = BTC_USD * USD_X;
    USD_X = 1 / X_USD;
    X_USD = coingecko(X_USD);

``RateRules.parse`` builds the table once. ``get_rule_for`` picks the best
rule for a requested pair and flattens it into a ``RateRule`` whose only
unknowns are exchange lookups. ``RateRule.evaluate`` computes the rate
once those lookups are supplied.
"""

import logging
from decimal import Decimal
from types import MappingProxyType
from typing import Mapping, Optional

from app.rate_engine.domain.exceptions import (
    InvalidXCurrencyError,
    RateRulesValidationError,
)
from app.rate_engine.domain.services.evaluator import (
    RateLookup,
    calculate,
    substitute_rates,
)
from app.rate_engine.domain.services.expressions import (
    BinaryOp,
    Expression,
    Number,
    PairRef,
    Parenthesized,
    error_marker,
    render,
)
from app.rate_engine.domain.services.flattener import flatten
from app.rate_engine.domain.services.pair_normalizer import normalize_statements
from app.rate_engine.domain.services.rule_table import RuleDefinition, build_rule_table
from app.rate_engine.domain.services.script_parser import parse_script
from app.rate_engine.domain.value_objects.currency_pair import WILDCARD, CurrencyPair
from app.rate_engine.domain.value_objects.evaluation_result import EvaluationResult
from app.rate_engine.domain.value_objects.exchange_rate import ExchangeRateRequirement
from app.rate_engine.domain.value_objects.rate_rules_error import RateRulesError

logger = logging.getLogger(__name__)


class RateRules:
    """Immutable table of rate rules keyed by currency pair.

    The table is never modified after construction, so one instance can
    resolve rules for many pairs, from several threads at once. Only
    ``global_multiplier`` is settable and should be set before resolving.

    Attributes:
        global_multiplier: Factor applied once to every resolved rule.
    """

    def __init__(
        self,
        rules: Mapping[CurrencyPair, RuleDefinition],
        global_multiplier: Decimal = Decimal("1"),
    ) -> None:
        self._rules = MappingProxyType(dict(rules))
        self._global_multiplier = Decimal("1")
        self.global_multiplier = global_multiplier

    @classmethod
    def parse(cls, script: str, global_multiplier: Decimal = Decimal("1")) -> "RateRules":
        """Parse and validate a rule script.

        Args:
            script: The rule script text.
            global_multiplier: Factor applied to every resolved rule.

        Returns:
            The rule table built from the script's ``PAIR = EXPR`` statements.

        Raises:
            RateRulesParseError: If the script is not valid syntax.
            RateRulesValidationError: If identifiers or calls are invalid,
                or a pair is defined twice. Carries every error found.
        """
        statements = parse_script(script)

        statements, errors = normalize_statements(statements)
        if errors:
            raise RateRulesValidationError(errors)

        rules, errors = build_rule_table(statements)
        if errors:
            raise RateRulesValidationError(errors)

        logger.info(f"Loaded {len(rules)} rate rules")
        return cls(rules, global_multiplier)

    @property
    def rules(self) -> Mapping[CurrencyPair, RuleDefinition]:
        """Read-only view of the rules, in script order."""
        return self._rules

    @property
    def global_multiplier(self) -> Decimal:
        return self._global_multiplier

    @global_multiplier.setter
    def global_multiplier(self, value: Decimal) -> None:
        value = Decimal(value)
        if not value.is_finite() or value <= 0:
            raise ValueError(f"Global multiplier must be positive, got {value}")
        self._global_multiplier = value

    def get_rule_for(self, currency_pair: CurrencyPair) -> "RateRule":
        """Resolve and flatten the rule for a concrete pair.

        Args:
            currency_pair: The pair to price. Neither side may be ``X``.

        Returns:
            The resolved rule, ready to be evaluated.

        Raises:
            InvalidXCurrencyError: If the pair contains a wildcard.
        """
        if currency_pair.has_wildcard:
            raise InvalidXCurrencyError(currency_pair)

        candidate = self.find_best_candidate(currency_pair)
        if self._global_multiplier != 1:
            candidate = BinaryOp("*", Parenthesized(candidate), Number(self._global_multiplier))

        flattened = flatten(candidate, currency_pair, self.find_best_candidate)
        logger.debug(f"Resolved {currency_pair} to {render(flattened.expression)}")
        return RateRule(
            currency_pair,
            flattened.expression,
            flattened.requirements,
            flattened.errors,
        )

    def find_best_candidate(self, currency_pair: CurrencyPair) -> Expression:
        """Pick the expression that best matches a pair.

        Candidates by priority, lower is better:
          0. LEFT_RIGHT
          1. LEFT_X, X_RIGHT
          2. RIGHT_LEFT (inverse)
          3. RIGHT_X, X_LEFT (inverse wildcards)
          4. X_X
        Between candidates of equal priority, the rule written first in the
        script wins.

        An inverse match is returned as ``1 / RIGHT_LEFT``, a reference
        resolved again during flattening, never as the inverted expression.

        Returns:
            The chosen expression, or ``ERR_NO_RULE_MATCH(pair)`` if no
            rule matches.
        """
        inverse = currency_pair.inverse()
        lookups = (
            (currency_pair, 0, False),
            (CurrencyPair(currency_pair.left, WILDCARD), 1, False),
            (CurrencyPair(WILDCARD, currency_pair.right), 1, False),
            (inverse, 2, True),
            (CurrencyPair(inverse.left, WILDCARD), 3, True),
            (CurrencyPair(WILDCARD, inverse.right), 3, True),
            (CurrencyPair(WILDCARD, WILDCARD), 4, False),
        )

        best: Optional[tuple[int, tuple[int, int], Expression, bool]] = None
        for pair, priority, is_inverse in lookups:
            rule = self._rules.get(pair)
            if rule is None:
                continue
            candidate = (priority, rule.position, rule.expression, is_inverse)
            if best is None or candidate[:2] < best[:2]:
                best = candidate

        if best is None:
            return error_marker("NO_RULE_MATCH", PairRef(currency_pair))

        _, _, expression, is_inverse = best
        if is_inverse:
            return BinaryOp("/", Number(Decimal("1")), PairRef(inverse))
        return expression

    def __str__(self) -> str:
        return "\n".join(
            f"{pair} = {render(rule.expression)};" for pair, rule in self._rules.items()
        )


class RateRule:
    """A rule resolved and flattened for one currency pair.

    ``evaluate`` may be called any number of times with fresh rates. Each
    call resets the state from the previous one. The instance keeps the
    last outcome in ``value``, ``errors`` and ``evaluated``, so sharing one
    instance between threads needs external locking.
    """

    def __init__(
        self,
        currency_pair: CurrencyPair,
        expression: Expression,
        requirements: tuple[ExchangeRateRequirement, ...] = (),
        flatten_errors: tuple[RateRulesError, ...] = (),
    ) -> None:
        self._currency_pair = currency_pair
        self._expression = expression
        self._requirements = requirements
        self._flatten_errors = flatten_errors
        self._value: Optional[Decimal] = None
        self._errors: tuple[RateRulesError, ...] = ()
        self._evaluated: Optional[str] = None

    @property
    def currency_pair(self) -> CurrencyPair:
        return self._currency_pair

    @property
    def expression(self) -> Expression:
        """The flattened expression."""
        return self._expression

    def required_rates(self) -> frozenset[ExchangeRateRequirement]:
        """Exchange rates that must be looked up to evaluate this rule."""
        return frozenset(self._requirements)

    @property
    def value(self) -> Optional[Decimal]:
        """Rate computed by the last ``evaluate`` call."""
        return self._value

    @property
    def errors(self) -> tuple[RateRulesError, ...]:
        """Errors recorded by the last ``evaluate`` call."""
        return self._errors

    @property
    def has_error(self) -> bool:
        return len(self._errors) != 0

    @property
    def evaluated(self) -> Optional[str]:
        """Expression after rate substitution, None before any evaluation."""
        return self._evaluated

    def evaluate(self, rate_lookup: RateLookup) -> EvaluationResult:
        """Substitute rates and compute the rule's value.

        Never raises for an invalid rule or a missing rate: such failures
        are reported in the result's errors.

        Args:
            rate_lookup: Called with (exchange name, pair) for each required
                rate; returns the rate or None when unavailable.

        Returns:
            The value, or the errors that prevented computing it.
        """
        self._value = None
        self._errors = ()
        self._evaluated = None

        errors: list[RateRulesError] = list(self._flatten_errors)
        substituted = substitute_rates(self._expression, rate_lookup, errors)
        evaluated = render(substituted)

        value: Optional[Decimal] = None
        if not errors:
            values, calculation_errors = calculate(substituted)
            errors.extend(calculation_errors)
            if len(values) == 1 and not errors:
                value = values[0]
            elif not errors:
                errors.append(RateRulesError.MISSING_ARGUMENT)

        result = EvaluationResult(
            value=value,
            errors=tuple(dict.fromkeys(errors)),
            evaluated=evaluated,
        )
        if result.has_error:
            logger.warning(
                f"Rate rule for {self._currency_pair} failed "
                f"({', '.join(str(e) for e in result.errors)}): {evaluated}"
            )

        self._value = result.value
        self._errors = result.errors
        self._evaluated = result.evaluated
        return result

    def __str__(self) -> str:
        return render(self._expression)

    def __repr__(self) -> str:
        return f"RateRule({self._currency_pair}, {self})"
