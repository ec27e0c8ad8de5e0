"""EvaluationResult value object returned by rule evaluation."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from app.rate_engine.domain.value_objects.rate_rules_error import RateRulesError


@dataclass(frozen=True)
class EvaluationResult:
    """Outcome of evaluating a resolved rule once.

    Attributes:
        value: The computed rate, or None when evaluation failed.
        errors: Distinct error kinds in the order they were recorded.
        evaluated: The expression after rate substitution, for diagnostics.
    """

    value: Optional[Decimal]
    errors: tuple[RateRulesError, ...]
    evaluated: str

    @property
    def has_error(self) -> bool:
        return len(self.errors) != 0
