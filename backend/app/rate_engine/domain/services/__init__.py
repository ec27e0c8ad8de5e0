"""Domain services implementing the rate rule pipeline.

These are pure domain services with no infrastructure dependencies:
- script_parser: Rule script text -> statements
- pair_normalizer: Canonical pair identifiers and exchange names
- rule_table: Pair -> expression table
- flattener: Inlines pair references down to exchange lookups
- evaluator: Rate substitution and arithmetic
- RateRules / RateRule: Rule resolution and evaluation entry points
"""

from app.rate_engine.domain.services.flattener import MAX_NESTED_CALLS
from app.rate_engine.domain.services.rate_rules import RateRule, RateRules
from app.rate_engine.domain.services.rule_table import RuleDefinition

__all__ = [
    "MAX_NESTED_CALLS",
    "RateRule",
    "RateRules",
    "RuleDefinition",
]
