"""Data Transfer Objects for rate results.

These DTOs represent the external contract for computed rates. They are
decoupled from the domain rule objects and optimized for JSON
serialization.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ExchangeErrorDTO(BaseModel):
    """A failure reaching an exchange while fetching a required rate."""

    model_config = ConfigDict(frozen=True)

    exchange_name: str = Field(description="Exchange that failed (e.g., 'kraken')")
    currency_pair: str = Field(description="Pair that was requested (e.g., 'BTC_USD')")
    message: str = Field(description="Reason for the failure")


class RateResultDTO(BaseModel):
    """Computed rate for one currency pair.

    Carries the value when the rule evaluated cleanly, and otherwise
    everything needed to explain the failure: rule errors, exchange
    errors, the rule and its evaluated form.
    """

    model_config = ConfigDict(frozen=True)

    currency_pair: str = Field(description="Requested pair (e.g., 'BTC_USD')")
    value: Optional[Decimal] = Field(default=None, description="Computed rate, if available")
    errors: list[str] = Field(default_factory=list, description="Rate rule error kinds")
    exchange_errors: list[ExchangeErrorDTO] = Field(
        default_factory=list,
        description="Failures reaching exchanges for this rule's rates"
    )
    rule: str = Field(description="Flattened rule expression")
    evaluated_rule: Optional[str] = Field(
        default=None,
        description="Rule after substituting fetched rates"
    )

    @property
    def has_error(self) -> bool:
        return bool(self.errors) or bool(self.exchange_errors)
