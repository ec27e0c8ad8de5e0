"""Application layer - use cases and orchestration.

This layer contains:
- DTOs: Data Transfer Objects for computed rates
- Interfaces: Ports for exchange rate providers
- Use Cases: Application services that orchestrate domain logic
- Exceptions: Application-level error types
"""

from app.rate_engine.application.dto import ExchangeErrorDTO, RateResultDTO
from app.rate_engine.application.exceptions import (
    ApplicationError,
    InvalidCurrencyPairError,
    InvalidRateRulesError,
)
from app.rate_engine.application.interfaces import (
    ExchangeFetchError,
    FetchedRates,
    RateProvider,
    RateSource,
)
from app.rate_engine.application.use_cases import (
    FetchRatesUseCase,
    LoadRateRulesUseCase,
)

__all__ = [
    # DTOs
    "ExchangeErrorDTO",
    "RateResultDTO",
    # Interfaces
    "ExchangeFetchError",
    "FetchedRates",
    "RateProvider",
    "RateSource",
    # Use Cases
    "FetchRatesUseCase",
    "LoadRateRulesUseCase",
    # Exceptions
    "ApplicationError",
    "InvalidCurrencyPairError",
    "InvalidRateRulesError",
]
