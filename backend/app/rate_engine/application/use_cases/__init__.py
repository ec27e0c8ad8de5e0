"""Application use cases for orchestrating domain logic."""

from app.rate_engine.application.use_cases.fetch_rates import FetchRatesUseCase
from app.rate_engine.application.use_cases.load_rate_rules import LoadRateRulesUseCase

__all__ = [
    "FetchRatesUseCase",
    "LoadRateRulesUseCase",
]
