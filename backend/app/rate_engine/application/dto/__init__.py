"""Data transfer objects for application layer."""

from app.rate_engine.application.dto.rate_dto import ExchangeErrorDTO, RateResultDTO

__all__ = [
    "ExchangeErrorDTO",
    "RateResultDTO",
]
