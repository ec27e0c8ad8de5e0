# Exchange rate provider adapters

from .rate_provider_registry import RateProviderRegistry
from .static_rate_provider import StaticRateProvider

__all__ = [
    "RateProviderRegistry",
    "StaticRateProvider",
]
