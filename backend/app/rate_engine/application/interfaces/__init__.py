# Ports for external integrations (exchange rate providers)

from .rate_provider import ExchangeFetchError, FetchedRates, RateProvider, RateSource

__all__ = [
    "ExchangeFetchError",
    "FetchedRates",
    "RateProvider",
    "RateSource",
]
