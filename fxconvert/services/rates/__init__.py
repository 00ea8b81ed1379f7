from .base import RateClient
from .conversion import convert, convert_anchored, rate_for
from .providers import ExchangeApiRateClient, StaticRateClient, make_rate_client

__all__ = [
    "RateClient",
    "convert",
    "convert_anchored",
    "rate_for",
    "ExchangeApiRateClient",
    "StaticRateClient",
    "make_rate_client",
]
