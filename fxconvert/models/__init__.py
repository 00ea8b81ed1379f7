"""Pydantic domain models for the FX converter."""

from .constants import CURRENCY_LABELS  # re-export
from .rates import ConversionRequest, ConversionResult, ExchangeRateResponse, RateSnapshot

__all__ = [
    "CURRENCY_LABELS",
    "ConversionRequest",
    "ConversionResult",
    "ExchangeRateResponse",
    "RateSnapshot",
]
