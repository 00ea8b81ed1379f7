from __future__ import annotations

"""Conversion arithmetic over fetched rate snapshots.

Both forms are pure:
    - `convert`: two snapshots, one per leg, result = amount * (to_rate / from_rate).
    - `convert_anchored`: one snapshot anchored at the source currency,
      result = amount * rate[to_code]. Same answer whenever the snapshot's
      self rate is 1.0.

Missing entries default to 1.0. A zero divisor raises `ZeroRateError`.
"""
import logging

from fxconvert.core.errors import ZeroRateError
from fxconvert.models.rates import RateSnapshot

logger = logging.getLogger("fxconvert.conversion")

DEFAULT_RATE = 1.0


def rate_for(snapshot: RateSnapshot, code: str) -> float:
    rates = snapshot.rates or {}
    return rates.get(code, DEFAULT_RATE)


def convert(
    amount: float,
    from_code: str,
    to_code: str,
    from_snapshot: RateSnapshot,
    to_snapshot: RateSnapshot,
) -> float:
    from_rate = rate_for(from_snapshot, from_code)
    to_rate = rate_for(to_snapshot, to_code)
    logger.debug("fromRate: %s toRate: %s", from_rate, to_rate)
    if from_rate == 0:
        raise ZeroRateError(from_code)
    return amount * (to_rate / from_rate)


def convert_anchored(amount: float, to_code: str, snapshot: RateSnapshot) -> float:
    to_rate = rate_for(snapshot, to_code)
    self_rate = rate_for(snapshot, snapshot.base_code)
    logger.debug("selfRate: %s toRate: %s", self_rate, to_rate)
    if self_rate == 0:
        raise ZeroRateError(snapshot.base_code)
    return amount * (to_rate / self_rate)
