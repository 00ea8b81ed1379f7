from __future__ import annotations

"""Rate client abstraction.

A rate client performs one lookup of the latest rate table anchored at a base
currency. Implementations make a single attempt and raise `FetchFailure` on
transport problems; logical failures come back as a failed snapshot.
"""
from abc import ABC, abstractmethod

from fxconvert.models.rates import RateSnapshot


class RateClient(ABC):
    name: str = "abstract"

    @abstractmethod
    async def fetch_latest_rates(self, base_code: str) -> RateSnapshot:
        """Return the latest rate table anchored at base_code."""
        raise NotImplementedError

    async def aclose(self) -> None:
        return None
