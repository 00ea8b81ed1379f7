from __future__ import annotations

"""Concrete rate clients and factory.

'StaticRateClient' serves a fixed USD-anchored cross table so the app runs
without an API key; 'ExchangeApiRateClient' talks to the live upstream.
"""
import logging
from typing import Callable, Dict, Optional

import httpx
from pydantic import ValidationError

from fxconvert.core.config import Settings
from fxconvert.core.errors import FetchFailure
from fxconvert.models.rates import ExchangeRateResponse, RateSnapshot
from fxconvert.services.http_client import build_async_client, get_json
from .base import RateClient

logger = logging.getLogger("fxconvert.rates")

# Units of currency per 1 USD
_STATIC_USD_RATES: Dict[str, float] = {
    "USD": 1.0,
    "EUR": 0.92,
    "GBP": 0.79,
    "JPY": 149.5,
    "RUB": 92.0,
    "CNY": 7.24,
}


class StaticRateClient(RateClient):
    name = "static"

    def __init__(self, usd_rates: Optional[Dict[str, float]] = None):
        self._usd_rates = dict(usd_rates or _STATIC_USD_RATES)

    async def fetch_latest_rates(self, base_code: str) -> RateSnapshot:  # type: ignore[override]
        anchor = self._usd_rates.get(base_code)
        if not anchor:
            # Same shape the upstream uses for unknown codes
            return RateSnapshot(base_code=base_code, status="failure", result="unsupported-code")
        rates = {code: value / anchor for code, value in self._usd_rates.items()}
        rates[base_code] = 1.0
        return RateSnapshot(base_code=base_code, rates=rates, status="success", result="success")


class ExchangeApiRateClient(RateClient):
    """Fetches `{base_url}/latest/{code}?apikey={key}`; one attempt per call."""

    name = "external-http"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._owns_client = client is None
        self._client = client or build_async_client(timeout=timeout)

    async def fetch_latest_rates(self, base_code: str) -> RateSnapshot:  # type: ignore[override]
        url = f"{self._base_url}/latest/{base_code}"
        data = await get_json(self._client, url, params={"apikey": self._api_key})
        try:
            payload = ExchangeRateResponse.model_validate(data)
        except ValidationError as e:
            raise FetchFailure(
                "malformed rates payload", body=str(data), url=url
            ) from e
        logger.debug("result for %s: %s", base_code, payload.result)
        return RateSnapshot.from_response(base_code, payload)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def _make_static(settings: Settings, client: Optional[httpx.AsyncClient]) -> RateClient:
    return StaticRateClient()


def _make_external(settings: Settings, client: Optional[httpx.AsyncClient]) -> RateClient:
    return ExchangeApiRateClient(
        settings.exchange_api_base_url,
        settings.exchange_api_key.get_secret_value(),
        client=client,
        timeout=settings.http_timeout_seconds,
    )


_PROVIDER_REGISTRY: Dict[str, Callable[[Settings, Optional[httpx.AsyncClient]], RateClient]] = {
    "static": _make_static,
    "external-http": _make_external,
}


def make_rate_client(
    settings: Settings, client: Optional[httpx.AsyncClient] = None
) -> RateClient:
    factory = _PROVIDER_REGISTRY.get(settings.exchange_rate_provider)
    if not factory:
        raise ValueError(f"Unknown rate provider kind '{settings.exchange_rate_provider}'")
    return factory(settings, client)
