from __future__ import annotations

from typing import Callable

import httpx
import pytest

from fxconvert.core.config import Settings
from fxconvert.services.http_client import build_async_client


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    def _make(**overrides) -> Settings:
        values = {
            "exchange_rate_provider": "static",
            "exchange_api_base_url": "https://rates.test/v6",
            "exchange_api_key": "test-key",
        }
        values.update(overrides)
        settings = Settings(**values)
        settings.init_post_load()
        return settings

    return _make


@pytest.fixture
def mock_http() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Build an AsyncClient whose requests are answered by a handler function."""

    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return build_async_client(transport=httpx.MockTransport(handler))

    return _make
