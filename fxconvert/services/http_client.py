from __future__ import annotations

"""Async HTTP client helpers for the rates upstream.

One shared `httpx.AsyncClient` per application (built in the lifespan) with
body-level debug logging hooks. `get_json` makes exactly one attempt: no
retries, no backoff. Every transport problem surfaces as `FetchFailure`.
"""
import json
import logging
from typing import Any, Dict, Optional

import httpx

from fxconvert.core.errors import FetchFailure

logger = logging.getLogger("fxconvert.http")

_BODY_LOG_LIMIT = 2000


async def _log_request(request: httpx.Request) -> None:
    # apikey is stripped from the logged URL
    logger.debug("--> %s %s", request.method, request.url.copy_remove_param("apikey"))


async def _log_response(response: httpx.Response) -> None:
    await response.aread()
    logger.debug(
        "<-- %s %s %s",
        response.status_code,
        response.request.url.copy_remove_param("apikey"),
        response.text[:_BODY_LOG_LIMIT],
    )


def build_async_client(
    timeout: Optional[float] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    kwargs: Dict[str, Any] = {
        "event_hooks": {"request": [_log_request], "response": [_log_response]},
    }
    if timeout is not None:
        kwargs["timeout"] = timeout
    if transport is not None:
        kwargs["transport"] = transport
    return httpx.AsyncClient(**kwargs)


async def get_json(
    client: httpx.AsyncClient, url: str, *, params: Optional[Dict[str, str]] = None
) -> Dict[str, Any]:
    try:
        resp = await client.get(url, params=params)
    except httpx.HTTPError as e:
        raise FetchFailure(str(e) or type(e).__name__, url=url) from e

    if not resp.is_success:
        raise FetchFailure(
            resp.reason_phrase or f"HTTP {resp.status_code}",
            status_code=resp.status_code,
            body=resp.text,
            url=url,
        )
    try:
        data = resp.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise FetchFailure(
            "malformed JSON body", status_code=resp.status_code, body=resp.text, url=url
        ) from e
    if not isinstance(data, dict):
        raise FetchFailure(
            "unexpected JSON payload", status_code=resp.status_code, body=resp.text, url=url
        )
    return data
