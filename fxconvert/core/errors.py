"""Conversion error taxonomy and application-level exception handlers.

Every conversion failure is a ``ConversionError`` carrying a ``kind`` and a
user-facing ``message``. The orchestrator catches them and turns them into a
single text string; the handlers below only cover routing / validation /
unhandled errors outside the conversion flow.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

from fxconvert.models.constants import (
    MSG_FETCH_ERROR,
    MSG_GENERIC_FETCH_ERROR,
    MSG_INVALID_AMOUNT,
    MSG_UNEXPECTED,
    MSG_ZERO_RATE,
)

logger = logging.getLogger("fxconvert.errors")


class ConversionError(Exception):
    kind: str = "unexpected"

    @property
    def message(self) -> str:
        return str(self)


class InvalidAmount(ConversionError):
    kind = "invalid_amount"

    def __init__(self, raw: str):
        self.raw = raw
        super().__init__(MSG_INVALID_AMOUNT)


class FetchFailure(ConversionError):
    """Transport-level failure: network error, non-2xx status or malformed body."""

    kind = "api_error"

    def __init__(
        self,
        reason: str,
        *,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
        url: Optional[str] = None,
    ):
        self.reason = reason
        self.status_code = status_code
        self.body = body
        self.url = url
        super().__init__(MSG_FETCH_ERROR.format(reason=reason, body=body or "").rstrip())


class GenericFetchError(ConversionError):
    kind = "generic_fetch_error"

    def __init__(self) -> None:
        super().__init__(MSG_GENERIC_FETCH_ERROR)


class ZeroRateError(ConversionError):
    kind = "zero_rate"

    def __init__(self, code: str):
        self.code = code
        super().__init__(MSG_ZERO_RATE.format(code=code))


class UnexpectedError(ConversionError):
    kind = "unexpected"

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(MSG_UNEXPECTED.format(detail=detail))


def not_found_handler(request: Request, exc):  # type: ignore
    if getattr(exc, "status_code", 404) != 404:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": "http_error", "detail": exc.detail},
        )
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={
            "error": "not_found",
            "detail": f"No route for {request.method} {request.url.path}",
        },
    )


def validation_error_handler(request: Request, exc: RequestValidationError):  # type: ignore
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "validation_error",
            "detail": exc.errors(),
        },
    )


def server_error_handler(request: Request, exc: Exception):  # type: ignore
    logger.exception("unhandled exception")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_error",
            "detail": "An unexpected error occurred.",
        },
    )
