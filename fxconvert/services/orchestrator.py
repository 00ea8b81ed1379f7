"""Conversion orchestrator: one user request from raw form input to display text.

State machine per request:

    IDLE -> FETCHING_FROM -> COMPUTING -> SUCCESS | FAILED            (anchored)
    IDLE -> FETCHING_FROM -> FETCHING_TO -> COMPUTING -> ...          (two-leg, sequential)
    IDLE -> FETCHING_BOTH -> COMPUTING -> ...                         (two-leg, concurrent)

Any step may end in FAILED. Every `Exception` is turned into an outcome with a
user-facing message; cancellation is left to propagate.
"""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from fxconvert.core.errors import (
    ConversionError,
    GenericFetchError,
    InvalidAmount,
    UnexpectedError,
)
from fxconvert.models.rates import ConversionRequest, ConversionResult, RateSnapshot
from fxconvert.services.currency_codes import resolve
from fxconvert.services.rates.base import RateClient
from fxconvert.services.rates.conversion import convert, convert_anchored

logger = logging.getLogger("fxconvert.orchestrator")


class ConversionState(str, Enum):
    IDLE = "idle"
    FETCHING_FROM = "fetching_from"
    FETCHING_TO = "fetching_to"
    FETCHING_BOTH = "fetching_both"
    COMPUTING = "computing"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class ConversionOutcome:
    state: ConversionState
    trail: Tuple[ConversionState, ...]
    result: Optional[ConversionResult] = None
    error_kind: Optional[str] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.state is ConversionState.SUCCESS

    @property
    def text(self) -> str:
        if self.result is not None:
            return self.result.text
        return self.message or ""


def parse_amount(raw: str) -> float:
    """Parse user text into a finite, non-negative amount or raise InvalidAmount."""
    try:
        value = float(raw.strip())
    except (AttributeError, ValueError) as e:
        raise InvalidAmount(raw) from e
    if not math.isfinite(value) or value < 0:
        raise InvalidAmount(raw)
    return value


def build_request(amount_text: str, from_label: str, to_label: str) -> ConversionRequest:
    return ConversionRequest(
        amount=parse_amount(amount_text),
        from_code=resolve(from_label),
        to_code=resolve(to_label),
        from_label=from_label,
        to_label=to_label,
    )


@dataclass
class _Run:
    trail: List[ConversionState] = field(default_factory=lambda: [ConversionState.IDLE])

    def enter(self, state: ConversionState) -> None:
        logger.debug("conversion state -> %s", state.value)
        self.trail.append(state)


class ConversionOrchestrator:
    def __init__(
        self,
        rate_client: RateClient,
        *,
        strategy: str = "anchored",
        concurrent_legs: bool = True,
    ):
        if strategy not in ("anchored", "two-leg"):
            raise ValueError(f"Unknown conversion strategy '{strategy}'")
        self._rates = rate_client
        self._strategy = strategy
        self._concurrent = concurrent_legs

    async def run(self, amount_text: str, from_label: str, to_label: str) -> ConversionOutcome:
        run = _Run()
        try:
            request = build_request(amount_text, from_label, to_label)
            if self._strategy == "anchored":
                converted = await self._anchored(run, request)
            else:
                converted = await self._two_leg(run, request)
        except ConversionError as e:
            return self._failed(run, e)
        except Exception as e:
            logger.exception(
                "Error during currency conversion: %s", e, extra={"error_kind": "unexpected"}
            )
            return self._failed(run, UnexpectedError(str(e)))

        run.enter(ConversionState.SUCCESS)
        result = ConversionResult(
            amount=request.amount,
            from_label=request.from_label,
            converted_amount=converted,
            to_label=request.to_label,
        )
        logger.info("converted %s", result.text)
        return ConversionOutcome(
            state=ConversionState.SUCCESS, trail=tuple(run.trail), result=result
        )

    async def _fetch(self, label: str, code: str) -> RateSnapshot:
        logger.debug("Making API call for %s to get latest rates.", label)
        snapshot = await self._rates.fetch_latest_rates(code)
        logger.debug("Result for %s: %s", label, snapshot.result)
        return snapshot

    async def _anchored(self, run: _Run, request: ConversionRequest) -> float:
        run.enter(ConversionState.FETCHING_FROM)
        snapshot = await self._fetch(request.from_label, request.from_code)
        run.enter(ConversionState.COMPUTING)
        if not snapshot.is_success:
            raise GenericFetchError()
        # only the self rate may default to 1.0
        if request.to_code != snapshot.base_code and request.to_code not in (snapshot.rates or {}):
            logger.debug("no rate for %s in %s table", request.to_code, snapshot.base_code)
            raise GenericFetchError()
        return convert_anchored(request.amount, request.to_code, snapshot)

    async def _two_leg(self, run: _Run, request: ConversionRequest) -> float:
        if self._concurrent:
            run.enter(ConversionState.FETCHING_BOTH)
            from_snap, to_snap = await asyncio.gather(
                self._fetch(request.from_label, request.from_code),
                self._fetch(request.to_label, request.to_code),
                return_exceptions=True,
            )
            # from leg failure wins when both fail
            for outcome in (from_snap, to_snap):
                if isinstance(outcome, BaseException):
                    raise outcome
        else:
            run.enter(ConversionState.FETCHING_FROM)
            from_snap = await self._fetch(request.from_label, request.from_code)
            run.enter(ConversionState.FETCHING_TO)
            to_snap = await self._fetch(request.to_label, request.to_code)

        run.enter(ConversionState.COMPUTING)
        if not (from_snap.is_success and to_snap.is_success):
            raise GenericFetchError()
        return convert(request.amount, request.from_code, request.to_code, from_snap, to_snap)

    @staticmethod
    def _failed(run: _Run, error: ConversionError) -> ConversionOutcome:
        run.enter(ConversionState.FAILED)
        if isinstance(error, InvalidAmount):
            logger.info("rejected amount %r", error.raw)
        else:
            logger.error(
                "conversion failed (%s): %s",
                error.kind,
                error.message,
                extra={"error_kind": error.kind},
            )
        return ConversionOutcome(
            state=ConversionState.FAILED,
            trail=tuple(run.trail),
            error_kind=error.kind,
            message=error.message,
        )
