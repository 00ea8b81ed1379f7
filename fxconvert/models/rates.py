from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Dict, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from fxconvert.services.money import format_amount

from .constants import SUCCESS_RESULT


class ExchangeRateResponse(BaseModel):
    """Wire model for one `latest/{base}` response body.

    Accepts the camelCase field names of the original client as well as the
    snake_case names the upstream emits (`conversion_rates`, `base_code`, ...).
    Only `rates` and `result` are consumed by the conversion logic.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    rates: Optional[Dict[str, float]] = Field(
        None, validation_alias=AliasChoices("rates", "conversion_rates")
    )
    base: Optional[str] = Field(None, validation_alias=AliasChoices("base", "base_code"))
    date: Optional[str] = None
    result: Optional[str] = None
    documentation: Optional[str] = None
    terms_of_use: Optional[str] = Field(
        None, validation_alias=AliasChoices("termsOfUse", "terms_of_use")
    )
    time_last_update_unix: Optional[int] = Field(
        None, validation_alias=AliasChoices("timeLastUpdateUnix", "time_last_update_unix")
    )
    time_last_update_utc: Optional[str] = Field(
        None, validation_alias=AliasChoices("timeLastUpdateUtc", "time_last_update_utc")
    )
    time_next_update_unix: Optional[int] = Field(
        None, validation_alias=AliasChoices("timeNextUpdateUnix", "time_next_update_unix")
    )
    time_next_update_utc: Optional[str] = Field(
        None, validation_alias=AliasChoices("timeNextUpdateUtc", "time_next_update_utc")
    )


class RateSnapshot(BaseModel):
    """Immutable rate table for one base currency, as produced by one fetch."""

    model_config = ConfigDict(frozen=True)

    base_code: str
    rates: Optional[Dict[str, float]] = None
    status: Literal["success", "failure"]
    result: Optional[str] = None
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_response(cls, base_code: str, payload: ExchangeRateResponse) -> "RateSnapshot":
        ok = payload.result == SUCCESS_RESULT and payload.rates is not None
        return cls(
            base_code=base_code,
            rates=dict(payload.rates) if payload.rates is not None else None,
            status="success" if ok else "failure",
            result=payload.result,
        )

    @property
    def is_success(self) -> bool:
        return self.status == "success" and self.rates is not None


class ConversionRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    amount: float = Field(..., ge=0)
    from_code: str
    to_code: str
    from_label: str
    to_label: str

    @field_validator("amount")
    @classmethod
    def finite_amount(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("amount must be finite")
        return v


class ConversionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    amount: float
    from_label: str
    converted_amount: float
    to_label: str

    @property
    def text(self) -> str:
        return (
            f"{format_amount(self.amount)} {self.from_label} = "
            f"{format_amount(self.converted_amount)} {self.to_label}"
        )
