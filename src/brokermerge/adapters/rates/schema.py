"""Pydantic models describing the exchange-rate API payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class RateApiBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class FxRatesRate(RateApiBaseModel):
    rate: float | None = None


class FxRatesConvertResponse(RateApiBaseModel):
    """``GET /convert`` answer from fxratesapi.com.

    The rate is reported either as ``result.rate`` or as ``info.rate`` with a
    bare numeric ``result`` (the converted amount, equal to the rate for an
    amount of 1).
    """

    success: bool = True
    result: FxRatesRate | float | None = None
    info: FxRatesRate | None = None
    error: str | None = None
    description: str | None = None

    @property
    def rate(self) -> float | None:
        if isinstance(self.result, FxRatesRate) and self.result.rate:
            return self.result.rate
        if self.info is not None and self.info.rate:
            return self.info.rate
        if isinstance(self.result, float):
            return self.result
        return None


class ExchangeRateApiPairResponse(RateApiBaseModel):
    """``GET /{key}/pair/{from}/{to}`` answer from exchangerate-api.com v6."""

    result: str
    base_code: str | None = None
    target_code: str | None = None
    conversion_rate: float | None = None
    error_type: str | None = Field(default=None, alias="error-type")
