"""Pydantic models describing the JSON holdings and security reference files."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import cast

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from brokermerge.domain.model import AssetClass


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class HoldingsFileBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class MetadataPayload(HoldingsFileBaseModel):
    isin: str | None = None
    cusip: str | None = None
    sedol: str | None = None
    name: str | None = None
    exchange: str | None = None
    account_name: str | None = Field(default=None, alias="accountName")

    _normalize_optional = field_validator(
        "isin", "cusip", "sedol", "name", "exchange", "account_name", mode="before"
    )(_blank_to_none)


class HoldingPayload(HoldingsFileBaseModel):
    symbol: str
    quantity: float
    market_price: float = Field(alias="marketPrice")
    market_value: float = Field(alias="marketValue")
    currency: str
    broker_id: str = Field(alias="brokerId")
    account_id: str = Field(alias="accountId")
    asset_class: AssetClass = Field(default=AssetClass.EQUITY, alias="assetClass")
    cost_basis: float | None = Field(default=None, alias="costBasis")
    last_updated: datetime | None = Field(default=None, alias="lastUpdated")
    metadata: MetadataPayload = Field(default_factory=MetadataPayload)
    extra: dict[str, object] = Field(default_factory=dict)

    @field_validator("asset_class", mode="before")
    @classmethod
    def _upper_asset_class(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("currency", "broker_id", mode="before")
    @classmethod
    def _strip(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip()
        return value


class HoldingsFile(HoldingsFileBaseModel):
    holdings: list[HoldingPayload]

    @model_validator(mode="before")
    @classmethod
    def _accept_bare_list(cls, value: object) -> object:
        if isinstance(value, list):
            return {"holdings": value}
        if isinstance(value, Mapping):
            return cast(Mapping[str, object], value)
        return value


class SecurityReferencePayload(HoldingsFileBaseModel):
    symbol: str
    isin: str | None = None
    cusip: str | None = None
    sedol: str | None = None
    name: str | None = None
    exchange: str | None = None

    _normalize_optional = field_validator(
        "isin", "cusip", "sedol", "name", "exchange", mode="before"
    )(_blank_to_none)

    @field_validator("symbol")
    @classmethod
    def _require_symbol(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("symbol must not be blank")
        return stripped


class SecurityReferencesFile(HoldingsFileBaseModel):
    securities: list[SecurityReferencePayload]

    @model_validator(mode="before")
    @classmethod
    def _accept_bare_list(cls, value: object) -> object:
        if isinstance(value, list):
            return {"securities": value}
        return value
