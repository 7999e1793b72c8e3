from __future__ import annotations

from typing import Dict, List, Literal

from pydantic import BaseModel, Field, field_validator

from .constants import PIVOT_CURRENCY, normalize_currency


class ConvertIn(BaseModel):
    # amount is range-checked by the conversion engine, not here
    amount: float
    from_currency: str = Field(..., description="Currency the amount is quoted in")
    to_currency: str = Field(..., description="Currency to convert into")

    @field_validator("from_currency", "to_currency")
    def valid_currency(cls, v: str) -> str:
        return normalize_currency(v)


class ConversionOut(BaseModel):
    amount: float
    from_currency: str
    to_currency: str
    converted_amount: float


class RateIn(BaseModel):
    currency: str
    rate: float = Field(..., description=f"Units of currency per 1 {PIVOT_CURRENCY}")

    @field_validator("currency")
    def valid_currency(cls, v: str) -> str:
        return normalize_currency(v)


class CurrencyIn(BaseModel):
    currency: str

    @field_validator("currency")
    def valid_currency(cls, v: str) -> str:
        return normalize_currency(v)


class RateTableOut(BaseModel):
    pivot: str = PIVOT_CURRENCY
    source: Literal["personal", "baseline"]
    rates: Dict[str, float]


class AdminRateTableOut(RateTableOut):
    protected: List[str] = [PIVOT_CURRENCY]
