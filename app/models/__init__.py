"""Pydantic and dataclass domain models for the currency converter."""

from .constants import (
    PIVOT_CURRENCY,
    PIVOT_RATE,
    CONVERSION_PLACES,
    normalize_currency,
)  # re-export
from .account import (
    Account,
    AccountRecord,
    Inherited,
    Overridden,
    PersonalRates,
    RateTable,
    INHERITED,
)
from .rates import (
    ConvertIn,
    ConversionOut,
    RateIn,
    CurrencyIn,
    RateTableOut,
    AdminRateTableOut,
)

__all__ = [
    "PIVOT_CURRENCY",
    "PIVOT_RATE",
    "CONVERSION_PLACES",
    "normalize_currency",
    "Account",
    "AccountRecord",
    "Inherited",
    "Overridden",
    "PersonalRates",
    "RateTable",
    "INHERITED",
    "ConvertIn",
    "ConversionOut",
    "RateIn",
    "CurrencyIn",
    "RateTableOut",
    "AdminRateTableOut",
]
