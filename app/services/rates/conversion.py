from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Mapping

from app.core.errors import InvalidAmountError, UnknownCurrencyError
from app.services.money import round_places

"""Pivot-routed currency conversion.

Rates are quoted as units of a currency per one unit of the pivot, so an
amount is first divided into pivot units and then multiplied out into the
target currency. The same route is taken when source and target match.
Results are rounded half away from zero to four decimal places, which means
converting there and back is only approximately the identity.
"""


@dataclass(frozen=True)
class ConversionResult:
    amount: float
    from_currency: str
    to_currency: str
    converted_amount: float


def convert(
    amount: float, from_currency: str, to_currency: str, rates: Mapping[str, float]
) -> float:
    missing = [c for c in (from_currency, to_currency) if c not in rates]
    if missing:
        raise UnknownCurrencyError(f"unknown currency: {', '.join(dict.fromkeys(missing))}")
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise InvalidAmountError("amount must be a number")
    if not math.isfinite(amount) or amount <= 0:
        raise InvalidAmountError("amount must be a positive finite number")

    pivot_amount = amount / rates[from_currency]
    converted = pivot_amount * rates[to_currency]
    if not math.isfinite(converted):
        raise InvalidAmountError("amount is too large to convert")
    return round_places(converted)


def convert_amount(
    amount: float, from_currency: str, to_currency: str, rates: Mapping[str, float]
) -> ConversionResult:
    return ConversionResult(
        amount=amount,
        from_currency=from_currency,
        to_currency=to_currency,
        converted_amount=convert(amount, from_currency, to_currency, rates),
    )
