from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from app.models.account import Account
from app.models.rates import ConversionOut, ConvertIn, RateTableOut
from app.services.rates.conversion import convert_amount
from app.services.rates.resolver import UserRateResolver
from .deps import get_current_account, get_resolver

"""Read-side rate endpoints for the logged-in account.

Endpoints:
    - GET /rates        -> effective rate table and where it comes from
    - GET /currencies   -> currency codes available for conversion
    - POST /convert     -> convert an amount through the pivot currency
"""

router = APIRouter(tags=["rates"])


@router.get("/rates", response_model=RateTableOut, summary="Effective rate table")
async def get_rates(
    account: Account = Depends(get_current_account),
    resolver: UserRateResolver = Depends(get_resolver),
):
    return RateTableOut(
        source=resolver.source(account), rates=dict(resolver.resolve(account))
    )


@router.get("/currencies", response_model=List[str], summary="Available currencies")
async def list_currencies(
    account: Account = Depends(get_current_account),
    resolver: UserRateResolver = Depends(get_resolver),
):
    return sorted(resolver.resolve(account))


@router.post("/convert", response_model=ConversionOut, summary="Convert an amount")
async def convert(
    payload: ConvertIn,
    account: Account = Depends(get_current_account),
    resolver: UserRateResolver = Depends(get_resolver),
):
    result = convert_amount(
        payload.amount,
        payload.from_currency,
        payload.to_currency,
        resolver.resolve(account),
    )
    return ConversionOut(
        amount=result.amount,
        from_currency=result.from_currency,
        to_currency=result.to_currency,
        converted_amount=result.converted_amount,
    )
