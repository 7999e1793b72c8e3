from __future__ import annotations

from fastapi import APIRouter, Depends

from app.models.account import Account
from app.models.rates import AdminRateTableOut, CurrencyIn, RateIn
from app.services.rates.admin import RateAdministration
from app.services.rates.resolver import UserRateResolver
from .deps import get_current_account, get_rate_admin, get_resolver

"""Personal rate editor endpoints.

Endpoints:
    - GET /admin/rates          -> editable table plus protected currencies
    - POST /admin/rates/update  -> set {currency, rate}, creating it if absent
    - POST /admin/rates/add     -> add {currency, rate}; 409 when it exists
    - POST /admin/rates/delete  -> delete {currency}; the pivot is protected
    - POST /admin/rates/reset   -> replace the table with the current baseline

Every write is saved before it is acknowledged; a failed save answers 503
and leaves the table unchanged. Handlers are sync so saves run in the
threadpool while the account store serializes them.
"""

router = APIRouter(prefix="/admin/rates", tags=["admin"])


def _table(account: Account, resolver: UserRateResolver) -> AdminRateTableOut:
    return AdminRateTableOut(
        source=resolver.source(account), rates=dict(resolver.resolve(account))
    )


@router.get("", response_model=AdminRateTableOut, summary="Personal rate table")
async def get_admin_rates(
    account: Account = Depends(get_current_account),
    resolver: UserRateResolver = Depends(get_resolver),
):
    return _table(account, resolver)


@router.post("/update", response_model=AdminRateTableOut, summary="Set a rate")
def update_rate(
    payload: RateIn,
    account: Account = Depends(get_current_account),
    admin: RateAdministration = Depends(get_rate_admin),
    resolver: UserRateResolver = Depends(get_resolver),
):
    admin.set_rate(account, payload.currency, payload.rate)
    return _table(account, resolver)


@router.post("/add", response_model=AdminRateTableOut, summary="Add a currency")
def add_rate(
    payload: RateIn,
    account: Account = Depends(get_current_account),
    admin: RateAdministration = Depends(get_rate_admin),
    resolver: UserRateResolver = Depends(get_resolver),
):
    admin.add_rate(account, payload.currency, payload.rate)
    return _table(account, resolver)


@router.post("/delete", response_model=AdminRateTableOut, summary="Delete a currency")
def delete_rate(
    payload: CurrencyIn,
    account: Account = Depends(get_current_account),
    admin: RateAdministration = Depends(get_rate_admin),
    resolver: UserRateResolver = Depends(get_resolver),
):
    admin.delete_rate(account, payload.currency)
    return _table(account, resolver)


@router.post("/reset", response_model=AdminRateTableOut, summary="Reset to baseline")
def reset_rates(
    account: Account = Depends(get_current_account),
    admin: RateAdministration = Depends(get_rate_admin),
    resolver: UserRateResolver = Depends(get_resolver),
):
    admin.reset_rates(account)
    return _table(account, resolver)
