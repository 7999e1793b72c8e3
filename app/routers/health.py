from fastapi import APIRouter, Depends

from app.db.dal import AccountStore
from app.services.rates.store import RateStore
from .deps import get_account_store, get_rate_store

router = APIRouter(tags=["health"])


@router.get("/health", summary="Liveness and data load status")
async def health(
    rates: RateStore = Depends(get_rate_store),
    accounts: AccountStore = Depends(get_account_store),
):
    return {
        "status": "degraded" if rates.degraded else "ok",
        "degraded": rates.degraded,
        "baseline_currencies": len(rates.get()),
        "accounts": len(accounts),
    }
