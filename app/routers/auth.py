from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from app.core.config import Settings
from app.db.dal import AccountStore
from app.models.account import Account
from app.services import accounts as account_service
from app.services.rates.store import RateStore
from .deps import (
    SESSION_ACCOUNT_KEY,
    get_account_store,
    get_app_settings,
    get_current_account,
    get_rate_store,
)

"""Registration and session login/logout.

The session cookie carries only the account id; everything else is looked up
in the account store on each request.
"""

router = APIRouter(prefix="/auth", tags=["auth"])


class RegisterIn(BaseModel):
    username: str
    password: str
    confirm_password: str


class LoginIn(BaseModel):
    username: str
    password: str


class AccountOut(BaseModel):
    id: str
    username: str
    has_personal_rates: bool

    @classmethod
    def from_account(cls, account: Account) -> "AccountOut":
        return cls(
            id=account.id,
            username=account.username,
            has_personal_rates=account.has_overrides,
        )


@router.post(
    "/register", response_model=AccountOut, status_code=201, summary="Create an account"
)
def register(
    payload: RegisterIn,
    accounts: AccountStore = Depends(get_account_store),
    rates: RateStore = Depends(get_rate_store),
    settings: Settings = Depends(get_app_settings),
):
    account = account_service.register(
        accounts,
        rates,
        payload.username,
        payload.password,
        payload.confirm_password,
        rounds=settings.password_hash_rounds,
    )
    return AccountOut.from_account(account)


@router.post("/login", response_model=AccountOut, summary="Start a session")
def login(
    payload: LoginIn,
    request: Request,
    accounts: AccountStore = Depends(get_account_store),
):
    account = account_service.authenticate(accounts, payload.username, payload.password)
    request.session[SESSION_ACCOUNT_KEY] = account.id
    return AccountOut.from_account(account)


@router.post("/logout", summary="End the session")
async def logout(request: Request):
    request.session.clear()
    return {"status": "logged_out"}


@router.get("/me", response_model=AccountOut, summary="Current account")
async def me(account: Account = Depends(get_current_account)):
    return AccountOut.from_account(account)
