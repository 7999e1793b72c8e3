"""Request dependencies shared by the routers.

Services live on ``app.state`` (built once in ``create_app``) so each app
instance, including the ones tests build over temp directories, has its own
account collection and baseline.
"""

from __future__ import annotations

from fastapi import Depends, Request

from app.core.config import Settings
from app.core.errors import AuthenticationError
from app.core.logging import bind_account
from app.db.dal import AccountStore
from app.models.account import Account
from app.services.rates.admin import RateAdministration
from app.services.rates.resolver import UserRateResolver
from app.services.rates.store import RateStore

SESSION_ACCOUNT_KEY = "account_id"


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_rate_store(request: Request) -> RateStore:
    return request.app.state.rate_store


def get_account_store(request: Request) -> AccountStore:
    return request.app.state.accounts


def get_resolver(request: Request) -> UserRateResolver:
    return request.app.state.resolver


def get_rate_admin(request: Request) -> RateAdministration:
    return request.app.state.rate_admin


def get_current_account(
    request: Request, accounts: AccountStore = Depends(get_account_store)
) -> Account:
    account_id = request.session.get(SESSION_ACCOUNT_KEY)
    if not account_id:
        raise AuthenticationError("login required")
    account = accounts.get(account_id)
    if account is None:
        # session outlived its account (e.g. users file replaced)
        request.session.pop(SESSION_ACCOUNT_KEY, None)
        raise AuthenticationError("login required")
    bind_account(account.id)
    return account
