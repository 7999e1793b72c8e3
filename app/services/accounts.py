"""Account registration and password checks.

Passwords are hashed with bcrypt; the cost factor comes from settings so
tests can run with the minimum. New accounts start with a private copy of
the baseline rates.
"""

from __future__ import annotations

import logging
import uuid

import bcrypt

from app.core.errors import (
    AuthenticationError,
    DuplicateUsernameError,
    RegistrationError,
)
from app.db.dal import AccountStore
from app.models.account import Account, Overridden, with_pivot
from app.services.rates.store import RateStore

logger = logging.getLogger("app.accounts")


def hash_password(password: str, rounds: int = 12) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode(
        "utf-8"
    )


def verify_password(password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # stored hash is not a bcrypt hash
        return False


def register(
    accounts: AccountStore,
    baseline: RateStore,
    username: str,
    password: str,
    confirm_password: str,
    rounds: int = 12,
) -> Account:
    username = (username or "").strip()
    if not username or not password or not confirm_password:
        raise RegistrationError("all fields are required")
    if password != confirm_password:
        raise RegistrationError("passwords do not match")
    if accounts.find_by_username(username) is not None:
        raise DuplicateUsernameError("user already exists")

    account = Account(
        id=str(uuid.uuid4()),
        username=username,
        password_hash=hash_password(password, rounds),
        personal_rates=Overridden(with_pivot(baseline.snapshot())),
    )
    accounts.add(account)
    logger.info("account registered: %s", username)
    return account


def authenticate(accounts: AccountStore, username: str, password: str) -> Account:
    if not username or not password:
        raise AuthenticationError("all fields are required")
    account = accounts.find_by_username(username.strip())
    if account is None:
        raise AuthenticationError("user not found")
    if not verify_password(password, account.password_hash):
        raise AuthenticationError("wrong password")
    return account
