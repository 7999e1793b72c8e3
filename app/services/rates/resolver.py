from __future__ import annotations

"""Effective rate table resolution.

An account either owns a personal table (which fully replaces the baseline)
or inherits the baseline. Inheriting accounts get a fresh copy on every
read so no caller can reach the shared baseline object or another account's
table through the returned mapping.
"""
from typing import Literal

from app.models.account import Account, Overridden, RateTable
from .store import RateStore

RateSource = Literal["personal", "baseline"]


class UserRateResolver:
    def __init__(self, store: RateStore):
        self._store = store

    def resolve(self, account: Account) -> RateTable:
        rates = account.personal_rates
        if isinstance(rates, Overridden):
            return rates.table
        return self._store.snapshot()

    def source(self, account: Account) -> RateSource:
        return "personal" if account.has_overrides else "baseline"
