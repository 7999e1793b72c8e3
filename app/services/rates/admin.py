from __future__ import annotations

"""Per-account rate table editing.

Each operation validates first, then edits the account's personal table,
then saves the whole collection through the account store, all in one write
turn. An inheriting account is switched to a private copy of the baseline on
its first edit; that switch is persisted along with the edit. If the save
fails the account is left exactly as it was and PersistenceWriteError is
raised.
"""
import logging
import math

from app.core.errors import (
    DuplicateCurrencyError,
    InvalidRateError,
    ProtectedCurrencyError,
    UnknownCurrencyError,
)
from app.db.dal import AccountStore
from app.models.account import Account, Overridden, RateTable, with_pivot
from app.models.constants import PIVOT_CURRENCY, PIVOT_RATE
from .store import RateStore

logger = logging.getLogger("app.rates.admin")


def _check_rate(rate: float) -> float:
    if isinstance(rate, bool) or not isinstance(rate, (int, float)):
        raise InvalidRateError("rate must be a number")
    if not math.isfinite(rate) or rate <= 0:
        raise InvalidRateError("rate must be a positive finite number")
    return float(rate)


def _check_pivot_rate(currency: str, rate: float) -> None:
    if currency == PIVOT_CURRENCY and rate != PIVOT_RATE:
        raise ProtectedCurrencyError(
            f"{PIVOT_CURRENCY} is the pivot currency; its rate is fixed at {PIVOT_RATE}"
        )


class RateAdministration:
    def __init__(self, accounts: AccountStore, baseline: RateStore):
        self._accounts = accounts
        self._baseline = baseline

    def _own_table(self, account: Account) -> RateTable:
        if not isinstance(account.personal_rates, Overridden):
            account.personal_rates = Overridden(with_pivot(self._baseline.snapshot()))
        return account.personal_rates.table

    def set_rate(self, account: Account, currency: str, rate: float) -> RateTable:
        """Overwrite or create the entry for ``currency``."""
        rate = _check_rate(rate)
        _check_pivot_rate(currency, rate)

        def change(acc: Account) -> RateTable:
            table = self._own_table(acc)
            table[currency] = rate
            return dict(table)

        result = self._accounts.mutate(account, change)
        logger.info("rate set %s=%s", currency, rate)
        return result

    def add_rate(self, account: Account, currency: str, rate: float) -> RateTable:
        """Create an entry that must not exist yet."""
        rate = _check_rate(rate)

        def change(acc: Account) -> RateTable:
            table = self._own_table(acc)
            if currency in table:
                raise DuplicateCurrencyError(f"currency {currency} already exists")
            _check_pivot_rate(currency, rate)
            table[currency] = rate
            return dict(table)

        result = self._accounts.mutate(account, change)
        logger.info("rate added %s=%s", currency, rate)
        return result

    def delete_rate(self, account: Account, currency: str) -> RateTable:
        if currency == PIVOT_CURRENCY:
            raise ProtectedCurrencyError(
                f"{PIVOT_CURRENCY} is the pivot currency and cannot be deleted"
            )

        def change(acc: Account) -> RateTable:
            table = self._own_table(acc)
            if currency not in table:
                raise UnknownCurrencyError(f"currency {currency} not found")
            del table[currency]
            return dict(table)

        result = self._accounts.mutate(account, change)
        logger.info("rate deleted %s", currency)
        return result

    def reset_rates(self, account: Account) -> RateTable:
        """Discard every override and start again from the current baseline."""

        def change(acc: Account) -> RateTable:
            acc.personal_rates = Overridden(with_pivot(self._baseline.snapshot()))
            return dict(acc.personal_rates.table)

        result = self._accounts.mutate(account, change)
        logger.info("rates reset to baseline")
        return result
