"""Tests for per-account rate editing and its persistence contract."""

import json
import math
import threading
import time

import pytest

from app.core.errors import (
    DuplicateCurrencyError,
    InvalidRateError,
    PersistenceWriteError,
    ProtectedCurrencyError,
    UnknownCurrencyError,
)
from app.models.account import INHERITED, Overridden

BASELINE = {"USD": 1.0, "EUR": 0.9, "GBP": 0.8}


def _stored(settings):
    return {r["id"]: r for r in json.loads(settings.users_path.read_text())}


def _fail_writes(monkeypatch, gateway):
    def boom(records):
        raise OSError("disk full")

    monkeypatch.setattr(gateway, "write", boom)


class TestSetRate:
    def test_first_edit_copies_baseline_and_persists(
        self, rate_admin, inherited_account, rate_store, settings
    ):
        table = rate_admin.set_rate(inherited_account, "EUR", 0.95)
        assert table == {"USD": 1.0, "EUR": 0.95, "GBP": 0.8}
        assert isinstance(inherited_account.personal_rates, Overridden)
        assert dict(rate_store.get()) == BASELINE
        stored = _stored(settings)[inherited_account.id]
        assert stored["personalRates"] == table

    def test_creates_missing_currency(self, rate_admin, inherited_account):
        table = rate_admin.set_rate(inherited_account, "CHF", 0.88)
        assert table["CHF"] == 0.88

    @pytest.mark.parametrize("rate", [0, -1, math.inf, math.nan, "1.2", None, True])
    def test_rejects_invalid_rate(self, rate_admin, inherited_account, rate):
        with pytest.raises(InvalidRateError):
            rate_admin.set_rate(inherited_account, "EUR", rate)
        assert inherited_account.personal_rates is INHERITED

    def test_pivot_rate_is_fixed(self, rate_admin, inherited_account):
        with pytest.raises(ProtectedCurrencyError):
            rate_admin.set_rate(inherited_account, "USD", 2.0)
        assert rate_admin.set_rate(inherited_account, "USD", 1.0)["USD"] == 1.0


class TestAddRate:
    def test_adds_new_currency(self, rate_admin, inherited_account, settings):
        table = rate_admin.add_rate(inherited_account, "JPY", 147.5)
        assert table["JPY"] == 147.5
        assert _stored(settings)[inherited_account.id]["personalRates"]["JPY"] == 147.5

    @pytest.mark.parametrize("currency", ["EUR", "USD"])
    def test_duplicate_currency(self, rate_admin, inherited_account, currency):
        with pytest.raises(DuplicateCurrencyError):
            rate_admin.add_rate(inherited_account, currency, 1.0)

    @pytest.mark.parametrize("rate", [0, -3.5, math.inf, math.nan])
    def test_rejects_invalid_rate(self, rate_admin, inherited_account, rate):
        with pytest.raises(InvalidRateError):
            rate_admin.add_rate(inherited_account, "JPY", rate)

    def test_failed_validation_keeps_account_inherited(
        self, rate_admin, inherited_account, settings
    ):
        with pytest.raises(DuplicateCurrencyError):
            rate_admin.add_rate(inherited_account, "EUR", 1.1)
        assert inherited_account.personal_rates is INHERITED
        assert not settings.users_path.exists()


class TestDeleteRate:
    def test_deletes_currency(self, rate_admin, inherited_account):
        table = rate_admin.delete_rate(inherited_account, "GBP")
        assert table == {"USD": 1.0, "EUR": 0.9}

    def test_unknown_currency(self, rate_admin, inherited_account):
        with pytest.raises(UnknownCurrencyError):
            rate_admin.delete_rate(inherited_account, "JPY")

    @pytest.mark.parametrize(
        "rates", [None, {"USD": 1.0, "EUR": 0.9}, {"EUR": 0.9}, {}]
    )
    def test_pivot_is_always_protected(
        self, rate_admin, account_store, make_account, rates
    ):
        account = make_account("bob", rates=rates)
        account_store.replace_all([account])
        with pytest.raises(ProtectedCurrencyError):
            rate_admin.delete_rate(account, "USD")


class TestResetRates:
    def test_restores_baseline_values(self, rate_admin, inherited_account, rate_store):
        rate_admin.set_rate(inherited_account, "EUR", 5.0)
        rate_admin.add_rate(inherited_account, "JPY", 140.0)
        rate_admin.delete_rate(inherited_account, "GBP")
        table = rate_admin.reset_rates(inherited_account)
        assert table == dict(rate_store.get())
        assert inherited_account.personal_rates.table == BASELINE

    def test_reset_is_idempotent(self, rate_admin, inherited_account):
        first = rate_admin.reset_rates(inherited_account)
        second = rate_admin.reset_rates(inherited_account)
        assert first == second == BASELINE

    def test_reset_table_is_a_private_copy(self, rate_admin, inherited_account, rate_store):
        rate_admin.reset_rates(inherited_account)
        inherited_account.personal_rates.table["EUR"] = 9.9
        assert rate_store.get()["EUR"] == 0.9


class TestSaveFailure:
    def test_set_rate_rolls_back(
        self, monkeypatch, rate_admin, account_store, gateway, make_account
    ):
        account = make_account("carol", rates=BASELINE)
        account_store.replace_all([account])
        _fail_writes(monkeypatch, gateway)
        with pytest.raises(PersistenceWriteError):
            rate_admin.set_rate(account, "EUR", 3.0)
        assert account.personal_rates.table == BASELINE

    def test_lazy_copy_rolls_back(
        self, monkeypatch, rate_admin, inherited_account, gateway
    ):
        _fail_writes(monkeypatch, gateway)
        with pytest.raises(PersistenceWriteError):
            rate_admin.add_rate(inherited_account, "JPY", 140.0)
        assert inherited_account.personal_rates is INHERITED

    def test_reset_rolls_back(
        self, monkeypatch, rate_admin, account_store, gateway, make_account
    ):
        account = make_account("dave", rates={"USD": 1.0, "CHF": 0.88})
        account_store.replace_all([account])
        _fail_writes(monkeypatch, gateway)
        with pytest.raises(PersistenceWriteError):
            rate_admin.reset_rates(account)
        assert account.personal_rates.table == {"USD": 1.0, "CHF": 0.88}


def test_concurrent_edits_are_not_lost(
    monkeypatch, rate_admin, account_store, gateway, make_account
):
    accounts = [make_account(f"user{i}") for i in range(8)]
    account_store.replace_all(accounts)

    real_write = gateway.write
    active = []
    overlaps = []

    def slow_write(records):
        active.append(1)
        if len(active) > 1:
            overlaps.append(len(active))
        time.sleep(0.01)
        try:
            real_write(records)
        finally:
            active.pop()

    monkeypatch.setattr(gateway, "write", slow_write)

    barrier = threading.Barrier(len(accounts))
    errors = []

    def worker(account, idx):
        barrier.wait()
        try:
            rate_admin.add_rate(account, "XAU", 0.0005 * (idx + 1))
        except Exception as e:  # pragma: no cover - surfaced by assertion below
            errors.append(e)

    threads = [
        threading.Thread(target=worker, args=(a, i)) for i, a in enumerate(accounts)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert overlaps == []
    stored = {a.id: a.personal_rates for a in gateway.load_all()}
    for idx, account in enumerate(accounts):
        assert stored[account.id].table["XAU"] == pytest.approx(0.0005 * (idx + 1))


def test_failed_save_is_never_visible_to_readers(
    monkeypatch, rate_admin, account_store, gateway, resolver, make_account
):
    account = make_account("erin", rates=BASELINE)
    account_store.replace_all([account])
    write_started = threading.Event()
    release_write = threading.Event()

    def slow_failing_write(records):
        write_started.set()
        release_write.wait(5)
        raise OSError("disk full")

    monkeypatch.setattr(gateway, "write", slow_failing_write)
    errors = []

    def worker():
        try:
            rate_admin.set_rate(account, "EUR", 5.0)
        except PersistenceWriteError as e:
            errors.append(e)

    thread = threading.Thread(target=worker)
    thread.start()
    assert write_started.wait(5)
    seen_during_save = resolver.resolve(account_store.get(account.id))["EUR"]
    release_write.set()
    thread.join()

    assert seen_during_save == 0.9
    assert len(errors) == 1
    assert resolver.resolve(account)["EUR"] == 0.9


def test_committed_edit_replaces_table(rate_admin, inherited_account, resolver):
    rate_admin.set_rate(inherited_account, "EUR", 0.7)
    before = resolver.resolve(inherited_account)
    rate_admin.set_rate(inherited_account, "EUR", 0.6)
    assert before["EUR"] == 0.7
    assert resolver.resolve(inherited_account)["EUR"] == 0.6
