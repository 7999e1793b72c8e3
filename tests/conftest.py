"""
Pytest configuration and fixtures.

Every fixture works over a fresh temp data directory holding the baseline
{USD: 1, EUR: 0.9, GBP: 0.8}; bcrypt runs at its minimum cost.
"""

import json

import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.db.dal import AccountStore, JsonAccountGateway
from app.main import create_app
from app.models.account import INHERITED, Account, Overridden
from app.services.accounts import hash_password
from app.services.rates.admin import RateAdministration
from app.services.rates.resolver import UserRateResolver
from app.services.rates.store import RateStore

BASELINE = {"USD": 1.0, "EUR": 0.9, "GBP": 0.8}
PASSWORD = "s3cret-pass"


@pytest.fixture
def data_dir(tmp_path):
    (tmp_path / "exchange-rates.json").write_text(json.dumps(BASELINE))
    return tmp_path


@pytest.fixture
def settings(data_dir):
    s = Settings(
        data_dir=data_dir,
        password_hash_rounds=4,
        session_secret="test-secret",
        debug=False,
    )
    s.init_post_load()
    return s


@pytest.fixture
def rate_store(settings):
    store = RateStore(settings.rates_path)
    store.load()
    return store


@pytest.fixture
def gateway(settings):
    return JsonAccountGateway(settings.users_path)


@pytest.fixture
def account_store(gateway):
    store = AccountStore(gateway)
    store.replace_all([])
    return store


@pytest.fixture
def resolver(rate_store):
    return UserRateResolver(rate_store)


@pytest.fixture
def rate_admin(account_store, rate_store):
    return RateAdministration(account_store, rate_store)


@pytest.fixture
def make_account():
    password_hash = hash_password(PASSWORD, rounds=4)

    def _make(username="alice", rates=None):
        return Account(
            id=f"id-{username}",
            username=username,
            password_hash=password_hash,
            personal_rates=Overridden(dict(rates)) if rates is not None else INHERITED,
        )

    return _make


@pytest.fixture
def inherited_account(account_store, make_account):
    account = make_account("alice")
    account_store.replace_all([account])
    return account


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as c:
        yield c


@pytest.fixture
def logged_in(client):
    """Client with a freshly registered account alice logged in."""
    password = PASSWORD
    resp = client.post(
        "/auth/register",
        json={"username": "alice", "password": password, "confirm_password": password},
    )
    assert resp.status_code == 201, resp.text
    resp = client.post("/auth/login", json={"username": "alice", "password": password})
    assert resp.status_code == 200, resp.text
    return client


@pytest.fixture
def password():
    return PASSWORD
