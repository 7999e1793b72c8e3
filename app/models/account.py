from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import PIVOT_CURRENCY, PIVOT_RATE, normalize_currency

RateTable = Dict[str, float]


@dataclass(frozen=True)
class Inherited:
    """Account follows the shared baseline; nothing is stored for it."""


@dataclass
class Overridden:
    """Account owns a private table that fully replaces the baseline."""

    table: RateTable = field(default_factory=dict)

    def copy(self) -> "Overridden":
        return Overridden(dict(self.table))


PersonalRates = Union[Inherited, Overridden]

INHERITED = Inherited()


@dataclass
class Account:
    id: str
    username: str
    password_hash: str
    personal_rates: PersonalRates = INHERITED

    @property
    def has_overrides(self) -> bool:
        return isinstance(self.personal_rates, Overridden)


def with_pivot(table: RateTable) -> RateTable:
    """Return ``table`` guaranteed to carry the pivot at parity.

    Raises ValueError if the pivot is present at any other rate.
    """
    out = dict(table)
    pivot = out.setdefault(PIVOT_CURRENCY, PIVOT_RATE)
    if pivot != PIVOT_RATE:
        raise ValueError(f"{PIVOT_CURRENCY} must have rate {PIVOT_RATE}, got {pivot}")
    return out


def clean_rate_table(raw: Dict[str, float]) -> RateTable:
    table: RateTable = {}
    for code, rate in raw.items():
        rate = float(rate)
        if not math.isfinite(rate) or rate <= 0:
            raise ValueError(f"rate for {code} must be a positive finite number")
        code = normalize_currency(code)
        if code in table:
            raise ValueError(f"currency {code} is listed more than once")
        table[code] = rate
    return with_pivot(table)


class AccountRecord(BaseModel):
    """On-disk shape of one account in the users file.

    ``personalRates`` absent means the account inherits the baseline; the
    distinction must survive a load/save cycle.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1)
    username: str = Field(..., min_length=1)
    password_hash: str = Field(..., alias="passwordHash")
    personal_rates: Optional[Dict[str, float]] = Field(None, alias="personalRates")

    @classmethod
    def upgrade_legacy(cls, raw: dict) -> dict:
        # earlier files stored the bcrypt hash under "password"
        if isinstance(raw, dict) and "passwordHash" not in raw and "password" in raw:
            raw = dict(raw)
            raw["passwordHash"] = raw.pop("password")
        return raw

    @field_validator("personal_rates")
    def valid_rates(cls, v):  # type: ignore[override]
        if v is None:
            return v
        return clean_rate_table(v)

    def to_account(self) -> Account:
        rates: PersonalRates
        if self.personal_rates is None:
            rates = INHERITED
        else:
            rates = Overridden(dict(self.personal_rates))
        return Account(
            id=self.id,
            username=self.username,
            password_hash=self.password_hash,
            personal_rates=rates,
        )

    @classmethod
    def from_account(cls, account: Account) -> "AccountRecord":
        rates = None
        if isinstance(account.personal_rates, Overridden):
            rates = dict(account.personal_rates.table)
        return cls(
            id=account.id,
            username=account.username,
            password_hash=account.password_hash,
            personal_rates=rates,
        )

    def dump(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
