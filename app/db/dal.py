"""Data Access Layer for accounts and their personal rate tables.

Responsibilities
----------------
- Read and write the users file (a JSON array of account records) through
  ``JsonAccountGateway``; every write goes to a temp file in the same
  directory and is then renamed over the target, so readers and crashes
  only ever see a complete file.
- Own the in-memory account collection (``AccountStore``) and be the single
  place where writes are serialized: one lock covers both the in-memory
  mutation and the full-collection save that follows it, and the snapshot
  written is taken after the lock is acquired.
- Stage every change on a copy and publish it only after its save succeeds,
  so a failed save leaves nothing behind and readers never see an
  uncommitted edit.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from dataclasses import replace
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, TypeVar

from pydantic import ValidationError

from app.core.errors import (
    AccountNotFoundError,
    ConfigLoadError,
    DuplicateUsernameError,
    PersistenceWriteError,
)
from app.models.account import Account, AccountRecord, Overridden, PersonalRates

logger = logging.getLogger("app.db")

T = TypeVar("T")


class JsonAccountGateway:
    def __init__(self, path: Path):
        self.path = Path(path)

    def load_all(self) -> List[Account]:
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise ConfigLoadError(f"users file not found: {self.path}") from e
        except (OSError, ValueError) as e:
            raise ConfigLoadError(f"users file unreadable: {self.path}: {e}") from e
        if not isinstance(raw, list):
            raise ConfigLoadError(f"users file must hold a JSON array: {self.path}")

        accounts: List[Account] = []
        seen_ids: set[str] = set()
        seen_names: set[str] = set()
        for idx, item in enumerate(raw):
            try:
                record = AccountRecord.model_validate(AccountRecord.upgrade_legacy(item))
            except ValidationError as e:
                raise ConfigLoadError(f"users file record {idx} invalid: {e}") from e
            if record.id in seen_ids or record.username in seen_names:
                raise ConfigLoadError(f"users file record {idx} duplicates an account")
            seen_ids.add(record.id)
            seen_names.add(record.username)
            accounts.append(record.to_account())
        return accounts

    def write(self, records: List[dict]) -> None:
        """Atomically replace the users file with ``records``."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(records, fh, indent=2, ensure_ascii=False)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise


def _copy_rates(rates: PersonalRates) -> PersonalRates:
    if isinstance(rates, Overridden):
        return rates.copy()
    return rates


class AccountStore:
    """Process-wide account collection with single-writer persistence."""

    def __init__(self, gateway: JsonAccountGateway):
        self._gateway = gateway
        self._accounts: Dict[str, Account] = {}
        self._lock = threading.RLock()

    # Loading ------------------------------------------------------------
    def load(self) -> int:
        accounts = self._gateway.load_all()
        self.replace_all(accounts)
        logger.info("accounts loaded: %d from %s", len(accounts), self._gateway.path)
        return len(accounts)

    def load_or_empty(self) -> int:
        try:
            return self.load()
        except ConfigLoadError as e:
            logger.warning("starting with empty account collection: %s", e.message)
            self.replace_all([])
            return 0

    def replace_all(self, accounts: Iterable[Account]) -> None:
        with self._lock:
            self._accounts = {a.id: a for a in accounts}

    # Lookup -------------------------------------------------------------
    def __len__(self) -> int:
        return len(self._accounts)

    def get(self, account_id: str) -> Optional[Account]:
        return self._accounts.get(account_id)

    def require(self, account_id: str) -> Account:
        account = self.get(account_id)
        if account is None:
            raise AccountNotFoundError("account not found")
        return account

    def find_by_username(self, username: str) -> Optional[Account]:
        with self._lock:
            return next(
                (a for a in self._accounts.values() if a.username == username), None
            )

    def all(self) -> List[Account]:
        with self._lock:
            return list(self._accounts.values())

    # Writes -------------------------------------------------------------
    def save_all(self) -> bool:
        """Persist the whole collection; False on failure (already logged)."""
        with self._lock:
            return self._write(self._accounts.values())

    def _write(self, accounts: Iterable[Account]) -> bool:
        # caller holds self._lock
        records = [AccountRecord.from_account(a).dump() for a in accounts]
        try:
            self._gateway.write(records)
        except (OSError, TypeError, ValueError):
            logger.exception("failed to save %d accounts", len(records))
            return False
        logger.debug("saved %d accounts", len(records))
        return True

    def add(self, account: Account) -> Account:
        """Insert and persist a new account; it becomes visible only once saved."""
        with self._lock:
            if account.id in self._accounts:
                raise DuplicateUsernameError("account id already exists")
            if self.find_by_username(account.username) is not None:
                raise DuplicateUsernameError("username already exists")
            if not self._write([*self._accounts.values(), account]):
                raise PersistenceWriteError("failed to save the new account")
            self._accounts[account.id] = account
            return account

    def mutate(self, account: Account, change: Callable[[Account], T]) -> T:
        """Apply ``change`` to ``account`` and persist, as one write turn.

        ``change`` runs against a staged copy of the account. The collection
        is written with that copy in place, and the live account takes the
        staged rates only after the write succeeds, so readers never see an
        uncommitted edit.
        """
        with self._lock:
            target = self.require(account.id)
            staged = replace(target, personal_rates=_copy_rates(target.personal_rates))
            result = change(staged)
            collection = [staged if a.id == target.id else a for a in self._accounts.values()]
            if not self._write(collection):
                raise PersistenceWriteError("failed to save rate changes")
            target.personal_rates = staged.personal_rates
            return result
