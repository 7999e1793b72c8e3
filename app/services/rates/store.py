from __future__ import annotations

"""Baseline rate table loaded once at startup.

The baseline is the shared default every account starts from. It is read
from a JSON object mapping currency code to units per pivot, e.g.
``{"USD": 1, "EUR": 0.9}``. After loading it is never mutated; callers get
a read-only view and must copy it before handing it to an account.
"""
import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from app.core.errors import ConfigLoadError
from app.models.account import RateTable, clean_rate_table

logger = logging.getLogger("app.rates.store")


def read_rate_file(path: Path) -> RateTable:
    """Parse and validate a baseline file; raise ConfigLoadError on any defect."""
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigLoadError(f"baseline rates file not found: {path}") from e
    except (OSError, ValueError) as e:  # ValueError covers JSON decode
        raise ConfigLoadError(f"baseline rates file unreadable: {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigLoadError(f"baseline rates file must hold a JSON object: {path}")
    try:
        return clean_rate_table(raw)
    except (TypeError, ValueError) as e:
        raise ConfigLoadError(f"baseline rates file invalid: {path}: {e}") from e


class RateStore:
    """Owner of the process-wide baseline table."""

    def __init__(self, path: Path):
        self._path = Path(path)
        self._rates: RateTable = {}

    @property
    def degraded(self) -> bool:
        return not self._rates

    def load(self) -> Mapping[str, float]:
        """Load the baseline from disk.

        Raises ConfigLoadError and leaves the baseline empty when the file is
        missing or malformed.
        """
        self._rates = {}
        self._rates = read_rate_file(self._path)
        logger.info(
            "baseline rates loaded: %d currencies from %s",
            len(self._rates),
            self._path,
        )
        return self.get()

    def load_or_empty(self) -> Mapping[str, float]:
        """Startup entry point: degrade to an empty baseline instead of failing."""
        try:
            return self.load()
        except ConfigLoadError as e:
            logger.warning("starting with empty baseline rates: %s", e.message)
            return self.get()

    def get(self) -> Mapping[str, float]:
        return MappingProxyType(self._rates)

    def snapshot(self) -> RateTable:
        """Fresh independent copy of the current baseline."""
        return dict(self._rates)
