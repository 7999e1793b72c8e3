"""Domain constants for currency handling.

Every rate is expressed as units of a currency per one unit of the pivot.
"""

import re

PIVOT_CURRENCY: str = "USD"
PIVOT_RATE: float = 1.0

# Conversion results are quoted to this many decimal places.
CONVERSION_PLACES: int = 4

CURRENCY_CODE_RE = re.compile(r"^[A-Z]{3}$")


def normalize_currency(value: str) -> str:
    normalized = value.strip().upper()
    if not CURRENCY_CODE_RE.match(normalized):
        raise ValueError("currency must be a 3-letter code")
    return normalized
