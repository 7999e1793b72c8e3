"""Money / rounding helpers.

Centralized so conversion results and any future endpoints use identical
rounding semantics.
"""

from __future__ import annotations
from decimal import Decimal, ROUND_HALF_UP, localcontext

from app.models.constants import CONVERSION_PLACES


def round_places(value: float, places: int = CONVERSION_PLACES) -> float:
    """Round half away from zero to ``places`` decimals."""
    quantum = Decimal(1).scaleb(-places)
    with localcontext() as ctx:
        # quantize needs room for every integer digit plus the decimals
        ctx.prec = max(28, len(str(int(abs(value)))) + places + 1)
        return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))
