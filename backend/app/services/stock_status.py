"""Stock status classification.

Pure and side-effect free; read paths call it on every request instead of
storing a status column, so there is nothing to invalidate when quantity
changes.
"""

from __future__ import annotations

import enum
from decimal import Decimal

Number = Decimal | int | float


class StockStatus(str, enum.Enum):
    OUT_OF_STOCK = "out_of_stock"
    LOW_STOCK = "low_stock"
    NORMAL = "normal"
    OVERSTOCKED = "overstocked"


def _dec(value: Number) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def classify_stock(
    quantity: Number,
    minimum_stock: Number,
    maximum_stock: Number | None = None,
    reorder_point: Number | None = None,
) -> StockStatus:
    """Map a stock level onto its status.

    ``reorder_point`` falls back to ``minimum_stock`` when not given.
    ``maximum_stock`` of ``None`` or zero means the item has no upper bound.
    """
    qty = _dec(quantity)
    threshold = _dec(reorder_point) if reorder_point is not None else _dec(minimum_stock)

    if qty == 0:
        return StockStatus.OUT_OF_STOCK
    if qty <= threshold:
        return StockStatus.LOW_STOCK
    if maximum_stock and qty > _dec(maximum_stock):
        return StockStatus.OVERSTOCKED
    return StockStatus.NORMAL
