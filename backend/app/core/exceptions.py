"""Domain errors raised by the service layer.

Services raise these instead of ``HTTPException`` so they stay usable from
scripts and tests; ``backend.app.main`` maps them to the JSON error envelope
using ``status_code`` and ``error``.
"""

from __future__ import annotations

from decimal import Decimal

from fastapi import status


class ValorSalesError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    error: str = "Bad request"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InventoryNotFoundError(ValorSalesError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "Not found"


class ItemNotFoundError(ValorSalesError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "Not found"


class InsufficientStockError(ValorSalesError):
    status_code = status.HTTP_409_CONFLICT
    error = "Insufficient stock"

    def __init__(self, current_quantity: Decimal, requested: Decimal) -> None:
        super().__init__(
            f"Insufficient stock. Current stock: {current_quantity}, "
            f"cannot remove: {requested}"
        )
        self.current_quantity = current_quantity
        self.requested = requested


class InvalidAdjustmentError(ValorSalesError):
    status_code = status.HTTP_400_BAD_REQUEST
    error = "Invalid adjustment"
