from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, Field, computed_field, field_validator

from backend.app.models.inventory import ItemKind, ReplacementReason, TransactionType
from backend.app.services.stock_status import StockStatus


# Stored as NUMERIC(20, 4); finer input would be rounded away by the database
QuantityIn = Annotated[Decimal, Field(max_digits=20, decimal_places=4)]


# ─── Inventory records ────────────────────────────────────────────────────────


class InventoryItemOut(BaseModel):
    id: UUID
    item_kind: ItemKind
    item_id: UUID
    item_code: str
    item_name: str
    price: Decimal | None = None
    quantity: Decimal
    minimum_stock: Decimal
    maximum_stock: Decimal | None
    reorder_point: Decimal
    unit: str
    status: StockStatus
    last_restocked_at: datetime | None
    created_at: datetime | None
    updated_at: datetime | None


# ─── Stock Adjustments ──────────────────────────────────────────────────────


class StockAdjustmentCreate(BaseModel):
    item_kind: ItemKind
    item_id: UUID
    quantity_change: QuantityIn  # positive adds stock, negative removes it
    notes: str | None = None

    @field_validator("quantity_change")
    @classmethod
    def quantity_not_zero(cls, v: Decimal) -> Decimal:
        if v == 0:
            raise ValueError("Quantity change must not be zero")
        return v


class StockAdjustmentOut(BaseModel):
    transaction_id: UUID
    transaction_type: TransactionType
    item_kind: ItemKind
    item_id: UUID
    item_code: str
    item_name: str
    unit: str
    quantity_before: Decimal
    quantity_change: Decimal
    quantity_after: Decimal

    @computed_field  # type: ignore[prop-decorator]
    @property
    def new_quantity(self) -> Decimal:
        return self.quantity_after


class GoodsReceivedCreate(BaseModel):
    item_kind: ItemKind
    item_id: UUID
    quantity: QuantityIn
    reference_number: str | None = None
    supplier_id: str | None = None
    notes: str | None = None

    @field_validator("quantity")
    @classmethod
    def quantity_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Quantity must be positive")
        return v


# ─── Ledger ──────────────────────────────────────────────────────────────────


class InventoryTransactionOut(BaseModel):
    id: UUID
    item_kind: ItemKind
    item_code: str
    item_name: str
    transaction_type: TransactionType
    quantity_change: Decimal
    quantity_before: Decimal
    quantity_after: Decimal
    reference_id: str | None
    reference_type: str | None
    notes: str | None
    created_by: UUID | None
    created_at: datetime


# ─── Alerts ──────────────────────────────────────────────────────────────────


class InventoryAlert(BaseModel):
    id: UUID
    item_id: UUID
    item_code: str
    item_name: str
    item_kind: ItemKind
    current_stock: Decimal
    minimum_stock: Decimal
    reorder_point: Decimal
    unit: str
    status: StockStatus
    message: str


class AlertSummary(BaseModel):
    total: int
    products: int
    raw_materials: int
    out_of_stock: int
    low_stock: int


class InventoryAlertsOut(BaseModel):
    alerts: list[InventoryAlert]
    summary: AlertSummary


# ─── Replacements ────────────────────────────────────────────────────────────


class ReplacementCreate(BaseModel):
    sale_id: str
    product_id: UUID
    quantity: QuantityIn
    reason: ReplacementReason
    notes: str | None = None

    @field_validator("sale_id")
    @classmethod
    def sale_id_present(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Sale ID is required")
        return v.strip()

    @field_validator("quantity")
    @classmethod
    def quantity_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Valid quantity is required")
        return v


class ReplacementOut(BaseModel):
    id: UUID
    sale_id: str
    product_id: UUID
    product_code: str
    product_name: str
    quantity: Decimal
    reason: ReplacementReason
    notes: str | None
    created_by: UUID | None
    created_at: datetime
    transaction_id: UUID | None = None


# ─── Sync ────────────────────────────────────────────────────────────────────


class SyncStatusOut(BaseModel):
    products_without_inventory: list[str]
    raw_materials_without_inventory: list[str]
    needs_sync: bool


class SyncResultOut(BaseModel):
    product_inventory_created: int
    raw_material_inventory_created: int
    synced_products: list[str]
    synced_raw_materials: list[str]
