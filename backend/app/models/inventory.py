from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.core.database import Base
from backend.app.models.catalog import Product, RawMaterial


class ItemKind(str, enum.Enum):
    PRODUCT = "product"
    RAW_MATERIAL = "raw_material"


class TransactionType(str, enum.Enum):
    SALE = "sale"
    PURCHASE = "purchase"
    ADJUSTMENT = "adjustment"
    RETURN = "return"


class ReplacementReason(str, enum.Enum):
    DAMAGED = "damaged"
    DEFECTIVE = "defective"
    EXPIRED = "expired"
    OTHER = "other"


QUANTITY = Numeric(precision=20, scale=4)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProductInventory(Base):
    """Current stock level of one product.

    ``quantity`` is only ever changed by the stock ledger in
    ``backend.app.services.inventory`` so that it always matches the
    ``quantity_after`` of the latest ``InventoryTransaction``.
    """

    __tablename__ = "product_inventory"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    product_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("products.id"), unique=True, nullable=False
    )
    quantity: Mapped[Decimal] = mapped_column(QUANTITY, nullable=False, default=Decimal("0"))
    minimum_stock: Mapped[Decimal] = mapped_column(QUANTITY, nullable=False, default=Decimal("0"))
    maximum_stock: Mapped[Decimal | None] = mapped_column(QUANTITY, nullable=True)
    reorder_point: Mapped[Decimal] = mapped_column(QUANTITY, nullable=False, default=Decimal("0"))
    unit: Mapped[str] = mapped_column(String(20), nullable=False, default="pcs")
    last_restocked_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    product: Mapped[Product] = relationship(back_populates="inventory")
    transactions: Mapped[list[InventoryTransaction]] = relationship(
        back_populates="product_inventory"
    )

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_product_inventory_qty_non_negative"),
        CheckConstraint("minimum_stock >= 0", name="ck_product_inventory_min_non_negative"),
        CheckConstraint("reorder_point >= 0", name="ck_product_inventory_reorder_non_negative"),
    )


class RawMaterialInventory(Base):
    __tablename__ = "raw_material_inventory"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    raw_material_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("raw_materials.id"), unique=True, nullable=False
    )
    quantity: Mapped[Decimal] = mapped_column(QUANTITY, nullable=False, default=Decimal("0"))
    minimum_stock: Mapped[Decimal] = mapped_column(QUANTITY, nullable=False, default=Decimal("0"))
    maximum_stock: Mapped[Decimal | None] = mapped_column(QUANTITY, nullable=True)
    reorder_point: Mapped[Decimal] = mapped_column(QUANTITY, nullable=False, default=Decimal("0"))
    unit: Mapped[str] = mapped_column(String(20), nullable=False, default="kg")
    last_restocked_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    raw_material: Mapped[RawMaterial] = relationship(back_populates="inventory")
    transactions: Mapped[list[InventoryTransaction]] = relationship(
        back_populates="raw_material_inventory"
    )

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_rm_inventory_qty_non_negative"),
        CheckConstraint("minimum_stock >= 0", name="ck_rm_inventory_min_non_negative"),
        CheckConstraint("reorder_point >= 0", name="ck_rm_inventory_reorder_non_negative"),
    )


class InventoryTransaction(Base):
    """Append-only ledger row; one per stock change. Never updated or deleted."""

    __tablename__ = "inventory_transactions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    item_kind: Mapped[ItemKind] = mapped_column(Enum(ItemKind), nullable=False)
    product_inventory_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("product_inventory.id"), nullable=True
    )
    raw_material_inventory_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("raw_material_inventory.id"), nullable=True
    )
    transaction_type: Mapped[TransactionType] = mapped_column(
        Enum(TransactionType), nullable=False
    )
    quantity_change: Mapped[Decimal] = mapped_column(QUANTITY, nullable=False)
    quantity_before: Mapped[Decimal] = mapped_column(QUANTITY, nullable=False)
    quantity_after: Mapped[Decimal] = mapped_column(QUANTITY, nullable=False)
    reference_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    reference_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now()
    )

    product_inventory: Mapped[ProductInventory | None] = relationship(
        back_populates="transactions"
    )
    raw_material_inventory: Mapped[RawMaterialInventory | None] = relationship(
        back_populates="transactions"
    )

    __table_args__ = (
        CheckConstraint(
            "(product_inventory_id IS NULL) != (raw_material_inventory_id IS NULL)",
            name="ck_inv_txn_single_owner",
        ),
        CheckConstraint("quantity_after >= 0", name="ck_inv_txn_after_non_negative"),
        Index("ix_inv_txn_product_inventory", "product_inventory_id"),
        Index("ix_inv_txn_raw_material_inventory", "raw_material_inventory_id"),
        Index("ix_inv_txn_type", "transaction_type"),
        Index("ix_inv_txn_created_at", "created_at"),
    )


class ProductReplacement(Base):
    """A product handed out again for a sale (damaged, defective, …)."""

    __tablename__ = "product_replacements"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    sale_id: Mapped[str] = mapped_column(String(100), nullable=False)
    product_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("products.id"), nullable=False
    )
    quantity: Mapped[Decimal] = mapped_column(QUANTITY, nullable=False)
    reason: Mapped[ReplacementReason] = mapped_column(
        Enum(ReplacementReason), nullable=False
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now()
    )

    product: Mapped[Product] = relationship()

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_replacement_qty_positive"),
        Index("ix_replacements_sale", "sale_id"),
        Index("ix_replacements_product", "product_id"),
        Index("ix_replacements_created_at", "created_at"),
    )
