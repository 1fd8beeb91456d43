"""Stock ledger.

Every stock change goes through ``_apply_delta``: the inventory row is read
under a row lock, the new quantity is computed and checked, and both the
updated row and an appended ``InventoryTransaction`` are written before a
single commit. The public functions below are the only units of work that
change ``quantity``; none of them commit part-way.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Union
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.orm import Session, joinedload

from backend.app.core.config import settings
from backend.app.core.exceptions import (
    InsufficientStockError,
    InvalidAdjustmentError,
    InventoryNotFoundError,
    ItemNotFoundError,
)
from backend.app.models.catalog import Product, RawMaterial
from backend.app.models.inventory import (
    InventoryTransaction,
    ItemKind,
    ProductInventory,
    ProductReplacement,
    RawMaterialInventory,
    ReplacementReason,
    TransactionType,
)
from backend.app.schemas.inventory import (
    AlertSummary,
    InventoryAlert,
    InventoryAlertsOut,
    InventoryItemOut,
    InventoryTransactionOut,
    ReplacementOut,
    StockAdjustmentOut,
    SyncResultOut,
    SyncStatusOut,
)
from backend.app.services.stock_status import StockStatus, classify_stock

logger = logging.getLogger(__name__)

InventoryRecord = Union[ProductInventory, RawMaterialInventory]

_LABELS = {ItemKind.PRODUCT: "Product", ItemKind.RAW_MATERIAL: "Raw material"}

# Scale of the NUMERIC(20, 4) quantity columns
QUANTUM = Decimal("0.0001")


def _fmt(value: Decimal) -> str:
    """Render a quantity without trailing zeros (``Decimal("15.0000")`` → ``15``)."""
    return format(Decimal(value).normalize(), "f")


def _to_quantity(value: Decimal | int | str) -> Decimal:
    """Coerce *value* to a Decimal the quantity columns can store exactly."""
    try:
        quantity = Decimal(value)
        exact = quantity == quantity.quantize(QUANTUM)
    except InvalidOperation:
        exact = False
    if not exact:
        raise InvalidAdjustmentError(
            f"Quantity {value} must be a finite number with at most 4 decimal places"
        )
    return quantity


# ─── Record lookup ───────────────────────────────────────────────────────────


def _lock_record(db: Session, item_kind: ItemKind, item_id: UUID) -> InventoryRecord | None:
    """Return the inventory row for the item with a row lock held until commit."""
    if item_kind is ItemKind.PRODUCT:
        query = db.query(ProductInventory).filter(ProductInventory.product_id == item_id)
    else:
        query = db.query(RawMaterialInventory).filter(
            RawMaterialInventory.raw_material_id == item_id
        )
    return query.with_for_update().first()


def _require_record(db: Session, item_kind: ItemKind, item_id: UUID) -> InventoryRecord:
    record = _lock_record(db, item_kind, item_id)
    if record is None:
        raise InventoryNotFoundError(f"{_LABELS[item_kind]} inventory not found")
    return record


def _default_thresholds(item_kind: ItemKind) -> dict[str, object]:
    if item_kind is ItemKind.PRODUCT:
        return {
            "minimum_stock": settings.PRODUCT_DEFAULT_MINIMUM_STOCK,
            "maximum_stock": settings.PRODUCT_DEFAULT_MAXIMUM_STOCK,
            "reorder_point": settings.PRODUCT_DEFAULT_REORDER_POINT,
            "unit": settings.PRODUCT_DEFAULT_UNIT,
        }
    return {
        "minimum_stock": settings.RAW_MATERIAL_DEFAULT_MINIMUM_STOCK,
        "maximum_stock": settings.RAW_MATERIAL_DEFAULT_MAXIMUM_STOCK,
        "reorder_point": settings.RAW_MATERIAL_DEFAULT_REORDER_POINT,
        "unit": settings.RAW_MATERIAL_DEFAULT_UNIT,
    }


def _new_record(item_kind: ItemKind, item_id: UUID) -> InventoryRecord:
    if item_kind is ItemKind.PRODUCT:
        return ProductInventory(
            product_id=item_id, quantity=Decimal("0"), **_default_thresholds(item_kind)
        )
    return RawMaterialInventory(
        raw_material_id=item_id, quantity=Decimal("0"), **_default_thresholds(item_kind)
    )


def _item_exists(db: Session, item_kind: ItemKind, item_id: UUID) -> bool:
    model = Product if item_kind is ItemKind.PRODUCT else RawMaterial
    return db.get(model, item_id) is not None


def _lock_or_create_record(
    db: Session, item_kind: ItemKind, item_id: UUID
) -> InventoryRecord:
    record = _lock_record(db, item_kind, item_id)
    if record is not None:
        return record
    if not _item_exists(db, item_kind, item_id):
        raise ItemNotFoundError(f"{_LABELS[item_kind]} not found")
    record = _new_record(item_kind, item_id)
    db.add(record)
    db.flush()
    logger.info("Created %s inventory record for %s", item_kind.value, item_id)
    return record


def get_or_create_inventory(
    db: Session, item_kind: ItemKind, item_id: UUID
) -> InventoryRecord:
    """Return the inventory record for an item, creating an empty one if needed."""
    record = _lock_or_create_record(db, item_kind, item_id)
    db.commit()
    db.refresh(record)
    return record


def _describe(record: InventoryRecord) -> tuple[ItemKind, UUID, str, str]:
    if isinstance(record, ProductInventory):
        return (
            ItemKind.PRODUCT,
            record.product_id,
            record.product.product_code,
            record.product.product_name,
        )
    return (
        ItemKind.RAW_MATERIAL,
        record.raw_material_id,
        record.raw_material.material_code,
        record.raw_material.material_name,
    )


# ─── Ledger core ─────────────────────────────────────────────────────────────


def _apply_delta(
    db: Session,
    record: InventoryRecord,
    delta: Decimal,
    *,
    transaction_type: TransactionType,
    user_id: UUID | None,
    notes: str | None = None,
    reference_id: str | None = None,
    reference_type: str | None = None,
) -> InventoryTransaction:
    """Change ``record.quantity`` by *delta* and append the ledger row.

    Does not commit. Raises ``InsufficientStockError`` before touching
    anything when the result would be negative.
    """
    current = Decimal(record.quantity)
    new_quantity = current + delta
    if new_quantity < 0:
        logger.warning(
            "Rejected %s of %s on inventory %s: only %s in stock",
            transaction_type.value,
            delta,
            record.id,
            current,
        )
        raise InsufficientStockError(current, -delta)

    record.quantity = new_quantity
    if delta > 0:
        record.last_restocked_at = datetime.now(timezone.utc)

    is_product = isinstance(record, ProductInventory)
    txn = InventoryTransaction(
        item_kind=ItemKind.PRODUCT if is_product else ItemKind.RAW_MATERIAL,
        product_inventory_id=record.id if is_product else None,
        raw_material_inventory_id=None if is_product else record.id,
        transaction_type=transaction_type,
        quantity_change=delta,
        quantity_before=current,
        quantity_after=new_quantity,
        reference_id=reference_id,
        reference_type=reference_type,
        notes=notes,
        created_by=user_id,
    )
    db.add(txn)
    db.flush()
    return txn


def _adjustment_out(record: InventoryRecord, txn: InventoryTransaction) -> StockAdjustmentOut:
    kind, item_id, code, name = _describe(record)
    return StockAdjustmentOut(
        transaction_id=txn.id,
        transaction_type=txn.transaction_type,
        item_kind=kind,
        item_id=item_id,
        item_code=code,
        item_name=name,
        unit=record.unit,
        quantity_before=txn.quantity_before,
        quantity_change=txn.quantity_change,
        quantity_after=txn.quantity_after,
    )


def _commit_change(
    db: Session, record: InventoryRecord, txn: InventoryTransaction
) -> StockAdjustmentOut:
    db.commit()
    db.refresh(record)
    db.refresh(txn)
    logger.info(
        "Inventory %s %s: %s -> %s (%s)",
        record.id,
        txn.transaction_type.value,
        _fmt(txn.quantity_before),
        _fmt(txn.quantity_after),
        txn.id,
    )
    return _adjustment_out(record, txn)


def apply_adjustment(
    db: Session,
    *,
    item_kind: ItemKind,
    item_id: UUID,
    delta: Decimal,
    user_id: UUID | None,
    notes: str | None = None,
) -> StockAdjustmentOut:
    """Manual stock correction; *delta* is signed and must not be zero."""
    delta = _to_quantity(delta)
    if delta == 0:
        raise InvalidAdjustmentError("Quantity change must not be zero")

    record = _require_record(db, item_kind, item_id)
    txn = _apply_delta(
        db,
        record,
        delta,
        transaction_type=TransactionType.ADJUSTMENT,
        user_id=user_id,
        notes=notes or "Manual adjustment",
    )
    return _commit_change(db, record, txn)


def deduct_for_sale(
    db: Session,
    *,
    product_id: UUID,
    quantity: Decimal,
    sale_id: str,
    user_id: UUID | None = None,
) -> StockAdjustmentOut:
    quantity = _to_quantity(quantity)
    if quantity <= 0:
        raise InvalidAdjustmentError("Sale quantity must be positive")

    record = _require_record(db, ItemKind.PRODUCT, product_id)
    txn = _apply_delta(
        db,
        record,
        -quantity,
        transaction_type=TransactionType.SALE,
        user_id=user_id,
        notes=f"Stock deducted for sale {sale_id}",
        reference_id=sale_id,
        reference_type="sale",
    )
    return _commit_change(db, record, txn)


def restock_for_return(
    db: Session,
    *,
    product_id: UUID,
    quantity: Decimal,
    sale_id: str,
    user_id: UUID | None = None,
    notes: str | None = None,
) -> StockAdjustmentOut:
    quantity = _to_quantity(quantity)
    if quantity <= 0:
        raise InvalidAdjustmentError("Return quantity must be positive")

    record = _require_record(db, ItemKind.PRODUCT, product_id)
    txn = _apply_delta(
        db,
        record,
        quantity,
        transaction_type=TransactionType.RETURN,
        user_id=user_id,
        notes=notes or f"Stock returned from sale {sale_id}",
        reference_id=sale_id,
        reference_type="return",
    )
    return _commit_change(db, record, txn)


def receive_goods(
    db: Session,
    *,
    item_kind: ItemKind,
    item_id: UUID,
    quantity: Decimal,
    user_id: UUID | None,
    reference_number: str | None = None,
    supplier_id: str | None = None,
    notes: str | None = None,
) -> StockAdjustmentOut:
    """Book goods delivered by a supplier (or a paid purchase) into stock."""
    quantity = _to_quantity(quantity)
    if quantity <= 0:
        raise InvalidAdjustmentError("Quantity must be positive")

    record = _lock_or_create_record(db, item_kind, item_id)

    if not notes:
        notes = "Goods received"
        if supplier_id:
            notes += f" from supplier {supplier_id}"
        if reference_number:
            notes += f" - Ref: {reference_number}"

    txn = _apply_delta(
        db,
        record,
        quantity,
        transaction_type=TransactionType.PURCHASE,
        user_id=user_id,
        notes=notes,
        reference_id=reference_number,
        reference_type="goods_received",
    )
    return _commit_change(db, record, txn)


# ─── Replacements ────────────────────────────────────────────────────────────


def _replacement_out(
    replacement: ProductReplacement, transaction_id: UUID | None = None
) -> ReplacementOut:
    return ReplacementOut(
        id=replacement.id,
        sale_id=replacement.sale_id,
        product_id=replacement.product_id,
        product_code=replacement.product.product_code,
        product_name=replacement.product.product_name,
        quantity=replacement.quantity,
        reason=replacement.reason,
        notes=replacement.notes,
        created_by=replacement.created_by,
        created_at=replacement.created_at,
        transaction_id=transaction_id,
    )


def record_replacement(
    db: Session,
    *,
    sale_id: str,
    product_id: UUID,
    quantity: Decimal,
    reason: ReplacementReason,
    user_id: UUID | None,
    notes: str | None = None,
) -> ReplacementOut:
    """Hand out replacement units for a sale and take them out of stock."""
    quantity = _to_quantity(quantity)
    if quantity <= 0:
        raise InvalidAdjustmentError("Valid quantity is required")

    if db.get(Product, product_id) is None:
        raise ItemNotFoundError("Product not found")
    record = _require_record(db, ItemKind.PRODUCT, product_id)

    notes = notes.strip() if notes else None
    replacement_id = uuid.uuid4()
    txn = _apply_delta(
        db,
        record,
        -quantity,
        transaction_type=TransactionType.ADJUSTMENT,
        user_id=user_id,
        notes=f"Replacement: {reason.value} - {notes or 'No notes'}",
        reference_id=str(replacement_id),
        reference_type="replacement",
    )
    replacement = ProductReplacement(
        id=replacement_id,
        sale_id=sale_id,
        product_id=product_id,
        quantity=quantity,
        reason=reason,
        notes=notes,
        created_by=user_id,
    )
    db.add(replacement)
    db.commit()
    db.refresh(replacement)
    logger.info(
        "Replacement %s for sale %s: %s x product %s (%s)",
        replacement.id,
        sale_id,
        _fmt(quantity),
        product_id,
        reason.value,
    )
    return _replacement_out(replacement, txn.id)


def list_replacements(
    db: Session,
    *,
    product_id: UUID | None = None,
    sale_id: str | None = None,
    reason: ReplacementReason | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    page: int = 1,
    page_size: int = 10,
) -> tuple[list[ReplacementOut], int]:
    query = db.query(ProductReplacement)
    if product_id is not None:
        query = query.filter(ProductReplacement.product_id == product_id)
    if sale_id:
        query = query.filter(ProductReplacement.sale_id == sale_id)
    if reason is not None:
        query = query.filter(ProductReplacement.reason == reason)
    if start_date is not None:
        query = query.filter(ProductReplacement.created_at >= start_date)
    if end_date is not None:
        query = query.filter(ProductReplacement.created_at <= end_date)

    total = query.count()
    rows = (
        query.options(joinedload(ProductReplacement.product))
        .order_by(ProductReplacement.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return [_replacement_out(r) for r in rows], total


# ─── Read side ───────────────────────────────────────────────────────────────


def _item_out(record: InventoryRecord) -> InventoryItemOut:
    kind, item_id, code, name = _describe(record)
    price = record.product.price if kind is ItemKind.PRODUCT else record.raw_material.unit_price
    return InventoryItemOut(
        id=record.id,
        item_kind=kind,
        item_id=item_id,
        item_code=code,
        item_name=name,
        price=price,
        quantity=record.quantity,
        minimum_stock=record.minimum_stock,
        maximum_stock=record.maximum_stock,
        reorder_point=record.reorder_point,
        unit=record.unit,
        status=classify_stock(
            record.quantity,
            record.minimum_stock,
            record.maximum_stock,
            record.reorder_point,
        ),
        last_restocked_at=record.last_restocked_at,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def list_inventory(
    db: Session,
    item_kind: ItemKind,
    *,
    search: str | None = None,
    status: StockStatus | None = None,
    page: int = 1,
    page_size: int = 10,
) -> tuple[list[InventoryItemOut], int]:
    """Inventory records of one kind with their derived status.

    Without a status filter paging happens in SQL. Status is derived, not
    stored, so with a filter every matching record is classified first and
    the page is cut from the filtered list; totals then count matches.
    """
    if item_kind is ItemKind.PRODUCT:
        query = (
            db.query(ProductInventory)
            .join(Product, ProductInventory.product_id == Product.id)
            .options(joinedload(ProductInventory.product))
        )
        code_col, name_col = Product.product_code, Product.product_name
        order_col = ProductInventory.updated_at
    else:
        query = (
            db.query(RawMaterialInventory)
            .join(RawMaterial, RawMaterialInventory.raw_material_id == RawMaterial.id)
            .options(joinedload(RawMaterialInventory.raw_material))
        )
        code_col, name_col = RawMaterial.material_code, RawMaterial.material_name
        order_col = RawMaterialInventory.updated_at

    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(code_col.ilike(pattern), name_col.ilike(pattern)))

    query = query.order_by(order_col.desc(), name_col.asc())
    offset = (page - 1) * page_size

    if status is None:
        total = query.count()
        records = query.offset(offset).limit(page_size).all()
        return [_item_out(r) for r in records], total

    items = [item for item in map(_item_out, query.all()) if item.status is status]
    return items[offset : offset + page_size], len(items)


def _alert(record: InventoryRecord) -> InventoryAlert:
    kind, item_id, code, name = _describe(record)
    status = classify_stock(
        record.quantity, record.minimum_stock, record.maximum_stock, record.reorder_point
    )
    if status is StockStatus.OUT_OF_STOCK:
        message = f"OUT OF STOCK: {name}"
    else:
        message = (
            f"LOW STOCK: {name} - {_fmt(record.quantity)} {record.unit} remaining "
            f"(reorder at {_fmt(record.reorder_point)})"
        )
    return InventoryAlert(
        id=record.id,
        item_id=item_id,
        item_code=code,
        item_name=name,
        item_kind=kind,
        current_stock=record.quantity,
        minimum_stock=record.minimum_stock,
        reorder_point=record.reorder_point,
        unit=record.unit,
        status=status,
        message=message,
    )


def get_low_stock_alerts(db: Session) -> InventoryAlertsOut:
    """Items at or below their reorder point, one set-based query per kind."""
    products = (
        db.query(ProductInventory)
        .options(joinedload(ProductInventory.product))
        .filter(
            or_(
                ProductInventory.quantity == 0,
                ProductInventory.quantity <= ProductInventory.reorder_point,
            )
        )
        .order_by(ProductInventory.quantity.asc())
        .all()
    )
    materials = (
        db.query(RawMaterialInventory)
        .options(joinedload(RawMaterialInventory.raw_material))
        .filter(
            or_(
                RawMaterialInventory.quantity == 0,
                RawMaterialInventory.quantity <= RawMaterialInventory.reorder_point,
            )
        )
        .order_by(RawMaterialInventory.quantity.asc())
        .all()
    )

    alerts = [_alert(r) for r in products] + [_alert(r) for r in materials]
    return InventoryAlertsOut(
        alerts=alerts,
        summary=AlertSummary(
            total=len(alerts),
            products=len(products),
            raw_materials=len(materials),
            out_of_stock=sum(a.status is StockStatus.OUT_OF_STOCK for a in alerts),
            low_stock=sum(a.status is StockStatus.LOW_STOCK for a in alerts),
        ),
    )


def _transaction_out(txn: InventoryTransaction) -> InventoryTransactionOut:
    if txn.product_inventory is not None:
        code = txn.product_inventory.product.product_code
        name = txn.product_inventory.product.product_name
    else:
        code = txn.raw_material_inventory.raw_material.material_code
        name = txn.raw_material_inventory.raw_material.material_name
    return InventoryTransactionOut(
        id=txn.id,
        item_kind=txn.item_kind,
        item_code=code,
        item_name=name,
        transaction_type=txn.transaction_type,
        quantity_change=txn.quantity_change,
        quantity_before=txn.quantity_before,
        quantity_after=txn.quantity_after,
        reference_id=txn.reference_id,
        reference_type=txn.reference_type,
        notes=txn.notes,
        created_by=txn.created_by,
        created_at=txn.created_at,
    )


def list_transactions(
    db: Session,
    *,
    transaction_type: TransactionType | None = None,
    item_kind: ItemKind | None = None,
    item_id: UUID | None = None,
    page: int = 1,
    page_size: int = 10,
) -> tuple[list[InventoryTransactionOut], int]:
    """Ledger history, most recent first."""
    query = db.query(InventoryTransaction)
    if transaction_type is not None:
        query = query.filter(InventoryTransaction.transaction_type == transaction_type)
    if item_kind is not None:
        query = query.filter(InventoryTransaction.item_kind == item_kind)
    if item_id is not None:
        query = query.filter(
            or_(
                InventoryTransaction.product_inventory_id.in_(
                    select(ProductInventory.id).where(ProductInventory.product_id == item_id)
                ),
                InventoryTransaction.raw_material_inventory_id.in_(
                    select(RawMaterialInventory.id).where(
                        RawMaterialInventory.raw_material_id == item_id
                    )
                ),
            )
        )

    total = query.count()
    rows = (
        query.options(
            joinedload(InventoryTransaction.product_inventory).joinedload(
                ProductInventory.product
            ),
            joinedload(InventoryTransaction.raw_material_inventory).joinedload(
                RawMaterialInventory.raw_material
            ),
        )
        .order_by(InventoryTransaction.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return [_transaction_out(t) for t in rows], total


# ─── Sync ────────────────────────────────────────────────────────────────────


def _products_without_inventory(db: Session) -> list[Product]:
    return (
        db.query(Product)
        .outerjoin(ProductInventory, ProductInventory.product_id == Product.id)
        .filter(ProductInventory.id.is_(None))
        .order_by(Product.product_name)
        .all()
    )


def _raw_materials_without_inventory(db: Session) -> list[RawMaterial]:
    return (
        db.query(RawMaterial)
        .outerjoin(RawMaterialInventory, RawMaterialInventory.raw_material_id == RawMaterial.id)
        .filter(RawMaterialInventory.id.is_(None))
        .order_by(RawMaterial.material_name)
        .all()
    )


def get_sync_status(db: Session) -> SyncStatusOut:
    products = [p.product_name for p in _products_without_inventory(db)]
    materials = [m.material_name for m in _raw_materials_without_inventory(db)]
    return SyncStatusOut(
        products_without_inventory=products,
        raw_materials_without_inventory=materials,
        needs_sync=bool(products or materials),
    )


def sync_inventory_records(db: Session) -> SyncResultOut:
    """Create a zero-quantity inventory record for every item lacking one."""
    products = _products_without_inventory(db)
    materials = _raw_materials_without_inventory(db)

    for product in products:
        db.add(_new_record(ItemKind.PRODUCT, product.id))
    for material in materials:
        db.add(_new_record(ItemKind.RAW_MATERIAL, material.id))
    db.commit()

    if products or materials:
        logger.info(
            "Inventory sync created %d product and %d raw material records",
            len(products),
            len(materials),
        )
    return SyncResultOut(
        product_inventory_created=len(products),
        raw_material_inventory_created=len(materials),
        synced_products=[p.product_name for p in products],
        synced_raw_materials=[m.material_name for m in materials],
    )
