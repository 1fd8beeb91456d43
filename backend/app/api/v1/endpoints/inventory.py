from __future__ import annotations

from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from backend.app.api.permission_deps import require_permission
from backend.app.core.config import settings
from backend.app.core.database import get_db
from backend.app.core.permissions import Action, Resource
from backend.app.models.inventory import ItemKind, ReplacementReason, TransactionType
from backend.app.models.user import User
from backend.app.schemas.common import ApiResponse, PaginatedResponse, Pagination
from backend.app.schemas.inventory import (
    GoodsReceivedCreate,
    InventoryAlertsOut,
    InventoryItemOut,
    InventoryTransactionOut,
    ReplacementCreate,
    ReplacementOut,
    StockAdjustmentCreate,
    StockAdjustmentOut,
    SyncResultOut,
    SyncStatusOut,
)
from backend.app.services import inventory as ledger
from backend.app.services.stock_status import StockStatus

router = APIRouter()

_can_read = require_permission(Resource.INVENTORY, Action.READ)
_can_create = require_permission(Resource.INVENTORY, Action.CREATE)
_can_update = require_permission(Resource.INVENTORY, Action.UPDATE)

PageQuery = Annotated[int, Query(ge=1)]
PageSizeQuery = Annotated[int, Query(ge=1, le=settings.MAX_PAGE_SIZE)]


# ─── Stock levels ─────────────────────────────────────────────────────────────


def _inventory_page(
    db: Session,
    item_kind: ItemKind,
    search: str | None,
    stock_status: StockStatus | None,
    page: int,
    page_size: int,
) -> PaginatedResponse[list[InventoryItemOut]]:
    items, total = ledger.list_inventory(
        db,
        item_kind,
        search=search,
        status=stock_status,
        page=page,
        page_size=page_size,
    )
    return PaginatedResponse[list[InventoryItemOut]](
        data=items, pagination=Pagination.build(page, page_size, total)
    )


@router.get("/products", response_model=PaginatedResponse[list[InventoryItemOut]])
def list_product_inventory(
    search: str | None = None,
    stock_status: StockStatus | None = Query(None, alias="status"),
    page: PageQuery = 1,
    page_size: PageSizeQuery = settings.DEFAULT_PAGE_SIZE,
    db: Session = Depends(get_db),
    _current_user: User = Depends(_can_read),
) -> PaginatedResponse[list[InventoryItemOut]]:
    return _inventory_page(db, ItemKind.PRODUCT, search, stock_status, page, page_size)


@router.get("/raw-materials", response_model=PaginatedResponse[list[InventoryItemOut]])
def list_raw_material_inventory(
    search: str | None = None,
    stock_status: StockStatus | None = Query(None, alias="status"),
    page: PageQuery = 1,
    page_size: PageSizeQuery = settings.DEFAULT_PAGE_SIZE,
    db: Session = Depends(get_db),
    _current_user: User = Depends(_can_read),
) -> PaginatedResponse[list[InventoryItemOut]]:
    return _inventory_page(
        db, ItemKind.RAW_MATERIAL, search, stock_status, page, page_size
    )


@router.get("/alerts", response_model=ApiResponse[InventoryAlertsOut])
def get_alerts(
    db: Session = Depends(get_db),
    _current_user: User = Depends(_can_read),
) -> ApiResponse[InventoryAlertsOut]:
    return ApiResponse[InventoryAlertsOut](data=ledger.get_low_stock_alerts(db))


# ─── Ledger ──────────────────────────────────────────────────────────────────


@router.post("/adjust", response_model=ApiResponse[StockAdjustmentOut])
def adjust_inventory(
    payload: StockAdjustmentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(_can_update),
) -> ApiResponse[StockAdjustmentOut]:
    result = ledger.apply_adjustment(
        db,
        item_kind=payload.item_kind,
        item_id=payload.item_id,
        delta=payload.quantity_change,
        user_id=current_user.id,
        notes=payload.notes or f"Manual adjustment by {current_user.username}",
    )
    return ApiResponse[StockAdjustmentOut](
        message="Inventory adjusted successfully", data=result
    )


@router.post("/goods-received", response_model=ApiResponse[StockAdjustmentOut])
def goods_received(
    payload: GoodsReceivedCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(_can_update),
) -> ApiResponse[StockAdjustmentOut]:
    result = ledger.receive_goods(
        db,
        item_kind=payload.item_kind,
        item_id=payload.item_id,
        quantity=payload.quantity,
        user_id=current_user.id,
        reference_number=payload.reference_number,
        supplier_id=payload.supplier_id,
        notes=payload.notes,
    )
    return ApiResponse[StockAdjustmentOut](
        message=f"Successfully received {result.quantity_change.normalize():f} {result.unit}",
        data=result,
    )


@router.get(
    "/transactions", response_model=PaginatedResponse[list[InventoryTransactionOut]]
)
def list_inventory_transactions(
    transaction_type: TransactionType | None = Query(None, alias="type"),
    inventory_type: ItemKind | None = None,
    item_id: UUID | None = None,
    page: PageQuery = 1,
    page_size: PageSizeQuery = settings.DEFAULT_PAGE_SIZE,
    db: Session = Depends(get_db),
    _current_user: User = Depends(_can_read),
) -> PaginatedResponse[list[InventoryTransactionOut]]:
    rows, total = ledger.list_transactions(
        db,
        transaction_type=transaction_type,
        item_kind=inventory_type,
        item_id=item_id,
        page=page,
        page_size=page_size,
    )
    return PaginatedResponse[list[InventoryTransactionOut]](
        data=rows, pagination=Pagination.build(page, page_size, total)
    )


# ─── Replacements ────────────────────────────────────────────────────────────


@router.get("/replacements", response_model=PaginatedResponse[list[ReplacementOut]])
def list_replacements(
    product_id: UUID | None = None,
    sale_id: str | None = None,
    reason: ReplacementReason | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    page: PageQuery = 1,
    page_size: PageSizeQuery = settings.DEFAULT_PAGE_SIZE,
    db: Session = Depends(get_db),
    _current_user: User = Depends(_can_read),
) -> PaginatedResponse[list[ReplacementOut]]:
    rows, total = ledger.list_replacements(
        db,
        product_id=product_id,
        sale_id=sale_id,
        reason=reason,
        start_date=start_date,
        end_date=end_date,
        page=page,
        page_size=page_size,
    )
    return PaginatedResponse[list[ReplacementOut]](
        data=rows, pagination=Pagination.build(page, page_size, total)
    )


@router.post(
    "/replacements",
    response_model=ApiResponse[ReplacementOut],
    status_code=status.HTTP_201_CREATED,
)
def create_replacement(
    payload: ReplacementCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(_can_create),
) -> ApiResponse[ReplacementOut]:
    result = ledger.record_replacement(
        db,
        sale_id=payload.sale_id,
        product_id=payload.product_id,
        quantity=payload.quantity,
        reason=payload.reason,
        user_id=current_user.id,
        notes=payload.notes,
    )
    return ApiResponse[ReplacementOut](
        message="Replacement recorded successfully", data=result
    )


# ─── Sync ────────────────────────────────────────────────────────────────────


@router.get("/sync", response_model=ApiResponse[SyncStatusOut])
def sync_status(
    db: Session = Depends(get_db),
    _current_user: User = Depends(_can_read),
) -> ApiResponse[SyncStatusOut]:
    return ApiResponse[SyncStatusOut](data=ledger.get_sync_status(db))


@router.post("/sync", response_model=ApiResponse[SyncResultOut])
def sync_inventory(
    db: Session = Depends(get_db),
    _current_user: User = Depends(_can_update),
) -> ApiResponse[SyncResultOut]:
    return ApiResponse[SyncResultOut](
        message="Inventory sync completed", data=ledger.sync_inventory_records(db)
    )
