"""Inventory catalog: items, stock status badges, per-item batches."""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from stockledger.api.deps import get_ledger_view, get_store, get_today
from stockledger.db.store import RecordStore
from stockledger.schemas.batch import BatchResponse, InitialStockIn, ItemBatchReport
from stockledger.schemas.inventory import (
    CatalogList,
    InventoryCreate,
    InventoryResponse,
    InventoryUpdate,
)
from stockledger.services import batch_service, inventory_catalog
from stockledger.services.inventory_catalog import StockStatus
from stockledger.services.live_views import LedgerView

router = APIRouter()


@router.get("", response_model=CatalogList)
def list_inventory(
    search: Optional[str] = Query(None),
    status: Optional[StockStatus] = Query(None),
    category: Optional[str] = Query(None),
    view: LedgerView = Depends(get_ledger_view),
    today: date = Depends(get_today),
):
    """Catalog with aggregated stock, status badge and expiry flags."""
    return view.catalog(today, search=search, status=status, category=category)


@router.post("", response_model=InventoryResponse, status_code=201)
def create_inventory_item(item: InventoryCreate, store: RecordStore = Depends(get_store)):
    fields = item.model_dump(exclude={"initial_stock", "initial_expiry_date"})
    return inventory_catalog.create_item(
        store, fields,
        initial_stock=item.initial_stock,
        initial_expiry_date=item.initial_expiry_date,
    )


@router.get("/{item_id}", response_model=InventoryResponse)
def get_inventory_item(item_id: str, store: RecordStore = Depends(get_store)):
    return inventory_catalog.get_item(store, item_id)


@router.patch("/{item_id}", response_model=InventoryResponse)
def update_inventory_item(
    item_id: str,
    updates: InventoryUpdate,
    store: RecordStore = Depends(get_store),
):
    return inventory_catalog.update_item(store, item_id, updates.model_dump(exclude_unset=True))


@router.get("/{item_id}/status")
def get_inventory_status(item_id: str, view: LedgerView = Depends(get_ledger_view)):
    status = view.status(item_id)
    return {"item_id": item_id, "stock": float(view.stock(item_id)), "status": status}


@router.get("/{item_id}/batches", response_model=ItemBatchReport)
def get_item_batches(
    item_id: str,
    view: LedgerView = Depends(get_ledger_view),
    today: date = Depends(get_today),
):
    """Lots for one item, earliest expiry first, with the summary line."""
    return view.item_batches(item_id, today)


@router.post("/{item_id}/initial-stock", response_model=BatchResponse, status_code=201)
def add_initial_stock(
    item_id: str,
    body: InitialStockIn,
    store: RecordStore = Depends(get_store),
):
    """Seed stock outside the purchasing flow. Expiry date is optional here."""
    return batch_service.record_initial_stock(
        store, item_id, body.quantity,
        expiry_date=body.expiry_date,
        cost_price=body.cost_price,
        selling_price=body.selling_price,
    )
