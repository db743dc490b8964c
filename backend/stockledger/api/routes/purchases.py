"""Purchase orders: submit (validate + fan out into batches), list, detail."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from stockledger.api.deps import get_store
from stockledger.db.store import RecordStore
from stockledger.schemas.purchase import (
    PurchaseCreate,
    PurchaseDetail,
    PurchaseList,
    PurchaseResponse,
)
from stockledger.services import purchase_processor
from stockledger.services.reconciliation import sweep_pending_purchases

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("", response_model=PurchaseResponse, status_code=201)
def create_purchase(request: PurchaseCreate, store: RecordStore = Depends(get_store)):
    """
    Validation and reference errors reject the whole submission before any
    write. A failed batch write is compensated and reported as 502.
    """
    return purchase_processor.submit_purchase(store, request)


@router.get("", response_model=PurchaseList)
def list_purchases(
    search: Optional[str] = Query(None, description="Supplier name or purchase id"),
    store: RecordStore = Depends(get_store),
):
    purchases = purchase_processor.list_purchases(store, search=search)
    return {"purchases": purchases, "summary": purchase_processor.purchase_summary(purchases)}


@router.get("/{purchase_id}", response_model=PurchaseDetail)
def get_purchase(purchase_id: str, store: RecordStore = Depends(get_store)):
    return purchase_processor.get_purchase_detail(store, purchase_id)


@router.post("/reconcile")
def reconcile_pending(store: RecordStore = Depends(get_store)):
    """Run the pending-purchase sweep now instead of waiting for the scheduler."""
    outcome = sweep_pending_purchases(store)
    logger.info(f"Manual reconciliation: {outcome}")
    return outcome
