"""Ledger-wide batch listing, e.g. for expiry alert banners."""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from stockledger.api.deps import get_store, get_today
from stockledger.db.store import RecordStore
from stockledger.schemas.batch import ClassifiedBatch
from stockledger.services.batch_service import annotate_batch, sort_by_expiry
from stockledger.services.expiry_classifier import ExpiryState

router = APIRouter()


@router.get("", response_model=List[ClassifiedBatch])
def list_batches(
    item_id: Optional[str] = Query(None),
    state: Optional[ExpiryState] = Query(None, description="Only lots in this expiry state"),
    store: RecordStore = Depends(get_store),
    today: date = Depends(get_today),
):
    batches = store.find("batches", item_id=item_id) if item_id else store.snapshot("batches")
    rows = [annotate_batch(b, today) for b in sort_by_expiry(batches)]
    if state:
        rows = [r for r in rows if r["expiry_state"] == state]
    return rows
