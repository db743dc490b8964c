from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from stockledger.api.deps import get_store
from stockledger.db.store import RecordStore
from stockledger.schemas.supplier import SupplierCreate, SupplierResponse, SupplierUpdate
from stockledger.services import supplier_service

router = APIRouter()


@router.get("", response_model=List[SupplierResponse])
def list_suppliers(search: Optional[str] = Query(None), store: RecordStore = Depends(get_store)):
    return supplier_service.list_suppliers(store, search=search)


@router.post("", response_model=SupplierResponse, status_code=201)
def create_supplier(supplier: SupplierCreate, store: RecordStore = Depends(get_store)):
    return supplier_service.create_supplier(store, supplier.model_dump())


@router.patch("/{supplier_id}", response_model=SupplierResponse)
def update_supplier(
    supplier_id: str,
    updates: SupplierUpdate,
    store: RecordStore = Depends(get_store),
):
    return supplier_service.update_supplier(store, supplier_id, updates.model_dump(exclude_unset=True))


@router.delete("/{supplier_id}")
def delete_supplier(supplier_id: str, store: RecordStore = Depends(get_store)):
    supplier_service.delete_supplier(store, supplier_id)
    return {"ok": True, "id": supplier_id}
