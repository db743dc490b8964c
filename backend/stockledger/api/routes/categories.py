from typing import List

from fastapi import APIRouter, Depends

from stockledger.api.deps import get_store
from stockledger.db.store import RecordStore
from stockledger.schemas.category import CategoryCreate, CategoryResponse
from stockledger.services import category_service

router = APIRouter()


@router.get("", response_model=List[CategoryResponse])
def list_categories(store: RecordStore = Depends(get_store)):
    return category_service.list_categories(store)


@router.post("", response_model=CategoryResponse, status_code=201)
def create_category(category: CategoryCreate, store: RecordStore = Depends(get_store)):
    return category_service.create_category(store, category.model_dump())


@router.delete("/{category_id}")
def delete_category(category_id: str, store: RecordStore = Depends(get_store)):
    """Items keep their category id; it renders as "-" from now on."""
    category_service.delete_category(store, category_id)
    return {"ok": True, "id": category_id}
