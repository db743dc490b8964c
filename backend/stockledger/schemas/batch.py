from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional, Union

from pydantic import BaseModel

from stockledger.services.expiry_classifier import ExpiryState


class BatchResponse(BaseModel):
    id: str
    item_id: str
    purchase_id: str
    quantity: Decimal
    cost_price: int  # minor units
    selling_price: int  # minor units
    expiry_date: Optional[date] = None
    created_at: datetime
    is_initial_stock: bool = False

    class Config:
        from_attributes = True


class ClassifiedBatch(BatchResponse):
    expiry_state: ExpiryState
    days_until_expiry: Optional[int] = None


class BatchSummary(BaseModel):
    total_batches: int
    total_quantity: Decimal
    average_cost_price: Decimal  # major units
    expired_count: int
    expiring_soon_count: int


class ItemBatchReport(BaseModel):
    item_id: str
    item_name: str
    batches: List[ClassifiedBatch]
    summary: BatchSummary


class InitialStockIn(BaseModel):
    quantity: Union[int, float, str]
    expiry_date: Optional[date] = None
    cost_price: Optional[Union[int, float, str]] = None
    selling_price: Optional[Union[int, float, str]] = None
