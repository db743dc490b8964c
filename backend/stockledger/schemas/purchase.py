from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional, Union

from pydantic import BaseModel, Field

from stockledger.schemas.batch import BatchResponse

# Numeric fields arrive as typed in the form; the processor decides what parses.
NumberInput = Optional[Union[int, float, str]]


class BatchEntryIn(BaseModel):
    quantity: NumberInput = None
    expiry_date: Optional[str] = None


class PurchaseLineIn(BaseModel):
    item_id: str
    cost_price: NumberInput = None
    selling_price: NumberInput = None
    batches: List[BatchEntryIn] = Field(default_factory=list)


class PurchaseCreate(BaseModel):
    supplier_id: Optional[str] = None
    purchase_date: date = Field(default_factory=date.today)
    items: List[PurchaseLineIn] = Field(default_factory=list)


class PurchaseResponse(BaseModel):
    id: str
    supplier_id: str
    supplier_name: str
    purchase_date: date
    total_items: int
    total_quantity: Decimal
    total_cost: int  # minor units
    status: str
    created_at: datetime
    committed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PurchaseSummary(BaseModel):
    total_purchases: int
    total_items: int
    total_quantity: Decimal
    total_cost: int


class PurchaseList(BaseModel):
    purchases: List[PurchaseResponse]
    summary: PurchaseSummary


class PurchaseDetail(PurchaseResponse):
    batches: List[BatchResponse] = Field(default_factory=list)
