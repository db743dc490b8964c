from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional, Union

from pydantic import BaseModel

from stockledger.services.inventory_catalog import StockStatus


class InventoryCreate(BaseModel):
    trade_name: str
    generic_name: Optional[str] = None
    brand_name: Optional[str] = None
    category: Optional[str] = None
    cost_price: Union[int, float, str] = 0
    selling_price: Union[int, float, str] = 0
    current_stock: Union[int, str] = 0
    minimum_stock: Union[int, str] = 0
    discount_prevented: bool = False
    notes: Optional[str] = None
    # Seeds one initial-stock batch when > 0
    initial_stock: Optional[Union[int, float, str]] = None
    initial_expiry_date: Optional[date] = None


class InventoryUpdate(BaseModel):
    trade_name: Optional[str] = None
    generic_name: Optional[str] = None
    brand_name: Optional[str] = None
    category: Optional[str] = None
    cost_price: Optional[Union[int, float, str]] = None
    selling_price: Optional[Union[int, float, str]] = None
    current_stock: Optional[Union[int, str]] = None
    minimum_stock: Optional[Union[int, str]] = None
    discount_prevented: Optional[bool] = None
    notes: Optional[str] = None


class InventoryResponse(BaseModel):
    id: str
    trade_name: str
    generic_name: Optional[str] = None
    brand_name: Optional[str] = None
    category: Optional[str] = None
    cost_price: Decimal  # ₹, major units
    selling_price: Decimal
    current_stock: int
    minimum_stock: int
    discount_prevented: bool
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CatalogRow(InventoryResponse):
    stock: Decimal
    status: StockStatus
    category_name: str
    has_expired: bool
    has_expiring_soon: bool


class CatalogSummary(BaseModel):
    total_items: int
    in_stock: int
    low_stock: int
    out_of_stock: int


class CatalogList(BaseModel):
    items: List[CatalogRow]
    summary: CatalogSummary
