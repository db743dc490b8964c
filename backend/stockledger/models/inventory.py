from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime, Text
from stockledger.db.base import Base


class InventoryItem(Base):
    """
    Catalog master data for one pharmacy item.

    Prices are major units (rupees). current_stock is the legacy manual field;
    on-hand stock is always derived from the batches ledger. category holds a
    Category id without a foreign key: deleting a category leaves it dangling.
    """
    __tablename__ = "inventory"

    id = Column(String(32), primary_key=True, index=True)
    trade_name = Column(String(255), nullable=False)
    generic_name = Column(String(255), nullable=True)
    brand_name = Column(String(255), nullable=True)
    category = Column(String(32), nullable=True)
    cost_price = Column(Numeric(10, 2), nullable=False, default=0)  # ₹ per unit
    selling_price = Column(Numeric(10, 2), nullable=False, default=0)  # ₹ per unit
    current_stock = Column(Integer, nullable=False, default=0)
    minimum_stock = Column(Integer, nullable=False, default=0)  # reorder threshold
    discount_prevented = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)
