from sqlalchemy import Column, Integer, String, Numeric, Boolean, Date, DateTime
from stockledger.db.base import Base

# purchase_id of lots seeded outside the purchasing flow
INITIAL_STOCK_PURCHASE_ID = "initial_stock"


class Batch(Base):
    """
    One stock lot. Append-only: quantity and prices never change after creation.

    cost_price / selling_price are minor units (paise). expiry_date NULL means
    the lot does not expire.
    """
    __tablename__ = "batches"

    id = Column(String(32), primary_key=True, index=True)
    item_id = Column(String(32), nullable=False, index=True)
    purchase_id = Column(String(32), nullable=False, index=True)
    quantity = Column(Numeric(12, 2), nullable=False)
    cost_price = Column(Integer, nullable=False)
    selling_price = Column(Integer, nullable=False)
    expiry_date = Column(Date, nullable=True)
    created_at = Column(DateTime, nullable=False)
    is_initial_stock = Column(Boolean, nullable=False, default=False)
