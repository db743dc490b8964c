"""
Purchase: one supplier order that fanned out into batches.
Status flow: pending -> committed. A pending purchase whose batches could not
all be written is rolled back (deleted together with its batches).
"""
from sqlalchemy import Column, Integer, String, Numeric, Date, DateTime
from stockledger.db.base import Base

PURCHASE_PENDING = "pending"
PURCHASE_COMMITTED = "committed"


class Purchase(Base):
    __tablename__ = "purchases"

    id = Column(String(32), primary_key=True, index=True)
    supplier_id = Column(String(32), nullable=False, index=True)
    supplier_name = Column(String(255), nullable=False)  # snapshot at creation time
    purchase_date = Column(Date, nullable=False)
    total_items = Column(Integer, nullable=False)  # distinct inventory items
    total_quantity = Column(Numeric(12, 2), nullable=False)
    total_cost = Column(Integer, nullable=False)  # minor units (paise)
    status = Column(String(16), nullable=False, default=PURCHASE_PENDING, index=True)
    expected_batches = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False)
    committed_at = Column(DateTime, nullable=True)
