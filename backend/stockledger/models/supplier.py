from sqlalchemy import Column, String, DateTime, Text
from stockledger.db.base import Base


class Supplier(Base):
    __tablename__ = "suppliers"

    id = Column(String(32), primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    company_name = Column(String(255), nullable=True)
    phone_number = Column(String(64), nullable=True)
    address = Column(Text, nullable=False)
    email = Column(String(255), nullable=False)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)
