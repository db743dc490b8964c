from sqlalchemy import Column, String, DateTime, Text
from stockledger.db.base import Base


class Category(Base):
    __tablename__ = "categories"

    id = Column(String(32), primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False)
