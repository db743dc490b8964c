from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, field_validator


class SupplierCreate(BaseModel):
    name: str
    company_name: Optional[str] = None
    phone_number: Optional[str] = None
    address: str
    email: EmailStr
    note: Optional[str] = None

    @field_validator("name", "address")
    @classmethod
    def required_text(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()


class SupplierUpdate(BaseModel):
    name: Optional[str] = None
    company_name: Optional[str] = None
    phone_number: Optional[str] = None
    address: Optional[str] = None
    email: Optional[EmailStr] = None
    note: Optional[str] = None


class SupplierResponse(BaseModel):
    id: str
    name: str
    company_name: Optional[str] = None
    phone_number: Optional[str] = None
    address: str
    email: str
    note: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
