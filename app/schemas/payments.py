from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class CustomerPaymentCreate(BaseModel):
    customer_id: int = Field(gt=0)
    amount: Decimal = Field(ge=0)
    method: str | None = Field(default=None, max_length=40)
    note: str | None = Field(default=None, max_length=255)
    date: datetime | None = None


class SupplierPaymentCreate(BaseModel):
    supplier_id: int = Field(gt=0)
    amount: Decimal = Field(ge=0)
    method: str | None = Field(default=None, max_length=40)
    note: str | None = Field(default=None, max_length=255)
    date: datetime | None = None


class CustomerPaymentOut(BaseModel):
    id: int
    customer_id: int
    amount: Decimal
    method: str | None
    note: str | None
    date: datetime
    created_by: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class SupplierPaymentOut(BaseModel):
    id: int
    supplier_id: int
    amount: Decimal
    method: str | None
    note: str | None
    date: datetime
    created_by: str | None
    created_at: datetime

    model_config = {"from_attributes": True}
