from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

ProductUnit = Literal["piece", "kg", "litre", "carton"]


class ProductCreate(BaseModel):
    sku: str = Field(min_length=2, max_length=64)
    name: str = Field(min_length=2, max_length=160)
    unit: ProductUnit = "piece"
    category: str | None = Field(default=None, max_length=80)
    description: str | None = None
    price: Decimal = Field(default=Decimal("0"), ge=0)


class ProductUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=160)
    unit: ProductUnit | None = None
    category: str | None = Field(default=None, max_length=80)
    description: str | None = None
    price: Decimal | None = Field(default=None, ge=0)
    is_active: bool | None = None


class ProductOut(BaseModel):
    id: int
    sku: str
    name: str
    unit: ProductUnit
    category: str | None
    description: str | None
    price: Decimal
    stock: int
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class PartyCreate(BaseModel):
    name: str = Field(min_length=2, max_length=160)
    phone: str | None = Field(default=None, max_length=40)
    address: str | None = Field(default=None, max_length=255)
    opening_balance: Decimal = Decimal("0")


class PartyOut(BaseModel):
    id: int
    name: str
    phone: str | None
    address: str | None
    opening_balance: Decimal
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class StockBatchOut(BaseModel):
    id: int
    product_id: int
    purchase_invoice_id: int | None
    quantity_received: int
    quantity: int
    unit_cost: Decimal
    received_at: datetime
    created_at: datetime

    model_config = {"from_attributes": True}


class StockValuationRowOut(BaseModel):
    product_id: int
    sku: str
    name: str
    unit: str
    quantity: int
    average_cost: Decimal
    total_value: Decimal


class StockValuationTotalsOut(BaseModel):
    total_skus: int
    total_quantity: int
    total_value: Decimal


class StockValuationOut(BaseModel):
    as_of: date | None
    rows: list[StockValuationRowOut]
    totals: StockValuationTotalsOut


class StockReconcileOut(BaseModel):
    corrected_products: int
