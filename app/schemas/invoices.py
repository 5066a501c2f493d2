from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class InvoiceItemIn(BaseModel):
    product_id: int = Field(gt=0)
    quantity: int = Field(gt=0)
    price: Decimal = Field(ge=0)
    unit: str | None = Field(default=None, max_length=24)


class PurchaseInvoiceCreate(BaseModel):
    supplier_id: int = Field(gt=0)
    date: datetime | None = None
    items: list[InvoiceItemIn] = Field(min_length=1)
    discount: Decimal = Field(default=Decimal("0"), ge=0)
    paid: Decimal = Field(default=Decimal("0"), ge=0)
    note: str | None = Field(default=None, max_length=255)


class SaleInvoiceCreate(BaseModel):
    customer_id: int = Field(gt=0)
    date: datetime | None = None
    items: list[InvoiceItemIn] = Field(min_length=1)
    discount: Decimal = Field(default=Decimal("0"), ge=0)
    paid: Decimal = Field(default=Decimal("0"), ge=0)
    note: str | None = Field(default=None, max_length=255)


class PurchaseInvoiceItemOut(BaseModel):
    line_no: int
    product_id: int
    unit: str
    category: str | None
    quantity: int
    price: Decimal
    amount: Decimal

    model_config = {"from_attributes": True}


class SaleInvoiceItemOut(PurchaseInvoiceItemOut):
    cogs: Decimal


class PurchaseInvoiceOut(BaseModel):
    id: int
    invoice_number: str
    supplier_id: int
    date: datetime
    items: list[PurchaseInvoiceItemOut]
    sub_total: Decimal
    discount: Decimal
    grand_total: Decimal
    amount_paid: Decimal
    amount_due: Decimal
    note: str | None
    created_by: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class SaleInvoiceOut(BaseModel):
    id: int
    invoice_number: str
    customer_id: int
    date: datetime
    items: list[SaleInvoiceItemOut]
    sub_total: Decimal
    discount: Decimal
    grand_total: Decimal
    amount_paid: Decimal
    amount_due: Decimal
    cogs_total: Decimal
    profit: Decimal
    note: str | None
    created_by: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class InvoiceStatsOut(BaseModel):
    count: int
    sub_total: Decimal
    discount: Decimal
    grand_total: Decimal
    amount_paid: Decimal
    amount_due: Decimal


class PurchaseInvoicePageOut(BaseModel):
    rows: list[PurchaseInvoiceOut]
    total: int
    page: int
    limit: int
    stats: InvoiceStatsOut


class SaleInvoicePageOut(BaseModel):
    rows: list[SaleInvoiceOut]
    total: int
    page: int
    limit: int
    stats: InvoiceStatsOut
