from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import Principal, require_permission
from app.db.database import get_db
from app.schemas.invoices import (
    InvoiceStatsOut,
    PurchaseInvoiceCreate,
    PurchaseInvoiceOut,
    PurchaseInvoicePageOut,
    SaleInvoiceCreate,
    SaleInvoiceOut,
    SaleInvoicePageOut,
)
from app.schemas.reports import CategoryTotalOut
from app.services import invoicing, reports
from app.services.invoicing import InvoiceLine

router = APIRouter(prefix="/invoices", tags=["Invoices"])


def _lines(items) -> list[InvoiceLine]:
    return [
        InvoiceLine(product_id=item.product_id, quantity=item.quantity, price=item.price, unit=item.unit)
        for item in items
    ]


@router.post("/purchases", response_model=PurchaseInvoiceOut, status_code=status.HTTP_201_CREATED)
def create_purchase_invoice(
    payload: PurchaseInvoiceCreate,
    principal: Principal = Depends(require_permission("ledger:manage")),
    db: Session = Depends(get_db),
):
    return invoicing.create_purchase_invoice(
        db,
        supplier_id=payload.supplier_id,
        items=_lines(payload.items),
        invoice_date=payload.date,
        discount=payload.discount,
        paid=payload.paid,
        note=payload.note,
        created_by=principal.subject,
    )


@router.post("/sales", response_model=SaleInvoiceOut, status_code=status.HTTP_201_CREATED)
def create_sale_invoice(
    payload: SaleInvoiceCreate,
    principal: Principal = Depends(require_permission("ledger:sell")),
    db: Session = Depends(get_db),
):
    return invoicing.create_sale_invoice(
        db,
        customer_id=payload.customer_id,
        items=_lines(payload.items),
        invoice_date=payload.date,
        discount=payload.discount,
        paid=payload.paid,
        note=payload.note,
        created_by=principal.subject,
    )


@router.get("/purchases", response_model=PurchaseInvoicePageOut)
def list_purchase_invoices(
    supplier_id: int | None = None,
    date_from: date | None = Query(default=None, alias="from"),
    date_to: date | None = Query(default=None, alias="to"),
    q: str | None = Query(default=None, max_length=64),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1),
    _: Principal = Depends(require_permission("ledger:view")),
    db: Session = Depends(get_db),
):
    result = invoicing.list_invoices(
        db,
        "purchase",
        party_id=supplier_id,
        date_from=date_from,
        date_to=date_to,
        search=q,
        page=page,
        limit=limit,
    )
    return PurchaseInvoicePageOut(
        rows=[PurchaseInvoiceOut.model_validate(row) for row in result.rows],
        total=result.total,
        page=result.page,
        limit=result.limit,
        stats=InvoiceStatsOut(**result.stats),
    )


@router.get("/sales", response_model=SaleInvoicePageOut)
def list_sale_invoices(
    customer_id: int | None = None,
    date_from: date | None = Query(default=None, alias="from"),
    date_to: date | None = Query(default=None, alias="to"),
    q: str | None = Query(default=None, max_length=64),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1),
    _: Principal = Depends(require_permission("ledger:view")),
    db: Session = Depends(get_db),
):
    result = invoicing.list_invoices(
        db,
        "sale",
        party_id=customer_id,
        date_from=date_from,
        date_to=date_to,
        search=q,
        page=page,
        limit=limit,
    )
    return SaleInvoicePageOut(
        rows=[SaleInvoiceOut.model_validate(row) for row in result.rows],
        total=result.total,
        page=result.page,
        limit=result.limit,
        stats=InvoiceStatsOut(**result.stats),
    )


@router.get("/sales/by-category", response_model=list[CategoryTotalOut])
def sales_by_category(
    date_from: date | None = Query(default=None, alias="from"),
    date_to: date | None = Query(default=None, alias="to"),
    _: Principal = Depends(require_permission("ledger:view")),
    db: Session = Depends(get_db),
):
    return reports.sales_by_category(db, date_from, date_to)


@router.get("/purchases/by-category", response_model=list[CategoryTotalOut])
def purchases_by_category(
    date_from: date | None = Query(default=None, alias="from"),
    date_to: date | None = Query(default=None, alias="to"),
    _: Principal = Depends(require_permission("ledger:view")),
    db: Session = Depends(get_db),
):
    return reports.purchases_by_category(db, date_from, date_to)


@router.get("/purchases/{invoice_id}", response_model=PurchaseInvoiceOut)
def get_purchase_invoice(
    invoice_id: int,
    _: Principal = Depends(require_permission("ledger:view")),
    db: Session = Depends(get_db),
):
    return invoicing.get_invoice(db, "purchase", invoice_id)


@router.get("/sales/{invoice_id}", response_model=SaleInvoiceOut)
def get_sale_invoice(
    invoice_id: int,
    _: Principal = Depends(require_permission("ledger:view")),
    db: Session = Depends(get_db),
):
    return invoicing.get_invoice(db, "sale", invoice_id)
