from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import Principal, require_permission
from app.db.database import get_db
from app.schemas.payments import (
    CustomerPaymentCreate,
    CustomerPaymentOut,
    SupplierPaymentCreate,
    SupplierPaymentOut,
)
from app.services import payments

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("/customers", response_model=CustomerPaymentOut, status_code=status.HTTP_201_CREATED)
def record_customer_payment(
    payload: CustomerPaymentCreate,
    principal: Principal = Depends(require_permission("ledger:sell")),
    db: Session = Depends(get_db),
):
    return payments.record_customer_payment(
        db,
        customer_id=payload.customer_id,
        amount=payload.amount,
        paid_at=payload.date,
        method=payload.method,
        note=payload.note,
        created_by=principal.subject,
    )


@router.post("/suppliers", response_model=SupplierPaymentOut, status_code=status.HTTP_201_CREATED)
def record_supplier_payment(
    payload: SupplierPaymentCreate,
    principal: Principal = Depends(require_permission("ledger:manage")),
    db: Session = Depends(get_db),
):
    return payments.record_supplier_payment(
        db,
        supplier_id=payload.supplier_id,
        amount=payload.amount,
        paid_at=payload.date,
        method=payload.method,
        note=payload.note,
        created_by=principal.subject,
    )
