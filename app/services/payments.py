import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from app.models.inventory import Customer, Supplier
from app.models.payments import CustomerPayment, SupplierPayment
from app.services.errors import NotFound, ValidationError
from app.services.money import to_money
from app.services.unit_of_work import atomic

logger = logging.getLogger(__name__)


def _clean(value: str | None) -> str | None:
    return value.strip() if value and value.strip() else None


def _payment_amount(amount: object) -> Decimal:
    value = to_money(amount, "amount")
    if value < 0:
        raise ValidationError("Amount must be >= 0")
    return value


def record_customer_payment(
    db: Session,
    *,
    customer_id: int,
    amount: object,
    paid_at: datetime | None = None,
    method: str | None = None,
    note: str | None = None,
    created_by: str | None = None,
) -> CustomerPayment:
    value = _payment_amount(amount)
    with atomic(db, "Customer payment"):
        if db.get(Customer, customer_id) is None:
            raise NotFound("Customer", customer_id)
        payment = CustomerPayment(
            customer_id=customer_id,
            amount=value,
            method=_clean(method),
            note=_clean(note),
            date=paid_at or datetime.utcnow(),
            created_by=created_by,
        )
        db.add(payment)
        db.flush()
    logger.info("Customer %s paid %s (payment %s)", customer_id, value, payment.id)
    return payment


def record_supplier_payment(
    db: Session,
    *,
    supplier_id: int,
    amount: object,
    paid_at: datetime | None = None,
    method: str | None = None,
    note: str | None = None,
    created_by: str | None = None,
) -> SupplierPayment:
    value = _payment_amount(amount)
    with atomic(db, "Supplier payment"):
        if db.get(Supplier, supplier_id) is None:
            raise NotFound("Supplier", supplier_id)
        payment = SupplierPayment(
            supplier_id=supplier_id,
            amount=value,
            method=_clean(method),
            note=_clean(note),
            date=paid_at or datetime.utcnow(),
            created_by=created_by,
        )
        db.add(payment)
        db.flush()
    logger.info("Supplier %s paid %s (payment %s)", supplier_id, value, payment.id)
    return payment
