"""Running-balance statements for one customer or supplier.

Invoices are debits (grand total), payments are credits. Entries sharing a
timestamp are ordered invoices first, then by record id, so the running
balance is reproducible for identical stored state.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.inventory import Customer, Supplier
from app.models.invoices import PurchaseInvoice, SalesInvoice
from app.models.payments import CustomerPayment, SupplierPayment
from app.services.errors import NotFound
from app.services.money import as_decimal, end_of_day, start_of_day

INVOICE_ORDER = 0
PAYMENT_ORDER = 1


@dataclass(frozen=True)
class LedgerParty:
    id: int
    name: str


@dataclass(frozen=True)
class LedgerEntry:
    id: int
    date: datetime
    type: str
    reference: str | None
    description: str
    debit: Decimal
    credit: Decimal
    balance: Decimal


@dataclass(frozen=True)
class PartyLedger:
    party: LedgerParty
    period_from: date | None
    period_to: date | None
    opening_balance: Decimal
    transactions: list[LedgerEntry]
    closing_balance: Decimal


@dataclass(frozen=True)
class _PartyBooks:
    party_model: type
    invoice_model: type
    invoice_party_column: object
    payment_model: type
    payment_party_column: object
    invoice_type: str
    invoice_description: str
    payment_type: str
    payment_description: str


CUSTOMER_BOOKS = _PartyBooks(
    party_model=Customer,
    invoice_model=SalesInvoice,
    invoice_party_column=SalesInvoice.customer_id,
    payment_model=CustomerPayment,
    payment_party_column=CustomerPayment.customer_id,
    invoice_type="SALE",
    invoice_description="Invoice",
    payment_type="RECEIPT",
    payment_description="Payment received",
)

SUPPLIER_BOOKS = _PartyBooks(
    party_model=Supplier,
    invoice_model=PurchaseInvoice,
    invoice_party_column=PurchaseInvoice.supplier_id,
    payment_model=SupplierPayment,
    payment_party_column=SupplierPayment.supplier_id,
    invoice_type="PURCHASE",
    invoice_description="Bill",
    payment_type="PAYMENT",
    payment_description="Payment to supplier",
)


def build_customer_ledger(
    db: Session,
    customer_id: int,
    date_from: date | None = None,
    date_to: date | None = None,
) -> PartyLedger:
    return _build_ledger(db, CUSTOMER_BOOKS, customer_id, date_from, date_to)


def build_supplier_ledger(
    db: Session,
    supplier_id: int,
    date_from: date | None = None,
    date_to: date | None = None,
) -> PartyLedger:
    return _build_ledger(db, SUPPLIER_BOOKS, supplier_id, date_from, date_to)


def _build_ledger(
    db: Session,
    books: _PartyBooks,
    party_id: int,
    date_from: date | None,
    date_to: date | None,
) -> PartyLedger:
    party = db.get(books.party_model, party_id)
    if party is None:
        raise NotFound(books.party_model.__name__, party_id)

    invoice_model = books.invoice_model
    payment_model = books.payment_model
    window_start = start_of_day(date_from) if date_from is not None else None
    window_end = end_of_day(date_to) if date_to is not None else None

    opening = as_decimal(party.opening_balance)
    if window_start is not None:
        prior_debits = db.scalar(
            select(func.coalesce(func.sum(invoice_model.grand_total), 0)).where(
                books.invoice_party_column == party_id,
                invoice_model.date < window_start,
            )
        )
        prior_credits = db.scalar(
            select(func.coalesce(func.sum(payment_model.amount), 0)).where(
                books.payment_party_column == party_id,
                payment_model.date < window_start,
            )
        )
        opening = opening + as_decimal(prior_debits) - as_decimal(prior_credits)

    invoice_query = select(invoice_model).where(books.invoice_party_column == party_id)
    payment_query = select(payment_model).where(books.payment_party_column == party_id)
    if window_start is not None:
        invoice_query = invoice_query.where(invoice_model.date >= window_start)
        payment_query = payment_query.where(payment_model.date >= window_start)
    if window_end is not None:
        invoice_query = invoice_query.where(invoice_model.date <= window_end)
        payment_query = payment_query.where(payment_model.date <= window_end)

    merged: list[tuple[tuple[datetime, int, int], dict]] = []
    for invoice in db.scalars(invoice_query).all():
        merged.append(
            (
                (invoice.date, INVOICE_ORDER, invoice.id),
                {
                    "id": invoice.id,
                    "date": invoice.date,
                    "type": books.invoice_type,
                    "reference": invoice.invoice_number,
                    "description": invoice.note or books.invoice_description,
                    "debit": as_decimal(invoice.grand_total),
                    "credit": as_decimal(0),
                },
            )
        )
    for payment in db.scalars(payment_query).all():
        merged.append(
            (
                (payment.date, PAYMENT_ORDER, payment.id),
                {
                    "id": payment.id,
                    "date": payment.date,
                    "type": books.payment_type,
                    "reference": None,
                    "description": payment.note or payment.method or books.payment_description,
                    "debit": as_decimal(0),
                    "credit": as_decimal(payment.amount),
                },
            )
        )
    merged.sort(key=lambda item: item[0])

    running = opening
    transactions: list[LedgerEntry] = []
    for _, entry in merged:
        running = running + entry["debit"] - entry["credit"]
        transactions.append(LedgerEntry(balance=running, **entry))

    return PartyLedger(
        party=LedgerParty(id=party.id, name=party.name),
        period_from=date_from,
        period_to=date_to,
        opening_balance=opening,
        transactions=transactions,
        closing_balance=running,
    )
