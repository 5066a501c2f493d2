"""Purchase and sale invoice creation.

Each call is one unit of work on the caller's session: stock batches,
product stock caches, the invoice header and its lines are committed
together or not at all.
"""

import logging
import secrets
import string
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, selectinload

from app.core.config import settings
from app.models.inventory import Customer, Product, Supplier
from app.models.invoices import PurchaseInvoice, PurchaseInvoiceItem, SalesInvoice, SalesInvoiceItem
from app.services import stock_ledger
from app.services.errors import InsufficientStock, NotFound, ValidationError
from app.services.money import (
    ZERO,
    as_decimal,
    end_of_day,
    quantize_money,
    start_of_day,
    to_money,
    to_unit_price,
)
from app.services.unit_of_work import atomic

logger = logging.getLogger(__name__)

InvoiceKind = Literal["purchase", "sale"]

_INVOICE_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits


@dataclass(frozen=True)
class InvoiceLine:
    product_id: int
    quantity: int
    price: Decimal
    unit: str | None = None


@dataclass(frozen=True)
class InvoiceTotals:
    sub_total: Decimal
    discount: Decimal
    grand_total: Decimal
    amount_paid: Decimal
    amount_due: Decimal


@dataclass
class _NormalizedLine:
    product_id: int
    quantity: int
    price: Decimal
    unit: str | None
    amount: Decimal = field(init=False)

    def __post_init__(self) -> None:
        self.amount = quantize_money(self.price * self.quantity)


@dataclass(frozen=True)
class InvoicePage:
    rows: list
    total: int
    page: int
    limit: int
    stats: dict[str, Decimal | int]


def make_invoice_number(prefix: str, now: datetime | None = None) -> str:
    """``<PREFIX>-YYYYMMDD-HHMMSS-XXXX`` with a random base36 suffix."""
    stamp = (now or datetime.utcnow()).strftime("%Y%m%d-%H%M%S")
    suffix = "".join(secrets.choice(_INVOICE_SUFFIX_ALPHABET) for _ in range(4))
    return f"{prefix}-{stamp}-{suffix}"


def escape_like(text: str) -> str:
    """Make ``%`` and ``_`` match literally in a LIKE pattern escaped with a backslash."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def compute_totals(sub_total: Decimal, discount: Decimal, paid: Decimal) -> InvoiceTotals:
    grand_total = max(ZERO, sub_total - discount)
    return InvoiceTotals(
        sub_total=sub_total,
        discount=discount,
        grand_total=grand_total,
        amount_paid=paid,
        amount_due=max(ZERO, grand_total - paid),
    )


def _require_id(value: object, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f"Valid {field_name} is required")
    return value


def _normalize_lines(items: Sequence[InvoiceLine]) -> list[_NormalizedLine]:
    if not items:
        raise ValidationError("At least one item is required")

    normalized: list[_NormalizedLine] = []
    for index, item in enumerate(items, start=1):
        product_id = _require_id(item.product_id, f"product id on line {index}")
        quantity = item.quantity
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ValidationError(f"Quantity on line {index} must be a whole number")
        if quantity <= 0:
            raise ValidationError(f"Quantity on line {index} must be > 0")
        price = to_unit_price(item.price, f"price on line {index}")
        if price < 0:
            raise ValidationError(f"Price on line {index} must be >= 0")
        unit = item.unit.strip() if item.unit and item.unit.strip() else None
        normalized.append(_NormalizedLine(product_id=product_id, quantity=quantity, price=price, unit=unit))
    return normalized


def _normalize_amount(value: object, field_name: str) -> Decimal:
    amount = to_money(value, field_name)
    if amount < 0:
        raise ValidationError(f"{field_name.capitalize()} must be >= 0")
    return amount


def _load_products(db: Session, lines: Sequence[_NormalizedLine]) -> dict[int, Product]:
    products = stock_ledger.lock_products(db, (line.product_id for line in lines))
    for product in products.values():
        if not product.is_active:
            raise ValidationError(f"Product {product.id} is inactive")
    return products


def create_purchase_invoice(
    db: Session,
    *,
    supplier_id: int,
    items: Sequence[InvoiceLine],
    invoice_date: datetime | None = None,
    discount: object = 0,
    paid: object = 0,
    note: str | None = None,
    created_by: str | None = None,
) -> PurchaseInvoice:
    supplier_id = _require_id(supplier_id, "supplier")
    lines = _normalize_lines(items)
    discount_amount = _normalize_amount(discount, "discount")
    paid_amount = _normalize_amount(paid, "paid")
    invoice_date = invoice_date or datetime.utcnow()

    with atomic(db, "Purchase invoice creation"):
        if db.get(Supplier, supplier_id) is None:
            raise NotFound("Supplier", supplier_id)
        products = _load_products(db, lines)

        totals = compute_totals(sum((line.amount for line in lines), ZERO), discount_amount, paid_amount)
        invoice = PurchaseInvoice(
            invoice_number=make_invoice_number("PINV"),
            supplier_id=supplier_id,
            date=invoice_date,
            sub_total=totals.sub_total,
            discount=totals.discount,
            grand_total=totals.grand_total,
            amount_paid=totals.amount_paid,
            amount_due=totals.amount_due,
            note=note.strip() if note else None,
            created_by=created_by,
        )
        db.add(invoice)
        db.flush()

        for line_no, line in enumerate(lines, start=1):
            product = products[line.product_id]
            stock_ledger.replenish(
                db,
                line.product_id,
                line.quantity,
                line.price,
                received_at=invoice_date,
                purchase_invoice_id=invoice.id,
            )
            stock_ledger.refresh_product_stock(db, line.product_id)
            invoice.items.append(
                PurchaseInvoiceItem(
                    line_no=line_no,
                    product_id=line.product_id,
                    unit=line.unit or product.unit,
                    category=product.category,
                    quantity=line.quantity,
                    price=line.price,
                    amount=line.amount,
                )
            )
        db.flush()

    logger.info(
        "Purchase invoice %s recorded for supplier %s: %s line(s), grand total %s",
        invoice.invoice_number,
        supplier_id,
        len(lines),
        totals.grand_total,
    )
    return invoice


def create_sale_invoice(
    db: Session,
    *,
    customer_id: int,
    items: Sequence[InvoiceLine],
    invoice_date: datetime | None = None,
    discount: object = 0,
    paid: object = 0,
    note: str | None = None,
    created_by: str | None = None,
) -> SalesInvoice:
    customer_id = _require_id(customer_id, "customer")
    lines = _normalize_lines(items)
    discount_amount = _normalize_amount(discount, "discount")
    paid_amount = _normalize_amount(paid, "paid")
    invoice_date = invoice_date or datetime.utcnow()

    with atomic(db, "Sale invoice creation"):
        if db.get(Customer, customer_id) is None:
            raise NotFound("Customer", customer_id)
        products = _load_products(db, lines)

        cogs_total = ZERO
        sale_items: list[SalesInvoiceItem] = []
        for line_no, line in enumerate(lines, start=1):
            available = stock_ledger.available_quantity(db, line.product_id)
            if available < line.quantity:
                raise InsufficientStock(line.product_id, line.quantity, available)
            consumption = stock_ledger.consume_fifo(db, line.product_id, line.quantity)
            stock_ledger.refresh_product_stock(db, line.product_id)
            cogs_total += consumption.total_cost
            sale_items.append(
                SalesInvoiceItem(
                    line_no=line_no,
                    product_id=line.product_id,
                    unit=line.unit or products[line.product_id].unit,
                    category=products[line.product_id].category,
                    quantity=line.quantity,
                    price=line.price,
                    amount=line.amount,
                    cogs=consumption.total_cost,
                )
            )

        totals = compute_totals(sum((line.amount for line in lines), ZERO), discount_amount, paid_amount)
        invoice = SalesInvoice(
            invoice_number=make_invoice_number("SINV"),
            customer_id=customer_id,
            date=invoice_date,
            sub_total=totals.sub_total,
            discount=totals.discount,
            grand_total=totals.grand_total,
            amount_paid=totals.amount_paid,
            amount_due=totals.amount_due,
            cogs_total=cogs_total,
            profit=totals.grand_total - cogs_total,
            note=note.strip() if note else None,
            created_by=created_by,
            items=sale_items,
        )
        db.add(invoice)
        db.flush()

    logger.info(
        "Sale invoice %s recorded for customer %s: grand total %s, COGS %s, profit %s",
        invoice.invoice_number,
        customer_id,
        totals.grand_total,
        cogs_total,
        invoice.profit,
    )
    return invoice


def _invoice_models(kind: InvoiceKind):
    if kind == "purchase":
        return PurchaseInvoice, Supplier, PurchaseInvoice.supplier_id
    if kind == "sale":
        return SalesInvoice, Customer, SalesInvoice.customer_id
    raise ValidationError(f"Unknown invoice kind '{kind}'")


def get_invoice(db: Session, kind: InvoiceKind, invoice_id: int) -> PurchaseInvoice | SalesInvoice:
    model, _, _ = _invoice_models(kind)
    invoice = db.scalar(select(model).options(selectinload(model.items)).where(model.id == invoice_id))
    if invoice is None:
        raise NotFound(f"{kind.capitalize()} invoice", invoice_id)
    return invoice


def list_invoices(
    db: Session,
    kind: InvoiceKind,
    *,
    party_id: int | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 50,
) -> InvoicePage:
    """Page through invoices newest first with totals over the whole filter."""
    model, party_model, party_column = _invoice_models(kind)
    page = max(1, page)
    limit = min(settings.invoice_page_limit_max, max(1, limit))

    conditions = []
    if party_id is not None:
        conditions.append(party_column == party_id)
    if date_from is not None:
        conditions.append(model.date >= start_of_day(date_from))
    if date_to is not None:
        conditions.append(model.date <= end_of_day(date_to))
    if search and search.strip():
        pattern = f"%{escape_like(search.strip().lower())}%"
        conditions.append(
            or_(
                func.lower(model.invoice_number).like(pattern, escape="\\"),
                func.lower(party_model.name).like(pattern, escape="\\"),
            )
        )

    base = select(model).join(party_model, party_model.id == party_column).where(*conditions)
    rows = list(
        db.scalars(
            base.options(selectinload(model.items))
            .order_by(model.date.desc(), model.created_at.desc(), model.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).all()
    )

    stats_row = db.execute(
        select(
            func.count(model.id),
            func.coalesce(func.sum(model.sub_total), 0),
            func.coalesce(func.sum(model.discount), 0),
            func.coalesce(func.sum(model.grand_total), 0),
            func.coalesce(func.sum(model.amount_paid), 0),
            func.coalesce(func.sum(model.amount_due), 0),
        )
        .select_from(model)
        .join(party_model, party_model.id == party_column)
        .where(*conditions)
    ).one()
    count = int(stats_row[0] or 0)
    stats: dict[str, Decimal | int] = {
        "count": count,
        "sub_total": as_decimal(stats_row[1]),
        "discount": as_decimal(stats_row[2]),
        "grand_total": as_decimal(stats_row[3]),
        "amount_paid": as_decimal(stats_row[4]),
        "amount_due": as_decimal(stats_row[5]),
    }
    return InvoicePage(rows=rows, total=count, page=page, limit=limit, stats=stats)
