"""FIFO stock batches: replenishment, consumption with COGS, and valuation.

Every function takes the caller's session and never commits; the caller owns
the transaction. Batches are consumed oldest first by ``created_at`` with the
batch id as tie-break, so replaying the same history always matches the same
batches.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.config import VALUATION_FALLBACK_SOURCES, settings
from app.models.inventory import Product, StockBatch
from app.models.invoices import PurchaseInvoice, PurchaseInvoiceItem
from app.services.errors import InsufficientStock, NotFound, ValidationError
from app.services.money import (
    ZERO,
    as_unit_price,
    end_of_day,
    quantize_money,
    quantize_unit_price,
    to_unit_price,
)
from app.services.unit_of_work import atomic

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchAllocation:
    batch_id: int
    quantity: int
    unit_cost: Decimal

    @property
    def cost(self) -> Decimal:
        return self.unit_cost * self.quantity


@dataclass(frozen=True)
class FifoConsumption:
    product_id: int
    quantity: int
    total_cost: Decimal
    allocations: tuple[BatchAllocation, ...]


@dataclass(frozen=True)
class ValuationRow:
    product_id: int
    sku: str
    name: str
    unit: str
    quantity: int
    average_cost: Decimal
    total_value: Decimal


@dataclass(frozen=True)
class ValuationTotals:
    total_skus: int
    total_quantity: int
    total_value: Decimal


@dataclass(frozen=True)
class StockValuation:
    as_of: date | None
    rows: list[ValuationRow]
    totals: ValuationTotals


def lock_products(db: Session, product_ids: Iterable[int]) -> dict[int, Product]:
    """Row-lock the given products in ascending id order.

    Holding these locks until commit serializes stock mutations per product.
    Ascending order keeps two multi-product invoices from deadlocking.
    """
    ids = sorted(set(product_ids))
    if not ids:
        return {}
    products = db.scalars(
        select(Product).where(Product.id.in_(ids)).order_by(Product.id).with_for_update()
    ).all()
    found = {product.id: product for product in products}
    for product_id in ids:
        if product_id not in found:
            raise NotFound("Product", product_id)
    return found


def replenish(
    db: Session,
    product_id: int,
    quantity: int,
    unit_cost: Decimal,
    *,
    received_at: datetime | None = None,
    purchase_invoice_id: int | None = None,
) -> StockBatch:
    if quantity <= 0:
        raise ValidationError("Replenish quantity must be > 0")
    unit_cost = to_unit_price(unit_cost, "unit cost")
    if unit_cost < 0:
        raise ValidationError("Unit cost must be >= 0")

    now = datetime.utcnow()
    newest = db.scalar(select(func.max(StockBatch.created_at)).where(StockBatch.product_id == product_id))
    batch = StockBatch(
        product_id=product_id,
        purchase_invoice_id=purchase_invoice_id,
        quantity_received=quantity,
        quantity=quantity,
        unit_cost=unit_cost,
        received_at=received_at or now,
        created_at=max(now, newest) if newest is not None else now,
    )
    db.add(batch)
    db.flush()
    return batch


def available_quantity(db: Session, product_id: int) -> int:
    return int(
        db.scalar(
            select(func.coalesce(func.sum(StockBatch.quantity), 0)).where(StockBatch.product_id == product_id)
        )
        or 0
    )


def consume_fifo(db: Session, product_id: int, quantity: int) -> FifoConsumption:
    """Take ``quantity`` units from the oldest batches and return their cost.

    The take plan is computed first and applied only when it covers the whole
    request, so a shortfall raises ``InsufficientStock`` with every batch
    untouched.
    """
    if quantity <= 0:
        raise ValidationError("Consume quantity must be > 0")

    batches = db.scalars(
        select(StockBatch)
        .where(StockBatch.product_id == product_id, StockBatch.quantity > 0)
        .order_by(StockBatch.created_at.asc(), StockBatch.id.asc())
        .with_for_update()
    ).all()

    still_needed = quantity
    plan: list[tuple[StockBatch, int]] = []
    for batch in batches:
        if still_needed == 0:
            break
        take = min(int(batch.quantity), still_needed)
        plan.append((batch, take))
        still_needed -= take

    if still_needed > 0:
        available = sum(int(batch.quantity) for batch in batches)
        logger.warning(
            "FIFO consumption refused for product %s: requested %s, available %s",
            product_id,
            quantity,
            available,
        )
        raise InsufficientStock(product_id, quantity, available)

    allocations: list[BatchAllocation] = []
    total_cost = ZERO
    for batch, take in plan:
        unit_cost = as_unit_price(batch.unit_cost)
        batch.quantity = int(batch.quantity) - take
        allocation = BatchAllocation(batch_id=batch.id, quantity=take, unit_cost=unit_cost)
        allocations.append(allocation)
        total_cost += allocation.cost
    db.flush()

    return FifoConsumption(
        product_id=product_id,
        quantity=quantity,
        total_cost=quantize_money(total_cost),
        allocations=tuple(allocations),
    )


def refresh_product_stock(db: Session, product_id: int) -> int:
    product = db.get(Product, product_id)
    if product is None:
        raise NotFound("Product", product_id)
    total = available_quantity(db, product_id)
    product.stock = total
    db.flush()
    return total


def reconcile_product_stock(db: Session) -> int:
    """Rebuild every product's cached stock from its batches.

    Returns how many products had a stale value. Commits on its own.
    """
    with atomic(db, "Stock reconciliation"):
        totals = {
            int(product_id): int(total or 0)
            for product_id, total in db.execute(
                select(StockBatch.product_id, func.sum(StockBatch.quantity)).group_by(StockBatch.product_id)
            ).all()
        }
        changed = 0
        for product in db.scalars(select(Product).order_by(Product.id).with_for_update()).all():
            expected = totals.get(product.id, 0)
            if product.stock != expected:
                logger.info("Product %s stock corrected from %s to %s", product.id, product.stock, expected)
                product.stock = expected
                changed += 1
    logger.info("Stock reconciliation complete: %s product(s) corrected", changed)
    return changed


def latest_purchase_price(db: Session, product_id: int) -> Decimal | None:
    price = db.scalar(
        select(PurchaseInvoiceItem.price)
        .join(PurchaseInvoice, PurchaseInvoice.id == PurchaseInvoiceItem.invoice_id)
        .where(PurchaseInvoiceItem.product_id == product_id)
        .order_by(
            PurchaseInvoice.date.desc(),
            PurchaseInvoice.id.desc(),
            PurchaseInvoiceItem.line_no.desc(),
        )
        .limit(1)
    )
    return as_unit_price(price) if price is not None else None


def _fallback_unit_cost(db: Session, product: Product, sources: Sequence[str]) -> Decimal:
    for source in sources:
        if source == "last_purchase":
            candidate = latest_purchase_price(db, product.id)
        elif source == "list_price":
            candidate = as_unit_price(product.price)
        else:
            raise ValidationError(
                f"Unknown valuation fallback '{source}'; expected one of {', '.join(VALUATION_FALLBACK_SOURCES)}"
            )
        if candidate is not None and candidate > 0:
            return candidate
    return ZERO


def valuation(
    db: Session,
    *,
    as_of: date | None = None,
    fallback: Sequence[str] | None = None,
) -> StockValuation:
    """Value remaining stock per product at batch cost.

    Batches recorded at zero cost are valued with the first positive price
    found along ``fallback`` (defaults to the configured chain). ``as_of``
    only counts batches received on or before that day.
    """
    sources = tuple(settings.valuation_cost_fallback if fallback is None else fallback)

    batch_query = (
        select(StockBatch.product_id, StockBatch.quantity, StockBatch.unit_cost)
        .where(StockBatch.quantity > 0)
        .order_by(StockBatch.product_id, StockBatch.created_at, StockBatch.id)
    )
    if as_of is not None:
        batch_query = batch_query.where(StockBatch.received_at <= end_of_day(as_of))

    open_batches: dict[int, list[tuple[int, Decimal]]] = defaultdict(list)
    for product_id, quantity, unit_cost in db.execute(batch_query).all():
        open_batches[int(product_id)].append((int(quantity), as_unit_price(unit_cost)))

    rows: list[ValuationRow] = []
    for product in db.scalars(select(Product).order_by(Product.id)).all():
        batches = open_batches.get(product.id, [])
        fallback_cost: Decimal | None = None
        if any(unit_cost <= 0 for _, unit_cost in batches):
            fallback_cost = _fallback_unit_cost(db, product, sources)

        quantity_total = 0
        value_total = ZERO
        for quantity, unit_cost in batches:
            effective_cost = unit_cost if unit_cost > 0 else (fallback_cost or ZERO)
            quantity_total += quantity
            value_total += effective_cost * quantity

        rows.append(
            ValuationRow(
                product_id=product.id,
                sku=product.sku,
                name=product.name,
                unit=product.unit,
                quantity=quantity_total,
                average_cost=quantize_unit_price(value_total / quantity_total) if quantity_total else ZERO,
                total_value=quantize_money(value_total),
            )
        )

    totals = ValuationTotals(
        total_skus=len(rows),
        total_quantity=sum(row.quantity for row in rows),
        total_value=quantize_money(sum((row.total_value for row in rows), ZERO)),
    )
    return StockValuation(as_of=as_of, rows=rows, totals=totals)
