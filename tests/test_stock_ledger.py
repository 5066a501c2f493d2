from datetime import date, datetime
from decimal import Decimal

import pytest
from sqlalchemy import select

from app.models import Product, StockBatch
from app.services import stock_ledger
from app.services.errors import InsufficientStock, NotFound, ValidationError
from app.services.invoicing import InvoiceLine, create_purchase_invoice


def _remaining(db, product_id):
    return [
        batch.quantity
        for batch in db.scalars(
            select(StockBatch)
            .where(StockBatch.product_id == product_id)
            .order_by(StockBatch.created_at, StockBatch.id)
        ).all()
    ]


def test_consume_fifo_takes_oldest_batches_first(db, make_product):
    product = make_product()
    stock_ledger.replenish(db, product.id, 10, Decimal("5"))
    stock_ledger.replenish(db, product.id, 5, Decimal("8"))
    db.commit()

    consumption = stock_ledger.consume_fifo(db, product.id, 12)
    db.commit()

    assert consumption.total_cost == Decimal("66.00")
    assert [(a.quantity, a.unit_cost) for a in consumption.allocations] == [
        (10, Decimal("5.00")),
        (2, Decimal("8.00")),
    ]
    assert _remaining(db, product.id) == [0, 3]


def test_consume_fifo_refuses_oversell_without_touching_batches(db, make_product):
    product = make_product()
    stock_ledger.replenish(db, product.id, 10, Decimal("5"))
    stock_ledger.replenish(db, product.id, 5, Decimal("8"))
    db.commit()

    with pytest.raises(InsufficientStock) as excinfo:
        stock_ledger.consume_fifo(db, product.id, 20)

    assert excinfo.value.product_id == product.id
    assert excinfo.value.requested == 20
    assert excinfo.value.available == 15
    db.rollback()
    assert _remaining(db, product.id) == [10, 5]


def test_consume_fifo_uses_insertion_order_on_equal_timestamps(db, make_product):
    product = make_product()
    first = stock_ledger.replenish(db, product.id, 2, Decimal("1"))
    second = stock_ledger.replenish(db, product.id, 2, Decimal("3"))
    second.created_at = first.created_at
    db.commit()

    consumption = stock_ledger.consume_fifo(db, product.id, 3)

    assert [a.batch_id for a in consumption.allocations] == [first.id, second.id]
    assert consumption.total_cost == Decimal("5.00")


def test_replenish_rejects_bad_quantities(db, make_product):
    product = make_product()
    with pytest.raises(ValidationError):
        stock_ledger.replenish(db, product.id, 0, Decimal("1"))
    with pytest.raises(ValidationError):
        stock_ledger.replenish(db, product.id, 1, Decimal("-1"))
    with pytest.raises(ValidationError):
        stock_ledger.consume_fifo(db, product.id, 0)


def test_lock_products_reports_missing_ids(db, make_product):
    product = make_product()
    assert list(stock_ledger.lock_products(db, [product.id])) == [product.id]
    with pytest.raises(NotFound):
        stock_ledger.lock_products(db, [product.id, 999])


def test_refresh_and_reconcile_keep_stock_cache_in_line(db, make_product):
    product = make_product()
    other = make_product()
    stock_ledger.replenish(db, product.id, 7, Decimal("2"))
    stock_ledger.refresh_product_stock(db, product.id)
    db.commit()
    assert product.stock == 7 == stock_ledger.available_quantity(db, product.id)

    product.stock = 99
    other.stock = 4
    db.commit()

    assert stock_ledger.reconcile_product_stock(db) == 2
    assert db.get(Product, product.id).stock == 7
    assert db.get(Product, other.id).stock == 0
    assert stock_ledger.reconcile_product_stock(db) == 0


def test_valuation_falls_back_for_zero_cost_batches(db, make_product, make_supplier):
    product = make_product(price="12")
    supplier = make_supplier()
    create_purchase_invoice(
        db,
        supplier_id=supplier.id,
        items=[InvoiceLine(product_id=product.id, quantity=2, price=Decimal("9"))],
    )
    stock_ledger.replenish(db, product.id, 5, Decimal("0"))
    db.commit()

    default = stock_ledger.valuation(db)
    assert default.rows[0].quantity == 7
    assert default.rows[0].total_value == Decimal("63.00")
    assert default.rows[0].average_cost == Decimal("9.00")

    list_price = stock_ledger.valuation(db, fallback=("list_price",))
    assert list_price.rows[0].total_value == Decimal("78.00")

    no_fallback = stock_ledger.valuation(db, fallback=())
    assert no_fallback.rows[0].total_value == Decimal("18.00")
    assert no_fallback.totals.total_skus == 1
    assert no_fallback.totals.total_quantity == 7


def test_valuation_as_of_ignores_later_receipts(db, make_product, make_supplier):
    product = make_product()
    supplier = make_supplier()
    create_purchase_invoice(
        db,
        supplier_id=supplier.id,
        items=[InvoiceLine(product_id=product.id, quantity=4, price=Decimal("2.50"))],
        invoice_date=datetime(2026, 3, 10, 9, 30),
    )

    before = stock_ledger.valuation(db, as_of=date(2026, 3, 9))
    on_day = stock_ledger.valuation(db, as_of=date(2026, 3, 10))

    assert before.rows[0].quantity == 0
    assert before.totals.total_value == Decimal("0.00")
    assert on_day.rows[0].quantity == 4
    assert on_day.totals.total_value == Decimal("10.00")


def test_latest_purchase_price_follows_invoice_date(db, make_product, make_supplier):
    product = make_product()
    supplier = make_supplier()
    assert stock_ledger.latest_purchase_price(db, product.id) is None

    create_purchase_invoice(
        db,
        supplier_id=supplier.id,
        items=[InvoiceLine(product_id=product.id, quantity=1, price=Decimal("4"))],
        invoice_date=datetime(2026, 2, 1),
    )
    create_purchase_invoice(
        db,
        supplier_id=supplier.id,
        items=[InvoiceLine(product_id=product.id, quantity=1, price=Decimal("3"))],
        invoice_date=datetime(2026, 1, 1),
    )

    assert stock_ledger.latest_purchase_price(db, product.id) == Decimal("4.00")


def test_valuation_is_repeatable_on_unchanged_books(db, make_product, make_supplier):
    supplier = make_supplier()
    first = make_product(price="7")
    second = make_product()
    create_purchase_invoice(
        db,
        supplier_id=supplier.id,
        items=[
            InvoiceLine(product_id=first.id, quantity=3, price=Decimal("1.3333")),
            InvoiceLine(product_id=second.id, quantity=2, price=Decimal("4")),
        ],
        invoice_date=datetime(2026, 3, 1),
    )
    stock_ledger.replenish(db, first.id, 2, Decimal("0"))
    stock_ledger.replenish(db, second.id, 1, Decimal("6.25"))
    db.commit()
    stock_ledger.consume_fifo(db, second.id, 1)
    db.commit()

    once = stock_ledger.valuation(db)
    again = stock_ledger.valuation(db)

    assert once == again
    assert [row.product_id for row in once.rows] == [first.id, second.id]
    assert once.rows[0].total_value == Decimal("6.67")
    assert once.rows[1].total_value == Decimal("10.25")
