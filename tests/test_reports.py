from datetime import date, datetime
from decimal import Decimal

import pytest

from app.services import reports
from app.services.errors import ValidationError
from app.services.invoicing import InvoiceLine, create_purchase_invoice, create_sale_invoice
from app.services.payments import record_customer_payment, record_supplier_payment


@pytest.fixture()
def march_books(db, make_product, make_supplier, make_customer):
    product = make_product()
    supplier = make_supplier()
    customer = make_customer()
    create_purchase_invoice(
        db,
        supplier_id=supplier.id,
        items=[InvoiceLine(product_id=product.id, quantity=10, price=Decimal("5"))],
        invoice_date=datetime(2026, 3, 2, 9, 0),
    )
    create_sale_invoice(
        db,
        customer_id=customer.id,
        items=[InvoiceLine(product_id=product.id, quantity=4, price=Decimal("10"))],
        invoice_date=datetime(2026, 3, 5, 15, 0),
    )
    record_customer_payment(db, customer_id=customer.id, amount="15", paid_at=datetime(2026, 3, 6))
    record_supplier_payment(db, supplier_id=supplier.id, amount="20", paid_at=datetime(2026, 3, 6))
    return product


def test_balance_sheet_positions_and_pnl(db, march_books):
    sheet = reports.balance_sheet(db, as_of=date(2026, 3, 31))

    assert sheet.period_from == date(2026, 3, 1)
    assert sheet.period_to == date(2026, 3, 31)
    assert sheet.assets.cash == Decimal("-5.00")
    assert sheet.assets.accounts_receivable == Decimal("25.00")
    assert sheet.assets.inventory == Decimal("30.00")
    assert sheet.assets.total == Decimal("50.00")
    assert sheet.liabilities.accounts_payable == Decimal("30.00")
    assert sheet.liabilities.total == Decimal("30.00")
    assert sheet.equity.total == Decimal("20.00")
    assert sheet.pnl.revenue == Decimal("40.00")
    assert sheet.pnl.cogs == Decimal("20.00")
    assert sheet.pnl.gross_profit == Decimal("20.00")
    assert sheet.pnl.other_expenses == Decimal("0.00")
    assert sheet.pnl.net_profit == Decimal("20.00")


def test_balance_sheet_before_any_activity(db, march_books):
    sheet = reports.balance_sheet(db, as_of=date(2026, 3, 1))

    assert sheet.assets.total == Decimal("0.00")
    assert sheet.liabilities.total == Decimal("0.00")
    assert sheet.pnl.revenue == Decimal("0.00")


def test_balance_sheet_rejects_inverted_period(db):
    with pytest.raises(ValidationError):
        reports.balance_sheet(db, as_of=date(2026, 3, 31), period_from=date(2026, 3, 20), period_to=date(2026, 3, 1))


def test_pnl_series_groups_by_period(db, make_product, make_supplier, make_customer):
    product = make_product()
    supplier = make_supplier()
    customer = make_customer()
    create_purchase_invoice(
        db,
        supplier_id=supplier.id,
        items=[InvoiceLine(product_id=product.id, quantity=10, price=Decimal("5"))],
        invoice_date=datetime(2026, 1, 1),
    )
    for when, quantity in [(datetime(2026, 2, 10), 2), (datetime(2026, 1, 20), 4), (datetime(2026, 1, 25), 1)]:
        create_sale_invoice(
            db,
            customer_id=customer.id,
            items=[InvoiceLine(product_id=product.id, quantity=quantity, price=Decimal("10"))],
            invoice_date=when,
        )

    monthly = reports.pnl_series(db, "month")
    assert [row.period for row in monthly.rows] == ["2026-01", "2026-02"]
    assert monthly.rows[0].revenue == Decimal("50.00")
    assert monthly.rows[0].cogs == Decimal("25.00")
    assert monthly.rows[0].margin == Decimal("50.00")

    daily = reports.pnl_series(db, "day", date_from=date(2026, 1, 21))
    assert [row.period for row in daily.rows] == ["2026-01-25", "2026-02-10"]

    yearly = reports.pnl_series(db, "YEAR")
    assert [(row.period, row.gross_profit) for row in yearly.rows] == [("2026", Decimal("35.00"))]

    with pytest.raises(ValidationError):
        reports.pnl_series(db, "week")


def test_margin_is_zero_without_revenue():
    assert reports.margin_percent(Decimal("0"), Decimal("0")) == Decimal("0.00")
    assert reports.margin_percent(Decimal("1"), Decimal("3")) == Decimal("33.33")


def test_daily_sales_and_stock_summary(db, march_books):
    day = reports.daily_sales(db, date(2026, 3, 5))
    assert day.total_sales == Decimal("40.00")
    assert day.invoices == 1
    assert reports.daily_sales(db, date(2026, 3, 6)).invoices == 0

    summary = reports.stock_valuation_summary(db)
    assert summary.as_of is None
    assert summary.rows[0].product_id == march_books.id
    assert summary.totals.total_quantity == 6
    assert summary.totals.total_value == Decimal("30.00")


@pytest.fixture()
def category_books(db, make_product, make_supplier, make_customer):
    drinks = make_product(category="Drinks")
    snacks = make_product(category="Snacks")
    loose = make_product()
    supplier = make_supplier()
    customer = make_customer()
    create_purchase_invoice(
        db,
        supplier_id=supplier.id,
        items=[
            InvoiceLine(product_id=drinks.id, quantity=10, price=Decimal("5")),
            InvoiceLine(product_id=snacks.id, quantity=10, price=Decimal("2")),
            InvoiceLine(product_id=loose.id, quantity=5, price=Decimal("1")),
        ],
        invoice_date=datetime(2026, 1, 10),
    )
    for when, items in [
        (
            datetime(2026, 1, 12),
            [
                InvoiceLine(product_id=drinks.id, quantity=2, price=Decimal("10")),
                InvoiceLine(product_id=snacks.id, quantity=5, price=Decimal("4")),
            ],
        ),
        (datetime(2026, 1, 15), [InvoiceLine(product_id=drinks.id, quantity=3, price=Decimal("10"))]),
        (datetime(2026, 2, 1), [InvoiceLine(product_id=loose.id, quantity=1, price=Decimal("3"))]),
    ]:
        create_sale_invoice(db, customer_id=customer.id, items=items, invoice_date=when)
    return drinks


def test_sales_by_category_sorted_by_amount(db, category_books):
    rows = reports.sales_by_category(db)

    assert [(row.category, row.amount, row.quantity, row.invoice_count) for row in rows] == [
        ("Drinks", Decimal("50.00"), 5, 2),
        ("Snacks", Decimal("20.00"), 5, 1),
        ("", Decimal("3.00"), 1, 1),
    ]

    january = reports.sales_by_category(db, date_to=date(2026, 1, 31))
    assert [row.category for row in january] == ["Drinks", "Snacks"]
    assert reports.sales_by_category(db, date_from=date(2026, 3, 1)) == []


def test_purchases_by_category(db, category_books):
    rows = reports.purchases_by_category(db)

    assert [(row.category, row.amount, row.quantity, row.invoice_count) for row in rows] == [
        ("Drinks", Decimal("50.00"), 10, 1),
        ("Snacks", Decimal("20.00"), 10, 1),
        ("", Decimal("5.00"), 5, 1),
    ]


def test_lines_keep_category_after_product_is_recategorized(db, category_books):
    category_books.category = "Beverages"
    db.commit()

    assert reports.sales_by_category(db)[0].category == "Drinks"


def test_monthly_profit_covers_twelve_months(db, category_books):
    result = reports.monthly_profit(db, today=date(2026, 3, 15))

    assert len(result.labels) == 12
    assert result.labels[0] == "Apr 2025"
    assert result.labels[-3:] == ["Jan 2026", "Feb 2026", "Mar 2026"]
    assert result.sales[-3:] == [Decimal("70.00"), Decimal("3.00"), Decimal("0")]
    assert result.purchases[-3:] == [Decimal("75.00"), Decimal("0"), Decimal("0")]
    assert result.profit[-3:] == [Decimal("-5.00"), Decimal("3.00"), Decimal("0")]
    assert all(value == 0 for value in result.sales[:9])


def test_monthly_profit_skips_invoices_before_the_window(db, category_books):
    result = reports.monthly_profit(db, today=date(2027, 1, 20))

    assert result.labels[0] == "Feb 2026"
    assert sum(result.sales) == Decimal("3.00")
    assert sum(result.purchases) == Decimal("0")
