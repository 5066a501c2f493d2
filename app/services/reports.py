from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.invoices import PurchaseInvoice, PurchaseInvoiceItem, SalesInvoice, SalesInvoiceItem
from app.models.payments import CustomerPayment, SupplierPayment
from app.services import stock_ledger
from app.services.errors import ValidationError
from app.services.money import ZERO, as_decimal, end_of_day, quantize_money, start_of_day

PNL_GRANULARITIES = ("day", "month", "year")


@dataclass(frozen=True)
class Assets:
    cash: Decimal
    accounts_receivable: Decimal
    inventory: Decimal
    total: Decimal


@dataclass(frozen=True)
class Liabilities:
    accounts_payable: Decimal
    total: Decimal


@dataclass(frozen=True)
class Equity:
    total: Decimal


@dataclass(frozen=True)
class ProfitAndLoss:
    revenue: Decimal
    cogs: Decimal
    gross_profit: Decimal
    other_expenses: Decimal
    net_profit: Decimal


@dataclass(frozen=True)
class BalanceSheet:
    as_of: date
    period_from: date
    period_to: date
    assets: Assets
    liabilities: Liabilities
    equity: Equity
    pnl: ProfitAndLoss


@dataclass(frozen=True)
class PnLRow:
    period: str
    revenue: Decimal
    cogs: Decimal
    gross_profit: Decimal
    margin: Decimal


@dataclass(frozen=True)
class PnLSeries:
    granularity: str
    period_from: date | None
    period_to: date | None
    rows: list[PnLRow]


@dataclass(frozen=True)
class DailySales:
    date: date
    total_sales: Decimal
    invoices: int


@dataclass(frozen=True)
class CategoryTotal:
    category: str
    amount: Decimal
    quantity: int
    invoice_count: int


@dataclass(frozen=True)
class MonthlyProfit:
    labels: list[str]
    sales: list[Decimal]
    purchases: list[Decimal]
    profit: list[Decimal]


def _today() -> date:
    return datetime.utcnow().date()


def _sum_up_to(db: Session, column, date_column, cutoff: datetime) -> Decimal:
    return as_decimal(db.scalar(select(func.coalesce(func.sum(column), 0)).where(date_column <= cutoff)))


def period_label(value: datetime, granularity: str) -> str:
    if granularity == "year":
        return value.strftime("%Y")
    if granularity == "month":
        return value.strftime("%Y-%m")
    return value.strftime("%Y-%m-%d")


def margin_percent(gross_profit: Decimal, revenue: Decimal) -> Decimal:
    if revenue <= 0:
        return ZERO
    return quantize_money(gross_profit / revenue * Decimal("100"))


def balance_sheet(
    db: Session,
    as_of: date | None = None,
    period_from: date | None = None,
    period_to: date | None = None,
) -> BalanceSheet:
    """Point-in-time position plus the P&L of a period.

    Everything dated on or before the end of ``as_of`` counts. The P&L
    period defaults to the calendar month of ``as_of`` up to ``as_of``.
    """
    as_of = as_of or _today()
    cutoff = end_of_day(as_of)
    period_from = period_from or as_of.replace(day=1)
    period_to = period_to or as_of
    if period_from > period_to:
        raise ValidationError("Period start must not be after period end")

    customer_payments = _sum_up_to(db, CustomerPayment.amount, CustomerPayment.date, cutoff)
    supplier_payments = _sum_up_to(db, SupplierPayment.amount, SupplierPayment.date, cutoff)
    sales_total = _sum_up_to(db, SalesInvoice.grand_total, SalesInvoice.date, cutoff)
    purchases_total = _sum_up_to(db, PurchaseInvoice.grand_total, PurchaseInvoice.date, cutoff)

    cash = customer_payments - supplier_payments
    accounts_receivable = max(ZERO, sales_total - customer_payments)
    accounts_payable = max(ZERO, purchases_total - supplier_payments)
    inventory = stock_ledger.valuation(db, as_of=as_of).totals.total_value

    assets_total = cash + accounts_receivable + inventory
    liabilities_total = accounts_payable

    revenue, cogs = db.execute(
        select(
            func.coalesce(func.sum(SalesInvoice.grand_total), 0),
            func.coalesce(func.sum(SalesInvoice.cogs_total), 0),
        ).where(
            SalesInvoice.date >= start_of_day(period_from),
            SalesInvoice.date <= end_of_day(period_to),
        )
    ).one()
    revenue = as_decimal(revenue)
    cogs = as_decimal(cogs)
    gross_profit = revenue - cogs
    # No expense model yet.
    other_expenses = ZERO

    return BalanceSheet(
        as_of=as_of,
        period_from=period_from,
        period_to=period_to,
        assets=Assets(
            cash=cash,
            accounts_receivable=accounts_receivable,
            inventory=inventory,
            total=assets_total,
        ),
        liabilities=Liabilities(accounts_payable=accounts_payable, total=liabilities_total),
        equity=Equity(total=assets_total - liabilities_total),
        pnl=ProfitAndLoss(
            revenue=revenue,
            cogs=cogs,
            gross_profit=gross_profit,
            other_expenses=other_expenses,
            net_profit=gross_profit - other_expenses,
        ),
    )


def pnl_series(
    db: Session,
    granularity: str = "month",
    date_from: date | None = None,
    date_to: date | None = None,
) -> PnLSeries:
    granularity = granularity.strip().lower()
    if granularity not in PNL_GRANULARITIES:
        raise ValidationError(f"Granularity must be one of: {', '.join(PNL_GRANULARITIES)}")

    query = select(SalesInvoice.date, SalesInvoice.grand_total, SalesInvoice.cogs_total).order_by(
        SalesInvoice.date.asc(), SalesInvoice.id.asc()
    )
    if date_from is not None:
        query = query.where(SalesInvoice.date >= start_of_day(date_from))
    if date_to is not None:
        query = query.where(SalesInvoice.date <= end_of_day(date_to))

    buckets: dict[str, dict[str, Decimal]] = {}
    for sold_at, grand_total, cogs_total in db.execute(query).all():
        label = period_label(sold_at, granularity)
        bucket = buckets.get(label)
        if bucket is None:
            bucket = {"revenue": ZERO, "cogs": ZERO}
            buckets[label] = bucket
        bucket["revenue"] += as_decimal(grand_total)
        bucket["cogs"] += as_decimal(cogs_total)

    rows = []
    for label, values in sorted(buckets.items(), key=lambda item: item[0]):
        gross_profit = values["revenue"] - values["cogs"]
        rows.append(
            PnLRow(
                period=label,
                revenue=values["revenue"],
                cogs=values["cogs"],
                gross_profit=gross_profit,
                margin=margin_percent(gross_profit, values["revenue"]),
            )
        )
    return PnLSeries(granularity=granularity, period_from=date_from, period_to=date_to, rows=rows)


def stock_valuation_summary(db: Session) -> stock_ledger.StockValuation:
    return stock_ledger.valuation(db)


def daily_sales(db: Session, day: date | None = None) -> DailySales:
    day = day or _today()
    total, count = db.execute(
        select(func.coalesce(func.sum(SalesInvoice.grand_total), 0), func.count(SalesInvoice.id)).where(
            SalesInvoice.date >= start_of_day(day),
            SalesInvoice.date <= end_of_day(day),
        )
    ).one()
    return DailySales(date=day, total_sales=as_decimal(total), invoices=int(count or 0))


def _totals_by_category(
    db: Session,
    invoice_model: type,
    item_model: type,
    date_from: date | None,
    date_to: date | None,
) -> list[CategoryTotal]:
    category = func.coalesce(item_model.category, "")
    query = (
        select(
            category,
            func.coalesce(func.sum(item_model.amount), 0),
            func.coalesce(func.sum(item_model.quantity), 0),
            func.count(func.distinct(item_model.invoice_id)),
        )
        .select_from(item_model)
        .join(invoice_model, invoice_model.id == item_model.invoice_id)
        .group_by(category)
    )
    if date_from is not None:
        query = query.where(invoice_model.date >= start_of_day(date_from))
    if date_to is not None:
        query = query.where(invoice_model.date <= end_of_day(date_to))

    rows = [
        CategoryTotal(
            category=name or "",
            amount=as_decimal(amount),
            quantity=int(quantity or 0),
            invoice_count=int(invoice_count or 0),
        )
        for name, amount, quantity, invoice_count in db.execute(query).all()
    ]
    rows.sort(key=lambda row: (-row.amount, row.category))
    return rows


def sales_by_category(db: Session, date_from: date | None = None, date_to: date | None = None) -> list[CategoryTotal]:
    """Sale line amounts grouped by the category recorded on each line, largest first."""
    return _totals_by_category(db, SalesInvoice, SalesInvoiceItem, date_from, date_to)


def purchases_by_category(
    db: Session,
    date_from: date | None = None,
    date_to: date | None = None,
) -> list[CategoryTotal]:
    return _totals_by_category(db, PurchaseInvoice, PurchaseInvoiceItem, date_from, date_to)


def _month_starts(anchor: date, count: int) -> list[date]:
    starts = []
    year, month = anchor.year, anchor.month
    for _ in range(count):
        starts.append(date(year, month, 1))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    starts.reverse()
    return starts


def _monthly_totals(db: Session, model: type, since: datetime) -> dict[str, Decimal]:
    totals: dict[str, Decimal] = {}
    for when, grand_total in db.execute(select(model.date, model.grand_total).where(model.date >= since)).all():
        label = period_label(when, "month")
        totals[label] = totals.get(label, ZERO) + as_decimal(grand_total)
    return totals


def monthly_profit(db: Session, today: date | None = None, months: int = 12) -> MonthlyProfit:
    """Sales, purchases and their difference for the last ``months`` calendar months.

    The current month comes last; months without invoices report zero.
    """
    starts = _month_starts(today or _today(), months)
    since = start_of_day(starts[0])
    sales_by_month = _monthly_totals(db, SalesInvoice, since)
    purchases_by_month = _monthly_totals(db, PurchaseInvoice, since)

    result = MonthlyProfit(labels=[], sales=[], purchases=[], profit=[])
    for start in starts:
        key = start.strftime("%Y-%m")
        sales = sales_by_month.get(key, ZERO)
        purchases = purchases_by_month.get(key, ZERO)
        result.labels.append(start.strftime("%b %Y"))
        result.sales.append(sales)
        result.purchases.append(purchases)
        result.profit.append(sales - purchases)
    return result
