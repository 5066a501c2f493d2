from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import Principal, require_permission
from app.db.database import get_db
from app.schemas.inventory import StockReconcileOut, StockValuationOut
from app.schemas.reports import BalanceSheetOut, DailySalesOut, MonthlyProfitOut, PartyLedgerOut, PnLSeriesOut
from app.services import party_ledger, reports, stock_ledger

ledger_router = APIRouter(prefix="/ledger", tags=["Ledger"])
reports_router = APIRouter(prefix="/reports", tags=["Reports"])
stock_router = APIRouter(prefix="/stock", tags=["Stock"])


@ledger_router.get("/customers/{customer_id}", response_model=PartyLedgerOut)
def customer_ledger(
    customer_id: int,
    date_from: date | None = Query(default=None, alias="from"),
    date_to: date | None = Query(default=None, alias="to"),
    _: Principal = Depends(require_permission("ledger:view")),
    db: Session = Depends(get_db),
):
    return party_ledger.build_customer_ledger(db, customer_id, date_from, date_to)


@ledger_router.get("/suppliers/{supplier_id}", response_model=PartyLedgerOut)
def supplier_ledger(
    supplier_id: int,
    date_from: date | None = Query(default=None, alias="from"),
    date_to: date | None = Query(default=None, alias="to"),
    _: Principal = Depends(require_permission("ledger:view")),
    db: Session = Depends(get_db),
):
    return party_ledger.build_supplier_ledger(db, supplier_id, date_from, date_to)


@reports_router.get("/balance-sheet", response_model=BalanceSheetOut)
def balance_sheet(
    as_of: date | None = Query(default=None, alias="asOf"),
    period_from: date | None = Query(default=None, alias="from"),
    period_to: date | None = Query(default=None, alias="to"),
    _: Principal = Depends(require_permission("ledger:view")),
    db: Session = Depends(get_db),
):
    return reports.balance_sheet(db, as_of, period_from, period_to)


@reports_router.get("/pnl", response_model=PnLSeriesOut)
def pnl_series(
    granularity: str = Query(default="month", pattern="^(day|month|year)$"),
    date_from: date | None = Query(default=None, alias="from"),
    date_to: date | None = Query(default=None, alias="to"),
    _: Principal = Depends(require_permission("ledger:view")),
    db: Session = Depends(get_db),
):
    return reports.pnl_series(db, granularity, date_from, date_to)


@reports_router.get("/daily-sales", response_model=DailySalesOut)
def daily_sales(
    day: date | None = None,
    _: Principal = Depends(require_permission("ledger:view")),
    db: Session = Depends(get_db),
):
    return reports.daily_sales(db, day)


@stock_router.get("/summary", response_model=StockValuationOut)
def stock_summary(
    _: Principal = Depends(require_permission("ledger:view")),
    db: Session = Depends(get_db),
):
    return reports.stock_valuation_summary(db)


@stock_router.post("/reconcile", response_model=StockReconcileOut)
def reconcile_stock(
    _: Principal = Depends(require_permission("ledger:manage")),
    db: Session = Depends(get_db),
):
    return StockReconcileOut(corrected_products=stock_ledger.reconcile_product_stock(db))


@reports_router.get("/monthly-profit", response_model=MonthlyProfitOut)
def monthly_profit(
    _: Principal = Depends(require_permission("ledger:view")),
    db: Session = Depends(get_db),
):
    return reports.monthly_profit(db)
