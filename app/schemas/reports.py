from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel


class LedgerPartyOut(BaseModel):
    id: int
    name: str


class LedgerEntryOut(BaseModel):
    id: int
    date: datetime
    type: str
    reference: str | None
    description: str
    debit: Decimal
    credit: Decimal
    balance: Decimal


class PartyLedgerOut(BaseModel):
    party: LedgerPartyOut
    period_from: date | None
    period_to: date | None
    opening_balance: Decimal
    transactions: list[LedgerEntryOut]
    closing_balance: Decimal


class AssetsOut(BaseModel):
    cash: Decimal
    accounts_receivable: Decimal
    inventory: Decimal
    total: Decimal


class LiabilitiesOut(BaseModel):
    accounts_payable: Decimal
    total: Decimal


class EquityOut(BaseModel):
    total: Decimal


class ProfitAndLossOut(BaseModel):
    revenue: Decimal
    cogs: Decimal
    gross_profit: Decimal
    other_expenses: Decimal
    net_profit: Decimal


class BalanceSheetOut(BaseModel):
    as_of: date
    period_from: date
    period_to: date
    assets: AssetsOut
    liabilities: LiabilitiesOut
    equity: EquityOut
    pnl: ProfitAndLossOut


class PnLRowOut(BaseModel):
    period: str
    revenue: Decimal
    cogs: Decimal
    gross_profit: Decimal
    margin: Decimal


class PnLSeriesOut(BaseModel):
    granularity: str
    period_from: date | None
    period_to: date | None
    rows: list[PnLRowOut]


class DailySalesOut(BaseModel):
    date: date
    total_sales: Decimal
    invoices: int


class CategoryTotalOut(BaseModel):
    category: str
    amount: Decimal
    quantity: int
    invoice_count: int


class MonthlyProfitOut(BaseModel):
    labels: list[str]
    sales: list[Decimal]
    purchases: list[Decimal]
    profit: list[Decimal]
