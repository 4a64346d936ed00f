"""Period statistics for the ledger.

This module turns the flat transaction list into monthly and annual
figures: income/expense/investment totals, net profit and per-category
breakdowns.  Every function is pure: it builds a DataFrame from the
records it is handed, filters and groups it, and returns fresh result
objects without touching the input.

Investments are counted as an outflow, so
``net_profit = income - expenses - investments``.
"""

from __future__ import annotations

import calendar
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from .config import INVESTMENT_HISTORY_MONTHS
from .errors import ValidationError
from .models import Category, Transaction

FRAME_COLUMNS = ['id', 'amount', 'type', 'category_id', 'date']
TYPE_COLUMNS = ['income', 'expense', 'investment']
DIGITAL_INCOME_MARKERS = ('digital', 'streaming')
MARKETING_CATEGORY_ID = 'marketing'


@dataclass
class CategoryShare:
    category_id: str
    amount: float
    percentage: float

    def to_dict(self) -> Dict[str, Any]:
        return {'categoryId': self.category_id, 'amount': self.amount, 'percentage': self.percentage}


@dataclass
class MonthlyStats:
    total_income: float = 0.0
    total_expenses: float = 0.0
    total_investments: float = 0.0
    net_profit: float = 0.0
    category_breakdown: List[CategoryShare] = field(default_factory=list)
    income_breakdown: List[CategoryShare] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'totalIncome': self.total_income,
            'totalExpenses': self.total_expenses,
            'totalInvestments': self.total_investments,
            'netProfit': self.net_profit,
            'categoryBreakdown': [s.to_dict() for s in self.category_breakdown],
            'incomeBreakdown': [s.to_dict() for s in self.income_breakdown],
        }


@dataclass
class MonthTotals:
    """One fixed slot of the annual chart."""

    month: int
    label: str
    income: float = 0.0
    expense: float = 0.0
    investment: float = 0.0

    @property
    def net_profit(self) -> float:
        return self.income - self.expense - self.investment


@dataclass
class AnnualStats:
    year: int
    total_income: float = 0.0
    total_expenses: float = 0.0
    total_investments: float = 0.0
    net_profit: float = 0.0
    income_breakdown: List[CategoryShare] = field(default_factory=list)
    expense_breakdown: List[CategoryShare] = field(default_factory=list)
    months: List[MonthTotals] = field(default_factory=list)


@dataclass
class InvestmentSummary:
    total: float
    this_month: float
    last_month: float
    change_percentage: float


@dataclass
class MarketingROI:
    digital_income: float
    marketing_expenses: float
    roi: float


# ----------------------------------------------------------------------
# Periods
# ----------------------------------------------------------------------

def parse_period(period: str) -> Tuple[int, int]:
    """Split a ``YYYY-MM`` period into ``(year, month)``.

    Raises:
        ValidationError: If the period is not a valid year-month.
    """
    try:
        year_text, month_text = str(period).split('-')[:2]
        year, month = int(year_text), int(month_text)
    except ValueError:
        raise ValidationError(f"Invalid period '{period}', expected YYYY-MM") from None
    if not 1 <= month <= 12:
        raise ValidationError(f"Invalid period '{period}', month must be 01-12")
    return year, month


def format_period(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def current_period(today: Optional[date] = None) -> str:
    today = today or date.today()
    return format_period(today.year, today.month)


def shift_period(period: str, months: int) -> str:
    """Move a period forwards (or backwards, for negative ``months``)."""
    year, month = parse_period(period)
    index = year * 12 + (month - 1) + months
    return format_period(index // 12, index % 12 + 1)


def month_bounds(period: str) -> Tuple[date, date]:
    """Return the inclusive first and last calendar day of a period."""
    year, month = parse_period(period)
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


# ----------------------------------------------------------------------
# Frame helpers
# ----------------------------------------------------------------------

def transactions_frame(transactions: Iterable[Transaction]) -> pd.DataFrame:
    """Build the analysis frame, one row per transaction in input order.

    Only the calendar-day part of each ``date`` is used; rows whose date
    cannot be parsed get ``NaT`` and never fall inside any period.
    """
    rows = [
        {
            'id': t.id,
            'amount': float(t.amount),
            'type': t.type,
            'category_id': t.category_id,
            'date': t.date,
        }
        for t in transactions
    ]
    df = pd.DataFrame(rows, columns=FRAME_COLUMNS)
    df['amount'] = pd.to_numeric(df['amount'], errors='coerce').fillna(0.0).astype(float)
    df['date'] = pd.to_datetime(
        df['date'].astype(str).str[:10], format='%Y-%m-%d', errors='coerce'
    )
    return df


def _between(df: pd.DataFrame, start: date, end: date) -> pd.DataFrame:
    mask = (df['date'] >= pd.Timestamp(start)) & (df['date'] <= pd.Timestamp(end))
    return df[mask]


def _total(df: pd.DataFrame, kind: str) -> float:
    return float(df.loc[df['type'] == kind, 'amount'].sum())


def _breakdown(df: pd.DataFrame, kind: str, total: float) -> List[CategoryShare]:
    rows = df[df['type'] == kind]
    if rows.empty:
        return []
    # sort=False keeps first-appearance order; the stable sort keeps it for ties
    grouped = rows.groupby('category_id', sort=False)['amount'].sum()
    grouped = grouped.sort_values(ascending=False, kind='stable')
    return [
        CategoryShare(
            category_id=str(category_id),
            amount=float(amount),
            percentage=float(amount / total * 100) if total > 0 else 0.0,
        )
        for category_id, amount in grouped.items()
    ]


def transactions_in_period(
    transactions: Sequence[Transaction], start: date, end: date
) -> List[Transaction]:
    """Return the transactions dated within ``[start, end]`` in input order."""
    df = transactions_frame(transactions)
    keep = set(_between(df, start, end).index)
    return [t for i, t in enumerate(transactions) if i in keep]


def transactions_in_month(transactions: Sequence[Transaction], period: str) -> List[Transaction]:
    start, end = month_bounds(period)
    return transactions_in_period(transactions, start, end)


# ----------------------------------------------------------------------
# Statistics
# ----------------------------------------------------------------------

def compute_monthly_stats(transactions: Sequence[Transaction], period: str) -> MonthlyStats:
    """Calculate the monthly summary for one ``YYYY-MM`` period."""
    start, end = month_bounds(period)
    month = _between(transactions_frame(transactions), start, end)

    income = _total(month, 'income')
    expenses = _total(month, 'expense')
    investments = _total(month, 'investment')

    return MonthlyStats(
        total_income=income,
        total_expenses=expenses,
        total_investments=investments,
        net_profit=income - expenses - investments,
        category_breakdown=_breakdown(month, 'expense', expenses),
        income_breakdown=_breakdown(month, 'income', income),
    )


def monthly_breakdown_by_year(transactions: Sequence[Transaction], year: int) -> List[MonthTotals]:
    """Per-month income/expense/investment totals for January to December.

    Always returns twelve entries; months without transactions are zero.
    """
    df = _between(transactions_frame(transactions), date(year, 1, 1), date(year, 12, 31))
    months = range(1, 13)
    if df.empty:
        table = pd.DataFrame(0.0, index=months, columns=TYPE_COLUMNS)
    else:
        table = (
            df.groupby([df['date'].dt.month, 'type'])['amount']
            .sum()
            .unstack(fill_value=0.0)
            .reindex(index=months, columns=TYPE_COLUMNS, fill_value=0.0)
            .fillna(0.0)
        )
    return [
        MonthTotals(
            month=month,
            label=format_period(year, month),
            income=float(table.at[month, 'income']),
            expense=float(table.at[month, 'expense']),
            investment=float(table.at[month, 'investment']),
        )
        for month in months
    ]


def compute_annual_stats(transactions: Sequence[Transaction], year: int) -> AnnualStats:
    """Calculate year-wide totals, breakdowns and the 12-month series."""
    df = _between(transactions_frame(transactions), date(year, 1, 1), date(year, 12, 31))

    income = _total(df, 'income')
    expenses = _total(df, 'expense')
    investments = _total(df, 'investment')

    return AnnualStats(
        year=year,
        total_income=income,
        total_expenses=expenses,
        total_investments=investments,
        net_profit=income - expenses - investments,
        income_breakdown=_breakdown(df, 'income', income),
        expense_breakdown=_breakdown(df, 'expense', expenses),
        months=monthly_breakdown_by_year(transactions, year),
    )


def investment_history(
    transactions: Sequence[Transaction],
    reference: Optional[date] = None,
    months: int = INVESTMENT_HISTORY_MONTHS,
) -> List[Tuple[str, float]]:
    """Investment totals for the trailing ``months`` ending at ``reference``.

    Returns ``(period, amount)`` pairs, oldest first.
    """
    end_period = current_period(reference)
    periods = [shift_period(end_period, -offset) for offset in range(months - 1, -1, -1)]

    df = transactions_frame(transactions)
    df = df[(df['type'] == 'investment') & df['date'].notna()]
    if df.empty:
        return [(p, 0.0) for p in periods]
    totals = df.groupby(df['date'].dt.strftime('%Y-%m'))['amount'].sum()
    return [(p, float(totals.get(p, 0.0))) for p in periods]


def investment_summary(
    transactions: Sequence[Transaction], reference: Optional[date] = None
) -> InvestmentSummary:
    """All-time investments plus this month against the previous one."""
    df = transactions_frame(transactions)
    total = _total(df, 'investment')

    history = dict(investment_history(transactions, reference, months=2))
    this_period = current_period(reference)
    this_month = history[this_period]
    last_month = history[shift_period(this_period, -1)]
    change = (this_month - last_month) / last_month * 100 if last_month > 0 else 0.0

    return InvestmentSummary(
        total=total,
        this_month=this_month,
        last_month=last_month,
        change_percentage=float(change),
    )


def marketing_roi(
    transactions: Sequence[Transaction],
    categories: Iterable[Category],
    period: str,
) -> MarketingROI:
    """Digital income generated per unit of marketing spend in a month."""
    digital_ids = {
        c.id for c in categories
        if c.type == 'income' and any(marker in c.id for marker in DIGITAL_INCOME_MARKERS)
    }
    start, end = month_bounds(period)
    month = _between(transactions_frame(transactions), start, end)

    digital_income = float(
        month.loc[(month['type'] == 'income') & month['category_id'].isin(digital_ids), 'amount'].sum()
    )
    marketing = float(
        month.loc[
            (month['type'] == 'expense') & (month['category_id'] == MARKETING_CATEGORY_ID), 'amount'
        ].sum()
    )
    roi = digital_income / marketing if marketing > 0 else 0.0
    return MarketingROI(digital_income=digital_income, marketing_expenses=marketing, roi=roi)


def category_usage_counts(transactions: Iterable[Transaction]) -> Dict[str, int]:
    """Number of transactions referencing each category id."""
    return dict(Counter(t.category_id for t in transactions))
