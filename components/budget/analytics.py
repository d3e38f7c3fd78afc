"""Spending breakdowns for the current budget period."""

from datetime import date
from typing import Dict, List, Sequence

import pandas as pd

from components.budget.models import BudgetTransaction
from components.budget.money import from_cents, quantize, to_cents
from components.budget.periods import local_today
from components.budget.schemas import (
    CategorySpending,
    DailySpending,
    Module,
    SpendingBreakdown,
)


def _frame(transactions: Sequence[BudgetTransaction], tz_name: str = "UTC") -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "day": local_today(tx.created_at, tz_name),
                "category_id": tx.category_id or "",
                "cents": to_cents(tx.amount),
            }
            for tx in transactions
        ],
        columns=["day", "category_id", "cents"],
    )


def _totals_by(df: pd.DataFrame, column: str) -> Dict:
    if df.empty:
        return {}
    return {key: int(value) for key, value in df.groupby(column)["cents"].sum().items()}


def daily_spending(
    transactions: Sequence[BudgetTransaction],
    start: date,
    end: date,
    tz_name: str = "UTC",
) -> List[DailySpending]:
    """
    Total per local day from ``start`` to ``end`` inclusive, zero-filled.

    Timestamps are naive UTC; each is bucketed by its date in ``tz_name``.
    """
    totals = _totals_by(_frame(transactions, tz_name), "day")
    if end < start:
        return []
    return [
        DailySpending(day=stamp.date(), amount=from_cents(totals.get(stamp.date(), 0)))
        for stamp in pd.date_range(start, end, freq="D")
    ]


def category_spending(modules: Sequence[Module], transactions: Sequence[BudgetTransaction]) -> List[CategorySpending]:
    """Logged spend per category next to its weekly budget."""
    totals = _totals_by(_frame(transactions), "category_id")
    return [
        CategorySpending(
            category_id=category.id,
            category_name=category.name,
            budget=quantize(category.base_value),
            spent=from_cents(totals.get(category.id, 0)),
        )
        for module in modules
        for category in module.categories
    ]


def spending_breakdown(
    modules: Sequence[Module],
    transactions: Sequence[BudgetTransaction],
    period_start: date,
    today: date,
    tz_name: str = "UTC",
) -> SpendingBreakdown:
    return SpendingBreakdown(
        daily=daily_spending(transactions, period_start, today, tz_name),
        categories=category_spending(modules, transactions),
    )
