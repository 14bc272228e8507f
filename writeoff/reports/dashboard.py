"""Dashboard statistics and transaction list filtering."""

from datetime import date
from typing import Dict, Iterable, List, Optional

import pandas as pd

from ..utils.config import (
    DEFAULT_CATEGORY,
    INCOME_KEYWORDS,
    PERIODS,
    SORT_OPTIONS,
    TAX_SAVINGS_RATE,
)

COLUMNS = [
    "trans_id",
    "account_id",
    "date",
    "amount",
    "merchant_name",
    "category",
    "is_deductible",
    "deductible_reason",
    "deduction_score",
    "notes",
    "source",
]


def transactions_to_frame(transactions: Iterable) -> pd.DataFrame:
    """Build a DataFrame from ORM rows or dicts."""
    rows = [t if isinstance(t, dict) else t.as_dict() for t in transactions]
    df = pd.DataFrame(rows, columns=COLUMNS)
    df["date"] = pd.to_datetime(df["date"], errors="coerce")
    df["amount"] = pd.to_numeric(df["amount"], errors="coerce").fillna(0.0)
    return df


def _empty_stats() -> Dict[str, float]:
    return {
        "total_deductions": 0.0,
        "tracked_expenses": 0.0,
        "total_revenue": 0.0,
        "net_profit_loss": 0.0,
        "tax_savings": 0.0,
    }


def calculate_stats(transactions: Iterable) -> Dict[str, float]:
    """Totals shown on the dashboard cards.

    Every imported amount is an absolute value, so all rows count as tracked
    expenses; rows whose category or merchant mentions an income keyword
    also count as revenue.
    """
    df = transactions_to_frame(transactions)
    if df.empty:
        return _empty_stats()

    deductible = df["is_deductible"].eq(True)
    total_deductible = float(df.loc[deductible, "amount"].sum())
    total_expenses = float(df["amount"].sum())

    text = (
        df["category"].fillna("").str.lower()
        + " "
        + df["merchant_name"].fillna("").str.lower()
    )
    income = text.apply(lambda s: any(keyword in s for keyword in INCOME_KEYWORDS))
    total_revenue = float(df.loc[income, "amount"].sum())

    return {
        "total_deductions": total_deductible,
        "tracked_expenses": total_expenses,
        "total_revenue": total_revenue,
        "net_profit_loss": total_revenue - total_expenses,
        "tax_savings": total_deductible * TAX_SAVINGS_RATE,
    }


def _period_mask(dates: pd.Series, period: str, today: date) -> pd.Series:
    if period == "This Month":
        return (dates.dt.month == today.month) & (dates.dt.year == today.year)
    if period == "Last Month":
        last = (pd.Timestamp(today).to_period("M") - 1)
        return (dates.dt.month == last.month) & (dates.dt.year == last.year)
    if period == "This Quarter":
        return (dates.dt.quarter == pd.Timestamp(today).quarter) & (
            dates.dt.year == today.year
        )
    if period == "This Year":
        return dates.dt.year == today.year
    return pd.Series(True, index=dates.index)


def filter_transactions(
    transactions: Iterable,
    search: Optional[str] = None,
    category: str = "All",
    period: str = "All Time",
    sort_by: str = "date-desc",
    today: Optional[date] = None,
) -> List[Dict]:
    """Search, filter and sort a transaction list the way the list screen does."""
    if period not in PERIODS:
        raise ValueError(f"Unknown period '{period}', expected one of {PERIODS}")
    if sort_by not in SORT_OPTIONS:
        raise ValueError(f"Unknown sort '{sort_by}', expected one of {list(SORT_OPTIONS)}")

    today = today or date.today()
    df = transactions_to_frame(transactions)
    if df.empty:
        return []

    mask = pd.Series(True, index=df.index)
    if search:
        mask &= df["merchant_name"].fillna("").str.lower().str.contains(
            search.lower(), regex=False
        )
    if category and category != "All":
        mask &= df["category"] == category
    mask &= _period_mask(df["date"], period, today)
    df = df[mask]

    if sort_by == "date-desc":
        df = df.sort_values("date", ascending=False, kind="stable")
    elif sort_by == "date-asc":
        df = df.sort_values("date", ascending=True, kind="stable")
    elif sort_by == "amount-desc":
        df = df.sort_values("amount", ascending=False, kind="stable")
    elif sort_by == "amount-asc":
        df = df.sort_values("amount", ascending=True, kind="stable")
    else:
        df = df.sort_values(
            "merchant_name", key=lambda s: s.fillna("").str.lower(), kind="stable"
        )

    df = df.astype(object).where(pd.notna(df), None)
    df["date"] = df["date"].apply(lambda d: d.date().isoformat() if d is not None else None)
    return df.to_dict(orient="records")


def summarize_by_category(transactions: Iterable) -> pd.DataFrame:
    """Spend and deductible spend per category, largest first."""
    df = transactions_to_frame(transactions)
    if df.empty:
        return pd.DataFrame(columns=["category", "total", "deductible", "count"])
    df["deductible_amount"] = df["amount"].where(
        df["is_deductible"].eq(True), 0.0
    )
    df["category"] = df["category"].fillna(DEFAULT_CATEGORY)
    summary = (
        df.groupby("category")
        .agg(
            total=("amount", "sum"),
            deductible=("deductible_amount", "sum"),
            count=("trans_id", "count"),
        )
        .reset_index()
        .sort_values("total", ascending=False)
    )
    return summary


def export_transactions_csv(transactions: Iterable, path: str) -> int:
    df = transactions_to_frame(transactions)
    df["date"] = df["date"].dt.strftime("%Y-%m-%d")
    df.to_csv(path, index=False)
    return len(df)
