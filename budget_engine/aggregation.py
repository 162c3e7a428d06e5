"""Per-category and per-month totals over a transaction ledger.

Months are calendar months: a window runs from the first to the last day of
the anchor's month, inclusive. Transactions with a negative or non-finite
amount, or with a date that does not parse, are left out of every total.
"""

import calendar
from collections import defaultdict
from datetime import date
from typing import Iterable, Iterator, Tuple

from budget_engine.domain import Category, CategoryType, Transaction, TransactionType
from budget_engine.filters import all_of, by_category, by_date_range, by_type, classification, countable
from budget_engine.transforms import (
    Ledger,
    categories_by_id,
    expense_transactions,
    income_transactions,
    ledger_values,
)


def month_window(anchor: date) -> Tuple[date, date]:
    last_day = calendar.monthrange(anchor.year, anchor.month)[1]
    return anchor.replace(day=1), anchor.replace(day=last_day)


def shift_months(anchor: date, months: int) -> date:
    """Calendar-month arithmetic; the day is clamped to the target month's length."""
    index = anchor.year * 12 + (anchor.month - 1) + months
    year, month = divmod(index, 12)
    last_day = calendar.monthrange(year, month + 1)[1]
    return date(year, month + 1, min(anchor.day, last_day))


def month_key(anchor: date) -> str:
    return f"{anchor.year:04d}-{anchor.month:02d}"


def iter_month_transactions(trans: Ledger, anchor: date) -> Iterator[Transaction]:
    start, end = month_window(anchor)
    in_month = all_of(countable, by_date_range(start, end))
    for t in ledger_values(trans):
        if in_month(t):
            yield t


def category_spending(trans: Ledger, category_id: str, anchor: date) -> float:
    """Total amount booked to ``category_id`` in the calendar month containing ``anchor``."""
    if category_id is None:
        raise ValueError("category_id is required")

    in_category = by_category(category_id)
    return float(sum(t.amount for t in iter_month_transactions(trans, anchor) if in_category(t)))


def monthly_spending_by_category(
    trans: Ledger, cats: Iterable[Category], anchor: date
) -> dict[str, float]:
    totals: dict[str, float] = defaultdict(float)
    for t in iter_month_transactions(trans, anchor):
        totals[t.category_id] += t.amount
    return {c.id: float(totals.get(c.id, 0.0)) for c in cats}


def top_categories(
    trans: Ledger, cats: Iterable[Category], anchor: date, k: int
) -> Iterator[tuple[str, float]]:
    """Yield (category name, total) for the k biggest expense categories of the month."""
    category_name_by_id: dict[str, str] = {c.id: c.name for c in cats}
    totals_by_category: dict[str, float] = defaultdict(float)

    expense = by_type(TransactionType.EXPENSE)
    for t in iter_month_transactions(trans, anchor):
        if expense(t):
            totals_by_category[t.category_id] += t.amount

    ordered = sorted(
        ((category_name_by_id.get(cid, cid), total) for cid, total in totals_by_category.items()),
        key=lambda item: item[1],
        reverse=True,
    )

    for name, total in ordered[: max(0, k)]:
        yield name, total


def monthly_totals(
    trans: Ledger, anchor: date, months: int
) -> list[tuple[str, float, float]]:
    """(month, income, expenses) for the ``months`` calendar months ending at ``anchor``, oldest first."""
    rows = []
    ledger = ledger_values(trans)
    for offset in range(months - 1, -1, -1):
        month = shift_months(anchor, -offset)
        in_month = tuple(iter_month_transactions(ledger, month))
        income = sum(t.amount for t in income_transactions(in_month))
        expenses = sum(t.amount for t in expense_transactions(in_month))
        rows.append((month_key(month), float(income), float(expenses)))
    return rows


def spending_by_classification(
    trans: Ledger, cats: Iterable[Category], anchor: date
) -> dict[CategoryType, float]:
    """Expense totals of the month per need/want/savings/custom group; every group is present."""
    cats_by_id = categories_by_id(cats)
    totals = {kind: 0.0 for kind in CategoryType}
    for t in expense_transactions(tuple(iter_month_transactions(trans, anchor))):
        kind = classification(t, cats_by_id)
        if kind is not None:
            totals[kind] += t.amount
    return totals


def income_by_category(trans: Ledger, anchor: date) -> dict[str, float]:
    totals: dict[str, float] = defaultdict(float)
    for t in income_transactions(tuple(iter_month_transactions(trans, anchor))):
        totals[t.category_id] += t.amount
    return dict(totals)
