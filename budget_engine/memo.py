from collections import defaultdict
from datetime import date
from functools import lru_cache

from budget_engine.aggregation import iter_month_transactions, shift_months
from budget_engine.domain import Transaction


@lru_cache(maxsize=512)
def monthly_category_totals(
    trans: tuple[Transaction, ...], year: int, month: int
) -> tuple[tuple[str, float], ...]:
    """Per-category totals of one calendar month, as sorted (category_id, total) pairs."""
    totals: dict[str, float] = defaultdict(float)
    for t in iter_month_transactions(trans, date(year, month, 1)):
        totals[t.category_id] += t.amount
    return tuple(sorted(totals.items()))


@lru_cache(maxsize=512)
def average_category_spending(
    cat_id: str, trans: tuple[Transaction, ...], as_of: date, period: int
) -> float:
    """Mean monthly spend of a category over the ``period`` months before ``as_of``'s month."""
    if period <= 0:
        return 0.0

    values = []
    for offset in range(1, period + 1):
        month = shift_months(as_of, -offset)
        totals = dict(monthly_category_totals(trans, month.year, month.month))
        values.append(totals.get(cat_id, 0.0))

    return sum(values) / len(values)
