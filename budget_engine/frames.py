"""pandas views of the ledger and of an insight snapshot, for display."""

from typing import Iterable, Mapping

import numpy as np
import pandas as pd

from budget_engine.domain import Category, InsightSnapshot
from budget_engine.transforms import Ledger, categories_by_id, ledger_values


def transactions_frame(trans: Ledger, cats: Iterable[Category]) -> pd.DataFrame:
    """One row per transaction; unparseable dates become NaT, bad amounts NaN."""
    index = categories_by_id(cats)
    rows = []
    for t in ledger_values(trans):
        cat = index.get(t.category_id)
        rows.append({
            "id": t.id,
            "date": t.date,
            "amount": t.amount,
            "category_id": t.category_id,
            "category": cat.name if cat else t.category_id,
            "classification": (cat.type.value if cat else (t.category_type.value if t.category_type else None)),
            "type": t.type.value,
            "essential": t.is_essential,
            "title": t.title,
        })
    df = pd.DataFrame(
        rows,
        columns=["id", "date", "amount", "category_id", "category", "classification", "type", "essential", "title"],
    )
    df["date"] = pd.to_datetime(df["date"], errors="coerce", format="mixed")
    df["amount"] = pd.to_numeric(df["amount"], errors="coerce")
    return df


def allocations_frame(allocations: Mapping[str, float]) -> pd.DataFrame:
    df = pd.DataFrame(
        {"bucket": list(allocations.keys()), "target": [float(v) for v in allocations.values()]}
    )
    total = df["target"].sum()
    df["share"] = df["target"] / total if total else 0.0
    return df


def spending_frame(snapshot: InsightSnapshot, cats: Iterable[Category]) -> pd.DataFrame:
    """Month spend per category joined with flags from the snapshot."""
    index = categories_by_id(cats)
    unusual = {u.category_id: u.percentage_increase for u in snapshot.unusual_spending}
    new = {n.category_id for n in snapshot.new_spending}
    rows = [
        {
            "category_id": cid,
            "category": index[cid].name if cid in index else cid,
            "spent": amount,
            "increase": unusual.get(cid, np.nan),
            "new": cid in new,
        }
        for cid, amount in snapshot.monthly_spending_by_category.items()
    ]
    df = pd.DataFrame(rows, columns=["category_id", "category", "spent", "increase", "new"])
    return df.sort_values("spent", ascending=False, kind="stable").reset_index(drop=True)


def trends_frame(snapshot: InsightSnapshot) -> pd.DataFrame:
    df = pd.DataFrame(
        [(m.month, m.income, m.expenses, m.net) for m in snapshot.monthly_trends],
        columns=["month", "income", "expenses", "net"],
    )
    income = df["income"].to_numpy(dtype=float)
    net = df["net"].to_numpy(dtype=float)
    # savings rate in percent; months without income have no rate
    with np.errstate(divide="ignore", invalid="ignore"):
        df["savings_rate"] = np.where(income > 0, net / income * 100, np.nan)
    return df
