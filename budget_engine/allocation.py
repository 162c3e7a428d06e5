from typing import Mapping

from budget_engine.domain import BudgetRule, CustomRule, Rule156520, Rule503020, Rule702010
from budget_engine.functional import Maybe, Nothing, Some
from budget_engine.logger import get_logger

logger = get_logger()

FIXED_SPLITS: dict[str, dict[str, float]] = {
    "50/30/20": {"needs": 0.50, "wants": 0.30, "savings": 0.20},
    "70/20/10": {"expenses": 0.70, "savings": 0.20, "debt_or_donation": 0.10},
    "15/65/20": {"wants": 0.15, "needs": 0.65, "savings": 0.20},
}


def _split(income: float, shares: Mapping[str, float]) -> dict[str, float]:
    return {bucket: income * share for bucket, share in shares.items()}


def _custom(income: float, rule: CustomRule) -> Maybe[dict[str, float]]:
    if not rule.entries:
        return Nothing()

    allocations: dict[str, float] = {}
    for entry in rule.entries:
        if entry.percentage < 0:
            logger.warning(
                f"Skipping custom rule entry {entry.category_id} with negative percentage {entry.percentage}"
            )
            continue
        allocations[entry.category_id] = allocations.get(entry.category_id, 0.0) + income * (entry.percentage / 100)

    total = sum(e.percentage for e in rule.entries if e.percentage >= 0)
    if total > 100:
        logger.warning(f"Custom budget rule allocates {total:g}% of income")

    return Some(allocations)


def resolve_allocations(rule: BudgetRule, monthly_income: float) -> Maybe[dict[str, float]]:
    """Turn a budget rule and monthly income into target amounts per bucket.

    Fixed rules return their named buckets (needs / wants / savings, or
    expenses / savings / debt_or_donation for 70/20/10). The custom rule
    returns one amount per category id. A custom rule with no entries gives
    Nothing(): there is no allocation to show and callers must say so.
    """
    income = max(0.0, float(monthly_income or 0))

    match rule:
        case Rule503020() | Rule702010() | Rule156520():
            return Some(_split(income, FIXED_SPLITS[rule.name]))
        case CustomRule():
            return _custom(income, rule)
        case _:
            raise TypeError(f"Unsupported budget rule: {rule!r}")


def allocation_total(allocations: Mapping[str, float]) -> float:
    return sum(allocations.values())
