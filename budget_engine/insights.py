"""Derived financial insights over a ledger snapshot.

Everything here is a pure function of (transactions, categories, budget
config, as_of date). Missing data gives neutral values (mostly 0) instead of
errors; the only case reported as unavailable is a custom budget rule with no
percentages, see compute_insights().
"""

from datetime import date
from typing import Iterable, Optional

from budget_engine.aggregation import (
    category_spending,
    income_by_category,
    iter_month_transactions,
    monthly_spending_by_category,
    monthly_totals,
    shift_months,
    spending_by_classification,
)
from budget_engine.allocation import resolve_allocations
from budget_engine.config import Config
from budget_engine.domain import (
    BudgetConfig,
    Category,
    CategoryAlert,
    CategoryTrend,
    CategoryType,
    InsightSnapshot,
    MonthlyTrend,
    NewSpending,
    SavingsGoal,
    UnusualSpending,
)
from budget_engine.filters import by_classification, countable, essential, negate
from budget_engine.functional import Either, Left, Right, check_category_limit, pipe
from budget_engine.logger import get_logger
from budget_engine.memo import average_category_spending
from budget_engine.transforms import Ledger, active_categories, categories_by_id, ledger_values

logger = get_logger()


def _income(config: BudgetConfig) -> float:
    return max(0.0, float(config.monthly_income or 0))


def guilt_free_balance(
    trans: Ledger,
    cats: Iterable[Category],
    config: BudgetConfig,
    as_of: Optional[date] = None,
) -> float:
    """Income left for discretionary spending this month.

    monthly income - essential spending - savings contributions - planned savings.
    Negative means over budget.
    """
    as_of = as_of or date.today()
    index = categories_by_id(cats)
    month = tuple(iter_month_transactions(trans, as_of))

    essential_expenses = sum(t.amount for t in month if essential(t))
    is_savings = by_classification(index, CategoryType.SAVINGS)
    savings_contribution = sum(t.amount for t in month if is_savings(t))
    planned_savings = resolve_allocations(config.rule, config.monthly_income).map(
        lambda a: a.get("savings", 0.0)
    ).get_or_else(0.0)

    balance = _income(config) - essential_expenses - savings_contribution - planned_savings
    logger.debug(
        f"Guilt-free balance {balance:.2f} (essential={essential_expenses:.2f}, "
        f"savings={savings_contribution:.2f}, planned={planned_savings:.2f})"
    )
    return float(balance)


def detect_unusual_spending(
    trans: Ledger,
    cats: Iterable[Category],
    as_of: Optional[date] = None,
    threshold: float = 0.20,
    new_spending_floor: float = 0.0,
) -> tuple[tuple[UnusualSpending, ...], tuple[NewSpending, ...]]:
    """Compare each category's spend this month with the previous calendar month.

    Growth strictly above ``threshold`` is reported as UnusualSpending.
    Categories with nothing last month have no growth ratio; when this
    month's spend is positive and at least ``new_spending_floor`` they are
    reported as NewSpending instead.
    """
    as_of = as_of or date.today()
    last_month = shift_months(as_of, -1)
    ledger = ledger_values(trans)

    unusual: list[UnusualSpending] = []
    new: list[NewSpending] = []
    seen: set[str] = set()

    for cat in cats:
        if cat.id in seen:
            continue
        seen.add(cat.id)

        current = category_spending(ledger, cat.id, as_of)
        last = category_spending(ledger, cat.id, last_month)

        if last == 0:
            if current > 0 and current >= new_spending_floor:
                new.append(NewSpending(category_id=cat.id, amount=current))
            continue

        increase = (current - last) / last
        if increase > threshold:
            unusual.append(UnusualSpending(category_id=cat.id, amount=current, percentage_increase=increase))

    if unusual or new:
        logger.debug(f"Flagged {len(unusual)} unusual and {len(new)} new spending categories")
    return tuple(unusual), tuple(new)


def average_monthly_expenses(
    trans: Ledger,
    cats: Iterable[Category],
    window_months: int = 12,
) -> float:
    """All non-savings amounts spread over a fixed window (a year by default)."""
    if window_months <= 0:
        return 0.0
    not_savings = negate(by_classification(categories_by_id(cats), CategoryType.SAVINGS))
    total = pipe(
        ledger_values(trans),
        lambda ts: filter(countable, ts),
        lambda ts: filter(not_savings, ts),
        lambda ts: sum(t.amount for t in ts),
    )
    return total / window_months


def project_savings(
    trans: Ledger,
    cats: Iterable[Category],
    config: BudgetConfig,
    months_ahead: int = 12,
    window_months: int = 12,
) -> float:
    """Current savings plus (income - average monthly expenses) for ``months_ahead`` months.

    A negative result is a projected shortfall.
    """
    current_savings = config.savings_goal.current_amount if config.savings_goal else 0.0
    monthly = _income(config) - average_monthly_expenses(trans, cats, window_months)
    return float(current_savings + monthly * months_ahead)


def savings_progress(goal: Optional[SavingsGoal]) -> float:
    if goal is None or not goal.target or goal.target <= 0:
        return 0.0
    return goal.current_amount / goal.target * 100


def category_alerts(
    trans: Ledger,
    cats: Iterable[Category],
    as_of: Optional[date] = None,
) -> tuple[CategoryAlert, ...]:
    as_of = as_of or date.today()
    ledger = ledger_values(trans)
    alerts = []
    for cat in cats:
        if not cat.monthly_limit:
            continue
        spent = category_spending(ledger, cat.id, as_of)
        result = check_category_limit(cat, spent)
        if result.is_left():
            err = result.get_error()
            kind = "over_limit" if err["error"] == "limit_exceeded" else "warning"
            alerts.append(CategoryAlert(
                category_id=cat.id,
                kind=kind,
                spent=spent,
                limit=err["limit"],
                percent_used=err["percent_used"],
            ))
    return tuple(alerts)


def monthly_trends(
    trans: Ledger, as_of: Optional[date] = None, months: int = 3
) -> tuple[MonthlyTrend, ...]:
    as_of = as_of or date.today()
    return tuple(
        MonthlyTrend(month=m, income=inc, expenses=exp, net=inc - exp)
        for m, inc, exp in monthly_totals(trans, as_of, months)
    )


def category_trends(
    trans: Ledger,
    cats: Iterable[Category],
    as_of: Optional[date] = None,
    months: int = 3,
    trend_threshold: float = 0.05,
) -> dict[str, CategoryTrend]:
    """This month against the average of the previous ``months`` months, per category."""
    as_of = as_of or date.today()
    ledger = ledger_values(trans)
    trends = {}
    for cat in cats:
        average = average_category_spending(cat.id, ledger, as_of, months)
        current = category_spending(ledger, cat.id, as_of)
        if average > 0:
            change = (current - average) / average
        else:
            change = 0.0
        if change > trend_threshold or (average == 0 and current > 0):
            direction = "increasing"
        elif change < -trend_threshold:
            direction = "decreasing"
        else:
            direction = "stable"
        trends[cat.id] = CategoryTrend(
            average=average, current=current, percentage_change=change, direction=direction
        )
    return trends


def compute_insights(
    trans: Ledger,
    cats: Iterable[Category],
    config: BudgetConfig,
    as_of: Optional[date] = None,
    settings: Optional[Config] = None,
) -> Either[dict, InsightSnapshot]:
    """Build the full insight snapshot, or Left when no allocation can be resolved."""
    settings = settings or Config.default()
    as_of = as_of or date.today()
    ledger = ledger_values(trans)
    active = active_categories(cats)

    allocation = resolve_allocations(config.rule, config.monthly_income)
    if allocation.is_none():
        logger.warning("Insights unavailable: custom budget rule has no percentages")
        return Left({
            "error": "allocation_unavailable",
            "message": "Custom budget rule has no category percentages; finish setting up the split",
            "rule": config.rule.name,
        })

    unusual, new = detect_unusual_spending(
        ledger,
        active,
        as_of,
        threshold=settings.unusual_spending_threshold,
        new_spending_floor=settings.new_spending_floor,
    )

    snapshot = InsightSnapshot(
        as_of=as_of,
        allocations=allocation.get_or_else({}),
        guilt_free_balance=guilt_free_balance(ledger, active, config, as_of),
        monthly_spending_by_category=monthly_spending_by_category(ledger, active, as_of),
        unusual_spending=unusual,
        new_spending=new,
        projected_savings=project_savings(
            ledger,
            active,
            config,
            months_ahead=settings.projection_months,
            window_months=settings.expense_window_months,
        ),
        savings_progress=savings_progress(config.savings_goal),
        category_alerts=category_alerts(ledger, active, as_of),
        monthly_trends=monthly_trends(ledger, as_of, settings.trend_months),
        category_trends=category_trends(
            ledger, active, as_of, settings.trend_months, settings.trend_threshold
        ),
        spending_by_classification=spending_by_classification(ledger, active, as_of),
        income_by_category=income_by_category(ledger, as_of),
    )
    logger.debug(f"Computed insights for {as_of.isoformat()} over {len(ledger)} transactions")
    return Right(snapshot)
