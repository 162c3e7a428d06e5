from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional, Union


class CategoryType(str, Enum):
    NEED = "need"
    WANT = "want"
    SAVINGS = "savings"
    CUSTOM = "custom"


class TransactionType(str, Enum):
    EXPENSE = "expense"
    INCOME = "income"
    TRANSFER = "transfer"
    SAVINGS = "savings"
    INVESTMENT = "investment"
    DEBT_PAYMENT = "debt_payment"


class RecurrenceFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    type: CategoryType = CategoryType.CUSTOM   # need / want / savings / custom
    icon: str = ""
    color: str = ""
    budget_percentage: Optional[float] = None
    monthly_limit: Optional[float] = None
    warning_threshold: Optional[float] = None  # percent of monthly_limit, 0-100
    is_default: bool = False
    is_archived: bool = False


@dataclass(frozen=True)
class Recurrence:
    frequency: RecurrenceFrequency
    end_date: Optional[str] = None
    reminder_enabled: bool = False


@dataclass(frozen=True)
class Transaction:
    id: str
    category_id: str
    amount: float    # always >= 0, direction comes from type
    date: str        # ISO date or datetime, e.g. "2025-09-01" or "2025-09-01T10:00:00"
    type: TransactionType = TransactionType.EXPENSE
    is_essential: bool = False
    category_type: Optional[CategoryType] = None  # denormalized copy, taxonomy wins
    recurrence: Optional[Recurrence] = None
    title: str = ""


# Budget rules: one variant per rule, only the custom one carries data.
@dataclass(frozen=True)
class Rule503020:
    name: str = field(default="50/30/20", init=False)


@dataclass(frozen=True)
class Rule702010:
    name: str = field(default="70/20/10", init=False)


@dataclass(frozen=True)
class Rule156520:
    name: str = field(default="15/65/20", init=False)


@dataclass(frozen=True)
class CustomRuleEntry:
    category_id: str
    percentage: float


@dataclass(frozen=True)
class CustomRule:
    entries: tuple[CustomRuleEntry, ...] = ()
    name: str = field(default="custom", init=False)


BudgetRule = Union[Rule503020, Rule702010, Rule156520, CustomRule]

RULE_NAMES = ("50/30/20", "70/20/10", "15/65/20", "custom")


def rule_from_name(name: str, custom_rules: Optional[list[dict]] = None) -> BudgetRule:
    """Build a rule variant from its display name.

    custom_rules: list of {"category_id": ..., "percentage": ...} used only for "custom".
    """
    if name == "50/30/20":
        return Rule503020()
    if name == "70/20/10":
        return Rule702010()
    if name == "15/65/20":
        return Rule156520()
    if name == "custom":
        entries = tuple(
            CustomRuleEntry(category_id=r["category_id"], percentage=float(r["percentage"]))
            for r in (custom_rules or [])
        )
        return CustomRule(entries=entries)
    raise ValueError(f"Unknown budget rule: {name!r}")


def custom_percentages(rule: BudgetRule) -> dict[str, float]:
    """Percentage per category id of a custom rule; empty for the fixed splits."""
    if not isinstance(rule, CustomRule):
        return {}
    percentages: dict[str, float] = {}
    for entry in rule.entries:
        percentages[entry.category_id] = percentages.get(entry.category_id, 0.0) + entry.percentage
    return percentages


@dataclass(frozen=True)
class SavingsGoal:
    target: float
    deadline: str = ""
    current_amount: float = 0.0
    name: str = ""


@dataclass(frozen=True)
class BudgetConfig:
    rule: BudgetRule
    monthly_income: float
    savings_goal: Optional[SavingsGoal] = None


@dataclass(frozen=True)
class UnusualSpending:
    category_id: str
    amount: float
    percentage_increase: float


# Spending in a category that had nothing the month before; no ratio exists.
@dataclass(frozen=True)
class NewSpending:
    category_id: str
    amount: float


@dataclass(frozen=True)
class CategoryAlert:
    category_id: str
    kind: str        # "over_limit" or "warning"
    spent: float
    limit: float
    percent_used: float


@dataclass(frozen=True)
class MonthlyTrend:
    month: str       # "YYYY-MM"
    income: float
    expenses: float
    net: float


@dataclass(frozen=True)
class CategoryTrend:
    average: float
    current: float
    percentage_change: float
    direction: str   # "increasing", "decreasing" or "stable"


@dataclass(frozen=True)
class InsightSnapshot:
    as_of: date
    allocations: dict[str, float]
    guilt_free_balance: float
    monthly_spending_by_category: dict[str, float]
    unusual_spending: tuple[UnusualSpending, ...]
    new_spending: tuple[NewSpending, ...]
    projected_savings: float
    savings_progress: float = 0.0
    category_alerts: tuple[CategoryAlert, ...] = ()
    monthly_trends: tuple[MonthlyTrend, ...] = ()
    category_trends: dict[str, CategoryTrend] = field(default_factory=dict)
    spending_by_classification: dict[CategoryType, float] = field(default_factory=dict)
    income_by_category: dict[str, float] = field(default_factory=dict)
