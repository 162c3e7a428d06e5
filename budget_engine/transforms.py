import json
from dataclasses import replace
from typing import Iterable, Mapping, Optional, Tuple, Union

from budget_engine.domain import (
    BudgetConfig,
    BudgetRule,
    Category,
    CategoryType,
    Recurrence,
    RecurrenceFrequency,
    SavingsGoal,
    Transaction,
    TransactionType,
    rule_from_name,
)

Ledger = Union[Mapping[str, Transaction], Iterable[Transaction]]


DEFAULT_CATEGORIES: Tuple[Category, ...] = (
    Category("income_salary", "Salary", CategoryType.NEED, "💰", "#4CAF50", is_default=True),
    Category("income_business", "Business Income", CategoryType.NEED, "💼", "#2196F3", is_default=True),
    Category("income_investments", "Investment Returns", CategoryType.SAVINGS, "📈", "#9C27B0", is_default=True),
    Category("expense_utilities", "Utilities", CategoryType.NEED, "⚡", "#F44336", is_default=True),
    Category("expense_rent", "Rent/Mortgage", CategoryType.NEED, "🏠", "#E91E63", is_default=True),
    Category("expense_groceries", "Groceries", CategoryType.NEED, "🛒", "#4CAF50", is_default=True),
    Category("expense_transportation", "Transportation", CategoryType.NEED, "🚌", "#FF9800", is_default=True),
    Category("expense_insurance", "Insurance", CategoryType.NEED, "🛡", "#607D8B", is_default=True),
    Category("expense_healthcare", "Healthcare", CategoryType.NEED, "🩺", "#00BCD4", is_default=True),
    Category("expense_entertainment", "Entertainment", CategoryType.WANT, "🎬", "#673AB7", is_default=True),
    Category("expense_dining", "Dining Out", CategoryType.WANT, "🍽", "#FF5722", is_default=True),
    Category("expense_shopping", "Shopping", CategoryType.WANT, "🛍", "#E91E63", is_default=True),
    Category("expense_education", "Education", CategoryType.NEED, "🎓", "#3F51B5", is_default=True),
    Category("expense_debt", "Debt Payments", CategoryType.NEED, "💳", "#795548", is_default=True),
    Category("expense_other", "Other", CategoryType.CUSTOM, "📦", "#9E9E9E", is_default=True),
)


def default_categories() -> Tuple[Category, ...]:
    return DEFAULT_CATEGORIES


def create_category(
    cats: Tuple[Category, ...],
    name: str,
    type: CategoryType = CategoryType.CUSTOM,
    **attrs,
) -> Tuple[Tuple[Category, ...], Category]:
    """Append a user category with the lowest free ``custom_<n>`` id; returns (new tuple, category)."""
    taken = {c.id for c in cats}
    n = 1
    while f"custom_{n}" in taken:
        n += 1
    cat = Category(id=f"custom_{n}", name=name, type=type, is_default=False, **attrs)
    return cats + (cat,), cat


def ledger_values(trans: Ledger) -> Tuple[Transaction, ...]:
    """Accept a keyed ledger (id -> Transaction) or any iterable of transactions."""
    if isinstance(trans, Mapping):
        return tuple(trans.values())
    return tuple(trans)


def categories_by_id(cats: Iterable[Category]) -> dict[str, Category]:
    return {c.id: c for c in cats}


def active_categories(cats: Iterable[Category]) -> Tuple[Category, ...]:
    return tuple(c for c in cats if not c.is_archived)


def add_transaction(
    trans: Tuple[Transaction, ...], t: Transaction
) -> Tuple[Transaction, ...]:
    return trans + (t,)


def update_budget_config(
    config: BudgetConfig,
    rule: Optional[BudgetRule] = None,
    monthly_income: Optional[float] = None,
    savings_goal: Optional[SavingsGoal] = None,
) -> BudgetConfig:
    changes = {}
    if rule is not None:
        changes["rule"] = rule
    if monthly_income is not None:
        changes["monthly_income"] = monthly_income
    if savings_goal is not None:
        changes["savings_goal"] = savings_goal
    return replace(config, **changes)


def income_transactions(trans: Tuple[Transaction, ...]) -> Tuple[Transaction, ...]:
    return tuple(filter(lambda t: t.type == TransactionType.INCOME, trans))


def expense_transactions(trans: Tuple[Transaction, ...]) -> Tuple[Transaction, ...]:
    return tuple(filter(lambda t: t.type == TransactionType.EXPENSE, trans))


def _category(data: dict) -> Category:
    return Category(**{**data, "type": CategoryType(data.get("type", "custom"))})


def _transaction(data: dict) -> Transaction:
    fields = dict(data)
    fields["type"] = TransactionType(fields.get("type", "expense"))
    if fields.get("category_type") is not None:
        fields["category_type"] = CategoryType(fields["category_type"])
    if fields.get("recurrence") is not None:
        rec = dict(fields["recurrence"])
        rec["frequency"] = RecurrenceFrequency(rec["frequency"])
        fields["recurrence"] = Recurrence(**rec)
    return Transaction(**fields)


def _budget_config(data: dict) -> BudgetConfig:
    goal = data.get("savings_goal")
    return BudgetConfig(
        rule=rule_from_name(data.get("rule", "50/30/20"), data.get("custom_rules")),
        monthly_income=float(data.get("monthly_income", 0)),
        savings_goal=SavingsGoal(**goal) if goal else None,
    )


def load_seed(
    path: str,
) -> Tuple[
    Tuple[Category, ...],
    Tuple[Transaction, ...],
    BudgetConfig,
]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    categories = tuple(_category(c) for c in data.get("categories", [])) or DEFAULT_CATEGORIES
    transactions = tuple(_transaction(t) for t in data.get("transactions", []))
    budget_config = _budget_config(data.get("budget_config", {}))

    return categories, transactions, budget_config
