from datetime import date

from budget_engine.domain import Category, CategoryType, Transaction, TransactionType
from budget_engine.filters import (
    all_of,
    by_category,
    by_classification,
    by_date_range,
    by_type,
    classification,
    essential,
    negate,
)


def test_by_category():
    t1 = Transaction("t1", "food", 1000, "2024-05-01")
    t2 = Transaction("t2", "transport", 500, "2024-05-02")
    result = list(filter(by_category("food"), [t1, t2]))
    assert len(result) == 1
    assert result[0].id == "t1"


def test_by_date_range_inclusive():
    t1 = Transaction("t1", "food", 1000, "2024-01-01")
    t2 = Transaction("t2", "food", 500, "2024-12-31T23:59:59")
    t3 = Transaction("t3", "food", 500, "2023-05-01")
    t4 = Transaction("t4", "food", 500, "someday")
    result = list(filter(by_date_range(date(2024, 1, 1), date(2024, 12, 31)), [t1, t2, t3, t4]))
    assert [t.id for t in result] == ["t1", "t2"]


def test_by_type_and_essential():
    t1 = Transaction("t1", "rent", 1000, "2024-05-01", TransactionType.EXPENSE, is_essential=True)
    t2 = Transaction("t2", "salary", 3000, "2024-05-01", TransactionType.INCOME)
    assert list(filter(by_type(TransactionType.INCOME), [t1, t2])) == [t2]
    assert list(filter(essential, [t1, t2])) == [t1]
    assert list(filter(negate(essential), [t1, t2])) == [t2]


def test_classification_prefers_taxonomy():
    cats = {"fund": Category("fund", "Fund", CategoryType.SAVINGS)}
    t1 = Transaction("t1", "fund", 100, "2024-05-01", category_type=CategoryType.WANT)
    t2 = Transaction("t2", "unknown", 100, "2024-05-01", category_type=CategoryType.SAVINGS)
    t3 = Transaction("t3", "unknown", 100, "2024-05-01")
    assert classification(t1, cats) == CategoryType.SAVINGS
    assert classification(t2, cats) == CategoryType.SAVINGS
    assert classification(t3, cats) is None
    assert list(filter(by_classification(cats, CategoryType.SAVINGS), [t1, t2, t3])) == [t1, t2]


def test_all_of():
    t1 = Transaction("t1", "food", 100, "2024-05-01", is_essential=True)
    t2 = Transaction("t2", "food", 100, "2024-05-01")
    pred = all_of(by_category("food"), essential)
    assert list(filter(pred, [t1, t2])) == [t1]
