from datetime import date
from typing import Callable, Mapping

from budget_engine.domain import Category, CategoryType, Transaction, TransactionType
from budget_engine.functional import is_countable, parse_date

Predicate = Callable[[Transaction], bool]


def by_category(cat_id: str) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return t.category_id == cat_id

    return _filter


def by_date_range(start: date, end: date) -> Predicate:
    """Inclusive on both ends; unparseable dates never match."""
    def _filter(t: Transaction) -> bool:
        d = parse_date(t.date).get_or_else(None)
        return d is not None and start <= d <= end

    return _filter


def by_type(*types: TransactionType) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return t.type in types

    return _filter


def essential(t: Transaction) -> bool:
    return t.is_essential


def countable(t: Transaction) -> bool:
    return is_countable(t)


def classification(t: Transaction, cats: Mapping[str, Category]) -> CategoryType | None:
    cat = cats.get(t.category_id)
    if cat is not None:
        return cat.type
    return t.category_type


def by_classification(cats: Mapping[str, Category], kind: CategoryType) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return classification(t, cats) == kind

    return _filter


def negate(pred: Predicate) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return not pred(t)

    return _filter


def all_of(*preds: Predicate) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return all(p(t) for p in preds)

    return _filter
