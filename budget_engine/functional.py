import math
from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any, Callable, Generic, Mapping, TypeVar

from budget_engine.domain import Category, CustomRule, Transaction

T = TypeVar('T')
U = TypeVar('U')
E = TypeVar('E')


class Maybe(Generic[T], ABC):
    """Optional value: Some(value) or Nothing()."""

    @abstractmethod
    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        pass

    @abstractmethod
    def bind(self, f: Callable[[T], 'Maybe[U]']) -> 'Maybe[U]':
        pass

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    def is_some(self) -> bool:
        return not self.is_none()

    @abstractmethod
    def is_none(self) -> bool:
        pass


class Some(Maybe[T]):

    def __init__(self, value: T):
        self._value = value

    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        return Some(f(self._value))

    def bind(self, f: Callable[[T], 'Maybe[U]']) -> 'Maybe[U]':
        return f(self._value)

    def get_or_else(self, default: T) -> T:
        return self._value

    def is_none(self) -> bool:
        return False

    def __repr__(self) -> str:
        return f"Some({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Some) and self._value == other._value


class Nothing(Maybe[T]):

    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        return Nothing()

    def bind(self, f: Callable[[T], 'Maybe[U]']) -> 'Maybe[U]':
        return Nothing()

    def get_or_else(self, default: T) -> T:
        return default

    def is_none(self) -> bool:
        return True

    def __repr__(self) -> str:
        return "Nothing()"

    def __eq__(self, other) -> bool:
        return isinstance(other, Nothing)


class Either(Generic[E, T], ABC):
    """Right(value) on success, Left(error) otherwise. Errors are plain dicts."""

    @abstractmethod
    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        pass

    @abstractmethod
    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        pass

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    @abstractmethod
    def is_right(self) -> bool:
        pass

    def is_left(self) -> bool:
        return not self.is_right()

    @abstractmethod
    def get_error(self) -> E:
        pass


class Right(Either[E, T]):

    def __init__(self, value: T):
        self._value = value

    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        return Right(f(self._value))

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return f(self._value)

    def get_or_else(self, default: T) -> T:
        return self._value

    def is_right(self) -> bool:
        return True

    def get_error(self) -> E:
        raise ValueError("Cannot get error from Right")

    def __repr__(self) -> str:
        return f"Right({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Right) and self._value == other._value


class Left(Either[E, T]):

    def __init__(self, error: E):
        self._error = error

    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        return Left(self._error)

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return Left(self._error)

    def get_or_else(self, default: T) -> T:
        return default

    def is_right(self) -> bool:
        return False

    def get_error(self) -> E:
        return self._error

    def __repr__(self) -> str:
        return f"Left({self._error!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Left) and self._error == other._error


def parse_date(value: Any) -> Maybe[date]:
    """Parse an ISO date/datetime string (or date object) into a calendar date."""
    if isinstance(value, datetime):
        return Some(value.date())
    if isinstance(value, date):
        return Some(value)
    if not isinstance(value, str) or not value.strip():
        return Nothing()
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return Nothing()
    return Some(parsed.date())


def valid_amount(amount: Any) -> bool:
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        return False
    return math.isfinite(amount) and amount >= 0


def is_countable(t: Transaction) -> bool:
    """A transaction takes part in aggregation only with a sane amount and a real date."""
    return valid_amount(t.amount) and parse_date(t.date).is_some()


def validate_transaction(
    t: Transaction,
    cats: Mapping[str, Category],
) -> Either[dict, Transaction]:

    if not valid_amount(t.amount):
        return Left({
            "error": "invalid_amount",
            "message": f"Transaction {t.id} has an invalid amount {t.amount!r}",
            "transaction_id": t.id,
            "amount": t.amount,
        })

    if parse_date(t.date).is_none():
        return Left({
            "error": "invalid_date",
            "message": f"Transaction {t.id} has an unparseable date {t.date!r}",
            "transaction_id": t.id,
            "date": t.date,
        })

    if t.category_id not in cats:
        return Left({
            "error": "category_not_found",
            "message": f"Category with ID {t.category_id} does not exist",
            "transaction_id": t.id,
            "category_id": t.category_id,
        })

    return Right(t)


def validate_custom_rule(rule: CustomRule) -> Either[dict, CustomRule]:
    if not rule.entries:
        return Left({
            "error": "custom_rule_empty",
            "message": "Custom budget rule has no category percentages",
        })

    negative = [e.category_id for e in rule.entries if e.percentage < 0]
    if negative:
        return Left({
            "error": "negative_percentage",
            "message": f"Negative percentages for categories: {', '.join(negative)}",
            "category_ids": negative,
        })

    total = sum(e.percentage for e in rule.entries)
    if total > 100:
        return Left({
            "error": "over_allocated",
            "message": f"Custom percentages add up to {total:g}%, more than 100%",
            "total_percentage": total,
            "over_by": total - 100,
        })

    return Right(rule)


def check_category_limit(cat: Category, spent: float) -> Either[dict, Category]:
    """Compare a month's spend with the category's monthly limit and warning threshold."""
    if not cat.monthly_limit or cat.monthly_limit <= 0:
        return Right(cat)

    percent_used = spent / cat.monthly_limit * 100
    if spent > cat.monthly_limit:
        return Left({
            "error": "limit_exceeded",
            "message": f"Monthly limit exceeded for category {cat.id}",
            "category_id": cat.id,
            "limit": cat.monthly_limit,
            "spent": spent,
            "over_budget": spent - cat.monthly_limit,
            "percent_used": percent_used,
        })

    if cat.warning_threshold and percent_used >= cat.warning_threshold:
        return Left({
            "error": "limit_warning",
            "message": f"Category {cat.id} has used {percent_used:.0f}% of its monthly limit",
            "category_id": cat.id,
            "limit": cat.monthly_limit,
            "spent": spent,
            "percent_used": percent_used,
        })

    return Right(cat)


def pipe(x, *funcs):
    """Pipe a value through a series of functions.

    pipe(x, f, g, h) == h(g(f(x)))
    """
    res = x
    for f in funcs:
        res = f(res)
    return res
