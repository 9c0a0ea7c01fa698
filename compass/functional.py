import math
import re
from abc import ABC, abstractmethod
from datetime import date
from typing import Callable, Generic, Iterable, Mapping, Optional, TypeVar

from compass.domain import Budget, Goal, PERIODS, Transaction, TRANSACTION_TYPES
from compass.formatting import generate_id

T = TypeVar('T')
U = TypeVar('U')
E = TypeVar('E')


class Maybe(Generic[T], ABC):

    @abstractmethod
    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        pass

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    @abstractmethod
    def is_some(self) -> bool:
        pass

    def is_none(self) -> bool:
        return not self.is_some()


class Some(Maybe[T]):

    def __init__(self, value: T):
        self._value = value

    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        return Some(f(self._value))

    def get_or_else(self, default: T) -> T:
        return self._value

    def is_some(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"Some({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Some) and self._value == other._value


class Nothing(Maybe[T]):

    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        return Nothing()

    def get_or_else(self, default: T) -> T:
        return default

    def is_some(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "Nothing()"

    def __eq__(self, other) -> bool:
        return isinstance(other, Nothing)


class Either(Generic[E, T], ABC):

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


_WHITESPACE = re.compile(r"\s+")


def normalize_category(raw) -> str:
    """Trim and collapse whitespace. Case is kept: categories match case-sensitively."""
    if raw is None:
        return ""
    return _WHITESPACE.sub(" ", str(raw)).strip()


def _invalid(error: str, field: str, message: str, value=None) -> Left:
    return Left({"error": error, "field": field, "message": message, "value": value})


def _number(raw, field: str) -> Either[dict, float]:
    if isinstance(raw, bool):
        return _invalid("invalid_amount", field, f"{field} must be a number", raw)
    try:
        amount = float(raw)
    except (TypeError, ValueError):
        return _invalid("invalid_amount", field, f"{field} must be a number", raw)
    if not math.isfinite(amount):
        return _invalid("invalid_amount", field, f"{field} must be a finite number", raw)
    return Right(amount)


def _positive_amount(raw, field: str) -> Either[dict, float]:
    parsed = _number(raw, field)
    if parsed.is_left():
        return parsed
    amount = parsed.get_or_else(0.0)
    if amount <= 0:
        return _invalid("invalid_amount", field, f"{field} must be positive", raw)
    return Right(amount)


def _iso_date(raw, field: str) -> Either[dict, str]:
    if isinstance(raw, date):
        return Right(raw.isoformat())
    try:
        return Right(date.fromisoformat(str(raw).strip()).isoformat())
    except ValueError:
        return _invalid("invalid_date", field, f"{field} must be an ISO date (YYYY-MM-DD)", raw)


def _required_text(raw, field: str) -> Either[dict, str]:
    text = normalize_category(raw)
    if not text:
        return _invalid("missing_field", field, f"{field} is required", raw)
    return Right(text)


def validate_transaction(raw: Mapping) -> Either[dict, Transaction]:
    """Check user input for a new transaction and build it."""
    description = _required_text(raw.get("description"), "description")
    if description.is_left():
        return description
    amount = _positive_amount(raw.get("amount"), "amount")
    if amount.is_left():
        return amount
    tx_type = raw.get("type")
    if tx_type not in TRANSACTION_TYPES:
        return _invalid("invalid_type", "type", f"type must be one of {TRANSACTION_TYPES}", tx_type)
    category = _required_text(raw.get("category"), "category")
    if category.is_left():
        return category
    day = _iso_date(raw.get("date"), "date")
    if day.is_left():
        return day

    return Right(Transaction(
        id=raw.get("id") or generate_id(),
        description=description.get_or_else(""),
        amount=amount.get_or_else(0.0),
        type=tx_type,
        category=category.get_or_else(""),
        date=day.get_or_else(""),
    ))


def validate_budget(raw: Mapping, existing: Iterable[Budget] = ()) -> Either[dict, Budget]:
    """Check user input for a budget; a second budget for the same category and period is refused."""
    category = _required_text(raw.get("category"), "category")
    if category.is_left():
        return category
    limit = _positive_amount(raw.get("limit"), "limit")
    if limit.is_left():
        return limit
    period = raw.get("period")
    if period not in PERIODS:
        return _invalid("invalid_period", "period", f"period must be one of {PERIODS}", period)

    budget_id = raw.get("id") or generate_id()
    cat = category.get_or_else("")
    for b in existing:
        if b.id != budget_id and b.category == cat and b.period == period:
            return Left({
                "error": "duplicate_budget",
                "field": "category",
                "message": f"A {period} budget for {cat} already exists",
                "value": b.id,
            })

    return Right(Budget(id=budget_id, category=cat, limit=limit.get_or_else(0.0), period=period))


def validate_goal(raw: Mapping) -> Either[dict, Goal]:
    description = _required_text(raw.get("description"), "description")
    if description.is_left():
        return description
    target = _positive_amount(raw.get("target_amount"), "target_amount")
    if target.is_left():
        return target

    current_raw = raw.get("current_amount")
    current = 0.0
    if current_raw not in (None, ""):
        parsed = _number(current_raw, "current_amount")
        if parsed.is_left():
            return parsed
        current = parsed.get_or_else(0.0)
    if current < 0:
        return _invalid("invalid_amount", "current_amount", "current_amount cannot be negative", current_raw)

    deadline: Optional[str] = None
    if raw.get("deadline"):
        parsed = _iso_date(raw["deadline"], "deadline")
        if parsed.is_left():
            return parsed
        deadline = parsed.get_or_else(None)

    return Right(Goal(
        id=raw.get("id") or generate_id(),
        description=description.get_or_else(""),
        target_amount=target.get_or_else(0.0),
        current_amount=current,
        deadline=deadline,
    ))


def find_budget(budgets: Iterable[Budget], category: str, period: Optional[str] = None) -> Maybe[Budget]:
    """First budget in collection order for ``category`` (and ``period`` when given)."""
    for b in budgets:
        if b.category == category and (period is None or b.period == period):
            return Some(b)
    return Nothing()
