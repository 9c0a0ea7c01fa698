"""Spend aggregation over in-memory transaction collections.

Every function here is a filter followed by a sum. Nothing is cached: callers
pass the live transactions and a reference date on every read.
"""

from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, NamedTuple, Optional, Tuple

from compass.domain import Budget, EXPENSE, INCOME, Interval, Transaction
from compass.logging_setup import get_logger
from compass.money import cents
from compass.periods import DateLike, resolve_period, trailing_months

logger = get_logger(__name__)


class SpendTotal(NamedTuple):
    total: float
    matched: int
    skipped: int  # records dropped because their date could not be parsed


def parse_day(value) -> Optional[date]:
    """Parse a stored transaction date, returning ``None`` when it is unusable."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def by_category(category: str):
    def _filter(t: Transaction) -> bool:
        return t.category == category

    return _filter


def by_type(tx_type: str):
    def _filter(t: Transaction) -> bool:
        return t.type == tx_type

    return _filter


def _sum_in_interval(
    trans: Iterable[Transaction],
    interval: Interval,
    pred: Callable[[Transaction], bool],
) -> SpendTotal:
    total = cents(0)
    matched = 0
    skipped = 0
    for t in trans:
        if not pred(t):
            continue
        day = parse_day(t.date)
        if day is None:
            skipped += 1
            logger.warning("skipping transaction %s with unparseable date %r", t.id, t.date)
            continue
        if interval.contains(day):
            total += cents(t.amount)
            matched += 1
    return SpendTotal(float(total), matched, skipped)


def spend_in_interval(trans: Iterable[Transaction], category: str, interval: Interval) -> SpendTotal:
    """Sum expense amounts for ``category`` (exact, case-sensitive) dated inside ``interval``."""
    is_expense = by_type(EXPENSE)
    in_category = by_category(category)
    return _sum_in_interval(trans, interval, lambda t: is_expense(t) and in_category(t))


def spent_for_budget(trans: Iterable[Transaction], budget: Budget, reference: DateLike) -> SpendTotal:
    return spend_in_interval(trans, budget.category, resolve_period(budget.period, reference))


def expenses_in_interval(trans: Iterable[Transaction], interval: Interval) -> SpendTotal:
    return _sum_in_interval(trans, interval, by_type(EXPENSE))


def income_in_interval(trans: Iterable[Transaction], interval: Interval) -> SpendTotal:
    return _sum_in_interval(trans, interval, by_type(INCOME))


def net_balance(trans: Iterable[Transaction]) -> float:
    """Income minus expenses over the whole collection."""
    balance = cents(0)
    for t in trans:
        balance += cents(t.amount) if t.type == INCOME else -cents(t.amount)
    return float(balance)


def spending_by_category(trans: Iterable[Transaction], interval: Interval) -> Dict[str, float]:
    totals: Dict[str, Decimal] = defaultdict(Decimal)
    for t in trans:
        if t.type != EXPENSE:
            continue
        day = parse_day(t.date)
        if day is None:
            logger.warning("skipping transaction %s with unparseable date %r", t.id, t.date)
            continue
        if interval.contains(day):
            totals[t.category] += cents(t.amount)
    return {cat: float(amount) for cat, amount in totals.items()}


def top_spending_category(trans: Iterable[Transaction], interval: Interval) -> Optional[Tuple[str, float]]:
    """The category with the largest expense total in ``interval``, if any expense exists."""
    totals = spending_by_category(trans, interval)
    if not totals:
        return None
    # ties resolve to the category seen first
    return max(totals.items(), key=lambda item: item[1])


def spending_trend(trans: Iterable[Transaction], reference: DateLike, months: int = 6) -> List[Tuple[str, float]]:
    """Expense totals per month for the trailing ``months`` months, oldest first."""
    trans = tuple(trans)
    trend = []
    for interval in trailing_months(reference, months):
        label = interval.start.strftime("%b %Y")
        trend.append((label, expenses_in_interval(trans, interval).total))
    return trend
