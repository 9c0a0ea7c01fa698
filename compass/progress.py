from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Tuple

from compass.aggregation import expenses_in_interval, spent_for_budget
from compass.domain import Budget, Goal, Interval, MONTHLY, Transaction
from compass.money import cents, total
from compass.periods import DateLike, resolve_period


def percentage(current: float, total: float) -> int:
    """Whole-number percentage of ``current`` against ``total``; 0 when total is 0.

    Halves round up, so 12.5% reads as 13.
    """
    if total == 0:
        return 0
    ratio = Decimal(str(current)) / Decimal(str(total)) * 100
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def budget_progress(spent: float, limit: float) -> int:
    """Spent as a percentage of the limit. Values above 100 mean over budget."""
    if limit < 0:
        raise ValueError(f"Budget limit must not be negative, got {limit}")
    return percentage(spent, limit)


def overage(spent: float, limit: float) -> float:
    over = cents(spent) - cents(limit)
    return float(over) if over > 0 else 0.0


@dataclass(frozen=True)
class BudgetStatus:
    budget: Budget
    interval: Interval
    spent: float
    progress: int
    remaining: float
    overage: float
    skipped: int = 0

    @property
    def is_over(self) -> bool:
        return cents(self.spent) > cents(self.budget.limit)


def budget_status(budget: Budget, trans: Iterable[Transaction], reference: DateLike) -> BudgetStatus:
    interval = resolve_period(budget.period, reference)
    spend = spent_for_budget(trans, budget, reference)
    return BudgetStatus(
        budget=budget,
        interval=interval,
        spent=spend.total,
        progress=budget_progress(spend.total, budget.limit),
        remaining=float(cents(budget.limit) - cents(spend.total)),
        overage=overage(spend.total, budget.limit),
        skipped=spend.skipped,
    )


def budget_statuses(
    budgets: Iterable[Budget], trans: Iterable[Transaction], reference: DateLike
) -> Tuple[BudgetStatus, ...]:
    trans = tuple(trans)
    return tuple(budget_status(b, trans, reference) for b in budgets)


@dataclass(frozen=True)
class Overview:
    """Headline figures for the current month across all monthly budgets."""

    interval: Interval
    spent: float
    limit: float
    progress: int


def monthly_overview(
    budgets: Iterable[Budget], trans: Iterable[Transaction], reference: DateLike
) -> Overview:
    interval = resolve_period(MONTHLY, reference)
    limit = float(total(b.limit for b in budgets if b.period == MONTHLY))
    spent = expenses_in_interval(trans, interval).total
    return Overview(interval=interval, spent=spent, limit=limit, progress=percentage(spent, limit))


def goal_progress(goal: Goal) -> int:
    return percentage(goal.current_amount, goal.target_amount)


def goal_remaining(goal: Goal) -> float:
    return max(0.0, float(cents(goal.target_amount) - cents(goal.current_amount)))
