"""Payment simulation against category budgets.

A simulation is a read-only check: it never records anything. Recording the
payment afterwards is a separate, explicit call to ``record_payment``.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Tuple

from compass import config
from compass.aggregation import spend_in_interval
from compass.domain import Budget, EXPENSE, Interval, Transaction
from compass.events import BUDGET_ALERT, EventBus, TRANSACTION_ADDED, event_bus
from compass.formatting import format_currency, generate_id
from compass.functional import find_budget
from compass.logging_setup import get_logger
from compass.money import cents
from compass.periods import DateLike, as_date, resolve_period
from compass.transforms import add_transaction

logger = get_logger(__name__)


class Outcome(str, Enum):
    NO_BUDGET_FOUND = "no_budget_found"
    WITHIN_BUDGET = "within_budget"
    OVER_BUDGET = "over_budget"


@dataclass(frozen=True)
class PaymentSimulation:
    outcome: Outcome
    amount: float
    category: str
    budget: Optional[Budget] = None
    interval: Optional[Interval] = None
    spent: float = 0.0
    remaining: Optional[float] = None
    overage: float = 0.0
    skipped: int = 0  # same-category expenses left out for unreadable dates

    @property
    def checked(self) -> bool:
        return self.outcome is not Outcome.NO_BUDGET_FOUND

    def message(self, currency: str = "USD") -> str:
        amount = format_currency(self.amount, currency)
        if self.outcome is Outcome.NO_BUDGET_FOUND:
            return (f"No budget is set for \"{self.category}\". "
                    f"Payment of {amount} simulated without a budget check.")
        if self.outcome is Outcome.WITHIN_BUDGET:
            return (f"Payment of {amount} for \"{self.category}\" is within budget "
                    f"({format_currency(float(cents(self.remaining) - cents(self.amount)), currency)} left afterwards).")
        return (f"Payment of {amount} for \"{self.category}\" would exceed your "
                f"{self.budget.period} budget by {format_currency(self.overage, currency)}.")


def _matching_budget(budgets: Iterable[Budget], category: str, policy: str) -> Optional[Budget]:
    if policy == "fixed":
        return find_budget(budgets, category, config.policy_period()).get_or_else(None)
    return find_budget(budgets, category).get_or_else(None)


def simulate_payment(
    amount: float,
    category: str,
    trans: Iterable[Transaction],
    budgets: Iterable[Budget],
    reference: DateLike,
    policy: Optional[str] = None,
) -> PaymentSimulation:
    """Classify a proposed payment against the category's budget for the active period.

    With the ``fixed`` policy only budgets of the configured policy period
    (monthly by default) are considered, whatever other budgets exist for the
    category. With the ``budget`` policy the first budget for the category is
    used over its own period. Duplicates resolve to the first in order.
    """
    if not math.isfinite(amount) or amount <= 0:
        raise ValueError(f"Payment amount must be positive, got {amount}")
    policy = config.payment_policy(policy)

    budget = _matching_budget(budgets, category, policy)
    if budget is None:
        logger.info("simulated %.2f for %r without a budget check", amount, category)
        return PaymentSimulation(outcome=Outcome.NO_BUDGET_FOUND, amount=amount, category=category)

    interval = resolve_period(budget.period, reference)
    spend = spend_in_interval(trans, category, interval)
    remaining = cents(budget.limit) - cents(spend.total)

    if cents(amount) <= remaining:
        outcome, over = Outcome.WITHIN_BUDGET, 0.0
    else:
        outcome, over = Outcome.OVER_BUDGET, float(cents(amount) - remaining)
    if spend.skipped:
        logger.warning("simulation for %r left out %d record(s) with unparseable dates", category, spend.skipped)

    logger.info("simulated %.2f for %r: %s (remaining %.2f)", amount, category, outcome.value, remaining)
    return PaymentSimulation(
        outcome=outcome,
        amount=amount,
        category=category,
        budget=budget,
        interval=interval,
        spent=spend.total,
        remaining=float(remaining),
        overage=over,
        skipped=spend.skipped,
    )


def record_payment(
    simulation: PaymentSimulation,
    trans: Tuple[Transaction, ...],
    reference: DateLike,
    description: Optional[str] = None,
    bus: EventBus = event_bus,
) -> Tuple[Tuple[Transaction, ...], list]:
    """Append the simulated payment as an expense and publish the resulting events.

    Returns the new transaction tuple and any budget alerts raised by handlers.
    """
    day = as_date(reference)
    t = Transaction(
        id=generate_id(),
        description=description or f"Payment ({simulation.category})",
        amount=simulation.amount,
        type=EXPENSE,
        category=simulation.category,
        date=day.isoformat(),
    )
    new_trans = add_transaction(trans, t)

    payload = {
        "transaction_id": t.id,
        "type": EXPENSE,
        "category": t.category,
        "amount": t.amount,
        "spent": float(cents(simulation.spent) + cents(t.amount)),
        "limit": simulation.budget.limit if simulation.budget else None,
    }
    alerts = [r for r in bus.publish(TRANSACTION_ADDED, payload) if r.get("alert")]
    for alert in alerts:
        bus.publish(BUDGET_ALERT, alert)
    return new_trans, alerts
