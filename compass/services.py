from datetime import date
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Sequence

from compass.aggregation import parse_day, spending_by_category, spending_trend, top_spending_category
from compass.domain import Budget, Transaction, WEEKLY, MONTHLY
from compass.functional import Either, Right, validate_budget, validate_goal, validate_transaction
from compass.logging_setup import get_logger
from compass.periods import resolve_period
from compass.progress import BudgetStatus, budget_statuses, monthly_overview
from compass.simulator import PaymentSimulation, record_payment, simulate_payment
from compass.store import FinanceStore
from compass import transforms

logger = get_logger(__name__)


class DashboardService:
    """Facade for dashboard figures built from injected validators and calculators.

    validators: functions taking (reference, transactions, budgets) -> Sequence[str]
    calculators: functions taking (reference, transactions, budgets, acc) -> dict (partial results)
    """

    def __init__(self, validators: Sequence[Callable[..., Sequence[str]]], calculators: Sequence[Callable[..., Dict[str, Any]]]):
        self.validators = validators
        self.calculators = calculators

    def report(self, reference: date, transactions: Iterable[Transaction], budgets: Iterable[Budget]) -> Dict[str, Any]:
        """Run validators and calculators and return an aggregated report with intermediate steps."""
        transactions = tuple(transactions)
        budgets = tuple(budgets)
        report = {
            "reference": reference.isoformat(),
            "validation": [],
            "steps": [],
            "result": {}
        }

        # a failing validator becomes a message, it never blocks the dashboard
        for v in self.validators:
            try:
                msgs = v(reference, transactions, budgets)
            except Exception as e:
                logger.exception("validator %s failed", getattr(v, "__name__", v))
                msgs = [f"validator_error: {e}"]
            report["validation"].append({"validator": getattr(v, "__name__", str(v)), "messages": list(msgs)})

        acc: Dict[str, Any] = {}
        for calc in self.calculators:
            out = calc(reference, transactions, budgets, acc)
            report["steps"].append({"calculator": getattr(calc, "__name__", str(calc)), "output": out})
            if isinstance(out, dict):
                acc.update(out)

        report["result"] = acc
        return report


def unparseable_dates(reference, transactions, budgets) -> Sequence[str]:
    return [
        f"transaction {t.id} has an unreadable date {t.date!r} and is left out of totals"
        for t in transactions if parse_day(t.date) is None
    ]


def duplicate_budgets(reference, transactions, budgets) -> Sequence[str]:
    seen: Dict[tuple, str] = {}
    msgs = []
    for b in budgets:
        key = (b.category, b.period)
        if key in seen:
            msgs.append(f"budget {b.id} duplicates {seen[key]} ({b.period} {b.category}); the first one is used")
        else:
            seen[key] = b.id
    return msgs


def calc_overview(reference, transactions, budgets, acc=None):
    return {"overview": monthly_overview(budgets, transactions, reference)}


def calc_budget_statuses(reference, transactions, budgets, acc=None):
    return {"budgets": budget_statuses(budgets, transactions, reference)}


def calc_weekly_top_category(reference, transactions, budgets, acc=None):
    return {"weekly_top": top_spending_category(transactions, resolve_period(WEEKLY, reference))}


def calc_category_breakdown(reference, transactions, budgets, acc=None):
    return {"by_category": spending_by_category(transactions, resolve_period(MONTHLY, reference))}


def calc_trend(reference, transactions, budgets, acc=None):
    return {"trend": spending_trend(transactions, reference, months=6)}


def default_dashboard() -> DashboardService:
    return DashboardService(
        validators=[unparseable_dates, duplicate_budgets],
        calculators=[calc_overview, calc_budget_statuses, calc_weekly_top_category, calc_category_breakdown, calc_trend],
    )


class BudgetService:
    """Reads and writes a user's records through an injected store.

    ``clock`` supplies the reference date; the pure functions underneath never
    read the system clock themselves.
    """

    def __init__(self, store: FinanceStore, clock: Callable[[], date] = date.today):
        self.store = store
        self.clock = clock

    def statuses(self) -> Sequence[BudgetStatus]:
        snap = self.store.snapshot()
        return budget_statuses(snap.budgets, snap.transactions, self.clock())

    def dashboard(self, service: Optional[DashboardService] = None) -> Dict[str, Any]:
        snap = self.store.snapshot()
        return (service or default_dashboard()).report(self.clock(), snap.transactions, snap.budgets)

    def simulate(self, amount: float, category: str, policy: Optional[str] = None) -> PaymentSimulation:
        snap = self.store.snapshot()
        return simulate_payment(amount, category, snap.transactions, snap.budgets, self.clock(), policy)

    def record(self, simulation: PaymentSimulation, description: Optional[str] = None) -> list:
        snap = self.store.snapshot()
        trans, alerts = record_payment(simulation, snap.transactions, self.clock(), description)
        self.store.save(snap._replace(transactions=trans))
        return alerts

    def add_transaction(self, raw: Mapping) -> Either:
        result = validate_transaction(raw)
        if result.is_right():
            snap = self.store.snapshot()
            t = result.get_or_else(None)
            self.store.save(snap._replace(transactions=transforms.add_transaction(snap.transactions, t)))
        return result

    def delete_transaction(self, tid: str) -> None:
        snap = self.store.snapshot()
        self.store.save(snap._replace(transactions=transforms.delete_transaction(snap.transactions, tid)))

    def save_budget(self, raw: Mapping) -> Either:
        """Create a budget, or update it in place when ``raw`` carries an existing id."""
        snap = self.store.snapshot()
        result = validate_budget(raw, snap.budgets)
        if result.is_left():
            return result
        b = result.get_or_else(None)
        if any(existing.id == b.id for existing in snap.budgets):
            budgets = transforms.update_budget(snap.budgets, b.id, category=b.category, limit=b.limit, period=b.period)
        else:
            budgets = transforms.add_budget(snap.budgets, b)
        self.store.save(snap._replace(budgets=budgets))
        return Right(b)

    def delete_budget(self, bid: str) -> None:
        snap = self.store.snapshot()
        self.store.save(snap._replace(budgets=transforms.delete_budget(snap.budgets, bid)))

    def save_goal(self, raw: Mapping) -> Either:
        result = validate_goal(raw)
        if result.is_left():
            return result
        snap = self.store.snapshot()
        g = result.get_or_else(None)
        if any(existing.id == g.id for existing in snap.goals):
            goals = transforms.update_goal(
                snap.goals, g.id,
                description=g.description, target_amount=g.target_amount,
                current_amount=g.current_amount, deadline=g.deadline,
            )
        else:
            goals = transforms.add_goal(snap.goals, g)
        self.store.save(snap._replace(goals=goals))
        return result

    def contribute(self, gid: str, amount: float) -> None:
        snap = self.store.snapshot()
        self.store.save(snap._replace(goals=transforms.contribute_to_goal(snap.goals, gid, amount)))

    def delete_goal(self, gid: str) -> None:
        snap = self.store.snapshot()
        self.store.save(snap._replace(goals=transforms.delete_goal(snap.goals, gid)))


def owned_entry(entry: Optional[tuple], user_id: str) -> Any:
    """Value of a ``(user_id, value)`` session entry, or ``None`` when another user owns it."""
    if not entry:
        return None
    owner, value = entry
    return value if owner == user_id else None
