import json
import math
from dataclasses import asdict, replace
from typing import Any, Dict, NamedTuple, Tuple

from compass.domain import Budget, Goal, Transaction


class Snapshot(NamedTuple):
    transactions: Tuple[Transaction, ...] = ()
    budgets: Tuple[Budget, ...] = ()
    goals: Tuple[Goal, ...] = ()


def records_from_dict(data: Dict[str, Any]) -> Snapshot:
    """Build a snapshot from a ``{"transactions": [...], "budgets": [...], "goals": [...]}`` mapping."""
    return Snapshot(
        transactions=tuple(Transaction(**t) for t in data.get("transactions", [])),
        budgets=tuple(Budget(**b) for b in data.get("budgets", [])),
        goals=tuple(Goal(**g) for g in data.get("goals", [])),
    )


def records_to_dict(snapshot: Snapshot) -> Dict[str, Any]:
    return {
        "transactions": [asdict(t) for t in snapshot.transactions],
        "budgets": [asdict(b) for b in snapshot.budgets],
        "goals": [asdict(g) for g in snapshot.goals],
    }


def load_seed(path: str) -> Snapshot:
    with open(path, "r", encoding="utf-8") as f:
        return records_from_dict(json.load(f))


def add_transaction(
    trans: Tuple[Transaction, ...], t: Transaction
) -> Tuple[Transaction, ...]:
    return trans + (t,)


def delete_transaction(
    trans: Tuple[Transaction, ...], tid: str
) -> Tuple[Transaction, ...]:
    return tuple(t for t in trans if t.id != tid)


def add_budget(budgets: Tuple[Budget, ...], b: Budget) -> Tuple[Budget, ...]:
    return budgets + (b,)


def update_budget(
    budgets: Tuple[Budget, ...], bid: str, **changes: Any
) -> Tuple[Budget, ...]:
    """Replace fields (``category``, ``limit``, ``period``) of the budget with id ``bid``."""
    return tuple(replace(b, **changes) if b.id == bid else b for b in budgets)


def delete_budget(budgets: Tuple[Budget, ...], bid: str) -> Tuple[Budget, ...]:
    return tuple(b for b in budgets if b.id != bid)


def add_goal(goals: Tuple[Goal, ...], g: Goal) -> Tuple[Goal, ...]:
    return goals + (g,)


def update_goal(goals: Tuple[Goal, ...], gid: str, **changes: Any) -> Tuple[Goal, ...]:
    return tuple(replace(g, **changes) if g.id == gid else g for g in goals)


def delete_goal(goals: Tuple[Goal, ...], gid: str) -> Tuple[Goal, ...]:
    return tuple(g for g in goals if g.id != gid)


def contribute_to_goal(goals: Tuple[Goal, ...], gid: str, amount: float) -> Tuple[Goal, ...]:
    if not math.isfinite(amount) or amount <= 0:
        raise ValueError(f"Contribution must be positive, got {amount}")
    return tuple(
        replace(g, current_amount=g.current_amount + amount) if g.id == gid else g
        for g in goals
    )
