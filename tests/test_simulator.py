from datetime import date

import pytest

from compass.domain import Budget, Transaction
from compass.events import BUDGET_ALERT, EventBus, TRANSACTION_ADDED, register_default_handlers
from compass.simulator import Outcome, record_payment, simulate_payment

NOW = date(2024, 3, 10)


def make_sample():
    trans = (
        Transaction("t1", "Groceries", 40, "expense", "Food", "2024-03-05"),
        Transaction("t2", "Groceries", 10, "expense", "Food", "2024-02-20"),
    )
    budgets = (Budget("b1", "Food", 30, "monthly"),)
    return trans, budgets


def test_over_budget_scenario():
    trans, budgets = make_sample()
    sim = simulate_payment(25, "Food", trans, budgets, NOW)
    assert sim.outcome is Outcome.OVER_BUDGET
    assert sim.remaining == -10
    assert sim.overage == 35
    assert sim.spent == 40


def test_no_budget_found_is_not_an_error():
    trans, budgets = make_sample()
    sim = simulate_payment(25, "Travel", trans, budgets, NOW)
    assert sim.outcome is Outcome.NO_BUDGET_FOUND
    assert not sim.checked
    assert sim.budget is None
    assert "Travel" in sim.message()


def test_within_budget_including_exact_remaining():
    trans = (Transaction("t1", "Groceries", 10, "expense", "Food", "2024-03-05"),)
    budgets = (Budget("b1", "Food", 30, "monthly"),)
    sim = simulate_payment(20, "Food", trans, budgets, NOW)
    assert sim.outcome is Outcome.WITHIN_BUDGET
    assert sim.overage == 0
    assert sim.remaining == 20


def test_simulation_does_not_touch_transactions():
    trans, budgets = make_sample()
    before = tuple(trans)
    simulate_payment(25, "Food", trans, budgets, NOW)
    simulate_payment(25, "Food", trans, budgets, NOW)
    assert trans == before


def test_fixed_policy_ignores_weekly_budget():
    trans, _ = make_sample()
    budgets = (Budget("b1", "Food", 30, "weekly"),)
    sim = simulate_payment(5, "Food", trans, budgets, NOW, policy="fixed")
    assert sim.outcome is Outcome.NO_BUDGET_FOUND


def test_budget_policy_uses_budget_period():
    trans, _ = make_sample()
    budgets = (Budget("b1", "Food", 50, "weekly"),)
    sim = simulate_payment(5, "Food", trans, budgets, NOW, policy="budget")
    assert sim.outcome is Outcome.WITHIN_BUDGET
    assert sim.interval.start == date(2024, 3, 4)
    assert sim.remaining == 10


def test_duplicate_budgets_first_wins():
    trans, _ = make_sample()
    budgets = (Budget("b1", "Food", 100, "monthly"), Budget("b2", "Food", 10, "monthly"))
    sim = simulate_payment(25, "Food", trans, budgets, NOW)
    assert sim.budget.id == "b1"
    assert sim.outcome is Outcome.WITHIN_BUDGET


def test_non_positive_amount_rejected():
    trans, budgets = make_sample()
    with pytest.raises(ValueError):
        simulate_payment(0, "Food", trans, budgets, NOW)


def test_unknown_policy_rejected():
    trans, budgets = make_sample()
    with pytest.raises(ValueError):
        simulate_payment(5, "Food", trans, budgets, NOW, policy="sometimes")


def test_record_payment_appends_expense_and_alerts():
    trans, budgets = make_sample()
    bus = EventBus()
    register_default_handlers(bus)
    seen = []
    bus.subscribe(BUDGET_ALERT, lambda event, payload: seen.append(payload) or {})

    sim = simulate_payment(25, "Food", trans, budgets, NOW)
    new_trans, alerts = record_payment(sim, trans, NOW, bus=bus)

    assert len(new_trans) == len(trans) + 1
    recorded = new_trans[-1]
    assert (recorded.amount, recorded.type, recorded.category, recorded.date) == (25, "expense", "Food", "2024-03-10")
    assert alerts[0]["overage"] == 35
    assert seen == alerts


def test_record_payment_without_budget_raises_no_alert():
    trans, budgets = make_sample()
    bus = EventBus()
    register_default_handlers(bus)
    results = []
    bus.subscribe(TRANSACTION_ADDED, lambda event, payload: results.append(payload) or {})

    sim = simulate_payment(25, "Travel", trans, budgets, NOW)
    new_trans, alerts = record_payment(sim, trans, NOW, description="Train", bus=bus)

    assert alerts == []
    assert new_trans[-1].description == "Train"
    assert results[0]["limit"] is None


def test_cent_amounts_that_exactly_fit_are_within_budget():
    trans = (
        Transaction("t1", "Snack", 0.1, "expense", "Food", "2024-03-05"),
        Transaction("t2", "Snack", 0.2, "expense", "Food", "2024-03-06"),
    )
    budgets = (Budget("b1", "Food", 0.6, "monthly"),)
    sim = simulate_payment(0.3, "Food", trans, budgets, NOW)
    assert sim.outcome is Outcome.WITHIN_BUDGET
    assert sim.remaining == 0.3
    assert sim.overage == 0


def test_simulation_reports_skipped_records():
    trans = (
        Transaction("t1", "Groceries", 10, "expense", "Food", "2024-03-05"),
        Transaction("t2", "Groceries", 500, "expense", "Food", "not-a-date"),
    )
    budgets = (Budget("b1", "Food", 30, "monthly"),)
    sim = simulate_payment(15, "Food", trans, budgets, NOW)
    assert sim.outcome is Outcome.WITHIN_BUDGET
    assert sim.spent == 10
    assert sim.skipped == 1


def test_non_finite_payment_rejected():
    trans, budgets = make_sample()
    with pytest.raises(ValueError):
        simulate_payment(float("nan"), "Food", trans, budgets, NOW)
    with pytest.raises(ValueError):
        simulate_payment(float("inf"), "Food", trans, budgets, NOW)
