from datetime import date

from compass.domain import Budget, Transaction
from compass.services import (
    BudgetService,
    DashboardService,
    default_dashboard,
    duplicate_budgets,
    owned_entry,
    unparseable_dates,
)
from compass.simulator import Outcome
from compass.store import MemoryStore
from compass.transforms import Snapshot

NOW = date(2024, 3, 10)


def make_service():
    snap = Snapshot(
        transactions=(
            Transaction("t1", "Groceries", 40, "expense", "Food", "2024-03-05"),
            Transaction("t2", "Groceries", 10, "expense", "Food", "2024-02-20"),
            Transaction("t3", "Salary", 900, "income", "Salary", "2024-03-01"),
        ),
        budgets=(Budget("b1", "Food", 30, "monthly"),),
    )
    return BudgetService(MemoryStore(snap), clock=lambda: NOW)


def test_dashboard_runs_calculators_in_order():
    def c_count(reference, transactions, budgets, acc=None):
        return {"count": len(transactions)}

    def c_double(reference, transactions, budgets, acc=None):
        return {"double": acc["count"] * 2}

    svc = DashboardService(validators=[], calculators=[c_count, c_double])
    rpt = svc.report(NOW, [1, 2, 3], [])
    assert rpt["reference"] == "2024-03-10"
    assert [s["calculator"] for s in rpt["steps"]] == ["c_count", "c_double"]
    assert rpt["result"] == {"count": 3, "double": 6}


def test_dashboard_validator_error_becomes_message():
    def bad_validator(reference, transactions, budgets):
        raise RuntimeError("oops")

    svc = DashboardService(validators=[bad_validator], calculators=[])
    rpt = svc.report(NOW, [], [])
    assert "validator_error: oops" in rpt["validation"][0]["messages"][0]


def test_default_dashboard_figures():
    svc = make_service()
    result = svc.dashboard()["result"]
    assert result["overview"].spent == 40
    assert result["overview"].progress == 133
    assert result["weekly_top"] == ("Food", 40)
    assert result["by_category"] == {"Food": 40}
    assert result["trend"][-2:] == [("Feb 2024", 10), ("Mar 2024", 40)]
    assert result["budgets"][0].overage == 10


def test_diagnostic_validators():
    trans = (Transaction("t1", "x", 1, "expense", "Food", "yesterday"),)
    budgets = (Budget("b1", "Food", 1, "monthly"), Budget("b2", "Food", 2, "monthly"))
    assert "t1" in unparseable_dates(NOW, trans, budgets)[0]
    assert "b2" in duplicate_budgets(NOW, trans, budgets)[0]
    rpt = default_dashboard().report(NOW, trans, budgets)
    assert all(entry["messages"] for entry in rpt["validation"])


def test_budget_service_simulate_and_record():
    svc = make_service()
    sim = svc.simulate(25, "Food")
    assert sim.outcome is Outcome.OVER_BUDGET
    assert sim.overage == 35
    assert len(svc.store.snapshot().transactions) == 3

    alerts = svc.record(sim)
    assert len(svc.store.snapshot().transactions) == 4
    assert alerts and alerts[0]["category"] == "Food"
    assert svc.statuses()[0].spent == 65


def test_budget_service_add_transaction_validates():
    svc = make_service()
    bad = svc.add_transaction({"description": "x", "amount": -3, "type": "expense", "category": "Food", "date": "2024-03-09"})
    assert bad.is_left()
    assert len(svc.store.snapshot().transactions) == 3

    ok = svc.add_transaction({"description": "x", "amount": 3, "type": "expense", "category": "Food", "date": "2024-03-09"})
    assert ok.is_right()
    assert svc.statuses()[0].spent == 43

    svc.delete_transaction(ok.get_or_else(None).id)
    assert svc.statuses()[0].spent == 40


def test_budget_service_save_budget_create_update_reject():
    svc = make_service()
    assert svc.save_budget({"category": "Food", "limit": 50, "period": "monthly"}).is_left()

    assert svc.save_budget({"id": "b1", "category": "Food", "limit": 50, "period": "monthly"}).is_right()
    assert svc.store.snapshot().budgets == (Budget("b1", "Food", 50, "monthly"),)

    created = svc.save_budget({"category": "Travel", "limit": 200, "period": "yearly"})
    assert created.is_right()
    assert len(svc.store.snapshot().budgets) == 2

    svc.delete_budget("b1")
    assert [b.category for b in svc.store.snapshot().budgets] == ["Travel"]


def test_budget_service_goals():
    svc = make_service()
    result = svc.save_goal({"description": "Fund", "target_amount": 1000})
    gid = result.get_or_else(None).id
    svc.contribute(gid, 250)
    assert svc.store.snapshot().goals[0].current_amount == 250

    svc.save_goal({"id": gid, "description": "Bigger fund", "target_amount": 2000, "current_amount": 250})
    goal = svc.store.snapshot().goals[0]
    assert (goal.description, goal.target_amount) == ("Bigger fund", 2000)

    svc.delete_goal(gid)
    assert svc.store.snapshot().goals == ()


def test_session_entry_only_visible_to_its_user():
    sim = make_service().simulate(5, "Food")
    entry = ("alice", sim)
    assert owned_entry(entry, "alice") is sim
    assert owned_entry(entry, "bob") is None
    assert owned_entry(None, "alice") is None
