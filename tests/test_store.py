import json

import pytest

from compass.domain import Budget, Goal, Transaction
from compass.errors import StoreError
from compass.store import JsonStore, MemoryStore
from compass.transforms import (
    Snapshot,
    add_transaction,
    contribute_to_goal,
    delete_budget,
    delete_transaction,
    load_seed,
    records_from_dict,
    records_to_dict,
    update_budget,
)


def make_snapshot():
    return Snapshot(
        transactions=(Transaction("t1", "Groceries", 40, "expense", "Food", "2024-03-05"),),
        budgets=(Budget("b1", "Food", 300, "monthly"), Budget("b2", "Bus", 20, "weekly")),
        goals=(Goal("g1", "Fund", 1000, 100, "2025-01-01"),),
    )


def test_add_transaction_is_immutable():
    snap = make_snapshot()
    t2 = Transaction("t2", "Bus", 3, "expense", "Bus", "2024-03-06")
    new_trans = add_transaction(snap.transactions, t2)
    assert len(new_trans) == 2
    assert len(snap.transactions) == 1


def test_delete_transaction():
    assert delete_transaction(make_snapshot().transactions, "t1") == ()


def test_update_budget_in_place_by_id():
    budgets = make_snapshot().budgets
    updated = update_budget(budgets, "b1", limit=500, period="yearly")
    assert updated[0] == Budget("b1", "Food", 500, "yearly")
    assert updated[1] is budgets[1]
    assert budgets[0].limit == 300


def test_delete_budget():
    assert [b.id for b in delete_budget(make_snapshot().budgets, "b1")] == ["b2"]


def test_contribute_to_goal():
    goals = contribute_to_goal(make_snapshot().goals, "g1", 50)
    assert goals[0].current_amount == 150
    with pytest.raises(ValueError):
        contribute_to_goal(goals, "g1", 0)


def test_dict_round_trip():
    snap = make_snapshot()
    assert records_from_dict(records_to_dict(snap)) == snap


def test_load_seed(tmp_path):
    path = tmp_path / "seed.json"
    path.write_text(json.dumps(records_to_dict(make_snapshot())), encoding="utf-8")
    snap = load_seed(str(path))
    assert len(snap.budgets) == 2
    assert snap.goals[0].deadline == "2025-01-01"


def test_memory_store():
    store = MemoryStore()
    assert store.snapshot() == Snapshot()
    store.save(make_snapshot())
    assert store.snapshot().budgets[0].id == "b1"


def test_json_store_missing_document_is_empty(tmp_path):
    store = JsonStore("alice", tmp_path)
    assert store.snapshot() == Snapshot()


def test_json_store_per_user_documents(tmp_path):
    alice = JsonStore("alice", tmp_path)
    alice.save(make_snapshot())
    assert (tmp_path / "alice.json").exists()
    assert JsonStore("alice", tmp_path).snapshot() == make_snapshot()
    assert JsonStore("bob", tmp_path).snapshot() == Snapshot()


def test_json_store_corrupt_document(tmp_path):
    (tmp_path / "alice.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(StoreError):
        JsonStore("alice", tmp_path).snapshot()


def test_json_store_unknown_fields(tmp_path):
    (tmp_path / "alice.json").write_text(json.dumps({"budgets": [{"id": "b1", "colour": "red"}]}), encoding="utf-8")
    with pytest.raises(StoreError):
        JsonStore("alice", tmp_path).snapshot()


def test_json_store_failed_write_leaves_no_temp_file(tmp_path):
    store = JsonStore("alice", tmp_path)
    store.save(make_snapshot())
    broken = make_snapshot()._replace(
        transactions=(Transaction("t9", "Odd", object(), "expense", "Food", "2024-03-05"),),
    )
    with pytest.raises(StoreError):
        store.save(broken)
    assert list(tmp_path.glob("*.tmp")) == []
    assert store.snapshot() == make_snapshot()


def test_contribution_must_be_finite():
    goals = make_snapshot().goals
    with pytest.raises(ValueError):
        contribute_to_goal(goals, "g1", float("nan"))
