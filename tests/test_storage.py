import json
from pathlib import Path

import pytest

from fintrack.aggregates import expenses_by_category, total_expense, total_income
from fintrack.config import STORAGE_KEY
from fintrack.domain import Goal, Investment, NetWorthSample, State, Subscription, Transaction
from fintrack.storage import (
    JsonFileStorage, MemoryStorage, load_seed, load_state, save_state, state_to_dict,
)

SEED = Path(__file__).resolve().parent.parent / "data" / "seed.json"


def full_state():
    return State(
        transactions=(
            Transaction(id="t1", date="2025-01-01", category="Salary", amount=50000, type="income", notes="Jan"),
            Transaction(id="t2", date="2025-01-02", category="Food", amount=8000.5, type="expense", notes=""),
        ),
        budget=20000,
        goals=(Goal(id="g1", name="Trip", target=1000, current=250, deadline="2025-12-01"),),
        investments=(Investment(id="i1", ticker="ABC", qty=2, buy_price=10, current_price=12),),
        subscriptions=(Subscription(id="s1", name="Gym", amount=1500, due_day=28),),
        net_worth_history=(NetWorthSample(date="2025-01-02", value=42023.5),),
        theme="dark",
    )


def test_memory_round_trip():
    storage = MemoryStorage()

    save_state(storage, full_state())

    assert load_state(storage) == full_state()


def test_file_round_trip(tmp_path):
    storage = JsonFileStorage(tmp_path / "nested" / "state.json")

    save_state(storage, full_state())

    assert JsonFileStorage(tmp_path / "nested" / "state.json").get_item(STORAGE_KEY) is not None
    assert load_state(storage) == full_state()


def test_snapshot_uses_browser_field_names():
    data = state_to_dict(full_state())

    assert data["investments"][0]["buyPrice"] == 10
    assert data["investments"][0]["currentPrice"] == 12
    assert data["subscriptions"][0]["dueDate"] == 28
    assert data["netWorthHistory"][0]["value"] == 42023.5
    assert "income" not in data


def test_missing_key_gives_defaults():
    assert load_state(MemoryStorage()) == State()


def test_malformed_json_resets():
    storage = MemoryStorage({STORAGE_KEY: "{not json"})

    assert load_state(storage) == State()


def test_malformed_shape_resets_everything():
    raw = {"transactions": [{"id": "t1", "amount": 10, "category": "Food"}], "goals": "broken"}
    storage = MemoryStorage({STORAGE_KEY: json.dumps(raw)})

    assert load_state(storage) == State()


def test_corrupt_file_is_empty(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("garbage", encoding="utf-8")

    storage = JsonFileStorage(path)

    assert storage.get_item(STORAGE_KEY) is None
    storage.set_item("other", "value")
    assert storage.get_item("other") == "value"


def test_failed_write_keeps_previous_file(tmp_path, monkeypatch):
    path = tmp_path / "state.json"
    storage = JsonFileStorage(path)
    storage.set_item("a", "old")

    def broken_dump(*args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr("fintrack.storage.json.dump", broken_dump)
    with pytest.raises(OSError):
        storage.set_item("a", "new")
    monkeypatch.undo()

    assert storage.get_item("a") == "old"
    assert [p.name for p in tmp_path.iterdir()] == ["state.json"]


def test_remove_item(tmp_path):
    storage = JsonFileStorage(tmp_path / "state.json")
    storage.set_item("a", "1")
    storage.remove_item("a")
    storage.remove_item("missing")

    assert storage.get_item("a") is None


def test_load_seed():
    state = load_seed(SEED)

    assert len(state.transactions) >= 10
    assert total_income(state.transactions) == 152000
    assert total_expense(state.transactions) == 66600
    assert sum(expenses_by_category(state.transactions).values()) == total_expense(state.transactions)
    assert state.budget == 25000
    assert len(state.goals) == 1
    assert len(state.investments) == 1
    assert len(state.subscriptions) == 2
