from datetime import date

from fintrack.config import STORAGE_KEY
from fintrack.domain import GoalRequest, State, TransactionRequest
from fintrack.events import (
    MUTATION_REJECTED, STATE_CHANGED, Event, EventBus,
    check_budget_handler, check_goals_handler, register_default_handlers,
)
from fintrack.storage import MemoryStorage, load_state
from fintrack.store import Store
from fintrack.transforms import add_goal, add_transaction, contribute, set_budget


def make_store(storage=None):
    return Store(storage or MemoryStorage(), clock=lambda: date(2025, 9, 15))


def income(amount):
    return TransactionRequest(category="Salary", amount=amount, type="income", date="2025-09-01")


def expense(amount, category="Food"):
    return TransactionRequest(category=category, amount=amount, type="expense", date="2025-09-02")


def test_store_starts_from_storage():
    storage = MemoryStorage()
    first = make_store(storage)
    first.dispatch(add_transaction, income(1000))

    second = make_store(storage)

    assert second.state == first.state


def test_dispatch_persists_write_through():
    storage = MemoryStorage()
    store = make_store(storage)

    result = store.dispatch(add_transaction, income(1000))

    assert result.is_right()
    assert load_state(storage) == store.state
    assert len(store.state.transactions) == 1


def test_dispatch_records_net_worth_sample():
    store = make_store()

    store.dispatch(add_transaction, income(1000))
    store.dispatch(add_transaction, expense(200))

    assert len(store.state.net_worth_history) == 1
    assert store.state.net_worth_history[0].date == "2025-09-15"
    assert store.state.net_worth_history[0].value == 800


def test_rejected_dispatch_changes_nothing():
    storage = MemoryStorage()
    store = make_store(storage)
    rejected = []
    store.bus.subscribe(MUTATION_REJECTED, lambda event, payload: rejected.append(payload) or {})

    result = store.dispatch(add_transaction, expense(0))

    assert result.is_left()
    assert store.state == State()
    assert storage.get_item(STORAGE_KEY) is None
    assert rejected[0]["action"] == "add_transaction"
    assert rejected[0]["error"]["error"] == "invalid_amount"


def test_subscribers_hear_committed_changes():
    store = make_store()
    seen = []
    store.subscribe(lambda event, payload: seen.append(payload["action"]) or {})

    store.dispatch(set_budget, 500)
    store.dispatch(add_transaction, expense(0))

    assert seen == ["set_budget"]


def test_budget_alert():
    store = make_store()
    store.dispatch(add_transaction, income(5000))
    store.dispatch(set_budget, 100)
    assert store.alerts == []

    store.dispatch(add_transaction, expense(150))

    assert len(store.alerts) == 1
    assert store.alerts[0].startswith("Budget exceeded")


def test_goal_completed_alert_fires_once():
    store = make_store()
    store.dispatch(add_transaction, income(5000))
    store.dispatch(add_goal, GoalRequest(name="Bike", target=300))
    goal_id = store.state.goals[0].id

    store.dispatch(contribute, goal_id, 300)
    assert any("Bike" in a for a in store.alerts)

    store.dispatch(set_budget, 0)
    assert store.alerts == []


def test_malformed_storage_resets():
    store = make_store(MemoryStorage({STORAGE_KEY: '{"transactions": 5}'}))

    assert store.state == State()


def test_reload():
    storage = MemoryStorage()
    store = make_store(storage)
    other = make_store(storage)
    other.dispatch(set_budget, 900)

    assert store.reload().budget == 900


def test_event_bus_publish_and_unsubscribe():
    bus = EventBus()
    calls = []

    def handler(event: Event, payload: dict) -> dict:
        calls.append(event.name)
        return {"ok": True}

    bus.subscribe(STATE_CHANGED, handler)
    assert bus.publish(STATE_CHANGED, {}) == [{"ok": True}]
    assert bus.publish("UNKNOWN", {}) == []

    bus.unsubscribe(STATE_CHANGED, handler)
    assert bus.publish(STATE_CHANGED, {}) == []
    assert calls == [STATE_CHANGED]


def test_default_handlers_are_pure():
    state = add_transaction(State(budget=10), expense(50)).get_or_else(None)
    event = Event(name=STATE_CHANGED, ts="2025-01-01T00:00:00", payload={"state": state})

    first = check_budget_handler(event, {"state": state})
    second = check_budget_handler(event, {"state": state})

    assert first == second
    assert first["spent"] == 50
    assert check_goals_handler(event, {"state": state}) == {}


def test_register_default_handlers():
    bus = register_default_handlers(EventBus())

    results = bus.publish(STATE_CHANGED, {"state": State()})

    assert results == [{}, {}]
