from datetime import datetime
from typing import Callable, Dict, List, NamedTuple

from fintrack.aggregates import total_expense
from fintrack.config import CURRENCY
from fintrack.domain import State

__all__ = [
    'STATE_CHANGED', 'MUTATION_REJECTED', 'Event', 'EventBus',
    'check_budget_handler', 'check_goals_handler', 'register_default_handlers',
]

STATE_CHANGED = "STATE_CHANGED"
MUTATION_REJECTED = "MUTATION_REJECTED"


class Event(NamedTuple):
    name: str
    ts: str
    payload: dict


Handler = Callable[[Event, dict], dict]


class EventBus:
    def __init__(self):
        self._subscribers: Dict[str, List[Handler]] = {}

    def subscribe(self, name: str, handler: Handler) -> None:
        self._subscribers.setdefault(name, []).append(handler)

    def unsubscribe(self, name: str, handler: Handler) -> None:
        if handler in self._subscribers.get(name, []):
            self._subscribers[name].remove(handler)

    def publish(self, name: str, payload: dict) -> List[dict]:
        handlers = self._subscribers.get(name)
        if not handlers:
            return []
        event = Event(name=name, ts=datetime.now().isoformat(), payload=payload)
        return [handler(event, payload) for handler in list(handlers)]


def check_budget_handler(event: Event, payload: dict) -> dict:
    state: State = payload["state"]
    spent = total_expense(state.transactions)
    if state.budget > 0 and spent > state.budget:
        return {
            "alert": f"Budget exceeded: {CURRENCY}{spent:,.0f} / {CURRENCY}{state.budget:,.0f}",
            "kind": "budget",
            "spent": spent,
            "limit": state.budget,
        }
    return {}


def check_goals_handler(event: Event, payload: dict) -> dict:
    state: State = payload["state"]
    previous: State | None = payload.get("previous")
    already_done = {g.id for g in previous.goals if g.completed} if previous else set()
    reached = [g.name for g in state.goals if g.completed and g.id not in already_done]
    if reached:
        return {"alert": f"Goal reached: {', '.join(reached)} 🎉", "kind": "goal", "goals": reached}
    return {}


def register_default_handlers(bus: EventBus) -> EventBus:
    bus.subscribe(STATE_CHANGED, check_budget_handler)
    bus.subscribe(STATE_CHANGED, check_goals_handler)
    return bus
