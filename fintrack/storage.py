import json
import logging
import os
from pathlib import Path
from typing import Dict, Optional

from fintrack.config import STORAGE_KEY
from fintrack.domain import State
from fintrack.transforms import normalize_state

logger = logging.getLogger(__name__)


class MemoryStorage:
    """Key-value store held in a dict. Values are strings, like browser local storage."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class JsonFileStorage:
    """Key-value store persisted as one JSON object in a file."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Cannot read storage file %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, items: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # the snapshot is only replaced once the new one is fully written
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(items, f, ensure_ascii=False, indent=2)
            os.replace(tmp, self.path)
        except (OSError, TypeError, ValueError):
            logger.exception("Could not write %s", self.path)
            tmp.unlink(missing_ok=True)
            raise

    def get_item(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        items = self._read_all()
        items[key] = value
        self._write_all(items)

    def remove_item(self, key: str) -> None:
        items = self._read_all()
        if items.pop(key, None) is not None:
            self._write_all(items)


def state_to_dict(state: State) -> dict:
    return {
        "transactions": [
            {"id": t.id, "date": t.date, "category": t.category,
             "amount": t.amount, "type": t.type, "notes": t.notes}
            for t in state.transactions
        ],
        "budget": state.budget,
        "goals": [
            {"id": g.id, "name": g.name, "target": g.target,
             "current": g.current, "deadline": g.deadline}
            for g in state.goals
        ],
        "investments": [
            {"id": i.id, "ticker": i.ticker, "qty": i.qty,
             "buyPrice": i.buy_price, "currentPrice": i.current_price}
            for i in state.investments
        ],
        "subscriptions": [
            {"id": s.id, "name": s.name, "amount": s.amount, "dueDate": s.due_day}
            for s in state.subscriptions
        ],
        "netWorthHistory": [{"date": n.date, "value": n.value} for n in state.net_worth_history],
        "theme": state.theme,
    }


def parse_snapshot(raw: str) -> State:
    """Decode a snapshot string. Anything malformed yields a fresh default state."""
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.warning("Stored state is not valid JSON, resetting: %s", e)
        return State()

    result = normalize_state(data)
    if result.is_left():
        logger.warning("Stored state is malformed, resetting: %s", result.get_error()["message"])
        return State()
    return result.get_or_else(State())


def load_state(storage, key: str = STORAGE_KEY) -> State:
    raw = storage.get_item(key)
    if not raw:
        return State()
    return parse_snapshot(raw)


def save_state(storage, state: State, key: str = STORAGE_KEY) -> None:
    storage.set_item(key, json.dumps(state_to_dict(state), ensure_ascii=False))


def load_seed(path: str | Path) -> State:
    with open(path, "r", encoding="utf-8") as f:
        return parse_snapshot(f.read())
