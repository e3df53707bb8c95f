import logging
from datetime import date
from typing import Callable, List, Optional

from fintrack.config import STORAGE_KEY
from fintrack.domain import State
from fintrack.events import (
    MUTATION_REJECTED, STATE_CHANGED, EventBus, Handler, register_default_handlers,
)
from fintrack.functional import Either, Right
from fintrack.storage import load_state, save_state
from fintrack.transforms import record_net_worth

logger = logging.getLogger(__name__)


class Store:
    """Holds the current State and applies reducers to it.

    Every committed change is persisted as a whole snapshot before
    subscribers hear about it. Rejected changes leave state and storage
    untouched.
    """

    def __init__(
        self,
        storage,
        bus: Optional[EventBus] = None,
        clock: Callable[[], date] = date.today,
        key: str = STORAGE_KEY,
    ):
        self.storage = storage
        self.key = key
        self.clock = clock
        self.bus = bus if bus is not None else register_default_handlers(EventBus())
        self.alerts: List[str] = []
        self.state: State = load_state(storage, key)

    def subscribe(self, handler: Handler) -> None:
        self.bus.subscribe(STATE_CHANGED, handler)

    def reload(self) -> State:
        self.state = load_state(self.storage, self.key)
        return self.state

    def dispatch(self, reducer: Callable[..., Either], *args, **kwargs) -> Either[dict, State]:
        name = getattr(reducer, "__name__", str(reducer))
        previous = self.state
        result = reducer(previous, *args, **kwargs)

        if result.is_left():
            error = result.get_error()
            logger.info("%s rejected: %s", name, error.get("message"))
            self.bus.publish(MUTATION_REJECTED, {"action": name, "error": error})
            return result

        state = result.bind(lambda s: record_net_worth(s, self.clock().isoformat())).get_or_else(previous)
        self.state = state
        save_state(self.storage, state, self.key)
        logger.debug("%s committed, %d transactions", name, len(state.transactions))

        responses = self.bus.publish(STATE_CHANGED, {"state": state, "previous": previous, "action": name})
        self.alerts = [r["alert"] for r in responses if r and "alert" in r]
        return Right(state)
