import logging
from datetime import datetime
from typing import Callable, Dict, List, NamedTuple

__all__ = [
    'Event', 'EventBus', 'Handler',
    'SESSION_CHANGED', 'TRANSACTIONS_CHANGED', 'CATEGORIES_CHANGED',
    'BUDGETS_CHANGED', 'CURRENCY_CHANGED',
]

logger = logging.getLogger(__name__)


class Event(NamedTuple):
    name: str
    ts: str
    payload: dict


Handler = Callable[[Event, dict], dict]


class EventBus:
    """Synchronous publish/subscribe for snapshot updates.

    Handlers run in subscription order on the publishing call; each
    publish carries a complete snapshot, so a later event supersedes
    an earlier one.
    """

    def __init__(self):
        self._subscribers: Dict[str, List[Handler]] = {}

    def subscribe(self, name: str, handler: Handler) -> Callable[[], None]:
        self._subscribers.setdefault(name, []).append(handler)
        return lambda: self.unsubscribe(name, handler)

    def publish(self, name: str, payload: dict) -> List[dict]:
        handlers = list(self._subscribers.get(name, ()))
        if not handlers:
            return []

        event = Event(
            name=name,
            ts=datetime.now().isoformat(),
            payload=payload
        )

        results = []
        for handler in handlers:
            try:
                result = handler(event, payload)
            except Exception:
                logger.exception("Handler %r failed on %s", handler, name)
                raise
            results.append(result)
        return results

    def unsubscribe(self, name: str, handler: Handler) -> None:
        if name in self._subscribers:
            if handler in self._subscribers[name]:
                self._subscribers[name].remove(handler)


SESSION_CHANGED = "SESSION_CHANGED"
TRANSACTIONS_CHANGED = "TRANSACTIONS_CHANGED"
CATEGORIES_CHANGED = "CATEGORIES_CHANGED"
BUDGETS_CHANGED = "BUDGETS_CHANGED"
CURRENCY_CHANGED = "CURRENCY_CHANGED"
