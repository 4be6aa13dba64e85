"""Event publisher - in-process fan-out of domain events to subscribers."""
from collections import defaultdict
import logging
from threading import Lock
from typing import Any, Callable, DefaultDict, Dict, List, Protocol, Type

logger = logging.getLogger(__name__)


class Event(Protocol):
    """Protocol for event types."""

    def to_dict(self) -> Dict[str, Any]:
        ...


EventHandler = Callable[[Any], None]


class EventPublisher:
    """
    Routes domain events to the handlers subscribed for their type.

    Services publish only after their transaction has committed. A failing
    handler is logged and skipped; it never reaches the publisher's caller.
    """

    def __init__(self) -> None:
        self._handlers: DefaultDict[Type[Any], List[EventHandler]] = defaultdict(list)
        self._lock = Lock()

    def subscribe(self, event_type: Type[Any], handler: EventHandler) -> None:
        with self._lock:
            self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: Type[Any], handler: EventHandler) -> None:
        with self._lock:
            self._handlers[event_type] = [
                existing for existing in self._handlers[event_type] if existing is not handler
            ]

    def handlers_for(self, event_type: Type[Any]) -> List[EventHandler]:
        with self._lock:
            return list(self._handlers.get(event_type, []))

    def publish(self, event: Event) -> None:
        event_type = type(event)
        for handler in self.handlers_for(event_type):
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Event handler %s failed for %s",
                    getattr(handler, "__name__", handler),
                    event_type.__name__,
                )
