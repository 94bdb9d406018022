"""
Synchronous EventBus shared by the services of one application instance.

Key invariants (enforced by call sites + tests):
  - Event topics come from enums in thermacore.enums.events.
  - Payloads are dataclasses / Pydantic models from thermacore.schemas.events.
  - Subscribers always receive a plain dict payload.
  - Delivery happens inline, in subscription order, on the publisher's call;
    a failing subscriber is logged and never reaches the publisher.
"""
import logging
import threading
from collections import defaultdict
from dataclasses import asdict, is_dataclass
from enum import Enum
from typing import Any, Callable, Dict, Hashable, Iterable

from pydantic import BaseModel

from thermacore.enums.events import NotificationEvent, SettingsEvent, UnitControlEvent

logger = logging.getLogger(__name__)

EventTopic = UnitControlEvent | SettingsEvent | NotificationEvent | str


class EventBus:
    """
    Routes events between the settings store, unit control coordinator,
    notification ledger and their logging/audio collaborators.

    One instance is created per application (see ServiceContainer) and passed
    to whoever needs it.
    """

    def __init__(self) -> None:
        self.subscribers: Dict[Hashable, list[Callable[[Any], None]]] = defaultdict(list)
        self.lock = threading.Lock()
        self._failed_deliveries = 0

    def subscribe(self, event_name: EventTopic, callback: Callable[[Any], None]) -> Callable[[], None]:
        """
        Subscribes a callback function to an event.

        Args:
            event_name: The enum topic (preferred) or raw string.
            callback: Function to call when the event occurs.

        Returns:
            Function that removes this subscription.
        """
        name = event_name.value if isinstance(event_name, Enum) else event_name
        with self.lock:
            self.subscribers[name].append(callback)

        def unsubscribe() -> None:
            with self.lock:
                callbacks = self.subscribers.get(name, [])
                try:
                    callbacks.remove(callback)
                except ValueError:
                    return

        return unsubscribe

    def publish(self, event_name: EventTopic, data: Any | None = None) -> int:
        """
        Publishes an event, calling all subscribed callback functions.

        Args:
            event_name: The enum topic (preferred) or raw string.
            data: Payload object (Pydantic model, dataclass, or dict/primitive).

        Returns:
            Number of subscribers that handled the event without raising.
        """
        name = event_name.value if isinstance(event_name, Enum) else event_name

        if isinstance(data, BaseModel):
            payload: Any = data.model_dump(mode="json")
        elif is_dataclass(data) and not isinstance(data, type):
            payload = asdict(data)
        else:
            payload = data

        with self.lock:
            callbacks: Iterable[Callable[[Any], None]] = list(self.subscribers.get(name, []))

        delivered = 0
        for callback in callbacks:
            try:
                callback(payload)
                delivered += 1
            except Exception as exc:
                self._failed_deliveries += 1
                logger.error("Error in callback for event %s: %s", name, exc, exc_info=exc)
        return delivered

    def listener(self, event_name: EventTopic) -> Callable[[Callable[[Any], None]], Callable[[Any], None]]:
        """
        Decorator for subscribing a function to an event at definition time.

        Args:
            event_name: The enum topic (preferred) or raw string.
        """

        def decorator(func: Callable[[Any], None]) -> Callable[[Any], None]:
            self.subscribe(event_name, func)
            return func

        return decorator

    def get_metrics(self) -> Dict[str, Any]:
        """Return lightweight metrics for health endpoints/logging."""
        with self.lock:
            subscriber_count = sum(len(values) for values in self.subscribers.values())
        return {
            "subscribers": subscriber_count,
            "failed_deliveries": self._failed_deliveries,
        }
