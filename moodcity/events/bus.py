"""
moodcity/events/bus.py

In-process outbox for domain events.

publish() records the event in a bounded outbox and hands it to every
subscriber. Delivery is best-effort and at-most-once: a failing subscriber
is logged and skipped. It never rolls back the state change that produced
the event, and it is never retried.

Usage:
    bus = EventBus()
    bus.subscribe(RedisEventPublisher(world_id))
    bus.subscribe(on_spike, event_type="emotion_spike")
"""

from collections import deque
from typing import Callable, Optional

from loguru import logger

from moodcity.config.settings import OUTBOX_SIZE
from moodcity.events.domain import DomainEvent

Handler = Callable[[DomainEvent], None]


class EventBus:

    def __init__(self, outbox_size: int = OUTBOX_SIZE):
        self._subscribers: list[tuple[Optional[str], Handler]] = []
        self.outbox: deque[DomainEvent] = deque(maxlen=outbox_size)

    def subscribe(self, handler: Handler, event_type: Optional[str] = None) -> None:
        """event_type=None receives everything."""
        self._subscribers.append((event_type, handler))

    def publish(self, event: DomainEvent) -> None:
        self.outbox.append(event)
        for wanted, handler in self._subscribers:
            if wanted is not None and wanted != event.event_type:
                continue
            try:
                handler(event)
            except Exception as e:
                logger.error(f"❌ Subscriber failed on {event.event_type}: {e}")

    def events_of(self, event_type: str) -> list[DomainEvent]:
        return [e for e in self.outbox if e.event_type == event_type]

    def drain(self) -> list[DomainEvent]:
        """Hand over everything in the outbox and clear it."""
        events = list(self.outbox)
        self.outbox.clear()
        return events
