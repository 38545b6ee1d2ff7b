"""
moodcity/events/publishers.py

EventBus subscribers that ship domain events out of process.

    RedisEventPublisher — pushes JSON onto events:{world_id} with a TTL.
                          Narrative / social workers pop from that list.
    DashboardNotifier   — fire-and-forget POST to the live dashboard.

Both swallow and log their own failures. A dead Redis or a closed dashboard
must never stop the simulation.
"""

from typing import Optional

import redis
import requests
from loguru import logger

from moodcity.config.settings import DASHBOARD_URL, EVENT_TTL, REDIS_URL
from moodcity.events.domain import DomainEvent


class RedisEventPublisher:

    def __init__(self, world_id: str, client: Optional[redis.Redis] = None, max_len: int = 5000):
        self.world_id = world_id
        self.key = f"events:{world_id}"
        self.max_len = max_len
        self._r = client or redis.Redis.from_url(REDIS_URL, decode_responses=True)

    def __call__(self, event: DomainEvent) -> None:
        try:
            self._r.lpush(self.key, event.model_dump_json())
            self._r.ltrim(self.key, 0, self.max_len - 1)
            self._r.expire(self.key, EVENT_TTL)
        except Exception as e:
            logger.error(f"❌ Redis publish failed for {event.event_type}: {e}")

    def recent(self, limit: int = 50) -> list[str]:
        """Raw JSON of the newest events, newest first."""
        try:
            return self._r.lrange(self.key, 0, limit - 1)
        except Exception as e:
            logger.error(f"❌ Could not read {self.key}: {e}")
            return []

    def clear(self) -> None:
        self._r.delete(self.key)


class DashboardNotifier:

    # High-frequency per-agent events would flood the feed
    DEFAULT_TYPES = frozenset({
        "weather_change", "atmosphere_shift", "chamber_resonance",
        "mood_shift", "time_change",
    })

    def __init__(self, url: str = DASHBOARD_URL, event_types: Optional[frozenset] = None):
        self.url = url
        self.event_types = event_types if event_types is not None else self.DEFAULT_TYPES

    def __call__(self, event: DomainEvent) -> None:
        if event.event_type not in self.event_types:
            return
        try:
            requests.post(self.url, json=event.model_dump(mode="json"), timeout=1)
        except Exception as e:
            logger.debug(f"Dashboard unreachable ({event.event_type}): {e}")
