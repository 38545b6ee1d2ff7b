"""
moodcity/world/atmosphere.py

The city's collective mood: one snapshot summarizing every agent's
current (decayed) state. Weather reads the latest snapshot; the dashboard
reads the history.
"""

from collections import Counter, deque
from typing import Optional

from loguru import logger

from moodcity.config.settings import ATMOSPHERE_HISTORY
from moodcity.emotions.engine import EmotionalStateStore
from moodcity.emotions.types import EMOTIONS, Trend
from moodcity.events.domain import AtmosphereShifted
from moodcity.world.models import AtmosphereSnapshot

TREND_THRESHOLD = 10  # valence points between snapshots


class AtmosphereAggregator:

    def __init__(self, store: EmotionalStateStore, history_size: int = ATMOSPHERE_HISTORY):
        self.store = store
        self._history: deque[AtmosphereSnapshot] = deque(maxlen=history_size)

    def latest(self) -> Optional[AtmosphereSnapshot]:
        return self._history[-1] if self._history else None

    def history(self, limit: Optional[int] = None) -> list[AtmosphereSnapshot]:
        """Oldest first."""
        snapshots = list(self._history)
        return snapshots[-limit:] if limit else snapshots

    def calculate_world_atmosphere(self) -> Optional[AtmosphereSnapshot]:
        """Sample every agent and append a snapshot. None for an empty world."""
        states = [
            s for s in (self.store.get_emotional_state(a) for a in self.store.agent_ids())
            if s is not None
        ]
        if not states:
            return None

        count = len(states)
        avg_valence = sum(s.valence for s in states) / count
        avg_arousal = sum(s.arousal for s in states) / count
        avg_dominance = sum(s.dominance for s in states) / count

        holders = Counter()
        held_values: dict = {}
        for state in states:
            emotion, value = state.dominant_emotion()
            holders[emotion] += 1
            held_values.setdefault(emotion, []).append(value)

        # Most holders wins; ties go to the emotion declared first
        max_count = max(holders.values())
        dominant = next(e for e in EMOTIONS if holders.get(e) == max_count)
        intensity = sum(held_values[dominant]) / len(held_values[dominant])
        diversity = (count - max_count) / count * 100

        previous = self.latest()
        trend = Trend.STABLE
        if previous is not None:
            diff = avg_valence - previous.average_valence
            if diff > TREND_THRESHOLD:
                trend = Trend.RISING
            elif diff < -TREND_THRESHOLD:
                trend = Trend.FALLING

        snapshot = AtmosphereSnapshot(
            world_id=self.store.world_id,
            average_valence=avg_valence,
            average_arousal=avg_arousal,
            average_dominance=avg_dominance,
            dominant_emotion=dominant,
            emotional_diversity=diversity,
            trend=trend,
            intensity=intensity,
            agent_count=count,
            calculated_at=self.store.clock(),
        )
        self._history.append(snapshot)

        shifted = previous is not None and previous.dominant_emotion != snapshot.dominant_emotion
        if shifted or trend != Trend.STABLE:
            logger.info(
                f"🌆 Atmosphere: {snapshot.dominant_emotion} ({intensity:.0f}), "
                f"valence {avg_valence:+.1f} {snapshot.trend}"
            )
            self.store.events.publish(AtmosphereShifted(
                world_id=self.store.world_id,
                dominant_emotion=snapshot.dominant_emotion,
                trend=snapshot.trend,
                intensity=intensity,
                average_valence=avg_valence,
            ))
        return snapshot
