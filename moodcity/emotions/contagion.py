"""
moodcity/emotions/contagion.py

Emotional contagion: a source agent's feelings bleed into a target.

    strength = 0.3 * avg_empathy/100 * (1 + bond/100) * proximity   (0..1)
    target[e] += (source[e] - target[e]) * strength

Only the target is written. The source is snapshotted under its own lock,
which is released before the target's lock is taken, so contagion never
holds two agents at once.

Usage:
    model = ContagionModel(store, bonds)
    model.process_contagion("alice", "bob", proximity=1.0, context="conversation")
"""

from dataclasses import dataclass
from typing import Optional

from loguru import logger

from moodcity.config.settings import CONTAGION_BASE_RATE, CONTAGION_LOG_THRESHOLD
from moodcity.emotions.bonds import DEFAULT_BOND_STRENGTH, BondStore
from moodcity.emotions.engine import EmotionalStateStore, Emotions
from moodcity.emotions.models import AgentEmotionalProfile, EmotionalState, clamp
from moodcity.emotions.types import EMOTIONS, Emotion
from moodcity.events.domain import ContagionTransferred


def calculate_contagion_strength(
    source_empathy: float,
    target_empathy: float,
    bond_strength: float,
    proximity: float,
) -> float:
    avg_empathy = (source_empathy + target_empathy) / 2
    strength = CONTAGION_BASE_RATE * (avg_empathy / 100) * (1 + bond_strength / 100) * proximity
    return clamp(strength, 0.0, 1.0)


def apply_contagion(target: Emotions, source: Emotions, strength: float) -> Emotions:
    """Move every target channel toward the source by `strength` of the gap."""
    return {e: clamp(target[e] + (source[e] - target[e]) * strength) for e in EMOTIONS}


@dataclass
class ContagionResult:
    source_agent_id: str
    target_agent_id: str
    strength: float
    changes: dict          # emotion -> signed delta on the target
    dominant_emotion: Emotion
    dominant_change: float
    new_state: EmotionalState

    @property
    def significant(self) -> bool:
        return abs(self.dominant_change) > CONTAGION_LOG_THRESHOLD


class ContagionModel:

    def __init__(self, store: EmotionalStateStore, bonds: Optional[BondStore] = None):
        self.store = store
        self.bonds = bonds

    def _bond_strength(self, source_id: str, target_id: str) -> float:
        if self.bonds is None:
            return DEFAULT_BOND_STRENGTH
        return self.bonds.bond_strength(source_id, target_id)

    def process_contagion(
        self,
        source_id: str,
        target_id: str,
        proximity: float = 1.0,
        context: str = "proximity",
        conversation_id: Optional[str] = None,
    ) -> Optional[ContagionResult]:
        """None if either agent has no psychology record."""
        source_profile = self.store.get_profile(source_id)
        target_profile = self.store.get_profile(target_id)
        if source_profile is None or target_profile is None:
            logger.warning(f"Contagion skipped: missing profile ({source_id} → {target_id})")
            return None

        source_state = self.store.get_emotional_state(source_id)
        source = source_state.intensities()
        bond = self._bond_strength(source_id, target_id)
        strength = calculate_contagion_strength(
            source_profile.empathy, target_profile.empathy, bond, proximity
        )

        def _spread(emotions: Emotions, profile: AgentEmotionalProfile) -> Emotions:
            return apply_contagion(emotions, source, strength)

        result = self.store.apply_update(target_id, _spread)
        if result is None:
            return None
        before, new_state = result

        changes = {e: new_state.get(e) - before[e] for e in EMOTIONS}
        dominant = EMOTIONS[0]
        for emotion in EMOTIONS[1:]:
            if abs(changes[emotion]) > abs(changes[dominant]):
                dominant = emotion

        outcome = ContagionResult(
            source_agent_id=source_id,
            target_agent_id=target_id,
            strength=strength,
            changes=changes,
            dominant_emotion=dominant,
            dominant_change=changes[dominant],
            new_state=new_state,
        )

        if outcome.significant:
            logger.debug(
                f"🌊 {source_id} → {target_id}: {dominant.value} {changes[dominant]:+.1f} "
                f"(strength {strength:.2f}, {context})"
            )
            self.store.events.publish(ContagionTransferred(
                world_id=self.store.world_id,
                source_agent_id=source_id,
                target_agent_id=target_id,
                emotion=dominant,
                intensity=abs(changes[dominant]),
                strength=strength,
                context=context,
                conversation_id=conversation_id,
            ))
        return outcome
