"""
moodcity/emotions/engine.py

EmotionalStateStore — the per-agent affective state and everything that
mutates it.

Decay is lazy. Nothing ticks agents in the background; instead every read or
write first projects the stored state forward by the minutes elapsed since
its own last_updated:

    decayed = value * DECAY_BASE ** (minutes * (1 + regulation / 100))

Reads (get_emotional_state) return that projection without saving it.
Writes (trigger_emotion, contagion, regulation) save it together with the
change, under the agent's own lock, so two writers to one agent never
interleave their read-decay-write cycles. Different agents never share a
lock.
"""

import threading
import time
from typing import Callable, Optional, Union

from loguru import logger

from moodcity.config.settings import DECAY_BASE, NEED_CRITICAL_THRESHOLD, SPIKE_THRESHOLD
from moodcity.config.tables import load_tables
from moodcity.emotions.models import (
    AgentEmotionalProfile, EmotionalState, PersonalityTraits, PsychologicalNeeds, clamp,
)
from moodcity.emotions.types import EMOTIONS, Emotion, Mood, Need
from moodcity.events.bus import EventBus
from moodcity.events.domain import DomainEvent, EmotionSpiked, MoodShifted, NeedCritical

Emotions = dict[Emotion, float]


# ─── Pure functions ───────────────────────────────────────────────────────────

def decay_emotions(emotions: Emotions, minutes_elapsed: float, regulation: float) -> Emotions:
    """Higher regulation = faster return to rest. Zero minutes is a no-op."""
    minutes = max(0.0, minutes_elapsed)
    rate = DECAY_BASE ** (minutes * (1 + regulation / 100))
    return {e: emotions[e] * rate for e in EMOTIONS}


def personality_modifier(emotion: Emotion, traits: PersonalityTraits) -> float:
    """
    How strongly this personality feels a given emotion, 0.5x to 1.5x.

    High neuroticism amplifies fear / sadness / anger and dampens joy / trust.
    Agreeableness amplifies trust and dampens disgust / anger.
    Extraversion amplifies the high-arousal emotions.
    """
    emotion = Emotion(emotion)
    modifier = 1.0

    if emotion in (Emotion.FEAR, Emotion.SADNESS, Emotion.ANGER):
        modifier *= 0.7 + (traits.neuroticism / 100) * 0.6
    if emotion in (Emotion.JOY, Emotion.TRUST):
        modifier *= 1.3 - (traits.neuroticism / 100) * 0.6

    if emotion == Emotion.TRUST:
        modifier *= 0.8 + (traits.agreeableness / 100) * 0.4
    if emotion in (Emotion.DISGUST, Emotion.ANGER):
        modifier *= 1.2 - (traits.agreeableness / 100) * 0.4

    if emotion in (Emotion.JOY, Emotion.ANGER, Emotion.SURPRISE, Emotion.ANTICIPATION):
        modifier *= 0.9 + (traits.extraversion / 100) * 0.3

    if emotion in (Emotion.SURPRISE, Emotion.ANTICIPATION):
        modifier *= 0.9 + (traits.openness / 100) * 0.2

    # Conscientiousness reins in the impulsive ones
    if emotion in (Emotion.SURPRISE, Emotion.ANGER):
        modifier *= 1.1 - (traits.conscientiousness / 100) * 0.2

    return clamp(modifier, 0.5, 1.5)


def calculate_emotional_metrics(emotions: Emotions) -> dict[str, float]:
    """Intensity-weighted valence / arousal, plus dominance = 100 - avg(fear, sadness)."""
    tables = load_tables()
    valence = 0.0
    arousal = 0.0
    total = 0.0
    for emotion in EMOTIONS:
        intensity = emotions[emotion]
        valence += tables.emotion_valence[emotion] * intensity
        arousal += tables.emotion_arousal[emotion] * intensity
        total += intensity

    if total > 0:
        valence = valence / total * 100
        arousal = arousal / total * 100

    dominance = 100 - (emotions[Emotion.FEAR] + emotions[Emotion.SADNESS]) / 2

    return {
        "valence": clamp(valence, -100, 100),
        "arousal": clamp(arousal, 0, 100),
        "dominance": clamp(dominance, 0, 100),
    }


def calculate_mood(emotions: Emotions, valence: float, arousal: float) -> tuple[Mood, float]:
    """
    Scores every mood prototype out of 100 and returns the best one.

    Each missing point of a required emotion costs a point; being outside the
    valence window costs 30, outside the arousal window 20. On a tie the
    prototype declared first in tables.json wins.
    """
    best_name, best_score = None, -1.0
    for proto in load_tables().mood_prototypes:
        score = 100.0
        for emotion, minimum in proto.required_emotions.items():
            if emotions[emotion] < minimum:
                score -= minimum - emotions[emotion]
        low, high = proto.valence_range
        if valence < low or valence > high:
            score -= 30
        low, high = proto.arousal_range
        if arousal < low or arousal > high:
            score -= 20
        score = max(0.0, score)
        if score > best_score:
            best_name, best_score = proto.name, score
    return Mood(best_name), best_score


def blend_toward_baseline(current: Emotions, baseline: Emotions, factor: float) -> Emotions:
    """factor 0 keeps current, 1 snaps to baseline."""
    factor = clamp(factor, 0.0, 1.0)
    return {e: current[e] * (1 - factor) + baseline[e] * factor for e in EMOTIONS}


def build_state(emotions: Emotions, now: float) -> EmotionalState:
    """Clamp channels, recompute derived metrics and mood."""
    clamped = {e: clamp(emotions[e]) for e in EMOTIONS}
    metrics = calculate_emotional_metrics(clamped)
    mood, mood_intensity = calculate_mood(clamped, metrics["valence"], metrics["arousal"])
    return EmotionalState(
        **{e.value: v for e, v in clamped.items()},
        **metrics,
        mood=mood,
        mood_intensity=mood_intensity,
        last_updated=now,
    )


def minutes_since(state: EmotionalState, now: float) -> float:
    return (now - state.last_updated) / 60.0


def project_state(profile: AgentEmotionalProfile, now: float) -> EmotionalState:
    """The agent's state as of `now`. Pure: the profile is not touched."""
    decayed = decay_emotions(
        profile.emotional_state.intensities(),
        minutes_since(profile.emotional_state, now),
        profile.emotional_regulation,
    )
    return build_state(decayed, now)


# ─── Store ────────────────────────────────────────────────────────────────────

class EmotionalStateStore:
    """
    Owns every AgentEmotionalProfile in one world.

    clock: returns epoch seconds. Tests pass a fake so decay is deterministic.
    """

    def __init__(
        self,
        world_id: str,
        event_bus: Optional[EventBus] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.world_id = world_id
        self.events = event_bus or EventBus()
        self.clock = clock
        self._profiles: dict[str, AgentEmotionalProfile] = {}
        self._locks: dict[str, threading.RLock] = {}
        self._registry_lock = threading.Lock()

    # ── Registry ──────────────────────────────────────────────────

    def add_profile(self, profile: AgentEmotionalProfile) -> AgentEmotionalProfile:
        """Register a profile. An agent that already has one keeps it."""
        with self._registry_lock:
            existing = self._profiles.get(profile.agent_id)
            if existing is not None:
                logger.debug(f"Agent {profile.agent_id} already has a psychology profile")
                return existing
            self._locks[profile.agent_id] = threading.RLock()
            self._profiles[profile.agent_id] = profile
        return profile

    def get_profile(self, agent_id: str) -> Optional[AgentEmotionalProfile]:
        """The stored record, undecayed. None if the agent was never initialized."""
        return self._profiles.get(agent_id)

    def agent_ids(self) -> list[str]:
        return list(self._profiles.keys())

    def profiles(self) -> list[AgentEmotionalProfile]:
        return list(self._profiles.values())

    def lock_for(self, agent_id: str) -> Optional[threading.RLock]:
        return self._locks.get(agent_id)

    def __contains__(self, agent_id: str) -> bool:
        return agent_id in self._profiles

    def __len__(self) -> int:
        return len(self._profiles)

    # ── Reads ─────────────────────────────────────────────────────

    def get_emotional_state(self, agent_id: str) -> Optional[EmotionalState]:
        """Decayed, mood-classified snapshot. Nothing is written back."""
        profile = self._profiles.get(agent_id)
        if profile is None:
            return None
        with self._locks[agent_id]:
            return project_state(profile, self.clock())

    # ── Writes ────────────────────────────────────────────────────

    def apply_update(
        self,
        agent_id: str,
        update: Callable[[Emotions, AgentEmotionalProfile], Emotions],
    ) -> Optional[tuple[Emotions, EmotionalState]]:
        """
        Serialized read-decay-modify-write for one agent.

        `update` receives the decayed channels and returns the new ones.
        Returns (decayed channels, committed state), or None for unknown agents.
        """
        profile = self._profiles.get(agent_id)
        if profile is None:
            logger.warning(f"No psychology record for agent {agent_id}")
            return None

        pending: list[DomainEvent] = []
        with self._locks[agent_id]:
            now = self.clock()
            previous_mood = profile.emotional_state.mood
            decayed = decay_emotions(
                profile.emotional_state.intensities(),
                minutes_since(profile.emotional_state, now),
                profile.emotional_regulation,
            )
            new_state = build_state(update(dict(decayed), profile), now)
            profile.emotional_state = new_state
            profile.updated_at = now
            profile.version += 1

            if new_state.mood != previous_mood:
                pending.append(MoodShifted(
                    world_id=self.world_id,
                    agent_id=agent_id,
                    previous_mood=previous_mood,
                    new_mood=new_state.mood,
                    mood_intensity=new_state.mood_intensity,
                ))

        for event in pending:
            self.events.publish(event)
        return decayed, new_state

    def trigger_emotion(
        self,
        agent_id: str,
        emotion: Union[Emotion, str],
        intensity: float,
        cause: Optional[str] = None,
        conversation_id: Optional[str] = None,
    ) -> Optional[EmotionalState]:
        """
        Decay, then add intensity * personality modifier to one channel.

        Not idempotent: calling twice adds twice (up to the 100 cap).
        Negative intensity lowers the channel, floored at 0.
        """
        emotion = Emotion(emotion)

        def _add(emotions: Emotions, profile: AgentEmotionalProfile) -> Emotions:
            modifier = personality_modifier(emotion, profile.personality)
            emotions[emotion] = clamp(emotions[emotion] + intensity * modifier)
            return emotions

        result = self.apply_update(agent_id, _add)
        if result is None:
            return None
        _, new_state = result

        logger.debug(
            f"💭 {agent_id}: {emotion.value} +{intensity:.1f} → {new_state.get(emotion):.1f} "
            f"[{new_state.mood}]" + (f" ({cause})" if cause else "")
        )

        if intensity > SPIKE_THRESHOLD:
            self.events.publish(EmotionSpiked(
                world_id=self.world_id,
                agent_id=agent_id,
                emotion=emotion,
                intensity=intensity,
                cause=cause,
                conversation_id=conversation_id,
                snapshot=new_state.model_dump(),
            ))
        return new_state

    def regulate_toward_baseline(self, agent_id: str, factor: float) -> Optional[EmotionalState]:
        """Pull the agent's channels toward their long-term baseline."""
        def _blend(emotions: Emotions, profile: AgentEmotionalProfile) -> Emotions:
            return blend_toward_baseline(emotions, profile.emotional_baseline.intensities(), factor)

        result = self.apply_update(agent_id, _blend)
        return result[1] if result else None

    def update_needs(
        self, agent_id: str, changes: dict[Union[Need, str], float]
    ) -> Optional[PsychologicalNeeds]:
        """Apply clamped deltas to psychological needs. Critically low needs are published."""
        profile = self._profiles.get(agent_id)
        if profile is None:
            logger.warning(f"No psychology record for agent {agent_id}")
            return None

        with self._locks[agent_id]:
            needs = profile.psychological_needs
            for need, change in changes.items():
                need = Need(need)
                setattr(needs, need.value, clamp(getattr(needs, need.value) + change))
            needs.last_updated = self.clock()
            critical = {n: v for n, v in needs.as_dict().items() if v < NEED_CRITICAL_THRESHOLD}

        for need, value in critical.items():
            logger.info(f"⚠️  {agent_id}: {need.value} need critically low ({value:.0f})")
            self.events.publish(NeedCritical(
                world_id=self.world_id, agent_id=agent_id, need=need, value=value,
            ))
        return needs
