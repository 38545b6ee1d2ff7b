"""
moodcity/emotions/memory_resonance.py

Emotion-tagged memories that resurface when the agent feels something similar.

A memory is tagged with the emotion it was formed under. Later the index
rebuilds an approximate "state at the time" (the agent's baseline, with the
tagged emotion set to the memory's intensity) and compares it against what
the agent feels now. Strong memories have low thresholds, so they resurface
easily. Memories recalled often resurface more readily still.

Usage:
    index = MemoryResonanceIndex(store)
    index.tag_memory("alice", "Lost the race to Bob", Emotion.SADNESS, 70, -60)
    for hit in index.find_resonant_memories("alice"):
        index.trigger_memory_resonance("alice", hit.memory.memory_id)
"""

import threading
from dataclasses import dataclass, field
from typing import Optional, Union

from loguru import logger

from moodcity.emotions.engine import EmotionalStateStore, Emotions
from moodcity.emotions.models import EmotionalMemory, EmotionalState, clamp
from moodcity.emotions.types import EMOTIONS, Emotion
from moodcity.events.domain import MemoryResonated

RECENCY_WINDOW = 30 * 24 * 60 * 60   # 30 days, in seconds
TRIGGER_CAP = 10                     # triggers beyond this add no more weight


def calculate_emotional_similarity(a: Emotions, b: Emotions) -> float:
    """
    0..1, 1 = identical. Differences are weighted by how intense the channel
    is in the two states, so disagreement on strong emotions matters more.
    """
    total_difference = 0.0
    total_intensity = 0.0
    for emotion in EMOTIONS:
        avg = (a[emotion] + b[emotion]) / 2
        total_difference += abs(a[emotion] - b[emotion]) * avg
        total_intensity += avg * 100

    if total_intensity == 0:
        # Both states are entirely zero, which makes them identical
        return 1.0
    return clamp(1 - total_difference / total_intensity, 0.0, 1.0)


@dataclass
class ResonantMemory:
    memory: EmotionalMemory
    resonance_score: float
    similarity: float


@dataclass
class EmotionalPatterns:
    total_memories: int = 0
    dominant_emotions: list = field(default_factory=list)   # [{"emotion", "count", "average_intensity"}]
    average_valence: float = 0.0
    traumatic_memories: list = field(default_factory=list)
    joyful_memories: list = field(default_factory=list)


@dataclass
class LearningSuggestion:
    suggestion: Optional[dict] = None                     # {"emotion", "adjustment"}
    all_suggestions: list = field(default_factory=list)
    confidence: float = 0.0
    relevant_memory_count: int = 0


class MemoryResonanceIndex:

    def __init__(self, store: EmotionalStateStore):
        self.store = store
        self._memories: dict[str, list[EmotionalMemory]] = {}
        self._lock = threading.Lock()

    # ─── Tagging ──────────────────────────────────────────────────

    def tag_memory(
        self,
        agent_id: str,
        description: str,
        emotion_type: Union[Emotion, str],
        intensity: float,
        valence: float,
        memory_id: Optional[str] = None,
    ) -> EmotionalMemory:
        emotion = Emotion(emotion_type)
        intensity = clamp(intensity)
        kwargs = {"memory_id": memory_id} if memory_id else {}
        memory = EmotionalMemory(
            **kwargs,
            world_id=self.store.world_id,
            agent_id=agent_id,
            description=description,
            emotion_type=emotion,
            intensity=intensity,
            valence=clamp(valence, -100, 100),
            resonance_threshold=100 - intensity,
            created=self.store.clock(),
        )
        with self._lock:
            self._memories.setdefault(agent_id, []).append(memory)
        logger.debug(f"🧠 Tagged memory {memory.memory_id} for {agent_id}: {emotion.value} ({intensity:.0f})")
        return memory

    def memories_of(self, agent_id: str) -> list[EmotionalMemory]:
        with self._lock:
            return list(self._memories.get(agent_id, []))

    def get_memory(self, agent_id: str, memory_id: str) -> Optional[EmotionalMemory]:
        for memory in self.memories_of(agent_id):
            if memory.memory_id == memory_id:
                return memory
        return None

    # ─── Retrieval ────────────────────────────────────────────────

    def find_resonant_memories(
        self,
        agent_id: str,
        current_state: Optional[Union[EmotionalState, Emotions]] = None,
        limit: int = 5,
    ) -> list[ResonantMemory]:
        """Memories whose resonance score beats their threshold, best first."""
        profile = self.store.get_profile(agent_id)
        memories = self.memories_of(agent_id)
        if profile is None or not memories:
            return []

        if current_state is None:
            current_state = self.store.get_emotional_state(agent_id)
        current = current_state.intensities() if isinstance(current_state, EmotionalState) else current_state

        baseline = profile.emotional_baseline.intensities()
        now = self.store.clock()
        hits = []
        for memory in memories:
            remembered = dict(baseline)
            remembered[Emotion(memory.emotion_type)] = memory.intensity

            similarity = calculate_emotional_similarity(current, remembered)
            recency = max(0.0, 1 - (now - memory.created) / RECENCY_WINDOW)
            trigger_bonus = min(1.0, memory.times_triggered / TRIGGER_CAP)
            score = similarity * memory.intensity * (1 + trigger_bonus * 0.5) * (1 + recency * 0.3)

            if score > memory.resonance_threshold:
                hits.append(ResonantMemory(memory=memory, resonance_score=score, similarity=similarity))

        hits.sort(key=lambda h: h.resonance_score, reverse=True)
        return hits[:limit]

    def trigger_memory_resonance(self, agent_id: str, memory_id: str) -> Optional[EmotionalMemory]:
        """Mark a memory as recalled. None if it does not exist."""
        with self._lock:
            memory = next(
                (m for m in self._memories.get(agent_id, []) if m.memory_id == memory_id), None
            )
            if memory is None:
                logger.warning(f"No emotional memory {memory_id} for {agent_id}")
                return None
            memory.times_triggered += 1
            memory.last_triggered = self.store.clock()

        logger.info(
            f"🧠 Memory resonated for {agent_id}: {memory.emotion_type} "
            f"({memory.times_triggered} times total)"
        )
        self.store.events.publish(MemoryResonated(
            world_id=self.store.world_id,
            agent_id=agent_id,
            memory_id=memory_id,
            emotion=memory.emotion_type,
            times_triggered=memory.times_triggered,
        ))
        return memory

    # ─── Analysis ─────────────────────────────────────────────────

    def analyze_emotional_patterns(self, agent_id: str) -> EmotionalPatterns:
        memories = self.memories_of(agent_id)
        if not memories:
            return EmotionalPatterns()

        counts: dict[str, int] = {}
        intensities: dict[str, list[float]] = {}
        for m in memories:
            counts[m.emotion_type] = counts.get(m.emotion_type, 0) + 1
            intensities.setdefault(m.emotion_type, []).append(m.intensity)

        ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)[:3]
        dominant = [
            {
                "emotion": emotion,
                "count": count,
                "average_intensity": sum(intensities[emotion]) / len(intensities[emotion]),
            }
            for emotion, count in ranked
        ]

        def _summary(selected: list[EmotionalMemory]) -> list[dict]:
            selected = sorted(selected, key=lambda m: m.times_triggered, reverse=True)[:3]
            return [
                {
                    "memory_id": m.memory_id,
                    "emotion": m.emotion_type,
                    "intensity": m.intensity,
                    "times_triggered": m.times_triggered,
                }
                for m in selected
            ]

        return EmotionalPatterns(
            total_memories=len(memories),
            dominant_emotions=dominant,
            average_valence=sum(m.valence for m in memories) / len(memories),
            traumatic_memories=_summary([m for m in memories if m.valence < -50 and m.intensity > 60]),
            joyful_memories=_summary([m for m in memories if m.valence > 50 and m.intensity > 60]),
        )

    def apply_emotional_learning(self, agent_id: str, context: str) -> LearningSuggestion:
        """
        Suggests emotion adjustments from past memories whose text shares a
        word with `context`. Positive memories reinforce, negative ones teach
        avoidance: each contributes intensity * valence / 100.
        """
        words = [w for w in context.lower().split(" ") if w]
        relevant = [
            m for m in self.memories_of(agent_id)
            if any(w in m.description.lower() for w in words)
        ]
        if not relevant:
            return LearningSuggestion()

        learned: dict[str, list[float]] = {}
        for m in relevant:
            learned.setdefault(m.emotion_type, []).append(m.intensity * (m.valence / 100))

        suggestions = [
            {"emotion": emotion, "adjustment": sum(values) / len(values)}
            for emotion, values in learned.items()
        ]
        return LearningSuggestion(
            suggestion=suggestions[0],
            all_suggestions=suggestions,
            confidence=min(100.0, len(relevant) / 5 * 100),
            relevant_memory_count=len(relevant),
        )
