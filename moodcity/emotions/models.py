"""
moodcity/emotions/models.py

Per-agent emotional records. One AgentEmotionalProfile per (world_id, agent_id),
created at spawn and never deleted while the agent exists.

All intensity-like values are 0-100 (valence is -100..100). Nothing here
rejects out-of-range input; the engine clamps on every write.
"""

import time
import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from moodcity.emotions.types import EMOTIONS, Emotion, Mood, Need, RelationshipType


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


class PersonalityTraits(BaseModel):
    """Big Five (OCEAN), each 0-100."""
    openness: float = 50.0           # creative vs practical
    conscientiousness: float = 50.0  # organized vs spontaneous
    extraversion: float = 50.0       # outgoing vs reserved
    agreeableness: float = 50.0      # friendly vs assertive
    neuroticism: float = 50.0        # sensitive vs resilient


class EmotionalState(BaseModel):
    # Primary intensities (0-100)
    joy: float = 0.0
    sadness: float = 0.0
    trust: float = 0.0
    disgust: float = 0.0
    fear: float = 0.0
    anger: float = 0.0
    surprise: float = 0.0
    anticipation: float = 0.0

    # Derived
    valence: float = 0.0      # -100..100
    arousal: float = 0.0      # 0..100
    dominance: float = 100.0  # 0..100

    mood: Mood = Mood.NEUTRAL
    mood_intensity: float = 50.0

    last_updated: float = Field(default_factory=time.time)  # epoch seconds

    model_config = ConfigDict(use_enum_values=True)

    def get(self, emotion: Emotion) -> float:
        return getattr(self, Emotion(emotion).value)

    def intensities(self) -> dict[Emotion, float]:
        return {e: getattr(self, e.value) for e in EMOTIONS}

    def dominant_emotion(self) -> tuple[Emotion, float]:
        """Highest channel. Ties go to whichever emotion is declared first."""
        best, best_value = EMOTIONS[0], getattr(self, EMOTIONS[0].value)
        for emotion in EMOTIONS[1:]:
            value = getattr(self, emotion.value)
            if value > best_value:
                best, best_value = emotion, value
        return best, best_value


class PsychologicalNeeds(BaseModel):
    autonomy: float = 50.0
    competence: float = 50.0
    relatedness: float = 50.0
    stimulation: float = 50.0
    security: float = 50.0
    last_updated: float = Field(default_factory=time.time)

    def as_dict(self) -> dict[Need, float]:
        return {n: getattr(self, n.value) for n in Need}


class AgentEmotionalProfile(BaseModel):
    world_id: str
    agent_id: str
    preset: str = ""

    personality: PersonalityTraits = Field(default_factory=PersonalityTraits)
    emotional_state: EmotionalState = Field(default_factory=EmotionalState)
    emotional_baseline: EmotionalState = Field(default_factory=EmotionalState)
    psychological_needs: PsychologicalNeeds = Field(default_factory=PsychologicalNeeds)

    emotional_regulation: float = 50.0  # higher = faster decay back to rest
    empathy: float = 50.0               # higher = more susceptible to contagion

    # Bumped on every persisted write; lets consumers detect stale reads.
    version: int = 0
    created_at: float = Field(default_factory=time.time)
    updated_at: float = Field(default_factory=time.time)


class EmotionalMemory(BaseModel):
    """Links a memory record to the emotion it was formed under."""
    memory_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    world_id: str = ""
    agent_id: str
    description: str = ""

    emotion_type: Emotion
    intensity: float
    valence: float

    # 100 - intensity: the stronger the experience, the easier it resurfaces
    resonance_threshold: float
    times_triggered: int = 0

    created: float = Field(default_factory=time.time)
    last_triggered: Optional[float] = None

    model_config = ConfigDict(use_enum_values=True)


class EmotionalBond(BaseModel):
    agent1_id: str
    agent2_id: str

    affection: float = 20.0
    trust: float = 15.0
    respect: float = 25.0
    rivalry: float = 0.0

    contagion_strength: float = 10.0  # 0-100
    relationship_type: RelationshipType = RelationshipType.STRANGER

    last_interaction: float = Field(default_factory=time.time)
    total_interactions: int = 0

    model_config = ConfigDict(use_enum_values=True)

    @property
    def strength(self) -> float:
        """Bond strength as fed into the contagion formula."""
        return (self.affection + self.trust) / 2
