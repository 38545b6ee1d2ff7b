"""
moodcity/events/domain.py

Typed domain events emitted by the emotion core.

The core never calls narrative, social or dashboard code directly. It
publishes one of these and whoever cares subscribes on the EventBus.
"""

import time
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from moodcity.emotions.types import Emotion, Mood, Need, TimeOfDay, Trend, WeatherType


class DomainEvent(BaseModel):
    event_type: str
    world_id: str
    timestamp: float = Field(default_factory=time.time)

    model_config = ConfigDict(use_enum_values=True)


class EmotionSpiked(DomainEvent):
    event_type: Literal["emotion_spike"] = "emotion_spike"
    agent_id: str
    emotion: Emotion
    intensity: float
    cause: Optional[str] = None
    conversation_id: Optional[str] = None
    snapshot: dict = {}


class MoodShifted(DomainEvent):
    event_type: Literal["mood_shift"] = "mood_shift"
    agent_id: str
    previous_mood: Mood
    new_mood: Mood
    mood_intensity: float


class ContagionTransferred(DomainEvent):
    event_type: Literal["contagion"] = "contagion"
    source_agent_id: str
    target_agent_id: str
    emotion: Emotion
    intensity: float
    strength: float
    context: str
    conversation_id: Optional[str] = None


class MemoryResonated(DomainEvent):
    event_type: Literal["memory_resonance"] = "memory_resonance"
    agent_id: str
    memory_id: str
    emotion: Emotion
    times_triggered: int


class NeedCritical(DomainEvent):
    event_type: Literal["need_critical"] = "need_critical"
    agent_id: str
    need: Need
    value: float


class AtmosphereShifted(DomainEvent):
    event_type: Literal["atmosphere_shift"] = "atmosphere_shift"
    dominant_emotion: Emotion
    trend: Trend
    intensity: float
    average_valence: float


class WeatherChanged(DomainEvent):
    event_type: Literal["weather_change"] = "weather_change"
    previous_weather: WeatherType
    new_weather: WeatherType
    emotionally_driven: bool
    triggering_emotion: Optional[Emotion] = None


class TimeOfDayChanged(DomainEvent):
    event_type: Literal["time_change"] = "time_change"
    previous: TimeOfDay
    current: TimeOfDay
    hour: int


class ChamberResonated(DomainEvent):
    event_type: Literal["chamber_resonance"] = "chamber_resonance"
    chamber_id: str
    location_name: str
    dominant_emotion: Emotion
    resonance_intensity: float
    occupants: list[str]


class ConversationProcessed(DomainEvent):
    """Emitted when a conversation ends, for social / narrative consumers."""
    event_type: Literal["conversation_processed"] = "conversation_processed"
    agent_id: str
    other_agent_id: str
    conversation_id: Optional[str] = None
    was_positive: bool
    emotional_intensity: float
