"""
moodcity/world/models.py

World-level records: atmosphere snapshots, weather and resonance chambers.
All coordinates are in tile units (col, row), same as agent positions.
"""

import time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from moodcity.emotions.types import ChamberType, Emotion, Trend, WeatherType


class AtmosphereSnapshot(BaseModel):
    """One reading of the whole population. Never mutated once taken."""
    world_id: str
    average_valence: float
    average_arousal: float
    average_dominance: float
    dominant_emotion: Emotion
    emotional_diversity: float  # 0 = everyone feels the same, ~100 = all different
    trend: Trend
    intensity: float
    agent_count: int
    calculated_at: float = Field(default_factory=time.time)

    model_config = ConfigDict(frozen=True, use_enum_values=True)


class WeatherHistoryEntry(BaseModel):
    weather: WeatherType
    timestamp: float
    emotionally_driven: bool

    model_config = ConfigDict(use_enum_values=True)


class WeatherState(BaseModel):
    world_id: str
    current_weather: WeatherType = WeatherType.PARTLY_CLOUDY
    weather_intensity: float = 50.0     # 0-100
    emotional_influence: float = 30.0   # % chance the atmosphere picks the next weather
    next_weather: Optional[WeatherType] = None
    transition_progress: float = 0.0
    weather_start_time: float = Field(default_factory=time.time)
    weather_duration: float = 15 * 60   # seconds
    recent_weather: list[WeatherHistoryEntry] = Field(default_factory=list)
    last_updated: float = Field(default_factory=time.time)

    model_config = ConfigDict(use_enum_values=True)

    def expires_at(self) -> float:
        return self.weather_start_time + self.weather_duration


class ChamberArea(BaseModel):
    x: int
    y: int
    width: int
    height: int

    def contains(self, x: float, y: float) -> bool:
        """Half-open box: the right and bottom edges are outside."""
        return (
            self.x <= x < self.x + self.width
            and self.y <= y < self.y + self.height
        )


class ChamberEffects(BaseModel):
    emotion_amplification: float = 1.0
    mood_stabilization: float = 1.0
    energy_modifier: float = 0.0
    social_battery_modifier: float = 0.0


class ResonanceChamber(BaseModel):
    world_id: str
    chamber_id: str
    location_name: str
    chamber_type: ChamberType
    area: ChamberArea

    resonance_emotion: Optional[Emotion] = None  # None resonates with everything
    resonance_strength: float = 75.0
    contagion_multiplier: float = 1.0
    capacity: int = 6

    current_occupants: list[str] = Field(default_factory=list)
    active_resonance: bool = False
    dominant_emotion: Optional[Emotion] = None
    resonance_intensity: float = 0.0

    effects: ChamberEffects = Field(default_factory=ChamberEffects)
    atmosphere: str = ""
    last_updated: float = Field(default_factory=time.time)

    model_config = ConfigDict(use_enum_values=True)

    @property
    def at_capacity(self) -> bool:
        return len(self.current_occupants) >= self.capacity
