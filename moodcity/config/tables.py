"""
moodcity/config/tables.py

Loads the fixed lookup tables (emotion coefficients, mood prototypes,
weather maps, presets, chamber templates) from tables.json exactly once.

The returned models are frozen: callers read them, nobody patches them at
runtime. Bump "version" in tables.json whenever a number changes so that
persisted snapshots can be traced back to the table set that produced them.

Usage:
    tables = load_tables()
    tables.emotion_valence[Emotion.JOY]      # 1.0
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict

from moodcity.emotions.types import (
    ChamberType, ConversationEvent, Emotion, Need, TimeOfDay, WeatherType,
)

TABLES_PATH = Path(__file__).parent / "tables.json"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class MoodPrototype(_Frozen):
    name: str
    description: str
    required_emotions: dict[Emotion, float]
    valence_range: tuple[float, float]
    arousal_range: tuple[float, float]


class WeatherMapping(_Frozen):
    weather: WeatherType
    threshold: float


class WeatherEmotion(_Frozen):
    valence: float
    arousal: float
    primary_emotion: Emotion


class EmotionChange(_Frozen):
    emotion: Emotion
    change: float


class TimeOfDayEffect(_Frozen):
    valence: float
    arousal: float
    emotions: tuple[EmotionChange, ...]


class ConversationEffect(_Frozen):
    emotion: Emotion
    intensity: float
    needs: dict[Need, float] = {}


class PersonalityPreset(_Frozen):
    name: str
    traits: dict[str, float]
    baseline: dict[Emotion, float]
    empathy: float
    regulation: float
    needs: dict[Need, float]


class ChamberTypeSpec(_Frozen):
    description: str
    contagion_multiplier: float
    emotion_amplification: float
    mood_stabilization: float


class ChamberTemplate(_Frozen):
    name: str
    chamber_type: ChamberType
    resonance_emotion: Optional[Emotion] = None
    atmosphere: str
    effects: dict[str, float]


class EmotionTables(_Frozen):
    version: str
    emotion_valence: dict[Emotion, float]
    emotion_arousal: dict[Emotion, float]
    mood_prototypes: tuple[MoodPrototype, ...]
    emotion_to_weather: dict[Emotion, WeatherMapping]
    neutral_weather: WeatherType
    weather_transitions: dict[WeatherType, tuple[WeatherType, ...]]
    weather_emotions: dict[WeatherType, WeatherEmotion]
    time_boundaries: dict[TimeOfDay, tuple[int, int]]
    time_of_day_effects: dict[TimeOfDay, TimeOfDayEffect]
    conversation_effects: dict[ConversationEvent, ConversationEffect]
    personality_presets: dict[str, PersonalityPreset]
    character_presets: dict[str, str]
    default_preset: str
    chamber_types: dict[ChamberType, ChamberTypeSpec]
    chamber_templates: tuple[ChamberTemplate, ...]


@lru_cache(maxsize=None)
def load_tables(path: Path = TABLES_PATH) -> EmotionTables:
    """Parse and validate tables.json. Cached, so it is safe to call from anywhere."""
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    tables = EmotionTables.model_validate(raw)
    logger.info(
        f"📐 Emotion tables v{tables.version} loaded "
        f"({len(tables.mood_prototypes)} moods, {len(tables.personality_presets)} presets)"
    )
    return tables
