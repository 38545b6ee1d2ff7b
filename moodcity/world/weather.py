"""
moodcity/world/weather.py

Weather that listens to the city's mood and talks back.

Each weather holds for a random 10-30 minute window. When it runs out, a
roll against emotional_influence decides who picks the next one:

    roll < influence and an atmosphere exists  → the collective emotion
    otherwise                                  → a natural Markov step

The active weather then nudges every agent toward its primary emotion,
which moves the atmosphere, which moves the weather again.

Usage:
    weather = WeatherController(store, atmosphere)
    weather.initialize()
    result = weather.update_world_weather()
    if result.weather_changed:
        weather.apply_weather_effects()
"""

import random
from dataclasses import dataclass, field
from typing import Callable, Optional, Union

from loguru import logger

from moodcity.config.tables import load_tables
from moodcity.emotions.engine import EmotionalStateStore
from moodcity.emotions.types import Emotion, WeatherType
from moodcity.events.domain import WeatherChanged
from moodcity.world.atmosphere import AtmosphereAggregator
from moodcity.world.models import WeatherHistoryEntry, WeatherState

HISTORY_LENGTH = 5
INITIAL_DURATION = 15 * 60   # seconds


@dataclass
class WeatherResult:
    weather: WeatherType
    emotionally_driven: bool


@dataclass
class WeatherUpdate:
    weather_changed: bool
    new_weather: Optional[WeatherType] = None
    emotionally_driven: bool = False
    triggering_emotion: Optional[Emotion] = None


@dataclass
class WeatherEffects:
    valence: float
    arousal: float
    emotions: list = field(default_factory=list)  # [(Emotion, change)]


def determine_emotional_weather(
    dominant_emotion: Union[Emotion, str],
    intensity: float,
    valence: float,
    arousal: float,
) -> WeatherResult:
    """Weather the collective emotion would produce, if it is strong enough."""
    tables = load_tables()
    mapping = tables.emotion_to_weather.get(Emotion(dominant_emotion))
    if mapping is None or intensity < mapping.threshold:
        return WeatherResult(tables.neutral_weather, False)

    weather = mapping.weather

    # Arousal sets how hard it rains
    if weather == WeatherType.RAIN and arousal > 70:
        weather = WeatherType.STORM
    elif weather == WeatherType.RAIN and arousal < 30:
        weather = WeatherType.LIGHT_RAIN

    # Valence lightens or darkens cloud cover
    if weather == WeatherType.CLOUDY and valence > 40:
        weather = WeatherType.PARTLY_CLOUDY
    elif weather == WeatherType.CLOUDY and valence < -40:
        weather = WeatherType.OVERCAST

    return WeatherResult(weather, True)


def generate_natural_weather(current: Union[WeatherType, str], rng: random.Random) -> WeatherType:
    """One step of the transition table. Weather tends to persist or drift gradually."""
    options = load_tables().weather_transitions.get(
        WeatherType(current),
        (WeatherType.PARTLY_CLOUDY, WeatherType.CLEAR, WeatherType.CLOUDY),
    )
    return options[int(rng.random() * len(options))]


def get_weather_emotional_effects(weather: Union[WeatherType, str], intensity: float = 50) -> WeatherEffects:
    """Intensity 50 is the unscaled effect; 100 doubles it."""
    effect = load_tables().weather_emotions[WeatherType(weather)]
    scale = intensity / 50
    return WeatherEffects(
        valence=effect.valence * scale,
        arousal=effect.arousal * scale,
        emotions=[(effect.primary_emotion, 10 * scale)],
    )


class WeatherController:

    def __init__(
        self,
        store: EmotionalStateStore,
        atmosphere: AtmosphereAggregator,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.store = store
        self.atmosphere = atmosphere
        self.rng = rng or random.Random()
        self.clock = clock or store.clock
        self.state: Optional[WeatherState] = None

    def initialize(self, initial_weather: Union[WeatherType, str] = WeatherType.PARTLY_CLOUDY) -> WeatherState:
        """Idempotent: an existing weather state is returned as-is."""
        if self.state is not None:
            return self.state
        now = self.clock()
        weather = WeatherType(initial_weather)
        self.state = WeatherState(
            world_id=self.store.world_id,
            current_weather=weather,
            weather_intensity=50,
            emotional_influence=30,
            next_weather=WeatherType.PARTLY_CLOUDY,
            weather_start_time=now,
            weather_duration=INITIAL_DURATION,
            recent_weather=[WeatherHistoryEntry(weather=weather, timestamp=now, emotionally_driven=False)],
            last_updated=now,
        )
        logger.info(f"🌤️  Weather initialized: {weather.value}")
        return self.state

    def update_world_weather(self) -> WeatherUpdate:
        if self.state is None:
            raise RuntimeError(f"Weather not initialized for world {self.store.world_id}")

        state = self.state
        now = self.clock()
        elapsed = now - state.weather_start_time

        if elapsed < state.weather_duration:
            state.transition_progress = elapsed / state.weather_duration
            state.last_updated = now
            return WeatherUpdate(weather_changed=False)

        snapshot = self.atmosphere.latest()
        roll = self.rng.random() * 100
        emotionally_driven = False
        triggering = None

        if snapshot is not None and roll < state.emotional_influence:
            result = determine_emotional_weather(
                snapshot.dominant_emotion,
                snapshot.intensity,
                snapshot.average_valence,
                snapshot.average_arousal,
            )
            new_weather, emotionally_driven = result.weather, result.emotionally_driven
            if emotionally_driven:
                triggering = Emotion(snapshot.dominant_emotion)
            logger.info(
                f"🌥️  Emotional weather: {snapshot.dominant_emotion} "
                f"({snapshot.intensity:.0f}) → {WeatherType(new_weather).value}"
            )
        else:
            new_weather = generate_natural_weather(state.current_weather, self.rng)

        new_weather = WeatherType(new_weather)
        previous = WeatherType(state.current_weather)

        state.current_weather = new_weather
        state.weather_start_time = now
        state.weather_duration = (10 + self.rng.random() * 20) * 60
        state.transition_progress = 0.0
        state.recent_weather = (state.recent_weather + [
            WeatherHistoryEntry(weather=new_weather, timestamp=now, emotionally_driven=emotionally_driven)
        ])[-HISTORY_LENGTH:]
        state.last_updated = now

        logger.info(
            f"🌦️  Weather: {previous.value} → {new_weather.value}"
            + (f" (driven by {triggering.value})" if triggering else " (natural)")
        )
        self.store.events.publish(WeatherChanged(
            world_id=self.store.world_id,
            previous_weather=previous,
            new_weather=new_weather,
            emotionally_driven=emotionally_driven,
            triggering_emotion=triggering,
        ))
        return WeatherUpdate(
            weather_changed=True,
            new_weather=new_weather,
            emotionally_driven=emotionally_driven,
            triggering_emotion=triggering,
        )

    def apply_weather_effects(self) -> Optional[WeatherEffects]:
        """
        Push the weather's primary emotion into every agent.

        Valence and arousal are derived from the emotion channels, so the
        returned valence/arousal deltas are informational only.
        """
        if self.state is None:
            return None
        weather = WeatherType(self.state.current_weather)
        effects = get_weather_emotional_effects(weather, self.state.weather_intensity)
        for agent_id in self.store.agent_ids():
            for emotion, change in effects.emotions:
                if change != 0:
                    self.store.trigger_emotion(agent_id, emotion, change, cause=f"weather_{weather.value}")
        logger.debug(f"🌦️  Applied {weather.value} effects to {len(self.store)} agents")
        return effects
