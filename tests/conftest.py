"""
tests/conftest.py — shared fixtures.

FakeClock and ScriptedRandom make decay, weather timing and random rolls
deterministic.
"""

import random

import pytest

from moodcity.emotions.engine import EmotionalStateStore
from moodcity.emotions.models import (
    AgentEmotionalProfile, EmotionalState, PersonalityTraits, PsychologicalNeeds,
)
from moodcity.events.bus import EventBus

START = 1_700_000_000.0


class FakeClock:

    def __init__(self, start: float = START):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class ScriptedRandom(random.Random):
    """random() replays the given values in order, then repeats the last one."""

    def __init__(self, *values: float):
        super().__init__(0)
        self.values = list(values) or [0.5]

    def random(self) -> float:
        if len(self.values) > 1:
            return self.values.pop(0)
        return self.values[0]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def store(clock, bus):
    return EmotionalStateStore("test-world", bus, clock=clock)


@pytest.fixture
def make_profile(store, clock):
    """
    Builds and registers a profile. Emotions not given are 0; the baseline
    defaults to the same values as the current state.
    """
    def _make(agent_id: str, empathy: float = 50, regulation: float = 50,
              traits: dict = None, baseline: dict = None, needs: dict = None, **emotions):
        state = EmotionalState(**emotions, last_updated=clock())
        base = EmotionalState(**(baseline if baseline is not None else emotions), last_updated=clock())
        profile = AgentEmotionalProfile(
            world_id=store.world_id,
            agent_id=agent_id,
            preset="test",
            personality=PersonalityTraits(**(traits or {})),
            emotional_state=state,
            emotional_baseline=base,
            psychological_needs=PsychologicalNeeds(**(needs or {})),
            emotional_regulation=regulation,
            empathy=empathy,
        )
        return store.add_profile(profile)
    return _make


@pytest.fixture
def scripted():
    """scripted(0.2, 0.9) -> a ScriptedRandom replaying those rolls."""
    return ScriptedRandom
