"""
moodcity/emotions/initialization.py

Gives a newly spawned agent its psychology.

Every agent starts from one of the archetype presets in tables.json, with
each number nudged by up to ±10 so no two citizens are identical. Named
characters get their canonical preset; everyone else gets a random one.
"""

import random
from typing import Optional

from loguru import logger

from moodcity.config.tables import PersonalityPreset, load_tables
from moodcity.emotions.engine import EmotionalStateStore
from moodcity.emotions.models import (
    AgentEmotionalProfile, EmotionalState, PersonalityTraits, PsychologicalNeeds, clamp,
)
from moodcity.emotions.types import EMOTIONS, Emotion, Mood, Need

VARIATION = 10


def vary_personality(
    preset: PersonalityPreset, variation: float = VARIATION, rng: Optional[random.Random] = None
) -> dict:
    """Returns the preset's numbers, each shifted by a uniform ±variation and clamped."""
    rng = rng or random.Random()

    def vary(value: float) -> float:
        return clamp(value + (rng.random() - 0.5) * 2 * variation)

    return {
        "name": preset.name,
        "traits": {k: vary(v) for k, v in preset.traits.items()},
        "baseline": {e: vary(preset.baseline[e]) for e in EMOTIONS},
        "empathy": vary(preset.empathy),
        "regulation": vary(preset.regulation),
        "needs": {n: vary(preset.needs[n]) for n in Need},
    }


def select_preset(
    character_name: Optional[str] = None,
    preset_key: Optional[str] = None,
    rng: Optional[random.Random] = None,
) -> str:
    """Explicit preset, then the character map, then a random archetype."""
    tables = load_tables()
    key = preset_key
    if not key and character_name:
        key = tables.character_presets.get(character_name)
    if not key:
        key = (rng or random).choice(list(tables.personality_presets))
    if key not in tables.personality_presets:
        logger.warning(f"Unknown personality preset '{key}', using {tables.default_preset}")
        key = tables.default_preset
    return key


def baseline_state(baseline: dict[Emotion, float], now: float) -> EmotionalState:
    """Initial state straight from the baseline. Mood starts neutral until the first write."""
    joy, trust = baseline[Emotion.JOY], baseline[Emotion.TRUST]
    sadness, fear = baseline[Emotion.SADNESS], baseline[Emotion.FEAR]
    valence = (joy + trust - sadness - fear) / 400 * 100
    arousal = (
        joy + baseline[Emotion.ANGER] + baseline[Emotion.SURPRISE] + baseline[Emotion.ANTICIPATION]
    ) / 400 * 100
    dominance = 100 - (fear + sadness) / 2
    return EmotionalState(
        **{e.value: baseline[e] for e in EMOTIONS},
        valence=valence,
        arousal=arousal,
        dominance=dominance,
        mood=Mood.NEUTRAL,
        mood_intensity=50,
        last_updated=now,
    )


def initialize_agent(
    store: EmotionalStateStore,
    agent_id: str,
    character_name: Optional[str] = None,
    preset_key: Optional[str] = None,
    rng: Optional[random.Random] = None,
) -> AgentEmotionalProfile:
    """
    Create the agent's psychology. Idempotent: an agent that already has a
    profile gets it back unchanged.
    """
    existing = store.get_profile(agent_id)
    if existing is not None:
        logger.debug(f"Agent {agent_id} already has a psychology profile")
        return existing

    rng = rng or random.Random()
    key = select_preset(character_name, preset_key, rng)
    varied = vary_personality(load_tables().personality_presets[key], rng=rng)
    now = store.clock()

    profile = AgentEmotionalProfile(
        world_id=store.world_id,
        agent_id=agent_id,
        preset=key,
        personality=PersonalityTraits(**varied["traits"]),
        emotional_state=baseline_state(varied["baseline"], now),
        emotional_baseline=baseline_state(varied["baseline"], now),
        psychological_needs=PsychologicalNeeds(
            **{n.value: v for n, v in varied["needs"].items()}, last_updated=now
        ),
        emotional_regulation=varied["regulation"],
        empathy=varied["empathy"],
        created_at=now,
        updated_at=now,
    )
    profile = store.add_profile(profile)
    logger.info(f"🌱 Initialized {character_name or agent_id} as {varied['name']}")
    return profile


def initialize_world(
    store: EmotionalStateStore,
    agents: dict[str, Optional[str]],
    rng: Optional[random.Random] = None,
) -> list[AgentEmotionalProfile]:
    """agents: agent_id -> character name (or None for a random archetype)."""
    rng = rng or random.Random()
    profiles = [initialize_agent(store, agent_id, name, rng=rng) for agent_id, name in agents.items()]
    logger.info(f"🏙️  {len(profiles)} citizens have psychology in world {store.world_id}")
    return profiles
