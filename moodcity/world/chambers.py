"""
moodcity/world/chambers.py

Resonance chambers: places where feelings get louder (amplifiers), quieter
(stabilizers) or easier to change (transformers) when people share them.

A chamber only resonates with 2+ agents inside. While it does, the feeling
most occupants share is pushed back into all of them, contagion between
neighbours is boosted or damped by the chamber type, and stabilizers pull
occupants back toward their baseline.

All coordinates are tile units. Areas are half-open boxes [x, x+w) × [y, y+h).

Usage:
    field = ResonanceChamberField(store, contagion)
    field.initialize_chambers(map_width=96, map_height=72)
    field.update_chamber_occupancy({"alice": (30.0, 35.0), ...})
    field.apply_resonance_effects()
"""

from collections import Counter
from typing import Optional

from loguru import logger

from moodcity.config.tables import load_tables
from moodcity.emotions.contagion import ContagionModel
from moodcity.emotions.engine import EmotionalStateStore
from moodcity.emotions.types import EMOTIONS, ChamberType, Emotion
from moodcity.events.domain import ChamberResonated
from moodcity.world.models import ChamberArea, ChamberEffects, ResonanceChamber

# Default map size, matches the city tile map
MAP_WIDTH = 96
MAP_HEIGHT = 72

CHAMBER_SIZE = 4
CHAMBER_CAPACITY = 6
RESONANCE_STRENGTH = 75
MIN_OCCUPANTS = 2

# Share of (amplification - 1) * resonance pushed back into occupants per tick
AMPLIFICATION_RATE = 0.3
# Baseline pull per point of stabilization above 1.0
STABILIZATION_RATE = 0.05


class ResonanceChamberField:

    def __init__(self, store: EmotionalStateStore, contagion: ContagionModel):
        self.store = store
        self.contagion = contagion
        self.chambers: dict[str, ResonanceChamber] = {}

    # ── Setup ─────────────────────────────────────────────────────

    def initialize_chambers(self, map_width: int = MAP_WIDTH, map_height: int = MAP_HEIGHT) -> list[ResonanceChamber]:
        """Spread one chamber per template along the map's horizontal midline. Idempotent."""
        if self.chambers:
            return list(self.chambers.values())

        tables = load_tables()
        templates = tables.chamber_templates
        now = self.store.clock()
        half = CHAMBER_SIZE // 2

        for i, template in enumerate(templates):
            x = int(map_width / (len(templates) + 1) * (i + 1))
            y = int(map_height / 2)
            chamber = ResonanceChamber(
                world_id=self.store.world_id,
                chamber_id=f"chamber_{i + 1}",
                location_name=template.name,
                chamber_type=template.chamber_type,
                area=ChamberArea(x=x - half, y=y - half, width=CHAMBER_SIZE, height=CHAMBER_SIZE),
                resonance_emotion=template.resonance_emotion,
                resonance_strength=RESONANCE_STRENGTH,
                contagion_multiplier=tables.chamber_types[template.chamber_type].contagion_multiplier,
                capacity=CHAMBER_CAPACITY,
                effects=ChamberEffects(**template.effects),
                atmosphere=template.atmosphere,
                last_updated=now,
            )
            self.chambers[chamber.chamber_id] = chamber

        logger.info(f"🔮 Initialized {len(self.chambers)} resonance chambers")
        return list(self.chambers.values())

    def add_chamber(self, chamber: ResonanceChamber) -> None:
        self.chambers[chamber.chamber_id] = chamber

    # ── Queries ───────────────────────────────────────────────────

    def check_agent_in_chamber(self, position: tuple[float, float]) -> Optional[ResonanceChamber]:
        x, y = position
        for chamber in self.chambers.values():
            if chamber.area.contains(x, y):
                return chamber
        return None

    def active_chambers(self) -> list[ResonanceChamber]:
        return [c for c in self.chambers.values() if c.active_resonance]

    def find_resonant_chamber(self, agent_id: str) -> Optional[ResonanceChamber]:
        """The chamber that best suits how the agent feels right now."""
        state = self.store.get_emotional_state(agent_id)
        if state is None or not self.chambers:
            return None

        dominant, _ = state.dominant_emotion()
        best, best_score = None, None
        for chamber in self.chambers.values():
            score = 0
            if chamber.resonance_emotion == dominant:
                score += 50

            # Keyed up → amplify; drained → stabilize; undecided → transform
            if state.arousal > 70 and chamber.chamber_type == ChamberType.AMPLIFIER:
                score += 20
            elif state.arousal < 30 and chamber.chamber_type == ChamberType.STABILIZER:
                score += 20
            elif abs(state.valence) < 20 and chamber.chamber_type == ChamberType.TRANSFORMER:
                score += 15

            if chamber.at_capacity:
                score -= 30

            if chamber.active_resonance and chamber.dominant_emotion == dominant:
                score += 25

            if best_score is None or score > best_score:
                best, best_score = chamber, score
        return best

    # ── Tick ──────────────────────────────────────────────────────

    def update_chamber_occupancy(self, positions: dict[str, tuple[float, float]]) -> None:
        """Recompute who is in each chamber. No hysteresis: 2+ inside means active."""
        now = self.store.clock()
        for chamber in self.chambers.values():
            chamber.current_occupants = [
                agent_id for agent_id, (x, y) in positions.items() if chamber.area.contains(x, y)
            ]
            chamber.active_resonance = len(chamber.current_occupants) >= MIN_OCCUPANTS
            if not chamber.active_resonance:
                chamber.dominant_emotion = None
                chamber.resonance_intensity = 0.0
            chamber.last_updated = now

    def apply_resonance_effects(self) -> list[ResonanceChamber]:
        """Returns the chambers that resonated this tick."""
        resonated = []
        for chamber in self.active_chambers():
            if self._resonate(chamber):
                resonated.append(chamber)
        return resonated

    def _resonate(self, chamber: ResonanceChamber) -> bool:
        states = {}
        for agent_id in chamber.current_occupants:
            state = self.store.get_emotional_state(agent_id)
            if state is not None:
                states[agent_id] = state
        if not states:
            return False

        votes = Counter()
        values: dict[Emotion, list[float]] = {}
        for state in states.values():
            emotion, value = state.dominant_emotion()
            votes[emotion] += 1
            values.setdefault(emotion, []).append(value)

        top = max(votes.values())
        dominant = next(e for e in EMOTIONS if votes.get(e) == top)
        alignment = top / len(states)
        intensity = alignment * sum(values[dominant]) / len(values[dominant])

        chamber.dominant_emotion = dominant.value
        chamber.resonance_intensity = intensity
        chamber.last_updated = self.store.clock()

        occupants = chamber.current_occupants
        amplification = (chamber.effects.emotion_amplification - 1.0) * intensity * AMPLIFICATION_RATE
        context = f"resonance_chamber_{ChamberType(chamber.chamber_type).value}"

        for i, agent_id in enumerate(occupants):
            if amplification > 0:
                self.store.trigger_emotion(
                    agent_id, dominant, amplification, cause=f"resonance_{chamber.location_name}"
                )
            if i < len(occupants) - 1:
                self.contagion.process_contagion(
                    agent_id, occupants[i + 1],
                    proximity=chamber.contagion_multiplier,
                    context=context,
                )

        stabilization = chamber.effects.mood_stabilization
        if chamber.chamber_type == ChamberType.STABILIZER and stabilization > 1:
            factor = STABILIZATION_RATE * (stabilization - 1)
            for agent_id in occupants:
                self.store.regulate_toward_baseline(agent_id, factor)

        logger.info(
            f"🔮 Resonance: {chamber.location_name} - {dominant.value} ({intensity:.0f}) "
            f"affecting {len(occupants)} agents"
        )
        self.store.events.publish(ChamberResonated(
            world_id=self.store.world_id,
            chamber_id=chamber.chamber_id,
            location_name=chamber.location_name,
            dominant_emotion=dominant,
            resonance_intensity=intensity,
            occupants=list(occupants),
        ))
        return True
