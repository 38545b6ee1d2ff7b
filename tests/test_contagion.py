"""
tests/test_contagion.py — emotional contagion between agents.

Run: pytest tests/test_contagion.py -v
"""

import pytest

from moodcity.emotions.bonds import BondStore
from moodcity.emotions.contagion import (
    ContagionModel, apply_contagion, calculate_contagion_strength,
)
from moodcity.emotions.types import EMOTIONS, Emotion


def emotions(**values) -> dict:
    return {e: float(values.get(e.value, 0.0)) for e in EMOTIONS}


# ─── Pure functions ──────────────────────────────────────────────────────────

class TestContagionStrength:

    def test_symmetric_in_empathy(self):
        for a, b in [(0, 100), (30, 70), (90, 10), (55, 55)]:
            for bond in (0, 10, 50, 100):
                for prox in (0.0, 0.5, 1.0, 2.5):
                    assert calculate_contagion_strength(a, b, bond, prox) == \
                        calculate_contagion_strength(b, a, bond, prox)

    def test_always_between_zero_and_one(self):
        for a in (0, 50, 100):
            for bond in (0, 100, 500):
                for prox in (0.0, 1.0, 10.0):
                    assert 0 <= calculate_contagion_strength(a, 100, bond, prox) <= 1

    def test_scenario_strength(self):
        assert calculate_contagion_strength(70, 70, 50, 1.0) == pytest.approx(0.315)

    def test_zero_proximity(self):
        assert calculate_contagion_strength(100, 100, 100, 0.0) == 0


class TestApplyContagion:

    def test_zero_strength_is_noop(self):
        target = emotions(joy=20, fear=70)
        assert apply_contagion(target, emotions(joy=90), 0.0) == target

    def test_full_strength_copies_source(self):
        source = emotions(joy=85, sadness=10, anticipation=40)
        assert apply_contagion(emotions(fear=70), source, 1.0) == source

    def test_moves_toward_source(self):
        result = apply_contagion(emotions(joy=20), emotions(joy=85), 0.315)
        assert result[Emotion.JOY] == pytest.approx(40.475)


# ─── ContagionModel ──────────────────────────────────────────────────────────

class TestProcessContagion:

    def setup_method(self):
        self.bonds = BondStore()

    def test_scenario_joy_transfer(self, store, make_profile, bus):
        make_profile("source", empathy=70, joy=85)
        make_profile("target", empathy=70, joy=20)
        bond = self.bonds.initialize_bond("source", "target")
        bond.affection, bond.trust = 50, 50

        result = ContagionModel(store, self.bonds).process_contagion(
            "source", "target", proximity=1.0, context="conversation", conversation_id="c42"
        )

        assert result.strength == pytest.approx(0.315)
        assert result.new_state.joy == pytest.approx(40.475)
        assert result.dominant_emotion == Emotion.JOY
        assert result.dominant_change == pytest.approx(20.475)

        events = bus.events_of("contagion")
        assert len(events) == 1
        assert events[0].source_agent_id == "source"
        assert events[0].target_agent_id == "target"
        assert events[0].emotion == "joy"
        assert events[0].conversation_id == "c42"

    def test_source_is_not_modified(self, store, make_profile):
        source = make_profile("source", empathy=70, joy=85)
        make_profile("target", empathy=70, joy=20)
        ContagionModel(store, self.bonds).process_contagion("source", "target")
        assert source.emotional_state.joy == 85
        assert source.version == 0

    def test_default_bond_when_strangers(self, store, make_profile):
        make_profile("a", empathy=100, fear=100)
        make_profile("b", empathy=100)
        result = ContagionModel(store, self.bonds).process_contagion("a", "b", proximity=1.0)
        # 0.3 * 1.0 * (1 + 10/100)
        assert result.strength == pytest.approx(0.33)

    def test_works_without_bond_store(self, store, make_profile):
        make_profile("a", empathy=100, fear=100)
        make_profile("b", empathy=100)
        result = ContagionModel(store).process_contagion("a", "b")
        assert result.strength == pytest.approx(0.33)

    def test_small_transfer_not_published(self, store, make_profile, bus):
        make_profile("a", empathy=10, joy=30)
        make_profile("b", empathy=10, joy=20)
        result = ContagionModel(store, self.bonds).process_contagion("a", "b")
        assert not result.significant
        assert bus.events_of("contagion") == []

    def test_missing_agent_returns_none(self, store, make_profile):
        make_profile("a")
        model = ContagionModel(store, self.bonds)
        assert model.process_contagion("a", "ghost") is None
        assert model.process_contagion("ghost", "a") is None

    def test_target_decays_before_contagion(self, store, make_profile, clock):
        make_profile("a", empathy=0, regulation=0)
        make_profile("b", empathy=0, regulation=0, sadness=100)
        clock.advance(60)
        result = ContagionModel(store, self.bonds).process_contagion("a", "b", proximity=0.0)
        assert result.new_state.sadness == pytest.approx(95.0)
