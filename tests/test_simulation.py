"""
tests/test_simulation.py — the world tick wiring every subsystem together.

Run: pytest tests/test_simulation.py -v
"""

import random
from unittest.mock import MagicMock

import pytest

from moodcity.emotions.models import AgentEmotionalProfile, EmotionalState
from moodcity.emotions.types import TimeOfDay
from moodcity.os.simulation import WorldSimulation
from moodcity.world.weather import INITIAL_DURATION

JOY_CAFE = (12.0, 35.0)


@pytest.fixture
def sim(clock):
    return WorldSimulation("sim", clock=clock, rng=random.Random(11), time_scale=10, start_hour=9)


def blank_agent(sim, agent_id, **emotions):
    """A citizen feeling exactly `emotions` and nothing else."""
    now = sim.store.clock()
    return sim.store.add_profile(AgentEmotionalProfile(
        world_id=sim.world_id,
        agent_id=agent_id,
        emotional_state=EmotionalState(**emotions, last_updated=now),
        emotional_baseline=EmotionalState(**emotions, last_updated=now),
    ))


class TestSetup:

    def test_populate(self, sim):
        profiles = sim.populate({"alice": "Alice", "rabbit": "White Rabbit", "extra": None})
        assert len(profiles) == 3
        assert sim.store.get_profile("alice").preset == "curious_optimist"
        assert sim.weather.state is not None
        assert len(sim.chambers.chambers) == 6

    def test_restore_without_persistence(self, sim):
        assert sim.restore() is False

    def test_restore_from_saved_profiles(self, sim):
        persistence = MagicMock()
        persistence.load_profiles.return_value = [
            AgentEmotionalProfile(world_id="sim", agent_id="alice", preset="curious_optimist"),
        ]
        persistence.load_weather.return_value = None
        sim.persistence = persistence

        assert sim.restore() is True
        assert "alice" in sim.store
        assert sim.weather.state is not None
        assert len(sim.chambers.chambers) == 6


class TestTick:

    def test_quiet_tick(self, sim):
        blank_agent(sim, "alice", joy=60)
        report = sim.tick()
        assert report.tick == 1
        assert report.atmosphere.agent_count == 1
        assert not report.weather.weather_changed
        assert not report.time.time_changed
        assert report.resonating == []
        # Only the standing weather touched her
        assert sim.store.get_profile("alice").version == 1

    def test_weather_pushes_every_tick_within_one_window(self, sim, clock):
        blank_agent(sim, "alice")
        sim.tick()
        first = sim.store.get_emotional_state("alice").trust
        clock.advance(1)

        report = sim.tick()
        assert not report.weather.weather_changed
        assert sim.weather.state.current_weather == "partly_cloudy"
        second = sim.store.get_emotional_state("alice").trust
        assert first > 0
        assert second > first

    def test_time_of_day_change_reaches_agents(self, clock):
        sim = WorldSimulation("sim", clock=clock, rng=random.Random(3), time_scale=10, start_hour=11)
        blank_agent(sim, "alice")
        clock.advance(60 * 60 / 10)

        report = sim.tick()
        assert report.time.time_of_day == TimeOfDay.AFTERNOON
        assert report.time.time_changed
        assert sim.store.get_emotional_state("alice").trust > 0
        assert len(sim.events.events_of("time_change")) == 1

    def test_weather_change_reaches_agents(self, sim, clock, scripted):
        blank_agent(sim, "alice")
        sim.tick()
        sim.weather.rng = scripted(0.9, 0.0, 0.5)
        clock.advance(INITIAL_DURATION)

        report = sim.tick()
        assert report.weather.weather_changed
        assert report.weather.new_weather == "clear"
        assert sim.store.get_emotional_state("alice").joy > 0

    def test_shared_chamber_resonates(self, sim):
        sim.chambers.initialize_chambers()
        blank_agent(sim, "alice", joy=70)
        blank_agent(sim, "bob", joy=70)

        report = sim.tick({"alice": JOY_CAFE, "bob": JOY_CAFE})
        assert [c.chamber_id for c in report.resonating] == ["chamber_1"]
        assert len(sim.events.events_of("chamber_resonance")) == 1

    def test_tick_persists_everything(self, sim):
        sim.persistence = MagicMock()
        blank_agent(sim, "alice", joy=60)
        sim.tick()
        sim.persistence.save_profiles.assert_called_once()
        sim.persistence.save_atmosphere.assert_called_once()
        sim.persistence.save_weather.assert_called_once()
        sim.persistence.save_chambers.assert_called_once()

    def test_persistence_failure_does_not_stop_the_tick(self, sim):
        sim.persistence = MagicMock()
        sim.persistence.save_profiles.side_effect = ConnectionError("db down")
        blank_agent(sim, "alice")
        report = sim.tick()
        assert report.tick == 1


class TestRun:

    def test_run_without_sleeping(self, sim):
        sim.populate({"alice": "Alice", "queen": "Queen of Hearts"})
        seen = []

        def positions(tick):
            seen.append(tick)
            return {"alice": JOY_CAFE, "queen": JOY_CAFE}

        reports = sim.run(ticks=3, positions_provider=positions, speed=0)
        assert [r.tick for r in reports] == [1, 2, 3]
        assert seen == [1, 2, 3]
