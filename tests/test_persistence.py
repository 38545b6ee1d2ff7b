"""
tests/test_persistence.py — PostgreSQL save / load.

psycopg2.connect is patched: no database needed.
Run: pytest tests/test_persistence.py -v
"""

from unittest.mock import MagicMock, patch

import pytest

from moodcity.emotions.models import AgentEmotionalProfile, EmotionalState
from moodcity.emotions.types import WeatherType
from moodcity.memory.persistence import EmotionPersistence
from moodcity.world.models import WeatherState


@pytest.fixture
def conn():
    connection = MagicMock()
    with patch("moodcity.memory.persistence.psycopg2.connect", return_value=connection):
        yield connection


def profile(agent_id="alice", joy=42.0):
    return AgentEmotionalProfile(
        world_id="test-world", agent_id=agent_id, preset="curious_optimist",
        emotional_state=EmotionalState(joy=joy), version=3,
    )


class TestConnect:

    def test_commits_on_success(self, conn):
        db = EmotionPersistence("postgresql://test")
        with db.connect():
            pass
        conn.commit.assert_called_once()
        conn.rollback.assert_not_called()
        conn.close.assert_called_once()

    def test_rolls_back_on_error(self, conn):
        db = EmotionPersistence("postgresql://test")
        with pytest.raises(ValueError):
            with db.connect():
                raise ValueError("bad write")
        conn.rollback.assert_called_once()
        conn.commit.assert_not_called()
        conn.close.assert_called_once()


class TestProfiles:

    def test_save_upserts_each_profile(self, conn):
        EmotionPersistence().save_profiles([profile("alice"), profile("bob")])
        cursor = conn.cursor.return_value
        assert cursor.execute.call_count == 2
        sql, params = cursor.execute.call_args[0]
        assert "ON CONFLICT (world_id, agent_id)" in sql
        assert params["agent_id"] == "bob"
        assert params["version"] == 3

    def test_save_nothing_skips_connection(self, conn):
        EmotionPersistence().save_profiles([])
        conn.cursor.assert_not_called()

    def test_load_profiles(self, conn):
        stored = profile("alice", joy=77.0)
        conn.cursor.return_value.fetchall.return_value = [{"profile": stored.model_dump(mode="json")}]

        loaded = EmotionPersistence().load_profiles("test-world")
        assert len(loaded) == 1
        assert loaded[0].agent_id == "alice"
        assert loaded[0].emotional_state.joy == 77.0
        assert loaded[0].version == 3


class TestWeather:

    def test_load_missing_weather(self, conn):
        conn.cursor.return_value.fetchone.return_value = None
        assert EmotionPersistence().load_weather("test-world") is None

    def test_load_weather(self, conn):
        state = WeatherState(world_id="test-world", current_weather=WeatherType.FOG)
        conn.cursor.return_value.fetchone.return_value = {"state": state.model_dump(mode="json")}
        loaded = EmotionPersistence().load_weather("test-world")
        assert loaded.current_weather == WeatherType.FOG

    def test_save_weather(self, conn):
        state = WeatherState(world_id="test-world", current_weather=WeatherType.RAIN)
        EmotionPersistence().save_weather(state)
        sql, params = conn.cursor.return_value.execute.call_args[0]
        assert "world_weather" in sql
        assert params[0] == "test-world"
        assert params[1] == "rain"
        conn.commit.assert_called_once()
