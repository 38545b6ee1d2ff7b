"""
moodcity/memory/persistence.py

Saves and loads emotion-core state from PostgreSQL.
Requires: pip install psycopg2-binary
Set env var: DATABASE_URL=postgresql://localhost/moodcity

Profiles, weather and chambers are upserted (one row per key). Atmosphere
snapshots are append-only.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Optional

import psycopg2
import psycopg2.extras
from loguru import logger

from moodcity.config.settings import DATABASE_URL
from moodcity.emotions.models import AgentEmotionalProfile
from moodcity.world.models import AtmosphereSnapshot, ResonanceChamber, WeatherState

SCHEMA_PATH = Path(__file__).parent / "schema.sql"


class EmotionPersistence:

    def __init__(self, db_url: str = DATABASE_URL):
        self.db_url = db_url

    @contextmanager
    def connect(self):
        conn = psycopg2.connect(self.db_url)
        conn.autocommit = False
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def init_schema(self):
        with open(SCHEMA_PATH, "r", encoding="utf-8") as f:
            schema = f.read()
        with self.connect() as conn:
            conn.cursor().execute(schema)
        logger.info("💾 Emotion schema ready")

    # ── Profiles ──────────────────────────────────────────────────

    def save_profiles(self, profiles: list[AgentEmotionalProfile]):
        if not profiles:
            return
        with self.connect() as conn:
            cur = conn.cursor()
            for profile in profiles:
                cur.execute("""
                    INSERT INTO agent_psychology
                        (world_id, agent_id, preset, profile, version, updated_at)
                    VALUES
                        (%(world_id)s, %(agent_id)s, %(preset)s, %(profile)s,
                         %(version)s, %(updated_at)s)
                    ON CONFLICT (world_id, agent_id) DO UPDATE SET
                        preset     = EXCLUDED.preset,
                        profile    = EXCLUDED.profile,
                        version    = EXCLUDED.version,
                        updated_at = EXCLUDED.updated_at
                """, {
                    "world_id":   profile.world_id,
                    "agent_id":   profile.agent_id,
                    "preset":     profile.preset,
                    "profile":    psycopg2.extras.Json(profile.model_dump(mode="json")),
                    "version":    profile.version,
                    "updated_at": profile.updated_at,
                })
        logger.debug(f"💾 Saved {len(profiles)} psychology profiles")

    def load_profiles(self, world_id: str) -> list[AgentEmotionalProfile]:
        with self.connect() as conn:
            cur = conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor)
            cur.execute(
                "SELECT profile FROM agent_psychology WHERE world_id = %s ORDER BY agent_id",
                (world_id,),
            )
            rows = cur.fetchall()
        profiles = [AgentEmotionalProfile.model_validate(r["profile"]) for r in rows]
        logger.info(f"🔄 Loaded {len(profiles)} psychology profiles for world {world_id}")
        return profiles

    # ── World ─────────────────────────────────────────────────────

    def save_atmosphere(self, snapshot: AtmosphereSnapshot):
        with self.connect() as conn:
            conn.cursor().execute("""
                INSERT INTO world_atmosphere
                    (world_id, average_valence, average_arousal, dominant_emotion,
                     trend, intensity, snapshot, calculated_at)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
            """, (
                snapshot.world_id, snapshot.average_valence, snapshot.average_arousal,
                snapshot.dominant_emotion, snapshot.trend, snapshot.intensity,
                psycopg2.extras.Json(snapshot.model_dump(mode="json")), snapshot.calculated_at,
            ))

    def save_weather(self, state: WeatherState):
        with self.connect() as conn:
            conn.cursor().execute("""
                INSERT INTO world_weather (world_id, current_weather, state, last_updated)
                VALUES (%s, %s, %s, %s)
                ON CONFLICT (world_id) DO UPDATE SET
                    current_weather = EXCLUDED.current_weather,
                    state           = EXCLUDED.state,
                    last_updated    = EXCLUDED.last_updated
            """, (
                state.world_id, state.current_weather,
                psycopg2.extras.Json(state.model_dump(mode="json")), state.last_updated,
            ))

    def load_weather(self, world_id: str) -> Optional[WeatherState]:
        """None if this world never saved any weather."""
        with self.connect() as conn:
            cur = conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor)
            cur.execute("SELECT state FROM world_weather WHERE world_id = %s", (world_id,))
            row = cur.fetchone()
        if not row:
            return None
        return WeatherState.model_validate(row["state"])

    def save_chambers(self, chambers: list[ResonanceChamber]):
        if not chambers:
            return
        with self.connect() as conn:
            cur = conn.cursor()
            for chamber in chambers:
                cur.execute("""
                    INSERT INTO resonance_chambers
                        (world_id, chamber_id, location_name, active, chamber, last_updated)
                    VALUES (%s, %s, %s, %s, %s, %s)
                    ON CONFLICT (world_id, chamber_id) DO UPDATE SET
                        active       = EXCLUDED.active,
                        chamber      = EXCLUDED.chamber,
                        last_updated = EXCLUDED.last_updated
                """, (
                    chamber.world_id, chamber.chamber_id, chamber.location_name,
                    chamber.active_resonance,
                    psycopg2.extras.Json(chamber.model_dump(mode="json")), chamber.last_updated,
                ))
