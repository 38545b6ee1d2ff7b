"""
main.py — Entry point for MoodCity.

Spawns a handful of citizens, lets them wander between the resonance
chambers and talk to whoever they bump into, and prints the city's mood
every tick.

Requirements (all optional; the simulation runs without them):
    - PostgreSQL running locally (DATABASE_URL in .env) for persistence
    - Redis running (REDIS_URL in .env) for the event outbox
    - Dashboard listening on MOODCITY_DASHBOARD_URL

Run:
    python main.py
"""

import random

from dotenv import load_dotenv
load_dotenv()

from moodcity.events.publishers import DashboardNotifier, RedisEventPublisher
from moodcity.memory.persistence import EmotionPersistence
from moodcity.os.simulation import WorldSimulation

CITIZENS = {
    "alice": "Alice",
    "rabbit": "White Rabbit",
    "hatter": "Mad Hatter",
    "queen": "Queen of Hearts",
    "dormouse": None,
    "cat": None,
}


def wandering_positions(sim: WorldSimulation, rng: random.Random):
    """Each tick, every citizen drifts toward the chamber that suits their mood."""
    positions = {agent_id: (rng.uniform(0, 96), rng.uniform(0, 72)) for agent_id in CITIZENS}

    def provider(tick: int) -> dict:
        for agent_id, (x, y) in positions.items():
            chamber = sim.chambers.find_resonant_chamber(agent_id)
            if chamber is None:
                continue
            tx = chamber.area.x + rng.uniform(0, chamber.area.width)
            ty = chamber.area.y + rng.uniform(0, chamber.area.height)
            # Move half the way each tick
            positions[agent_id] = (x + (tx - x) * 0.5, y + (ty - y) * 0.5)

        # Anyone sharing a chamber has a chance to chat
        for chamber in sim.chambers.active_chambers():
            a, b = chamber.current_occupants[:2]
            if rng.random() < 0.3:
                sim.conversations.update_emotions_from_conversation(a, "conversation_started", b)
                sim.conversations.process_post_conversation(a, b, was_positive=rng.random() < 0.7)
        return dict(positions)

    return provider


if __name__ == "__main__":
    rng = random.Random()
    persistence = EmotionPersistence()
    sim = WorldSimulation("main", rng=rng, persistence=persistence)
    sim.events.subscribe(RedisEventPublisher(sim.world_id))
    sim.events.subscribe(DashboardNotifier())

    try:
        persistence.init_schema()
        resumed = sim.restore()
    except Exception as e:
        print(f"⚠️  Persistence unavailable ({e}) — running in memory only")
        sim.persistence = None
        resumed = False

    if resumed:
        print(f"🔄 Resuming MoodCity with {len(sim.store)} citizens")
    else:
        sim.populate(CITIZENS)
        print("🌌 New city created")

    sim.run(ticks=120, positions_provider=wandering_positions(sim, rng), speed=2.0)
