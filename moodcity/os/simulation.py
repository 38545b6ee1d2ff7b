"""
moodcity/os/simulation.py

The world tick. Wires every emotion subsystem together in a fixed order:

    1. clock        — advance in-world time
    2. atmosphere   — sample every agent's decayed state
    3. weather      — hold, drift naturally, or follow the atmosphere
    4. environment  — time-of-day and weather feelings pushed into agents
    5. chambers     — occupancy from positions, then resonance

Conversations, memories and other outside drivers write through the same
components (simulation.conversations, simulation.memories, simulation.store)
between ticks.

Usage:
    sim = WorldSimulation("main")
    sim.populate({"alice": "Alice", "bob": None})
    report = sim.tick({"alice": (30.0, 35.0), "bob": (31.0, 35.0)})
"""

import random
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from moodcity.emotions.bonds import BondStore
from moodcity.emotions.contagion import ContagionModel
from moodcity.emotions.engine import EmotionalStateStore
from moodcity.emotions.initialization import initialize_world
from moodcity.emotions.integration import ConversationEmotions
from moodcity.emotions.memory_resonance import MemoryResonanceIndex
from moodcity.emotions.models import AgentEmotionalProfile
from moodcity.events.bus import EventBus
from moodcity.world.atmosphere import AtmosphereAggregator
from moodcity.world.chambers import MAP_HEIGHT, MAP_WIDTH, ResonanceChamberField
from moodcity.world.clock import TimeUpdate, WorldClock, get_time_of_day_emotional_modifiers
from moodcity.world.models import AtmosphereSnapshot, ResonanceChamber
from moodcity.world.weather import WeatherController, WeatherUpdate

console = Console()

Positions = dict[str, tuple[float, float]]


@dataclass
class TickReport:
    tick: int
    time: TimeUpdate
    atmosphere: Optional[AtmosphereSnapshot]
    weather: WeatherUpdate
    resonating: list[ResonanceChamber] = field(default_factory=list)


class WorldSimulation:

    def __init__(
        self,
        world_id: str = "main",
        clock: Callable[[], float] = time.time,
        rng: Optional[random.Random] = None,
        event_bus: Optional[EventBus] = None,
        persistence=None,
        time_scale: Optional[float] = None,
        start_hour: Optional[int] = None,
    ):
        self.world_id = world_id
        self.rng = rng or random.Random()
        self.persistence = persistence
        self.tick_count = 0

        self.store = EmotionalStateStore(world_id, event_bus or EventBus(), clock=clock)
        self.bonds = BondStore(clock=clock)
        self.contagion = ContagionModel(self.store, self.bonds)
        self.memories = MemoryResonanceIndex(self.store)
        self.conversations = ConversationEmotions(self.store, self.contagion, self.bonds)
        self.atmosphere = AtmosphereAggregator(self.store)
        self.weather = WeatherController(self.store, self.atmosphere, rng=self.rng)
        self.chambers = ResonanceChamberField(self.store, self.contagion)

        clock_kwargs = {}
        if time_scale is not None:
            clock_kwargs["time_scale"] = time_scale
        if start_hour is not None:
            clock_kwargs["start_hour"] = start_hour
        self.world_clock = WorldClock(world_id, clock=clock, event_bus=self.store.events, **clock_kwargs)

        logger.info(f"MoodCity world '{world_id}' initialized.")

    @property
    def events(self) -> EventBus:
        return self.store.events

    # ─── Setup ────────────────────────────────────────────────────────────────

    def populate(
        self,
        agents: dict[str, Optional[str]],
        map_width: int = MAP_WIDTH,
        map_height: int = MAP_HEIGHT,
    ) -> list[AgentEmotionalProfile]:
        """agents: agent_id -> character name (None for a random archetype)."""
        console.print(Panel.fit("🌈 MOODCITY\n\nFeel. Spread. Remember.", style="bold magenta"))
        profiles = initialize_world(self.store, agents, rng=self.rng)
        self.weather.initialize()
        self.chambers.initialize_chambers(map_width, map_height)
        for profile in profiles:
            console.print(f"🌱 [bold green]{profile.agent_id}[/bold green] ({profile.preset})")
        return profiles

    def restore(self) -> bool:
        """Load saved profiles and weather. Returns False if nothing was saved."""
        if self.persistence is None:
            return False
        profiles = self.persistence.load_profiles(self.world_id)
        for profile in profiles:
            self.store.add_profile(profile)
        weather = self.persistence.load_weather(self.world_id)
        if weather is not None:
            self.weather.state = weather
        else:
            self.weather.initialize()
        self.chambers.initialize_chambers()
        return bool(profiles)

    # ─── Tick ─────────────────────────────────────────────────────────────────

    def tick(self, positions: Optional[Positions] = None) -> TickReport:
        self.tick_count += 1
        if self.weather.state is None:
            self.weather.initialize()

        time_update = self.world_clock.update()
        snapshot = self.atmosphere.calculate_world_atmosphere()
        weather_update = self.weather.update_world_weather()
        self.apply_environmental_effects(time_update)

        resonating = []
        if positions is not None:
            self.chambers.update_chamber_occupancy(positions)
            resonating = self.chambers.apply_resonance_effects()

        if self.persistence is not None:
            self._persist(snapshot)

        return TickReport(
            tick=self.tick_count,
            time=time_update,
            atmosphere=snapshot,
            weather=weather_update,
            resonating=resonating,
        )

    def apply_environmental_effects(self, time_update: TimeUpdate) -> None:
        """Weather pushes its emotion every tick; time-of-day feelings only when the time of day changes."""
        if time_update.time_changed:
            modifiers = get_time_of_day_emotional_modifiers(time_update.time_of_day)
            cause = f"time_of_day_{time_update.time_of_day.value}"
            for agent_id in self.store.agent_ids():
                for change in modifiers.emotions:
                    if change.change != 0:
                        self.store.trigger_emotion(agent_id, change.emotion, change.change, cause=cause)

        self.weather.apply_weather_effects()
        logger.debug(
            f"🌍 Environment applied to {len(self.store)} agents "
            f"({time_update.time_of_day.value}, {self.weather.state.current_weather})"
        )

    def _persist(self, snapshot: Optional[AtmosphereSnapshot]) -> None:
        try:
            self.persistence.save_profiles(self.store.profiles())
            if snapshot is not None:
                self.persistence.save_atmosphere(snapshot)
            self.persistence.save_weather(self.weather.state)
            self.persistence.save_chambers(list(self.chambers.chambers.values()))
        except Exception as e:
            logger.error(f"❌ Could not persist tick {self.tick_count}: {e}")

    # ─── Status ───────────────────────────────────────────────────────────────

    def _print_status(self):
        table = Table(title=f"🌈 MoodCity — {self.world_clock.formatted()}")
        table.add_column("Agent", style="bold")
        table.add_column("Preset")
        table.add_column("Mood")
        table.add_column("Feeling")
        table.add_column("Valence")
        table.add_column("Arousal")

        for agent_id in sorted(self.store.agent_ids()):
            state = self.store.get_emotional_state(agent_id)
            profile = self.store.get_profile(agent_id)
            emotion, value = state.dominant_emotion()
            valence = f"{state.valence:+.0f}"
            if state.valence < -40:
                valence += " ⚠️"
            table.add_row(
                agent_id,
                profile.preset,
                str(state.mood),
                f"{emotion.value} ({value:.0f})",
                valence,
                f"{state.arousal:.0f}",
            )
        console.print(table)

        snapshot = self.atmosphere.latest()
        weather = self.weather.state
        line = f"Weather: [cyan]{weather.current_weather}[/cyan]" if weather else "Weather: —"
        if snapshot is not None:
            line += (
                f" | Atmosphere: [yellow]{snapshot.dominant_emotion}[/yellow] "
                f"({snapshot.intensity:.0f}, {snapshot.trend})"
            )
        active = self.chambers.active_chambers()
        if active:
            line += " | Resonating: " + ", ".join(c.location_name for c in active)
        console.print(line + "\n")

    # ─── Run ──────────────────────────────────────────────────────────────────

    def run(
        self,
        ticks: int = 60,
        positions_provider: Optional[Callable[[int], Positions]] = None,
        speed: float = 1.0,
    ) -> list[TickReport]:
        """positions_provider(tick) -> {agent_id: (x, y)}; speed = real seconds between ticks."""
        console.print(f"\n🚀 [bold]MoodCity is running. {ticks} ticks.[/bold]\n")
        reports = []
        for _ in range(ticks):
            positions = positions_provider(self.tick_count + 1) if positions_provider else None
            reports.append(self.tick(positions))
            self._print_status()
            if speed > 0:
                time.sleep(speed)

        console.print("\n📜 [bold]Simulation complete.[/bold]")
        snapshot = self.atmosphere.latest()
        if snapshot is not None:
            console.print(
                f"Final atmosphere: [yellow]{snapshot.dominant_emotion}[/yellow], "
                f"valence {snapshot.average_valence:+.1f}, diversity {snapshot.emotional_diversity:.0f}%"
            )
        return reports
