"""
moodcity/world/clock.py

In-world time: a 24h day running time_scale times faster than real time.

Time of day:
    dawn 5-7, morning 7-12, afternoon 12-17, dusk 17-19, night 19-5.

Each time of day carries a small emotional flavour (morning lifts joy,
dusk brings a little sadness). The simulation applies it once, when the
time of day changes.
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional, Union

from loguru import logger

from moodcity.config.settings import START_HOUR, TIME_SCALE
from moodcity.config.tables import TimeOfDayEffect, load_tables
from moodcity.emotions.types import Chronotype, TimeOfDay
from moodcity.events.bus import EventBus
from moodcity.events.domain import TimeOfDayChanged

MINUTES_PER_DAY = 24 * 60


def get_time_of_day(hour: int) -> TimeOfDay:
    for tod, (start, end) in load_tables().time_boundaries.items():
        if start <= hour < end:
            return TimeOfDay(tod)
    return TimeOfDay.NIGHT


def calculate_circadian_energy(hour: float, chronotype: Union[Chronotype, str] = Chronotype.NEUTRAL) -> float:
    """Energy 0-100 across the day. Larks peak mid-morning, owls in the evening."""
    chronotype = Chronotype(chronotype)

    if chronotype == Chronotype.MORNING_LARK:
        if 6 <= hour < 12:
            energy = 70 + (hour - 6) * 5
        elif 12 <= hour < 18:
            energy = 90 - (hour - 12) * 5
        elif 18 <= hour < 22:
            energy = 60 - (hour - 18) * 10
        else:
            energy = 20

    elif chronotype == Chronotype.NIGHT_OWL:
        if 12 <= hour < 18:
            energy = 50 + (hour - 12) * 7
        elif hour >= 18 or hour < 2:
            since_evening = hour - 18 if hour >= 18 else hour + 6
            energy = 90 - since_evening * 3
        elif 2 <= hour < 6:
            energy = 70 - (hour - 2) * 10
        else:
            energy = 30

    else:
        if 6 <= hour < 12:
            energy = 50 + (hour - 6) * 7
        elif 12 <= hour < 18:
            energy = 90 - (hour - 12) * 3
        elif 18 <= hour < 22:
            energy = 75 - (hour - 18) * 10
        else:
            energy = 25

    return max(0.0, min(100.0, energy))


def get_time_of_day_emotional_modifiers(time_of_day: Union[TimeOfDay, str]) -> TimeOfDayEffect:
    return load_tables().time_of_day_effects[TimeOfDay(time_of_day)]


def format_world_time(hour: int, minute: int, day_number: int = 0) -> str:
    """'Day 3, 7:05 AM'"""
    period = "AM" if hour < 12 else "PM"
    display_hour = hour % 12 or 12
    return f"Day {day_number + 1}, {display_hour}:{minute:02d} {period}"


@dataclass
class TimeUpdate:
    hour: int
    minute: int
    time_of_day: TimeOfDay
    day_number: int
    time_changed: bool


class WorldClock:

    def __init__(
        self,
        world_id: str,
        time_scale: float = TIME_SCALE,
        start_hour: int = START_HOUR,
        clock: Callable[[], float] = time.time,
        event_bus: Optional[EventBus] = None,
    ):
        self.world_id = world_id
        self.time_scale = time_scale
        self.clock = clock
        self.events = event_bus
        self.hour = start_hour % 24
        self.minute = 0
        self.day_number = 0
        self.time_of_day = get_time_of_day(self.hour)
        self.last_updated = clock()
        # Scaled seconds not yet worth a full in-world minute
        self._carry = 0.0
        logger.info(f"🕐 World time starts at {self.formatted()}, {time_scale}x real time")

    def formatted(self) -> str:
        return format_world_time(self.hour, self.minute, self.day_number)

    def energy(self, chronotype: Union[Chronotype, str] = Chronotype.NEUTRAL) -> float:
        return calculate_circadian_energy(self.hour + self.minute / 60, chronotype)

    def update(self) -> TimeUpdate:
        now = self.clock()
        scaled = max(0.0, now - self.last_updated) * self.time_scale + self._carry
        elapsed_minutes = int(scaled // 60)
        self._carry = scaled - elapsed_minutes * 60
        self.last_updated = now

        total = self.hour * 60 + self.minute + elapsed_minutes
        self.day_number += total // MINUTES_PER_DAY
        self.hour = (total // 60) % 24
        self.minute = total % 60

        previous = self.time_of_day
        self.time_of_day = get_time_of_day(self.hour)
        changed = previous != self.time_of_day

        if changed:
            logger.info(f"🕐 {previous.value} → {self.time_of_day.value} ({self.formatted()})")
            if self.events is not None:
                self.events.publish(TimeOfDayChanged(
                    world_id=self.world_id,
                    previous=previous,
                    current=self.time_of_day,
                    hour=self.hour,
                ))

        return TimeUpdate(
            hour=self.hour,
            minute=self.minute,
            time_of_day=self.time_of_day,
            day_number=self.day_number,
            time_changed=changed,
        )
