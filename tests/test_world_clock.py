"""
tests/test_world_clock.py — in-world time, circadian energy and time-of-day effects.

Run: pytest tests/test_world_clock.py -v
"""

import pytest

from moodcity.emotions.types import Chronotype, Emotion, TimeOfDay
from moodcity.world.clock import (
    WorldClock, calculate_circadian_energy, format_world_time, get_time_of_day,
    get_time_of_day_emotional_modifiers,
)


class TestTimeOfDay:

    @pytest.mark.parametrize("hour,expected", [
        (5, TimeOfDay.DAWN), (6, TimeOfDay.DAWN), (7, TimeOfDay.MORNING),
        (11, TimeOfDay.MORNING), (12, TimeOfDay.AFTERNOON), (17, TimeOfDay.DUSK),
        (19, TimeOfDay.NIGHT), (23, TimeOfDay.NIGHT), (0, TimeOfDay.NIGHT), (4, TimeOfDay.NIGHT),
    ])
    def test_boundaries(self, hour, expected):
        assert get_time_of_day(hour) == expected

    def test_modifiers(self):
        morning = get_time_of_day_emotional_modifiers("morning")
        assert morning.valence == 10
        assert [(c.emotion, c.change) for c in morning.emotions] == [
            (Emotion.JOY, 10), (Emotion.ANTICIPATION, 5),
        ]
        night = get_time_of_day_emotional_modifiers(TimeOfDay.NIGHT)
        assert night.arousal == -15


class TestCircadianEnergy:

    def test_neutral_mid_morning(self):
        assert calculate_circadian_energy(9) == pytest.approx(71)

    def test_lark_fades_in_evening(self):
        assert calculate_circadian_energy(20, Chronotype.MORNING_LARK) == pytest.approx(40)

    def test_owl_after_midnight(self):
        assert calculate_circadian_energy(1, "night_owl") == pytest.approx(69)

    def test_always_in_range(self):
        for chronotype in Chronotype:
            for hour in range(24):
                assert 0 <= calculate_circadian_energy(hour, chronotype) <= 100


class TestFormatting:

    def test_midnight(self):
        assert format_world_time(0, 5, 2) == "Day 3, 12:05 AM"

    def test_afternoon(self):
        assert format_world_time(13, 30) == "Day 1, 1:30 PM"

    def test_noon(self):
        assert format_world_time(12, 0) == "Day 1, 12:00 PM"


class TestWorldClock:

    def test_scaled_advance(self, clock):
        world = WorldClock("w", time_scale=10, start_hour=9, clock=clock)
        clock.advance(60)
        update = world.update()
        assert (update.hour, update.minute) == (9, 10)
        assert not update.time_changed
        assert world.formatted() == "Day 1, 9:10 AM"

    def test_short_ticks_accumulate(self, clock):
        world = WorldClock("w", time_scale=10, start_hour=9, clock=clock)
        clock.advance(3)
        assert world.update().minute == 0
        clock.advance(3)
        assert world.update().minute == 1

    def test_day_rollover(self, clock):
        world = WorldClock("w", time_scale=10, start_hour=23, clock=clock)
        clock.advance(120 * 60 / 10)
        update = world.update()
        assert update.day_number == 1
        assert update.hour == 1
        assert not update.time_changed

    def test_time_of_day_change_is_published(self, clock, bus):
        world = WorldClock("w", time_scale=10, start_hour=11, clock=clock, event_bus=bus)
        clock.advance(60 * 60 / 10)
        update = world.update()
        assert update.time_of_day == TimeOfDay.AFTERNOON
        assert update.time_changed
        events = bus.events_of("time_change")
        assert len(events) == 1
        assert events[0].previous == "morning"
        assert events[0].current == "afternoon"
        assert events[0].hour == 12

    def test_clock_going_backwards_is_ignored(self, clock):
        world = WorldClock("w", time_scale=10, start_hour=9, clock=clock)
        clock.advance(-600)
        update = world.update()
        assert (update.hour, update.minute) == (9, 0)

    def test_energy_uses_current_time(self, clock):
        world = WorldClock("w", time_scale=10, start_hour=9, clock=clock)
        assert world.energy() == pytest.approx(71)
