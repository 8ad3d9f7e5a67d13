"""
Tests for the schedule resolver.
"""

import logging
from datetime import date, time

import pytest

from barbershop.core.domain import Barber, BreakInterval, CustomHours, DayOff, DaySchedule, day_of_week
from barbershop.core.intervals import Interval
from barbershop.core.schedule import ScheduleResolver, check_day_window
from barbershop.errors import InvalidInterval

from conftest import MONDAY, monday_schedule


def _barber(**kwargs) -> Barber:
    defaults = {"id": 7, "name": "Luis", "weekly_schedule": {1: monday_schedule()}}
    defaults.update(kwargs)
    return Barber(**defaults)


def test_day_of_week_is_sunday_based():
    assert day_of_week(date(2025, 11, 9)) == 0  # Sunday
    assert day_of_week(MONDAY) == 1
    assert day_of_week(date(2025, 11, 15)) == 6  # Saturday


class TestResolve:

    def test_weekly_entry_minus_break(self):
        day = ScheduleResolver().resolve(_barber(), MONDAY)
        assert day.open_intervals == [Interval(540, 780), Interval(840, 1080)]
        assert not day.is_closed

    def test_no_entry_means_closed(self):
        day = ScheduleResolver().resolve(_barber(), date(2025, 11, 11))  # Tuesday
        assert day.is_closed
        assert day.open_intervals == []

    def test_day_off_overrides_weekly_entry(self):
        barber = _barber(exceptions={MONDAY: DayOff(date=MONDAY)})
        assert ScheduleResolver().resolve(barber, MONDAY).is_closed

    def test_day_off_only_applies_to_its_date(self):
        barber = _barber(exceptions={MONDAY: DayOff(date=MONDAY)})
        assert not ScheduleResolver().resolve(barber, date(2025, 11, 17)).is_closed

    def test_custom_hours_replace_weekly_entry_entirely(self):
        custom = CustomHours(date=MONDAY, start=time(10, 0), end=time(14, 0))
        day = ScheduleResolver().resolve(_barber(exceptions={MONDAY: custom}), MONDAY)
        # the weekly 13:00-14:00 break does not leak into custom hours
        assert day.open_intervals == [Interval(600, 840)]

    def test_custom_hours_open_a_closed_weekday(self):
        tuesday = date(2025, 11, 11)
        custom = CustomHours(
            date=tuesday,
            start=time(8, 0),
            end=time(12, 0),
            breaks=[BreakInterval(time(10, 0), time(10, 30))],
        )
        day = ScheduleResolver().resolve(_barber(exceptions={tuesday: custom}), tuesday)
        assert day.open_intervals == [Interval(480, 600), Interval(630, 720)]

    def test_overlapping_breaks_are_coalesced(self):
        entry = DaySchedule(
            day_of_week=1,
            start=time(9, 0),
            end=time(18, 0),
            breaks=[BreakInterval(time(13, 0), time(13, 45)), BreakInterval(time(13, 30), time(14, 0))],
        )
        day = ScheduleResolver().resolve(_barber(weekly_schedule={1: entry}), MONDAY)
        assert day.open_intervals == [Interval(540, 780), Interval(840, 1080)]
        assert day.breaks == [Interval(780, 840)]

    def test_break_at_window_start_truncates(self):
        entry = DaySchedule(1, time(9, 0), time(12, 0), [BreakInterval(time(9, 0), time(9, 30))])
        day = ScheduleResolver().resolve(_barber(weekly_schedule={1: entry}), MONDAY)
        assert day.open_intervals == [Interval(570, 720)]

    def test_inverted_window_is_closed(self):
        entry = DaySchedule(1, time(18, 0), time(9, 0))
        assert ScheduleResolver().resolve(_barber(weekly_schedule={1: entry}), MONDAY).is_closed

    def test_break_outside_window_closes_day_and_logs(self, caplog):
        entry = DaySchedule(1, time(9, 0), time(12, 0), [BreakInterval(time(11, 30), time(12, 30))])
        with caplog.at_level(logging.WARNING, logger="barbershop.core.schedule"):
            day = ScheduleResolver().resolve(_barber(weekly_schedule={1: entry}), MONDAY)
        assert day.is_closed
        assert "Invalid schedule for barber 7" in caplog.text

    def test_inverted_break_closes_day(self):
        entry = DaySchedule(1, time(9, 0), time(12, 0), [BreakInterval(time(11, 0), time(10, 0))])
        assert ScheduleResolver().resolve(_barber(weekly_schedule={1: entry}), MONDAY).is_closed


class TestCheckDayWindow:

    def test_sorts_breaks(self):
        breaks = [BreakInterval(time(15, 0), time(15, 15)), BreakInterval(time(13, 0), time(14, 0))]
        ordered = check_day_window(time(9, 0), time(18, 0), breaks)
        assert [b.start for b in ordered] == [time(13, 0), time(15, 0)]

    def test_rejects_inverted_window(self):
        with pytest.raises(InvalidInterval):
            check_day_window(time(18, 0), time(9, 0), [])

    def test_rejects_break_outside_window(self):
        with pytest.raises(InvalidInterval):
            check_day_window(time(9, 0), time(12, 0), [BreakInterval(time(8, 30), time(9, 30))])

    def test_rejects_overlapping_breaks(self):
        breaks = [BreakInterval(time(13, 0), time(14, 0)), BreakInterval(time(13, 30), time(14, 30))]
        with pytest.raises(InvalidInterval):
            check_day_window(time(9, 0), time(18, 0), breaks)

    def test_touching_breaks_are_allowed(self):
        breaks = [BreakInterval(time(13, 0), time(13, 30)), BreakInterval(time(13, 30), time(14, 0))]
        assert len(check_day_window(time(9, 0), time(18, 0), breaks)) == 2
