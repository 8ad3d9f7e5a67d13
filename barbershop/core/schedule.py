# barbershop/core/schedule.py
"""
Schedule resolver: the effective open intervals of a barber on one date.

Precedence: exception for the date (DayOff or CustomHours) > weekly entry for
the weekday > closed.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, time
from typing import List, Optional, Sequence

from barbershop.core.domain import Barber, BreakInterval, CustomHours, DayOff, day_of_week
from barbershop.core.intervals import Interval, coalesce, subtract, time_to_minutes
from barbershop.errors import InvalidInterval

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedDay:
    on_date: date
    open_intervals: List[Interval] = field(default_factory=list)
    window: Optional[Interval] = None
    breaks: List[Interval] = field(default_factory=list)

    @property
    def is_closed(self) -> bool:
        return not self.open_intervals

    @classmethod
    def closed(cls, on_date: date) -> "ResolvedDay":
        return cls(on_date=on_date)


def build_open_intervals(window: Interval, breaks: Sequence[Interval]) -> List[Interval]:
    """Working window minus breaks.

    Raises InvalidInterval for an inverted break or one that leaves the window.
    An inverted or zero-length window simply yields no open time.
    """
    if window.is_empty:
        return []

    for brk in breaks:
        if brk.is_empty:
            raise InvalidInterval(f"break {brk} is empty or inverted")
        if not window.contains(brk):
            raise InvalidInterval(f"break {brk} lies outside the working window {window}")

    return subtract(window, coalesce(breaks))


def _to_intervals(breaks: Sequence[BreakInterval]) -> List[Interval]:
    return [Interval(time_to_minutes(b.start), time_to_minutes(b.end)) for b in breaks]


def check_day_window(start: time, end: time, breaks: Sequence[BreakInterval]) -> List[BreakInterval]:
    """Strict check for schedule writes; returns the breaks sorted ascending."""
    window = Interval(time_to_minutes(start), time_to_minutes(end))
    if window.is_empty:
        raise InvalidInterval(f"start {start:%H:%M} must be before end {end:%H:%M}")

    ordered = sorted(breaks, key=lambda b: (b.start, b.end))
    intervals = _to_intervals(ordered)
    build_open_intervals(window, intervals)

    for previous, current in zip(intervals, intervals[1:]):
        if previous.overlaps(current):
            raise InvalidInterval(f"breaks {previous} and {current} overlap")
    return ordered


class ScheduleResolver:
    def resolve(self, barber: Barber, on_date: date) -> ResolvedDay:
        # 1) Day-specific override wins
        exception = barber.exceptions.get(on_date)
        if isinstance(exception, DayOff):
            return ResolvedDay.closed(on_date)

        if isinstance(exception, CustomHours):
            start, end, breaks = exception.start, exception.end, exception.breaks
        else:
            # 2) Weekly default for that weekday
            entry = barber.weekly_schedule.get(day_of_week(on_date))
            if entry is None:
                return ResolvedDay.closed(on_date)
            start, end, breaks = entry.start, entry.end, entry.breaks

        window = Interval(time_to_minutes(start), time_to_minutes(end))
        break_intervals = _to_intervals(breaks)

        # 3) Subtract breaks; malformed data closes the day instead of failing the query
        try:
            open_intervals = build_open_intervals(window, break_intervals)
        except InvalidInterval as exc:
            logger.warning(f"Invalid schedule for barber {barber.id} on {on_date}: {exc}; treating day as closed")
            return ResolvedDay.closed(on_date)

        if window.is_empty:
            logger.warning(f"Empty working window {window} for barber {barber.id} on {on_date}; treating day as closed")

        return ResolvedDay(
            on_date=on_date,
            open_intervals=open_intervals,
            window=window,
            breaks=coalesce(break_intervals),
        )
