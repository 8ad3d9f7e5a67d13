# barbershop/core/intervals.py
"""
Half-open interval algebra over minutes since local midnight.

An interval [start, end) contains start but not end, so two intervals that
merely touch (09:00-10:00 and 10:00-11:00) do not overlap.
"""

from dataclasses import dataclass
from datetime import time
from typing import Iterable, List


def overlaps(a_start, a_end, b_start, b_end) -> bool:
    """True iff [a_start, a_end) and [b_start, b_end) share at least one point.

    Works for anything comparable: ints, datetimes.
    """
    return a_start < b_end and b_start < a_end


def parse_hhmm(value: str) -> int:
    """'09:30' -> 570"""
    try:
        hours, minutes = value.split(":")
        h, m = int(hours), int(minutes)
    except (AttributeError, ValueError):
        raise ValueError(f"Invalid time '{value}', expected HH:mm")
    if not (0 <= h <= 23 and 0 <= m <= 59):
        raise ValueError(f"Invalid time '{value}', expected HH:mm")
    return h * 60 + m


def format_hhmm(minutes: int) -> str:
    """570 -> '09:30'"""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def time_to_minutes(t: time) -> int:
    return t.hour * 60 + t.minute


def minutes_to_time(minutes: int) -> time:
    return time(hour=minutes // 60, minute=minutes % 60)


@dataclass(frozen=True, order=True)
class Interval:
    start: int
    end: int

    @property
    def is_empty(self) -> bool:
        return self.start >= self.end

    @property
    def length(self) -> int:
        return max(0, self.end - self.start)

    def overlaps(self, other: "Interval") -> bool:
        return overlaps(self.start, self.end, other.start, other.end)

    def contains(self, other: "Interval") -> bool:
        return self.start <= other.start and other.end <= self.end

    def __str__(self) -> str:
        return f"{format_hhmm(self.start)}-{format_hhmm(self.end)}"


def coalesce(intervals: Iterable[Interval]) -> List[Interval]:
    """Merge touching or overlapping intervals into their union, sorted."""
    merged: List[Interval] = []
    for current in sorted(i for i in intervals if not i.is_empty):
        if merged and current.start <= merged[-1].end:
            last = merged[-1]
            merged[-1] = Interval(last.start, max(last.end, current.end))
        else:
            merged.append(current)
    return merged


def subtract(window: Interval, holes: Iterable[Interval]) -> List[Interval]:
    """Remove every hole from window; the window may split into several pieces."""
    if window.is_empty:
        return []

    pieces: List[Interval] = []
    cursor = window.start
    for hole in coalesce(holes):
        if hole.end <= cursor or hole.start >= window.end:
            continue
        if hole.start > cursor:
            pieces.append(Interval(cursor, hole.start))
        cursor = max(cursor, hole.end)
        if cursor >= window.end:
            break

    if cursor < window.end:
        pieces.append(Interval(cursor, window.end))
    return pieces
