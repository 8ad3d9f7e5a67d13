# barbershop/core/clock.py
"""
Time zone normalizer.

The shop runs in one civil zone with a constant UTC offset. Every conversion
between wall-clock (date + HH:mm) and absolute instants, and every reading of
"now", goes through a single OperatingClock so availability and booking never
disagree about what time it is.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Callable, Optional, Tuple

from barbershop.config import Settings


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OperatingClock:
    def __init__(
        self,
        utc_offset_minutes: int,
        name: Optional[str] = None,
        now_provider: Callable[[], datetime] = _utcnow,
    ):
        offset = timedelta(minutes=utc_offset_minutes)
        self.zone = timezone(offset, name) if name else timezone(offset)
        self._now_provider = now_provider

    @classmethod
    def from_settings(cls, settings: Settings, now_provider: Callable[[], datetime] = _utcnow) -> "OperatingClock":
        return cls(settings.utc_offset_minutes, settings.timezone_name, now_provider)

    def now(self) -> datetime:
        """Current instant, aware, in UTC."""
        return self.to_utc(self._now_provider())

    def today(self) -> date:
        """Calendar date in the operating zone."""
        return self.now().astimezone(self.zone).date()

    def to_instant(self, on_date: date, wall: time) -> datetime:
        """(date, HH:mm) in the operating zone -> aware UTC instant."""
        local = datetime.combine(on_date, wall.replace(tzinfo=None), tzinfo=self.zone)
        return local.astimezone(timezone.utc)

    def minutes_to_instant(self, on_date: date, minutes: int) -> datetime:
        """Minutes after local midnight of on_date -> aware UTC instant."""
        midnight = datetime.combine(on_date, time(0, 0), tzinfo=self.zone)
        return (midnight + timedelta(minutes=minutes)).astimezone(timezone.utc)

    def to_wall(self, instant: datetime) -> Tuple[date, time]:
        """Aware instant -> (date, time) in the operating zone."""
        local = self.to_utc(instant).astimezone(self.zone)
        return local.date(), local.time().replace(tzinfo=None)

    def day_bounds(self, on_date: date) -> Tuple[datetime, datetime]:
        """[local midnight, next local midnight) as UTC instants."""
        start = self.minutes_to_instant(on_date, 0)
        return start, start + timedelta(days=1)

    def to_utc(self, value: datetime) -> datetime:
        """Normalise any datetime to aware UTC; naive values are operating-zone wall time."""
        if value.tzinfo is None:
            value = value.replace(tzinfo=self.zone)
        return value.astimezone(timezone.utc)
