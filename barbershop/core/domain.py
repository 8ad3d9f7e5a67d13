# barbershop/core/domain.py
"""
Storage-agnostic domain types shared by the resolver, the availability
generator and the booking manager.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime, time
from enum import Enum
from typing import Dict, List, Optional, Union


class AppointmentStatus(str, Enum):
    scheduled = "scheduled"
    rescheduled = "rescheduled"
    completed = "completed"
    cancelled = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @property
    def blocks_time(self) -> bool:
        return self in BLOCKING_STATUSES

    def can_transition_to(self, target: "AppointmentStatus") -> bool:
        return target in ALLOWED_TRANSITIONS[self]


TERMINAL_STATUSES = frozenset({AppointmentStatus.completed, AppointmentStatus.cancelled})

# Completed is history and Cancelled freed the slot: neither occupies the calendar
BLOCKING_STATUSES = frozenset({AppointmentStatus.scheduled, AppointmentStatus.rescheduled})

ALLOWED_TRANSITIONS = {
    AppointmentStatus.scheduled: frozenset({
        AppointmentStatus.rescheduled,
        AppointmentStatus.completed,
        AppointmentStatus.cancelled,
    }),
    AppointmentStatus.rescheduled: frozenset({
        AppointmentStatus.rescheduled,
        AppointmentStatus.completed,
        AppointmentStatus.cancelled,
    }),
    AppointmentStatus.completed: frozenset(),
    AppointmentStatus.cancelled: frozenset(),
}


@dataclass(frozen=True)
class Service:
    id: int
    name: str
    duration_minutes: int
    active: bool = True
    price: int = 0


@dataclass(frozen=True)
class BreakInterval:
    start: time
    end: time


@dataclass(frozen=True)
class DaySchedule:
    day_of_week: int  # 0=Sunday..6=Saturday
    start: time
    end: time
    breaks: List[BreakInterval] = field(default_factory=list)


@dataclass(frozen=True)
class DayOff:
    date: date


@dataclass(frozen=True)
class CustomHours:
    date: date
    start: time
    end: time
    breaks: List[BreakInterval] = field(default_factory=list)


ScheduleException = Union[DayOff, CustomHours]


@dataclass(frozen=True)
class Barber:
    id: int
    name: str
    active: bool = True
    weekly_schedule: Dict[int, DaySchedule] = field(default_factory=dict)
    exceptions: Dict[date, ScheduleException] = field(default_factory=dict)


@dataclass(frozen=True)
class ClientContact:
    full_name: str
    phone: str
    email: str
    notes: Optional[str] = None


@dataclass(frozen=True)
class Appointment:
    """A booking. start/end are aware UTC instants; end is fixed at creation."""

    id: Optional[int]
    barber_id: int
    service_id: int
    start: datetime
    end: datetime
    status: AppointmentStatus
    client: ClientContact
    created_at: Optional[datetime] = None

    @property
    def blocks_time(self) -> bool:
        return self.status.blocks_time

    def with_changes(self, **changes) -> "Appointment":
        return replace(self, **changes)


@dataclass(frozen=True)
class TimeSlot:
    start_time: str  # "HH:mm" in the operating zone
    end_time: str
    available: bool
    barber_id: Optional[int] = None


def day_of_week(d: date) -> int:
    """Sunday-based day index: 0=Sunday..6=Saturday."""
    return d.isoweekday() % 7
