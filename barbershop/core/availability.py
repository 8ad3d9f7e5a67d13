# barbershop/core/availability.py
"""
Availability generator.

For each open interval of the resolved day, candidate starts are laid on a
fixed grid (interval start + k * granularity) and kept while the whole
service fits inside that same interval. Candidates not strictly after "now"
are dropped; the rest are emitted with available=False when they overlap a
blocking appointment, so callers can show them as taken.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Iterator, List, Optional, Sequence

from barbershop.core.clock import OperatingClock
from barbershop.core.domain import Appointment, Barber, Service, TimeSlot
from barbershop.core.intervals import format_hhmm, overlaps
from barbershop.core.schedule import ResolvedDay, ScheduleResolver
from barbershop.errors import BarberInactive, NotFound, ServiceInactive
from barbershop.store.base import StoreReader

logger = logging.getLogger(__name__)


def candidate_starts(day: ResolvedDay, duration_minutes: int, granularity_minutes: int) -> Iterator[int]:
    """Grid-aligned start minutes whose [start, start+duration) fits one open interval."""
    for interval in day.open_intervals:
        start = interval.start
        while start + duration_minutes <= interval.end:
            yield start
            start += granularity_minutes


def generate_slots(
    day: ResolvedDay,
    duration_minutes: int,
    appointments: Sequence[Appointment],
    now: datetime,
    clock: OperatingClock,
    granularity_minutes: int,
) -> List[TimeSlot]:
    busy = [(a.start, a.end) for a in appointments if a.blocks_time]
    slots: List[TimeSlot] = []

    for minutes in candidate_starts(day, duration_minutes, granularity_minutes):
        start = clock.minutes_to_instant(day.on_date, minutes)
        # Past and in-progress starts cannot be booked: drop them outright
        if start <= now:
            continue
        end = start + timedelta(minutes=duration_minutes)
        taken = any(overlaps(start, end, b_start, b_end) for b_start, b_end in busy)
        slots.append(TimeSlot(
            start_time=format_hhmm(minutes),
            end_time=format_hhmm(minutes + duration_minutes),
            available=not taken,
        ))

    return slots


def require_service(reader: StoreReader, service_id: int) -> Service:
    service = reader.get_service(service_id)
    if service is None:
        raise NotFound("service", service_id)
    if not service.active:
        raise ServiceInactive(f"service {service_id} is not active")
    return service


def require_barber(reader: StoreReader, barber_id: int) -> Barber:
    barber = reader.get_barber(barber_id)
    if barber is None:
        raise NotFound("barber", barber_id)
    if not barber.active:
        raise BarberInactive(f"barber {barber_id} is not active")
    return barber


class AvailabilityGenerator:
    def __init__(
        self,
        store,
        clock: OperatingClock,
        granularity_minutes: int,
        resolver: Optional[ScheduleResolver] = None,
    ):
        self.store = store
        self.clock = clock
        self.granularity_minutes = granularity_minutes
        self.resolver = resolver or ScheduleResolver()

    def slots_for(
        self,
        service_id: int,
        barber_id: int,
        on_date: date,
        exclude_appointment_id: Optional[int] = None,
    ) -> List[TimeSlot]:
        # 1) Validate service and barber
        service = require_service(self.store, service_id)
        barber = require_barber(self.store, barber_id)
        return self._slots_for_barber(service, barber, on_date, exclude_appointment_id)

    def slots_for_any_barber(self, service_id: int, on_date: date) -> List[TimeSlot]:
        """Merge the grids of all active barbers; a start is available if any barber has it free."""
        service = require_service(self.store, service_id)

        by_start: dict = {}
        for barber in self.store.list_barbers(active_only=True):
            for slot in self._slots_for_barber(service, barber, on_date):
                tagged = TimeSlot(slot.start_time, slot.end_time, slot.available, barber.id)
                current = by_start.get(slot.start_time)
                # barbers come ordered by id, so the first free one wins
                if current is None or (tagged.available and not current.available):
                    by_start[slot.start_time] = tagged

        return [by_start[key] for key in sorted(by_start)]

    def _slots_for_barber(
        self,
        service: Service,
        barber: Barber,
        on_date: date,
        exclude_appointment_id: Optional[int] = None,
    ) -> List[TimeSlot]:
        # 2) Resolve the day; closed is an empty result, not an error
        day = self.resolver.resolve(barber, on_date)
        if day.is_closed:
            return []

        # 3) Existing appointments that still occupy the barber's day
        day_start, day_end = self.clock.day_bounds(on_date)
        appointments = self.store.find_blocking_appointments(
            barber.id, day_start, day_end, exclude_id=exclude_appointment_id
        )

        slots = generate_slots(
            day,
            service.duration_minutes,
            appointments,
            now=self.clock.now(),
            clock=self.clock,
            granularity_minutes=self.granularity_minutes,
        )
        logger.debug(f"barber {barber.id} on {on_date}: {len(slots)} slots for service {service.id}")
        return slots
