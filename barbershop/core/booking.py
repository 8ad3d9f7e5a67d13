# barbershop/core/booking.py
"""
Booking transaction manager.

Every write re-validates the slot inside ``store.barber_unit`` so that the
check and the insert form one step with respect to other bookings of the
same barber. A lost race surfaces as SlotUnavailable; the engine never
retries on its own.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterator, Optional, Tuple

from barbershop.core.availability import candidate_starts, require_barber, require_service
from barbershop.core.clock import OperatingClock
from barbershop.core.domain import Appointment, AppointmentStatus, Barber, ClientContact
from barbershop.core.intervals import time_to_minutes
from barbershop.core.schedule import ScheduleResolver
from barbershop.errors import InvalidTransition, NotFound, SlotUnavailable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingRequest:
    service_id: int
    barber_id: int
    start: datetime  # naive values are read as operating-zone wall time
    client: ClientContact


class BookingManager:
    def __init__(
        self,
        store,
        clock: OperatingClock,
        granularity_minutes: int,
        min_change_notice_minutes: int = 0,
        resolver: Optional[ScheduleResolver] = None,
    ):
        self.store = store
        self.clock = clock
        self.granularity_minutes = granularity_minutes
        self.min_change_notice = timedelta(minutes=min_change_notice_minutes)
        self.resolver = resolver or ScheduleResolver()

    def create_appointment(self, request: BookingRequest) -> Appointment:
        start = self.clock.to_utc(request.start)

        with self.store.barber_unit(request.barber_id) as unit:
            service = require_service(unit, request.service_id)
            barber = require_barber(unit, request.barber_id)

            end = self._validate_slot(unit, barber, service.duration_minutes, start)

            created = unit.add_appointment(Appointment(
                id=None,
                barber_id=barber.id,
                service_id=service.id,
                start=start,
                end=end,
                status=AppointmentStatus.scheduled,
                client=request.client,
                created_at=self.clock.now(),
            ))

        logger.info(f"Booked appointment {created.id}: barber {created.barber_id} {created.start.isoformat()}-{created.end.isoformat()}")
        return created

    def update_status(self, appointment_id: int, new_status: AppointmentStatus) -> Appointment:
        if new_status == AppointmentStatus.rescheduled:
            self._require_appointment(self.store, appointment_id)
            raise InvalidTransition("Rescheduling needs a new start time; use reschedule")

        with self._appointment_unit(appointment_id) as (unit, current):
            self._check_transition(current, new_status)

            now = self.clock.now()
            if new_status == AppointmentStatus.completed and now < current.start:
                raise InvalidTransition("Cannot complete an appointment that has not started yet")
            if new_status == AppointmentStatus.cancelled:
                self._check_notice(current, now, "cancelled")

            updated = unit.save_appointment(current.with_changes(status=new_status))

        logger.info(f"Appointment {appointment_id}: {current.status.value} -> {new_status.value}")
        return updated

    def reschedule(
        self,
        appointment_id: int,
        new_start: datetime,
        new_barber_id: Optional[int] = None,
    ) -> Appointment:
        start = self.clock.to_utc(new_start)

        # holds both the current and the target barber when the appointment changes hands
        with self._appointment_unit(appointment_id, new_barber_id) as (unit, current):
            self._check_transition(current, AppointmentStatus.rescheduled)
            self._check_notice(current, self.clock.now(), "rescheduled")

            barber_id = new_barber_id if new_barber_id is not None else current.barber_id
            barber = require_barber(unit, barber_id)
            service = unit.get_service(current.service_id)
            if service is None:
                raise NotFound("service", current.service_id)
            end = self._validate_slot(unit, barber, service.duration_minutes, start, exclude_id=current.id)

            updated = unit.save_appointment(current.with_changes(
                barber_id=barber.id,
                start=start,
                end=end,
                status=AppointmentStatus.rescheduled,
            ))

        logger.info(f"Rescheduled appointment {appointment_id} to barber {updated.barber_id} at {updated.start.isoformat()}")
        return updated

    @contextmanager
    def _appointment_unit(
        self,
        appointment_id: int,
        target_barber_id: Optional[int] = None,
    ) -> Iterator[Tuple[object, Appointment]]:
        """Atomic unit of the barber that owns the appointment, plus the target barber if given.

        Yields the unit and the appointment as read under its locks. When a
        concurrent reschedule moved the appointment while this one waited, the
        unit is released and the new owner is locked instead.
        """
        owner_id = self._require_appointment(self.store, appointment_id).barber_id
        while True:
            barber_ids = [owner_id] if target_barber_id is None else [owner_id, target_barber_id]
            with self.store.barber_unit(*barber_ids) as unit:
                current = self._require_appointment(unit, appointment_id)
                if current.barber_id == owner_id:
                    yield unit, current
                    return
            logger.info(f"Appointment {appointment_id} moved to barber {current.barber_id} while waiting; retrying")
            owner_id = current.barber_id

    # -- checks ----------------------------------------------------------------

    def _validate_slot(
        self,
        unit,
        barber: Barber,
        duration_minutes: int,
        start: datetime,
        exclude_id: Optional[int] = None,
    ) -> datetime:
        """Re-run the availability rules for one start; return its end instant."""
        on_date, wall = self.clock.to_wall(start)

        if wall.second or wall.microsecond:
            raise SlotUnavailable("Start time must fall on a slot boundary")

        # 1) Schedule may have changed since the slot was offered
        day = self.resolver.resolve(barber, on_date)
        if day.is_closed:
            logger.info(f"Rejected booking: barber {barber.id} is closed on {on_date}")
            raise SlotUnavailable(f"Barber is not working on {on_date}")

        minutes = time_to_minutes(wall)
        if minutes not in set(candidate_starts(day, duration_minutes, self.granularity_minutes)):
            logger.info(f"Rejected booking: {wall:%H:%M} is not a bookable start for barber {barber.id} on {on_date}")
            raise SlotUnavailable("Start time is outside the barber's open hours")

        # 2) No zero-notice or past bookings
        if start <= self.clock.now():
            raise SlotUnavailable("Cannot book an appointment in the past")

        # 3) Overlap against what is committed right now
        end = start + timedelta(minutes=duration_minutes)
        conflicts = unit.find_blocking_appointments(barber.id, start, end, exclude_id=exclude_id)
        if conflicts:
            logger.info(f"Rejected booking: barber {barber.id} {start.isoformat()} overlaps appointment {conflicts[0].id}")
            raise SlotUnavailable("Appointment overlaps an existing appointment")

        return end

    @staticmethod
    def _check_transition(current: Appointment, target: AppointmentStatus) -> None:
        if current.status.is_terminal:
            raise InvalidTransition(f"Appointment {current.id} is already {current.status.value}")
        if not current.status.can_transition_to(target):
            raise InvalidTransition(f"Cannot move appointment {current.id} from {current.status.value} to {target.value}")

    def _check_notice(self, current: Appointment, now: datetime, action: str) -> None:
        if not self.min_change_notice:
            return
        if current.start - now <= self.min_change_notice:
            minutes = int(self.min_change_notice.total_seconds() // 60)
            raise InvalidTransition(f"Appointments can only be {action} with more than {minutes} minutes notice")

    @staticmethod
    def _require_appointment(reader, appointment_id: int) -> Appointment:
        appointment = reader.get_appointment(appointment_id)
        if appointment is None:
            raise NotFound("appointment", appointment_id)
        return appointment
