# barbershop/store/base.py
"""
Collaborator contracts for persistence.

The engine never talks to a database directly: every component receives an
AppointmentStore. Writes that must not race with other bookings of the same
barber happen inside ``store.barber_unit(barber_id)``, which serialises all
units for that barber and commits (or discards) as a whole. A unit may cover
several barbers (moving an appointment between them); it then holds all of
their locks.
"""

import threading
from contextlib import ExitStack, contextmanager
from datetime import date, datetime
from typing import ContextManager, Dict, Iterable, Iterator, List, Optional, Protocol

from barbershop.core.domain import (
    Appointment,
    AppointmentStatus,
    Barber,
    DaySchedule,
    ScheduleException,
    Service,
)


class StoreReader(Protocol):
    def get_service(self, service_id: int) -> Optional[Service]: ...

    def get_barber(self, barber_id: int) -> Optional[Barber]: ...

    def get_appointment(self, appointment_id: int) -> Optional[Appointment]: ...

    def find_blocking_appointments(
        self,
        barber_id: int,
        start: datetime,
        end: datetime,
        exclude_id: Optional[int] = None,
    ) -> List[Appointment]:
        """Scheduled/Rescheduled appointments of barber overlapping [start, end)."""
        ...


class BarberUnit(StoreReader, Protocol):
    """Reads and writes inside one per-barber atomic unit."""

    def add_appointment(self, appointment: Appointment) -> Appointment:
        """Insert and return the appointment with its id assigned."""
        ...

    def save_appointment(self, appointment: Appointment) -> Appointment: ...


class AppointmentStore(StoreReader, Protocol):
    def barber_unit(self, *barber_ids: int) -> ContextManager[BarberUnit]: ...

    def list_services(self, active_only: bool = True) -> List[Service]: ...

    def list_barbers(self, active_only: bool = True) -> List[Barber]: ...

    def list_appointments(
        self,
        barber_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        statuses: Optional[Iterable[AppointmentStatus]] = None,
    ) -> List[Appointment]: ...

    def add_service(self, service: Service) -> Service: ...

    def add_barber(self, barber: Barber) -> Barber: ...

    def replace_weekly_schedule(self, barber_id: int, entries: List[DaySchedule]) -> Barber: ...

    def put_exception(self, barber_id: int, exception: ScheduleException) -> Barber: ...

    def delete_exception(self, barber_id: int, on_date: date) -> bool: ...


class BarberLockRegistry:
    """One lock per barber, created on first use. Different barbers never contend.

    Several locks are always taken in ascending barber id order, so two units
    covering the same pair of barbers cannot deadlock.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[int, threading.Lock] = {}

    def _lock_for(self, barber_id: int) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(barber_id)
            if lock is None:
                lock = self._locks[barber_id] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, *barber_ids: int) -> Iterator[None]:
        with ExitStack() as stack:
            for barber_id in sorted(set(barber_ids)):
                stack.enter_context(self._lock_for(barber_id))
            yield
