# barbershop/store/memory.py
"""
In-memory AppointmentStore. Used by the engine tests and for local runs
without a database; it honours the same per-barber atomicity as the SQL store.
"""

import itertools
import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime
from typing import Dict, Iterable, Iterator, List, Optional

from barbershop.core.domain import (
    Appointment,
    AppointmentStatus,
    Barber,
    DaySchedule,
    ScheduleException,
    Service,
)
from barbershop.core.intervals import overlaps
from barbershop.errors import NotFound, SlotUnavailable
from barbershop.store.base import BarberLockRegistry


class InMemoryStore:
    def __init__(self):
        self._services: Dict[int, Service] = {}
        self._barbers: Dict[int, Barber] = {}
        self._appointments: Dict[int, Appointment] = {}
        self._ids = itertools.count(1)
        self._data_lock = threading.RLock()
        self._locks = BarberLockRegistry()

    # -- reads -------------------------------------------------------------

    def get_service(self, service_id: int) -> Optional[Service]:
        return self._services.get(service_id)

    def get_barber(self, barber_id: int) -> Optional[Barber]:
        return self._barbers.get(barber_id)

    def get_appointment(self, appointment_id: int) -> Optional[Appointment]:
        return self._appointments.get(appointment_id)

    def list_services(self, active_only: bool = True) -> List[Service]:
        services = sorted(self._services.values(), key=lambda s: s.id)
        return [s for s in services if s.active or not active_only]

    def list_barbers(self, active_only: bool = True) -> List[Barber]:
        barbers = sorted(self._barbers.values(), key=lambda b: b.id)
        return [b for b in barbers if b.active or not active_only]

    def find_blocking_appointments(
        self,
        barber_id: int,
        start: datetime,
        end: datetime,
        exclude_id: Optional[int] = None,
    ) -> List[Appointment]:
        with self._data_lock:
            found = [
                a for a in self._appointments.values()
                if a.barber_id == barber_id
                and a.blocks_time
                and a.id != exclude_id
                and overlaps(a.start, a.end, start, end)
            ]
        return sorted(found, key=lambda a: a.start)

    def list_appointments(
        self,
        barber_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        statuses: Optional[Iterable[AppointmentStatus]] = None,
    ) -> List[Appointment]:
        wanted = set(statuses) if statuses is not None else None
        with self._data_lock:
            found = [
                a for a in self._appointments.values()
                if a.barber_id == barber_id
                and (start is None or a.start >= start)
                and (end is None or a.start < end)
                and (wanted is None or a.status in wanted)
            ]
        return sorted(found, key=lambda a: a.start)

    # -- atomic unit -------------------------------------------------------

    @contextmanager
    def barber_unit(self, *barber_ids: int) -> Iterator["InMemoryUnit"]:
        with self._locks.hold(*barber_ids):
            unit = InMemoryUnit(self)
            yield unit
            unit.commit()

    # -- catalogue and schedule writes ---------------------------------------

    def add_service(self, service: Service) -> Service:
        with self._data_lock:
            if service.id is None or service.id in self._services:
                service = replace(service, id=self._next_free(self._services))
            self._services[service.id] = service
        return service

    def add_barber(self, barber: Barber) -> Barber:
        with self._data_lock:
            if barber.id is None or barber.id in self._barbers:
                barber = replace(barber, id=self._next_free(self._barbers))
            self._barbers[barber.id] = barber
        return barber

    def replace_weekly_schedule(self, barber_id: int, entries: List[DaySchedule]) -> Barber:
        with self._data_lock:
            barber = self._require_barber(barber_id)
            updated = replace(barber, weekly_schedule={e.day_of_week: e for e in entries})
            self._barbers[barber_id] = updated
        return updated

    def put_exception(self, barber_id: int, exception: ScheduleException) -> Barber:
        with self._data_lock:
            barber = self._require_barber(barber_id)
            exceptions = dict(barber.exceptions)
            exceptions[exception.date] = exception
            updated = replace(barber, exceptions=exceptions)
            self._barbers[barber_id] = updated
        return updated

    def delete_exception(self, barber_id: int, on_date: date) -> bool:
        with self._data_lock:
            barber = self._require_barber(barber_id)
            if on_date not in barber.exceptions:
                return False
            exceptions = {d: e for d, e in barber.exceptions.items() if d != on_date}
            self._barbers[barber_id] = replace(barber, exceptions=exceptions)
        return True

    # -- helpers -------------------------------------------------------------

    def _require_barber(self, barber_id: int) -> Barber:
        barber = self._barbers.get(barber_id)
        if barber is None:
            raise NotFound("barber", barber_id)
        return barber

    @staticmethod
    def _next_free(existing: Dict[int, object]) -> int:
        return max(existing, default=0) + 1


class InMemoryUnit:
    """Buffers writes and applies them when the unit exits cleanly."""

    def __init__(self, store: InMemoryStore):
        self._store = store
        self._pending: List[Appointment] = []

    def get_service(self, service_id: int) -> Optional[Service]:
        return self._store.get_service(service_id)

    def get_barber(self, barber_id: int) -> Optional[Barber]:
        return self._store.get_barber(barber_id)

    def get_appointment(self, appointment_id: int) -> Optional[Appointment]:
        for pending in self._pending:
            if pending.id == appointment_id:
                return pending
        return self._store.get_appointment(appointment_id)

    def find_blocking_appointments(self, barber_id, start, end, exclude_id=None) -> List[Appointment]:
        pending_ids = {p.id for p in self._pending}
        committed = [
            a for a in self._store.find_blocking_appointments(barber_id, start, end, exclude_id)
            if a.id not in pending_ids
        ]
        staged = [
            p for p in self._pending
            if p.barber_id == barber_id
            and p.blocks_time
            and p.id != exclude_id
            and overlaps(p.start, p.end, start, end)
        ]
        return sorted(committed + staged, key=lambda a: a.start)

    def add_appointment(self, appointment: Appointment) -> Appointment:
        with self._store._data_lock:
            new_id = next(self._store._ids)
        created = appointment.with_changes(id=new_id)
        self._pending.append(created)
        return created

    def save_appointment(self, appointment: Appointment) -> Appointment:
        if appointment.id is None:
            raise ValueError("save_appointment needs an existing appointment")
        self._pending = [p for p in self._pending if p.id != appointment.id]
        self._pending.append(appointment)
        return appointment

    def commit(self) -> None:
        with self._store._data_lock:
            # Mirrors the (barber_id, starts_at) unique constraint of the SQL store
            for pending in self._pending:
                if not pending.blocks_time:
                    continue
                for other in self._store._appointments.values():
                    if (
                        other.id != pending.id
                        and other.barber_id == pending.barber_id
                        and other.start == pending.start
                        and other.blocks_time
                    ):
                        raise SlotUnavailable(f"barber {pending.barber_id} already has an appointment at {pending.start}")
            for pending in self._pending:
                self._store._appointments[pending.id] = pending
            self._pending = []
