# barbershop/store/sql.py
"""
SQLModel-backed AppointmentStore.

Instants are written as aware UTC datetimes. SQLite hands them back naive
(still UTC), so reads re-attach the zone and the engine only ever sees
aware values.
"""

import logging
from contextlib import contextmanager
from datetime import date, datetime, timezone
from typing import Iterable, Iterator, List, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, select

from barbershop import models
from barbershop.core.domain import (
    Appointment,
    AppointmentStatus,
    Barber,
    BLOCKING_STATUSES,
    BreakInterval,
    ClientContact,
    CustomHours,
    DayOff,
    DaySchedule,
    ScheduleException,
    Service,
)
from barbershop.core.intervals import format_hhmm, minutes_to_time, parse_hhmm, time_to_minutes
from barbershop.errors import NotFound, SlotUnavailable
from barbershop.store.base import BarberLockRegistry

logger = logging.getLogger(__name__)


def _to_db(value: datetime) -> datetime:
    return value.astimezone(timezone.utc)


def _from_db(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _breaks_to_json(breaks: List[BreakInterval]) -> List[dict]:
    return [
        {"start": format_hhmm(time_to_minutes(b.start)), "end": format_hhmm(time_to_minutes(b.end))}
        for b in breaks
    ]


def _breaks_from_json(raw: Optional[List[dict]]) -> List[BreakInterval]:
    return [
        BreakInterval(start=minutes_to_time(parse_hhmm(b["start"])), end=minutes_to_time(parse_hhmm(b["end"])))
        for b in raw or []
    ]


def _service_from_row(row: models.Service) -> Service:
    return Service(
        id=row.id,
        name=row.name,
        duration_minutes=row.duration_minutes,
        active=row.active,
        price=row.price,
    )


def _exception_from_row(row: models.BarberException) -> ScheduleException:
    if row.kind == "custom_hours":
        if row.day_start is not None and row.day_end is not None:
            return CustomHours(
                date=row.date,
                start=row.day_start,
                end=row.day_end,
                breaks=_breaks_from_json(row.breaks),
            )
        logger.warning(f"custom_hours exception {row.id} for barber {row.barber_id} has no hours; treating as day off")
    return DayOff(date=row.date)


def _appointment_from_row(row: models.Appointment) -> Appointment:
    return Appointment(
        id=row.id,
        barber_id=row.barber_id,
        service_id=row.service_id,
        start=_from_db(row.starts_at),
        end=_from_db(row.ends_at),
        status=AppointmentStatus(row.status),
        client=ClientContact(
            full_name=row.client_name,
            phone=row.client_phone,
            email=row.client_email,
            notes=row.notes,
        ),
        created_at=_from_db(row.created_at),
    )


def _appointment_to_row(appointment: Appointment) -> models.Appointment:
    return models.Appointment(
        barber_id=appointment.barber_id,
        service_id=appointment.service_id,
        starts_at=_to_db(appointment.start),
        ends_at=_to_db(appointment.end),
        status=appointment.status.value,
        client_name=appointment.client.full_name,
        client_phone=appointment.client.phone,
        client_email=appointment.client.email,
        notes=appointment.client.notes,
        created_at=_to_db(appointment.created_at or datetime.now(timezone.utc)),
    )


def _copy_appointment_to_row(appointment: Appointment, row: models.Appointment) -> models.Appointment:
    row.barber_id = appointment.barber_id
    row.service_id = appointment.service_id
    row.starts_at = _to_db(appointment.start)
    row.ends_at = _to_db(appointment.end)
    row.status = appointment.status.value
    row.client_name = appointment.client.full_name
    row.client_phone = appointment.client.phone
    row.client_email = appointment.client.email
    row.notes = appointment.client.notes
    return row


class _SessionReader:
    """Read operations over one open Session."""

    def __init__(self, session: Session):
        self.session = session

    def get_service(self, service_id: int) -> Optional[Service]:
        row = self.session.get(models.Service, service_id)
        return _service_from_row(row) if row is not None else None

    def get_barber(self, barber_id: int) -> Optional[Barber]:
        row = self.session.get(models.Barber, barber_id)
        if row is None:
            return None
        return self._barber_from_row(row)

    def list_barbers(self, active_only: bool = True) -> List[Barber]:
        stmt = select(models.Barber)
        if active_only:
            stmt = stmt.where(models.Barber.active == True)  # noqa: E712
        stmt = stmt.order_by(models.Barber.id)
        return [self._barber_from_row(row) for row in self.session.exec(stmt).all()]

    def get_appointment(self, appointment_id: int) -> Optional[Appointment]:
        row = self.session.get(models.Appointment, appointment_id)
        return _appointment_from_row(row) if row is not None else None

    def find_blocking_appointments(
        self,
        barber_id: int,
        start: datetime,
        end: datetime,
        exclude_id: Optional[int] = None,
    ) -> List[Appointment]:
        stmt = (
            select(models.Appointment)
            .where(models.Appointment.barber_id == barber_id)
            .where(col(models.Appointment.status).in_([s.value for s in BLOCKING_STATUSES]))
            .where(models.Appointment.starts_at < _to_db(end))
            .where(models.Appointment.ends_at > _to_db(start))
        )
        if exclude_id is not None:
            stmt = stmt.where(models.Appointment.id != exclude_id)
        stmt = stmt.order_by(models.Appointment.starts_at)
        return [_appointment_from_row(row) for row in self.session.exec(stmt).all()]

    def _barber_from_row(self, row: models.Barber) -> Barber:
        weekly_rows = self.session.exec(
            select(models.BarberSchedule).where(models.BarberSchedule.barber_id == row.id)
        ).all()
        exception_rows = self.session.exec(
            select(models.BarberException).where(models.BarberException.barber_id == row.id)
        ).all()

        weekly = {
            w.day_of_week: DaySchedule(
                day_of_week=w.day_of_week,
                start=w.day_start,
                end=w.day_end,
                breaks=_breaks_from_json(w.breaks),
            )
            for w in weekly_rows
        }
        exceptions = {e.date: _exception_from_row(e) for e in exception_rows}
        return Barber(id=row.id, name=row.name, active=row.active, weekly_schedule=weekly, exceptions=exceptions)


class SqlUnit(_SessionReader):
    """Reads and writes sharing the session of one barber_unit."""

    def add_appointment(self, appointment: Appointment) -> Appointment:
        row = _appointment_to_row(appointment)
        self.session.add(row)
        self._flush()
        return _appointment_from_row(row)

    def save_appointment(self, appointment: Appointment) -> Appointment:
        row = self.session.get(models.Appointment, appointment.id)
        if row is None:
            raise NotFound("appointment", appointment.id)
        _copy_appointment_to_row(appointment, row)
        self.session.add(row)
        self._flush()
        return _appointment_from_row(row)

    def _flush(self) -> None:
        try:
            self.session.flush()
        except IntegrityError:
            self.session.rollback()
            raise SlotUnavailable("Appointment already exists for that start time")


class SqlStore:
    def __init__(self, engine: Engine):
        self.engine = engine
        self._locks = BarberLockRegistry()

    @contextmanager
    def _reader(self) -> Iterator[_SessionReader]:
        with Session(self.engine) as session:
            yield _SessionReader(session)

    def get_service(self, service_id: int) -> Optional[Service]:
        with self._reader() as reader:
            return reader.get_service(service_id)

    def get_barber(self, barber_id: int) -> Optional[Barber]:
        with self._reader() as reader:
            return reader.get_barber(barber_id)

    def get_appointment(self, appointment_id: int) -> Optional[Appointment]:
        with self._reader() as reader:
            return reader.get_appointment(appointment_id)

    def find_blocking_appointments(self, barber_id, start, end, exclude_id=None) -> List[Appointment]:
        with self._reader() as reader:
            return reader.find_blocking_appointments(barber_id, start, end, exclude_id)

    def list_barbers(self, active_only: bool = True) -> List[Barber]:
        with self._reader() as reader:
            return reader.list_barbers(active_only)

    def list_services(self, active_only: bool = True) -> List[Service]:
        with Session(self.engine) as session:
            stmt = select(models.Service)
            if active_only:
                stmt = stmt.where(models.Service.active == True)  # noqa: E712
            stmt = stmt.order_by(models.Service.id)
            return [_service_from_row(row) for row in session.exec(stmt).all()]

    def list_appointments(
        self,
        barber_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        statuses: Optional[Iterable[AppointmentStatus]] = None,
    ) -> List[Appointment]:
        stmt = select(models.Appointment).where(models.Appointment.barber_id == barber_id)
        if start is not None:
            stmt = stmt.where(models.Appointment.starts_at >= _to_db(start))
        if end is not None:
            stmt = stmt.where(models.Appointment.starts_at < _to_db(end))
        if statuses is not None:
            stmt = stmt.where(col(models.Appointment.status).in_([s.value for s in statuses]))
        stmt = stmt.order_by(models.Appointment.starts_at)

        with Session(self.engine) as session:
            return [_appointment_from_row(row) for row in session.exec(stmt).all()]

    @contextmanager
    def barber_unit(self, *barber_ids: int) -> Iterator[SqlUnit]:
        # In-process lock serialises threads of this worker; the row lock covers
        # other workers on databases that support SELECT ... FOR UPDATE
        with self._locks.hold(*barber_ids):
            with Session(self.engine) as session:
                session.exec(
                    select(models.Barber)
                    .where(col(models.Barber.id).in_(sorted(set(barber_ids))))
                    .order_by(models.Barber.id)
                    .with_for_update()
                ).all()

                yield SqlUnit(session)

                try:
                    session.commit()
                except IntegrityError:
                    session.rollback()
                    raise SlotUnavailable("Appointment already exists for that start time")

    # -- catalogue and schedule writes ---------------------------------------

    def add_service(self, service: Service) -> Service:
        with Session(self.engine) as session:
            row = models.Service(
                name=service.name,
                duration_minutes=service.duration_minutes,
                price=service.price,
                active=service.active,
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return _service_from_row(row)

    def add_barber(self, barber: Barber) -> Barber:
        with Session(self.engine) as session:
            row = models.Barber(name=barber.name, active=barber.active)
            session.add(row)
            session.commit()
            session.refresh(row)
            barber_id = row.id

        self.replace_weekly_schedule(barber_id, list(barber.weekly_schedule.values()))
        for exception in barber.exceptions.values():
            self.put_exception(barber_id, exception)
        return self.get_barber(barber_id)

    def replace_weekly_schedule(self, barber_id: int, entries: List[DaySchedule]) -> Barber:
        with Session(self.engine) as session:
            self._require_barber(session, barber_id)

            existing = session.exec(
                select(models.BarberSchedule).where(models.BarberSchedule.barber_id == barber_id)
            ).all()
            for row in existing:
                session.delete(row)
            session.flush()

            for entry in entries:
                session.add(models.BarberSchedule(
                    barber_id=barber_id,
                    day_of_week=entry.day_of_week,
                    day_start=entry.start,
                    day_end=entry.end,
                    breaks=_breaks_to_json(entry.breaks),
                ))
            session.commit()

        return self.get_barber(barber_id)

    def put_exception(self, barber_id: int, exception: ScheduleException) -> Barber:
        with Session(self.engine) as session:
            self._require_barber(session, barber_id)

            # DB upsert: one exception per barber per date
            row = session.exec(
                select(models.BarberException)
                .where(models.BarberException.barber_id == barber_id)
                .where(models.BarberException.date == exception.date)
            ).first()
            if row is None:
                row = models.BarberException(barber_id=barber_id, date=exception.date, kind="day_off")

            if isinstance(exception, CustomHours):
                row.kind = "custom_hours"
                row.day_start = exception.start
                row.day_end = exception.end
                row.breaks = _breaks_to_json(exception.breaks)
            else:
                row.kind = "day_off"
                row.day_start = None
                row.day_end = None
                row.breaks = []

            session.add(row)
            session.commit()

        return self.get_barber(barber_id)

    def delete_exception(self, barber_id: int, on_date: date) -> bool:
        with Session(self.engine) as session:
            self._require_barber(session, barber_id)
            row = session.exec(
                select(models.BarberException)
                .where(models.BarberException.barber_id == barber_id)
                .where(models.BarberException.date == on_date)
            ).first()
            if row is None:
                return False
            session.delete(row)
            session.commit()
        return True

    @staticmethod
    def _require_barber(session: Session, barber_id: int) -> models.Barber:
        row = session.get(models.Barber, barber_id)
        if row is None:
            raise NotFound("barber", barber_id)
        return row
