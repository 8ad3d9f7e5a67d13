# barbershop/schemas.py

from datetime import datetime, date, time
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from barbershop.core.clock import OperatingClock
from barbershop.core.domain import (
    Appointment,
    AppointmentStatus,
    Barber,
    BreakInterval,
    CustomHours,
    DayOff,
    DaySchedule,
    Service,
    TimeSlot,
)


class BreakIn(BaseModel):
    start: time
    end: time

    def to_domain(self) -> BreakInterval:
        return BreakInterval(start=self.start, end=self.end)


class DayScheduleIn(BaseModel):
    day_of_week: int = Field(ge=0, le=6)  # 0=Sun, 1=Mon....
    start: time
    end: time
    breaks: List[BreakIn] = Field(default_factory=list)


class WeeklyScheduleIn(BaseModel):
    days: List[DayScheduleIn]


class DayOffIn(BaseModel):
    kind: Literal["day_off"]
    date: date


class CustomHoursIn(BaseModel):
    kind: Literal["custom_hours"]
    date: date
    start: time
    end: time
    breaks: List[BreakIn] = Field(default_factory=list)


ExceptionIn = Annotated[Union[DayOffIn, CustomHoursIn], Field(discriminator="kind")]


class BreakPublic(BaseModel):
    start: str
    end: str


class DaySchedulePublic(BaseModel):
    day_of_week: int
    start: str
    end: str
    breaks: List[BreakPublic]


class ExceptionPublic(BaseModel):
    kind: str
    date: date
    start: Optional[str] = None
    end: Optional[str] = None
    breaks: List[BreakPublic] = Field(default_factory=list)


class BarberPublic(BaseModel):
    id: int
    name: str
    active: bool


class BarberSchedulePublic(BaseModel):
    barber_id: int
    days: List[DaySchedulePublic]
    exceptions: List[ExceptionPublic]


class ServicePublic(BaseModel):
    id: int
    name: str
    duration_minutes: int
    price: int


class ClientContactIn(BaseModel):
    full_name: str = Field(min_length=2)
    phone: str = Field(min_length=7, max_length=20)
    email: str
    notes: Optional[str] = None


class AppointmentCreate(BaseModel):
    service_id: int
    barber_id: int
    start_datetime: datetime
    client: ClientContactIn


class AppointmentStatusUpdate(BaseModel):
    status: AppointmentStatus


class AppointmentReschedule(BaseModel):
    start_datetime: datetime
    barber_id: Optional[int] = None


class AppointmentPublic(BaseModel):
    id: int
    barber_id: int
    service_id: int
    start_datetime: datetime
    end_datetime: datetime
    status: AppointmentStatus
    client_name: str
    client_phone: str
    client_email: str
    notes: Optional[str] = None


class TimeSlotPublic(BaseModel):
    start_time: str
    end_time: str
    available: bool
    barber_id: Optional[int] = None


class AvailabilityResponse(BaseModel):
    service_id: int
    barber_id: Optional[int] = None
    date: date
    slots: List[TimeSlotPublic]


def _hhmm(value: time) -> str:
    return value.strftime("%H:%M")


def _breaks_public(breaks: List[BreakInterval]) -> List[BreakPublic]:
    return [BreakPublic(start=_hhmm(b.start), end=_hhmm(b.end)) for b in breaks]


def day_schedule_public(entry: DaySchedule) -> DaySchedulePublic:
    return DaySchedulePublic(
        day_of_week=entry.day_of_week,
        start=_hhmm(entry.start),
        end=_hhmm(entry.end),
        breaks=_breaks_public(entry.breaks),
    )


def exception_public(exception: Union[DayOff, CustomHours]) -> ExceptionPublic:
    if isinstance(exception, CustomHours):
        return ExceptionPublic(
            kind="custom_hours",
            date=exception.date,
            start=_hhmm(exception.start),
            end=_hhmm(exception.end),
            breaks=_breaks_public(exception.breaks),
        )
    return ExceptionPublic(kind="day_off", date=exception.date)


def barber_schedule_public(barber: Barber) -> BarberSchedulePublic:
    return BarberSchedulePublic(
        barber_id=barber.id,
        days=[day_schedule_public(barber.weekly_schedule[d]) for d in sorted(barber.weekly_schedule)],
        exceptions=[exception_public(barber.exceptions[d]) for d in sorted(barber.exceptions)],
    )


def barber_public(barber: Barber) -> BarberPublic:
    return BarberPublic(id=barber.id, name=barber.name, active=barber.active)


def service_public(service: Service) -> ServicePublic:
    return ServicePublic(
        id=service.id,
        name=service.name,
        duration_minutes=service.duration_minutes,
        price=service.price,
    )


def appointment_public(appointment: Appointment, clock: OperatingClock) -> AppointmentPublic:
    # echo instants in the shop's zone so "10:00-05:00" reads as booked
    return AppointmentPublic(
        id=appointment.id,
        barber_id=appointment.barber_id,
        service_id=appointment.service_id,
        start_datetime=appointment.start.astimezone(clock.zone),
        end_datetime=appointment.end.astimezone(clock.zone),
        status=appointment.status,
        client_name=appointment.client.full_name,
        client_phone=appointment.client.phone,
        client_email=appointment.client.email,
        notes=appointment.client.notes,
    )


def time_slot_public(slot: TimeSlot) -> TimeSlotPublic:
    return TimeSlotPublic(
        start_time=slot.start_time,
        end_time=slot.end_time,
        available=slot.available,
        barber_id=slot.barber_id,
    )
