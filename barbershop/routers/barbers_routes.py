# barbershop/routers/barbers_routes.py

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from barbershop.core.clock import OperatingClock
from barbershop.core.domain import AppointmentStatus, BLOCKING_STATUSES, CustomHours, DayOff, DaySchedule
from barbershop.core.schedule import check_day_window
from barbershop.deps import get_clock, get_store, to_http_error
from barbershop.errors import BookingError, NotFound
from barbershop.schemas import (
    AppointmentPublic,
    BarberPublic,
    BarberSchedulePublic,
    ExceptionIn,
    WeeklyScheduleIn,
    appointment_public,
    barber_public,
    barber_schedule_public,
)

router = APIRouter(
    prefix="/barbers",
    tags=["barbers"],
)


@router.get("", response_model=List[BarberPublic])
def list_barbers(store=Depends(get_store)):
    return [barber_public(b) for b in store.list_barbers(active_only=True)]


@router.get("/{barber_id}/schedule", response_model=BarberSchedulePublic)
def get_schedule(barber_id: int, store=Depends(get_store)):
    barber = store.get_barber(barber_id)
    if barber is None:
        raise to_http_error(NotFound("barber", barber_id))
    return barber_schedule_public(barber)


@router.put("/{barber_id}/schedule", response_model=BarberSchedulePublic)
def replace_schedule(
    barber_id: int,
    schedule: WeeklyScheduleIn,
    store=Depends(get_store),
):
    days = [d.day_of_week for d in schedule.days]
    if len(days) != len(set(days)):
        raise HTTPException(status_code=422, detail="day_of_week cannot contain duplicates")

    try:
        entries = [
            DaySchedule(
                day_of_week=d.day_of_week,
                start=d.start,
                end=d.end,
                breaks=check_day_window(d.start, d.end, [b.to_domain() for b in d.breaks]),
            )
            for d in schedule.days
        ]
        barber = store.replace_weekly_schedule(barber_id, entries)
    except BookingError as exc:
        raise to_http_error(exc)

    return barber_schedule_public(barber)


@router.put("/{barber_id}/exceptions", response_model=BarberSchedulePublic)
def put_exception(
    barber_id: int,
    exception: ExceptionIn,
    store=Depends(get_store),
):
    try:
        if exception.kind == "custom_hours":
            breaks = check_day_window(exception.start, exception.end, [b.to_domain() for b in exception.breaks])
            variant = CustomHours(date=exception.date, start=exception.start, end=exception.end, breaks=breaks)
        else:
            variant = DayOff(date=exception.date)
        barber = store.put_exception(barber_id, variant)
    except BookingError as exc:
        raise to_http_error(exc)

    return barber_schedule_public(barber)


@router.delete("/{barber_id}/exceptions/{on_date}", status_code=204)
def delete_exception(barber_id: int, on_date: date, store=Depends(get_store)):
    try:
        removed = store.delete_exception(barber_id, on_date)
    except BookingError as exc:
        raise to_http_error(exc)
    if not removed:
        raise HTTPException(status_code=404, detail="Exception not found")


@router.get("/{barber_id}/appointments", response_model=List[AppointmentPublic])
def list_barber_appointments(
    barber_id: int,
    status: Optional[str] = "active",
    on_date: Optional[date] = None,
    store=Depends(get_store),
    clock: OperatingClock = Depends(get_clock),
):
    if store.get_barber(barber_id) is None:
        raise to_http_error(NotFound("barber", barber_id))

    # "active" = the appointments that still occupy the calendar
    if status == "active":
        statuses = BLOCKING_STATUSES
    elif status == "all":
        statuses = None
    else:
        try:
            statuses = [AppointmentStatus(status)]
        except ValueError:
            raise HTTPException(
                status_code=422,
                detail="status must be 'active', 'all', or one of scheduled/rescheduled/completed/cancelled",
            )

    start = end = None
    if on_date is not None:
        start, end = clock.day_bounds(on_date)

    appts = store.list_appointments(barber_id, start=start, end=end, statuses=statuses)
    return [appointment_public(a, clock) for a in appts]
