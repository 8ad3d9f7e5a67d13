# barbershop/deps.py

from functools import lru_cache

from fastapi import Depends, HTTPException

from barbershop.config import Settings, get_settings
from barbershop.core.availability import AvailabilityGenerator
from barbershop.core.booking import BookingManager
from barbershop.core.clock import OperatingClock
from barbershop.db import engine
from barbershop.errors import (
    BarberInactive,
    BookingError,
    InvalidInterval,
    InvalidTransition,
    NotFound,
    ServiceInactive,
    SlotUnavailable,
)
from barbershop.store.sql import SqlStore


@lru_cache
def get_store() -> SqlStore:
    # one store per process so every request shares the per-barber locks
    return SqlStore(engine)


def get_clock(settings: Settings = Depends(get_settings)) -> OperatingClock:
    return OperatingClock.from_settings(settings)


def get_availability(
    store=Depends(get_store),
    clock: OperatingClock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
) -> AvailabilityGenerator:
    return AvailabilityGenerator(store, clock, settings.slot_granularity_minutes)


def get_booking_manager(
    store=Depends(get_store),
    clock: OperatingClock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
) -> BookingManager:
    return BookingManager(
        store,
        clock,
        settings.slot_granularity_minutes,
        min_change_notice_minutes=settings.min_change_notice_minutes,
    )


def to_http_error(exc: BookingError) -> HTTPException:
    if isinstance(exc, NotFound):
        return HTTPException(status_code=404, detail=f"{exc.kind.capitalize()} not found")
    if isinstance(exc, (ServiceInactive, BarberInactive, InvalidInterval)):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, (SlotUnavailable, InvalidTransition)):
        return HTTPException(status_code=409, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))
