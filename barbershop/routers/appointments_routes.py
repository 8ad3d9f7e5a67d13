# barbershop/routers/appointments_routes.py

from fastapi import APIRouter, Depends

from barbershop.core.booking import BookingManager, BookingRequest
from barbershop.core.clock import OperatingClock
from barbershop.core.domain import ClientContact
from barbershop.deps import get_booking_manager, get_clock, get_store, to_http_error
from barbershop.errors import BookingError, NotFound
from barbershop.schemas import (
    AppointmentCreate,
    AppointmentPublic,
    AppointmentReschedule,
    AppointmentStatusUpdate,
    appointment_public,
)

router = APIRouter(
    prefix="/appointments",
    tags=["appointments"],
)


@router.post("", response_model=AppointmentPublic, status_code=201)
def create_appointment(
    appt: AppointmentCreate,
    manager: BookingManager = Depends(get_booking_manager),
    clock: OperatingClock = Depends(get_clock),
):
    request = BookingRequest(
        service_id=appt.service_id,
        barber_id=appt.barber_id,
        start=appt.start_datetime,
        client=ClientContact(
            full_name=appt.client.full_name,
            phone=appt.client.phone,
            email=appt.client.email,
            notes=appt.client.notes,
        ),
    )

    # Availability is re-checked in the same unit as the insert
    try:
        created = manager.create_appointment(request)
    except BookingError as exc:
        raise to_http_error(exc)

    return appointment_public(created, clock)


@router.get("/{appt_id}", response_model=AppointmentPublic)
def get_appointment(
    appt_id: int,
    store=Depends(get_store),
    clock: OperatingClock = Depends(get_clock),
):
    appointment = store.get_appointment(appt_id)
    if appointment is None:
        raise to_http_error(NotFound("appointment", appt_id))
    return appointment_public(appointment, clock)


@router.patch("/{appt_id}/status", response_model=AppointmentPublic)
def update_appointment_status(
    appt_id: int,
    update: AppointmentStatusUpdate,
    manager: BookingManager = Depends(get_booking_manager),
    clock: OperatingClock = Depends(get_clock),
):
    try:
        updated = manager.update_status(appt_id, update.status)
    except BookingError as exc:
        raise to_http_error(exc)
    return appointment_public(updated, clock)


@router.patch("/{appt_id}/reschedule", response_model=AppointmentPublic)
def reschedule_appointment(
    appt_id: int,
    change: AppointmentReschedule,
    manager: BookingManager = Depends(get_booking_manager),
    clock: OperatingClock = Depends(get_clock),
):
    try:
        updated = manager.reschedule(appt_id, change.start_datetime, change.barber_id)
    except BookingError as exc:
        raise to_http_error(exc)
    return appointment_public(updated, clock)
