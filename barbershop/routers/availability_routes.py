# barbershop/routers/availability_routes.py

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends

from barbershop.core.availability import AvailabilityGenerator
from barbershop.deps import get_availability, to_http_error
from barbershop.errors import BookingError
from barbershop.schemas import AvailabilityResponse, time_slot_public

router = APIRouter(
    tags=["availability"],
)


@router.get("/availability", response_model=AvailabilityResponse)
def query_availability(
    service_id: int,
    date: date,
    barber_id: Optional[int] = None,
    exclude_appointment_id: Optional[int] = None,
    availability: AvailabilityGenerator = Depends(get_availability),
):
    # No barber means "any barber": every active barber's grid is merged
    try:
        if barber_id is None:
            slots = availability.slots_for_any_barber(service_id, date)
        else:
            slots = availability.slots_for(service_id, barber_id, date, exclude_appointment_id)
    except BookingError as exc:
        raise to_http_error(exc)

    return {
        "service_id": service_id,
        "barber_id": barber_id,
        "date": date,
        "slots": [time_slot_public(s) for s in slots],
    }
