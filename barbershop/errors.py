# barbershop/errors.py
"""
Error hierarchy for the scheduling engine.

All of these are local, recoverable conditions. Routers turn them into HTTP
errors; storage failures (SQLAlchemy errors) are never wrapped here.
"""


class BookingError(Exception):
    """Base class for all engine errors."""


class NotFound(BookingError):
    """Unknown service, barber or appointment id."""

    def __init__(self, kind: str, ident):
        self.kind = kind
        self.ident = ident
        super().__init__(f"{kind} {ident} not found")


class ServiceInactive(BookingError):
    """The selected service is disabled."""


class BarberInactive(BookingError):
    """The selected barber is disabled."""


class SlotUnavailable(BookingError):
    """The chosen start failed re-validation; the caller must re-query availability."""


class InvalidTransition(BookingError):
    """The requested status change is not allowed."""


class InvalidInterval(BookingError):
    """Malformed schedule data (inverted window, break outside its window, ...)."""
