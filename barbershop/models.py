# barbershop/models.py

from typing import Optional, List
from datetime import datetime, date as Date, time

from sqlalchemy import DateTime, Index, UniqueConstraint, text
from sqlalchemy.types import JSON
from sqlmodel import SQLModel, Field, Column

# Only Scheduled/Rescheduled rows occupy a start time
BLOCKING_STATUS_SQL = text("status IN ('scheduled', 'rescheduled')")


class Service(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    duration_minutes: int
    price: int = 0
    active: bool = True


class Barber(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    active: bool = True


class BarberSchedule(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("barber_id", "day_of_week", name="uq_barber_day"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    barber_id: int = Field(foreign_key="barber.id", index=True)
    day_of_week: int  # 0=Sunday..6=Saturday
    day_start: time
    day_end: time
    breaks: List[dict] = Field(default_factory=list, sa_column=Column(JSON))  # [{"start": "13:00", "end": "14:00"}]


class BarberException(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("barber_id", "date", name="uq_barber_exception_date"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    barber_id: int = Field(foreign_key="barber.id", index=True)
    date: Date = Field(index=True)
    kind: str  # "day_off" or "custom_hours"
    day_start: Optional[time] = None
    day_end: Optional[time] = None
    breaks: List[dict] = Field(default_factory=list, sa_column=Column(JSON))


class Appointment(SQLModel, table=True):
    __table_args__ = (
        Index(
            "uq_barber_start",
            "barber_id",
            "starts_at",
            unique=True,
            sqlite_where=BLOCKING_STATUS_SQL,
            postgresql_where=BLOCKING_STATUS_SQL,
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    barber_id: int = Field(foreign_key="barber.id", index=True)
    service_id: int = Field(foreign_key="service.id")
    # aware UTC instants
    starts_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False, index=True))
    ends_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    status: str = "scheduled"

    client_name: str
    client_phone: str
    client_email: str
    notes: Optional[str] = None
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
