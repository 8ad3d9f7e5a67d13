"""
Shared fixtures: a fixed operating clock and two stores (in-memory and a
temporary SQLite file) seeded with one barber who works Mondays 09:00-18:00
with a 13:00-14:00 break.
"""

from datetime import date, datetime, time

import pytest

from barbershop.core.availability import AvailabilityGenerator
from barbershop.core.booking import BookingManager
from barbershop.core.clock import OperatingClock
from barbershop.core.domain import Barber, BreakInterval, ClientContact, DaySchedule, Service
from barbershop.db import init_db, make_engine
from barbershop.store.memory import InMemoryStore
from barbershop.store.sql import SqlStore

MONDAY = date(2025, 11, 10)
SUNDAY_BEFORE = date(2025, 11, 9)
BOGOTA_OFFSET = -300


class SettableNow:
    """now_provider whose value tests can move; naive values are shop wall time."""

    def __init__(self, value: datetime):
        self.value = value

    def __call__(self) -> datetime:
        return self.value


def monday_schedule() -> DaySchedule:
    return DaySchedule(
        day_of_week=1,
        start=time(9, 0),
        end=time(18, 0),
        breaks=[BreakInterval(start=time(13, 0), end=time(14, 0))],
    )


@pytest.fixture
def now():
    return SettableNow(datetime(2025, 11, 9, 12, 0))


@pytest.fixture
def clock(now):
    return OperatingClock(BOGOTA_OFFSET, "America/Bogota", now_provider=now)


@pytest.fixture
def store():
    store = InMemoryStore()
    store.add_service(Service(id=1, name="Corte clasico", duration_minutes=45, price=30000))
    store.add_service(Service(id=2, name="Barba", duration_minutes=30, price=20000))
    store.add_service(Service(id=3, name="Retired", duration_minutes=30, active=False))
    store.add_barber(Barber(id=1, name="Carlos", weekly_schedule={1: monday_schedule()}))
    return store


@pytest.fixture
def sql_store(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'barber-test.db'}")
    init_db(engine)
    store = SqlStore(engine)
    store.add_service(Service(id=None, name="Corte clasico", duration_minutes=45, price=30000))
    store.add_service(Service(id=None, name="Barba", duration_minutes=30, price=20000))
    store.add_barber(Barber(id=None, name="Carlos", weekly_schedule={1: monday_schedule()}))
    yield store
    engine.dispose()


@pytest.fixture
def availability(store, clock):
    return AvailabilityGenerator(store, clock, granularity_minutes=15)


@pytest.fixture
def manager(store, clock):
    return BookingManager(store, clock, granularity_minutes=15)


@pytest.fixture
def client_contact():
    return ClientContact(full_name="Ana Gomez", phone="+573001234567", email="ana@example.com")
