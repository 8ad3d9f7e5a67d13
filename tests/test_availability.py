"""
Tests for slot generation and the availability query.
"""

from datetime import date, datetime, time, timedelta

import pytest

from barbershop.core.availability import AvailabilityGenerator, generate_slots
from barbershop.core.domain import (
    Appointment,
    AppointmentStatus,
    Barber,
    BreakInterval,
    CustomHours,
    DayOff,
    DaySchedule,
)
from barbershop.core.intervals import parse_hhmm
from barbershop.core.schedule import ScheduleResolver
from barbershop.errors import BarberInactive, NotFound, ServiceInactive

from conftest import MONDAY, monday_schedule


def _appointment(clock, client_contact, start: time, minutes: int, status=AppointmentStatus.scheduled, barber_id=1):
    begin = clock.to_instant(MONDAY, start)
    return Appointment(
        id=None,
        barber_id=barber_id,
        service_id=1,
        start=begin,
        end=begin + timedelta(minutes=minutes),
        status=status,
        client=client_contact,
    )


def _book(store, appointment):
    with store.barber_unit(appointment.barber_id) as unit:
        return unit.add_appointment(appointment)


def _starts(slots):
    return [s.start_time for s in slots]


class TestSlotGrid:

    def test_break_and_duration_bound_the_grid(self, availability):
        slots = availability.slots_for(service_id=1, barber_id=1, on_date=MONDAY)
        starts = _starts(slots)

        morning = [s for s in starts if s < "13:00"]
        afternoon = [s for s in starts if s >= "13:00"]
        assert morning[0] == "09:00"
        assert morning[-1] == "12:15"
        assert afternoon[0] == "14:00"
        assert afternoon[-1] == "17:15"
        assert "12:30" not in starts
        assert "12:45" not in starts
        assert all(s.available for s in slots)

    def test_thirty_minute_grid(self, store, clock):
        generator = AvailabilityGenerator(store, clock, granularity_minutes=30)
        starts = _starts(generator.slots_for(1, 1, MONDAY))
        assert [s for s in starts if s < "13:00"][-1] == "12:00"
        assert "12:30" not in starts
        assert "14:00" in starts

    def test_slots_fit_window_and_never_touch_breaks(self, availability, store):
        day = ScheduleResolver().resolve(store.get_barber(1), MONDAY)
        for slot in availability.slots_for(1, 1, MONDAY):
            start, end = parse_hhmm(slot.start_time), parse_hhmm(slot.end_time)
            assert end - start == 45
            assert any(i.start <= start and end <= i.end for i in day.open_intervals)
            assert all(not (start < b.end and b.start < end) for b in day.breaks)

    def test_end_time_is_start_plus_duration(self, availability):
        first = availability.slots_for(1, 1, MONDAY)[0]
        assert (first.start_time, first.end_time) == ("09:00", "09:45")


class TestExistingAppointments:

    def test_overlapping_candidate_is_marked_taken(self, availability, store, clock, client_contact):
        _book(store, _appointment(clock, client_contact, time(10, 0), 45))
        by_start = {s.start_time: s.available for s in availability.slots_for(1, 1, MONDAY)}

        assert by_start["09:00"] is True  # ends 09:45
        assert by_start["09:30"] is False  # ends 10:15
        assert by_start["10:00"] is False
        assert by_start["10:30"] is False
        assert by_start["10:45"] is True  # touches the end, no overlap

    @pytest.mark.parametrize("status", [AppointmentStatus.cancelled, AppointmentStatus.completed])
    def test_non_blocking_statuses_free_the_slot(self, availability, store, clock, client_contact, status):
        _book(store, _appointment(clock, client_contact, time(10, 0), 45, status=status))
        by_start = {s.start_time: s.available for s in availability.slots_for(1, 1, MONDAY)}
        assert by_start["10:00"] is True

    def test_other_barbers_appointments_are_ignored(self, availability, store, clock, client_contact):
        store.add_barber(Barber(id=2, name="Mateo", weekly_schedule={1: monday_schedule()}))
        _book(store, _appointment(clock, client_contact, time(10, 0), 45, barber_id=2))
        by_start = {s.start_time: s.available for s in availability.slots_for(1, 1, MONDAY)}
        assert by_start["10:00"] is True

    def test_exclude_appointment_when_rescheduling(self, availability, store, clock, client_contact):
        booked = _book(store, _appointment(clock, client_contact, time(10, 0), 45))
        by_start = {
            s.start_time: s.available
            for s in availability.slots_for(1, 1, MONDAY, exclude_appointment_id=booked.id)
        }
        assert by_start["10:00"] is True


class TestNow:

    def test_today_after_five_pm_only_future_starts(self, store, clock, now):
        now.value = datetime(2025, 11, 10, 17, 5)
        generator = AvailabilityGenerator(store, clock, granularity_minutes=30)
        assert _starts(generator.slots_for(service_id=2, barber_id=1, on_date=MONDAY)) == ["17:30"]

    def test_slot_at_current_minute_is_excluded(self, store, clock, now):
        now.value = datetime(2025, 11, 10, 17, 0)
        generator = AvailabilityGenerator(store, clock, granularity_minutes=30)
        assert _starts(generator.slots_for(service_id=2, barber_id=1, on_date=MONDAY)) == ["17:30"]

    def test_past_date_has_no_slots(self, availability, now):
        now.value = datetime(2025, 11, 11, 8, 0)
        assert availability.slots_for(1, 1, MONDAY) == []

    def test_taken_slots_still_emitted_but_past_ones_are_not(self, availability, store, clock, now, client_contact):
        now.value = datetime(2025, 11, 10, 9, 20)
        _book(store, _appointment(clock, client_contact, time(10, 0), 45))
        slots = availability.slots_for(1, 1, MONDAY)
        assert slots[0].start_time == "09:30"
        assert slots[0].available is False


class TestClosedDays:

    def test_no_weekly_entry_gives_empty_list(self, availability):
        assert availability.slots_for(1, 1, date(2025, 11, 11)) == []

    def test_day_off_gives_empty_list(self, availability, store):
        store.put_exception(1, DayOff(date=MONDAY))
        assert availability.slots_for(1, 1, MONDAY) == []

    def test_custom_hours_replace_weekly_hours(self, availability, store):
        store.put_exception(1, CustomHours(date=MONDAY, start=time(15, 0), end=time(16, 30)))
        assert _starts(availability.slots_for(1, 1, MONDAY)) == ["15:00", "15:15", "15:30", "15:45"]

    def test_malformed_schedule_is_treated_as_closed(self, availability, store):
        broken = DaySchedule(1, time(9, 0), time(12, 0), [BreakInterval(time(11, 0), time(13, 0))])
        store.replace_weekly_schedule(1, [broken])
        assert availability.slots_for(1, 1, MONDAY) == []


def test_query_is_idempotent(availability, store, clock, client_contact):
    _book(store, _appointment(clock, client_contact, time(11, 0), 45))
    assert availability.slots_for(1, 1, MONDAY) == availability.slots_for(1, 1, MONDAY)


class TestLookups:

    def test_unknown_service(self, availability):
        with pytest.raises(NotFound):
            availability.slots_for(99, 1, MONDAY)

    def test_unknown_barber(self, availability):
        with pytest.raises(NotFound):
            availability.slots_for(1, 99, MONDAY)

    def test_inactive_service(self, availability):
        with pytest.raises(ServiceInactive):
            availability.slots_for(3, 1, MONDAY)

    def test_inactive_barber(self, availability, store):
        store.add_barber(Barber(id=5, name="Retired", active=False, weekly_schedule={1: monday_schedule()}))
        with pytest.raises(BarberInactive):
            availability.slots_for(1, 5, MONDAY)


class TestAnyBarber:

    def test_first_free_barber_serves_each_start(self, availability, store, clock, client_contact):
        store.add_barber(Barber(id=2, name="Mateo", weekly_schedule={1: monday_schedule()}))
        _book(store, _appointment(clock, client_contact, time(10, 0), 45, barber_id=1))

        by_start = {s.start_time: s for s in availability.slots_for_any_barber(1, MONDAY)}
        assert by_start["09:00"].barber_id == 1
        assert by_start["10:00"].barber_id == 2
        assert by_start["10:00"].available is True

    def test_start_taken_by_everyone_is_unavailable(self, availability, store, clock, client_contact):
        _book(store, _appointment(clock, client_contact, time(10, 0), 45, barber_id=1))
        by_start = {s.start_time: s for s in availability.slots_for_any_barber(1, MONDAY)}
        assert by_start["10:00"].available is False

    def test_union_of_different_hours(self, availability, store):
        late = DaySchedule(1, time(18, 0), time(19, 0))
        store.add_barber(Barber(id=2, name="Mateo", weekly_schedule={1: late}))
        slots = availability.slots_for_any_barber(1, MONDAY)
        assert slots[-1].start_time == "18:15"
        assert slots[-1].barber_id == 2
        assert _starts(slots) == sorted(_starts(slots))


def test_generate_slots_ignores_non_blocking_input(store, clock, client_contact):
    day = ScheduleResolver().resolve(store.get_barber(1), MONDAY)
    cancelled = _appointment(clock, client_contact, time(9, 0), 45, status=AppointmentStatus.cancelled)
    slots = generate_slots(day, 45, [cancelled], now=clock.now(), clock=clock, granularity_minutes=15)
    assert slots[0].available is True
