# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Unit tests for calendar grid construction."""

from datetime import UTC, date, datetime, timedelta, timezone

import pytest

from booking_calendar.models.reservation import Reservation
from booking_calendar.services.calendar_service import (
    build_calendar,
    build_calendars,
    count_month_bookings,
    create_reservation_lookup,
    filter_reservations_for_month,
    get_calendar_dates,
    group_by_apartment,
    group_dates_by_week,
    month_bounds,
)

SUNDAY = 6
SATURDAY = 5


def _reservation(
    res_id: str,
    arrival: date,
    departure: date,
    house: str = "X",
    source: str = "Airbnb",
) -> Reservation:
    return Reservation(
        id=res_id,
        arrival=arrival,
        departure=departure,
        house_name=house,
        source=source,
        guest_name=f"Guest {res_id}",
    )


def _touches_for(calendar, res_id: str) -> dict[date, list]:
    found: dict[date, list] = {}
    for day in calendar.days:
        for touch in day.reservations:
            if touch.reservation.id == res_id:
                found.setdefault(day.date, []).append(touch)
    return found


class TestCalendarDates:
    """Tests for grid date ranges."""

    @pytest.mark.parametrize(
        ("year", "month"),
        [(2025, 2), (2025, 3), (2025, 6), (2026, 2), (2024, 2), (2023, 12)],
    )
    def test_grid_is_whole_weeks_sunday_to_saturday(self, year, month):
        """Test the grid starts on Sunday, ends on Saturday, spans full weeks."""
        dates = get_calendar_dates(year, month)

        assert len(dates) % 7 == 0
        assert dates[0].weekday() == SUNDAY
        assert dates[-1].weekday() == SATURDAY

    @pytest.mark.parametrize(("year", "month"), [(2025, 2), (2025, 3), (2024, 12)])
    def test_month_days_appear_once_and_flagged(self, year, month):
        """Test each day of the month appears once with isCurrentMonth set."""
        calendar = build_calendar("X", [], year, month)
        first, last = month_bounds(year, month)

        in_month = [d.date for d in calendar.days if d.is_current_month]
        expected = [first + timedelta(days=i) for i in range((last - first).days + 1)]
        assert in_month == expected
        for day in calendar.days:
            assert day.is_current_month == (first <= day.date <= last)

    def test_month_starting_on_sunday_has_no_leading_days(self):
        """Test June 2025 (starts Sunday) begins on the 1st."""
        dates = get_calendar_dates(2025, 6)

        assert dates[0] == date(2025, 6, 1)

    def test_month_ending_on_saturday_has_no_trailing_days(self):
        """Test May 2025 (ends Saturday) stops on the 31st."""
        dates = get_calendar_dates(2025, 5)

        assert dates[-1] == date(2025, 5, 31)

    def test_february_2026_is_four_weeks(self):
        """Test a 28-day February starting on Sunday fills exactly 4 weeks."""
        dates = get_calendar_dates(2026, 2)

        assert len(dates) == 28

    def test_group_dates_by_week(self):
        """Test dates split into 7-day chunks."""
        weeks = group_dates_by_week(get_calendar_dates(2025, 3))

        assert all(len(week) == 7 for week in weeks)
        assert weeks[0][0] == date(2025, 2, 23)
        assert len(weeks) == 6


class TestReservationLookup:
    """Tests for placing reservations on days."""

    def test_checkin_stay_checkout_split(self):
        """Test a two-night stay produces checkin, stay and checkout touches."""
        res = _reservation("R", date(2025, 3, 10), date(2025, 3, 12))
        calendar = build_calendar("X", [res], 2025, 3)

        touches = _touches_for(calendar, "R")

        assert set(touches) == {date(2025, 3, 10), date(2025, 3, 11), date(2025, 3, 12)}
        checkin = touches[date(2025, 3, 10)][0]
        stay = touches[date(2025, 3, 11)][0]
        checkout = touches[date(2025, 3, 12)][0]
        assert (checkin.is_checkin, checkin.is_checkout) == (True, False)
        assert (stay.is_checkin, stay.is_checkout) == (False, False)
        assert stay.is_stay
        assert (checkout.is_checkin, checkout.is_checkout) == (False, True)

    def test_datetimes_are_matched_by_calendar_date(self):
        """Test aware datetimes with a time of day land on their dates."""
        madrid = timezone(timedelta(hours=2))
        res = Reservation(
            id="R",
            arrival=datetime(2025, 3, 10, 15, 30, tzinfo=madrid),
            departure=datetime(2025, 3, 12, 11, 0, tzinfo=UTC),
            house_name="X",
        )
        calendar = build_calendar("X", [res], 2025, 3)

        touches = _touches_for(calendar, "R")

        assert res.arrival == date(2025, 3, 10)
        assert res.nights == 2
        assert set(touches) == {date(2025, 3, 10), date(2025, 3, 11), date(2025, 3, 12)}
        assert touches[date(2025, 3, 10)][0].is_checkin
        assert touches[date(2025, 3, 12)][0].is_checkout

    def test_single_night_reservation(self):
        """Test one night yields exactly a checkin and a checkout touch."""
        res = _reservation("R", date(2025, 3, 10), date(2025, 3, 11))
        lookup = create_reservation_lookup([res])

        all_touches = [t for touches in lookup.values() for t in touches]
        assert len(all_touches) == 2
        assert lookup[date(2025, 3, 10)][0].is_checkin
        assert lookup[date(2025, 3, 11)][0].is_checkout

    def test_back_to_back_turnover(self):
        """Test checkout and checkin on the same day both appear."""
        a = _reservation("A", date(2025, 3, 12), date(2025, 3, 15))
        b = _reservation("B", date(2025, 3, 15), date(2025, 3, 18))
        calendar = build_calendar("X", [a, b], 2025, 3)

        day = calendar.day(date(2025, 3, 15))

        assert day is not None
        assert len(day.reservations) == 2
        by_id = {t.reservation.id: t for t in day.reservations}
        assert by_id["A"].is_checkout
        assert by_id["B"].is_checkin

    def test_degenerate_reservation_places_nothing(self):
        """Test departure on or before arrival yields no touches."""
        same_day = _reservation("S", date(2025, 3, 10), date(2025, 3, 10))
        reversed_ = _reservation("R", date(2025, 3, 12), date(2025, 3, 10))

        lookup = create_reservation_lookup([same_day, reversed_])

        assert dict(lookup) == {}

    def test_touches_keep_input_order(self):
        """Test overlapping reservations keep input order on a day."""
        a = _reservation("A", date(2025, 3, 10), date(2025, 3, 14))
        b = _reservation("B", date(2025, 3, 11), date(2025, 3, 13))

        lookup = create_reservation_lookup([a, b])

        assert [t.reservation.id for t in lookup[date(2025, 3, 12)]] == ["A", "B"]

    def test_reservation_outside_grid_is_invisible(self):
        """Test a reservation far from the month does not show up."""
        res = _reservation("R", date(2025, 5, 1), date(2025, 5, 3))
        calendar = build_calendar("X", [res], 2025, 3)

        assert all(not d.reservations for d in calendar.days)

    def test_adjacent_month_days_show_touches(self):
        """Test leading days from the previous month carry their touches."""
        res = _reservation("R", date(2025, 2, 24), date(2025, 3, 2))
        calendar = build_calendar("X", [res], 2025, 3)

        leading = calendar.day(date(2025, 2, 24))
        assert leading is not None
        assert not leading.is_current_month
        assert leading.reservations[0].is_checkin


class TestBookingCount:
    """Tests for month booking totals."""

    def test_overlap_from_previous_month_counts(self):
        """Test a stay crossing into the month counts; one in April does not."""
        crossing = _reservation("C", date(2025, 2, 25), date(2025, 3, 2))
        april = _reservation("A", date(2025, 4, 3), date(2025, 4, 6))

        calendar = build_calendar("X", [crossing, april], 2025, 3)

        assert calendar.total_bookings == 1

    def test_departure_on_first_day_counts(self):
        """Test departure exactly on the 1st still overlaps the month."""
        res = _reservation("R", date(2025, 2, 27), date(2025, 3, 1))

        assert count_month_bookings([res], 2025, 3) == 1

    def test_duplicate_ids_counted_once(self):
        """Test the same id twice counts as one booking."""
        res = _reservation("R", date(2025, 3, 1), date(2025, 3, 3))

        assert count_month_bookings([res, res], 2025, 3) == 1

    def test_degenerate_in_month_still_counted(self):
        """Test a same-day reservation counts although it has no touches."""
        res = _reservation("R", date(2025, 3, 10), date(2025, 3, 10))

        calendar = build_calendar("X", [res], 2025, 3)

        assert calendar.total_bookings == 1
        assert all(not d.reservations for d in calendar.days)


class TestScenario:
    """End-to-end grid for a single reservation."""

    def test_september_airbnb_stay(self):
        """Test R1 from Sep 1 to Sep 5 is laid out day by day."""
        res = _reservation("R1", date(2025, 9, 1), date(2025, 9, 5))
        calendar = build_calendar("X", [res], 2025, 9)

        assert calendar.apartment_name == "X"
        assert calendar.total_bookings == 1
        for day in calendar.days:
            touches = day.reservations
            if day.date == date(2025, 9, 1):
                assert len(touches) == 1 and touches[0].is_checkin
            elif date(2025, 9, 2) <= day.date <= date(2025, 9, 4):
                assert len(touches) == 1 and touches[0].is_stay
            elif day.date == date(2025, 9, 5):
                assert len(touches) == 1 and touches[0].is_checkout
            else:
                assert touches == ()

    def test_build_is_deterministic(self):
        """Test identical inputs produce equal calendars."""
        res = _reservation("R1", date(2025, 9, 1), date(2025, 9, 5))

        assert build_calendar("X", [res], 2025, 9) == build_calendar(
            "X", [res], 2025, 9
        )


class TestGrouping:
    """Tests for month filtering and per-apartment grouping."""

    def test_filter_reservations_for_month(self):
        """Test only month-overlapping reservations are kept."""
        inside = _reservation("I", date(2025, 3, 5), date(2025, 3, 8))
        before = _reservation("B", date(2025, 2, 1), date(2025, 2, 5))
        after = _reservation("A", date(2025, 4, 2), date(2025, 4, 5))

        kept = filter_reservations_for_month([inside, before, after], 2025, 3)

        assert [r.id for r in kept] == ["I"]

    def test_group_by_apartment(self):
        """Test grouping by house name keeps order within a group."""
        a1 = _reservation("1", date(2025, 3, 1), date(2025, 3, 2), house="A")
        b1 = _reservation("2", date(2025, 3, 1), date(2025, 3, 2), house="B")
        a2 = _reservation("3", date(2025, 3, 3), date(2025, 3, 4), house="A")

        groups = group_by_apartment([a1, b1, a2])

        assert [r.id for r in groups["A"]] == ["1", "3"]
        assert [r.id for r in groups["B"]] == ["2"]

    def test_build_calendars_sorted_by_name(self):
        """Test one calendar per apartment, sorted by name."""
        reservations = [
            _reservation("1", date(2025, 3, 1), date(2025, 3, 2), house="Zeta"),
            _reservation("2", date(2025, 3, 1), date(2025, 3, 2), house="Alpha"),
        ]

        calendars = build_calendars(reservations, 2025, 3)

        assert [c.apartment_name for c in calendars] == ["Alpha", "Zeta"]
