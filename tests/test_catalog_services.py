"""
Test suite for the airport, seat and flight catalog services.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from flyair.database.models import Booking, FlightSeat
from flyair.exceptions import BadRequestError, ResourceNotFoundError
from flyair.models import (
    CreateAirportRequest,
    CreateFlightRequest,
    CreateSeatRequest,
    FlightSearchRequest,
)
from flyair.models.enums import BookingStatus, FlightStatus, PaymentStatus, SeatClass

from conftest import NOW


def airport_request(code="SUB", **overrides):
    data = dict(
        airport_code=code,
        airport_name="Juanda International Airport",
        city="Surabaya",
        country="Indonesia",
        country_code="id",
    )
    data.update(overrides)
    return CreateAirportRequest(**data)


def flight_request(departure_airport, arrival_airport, departure=None, **overrides):
    departure = departure or NOW + timedelta(days=10)
    data = dict(
        flight_number="fa300",
        departure_airport_id=departure_airport.id,
        arrival_airport_id=arrival_airport.id,
        departure_time=departure,
        arrival_time=departure + timedelta(hours=1, minutes=45),
        aircraft_type="Boeing 737-800",
    )
    data.update(overrides)
    return CreateFlightRequest(**data)


class TestAirportService:
    """Test cases for airport CRUD and search."""

    def test_create_normalizes_codes(self, services):
        airport = services.airports.create(airport_request("sub"))

        assert airport.airport_code == "SUB"
        assert airport.country_code == "ID"
        assert airport.is_active is True

    def test_duplicate_code_case_insensitive(self, services):
        """Creating the same code twice fails regardless of case."""
        services.airports.create(airport_request("SUB"))

        with pytest.raises(BadRequestError, match="Airport code already exists: SUB"):
            services.airports.create(airport_request("sub"))

    def test_update_keeps_own_code(self, services, cgk):
        updated = services.airports.update(cgk.id, airport_request("CGK", city="Tangerang"))
        assert updated.city == "Tangerang"

    def test_update_to_taken_code_fails(self, services, cgk, dps):
        with pytest.raises(BadRequestError, match="already exists"):
            services.airports.update(cgk.id, airport_request("dps"))

    def test_delete_with_flights_fails(self, services, cgk, flight):
        with pytest.raises(BadRequestError, match="Cannot delete airport with existing flights"):
            services.airports.delete(cgk.id)

    def test_delete(self, services):
        airport = services.airports.create(airport_request())
        services.airports.delete(airport.id)

        with pytest.raises(ResourceNotFoundError):
            services.airports.get(airport.id)

    def test_search_and_country_queries(self, services, cgk, dps):
        assert services.airports.search("denpasar").total == 1
        assert services.airports.search("international").total == 2
        assert [a.airport_code for a in services.airports.list_by_country("indonesia")] == ["DPS", "CGK"]
        assert services.airports.list_countries() == ["Indonesia"]

    def test_search_wildcards_match_literally(self, services, cgk, dps):
        services.airports.create(airport_request("SUB", airport_name="Juanda 100% Intl_Terminal"))

        assert services.airports.search("%").total == 1
        assert services.airports.search("l_t").total == 1
        assert services.airports.search("a_d").total == 0

    def test_get_by_code(self, services, cgk):
        assert services.airports.get_by_code("cgk").id == cgk.id


class TestSeatService:

    def test_create_upper_cases_number(self, services):
        seat = services.seats.create(CreateSeatRequest(seat_number="3c", seat_class=SeatClass.FIRST_CLASS))
        assert seat.seat_number == "3C"

    def test_duplicate_number_fails(self, services, seats):
        with pytest.raises(BadRequestError, match="Seat number already exists: 12A"):
            services.seats.create(CreateSeatRequest(seat_number="12a", seat_class=SeatClass.ECONOMY))

    def test_delete_assigned_seat_fails(self, services, flight_seats, seats):
        with pytest.raises(BadRequestError, match="existing flight seat assignments"):
            services.seats.delete(seats[0].id)

    def test_delete_free_seat(self, services, seats):
        services.seats.delete(seats[2].id)
        with pytest.raises(ResourceNotFoundError):
            services.seats.get(seats[2].id)

    def test_list_by_class(self, services, seats):
        assert [s.seat_number for s in services.seats.list_by_class(SeatClass.ECONOMY)] == ["12A", "12B"]


class TestFlightService:
    """Test cases for flight scheduling rules and queries."""

    def test_create_derives_duration_and_status(self, services, cgk, dps):
        flight = services.flights.create(flight_request(cgk, dps))

        assert flight.flight_number == "FA300"
        assert flight.duration_minutes == 105
        assert flight.status == FlightStatus.SCHEDULED
        assert flight.departure_airport.airport_code == "CGK"

    def test_offset_aware_times_are_stored_as_local(self, services, cgk, dps):
        departure = NOW + timedelta(days=10)
        request = flight_request(
            cgk, dps,
            departure=departure.astimezone(),
            arrival_time=(departure + timedelta(hours=2)).astimezone(),
        )

        flight = services.flights.create(request)

        assert flight.departure_time == departure
        assert flight.departure_time.tzinfo is None
        assert flight.duration_minutes == 120

    def test_same_airports_fail(self, services, cgk):
        with pytest.raises(BadRequestError, match="cannot be the same"):
            services.flights.create(flight_request(cgk, cgk))

    def test_departure_in_past_fails(self, services, cgk, dps):
        with pytest.raises(BadRequestError, match="must be in the future"):
            services.flights.create(flight_request(cgk, dps, departure=NOW - timedelta(minutes=1)))

    def test_arrival_before_departure_fails(self, services, cgk, dps):
        request = flight_request(cgk, dps, arrival_time=NOW + timedelta(days=9))
        with pytest.raises(BadRequestError, match="Arrival time must be after departure time"):
            services.flights.create(request)

    def test_duplicate_flight_number_fails(self, services, cgk, dps, flight):
        with pytest.raises(BadRequestError, match="Flight number already exists"):
            services.flights.create(flight_request(cgk, dps, flight_number="fa101"))

    def test_unknown_airport(self, services, cgk):
        with pytest.raises(ResourceNotFoundError):
            services.flights.create(flight_request(cgk, cgk, arrival_airport_id=9999))

    def test_update_allows_past_departure_and_recomputes_duration(self, services, clock, flight, cgk, dps):
        clock.set(flight.departure_time + timedelta(days=1))
        request = flight_request(
            cgk, dps,
            departure=flight.departure_time,
            arrival_time=flight.departure_time + timedelta(hours=3),
            flight_number="FA101",
        )

        updated = services.flights.update(flight.id, request)

        assert updated.duration_minutes == 180

    def test_update_status(self, services, flight):
        assert services.flights.update_status(flight.id, FlightStatus.DELAYED).status == FlightStatus.DELAYED

    def test_delete_with_bookings_fails(self, services, session, flight, customer):
        session.add(Booking(
            booking_reference="FLYDELETE01",
            user=customer,
            flight=flight,
            total_amount=Decimal("0"),
            booking_status=BookingStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
            booking_date=NOW,
        ))
        session.flush()

        with pytest.raises(BadRequestError, match="Cannot delete flight with existing bookings"):
            services.flights.delete(flight.id)

    def test_delete_cascades_flight_seats(self, services, session, flight, flight_seats):
        services.flights.delete(flight.id)
        assert session.get(FlightSeat, flight_seats[0].id) is None

    def test_search_by_route_and_date(self, services, flight):
        criteria = FlightSearchRequest(
            departure_airport_code="cgk",
            arrival_airport_code="DPS",
            departure_date=flight.departure_time.date(),
        )
        assert [f.id for f in services.flights.search(criteria).items] == [flight.id]

        criteria.departure_date = (flight.departure_time + timedelta(days=1)).date()
        assert services.flights.search(criteria).total == 0

    def test_search_by_term(self, services, flight):
        assert services.flights.search(FlightSearchRequest(search_term="denpasar")).total == 1
        assert services.flights.search(FlightSearchRequest(search_term="fa1")).total == 1
        assert services.flights.search(FlightSearchRequest(search_term="london")).total == 0

    def test_search_without_criteria_lists_all(self, services, flight):
        assert services.flights.search(FlightSearchRequest()).total == 1

    def test_time_and_airport_queries(self, services, clock, flight, cgk):
        assert [f.id for f in services.flights.list_upcoming()] == [flight.id]
        assert [f.id for f in services.flights.list_by_airport(cgk.id)] == [flight.id]
        assert services.flights.list_by_departure_range(NOW, NOW + timedelta(days=1)) == []
        assert len(services.flights.list_by_departure_range(NOW, NOW + timedelta(days=6))) == 1
        assert [f.id for f in services.flights.list_by_status(FlightStatus.SCHEDULED)] == [flight.id]

        clock.set(flight.departure_time + timedelta(minutes=1))
        assert services.flights.list_upcoming() == []

    def test_stats(self, services, flight):
        stats = services.flights.stats()
        assert stats.total_flights == 1
        assert stats.scheduled_flights == 1
        assert stats.cancelled_flights == 0
