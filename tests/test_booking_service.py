"""
Test suite for the booking workflow.

Covers booking creation (validation order, totals, ticket issuance, seat
flags), cancellation windows, status updates and statistics.
"""

from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from flyair.database.models import Booking, Flight, FlightSeat, Ticket
from flyair.exceptions import AccessDeniedError, BadRequestError, ResourceNotFoundError
from flyair.models import CreateBookingRequest, PassengerRequest, UpdateBookingRequest
from flyair.models.enums import BookingStatus, FlightStatus, PaymentStatus, Role, TicketStatus
from flyair.services import Principal

from conftest import NOW


def passenger(name="Jane Traveller"):
    return PassengerRequest(
        passenger_name=name,
        passenger_email="jane@example.com",
        passport_number="A1234567",
    )


def booking_request(flight, seat_rows, passengers=None):
    return CreateBookingRequest(
        flight_id=flight.id,
        flight_seat_ids=[fs.id for fs in seat_rows],
        passengers=passengers if passengers is not None else [passenger(f"P{i}") for i in range(len(seat_rows))],
    )


def count(session, column):
    return session.scalar(select(func.count(column)))


class TestCreateBooking:
    """Test cases for BookingService.create."""

    def test_single_seat_booking(self, services, session, flight, flight_seats, customer_principal):
        """Booking one seat yields a PENDING booking with one ISSUED ticket."""
        seat = flight_seats[1]

        booking = services.bookings.create(booking_request(flight, [seat], [passenger()]), customer_principal)

        assert booking.total_amount == Decimal("100.00")
        assert booking.booking_status == BookingStatus.PENDING
        assert booking.payment_status == PaymentStatus.PENDING
        assert booking.booking_date == NOW
        assert booking.booking_reference.startswith("FLY")
        assert len(booking.booking_reference) == 11
        assert booking.booking_reference[3:] == booking.booking_reference[3:].upper()

        assert len(booking.tickets) == 1
        ticket = booking.tickets[0]
        assert ticket.ticket_status == TicketStatus.ISSUED
        assert ticket.passenger_name == "Jane Traveller"
        assert ticket.flight_seat_id == seat.id
        assert ticket.ticket_number.startswith("TKT")
        assert len(ticket.ticket_number) == 13

        assert seat.is_available is False
        assert seat.is_occupied is True

    def test_total_is_sum_of_seat_prices(self, services, flight, flight_seats, customer_principal):
        """Total amount adds up every requested seat."""
        booking = services.bookings.create(booking_request(flight, flight_seats), customer_principal)

        assert booking.total_amount == Decimal("450.00")
        assert [t.flight_seat_id for t in booking.tickets] == [fs.id for fs in flight_seats]

    def test_repeat_booking_of_occupied_seat_fails(self, services, session, flight, flight_seats, customer_principal):
        """Booking a seat that is already occupied fails and writes nothing."""
        seat = flight_seats[1]
        services.bookings.create(booking_request(flight, [seat]), customer_principal)

        with pytest.raises(BadRequestError, match="Flight seat is not available: 12A"):
            services.bookings.create(booking_request(flight, [seat]), customer_principal)

        assert count(session, Booking.id) == 1
        assert count(session, Ticket.id) == 1

    def test_departure_within_lead_time_fails(self, services, clock, flight, flight_seats, customer_principal):
        """Departures less than two hours away cannot be booked."""
        clock.set(flight.departure_time - timedelta(hours=1, minutes=59))

        with pytest.raises(BadRequestError, match="less than 2 hours"):
            services.bookings.create(booking_request(flight, [flight_seats[0]]), customer_principal)

        assert flight_seats[0].is_available is True

    def test_departure_exactly_at_lead_time_succeeds(self, services, clock, flight, flight_seats, customer_principal):
        clock.set(flight.departure_time - timedelta(hours=2))

        booking = services.bookings.create(booking_request(flight, [flight_seats[0]]), customer_principal)
        assert booking.id is not None

    def test_flight_not_scheduled_fails(self, services, session, flight, flight_seats, customer_principal):
        flight.status = FlightStatus.DELAYED
        session.flush()

        with pytest.raises(BadRequestError, match="Flight is not available for booking"):
            services.bookings.create(booking_request(flight, [flight_seats[0]]), customer_principal)

    def test_unknown_flight(self, services, flight_seats, customer_principal):
        request = CreateBookingRequest(flight_id=9999, flight_seat_ids=[flight_seats[0].id], passengers=[passenger()])

        with pytest.raises(ResourceNotFoundError):
            services.bookings.create(request, customer_principal)

    def test_unknown_user(self, services, flight, flight_seats):
        ghost = Principal(username="ghost", role=Role.USER)

        with pytest.raises(ResourceNotFoundError, match="User not found"):
            services.bookings.create(booking_request(flight, [flight_seats[0]]), ghost)

    def test_unknown_flight_seat(self, services, flight, customer_principal):
        request = CreateBookingRequest(flight_id=flight.id, flight_seat_ids=[9999], passengers=[passenger()])

        with pytest.raises(ResourceNotFoundError, match="Flight seat not found"):
            services.bookings.create(request, customer_principal)

    def test_seat_from_another_flight_fails(self, services, session, flight, flight_seats, seats, customer_principal):
        """A flight seat must belong to the flight being booked."""
        other = Flight(
            flight_number="FA202",
            departure_airport=flight.arrival_airport,
            arrival_airport=flight.departure_airport,
            departure_time=flight.departure_time + timedelta(days=1),
            arrival_time=flight.departure_time + timedelta(days=1, hours=2),
            duration_minutes=120,
            status=FlightStatus.SCHEDULED,
        )
        foreign_seat = FlightSeat(flight=other, seat=seats[0], price=Decimal("80.00"))
        session.add_all([other, foreign_seat])
        session.flush()

        with pytest.raises(BadRequestError, match="does not belong to flight FA101"):
            services.bookings.create(booking_request(flight, [foreign_seat]), customer_principal)

        assert foreign_seat.is_available is True

    def test_passenger_count_mismatch_fails_before_any_write(
        self, services, session, flight, flight_seats, customer_principal
    ):
        """More seats than passengers is rejected instead of silently truncated."""
        request = booking_request(flight, flight_seats[:2], [passenger()])

        with pytest.raises(BadRequestError, match="must match"):
            services.bookings.create(request, customer_principal)

        assert count(session, Booking.id) == 0
        assert count(session, Ticket.id) == 0
        assert all(fs.is_available and not fs.is_occupied for fs in flight_seats)

    def test_duplicate_seat_ids_fail(self, services, flight, flight_seats, customer_principal):
        seat = flight_seats[0]
        request = CreateBookingRequest(
            flight_id=flight.id,
            flight_seat_ids=[seat.id, seat.id],
            passengers=[passenger("A"), passenger("B")],
        )

        with pytest.raises(BadRequestError, match="Duplicate"):
            services.bookings.create(request, customer_principal)

    def test_confirmation_is_staged_not_sent(self, services, outbox, flight, flight_seats, customer_principal):
        """The confirmation waits on the outbox until the transaction commits."""
        booking = services.bookings.create(booking_request(flight, [flight_seats[0]]), customer_principal)

        staged = outbox.pending
        assert len(staged) == 1
        assert staged[0].to == "jdoe@example.com"
        assert booking.booking_reference in staged[0].subject
        assert "FA101" in staged[0].html


class TestCancelBooking:
    """Test cases for BookingService.cancel and the 24 hour cutoff."""

    @pytest.fixture
    def booking(self, services, flight, flight_seats, customer_principal):
        return services.bookings.create(booking_request(flight, [flight_seats[1]]), customer_principal)

    def test_cancel_within_cutoff_fails(self, services, clock, booking, flight, flight_seats):
        """23 hours before departure is too late."""
        clock.set(flight.departure_time - timedelta(hours=23))

        with pytest.raises(BadRequestError, match="less than 24 hours"):
            services.bookings.cancel(booking.id)

        assert booking.booking_status == BookingStatus.PENDING
        assert booking.tickets[0].ticket_status == TicketStatus.ISSUED
        assert flight_seats[1].is_occupied is True

    def test_cancel_outside_cutoff_succeeds(self, services, clock, booking, flight, flight_seats):
        """25 hours before departure cancels booking, ticket and seat hold."""
        clock.set(flight.departure_time - timedelta(hours=25))

        cancelled = services.bookings.cancel(booking.id)

        assert cancelled.booking_status == BookingStatus.CANCELLED
        assert cancelled.tickets[0].ticket_status == TicketStatus.CANCELLED
        assert flight_seats[1].is_available is True
        assert flight_seats[1].is_occupied is False

    def test_cancel_exactly_at_cutoff_succeeds(self, services, clock, booking, flight):
        clock.set(flight.departure_time - timedelta(hours=24))

        assert services.bookings.cancel(booking.id).booking_status == BookingStatus.CANCELLED

    def test_cancel_twice_fails(self, services, booking):
        services.bookings.cancel(booking.id)

        with pytest.raises(BadRequestError, match="already cancelled"):
            services.bookings.cancel(booking.id)

    def test_cancel_completed_fails(self, services, session, booking):
        booking.booking_status = BookingStatus.COMPLETED
        session.flush()

        with pytest.raises(BadRequestError, match="Cannot cancel completed booking"):
            services.bookings.cancel(booking.id)

    def test_paid_booking_is_refunded(self, services, booking):
        services.bookings.update_status(booking.id, UpdateBookingRequest(payment_status=PaymentStatus.PAID))

        cancelled = services.bookings.cancel(booking.id)
        assert cancelled.payment_status == PaymentStatus.REFUNDED

    def test_already_cancelled_ticket_is_left_alone(self, services, booking, flight_seats):
        services.tickets.cancel(booking.tickets[0].id)

        cancelled = services.bookings.cancel(booking.id)
        assert cancelled.tickets[0].ticket_status == TicketStatus.CANCELLED
        assert flight_seats[1].is_available is True

    def test_other_user_cannot_cancel(self, services, booking):
        stranger = Principal(username="someone-else", role=Role.USER)

        with pytest.raises(AccessDeniedError):
            services.bookings.cancel(booking.id, stranger)

    def test_admin_can_cancel_any_booking(self, services, booking, admin_principal):
        assert services.bookings.cancel(booking.id, admin_principal).booking_status == BookingStatus.CANCELLED


class TestBookingQueries:
    """Lookup, listing, status updates and statistics."""

    @pytest.fixture
    def booking(self, services, flight, flight_seats, customer_principal):
        return services.bookings.create(booking_request(flight, [flight_seats[0]]), customer_principal)

    def test_get_by_reference_is_case_insensitive(self, services, booking):
        found = services.bookings.get_by_reference(booking.booking_reference.lower())
        assert found.id == booking.id

    def test_get_unknown(self, services):
        with pytest.raises(ResourceNotFoundError):
            services.bookings.get(12345)

    def test_owner_and_admin_can_read(self, services, booking, customer_principal, admin_principal):
        assert services.bookings.get(booking.id, customer_principal).id == booking.id
        assert services.bookings.get(booking.id, admin_principal).id == booking.id

    def test_list_for_user(self, services, booking, customer_principal, admin_principal):
        assert [b.id for b in services.bookings.list_for_user(customer_principal)] == [booking.id]
        assert services.bookings.list_for_user(admin_principal) == []

    def test_search_by_owner_name_and_reference(self, services, booking):
        assert services.bookings.search("doe").total == 1
        assert services.bookings.search(booking.booking_reference[3:7]).total == 1
        assert services.bookings.search("nobody").total == 0

    def test_paginated_list(self, services, booking):
        page = services.bookings.list(page=0, size=10)
        assert page.total == 1
        assert page.items[0].id == booking.id
        assert page.has_next is False

    def test_mark_paid_stamps_payment_date(self, services, booking, clock):
        clock.advance(minutes=30)

        updated = services.bookings.update_status(
            booking.id,
            UpdateBookingRequest(booking_status=BookingStatus.CONFIRMED, payment_status=PaymentStatus.PAID),
        )

        assert updated.booking_status == BookingStatus.CONFIRMED
        assert updated.payment_status == PaymentStatus.PAID
        assert updated.payment_date == NOW + timedelta(minutes=30)

    def test_status_update_cannot_cancel(self, services, booking):
        with pytest.raises(BadRequestError, match="cancel operation"):
            services.bookings.update_status(booking.id, UpdateBookingRequest(booking_status=BookingStatus.CANCELLED))

    def test_stats_count_only_paid_revenue(self, services, flight, flight_seats, customer_principal, booking):
        second = services.bookings.create(booking_request(flight, [flight_seats[1]]), customer_principal)
        services.bookings.update_status(second.id, UpdateBookingRequest(payment_status=PaymentStatus.PAID))

        stats = services.bookings.stats()

        assert stats.total_bookings == 2
        assert stats.pending_bookings == 2
        assert stats.confirmed_bookings == 0
        assert stats.bookings_last_30_days == 2
        assert stats.total_revenue == Decimal("100.00")
        assert stats.revenue_this_month == Decimal("100.00")
