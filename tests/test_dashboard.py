"""
Test suite for dashboard aggregates and the global search.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from flyair.database.models import Booking
from flyair.models.enums import BookingStatus, PaymentStatus

from conftest import NOW


@pytest.fixture
def bookings(session, customer, flight):
    """Paid this month, paid last year, pending today and a refunded cancellation."""
    rows = [
        Booking(booking_reference="FLYPAID0001", user=customer, flight=flight, total_amount=Decimal("300.00"),
                booking_status=BookingStatus.CONFIRMED, payment_status=PaymentStatus.PAID,
                booking_date=NOW - timedelta(days=2)),
        Booking(booking_reference="FLYPAID0002", user=customer, flight=flight, total_amount=Decimal("100.00"),
                booking_status=BookingStatus.COMPLETED, payment_status=PaymentStatus.PAID,
                booking_date=NOW - timedelta(days=40)),
        Booking(booking_reference="FLYPEND0001", user=customer, flight=flight, total_amount=Decimal("50.00"),
                booking_status=BookingStatus.PENDING, payment_status=PaymentStatus.PENDING,
                booking_date=NOW),
        Booking(booking_reference="FLYCANC0001", user=customer, flight=flight, total_amount=Decimal("75.00"),
                booking_status=BookingStatus.CANCELLED, payment_status=PaymentStatus.REFUNDED,
                booking_date=NOW - timedelta(days=1)),
    ]
    session.add_all(rows)
    session.flush()
    return rows


class TestDashboardStats:

    def test_counts_and_revenue(self, services, bookings, admin):
        stats = services.dashboard.stats()

        assert stats.total_users == 2
        assert stats.total_flights == 1
        assert stats.total_bookings == 4
        assert stats.bookings_last_30_days == 3
        assert stats.pending_bookings == 1
        assert stats.cancelled_bookings == 1
        assert stats.active_flights == 1
        assert stats.revenue_this_month == Decimal("300.00")
        assert stats.total_revenue == Decimal("400.00")

    def test_booking_stats_revenue_windows(self, services, clock, bookings):
        stats = services.bookings.stats()
        assert stats.total_revenue == Decimal("400.00")
        assert stats.revenue_this_month == Decimal("300.00")

        clock.set(NOW + timedelta(days=340))
        assert services.bookings.stats().total_revenue == Decimal("300.00")

    def test_empty_database(self, services):
        stats = services.dashboard.stats()

        assert stats.total_bookings == 0
        assert stats.total_revenue == Decimal("0")


class TestGlobalSearch:

    def test_customer_sees_catalog_only(self, services, bookings, flight_seats, customer_principal):
        result = services.dashboard.search("fa101", customer_principal)

        assert [f.flight_number for f in result.flights] == ["FA101"]
        assert result.bookings is None
        assert result.users is None

    def test_admin_sees_bookings_and_users(self, services, bookings, admin_principal):
        result = services.dashboard.search("jdoe", admin_principal)

        assert len(result.bookings) == 4
        assert [u.username for u in result.users] == ["jdoe"]
        assert result.tickets == []

    def test_airport_and_seat_sections(self, services, seats, cgk, customer_principal):
        assert [a.airport_code for a in services.dashboard.search("jakarta", customer_principal).airports] == ["CGK"]
        assert len(services.dashboard.search("12", customer_principal).seats) == 2
