"""
Admin dashboard aggregates and the cross-catalog search.
"""

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..database.models import Booking, Flight, Ticket, User
from ..models import (
    AirportModel,
    BookingModel,
    DashboardStatsModel,
    FlightModel,
    FlightSearchRequest,
    GlobalSearchModel,
    SeatModel,
    TicketModel,
    UserModel,
)
from ..models.enums import BookingStatus, FlightStatus, PaymentStatus
from .airport_service import AirportService
from .booking_service import BookingService
from .flight_service import FlightService
from .seat_service import SeatService
from .security import Principal
from .ticket_service import TicketService
from .user_service import UserService

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 10


class DashboardService:

    def __init__(
        self,
        session: Session,
        airports: AirportService,
        seats: SeatService,
        flights: FlightService,
        bookings: BookingService,
        tickets: TicketService,
        users: UserService,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.session = session
        self.airports = airports
        self.seats = seats
        self.flights = flights
        self.bookings = bookings
        self.tickets = tickets
        self.users = users
        self.clock = clock

    def _count(self, column, *criteria) -> int:
        return self.session.scalar(select(func.count(column)).where(*criteria)) or 0

    def _paid_revenue(self, *criteria) -> Decimal:
        total = self.session.scalar(
            select(func.coalesce(func.sum(Booking.total_amount), 0)).where(
                Booking.payment_status == PaymentStatus.PAID, *criteria
            )
        )
        return Decimal(str(total or 0))

    def stats(self) -> DashboardStatsModel:
        now = self.clock()
        since = now - timedelta(days=30)
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

        return DashboardStatsModel(
            total_users=self._count(User.id),
            total_flights=self._count(Flight.id),
            total_bookings=self._count(Booking.id),
            total_tickets=self._count(Ticket.id),
            new_users_last_30_days=self._count(User.id, User.created_at >= since),
            flights_last_30_days=self._count(Flight.id, Flight.created_at >= since),
            bookings_last_30_days=self._count(Booking.id, Booking.booking_date >= since),
            revenue_this_month=self._paid_revenue(Booking.booking_date >= month_start),
            total_revenue=self._paid_revenue(),
            active_flights=self._count(Flight.id, Flight.status == FlightStatus.SCHEDULED),
            cancelled_bookings=self._count(Booking.id, Booking.booking_status == BookingStatus.CANCELLED),
            pending_bookings=self._count(Booking.id, Booking.booking_status == BookingStatus.PENDING),
        )

    def search(self, term: str, principal: Principal) -> GlobalSearchModel:
        """
        Search every catalog for ``term``, capped at SEARCH_LIMIT per section.
        Bookings, tickets and users are searched for admins only.
        """
        flights = self.flights.search(FlightSearchRequest(search_term=term), 0, SEARCH_LIMIT)
        airports = self.airports.search(term, 0, SEARCH_LIMIT)
        seats = self.seats.search(term, 0, SEARCH_LIMIT)

        result = GlobalSearchModel(
            flights=[FlightModel.model_validate(f) for f in flights.items],
            airports=[AirportModel.model_validate(a) for a in airports.items],
            seats=[SeatModel.model_validate(s) for s in seats.items],
        )

        if principal.is_admin:
            result.bookings = [
                BookingModel.model_validate(b) for b in self.bookings.search(term, 0, SEARCH_LIMIT).items
            ]
            result.tickets = [
                TicketModel.model_validate(t) for t in self.tickets.search(term, 0, SEARCH_LIMIT).items
            ]
            result.users = [
                UserModel.model_validate(u) for u in self.users.search(term, 0, SEARCH_LIMIT).items
            ]

        logger.debug(f"Global search '{term}' by {principal.username}")
        return result
