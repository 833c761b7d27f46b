"""
FlyAir business services.

``Services`` wires every service around one SQLAlchemy session and one
notification outbox, which is how the HTTP layer and the CLI use them: one
container per request or command, committed or rolled back as a unit.
"""

from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ..utils.config import AppConfig
from .airport_service import AirportService
from .auth_service import AuthService
from .booking_service import BookingService, generate_booking_reference
from .dashboard_service import DashboardService
from .flight_seat_service import BulkResult, FlightSeatService
from .flight_service import FlightService
from .notification import (
    EmailMessage,
    EmailSender,
    NotificationDispatcher,
    NotificationService,
    Outbox,
)
from .seat_service import SeatService
from .security import JwtService, Principal, TwoFactorService, hash_password, verify_password
from .ticket_service import TicketService, generate_ticket_number
from .user_service import UserService


class Services:
    """
    Every service bound to one session.

    Args:
        session: Session of the current unit of work
        config: Application configuration
        outbox: Notification staging area; a fresh one is created if omitted
        clock: Current-time source shared by all services
    """

    def __init__(
        self,
        session: Session,
        config: AppConfig,
        outbox: Optional[Outbox] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.session = session
        self.config = config
        self.outbox = outbox if outbox is not None else Outbox()
        self.clock = clock

        self.notifications = NotificationService(self.outbox, config)
        self.jwt = JwtService(config)
        self.two_factor = TwoFactorService(issuer=config.totp_issuer)

        self.airports = AirportService(session)
        self.seats = SeatService(session)
        self.flights = FlightService(session, clock=clock)
        self.flight_seats = FlightSeatService(session, clock=clock)
        self.tickets = TicketService(session, self.flight_seats, clock=clock)
        self.bookings = BookingService(
            session,
            self.tickets,
            self.notifications,
            clock=clock,
            booking_lead_hours=config.booking_lead_hours,
            cancellation_cutoff_hours=config.cancellation_cutoff_hours,
        )
        self.users = UserService(
            session,
            self.flight_seats,
            self.notifications,
            self.two_factor,
            clock=clock,
            reset_token_ttl_hours=config.reset_token_ttl_hours,
        )
        self.auth = AuthService(session, self.users, self.jwt, self.two_factor, self.notifications)
        self.dashboard = DashboardService(
            session,
            self.airports,
            self.seats,
            self.flights,
            self.bookings,
            self.tickets,
            self.users,
            clock=clock,
        )


__all__ = [
    "Services",
    "AirportService",
    "SeatService",
    "FlightService",
    "FlightSeatService",
    "BulkResult",
    "TicketService",
    "BookingService",
    "UserService",
    "AuthService",
    "DashboardService",
    "EmailMessage",
    "EmailSender",
    "Outbox",
    "NotificationDispatcher",
    "NotificationService",
    "JwtService",
    "TwoFactorService",
    "Principal",
    "hash_password",
    "verify_password",
    "generate_booking_reference",
    "generate_ticket_number",
]
