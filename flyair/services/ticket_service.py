"""
Ticket lifecycle.

    ISSUED -> CHECKED_IN -> BOARDED
    ISSUED | CHECKED_IN -> CANCELLED

CANCELLED and NO_SHOW are terminal. NO_SHOW is only ever set directly on the
row; no operation here moves a ticket into it. Issuing a ticket books its
flight seat and cancelling one releases it.
"""

import logging
import uuid
from datetime import datetime
from typing import Callable, List

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..database.models import Booking, FlightSeat, Seat, Ticket, User
from ..database.queries import Page, contains_ci, paginate
from ..exceptions import BadRequestError, ResourceNotFoundError
from ..models.booking import PassengerRequest
from ..models.enums import TicketStatus
from .flight_seat_service import FlightSeatService
from .security import Principal

logger = logging.getLogger(__name__)


def generate_ticket_number() -> str:
    return "TKT" + uuid.uuid4().hex[:10].upper()


class TicketService:

    def __init__(
        self,
        session: Session,
        flight_seats: FlightSeatService,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.session = session
        self.flight_seats = flight_seats
        self.clock = clock

    def get(self, ticket_id: int) -> Ticket:
        ticket = self.session.get(Ticket, ticket_id)
        if ticket is None:
            raise ResourceNotFoundError(f"Ticket not found with id: {ticket_id}")
        return ticket

    def get_by_number(self, ticket_number: str) -> Ticket:
        ticket = self.session.scalar(
            select(Ticket).where(Ticket.ticket_number == ticket_number.upper())
        )
        if ticket is None:
            raise ResourceNotFoundError(f"Ticket not found with number: {ticket_number}")
        return ticket

    def _unique_ticket_number(self) -> str:
        while True:
            number = generate_ticket_number()
            exists = self.session.scalar(select(Ticket.id).where(Ticket.ticket_number == number))
            if exists is None:
                return number
            logger.debug(f"Ticket number collision on {number}, drawing again")

    def issue(self, booking_id: int, flight_seat_id: int, passenger: PassengerRequest) -> Ticket:
        """
        Issue a ticket for one passenger and book its seat.

        Args:
            booking_id: Booking the ticket belongs to
            flight_seat_id: Seat the passenger will occupy
            passenger: Passenger identity

        Returns:
            Ticket: The new ticket in ISSUED state

        Raises:
            ResourceNotFoundError: If the booking or flight seat does not exist
            BadRequestError: If the flight seat is not bookable
            ConflictError: If the seat was booked concurrently
        """
        booking = self.session.get(Booking, booking_id)
        if booking is None:
            raise ResourceNotFoundError(f"Booking not found with id: {booking_id}")

        flight_seat = self.flight_seats.get(flight_seat_id)
        if not flight_seat.is_bookable:
            raise BadRequestError("Selected seat is not available")

        ticket = Ticket(
            ticket_number=self._unique_ticket_number(),
            booking=booking,
            flight_seat=flight_seat,
            passenger_name=passenger.passenger_name,
            passenger_email=passenger.passenger_email,
            passenger_phone=passenger.passenger_phone,
            passport_number=passenger.passport_number,
            ticket_status=TicketStatus.ISSUED,
        )
        self.session.add(ticket)
        self.flight_seats.book(flight_seat_id)
        self.session.flush()
        logger.info(
            f"Issued ticket {ticket.ticket_number} for {ticket.passenger_name} "
            f"on seat {flight_seat.seat.seat_number} (booking {booking.booking_reference})"
        )
        return ticket

    def check_in(self, ticket_id: int) -> Ticket:
        ticket = self.get(ticket_id)
        if ticket.ticket_status != TicketStatus.ISSUED:
            raise BadRequestError("Ticket is not in issued status")

        ticket.ticket_status = TicketStatus.CHECKED_IN
        ticket.check_in_time = self.clock()
        self.session.flush()
        logger.info(f"Checked in ticket {ticket.ticket_number}")
        return ticket

    def board(self, ticket_id: int) -> Ticket:
        ticket = self.get(ticket_id)
        if ticket.ticket_status != TicketStatus.CHECKED_IN:
            raise BadRequestError("Passenger must be checked in before boarding")

        ticket.ticket_status = TicketStatus.BOARDED
        ticket.boarding_time = self.clock()
        self.session.flush()
        logger.info(f"Boarded ticket {ticket.ticket_number}")
        return ticket

    def cancel(self, ticket_id: int) -> Ticket:
        """
        Cancel a ticket and release its seat.

        Raises:
            BadRequestError: If the ticket is boarded or already terminal
        """
        ticket = self.get(ticket_id)
        if ticket.ticket_status == TicketStatus.BOARDED:
            raise BadRequestError("Cannot cancel boarded ticket")
        if ticket.ticket_status == TicketStatus.CANCELLED:
            raise BadRequestError("Ticket is already cancelled")
        if ticket.ticket_status == TicketStatus.NO_SHOW:
            raise BadRequestError("Cannot cancel no-show ticket")

        ticket.ticket_status = TicketStatus.CANCELLED
        self.flight_seats.release(ticket.flight_seat_id)
        self.session.flush()
        logger.info(f"Cancelled ticket {ticket.ticket_number}")
        return ticket

    def list(self, page: int = 0, size: int = 10) -> Page:
        return paginate(self.session, select(Ticket).order_by(Ticket.id.desc()), page, size)

    def search(self, term: str, page: int = 0, size: int = 10) -> Page:
        stmt = (
            select(Ticket)
            .join(Ticket.flight_seat)
            .join(FlightSeat.seat)
            .where(
                contains_ci(
                    term,
                    Ticket.ticket_number,
                    Ticket.passenger_name,
                    Ticket.passenger_email,
                    Seat.seat_number,
                )
            )
            .order_by(Ticket.id.desc())
        )
        return paginate(self.session, stmt, page, size)

    def list_for_booking(self, booking_id: int) -> List[Ticket]:
        stmt = select(Ticket).where(Ticket.booking_id == booking_id).order_by(Ticket.id)
        return list(self.session.scalars(stmt).unique().all())

    def list_for_user(self, principal: Principal) -> List[Ticket]:
        stmt = (
            select(Ticket)
            .join(Ticket.booking)
            .join(Booking.user)
            .where(User.username == principal.username)
            .order_by(Ticket.id.desc())
        )
        return list(self.session.scalars(stmt).unique().all())
