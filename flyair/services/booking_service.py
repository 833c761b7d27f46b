"""
Booking workflow.

Creating a booking validates the flight and every requested flight seat
before anything is written, then persists the booking and issues one ticket
per (passenger, seat) pair through the ticket service. The confirmation email
is only staged here; it leaves the process after the request commits.

Cancelling a booking cancels its live tickets, which releases their seats,
and refunds a paid booking.
"""

import logging
import uuid
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..database.models import Booking, Flight, FlightSeat, User
from ..database.queries import Page, contains_ci, paginate
from ..exceptions import AccessDeniedError, BadRequestError, ResourceNotFoundError
from ..models.booking import BookingStatsModel, CreateBookingRequest, UpdateBookingRequest
from ..models.enums import BookingStatus, FlightStatus, PaymentStatus, TicketStatus
from .notification import NotificationService
from .security import Principal
from .ticket_service import TicketService

logger = logging.getLogger(__name__)


def generate_booking_reference() -> str:
    return "FLY" + uuid.uuid4().hex[:8].upper()


class BookingService:
    """
    Booking creation, cancellation, lookup and statistics.

    Args:
        session: Active SQLAlchemy session
        tickets: Ticket service used to issue and cancel tickets
        notifications: Stages confirmation emails on the request outbox
        clock: Returns the current time; injectable for tests
        booking_lead_hours: Minimum hours between booking and departure
        cancellation_cutoff_hours: Minimum hours between cancellation and departure
    """

    def __init__(
        self,
        session: Session,
        tickets: TicketService,
        notifications: NotificationService,
        clock: Callable[[], datetime] = datetime.now,
        booking_lead_hours: int = 2,
        cancellation_cutoff_hours: int = 24,
    ):
        self.session = session
        self.tickets = tickets
        self.notifications = notifications
        self.clock = clock
        self.booking_lead = timedelta(hours=booking_lead_hours)
        self.cancellation_cutoff = timedelta(hours=cancellation_cutoff_hours)

    def get(self, booking_id: int, principal: Optional[Principal] = None) -> Booking:
        """
        Load a booking. With ``principal``, non-admins may only see their own.
        """
        booking = self.session.get(Booking, booking_id)
        if booking is None:
            raise ResourceNotFoundError(f"Booking not found with id: {booking_id}")
        self._check_owner(booking, principal)
        return booking

    def get_by_reference(self, reference: str, principal: Optional[Principal] = None) -> Booking:
        booking = self.session.scalar(
            select(Booking).where(Booking.booking_reference == reference.upper())
        )
        if booking is None:
            raise ResourceNotFoundError(f"Booking not found with reference: {reference}")
        self._check_owner(booking, principal)
        return booking

    @staticmethod
    def _check_owner(booking: Booking, principal: Optional[Principal]) -> None:
        if principal is None or principal.is_admin:
            return
        if booking.user.username != principal.username:
            raise AccessDeniedError("You don't have permission to access this booking")

    def _unique_reference(self) -> str:
        while True:
            reference = generate_booking_reference()
            exists = self.session.scalar(select(Booking.id).where(Booking.booking_reference == reference))
            if exists is None:
                return reference
            logger.debug(f"Booking reference collision on {reference}, drawing again")

    def create(self, request: CreateBookingRequest, principal: Principal) -> Booking:
        """
        Book seats on a flight for the principal.

        Returns:
            Booking: PENDING booking with one ISSUED ticket per passenger

        Raises:
            ResourceNotFoundError: Flight, user or flight seat does not exist
            BadRequestError: Flight not bookable, departure too close, seat
                unavailable or on another flight, duplicate seat ids, or
                passenger count differs from seat count
            ConflictError: A seat was booked concurrently
        """
        now = self.clock()

        flight = self.session.get(Flight, request.flight_id)
        if flight is None:
            raise ResourceNotFoundError(f"Flight not found with id: {request.flight_id}")
        if flight.status != FlightStatus.SCHEDULED:
            raise BadRequestError("Flight is not available for booking")
        if flight.departure_time < now + self.booking_lead:
            hours = int(self.booking_lead.total_seconds() // 3600)
            raise BadRequestError(f"Cannot book flight less than {hours} hours before departure")

        user = self.session.scalar(select(User).where(User.username == principal.username))
        if user is None:
            raise ResourceNotFoundError(f"User not found: {principal.username}")

        if len(set(request.flight_seat_ids)) != len(request.flight_seat_ids):
            raise BadRequestError("Duplicate flight seat ids in booking request")
        if len(request.passengers) != len(request.flight_seat_ids):
            raise BadRequestError(
                f"Number of passengers ({len(request.passengers)}) must match "
                f"number of seats ({len(request.flight_seat_ids)})"
            )

        flight_seats: List[FlightSeat] = []
        for flight_seat_id in request.flight_seat_ids:
            flight_seat = self.session.get(FlightSeat, flight_seat_id)
            if flight_seat is None:
                raise ResourceNotFoundError(f"Flight seat not found with id: {flight_seat_id}")
            if flight_seat.flight_id != flight.id:
                raise BadRequestError(
                    f"Flight seat {flight_seat_id} does not belong to flight {flight.flight_number}"
                )
            if not flight_seat.is_bookable:
                raise BadRequestError(f"Flight seat is not available: {flight_seat.seat.seat_number}")
            flight_seats.append(flight_seat)

        total_amount = sum((fs.price for fs in flight_seats), Decimal("0"))

        booking = Booking(
            booking_reference=self._unique_reference(),
            user=user,
            flight=flight,
            total_amount=total_amount,
            booking_status=BookingStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
            booking_date=now,
        )
        self.session.add(booking)
        self.session.flush()

        for passenger, flight_seat in zip(request.passengers, flight_seats):
            self.tickets.issue(booking.id, flight_seat.id, passenger)

        self.notifications.send_booking_confirmation(
            to=user.email,
            name=user.full_name,
            reference=booking.booking_reference,
            flight_number=flight.flight_number,
            departure_time=flight.departure_time.strftime("%Y-%m-%d %H:%M"),
        )

        logger.info(
            f"Created booking {booking.booking_reference} for {user.username} on "
            f"{flight.flight_number}: {len(flight_seats)} seat(s), total {total_amount}"
        )
        return booking

    def cancel(self, booking_id: int, principal: Optional[Principal] = None) -> Booking:
        """
        Cancel a booking, its tickets and seat holds.

        A departure exactly ``cancellation_cutoff`` away is still cancellable.

        Raises:
            BadRequestError: Already cancelled, completed, or inside the cutoff
        """
        booking = self.get(booking_id, principal)
        if booking.booking_status == BookingStatus.CANCELLED:
            raise BadRequestError("Booking is already cancelled")
        if booking.booking_status == BookingStatus.COMPLETED:
            raise BadRequestError("Cannot cancel completed booking")
        if booking.flight.departure_time < self.clock() + self.cancellation_cutoff:
            hours = int(self.cancellation_cutoff.total_seconds() // 3600)
            raise BadRequestError(f"Cannot cancel booking less than {hours} hours before departure")

        booking.booking_status = BookingStatus.CANCELLED
        for ticket in booking.tickets:
            if ticket.ticket_status in (TicketStatus.CANCELLED, TicketStatus.NO_SHOW):
                continue
            self.tickets.cancel(ticket.id)

        if booking.payment_status == PaymentStatus.PAID:
            booking.payment_status = PaymentStatus.REFUNDED

        self.session.flush()
        logger.info(f"Cancelled booking {booking.booking_reference}")
        return booking

    def update_status(self, booking_id: int, request: UpdateBookingRequest) -> Booking:
        """
        Set booking and/or payment status. Marking a booking PAID stamps the
        payment date. Cancellation must go through ``cancel``.
        """
        booking = self.get(booking_id)
        if request.booking_status == BookingStatus.CANCELLED:
            raise BadRequestError("Use the cancel operation to cancel a booking")
        if booking.booking_status == BookingStatus.CANCELLED:
            raise BadRequestError("Booking is already cancelled")

        if request.booking_status is not None:
            booking.booking_status = request.booking_status
        if request.payment_status is not None:
            if request.payment_status == PaymentStatus.PAID and booking.payment_status != PaymentStatus.PAID:
                booking.payment_date = self.clock()
            booking.payment_status = request.payment_status

        self.session.flush()
        logger.info(
            f"Booking {booking.booking_reference} now {booking.booking_status.value}/"
            f"{booking.payment_status.value}"
        )
        return booking

    def list(self, page: int = 0, size: int = 10) -> Page:
        return paginate(self.session, select(Booking).order_by(Booking.booking_date.desc()), page, size)

    def search(self, term: str, page: int = 0, size: int = 10) -> Page:
        stmt = (
            select(Booking)
            .join(Booking.user)
            .where(contains_ci(term, Booking.booking_reference, User.first_name, User.last_name, User.email))
            .order_by(Booking.booking_date.desc())
        )
        return paginate(self.session, stmt, page, size)

    def list_for_user(self, principal: Principal) -> List[Booking]:
        stmt = (
            select(Booking)
            .join(Booking.user)
            .where(User.username == principal.username)
            .order_by(Booking.booking_date.desc())
        )
        return list(self.session.scalars(stmt).unique().all())

    def _revenue_since(self, since: datetime) -> Decimal:
        total = self.session.scalar(
            select(func.coalesce(func.sum(Booking.total_amount), 0)).where(
                Booking.payment_status == PaymentStatus.PAID,
                Booking.booking_date >= since,
            )
        )
        return Decimal(str(total or 0))

    def stats(self) -> BookingStatsModel:
        def count_status(status: BookingStatus) -> int:
            return self.session.scalar(
                select(func.count(Booking.id)).where(Booking.booking_status == status)
            ) or 0

        now = self.clock()
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        return BookingStatsModel(
            total_bookings=self.session.scalar(select(func.count(Booking.id))) or 0,
            confirmed_bookings=count_status(BookingStatus.CONFIRMED),
            pending_bookings=count_status(BookingStatus.PENDING),
            cancelled_bookings=count_status(BookingStatus.CANCELLED),
            bookings_last_30_days=self.session.scalar(
                select(func.count(Booking.id)).where(Booking.booking_date >= now - timedelta(days=30))
            ) or 0,
            total_revenue=self._revenue_since(now - timedelta(days=365)),
            revenue_this_month=self._revenue_since(month_start),
        )
