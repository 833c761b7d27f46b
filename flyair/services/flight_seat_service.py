"""
Flight-seat inventory.

A flight seat is bookable only while ``is_available`` is true and
``is_occupied`` is false. ``book`` flips both flags with a single conditional
UPDATE so that two requests racing for the same seat cannot both win: the
loser sees zero affected rows and gets a ``ConflictError``.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Callable, List, Optional, Set

from sqlalchemy import String, cast, select, update
from sqlalchemy.orm import Session

from ..database.models import Flight, FlightSeat, Seat
from ..database.queries import Page, contains_ci, paginate
from ..exceptions import BadRequestError, ConflictError, ResourceNotFoundError
from ..models.enums import SeatClass
from ..models.seat import BulkFlightSeatItem, UpdateFlightSeatRequest

logger = logging.getLogger(__name__)


@dataclass
class BulkResult:
    """Created rows plus the seat ids skipped as duplicates."""
    created: List[FlightSeat] = field(default_factory=list)
    skipped_seat_ids: List[int] = field(default_factory=list)


class FlightSeatService:
    """
    Seat inventory per flight.

    Features:
    - Single and bulk seat assignment with duplicate detection
    - Compare-and-set booking via conditional UPDATE
    - Availability listing with optional seat class filter
    """

    def __init__(self, session: Session, clock: Callable[[], datetime] = datetime.now):
        self.session = session
        self.clock = clock

    def get(self, flight_seat_id: int) -> FlightSeat:
        flight_seat = self.session.get(FlightSeat, flight_seat_id)
        if flight_seat is None:
            raise ResourceNotFoundError(f"Flight seat not found with id: {flight_seat_id}")
        return flight_seat

    def _get_flight(self, flight_id: int) -> Flight:
        flight = self.session.get(Flight, flight_id)
        if flight is None:
            raise ResourceNotFoundError(f"Flight not found with id: {flight_id}")
        return flight

    def _get_seat(self, seat_id: int) -> Seat:
        seat = self.session.get(Seat, seat_id)
        if seat is None:
            raise ResourceNotFoundError(f"Seat not found with id: {seat_id}")
        return seat

    def _assigned_seat_ids(self, flight_id: int) -> Set[int]:
        stmt = select(FlightSeat.seat_id).where(FlightSeat.flight_id == flight_id)
        return set(self.session.scalars(stmt).all())

    def create(self, flight_id: int, seat_id: int, price: Decimal) -> FlightSeat:
        """
        Offer ``seat_id`` on ``flight_id`` at ``price``.

        Raises:
            ResourceNotFoundError: If the flight or seat does not exist
            BadRequestError: If the seat is already assigned to the flight
        """
        flight = self._get_flight(flight_id)
        seat = self._get_seat(seat_id)
        if seat_id in self._assigned_seat_ids(flight_id):
            raise BadRequestError("This seat is already assigned to this flight")

        flight_seat = FlightSeat(flight=flight, seat=seat, price=price, is_available=True, is_occupied=False)
        self.session.add(flight_seat)
        self.session.flush()
        logger.info(f"Assigned seat {seat.seat_number} to flight {flight.flight_number} at {price}")
        return flight_seat

    def bulk_create(self, flight_id: int, items: List[BulkFlightSeatItem]) -> BulkResult:
        """
        Offer several seats on one flight.

        Every referenced seat must exist. Seats already assigned to the
        flight, or repeated within ``items``, are skipped and reported.

        Returns:
            BulkResult with the created rows and the skipped seat ids
        """
        flight = self._get_flight(flight_id)
        seats = {item.seat_id: self._get_seat(item.seat_id) for item in items}

        taken = self._assigned_seat_ids(flight_id)
        result = BulkResult()
        for item in items:
            if item.seat_id in taken:
                logger.warning(
                    f"Seat {seats[item.seat_id].seat_number} already assigned to flight "
                    f"{flight.flight_number}, skipping"
                )
                result.skipped_seat_ids.append(item.seat_id)
                continue

            flight_seat = FlightSeat(
                flight=flight,
                seat=seats[item.seat_id],
                price=item.price,
                is_available=item.is_available,
                is_occupied=False,
            )
            self.session.add(flight_seat)
            result.created.append(flight_seat)
            taken.add(item.seat_id)

        self.session.flush()
        logger.info(
            f"Bulk assigned {len(result.created)} seat(s) to flight {flight.flight_number}, "
            f"skipped {len(result.skipped_seat_ids)}"
        )
        return result

    def update(self, flight_seat_id: int, request: UpdateFlightSeatRequest) -> FlightSeat:
        flight_seat = self.get(flight_seat_id)
        if request.price is not None:
            flight_seat.price = request.price
        if request.is_available is not None:
            if request.is_available and flight_seat.is_occupied:
                raise BadRequestError("Seat is already occupied")
            flight_seat.is_available = request.is_available
        self.session.flush()
        logger.info(f"Updated flight seat {flight_seat.id}")
        return flight_seat

    def book(self, flight_seat_id: int) -> FlightSeat:
        """
        Mark a flight seat occupied.

        Raises:
            ResourceNotFoundError: If the flight seat does not exist
            BadRequestError: If the seat is unavailable or already occupied
            ConflictError: If another transaction booked it after our check
        """
        flight_seat = self.get(flight_seat_id)
        if not flight_seat.is_available:
            raise BadRequestError("Seat is not available")
        if flight_seat.is_occupied:
            raise BadRequestError("Seat is already occupied")

        result = self.session.execute(
            update(FlightSeat)
            .where(
                FlightSeat.id == flight_seat_id,
                FlightSeat.is_available.is_(True),
                FlightSeat.is_occupied.is_(False),
            )
            .values(is_available=False, is_occupied=True, updated_at=self.clock())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            logger.warning(f"Flight seat {flight_seat_id} was booked concurrently")
            raise ConflictError(f"Flight seat was booked by another request: {flight_seat.seat.seat_number}")

        self.session.refresh(flight_seat)
        logger.info(f"Booked flight seat {flight_seat_id} ({flight_seat.seat.seat_number})")
        return flight_seat

    def release(self, flight_seat_id: int) -> FlightSeat:
        flight_seat = self.get(flight_seat_id)
        flight_seat.is_available = True
        flight_seat.is_occupied = False
        self.session.flush()
        logger.info(f"Released flight seat {flight_seat_id} ({flight_seat.seat.seat_number})")
        return flight_seat

    def list_for_flight(self, flight_id: int) -> List[FlightSeat]:
        self._get_flight(flight_id)
        stmt = (
            select(FlightSeat)
            .join(FlightSeat.seat)
            .where(FlightSeat.flight_id == flight_id)
            .order_by(Seat.seat_number)
        )
        return list(self.session.scalars(stmt).unique().all())

    def list_available(self, flight_id: int, seat_class: Optional[SeatClass] = None) -> List[FlightSeat]:
        stmt = (
            select(FlightSeat)
            .join(FlightSeat.seat)
            .where(FlightSeat.flight_id == flight_id, FlightSeat.is_available.is_(True))
            .order_by(Seat.seat_number)
        )
        if seat_class is not None:
            stmt = stmt.where(Seat.seat_class == seat_class)
        return list(self.session.scalars(stmt).unique().all())

    def search(self, term: str, page: int = 0, size: int = 10) -> Page:
        stmt = (
            select(FlightSeat)
            .join(FlightSeat.seat)
            .join(FlightSeat.flight)
            .where(contains_ci(term, Seat.seat_number, Flight.flight_number, cast(Seat.seat_class, String)))
            .order_by(Flight.flight_number, Seat.seat_number)
        )
        return paginate(self.session, stmt, page, size)
