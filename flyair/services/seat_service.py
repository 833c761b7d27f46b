"""
Seat catalog service. Seat numbers are unique and stored upper-case.
"""

import logging
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..database.models import FlightSeat, Seat
from ..database.queries import Page, contains_ci, paginate
from ..exceptions import BadRequestError, ResourceNotFoundError
from ..models.enums import SeatClass
from ..models.seat import CreateSeatRequest

logger = logging.getLogger(__name__)


class SeatService:

    def __init__(self, session: Session):
        self.session = session

    def get(self, seat_id: int) -> Seat:
        seat = self.session.get(Seat, seat_id)
        if seat is None:
            raise ResourceNotFoundError(f"Seat not found with id: {seat_id}")
        return seat

    def _number_taken(self, seat_number: str, exclude_id: Optional[int] = None) -> bool:
        stmt = select(func.count(Seat.id)).where(func.upper(Seat.seat_number) == seat_number)
        if exclude_id is not None:
            stmt = stmt.where(Seat.id != exclude_id)
        return (self.session.scalar(stmt) or 0) > 0

    def create(self, request: CreateSeatRequest) -> Seat:
        seat_number = request.seat_number.upper()
        if self._number_taken(seat_number):
            raise BadRequestError(f"Seat number already exists: {seat_number}")

        seat = Seat(seat_number=seat_number, seat_class=request.seat_class)
        self.session.add(seat)
        self.session.flush()
        logger.info(f"Created seat {seat.seat_number} ({seat.seat_class.value})")
        return seat

    def update(self, seat_id: int, request: CreateSeatRequest) -> Seat:
        seat = self.get(seat_id)
        seat_number = request.seat_number.upper()
        if seat_number != seat.seat_number and self._number_taken(seat_number, exclude_id=seat_id):
            raise BadRequestError(f"Seat number already exists: {seat_number}")

        seat.seat_number = seat_number
        seat.seat_class = request.seat_class
        self.session.flush()
        logger.info(f"Updated seat {seat.seat_number} (id={seat.id})")
        return seat

    def delete(self, seat_id: int) -> None:
        seat = self.get(seat_id)
        assignments = self.session.scalar(
            select(func.count(FlightSeat.id)).where(FlightSeat.seat_id == seat_id)
        ) or 0
        if assignments:
            raise BadRequestError("Cannot delete seat with existing flight seat assignments")

        self.session.delete(seat)
        self.session.flush()
        logger.info(f"Deleted seat {seat.seat_number} (id={seat_id})")

    def list(self, page: int = 0, size: int = 10) -> Page:
        return paginate(self.session, select(Seat).order_by(Seat.seat_number), page, size)

    def search(self, term: str, page: int = 0, size: int = 10) -> Page:
        stmt = select(Seat).where(contains_ci(term, Seat.seat_number)).order_by(Seat.seat_number)
        return paginate(self.session, stmt, page, size)

    def list_by_class(self, seat_class: SeatClass) -> List[Seat]:
        stmt = select(Seat).where(Seat.seat_class == seat_class).order_by(Seat.seat_number)
        return list(self.session.scalars(stmt).all())
