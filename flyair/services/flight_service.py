"""
Flight catalog service.

Scheduling rules enforced here:
- departure and arrival airports differ and both exist
- departure is in the future (create only)
- arrival is after departure
- flight numbers are unique and stored upper-case

``duration_minutes`` is always derived from the two timestamps.
"""

import logging
from datetime import datetime, time, timedelta
from typing import Callable, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, aliased

from ..database.models import Airport, Booking, Flight
from ..database.queries import Page, contains_ci, paginate
from ..exceptions import BadRequestError, ResourceNotFoundError
from ..models.enums import FlightStatus
from ..models.flight import CreateFlightRequest, FlightSearchRequest, FlightStatsModel

logger = logging.getLogger(__name__)


class FlightService:
    """
    Flight scheduling, lookup and statistics.

    Args:
        session: Active SQLAlchemy session
        clock: Returns the current time; injectable for tests
    """

    def __init__(self, session: Session, clock: Callable[[], datetime] = datetime.now):
        self.session = session
        self.clock = clock

    def get(self, flight_id: int) -> Flight:
        flight = self.session.get(Flight, flight_id)
        if flight is None:
            raise ResourceNotFoundError(f"Flight not found with id: {flight_id}")
        return flight

    def get_by_number(self, flight_number: str) -> Flight:
        flight = self.session.scalar(
            select(Flight).where(Flight.flight_number == flight_number.upper())
        )
        if flight is None:
            raise ResourceNotFoundError(f"Flight not found with number: {flight_number}")
        return flight

    def _load_airport(self, airport_id: int, role: str) -> Airport:
        airport = self.session.get(Airport, airport_id)
        if airport is None:
            raise ResourceNotFoundError(f"{role} airport not found with id: {airport_id}")
        return airport

    def _validate_schedule(self, request: CreateFlightRequest, require_future: bool) -> None:
        if request.departure_airport_id == request.arrival_airport_id:
            raise BadRequestError("Departure and arrival airports cannot be the same")
        if require_future and request.departure_time <= self.clock():
            raise BadRequestError("Departure time must be in the future")
        if request.arrival_time <= request.departure_time:
            raise BadRequestError("Arrival time must be after departure time")

    def _number_taken(self, flight_number: str, exclude_id: Optional[int] = None) -> bool:
        stmt = select(func.count(Flight.id)).where(func.upper(Flight.flight_number) == flight_number)
        if exclude_id is not None:
            stmt = stmt.where(Flight.id != exclude_id)
        return (self.session.scalar(stmt) or 0) > 0

    @staticmethod
    def _duration_minutes(departure: datetime, arrival: datetime) -> int:
        return int((arrival - departure).total_seconds() // 60)

    def create(self, request: CreateFlightRequest) -> Flight:
        """
        Schedule a new flight with status SCHEDULED.

        Raises:
            BadRequestError: On a schedule rule violation or duplicate number
            ResourceNotFoundError: If either airport does not exist
        """
        self._validate_schedule(request, require_future=True)
        flight_number = request.flight_number.upper()
        if self._number_taken(flight_number):
            raise BadRequestError("Flight number already exists")

        departure_airport = self._load_airport(request.departure_airport_id, "Departure")
        arrival_airport = self._load_airport(request.arrival_airport_id, "Arrival")

        flight = Flight(
            flight_number=flight_number,
            departure_airport=departure_airport,
            arrival_airport=arrival_airport,
            departure_time=request.departure_time,
            arrival_time=request.arrival_time,
            duration_minutes=self._duration_minutes(request.departure_time, request.arrival_time),
            status=FlightStatus.SCHEDULED,
            gate_number=request.gate_number,
            terminal=request.terminal,
            aircraft_type=request.aircraft_type,
        )
        self.session.add(flight)
        self.session.flush()
        logger.info(
            f"Created flight {flight.flight_number} "
            f"{departure_airport.airport_code}->{arrival_airport.airport_code} at {flight.departure_time}"
        )
        return flight

    def update(self, flight_id: int, request: CreateFlightRequest) -> Flight:
        flight = self.get(flight_id)
        self._validate_schedule(request, require_future=False)

        flight_number = request.flight_number.upper()
        if flight_number != flight.flight_number and self._number_taken(flight_number, exclude_id=flight_id):
            raise BadRequestError("Flight number already exists")

        flight.flight_number = flight_number
        flight.departure_airport = self._load_airport(request.departure_airport_id, "Departure")
        flight.arrival_airport = self._load_airport(request.arrival_airport_id, "Arrival")
        flight.departure_time = request.departure_time
        flight.arrival_time = request.arrival_time
        flight.duration_minutes = self._duration_minutes(request.departure_time, request.arrival_time)
        flight.gate_number = request.gate_number
        flight.terminal = request.terminal
        flight.aircraft_type = request.aircraft_type
        self.session.flush()
        logger.info(f"Updated flight {flight.flight_number} (id={flight.id})")
        return flight

    def update_status(self, flight_id: int, status: FlightStatus) -> Flight:
        flight = self.get(flight_id)
        previous = flight.status
        flight.status = status
        self.session.flush()
        logger.info(f"Flight {flight.flight_number} status {previous.value} -> {status.value}")
        return flight

    def delete(self, flight_id: int) -> None:
        flight = self.get(flight_id)
        bookings = self.session.scalar(
            select(func.count(Booking.id)).where(Booking.flight_id == flight_id)
        ) or 0
        if bookings:
            raise BadRequestError("Cannot delete flight with existing bookings")

        self.session.delete(flight)
        self.session.flush()
        logger.info(f"Deleted flight {flight.flight_number} (id={flight_id})")

    def list(self, page: int = 0, size: int = 10) -> Page:
        return paginate(self.session, select(Flight).order_by(Flight.departure_time), page, size)

    def search(self, request: FlightSearchRequest, page: int = 0, size: int = 10) -> Page:
        """
        Search flights.

        With both airport codes and a date, returns that route on that day.
        Otherwise a search term matches flight number, airport codes and
        cities. With neither, every flight is listed.
        """
        departure = aliased(Airport)
        arrival = aliased(Airport)
        stmt = (
            select(Flight)
            .join(departure, Flight.departure_airport_id == departure.id)
            .join(arrival, Flight.arrival_airport_id == arrival.id)
        )

        if request.departure_airport_code and request.arrival_airport_code and request.departure_date:
            day_start = datetime.combine(request.departure_date, time.min)
            stmt = stmt.where(
                departure.airport_code == request.departure_airport_code.upper(),
                arrival.airport_code == request.arrival_airport_code.upper(),
                Flight.departure_time >= day_start,
                Flight.departure_time < day_start + timedelta(days=1),
            )
        elif request.search_term:
            stmt = stmt.where(
                contains_ci(
                    request.search_term,
                    Flight.flight_number,
                    departure.airport_code,
                    arrival.airport_code,
                    departure.city,
                    arrival.city,
                )
            )

        return paginate(self.session, stmt.order_by(Flight.departure_time), page, size)

    def list_by_status(self, status: FlightStatus) -> List[Flight]:
        stmt = select(Flight).where(Flight.status == status).order_by(Flight.departure_time)
        return list(self.session.scalars(stmt).unique().all())

    def list_by_departure_range(self, start: datetime, end: datetime) -> List[Flight]:
        if end < start:
            raise BadRequestError("End time must be after start time")
        stmt = (
            select(Flight)
            .where(Flight.departure_time >= start, Flight.departure_time <= end)
            .order_by(Flight.departure_time)
        )
        return list(self.session.scalars(stmt).unique().all())

    def list_by_airport(self, airport_id: int) -> List[Flight]:
        stmt = (
            select(Flight)
            .where(or_(Flight.departure_airport_id == airport_id, Flight.arrival_airport_id == airport_id))
            .order_by(Flight.departure_time)
        )
        return list(self.session.scalars(stmt).unique().all())

    def list_upcoming(self, limit: int = 20) -> List[Flight]:
        stmt = (
            select(Flight)
            .where(Flight.departure_time >= self.clock())
            .order_by(Flight.departure_time)
            .limit(limit)
        )
        return list(self.session.scalars(stmt).unique().all())

    def stats(self) -> FlightStatsModel:
        def count_status(status: FlightStatus) -> int:
            return self.session.scalar(select(func.count(Flight.id)).where(Flight.status == status)) or 0

        since = self.clock() - timedelta(days=30)
        return FlightStatsModel(
            total_flights=self.session.scalar(select(func.count(Flight.id))) or 0,
            scheduled_flights=count_status(FlightStatus.SCHEDULED),
            delayed_flights=count_status(FlightStatus.DELAYED),
            cancelled_flights=count_status(FlightStatus.CANCELLED),
            flights_last_30_days=self.session.scalar(
                select(func.count(Flight.id)).where(Flight.created_at >= since)
            ) or 0,
        )
