"""
Airport catalog service.

Airport codes are unique case-insensitively and stored upper-case. An airport
with departing or arriving flights cannot be deleted.
"""

import logging
from typing import List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from ..database.models import Airport, Flight
from ..database.queries import Page, contains_ci, paginate
from ..exceptions import BadRequestError, ResourceNotFoundError
from ..models.airport import CreateAirportRequest

logger = logging.getLogger(__name__)


class AirportService:
    """CRUD and search over airports."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, airport_id: int) -> Airport:
        airport = self.session.get(Airport, airport_id)
        if airport is None:
            raise ResourceNotFoundError(f"Airport not found with id: {airport_id}")
        return airport

    def get_by_code(self, airport_code: str) -> Airport:
        airport = self.session.scalar(
            select(Airport).where(Airport.airport_code == airport_code.upper())
        )
        if airport is None:
            raise ResourceNotFoundError(f"Airport not found with code: {airport_code}")
        return airport

    def _code_taken(self, code: str, exclude_id: Optional[int] = None) -> bool:
        stmt = select(func.count(Airport.id)).where(func.upper(Airport.airport_code) == code)
        if exclude_id is not None:
            stmt = stmt.where(Airport.id != exclude_id)
        return (self.session.scalar(stmt) or 0) > 0

    def create(self, request: CreateAirportRequest) -> Airport:
        """
        Create an airport.

        Raises:
            BadRequestError: If the code is already used (case-insensitive)
        """
        code = request.airport_code.upper()
        if self._code_taken(code):
            raise BadRequestError(f"Airport code already exists: {code}")

        airport = Airport(
            airport_code=code,
            airport_name=request.airport_name,
            city=request.city,
            country=request.country,
            country_code=request.country_code.upper() if request.country_code else None,
            time_zone=request.time_zone,
            latitude=request.latitude,
            longitude=request.longitude,
        )
        self.session.add(airport)
        self.session.flush()
        logger.info(f"Created airport {airport.airport_code} (id={airport.id})")
        return airport

    def update(self, airport_id: int, request: CreateAirportRequest) -> Airport:
        airport = self.get(airport_id)
        code = request.airport_code.upper()
        if code != airport.airport_code and self._code_taken(code, exclude_id=airport_id):
            raise BadRequestError(f"Airport code already exists: {code}")

        airport.airport_code = code
        airport.airport_name = request.airport_name
        airport.city = request.city
        airport.country = request.country
        airport.country_code = request.country_code.upper() if request.country_code else None
        airport.time_zone = request.time_zone
        airport.latitude = request.latitude
        airport.longitude = request.longitude
        self.session.flush()
        logger.info(f"Updated airport {airport.airport_code} (id={airport.id})")
        return airport

    def delete(self, airport_id: int) -> None:
        """
        Delete an airport.

        Raises:
            BadRequestError: While any flight departs from or arrives at it
        """
        airport = self.get(airport_id)
        flights = self.session.scalar(
            select(func.count(Flight.id)).where(
                or_(Flight.departure_airport_id == airport_id, Flight.arrival_airport_id == airport_id)
            )
        ) or 0
        if flights:
            raise BadRequestError("Cannot delete airport with existing flights")

        self.session.delete(airport)
        self.session.flush()
        logger.info(f"Deleted airport {airport.airport_code} (id={airport_id})")

    def list(self, page: int = 0, size: int = 10) -> Page:
        return paginate(self.session, select(Airport).order_by(Airport.airport_code), page, size)

    def search(self, term: str, page: int = 0, size: int = 10) -> Page:
        stmt = (
            select(Airport)
            .where(contains_ci(term, Airport.airport_code, Airport.airport_name, Airport.city, Airport.country))
            .order_by(Airport.airport_code)
        )
        return paginate(self.session, stmt, page, size)

    def list_by_country(self, country: str) -> List[Airport]:
        stmt = (
            select(Airport)
            .where(func.lower(Airport.country) == country.lower())
            .order_by(Airport.city, Airport.airport_code)
        )
        return list(self.session.scalars(stmt).all())

    def list_countries(self) -> List[str]:
        stmt = select(Airport.country).distinct().order_by(Airport.country)
        return list(self.session.scalars(stmt).all())
