"""
Response envelope, pagination and dashboard schemas.
"""

from decimal import Decimal
from typing import Any, Dict, Generic, List, Optional, TypeVar
from pydantic import BaseModel, Field

from .airport import AirportModel
from .booking import BookingModel, TicketModel
from .flight import FlightModel
from .seat import SeatModel
from .user import UserModel

T = TypeVar("T")


class ApiResponse(BaseModel):
    """
    Uniform response envelope.

    Success responses carry ``data``; failures carry ``error`` (one message)
    or ``errors`` (field -> message).
    """
    success: bool
    message: Optional[str] = None
    data: Any = None
    error: Optional[str] = None
    errors: Optional[Dict[str, str]] = None

    @classmethod
    def ok(cls, data: Any = None, message: str = "Success") -> "ApiResponse":
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, message: str, error: Optional[str] = None, errors: Optional[Dict[str, str]] = None) -> "ApiResponse":
        return cls(success=False, message=message, error=error, errors=errors)


class PageModel(BaseModel, Generic[T]):
    """One page of a listing. ``page`` is zero-based."""
    content: List[T] = Field(default_factory=list)
    page: int = 0
    size: int = 10
    total_elements: int = 0
    total_pages: int = 0
    has_next: bool = False
    has_previous: bool = False


class DashboardStatsModel(BaseModel):
    total_users: int = 0
    total_flights: int = 0
    total_bookings: int = 0
    total_tickets: int = 0
    new_users_last_30_days: int = 0
    flights_last_30_days: int = 0
    bookings_last_30_days: int = 0
    revenue_this_month: Decimal = Decimal("0")
    total_revenue: Decimal = Decimal("0")
    active_flights: int = 0
    cancelled_bookings: int = 0
    pending_bookings: int = 0


class GlobalSearchModel(BaseModel):
    """
    Results of a search across every catalog. The booking, ticket and user
    sections are only filled for administrators.
    """
    flights: List[FlightModel] = Field(default_factory=list)
    airports: List[AirportModel] = Field(default_factory=list)
    seats: List[SeatModel] = Field(default_factory=list)
    bookings: Optional[List[BookingModel]] = None
    tickets: Optional[List[TicketModel]] = None
    users: Optional[List[UserModel]] = None
