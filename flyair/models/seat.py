"""
Seat and flight-seat inventory schemas.

A seat is a cabin position shared by every flight; a flight seat is that
seat offered on one flight at a price, with the ``is_available`` and
``is_occupied`` flags maintained by the inventory service.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict

from .enums import SeatClass


class CreateSeatRequest(BaseModel):
    seat_number: str = Field(..., min_length=1, max_length=5, description="Seat code (e.g. '12A')")
    seat_class: SeatClass


class SeatModel(BaseModel):
    """Cabin seat as returned by the API."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    seat_number: str
    seat_class: SeatClass
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CreateFlightSeatRequest(BaseModel):
    flight_id: int = Field(..., ge=1)
    seat_id: int = Field(..., ge=1)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)


class BulkFlightSeatItem(BaseModel):
    seat_id: int = Field(..., ge=1)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    is_available: bool = True


class CreateBulkFlightSeatsRequest(BaseModel):
    flight_id: int = Field(..., ge=1)
    seats: List[BulkFlightSeatItem] = Field(..., min_length=1)


class UpdateFlightSeatRequest(BaseModel):
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    is_available: Optional[bool] = None


class FlightSeatModel(BaseModel):
    """A seat offered on a flight, with its availability flags."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    flight_id: int
    seat: SeatModel
    price: Decimal
    is_available: bool
    is_occupied: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BulkFlightSeatResultModel(BaseModel):
    """Outcome of a bulk assignment: created rows and the seat ids skipped as duplicates."""
    model_config = ConfigDict(from_attributes=True)

    created: List[FlightSeatModel] = Field(default_factory=list)
    skipped_seat_ids: List[int] = Field(default_factory=list)
