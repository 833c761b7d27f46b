"""
Booking and ticket schemas.

A booking covers one flight and one ticket per passenger; every ticket binds
one passenger to one flight seat.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict

from .enums import BookingStatus, PaymentStatus, TicketStatus
from .flight import FlightSummaryModel
from .seat import FlightSeatModel


class PassengerRequest(BaseModel):
    """Passenger identity for one ticket."""
    passenger_name: str = Field(..., min_length=1, max_length=200)
    passenger_email: Optional[str] = Field(None, max_length=120, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    passenger_phone: Optional[str] = Field(None, max_length=30)
    passport_number: Optional[str] = Field(None, max_length=30)


class CreateBookingRequest(BaseModel):
    flight_id: int = Field(..., ge=1)
    flight_seat_ids: List[int] = Field(..., min_length=1)
    passengers: List[PassengerRequest] = Field(..., min_length=1)


class UpdateBookingRequest(BaseModel):
    booking_status: Optional[BookingStatus] = None
    payment_status: Optional[PaymentStatus] = None


class CreateTicketRequest(PassengerRequest):
    booking_id: int = Field(..., ge=1)
    flight_seat_id: int = Field(..., ge=1)


class TicketModel(BaseModel):
    """Ticket as returned by the API."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    ticket_number: str
    booking_id: int
    flight_seat: FlightSeatModel
    passenger_name: str
    passenger_email: Optional[str] = None
    passenger_phone: Optional[str] = None
    passport_number: Optional[str] = None
    ticket_status: TicketStatus
    check_in_time: Optional[datetime] = None
    boarding_time: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BookingOwnerModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    first_name: str
    last_name: str


class BookingModel(BaseModel):
    """Booking with its flight, owner and tickets."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    booking_reference: str
    user: BookingOwnerModel
    flight: FlightSummaryModel
    total_amount: Decimal
    booking_status: BookingStatus
    payment_status: PaymentStatus
    booking_date: datetime
    payment_date: Optional[datetime] = None
    tickets: List[TicketModel] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BookingStatsModel(BaseModel):
    total_bookings: int = 0
    confirmed_bookings: int = 0
    pending_bookings: int = 0
    cancelled_bookings: int = 0
    bookings_last_30_days: int = 0
    total_revenue: Decimal = Decimal("0")
    revenue_this_month: Decimal = Decimal("0")
