"""
Enums for the booking backend.

This module contains all enumeration types shared by the SQLAlchemy tables
and the Pydantic schemas.
"""

from enum import Enum


class FlightStatus(str, Enum):
    """Flight status enumeration for tracking flight states."""
    SCHEDULED = "SCHEDULED"
    BOARDING = "BOARDING"
    DEPARTED = "DEPARTED"
    IN_FLIGHT = "IN_FLIGHT"
    ARRIVED = "ARRIVED"
    DELAYED = "DELAYED"
    CANCELLED = "CANCELLED"


class SeatClass(str, Enum):
    """Aircraft seat class categories."""
    ECONOMY = "ECONOMY"
    BUSINESS = "BUSINESS"
    FIRST_CLASS = "FIRST_CLASS"


class BookingStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    REFUNDED = "REFUNDED"


class TicketStatus(str, Enum):
    """Passenger ticket lifecycle. CANCELLED and NO_SHOW are terminal."""
    ISSUED = "ISSUED"
    CHECKED_IN = "CHECKED_IN"
    BOARDED = "BOARDED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"


class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"
