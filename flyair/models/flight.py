"""
Flight-related Pydantic models.

This module contains request models for scheduling flights and the
complete flight representation with its departure and arrival airports.
"""

from datetime import datetime, date
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator

from .enums import FlightStatus
from .airport import AirportModel


def as_local_time(value: datetime) -> datetime:
    """Convert an offset-aware datetime to naive local time, the convention of the database and clock."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


class CreateFlightRequest(BaseModel):
    """
    Flight schedule submitted by an administrator.

    Cross-field rules (different airports, arrival after departure, future
    departure) are business rules checked by the flight service.
    """
    flight_number: str = Field(..., min_length=2, max_length=10, description="Flight number")
    departure_airport_id: int = Field(..., ge=1, description="Departure airport ID")
    arrival_airport_id: int = Field(..., ge=1, description="Arrival airport ID")
    departure_time: datetime = Field(..., description="Scheduled departure time")
    arrival_time: datetime = Field(..., description="Scheduled arrival time")
    gate_number: Optional[str] = Field(None, max_length=10)
    terminal: Optional[str] = Field(None, max_length=10)
    aircraft_type: Optional[str] = Field(None, max_length=50)

    @field_validator("departure_time", "arrival_time")
    @classmethod
    def normalize_timezone(cls, v: datetime) -> datetime:
        return as_local_time(v)


class UpdateFlightRequest(CreateFlightRequest):
    pass


class UpdateFlightStatusRequest(BaseModel):
    status: FlightStatus


class FlightSearchRequest(BaseModel):
    """Route/date search, or a free-text term, or neither (list all)."""
    departure_airport_code: Optional[str] = Field(None, max_length=3)
    arrival_airport_code: Optional[str] = Field(None, max_length=3)
    departure_date: Optional[date] = None
    search_term: Optional[str] = None


class FlightModel(BaseModel):
    """
    Complete flight information.

    Includes the derived duration and both airports so that listing pages
    need no further lookups.
    """
    model_config = ConfigDict(from_attributes=True)

    id: int
    flight_number: str
    departure_airport: AirportModel
    arrival_airport: AirportModel
    departure_time: datetime
    arrival_time: datetime
    duration_minutes: int = Field(..., ge=0)
    status: FlightStatus = FlightStatus.SCHEDULED
    gate_number: Optional[str] = None
    terminal: Optional[str] = None
    aircraft_type: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class FlightSummaryModel(BaseModel):
    """Short flight view embedded in bookings."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    flight_number: str
    departure_time: datetime
    arrival_time: datetime
    status: FlightStatus


class FlightStatsModel(BaseModel):
    total_flights: int = 0
    scheduled_flights: int = 0
    delayed_flights: int = 0
    cancelled_flights: int = 0
    flights_last_30_days: int = 0
