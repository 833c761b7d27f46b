"""
Airport schemas.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator


class CreateAirportRequest(BaseModel):
    """Payload for creating or replacing an airport."""

    airport_code: str = Field(..., min_length=3, max_length=3, description="IATA code (e.g. 'CGK')")
    airport_name: str = Field(..., min_length=1, max_length=200)
    city: str = Field(..., min_length=1, max_length=100)
    country: str = Field(..., min_length=1, max_length=100)
    country_code: Optional[str] = Field(None, min_length=2, max_length=2)
    time_zone: Optional[str] = Field(None, max_length=50)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

    @field_validator("airport_code")
    @classmethod
    def validate_airport_code(cls, v: str) -> str:
        if not v.isalpha():
            raise ValueError("Airport code must contain letters only")
        return v


class AirportModel(BaseModel):
    """Airport as returned by the API."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    airport_code: str = Field(..., max_length=3, description="IATA code")
    airport_name: str
    city: str
    country: str
    country_code: Optional[str] = None
    time_zone: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
