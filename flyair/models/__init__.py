"""
FlyAir Pydantic models package.

This package contains the Pydantic v2 models used for request validation
and response serialization, plus the enums shared with the database tables.
"""

# Enums
from .enums import (
    FlightStatus,
    SeatClass,
    BookingStatus,
    PaymentStatus,
    TicketStatus,
    Role,
)

# Catalog models
from .airport import (
    CreateAirportRequest,
    AirportModel,
)

from .seat import (
    CreateSeatRequest,
    SeatModel,
    CreateFlightSeatRequest,
    BulkFlightSeatItem,
    CreateBulkFlightSeatsRequest,
    UpdateFlightSeatRequest,
    FlightSeatModel,
    BulkFlightSeatResultModel,
)

from .flight import (
    CreateFlightRequest,
    UpdateFlightRequest,
    UpdateFlightStatusRequest,
    FlightSearchRequest,
    FlightModel,
    FlightSummaryModel,
    FlightStatsModel,
)

# Booking workflow models
from .booking import (
    PassengerRequest,
    CreateBookingRequest,
    UpdateBookingRequest,
    CreateTicketRequest,
    TicketModel,
    BookingOwnerModel,
    BookingModel,
    BookingStatsModel,
)

# Identity models
from .user import (
    RegisterRequest,
    LoginRequest,
    TwoFactorVerificationRequest,
    TwoFactorCodeRequest,
    RefreshTokenRequest,
    UpdateUserRequest,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    UserModel,
    AuthenticationResponse,
    TwoFactorSetupModel,
    UserStatsModel,
)

from .common import (
    ApiResponse,
    PageModel,
    DashboardStatsModel,
    GlobalSearchModel,
)

__all__ = [
    # Enums
    "FlightStatus",
    "SeatClass",
    "BookingStatus",
    "PaymentStatus",
    "TicketStatus",
    "Role",

    # Catalog
    "CreateAirportRequest",
    "AirportModel",
    "CreateSeatRequest",
    "SeatModel",
    "CreateFlightSeatRequest",
    "BulkFlightSeatItem",
    "CreateBulkFlightSeatsRequest",
    "UpdateFlightSeatRequest",
    "FlightSeatModel",
    "BulkFlightSeatResultModel",
    "CreateFlightRequest",
    "UpdateFlightRequest",
    "UpdateFlightStatusRequest",
    "FlightSearchRequest",
    "FlightModel",
    "FlightSummaryModel",
    "FlightStatsModel",

    # Bookings
    "PassengerRequest",
    "CreateBookingRequest",
    "UpdateBookingRequest",
    "CreateTicketRequest",
    "TicketModel",
    "BookingOwnerModel",
    "BookingModel",
    "BookingStatsModel",

    # Identity
    "RegisterRequest",
    "LoginRequest",
    "TwoFactorVerificationRequest",
    "TwoFactorCodeRequest",
    "RefreshTokenRequest",
    "UpdateUserRequest",
    "ChangePasswordRequest",
    "ForgotPasswordRequest",
    "ResetPasswordRequest",
    "UserModel",
    "AuthenticationResponse",
    "TwoFactorSetupModel",
    "UserStatsModel",

    # Common
    "ApiResponse",
    "PageModel",
    "DashboardStatsModel",
    "GlobalSearchModel",
]
