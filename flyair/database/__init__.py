"""
Database package for the FlyAir backend.

This package provides SQLAlchemy models, database configuration and the
query helpers used by the services.
"""

from .models import (
    Base,
    User,
    Airport,
    Seat,
    Flight,
    FlightSeat,
    Booking,
    Ticket,
    create_all_tables,
    drop_all_tables
)

from .config import (
    DatabaseConfig,
)

from .queries import Page, paginate, contains_ci

__all__ = [
    # Models
    'Base',
    'User',
    'Airport',
    'Seat',
    'Flight',
    'FlightSeat',
    'Booking',
    'Ticket',
    'create_all_tables',
    'drop_all_tables',

    # Configuration
    'DatabaseConfig',

    # Queries
    'Page',
    'paginate',
    'contains_ci',
]
