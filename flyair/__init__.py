"""
FlyAir: flight booking backend

Catalog management (airports, seats, flights), a per-flight seat inventory,
and the booking/ticketing workflow that reserves seats, issues tickets and
tracks passenger check-in and boarding. Exposed as a Flask JSON API backed by
SQLAlchemy.
"""

__version__ = "0.1.0"
