"""
SQLAlchemy database models for the FlyAir booking backend.

This module defines the tables behind the catalog, inventory and booking
workflow:
- User: Accounts with role, lock flags, optional TOTP secret and reset token
- Airport: Airports keyed by their upper-case IATA code
- Seat: Cabin seats with a class (economy, business, first)
- Flight: Scheduled flights between two airports
- FlightSeat: A seat offered on a flight at a price, with availability flags
- Booking: A user's reservation on one flight
- Ticket: One passenger on one flight seat within a booking
"""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

from ..models.enums import (
    BookingStatus,
    FlightStatus,
    PaymentStatus,
    Role,
    SeatClass,
    TicketStatus,
)

# Create the declarative base for all models
Base = declarative_base()


class TimestampMixin:
    """Creation and update timestamps set on every write."""

    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)


class User(TimestampMixin, Base):
    """
    Account model for customers and administrators.

    Passwords are stored as werkzeug hashes. ``two_factor_secret`` is set when
    2FA setup starts and ``is_two_factor_enabled`` only after the first code is
    confirmed.
    """
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(120), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone_number = Column(String(30), nullable=True)
    role = Column(Enum(Role), nullable=False, default=Role.USER)

    # Account state
    is_enabled = Column(Boolean, nullable=False, default=True)
    is_account_non_expired = Column(Boolean, nullable=False, default=True)
    is_account_non_locked = Column(Boolean, nullable=False, default=True)
    is_credentials_non_expired = Column(Boolean, nullable=False, default=True)

    # Two-factor authentication
    two_factor_secret = Column(String(64), nullable=True)
    is_two_factor_enabled = Column(Boolean, nullable=False, default=False)

    # Password reset
    reset_token = Column(String(64), nullable=True, unique=True)
    reset_token_expiry = Column(DateTime, nullable=True)

    bookings = relationship("Booking", back_populates="user", cascade="all, delete-orphan", lazy="select")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', role={self.role})>"


class Airport(TimestampMixin, Base):
    """
    Airport model representing airport information.

    ``airport_code`` is normalized to upper case before it is stored, so the
    unique index is effectively case-insensitive.
    """
    __tablename__ = 'airports'

    id = Column(Integer, primary_key=True, autoincrement=True)
    airport_code = Column(String(3), unique=True, nullable=False, index=True)  # e.g. 'CGK'
    airport_name = Column(String(200), nullable=False, index=True)
    city = Column(String(100), nullable=False)
    country = Column(String(100), nullable=False)
    country_code = Column(String(2), nullable=True)
    time_zone = Column(String(50), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    # Relationships - flights departing from and arriving at this airport
    departure_flights = relationship(
        "Flight",
        foreign_keys="Flight.departure_airport_id",
        back_populates="departure_airport",
        lazy="select"
    )
    arrival_flights = relationship(
        "Flight",
        foreign_keys="Flight.arrival_airport_id",
        back_populates="arrival_airport",
        lazy="select"
    )

    def __repr__(self):
        return f"<Airport(id={self.id}, code='{self.airport_code}', name='{self.airport_name}')>"


class Seat(TimestampMixin, Base):
    """Cabin seat, shared by every flight that offers it."""
    __tablename__ = 'seats'

    id = Column(Integer, primary_key=True, autoincrement=True)
    seat_number = Column(String(5), unique=True, nullable=False, index=True)  # e.g. '12A'
    seat_class = Column(Enum(SeatClass), nullable=False, index=True)

    flight_seats = relationship("FlightSeat", back_populates="seat", lazy="select")

    def __repr__(self):
        return f"<Seat(id={self.id}, number='{self.seat_number}', class={self.seat_class})>"


class Flight(TimestampMixin, Base):
    """
    Flight model representing scheduled flights.

    ``duration_minutes`` is derived from the departure and arrival times by
    the flight service and stored for listing queries.
    """
    __tablename__ = 'flights'

    id = Column(Integer, primary_key=True, autoincrement=True)
    flight_number = Column(String(10), unique=True, nullable=False, index=True)
    departure_airport_id = Column(Integer, ForeignKey('airports.id'), nullable=False, index=True)
    arrival_airport_id = Column(Integer, ForeignKey('airports.id'), nullable=False, index=True)
    departure_time = Column(DateTime, nullable=False, index=True)
    arrival_time = Column(DateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    status = Column(Enum(FlightStatus), nullable=False, default=FlightStatus.SCHEDULED, index=True)
    gate_number = Column(String(10), nullable=True)
    terminal = Column(String(10), nullable=True)
    aircraft_type = Column(String(50), nullable=True)

    departure_airport = relationship(
        "Airport",
        foreign_keys=[departure_airport_id],
        back_populates="departure_flights",
        lazy="joined"
    )
    arrival_airport = relationship(
        "Airport",
        foreign_keys=[arrival_airport_id],
        back_populates="arrival_flights",
        lazy="joined"
    )
    flight_seats = relationship("FlightSeat", back_populates="flight", cascade="all, delete-orphan", lazy="select")
    bookings = relationship("Booking", back_populates="flight", lazy="select")

    def __repr__(self):
        return f"<Flight(id={self.id}, number='{self.flight_number}', status={self.status})>"


class FlightSeat(TimestampMixin, Base):
    """
    A seat offered on a flight.

    Bookable only while ``is_available`` is true and ``is_occupied`` is false.
    The inventory service flips both flags together.
    """
    __tablename__ = 'flight_seats'
    __table_args__ = (
        UniqueConstraint('flight_id', 'seat_id', name='uq_flight_seat'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    flight_id = Column(Integer, ForeignKey('flights.id'), nullable=False, index=True)
    seat_id = Column(Integer, ForeignKey('seats.id'), nullable=False, index=True)
    price = Column(Numeric(10, 2), nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)
    is_occupied = Column(Boolean, nullable=False, default=False)

    flight = relationship("Flight", back_populates="flight_seats", lazy="joined")
    seat = relationship("Seat", back_populates="flight_seats", lazy="joined")
    tickets = relationship("Ticket", back_populates="flight_seat", lazy="select")

    @property
    def is_bookable(self) -> bool:
        return bool(self.is_available) and not self.is_occupied

    def __repr__(self):
        return (
            f"<FlightSeat(id={self.id}, flight_id={self.flight_id}, seat_id={self.seat_id}, "
            f"available={self.is_available}, occupied={self.is_occupied})>"
        )


class Booking(TimestampMixin, Base):
    """
    Booking model representing a user's reservation on one flight.

    Owns its tickets: deleting a booking deletes them.
    """
    __tablename__ = 'bookings'

    id = Column(Integer, primary_key=True, autoincrement=True)
    booking_reference = Column(String(20), unique=True, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    flight_id = Column(Integer, ForeignKey('flights.id'), nullable=False, index=True)
    total_amount = Column(Numeric(12, 2), nullable=False)
    booking_status = Column(Enum(BookingStatus), nullable=False, default=BookingStatus.PENDING, index=True)
    payment_status = Column(Enum(PaymentStatus), nullable=False, default=PaymentStatus.PENDING, index=True)
    booking_date = Column(DateTime, nullable=False, default=datetime.now, index=True)
    payment_date = Column(DateTime, nullable=True)

    user = relationship("User", back_populates="bookings", lazy="joined")
    flight = relationship("Flight", back_populates="bookings", lazy="joined")
    tickets = relationship(
        "Ticket",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="Ticket.id",
        lazy="select"
    )

    def __repr__(self):
        return f"<Booking(id={self.id}, reference='{self.booking_reference}', status={self.booking_status})>"


class Ticket(TimestampMixin, Base):
    """Per-passenger ticket within a booking, bound to one flight seat."""
    __tablename__ = 'tickets'

    id = Column(Integer, primary_key=True, autoincrement=True)
    ticket_number = Column(String(20), unique=True, nullable=False, index=True)
    booking_id = Column(Integer, ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False, index=True)
    flight_seat_id = Column(Integer, ForeignKey('flight_seats.id'), nullable=False, index=True)
    passenger_name = Column(String(200), nullable=False)
    passenger_email = Column(String(120), nullable=True)
    passenger_phone = Column(String(30), nullable=True)
    passport_number = Column(String(30), nullable=True)
    ticket_status = Column(Enum(TicketStatus), nullable=False, default=TicketStatus.ISSUED, index=True)
    check_in_time = Column(DateTime, nullable=True)
    boarding_time = Column(DateTime, nullable=True)

    booking = relationship("Booking", back_populates="tickets", lazy="joined")
    flight_seat = relationship("FlightSeat", back_populates="tickets", lazy="joined")

    def __repr__(self):
        return f"<Ticket(id={self.id}, number='{self.ticket_number}', status={self.ticket_status})>"


# Composite indexes for common query patterns
Index('idx_flight_route_date', Flight.departure_airport_id, Flight.arrival_airport_id, Flight.departure_time)
Index('idx_flight_seat_availability', FlightSeat.flight_id, FlightSeat.is_available)
Index('idx_booking_user_date', Booking.user_id, Booking.booking_date)


def create_all_tables(engine):
    """
    Create all database tables using the provided SQLAlchemy engine.

    Args:
        engine: SQLAlchemy engine instance
    """
    Base.metadata.create_all(bind=engine)


def drop_all_tables(engine):
    """
    Drop all database tables using the provided SQLAlchemy engine.

    Args:
        engine: SQLAlchemy engine instance
    """
    Base.metadata.drop_all(bind=engine)
