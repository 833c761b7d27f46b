"""
Shared fixtures: an in-memory SQLite database, a controllable clock, the
service container and a small catalog (two airports, three seats, one
flight with priced seats, one customer and one admin).
"""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from flyair.database.config import DatabaseConfig
from flyair.database.models import Airport, Flight, FlightSeat, Seat, User
from flyair.models.enums import FlightStatus, Role, SeatClass
from flyair.services import EmailSender, NotificationDispatcher, Outbox, Principal, Services, hash_password
from flyair.utils.config import AppConfig

NOW = datetime(2030, 1, 15, 12, 0, 0)
PASSWORD = "password123"


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, now: datetime) -> None:
        self.now = now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class RecordingSender(EmailSender):
    """Sender that records messages, optionally failing the first ``failures`` sends."""

    def __init__(self, config: AppConfig, failures: int = 0):
        super().__init__(config)
        self.failures = failures
        self.sent = []
        self.calls = 0

    def send(self, message):
        self.calls += 1
        if self.failures > 0:
            self.failures -= 1
            raise ConnectionRefusedError("SMTP server unavailable")
        self.sent.append(message)


@pytest.fixture
def app_config():
    """Configuration with an in-memory database and mail disabled."""
    return AppConfig(
        database_url="sqlite:///:memory:",
        jwt_secret="test-secret-key-for-flyair-suite",
        mail_enabled=False,
    )


@pytest.fixture
def db_config(app_config):
    """Initialized in-memory database with all tables."""
    config = DatabaseConfig(database_url=app_config.database_url)
    config.initialize()
    config.create_tables()
    yield config
    config.close()


@pytest.fixture
def session(db_config):
    """Database session for testing."""
    session = db_config.get_session()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def outbox():
    return Outbox()


@pytest.fixture
def services(session, app_config, outbox, clock):
    """All services bound to the test session and clock."""
    return Services(session, app_config, outbox=outbox, clock=clock)


@pytest.fixture
def sender(app_config):
    return RecordingSender(app_config)


@pytest.fixture
def dispatcher(sender, app_config):
    return NotificationDispatcher(sender, max_attempts=app_config.notification_max_attempts)


@pytest.fixture
def cgk(session):
    """Jakarta airport."""
    airport = Airport(
        airport_code="CGK",
        airport_name="Soekarno-Hatta International Airport",
        city="Jakarta",
        country="Indonesia",
        country_code="ID",
        time_zone="Asia/Jakarta",
    )
    session.add(airport)
    session.flush()
    return airport


@pytest.fixture
def dps(session):
    """Bali airport."""
    airport = Airport(
        airport_code="DPS",
        airport_name="I Gusti Ngurah Rai International Airport",
        city="Denpasar",
        country="Indonesia",
        country_code="ID",
        time_zone="Asia/Makassar",
    )
    session.add(airport)
    session.flush()
    return airport


@pytest.fixture
def seats(session):
    """One business and two economy seats."""
    rows = [
        Seat(seat_number="1A", seat_class=SeatClass.BUSINESS),
        Seat(seat_number="12A", seat_class=SeatClass.ECONOMY),
        Seat(seat_number="12B", seat_class=SeatClass.ECONOMY),
    ]
    session.add_all(rows)
    session.flush()
    return rows


@pytest.fixture
def flight(session, cgk, dps):
    """Scheduled flight departing five days after NOW."""
    departure = NOW + timedelta(days=5)
    flight = Flight(
        flight_number="FA101",
        departure_airport=cgk,
        arrival_airport=dps,
        departure_time=departure,
        arrival_time=departure + timedelta(hours=2),
        duration_minutes=120,
        status=FlightStatus.SCHEDULED,
        aircraft_type="Airbus A320",
    )
    session.add(flight)
    session.flush()
    return flight


@pytest.fixture
def flight_seats(session, flight, seats):
    """Every sample seat offered on the sample flight: 1A at 250, 12A and 12B at 100."""
    prices = [Decimal("250.00"), Decimal("100.00"), Decimal("100.00")]
    rows = [
        FlightSeat(flight=flight, seat=seat, price=price, is_available=True, is_occupied=False)
        for seat, price in zip(seats, prices)
    ]
    session.add_all(rows)
    session.flush()
    return rows


@pytest.fixture
def customer(session):
    user = User(
        username="jdoe",
        email="jdoe@example.com",
        password_hash=hash_password(PASSWORD),
        first_name="John",
        last_name="Doe",
        role=Role.USER,
    )
    session.add(user)
    session.flush()
    return user


@pytest.fixture
def admin(session):
    user = User(
        username="admin",
        email="admin@flyair.test",
        password_hash=hash_password(PASSWORD),
        first_name="Ada",
        last_name="Admin",
        role=Role.ADMIN,
    )
    session.add(user)
    session.flush()
    return user


@pytest.fixture
def customer_principal(customer):
    return Principal(username=customer.username, role=Role.USER)


@pytest.fixture
def admin_principal(admin):
    return Principal(username=admin.username, role=Role.ADMIN)
