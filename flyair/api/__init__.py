"""Flask app factory for the FlyAir booking API."""

import logging
from datetime import datetime
from typing import Callable, Optional

from flask import Flask, g

from ..database.config import DatabaseConfig
from ..services import EmailSender, NotificationDispatcher, Outbox, Services
from ..utils.config import AppConfig, get_config
from .errors import register_error_handlers

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[AppConfig] = None,
    db_config: Optional[DatabaseConfig] = None,
    dispatcher: Optional[NotificationDispatcher] = None,
    clock: Callable[[], datetime] = datetime.now,
    start_dispatcher: bool = False,
) -> Flask:
    """Create and configure the Flask application.

    Args:
        config: Application configuration (loaded from the environment if omitted)
        db_config: Database configuration (built from ``config.database_url`` if omitted)
        dispatcher: Notification queue; one with an SMTP sender is built if omitted
        clock: Current-time source handed to every service
        start_dispatcher: Run the notification worker thread

    Returns:
        Flask application instance
    """
    config = config or get_config()
    db_config = db_config or DatabaseConfig(database_url=config.database_url)
    db_config.initialize()
    dispatcher = dispatcher or NotificationDispatcher(
        EmailSender(config), max_attempts=config.notification_max_attempts
    )

    app = Flask(__name__)
    app.config["DEBUG"] = config.debug
    app.config["JSON_SORT_KEYS"] = False
    app.extensions["flyair"] = {
        "config": config,
        "db": db_config,
        "dispatcher": dispatcher,
        "clock": clock,
    }

    register_request_lifecycle(app)
    register_error_handlers(app)
    register_blueprints(app)

    if start_dispatcher:
        dispatcher.start()

    logger.info(f"FlyAir API created ({db_config.db_type})")
    return app


def register_request_lifecycle(app: Flask) -> None:
    """One session and one outbox per request.

    Successful responses commit and hand staged notifications to the
    dispatcher; error responses roll back and drop them.
    """
    state = app.extensions["flyair"]

    @app.before_request
    def open_unit_of_work():
        g.session = state["db"].get_session()
        g.outbox = Outbox()
        g.services = Services(g.session, state["config"], outbox=g.outbox, clock=state["clock"])

    @app.after_request
    def finish_unit_of_work(response):
        session = g.get("session")
        if session is None:
            return response

        if response.status_code < 400:
            session.commit()
            released = g.outbox.release(state["dispatcher"])
            if released:
                logger.debug(f"Queued {released} notification(s)")
        else:
            session.rollback()
            g.outbox.discard()
        return response

    @app.teardown_request
    def close_unit_of_work(exc):
        session = g.pop("session", None)
        if session is None:
            return
        if exc is not None:
            session.rollback()
            outbox = g.get("outbox")
            if outbox is not None:
                outbox.discard()
        session.close()


def register_blueprints(app: Flask) -> None:
    """Register application blueprints under /api."""
    from .routes.auth import auth_bp
    from .routes.users import users_bp
    from .routes.airports import airports_bp
    from .routes.seats import seats_bp
    from .routes.flights import flights_bp
    from .routes.flight_seats import flight_seats_bp
    from .routes.bookings import bookings_bp
    from .routes.tickets import tickets_bp
    from .routes.dashboard import dashboard_bp, search_bp

    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(users_bp, url_prefix="/api/users")
    app.register_blueprint(airports_bp, url_prefix="/api/airports")
    app.register_blueprint(seats_bp, url_prefix="/api/seats")
    app.register_blueprint(flights_bp, url_prefix="/api/flights")
    app.register_blueprint(flight_seats_bp, url_prefix="/api/flight-seats")
    app.register_blueprint(bookings_bp, url_prefix="/api/bookings")
    app.register_blueprint(tickets_bp, url_prefix="/api/tickets")
    app.register_blueprint(dashboard_bp, url_prefix="/api/dashboard")
    app.register_blueprint(search_bp, url_prefix="/api/search")


__all__ = ["create_app"]
