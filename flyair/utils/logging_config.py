"""Console logging setup shared by the CLI and the Flask app."""

import logging

from rich.logging import RichHandler

LOG_FORMAT = "%(name)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Route the root logger through a single rich handler."""
    root = logging.getLogger()

    # Remove any pre-existing handlers to avoid duplicates
    if root.hasHandlers():
        root.handlers.clear()

    handler = RichHandler(rich_tracebacks=True, show_path=False)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(level.upper())

    # SQL echo is controlled by DatabaseConfig, keep the engine logger quiet
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
