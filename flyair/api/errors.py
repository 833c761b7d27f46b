"""
Translation of errors into the uniform response envelope.

This is the only place business errors become HTTP responses.
"""

import logging

from flask import Flask, jsonify
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

from ..exceptions import FlyAirError, ValidationFailedError
from ..models.common import ApiResponse

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str, error=None, errors=None):
    body = ApiResponse.fail(message, error=error, errors=errors)
    return jsonify(body.model_dump(mode="json", exclude_none=True)), status_code


def validation_errors(exc: ValidationError) -> dict:
    """Flatten pydantic errors into field -> message."""
    errors = {}
    for item in exc.errors():
        field = ".".join(str(part) for part in item.get("loc", ())) or "body"
        errors.setdefault(field, item.get("msg", "Invalid value"))
    return errors


def register_error_handlers(app: Flask) -> None:

    @app.errorhandler(ValidationFailedError)
    def handle_validation_failed(e: ValidationFailedError):
        logger.warning(f"Validation failed: {e.errors}")
        return error_response(e.status_code, e.message, errors=e.errors)

    @app.errorhandler(FlyAirError)
    def handle_business_error(e: FlyAirError):
        if e.status_code >= 500:
            logger.error(f"{e.title}: {e.message}")
        else:
            logger.warning(f"{e.title}: {e.message}")
        return error_response(e.status_code, e.message, error=e.title)

    @app.errorhandler(ValidationError)
    def handle_pydantic_error(e: ValidationError):
        errors = validation_errors(e)
        logger.warning(f"Validation failed: {errors}")
        return error_response(400, "Validation failed", errors=errors)

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return error_response(e.code or 500, e.description or e.name, error=e.name)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception(f"Unhandled error: {e}")
        return error_response(500, "An unexpected error occurred", error="Internal server error")
