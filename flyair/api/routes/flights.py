"""Flight catalog endpoints."""

from datetime import date

from flask import Blueprint, request

from ...exceptions import ValidationFailedError
from ...models import (
    CreateFlightRequest,
    FlightModel,
    FlightSearchRequest,
    FlightStatus,
    UpdateFlightRequest,
    UpdateFlightStatusRequest,
)
from ..auth import admin_required
from ..helpers import datetime_arg, enum_arg, page_args, parse_body, services, success, to_models, to_page

flights_bp = Blueprint('flights', __name__)


@flights_bp.route('')
def list_flights():
    page, size = page_args()
    return success(to_page(FlightModel, services().flights.list(page, size)))


@flights_bp.route('/search')
def search_flights():
    """Search by route and date (?from=CGK&to=DPS&date=2030-01-01) or by ?q=."""
    departure_date = None
    if request.args.get('date'):
        try:
            departure_date = date.fromisoformat(request.args['date'])
        except ValueError:
            raise ValidationFailedError("Validation failed", {"date": "Invalid ISO date"})

    criteria = FlightSearchRequest(
        departure_airport_code=request.args.get('from') or None,
        arrival_airport_code=request.args.get('to') or None,
        departure_date=departure_date,
        search_term=(request.args.get('q') or '').strip() or None,
    )
    page, size = page_args()
    return success(to_page(FlightModel, services().flights.search(criteria, page, size)))


@flights_bp.route('/upcoming')
def upcoming_flights():
    limit = request.args.get('limit', 20, type=int)
    return success(to_models(FlightModel, services().flights.list_upcoming(limit)))


@flights_bp.route('/status/<status>')
def flights_by_status(status):
    return success(to_models(FlightModel, services().flights.list_by_status(enum_arg(FlightStatus, status))))


@flights_bp.route('/range')
def flights_by_departure_range():
    start, end = datetime_arg('start'), datetime_arg('end')
    return success(to_models(FlightModel, services().flights.list_by_departure_range(start, end)))


@flights_bp.route('/airport/<int:airport_id>')
def flights_by_airport(airport_id):
    return success(to_models(FlightModel, services().flights.list_by_airport(airport_id)))


@flights_bp.route('/number/<flight_number>')
def get_flight_by_number(flight_number):
    return success(FlightModel.model_validate(services().flights.get_by_number(flight_number)))


@flights_bp.route('/stats')
@admin_required
def flight_stats():
    return success(services().flights.stats())


@flights_bp.route('/<int:flight_id>')
def get_flight(flight_id):
    return success(FlightModel.model_validate(services().flights.get(flight_id)))


@flights_bp.route('', methods=['POST'])
@admin_required
def create_flight():
    flight = services().flights.create(parse_body(CreateFlightRequest))
    return success(FlightModel.model_validate(flight), "Flight created successfully", 201)


@flights_bp.route('/<int:flight_id>', methods=['PUT'])
@admin_required
def update_flight(flight_id):
    flight = services().flights.update(flight_id, parse_body(UpdateFlightRequest))
    return success(FlightModel.model_validate(flight), "Flight updated successfully")


@flights_bp.route('/<int:flight_id>/status', methods=['PATCH'])
@admin_required
def update_flight_status(flight_id):
    status = parse_body(UpdateFlightStatusRequest).status
    flight = services().flights.update_status(flight_id, status)
    return success(FlightModel.model_validate(flight), "Flight status updated successfully")


@flights_bp.route('/<int:flight_id>', methods=['DELETE'])
@admin_required
def delete_flight(flight_id):
    services().flights.delete(flight_id)
    return success(message="Flight deleted successfully")
