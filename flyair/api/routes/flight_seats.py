"""Flight-seat inventory endpoints."""

from flask import Blueprint, request

from ...models import (
    BulkFlightSeatResultModel,
    CreateBulkFlightSeatsRequest,
    CreateFlightSeatRequest,
    FlightSeatModel,
    SeatClass,
    UpdateFlightSeatRequest,
)
from ..auth import admin_required
from ..helpers import enum_arg, page_args, parse_body, search_term, services, success, to_models, to_page

flight_seats_bp = Blueprint('flight_seats', __name__)


@flight_seats_bp.route('', methods=['POST'])
@admin_required
def create_flight_seat():
    request_data = parse_body(CreateFlightSeatRequest)
    flight_seat = services().flight_seats.create(request_data.flight_id, request_data.seat_id, request_data.price)
    return success(FlightSeatModel.model_validate(flight_seat), "Seat assigned to flight successfully", 201)


@flight_seats_bp.route('/bulk', methods=['POST'])
@admin_required
def bulk_create_flight_seats():
    request_data = parse_body(CreateBulkFlightSeatsRequest)
    result = services().flight_seats.bulk_create(request_data.flight_id, request_data.seats)
    body = BulkFlightSeatResultModel.model_validate(result)
    message = f"{len(body.created)} seat(s) assigned, {len(body.skipped_seat_ids)} skipped"
    return success(body, message, 201)


@flight_seats_bp.route('/search')
def search_flight_seats():
    page, size = page_args()
    return success(to_page(FlightSeatModel, services().flight_seats.search(search_term(), page, size)))


@flight_seats_bp.route('/flight/<int:flight_id>')
def list_flight_seats(flight_id):
    return success(to_models(FlightSeatModel, services().flight_seats.list_for_flight(flight_id)))


@flight_seats_bp.route('/flight/<int:flight_id>/available')
def list_available_flight_seats(flight_id):
    seat_class = request.args.get('seat_class')
    seat_class = enum_arg(SeatClass, seat_class) if seat_class else None
    return success(to_models(FlightSeatModel, services().flight_seats.list_available(flight_id, seat_class)))


@flight_seats_bp.route('/<int:flight_seat_id>')
def get_flight_seat(flight_seat_id):
    return success(FlightSeatModel.model_validate(services().flight_seats.get(flight_seat_id)))


@flight_seats_bp.route('/<int:flight_seat_id>', methods=['PUT'])
@admin_required
def update_flight_seat(flight_seat_id):
    flight_seat = services().flight_seats.update(flight_seat_id, parse_body(UpdateFlightSeatRequest))
    return success(FlightSeatModel.model_validate(flight_seat), "Flight seat updated successfully")
