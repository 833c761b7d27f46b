"""Seat catalog endpoints."""

from flask import Blueprint

from ...models import CreateSeatRequest, SeatClass, SeatModel
from ..auth import admin_required
from ..helpers import enum_arg, page_args, parse_body, search_term, services, success, to_models, to_page

seats_bp = Blueprint('seats', __name__)


@seats_bp.route('')
def list_seats():
    page, size = page_args()
    return success(to_page(SeatModel, services().seats.list(page, size)))


@seats_bp.route('/search')
def search_seats():
    page, size = page_args()
    return success(to_page(SeatModel, services().seats.search(search_term(), page, size)))


@seats_bp.route('/class/<seat_class>')
def list_seats_by_class(seat_class):
    return success(to_models(SeatModel, services().seats.list_by_class(enum_arg(SeatClass, seat_class))))


@seats_bp.route('/<int:seat_id>')
def get_seat(seat_id):
    return success(SeatModel.model_validate(services().seats.get(seat_id)))


@seats_bp.route('', methods=['POST'])
@admin_required
def create_seat():
    seat = services().seats.create(parse_body(CreateSeatRequest))
    return success(SeatModel.model_validate(seat), "Seat created successfully", 201)


@seats_bp.route('/<int:seat_id>', methods=['PUT'])
@admin_required
def update_seat(seat_id):
    seat = services().seats.update(seat_id, parse_body(CreateSeatRequest))
    return success(SeatModel.model_validate(seat), "Seat updated successfully")


@seats_bp.route('/<int:seat_id>', methods=['DELETE'])
@admin_required
def delete_seat(seat_id):
    services().seats.delete(seat_id)
    return success(message="Seat deleted successfully")
