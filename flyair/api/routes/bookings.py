"""Booking endpoints."""

from flask import Blueprint

from ...models import BookingModel, CreateBookingRequest, UpdateBookingRequest
from ..auth import admin_required, current_principal, login_required
from ..helpers import page_args, parse_body, search_term, services, success, to_models, to_page

bookings_bp = Blueprint('bookings', __name__)


@bookings_bp.route('', methods=['POST'])
@login_required
def create_booking():
    booking = services().bookings.create(parse_body(CreateBookingRequest), current_principal())
    return success(BookingModel.model_validate(booking), "Booking created successfully", 201)


@bookings_bp.route('/my')
@login_required
def my_bookings():
    return success(to_models(BookingModel, services().bookings.list_for_user(current_principal())))


@bookings_bp.route('/reference/<reference>')
@login_required
def get_booking_by_reference(reference):
    booking = services().bookings.get_by_reference(reference, current_principal())
    return success(BookingModel.model_validate(booking))


@bookings_bp.route('/<int:booking_id>')
@login_required
def get_booking(booking_id):
    return success(BookingModel.model_validate(services().bookings.get(booking_id, current_principal())))


@bookings_bp.route('/<int:booking_id>/cancel', methods=['POST'])
@login_required
def cancel_booking(booking_id):
    booking = services().bookings.cancel(booking_id, current_principal())
    return success(BookingModel.model_validate(booking), "Booking cancelled successfully")


@bookings_bp.route('')
@admin_required
def list_bookings():
    page, size = page_args()
    return success(to_page(BookingModel, services().bookings.list(page, size)))


@bookings_bp.route('/search')
@admin_required
def search_bookings():
    page, size = page_args()
    return success(to_page(BookingModel, services().bookings.search(search_term(), page, size)))


@bookings_bp.route('/<int:booking_id>/status', methods=['PATCH'])
@admin_required
def update_booking_status(booking_id):
    booking = services().bookings.update_status(booking_id, parse_body(UpdateBookingRequest))
    return success(BookingModel.model_validate(booking), "Booking status updated successfully")


@bookings_bp.route('/stats')
@admin_required
def booking_stats():
    return success(services().bookings.stats())
