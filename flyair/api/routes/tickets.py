"""Ticket endpoints."""

from flask import Blueprint

from ...models import CreateTicketRequest, TicketModel
from ..auth import admin_required, current_principal, login_required
from ..helpers import page_args, parse_body, search_term, services, success, to_models, to_page

tickets_bp = Blueprint('tickets', __name__)


def _owned_ticket(ticket_id):
    """Load a ticket the caller may act on (owner of its booking, or admin)."""
    ticket = services().tickets.get(ticket_id)
    services().bookings.get(ticket.booking_id, current_principal())
    return ticket


@tickets_bp.route('', methods=['POST'])
@admin_required
def issue_ticket():
    request_data = parse_body(CreateTicketRequest)
    ticket = services().tickets.issue(request_data.booking_id, request_data.flight_seat_id, request_data)
    return success(TicketModel.model_validate(ticket), "Ticket issued successfully", 201)


@tickets_bp.route('/my')
@login_required
def my_tickets():
    return success(to_models(TicketModel, services().tickets.list_for_user(current_principal())))


@tickets_bp.route('/booking/<int:booking_id>')
@login_required
def tickets_for_booking(booking_id):
    services().bookings.get(booking_id, current_principal())
    return success(to_models(TicketModel, services().tickets.list_for_booking(booking_id)))


@tickets_bp.route('/number/<ticket_number>')
@login_required
def get_ticket_by_number(ticket_number):
    ticket = services().tickets.get_by_number(ticket_number)
    services().bookings.get(ticket.booking_id, current_principal())
    return success(TicketModel.model_validate(ticket))


@tickets_bp.route('/<int:ticket_id>')
@login_required
def get_ticket(ticket_id):
    return success(TicketModel.model_validate(_owned_ticket(ticket_id)))


@tickets_bp.route('/<int:ticket_id>/check-in', methods=['POST'])
@login_required
def check_in(ticket_id):
    _owned_ticket(ticket_id)
    ticket = services().tickets.check_in(ticket_id)
    return success(TicketModel.model_validate(ticket), "Checked in successfully")


@tickets_bp.route('/<int:ticket_id>/board', methods=['POST'])
@admin_required
def board(ticket_id):
    ticket = services().tickets.board(ticket_id)
    return success(TicketModel.model_validate(ticket), "Passenger boarded successfully")


@tickets_bp.route('/<int:ticket_id>/cancel', methods=['POST'])
@login_required
def cancel_ticket(ticket_id):
    _owned_ticket(ticket_id)
    ticket = services().tickets.cancel(ticket_id)
    return success(TicketModel.model_validate(ticket), "Ticket cancelled successfully")


@tickets_bp.route('')
@admin_required
def list_tickets():
    page, size = page_args()
    return success(to_page(TicketModel, services().tickets.list(page, size)))


@tickets_bp.route('/search')
@admin_required
def search_tickets():
    page, size = page_args()
    return success(to_page(TicketModel, services().tickets.search(search_term(), page, size)))
