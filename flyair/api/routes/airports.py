"""Airport catalog endpoints."""

from flask import Blueprint

from ...models import AirportModel, CreateAirportRequest
from ..auth import admin_required
from ..helpers import page_args, parse_body, search_term, services, success, to_models, to_page

airports_bp = Blueprint('airports', __name__)


@airports_bp.route('')
def list_airports():
    page, size = page_args()
    return success(to_page(AirportModel, services().airports.list(page, size)))


@airports_bp.route('/search')
def search_airports():
    page, size = page_args()
    return success(to_page(AirportModel, services().airports.search(search_term(), page, size)))


@airports_bp.route('/countries')
def list_countries():
    return success(services().airports.list_countries())


@airports_bp.route('/country/<country>')
def list_airports_by_country(country):
    return success(to_models(AirportModel, services().airports.list_by_country(country)))


@airports_bp.route('/code/<code>')
def get_airport_by_code(code):
    return success(AirportModel.model_validate(services().airports.get_by_code(code)))


@airports_bp.route('/<int:airport_id>')
def get_airport(airport_id):
    return success(AirportModel.model_validate(services().airports.get(airport_id)))


@airports_bp.route('', methods=['POST'])
@admin_required
def create_airport():
    airport = services().airports.create(parse_body(CreateAirportRequest))
    return success(AirportModel.model_validate(airport), "Airport created successfully", 201)


@airports_bp.route('/<int:airport_id>', methods=['PUT'])
@admin_required
def update_airport(airport_id):
    airport = services().airports.update(airport_id, parse_body(CreateAirportRequest))
    return success(AirportModel.model_validate(airport), "Airport updated successfully")


@airports_bp.route('/<int:airport_id>', methods=['DELETE'])
@admin_required
def delete_airport(airport_id):
    services().airports.delete(airport_id)
    return success(message="Airport deleted successfully")
