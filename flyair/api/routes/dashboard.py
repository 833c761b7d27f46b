"""Admin dashboard and global search endpoints."""

from flask import Blueprint

from ..auth import admin_required, current_principal, login_required
from ..helpers import search_term, services, success

dashboard_bp = Blueprint('dashboard', __name__)
search_bp = Blueprint('search', __name__)


@dashboard_bp.route('/stats')
@admin_required
def dashboard_stats():
    return success(services().dashboard.stats())


@search_bp.route('')
@login_required
def global_search():
    return success(services().dashboard.search(search_term(), current_principal()))
