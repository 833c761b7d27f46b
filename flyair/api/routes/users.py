"""User profile and administration endpoints."""

from flask import Blueprint

from ...models import (
    ChangePasswordRequest,
    Role,
    TwoFactorCodeRequest,
    UpdateUserRequest,
    UserModel,
)
from ..auth import admin_required, current_principal, login_required
from ..helpers import enum_arg, page_args, parse_body, search_term, services, success, to_models, to_page

users_bp = Blueprint('users', __name__)


@users_bp.route('/me')
@login_required
def get_me():
    return success(UserModel.model_validate(services().users.current(current_principal())))


@users_bp.route('/me', methods=['PUT'])
@login_required
def update_me():
    user_service = services().users
    me = user_service.current(current_principal())
    user = user_service.update(me.id, parse_body(UpdateUserRequest))
    return success(UserModel.model_validate(user), "Profile updated successfully")


@users_bp.route('/me/change-password', methods=['POST'])
@login_required
def change_password():
    services().users.change_password(current_principal(), parse_body(ChangePasswordRequest))
    return success(message="Password changed successfully")


@users_bp.route('/me/2fa/enable', methods=['POST'])
@login_required
def enable_two_factor():
    setup = services().users.enable_two_factor(current_principal())
    return success(setup, "Scan the provisioning URI with your authenticator app, then confirm a code")


@users_bp.route('/me/2fa/confirm', methods=['POST'])
@login_required
def confirm_two_factor():
    code = parse_body(TwoFactorCodeRequest).code
    user = services().users.confirm_two_factor(current_principal(), code)
    return success(UserModel.model_validate(user), "Two-factor authentication enabled")


@users_bp.route('/me/2fa/disable', methods=['POST'])
@login_required
def disable_two_factor():
    code = parse_body(TwoFactorCodeRequest).code
    user = services().users.disable_two_factor(current_principal(), code)
    return success(UserModel.model_validate(user), "Two-factor authentication disabled")


@users_bp.route('')
@admin_required
def list_users():
    page, size = page_args()
    return success(to_page(UserModel, services().users.list(page, size)))


@users_bp.route('/search')
@admin_required
def search_users():
    page, size = page_args()
    return success(to_page(UserModel, services().users.search(search_term(), page, size)))


@users_bp.route('/role/<role>')
@admin_required
def list_users_by_role(role):
    return success(to_models(UserModel, services().users.list_by_role(enum_arg(Role, role))))


@users_bp.route('/stats')
@admin_required
def user_stats():
    return success(services().users.stats())


@users_bp.route('/<int:user_id>')
@admin_required
def get_user(user_id):
    return success(UserModel.model_validate(services().users.get(user_id)))


@users_bp.route('/<int:user_id>', methods=['PUT'])
@admin_required
def update_user(user_id):
    user = services().users.update(user_id, parse_body(UpdateUserRequest))
    return success(UserModel.model_validate(user), "User updated successfully")


@users_bp.route('/<int:user_id>', methods=['DELETE'])
@admin_required
def delete_user(user_id):
    services().users.delete(user_id)
    return success(message="User deleted successfully")
