"""Authentication endpoints."""

from flask import Blueprint

from ...models import (
    ForgotPasswordRequest,
    LoginRequest,
    RefreshTokenRequest,
    RegisterRequest,
    ResetPasswordRequest,
    TwoFactorVerificationRequest,
    UserModel,
)
from ..auth import admin_required, current_principal, login_required, optional_principal
from ..helpers import parse_body, services, success

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/register', methods=['POST'])
def register():
    request_data = parse_body(RegisterRequest)
    result = services().auth.register(request_data, principal=optional_principal())
    return success(result, "User registered successfully", 201)


@auth_bp.route('/register-admin', methods=['POST'])
def register_admin():
    result = services().auth.register_admin(parse_body(RegisterRequest))
    return success(result, "Admin registered successfully", 201)


@auth_bp.route('/admins', methods=['POST'])
@admin_required
def create_admin():
    user = services().auth.create_admin(parse_body(RegisterRequest), current_principal())
    return success(UserModel.model_validate(user), "Admin created successfully", 201)


@auth_bp.route('/login', methods=['POST'])
def login():
    request_data = parse_body(LoginRequest)
    result = services().auth.login(request_data.username, request_data.password)
    return success(result, result.message or "Login successful")


@auth_bp.route('/verify-2fa', methods=['POST'])
def verify_two_factor():
    request_data = parse_body(TwoFactorVerificationRequest)
    result = services().auth.verify_two_factor(request_data.temporary_token, request_data.code)
    return success(result, "Login successful")


@auth_bp.route('/refresh', methods=['POST'])
def refresh():
    request_data = parse_body(RefreshTokenRequest)
    return success(services().auth.refresh(request_data.refresh_token), "Token refreshed successfully")


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    services().auth.logout(current_principal())
    return success(message="Logout successful")


@auth_bp.route('/forgot-password', methods=['POST'])
def forgot_password():
    request_data = parse_body(ForgotPasswordRequest)
    services().users.request_password_reset(request_data.email)
    return success(message="Password reset email sent")


@auth_bp.route('/reset-password', methods=['POST'])
def reset_password():
    request_data = parse_body(ResetPasswordRequest)
    services().users.reset_password(request_data.token, request_data.new_password)
    return success(message="Password reset successfully")
