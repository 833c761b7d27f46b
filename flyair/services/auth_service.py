"""
Registration, login (with optional TOTP second step) and token refresh.
"""

import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..database.models import User
from ..exceptions import AccessDeniedError, BadRequestError, UnauthorizedError
from ..models.enums import Role
from ..models.user import AuthenticationResponse, RegisterRequest, UserModel
from .notification import NotificationService
from .security import (
    REFRESH_TOKEN,
    TWO_FACTOR_TOKEN,
    JwtService,
    Principal,
    TwoFactorService,
    hash_password,
    verify_password,
)
from .user_service import UserService

logger = logging.getLogger(__name__)


class AuthService:
    """
    Authentication workflows.

    Login failures never reveal whether the username or the password was
    wrong; both surface as "Invalid credentials".
    """

    def __init__(
        self,
        session: Session,
        users: UserService,
        jwt_service: JwtService,
        two_factor: TwoFactorService,
        notifications: NotificationService,
    ):
        self.session = session
        self.users = users
        self.jwt = jwt_service
        self.two_factor = two_factor
        self.notifications = notifications

    def _tokens(self, user: User, message: Optional[str] = None) -> AuthenticationResponse:
        return AuthenticationResponse(
            access_token=self.jwt.generate_access_token(user.username, user.role),
            refresh_token=self.jwt.generate_refresh_token(user.username, user.role),
            expires_in=self.jwt.expires_in,
            user=UserModel.model_validate(user),
            message=message,
        )

    def _create_user(self, request: RegisterRequest, role: Role) -> User:
        if self.users.username_taken(request.username):
            raise BadRequestError("Username is already taken")
        if self.users.email_taken(request.email):
            raise BadRequestError("Email is already taken")

        user = User(
            username=request.username,
            email=request.email.lower(),
            password_hash=hash_password(request.password),
            first_name=request.first_name,
            last_name=request.last_name,
            phone_number=request.phone_number,
            role=role,
        )
        self.session.add(user)
        self.session.flush()
        logger.info(f"Registered {role.value} account {user.username} (id={user.id})")
        return user

    def register(self, request: RegisterRequest, principal: Optional[Principal] = None) -> AuthenticationResponse:
        """
        Create an account and log it in.

        The account is a USER unless ``request.role`` says otherwise; only an
        admin principal may register another admin this way.
        """
        role = request.role or Role.USER
        if role == Role.ADMIN and (principal is None or not principal.is_admin):
            raise AccessDeniedError("Only administrators can create admin accounts")

        user = self._create_user(request, role)
        self.notifications.send_welcome_email(user.email, user.full_name)
        return self._tokens(user, message="Registration successful")

    def register_admin(self, request: RegisterRequest) -> AuthenticationResponse:
        """Bootstrap the first administrator. Fails once any admin exists."""
        admins = self.session.scalar(select(func.count(User.id)).where(User.role == Role.ADMIN)) or 0
        if admins:
            raise BadRequestError("Admin user already exists. Use an admin account to create more admins.")

        user = self._create_user(request, Role.ADMIN)
        self.notifications.send_welcome_email(user.email, user.full_name)
        return self._tokens(user, message="Admin registration successful")

    def create_admin(self, request: RegisterRequest, principal: Principal) -> User:
        principal.require_admin()
        return self._create_user(request, Role.ADMIN)

    def login(self, username: str, password: str) -> AuthenticationResponse:
        """
        Check credentials.

        Returns full tokens, or, when the account has 2FA enabled, a
        short-lived temporary token to exchange in ``verify_two_factor``.
        """
        user = self.users.find_by_username_or_email(username)
        if user is None or not verify_password(password, user.password_hash):
            logger.warning(f"Failed login for '{username}'")
            raise UnauthorizedError("Invalid credentials")
        if not user.is_enabled:
            raise UnauthorizedError("Account is disabled")
        if not user.is_account_non_locked:
            raise UnauthorizedError("Account is locked")
        if not user.is_account_non_expired or not user.is_credentials_non_expired:
            raise UnauthorizedError("Account has expired")

        if user.is_two_factor_enabled:
            logger.info(f"Two-factor step required for {user.username}")
            return AuthenticationResponse(
                requires_two_factor=True,
                temporary_token=self.jwt.generate_two_factor_token(user.username, user.role),
                message="Two-factor authentication required",
            )

        logger.info(f"User {user.username} logged in")
        return self._tokens(user, message="Login successful")

    def verify_two_factor(self, temporary_token: str, code: str) -> AuthenticationResponse:
        try:
            claims = self.jwt.decode(temporary_token, TWO_FACTOR_TOKEN)
        except UnauthorizedError:
            raise UnauthorizedError("Invalid temporary token")

        user = self.users.find_by_username_or_email(claims["sub"])
        if user is None or not user.is_enabled:
            raise UnauthorizedError("Invalid temporary token")
        if not self.two_factor.verify_code(user.two_factor_secret, code):
            logger.warning(f"Invalid two-factor code for {user.username}")
            raise UnauthorizedError("Invalid verification code")

        logger.info(f"User {user.username} logged in with two-factor authentication")
        return self._tokens(user, message="Login successful")

    def refresh(self, refresh_token: Optional[str]) -> AuthenticationResponse:
        if not refresh_token:
            raise UnauthorizedError("Invalid refresh token")
        try:
            claims = self.jwt.decode(refresh_token, REFRESH_TOKEN)
        except UnauthorizedError:
            raise UnauthorizedError("Invalid refresh token")

        user = self.users.find_by_username_or_email(claims["sub"])
        if user is None or not user.is_enabled:
            raise UnauthorizedError("Invalid refresh token")
        return self._tokens(user, message="Token refreshed")

    def logout(self, principal: Principal) -> None:
        # Tokens are stateless; the client discards them.
        logger.info(f"User {principal.username} logged out")
