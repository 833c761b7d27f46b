"""
User account management: profile, password, password reset and 2FA setup.
"""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..database.models import User
from ..database.queries import Page, contains_ci, paginate
from ..exceptions import BadRequestError, ResourceNotFoundError
from ..models.enums import Role, TicketStatus
from ..models.user import (
    ChangePasswordRequest,
    TwoFactorSetupModel,
    UpdateUserRequest,
    UserStatsModel,
)
from .flight_seat_service import FlightSeatService
from .notification import NotificationService
from .security import Principal, TwoFactorService, hash_password, verify_password

logger = logging.getLogger(__name__)


class UserService:
    """
    Account operations for the authenticated principal and for admins.

    Args:
        session: Active SQLAlchemy session
        flight_seats: Releases seats held by a deleted user's tickets
        notifications: Stages password reset and 2FA emails
        two_factor: TOTP helper
        clock: Returns the current time; injectable for tests
        reset_token_ttl_hours: Password reset token lifetime
    """

    def __init__(
        self,
        session: Session,
        flight_seats: FlightSeatService,
        notifications: NotificationService,
        two_factor: TwoFactorService,
        clock: Callable[[], datetime] = datetime.now,
        reset_token_ttl_hours: int = 1,
    ):
        self.session = session
        self.flight_seats = flight_seats
        self.notifications = notifications
        self.two_factor = two_factor
        self.clock = clock
        self.reset_token_ttl = timedelta(hours=reset_token_ttl_hours)

    def get(self, user_id: int) -> User:
        user = self.session.get(User, user_id)
        if user is None:
            raise ResourceNotFoundError(f"User not found with id: {user_id}")
        return user

    def get_by_username(self, username: str) -> User:
        user = self.session.scalar(select(User).where(User.username == username))
        if user is None:
            raise ResourceNotFoundError(f"User not found: {username}")
        return user

    def find_by_username_or_email(self, identifier: str) -> Optional[User]:
        return self.session.scalar(
            select(User).where((User.username == identifier) | (User.email == identifier.lower()))
        )

    def current(self, principal: Principal) -> User:
        return self.get_by_username(principal.username)

    def username_taken(self, username: str, exclude_id: Optional[int] = None) -> bool:
        stmt = select(func.count(User.id)).where(User.username == username)
        if exclude_id is not None:
            stmt = stmt.where(User.id != exclude_id)
        return (self.session.scalar(stmt) or 0) > 0

    def email_taken(self, email: str, exclude_id: Optional[int] = None) -> bool:
        stmt = select(func.count(User.id)).where(func.lower(User.email) == email.lower())
        if exclude_id is not None:
            stmt = stmt.where(User.id != exclude_id)
        return (self.session.scalar(stmt) or 0) > 0

    def list(self, page: int = 0, size: int = 10) -> Page:
        return paginate(self.session, select(User).order_by(User.id), page, size)

    def search(self, term: str, page: int = 0, size: int = 10) -> Page:
        stmt = (
            select(User)
            .where(contains_ci(term, User.username, User.email, User.first_name, User.last_name))
            .order_by(User.id)
        )
        return paginate(self.session, stmt, page, size)

    def list_by_role(self, role: Role) -> List[User]:
        stmt = select(User).where(User.role == role).order_by(User.username)
        return list(self.session.scalars(stmt).all())

    def update(self, user_id: int, request: UpdateUserRequest) -> User:
        user = self.get(user_id)
        if request.username != user.username and self.username_taken(request.username, exclude_id=user_id):
            raise BadRequestError("Username is already taken")
        if request.email.lower() != user.email and self.email_taken(request.email, exclude_id=user_id):
            raise BadRequestError("Email is already taken")

        user.username = request.username
        user.email = request.email.lower()
        user.first_name = request.first_name
        user.last_name = request.last_name
        user.phone_number = request.phone_number
        self.session.flush()
        logger.info(f"Updated profile of user {user.username} (id={user.id})")
        return user

    def change_password(self, principal: Principal, request: ChangePasswordRequest) -> None:
        user = self.current(principal)
        if not verify_password(request.current_password, user.password_hash):
            raise BadRequestError("Current password is incorrect")

        user.password_hash = hash_password(request.new_password)
        self.session.flush()
        logger.info(f"Password changed for {user.username}")

    def request_password_reset(self, email: str) -> None:
        """Issue a reset token and stage the reset email."""
        user = self.session.scalar(select(User).where(func.lower(User.email) == email.lower()))
        if user is None:
            raise ResourceNotFoundError(f"User not found with email: {email}")

        user.reset_token = secrets.token_urlsafe(32)
        user.reset_token_expiry = self.clock() + self.reset_token_ttl
        self.session.flush()
        self.notifications.send_password_reset(user.email, user.reset_token, user.full_name)
        logger.info(f"Password reset requested for {user.username}")

    def reset_password(self, token: str, new_password: str) -> None:
        user = self.session.scalar(select(User).where(User.reset_token == token))
        if user is None:
            raise BadRequestError("Invalid reset token")
        if user.reset_token_expiry is None or user.reset_token_expiry < self.clock():
            raise BadRequestError("Reset token has expired")

        user.password_hash = hash_password(new_password)
        user.reset_token = None
        user.reset_token_expiry = None
        self.session.flush()
        logger.info(f"Password reset completed for {user.username}")

    def enable_two_factor(self, principal: Principal) -> TwoFactorSetupModel:
        """
        Start 2FA setup. The secret is stored but 2FA stays off until
        ``confirm_two_factor`` verifies a code generated from it.
        """
        user = self.current(principal)
        if user.is_two_factor_enabled:
            raise BadRequestError("Two-factor authentication is already enabled")

        user.two_factor_secret = self.two_factor.generate_secret()
        self.session.flush()
        logger.info(f"Two-factor setup initiated for {user.username}")
        return TwoFactorSetupModel(
            secret=user.two_factor_secret,
            provisioning_uri=self.two_factor.provisioning_uri(user.email, user.two_factor_secret),
        )

    def confirm_two_factor(self, principal: Principal, code: str) -> User:
        user = self.current(principal)
        if user.is_two_factor_enabled:
            raise BadRequestError("Two-factor authentication is already enabled")
        if not user.two_factor_secret:
            raise BadRequestError("Two-factor authentication setup not initiated")
        if not self.two_factor.verify_code(user.two_factor_secret, code):
            raise BadRequestError("Invalid verification code")

        user.is_two_factor_enabled = True
        self.session.flush()
        self.notifications.send_two_factor_enabled(user.email, user.full_name)
        logger.info(f"Two-factor authentication enabled for {user.username}")
        return user

    def disable_two_factor(self, principal: Principal, code: str) -> User:
        user = self.current(principal)
        if not user.is_two_factor_enabled:
            raise BadRequestError("Two-factor authentication is not enabled")
        if not self.two_factor.verify_code(user.two_factor_secret, code):
            raise BadRequestError("Invalid verification code")

        user.is_two_factor_enabled = False
        user.two_factor_secret = None
        self.session.flush()
        logger.info(f"Two-factor authentication disabled for {user.username}")
        return user

    def delete(self, user_id: int) -> None:
        """Delete a user with their bookings and tickets, freeing seats held by live tickets."""
        user = self.get(user_id)
        for booking in user.bookings:
            for ticket in booking.tickets:
                if ticket.ticket_status in (TicketStatus.ISSUED, TicketStatus.CHECKED_IN):
                    self.flight_seats.release(ticket.flight_seat_id)
        self.session.delete(user)
        self.session.flush()
        logger.info(f"Deleted user {user.username} (id={user_id})")

    def stats(self) -> UserStatsModel:
        def count_role(role: Role) -> int:
            return self.session.scalar(select(func.count(User.id)).where(User.role == role)) or 0

        since = self.clock() - timedelta(days=30)
        return UserStatsModel(
            total_users=self.session.scalar(select(func.count(User.id))) or 0,
            admin_users=count_role(Role.ADMIN),
            regular_users=count_role(Role.USER),
            new_users_last_30_days=self.session.scalar(
                select(func.count(User.id)).where(User.created_at >= since)
            ) or 0,
        )
