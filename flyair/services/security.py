"""
Authentication primitives: the request principal, password hashing, JWT
issuance and TOTP verification.

Tokens are HMAC-signed JWTs (python-jose) carrying the username as ``sub``,
the role, and a ``type`` claim so that a refresh token or a temporary 2FA
token can never be used as an access token.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import pyotp
from jose import JWTError, jwt
from werkzeug.security import check_password_hash, generate_password_hash

from ..exceptions import AccessDeniedError, UnauthorizedError
from ..models.enums import Role
from ..utils.config import AppConfig

logger = logging.getLogger(__name__)

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"
TWO_FACTOR_TOKEN = "two_factor"


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, passed explicitly into every workflow call."""
    username: str
    role: Role = Role.USER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def require_admin(self) -> None:
        if not self.is_admin:
            raise AccessDeniedError("You don't have permission to access this resource")


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return check_password_hash(password_hash, password)


class JwtService:
    """Issue and decode signed tokens."""

    def __init__(self, config: AppConfig):
        self.secret = config.jwt_secret
        self.algorithm = config.jwt_algorithm
        self.access_ttl = timedelta(minutes=config.jwt_expiration_minutes)
        self.refresh_ttl = timedelta(days=config.jwt_refresh_expiration_days)
        self.two_factor_ttl = timedelta(minutes=config.two_factor_token_minutes)

    @property
    def expires_in(self) -> int:
        """Access token lifetime in seconds."""
        return int(self.access_ttl.total_seconds())

    def _build(self, username: str, role: Role, token_type: str, ttl: timedelta) -> str:
        now = datetime.now(timezone.utc)
        claims: Dict[str, Any] = {
            "sub": username,
            "role": role.value,
            "type": token_type,
            "iat": now,
            "exp": now + ttl,
        }
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)

    def generate_access_token(self, username: str, role: Role) -> str:
        return self._build(username, role, ACCESS_TOKEN, self.access_ttl)

    def generate_refresh_token(self, username: str, role: Role) -> str:
        return self._build(username, role, REFRESH_TOKEN, self.refresh_ttl)

    def generate_two_factor_token(self, username: str, role: Role) -> str:
        return self._build(username, role, TWO_FACTOR_TOKEN, self.two_factor_ttl)

    def decode(self, token: str, expected_type: str) -> Dict[str, Any]:
        """
        Verify signature, expiry and token type.

        Raises:
            UnauthorizedError: If the token is invalid, expired or of another type
        """
        try:
            claims = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError as e:
            logger.debug(f"Rejected token: {e}")
            raise UnauthorizedError("Invalid or expired token")

        if claims.get("type") != expected_type or not claims.get("sub"):
            raise UnauthorizedError("Invalid token type")
        return claims

    def principal_from_token(self, token: str) -> Principal:
        claims = self.decode(token, ACCESS_TOKEN)
        try:
            role = Role(claims.get("role", Role.USER.value))
        except ValueError:
            raise UnauthorizedError("Invalid token role")
        return Principal(username=claims["sub"], role=role)


class TwoFactorService:
    """TOTP secrets and code verification (SHA1, 6 digits, 30 second steps)."""

    def __init__(self, issuer: str = "FlyAir", valid_window: int = 1):
        self.issuer = issuer
        self.valid_window = valid_window

    def generate_secret(self) -> str:
        return pyotp.random_base32()

    def provisioning_uri(self, account_name: str, secret: str) -> str:
        return pyotp.TOTP(secret).provisioning_uri(name=account_name, issuer_name=self.issuer)

    def verify_code(self, secret: Optional[str], code: Optional[str]) -> bool:
        if not secret or not code:
            return False
        return pyotp.TOTP(secret).verify(code, valid_window=self.valid_window)

    def current_code(self, secret: str) -> str:
        return pyotp.TOTP(secret).now()
