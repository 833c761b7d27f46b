"""
Environment configuration loader with validation for the FlyAir backend.
"""

import os
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field, field_validator
from dotenv import load_dotenv


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes", "on")


class AppConfig(BaseModel):
    """Configuration model for the FlyAir backend with validation."""

    # Database Configuration
    database_url: Optional[str] = Field(
        default=None, description="Database connection URL; built from DB_* variables when unset"
    )

    # Application
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    # JWT
    jwt_secret: str = Field(
        default="dev-secret-key-change-in-production",
        min_length=16,
        description="HMAC secret used to sign tokens",
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    jwt_expiration_minutes: int = Field(
        default=1440, ge=1, description="Access token lifetime in minutes"
    )
    jwt_refresh_expiration_days: int = Field(
        default=7, ge=1, description="Refresh token lifetime in days"
    )
    two_factor_token_minutes: int = Field(
        default=5, ge=1, description="Lifetime of the temporary 2FA login token"
    )
    totp_issuer: str = Field(default="FlyAir", description="Issuer shown in authenticator apps")

    # Mail
    mail_enabled: bool = Field(default=False, description="Deliver mail over SMTP")
    smtp_host: str = Field(default="localhost", description="SMTP server host")
    smtp_port: int = Field(default=465, ge=1, le=65535, description="SMTP server port")
    smtp_username: Optional[str] = Field(default=None, description="SMTP login")
    smtp_password: Optional[str] = Field(default=None, description="SMTP password")
    smtp_use_ssl: bool = Field(default=True, description="Use SMTP over SSL")
    mail_from: str = Field(default="no-reply@flyair.local", description="Sender address")
    frontend_url: str = Field(
        default="http://localhost:3000", description="Base URL used in email links"
    )
    notification_max_attempts: int = Field(
        default=3, ge=1, description="Delivery attempts per notification"
    )

    # Booking rules
    booking_lead_hours: int = Field(
        default=2, ge=0, description="Minimum hours before departure to book"
    )
    cancellation_cutoff_hours: int = Field(
        default=24, ge=0, description="Minimum hours before departure to cancel"
    )
    reset_token_ttl_hours: int = Field(
        default=1, ge=1, description="Password reset token lifetime in hours"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard levels."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        """Only HMAC algorithms are supported, the secret is symmetric."""
        if v.upper() not in ("HS256", "HS384", "HS512"):
            raise ValueError("JWT algorithm must be one of HS256, HS384, HS512")
        return v.upper()


def load_config(env_file: Optional[str] = None) -> AppConfig:
    """
    Load configuration from environment variables and .env file.

    Args:
        env_file: Optional path to .env file. If None, looks for .env in current directory.

    Returns:
        AppConfig: Validated configuration object

    Raises:
        ValueError: If required configuration is missing or invalid
    """
    if env_file is None:
        env_file = ".env"

    if os.path.exists(env_file):
        load_dotenv(env_file)

    config_data: Dict[str, Any] = {
        "database_url": os.getenv("DATABASE_URL") or None,
        "debug": _env_flag("FLYAIR_DEBUG", "false"),
        "log_level": os.getenv("LOG_LEVEL", "INFO"),
        "jwt_secret": os.getenv("JWT_SECRET", "dev-secret-key-change-in-production"),
        "jwt_algorithm": os.getenv("JWT_ALGORITHM", "HS256"),
        "jwt_expiration_minutes": int(os.getenv("JWT_EXPIRATION_MINUTES", "1440")),
        "jwt_refresh_expiration_days": int(os.getenv("JWT_REFRESH_EXPIRATION_DAYS", "7")),
        "two_factor_token_minutes": int(os.getenv("TWO_FACTOR_TOKEN_MINUTES", "5")),
        "totp_issuer": os.getenv("TOTP_ISSUER", "FlyAir"),
        "mail_enabled": _env_flag("MAIL_ENABLED", "false"),
        "smtp_host": os.getenv("SMTP_HOST", "localhost"),
        "smtp_port": int(os.getenv("SMTP_PORT", "465")),
        "smtp_username": os.getenv("SMTP_USERNAME") or None,
        "smtp_password": os.getenv("SMTP_PASSWORD") or None,
        "smtp_use_ssl": _env_flag("SMTP_USE_SSL", "true"),
        "mail_from": os.getenv("MAIL_FROM", "no-reply@flyair.local"),
        "frontend_url": os.getenv("FRONTEND_URL", "http://localhost:3000"),
        "notification_max_attempts": int(os.getenv("NOTIFICATION_MAX_ATTEMPTS", "3")),
        "booking_lead_hours": int(os.getenv("BOOKING_LEAD_HOURS", "2")),
        "cancellation_cutoff_hours": int(os.getenv("CANCELLATION_CUTOFF_HOURS", "24")),
        "reset_token_ttl_hours": int(os.getenv("RESET_TOKEN_TTL_HOURS", "1")),
    }

    try:
        return AppConfig(**config_data)
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {e}")


# Global configuration instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """
    Get the global configuration instance, loading it if necessary.

    Returns:
        AppConfig: The global configuration object
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Forget the cached configuration so the next call reloads it."""
    global _config
    _config = None
