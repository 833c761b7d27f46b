"""
Bearer token authentication for the route handlers.

The decorators resolve the caller into ``g.principal``; handlers pass it on
to the services explicitly.
"""

from functools import wraps
from typing import Optional

from flask import g, request

from ..exceptions import UnauthorizedError
from ..services.security import Principal


def _bearer_token() -> Optional[str]:
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None
    token = header[len("Bearer "):].strip()
    return token or None


def optional_principal() -> Optional[Principal]:
    """The caller if a valid token was sent, else None."""
    token = _bearer_token()
    if token is None:
        return None
    return g.services.jwt.principal_from_token(token)


def current_principal() -> Principal:
    return g.principal


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        token = _bearer_token()
        if token is None:
            raise UnauthorizedError("Authentication required")
        g.principal = g.services.jwt.principal_from_token(token)
        return view(*args, **kwargs)
    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        token = _bearer_token()
        if token is None:
            raise UnauthorizedError("Authentication required")
        g.principal = g.services.jwt.principal_from_token(token)
        g.principal.require_admin()
        return view(*args, **kwargs)
    return wrapper
