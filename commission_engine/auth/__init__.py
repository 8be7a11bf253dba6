"""Authentication module."""

from commission_engine.auth.dependencies import get_current_user, require_admin
from commission_engine.auth.jwt import create_access_token, verify_token

__all__ = [
    "create_access_token",
    "verify_token",
    "get_current_user",
    "require_admin",
]
