"""Authentication and authorization dependencies."""

from .admin import require_admin
from .dependencies import get_current_organization, get_current_user
from .jwt import create_jwt_token, verify_jwt_token

__all__ = [
  "create_jwt_token",
  "get_current_organization",
  "get_current_user",
  "require_admin",
  "verify_jwt_token",
]
