"""Identity and tenant models package."""

from .organization import Organization, OrganizationStatus, VerificationStatus
from .user import User, UserRole

__all__ = [
  "Organization",
  "OrganizationStatus",
  "User",
  "UserRole",
  "VerificationStatus",
]
