# Import every ORM model so Base.metadata is complete for Alembic and tests
from .billing import (
  BillingAuditLog,
  BillingEventType,
  BusinessVerificationLog,
  SubscriptionPlan,
  VerificationProvider,
  VerificationType,
)
from .iam import (
  Organization,
  OrganizationStatus,
  User,
  UserRole,
  VerificationStatus,
)

__all__ = [
  "BillingAuditLog",
  "BillingEventType",
  "BusinessVerificationLog",
  "Organization",
  "OrganizationStatus",
  "SubscriptionPlan",
  "User",
  "UserRole",
  "VerificationProvider",
  "VerificationStatus",
  "VerificationType",
]
