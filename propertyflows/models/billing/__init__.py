"""Billing models package.

Separated from the identity models to isolate billing concerns.
"""

from ..iam import Organization, OrganizationStatus, VerificationStatus
from .audit_log import BillingAuditLog, BillingEventType
from .subscription_plan import SubscriptionPlan
from .verification_log import (
  BusinessVerificationLog,
  VerificationProvider,
  VerificationType,
)

__all__ = [
  "BillingAuditLog",
  "BillingEventType",
  "BusinessVerificationLog",
  "Organization",
  "OrganizationStatus",
  "SubscriptionPlan",
  "VerificationProvider",
  "VerificationStatus",
  "VerificationType",
]
