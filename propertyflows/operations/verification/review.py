"""Admin decisions on the verification queue."""

from typing import Optional

from sqlalchemy.orm import Session

from ...logger import get_logger
from ...models.billing import (
  BusinessVerificationLog,
  VerificationProvider,
  VerificationType,
)
from ...models.iam import Organization, VerificationStatus
from ..billing.lifecycle import utc_now

logger = get_logger(__name__)

REJECTION_REASON_REQUIRED = "Rejection reason is required"


def approve_organization(
  org: Organization, session: Session, admin_user_id: Optional[str]
) -> Organization:
  """Mark an organization approved and append the manual review log."""
  org.update(
    session,
    auto_commit=False,
    verification_status=VerificationStatus.APPROVED.value,
    verified_at=utc_now(),
    rejection_reason=None,
  )
  BusinessVerificationLog.record(
    session,
    organization_id=org.id,
    verification_type=VerificationType.MANUAL_REVIEW,
    status=VerificationStatus.APPROVED.value,
    provider=VerificationProvider.ADMIN,
    verified_by=admin_user_id,
    notes="Manually approved by admin",
  )
  logger.info(
    f"Organization {org.id} approved by {admin_user_id}",
    extra={"org_id": org.id, "user_id": admin_user_id, "action": "org_approved"},
  )
  return org


def reject_organization(
  org: Organization,
  reason: Optional[str],
  session: Session,
  admin_user_id: Optional[str],
) -> Organization:
  """
  Mark an organization rejected with the admin's reason.

  Raises:
      ValueError: Empty reason
  """
  reason = (reason or "").strip()
  if not reason:
    raise ValueError(REJECTION_REASON_REQUIRED)

  org.update(
    session,
    auto_commit=False,
    verification_status=VerificationStatus.REJECTED.value,
    rejection_reason=reason,
  )
  BusinessVerificationLog.record(
    session,
    organization_id=org.id,
    verification_type=VerificationType.MANUAL_REVIEW,
    status=VerificationStatus.REJECTED.value,
    provider=VerificationProvider.ADMIN,
    verified_by=admin_user_id,
    notes=reason,
  )
  logger.info(
    f"Organization {org.id} rejected by {admin_user_id}",
    extra={"org_id": org.id, "user_id": admin_user_id, "action": "org_rejected"},
  )
  return org
