"""
Business registration with the verification gate.

Every registration creates an organization, whatever the outcome, together
with an append-only verification log entry explaining the decision.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ...exceptions import MissingFieldsError, VerificationError
from ...logger import get_logger
from ...models.api import BusinessRegistrationRequest
from ...models.billing import BusinessVerificationLog, VerificationType
from ...models.iam import Organization, VerificationStatus
from ...security import SecurityAuditLogger
from ..billing.lifecycle import utc_now
from .fraud import check_fraud
from .risk import calculate_risk_score

logger = get_logger(__name__)

REQUIRED_FIELDS = {
  "business_name": "businessName",
  "business_email": "businessEmail",
  "business_phone": "businessPhone",
  "business_address": "businessAddress",
  "business_license": "businessLicense",
  "tax_id": "taxId",
}

FRAUD_REJECTION_MESSAGE = "Registration rejected due to security concerns"

OUTCOME_MESSAGES = {
  VerificationStatus.APPROVED.value: "Business verified successfully!",
  VerificationStatus.MANUAL_REVIEW.value: "Your application requires manual review",
  VerificationStatus.REJECTED.value: "Registration submitted for review",
}


@dataclass
class RegistrationOutcome:
  organization: Organization
  verification_status: str
  risk_score: int

  @property
  def message(self) -> str:
    return OUTCOME_MESSAGES[self.verification_status]

  def to_response(self) -> Dict[str, Any]:
    return {
      "success": True,
      "organization": {
        "id": self.organization.id,
        "name": self.organization.name,
        "verificationStatus": self.organization.verification_status,
      },
      "verificationStatus": self.verification_status,
      "message": self.message,
    }


def register_business(
  request: BusinessRegistrationRequest,
  session: Session,
  ip_address: Optional[str] = None,
) -> RegistrationOutcome:
  """
  Register a business and run the fraud check and risk score on it.

  Raises:
      MissingFieldsError: A required field is empty
      VerificationError: The fraud check failed; the organization is still
          stored as rejected
  """
  missing = [
    alias for attr, alias in REQUIRED_FIELDS.items() if not getattr(request, attr)
  ]
  if missing:
    raise MissingFieldsError(missing)

  contact = {
    "name": request.business_name,
    "contact_name": request.contact_name,
    "contact_email": request.business_email,
    "contact_phone": request.business_phone,
    "business_phone": request.business_phone,
    "business_address": request.business_address,
    "business_license": request.business_license,
    "tax_id": request.tax_id,
    "website": request.website or None,
  }

  fraud = check_fraud(request.business_email, request.business_phone)

  if not fraud.passed:
    org = Organization.create(
      session,
      auto_commit=False,
      verification_status=VerificationStatus.REJECTED.value,
      rejection_reason=f"Fraud check failed: {', '.join(fraud.flags)}",
      **contact,
    )
    BusinessVerificationLog.record(
      session,
      organization_id=org.id,
      verification_type=VerificationType.FRAUD_CHECK,
      status=VerificationStatus.REJECTED.value,
      metadata={
        "fraud_score": fraud.score,
        "flags": fraud.flags,
        "details": fraud.details,
      },
      notes=f"Fraud check failed: {'. '.join(fraud.flags)}",
    )
    SecurityAuditLogger.log_fraud_rejection(
      organization_id=org.id,
      fraud_score=fraud.score,
      flags=fraud.flags,
      ip_address=ip_address,
    )
    raise VerificationError(FRAUD_REJECTION_MESSAGE, flags=fraud.flags, org_id=org.id)

  risk = calculate_risk_score(
    request.business_name,
    request.business_license,
    request.tax_id,
    request.business_address,
  )

  org = Organization.create(
    session,
    auto_commit=False,
    verification_status=risk.status,
    verified_at=utc_now() if risk.status == VerificationStatus.APPROVED.value else None,
    **contact,
  )
  BusinessVerificationLog.record(
    session,
    organization_id=org.id,
    verification_type=VerificationType.AUTOMATED,
    status=risk.status,
    metadata={
      "risk_score": risk.risk_score,
      "reasons": risk.reasons,
      "fraud_check": fraud.to_dict(),
      **risk.metadata,
    },
    notes=". ".join(risk.reasons),
  )

  logger.info(
    f"Registered organization {org.id}: {risk.status}",
    extra={
      "org_id": org.id,
      "action": "business_registered",
      "metadata": {"risk_score": risk.risk_score, "status": risk.status},
    },
  )

  return RegistrationOutcome(
    organization=org,
    verification_status=risk.status,
    risk_score=risk.risk_score,
  )
