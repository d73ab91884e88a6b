"""Tests for business registration with the verification gate."""

from unittest.mock import patch

import pytest

from propertyflows.exceptions import MissingFieldsError, VerificationError
from propertyflows.models.api import BusinessRegistrationRequest
from propertyflows.models.billing import BusinessVerificationLog
from propertyflows.models.iam import Organization
from propertyflows.operations.verification import register_business
from propertyflows.operations.verification.registration import FRAUD_REJECTION_MESSAGE


def _request(**overrides) -> BusinessRegistrationRequest:
  data = {
    "businessName": "Acme Property Management",
    "businessEmail": "owner@acmepm.com",
    "businessPhone": "555-123-4567",
    "businessAddress": "123 Main Street, Springfield, IL 62701",
    "businessLicense": "PM-123456",
    "taxId": "12-3456789",
    "contactName": "Jane Doe",
  }
  data.update(overrides)
  return BusinessRegistrationRequest(**data)


def test_clean_registration_is_approved(db_session):
  outcome = register_business(_request(), db_session)

  org = outcome.organization
  assert outcome.verification_status == "approved"
  assert outcome.risk_score == 90
  assert outcome.message == "Business verified successfully!"
  assert org.verification_status == "approved"
  assert org.verified_at is not None
  assert org.contact_email == "owner@acmepm.com"
  assert org.business_phone == "555-123-4567"

  logs = BusinessVerificationLog.list_for_organization(org.id, db_session)
  assert len(logs) == 1
  assert logs[0].verification_type == "automated"
  assert logs[0].status == "approved"
  assert logs[0].verification_metadata["risk_score"] == 90
  assert logs[0].verification_metadata["fraud_check"]["passed"] is True


def test_weak_registration_goes_to_manual_review(db_session):
  outcome = register_business(_request(taxId="123"), db_session)

  assert outcome.verification_status == "manual_review"
  assert outcome.message == "Your application requires manual review"
  assert outcome.organization.verified_at is None
  assert outcome.to_response()["organization"]["verificationStatus"] == "manual_review"


def test_failed_risk_score_is_stored_as_rejected(db_session):
  outcome = register_business(
    _request(businessName="AB", businessLicense="x", taxId="y", businessAddress="short"),
    db_session,
  )

  assert outcome.verification_status == "rejected"
  assert outcome.message == "Registration submitted for review"
  assert Organization.get_by_id(outcome.organization.id, db_session) is not None


def test_fraud_failure_stores_rejected_org_and_raises(db_session):
  with patch(
    "propertyflows.operations.verification.registration.SecurityAuditLogger"
  ) as mock_audit:
    with pytest.raises(VerificationError) as exc_info:
      register_business(
        _request(businessEmail="someone@mailinator.com"),
        db_session,
        ip_address="203.0.113.9",
      )

  error = exc_info.value
  assert error.message == FRAUD_REJECTION_MESSAGE
  assert error.flags == ["Disposable email address detected"]

  org = Organization.get_by_id(error.details["org_id"], db_session)
  assert org.verification_status == "rejected"
  assert org.rejection_reason == "Fraud check failed: Disposable email address detected"

  logs = BusinessVerificationLog.list_for_organization(org.id, db_session)
  assert [(log.verification_type, log.status) for log in logs] == [
    ("fraud_check", "rejected")
  ]
  assert logs[0].verification_metadata["fraud_score"] == 0

  mock_audit.log_fraud_rejection.assert_called_once()
  assert mock_audit.log_fraud_rejection.call_args.kwargs["ip_address"] == "203.0.113.9"


def test_missing_fields_are_listed(db_session):
  with pytest.raises(MissingFieldsError) as exc_info:
    register_business(_request(taxId=None, businessPhone=""), db_session)

  assert exc_info.value.missing_fields == ["businessPhone", "taxId"]
  assert db_session.query(Organization).count() == 0
