"""Business verification: fraud check, risk score, registration and admin review."""

from .fraud import FraudCheckResult, check_fraud
from .registration import RegistrationOutcome, register_business
from .review import approve_organization, reject_organization
from .risk import (
  RiskAssessment,
  calculate_risk_score,
  verify_business_license,
  verify_tax_id,
)

__all__ = [
  "FraudCheckResult",
  "RegistrationOutcome",
  "RiskAssessment",
  "approve_organization",
  "calculate_risk_score",
  "check_fraud",
  "register_business",
  "reject_organization",
  "verify_business_license",
  "verify_tax_id",
]
