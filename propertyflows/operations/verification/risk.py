"""Business risk score from license, tax id, address and name checks."""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ...config.verification import RiskScoreConfig, VerificationConfig
from ...logger import get_logger
from ...models.iam import VerificationStatus

logger = get_logger(__name__)


@dataclass
class RiskAssessment:
  status: str
  risk_score: int
  reasons: List[str] = field(default_factory=list)
  metadata: Dict[str, Any] = field(default_factory=dict)


def verify_business_license(
  business_license: str, config: Optional[RiskScoreConfig] = None
) -> Dict[str, Any]:
  """Format check of a license number; a valid format only earns partial confidence."""
  config = config or VerificationConfig.RISK
  if not re.fullmatch(config.license_pattern, business_license, re.IGNORECASE):
    return {"valid": False, "confidence": 0, "details": "Invalid license number format"}
  return {
    "valid": True,
    "confidence": config.license_valid_confidence,
    "details": "License format appears valid. Manual verification recommended.",
  }


def verify_tax_id(tax_id: str, config: Optional[RiskScoreConfig] = None) -> Dict[str, Any]:
  config = config or VerificationConfig.RISK
  if not re.fullmatch(config.tax_id_pattern, tax_id):
    return {"valid": False, "confidence": 0}
  return {"valid": True, "confidence": config.tax_id_valid_confidence}


def calculate_risk_score(
  business_name: str,
  business_license: str,
  tax_id: str,
  business_address: str,
  config: Optional[RiskScoreConfig] = None,
) -> RiskAssessment:
  """
  Score a business registration and map the score to a verification status.

  Valid license and tax id formats cap the score at their confidence plus a
  bonus; invalid ones and short address/name subtract penalties.

  Returns:
      RiskAssessment with status approved, manual_review or rejected
  """
  config = config or VerificationConfig.RISK
  score = config.starting_score
  reasons: List[str] = []

  license_check = verify_business_license(business_license, config)
  if license_check["valid"]:
    score = min(score, license_check["confidence"] + config.license_valid_bonus)
  else:
    score -= config.invalid_license_penalty
    reasons.append("Invalid business license format")

  tax_id_check = verify_tax_id(tax_id, config)
  if tax_id_check["valid"]:
    score = min(score, tax_id_check["confidence"] + config.tax_id_valid_bonus)
  else:
    score -= config.invalid_tax_id_penalty
    reasons.append("Invalid tax ID format (expected XX-XXXXXXX)")

  if len(business_address) < config.min_address_length:
    score -= config.short_address_penalty
    reasons.append("Incomplete business address")

  if len(business_name) < config.min_name_length:
    score -= config.short_name_penalty
    reasons.append("Business name too short")

  if score >= config.approve_threshold:
    status = VerificationStatus.APPROVED.value
    reasons.append("All verification checks passed")
  elif score >= config.review_threshold:
    status = VerificationStatus.MANUAL_REVIEW.value
    reasons.append("Requires manual review by admin")
  else:
    status = VerificationStatus.REJECTED.value
    reasons.append("Failed verification checks")

  logger.info(
    f"Business verification completed: {status}, score: {score}",
    extra={"action": "risk_score", "metadata": {"score": score, "status": status}},
  )

  return RiskAssessment(
    status=status,
    risk_score=score,
    reasons=reasons,
    metadata={"license_check": license_check, "tax_id_check": tax_id_check},
  )
