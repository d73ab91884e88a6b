"""Registration fraud check: email and phone heuristics."""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ...config.verification import FraudCheckConfig, VerificationConfig

DISPOSABLE_EMAIL_FLAG = "Disposable email address detected"
INVALID_EMAIL_FLAG = "Invalid email format"
INVALID_PHONE_FLAG = "Invalid phone number format"
FREE_EMAIL_FLAG = "Using free email provider (not business domain)"


@dataclass
class FraudCheckResult:
  passed: bool
  score: int
  flags: List[str] = field(default_factory=list)
  details: Dict[str, bool] = field(default_factory=dict)

  def to_dict(self) -> Dict[str, Any]:
    return {
      "passed": self.passed,
      "score": self.score,
      "flags": self.flags,
      "details": self.details,
    }


def _email_domain(email: str) -> str:
  _, _, domain = email.partition("@")
  return domain.lower()


def check_fraud(
  business_email: str,
  business_phone: str,
  config: Optional[FraudCheckConfig] = None,
) -> FraudCheckResult:
  """
  Score a registration's contact details.

  A disposable email domain zeroes the score; format problems and free email
  providers subtract penalties. The check passes when the raw score reaches
  the pass threshold; the reported score is floored at zero.
  """
  config = config or VerificationConfig.FRAUD
  score = config.starting_score
  flags: List[str] = []

  domain = _email_domain(business_email)
  disposable = domain in config.disposable_domains
  if disposable:
    flags.append(DISPOSABLE_EMAIL_FLAG)
    score = 0

  email_valid = re.fullmatch(config.email_pattern, business_email) is not None
  if not email_valid:
    flags.append(INVALID_EMAIL_FLAG)
    score -= config.invalid_email_penalty

  digits = re.sub(r"\D", "", business_phone)
  phone_valid = config.min_phone_digits <= len(digits) <= config.max_phone_digits
  if not phone_valid:
    flags.append(INVALID_PHONE_FLAG)
    score -= config.invalid_phone_penalty

  if domain in config.free_email_domains:
    flags.append(FREE_EMAIL_FLAG)
    score -= config.free_email_penalty

  return FraudCheckResult(
    passed=score >= config.pass_threshold,
    score=max(0, score),
    flags=flags,
    details={
      "email_valid": email_valid,
      "phone_valid": phone_valid,
      "disposable_email": disposable,
    },
  )
