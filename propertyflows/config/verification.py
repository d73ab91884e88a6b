"""
Business verification configuration.

The fraud and risk checks are rule-based pattern matching; their thresholds,
penalties and domain lists are kept here so they can be tuned without touching
the scoring code.
"""

from dataclasses import dataclass, field
from typing import FrozenSet


@dataclass(frozen=True)
class FraudCheckConfig:
  """Thresholds and penalties for the registration fraud check."""

  starting_score: int = 100
  pass_threshold: int = 50
  invalid_email_penalty: int = 20
  invalid_phone_penalty: int = 15
  free_email_penalty: int = 10
  min_phone_digits: int = 10
  max_phone_digits: int = 15
  email_pattern: str = r"[^\s@]+@[^\s@]+\.[^\s@]+"
  disposable_domains: FrozenSet[str] = field(
    default_factory=lambda: frozenset(
      {
        "tempmail.com",
        "throwaway.email",
        "10minutemail.com",
        "guerrillamail.com",
        "mailinator.com",
        "maildrop.cc",
        "temp-mail.org",
        "getnada.com",
        "sharklasers.com",
      }
    )
  )
  free_email_domains: FrozenSet[str] = field(
    default_factory=lambda: frozenset(
      {"gmail.com", "yahoo.com", "hotmail.com", "outlook.com", "aol.com"}
    )
  )


@dataclass(frozen=True)
class RiskScoreConfig:
  """Thresholds and penalties for the business risk score."""

  starting_score: int = 100
  approve_threshold: int = 85
  review_threshold: int = 50

  license_pattern: str = r"[A-Z0-9\-]{5,20}"
  license_valid_confidence: int = 70
  license_valid_bonus: int = 20
  invalid_license_penalty: int = 30

  tax_id_pattern: str = r"[0-9]{2}-?[0-9]{7}"
  tax_id_valid_confidence: int = 80
  tax_id_valid_bonus: int = 15
  invalid_tax_id_penalty: int = 25

  min_address_length: int = 20
  short_address_penalty: int = 10
  min_name_length: int = 3
  short_name_penalty: int = 15


class VerificationConfig:
  """Access point for the active verification configuration."""

  FRAUD = FraudCheckConfig()
  RISK = RiskScoreConfig()
