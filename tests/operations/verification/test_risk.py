"""Tests for the business risk score."""

from propertyflows.config.verification import RiskScoreConfig
from propertyflows.operations.verification import (
  calculate_risk_score,
  verify_business_license,
  verify_tax_id,
)

GOOD_ADDRESS = "123 Main Street, Springfield, IL 62701"


class TestFormatChecks:
  def test_license_format(self):
    assert verify_business_license("PM-123456")["valid"] is True
    assert verify_business_license("pm-123456")["valid"] is True
    assert verify_business_license("PM 123")["valid"] is False
    assert verify_business_license("A" * 21)["valid"] is False

  def test_valid_license_is_only_partial_confidence(self):
    assert verify_business_license("PM-123456")["confidence"] == 70

  def test_tax_id_format(self):
    assert verify_tax_id("12-3456789") == {"valid": True, "confidence": 80}
    assert verify_tax_id("123456789")["valid"] is True
    assert verify_tax_id("12-345678")["valid"] is False
    assert verify_tax_id("AB-3456789")["valid"] is False

  def test_trailing_newline_is_rejected(self):
    assert verify_tax_id("12-3456789\n")["valid"] is False
    assert verify_business_license("PM-123456\n")["valid"] is False


class TestRiskScore:
  def test_all_valid_scores_ninety(self):
    result = calculate_risk_score("Acme PM", "PM-123456", "12-3456789", GOOD_ADDRESS)

    assert result.risk_score == 90
    assert result.status == "approved"
    assert result.reasons == ["All verification checks passed"]
    assert result.metadata["license_check"]["valid"] is True
    assert result.metadata["tax_id_check"]["valid"] is True

  def test_short_address_goes_to_manual_review(self):
    result = calculate_risk_score("Acme PM", "PM-123456", "12-3456789", "1 Main St")

    assert result.risk_score == 80
    assert result.status == "manual_review"
    assert "Incomplete business address" in result.reasons
    assert result.reasons[-1] == "Requires manual review by admin"

  def test_invalid_tax_id_goes_to_manual_review(self):
    result = calculate_risk_score("Acme PM", "PM-123456", "bad", GOOD_ADDRESS)

    assert result.risk_score == 65
    assert result.status == "manual_review"
    assert "Invalid tax ID format (expected XX-XXXXXXX)" in result.reasons

  def test_everything_wrong_is_rejected(self):
    result = calculate_risk_score("AB", "x", "y", "short")

    assert result.risk_score == 20
    assert result.status == "rejected"
    assert result.reasons == [
      "Invalid business license format",
      "Invalid tax ID format (expected XX-XXXXXXX)",
      "Incomplete business address",
      "Business name too short",
      "Failed verification checks",
    ]

  def test_thresholds_are_configurable(self):
    lenient = RiskScoreConfig(approve_threshold=80)

    result = calculate_risk_score(
      "Acme PM", "PM-123456", "12-3456789", "1 Main St", config=lenient
    )

    assert result.status == "approved"
