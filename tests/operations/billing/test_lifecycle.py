"""Tests for the pure subscription lifecycle rules."""

from datetime import datetime, timedelta, timezone

import pytest

from propertyflows.operations.billing.lifecycle import (
  EXTEND_TRIAL_ERROR,
  GRACE_PERIOD_ERROR,
  OVERRIDE_STATUS_ERROR,
  ensure_utc,
  from_unix,
  grace_period_end,
  is_grace_expired,
  map_remote_status,
  resolve_grace_period_days,
  trial_days_remaining,
  validate_extension_days,
  validate_grace_period_days,
  validate_override_status,
)

DAY0 = datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)


class TestGraceExpiry:
  def test_no_failure_is_never_expired(self):
    assert is_grace_expired(None, 14, DAY0 + timedelta(days=365)) is False

  def test_inside_grace_period(self):
    assert is_grace_expired(DAY0, 14, DAY0 + timedelta(days=10)) is False

  def test_exact_boundary_is_not_expired(self):
    """Expiry requires now to be strictly after the grace period end."""
    assert is_grace_expired(DAY0, 14, DAY0 + timedelta(days=14)) is False
    assert (
      is_grace_expired(DAY0, 14, DAY0 + timedelta(days=14, seconds=1)) is True
    )

  def test_after_grace_period(self):
    assert is_grace_expired(DAY0, 14, DAY0 + timedelta(days=15)) is True

  def test_zero_grace_period_expires_immediately(self):
    assert is_grace_expired(DAY0, 0, DAY0) is False
    assert is_grace_expired(DAY0, 0, DAY0 + timedelta(minutes=1)) is True

  def test_unset_grace_period_uses_default(self):
    assert resolve_grace_period_days(None) == 14
    assert resolve_grace_period_days(0) == 0
    assert is_grace_expired(DAY0, None, DAY0 + timedelta(days=13)) is False
    assert is_grace_expired(DAY0, None, DAY0 + timedelta(days=15)) is True

  def test_naive_datetimes_are_treated_as_utc(self):
    naive = datetime(2025, 1, 1, 9, 0)
    assert ensure_utc(naive) == DAY0
    assert grace_period_end(naive, 14) == DAY0 + timedelta(days=14)


class TestRemoteStatusMapping:
  @pytest.mark.parametrize(
    "remote,expected",
    [
      ("active", "active"),
      ("trialing", "trialing"),
      ("past_due", "past_due"),
      ("canceled", "canceled"),
      ("unpaid", "suspended"),
    ],
  )
  def test_known_statuses(self, remote, expected):
    assert map_remote_status(remote, "trialing") == expected

  @pytest.mark.parametrize("remote", ["incomplete", "incomplete_expired", "paused", None])
  def test_unknown_statuses_keep_current(self, remote):
    assert map_remote_status(remote, "past_due") == "past_due"


class TestTimeHelpers:
  def test_from_unix(self):
    assert from_unix(None) is None
    assert from_unix(int(DAY0.timestamp())) == DAY0

  def test_trial_days_remaining_rounds_up(self):
    assert trial_days_remaining(DAY0 + timedelta(days=3), DAY0) == 3
    assert trial_days_remaining(DAY0 + timedelta(days=2, hours=1), DAY0) == 3


class TestValidators:
  @pytest.mark.parametrize("value", [0, 14, 90, 30.0])
  def test_grace_period_accepts_range(self, value):
    assert validate_grace_period_days(value) == int(value)

  @pytest.mark.parametrize("value", [-1, 91, "14", None, True, 7.5])
  def test_grace_period_rejects(self, value):
    with pytest.raises(ValueError, match="Grace period must be a number"):
      validate_grace_period_days(value)
    assert "between 0 and 90 days" in GRACE_PERIOD_ERROR

  @pytest.mark.parametrize("value", [1, 7, 365])
  def test_extension_accepts_positive(self, value):
    assert validate_extension_days(value) == value

  @pytest.mark.parametrize("value", [0, -3, "5", None, 2.5])
  def test_extension_rejects(self, value):
    with pytest.raises(ValueError) as exc_info:
      validate_extension_days(value)
    assert str(exc_info.value) == EXTEND_TRIAL_ERROR

  @pytest.mark.parametrize("value", ["active", "past_due", "trialing"])
  def test_override_status_accepts(self, value):
    assert validate_override_status(value) == value

  @pytest.mark.parametrize("value", ["suspended", "canceled", "", None])
  def test_override_status_rejects(self, value):
    with pytest.raises(ValueError) as exc_info:
      validate_override_status(value)
    assert str(exc_info.value) == OVERRIDE_STATUS_ERROR
