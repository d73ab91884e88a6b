"""Tests for admin lifecycle overrides."""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock, patch

import pytest

from propertyflows.exceptions import InvalidStatusTransitionError
from propertyflows.models.billing import BillingAuditLog, BillingEventType
from propertyflows.operations.billing import (
  extend_trial,
  override_suspension,
  retry_latest_invoice,
  set_grace_period,
)
from propertyflows.operations.billing.lifecycle import ensure_utc
from propertyflows.operations.billing.overrides import (
  INVOICE_PAID_ERROR,
  NO_INVOICE_ERROR,
  NO_SUBSCRIPTION_ERROR,
)

FAILED_AT = datetime(2025, 1, 1, tzinfo=timezone.utc)


def _history(db_session, org_id) -> list:
  return [row.event_type for row in BillingAuditLog.get_org_history(db_session, org_id)]


class TestSetGracePeriod:
  def test_sets_days_and_audits(self, make_org, db_session, admin_user):
    org = make_org()

    with patch(
      "propertyflows.operations.billing.overrides.SecurityAuditLogger"
    ) as mock_audit:
      days = set_grace_period(org, 30, db_session, admin_user.id)

    assert days == 30
    db_session.refresh(org)
    assert org.grace_period_days == 30
    assert _history(db_session, org.id) == [BillingEventType.GRACE_PERIOD_CHANGED.value]
    mock_audit.log_admin_override.assert_called_once()
    assert mock_audit.log_admin_override.call_args.kwargs["admin_user_id"] == admin_user.id

  def test_zero_is_allowed(self, make_org, db_session, admin_user):
    org = make_org()
    assert set_grace_period(org, 0, db_session, admin_user.id) == 0
    db_session.refresh(org)
    assert org.grace_period_days == 0

  @pytest.mark.parametrize("value", [-1, 91, "30", None])
  def test_invalid_values_change_nothing(self, make_org, db_session, admin_user, value):
    org = make_org(grace_period_days=14)

    with pytest.raises(ValueError):
      set_grace_period(org, value, db_session, admin_user.id)

    db_session.refresh(org)
    assert org.grace_period_days == 14
    assert _history(db_session, org.id) == []


class TestOverrideSuspension:
  def test_to_active_clears_failure(self, make_org, db_session, admin_user):
    org = make_org(status="suspended", payment_failed_at=FAILED_AT, payment_retry_count=4)

    override_suspension(org, "active", db_session, admin_user.id)

    db_session.refresh(org)
    assert org.status == "active"
    assert org.payment_failed_at is None
    assert _history(db_session, org.id) == [BillingEventType.SUSPENSION_OVERRIDDEN.value]

  def test_to_past_due_keeps_failure(self, make_org, db_session, admin_user):
    org = make_org(status="suspended", payment_failed_at=FAILED_AT)

    override_suspension(org, "past_due", db_session, admin_user.id)

    db_session.refresh(org)
    assert org.status == "past_due"
    assert ensure_utc(org.payment_failed_at) == FAILED_AT

  def test_requires_suspended(self, make_org, db_session, admin_user):
    org = make_org(status="active")

    with pytest.raises(InvalidStatusTransitionError) as exc_info:
      override_suspension(org, "active", db_session, admin_user.id)

    assert str(exc_info.value) == "Organization status is active, not suspended"
    assert exc_info.value.details == {"current_status": "active"}

  def test_rejects_invalid_target(self, make_org, db_session, admin_user):
    org = make_org(status="suspended")

    with pytest.raises(ValueError):
      override_suspension(org, "canceled", db_session, admin_user.id)

    db_session.refresh(org)
    assert org.status == "suspended"


class TestExtendTrial:
  def test_extends_existing_trial(self, make_org, db_session, admin_user):
    trial_end = datetime(2025, 2, 1, tzinfo=timezone.utc)
    org = make_org(trial_ends_at=trial_end)

    extend_trial(org, 7, db_session, admin_user.id)

    db_session.refresh(org)
    assert ensure_utc(org.trial_ends_at) == trial_end + timedelta(days=7)
    assert _history(db_session, org.id) == [BillingEventType.TRIAL_EXTENDED.value]

  def test_counts_from_now_without_trial(self, make_org, db_session, admin_user):
    org = make_org(trial_ends_at=None)
    before = datetime.now(timezone.utc)

    extend_trial(org, 10, db_session, admin_user.id)

    db_session.refresh(org)
    new_end = ensure_utc(org.trial_ends_at)
    assert before + timedelta(days=10) <= new_end
    assert new_end <= datetime.now(timezone.utc) + timedelta(days=10)

  @pytest.mark.parametrize("value", [0, -5, "7"])
  def test_rejects_non_positive(self, make_org, db_session, admin_user, value):
    with pytest.raises(ValueError):
      extend_trial(make_org(), value, db_session, admin_user.id)


class TestRetryLatestInvoice:
  @pytest.fixture
  def provider(self):
    provider = Mock()
    provider.get_subscription.return_value = {
      "id": "sub_acme",
      "latest_invoice": {"id": "in_123", "status": "open", "amount_due": 4900},
    }
    provider.retry_invoice_payment.return_value = {"id": "in_123", "status": "paid"}
    return provider

  def test_retries_open_invoice(self, make_org, db_session, admin_user, provider):
    org = make_org(stripe_subscription_id="sub_acme")

    invoice = retry_latest_invoice(org, db_session, admin_user.id, provider=provider)

    provider.get_subscription.assert_called_once_with(
      "sub_acme", expand=["latest_invoice"]
    )
    provider.retry_invoice_payment.assert_called_once_with("in_123")
    assert invoice["id"] == "in_123"
    assert _history(db_session, org.id) == [
      BillingEventType.PAYMENT_RETRY_REQUESTED.value
    ]

  def test_no_subscription(self, make_org, db_session, admin_user, provider):
    with pytest.raises(ValueError, match=NO_SUBSCRIPTION_ERROR):
      retry_latest_invoice(make_org(), db_session, admin_user.id, provider=provider)
    provider.get_subscription.assert_not_called()

  def test_no_invoice(self, make_org, db_session, admin_user, provider):
    provider.get_subscription.return_value = {"id": "sub_acme", "latest_invoice": None}

    with pytest.raises(ValueError, match=NO_INVOICE_ERROR):
      retry_latest_invoice(
        make_org(stripe_subscription_id="sub_acme"),
        db_session,
        admin_user.id,
        provider=provider,
      )

  def test_paid_invoice(self, make_org, db_session, admin_user, provider):
    provider.get_subscription.return_value = {
      "id": "sub_acme",
      "latest_invoice": {"id": "in_123", "status": "paid"},
    }

    with pytest.raises(ValueError, match=INVOICE_PAID_ERROR):
      retry_latest_invoice(
        make_org(stripe_subscription_id="sub_acme"),
        db_session,
        admin_user.id,
        provider=provider,
      )
    provider.retry_invoice_payment.assert_not_called()
