"""Tests for trial subscription activation."""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from propertyflows.exceptions import ActivationError, BillingProviderError, InvalidPlanError
from propertyflows.models.billing import BillingAuditLog, BillingEventType
from propertyflows.operations.billing import SubscriptionActivator
from propertyflows.operations.billing.activation import (
  ALREADY_ACTIVATED_ERROR,
  NOT_APPROVED_ERROR,
)
from propertyflows.operations.billing.lifecycle import ensure_utc


@pytest.fixture
def provider():
  provider = Mock()
  provider.create_customer.return_value = "cus_new"
  provider.get_or_create_price.return_value = "price_123"
  provider.create_trial_subscription.return_value = {
    "id": "sub_new",
    "status": "trialing",
    "trial_end": None,
  }
  return provider


class TestActivateTrial:
  def test_starter_plan_gets_fourteen_day_trial(self, make_org, db_session, provider):
    org = make_org()
    before = datetime.now(timezone.utc)

    result = SubscriptionActivator(db_session, provider=provider).activate_trial(
      org, "starter"
    )

    provider.create_customer.assert_called_once_with(
      org.id, "billing@acmepm.com", "Acme Property Management"
    )
    provider.get_or_create_price.assert_called_once_with("starter")
    args, kwargs = provider.create_trial_subscription.call_args
    assert args == ("cus_new", "price_123", 14)
    assert kwargs["metadata"] == {"organization_id": org.id, "plan": "starter"}

    assert result["subscription_id"] == "sub_new"
    assert result["plan"] == "starter"
    assert result["status"] == "trialing"

    db_session.refresh(org)
    assert org.status == "trialing"
    assert org.stripe_customer_id == "cus_new"
    assert org.stripe_subscription_id == "sub_new"
    assert org.stripe_price_id == "price_123"
    assert org.subscription_plan == "starter"
    trial_end = ensure_utc(org.trial_ends_at)
    assert before + timedelta(days=14) <= trial_end
    assert trial_end <= datetime.now(timezone.utc) + timedelta(days=14)

  def test_enterprise_plan_gets_thirty_day_trial(self, make_org, db_session, provider):
    org = make_org()

    SubscriptionActivator(db_session, provider=provider).activate_trial(org, "Enterprise")

    args, _ = provider.create_trial_subscription.call_args
    assert args[2] == 30
    assert org.subscription_plan == "enterprise"

  def test_provider_trial_end_wins(self, make_org, db_session, provider):
    trial_end = datetime(2025, 6, 1, tzinfo=timezone.utc)
    provider.create_trial_subscription.return_value = {
      "id": "sub_new",
      "status": "trialing",
      "trial_end": int(trial_end.timestamp()),
    }
    org = make_org()

    result = SubscriptionActivator(db_session, provider=provider).activate_trial(
      org, "starter"
    )

    assert result["trial_ends_at"] == trial_end

  def test_existing_customer_is_reused(self, make_org, db_session, provider):
    org = make_org(stripe_customer_id="cus_existing")

    SubscriptionActivator(db_session, provider=provider).activate_trial(org, "starter")

    provider.create_customer.assert_not_called()
    args, _ = provider.create_trial_subscription.call_args
    assert args[0] == "cus_existing"

  def test_audit_trail(self, make_org, db_session, provider, admin_user):
    org = make_org()

    SubscriptionActivator(db_session, provider=provider).activate_trial(
      org, "professional", actor_user_id=admin_user.id
    )

    event_types = {
      row.event_type for row in BillingAuditLog.get_org_history(db_session, org.id)
    }
    assert event_types == {
      BillingEventType.CUSTOMER_CREATED.value,
      BillingEventType.SUBSCRIPTION_CREATED.value,
    }

  def test_unknown_plan(self, make_org, db_session, provider):
    with pytest.raises(InvalidPlanError):
      SubscriptionActivator(db_session, provider=provider).activate_trial(
        make_org(), "platinum"
      )
    provider.create_customer.assert_not_called()

  def test_provider_error_leaves_status(self, make_org, db_session, provider):
    provider.create_trial_subscription.side_effect = BillingProviderError(
      "Your card was declined", operation="create_trial_subscription"
    )
    org = make_org(status="trialing")

    with pytest.raises(BillingProviderError):
      SubscriptionActivator(db_session, provider=provider).activate_trial(org, "starter")

    db_session.refresh(org)
    assert org.stripe_subscription_id is None

  def test_failed_subscription_does_not_persist_customer(
    self, make_org, db_session, provider
  ):
    provider.create_trial_subscription.side_effect = BillingProviderError("card declined")
    org = make_org()

    with pytest.raises(BillingProviderError):
      SubscriptionActivator(db_session, provider=provider).activate_trial(org, "starter")

    db_session.refresh(org)
    assert org.stripe_customer_id is None
    assert BillingAuditLog.get_org_history(db_session, org.id) == []


class TestActivateSelfService:
  def test_requires_approval(self, make_org, db_session, provider):
    org = make_org(verification_status="manual_review")

    with pytest.raises(ActivationError) as exc_info:
      SubscriptionActivator(db_session, provider=provider).activate_self_service(
        org, "starter"
      )
    assert exc_info.value.message == NOT_APPROVED_ERROR

  def test_rejects_second_activation(self, make_org, db_session, provider):
    org = make_org(stripe_customer_id="cus_existing")

    with pytest.raises(ActivationError) as exc_info:
      SubscriptionActivator(db_session, provider=provider).activate_self_service(
        org, "starter"
      )
    assert exc_info.value.message == ALREADY_ACTIVATED_ERROR

  def test_rejects_unknown_plan(self, make_org, db_session, provider):
    with pytest.raises(InvalidPlanError):
      SubscriptionActivator(db_session, provider=provider).activate_self_service(
        make_org(), "gold"
      )

  def test_activates_approved_org(self, make_org, db_session, provider):
    result = SubscriptionActivator(db_session, provider=provider).activate_self_service(
      make_org(), "professional"
    )
    assert result["plan"] == "professional"

  def test_retry_after_provider_failure(self, make_org, db_session, provider):
    org = make_org()
    activator = SubscriptionActivator(db_session, provider=provider)
    provider.create_trial_subscription.side_effect = BillingProviderError("card declined")

    with pytest.raises(BillingProviderError):
      activator.activate_self_service(org, "starter")

    provider.create_trial_subscription.side_effect = None
    result = activator.activate_self_service(org, "starter")

    assert result["subscription_id"] == "sub_new"
    db_session.refresh(org)
    assert org.stripe_customer_id == "cus_new"
    assert org.stripe_subscription_id == "sub_new"
