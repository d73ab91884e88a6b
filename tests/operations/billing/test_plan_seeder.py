"""Tests for the subscription plan seed."""

from decimal import Decimal

from propertyflows.models.billing import SubscriptionPlan
from propertyflows.operations.billing import seed_subscription_plans


def test_seeds_catalog(db_session):
  result = seed_subscription_plans(db_session)

  assert result == {
    "created": ["starter", "professional", "enterprise"],
    "skipped": [],
  }
  plans = SubscriptionPlan.list_active(db_session)
  assert [plan.name for plan in plans] == ["starter", "professional", "enterprise"]
  assert plans[0].price == Decimal("49.00")
  assert plans[2].trial_days == 30
  assert plans[1].features["features"]["aiMaintenance"] is True


def test_second_run_is_a_no_op(db_session):
  seed_subscription_plans(db_session)

  result = seed_subscription_plans(db_session)

  assert result["created"] == []
  assert result["skipped"] == ["starter", "professional", "enterprise"]
  assert db_session.query(SubscriptionPlan).count() == 3
