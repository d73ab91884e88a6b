"""Tests for the plan catalog configuration."""

import pytest

from propertyflows.config import BillingConfig


def test_plan_names():
  assert BillingConfig.plan_names() == ["starter", "professional", "enterprise"]


def test_lookup_is_case_insensitive():
  assert BillingConfig.get_subscription_plan("Professional")["price_cents"] == 14900


@pytest.mark.parametrize("name", ["", None, "platinum"])
def test_unknown_plans(name):
  assert BillingConfig.get_subscription_plan(name) is None
  assert BillingConfig.is_valid_plan(name) is False


def test_trial_days():
  assert BillingConfig.get_trial_days("starter") == 14
  assert BillingConfig.get_trial_days("enterprise") == 30


def test_trial_days_unknown_plan():
  with pytest.raises(ValueError, match="not found in billing config"):
    BillingConfig.get_trial_days("platinum")


def test_default_grace_period():
  assert BillingConfig.DEFAULT_GRACE_PERIOD_DAYS == 14
