"""
Subscription plan catalog.

The default plans are the seed data for the ``subscription_plans`` table and
the source Stripe products/prices are auto-created from on first activation.
"""

from typing import Any, Dict, List, Optional

from .constants import DEFAULT_GRACE_PERIOD_DAYS


def _plan_features(
  limits: Dict[str, int], enabled: List[str], disabled: List[str]
) -> Dict[str, Any]:
  return {
    **limits,
    "features": {
      **{flag: True for flag in enabled},
      **{flag: False for flag in disabled},
    },
  }


_ALWAYS_ON = ["smsNotifications", "eSignatures", "vendorPortal", "ownerPortal"]

# NOTE: -1 means unlimited
DEFAULT_SUBSCRIPTION_PLANS: List[Dict[str, Any]] = [
  {
    "name": "starter",
    "display_name": "Starter",
    "description": "Perfect for small property managers getting started with digital management",
    "price_cents": 4900,  # $49.00
    "billing_interval": "monthly",
    "trial_days": 14,
    "features": _plan_features(
      {
        "maxProperties": 5,
        "maxUnits": 50,
        "maxTenants": 100,
        "maxPropertyManagers": 1,
        "maxOwners": 5,
        "maxVendors": 10,
        "maxStorage": 5368709120,  # 5 GB
      },
      enabled=_ALWAYS_ON,
      disabled=[
        "aiMaintenance",
        "fairHousing",
        "bulkImport",
        "quickbooksSync",
        "advancedReporting",
        "whiteLabel",
        "apiAccess",
        "prioritySupport",
        "multiCurrency",
      ],
    ),
  },
  {
    "name": "professional",
    "display_name": "Professional",
    "description": "Advanced features and AI tools for growing property management businesses",
    "price_cents": 14900,  # $149.00
    "billing_interval": "monthly",
    "trial_days": 14,
    "features": _plan_features(
      {
        "maxProperties": 25,
        "maxUnits": 500,
        "maxTenants": 1000,
        "maxPropertyManagers": 5,
        "maxOwners": -1,
        "maxVendors": -1,
        "maxStorage": 53687091200,  # 50 GB
      },
      enabled=_ALWAYS_ON
      + [
        "aiMaintenance",
        "fairHousing",
        "bulkImport",
        "quickbooksSync",
        "advancedReporting",
        "multiCurrency",
      ],
      disabled=["whiteLabel", "apiAccess", "prioritySupport"],
    ),
  },
  {
    "name": "enterprise",
    "display_name": "Enterprise",
    "description": "Unlimited resources, white label, API access, and dedicated support for large operations",
    "price_cents": 49900,  # $499.00
    "billing_interval": "monthly",
    "trial_days": 30,
    "features": _plan_features(
      {
        "maxProperties": -1,
        "maxUnits": -1,
        "maxTenants": -1,
        "maxPropertyManagers": -1,
        "maxOwners": -1,
        "maxVendors": -1,
        "maxStorage": -1,
      },
      enabled=_ALWAYS_ON
      + [
        "aiMaintenance",
        "fairHousing",
        "bulkImport",
        "quickbooksSync",
        "advancedReporting",
        "whiteLabel",
        "apiAccess",
        "prioritySupport",
        "multiCurrency",
      ],
      disabled=[],
    ),
  },
]

DEFAULT_PLAN_NAME = "starter"


class BillingConfig:
  """
  Single source of truth for subscription billing configuration.

  Provides plan lookup, trial lengths and the default dunning grace period.
  """

  DEFAULT_GRACE_PERIOD_DAYS = DEFAULT_GRACE_PERIOD_DAYS

  @classmethod
  def plan_names(cls) -> List[str]:
    return [plan["name"] for plan in DEFAULT_SUBSCRIPTION_PLANS]

  @classmethod
  def get_subscription_plan(cls, plan_name: str) -> Optional[Dict[str, Any]]:
    """
    Get subscription plan information by name (case-insensitive).

    Args:
        plan_name: Plan name (starter, professional, enterprise)

    Returns:
        Dict with plan details or None if not found
    """
    if not plan_name:
      return None
    normalized = plan_name.lower()
    for plan in DEFAULT_SUBSCRIPTION_PLANS:
      if plan["name"] == normalized:
        return plan
    return None

  @classmethod
  def get_trial_days(cls, plan_name: str) -> int:
    """
    Get the trial length for a plan.

    Raises:
        ValueError: Unknown plan
    """
    plan = cls.get_subscription_plan(plan_name)
    if not plan:
      raise ValueError(f"Plan '{plan_name}' not found in billing config")
    return plan["trial_days"]

  @classmethod
  def is_valid_plan(cls, plan_name: Optional[str]) -> bool:
    return cls.get_subscription_plan(plan_name or "") is not None
