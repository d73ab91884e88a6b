"""
Centralized configuration package for PropertyFlows Service.

Single source of truth for environment settings, the subscription plan
catalog and the business verification thresholds.
"""

# Import env first to avoid circular dependencies
from .env import EnvConfig, env
from .billing import DEFAULT_SUBSCRIPTION_PLANS, BillingConfig
from .verification import FraudCheckConfig, RiskScoreConfig, VerificationConfig

__all__ = [
  "DEFAULT_SUBSCRIPTION_PLANS",
  "BillingConfig",
  "EnvConfig",
  "FraudCheckConfig",
  "RiskScoreConfig",
  "VerificationConfig",
  "env",
]
