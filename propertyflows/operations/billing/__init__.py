"""Subscription billing operations."""

from .activation import SubscriptionActivator
from .grace_sweeper import SweepResult, sweep_grace_periods
from .overrides import (
  extend_trial,
  override_suspension,
  retry_latest_invoice,
  set_grace_period,
)
from .payment_provider import PaymentProvider, StripePaymentProvider, get_payment_provider
from .plan_seeder import seed_subscription_plans
from .webhook_reconciler import ReconcileResult, WebhookReconciler

__all__ = [
  "PaymentProvider",
  "ReconcileResult",
  "StripePaymentProvider",
  "SubscriptionActivator",
  "SweepResult",
  "WebhookReconciler",
  "extend_trial",
  "get_payment_provider",
  "override_suspension",
  "retry_latest_invoice",
  "seed_subscription_plans",
  "set_grace_period",
  "sweep_grace_periods",
]
