"""
Subscription activation.

Turns an approved organization into a billed one: Stripe customer, catalog
price and a trial subscription whose length depends on the plan.
"""

from datetime import timedelta
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ...config.billing import BillingConfig
from ...exceptions import ActivationError, InvalidPlanError
from ...logger import get_logger, log_transition
from ...models.billing import BillingAuditLog, BillingEventType
from ...models.iam import Organization, OrganizationStatus
from .lifecycle import from_unix, utc_now
from .payment_provider import PaymentProvider, get_payment_provider

logger = get_logger(__name__)

NOT_APPROVED_ERROR = "Organization must be approved before activating trial"
ALREADY_ACTIVATED_ERROR = "Trial already activated for this organization"


class SubscriptionActivator:
  """Creates the Stripe side of an organization's subscription."""

  def __init__(self, session: Session, provider: Optional[PaymentProvider] = None):
    self.session = session
    self.provider = provider or get_payment_provider()

  def activate_trial(
    self,
    org: Organization,
    plan_name: str,
    actor_user_id: Optional[str] = None,
  ) -> Dict[str, Any]:
    """
    Create customer (if absent), price and trial subscription for an organization.

    Args:
        org: Organization to activate
        plan_name: Catalog plan name
        actor_user_id: Admin performing the activation, if any

    Returns:
        Dict with subscription_id, trial_ends_at, plan and status

    Raises:
        InvalidPlanError: Unknown plan
        BillingProviderError: Stripe call failed
    """
    plan = BillingConfig.get_subscription_plan(plan_name)
    if not plan:
      raise InvalidPlanError(plan_name)
    plan_name = plan["name"]
    trial_days = plan["trial_days"]

    # Customer and subscription ids are committed together, so a failed
    # activation leaves the organization retryable.
    try:
      customer_id = org.stripe_customer_id
      if not customer_id:
        customer_id = self.provider.create_customer(
          org.id, org.contact_email, org.name
        )
        org.update(self.session, auto_commit=False, stripe_customer_id=customer_id)
        BillingAuditLog.log_event(
          session=self.session,
          event_type=BillingEventType.CUSTOMER_CREATED,
          description=f"Stripe customer {customer_id} created",
          actor_type="admin" if actor_user_id else "user",
          actor_user_id=actor_user_id,
          organization_id=org.id,
          event_data={"stripe_customer_id": customer_id},
          auto_commit=False,
        )

      price_id = self.provider.get_or_create_price(plan_name)
      subscription = self.provider.create_trial_subscription(
        customer_id,
        price_id,
        trial_days,
        metadata={"organization_id": org.id, "plan": plan_name},
      )
    except Exception:
      self.session.rollback()
      raise

    trial_ends_at = from_unix(subscription.get("trial_end")) or (
      utc_now() + timedelta(days=trial_days)
    )

    old_status = org.status
    org.update(
      self.session,
      auto_commit=False,
      stripe_subscription_id=subscription["id"],
      stripe_price_id=price_id,
      subscription_plan=plan_name,
      status=OrganizationStatus.TRIALING.value,
      trial_ends_at=trial_ends_at,
    )
    BillingAuditLog.log_event(
      session=self.session,
      event_type=BillingEventType.SUBSCRIPTION_CREATED,
      description=f"{plan['display_name']} trial subscription created ({trial_days} days)",
      actor_type="admin" if actor_user_id else "user",
      actor_user_id=actor_user_id,
      organization_id=org.id,
      event_data={
        "stripe_subscription_id": subscription["id"],
        "stripe_price_id": price_id,
        "plan": plan_name,
        "trial_days": trial_days,
      },
    )
    log_transition(org.id, old_status, org.status, "trial activated")

    logger.info(
      f"Activated {plan_name} trial for organization {org.id}",
      extra={
        "org_id": org.id,
        "action": "trial_activated",
        "metadata": {"subscription_id": subscription["id"], "trial_days": trial_days},
      },
    )

    return {
      "subscription_id": subscription["id"],
      "trial_ends_at": trial_ends_at,
      "plan": plan_name,
      "status": org.status,
    }

  def activate_self_service(self, org: Organization, plan_name: str) -> Dict[str, Any]:
    """
    Activate a trial requested by the organization itself.

    Raises:
        ActivationError: Not approved yet, or already activated
        InvalidPlanError: Unknown plan
    """
    if not org.is_approved:
      raise ActivationError(NOT_APPROVED_ERROR, org_id=org.id)
    if org.stripe_customer_id:
      raise ActivationError(ALREADY_ACTIVATED_ERROR, org_id=org.id)
    if not BillingConfig.is_valid_plan(plan_name):
      raise InvalidPlanError(plan_name)

    return self.activate_trial(org, plan_name)
