"""
Admin overrides of the subscription lifecycle.

Each override validates its input, changes the organization, and leaves a
billing audit entry plus a security audit event naming the admin.
"""

from datetime import timedelta
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ...exceptions import InvalidStatusTransitionError
from ...logger import get_logger, log_transition
from ...models.billing import BillingAuditLog, BillingEventType
from ...models.iam import Organization, OrganizationStatus
from ...security import SecurityAuditLogger
from .lifecycle import (
  ensure_utc,
  utc_now,
  validate_extension_days,
  validate_grace_period_days,
  validate_override_status,
)
from .payment_provider import PaymentProvider, get_payment_provider

logger = get_logger(__name__)

NO_SUBSCRIPTION_ERROR = "No active subscription found for this organization"
NO_INVOICE_ERROR = "No invoice found to retry"
INVOICE_PAID_ERROR = "Latest invoice is already paid"


def _audit(
  session: Session,
  org: Organization,
  admin_user_id: Optional[str],
  event_type: BillingEventType,
  description: str,
  event_data: Dict[str, Any],
) -> None:
  BillingAuditLog.log_event(
    session=session,
    event_type=event_type,
    description=description,
    actor_type="admin",
    actor_user_id=admin_user_id,
    organization_id=org.id,
    event_data=event_data,
  )
  SecurityAuditLogger.log_admin_override(
    admin_user_id=admin_user_id,
    organization_id=org.id,
    action=event_type.value,
    details=event_data,
  )


def set_grace_period(
  org: Organization, grace_period_days: Any, session: Session, admin_user_id: Optional[str]
) -> int:
  """
  Set the organization's dunning grace period.

  Raises:
      ValueError: Not a whole number between 0 and 90
  """
  days = validate_grace_period_days(grace_period_days)
  old_days = org.grace_period_days

  org.update(session, auto_commit=False, grace_period_days=days)
  _audit(
    session,
    org,
    admin_user_id,
    BillingEventType.GRACE_PERIOD_CHANGED,
    f"Grace period set to {days} days",
    {"old_grace_period_days": old_days, "grace_period_days": days},
  )
  return days


def retry_latest_invoice(
  org: Organization,
  session: Session,
  admin_user_id: Optional[str],
  provider: Optional[PaymentProvider] = None,
) -> Dict[str, Any]:
  """
  Attempt to pay the subscription's latest invoice now.

  Raises:
      ValueError: No subscription, no invoice, or invoice already paid
      BillingProviderError: Stripe call failed
  """
  if not org.stripe_subscription_id:
    raise ValueError(NO_SUBSCRIPTION_ERROR)

  provider = provider or get_payment_provider()
  subscription = provider.get_subscription(
    org.stripe_subscription_id, expand=["latest_invoice"]
  )
  latest_invoice = subscription.get("latest_invoice")

  if not latest_invoice or isinstance(latest_invoice, str):
    raise ValueError(NO_INVOICE_ERROR)
  if latest_invoice.get("status") == "paid":
    raise ValueError(INVOICE_PAID_ERROR)

  invoice = provider.retry_invoice_payment(latest_invoice["id"])
  _audit(
    session,
    org,
    admin_user_id,
    BillingEventType.PAYMENT_RETRY_REQUESTED,
    f"Manual payment retry for invoice {latest_invoice['id']}",
    {"invoice_id": latest_invoice["id"], "invoice_status": invoice.get("status")},
  )
  return invoice


def override_suspension(
  org: Organization, new_status: Any, session: Session, admin_user_id: Optional[str]
) -> str:
  """
  Reactivate a suspended organization.

  Only a move to active closes the dunning cycle (payment_failed_at cleared).

  Raises:
      ValueError: Target status is not active, past_due or trialing
      InvalidStatusTransitionError: Organization is not suspended
  """
  new_status = validate_override_status(new_status)
  if org.status != OrganizationStatus.SUSPENDED.value:
    raise InvalidStatusTransitionError(
      f"Organization status is {org.status}, not suspended",
      current_status=org.status,
    )

  fields: Dict[str, Any] = {"status": new_status}
  if new_status == OrganizationStatus.ACTIVE.value:
    fields["payment_failed_at"] = None

  org.update(session, auto_commit=False, **fields)
  _audit(
    session,
    org,
    admin_user_id,
    BillingEventType.SUSPENSION_OVERRIDDEN,
    f"Suspension overridden to {new_status}",
    {"old_status": OrganizationStatus.SUSPENDED.value, "new_status": new_status},
  )
  log_transition(
    org.id, OrganizationStatus.SUSPENDED.value, new_status, "admin override"
  )
  return new_status


def extend_trial(
  org: Organization, days: Any, session: Session, admin_user_id: Optional[str]
) -> Organization:
  """
  Push the trial end out by a number of days, counting from now if unset.

  Raises:
      ValueError: Not a positive whole number
  """
  days = validate_extension_days(days)
  base = ensure_utc(org.trial_ends_at) or utc_now()
  new_end = base + timedelta(days=days)

  org.update(session, auto_commit=False, trial_ends_at=new_end)
  _audit(
    session,
    org,
    admin_user_id,
    BillingEventType.TRIAL_EXTENDED,
    f"Trial extended by {days} days",
    {"days": days, "trial_ends_at": new_end.isoformat()},
  )
  return org
