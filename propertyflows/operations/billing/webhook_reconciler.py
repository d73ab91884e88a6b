"""
Stripe webhook reconciler.

Applies verified billing-provider events to organizations. Each event is
checked against the ``BillingAuditLog`` ledger first; the state change and the
ledger row commit in one transaction, so a redelivered event is acknowledged
without being applied twice. Notification emails go out after the commit and
never roll back state.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...logger import get_logger, log_transition
from ...models.billing import BillingAuditLog
from ...models.iam import Organization, OrganizationStatus
from ..aws.ses import SESEmailService, get_email_service
from .lifecycle import (
  ensure_utc,
  from_unix,
  grace_period_end,
  is_grace_expired,
  map_remote_status,
  trial_days_remaining,
  utc_now,
)

logger = get_logger(__name__)

PROVIDER = "stripe"


@dataclass
class Notification:
  """An email to send once the event's state change is committed."""

  method: str
  kwargs: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ReconcileResult:
  action: str
  event_id: Optional[str] = None
  event_type: str = ""
  organization_id: Optional[str] = None
  duplicate: bool = False
  notification: Optional[Notification] = None

  def to_response(self) -> Dict[str, Any]:
    if self.duplicate:
      return {"received": True, "duplicate": True}
    return {"received": True}


def _format_date(value: Optional[datetime]) -> str:
  return value.strftime("%B %d, %Y") if value else ""


class WebhookReconciler:
  """Drives the organization status state machine from Stripe events."""

  def __init__(self, session: Session, email_service: Optional[SESEmailService] = None):
    self.session = session
    self._email_service = email_service

  @property
  def email_service(self) -> SESEmailService:
    if self._email_service is None:
      self._email_service = get_email_service()
    return self._email_service

  async def process_event(
    self, event: Dict[str, Any], now: Optional[datetime] = None
  ) -> ReconcileResult:
    """
    Apply one verified webhook event.

    Args:
        event: Parsed event body (id, type, data.object)
        now: Evaluation time, defaults to the current UTC time

    Returns:
        ReconcileResult describing what was done

    Raises:
        Exception: Processing failed; nothing was committed or recorded
    """
    event_id = event.get("id")
    event_type = event.get("type", "")
    data = (event.get("data") or {}).get("object") or {}
    current = ensure_utc(now) if now is not None else utc_now()

    if event_id and BillingAuditLog.is_webhook_processed(event_id, PROVIDER, self.session):
      logger.info(
        f"Webhook event already processed: {event_id}",
        extra={"event_id": event_id, "event_type": event_type},
      )
      return ReconcileResult("skipped", event_id, event_type, duplicate=True)

    handler = {
      "customer.subscription.updated": self._handle_subscription_updated,
      "invoice.payment_succeeded": self._handle_payment_succeeded,
      "invoice.payment_failed": self._handle_payment_failed,
      "customer.subscription.deleted": self._handle_subscription_deleted,
      "customer.subscription.trial_will_end": self._handle_trial_will_end,
    }.get(event_type)

    org = Organization.get_by_stripe_customer_id(data.get("customer"), self.session)

    if handler is None:
      logger.info(f"Unhandled webhook event type: {event_type}")
      result = ReconcileResult("ignored", event_id, event_type)
    elif org is None:
      logger.warning(
        f"No organization for Stripe customer {data.get('customer')}",
        extra={"event_id": event_id, "event_type": event_type},
      )
      result = ReconcileResult("ignored", event_id, event_type)
    else:
      result = handler(org, data, current)
      result.event_id = event_id
      result.event_type = event_type
      result.organization_id = org.id

    try:
      if event_id:
        BillingAuditLog.mark_webhook_processed(
          event_id,
          PROVIDER,
          event_type,
          self.session,
          organization_id=result.organization_id,
          auto_commit=False,
        )
      self.session.commit()
    except IntegrityError:
      # Another delivery of the same event committed first
      self.session.rollback()
      logger.info(
        f"Webhook event recorded concurrently: {event_id}",
        extra={"event_id": event_id, "event_type": event_type},
      )
      return ReconcileResult("skipped", event_id, event_type, duplicate=True)
    except Exception:
      self.session.rollback()
      raise

    if result.notification is not None:
      await self._notify(result.notification)

    logger.info(
      f"Processed Stripe webhook {event_type}: {result.action}",
      extra={
        "event_id": event_id,
        "event_type": event_type,
        "org_id": result.organization_id,
        "action": result.action,
      },
    )
    return result

  async def _notify(self, notification: Notification) -> bool:
    send = getattr(self.email_service, notification.method)
    sent = await send(**notification.kwargs)
    if not sent:
      logger.warning(f"Notification {notification.method} was not sent")
    return sent

  def _set_status(
    self, org: Organization, new_status: str, reason: str, **fields
  ) -> None:
    old_status = org.status
    org.update(self.session, auto_commit=False, status=new_status, **fields)
    if old_status != new_status:
      log_transition(org.id, old_status, new_status, reason)

  # ==========================================================================
  # EVENT HANDLERS
  # ==========================================================================

  def _handle_subscription_updated(
    self, org: Organization, subscription: Dict[str, Any], now: datetime
  ) -> ReconcileResult:
    items = (subscription.get("items") or {}).get("data") or []
    price_id = items[0]["price"]["id"] if items else org.stripe_price_id

    period_start = from_unix(subscription.get("current_period_start"))
    period_end = from_unix(subscription.get("current_period_end"))

    new_status = map_remote_status(subscription.get("status"), org.status)
    self._set_status(
      org,
      new_status,
      f"subscription {subscription.get('status')}",
      stripe_subscription_id=subscription.get("id") or org.stripe_subscription_id,
      stripe_price_id=price_id,
      current_period_start=period_start or org.current_period_start,
      current_period_end=period_end or org.current_period_end,
      cancel_at_period_end=bool(subscription.get("cancel_at_period_end")),
    )
    return ReconcileResult("subscription_updated")

  def _handle_payment_succeeded(
    self, org: Organization, invoice: Dict[str, Any], now: datetime
  ) -> ReconcileResult:
    self._set_status(
      org,
      OrganizationStatus.ACTIVE.value,
      "payment succeeded",
      payment_failed_at=None,
      payment_retry_count=0,
    )
    notification = Notification(
      "send_payment_succeeded",
      {
        "to_email": org.contact_email,
        "company_name": org.name,
        "amount_cents": invoice.get("amount_paid") or 0,
        "invoice_url": invoice.get("hosted_invoice_url"),
      },
    )
    return ReconcileResult("payment_recorded", notification=notification)

  def _handle_payment_failed(
    self, org: Organization, invoice: Dict[str, Any], now: datetime
  ) -> ReconcileResult:
    first_failure = ensure_utc(org.payment_failed_at) or now
    retry_count = (org.payment_retry_count or 0) + 1
    grace_end = grace_period_end(first_failure, org.grace_period_days)

    if is_grace_expired(first_failure, org.grace_period_days, now):
      self._set_status(
        org,
        OrganizationStatus.SUSPENDED.value,
        "grace period expired",
        payment_failed_at=first_failure,
        payment_retry_count=retry_count,
      )
      notification = Notification(
        "send_account_suspended",
        {
          "to_email": org.contact_email,
          "company_name": org.name,
          "amount_cents": invoice.get("amount_due") or 0,
        },
      )
      return ReconcileResult("suspended", notification=notification)

    self._set_status(
      org,
      OrganizationStatus.PAST_DUE.value,
      "payment failed",
      payment_failed_at=first_failure,
      payment_retry_count=retry_count,
    )
    next_attempt = from_unix(invoice.get("next_payment_attempt"))
    notification = Notification(
      "send_payment_failed",
      {
        "to_email": org.contact_email,
        "company_name": org.name,
        "amount_cents": invoice.get("amount_due") or 0,
        "retry_date": _format_date(next_attempt) if next_attempt else "Soon",
        "grace_period_end": _format_date(grace_end),
      },
    )
    return ReconcileResult("past_due", notification=notification)

  def _handle_subscription_deleted(
    self, org: Organization, subscription: Dict[str, Any], now: datetime
  ) -> ReconcileResult:
    self._set_status(org, OrganizationStatus.CANCELED.value, "subscription deleted")
    return ReconcileResult("subscription_canceled")

  def _handle_trial_will_end(
    self, org: Organization, subscription: Dict[str, Any], now: datetime
  ) -> ReconcileResult:
    trial_end = from_unix(subscription.get("trial_end"))
    if trial_end is None:
      return ReconcileResult("ignored")

    notification = Notification(
      "send_trial_ending",
      {
        "to_email": org.contact_email,
        "company_name": org.name,
        "days_remaining": trial_days_remaining(trial_end, now),
        "trial_end_date": _format_date(trial_end),
      },
    )
    return ReconcileResult("trial_reminder", notification=notification)
