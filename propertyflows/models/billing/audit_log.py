"""Billing audit log - audit trail for billing events and the webhook ledger."""

import secrets
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import (
  JSON,
  Column,
  DateTime,
  ForeignKey,
  Index,
  String,
  UniqueConstraint,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...database import Base
from ...logger import get_logger

logger = get_logger(__name__)


class BillingEventType(str, Enum):
  """Types of billing audit events."""

  CUSTOMER_CREATED = "customer_created"
  SUBSCRIPTION_CREATED = "subscription_created"
  PLAN_CHANGED = "plan_changed"
  TRIAL_EXTENDED = "trial_extended"
  GRACE_PERIOD_CHANGED = "grace_period_changed"
  PAYMENT_RETRY_REQUESTED = "payment_retry_requested"
  SUSPENSION_OVERRIDDEN = "suspension_overridden"
  GRACE_PERIOD_SWEEP = "grace_period_sweep"

  WEBHOOK_RECEIVED = "webhook_received"


class BillingAuditLog(Base):
  """Append-only audit log for billing events.

  Webhook rows double as the idempotency ledger: one row per processed
  provider event, unique on (provider, provider_event_id).
  """

  __tablename__ = "billing_audit_logs"

  id = Column(
    String, primary_key=True, default=lambda: f"baud_{secrets.token_urlsafe(16)}"
  )

  event_type = Column(String, nullable=False)
  event_timestamp = Column(
    DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
  )

  organization_id = Column(String, ForeignKey("organizations.id"), nullable=True)

  provider = Column(String, nullable=True)
  provider_event_id = Column(String, nullable=True)

  event_data = Column(JSON, nullable=True)
  description = Column(String, nullable=False)

  actor_user_id = Column(String, nullable=True)
  actor_type = Column(String, nullable=False)

  created_at = Column(
    DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
  )

  __table_args__ = (
    UniqueConstraint(
      "provider", "provider_event_id", name="uq_billing_audit_provider_event"
    ),
    Index("idx_billing_audit_org", "organization_id"),
    Index("idx_billing_audit_event_type", "event_type"),
    Index("idx_billing_audit_timestamp", "event_timestamp"),
  )

  def __repr__(self) -> str:
    return f"<BillingAuditLog {self.event_type} at {self.event_timestamp}>"

  @classmethod
  def log_event(
    cls,
    session: Session,
    event_type: BillingEventType | str,
    description: str,
    actor_type: str = "system",
    organization_id: Optional[str] = None,
    event_data: Optional[dict] = None,
    actor_user_id: Optional[str] = None,
    provider: Optional[str] = None,
    provider_event_id: Optional[str] = None,
    auto_commit: bool = True,
  ) -> "BillingAuditLog":
    """Create an audit log entry."""
    event_type_str = (
      event_type.value if isinstance(event_type, BillingEventType) else event_type
    )
    audit_log = cls(
      event_type=event_type_str,
      description=description,
      actor_type=actor_type,
      organization_id=organization_id,
      event_data=event_data,
      actor_user_id=actor_user_id,
      provider=provider,
      provider_event_id=provider_event_id,
    )

    session.add(audit_log)

    if auto_commit:
      try:
        session.commit()
      except SQLAlchemyError:
        session.rollback()
        raise

    logger.info(
      f"Billing audit log: {event_type_str}",
      extra={
        "event_type": event_type_str,
        "org_id": organization_id,
        "action": "billing_audit",
      },
    )

    return audit_log

  @classmethod
  def get_org_history(
    cls,
    session: Session,
    organization_id: str,
    limit: int = 100,
  ) -> list["BillingAuditLog"]:
    """Get audit history for an organization, newest first."""
    return (
      session.query(cls)
      .filter(cls.organization_id == organization_id)
      .order_by(cls.event_timestamp.desc())
      .limit(limit)
      .all()
    )

  @classmethod
  def is_webhook_processed(cls, event_id: str, provider: str, session: Session) -> bool:
    """Check if a webhook event has already been processed.

    Args:
        event_id: The webhook event ID from the payment provider
        provider: Payment provider name (e.g., 'stripe')
        session: Database session

    Returns:
        True if event already processed, False otherwise
    """
    return (
      session.query(cls.id)
      .filter(cls.provider == provider, cls.provider_event_id == event_id)
      .first()
      is not None
    )

  @classmethod
  def mark_webhook_processed(
    cls,
    event_id: str,
    provider: str,
    event_type: str,
    session: Session,
    organization_id: Optional[str] = None,
    auto_commit: bool = True,
  ) -> "BillingAuditLog":
    """Record a webhook event in the ledger.

    With auto_commit=False the row joins the caller's transaction so the
    ledger entry and the state change it describes commit together.
    """
    return cls.log_event(
      session=session,
      event_type=BillingEventType.WEBHOOK_RECEIVED,
      description=f"{provider} webhook: {event_type}",
      actor_type=f"{provider}_webhook",
      organization_id=organization_id,
      event_data={"webhook_type": event_type},
      provider=provider,
      provider_event_id=event_id,
      auto_commit=auto_commit,
    )
