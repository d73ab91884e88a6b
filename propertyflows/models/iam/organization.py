"""Organization model: the billable tenant and its subscription lifecycle state."""

from collections.abc import Sequence
from datetime import UTC, datetime
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, relationship

from ...database import Model
from ...utils.ulid import generate_prefixed_ulid


class OrganizationStatus(str, Enum):
  """Subscription status of an organization."""

  TRIALING = "trialing"
  ACTIVE = "active"
  PAST_DUE = "past_due"
  CANCELED = "canceled"
  UNPAID = "unpaid"
  SUSPENDED = "suspended"


class VerificationStatus(str, Enum):
  """Business verification outcome of an organization."""

  PENDING = "pending"
  APPROVED = "approved"
  REJECTED = "rejected"
  MANUAL_REVIEW = "manual_review"


class Organization(Model):
  """Organization model holding verification and subscription state."""

  __tablename__ = "organizations"

  id = Column(String, primary_key=True, default=lambda: generate_prefixed_ulid("org"))
  name = Column(String, nullable=False)

  contact_name = Column(String, nullable=True)
  contact_email = Column(String, nullable=True)
  contact_phone = Column(String, nullable=True)
  website = Column(String, nullable=True)

  # Subscription
  subscription_plan = Column(String, nullable=True)
  stripe_customer_id = Column(String, unique=True, nullable=True, index=True)
  stripe_subscription_id = Column(String, nullable=True)
  stripe_price_id = Column(String, nullable=True)
  status = Column(
    String, nullable=False, default=OrganizationStatus.TRIALING.value, index=True
  )
  trial_ends_at = Column(DateTime(timezone=True), nullable=True)
  current_period_start = Column(DateTime(timezone=True), nullable=True)
  current_period_end = Column(DateTime(timezone=True), nullable=True)
  cancel_at_period_end = Column(Boolean, nullable=False, default=False)

  # Dunning
  grace_period_days = Column(Integer, nullable=True, default=14)
  payment_failed_at = Column(DateTime(timezone=True), nullable=True)
  payment_retry_count = Column(Integer, nullable=False, default=0)

  # Business verification
  verification_status = Column(
    String, nullable=False, default=VerificationStatus.PENDING.value, index=True
  )
  business_license = Column(String, nullable=True)
  tax_id = Column(String, nullable=True)
  business_address = Column(Text, nullable=True)
  business_phone = Column(String, nullable=True)
  verified_at = Column(DateTime(timezone=True), nullable=True)
  rejection_reason = Column(Text, nullable=True)

  created_at = Column(
    DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
  )
  updated_at = Column(
    DateTime(timezone=True),
    default=lambda: datetime.now(UTC),
    onupdate=lambda: datetime.now(UTC),
    nullable=False,
  )

  users = relationship("User", back_populates="organization")
  verification_logs = relationship(
    "BusinessVerificationLog",
    back_populates="organization",
    order_by="BusinessVerificationLog.created_at.desc()",
  )

  def __repr__(self) -> str:
    return f"<Organization {self.id} {self.name} ({self.status})>"

  @property
  def is_suspended(self) -> bool:
    return self.status == OrganizationStatus.SUSPENDED.value

  @property
  def is_approved(self) -> bool:
    return self.verification_status == VerificationStatus.APPROVED.value

  # ==========================================================================
  # FINDERS
  # ==========================================================================

  @classmethod
  def get_by_id(cls, org_id: str, session: Session) -> Optional["Organization"]:
    """Get organization by ID."""
    return session.query(cls).filter(cls.id == org_id).first()

  @classmethod
  def get_by_stripe_customer_id(
    cls, customer_id: str, session: Session
  ) -> Optional["Organization"]:
    """Get the organization billed under a Stripe customer."""
    if not customer_id:
      return None
    return session.query(cls).filter(cls.stripe_customer_id == customer_id).first()

  @classmethod
  def list_all(cls, session: Session) -> Sequence["Organization"]:
    """Get all organizations, newest first."""
    return session.query(cls).order_by(cls.created_at.desc()).all()

  @classmethod
  def list_pending_review(cls, session: Session) -> Sequence["Organization"]:
    """Organizations awaiting an admin decision, newest first."""
    return (
      session.query(cls)
      .filter(
        cls.verification_status.in_(
          [VerificationStatus.PENDING.value, VerificationStatus.MANUAL_REVIEW.value]
        )
      )
      .order_by(cls.created_at.desc())
      .all()
    )

  @classmethod
  def list_past_due_with_failure(cls, session: Session) -> Sequence["Organization"]:
    """Past-due organizations inside a dunning cycle (payment_failed_at set)."""
    return (
      session.query(cls)
      .filter(
        cls.status == OrganizationStatus.PAST_DUE.value,
        cls.payment_failed_at.is_not(None),
      )
      .all()
    )

  # ==========================================================================
  # MUTATORS
  # ==========================================================================

  @classmethod
  def create(cls, session: Session, auto_commit: bool = True, **fields) -> "Organization":
    org = cls(**fields)
    session.add(org)
    session.flush()

    if auto_commit:
      try:
        session.commit()
        session.refresh(org)
      except SQLAlchemyError:
        session.rollback()
        raise

    return org

  def update(self, session: Session, auto_commit: bool = True, **kwargs) -> None:
    """Update organization fields.

    Args:
        session: Database session
        auto_commit: Whether to automatically commit the transaction (default: True)
        **kwargs: Fields to update
    """
    for key, value in kwargs.items():
      if hasattr(self, key):
        setattr(self, key, value)
    self.updated_at = datetime.now(UTC)

    if auto_commit:
      try:
        session.commit()
        session.refresh(self)
      except SQLAlchemyError:
        session.rollback()
        raise

  def to_dict(self) -> dict:
    """Serialize for admin and portal responses."""
    return {
      "id": self.id,
      "name": self.name,
      "contactName": self.contact_name,
      "contactEmail": self.contact_email,
      "contactPhone": self.contact_phone,
      "website": self.website,
      "subscriptionPlan": self.subscription_plan,
      "stripeCustomerId": self.stripe_customer_id,
      "stripeSubscriptionId": self.stripe_subscription_id,
      "stripePriceId": self.stripe_price_id,
      "status": self.status,
      "trialEndsAt": _iso(self.trial_ends_at),
      "currentPeriodStart": _iso(self.current_period_start),
      "currentPeriodEnd": _iso(self.current_period_end),
      "cancelAtPeriodEnd": bool(self.cancel_at_period_end),
      "gracePeriodDays": self.grace_period_days,
      "paymentFailedAt": _iso(self.payment_failed_at),
      "paymentRetryCount": self.payment_retry_count or 0,
      "verificationStatus": self.verification_status,
      "businessLicense": self.business_license,
      "taxId": self.tax_id,
      "businessAddress": self.business_address,
      "businessPhone": self.business_phone,
      "verifiedAt": _iso(self.verified_at),
      "rejectionReason": self.rejection_reason,
      "createdAt": _iso(self.created_at),
      "updatedAt": _iso(self.updated_at),
    }


def _iso(value: Optional[datetime]) -> Optional[str]:
  return value.isoformat() if value else None
