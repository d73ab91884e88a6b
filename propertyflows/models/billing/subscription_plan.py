"""Subscription plan catalog model (read-only reference data)."""

from collections.abc import Sequence
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, Numeric, String, Text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...database import Model
from ...utils.ulid import generate_prefixed_ulid


class SubscriptionPlan(Model):
  """A purchasable plan with its price, trial length and feature limits."""

  __tablename__ = "subscription_plans"

  id = Column(String, primary_key=True, default=lambda: generate_prefixed_ulid("plan"))
  name = Column(String, unique=True, nullable=False)
  display_name = Column(String, nullable=False)
  description = Column(Text, nullable=True)
  price = Column(Numeric(10, 2), nullable=False)
  billing_interval = Column(String, nullable=False, default="monthly")
  trial_days = Column(Integer, nullable=False, default=14)
  is_active = Column(Boolean, nullable=False, default=True)
  stripe_price_id = Column(String, nullable=True)
  stripe_product_id = Column(String, nullable=True)
  features = Column(JSON, nullable=True)

  created_at = Column(
    DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
  )
  updated_at = Column(
    DateTime(timezone=True),
    default=lambda: datetime.now(timezone.utc),
    onupdate=lambda: datetime.now(timezone.utc),
    nullable=False,
  )

  def __repr__(self) -> str:
    return f"<SubscriptionPlan {self.name} ${self.price}>"

  @classmethod
  def get_by_name(cls, name: str, session: Session) -> Optional["SubscriptionPlan"]:
    return session.query(cls).filter(cls.name == name.lower()).first()

  @classmethod
  def list_active(cls, session: Session) -> Sequence["SubscriptionPlan"]:
    """Active plans ordered by price."""
    return (
      session.query(cls).filter(cls.is_active.is_(True)).order_by(cls.price.asc()).all()
    )

  @classmethod
  def create_from_config(
    cls, plan: Dict[str, Any], session: Session, auto_commit: bool = True
  ) -> "SubscriptionPlan":
    """Create a plan row from a catalog entry in config/billing.py."""
    row = cls(
      name=plan["name"],
      display_name=plan["display_name"],
      description=plan.get("description"),
      price=Decimal(plan["price_cents"]) / Decimal(100),
      billing_interval=plan.get("billing_interval", "monthly"),
      trial_days=plan["trial_days"],
      is_active=True,
      features=plan.get("features"),
    )
    session.add(row)

    if auto_commit:
      try:
        session.commit()
        session.refresh(row)
      except SQLAlchemyError:
        session.rollback()
        raise

    return row

  def to_dict(self) -> Dict[str, Any]:
    return {
      "id": self.id,
      "name": self.name,
      "displayName": self.display_name,
      "description": self.description,
      "price": str(self.price) if self.price is not None else None,
      "billingInterval": self.billing_interval,
      "trialDays": self.trial_days,
      "isActive": self.is_active,
      "stripePriceId": self.stripe_price_id,
      "stripeProductId": self.stripe_product_id,
      "features": self.features,
    }
