"""Seeds the subscription plan catalog from config/billing.py."""

from typing import Any, Dict

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...config.billing import DEFAULT_SUBSCRIPTION_PLANS
from ...logger import get_logger
from ...models.billing import SubscriptionPlan

logger = get_logger(__name__)


def seed_subscription_plans(session: Session) -> Dict[str, Any]:
  """
  Insert catalog plans that are not in the database yet.

  Existing rows are left untouched, so running the seed twice is a no-op.

  Returns:
      Dict with the created and skipped plan names
  """
  created = []
  skipped = []

  for plan in DEFAULT_SUBSCRIPTION_PLANS:
    if SubscriptionPlan.get_by_name(plan["name"], session):
      skipped.append(plan["name"])
      continue
    SubscriptionPlan.create_from_config(plan, session, auto_commit=False)
    created.append(plan["name"])

  try:
    session.commit()
  except SQLAlchemyError:
    session.rollback()
    raise

  logger.info(
    f"Seeded subscription plans: {len(created)} created, {len(skipped)} existing",
    extra={"action": "seed_plans", "metadata": {"created": created}},
  )
  return {"created": created, "skipped": skipped}
