"""Admin API for the subscription plan catalog."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db_session
from ...middleware.auth import require_admin
from ...models.billing import SubscriptionPlan
from ...models.iam import User
from ...operations.billing import seed_subscription_plans

router = APIRouter(prefix="/api/admin/subscription-plans", tags=["admin-plans"])


@router.get("", summary="List Subscription Plans")
async def list_plans(
  admin: User = Depends(require_admin),
  db: Session = Depends(get_db_session),
):
  return [plan.to_dict() for plan in SubscriptionPlan.list_active(db)]


@router.post(
  "/seed",
  summary="Seed Subscription Plans",
  description="Insert the default plan catalog. Plans that already exist are kept.",
)
async def seed_plans(
  admin: User = Depends(require_admin),
  db: Session = Depends(get_db_session),
):
  result = seed_subscription_plans(db)
  return {
    "success": True,
    "created": result["created"],
    "skipped": result["skipped"],
    "message": f"Seeded {len(result['created'])} subscription plans",
  }
