"""Admin API for organization verification and billing lifecycle management."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ...config import BillingConfig
from ...database import get_db_session
from ...exceptions import (
  BillingProviderError,
  InvalidStatusTransitionError,
)
from ...logger import get_logger, log_app_error
from ...middleware.auth import require_admin
from ...models.api import (
  ExtendTrialRequest,
  GracePeriodRequest,
  OverrideSuspensionRequest,
  RejectOrganizationRequest,
)
from ...models.billing import BusinessVerificationLog
from ...models.iam import Organization, User
from ...operations.aws import get_email_service
from ...operations.billing import (
  SubscriptionActivator,
  extend_trial,
  override_suspension,
  retry_latest_invoice,
  set_grace_period,
  sweep_grace_periods,
)
from ...operations.billing.lifecycle import (
  validate_extension_days,
  validate_grace_period_days,
  validate_override_status,
)
from ...operations.verification import approve_organization, reject_organization

logger = get_logger(__name__)

router = APIRouter(prefix="/api/admin/organizations", tags=["admin-organizations"])


def _get_org_or_404(org_id: str, db: Session) -> Organization:
  org = Organization.get_by_id(org_id, db)
  if not org:
    raise HTTPException(status_code=404, detail="Organization not found")
  return org


@router.get("/pending", summary="Approval Queue")
async def list_pending_organizations(
  admin: User = Depends(require_admin),
  db: Session = Depends(get_db_session),
):
  """Organizations awaiting review, each with its latest verification log."""
  results = []
  for org in Organization.list_pending_review(db):
    latest = BusinessVerificationLog.latest_for_organization(org.id, db)
    results.append(
      {**org.to_dict(), "latestVerification": latest.to_dict() if latest else None}
    )
  return results


@router.get("", summary="List Organizations")
async def list_organizations(
  admin: User = Depends(require_admin),
  db: Session = Depends(get_db_session),
):
  return [org.to_dict() for org in Organization.list_all(db)]


@router.post(
  "/check-grace-periods",
  summary="Grace Period Sweep",
  description="Suspend past-due organizations whose grace period has expired.",
)
async def check_grace_periods(
  admin: User = Depends(require_admin),
  db: Session = Depends(get_db_session),
):
  try:
    return sweep_grace_periods(db, actor_user_id=admin.id).to_dict()
  except Exception as e:
    log_app_error(
      e, component="admin", action="check_grace_periods", user_id=admin.id
    )
    raise HTTPException(status_code=500, detail="Failed to check grace periods")


@router.get("/{org_id}", summary="Get Organization")
async def get_organization(
  org_id: str,
  admin: User = Depends(require_admin),
  db: Session = Depends(get_db_session),
):
  return _get_org_or_404(org_id, db).to_dict()


@router.get("/{org_id}/verification-logs", summary="Verification History")
async def get_verification_logs(
  org_id: str,
  admin: User = Depends(require_admin),
  db: Session = Depends(get_db_session),
):
  _get_org_or_404(org_id, db)
  logs = BusinessVerificationLog.list_for_organization(org_id, db)
  return [entry.to_dict() for entry in logs]


@router.post(
  "/{org_id}/approve",
  summary="Approve Organization",
  description="""Approve a business and start its trial subscription.

The approval is stored before Stripe is called. If the subscription cannot be
created the response is a 500 naming the provider error, and the approval
stands so the activation can be retried.""",
)
async def approve(
  org_id: str,
  admin: User = Depends(require_admin),
  db: Session = Depends(get_db_session),
):
  org = _get_org_or_404(org_id, db)
  approve_organization(org, db, admin.id)

  plan_name = (org.subscription_plan or "starter").lower()
  try:
    SubscriptionActivator(db).activate_trial(org, plan_name, actor_user_id=admin.id)
  except Exception as e:
    log_app_error(
      e, component="admin", action="approve", user_id=admin.id, org_id=org_id
    )
    raise HTTPException(
      status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
      detail={
        "message": "Organization approved but Stripe subscription creation failed",
        "error": getattr(e, "message", None) or str(e),
      },
    )

  plan = BillingConfig.get_subscription_plan(plan_name)
  try:
    await get_email_service().send_business_approved(
      org.contact_email,
      org.name,
      plan["display_name"],
      plan["trial_days"],
    )
  except Exception as e:
    logger.error(f"Failed to send approval email for {org_id}: {e}")

  return {
    "success": True,
    "organization": org.to_dict(),
    "message": "Organization approved and trial subscription activated",
  }


@router.post("/{org_id}/reject", summary="Reject Organization")
async def reject(
  org_id: str,
  body: RejectOrganizationRequest,
  admin: User = Depends(require_admin),
  db: Session = Depends(get_db_session),
):
  if not (body.reason or "").strip():
    raise HTTPException(status_code=400, detail="Rejection reason is required")

  org = _get_org_or_404(org_id, db)
  reject_organization(org, body.reason, db, admin.id)

  try:
    await get_email_service().send_business_rejected(
      org.contact_email, org.name, org.rejection_reason
    )
  except Exception as e:
    logger.error(f"Failed to send rejection email for {org_id}: {e}")

  return {
    "success": True,
    "organization": org.to_dict(),
    "message": "Organization rejected successfully",
  }


@router.patch("/{org_id}/grace-period", summary="Set Grace Period")
async def update_grace_period(
  org_id: str,
  body: GracePeriodRequest,
  admin: User = Depends(require_admin),
  db: Session = Depends(get_db_session),
):
  try:
    days = validate_grace_period_days(body.grace_period_days)
  except ValueError as e:
    raise HTTPException(status_code=400, detail=str(e))

  org = _get_org_or_404(org_id, db)
  set_grace_period(org, days, db, admin.id)

  logger.info(
    f"Grace period updated for organization {org.name}",
    extra={"org_id": org_id, "user_id": admin.id, "metadata": {"days": days}},
  )
  return {
    "success": True,
    "organization": org.to_dict(),
    "message": f"Grace period set to {days} days",
  }


@router.post("/{org_id}/retry-payment", summary="Retry Payment")
async def retry_payment(
  org_id: str,
  admin: User = Depends(require_admin),
  db: Session = Depends(get_db_session),
):
  org = _get_org_or_404(org_id, db)
  try:
    invoice = retry_latest_invoice(org, db, admin.id)
  except ValueError as e:
    raise HTTPException(status_code=400, detail=str(e))
  except BillingProviderError as e:
    log_app_error(
      e, component="admin", action="retry_payment", user_id=admin.id, org_id=org_id
    )
    raise HTTPException(status_code=500, detail=e.message)

  return {
    "success": True,
    "message": "Payment retry initiated successfully",
    "invoiceId": invoice["id"],
  }


@router.post("/{org_id}/override-suspension", summary="Override Suspension")
async def override_org_suspension(
  org_id: str,
  body: OverrideSuspensionRequest,
  admin: User = Depends(require_admin),
  db: Session = Depends(get_db_session),
):
  try:
    new_status = validate_override_status(body.new_status)
  except ValueError as e:
    raise HTTPException(status_code=400, detail=str(e))

  org = _get_org_or_404(org_id, db)
  try:
    override_suspension(org, new_status, db, admin.id)
  except InvalidStatusTransitionError as e:
    raise HTTPException(status_code=400, detail=str(e))

  return {
    "success": True,
    "organization": org.to_dict(),
    "message": f"Organization reactivated with status: {new_status}",
  }


@router.post("/{org_id}/extend-trial", summary="Extend Trial")
async def extend_org_trial(
  org_id: str,
  body: ExtendTrialRequest,
  admin: User = Depends(require_admin),
  db: Session = Depends(get_db_session),
):
  try:
    days = validate_extension_days(body.days)
  except ValueError as e:
    raise HTTPException(status_code=400, detail=str(e))

  org = _get_org_or_404(org_id, db)
  extend_trial(org, days, db, admin.id)

  return {
    "success": True,
    "organization": org.to_dict(),
    "message": f"Trial extended by {days} days",
  }
