"""Subscription portal for organization users."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from ..config import BillingConfig, env
from ..database import get_db_session
from ..exceptions import BillingProviderError
from ..logger import get_logger, log_app_error
from ..middleware.auth import get_current_organization
from ..models.api import (
  BillingPortalResponse,
  ChangePlanRequest,
  InvoiceInfo,
  InvoiceListResponse,
)
from ..models.billing import BillingAuditLog, BillingEventType
from ..models.iam import Organization
from ..operations.billing import get_payment_provider

logger = get_logger(__name__)

router = APIRouter(prefix="/api/subscription", tags=["subscription"])


def _live_subscription(org: Organization) -> Optional[Dict[str, Any]]:
  """Subscription details from Stripe, or None when unavailable."""
  if not org.stripe_subscription_id:
    return None

  try:
    subscription = get_payment_provider().get_subscription(org.stripe_subscription_id)
  except Exception as e:
    logger.error(
      f"Error fetching Stripe subscription {org.stripe_subscription_id}: {e}",
      extra={"org_id": org.id},
    )
    return None

  return {
    "id": subscription["id"],
    "status": subscription["status"],
    "currentPeriodEnd": subscription.get("current_period_end"),
    "currentPeriodStart": subscription.get("current_period_start"),
    "cancelAtPeriodEnd": subscription.get("cancel_at_period_end", False),
    "trialEnd": subscription.get("trial_end"),
  }


@router.get(
  "/current",
  summary="Current Subscription",
  description="Organization billing state plus live subscription details.",
  operation_id="getCurrentSubscription",
)
async def get_current_subscription(
  org: Organization = Depends(get_current_organization),
):
  organization = org.to_dict()
  return {
    "organization": {
      key: organization[key]
      for key in (
        "id",
        "name",
        "status",
        "subscriptionPlan",
        "trialEndsAt",
        "gracePeriodDays",
        "paymentFailedAt",
      )
    },
    "subscription": _live_subscription(org),
  }


@router.get(
  "/invoices",
  response_model=InvoiceListResponse,
  summary="List Invoices",
  operation_id="listSubscriptionInvoices",
)
async def list_invoices(
  org: Organization = Depends(get_current_organization),
):
  if not org.stripe_customer_id:
    return InvoiceListResponse(invoices=[])

  try:
    invoices = get_payment_provider().list_invoices(org.stripe_customer_id)
  except BillingProviderError as e:
    log_app_error(e, component="subscription", action="list_invoices", org_id=org.id)
    raise HTTPException(status_code=500, detail="Failed to fetch invoices")

  return InvoiceListResponse(
    invoices=[
      InvoiceInfo(
        id=invoice["id"],
        number=invoice.get("number"),
        amount=invoice.get("amount_paid") or 0,
        amount_due=invoice.get("amount_due") or 0,
        status=invoice.get("status"),
        created=invoice.get("created"),
        due_date=invoice.get("due_date"),
        paid_at=invoice.get("paid_at"),
        invoice_pdf=invoice.get("invoice_pdf"),
        hosted_invoice_url=invoice.get("hosted_invoice_url"),
      )
      for invoice in invoices
    ]
  )


@router.post(
  "/change-plan",
  summary="Change Plan",
  description="Swap the subscription to another catalog plan with prorations.",
  operation_id="changeSubscriptionPlan",
)
async def change_plan(
  body: ChangePlanRequest,
  org: Organization = Depends(get_current_organization),
  db: Session = Depends(get_db_session),
):
  plan = BillingConfig.get_subscription_plan(body.new_plan or "")
  if not plan:
    raise HTTPException(status_code=400, detail="Invalid plan type")

  if not org.stripe_subscription_id:
    raise HTTPException(status_code=400, detail="No active subscription found")

  try:
    provider = get_payment_provider()
    price_id = provider.get_or_create_price(plan["name"])
    provider.update_subscription_price(org.stripe_subscription_id, price_id)

    old_plan = org.subscription_plan
    org.update(
      db, auto_commit=False, stripe_price_id=price_id, subscription_plan=plan["name"]
    )
    BillingAuditLog.log_event(
      session=db,
      event_type=BillingEventType.PLAN_CHANGED,
      description=f"Plan changed from {old_plan} to {plan['name']}",
      actor_type="user",
      organization_id=org.id,
      event_data={"old_plan": old_plan, "new_plan": plan["name"], "price_id": price_id},
    )

    return {
      "success": True,
      "message": f"Successfully changed to {plan['name']} plan",
    }

  except BillingProviderError as e:
    log_app_error(e, component="subscription", action="change_plan", org_id=org.id)
    raise HTTPException(status_code=500, detail=e.message)


@router.post(
  "/billing-portal",
  response_model=BillingPortalResponse,
  summary="Billing Portal Session",
  operation_id="createBillingPortalSession",
)
async def create_billing_portal(
  request: Request,
  org: Organization = Depends(get_current_organization),
):
  if not org.stripe_customer_id:
    raise HTTPException(
      status_code=400,
      detail="No Stripe customer found. Please activate your trial first.",
    )

  # Only allowlisted origins may become the portal's return URL.
  origin = request.headers.get("origin")
  if origin not in env.get_cors_origins():
    origin = env.APP_URL
  try:
    url = get_payment_provider().create_billing_portal_session(
      org.stripe_customer_id, return_url=f"{origin}/settings/subscription"
    )
  except BillingProviderError as e:
    log_app_error(e, component="subscription", action="billing_portal", org_id=org.id)
    raise HTTPException(status_code=500, detail="Failed to create billing portal session")

  return BillingPortalResponse(url=url)
