"""Payment provider webhook handlers."""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from ..database import get_db_session
from ..logger import get_logger, log_app_error
from ..operations.billing import WebhookReconciler, get_payment_provider
from ..security import SecurityAuditLogger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])

ENDPOINT = "/api/webhooks/stripe"


@router.post(
  "/stripe",
  status_code=status.HTTP_200_OK,
  summary="Stripe Webhook Handler",
  description="""Handle Stripe webhook events.

Events drive the organization status state machine:
- customer.subscription.updated - Sync status, price and billing period
- invoice.payment_succeeded - Reactivate and reset the dunning cycle
- invoice.payment_failed - Past due, or suspended once the grace period ran out
- customer.subscription.deleted - Canceled
- customer.subscription.trial_will_end - Trial reminder email

**SECURITY**: No bearer authentication; the raw body is verified against the
Stripe signature before anything is read or changed.

Events are recorded in the billing audit ledger, so redelivered events are
acknowledged with `duplicate: true` and not applied again.""",
  operation_id="handleStripeWebhook",
)
async def handle_stripe_webhook(
  request: Request,
  db: Session = Depends(get_db_session),
):
  """Verify and apply a Stripe webhook event."""
  try:
    payload = await request.body()
    signature = request.headers.get("stripe-signature")
    client_ip = request.client.host if request.client else None

    if not signature:
      SecurityAuditLogger.log_webhook_rejected(
        reason="missing_signature", ip_address=client_ip, endpoint=ENDPOINT
      )
      raise HTTPException(status_code=400, detail="Missing stripe-signature header")

    provider = get_payment_provider("stripe")

    try:
      event = provider.verify_webhook(payload, signature)
    except ValueError as e:
      logger.error(f"Invalid webhook signature: {e}")
      SecurityAuditLogger.log_webhook_rejected(
        reason="invalid_signature", ip_address=client_ip, endpoint=ENDPOINT
      )
      raise HTTPException(status_code=400, detail="Invalid webhook signature")

    result = await WebhookReconciler(db).process_event(event)
    return result.to_response()

  except HTTPException:
    raise
  except Exception as e:
    log_app_error(e, component="webhooks", action="process_stripe_event")
    raise HTTPException(status_code=500, detail="Webhook processing failed")
