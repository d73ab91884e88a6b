"""Tests for the Stripe webhook endpoint."""

from unittest.mock import patch

from propertyflows.models.billing import BillingAuditLog

ENDPOINT = "/api/webhooks/stripe"


def _payment_failed_event(event_id: str = "evt_fail_1") -> dict:
  return {
    "id": event_id,
    "type": "invoice.payment_failed",
    "data": {
      "object": {
        "id": "in_1",
        "customer": "cus_acme",
        "amount_due": 4900,
        "next_payment_attempt": None,
      }
    },
  }


def test_missing_signature_is_rejected(client, mock_provider):
  with patch("propertyflows.routers.webhooks.SecurityAuditLogger") as mock_audit:
    response = client.post(ENDPOINT, content=b"{}")

  assert response.status_code == 400
  assert response.json()["detail"] == "Missing stripe-signature header"
  mock_provider.verify_webhook.assert_not_called()
  mock_audit.log_webhook_rejected.assert_called_once()


def test_invalid_signature_is_rejected(client, db_session, mock_provider):
  mock_provider.verify_webhook.side_effect = ValueError("Invalid webhook signature")

  response = client.post(
    ENDPOINT, content=b"{}", headers={"stripe-signature": "t=1,v1=forged"}
  )

  assert response.status_code == 400
  assert response.json()["detail"] == "Invalid webhook signature"
  assert db_session.query(BillingAuditLog).count() == 0


def test_payment_failed_moves_org_past_due(
  client, db_session, make_org, mock_provider, mock_email_service
):
  org = make_org(stripe_customer_id="cus_acme", status="active")
  mock_provider.verify_webhook.return_value = _payment_failed_event()

  response = client.post(
    ENDPOINT, content=b"{}", headers={"stripe-signature": "t=1,v1=ok"}
  )

  assert response.status_code == 200
  assert response.json() == {"received": True}
  db_session.refresh(org)
  assert org.status == "past_due"
  assert org.payment_retry_count == 1
  mock_email_service.send_payment_failed.assert_awaited_once()
  assert mock_email_service.send_payment_failed.call_args.kwargs["retry_date"] == "Soon"


def test_redelivered_event_is_acknowledged_as_duplicate(
  client, db_session, make_org, mock_provider, mock_email_service
):
  org = make_org(stripe_customer_id="cus_acme", status="active")
  mock_provider.verify_webhook.return_value = _payment_failed_event("evt_dup")
  headers = {"stripe-signature": "t=1,v1=ok"}

  client.post(ENDPOINT, content=b"{}", headers=headers)
  response = client.post(ENDPOINT, content=b"{}", headers=headers)

  assert response.status_code == 200
  assert response.json() == {"received": True, "duplicate": True}
  db_session.refresh(org)
  assert org.payment_retry_count == 1
  assert mock_email_service.send_payment_failed.await_count == 1


def test_unhandled_event_type_is_acknowledged(client, db_session, mock_provider):
  mock_provider.verify_webhook.return_value = {
    "id": "evt_other",
    "type": "charge.refunded",
    "data": {"object": {}},
  }

  response = client.post(
    ENDPOINT, content=b"{}", headers={"stripe-signature": "t=1,v1=ok"}
  )

  assert response.status_code == 200
  assert BillingAuditLog.is_webhook_processed("evt_other", "stripe", db_session)


def test_processing_failure_returns_500(client, mock_provider):
  mock_provider.verify_webhook.return_value = _payment_failed_event()

  with patch(
    "propertyflows.routers.webhooks.WebhookReconciler.process_event",
    side_effect=RuntimeError("database unavailable"),
  ):
    response = client.post(
      ENDPOINT, content=b"{}", headers={"stripe-signature": "t=1,v1=ok"}
    )

  assert response.status_code == 500
  assert response.json()["detail"] == "Webhook processing failed"
