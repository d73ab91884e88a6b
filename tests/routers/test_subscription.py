"""Tests for the organization subscription portal."""

from propertyflows.exceptions import BillingProviderError
from propertyflows.models.billing import BillingAuditLog


class TestAuth:
  def test_requires_token(self, client):
    response = client.get("/api/subscription/current")

    assert response.status_code == 401
    assert response.json()["detail"] == "Authentication required"

  def test_invalid_token(self, client):
    response = client.get(
      "/api/subscription/current", headers={"Authorization": "Bearer not-a-jwt"}
    )

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid or expired token"

  def test_user_without_organization(self, client, admin_headers):
    response = client.get("/api/subscription/current", headers=admin_headers)

    assert response.status_code == 404
    assert response.json()["detail"] == "Organization not found"


class TestCurrentSubscription:
  def test_without_stripe_subscription(self, client, make_org, user_headers_for):
    org = make_org(subscription_plan="starter")

    response = client.get("/api/subscription/current", headers=user_headers_for(org))

    assert response.status_code == 200
    data = response.json()
    assert data["organization"]["id"] == org.id
    assert data["organization"]["subscriptionPlan"] == "starter"
    assert data["subscription"] is None

  def test_includes_live_subscription(
    self, client, make_org, user_headers_for, mock_provider
  ):
    org = make_org(stripe_subscription_id="sub_1")
    mock_provider.get_subscription.return_value = {
      "id": "sub_1",
      "status": "active",
      "current_period_start": 1700000000,
      "current_period_end": 1702592000,
      "cancel_at_period_end": False,
      "trial_end": None,
    }

    response = client.get("/api/subscription/current", headers=user_headers_for(org))

    assert response.json()["subscription"] == {
      "id": "sub_1",
      "status": "active",
      "currentPeriodEnd": 1702592000,
      "currentPeriodStart": 1700000000,
      "cancelAtPeriodEnd": False,
      "trialEnd": None,
    }

  def test_provider_outage_degrades_to_null(
    self, client, make_org, user_headers_for, mock_provider
  ):
    org = make_org(stripe_subscription_id="sub_1")
    mock_provider.get_subscription.side_effect = BillingProviderError("timeout")

    response = client.get("/api/subscription/current", headers=user_headers_for(org))

    assert response.status_code == 200
    assert response.json()["subscription"] is None


class TestInvoices:
  def test_no_customer_returns_empty_list(self, client, make_org, user_headers_for):
    org = make_org()

    response = client.get("/api/subscription/invoices", headers=user_headers_for(org))

    assert response.json() == {"invoices": []}

  def test_lists_invoices(self, client, make_org, user_headers_for, mock_provider):
    org = make_org(stripe_customer_id="cus_1")
    mock_provider.list_invoices.return_value = [
      {
        "id": "in_1",
        "number": "A-0001",
        "status": "paid",
        "amount_due": 4900,
        "amount_paid": 4900,
        "created": 1700000000,
        "paid_at": 1700000100,
        "hosted_invoice_url": "https://invoice.stripe.com/i/1",
      }
    ]

    response = client.get("/api/subscription/invoices", headers=user_headers_for(org))

    invoice = response.json()["invoices"][0]
    assert invoice["id"] == "in_1"
    assert invoice["amount"] == 4900
    assert invoice["paidAt"] == 1700000100
    mock_provider.list_invoices.assert_called_once_with("cus_1")


class TestChangePlan:
  def test_changes_plan(self, client, db_session, make_org, user_headers_for, mock_provider):
    org = make_org(stripe_subscription_id="sub_1", subscription_plan="starter")
    mock_provider.get_or_create_price.return_value = "price_pro"

    response = client.post(
      "/api/subscription/change-plan",
      json={"newPlan": "professional"},
      headers=user_headers_for(org),
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Successfully changed to professional plan"
    mock_provider.update_subscription_price.assert_called_once_with("sub_1", "price_pro")

    db_session.refresh(org)
    assert org.subscription_plan == "professional"
    assert org.stripe_price_id == "price_pro"
    history = BillingAuditLog.get_org_history(db_session, org.id)
    assert history[0].event_type == "plan_changed"

  def test_invalid_plan(self, client, make_org, user_headers_for, mock_provider):
    org = make_org(stripe_subscription_id="sub_1")

    response = client.post(
      "/api/subscription/change-plan",
      json={"newPlan": "platinum"},
      headers=user_headers_for(org),
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid plan type"

  def test_requires_subscription(self, client, make_org, user_headers_for, mock_provider):
    org = make_org()

    response = client.post(
      "/api/subscription/change-plan",
      json={"newPlan": "professional"},
      headers=user_headers_for(org),
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "No active subscription found"


class TestBillingPortal:
  def test_returns_portal_url(self, client, make_org, user_headers_for, mock_provider):
    org = make_org(stripe_customer_id="cus_1")
    mock_provider.create_billing_portal_session.return_value = "https://billing/abc"

    response = client.post("/api/subscription/billing-portal", headers=user_headers_for(org))

    assert response.json() == {"url": "https://billing/abc"}
    mock_provider.create_billing_portal_session.assert_called_once_with(
      "cus_1", return_url="https://app.propertyflows.test/settings/subscription"
    )

  def test_allowlisted_origin_is_used_for_return_url(
    self, client, make_org, user_headers_for, mock_provider
  ):
    org = make_org(stripe_customer_id="cus_1")
    mock_provider.create_billing_portal_session.return_value = "https://billing/abc"

    client.post(
      "/api/subscription/billing-portal",
      headers={**user_headers_for(org), "Origin": "http://localhost:3000"},
    )

    mock_provider.create_billing_portal_session.assert_called_once_with(
      "cus_1", return_url="http://localhost:3000/settings/subscription"
    )

  def test_unknown_origin_falls_back_to_app_url(
    self, client, make_org, user_headers_for, mock_provider
  ):
    org = make_org(stripe_customer_id="cus_1")
    mock_provider.create_billing_portal_session.return_value = "https://billing/abc"

    client.post(
      "/api/subscription/billing-portal",
      headers={**user_headers_for(org), "Origin": "https://evil.example"},
    )

    mock_provider.create_billing_portal_session.assert_called_once_with(
      "cus_1", return_url="https://app.propertyflows.test/settings/subscription"
    )

  def test_requires_customer(self, client, make_org, user_headers_for, mock_provider):
    org = make_org()

    response = client.post("/api/subscription/billing-portal", headers=user_headers_for(org))

    assert response.status_code == 400
