import os

# Settings are read at import time; point everything at test doubles first
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret-key-for-unit-tests-only"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_dummy"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_dummy"
os.environ["EMAIL_FROM_ADDRESS"] = "noreply@propertyflows.test"
os.environ["APP_URL"] = "https://app.propertyflows.test"

from datetime import datetime, timedelta, timezone  # noqa: E402
from unittest.mock import AsyncMock, Mock, patch  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from main import app  # noqa: E402
from propertyflows.database import Model as Base  # noqa: E402
from propertyflows.database import engine, get_db_session  # noqa: E402
from propertyflows.middleware.auth import create_jwt_token  # noqa: E402
from propertyflows.models.iam import (  # noqa: E402
  Organization,
  User,
  UserRole,
  VerificationStatus,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Fixed evaluation time for lifecycle tests
NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def db_session():
  """Fresh in-memory database per test."""
  Base.metadata.create_all(bind=engine)
  session = TestingSessionLocal()
  try:
    yield session
  finally:
    session.rollback()
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
  """Test client whose requests share the test session."""

  def override_get_db():
    yield db_session

  app.dependency_overrides[get_db_session] = override_get_db
  with TestClient(app) as test_client:
    yield test_client
  app.dependency_overrides = {}


@pytest.fixture
def make_org(db_session):
  """Factory for organizations with sensible defaults."""

  def _make_org(**fields) -> Organization:
    defaults = {
      "name": "Acme Property Management",
      "contact_name": "Jane Doe",
      "contact_email": "billing@acmepm.com",
      "business_phone": "555-123-4567",
      "business_address": "123 Main Street, Springfield, IL 62701",
      "business_license": "PM-123456",
      "tax_id": "12-3456789",
      "verification_status": VerificationStatus.APPROVED.value,
    }
    defaults.update(fields)
    return Organization.create(db_session, **defaults)

  return _make_org


@pytest.fixture
def admin_user(db_session):
  return User.create("admin@propertyflows.com", db_session, role=UserRole.ADMIN.value)


@pytest.fixture
def admin_headers(admin_user):
  return {"Authorization": f"Bearer {create_jwt_token(admin_user.id)}"}


@pytest.fixture
def org_user_factory(db_session):
  """Create a property manager belonging to an organization."""

  def _make_user(org: Organization, email: str = "manager@acmepm.com") -> User:
    return User.create(email, db_session, organization_id=org.id)

  return _make_user


@pytest.fixture
def user_headers_for(org_user_factory):
  """Bearer headers for a property manager of the given organization."""

  def _headers(org: Organization) -> dict:
    user = org_user_factory(org)
    return {"Authorization": f"Bearer {create_jwt_token(user.id)}"}

  return _headers


@pytest.fixture
def mock_provider():
  """One payment provider mock patched in everywhere it is looked up."""
  provider = Mock()
  provider.create_customer.return_value = "cus_test123"
  provider.get_or_create_price.return_value = "price_starter"
  provider.create_trial_subscription.return_value = {
    "id": "sub_test123",
    "status": "trialing",
    "trial_end": int((datetime.now(timezone.utc) + timedelta(days=14)).timestamp()),
  }

  with (
    patch(
      "propertyflows.operations.billing.activation.get_payment_provider",
      return_value=provider,
    ),
    patch(
      "propertyflows.operations.billing.overrides.get_payment_provider",
      return_value=provider,
    ),
    patch("propertyflows.routers.subscription.get_payment_provider", return_value=provider),
    patch("propertyflows.routers.webhooks.get_payment_provider", return_value=provider),
  ):
    yield provider


@pytest.fixture
def mock_email_service():
  """Email service double; every send_* coroutine reports success."""
  service = AsyncMock()
  for method in (
    "send_business_approved",
    "send_business_rejected",
    "send_trial_ending",
    "send_payment_failed",
    "send_account_suspended",
    "send_payment_succeeded",
  ):
    getattr(service, method).return_value = True

  with (
    patch(
      "propertyflows.routers.admin.organizations.get_email_service",
      return_value=service,
    ),
    patch(
      "propertyflows.operations.billing.webhook_reconciler.get_email_service",
      return_value=service,
    ),
  ):
    yield service
