"""Tests for the admin authorization dependency."""

from unittest.mock import Mock, patch

import pytest
from fastapi import HTTPException

from propertyflows.middleware.auth import require_admin


def _request() -> Mock:
  request = Mock()
  request.url.path = "/api/admin/organizations"
  request.method = "GET"
  request.client.host = "203.0.113.5"
  return request


async def test_admin_passes(admin_user):
  assert await require_admin(_request(), current_user=admin_user) is admin_user


async def test_non_admin_is_forbidden(db_session, make_org, org_user_factory):
  user = org_user_factory(make_org())

  with patch("propertyflows.middleware.auth.admin.SecurityAuditLogger") as mock_audit:
    with pytest.raises(HTTPException) as exc_info:
      await require_admin(_request(), current_user=user)

  assert exc_info.value.status_code == 403
  assert exc_info.value.detail == "Admin access required"
  mock_audit.log_authorization_denied.assert_called_once_with(
    user_id=user.id,
    endpoint="/api/admin/organizations",
    required_role="admin",
    ip_address="203.0.113.5",
  )


def test_inactive_user_token_is_rejected(client, db_session, admin_user, admin_headers):
  admin_user.is_active = False
  db_session.commit()

  response = client.get("/api/admin/organizations", headers=admin_headers)

  assert response.status_code == 401
  assert response.json()["detail"] == "Invalid or expired token"
