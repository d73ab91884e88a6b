"""Tests for request logging middleware."""

import pytest

from propertyflows.middleware.logging import redact_sensitive_query_params


@pytest.mark.parametrize(
  "query,expected",
  [
    ("", ""),
    ("page=2", "page=2"),
    ("token=abc&page=2", "token=REDACTED&page=2"),
    ("state=xyz&code=123", "state=REDACTED&code=REDACTED"),
    ("API_KEY=k", "API_KEY=REDACTED"),
  ],
)
def test_redaction(query, expected):
  assert redact_sensitive_query_params(query) == expected


def test_request_id_header(client):
  response = client.get("/api/subscription/current")

  assert response.headers["x-request-id"]


def test_request_id_is_propagated(client):
  response = client.get(
    "/api/subscription/current", headers={"X-Request-ID": "req-123"}
  )

  assert response.headers["x-request-id"] == "req-123"
