"""
Logging middleware for structured API request logging.

Every request is logged once with method, path, status and duration, and gets
an X-Request-ID header for tracing.
"""

import time
import uuid
from typing import Callable, Optional
from urllib.parse import parse_qsl, urlencode

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from propertyflows.logger import api_logger, log_api, log_app_error

logger = api_logger

# Sensitive query parameters that should always be redacted in logs
SENSITIVE_QUERY_PARAMS = {
  "token",
  "api_key",
  "authorization",
  "password",
  "secret",
  "jwt",
  "access_token",
  "refresh_token",
  "state",
  "code",
}


def redact_sensitive_query_params(query_string: str) -> str:
  """Redact sensitive query parameter values for safe logging."""
  if not query_string:
    return ""

  try:
    qs_pairs = parse_qsl(query_string, keep_blank_values=True)
    redacted_pairs = [
      (k, "REDACTED" if k.lower() in SENSITIVE_QUERY_PARAMS else v) for k, v in qs_pairs
    ]
    return urlencode(redacted_pairs)
  except Exception:
    # Never log a raw query we could not parse
    return ""


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
  """Middleware that logs all API requests with structured data."""

  def __init__(self, app, exclude_paths: Optional[list] = None):
    super().__init__(app)
    self.exclude_paths = exclude_paths or [
      "/health",
      "/docs",
      "/redoc",
      "/openapi.json",
      "/favicon.ico",
    ]

  async def dispatch(self, request: Request, call_next: Callable) -> Response:
    if any(request.url.path.startswith(path) for path in self.exclude_paths):
      return await call_next(request)

    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()

    try:
      response = await call_next(request)
      duration_ms = (time.time() - start_time) * 1000

      user_id = getattr(request.state, "user_id", None)
      log_api(
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=duration_ms,
        user_id=str(user_id) if user_id else None,
        request_id=request_id,
      )

      response.headers["X-Request-ID"] = request_id
      return response

    except Exception as e:
      duration_ms = (time.time() - start_time) * 1000

      error_category = "application"
      if "database" in str(e).lower() or "connection" in str(e).lower():
        error_category = "database"
      elif "timeout" in str(e).lower():
        error_category = "timeout"

      user_id = getattr(request.state, "user_id", None)
      log_app_error(
        error=e,
        component="api_middleware",
        action="request_processing",
        error_category=error_category,
        user_id=str(user_id) if user_id else None,
        metadata={
          "method": request.method,
          "path": request.url.path,
          "query": redact_sensitive_query_params(str(request.url.query)),
          "duration_ms": duration_ms,
          "request_id": request_id,
        },
      )
      raise
