"""
PropertyFlows Unified Logging System

This module provides a single logging interface on top of the structured
configuration in ``config/logging.py``:
- Structured JSON logging for staging/production
- Simple console output for development
- Component loggers for API, billing and security events
"""

import logging
from typing import Any, Dict, Optional

from .config import env
from .config.logging import (
  get_logger,
  log_api_request,
  log_error,
  log_security_event,
  log_status_transition,
  performance_timer,
  setup_logging,
)

setup_logging()

logger = get_logger("propertyflows")

if env.is_development():
  # Quieter third-party clients in development
  logging.getLogger("boto3").setLevel(logging.WARNING)
  logging.getLogger("botocore").setLevel(logging.WARNING)
  logging.getLogger("urllib3").setLevel(logging.WARNING)
  logging.getLogger("stripe").setLevel(logging.WARNING)

api_logger = get_logger("propertyflows.api")
billing_logger = get_logger("propertyflows.billing")
security_logger = get_logger("propertyflows.security")


def log_api(
  method: str,
  path: str,
  status_code: int,
  duration_ms: float,
  user_id: Optional[str] = None,
  request_id: Optional[str] = None,
) -> None:
  """Log API requests with structured data."""
  log_api_request(
    api_logger, method, path, status_code, duration_ms, user_id, request_id
  )


def log_app_error(
  error: Exception,
  component: str,
  action: str,
  error_category: str = "application",
  user_id: Optional[str] = None,
  org_id: Optional[str] = None,
  metadata: Optional[Dict[str, Any]] = None,
) -> None:
  """Log application errors with context."""
  log_error(logger, error, component, action, error_category, user_id, org_id, metadata)


def log_transition(
  org_id: str,
  old_status: Optional[str],
  new_status: str,
  reason: str,
  metadata: Optional[Dict[str, Any]] = None,
) -> None:
  """Log an organization status transition on the billing logger."""
  log_status_transition(
    billing_logger, org_id, old_status, new_status, reason, metadata
  )


def log_auth_event(
  event_type: str,
  user_id: Optional[str] = None,
  ip_address: Optional[str] = None,
  success: bool = True,
  metadata: Optional[Dict[str, Any]] = None,
) -> None:
  """Log security/authentication events."""
  log_security_event(
    security_logger, event_type, user_id, ip_address, success, metadata
  )


__all__ = [
  "logger",
  "api_logger",
  "billing_logger",
  "security_logger",
  "log_api",
  "log_app_error",
  "log_transition",
  "log_auth_event",
  "log_api_request",
  "log_error",
  "log_security_event",
  "performance_timer",
  "get_logger",
]
