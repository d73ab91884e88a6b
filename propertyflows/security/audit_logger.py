"""
Security Audit Logger

Provides structured logging for security events including authentication
failures, admin authorization denials, webhook signature failures and
registrations rejected by the fraud check.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from ..config import env
from ..logger import security_logger


class SecurityEventType(Enum):
  """Security event types for audit logging."""

  AUTH_FAILURE = "auth_failure"
  AUTH_SUCCESS = "auth_success"
  AUTH_TOKEN_INVALID = "auth_token_invalid"
  AUTHORIZATION_DENIED = "authorization_denied"
  WEBHOOK_SIGNATURE_MISSING = "webhook_signature_missing"
  WEBHOOK_SIGNATURE_INVALID = "webhook_signature_invalid"
  FRAUD_CHECK_FAILED = "fraud_check_failed"
  ADMIN_OVERRIDE = "admin_override"
  OAUTH_STATE_INVALID = "oauth_state_invalid"


class SecurityAuditLogger:
  """Centralized security audit logging."""

  @staticmethod
  def log_security_event(
    event_type: SecurityEventType,
    user_id: Optional[str] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
    endpoint: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    risk_level: str = "medium",
  ):
    """
    Log a security event with structured data.

    Args:
        event_type: Type of security event
        user_id: User identifier (if available)
        ip_address: Client IP address
        user_agent: Client user agent
        endpoint: API endpoint accessed
        details: Additional event details
        risk_level: Risk level (low, medium, high, critical)
    """
    if env.is_development() and not env.SECURITY_AUDIT_ENABLED:
      return

    audit_data = {
      "timestamp": datetime.now(timezone.utc).isoformat(),
      "event_type": event_type.value,
      "risk_level": risk_level,
      "user_id": user_id,
      "ip_address": ip_address,
      "user_agent": user_agent,
      "endpoint": endpoint,
      "details": details or {},
    }

    security_logger.warning(f"SECURITY_AUDIT: {json.dumps(audit_data, default=str)}")

  @staticmethod
  def log_auth_failure(
    reason: str,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
    endpoint: Optional[str] = None,
  ):
    """Log authentication failure."""
    SecurityAuditLogger.log_security_event(
      event_type=SecurityEventType.AUTH_FAILURE,
      ip_address=ip_address,
      user_agent=user_agent,
      endpoint=endpoint,
      details={"failure_reason": reason},
      risk_level="high",
    )

  @staticmethod
  def log_authorization_denied(
    user_id: str,
    endpoint: str,
    required_role: str,
    ip_address: Optional[str] = None,
  ):
    """Log a caller reaching a route their role does not allow."""
    SecurityAuditLogger.log_security_event(
      event_type=SecurityEventType.AUTHORIZATION_DENIED,
      user_id=user_id,
      ip_address=ip_address,
      endpoint=endpoint,
      details={"required_role": required_role},
      risk_level="medium",
    )

  @staticmethod
  def log_webhook_rejected(
    reason: str,
    provider: str = "stripe",
    ip_address: Optional[str] = None,
    endpoint: Optional[str] = None,
  ):
    """Log a webhook delivery refused before processing."""
    event_type = (
      SecurityEventType.WEBHOOK_SIGNATURE_MISSING
      if reason == "missing_signature"
      else SecurityEventType.WEBHOOK_SIGNATURE_INVALID
    )
    SecurityAuditLogger.log_security_event(
      event_type=event_type,
      ip_address=ip_address,
      endpoint=endpoint,
      details={"provider": provider, "reason": reason},
      risk_level="high",
    )

  @staticmethod
  def log_fraud_rejection(
    organization_id: str,
    fraud_score: int,
    flags: list[str],
    ip_address: Optional[str] = None,
  ):
    """Log a registration rejected by the fraud check."""
    SecurityAuditLogger.log_security_event(
      event_type=SecurityEventType.FRAUD_CHECK_FAILED,
      ip_address=ip_address,
      endpoint="/api/organizations/register",
      details={
        "organization_id": organization_id,
        "fraud_score": fraud_score,
        "flags": flags,
      },
      risk_level="high",
    )

  @staticmethod
  def log_admin_override(
    admin_user_id: str,
    organization_id: str,
    action: str,
    details: Optional[Dict[str, Any]] = None,
  ):
    """Log an admin change that bypasses the normal billing flow."""
    SecurityAuditLogger.log_security_event(
      event_type=SecurityEventType.ADMIN_OVERRIDE,
      user_id=admin_user_id,
      details={"organization_id": organization_id, "action": action, **(details or {})},
      risk_level="medium",
    )
