"""
Custom Exception Types for PropertyFlows.

A small hierarchy of domain exceptions for the subscription lifecycle. Each
exception carries a machine-readable error code and a details dict so routers
can translate it into an HTTP response and logs keep the context.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


class PropertyFlowsError(Exception):
  """
  Base exception for all PropertyFlows application errors.

  Attributes:
      message: Human-readable error message
      error_code: Application-specific error code for categorization
      details: Additional error context and metadata
      timestamp: When the error occurred
  """

  def __init__(
    self,
    message: str,
    error_code: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
  ):
    super().__init__(message)
    self.message = message
    self.error_code = error_code or self.__class__.__name__
    self.details = details or {}
    self.timestamp = datetime.now(timezone.utc).isoformat()

  def to_dict(self) -> Dict[str, Any]:
    """Convert exception to dictionary for API responses."""
    return {
      "error": self.error_code,
      "message": self.message,
      "details": self.details,
      "timestamp": self.timestamp,
    }


# ============================================================================
# Organization Exceptions
# ============================================================================


class OrganizationNotFoundError(PropertyFlowsError):
  """Raised when an organization does not exist."""

  def __init__(self, org_id: str):
    super().__init__(
      "Organization not found",
      error_code="ORGANIZATION_NOT_FOUND",
      details={"org_id": org_id},
    )


class VerificationError(PropertyFlowsError):
  """Raised when a business registration fails verification."""

  def __init__(
    self,
    message: str,
    flags: Optional[List[str]] = None,
    org_id: Optional[str] = None,
  ):
    details: Dict[str, Any] = {"flags": flags or []}
    if org_id:
      details["org_id"] = org_id
    super().__init__(message, error_code="VERIFICATION_FAILED", details=details)
    self.flags = flags or []


class MissingFieldsError(PropertyFlowsError):
  """Raised when required registration fields are absent."""

  def __init__(self, missing_fields: List[str]):
    super().__init__(
      "Missing required fields",
      error_code="MISSING_FIELDS",
      details={"missing_fields": missing_fields},
    )
    self.missing_fields = missing_fields


# ============================================================================
# Subscription Lifecycle Exceptions
# ============================================================================


class InvalidPlanError(PropertyFlowsError):
  """Raised when a plan name is not in the subscription catalog."""

  def __init__(self, plan_name: Optional[str]):
    super().__init__(
      "Invalid plan type",
      error_code="INVALID_PLAN",
      details={"plan": plan_name},
    )


class ActivationError(PropertyFlowsError):
  """Raised when an organization cannot start its trial subscription."""

  def __init__(self, message: str, org_id: Optional[str] = None):
    super().__init__(
      message,
      error_code="ACTIVATION_ERROR",
      details={"org_id": org_id} if org_id else {},
    )


class InvalidStatusTransitionError(PropertyFlowsError):
  """Raised when a requested status change is not allowed."""

  def __init__(self, message: str, current_status: Optional[str] = None, **kwargs):
    details: Dict[str, Any] = {}
    if current_status is not None:
      details["current_status"] = current_status
    details.update(kwargs)
    super().__init__(
      message,
      error_code="INVALID_STATUS_TRANSITION",
      details=details,
    )


# ============================================================================
# External Service Exceptions
# ============================================================================


class ExternalServiceError(PropertyFlowsError):
  """Base exception for failures in third-party services."""

  def __init__(
    self,
    service: str,
    message: str,
    error_code: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
  ):
    super().__init__(
      message,
      error_code=error_code or "EXTERNAL_SERVICE_ERROR",
      details={"service": service, **(details or {})},
    )
    self.service = service


class BillingProviderError(ExternalServiceError):
  """Raised when a payment provider call fails."""

  def __init__(self, message: str, operation: Optional[str] = None, **kwargs):
    details: Dict[str, Any] = {}
    if operation:
      details["operation"] = operation
    details.update(kwargs)
    super().__init__(
      "stripe",
      message,
      error_code="BILLING_PROVIDER_ERROR",
      details=details,
    )


# ============================================================================
# Configuration Exceptions
# ============================================================================


class ConfigurationError(PropertyFlowsError):
  """Raised when required configuration is missing or invalid."""

  def __init__(self, message: str, config_key: Optional[str] = None):
    super().__init__(
      message,
      error_code="CONFIGURATION_ERROR",
      details={"config_key": config_key} if config_key else {},
    )
