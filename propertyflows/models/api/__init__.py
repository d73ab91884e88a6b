"""Pydantic request/response models for the HTTP API."""

from .organizations import (
  ActivateTrialRequest,
  BusinessRegistrationRequest,
  ExtendTrialRequest,
  GracePeriodRequest,
  OverrideSuspensionRequest,
  RejectOrganizationRequest,
)
from .subscription import (
  BillingPortalResponse,
  ChangePlanRequest,
  InvoiceInfo,
  InvoiceListResponse,
)

__all__ = [
  "ActivateTrialRequest",
  "BillingPortalResponse",
  "BusinessRegistrationRequest",
  "ChangePlanRequest",
  "ExtendTrialRequest",
  "GracePeriodRequest",
  "InvoiceInfo",
  "InvoiceListResponse",
  "OverrideSuspensionRequest",
  "RejectOrganizationRequest",
]
