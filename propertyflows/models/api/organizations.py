"""Organization API models for registration and admin endpoints.

Request fields are loosely typed; handlers validate them and return 400 with
the domain message (for example the grace-period range) instead of a 422.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
  model_config = ConfigDict(populate_by_name=True)


class BusinessRegistrationRequest(_CamelModel):
  """Business registration submitted for verification."""

  business_name: str | None = Field(None, alias="businessName")
  business_email: str | None = Field(None, alias="businessEmail")
  business_phone: str | None = Field(None, alias="businessPhone")
  business_address: str | None = Field(None, alias="businessAddress")
  business_license: str | None = Field(None, alias="businessLicense")
  tax_id: str | None = Field(None, alias="taxId")
  contact_name: str | None = Field(None, alias="contactName")
  website: str | None = Field(None, alias="website")


class ActivateTrialRequest(_CamelModel):
  plan_type: str = Field("starter", alias="planType")


class RejectOrganizationRequest(_CamelModel):
  reason: str | None = Field(None, description="Reason shown to the applicant")


class GracePeriodRequest(_CamelModel):
  grace_period_days: Any = Field(None, alias="gracePeriodDays")


class OverrideSuspensionRequest(_CamelModel):
  new_status: str | None = Field(None, alias="newStatus")


class ExtendTrialRequest(_CamelModel):
  days: Any = Field(None, description="Days to add to the trial")
