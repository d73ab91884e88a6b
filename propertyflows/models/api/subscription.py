"""Subscription portal API models."""

from pydantic import BaseModel, ConfigDict, Field


class ChangePlanRequest(BaseModel):
  model_config = ConfigDict(populate_by_name=True)

  new_plan: str | None = Field(None, alias="newPlan", description="Target plan name")


class InvoiceInfo(BaseModel):
  """Invoice as shown in the subscription portal."""

  model_config = ConfigDict(populate_by_name=True)

  id: str
  number: str | None = None
  amount: int = Field(0, description="Amount paid in cents")
  amount_due: int = Field(0, alias="amountDue", description="Amount due in cents")
  status: str | None = None
  created: int | None = Field(None, description="Unix timestamp")
  due_date: int | None = Field(None, alias="dueDate")
  paid_at: int | None = Field(None, alias="paidAt")
  invoice_pdf: str | None = Field(None, alias="invoicePdf")
  hosted_invoice_url: str | None = Field(None, alias="hostedInvoiceUrl")


class InvoiceListResponse(BaseModel):
  invoices: list[InvoiceInfo]


class BillingPortalResponse(BaseModel):
  url: str
