"""AWS SES adapter for sending transactional billing emails."""

from typing import Any

import boto3
from botocore.exceptions import ClientError

from propertyflows.config import env
from propertyflows.logger import logger

_HTML_SHELL = """
<!DOCTYPE html>
<html>
<head>
    <style>
        body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; }}
        .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
        .header {{ background-color: {accent}; color: white; padding: 20px; text-align: center; border-radius: 5px 5px 0 0; }}
        .content {{ padding: 30px; background-color: #f8f9fa; border: 1px solid #dee2e6; border-top: none; }}
        .details {{ background-color: #ffffff; border-left: 4px solid {accent}; padding: 15px; margin: 20px 0; }}
        .button {{ display: inline-block; padding: 12px 30px; background-color: {accent}; color: white !important; text-decoration: none; border-radius: 5px; margin: 20px 0; font-weight: bold; }}
        .footer {{ text-align: center; padding: 20px; color: #6c757d; font-size: 12px; }}
    </style>
</head>
<body>
    <div class="container">
        <div class="header">
            <h1>{heading}</h1>
        </div>
        <div class="content">
{body}
        </div>
        <div class="footer">
            <p>&copy; PropertyFlows. All rights reserved.</p>
            <p>This is an automated message, please do not reply to this email.</p>
        </div>
    </div>
</body>
</html>"""


def _html(heading: str, body: str, accent: str = "#2563eb") -> str:
  return _HTML_SHELL.format(heading=heading, body=body, accent=accent)


def _button(url: str, label: str) -> str:
  return f'<div style="text-align: center;"><a href="{url}" class="button">{label}</a></div>'


def format_cents(amount_cents: int | None) -> str:
  """Format an amount in cents as dollars, e.g. 4900 -> "$49.00"."""
  return f"${(amount_cents or 0) / 100:.2f}"


def _plural_days(days: int) -> str:
  return f"{days} Day{'s' if days != 1 else ''}"


class SESEmailService:
  """Service for sending transactional emails via Amazon SES."""

  def __init__(self):
    """Initialize SES client."""
    self.ses_client = boto3.client("ses", region_name=env.AWS_REGION)
    self.from_address = env.EMAIL_FROM_ADDRESS
    self.from_name = env.EMAIL_FROM_NAME
    self.app_url = env.APP_URL.rstrip("/")

    if not self.from_address:
      logger.warning("EMAIL_FROM_ADDRESS not configured - emails will not be sent")

  def _get_email_template(
    self, email_type: str, template_data: dict[str, Any]
  ) -> dict[str, str]:
    """Get email subject and body templates based on email type."""
    company = template_data.get("company_name", "there")
    billing_url = f"{self.app_url}/billing"

    if email_type == "business_approved":
      plan = template_data.get("plan_name", "Starter")
      trial_days = template_data.get("trial_days", 14)
      login_url = f"{self.app_url}/login"
      return {
        "subject": "Welcome to PropertyFlows - Business Verified!",
        "html": _html(
          "Business Verified",
          f"""            <p>Great news! Your business <strong>{company}</strong> has been verified and approved.</p>
            <div class="details">
                <p><strong>Plan:</strong> {plan}</p>
                <p><strong>Free Trial:</strong> {trial_days} days</p>
            </div>
            <p>Log in now to start your {trial_days}-day free trial and manage your properties with PropertyFlows!</p>
            {_button(login_url, "Start Free Trial")}""",
          accent="#16a34a",
        ),
        "text": f"""Great news! Your business {company} has been verified and approved.

Plan: {plan}
Free Trial: {trial_days} days

Log in to start your free trial: {login_url}

The PropertyFlows Team""",
      }

    if email_type == "business_rejected":
      reason = template_data.get("rejection_reason", "")
      return {
        "subject": "PropertyFlows Business Verification Update",
        "html": _html(
          "Verification Update",
          f"""            <p>Thank you for your interest in PropertyFlows. After reviewing your business registration for <strong>{company}</strong>, we were unable to verify your business at this time.</p>
            <div class="details">
                <p><strong>Reason:</strong> {reason}</p>
            </div>
            <p>If you believe this was an error or would like to resubmit with updated information, please contact our support team.</p>""",
          accent="#6b7280",
        ),
        "text": f"""Thank you for your interest in PropertyFlows. After reviewing your business registration for {company}, we were unable to verify your business at this time.

Reason: {reason}

If you believe this was an error or would like to resubmit with updated information, please contact our support team.

The PropertyFlows Team""",
      }

    if email_type == "trial_ending":
      days = int(template_data.get("days_remaining", 0))
      trial_end = template_data.get("trial_end_date", "")
      return {
        "subject": f"Your PropertyFlows Trial Ends in {_plural_days(days)}",
        "html": _html(
          "Your Trial Is Ending",
          f"""            <p>Hi {company},</p>
            <p>Your free trial will end in <strong>{_plural_days(days).lower()}</strong> on <strong>{trial_end}</strong>.</p>
            <div class="details">
                <p>Don't lose access to your property management data! Add a payment method to continue after your trial ends.</p>
            </div>
            <p>Your subscription converts to a paid plan after the trial. You can update your payment method or cancel anytime from your billing settings.</p>
            {_button(billing_url, "Add Payment Method")}""",
          accent="#f59e0b",
        ),
        "text": f"""Hi {company},

Your free trial will end in {_plural_days(days).lower()} on {trial_end}.

Add a payment method to keep access after your trial: {billing_url}

The PropertyFlows Team""",
      }

    if email_type == "payment_failed":
      amount = format_cents(template_data.get("amount_cents"))
      retry_date = template_data.get("retry_date", "Soon")
      grace_end = template_data.get("grace_period_end", "")
      return {
        "subject": "Payment Failed - Action Required",
        "html": _html(
          "Payment Failed",
          f"""            <p>Hi {company},</p>
            <p>We were unable to process your payment of <strong>{amount}</strong>.</p>
            <div class="details">
                <p><strong>Next Retry:</strong> {retry_date}</p>
                <p><strong>Grace Period Ends:</strong> {grace_end}</p>
            </div>
            <p>To avoid service interruption, please update your payment method. We'll retry your payment automatically.</p>
            {_button(billing_url, "Update Payment Method")}
            <p style="color: #6c757d; font-size: 14px;">If payment is not received by {grace_end}, your account will be suspended.</p>""",
          accent="#dc2626",
        ),
        "text": f"""Hi {company},

We were unable to process your payment of {amount}.

Next Retry: {retry_date}
Grace Period Ends: {grace_end}

Update your payment method: {billing_url}
If payment is not received by {grace_end}, your account will be suspended.

The PropertyFlows Team""",
      }

    if email_type == "account_suspended":
      amount = format_cents(template_data.get("amount_cents"))
      return {
        "subject": "Account Suspended - Immediate Action Required",
        "html": _html(
          "Account Suspended",
          f"""            <p>Hi {company},</p>
            <p>Your PropertyFlows account has been suspended because payment was not received within the grace period.</p>
            <div class="details">
                <p><strong>Outstanding Balance:</strong> {amount}</p>
            </div>
            <p>Update your payment method to restore access immediately.</p>
            {_button(billing_url, "Restore Account")}""",
          accent="#991b1b",
        ),
        "text": f"""Hi {company},

Your PropertyFlows account has been suspended because payment was not received within the grace period.

Outstanding Balance: {amount}

Restore access: {billing_url}

The PropertyFlows Team""",
      }

    if email_type == "payment_succeeded":
      amount = format_cents(template_data.get("amount_cents"))
      invoice_url = template_data.get("invoice_url") or billing_url
      return {
        "subject": "Payment Received - Thank You!",
        "html": _html(
          "Payment Received",
          f"""            <p>Hi {company},</p>
            <p>We received your payment of <strong>{amount}</strong>. Thank you!</p>
            {_button(invoice_url, "View Invoice")}""",
          accent="#16a34a",
        ),
        "text": f"""Hi {company},

We received your payment of {amount}. Thank you!

View invoice: {invoice_url}

The PropertyFlows Team""",
      }

    return {
      "subject": "PropertyFlows Notification",
      "html": f"<p>{template_data}</p>",
      "text": str(template_data),
    }

  async def send_email(
    self, email_type: str, to_email: str, template_data: dict[str, Any]
  ) -> bool:
    """
    Send an email via Amazon SES.

    Returns:
        True if email was sent successfully, False otherwise
    """
    if not self.from_address:
      logger.warning(
        f"Cannot send {email_type} email - EMAIL_FROM_ADDRESS not configured"
      )
      return False

    if not to_email:
      logger.warning(f"Cannot send {email_type} email - no recipient address")
      return False

    try:
      template = self._get_email_template(email_type, template_data)

      message = {
        "Subject": {"Data": template["subject"], "Charset": "UTF-8"},
        "Body": {
          "Text": {"Data": template["text"], "Charset": "UTF-8"},
          "Html": {"Data": template["html"], "Charset": "UTF-8"},
        },
      }

      response = self.ses_client.send_email(
        Source=f"{self.from_name} <{self.from_address}>",
        Destination={"ToAddresses": [to_email]},
        Message=message,
        Tags=[
          {"Name": "EmailType", "Value": email_type},
          {"Name": "Environment", "Value": env.ENVIRONMENT},
        ],
      )

      logger.info(
        f"Sent {email_type} email to {to_email}. MessageId: {response['MessageId']}"
      )
      return True

    except ClientError as e:
      error_code = e.response["Error"]["Code"]
      error_message = e.response["Error"]["Message"]

      if error_code == "MessageRejected":
        logger.error(f"SES rejected email to {to_email}: {error_message}")
      elif error_code == "MailFromDomainNotVerified":
        logger.error(f"SES sender domain not verified: {self.from_address}")
      else:
        logger.error(
          f"AWS SES error sending {email_type} email to {to_email}: {error_code} - {error_message}"
        )
      return False

    except Exception as e:
      logger.error(f"Unexpected error sending {email_type} email to {to_email}: {e!s}")
      return False

  # ==========================================================================
  # BUSINESS VERIFICATION
  # ==========================================================================

  async def send_business_approved(
    self, to_email: str, company_name: str, plan_name: str, trial_days: int
  ) -> bool:
    return await self.send_email(
      "business_approved",
      to_email,
      {"company_name": company_name, "plan_name": plan_name, "trial_days": trial_days},
    )

  async def send_business_rejected(
    self, to_email: str, company_name: str, rejection_reason: str
  ) -> bool:
    return await self.send_email(
      "business_rejected",
      to_email,
      {"company_name": company_name, "rejection_reason": rejection_reason},
    )

  # ==========================================================================
  # BILLING LIFECYCLE
  # ==========================================================================

  async def send_trial_ending(
    self, to_email: str, company_name: str, days_remaining: int, trial_end_date: str
  ) -> bool:
    return await self.send_email(
      "trial_ending",
      to_email,
      {
        "company_name": company_name,
        "days_remaining": days_remaining,
        "trial_end_date": trial_end_date,
      },
    )

  async def send_payment_failed(
    self,
    to_email: str,
    company_name: str,
    amount_cents: int,
    retry_date: str,
    grace_period_end: str,
  ) -> bool:
    """Notify a past-due organization of a failed payment and its deadline."""
    return await self.send_email(
      "payment_failed",
      to_email,
      {
        "company_name": company_name,
        "amount_cents": amount_cents,
        "retry_date": retry_date,
        "grace_period_end": grace_period_end,
      },
    )

  async def send_account_suspended(
    self, to_email: str, company_name: str, amount_cents: int
  ) -> bool:
    return await self.send_email(
      "account_suspended",
      to_email,
      {"company_name": company_name, "amount_cents": amount_cents},
    )

  async def send_payment_succeeded(
    self,
    to_email: str,
    company_name: str,
    amount_cents: int,
    invoice_url: str | None = None,
  ) -> bool:
    return await self.send_email(
      "payment_succeeded",
      to_email,
      {
        "company_name": company_name,
        "amount_cents": amount_cents,
        "invoice_url": invoice_url,
      },
    )


_email_service: SESEmailService | None = None


def get_email_service() -> SESEmailService:
  """Process-wide SES email service."""
  global _email_service
  if _email_service is None:
    _email_service = SESEmailService()
  return _email_service
