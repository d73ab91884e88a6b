"""PropertyFlows Admin CLI for remote administration via the admin API.

This CLI provides remote access to the verification queue and the subscription
lifecycle overrides. It authenticates with an admin bearer token taken from
the ADMIN_API_TOKEN environment variable.

Usage:
    python -m propertyflows.admin.cli [command] [options]

Examples:
    # Show the approval queue
    python -m propertyflows.admin.cli orgs pending

    # Approve an organization and start its trial
    python -m propertyflows.admin.cli orgs approve <org-id>

    # Suspend past-due organizations whose grace period ran out
    python -m propertyflows.admin.cli check-grace-periods
"""

import os
from typing import Any, Dict, Optional

import click
import requests
from rich.console import Console
from rich.table import Table

from ..logger import get_logger

logger = get_logger(__name__)
console = Console()


class AdminAPIClient:
  """Client for interacting with the PropertyFlows admin API."""

  def __init__(
    self,
    environment: str = "prod",
    api_base_url: Optional[str] = None,
    token: Optional[str] = None,
  ):
    """Initialize the admin API client.

    Args:
        environment: Environment name (dev/staging/prod)
        api_base_url: Base URL for the API (default: auto-detect from environment)
        token: Admin bearer token (default: ADMIN_API_TOKEN)
    """
    self.environment = environment

    if api_base_url:
      self.api_base_url = api_base_url.rstrip("/")
    elif environment == "dev":
      self.api_base_url = "http://localhost:8000"
    elif environment == "staging":
      self.api_base_url = "https://api.staging.propertyflows.com"
    else:
      self.api_base_url = "https://api.propertyflows.com"

    self.token = token or self._get_admin_token()

  def _get_admin_token(self) -> str:
    """Get the admin bearer token from the environment.

    Raises:
        ClickException: If no token is configured
    """
    token = os.getenv("ADMIN_API_TOKEN")
    if not token:
      raise click.ClickException(
        "ADMIN_API_TOKEN is not set.\n\n"
        "Export a JWT issued for a user with the admin role, e.g.\n"
        "  export ADMIN_API_TOKEN=<token>"
      )
    return token

  def _make_request(
    self,
    method: str,
    endpoint: str,
    data: Optional[Dict[str, Any]] = None,
    params: Optional[Dict[str, Any]] = None,
  ) -> Any:
    """Make an authenticated request to the admin API.

    Raises:
        ClickException: If the request fails
    """
    url = f"{self.api_base_url}{endpoint}"
    headers = {
      "Authorization": f"Bearer {self.token}",
      "Content-Type": "application/json",
    }

    try:
      response = requests.request(
        method=method,
        url=url,
        headers=headers,
        json=data,
        params=params,
        timeout=30,
      )
    except requests.Timeout:
      raise click.ClickException(
        f"Request timed out. API may be unavailable at {self.api_base_url}"
      )
    except requests.ConnectionError:
      raise click.ClickException(
        f"Connection failed. Unable to reach API at {self.api_base_url}"
      )
    except requests.RequestException as e:
      raise click.ClickException(f"Network error: {e!s}")

    if response.status_code == 401:
      raise click.ClickException(
        "Authentication failed. Admin token may be invalid or expired."
      )
    elif response.status_code == 403:
      raise click.ClickException("Permission denied. Admin role required.")
    elif response.status_code == 404:
      raise click.ClickException("Resource not found.")
    elif response.status_code in (400, 422):
      raise click.ClickException(f"Request rejected: {_error_detail(response)}")
    elif not response.ok:
      raise click.ClickException(
        f"Request failed ({response.status_code}): {_error_detail(response)}"
      )

    return response.json() if response.text else {}


def _error_detail(response: requests.Response) -> str:
  try:
    detail = response.json().get("detail", response.text)
  except ValueError:
    return response.text
  if isinstance(detail, dict):
    return detail.get("message", str(detail))
  return str(detail)


def _date(value: Optional[str]) -> str:
  return value[:10] if value else "-"


@click.group()
@click.option(
  "--environment",
  "-e",
  default="prod",
  type=click.Choice(["dev", "staging", "prod"]),
  help="Environment to connect to (dev=localhost:8000, staging/prod=remote)",
)
@click.option(
  "--api-url",
  help="Override API base URL (default: auto-detect from environment)",
)
@click.pass_context
def cli(ctx, environment, api_url):
  """PropertyFlows Admin CLI - Remote administration via admin API."""
  ctx.obj = AdminAPIClient(environment=environment, api_base_url=api_url)


# =============================================================================
# ORGANIZATIONS
# =============================================================================


@cli.group()
def orgs():
  """Manage organizations and their subscriptions."""
  pass


def _print_org_table(title: str, organizations: list) -> None:
  table = Table(title=title, show_header=True, header_style="bold cyan")
  table.add_column("ID", no_wrap=True)
  table.add_column("Name", overflow="fold")
  table.add_column("Email", overflow="fold")
  table.add_column("Verification", overflow="fold")
  table.add_column("Status", overflow="fold")
  table.add_column("Plan", overflow="fold")
  table.add_column("Created", overflow="fold")

  for org in organizations:
    table.add_row(
      org["id"],
      org["name"],
      org.get("contactEmail") or "N/A",
      org["verificationStatus"],
      org["status"],
      org.get("subscriptionPlan") or "-",
      _date(org.get("createdAt")),
    )

  console.print()
  console.print(table)
  console.print(f"\n[bold]Total:[/bold] {len(organizations):,} organizations")


@orgs.command("pending")
@click.pass_obj
def list_pending(client):
  """Show organizations awaiting review."""
  organizations = client._make_request("GET", "/api/admin/organizations/pending")
  if not organizations:
    console.print("\n[yellow]No organizations awaiting review.[/yellow]")
    return
  _print_org_table("Approval Queue", organizations)


@orgs.command("list")
@click.option("--status", help="Filter by subscription status (e.g. past_due)")
@click.pass_obj
def list_orgs(client, status):
  """List all organizations."""
  organizations = client._make_request("GET", "/api/admin/organizations")
  if status:
    organizations = [org for org in organizations if org["status"] == status]
  if not organizations:
    console.print("\n[yellow]No organizations found.[/yellow]")
    return
  _print_org_table("Organizations", organizations)


@orgs.command("get")
@click.argument("org_id")
@click.pass_obj
def get_org(client, org_id):
  """Get details of a specific organization."""
  org = client._make_request("GET", f"/api/admin/organizations/{org_id}")

  click.echo("\nORGANIZATION DETAILS")
  click.echo("=" * 60)
  click.echo(f"\nID: {org['id']}")
  click.echo(f"Name: {org['name']}")
  click.echo(f"Contact: {org.get('contactName') or 'N/A'} ({org.get('contactEmail')})")
  click.echo(f"Verification: {org['verificationStatus']}")
  if org.get("rejectionReason"):
    click.echo(f"Rejection Reason: {org['rejectionReason']}")

  click.echo("\nSUBSCRIPTION")
  click.echo(f"  Status: {org['status']}")
  click.echo(f"  Plan: {org.get('subscriptionPlan') or '-'}")
  click.echo(f"  Trial Ends: {_date(org.get('trialEndsAt'))}")
  click.echo(f"  Stripe Customer: {org.get('stripeCustomerId') or '-'}")
  click.echo(f"  Stripe Subscription: {org.get('stripeSubscriptionId') or '-'}")

  click.echo("\nDUNNING")
  click.echo(f"  Grace Period: {org.get('gracePeriodDays')} days")
  click.echo(f"  Payment Failed: {_date(org.get('paymentFailedAt'))}")
  click.echo(f"  Retry Count: {org.get('paymentRetryCount', 0)}")


@orgs.command("logs")
@click.argument("org_id")
@click.pass_obj
def verification_logs(client, org_id):
  """Show the verification history of an organization."""
  logs = client._make_request(
    "GET", f"/api/admin/organizations/{org_id}/verification-logs"
  )
  if not logs:
    console.print("\n[yellow]No verification logs.[/yellow]")
    return

  table = Table(title="Verification Logs", show_header=True, header_style="bold cyan")
  table.add_column("Date", no_wrap=True)
  table.add_column("Type")
  table.add_column("Status")
  table.add_column("Provider")
  table.add_column("Notes", overflow="fold")
  for entry in logs:
    table.add_row(
      _date(entry.get("createdAt")),
      entry["verificationType"],
      entry["status"],
      entry["provider"],
      entry.get("notes") or "",
    )
  console.print()
  console.print(table)


@orgs.command("approve")
@click.argument("org_id")
@click.pass_obj
def approve_org(client, org_id):
  """Approve an organization and start its trial subscription."""
  result = client._make_request("POST", f"/api/admin/organizations/{org_id}/approve")
  console.print(f"\n[green]✓[/green] {result['message']}")


@orgs.command("reject")
@click.argument("org_id")
@click.option("--reason", required=True, help="Reason shown to the applicant")
@click.pass_obj
def reject_org(client, org_id, reason):
  """Reject an organization."""
  result = client._make_request(
    "POST", f"/api/admin/organizations/{org_id}/reject", data={"reason": reason}
  )
  console.print(f"\n[green]✓[/green] {result['message']}")


@orgs.command("grace-period")
@click.argument("org_id")
@click.argument("days", type=int)
@click.pass_obj
def set_grace_period(client, org_id, days):
  """Set the dunning grace period (0-90 days)."""
  result = client._make_request(
    "PATCH",
    f"/api/admin/organizations/{org_id}/grace-period",
    data={"gracePeriodDays": days},
  )
  console.print(f"\n[green]✓[/green] {result['message']}")


@orgs.command("retry-payment")
@click.argument("org_id")
@click.pass_obj
def retry_payment(client, org_id):
  """Retry payment of the latest unpaid invoice."""
  result = client._make_request(
    "POST", f"/api/admin/organizations/{org_id}/retry-payment"
  )
  console.print(f"\n[green]✓[/green] {result['message']} (invoice {result['invoiceId']})")


@orgs.command("override-suspension")
@click.argument("org_id")
@click.option(
  "--status",
  "new_status",
  default="active",
  type=click.Choice(["active", "past_due", "trialing"]),
  help="Status to restore",
)
@click.pass_obj
def override_suspension(client, org_id, new_status):
  """Reactivate a suspended organization."""
  if not click.confirm(f"Reactivate {org_id} as {new_status}?"):
    console.print("[yellow]Cancelled.[/yellow]")
    return
  result = client._make_request(
    "POST",
    f"/api/admin/organizations/{org_id}/override-suspension",
    data={"newStatus": new_status},
  )
  console.print(f"\n[green]✓[/green] {result['message']}")


@orgs.command("extend-trial")
@click.argument("org_id")
@click.argument("days", type=int)
@click.pass_obj
def extend_trial(client, org_id, days):
  """Extend an organization's trial by a number of days."""
  result = client._make_request(
    "POST", f"/api/admin/organizations/{org_id}/extend-trial", data={"days": days}
  )
  console.print(f"\n[green]✓[/green] {result['message']}")


@cli.command("check-grace-periods")
@click.pass_obj
def check_grace_periods(client):
  """Suspend past-due organizations whose grace period has expired."""
  result = client._make_request("POST", "/api/admin/organizations/check-grace-periods")

  console.print(f"\n[bold]{result['message']}[/bold]")
  if result["suspended"]:
    console.print("\n[red]Suspended:[/red]")
    for name in result["suspended"]:
      console.print(f"  - {name}")
  if result["stillInGracePeriod"]:
    console.print("\n[yellow]Still in grace period:[/yellow]")
    for name in result["stillInGracePeriod"]:
      console.print(f"  - {name}")


# =============================================================================
# SUBSCRIPTION PLANS
# =============================================================================


@cli.group()
def plans():
  """Manage the subscription plan catalog."""
  pass


@plans.command("list")
@click.pass_obj
def list_plans(client):
  """List active subscription plans."""
  catalog = client._make_request("GET", "/api/admin/subscription-plans")
  if not catalog:
    console.print("\n[yellow]No plans found. Run 'plans seed' first.[/yellow]")
    return

  table = Table(title="Subscription Plans", show_header=True, header_style="bold cyan")
  table.add_column("Name", no_wrap=True)
  table.add_column("Display Name")
  table.add_column("Price", justify="right")
  table.add_column("Interval")
  table.add_column("Trial Days", justify="right")
  for plan in catalog:
    table.add_row(
      plan["name"],
      plan["displayName"],
      f"${plan['price']}",
      plan["billingInterval"],
      str(plan["trialDays"]),
    )
  console.print()
  console.print(table)


@plans.command("seed")
@click.pass_obj
def seed_plans(client):
  """Insert the default plan catalog."""
  result = client._make_request("POST", "/api/admin/subscription-plans/seed")
  console.print(f"\n[green]✓[/green] {result['message']}")
  if result["skipped"]:
    console.print(f"Already present: {', '.join(result['skipped'])}")


if __name__ == "__main__":
  cli()
