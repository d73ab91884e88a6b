"""
Subscription lifecycle rules.

Pure functions shared by the webhook reconciler, the grace-period sweeper and
the admin overrides: status mapping from the billing provider, grace-period
arithmetic and input validation for the admin knobs. Nothing here touches the
database or the network.
"""

import math
from datetime import datetime, timedelta, timezone
from numbers import Real
from typing import Any, Optional

from ...config.billing import BillingConfig
from ...config.constants import (
  MAX_GRACE_PERIOD_DAYS,
  MIN_GRACE_PERIOD_DAYS,
  SUSPENSION_OVERRIDE_STATUSES,
)
from ...models.iam import OrganizationStatus

# Remote subscription status -> local organization status. Remote statuses not
# listed here (incomplete, incomplete_expired, paused) keep the current status.
REMOTE_STATUS_MAP = {
  "active": OrganizationStatus.ACTIVE.value,
  "trialing": OrganizationStatus.TRIALING.value,
  "past_due": OrganizationStatus.PAST_DUE.value,
  "canceled": OrganizationStatus.CANCELED.value,
  "unpaid": OrganizationStatus.SUSPENDED.value,
}

GRACE_PERIOD_ERROR = (
  f"Grace period must be a number between {MIN_GRACE_PERIOD_DAYS} "
  f"and {MAX_GRACE_PERIOD_DAYS} days"
)
EXTEND_TRIAL_ERROR = "Days must be a positive number"
OVERRIDE_STATUS_ERROR = "New status must be 'active', 'past_due', or 'trialing'"


def utc_now() -> datetime:
  return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
  """Attach UTC to naive datetimes (SQLite drops tzinfo) and convert aware ones."""
  if value is None:
    return None
  if value.tzinfo is None:
    return value.replace(tzinfo=timezone.utc)
  return value.astimezone(timezone.utc)


def from_unix(timestamp: Optional[int]) -> Optional[datetime]:
  """Convert a provider unix timestamp to an aware UTC datetime."""
  if timestamp is None:
    return None
  return datetime.fromtimestamp(int(timestamp), tz=timezone.utc)


def map_remote_status(remote_status: Optional[str], current_status: str) -> str:
  """Local status for a provider subscription status."""
  return REMOTE_STATUS_MAP.get(remote_status or "", current_status)


def resolve_grace_period_days(grace_period_days: Optional[int]) -> int:
  """Effective grace period; an unset value falls back to the default, 0 is kept."""
  if grace_period_days is None:
    return BillingConfig.DEFAULT_GRACE_PERIOD_DAYS
  return int(grace_period_days)


def grace_period_end(
  payment_failed_at: datetime, grace_period_days: Optional[int]
) -> datetime:
  """When the grace period that started at payment_failed_at runs out."""
  return ensure_utc(payment_failed_at) + timedelta(
    days=resolve_grace_period_days(grace_period_days)
  )


def is_grace_expired(
  payment_failed_at: Optional[datetime],
  grace_period_days: Optional[int],
  now: Optional[datetime] = None,
) -> bool:
  """
  True when now is strictly past payment_failed_at + grace_period_days.

  An organization without a recorded payment failure is never expired.
  """
  if payment_failed_at is None:
    return False
  current = ensure_utc(now) if now is not None else utc_now()
  return current > grace_period_end(payment_failed_at, grace_period_days)


def trial_days_remaining(trial_end: datetime, now: Optional[datetime] = None) -> int:
  """Whole days until the trial ends, rounded up."""
  current = ensure_utc(now) if now is not None else utc_now()
  seconds = (ensure_utc(trial_end) - current).total_seconds()
  return math.ceil(seconds / 86400)


def _as_whole_number(value: Any) -> Optional[int]:
  # bool is an int subclass but never a valid day count
  if isinstance(value, bool) or not isinstance(value, Real):
    return None
  if isinstance(value, float) and not value.is_integer():
    return None
  return int(value)


def validate_grace_period_days(value: Any) -> int:
  """
  Validate an admin-supplied grace period.

  Raises:
      ValueError: Not a whole number in the allowed range
  """
  days = _as_whole_number(value)
  if days is None or days < MIN_GRACE_PERIOD_DAYS or days > MAX_GRACE_PERIOD_DAYS:
    raise ValueError(GRACE_PERIOD_ERROR)
  return days


def validate_extension_days(value: Any) -> int:
  """
  Validate the number of days to extend a trial by.

  Raises:
      ValueError: Not a positive whole number
  """
  days = _as_whole_number(value)
  if days is None or days <= 0:
    raise ValueError(EXTEND_TRIAL_ERROR)
  return days


def validate_override_status(value: Any) -> str:
  """
  Validate the target status of a suspension override.

  Raises:
      ValueError: Not one of the statuses an admin may restore
  """
  if value not in SUSPENSION_OVERRIDE_STATUSES:
    raise ValueError(OVERRIDE_STATUS_ERROR)
  return value
