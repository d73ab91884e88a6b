"""Grace-period sweeper: suspends past-due organizations whose grace period ran out."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...logger import get_logger, log_transition
from ...models.billing import BillingAuditLog, BillingEventType
from ...models.iam import Organization, OrganizationStatus
from .lifecycle import ensure_utc, is_grace_expired, utc_now

logger = get_logger(__name__)


@dataclass
class SweepResult:
  total_past_due: int = 0
  suspended: List[str] = field(default_factory=list)
  still_in_grace_period: List[str] = field(default_factory=list)

  @property
  def message(self) -> str:
    return (
      f"Checked {self.total_past_due} organizations. "
      f"Suspended {len(self.suspended)}."
    )

  def to_dict(self) -> Dict[str, Any]:
    return {
      "success": True,
      "summary": {
        "totalPastDue": self.total_past_due,
        "suspended": len(self.suspended),
        "stillInGracePeriod": len(self.still_in_grace_period),
      },
      "suspended": self.suspended,
      "stillInGracePeriod": self.still_in_grace_period,
      "message": self.message,
    }


def sweep_grace_periods(
  session: Session,
  now: Optional[datetime] = None,
  actor_user_id: Optional[str] = None,
) -> SweepResult:
  """
  Suspend every past-due organization whose grace period has expired.

  Only organizations with status past_due and a recorded payment failure are
  considered; the expiry test is the one the webhook reconciler uses.

  Args:
      session: Database session
      now: Evaluation time, defaults to the current UTC time
      actor_user_id: Admin who triggered the sweep, if any

  Returns:
      SweepResult with the names of suspended and still-in-grace organizations
  """
  current = ensure_utc(now) if now is not None else utc_now()
  candidates = Organization.list_past_due_with_failure(session)
  result = SweepResult(total_past_due=len(candidates))

  for org in candidates:
    if not is_grace_expired(org.payment_failed_at, org.grace_period_days, current):
      result.still_in_grace_period.append(org.name)
      continue

    org.update(session, auto_commit=False, status=OrganizationStatus.SUSPENDED.value)
    BillingAuditLog.log_event(
      session=session,
      event_type=BillingEventType.GRACE_PERIOD_SWEEP,
      description="Suspended after grace period expired",
      actor_type="admin" if actor_user_id else "system",
      actor_user_id=actor_user_id,
      organization_id=org.id,
      event_data={
        "payment_failed_at": ensure_utc(org.payment_failed_at).isoformat(),
        "grace_period_days": org.grace_period_days,
      },
      auto_commit=False,
    )
    log_transition(
      org.id,
      OrganizationStatus.PAST_DUE.value,
      OrganizationStatus.SUSPENDED.value,
      "grace period expired",
    )
    result.suspended.append(org.name)

  try:
    session.commit()
  except SQLAlchemyError:
    session.rollback()
    raise

  logger.info(
    result.message,
    extra={
      "component": "billing",
      "action": "grace_period_sweep",
      "metadata": {
        "total_past_due": result.total_past_due,
        "suspended": len(result.suspended),
      },
    },
  )
  return result
