"""Tests for the grace-period sweeper."""

from datetime import datetime, timedelta, timezone

from propertyflows.models.billing import BillingAuditLog, BillingEventType
from propertyflows.models.iam import Organization
from propertyflows.operations.billing import SweepResult, sweep_grace_periods

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def _status(db_session, org_id) -> str:
  db_session.expire_all()
  return Organization.get_by_id(org_id, db_session).status


def test_suspends_only_expired_past_due(make_org, db_session):
  expired = make_org(
    name="Expired PM",
    status="past_due",
    payment_failed_at=NOW - timedelta(days=20),
    grace_period_days=14,
  )
  in_grace = make_org(
    name="Grace PM",
    status="past_due",
    payment_failed_at=NOW - timedelta(days=5),
    grace_period_days=14,
  )

  result = sweep_grace_periods(db_session, now=NOW)

  assert result.total_past_due == 2
  assert result.suspended == ["Expired PM"]
  assert result.still_in_grace_period == ["Grace PM"]
  assert _status(db_session, expired.id) == "suspended"
  assert _status(db_session, in_grace.id) == "past_due"


def test_ignores_other_statuses_and_missing_failure(make_org, db_session):
  long_ago = NOW - timedelta(days=100)
  active = make_org(name="Active PM", status="active", payment_failed_at=long_ago)
  trialing = make_org(name="Trial PM", status="trialing", payment_failed_at=long_ago)
  no_failure = make_org(name="No Failure PM", status="past_due", payment_failed_at=None)

  result = sweep_grace_periods(db_session, now=NOW)

  assert result.total_past_due == 0
  assert result.suspended == []
  assert _status(db_session, active.id) == "active"
  assert _status(db_session, trialing.id) == "trialing"
  assert _status(db_session, no_failure.id) == "past_due"


def test_custom_and_default_grace_periods(make_org, db_session):
  failed_at = NOW - timedelta(days=10)
  short = make_org(
    name="Short PM", status="past_due", payment_failed_at=failed_at, grace_period_days=7
  )
  default = make_org(
    name="Default PM", status="past_due", payment_failed_at=failed_at, grace_period_days=None
  )

  result = sweep_grace_periods(db_session, now=NOW)

  assert result.suspended == ["Short PM"]
  assert _status(db_session, short.id) == "suspended"
  assert _status(db_session, default.id) == "past_due"


def test_writes_audit_rows_for_suspensions(make_org, db_session, admin_user):
  org = make_org(
    status="past_due", payment_failed_at=NOW - timedelta(days=30), grace_period_days=14
  )

  sweep_grace_periods(db_session, now=NOW, actor_user_id=admin_user.id)

  rows = BillingAuditLog.get_org_history(db_session, org.id)
  assert len(rows) == 1
  assert rows[0].event_type == BillingEventType.GRACE_PERIOD_SWEEP.value
  assert rows[0].actor_type == "admin"
  assert rows[0].actor_user_id == admin_user.id


def test_result_serialization():
  result = SweepResult(
    total_past_due=3, suspended=["A", "B"], still_in_grace_period=["C"]
  )

  assert result.to_dict() == {
    "success": True,
    "summary": {"totalPastDue": 3, "suspended": 2, "stillInGracePeriod": 1},
    "suspended": ["A", "B"],
    "stillInGracePeriod": ["C"],
    "message": "Checked 3 organizations. Suspended 2.",
  }


def test_empty_sweep(db_session):
  result = sweep_grace_periods(db_session, now=NOW)

  assert result.message == "Checked 0 organizations. Suspended 0."
