"""Tests for structured logging configuration."""

import json
import logging

from propertyflows.config.logging import (
  StructuredFormatter,
  TieredLogFilter,
  get_logging_config,
  log_status_transition,
)


def _record(level=logging.INFO, **extra) -> logging.LogRecord:
  record = logging.LogRecord("propertyflows.billing", level, __file__, 1, "hello", None, None)
  for key, value in extra.items():
    setattr(record, key, value)
  return record


def test_formatter_emits_context_fields():
  output = json.loads(
    StructuredFormatter().format(
      _record(org_id="org_1", event_id="evt_1", metadata={"days": 14})
    )
  )

  assert output["message"] == "hello"
  assert output["level"] == "INFO"
  assert output["org_id"] == "org_1"
  assert output["event_id"] == "evt_1"
  assert output["metadata"] == {"days": 14}
  assert output["timestamp"].endswith("Z")


def test_tiered_filter():
  assert TieredLogFilter("critical").filter(_record(logging.ERROR)) is True
  assert TieredLogFilter("critical").filter(_record(logging.INFO)) is False
  assert TieredLogFilter("operational").filter(_record(logging.WARNING)) is True
  assert TieredLogFilter("debug").filter(_record(logging.INFO)) is False


def test_logging_config_has_application_loggers():
  config = get_logging_config("test")

  assert "propertyflows" in config["loggers"]
  assert "propertyflows.billing" in config["loggers"]


def test_status_transition_extra(caplog):
  logger = logging.getLogger("transition_test")

  with caplog.at_level(logging.INFO, logger="transition_test"):
    log_status_transition(logger, "org_1", "active", "past_due", "payment failed")

  record = caplog.records[-1]
  assert record.old_status == "active"
  assert record.new_status == "past_due"
  assert record.metadata == {"reason": "payment failed"}
