"""
Structured Logging Configuration for PropertyFlows

This module provides structured logging that's optimized for CloudWatch
Insights queries and for tracing a single organization through its
subscription lifecycle.

Key Features:
- Tiered logging (Critical/Operational/Debug) for cost optimization
- Structured JSON output with consistent field names
- Automatic log level management by environment
- Billing context (org_id, event_id, stripe ids) preserved as searchable fields
"""

import json
import logging
import logging.config
import time
import traceback
from datetime import datetime, timezone
from functools import wraps
from typing import Any

from propertyflows.config.env import EnvConfig

APPLICATION_LOGGERS = [
  "propertyflows",
  "propertyflows.api",
  "propertyflows.billing",
  "propertyflows.security",
]

# Fields copied from ``extra={...}`` into the JSON document when present
CONTEXT_FIELDS = (
  "action",
  "user_id",
  "org_id",
  "event_id",
  "event_type",
  "stripe_customer_id",
  "stripe_subscription_id",
  "invoice_id",
  "old_status",
  "new_status",
  "duration_ms",
  "status_code",
  "method",
  "path",
  "request_id",
)


class StructuredFormatter(logging.Formatter):
  """
  JSON formatter that creates CloudWatch-searchable structured logs.

  Output format:
  - Timestamp in ISO format
  - Consistent field names for filtering
  - Component/action structure
  - Metadata preserved as searchable fields
  """

  def format(self, record: logging.LogRecord) -> str:
    log_entry = {
      "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc)
      .isoformat()
      .replace("+00:00", "Z"),
      "level": record.levelname,
      "component": getattr(record, "component", record.name),
      "message": record.getMessage(),
    }

    for field_name in CONTEXT_FIELDS:
      if hasattr(record, field_name):
        log_entry[field_name] = getattr(record, field_name)

    if record.levelno >= logging.ERROR:
      if record.exc_info:
        log_entry["error"] = {
          "type": record.exc_info[0].__name__ if record.exc_info[0] else "Unknown",
          "message": str(record.exc_info[1]) if record.exc_info[1] else "",
          "traceback": traceback.format_exception(*record.exc_info),
        }

      if hasattr(record, "error_category"):
        log_entry["error_category"] = record.error_category

    if hasattr(record, "metadata"):
      log_entry["metadata"] = record.metadata

    return json.dumps(log_entry, default=str, separators=(",", ":"))


class TieredLogFilter:
  """
  Filter logs by tier to control costs.

  Tier 1 (Critical): ERROR, CRITICAL
  Tier 2 (Operational): INFO, WARNING
  Tier 3 (Debug): DEBUG
  """

  def __init__(self, tier: str):
    self.tier = tier

  def filter(self, record: logging.LogRecord) -> bool:
    if self.tier == "critical":
      return record.levelno >= logging.ERROR
    elif self.tier == "operational":
      return logging.INFO <= record.levelno < logging.ERROR
    elif self.tier == "debug":
      return record.levelno == logging.DEBUG
    return True


def get_logging_config(environment: str | None = None) -> dict[str, Any]:
  """
  Generate logging configuration based on environment.

  - prod: INFO level, structured output, no debug logs
  - staging: INFO level, with debug logs enabled
  - test: WARNING level, minimal output for clean test runs
  - dev: DEBUG level, simple console output (unless LOG_LEVEL overrides)
  """
  env = environment or EnvConfig.ENVIRONMENT

  log_level_override = getattr(EnvConfig, "LOG_LEVEL", None)

  if env == "prod":
    default_level = "INFO"
    enable_debug = False
  elif env == "staging":
    default_level = "INFO"
    enable_debug = True
  elif env == "test":
    default_level = "WARNING"
    enable_debug = False
  else:
    default_level = log_level_override or "DEBUG"
    enable_debug = default_level == "DEBUG"

  app_handlers = ["critical", "operational"] if env != "dev" else ["console"]

  config = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
      "structured": {
        "()": StructuredFormatter,
      },
      "simple": {"format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"},
    },
    "filters": {
      "critical_filter": {"()": TieredLogFilter, "tier": "critical"},
      "operational_filter": {"()": TieredLogFilter, "tier": "operational"},
      "debug_filter": {"()": TieredLogFilter, "tier": "debug"},
    },
    "handlers": {
      "critical": {
        "class": "logging.StreamHandler",
        "level": "ERROR",
        "formatter": "structured",
        "filters": ["critical_filter"],
        "stream": "ext://sys.stderr",
      },
      "operational": {
        "class": "logging.StreamHandler",
        "level": "INFO",
        "formatter": "structured",
        "filters": ["operational_filter"],
        "stream": "ext://sys.stdout",
      },
      "console": {
        "class": "logging.StreamHandler",
        "level": default_level,
        "formatter": "simple" if env == "dev" else "structured",
        "stream": "ext://sys.stdout",
      },
    },
    "loggers": {
      **{
        logger_name: {
          "level": default_level,
          "handlers": list(app_handlers),
          "propagate": False,
        }
        for logger_name in APPLICATION_LOGGERS
      },
      "uvicorn": {
        "level": "WARNING",
        "handlers": ["operational"] if env != "dev" else ["console"],
        "propagate": False,
      },
      "sqlalchemy": {
        "level": "WARNING",
        "handlers": ["operational"] if env != "dev" else ["console"],
        "propagate": False,
      },
      "stripe": {
        "level": "WARNING",
        "handlers": ["operational"] if env != "dev" else ["console"],
        "propagate": False,
      },
      "boto3": {
        "level": "WARNING",
        "handlers": ["critical"] if env != "dev" else ["console"],
        "propagate": False,
      },
      "botocore": {
        "level": "WARNING",
        "handlers": ["critical"] if env != "dev" else ["console"],
        "propagate": False,
      },
    },
    "root": {
      "level": "WARNING",
      "handlers": ["critical"] if env != "dev" else ["console"],
    },
  }

  if enable_debug:
    config["handlers"]["debug"] = {
      "class": "logging.StreamHandler",
      "level": "DEBUG",
      "formatter": "structured",
      "filters": ["debug_filter"],
      "stream": "ext://sys.stdout",
    }

    if env != "dev":
      for logger_name in APPLICATION_LOGGERS:
        config["loggers"][logger_name]["handlers"].append("debug")

  return config


def setup_logging(environment: str | None = None) -> None:
  """Initialize structured logging configuration."""
  config = get_logging_config(environment)
  logging.config.dictConfig(config)


def get_logger(name: str) -> logging.Logger:
  """Get a logger with structured logging capabilities."""
  return logging.getLogger(name)


def log_api_request(
  logger: logging.Logger,
  method: str,
  path: str,
  status_code: int,
  duration_ms: float,
  user_id: str | None = None,
  request_id: str | None = None,
) -> None:
  """Log API request with structured data."""
  logger.info(
    f"{method} {path} - {status_code} ({duration_ms:.2f}ms)",
    extra={
      "component": "api",
      "action": "request_completed",
      "method": method,
      "path": path,
      "status_code": status_code,
      "duration_ms": duration_ms,
      "user_id": user_id,
      "request_id": request_id,
    },
  )


def log_error(
  logger: logging.Logger,
  error: Exception,
  component: str,
  action: str,
  error_category: str = "application",
  user_id: str | None = None,
  org_id: str | None = None,
  metadata: dict[str, Any] | None = None,
) -> None:
  """Log error with structured data for easy searching."""
  logger.error(
    f"Error in {component}.{action}: {error!s}",
    exc_info=True,
    extra={
      "component": component,
      "action": action,
      "error_category": error_category,
      "user_id": user_id,
      "org_id": org_id,
      "metadata": metadata or {},
    },
  )


def log_status_transition(
  logger: logging.Logger,
  org_id: str,
  old_status: str | None,
  new_status: str,
  reason: str,
  metadata: dict[str, Any] | None = None,
) -> None:
  """Log an organization subscription status transition."""
  logger.info(
    f"Organization {org_id} status: {old_status} -> {new_status} ({reason})",
    extra={
      "component": "billing",
      "action": "status_transition",
      "org_id": org_id,
      "old_status": old_status,
      "new_status": new_status,
      "metadata": {"reason": reason, **(metadata or {})},
    },
  )


def log_security_event(
  logger: logging.Logger,
  event_type: str,
  user_id: str | None = None,
  ip_address: str | None = None,
  success: bool = True,
  metadata: dict[str, Any] | None = None,
) -> None:
  """Log security events for monitoring and alerting."""
  level = logging.INFO if success else logging.WARNING

  logger.log(
    level,
    f"Security event: {event_type} - {'Success' if success else 'Failed'}",
    extra={
      "component": "security",
      "action": event_type,
      "user_id": user_id,
      "ip_address": ip_address,
      "success": success,
      "metadata": metadata or {},
    },
  )


def performance_timer(
  logger: logging.Logger,
  component: str,
  action: str,
):
  """Decorator to automatically log function execution time."""

  def decorator(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
      start_time = time.time()
      try:
        result = func(*args, **kwargs)
        duration_ms = (time.time() - start_time) * 1000

        logger.info(
          f"{component}.{action} completed ({duration_ms:.2f}ms)",
          extra={
            "component": component,
            "action": action,
            "duration_ms": duration_ms,
          },
        )
        return result
      except Exception as e:
        duration_ms = (time.time() - start_time) * 1000
        log_error(
          logger,
          e,
          component,
          action,
          metadata={"duration_ms": duration_ms},
        )
        raise

    return wrapper

  return decorator


# Initialize logging on import
setup_logging()
