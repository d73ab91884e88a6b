"""Security utilities: audit logging."""

from .audit_logger import SecurityAuditLogger, SecurityEventType

__all__ = ["SecurityAuditLogger", "SecurityEventType"]
