"""Business verification log - append-only record of verification decisions."""

from collections.abc import Sequence
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, relationship

from ...database import Model
from ...utils.ulid import generate_prefixed_ulid


class VerificationType(str, Enum):
  AUTOMATED = "automated"
  FRAUD_CHECK = "fraud_check"
  MANUAL_REVIEW = "manual_review"


class VerificationProvider(str, Enum):
  INTERNAL = "internal"
  ADMIN = "admin"


class BusinessVerificationLog(Model):
  """One verification decision about an organization. Never updated."""

  __tablename__ = "business_verification_logs"

  id = Column(String, primary_key=True, default=lambda: generate_prefixed_ulid("bvl"))
  organization_id = Column(String, ForeignKey("organizations.id"), nullable=False)
  verification_type = Column(String, nullable=False)
  status = Column(String, nullable=False)
  provider = Column(String, nullable=False, default=VerificationProvider.INTERNAL.value)
  # "metadata" is reserved on declarative classes
  verification_metadata = Column("metadata", JSON, nullable=True)
  verified_by = Column(String, nullable=True)
  notes = Column(Text, nullable=True)
  created_at = Column(
    DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
  )

  organization = relationship("Organization", back_populates="verification_logs")

  __table_args__ = (
    Index("idx_verification_log_org", "organization_id"),
    Index("idx_verification_log_created", "created_at"),
  )

  def __repr__(self) -> str:
    return f"<BusinessVerificationLog {self.verification_type}/{self.status} {self.organization_id}>"

  @classmethod
  def record(
    cls,
    session: Session,
    organization_id: str,
    verification_type: VerificationType | str,
    status: str,
    provider: VerificationProvider | str = VerificationProvider.INTERNAL,
    metadata: Optional[Dict[str, Any]] = None,
    verified_by: Optional[str] = None,
    notes: Optional[str] = None,
    auto_commit: bool = True,
  ) -> "BusinessVerificationLog":
    """Append a verification log entry."""
    entry = cls(
      organization_id=organization_id,
      verification_type=(
        verification_type.value
        if isinstance(verification_type, VerificationType)
        else verification_type
      ),
      status=status,
      provider=(
        provider.value if isinstance(provider, VerificationProvider) else provider
      ),
      verification_metadata=metadata,
      verified_by=verified_by,
      notes=notes,
    )
    session.add(entry)

    if auto_commit:
      try:
        session.commit()
        session.refresh(entry)
      except SQLAlchemyError:
        session.rollback()
        raise

    return entry

  @classmethod
  def list_for_organization(
    cls, organization_id: str, session: Session
  ) -> Sequence["BusinessVerificationLog"]:
    """All logs for an organization, newest first."""
    return (
      session.query(cls)
      .filter(cls.organization_id == organization_id)
      .order_by(cls.created_at.desc())
      .all()
    )

  @classmethod
  def latest_for_organization(
    cls, organization_id: str, session: Session
  ) -> Optional["BusinessVerificationLog"]:
    return (
      session.query(cls)
      .filter(cls.organization_id == organization_id)
      .order_by(cls.created_at.desc())
      .first()
    )

  def to_dict(self) -> Dict[str, Any]:
    return {
      "id": self.id,
      "organizationId": self.organization_id,
      "verificationType": self.verification_type,
      "status": self.status,
      "provider": self.provider,
      "metadata": self.verification_metadata,
      "verifiedBy": self.verified_by,
      "notes": self.notes,
      "createdAt": self.created_at.isoformat() if self.created_at else None,
    }
