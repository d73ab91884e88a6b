"""User model: supplies the role and organization link for authenticated callers."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, relationship

from ...database import Model
from ...utils.ulid import generate_prefixed_ulid


class UserRole(str, Enum):
  ADMIN = "admin"
  PROPERTY_MANAGER = "property_manager"
  OWNER = "owner"
  TENANT = "tenant"
  VENDOR = "vendor"


class User(Model):
  """User model for authorization (identity comes from the JWT)."""

  __tablename__ = "users"

  id = Column(String, primary_key=True, default=lambda: generate_prefixed_ulid("user"))
  email = Column(String, unique=True, nullable=False, index=True)
  name = Column(String, nullable=True)
  role = Column(String, nullable=False, default=UserRole.PROPERTY_MANAGER.value)
  organization_id = Column(String, ForeignKey("organizations.id"), nullable=True)
  is_active = Column(Boolean, default=True, nullable=False)
  created_at = Column(
    DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
  )
  updated_at = Column(
    DateTime(timezone=True),
    default=lambda: datetime.now(timezone.utc),
    onupdate=lambda: datetime.now(timezone.utc),
    nullable=False,
  )

  organization = relationship("Organization", back_populates="users")

  def __repr__(self) -> str:
    """String representation of the user."""
    return f"<User {self.id} {self.email}>"

  @property
  def is_admin(self) -> bool:
    return self.role == UserRole.ADMIN.value

  @classmethod
  def get_by_id(cls, user_id: str, session: Session) -> Optional["User"]:
    """Get a user by ID."""
    return session.query(cls).filter(cls.id == user_id).first()

  @classmethod
  def get_by_email(cls, email: str, session: Session) -> Optional["User"]:
    """Get a user by email (stored lowercase)."""
    return session.query(cls).filter(cls.email == email.lower()).first()

  @classmethod
  def create(
    cls,
    email: str,
    session: Session,
    name: Optional[str] = None,
    role: str = UserRole.PROPERTY_MANAGER.value,
    organization_id: Optional[str] = None,
  ) -> "User":
    """Create a new user."""
    user = cls(
      email=email.lower(), name=name, role=role, organization_id=organization_id
    )
    session.add(user)
    try:
      session.commit()
      session.refresh(user)
    except SQLAlchemyError:
      session.rollback()
      raise
    return user
