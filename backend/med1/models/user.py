"""
Doctor accounts and the one-time tokens used to verify and recover them.
"""

import enum
import uuid

from sqlalchemy import Column, String, DateTime, Enum as SQLEnum, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from ..core.database import Base, as_utc, utcnow


# =============================================================================
# Enums
# =============================================================================


class UserStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"


class UserPlan(str, enum.Enum):
    FREE = "free"
    PREMIUM = "premium"


# =============================================================================
# User Model
# =============================================================================


class User(Base):
    """A doctor. Every tenant-owned row points back here through ``user_id``."""

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    slug = Column(String(100), unique=True, nullable=False, index=True)
    specialty = Column(String(200), nullable=True)
    image = Column(String(500), nullable=True)
    page_template = Column(String(50), nullable=True)
    plan = Column(SQLEnum(UserPlan, name="user_plan", values_callable=lambda e: [x.value for x in e]), nullable=False, default=UserPlan.FREE)
    plan_expires_at = Column(DateTime(timezone=True), nullable=True)
    status = Column(SQLEnum(UserStatus, name="user_status", values_callable=lambda e: [x.value for x in e]), nullable=False, default=UserStatus.ACTIVE)
    email_verified_at = Column(DateTime(timezone=True), nullable=True)
    last_login = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    patients = relationship("Patient", back_populates="user", passive_deletes=True)

    @property
    def is_verified(self) -> bool:
        return self.email_verified_at is not None

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, slug={self.slug})>"


# =============================================================================
# Tokens
# =============================================================================


class VerificationToken(Base):
    """Six-digit email verification code issued on registration."""

    __tablename__ = "verification_tokens"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    identifier = Column(String(255), nullable=False, index=True)
    token = Column(String(10), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    @property
    def is_expired(self) -> bool:
        return utcnow() > as_utc(self.expires_at)


class PasswordResetToken(Base):
    """Stores hashed password reset tokens with expiry and one-time-use semantics."""

    __tablename__ = "password_reset_tokens"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token_hash = Column(String(255), nullable=False, unique=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    user = relationship("User", lazy="joined")

    @property
    def is_expired(self) -> bool:
        return utcnow() > as_utc(self.expires_at)

    @property
    def is_used(self) -> bool:
        return self.used_at is not None

    def __repr__(self) -> str:
        return f"<PasswordResetToken(id={self.id}, user_id={self.user_id}, expired={self.is_expired}, used={self.is_used})>"
