"""
Security utilities for authentication.

Provides password hashing, JWT utilities and random token generation.
"""

import hashlib
import hmac
import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import bcrypt as _bcrypt
from jose import JWTError, jwt

from .config import settings


# =============================================================================
# Password Hashing  (direct bcrypt)
# =============================================================================


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return _bcrypt.hashpw(password.encode("utf-8"), _bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify a plain-text password against a bcrypt hash."""
    if not hashed_password:
        return False
    return _bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))


# =============================================================================
# JWT Token Management
# =============================================================================

ALGORITHM = "HS256"

TOKEN_TYPE_ACCESS = "access"
TOKEN_TYPE_REFRESH = "refresh"
TOKEN_TYPE_PATIENT = "patient"


def _encode(data: dict[str, Any], expires_delta: timedelta, token_type: str) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode.update({"exp": expire, "type": token_type})
    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


def create_access_token(
    data: dict[str, Any],
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a JWT access token for a doctor.

    Args:
        data: Payload data to encode in token
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    return _encode(data, expires_delta, TOKEN_TYPE_ACCESS)


def create_refresh_token(data: dict[str, Any]) -> str:
    """Create a JWT refresh token with longer expiration."""
    return _encode(
        data, timedelta(days=settings.refresh_token_expire_days), TOKEN_TYPE_REFRESH
    )


def create_patient_token(data: dict[str, Any]) -> str:
    """Create the portal token handed to a patient after login."""
    return _encode(
        data, timedelta(days=settings.patient_token_expire_days), TOKEN_TYPE_PATIENT
    )


def decode_token(token: str) -> Optional[dict[str, Any]]:
    """
    Decode and verify a JWT token.

    Returns:
        Decoded payload dict or None if invalid
    """
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return None


# =============================================================================
# Random Tokens
# =============================================================================

_SLUG_ALPHABET = string.ascii_letters + string.digits + "_-"


def generate_secure_token(length: int = 32) -> str:
    """Generate a URL-safe random token."""
    return secrets.token_urlsafe(length)


def generate_verification_code() -> str:
    """Six-digit numeric code sent by email on registration."""
    return str(secrets.randbelow(900000) + 100000)


def generate_referral_slug(length: int = 10) -> str:
    """Short public identifier for a referral link."""
    return "".join(secrets.choice(_SLUG_ALPHABET) for _ in range(length))


def hash_token(token: str) -> str:
    """Hash a one-time token for storage using SHA-256."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def constant_time_equals(left: str, right: str) -> bool:
    return hmac.compare_digest(left.encode("utf-8"), right.encode("utf-8"))
