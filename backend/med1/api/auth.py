"""
Authentication endpoints: register, verify, login, refresh, me, logout,
forgot-password, reset-password.
"""

import logging
from datetime import timedelta
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import func as sa_func
from sqlalchemy.orm import Session

from ..core.auth import get_current_user
from ..core.database import get_db, utcnow
from ..core.security import (
    TOKEN_TYPE_REFRESH,
    create_access_token,
    create_refresh_token,
    decode_token,
    generate_secure_token,
    generate_verification_code,
    hash_password,
    hash_token,
    verify_password,
)
from ..models.user import PasswordResetToken, User, UserStatus, VerificationToken
from ..schemas.user import (
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RefreshTokenRequest,
    RefreshTokenResponse,
    RegisterRequest,
    RegisterResponse,
    ResendCodeRequest,
    ResetPasswordRequest,
    UserResponse,
    VerifyRequest,
)
from ..services.email_service import email_service


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/auth", tags=["Authentication"])

VERIFICATION_CODE_EXPIRY_HOURS = 1
RESET_TOKEN_EXPIRY_HOURS = 1
RESET_RATE_LIMIT_PER_HOUR = 5


def _token_data(user: User) -> dict:
    return {"sub": str(user.id), "email": user.email}


def _issue_verification_code(db: Session, user: User) -> None:
    """Replace any pending code for ``user`` and email a fresh one."""
    db.query(VerificationToken).filter(VerificationToken.identifier == user.email).delete()
    code = generate_verification_code()
    db.add(VerificationToken(
        identifier=user.email,
        token=code,
        expires_at=utcnow() + timedelta(hours=VERIFICATION_CODE_EXPIRY_HOURS),
    ))
    db.commit()

    if not email_service.send_verification_code(user.email, user.name, code):
        logger.warning(f"Verification code for {user.email} was not emailed")


# =============================================================================
# Registration
# =============================================================================


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, db: Session = Depends(get_db)) -> RegisterResponse:
    """Create a doctor account and email a six-digit verification code."""
    email = body.email.lower()
    if db.query(User.id).filter(sa_func.lower(User.email) == email).first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")
    if db.query(User.id).filter(User.slug == body.slug).first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Slug already in use")

    try:
        user = User(
            name=body.name,
            email=email,
            password_hash=hash_password(body.password),
            slug=body.slug,
            specialty=body.specialty,
        )
        db.add(user)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error registering {email}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create account")

    _issue_verification_code(db, user)
    logger.info(f"Registered doctor {user.id} ({user.slug})")

    return RegisterResponse(message="Account created. Check your email for the verification code.", user_id=user.id)


@router.post("/verify", response_model=MessageResponse)
async def verify_email(body: VerifyRequest, db: Session = Depends(get_db)) -> MessageResponse:
    email = body.email.lower()
    token = (
        db.query(VerificationToken)
        .filter(VerificationToken.identifier == email, VerificationToken.token == body.code)
        .first()
    )
    if not token or token.is_expired:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired code")

    user = db.query(User).filter(User.email == email).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired code")

    user.email_verified_at = utcnow()
    db.query(VerificationToken).filter(VerificationToken.identifier == email).delete()
    db.commit()

    return MessageResponse(message="Email verified")


@router.post("/resend-code", response_model=MessageResponse)
async def resend_code(body: ResendCodeRequest, db: Session = Depends(get_db)) -> MessageResponse:
    """Send a new code. Unknown emails get the same answer as known ones."""
    safe_message = "If the account exists, a new code has been sent."
    user = db.query(User).filter(User.email == body.email.lower()).first()
    if not user:
        return MessageResponse(message=safe_message)
    if user.is_verified:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already verified")

    _issue_verification_code(db, user)
    return MessageResponse(message=safe_message)


# =============================================================================
# Login
# =============================================================================


@router.post("/login", response_model=LoginResponse)
async def login(credentials: LoginRequest, request: Request, db: Session = Depends(get_db)) -> LoginResponse:
    """Authenticate with email + password. Returns JWT access + refresh tokens."""
    user = db.query(User).filter(User.email == credentials.email.lower()).first()

    if not user or not verify_password(credentials.password, user.password_hash):
        logger.warning(
            f"Failed login attempt for email={credentials.email} "
            f"ip={request.client.host if request.client else 'unknown'}"
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if user.status == UserStatus.INACTIVE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account has been deactivated",
        )

    if not user.is_verified:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Email not verified",
        )

    user.last_login = utcnow()
    db.commit()

    return LoginResponse(
        access_token=create_access_token(data=_token_data(user)),
        refresh_token=create_refresh_token(data=_token_data(user)),
        user=UserResponse.model_validate(user),
    )


# =============================================================================
# Refresh Token
# =============================================================================


@router.post("/refresh", response_model=RefreshTokenResponse)
async def refresh_token(body: RefreshTokenRequest, db: Session = Depends(get_db)) -> RefreshTokenResponse:
    payload = decode_token(body.refresh_token)
    if payload is None or payload.get("type") != TOKEN_TYPE_REFRESH:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user_id = UUID(str(payload.get("sub")))
    except ValueError:
        user_id = None

    user = db.query(User).filter(User.id == user_id).first() if user_id else None
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if user.status == UserStatus.INACTIVE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account has been deactivated",
        )

    logger.info(f"Token refreshed for user {user.email}")
    return RefreshTokenResponse(
        access_token=create_access_token(data=_token_data(user)),
        refresh_token=create_refresh_token(data=_token_data(user)),
    )


# =============================================================================
# Current User / Logout
# =============================================================================


@router.get("/me", response_model=UserResponse)
async def get_me(user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(user)


@router.post("/logout", response_model=MessageResponse)
async def logout(user: User = Depends(get_current_user)) -> MessageResponse:
    """Tokens are stateless so the client simply discards them."""
    return MessageResponse(message="Logged out successfully")


# =============================================================================
# Forgot / Reset Password
# =============================================================================


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(body: ForgotPasswordRequest, db: Session = Depends(get_db)) -> MessageResponse:
    """
    Request a password reset link. Always returns the same message so the
    response never reveals whether the email exists. Limited to 5 links per
    hour per account.
    """
    safe_message = "If an account exists with this email, you'll receive a reset link."

    user = db.query(User).filter(User.email == body.email.lower()).first()
    if not user or user.status == UserStatus.INACTIVE:
        logger.info(f"Password reset requested for unknown or inactive email: {body.email}")
        return MessageResponse(message=safe_message)

    one_hour_ago = utcnow() - timedelta(hours=1)
    recent_count = (
        db.query(sa_func.count(PasswordResetToken.id))
        .filter(
            PasswordResetToken.user_id == user.id,
            PasswordResetToken.created_at >= one_hour_ago,
        )
        .scalar()
    )
    if recent_count >= RESET_RATE_LIMIT_PER_HOUR:
        logger.warning(f"Rate limit hit for password reset: {body.email}")
        return MessageResponse(message=safe_message)

    raw_token = generate_secure_token(48)
    db.add(PasswordResetToken(
        user_id=user.id,
        token_hash=hash_token(raw_token),
        expires_at=utcnow() + timedelta(hours=RESET_TOKEN_EXPIRY_HOURS),
    ))
    db.commit()

    email_service.send_password_reset(user.email, user.name, raw_token)
    return MessageResponse(message=safe_message)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(body: ResetPasswordRequest, db: Session = Depends(get_db)) -> MessageResponse:
    reset_token = (
        db.query(PasswordResetToken)
        .filter(PasswordResetToken.token_hash == hash_token(body.token))
        .first()
    )
    if not reset_token or reset_token.is_used or reset_token.is_expired:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired reset link",
        )

    reset_token.user.password_hash = hash_password(body.new_password)
    reset_token.used_at = utcnow()
    db.commit()

    logger.info(f"Password reset completed for user {reset_token.user_id}")
    return MessageResponse(message="Password updated successfully")
