"""
Pydantic validation schemas for MED1.

Contains request/response DTOs with validation rules.
These schemas enforce data integrity at API boundaries.
"""

from .common import (
    HealthResponse,
    ErrorResponse,
    SuccessResponse,
)
from .lead import (
    LeadResponse,
    LeadUpdate,
    PublicLeadCreate,
)
from .user import (
    UserResponse,
    LoginRequest,
    LoginResponse,
)

__all__ = [
    # Common schemas
    "HealthResponse",
    "ErrorResponse",
    "SuccessResponse",
    # Lead schemas
    "LeadResponse",
    "LeadUpdate",
    "PublicLeadCreate",
    # User schemas
    "UserResponse",
    "LoginRequest",
    "LoginResponse",
]
