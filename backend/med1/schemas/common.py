"""
Common Pydantic schemas shared across the application.

Contains health check, error and success schemas, plus the
string types reused by request bodies.
"""

from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import BaseModel, Field, StringConstraints


# Required text: surrounding whitespace is stripped and the result must not be empty
NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


# =============================================================================
# Health Check Schemas
# =============================================================================

class HealthResponse(BaseModel):
    """
    Health check response schema.

    Used by monitoring systems to verify service health.
    """

    status: str = Field(
        ...,
        description="Overall health status (healthy, degraded, unhealthy)"
    )
    version: str = Field(..., description="Application version")
    timestamp: datetime = Field(..., description="Current server timestamp")
    database: str = Field(..., description="Database connection status")
    environment: str = Field(..., description="Runtime environment")

    model_config = {
        "json_schema_extra": {
            "example": {
                "status": "healthy",
                "version": "1.0.0",
                "timestamp": "2024-01-15T10:30:00Z",
                "database": "connected",
                "environment": "development"
            }
        }
    }


# =============================================================================
# Error Schemas
# =============================================================================

class ErrorDetail(BaseModel):
    """Detail for a single validation error."""

    field: Optional[str] = Field(default=None, description="Field that caused the error")
    message: str = Field(..., description="Error message")
    code: Optional[str] = Field(default=None, description="Error code for programmatic handling")


class ErrorResponse(BaseModel):
    """
    Standard error response schema.

    Used for consistent error formatting by the global exception handlers.
    """

    success: bool = Field(default=False, description="Always false for errors")
    error: str = Field(..., description="Error type or category")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[List[ErrorDetail]] = Field(
        default=None,
        description="Additional error details (for validation errors)"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "success": False,
                "error": "validation_error",
                "message": "title: String should have at least 1 character",
                "details": [
                    {
                        "field": "title",
                        "message": "String should have at least 1 character",
                        "code": "string_too_short"
                    }
                ]
            }
        }
    }


# =============================================================================
# Success Response Schema
# =============================================================================

class SuccessResponse(BaseModel):
    """Generic success response for operations without specific return data."""

    success: bool = Field(default=True, description="Operation success status")
    message: Optional[str] = Field(default=None, description="Success message")

    model_config = {
        "json_schema_extra": {
            "example": {
                "success": True,
                "message": "Operation completed successfully"
            }
        }
    }
