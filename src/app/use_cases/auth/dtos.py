"""
Password Reset Use Case DTOs (Data Transfer Objects)

Response classes for the reset-code workflow.
Provides type safety and clear contracts between layers.
"""

from typing import Optional
from pydantic import BaseModel


# ============================================================================
# Response DTOs
# ============================================================================


class RequestPasswordResetResponse(BaseModel):
    """Response for request password reset use case"""

    message: str
    # Only populated in demo mode; production delivers the code out-of-band
    code: Optional[str] = None


class ConfirmPasswordResetResponse(BaseModel):
    """Response for confirm password reset use case"""

    message: str
