"""
Authentication Use Cases

Password reset code issuance and redemption.
"""

from .request_password_reset_use_case import RequestPasswordResetUseCase
from .confirm_password_reset_use_case import ConfirmPasswordResetUseCase
from .reset_code import generate_reset_code
from .dtos import (
    RequestPasswordResetResponse,
    ConfirmPasswordResetResponse,
)

__all__ = [
    # Use Cases
    "RequestPasswordResetUseCase",
    "ConfirmPasswordResetUseCase",
    # Helpers
    "generate_reset_code",
    # DTOs - Responses
    "RequestPasswordResetResponse",
    "ConfirmPasswordResetResponse",
]
