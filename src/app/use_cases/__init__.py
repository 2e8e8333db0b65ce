"""
Use Cases

Use cases are organized into domain folders:
- auth/: Password reset code issuance and redemption

Import from subdirectories for better organization.
"""

from .auth import (
    RequestPasswordResetUseCase,
    ConfirmPasswordResetUseCase,
)

__all__ = [
    "RequestPasswordResetUseCase",
    "ConfirmPasswordResetUseCase",
]
