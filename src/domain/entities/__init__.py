"""
Password Reset Domain Entities

Each entity in its own file for better maintainability.
"""

from .user import User
from .audit_event import AuditEvent

__all__ = [
    "User",
    "AuditEvent",
]
