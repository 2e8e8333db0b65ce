from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID

from src.domain.entities import User


class IUserRepository(ABC):
    """User repository interface - application layer"""

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email address (exact match)"""
        pass

    @abstractmethod
    async def create(self, user: User) -> User:
        """Create a new user"""
        pass

    @abstractmethod
    async def update(self, user: User) -> User:
        """Update existing user, all mutated fields in one write"""
        pass

    @abstractmethod
    async def set_reset_binding(self, user: User, code: str, expires_at: datetime) -> User:
        """Overwrite the user's reset binding, superseding any previous one"""
        pass

    @abstractmethod
    async def consume_reset_binding(
        self, user_id: UUID, code: str, now: datetime, password_hash: str
    ) -> bool:
        """
        Atomically replace the password hash and clear the reset binding.

        Applies only if the stored binding still holds `code` and has not
        expired at `now`.

        Returns:
            True if the row was updated, False if the binding no longer matched
        """
        pass
