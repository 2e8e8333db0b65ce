from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.errors import StoreError
from src.app.services.clock import utcnow
from src.app.repositories.user_repository import IUserRepository
from src.domain.entities import User


class UserRepository(IUserRepository):
    """User repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email address (exact match)"""
        stmt = select(User).where(User.email == email)
        try:
            result = await self.session.exec(stmt)
            return result.one_or_none()
        except SQLAlchemyError as exc:
            raise StoreError(f"get_by_email failed: {exc.__class__.__name__}") from exc

    async def create(self, user: User) -> User:
        """Create a new user"""
        return await self._save(user, "create")

    async def update(self, user: User) -> User:
        """Update existing user"""
        user.updated_at = utcnow()
        return await self._save(user, "update")

    async def set_reset_binding(self, user: User, code: str, expires_at: datetime) -> User:
        """Overwrite the reset binding slot on the user row"""
        user.reset_code = code
        user.reset_code_expires_at = expires_at
        return await self.update(user)

    async def consume_reset_binding(
        self, user_id: UUID, code: str, now: datetime, password_hash: str
    ) -> bool:
        """Conditional UPDATE; the row only changes while the binding still matches"""
        stmt = (
            update(User)
            .where(
                User.id == user_id,
                User.reset_code == code,
                User.reset_code_expires_at >= now,
            )
            .values(
                password_hash=password_hash,
                reset_code=None,
                reset_code_expires_at=None,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session="evaluate")
        )
        try:
            # exec() only covers SELECT; execute() gives the UPDATE rowcount
            result = await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            raise StoreError(f"consume_reset_binding failed: {exc.__class__.__name__}") from exc
        return result.rowcount == 1

    async def _save(self, user: User, operation: str) -> User:
        try:
            self.session.add(user)
            await self.session.flush()
            await self.session.refresh(user)
        except SQLAlchemyError as exc:
            raise StoreError(f"{operation} failed: {exc.__class__.__name__}") from exc
        return user
