from typing import List
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.audit_event_repository import IAuditEventRepository
from src.app.repositories.errors import StoreError
from src.domain.entities import AuditEvent


class AuditEventRepository(IAuditEventRepository):
    """AuditEvent repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, audit_event: AuditEvent) -> AuditEvent:
        """Create a new audit event (immutable)"""
        try:
            self.session.add(audit_event)
            await self.session.flush()
            await self.session.refresh(audit_event)
        except SQLAlchemyError as exc:
            raise StoreError(f"audit create failed: {exc.__class__.__name__}") from exc
        return audit_event

    async def get_by_user_id(self, user_id: UUID) -> List[AuditEvent]:
        """Get audit events for a user, newest first"""
        stmt = (
            select(AuditEvent)
            .where(AuditEvent.user_id == user_id)
            .order_by(AuditEvent.created_at.desc())
        )
        try:
            result = await self.session.exec(stmt)
            return list(result.all())
        except SQLAlchemyError as exc:
            raise StoreError(f"audit lookup failed: {exc.__class__.__name__}") from exc
