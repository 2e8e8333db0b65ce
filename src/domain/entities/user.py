"""
User Entity

Represents an account whose credential can be reset with a one-time code.
"""

from datetime import UTC, datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel


class User(SQLModel, table=True):
    """
    User entity - the account record owned by the store.

    Business Rules:
    - Email must be unique across all users and is matched exactly as stored
    - Password stored as bcrypt hash, never plaintext
    - reset_code / reset_code_expires_at form a single reset binding slot:
      issuing a code overwrites it, a successful reset clears both fields
    - A binding is valid only while now <= reset_code_expires_at
    """

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(unique=True, index=True, max_length=255)
    password_hash: str = Field(max_length=60)  # Bcrypt output is 60 chars

    # Reset binding (at most one active per account)
    reset_code: Optional[str] = Field(default=None, max_length=6)
    reset_code_expires_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime, nullable=True)
    )

    # Timestamps
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC).replace(tzinfo=None), sa_column=Column(DateTime)
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC).replace(tzinfo=None), sa_column=Column(DateTime)
    )

    __table_args__ = (Index("idx_user_reset_code_expires_at", "reset_code_expires_at"),)

    def has_reset_binding(self) -> bool:
        return self.reset_code is not None and self.reset_code_expires_at is not None
