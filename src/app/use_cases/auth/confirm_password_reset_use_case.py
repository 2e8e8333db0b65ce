"""
Confirm Password Reset Use Case

Redeems a reset code and replaces the account's password.
"""

import logging
import secrets
from datetime import datetime
from typing import Optional

from libs.result import Error, Result, Return
from src.app.repositories.errors import StoreError
from src.app.services.clock import Clock, utcnow
from src.app.services.password_hasher import IPasswordHasher
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditEvent, User
from .dtos import ConfirmPasswordResetResponse

logger = logging.getLogger(__name__)

# bcrypt silently truncates input beyond this many bytes
MAX_PASSWORD_BYTES = 72

INVALID_OR_EXPIRED_CODE = Error("INVALID_OR_EXPIRED_CODE", "Invalid or expired reset code.")


class ConfirmPasswordResetUseCase:
    """
    Use case for redeeming a password reset code.

    Business Rules:
    - Code must exactly match the stored binding and now <= expires_at
    - Unknown account, missing binding, mismatch and expiry all fail with
      the same INVALID_OR_EXPIRED_CODE error
    - New password is hashed before it reaches the store
    - Password replacement and binding clear are one conditional update,
      so a code can be consumed at most once
    - Failed attempts leave the binding untouched
    - Audit event created for security tracking
    """

    def __init__(
        self,
        uow: UnitOfWork,
        hasher: IPasswordHasher,
        clock: Clock = utcnow,
    ):
        self.uow = uow
        self.hasher = hasher
        self.clock = clock

    def _validate_input(
        self, email: Optional[str], code: Optional[str], new_password: Optional[str]
    ) -> Result[None]:
        """
        Validate presence of all fields and the bcrypt length limit.

        Returns:
            Result with None if valid, or VALIDATION_ERROR
        """
        if email is None or not email.strip():
            return Return.err(Error("VALIDATION_ERROR", "Email is required."))
        if code is None or not code.strip():
            return Return.err(Error("VALIDATION_ERROR", "Reset code is required."))
        if not new_password:
            return Return.err(Error("VALIDATION_ERROR", "New password is required."))
        if len(new_password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            return Return.err(
                Error("VALIDATION_ERROR", "New password must be at most 72 bytes.")
            )
        return Return.ok(None)

    @staticmethod
    def _binding_accepts(user: Optional[User], code: str, now: datetime) -> bool:
        if user is None or not user.has_reset_binding():
            return False
        if not secrets.compare_digest(user.reset_code.encode(), code.encode()):
            return False
        return now <= user.reset_code_expires_at

    async def execute(
        self, email: str, code: str, new_password: str
    ) -> Result[ConfirmPasswordResetResponse]:
        """
        Execute confirm password reset use case.

        Args:
            email: Account email, matched exactly as stored
            code: Reset code presented by the user
            new_password: New plaintext password

        Returns:
            Result with confirmation message, or Error

        Errors:
            - VALIDATION_ERROR: Missing field or password too long
            - INVALID_OR_EXPIRED_CODE: Account, binding, code or expiry check failed
            - STORE_ERROR: Account store read or write failed
        """
        validation = self._validate_input(email, code, new_password)
        if validation.is_err():
            return Return.err(validation.error)

        try:
            async with self.uow:
                user = await self.uow.users.get_by_email(email)
                now = self.clock()

                if not self._binding_accepts(user, code, now):
                    logger.warning("Rejected password reset attempt for %s", email)
                    return Return.err(INVALID_OR_EXPIRED_CODE)

                password_hash = await self.hasher.hash(new_password)

                # Compare-and-set: loses to any concurrent reissue or redemption
                consumed = await self.uow.users.consume_reset_binding(
                    user.id, code, now, password_hash
                )
                if not consumed:
                    logger.warning("Reset code for %s changed before it could be consumed", email)
                    return Return.err(INVALID_OR_EXPIRED_CODE)

                audit_event = AuditEvent(
                    user_id=user.id,
                    action="password_reset_confirmed",
                    event_metadata={"email": email},
                )
                await self.uow.audit_events.create(audit_event)

                await self.uow.commit()
        except StoreError as exc:
            logger.error("Store failure while resetting password for %s: %s", email, exc)
            return Return.err(Error("STORE_ERROR", "Could not update the password."))

        logger.info("Password reset completed for %s", email)

        return Return.ok(ConfirmPasswordResetResponse(message="Password reset successful."))
