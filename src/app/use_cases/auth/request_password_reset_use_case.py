"""
Request Password Reset Use Case

Issues a one-time reset code and binds it to the account.
"""

import logging
from datetime import timedelta
from typing import Optional

from libs.result import Error, Result, Return
from src.app.repositories.errors import StoreError
from src.app.services.clock import Clock, utcnow
from src.app.services.reset_code_notifier import IResetCodeNotifier
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditEvent
from .dtos import RequestPasswordResetResponse
from .reset_code import generate_reset_code

logger = logging.getLogger(__name__)

DEFAULT_RESET_CODE_TTL = timedelta(minutes=15)


class RequestPasswordResetUseCase:
    """
    Use case for requesting a password reset code.

    Business Rules:
    - Code is 6 random decimal digits from a CSPRNG
    - Code expires 15 minutes after issuance (configurable)
    - Issuing a new code overwrites the previous binding
    - Unknown email is reported as ACCOUNT_NOT_FOUND (existence is disclosed)
    - Code is handed to the notifier; it is echoed back only in demo mode
    - Audit event created for security tracking
    """

    def __init__(
        self,
        uow: UnitOfWork,
        notifier: IResetCodeNotifier,
        ttl: timedelta = DEFAULT_RESET_CODE_TTL,
        expose_code: bool = False,
        clock: Clock = utcnow,
    ):
        self.uow = uow
        self.notifier = notifier
        self.ttl = ttl
        self.expose_code = expose_code
        self.clock = clock

    def _validate_email(self, email: Optional[str]) -> Result[None]:
        if email is None or not email.strip():
            return Return.err(Error("VALIDATION_ERROR", "Email is required."))
        return Return.ok(None)

    async def execute(self, email: str) -> Result[RequestPasswordResetResponse]:
        """
        Execute request password reset use case.

        Args:
            email: Account email, matched exactly as stored

        Returns:
            Result with message (and the code in demo mode), or Error

        Errors:
            - VALIDATION_ERROR: Email missing
            - ACCOUNT_NOT_FOUND: No account with that email
            - STORE_ERROR: Account store read or write failed
            - DELIVERY_ERROR: Notifier could not deliver the code
        """
        validation = self._validate_email(email)
        if validation.is_err():
            return Return.err(validation.error)

        try:
            async with self.uow:
                user = await self.uow.users.get_by_email(email)
                if user is None:
                    logger.info("Password reset requested for unknown email: %s", email)
                    return Return.err(
                        Error("ACCOUNT_NOT_FOUND", "No account found with that email.")
                    )

                code = generate_reset_code()
                expires_at = self.clock() + self.ttl

                # Overwrites any previous binding
                await self.uow.users.set_reset_binding(user, code, expires_at)

                audit_event = AuditEvent(
                    user_id=user.id,
                    action="password_reset_requested",
                    event_metadata={
                        "email": email,
                        "expires_at": expires_at.isoformat(),
                    },
                )
                await self.uow.audit_events.create(audit_event)

                await self.uow.commit()
        except StoreError as exc:
            logger.error("Store failure while issuing reset code for %s: %s", email, exc)
            return Return.err(Error("STORE_ERROR", "Could not store the reset code."))

        logger.info("Reset code issued for %s", email)

        try:
            await self.notifier.send_reset_code(email, code, expires_at)
        except Exception as exc:
            # Binding stays committed; a later request supersedes it
            logger.error(
                "Reset code delivery failed for %s: %s", email, exc.__class__.__name__
            )
            return Return.err(Error("DELIVERY_ERROR", "Could not deliver the reset code."))

        return Return.ok(
            RequestPasswordResetResponse(
                message="Reset code generated.",
                code=code if self.expose_code else None,
            )
        )
