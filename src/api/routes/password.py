from datetime import timedelta

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, Field

from config import ApplicationConfig
from src.api.error import ClientError, ServerError
from src.app.services.clock import Clock
from src.app.services.password_hasher import IPasswordHasher
from src.app.services.reset_code_notifier import IResetCodeNotifier
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.auth import (
    RequestPasswordResetUseCase,
    ConfirmPasswordResetUseCase,
    RequestPasswordResetResponse,
    ConfirmPasswordResetResponse,
)
from src.depends import (
    get_clock,
    get_password_hasher,
    get_reset_code_notifier,
    get_unit_of_work,
)

router = APIRouter(tags=["Password Reset"])


class RequestResetRequest(BaseModel):
    """
    Request reset code HTTP request payload

    Email is matched exactly as stored, so it is not normalised here.
    """

    email: str = Field(..., min_length=1, max_length=255, description="Account email address")


@router.post(
    "/request-reset",
    status_code=status.HTTP_200_OK,
    response_model=RequestPasswordResetResponse,
    response_model_exclude_none=True,
)
async def request_reset(
    request: RequestResetRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    notifier: IResetCodeNotifier = Depends(get_reset_code_notifier),
    clock: Clock = Depends(get_clock),
):
    """
    Request Password Reset Code

    Generates a 6-digit code valid for 15 minutes and binds it to the
    account, replacing any earlier code.

    Security:
        - Code is delivered through the notifier; the response echoes it
          only when EXPOSE_RESET_CODE is enabled (demo mode)
        - Account existence is disclosed via 404 by design

    Raises:
        - 400/422: Missing or malformed email
        - 404 Not Found: No account with that email
        - 500 Internal Server Error: Store failure or code delivery failure
    """
    use_case = RequestPasswordResetUseCase(
        uow,
        notifier,
        ttl=timedelta(seconds=ApplicationConfig.RESET_CODE_TTL_SECONDS),
        expose_code=ApplicationConfig.EXPOSE_RESET_CODE,
        clock=clock,
    )
    result = await use_case.execute(request.email)

    # Handle errors
    if result.is_err():
        error = result.error
        if error.code == "ACCOUNT_NOT_FOUND":
            raise ClientError(error, status_code=status.HTTP_404_NOT_FOUND)
        elif error.code == "VALIDATION_ERROR":
            raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
        # STORE_ERROR, DELIVERY_ERROR
        raise ServerError(error)

    return result.value


class ResetPasswordRequest(BaseModel):
    """
    Reset password HTTP request payload

    Accepts `newPassword` (wire name) or `new_password`.
    """

    model_config = ConfigDict(populate_by_name=True)

    email: str = Field(..., min_length=1, max_length=255, description="Account email address")
    code: str = Field(..., min_length=1, max_length=32, description="Reset code")
    new_password: str = Field(
        ..., alias="newPassword", min_length=1, description="New plaintext password"
    )


@router.post(
    "/reset",
    status_code=status.HTTP_200_OK,
    response_model=ConfirmPasswordResetResponse,
)
async def reset_password(
    request: ResetPasswordRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    hasher: IPasswordHasher = Depends(get_password_hasher),
    clock: Clock = Depends(get_clock),
):
    """
    Reset Password With Code

    Validates the code against the account's binding and, on success,
    replaces the password hash and consumes the code in one update.

    Security:
        - Unknown account, wrong code, consumed code and expired code all
          produce the same 400 response

    Raises:
        - 400 Bad Request: Invalid or expired code, or invalid input
        - 422: Malformed request body
        - 500 Internal Server Error: Store failure
    """
    use_case = ConfirmPasswordResetUseCase(uow, hasher, clock=clock)
    result = await use_case.execute(request.email, request.code, request.new_password)

    # Handle errors
    if result.is_err():
        error = result.error
        if error.code in ("INVALID_OR_EXPIRED_CODE", "VALIDATION_ERROR"):
            raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
        raise ServerError(error)

    return result.value
