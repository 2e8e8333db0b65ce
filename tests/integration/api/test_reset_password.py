"""
Integration tests for POST /reset

- Successful redemption replaces the password and consumes the code
- Single use, supersession and expiry
- Uniform rejection for unknown account, wrong code and expiry
- Store failure handling
"""
from unittest.mock import patch

import bcrypt
import pytest
from httpx import AsyncClient
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.adapter.repositories.user_repository import UserRepository
from src.app.repositories.errors import StoreError
from src.domain.entities import AuditEvent
from tests.utils.json_compare import error_code, exclude_keys


async def issue_code(client: AsyncClient, email: str = "a@x.com") -> str:
    response = await client.post("/request-reset", json={"email": email})
    assert response.status_code == 200
    return response.json()["code"]


@pytest.mark.asyncio
async def test_reset_scenario_single_use(
    client: AsyncClient, db_session: AsyncSession, accounts, clock
):
    """Given a@x.com requested a code at T
    When it is redeemed at T+100s
    Then the password changes
    And redeeming it again at T+200s fails
    """
    user = accounts["a@x.com"]
    old_hash = user.password_hash
    code1 = await issue_code(client)

    clock.advance(100)
    response = await client.post(
        "/reset", json={"email": "a@x.com", "code": code1, "newPassword": "NewPass1!"}
    )

    assert response.status_code == 200
    assert response.json() == {"message": "Password reset successful."}

    await db_session.refresh(user)
    assert user.password_hash != old_hash
    assert bcrypt.checkpw("NewPass1!".encode(), user.password_hash.encode())
    assert user.reset_code is None
    assert user.reset_code_expires_at is None

    clock.advance(100)
    response = await client.post(
        "/reset", json={"email": "a@x.com", "code": code1, "newPassword": "AnotherPass"}
    )

    assert response.status_code == 400
    assert error_code(response.json()) == "INVALID_OR_EXPIRED_CODE"

    await db_session.refresh(user)
    assert bcrypt.checkpw("NewPass1!".encode(), user.password_hash.encode())


@pytest.mark.asyncio
async def test_snake_case_new_password_is_accepted(client: AsyncClient, accounts):
    code = await issue_code(client)

    response = await client.post(
        "/reset", json={"email": "a@x.com", "code": code, "new_password": "NewPass1!"}
    )

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_superseded_code_is_rejected(client: AsyncClient, accounts):
    """Redeeming the first code after a second request fails"""
    with patch(
        "src.app.use_cases.auth.request_password_reset_use_case.generate_reset_code",
        side_effect=["111111", "222222"],
    ):
        first = await issue_code(client)
        second = await issue_code(client)
    assert (first, second) == ("111111", "222222")

    response = await client.post(
        "/reset", json={"email": "a@x.com", "code": first, "newPassword": "NewPass1!"}
    )
    assert response.status_code == 400
    assert error_code(response.json()) == "INVALID_OR_EXPIRED_CODE"

    response = await client.post(
        "/reset", json={"email": "a@x.com", "code": second, "newPassword": "NewPass1!"}
    )
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_expired_code_is_rejected(
    client: AsyncClient, db_session: AsyncSession, accounts, clock
):
    """A correct code presented after its 15-minute window fails"""
    user = accounts["a@x.com"]
    old_hash = user.password_hash
    code = await issue_code(client)

    clock.advance(901)
    response = await client.post(
        "/reset", json={"email": "a@x.com", "code": code, "newPassword": "NewPass1!"}
    )

    assert response.status_code == 400
    assert error_code(response.json()) == "INVALID_OR_EXPIRED_CODE"

    # Binding left as it was, password unchanged
    await db_session.refresh(user)
    assert user.password_hash == old_hash
    assert user.reset_code == code


@pytest.mark.asyncio
async def test_code_accepted_at_exact_expiry(client: AsyncClient, accounts, clock):
    code = await issue_code(client)

    clock.advance(900)
    response = await client.post(
        "/reset", json={"email": "a@x.com", "code": code, "newPassword": "NewPass1!"}
    )

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_wrong_code_leaves_binding_usable(client: AsyncClient, accounts):
    code = await issue_code(client)
    wrong = "000000" if code != "000000" else "000001"

    response = await client.post(
        "/reset", json={"email": "a@x.com", "code": wrong, "newPassword": "NewPass1!"}
    )
    assert response.status_code == 400

    response = await client.post(
        "/reset", json={"email": "a@x.com", "code": code, "newPassword": "NewPass1!"}
    )
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_rejections_are_indistinguishable(client: AsyncClient, accounts, clock):
    """Wrong account, unknown account and expired code share one response"""
    code = await issue_code(client, "a@x.com")

    wrong_account = await client.post(
        "/reset", json={"email": "b@x.com", "code": code, "newPassword": "NewPass1!"}
    )
    unknown_account = await client.post(
        "/reset", json={"email": "nobody@x.com", "code": code, "newPassword": "NewPass1!"}
    )
    clock.advance(901)
    expired = await client.post(
        "/reset", json={"email": "a@x.com", "code": code, "newPassword": "NewPass1!"}
    )

    assert wrong_account.status_code == unknown_account.status_code == expired.status_code == 400
    assert wrong_account.json() == unknown_account.json() == expired.json()
    assert expired.json()["message"] == "Invalid or expired reset code."


@pytest.mark.asyncio
async def test_redeem_without_request_is_rejected(client: AsyncClient, accounts):
    response = await client.post(
        "/reset", json={"email": "a@x.com", "code": "123456", "newPassword": "NewPass1!"}
    )

    assert response.status_code == 400
    assert error_code(response.json()) == "INVALID_OR_EXPIRED_CODE"


@pytest.mark.asyncio
async def test_missing_fields_are_rejected(client: AsyncClient, test_data):
    payload = exclude_keys(test_data.get_copy("reset_confirm"), {"newPassword"})

    response = await client.post("/reset", json=payload)

    assert response.status_code == 422
    data = response.json()
    assert data["error"]["code"] == "VALIDATION_ERROR"
    assert "newPassword" in data["error"]["fields"]


@pytest.mark.asyncio
async def test_overlong_password_is_rejected(client: AsyncClient, accounts):
    code = await issue_code(client)

    response = await client.post(
        "/reset", json={"email": "a@x.com", "code": code, "newPassword": "p" * 100}
    )

    assert response.status_code == 400
    assert error_code(response.json()) == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_password_reset_creates_audit_event(
    client: AsyncClient, db_session: AsyncSession, accounts
):
    code = await issue_code(client)
    response = await client.post(
        "/reset", json={"email": "a@x.com", "code": code, "newPassword": "NewPass1!"}
    )
    assert response.status_code == 200

    user = accounts["a@x.com"]
    stmt = select(AuditEvent).where(
        AuditEvent.user_id == user.id,
        AuditEvent.action == "password_reset_confirmed",
    )
    result = await db_session.exec(stmt)
    audit_event = result.one_or_none()

    assert audit_event is not None
    assert "NewPass1!" not in str(audit_event.event_metadata)


@pytest.mark.asyncio
async def test_store_failure_returns_500_and_keeps_credential(
    client: AsyncClient, db_session: AsyncSession, accounts, monkeypatch
):
    user = accounts["a@x.com"]
    old_hash = user.password_hash
    code = await issue_code(client)

    async def failing_consume(self, user_id, code, now, password_hash):
        raise StoreError("connection reset")

    monkeypatch.setattr(UserRepository, "consume_reset_binding", failing_consume)

    response = await client.post(
        "/reset", json={"email": "a@x.com", "code": code, "newPassword": "NewPass1!"}
    )

    assert response.status_code == 500
    assert error_code(response.json()) == "STORE_ERROR"

    await db_session.refresh(user)
    assert user.password_hash == old_hash
    assert user.reset_code == code
