from datetime import datetime, timedelta

import bcrypt
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from tests.fixtures.json_loader import TestDataLoader
from src.adapter.repositories.user_repository import UserRepository
from src.adapter.services.bcrypt_password_hasher import BcryptPasswordHasher
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.reset_code_notifier import IResetCodeNotifier
from src.depends import (
    get_clock,
    get_password_hasher,
    get_reset_code_notifier,
    get_unit_of_work,
)
from src.domain.entities import User


class FakeClock:
    """Settable naive UTC clock shared by both endpoints"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class RecordingNotifier(IResetCodeNotifier):
    """Captures delivered codes in place of an email channel"""

    def __init__(self):
        self.sent = []

    async def send_reset_code(self, email, code, expires_at):
        self.sent.append((email, code, expires_at))

    def last_code_for(self, email):
        codes = [code for sent_to, code, _ in self.sent if sent_to == email]
        return codes[-1] if codes else None


@pytest_asyncio.fixture
def test_data():
    return TestDataLoader()


@pytest_asyncio.fixture
def clock():
    return FakeClock(datetime(2026, 1, 1, 12, 0, 0))


@pytest_asyncio.fixture
def notifier():
    return RecordingNotifier()


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with Session() as session:
        yield session


@pytest_asyncio.fixture
async def accounts(db_session, test_data):
    """Seed the accounts listed in test_data.json, keyed by email"""
    repo = UserRepository(db_session)
    users = {}
    for account in test_data.get_copy("accounts"):
        password_hash = bcrypt.hashpw(account["password"].encode(), bcrypt.gensalt(4))
        user = User(email=account["email"], password_hash=password_hash.decode())
        users[account["email"]] = await repo.create(user)
    await db_session.commit()
    return users


@pytest_asyncio.fixture
async def client(db_session, clock, notifier):
    from httpx import ASGITransport
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    async def override_get_unit_of_work():
        yield SqlAlchemyUnitOfWork(db_session)

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_reset_code_notifier] = lambda: notifier
    app.dependency_overrides[get_password_hasher] = lambda: BcryptPasswordHasher(rounds=4)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
