from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.services.bcrypt_password_hasher import BcryptPasswordHasher
from src.adapter.services.logging_reset_code_notifier import LoggingResetCodeNotifier
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.clock import Clock, utcnow
from src.app.services.password_hasher import IPasswordHasher
from src.app.services.reset_code_notifier import IResetCodeNotifier

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

# Stateless collaborators shared across requests
password_hasher = BcryptPasswordHasher(rounds=ApplicationConfig.BCRYPT_ROUNDS)
reset_code_notifier = LoggingResetCodeNotifier()


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


def get_password_hasher() -> IPasswordHasher:
    return password_hasher


def get_reset_code_notifier() -> IResetCodeNotifier:
    """
    Delivery channel for reset codes.

    Override this dependency to plug in a mail or SMS adapter.
    """
    return reset_code_notifier


def get_clock() -> Clock:
    return utcnow
