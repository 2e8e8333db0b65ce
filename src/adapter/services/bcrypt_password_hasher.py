import bcrypt
from starlette.concurrency import run_in_threadpool

from src.app.services.password_hasher import IPasswordHasher


class BcryptPasswordHasher(IPasswordHasher):
    """bcrypt hashing, run in the threadpool so it does not block the event loop"""

    def __init__(self, rounds: int = 12):
        self.rounds = rounds

    def _hash_sync(self, plaintext: str) -> str:
        return bcrypt.hashpw(plaintext.encode(), bcrypt.gensalt(self.rounds)).decode()

    async def hash(self, plaintext: str) -> str:
        return await run_in_threadpool(self._hash_sync, plaintext)
