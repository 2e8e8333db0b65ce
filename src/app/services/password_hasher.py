from abc import ABC, abstractmethod


class IPasswordHasher(ABC):
    """One-way salted password hashing primitive"""

    @abstractmethod
    async def hash(self, plaintext: str) -> str:
        """Return an opaque hash of the plaintext password"""
        pass
