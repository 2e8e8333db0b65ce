from abc import ABC, abstractmethod
from datetime import datetime


class IResetCodeNotifier(ABC):
    """Out-of-band delivery channel for reset codes (email, SMS, ...)"""

    @abstractmethod
    async def send_reset_code(self, email: str, code: str, expires_at: datetime) -> None:
        """Deliver the code to the account owner"""
        pass
