import logging
from datetime import datetime

from src.app.services.reset_code_notifier import IResetCodeNotifier

logger = logging.getLogger(__name__)


class LoggingResetCodeNotifier(IResetCodeNotifier):
    """
    Stand-in delivery channel.

    Records that a code was dispatched; no digit of the code is logged.
    Replace with a mail or SMS adapter in production.
    """

    async def send_reset_code(self, email: str, code: str, expires_at: datetime) -> None:
        logger.info(
            "Reset code for %s would be delivered (expires %s UTC)",
            email,
            expires_at.isoformat(timespec="seconds"),
        )
