from datetime import UTC, datetime
from typing import Callable

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, matching what the DateTime columns store"""
    return datetime.now(UTC).replace(tzinfo=None)
