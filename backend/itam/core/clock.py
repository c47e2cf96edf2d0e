"""
Time and identifier helpers. All timestamps are naive UTC.
"""
import uuid
from datetime import date, datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Current time as naive UTC"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def today(clock: Clock = utcnow) -> date:
    return clock().date()


def new_id() -> str:
    return str(uuid.uuid4())
