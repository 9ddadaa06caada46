import enum
from datetime import datetime, timezone
from typing import Optional


class Lifecycle(str, enum.Enum):
    ACTIVE = "active"
    RETIRED = "retired"

    @classmethod
    def from_flag(cls, is_active: bool) -> "Lifecycle":
        return cls.ACTIVE if is_active else cls.RETIRED


class VoteStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    OPEN = "open"
    CLOSED = "closed"


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what the TIMESTAMP columns store."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def vote_status(
    now: datetime,
    start_time: datetime,
    end_time: Optional[datetime],
    is_active: bool,
) -> VoteStatus:
    """Derive the state of a vote at `now`.

    Nothing about the status is persisted, so callers evaluate it on every read.
    """
    now = to_naive_utc(now)
    end_time = to_naive_utc(end_time)
    if not is_active:
        return VoteStatus.CLOSED
    if end_time is not None and now > end_time:
        return VoteStatus.CLOSED
    if now < to_naive_utc(start_time):
        return VoteStatus.SCHEDULED
    return VoteStatus.OPEN
