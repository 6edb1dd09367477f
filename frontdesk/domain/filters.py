"""
Query filters for listing messages, calls and tasks.

One optional field per supported predicate.  Filters are validated when
they are built, so a store never has to guess what a caller meant.
"""

from dataclasses import dataclass
from datetime import datetime

from frontdesk.domain.errors import ValidationError
from frontdesk.domain.records import (
    CallStatus,
    Channel,
    Direction,
    MessageStatus,
    Priority,
    TaskCategory,
    TaskStatus,
)

DEFAULT_LIMIT = 50
MAX_LIMIT = 200


def _check_page(limit: int, offset: int) -> None:
    if not 1 <= limit <= MAX_LIMIT:
        raise ValidationError(f"limit must be between 1 and {MAX_LIMIT}, got {limit}")
    if offset < 0:
        raise ValidationError(f"offset must be >= 0, got {offset}")


def _check_range(start: datetime | None, end: datetime | None) -> None:
    if start is not None and end is not None and start > end:
        raise ValidationError("start must not be after end")


@dataclass(frozen=True)
class MessageFilter:
    channel: Channel | None = None
    direction: Direction | None = None
    status: MessageStatus | None = None
    guest_id: str | None = None
    booking_id: str | None = None
    start: datetime | None = None
    end: datetime | None = None
    limit: int = DEFAULT_LIMIT
    offset: int = 0

    def __post_init__(self):
        _check_page(self.limit, self.offset)
        _check_range(self.start, self.end)


@dataclass(frozen=True)
class CallFilter:
    status: CallStatus | None = None
    direction: Direction | None = None
    guest_id: str | None = None
    start: datetime | None = None
    end: datetime | None = None
    limit: int = DEFAULT_LIMIT
    offset: int = 0

    def __post_init__(self):
        _check_page(self.limit, self.offset)
        _check_range(self.start, self.end)


@dataclass(frozen=True)
class TaskFilter:
    status: TaskStatus | None = None
    category: TaskCategory | None = None
    priority: Priority | None = None
    assignee_id: str | None = None
    guest_id: str | None = None
    overdue: bool = False    # OVERDUE, or open with due_at before `now`
    now: datetime | None = None
    limit: int = DEFAULT_LIMIT
    offset: int = 0

    def __post_init__(self):
        _check_page(self.limit, self.offset)
        if self.overdue and self.status is not None:
            raise ValidationError("overdue cannot be combined with an explicit status")
