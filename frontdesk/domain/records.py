"""
Records the intake pipelines read and write.

Hotels, guests and bookings are owned by the wider back office; the
pipelines only look them up.  Messages, calls and follow-up tasks are
created here.  Every record carries the hotel_id of exactly one tenant.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class Channel(Enum):
    SMS = "SMS"
    WHATSAPP = "WHATSAPP"
    EMAIL = "EMAIL"
    WEB_CHAT = "WEB_CHAT"
    VOICE = "VOICE"


class Direction(Enum):
    INBOUND = "INBOUND"
    OUTBOUND = "OUTBOUND"


class MessageStatus(Enum):
    PENDING = "PENDING"
    SENT = "SENT"
    DELIVERED = "DELIVERED"
    FAILED = "FAILED"
    READ = "READ"


class CallStatus(Enum):
    RINGING = "RINGING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    NO_ANSWER = "NO_ANSWER"
    BUSY = "BUSY"


TERMINAL_CALL_STATUSES = frozenset(
    {CallStatus.COMPLETED, CallStatus.FAILED, CallStatus.NO_ANSWER, CallStatus.BUSY}
)


class Priority(Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {Priority.LOW: 0, Priority.MEDIUM: 1, Priority.HIGH: 2, Priority.URGENT: 3}


class TaskCategory(Enum):
    GUEST_REQUEST = "GUEST_REQUEST"
    FRONT_DESK = "FRONT_DESK"
    MAINTENANCE = "MAINTENANCE"
    HOUSEKEEPING = "HOUSEKEEPING"
    CONCIERGE = "CONCIERGE"
    OTHER = "OTHER"


class TaskStatus(Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    OVERDUE = "OVERDUE"


OPEN_TASK_STATUSES = frozenset({TaskStatus.PENDING, TaskStatus.IN_PROGRESS})


@dataclass
class Hotel:
    hotel_id: str
    name: str
    phone_number: str = ""     # dialed number that routes voice webhooks
    email: str = ""
    default_language: str = "en"


@dataclass
class Guest:
    guest_id: str
    hotel_id: str
    first_name: str
    last_name: str = ""
    phone: str = ""
    email: str = ""
    language: str | None = None


@dataclass
class Booking:
    booking_id: str
    hotel_id: str
    guest_id: str | None
    confirmation_number: str
    check_in: str = ""     # ISO date YYYY-MM-DD
    check_out: str = ""    # ISO date YYYY-MM-DD
    room_number: str = ""


@dataclass
class Message:
    message_id: str
    hotel_id: str
    channel: Channel
    direction: Direction
    content: str
    status: MessageStatus
    created_at: datetime
    guest_id: str | None = None
    booking_id: str | None = None
    language: str | None = None
    intent: str | None = None
    sentiment: str | None = None
    autonomous: bool = False           # generated by the classifier, not a human
    reply_to_id: str | None = None     # inbound message an autonomous reply answers


@dataclass
class CallRecord:
    call_id: str
    hotel_id: str
    phone_number: str
    direction: Direction
    status: CallStatus
    created_at: datetime
    provider_call_id: str | None = None   # e.g. Twilio CallSid
    guest_id: str | None = None
    booking_id: str | None = None
    transcript: str | None = None
    intent: str | None = None
    sentiment: str | None = None
    urgency: int | None = None
    summary: str | None = None
    recording_url: str | None = None
    duration_seconds: int | None = None
    ended_at: datetime | None = None


@dataclass
class FollowUpTask:
    task_id: str
    hotel_id: str
    title: str
    description: str
    category: TaskCategory
    priority: Priority
    status: TaskStatus
    created_at: datetime
    guest_id: str | None = None
    booking_id: str | None = None
    assignee_id: str | None = None
    due_at: datetime | None = None
    sla_minutes: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    completed_at: datetime | None = None
