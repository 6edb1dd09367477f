"""
HotelStore port: persistence for the intake pipelines.

Every read and write takes the hotel_id explicitly.  A record id that
belongs to another hotel behaves exactly like an id that does not exist:
lookups return None, updates raise the matching *NotFoundError.

Store failures surface as PersistenceError.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from frontdesk.domain.filters import CallFilter, MessageFilter, TaskFilter
from frontdesk.domain.records import (
    Booking,
    CallRecord,
    CallStatus,
    Channel,
    Direction,
    FollowUpTask,
    Guest,
    Hotel,
    Message,
    MessageStatus,
    Priority,
    TaskCategory,
    TaskStatus,
)


@dataclass
class CallUpdate:
    """Fields to change on a call record. None means "leave as is"."""
    status: CallStatus | None = None
    transcript: str | None = None
    intent: str | None = None
    sentiment: str | None = None
    urgency: int | None = None
    summary: str | None = None
    recording_url: str | None = None
    duration_seconds: int | None = None
    ended_at: datetime | None = None
    # Null intent, sentiment, urgency and summary unless this update sets them
    clear_classification: bool = False


@dataclass
class TaskUpdate:
    """Staff edits to a follow-up task. None means "leave as is"."""
    priority: Priority | None = None
    assignee_id: str | None = None
    due_at: datetime | None = None


class HotelStore(ABC):

    # -- tenants and their guests (owned by the back office) ------------------

    @abstractmethod
    async def add_hotel(self, hotel: Hotel) -> None:
        ...

    @abstractmethod
    async def add_guest(self, guest: Guest) -> None:
        ...

    @abstractmethod
    async def add_booking(self, booking: Booking) -> None:
        ...

    @abstractmethod
    async def get_hotel(self, hotel_id: str) -> Hotel | None:
        ...

    @abstractmethod
    async def list_hotels(self) -> list[Hotel]:
        ...

    @abstractmethod
    async def find_hotel_by_phone(self, phone_number: str) -> Hotel | None:
        """Return the hotel whose routing number is phone_number."""
        ...

    @abstractmethod
    async def get_guest(self, hotel_id: str, guest_id: str) -> Guest | None:
        ...

    @abstractmethod
    async def find_guest_by_phone(self, hotel_id: str, phone: str) -> Guest | None:
        ...

    @abstractmethod
    async def find_guest_by_email(self, hotel_id: str, email: str) -> Guest | None:
        """Case-insensitive match on the guest's email address."""
        ...

    @abstractmethod
    async def get_booking(self, hotel_id: str, booking_id: str) -> Booking | None:
        ...

    # -- messages --------------------------------------------------------------

    @abstractmethod
    async def create_message(
        self,
        hotel_id: str,
        channel: Channel,
        direction: Direction,
        content: str,
        status: MessageStatus,
        guest_id: str | None = None,
        booking_id: str | None = None,
        language: str | None = None,
        autonomous: bool = False,
        reply_to_id: str | None = None,
    ) -> Message:
        ...

    @abstractmethod
    async def get_message(self, hotel_id: str, message_id: str) -> Message | None:
        ...

    @abstractmethod
    async def annotate_message(
        self, hotel_id: str, message_id: str, intent: str, sentiment: str
    ) -> None:
        """Attach classification fields to a message."""
        ...

    @abstractmethod
    async def update_message_status(
        self, hotel_id: str, message_id: str, status: MessageStatus
    ) -> None:
        ...

    @abstractmethod
    async def list_messages(
        self, hotel_id: str, filters: MessageFilter
    ) -> tuple[list[Message], int]:
        """Return one page of messages, newest first, and the total count."""
        ...

    # -- calls -----------------------------------------------------------------

    @abstractmethod
    async def create_call(
        self,
        hotel_id: str,
        phone_number: str,
        direction: Direction,
        status: CallStatus,
        provider_call_id: str | None = None,
        guest_id: str | None = None,
        booking_id: str | None = None,
    ) -> CallRecord:
        ...

    @abstractmethod
    async def get_call(self, hotel_id: str, call_id: str) -> CallRecord | None:
        ...

    @abstractmethod
    async def find_call_by_provider_id(
        self, hotel_id: str, provider_call_id: str
    ) -> CallRecord | None:
        ...

    @abstractmethod
    async def update_call(
        self, hotel_id: str, call_id: str, update: CallUpdate
    ) -> CallRecord:
        """
        Apply the non-None fields of update and return the fresh record.

        With clear_classification, the classification fields the update does
        not set are written back to null.
        """
        ...

    @abstractmethod
    async def list_calls(
        self, hotel_id: str, filters: CallFilter
    ) -> tuple[list[CallRecord], int]:
        ...

    # -- follow-up tasks -------------------------------------------------------

    @abstractmethod
    async def create_task(
        self,
        hotel_id: str,
        title: str,
        description: str,
        category: TaskCategory,
        priority: Priority,
        guest_id: str | None = None,
        booking_id: str | None = None,
        metadata: dict[str, Any] | None = None,
        due_at: datetime | None = None,
        sla_minutes: int | None = None,
        assignee_id: str | None = None,
    ) -> FollowUpTask:
        """Create a task in status PENDING."""
        ...

    @abstractmethod
    async def get_task(self, hotel_id: str, task_id: str) -> FollowUpTask | None:
        ...

    @abstractmethod
    async def list_tasks(
        self, hotel_id: str, filters: TaskFilter
    ) -> tuple[list[FollowUpTask], int]:
        """Return one page ordered by priority desc, due_at asc, created_at desc."""
        ...

    @abstractmethod
    async def list_open_tasks(self, hotel_id: str) -> list[FollowUpTask]:
        """All PENDING and IN_PROGRESS tasks of a hotel."""
        ...

    @abstractmethod
    async def update_task_status(
        self, hotel_id: str, task_id: str, status: TaskStatus, now: datetime
    ) -> FollowUpTask:
        """
        Change a task's status.

        Moving to COMPLETED stamps completed_at with now; moving a completed
        task to any other status clears it.
        """
        ...

    @abstractmethod
    async def update_task(
        self, hotel_id: str, task_id: str, update: TaskUpdate
    ) -> FollowUpTask:
        """Apply the non-None fields of update (priority, assignee, due time)."""
        ...
