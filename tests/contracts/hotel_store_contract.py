"""
Contract tests for any HotelStore implementation.

The contract defines the behavioral guarantees:
- Records are created once and read back unchanged
- Every read and write is scoped to one hotel: ids of another hotel
  behave as if they did not exist
- Lists are filtered, paginated and ordered
- Task status transitions stamp and clear completed_at
- Staff edits change only the task fields they name
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone

import pytest

from frontdesk.domain.errors import (
    CallNotFoundError,
    MessageNotFoundError,
    TaskNotFoundError,
)
from frontdesk.domain.filters import CallFilter, MessageFilter, TaskFilter
from frontdesk.domain.records import (
    Booking,
    CallStatus,
    Channel,
    Direction,
    Guest,
    Hotel,
    MessageStatus,
    Priority,
    TaskCategory,
    TaskStatus,
)
from frontdesk.domain.store import CallUpdate, HotelStore, TaskUpdate

NOW = datetime(2026, 4, 2, 10, 0, tzinfo=timezone.utc)


async def _seed(store: HotelStore) -> None:
    await store.add_hotel(Hotel("h1", "Hotel One", phone_number="+33100000001"))
    await store.add_hotel(Hotel("h2", "Hotel Two", phone_number="+33100000002"))
    # Colliding guest ids across tenants on purpose
    await store.add_guest(Guest("g1", "h1", "Sophie", phone="+33611111111", email="sophie@example.com"))
    await store.add_guest(Guest("g1", "h2", "Marc", phone="+33622222222"))
    await store.add_booking(Booking("b1", "h1", "g1", "LM-1042", "2026-04-01", "2026-04-05", "12"))


class HotelStoreContract(ABC):

    @abstractmethod
    def create_store(self) -> HotelStore:
        ...

    # -- tenants ---------------------------------------------------------------

    @pytest.mark.asyncio
    async def test_hotel_lookup_by_phone(self):
        store = self.create_store()
        await _seed(store)
        hotel = await store.find_hotel_by_phone("+33100000002")
        assert hotel is not None and hotel.hotel_id == "h2"
        assert await store.find_hotel_by_phone("+33199999999") is None
        assert await store.find_hotel_by_phone("") is None

    @pytest.mark.asyncio
    async def test_colliding_guest_ids_stay_per_hotel(self):
        store = self.create_store()
        await _seed(store)
        assert (await store.get_guest("h1", "g1")).first_name == "Sophie"
        assert (await store.get_guest("h2", "g1")).first_name == "Marc"

    @pytest.mark.asyncio
    async def test_guest_lookup_by_phone_is_tenant_scoped(self):
        store = self.create_store()
        await _seed(store)
        assert (await store.find_guest_by_phone("h1", "+33611111111")).guest_id == "g1"
        assert await store.find_guest_by_phone("h2", "+33611111111") is None

    @pytest.mark.asyncio
    async def test_guest_lookup_by_email_ignores_case(self):
        store = self.create_store()
        await _seed(store)
        guest = await store.find_guest_by_email("h1", "Sophie@Example.com")
        assert guest is not None and guest.first_name == "Sophie"
        assert await store.find_guest_by_email("h2", "sophie@example.com") is None

    @pytest.mark.asyncio
    async def test_booking_is_tenant_scoped(self):
        store = self.create_store()
        await _seed(store)
        assert (await store.get_booking("h1", "b1")).confirmation_number == "LM-1042"
        assert await store.get_booking("h2", "b1") is None

    # -- messages --------------------------------------------------------------

    @pytest.mark.asyncio
    async def test_message_roundtrip(self):
        store = self.create_store()
        await _seed(store)
        created = await store.create_message(
            "h1", Channel.SMS, Direction.INBOUND, "Hi", MessageStatus.DELIVERED,
            guest_id="g1", booking_id="b1", language="fr",
        )
        loaded = await store.get_message("h1", created.message_id)
        assert loaded == created
        assert loaded.intent is None and loaded.sentiment is None

    @pytest.mark.asyncio
    async def test_message_invisible_to_other_hotel(self):
        store = self.create_store()
        await _seed(store)
        msg = await store.create_message(
            "h1", Channel.SMS, Direction.INBOUND, "Hi", MessageStatus.DELIVERED
        )
        assert await store.get_message("h2", msg.message_id) is None
        with pytest.raises(MessageNotFoundError):
            await store.update_message_status("h2", msg.message_id, MessageStatus.READ)
        with pytest.raises(MessageNotFoundError):
            await store.annotate_message("h2", msg.message_id, "request", "neutral")
        items, total = await store.list_messages("h2", MessageFilter())
        assert items == [] and total == 0

    @pytest.mark.asyncio
    async def test_annotate_and_status(self):
        store = self.create_store()
        await _seed(store)
        msg = await store.create_message(
            "h1", Channel.WEB_CHAT, Direction.OUTBOUND, "Hello", MessageStatus.SENT
        )
        await store.annotate_message("h1", msg.message_id, "request", "positive")
        await store.update_message_status("h1", msg.message_id, MessageStatus.DELIVERED)
        loaded = await store.get_message("h1", msg.message_id)
        assert loaded.intent == "request"
        assert loaded.sentiment == "positive"
        assert loaded.status is MessageStatus.DELIVERED

    @pytest.mark.asyncio
    async def test_list_messages_filters_and_paginates(self):
        store = self.create_store()
        await _seed(store)
        for i in range(5):
            await store.create_message(
                "h1", Channel.SMS, Direction.INBOUND, f"sms {i}", MessageStatus.DELIVERED
            )
        await store.create_message(
            "h1", Channel.EMAIL, Direction.INBOUND, "mail", MessageStatus.DELIVERED
        )

        items, total = await store.list_messages("h1", MessageFilter(channel=Channel.SMS, limit=2))
        assert total == 5
        assert [m.content for m in items] == ["sms 4", "sms 3"]

        items, _ = await store.list_messages(
            "h1", MessageFilter(channel=Channel.SMS, limit=2, offset=4)
        )
        assert [m.content for m in items] == ["sms 0"]

    # -- calls -----------------------------------------------------------------

    @pytest.mark.asyncio
    async def test_call_update_applies_only_given_fields(self):
        store = self.create_store()
        await _seed(store)
        call = await store.create_call(
            "h1", "+33611111111", Direction.INBOUND, CallStatus.IN_PROGRESS,
            provider_call_id="CA123", guest_id="g1",
        )
        updated = await store.update_call("h1", call.call_id, CallUpdate(transcript="hello"))
        assert updated.transcript == "hello"
        assert updated.status is CallStatus.IN_PROGRESS

        ended = datetime(2026, 4, 2, 10, 5, tzinfo=timezone.utc)
        updated = await store.update_call(
            "h1", call.call_id,
            CallUpdate(status=CallStatus.COMPLETED, duration_seconds=300, ended_at=ended),
        )
        assert updated.transcript == "hello"
        assert updated.status is CallStatus.COMPLETED
        assert updated.duration_seconds == 300
        assert updated.ended_at == ended

    @pytest.mark.asyncio
    async def test_call_update_can_clear_classification(self):
        store = self.create_store()
        await _seed(store)
        call = await store.create_call("h1", "+33611111111", Direction.INBOUND, CallStatus.IN_PROGRESS)
        await store.update_call(
            "h1", call.call_id,
            CallUpdate(transcript="fire!", intent="complaint", sentiment="negative", urgency=9, summary="fire"),
        )

        updated = await store.update_call(
            "h1", call.call_id, CallUpdate(transcript="breakfast?", clear_classification=True)
        )

        assert updated.transcript == "breakfast?"
        assert (updated.intent, updated.sentiment, updated.urgency, updated.summary) == (None, None, None, None)

    @pytest.mark.asyncio
    async def test_call_is_tenant_scoped(self):
        store = self.create_store()
        await _seed(store)
        call = await store.create_call(
            "h1", "+33611111111", Direction.INBOUND, CallStatus.IN_PROGRESS,
            provider_call_id="CA123",
        )
        assert await store.get_call("h2", call.call_id) is None
        assert await store.find_call_by_provider_id("h2", "CA123") is None
        assert (await store.find_call_by_provider_id("h1", "CA123")).call_id == call.call_id
        with pytest.raises(CallNotFoundError):
            await store.update_call("h2", call.call_id, CallUpdate(transcript="x"))

    @pytest.mark.asyncio
    async def test_list_calls_by_status(self):
        store = self.create_store()
        await _seed(store)
        await store.create_call("h1", "+1", Direction.INBOUND, CallStatus.IN_PROGRESS)
        done = await store.create_call("h1", "+2", Direction.INBOUND, CallStatus.IN_PROGRESS)
        await store.update_call("h1", done.call_id, CallUpdate(status=CallStatus.COMPLETED))

        items, total = await store.list_calls("h1", CallFilter(status=CallStatus.COMPLETED))
        assert total == 1
        assert items[0].call_id == done.call_id

    # -- tasks -----------------------------------------------------------------

    @pytest.mark.asyncio
    async def test_task_roundtrip(self):
        store = self.create_store()
        await _seed(store)
        task = await store.create_task(
            "h1", "Guest Request: maintenance", "Leak in room 12",
            TaskCategory.MAINTENANCE, Priority.URGENT,
            guest_id="g1", booking_id="b1",
            metadata={"source": "message", "message_id": "m1", "channel": "SMS"},
        )
        assert task.status is TaskStatus.PENDING
        loaded = await store.get_task("h1", task.task_id)
        assert loaded == task
        assert await store.get_task("h2", task.task_id) is None

    @pytest.mark.asyncio
    async def test_tasks_ordered_by_priority_then_due_date(self):
        store = self.create_store()
        await _seed(store)
        low = await store.create_task("h1", "low", "", TaskCategory.OTHER, Priority.LOW)
        late = await store.create_task(
            "h1", "high later", "", TaskCategory.OTHER, Priority.HIGH,
            due_at=NOW + timedelta(hours=5),
        )
        soon = await store.create_task(
            "h1", "high sooner", "", TaskCategory.OTHER, Priority.HIGH,
            due_at=NOW + timedelta(hours=1),
        )
        urgent = await store.create_task("h1", "urgent", "", TaskCategory.OTHER, Priority.URGENT)

        items, total = await store.list_tasks("h1", TaskFilter())
        assert total == 4
        assert [t.task_id for t in items] == [
            urgent.task_id, soon.task_id, late.task_id, low.task_id,
        ]

    @pytest.mark.asyncio
    async def test_task_completion_stamps_and_reopen_clears(self):
        store = self.create_store()
        await _seed(store)
        task = await store.create_task("h1", "t", "", TaskCategory.OTHER, Priority.HIGH)

        done = await store.update_task_status("h1", task.task_id, TaskStatus.COMPLETED, NOW)
        assert done.completed_at == NOW

        reopened = await store.update_task_status("h1", task.task_id, TaskStatus.IN_PROGRESS, NOW)
        assert reopened.completed_at is None
        assert (await store.get_task("h1", task.task_id)).completed_at is None

    @pytest.mark.asyncio
    async def test_task_update_is_tenant_scoped(self):
        store = self.create_store()
        await _seed(store)
        task = await store.create_task("h1", "t", "", TaskCategory.OTHER, Priority.HIGH)
        with pytest.raises(TaskNotFoundError):
            await store.update_task_status("h2", task.task_id, TaskStatus.COMPLETED, NOW)

    @pytest.mark.asyncio
    async def test_open_tasks_and_overdue_filter(self):
        store = self.create_store()
        await _seed(store)
        past_due = await store.create_task(
            "h1", "past", "", TaskCategory.OTHER, Priority.HIGH, due_at=NOW - timedelta(minutes=1)
        )
        future = await store.create_task(
            "h1", "future", "", TaskCategory.OTHER, Priority.HIGH, due_at=NOW + timedelta(hours=1)
        )
        closed = await store.create_task(
            "h1", "closed", "", TaskCategory.OTHER, Priority.HIGH, due_at=NOW - timedelta(hours=1)
        )
        await store.update_task_status("h1", closed.task_id, TaskStatus.CANCELLED, NOW)

        open_ids = {t.task_id for t in await store.list_open_tasks("h1")}
        assert open_ids == {past_due.task_id, future.task_id}

        items, total = await store.list_tasks("h1", TaskFilter(overdue=True, now=NOW))
        assert total == 1
        assert items[0].task_id == past_due.task_id

    @pytest.mark.asyncio
    async def test_task_edit_changes_only_given_fields(self):
        store = self.create_store()
        await _seed(store)
        task = await store.create_task(
            "h1", "t", "desc", TaskCategory.HOUSEKEEPING, Priority.LOW, guest_id="g1"
        )
        due = NOW + timedelta(hours=2)

        edited = await store.update_task("h1", task.task_id, TaskUpdate(priority=Priority.URGENT, due_at=due))
        assert edited.priority is Priority.URGENT
        assert edited.due_at == due
        assert edited.assignee_id is None
        assert edited.status is TaskStatus.PENDING
        assert edited.description == "desc"

        edited = await store.update_task("h1", task.task_id, TaskUpdate(assignee_id="staff-7"))
        assert edited.assignee_id == "staff-7"
        assert edited.priority is Priority.URGENT

        # priority edits move the task in the priority ordering
        other = await store.create_task("h1", "other", "", TaskCategory.OTHER, Priority.HIGH)
        items, _ = await store.list_tasks("h1", TaskFilter())
        assert [t.task_id for t in items] == [task.task_id, other.task_id]

    @pytest.mark.asyncio
    async def test_task_edit_is_tenant_scoped(self):
        store = self.create_store()
        await _seed(store)
        task = await store.create_task("h1", "t", "", TaskCategory.OTHER, Priority.HIGH)
        with pytest.raises(TaskNotFoundError):
            await store.update_task("h2", task.task_id, TaskUpdate(priority=Priority.LOW))
        with pytest.raises(TaskNotFoundError):
            await store.update_task("h2", task.task_id, TaskUpdate())
        assert (await store.get_task("h1", task.task_id)).priority is Priority.HIGH
