"""
SQLite adapter for HotelStore.

Use ":memory:" for tests, a file path for production.
"""

import json
import sqlite3
import uuid
from dataclasses import fields
from datetime import datetime, timezone
from typing import Any

from frontdesk.domain.errors import (
    CallNotFoundError,
    MessageNotFoundError,
    PersistenceError,
    TaskNotFoundError,
)
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
from frontdesk.domain.store import CallUpdate, HotelStore, TaskUpdate

_CLASSIFICATION_COLUMNS = ("intent", "sentiment", "urgency", "summary")

_SCHEMA = """
CREATE TABLE IF NOT EXISTS hotels (
    hotel_id    TEXT PRIMARY KEY,
    name        TEXT NOT NULL,
    phone_number TEXT NOT NULL DEFAULT '',
    email       TEXT NOT NULL DEFAULT '',
    default_language TEXT NOT NULL DEFAULT 'en'
);

CREATE TABLE IF NOT EXISTS guests (
    hotel_id    TEXT NOT NULL REFERENCES hotels(hotel_id),
    guest_id    TEXT NOT NULL,
    first_name  TEXT NOT NULL,
    last_name   TEXT NOT NULL DEFAULT '',
    phone       TEXT NOT NULL DEFAULT '',
    email       TEXT NOT NULL DEFAULT '',
    language    TEXT,
    PRIMARY KEY (hotel_id, guest_id)
);

CREATE TABLE IF NOT EXISTS bookings (
    hotel_id    TEXT NOT NULL REFERENCES hotels(hotel_id),
    booking_id  TEXT NOT NULL,
    guest_id    TEXT,
    confirmation_number TEXT NOT NULL,
    check_in    TEXT NOT NULL DEFAULT '',
    check_out   TEXT NOT NULL DEFAULT '',
    room_number TEXT NOT NULL DEFAULT '',
    PRIMARY KEY (hotel_id, booking_id)
);

CREATE TABLE IF NOT EXISTS messages (
    message_id  TEXT PRIMARY KEY,
    hotel_id    TEXT NOT NULL REFERENCES hotels(hotel_id),
    channel     TEXT NOT NULL,
    direction   TEXT NOT NULL,
    content     TEXT NOT NULL,
    status      TEXT NOT NULL,
    created_at  TEXT NOT NULL,
    guest_id    TEXT,
    booking_id  TEXT,
    language    TEXT,
    intent      TEXT,
    sentiment   TEXT,
    autonomous  INTEGER NOT NULL DEFAULT 0,
    reply_to_id TEXT REFERENCES messages(message_id)
);
CREATE INDEX IF NOT EXISTS idx_messages_hotel ON messages (hotel_id, created_at);

CREATE TABLE IF NOT EXISTS calls (
    call_id     TEXT PRIMARY KEY,
    hotel_id    TEXT NOT NULL REFERENCES hotels(hotel_id),
    phone_number TEXT NOT NULL,
    direction   TEXT NOT NULL,
    status      TEXT NOT NULL,
    created_at  TEXT NOT NULL,
    provider_call_id TEXT,
    guest_id    TEXT,
    booking_id  TEXT,
    transcript  TEXT,
    intent      TEXT,
    sentiment   TEXT,
    urgency     INTEGER,
    summary     TEXT,
    recording_url TEXT,
    duration_seconds INTEGER,
    ended_at    TEXT
);
CREATE INDEX IF NOT EXISTS idx_calls_hotel ON calls (hotel_id, created_at);
CREATE INDEX IF NOT EXISTS idx_calls_provider ON calls (hotel_id, provider_call_id);

CREATE TABLE IF NOT EXISTS tasks (
    task_id     TEXT PRIMARY KEY,
    hotel_id    TEXT NOT NULL REFERENCES hotels(hotel_id),
    title       TEXT NOT NULL,
    description TEXT NOT NULL,
    category    TEXT NOT NULL,
    priority    TEXT NOT NULL,
    priority_rank INTEGER NOT NULL,
    status      TEXT NOT NULL DEFAULT 'PENDING',
    created_at  TEXT NOT NULL,
    guest_id    TEXT,
    booking_id  TEXT,
    assignee_id TEXT,
    due_at      TEXT,
    sla_minutes INTEGER,
    metadata    TEXT NOT NULL DEFAULT '{}',
    completed_at TEXT
);
CREATE INDEX IF NOT EXISTS idx_tasks_hotel ON tasks (hotel_id, status);
"""


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _to_text(dt: datetime | None) -> str | None:
    """Fixed-width UTC text so that string order matches time order."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f+00:00")


def _parse_dt(s: str | None) -> datetime | None:
    return datetime.fromisoformat(s) if s else None


def _new_id() -> str:
    return str(uuid.uuid4())


class SqliteHotelStore(HotelStore):

    def __init__(self, db_path: str = "frontdesk.db"):
        # FastAPI may call us from a worker thread; writes are still serialized
        # by SQLite itself.
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(_SCHEMA)

    # -- low-level helpers -----------------------------------------------------

    def _execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        try:
            cur = self._conn.execute(sql, params)
            self._conn.commit()
            return cur
        except sqlite3.Error as exc:
            self._conn.rollback()
            raise PersistenceError(f"sqlite: {exc}") from exc

    def _fetchone(self, sql: str, params: tuple = ()) -> sqlite3.Row | None:
        try:
            return self._conn.execute(sql, params).fetchone()
        except sqlite3.Error as exc:
            raise PersistenceError(f"sqlite: {exc}") from exc

    def _fetchall(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        try:
            return self._conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise PersistenceError(f"sqlite: {exc}") from exc

    def _page(
        self, table: str, where: list[str], params: list, order_by: str, limit: int, offset: int
    ) -> tuple[list[sqlite3.Row], int]:
        clause = " AND ".join(where)
        total = self._fetchone(
            f"SELECT COUNT(*) AS n FROM {table} WHERE {clause}", tuple(params)
        )["n"]
        rows = self._fetchall(
            f"SELECT * FROM {table} WHERE {clause} ORDER BY {order_by} LIMIT ? OFFSET ?",
            (*params, limit, offset),
        )
        return rows, total

    # -- tenants and their guests ----------------------------------------------

    async def add_hotel(self, hotel: Hotel) -> None:
        self._execute(
            "INSERT OR REPLACE INTO hotels"
            " (hotel_id, name, phone_number, email, default_language)"
            " VALUES (?, ?, ?, ?, ?)",
            (hotel.hotel_id, hotel.name, hotel.phone_number, hotel.email,
             hotel.default_language),
        )

    async def add_guest(self, guest: Guest) -> None:
        self._execute(
            "INSERT OR REPLACE INTO guests"
            " (hotel_id, guest_id, first_name, last_name, phone, email, language)"
            " VALUES (?, ?, ?, ?, ?, ?, ?)",
            (guest.hotel_id, guest.guest_id, guest.first_name, guest.last_name,
             guest.phone, guest.email, guest.language),
        )

    async def add_booking(self, booking: Booking) -> None:
        self._execute(
            "INSERT OR REPLACE INTO bookings"
            " (hotel_id, booking_id, guest_id, confirmation_number,"
            "  check_in, check_out, room_number)"
            " VALUES (?, ?, ?, ?, ?, ?, ?)",
            (booking.hotel_id, booking.booking_id, booking.guest_id,
             booking.confirmation_number, booking.check_in, booking.check_out,
             booking.room_number),
        )

    async def get_hotel(self, hotel_id: str) -> Hotel | None:
        row = self._fetchone("SELECT * FROM hotels WHERE hotel_id = ?", (hotel_id,))
        return self._row_to_hotel(row) if row else None

    async def list_hotels(self) -> list[Hotel]:
        rows = self._fetchall("SELECT * FROM hotels ORDER BY name")
        return [self._row_to_hotel(r) for r in rows]

    async def find_hotel_by_phone(self, phone_number: str) -> Hotel | None:
        if not phone_number:
            return None
        row = self._fetchone(
            "SELECT * FROM hotels WHERE phone_number = ?", (phone_number,)
        )
        return self._row_to_hotel(row) if row else None

    async def get_guest(self, hotel_id: str, guest_id: str) -> Guest | None:
        row = self._fetchone(
            "SELECT * FROM guests WHERE hotel_id = ? AND guest_id = ?",
            (hotel_id, guest_id),
        )
        return self._row_to_guest(row) if row else None

    async def find_guest_by_phone(self, hotel_id: str, phone: str) -> Guest | None:
        if not phone:
            return None
        row = self._fetchone(
            "SELECT * FROM guests WHERE hotel_id = ? AND phone = ?",
            (hotel_id, phone),
        )
        return self._row_to_guest(row) if row else None

    async def find_guest_by_email(self, hotel_id: str, email: str) -> Guest | None:
        if not email:
            return None
        row = self._fetchone(
            "SELECT * FROM guests WHERE hotel_id = ? AND lower(email) = lower(?)",
            (hotel_id, email.strip()),
        )
        return self._row_to_guest(row) if row else None

    async def get_booking(self, hotel_id: str, booking_id: str) -> Booking | None:
        row = self._fetchone(
            "SELECT * FROM bookings WHERE hotel_id = ? AND booking_id = ?",
            (hotel_id, booking_id),
        )
        if not row:
            return None
        return Booking(
            booking_id=row["booking_id"],
            hotel_id=row["hotel_id"],
            guest_id=row["guest_id"],
            confirmation_number=row["confirmation_number"],
            check_in=row["check_in"],
            check_out=row["check_out"],
            room_number=row["room_number"],
        )

    @staticmethod
    def _row_to_hotel(row) -> Hotel:
        return Hotel(
            hotel_id=row["hotel_id"],
            name=row["name"],
            phone_number=row["phone_number"],
            email=row["email"],
            default_language=row["default_language"],
        )

    @staticmethod
    def _row_to_guest(row) -> Guest:
        return Guest(
            guest_id=row["guest_id"],
            hotel_id=row["hotel_id"],
            first_name=row["first_name"],
            last_name=row["last_name"],
            phone=row["phone"],
            email=row["email"],
            language=row["language"],
        )

    # -- messages --------------------------------------------------------------

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
        message = Message(
            message_id=_new_id(),
            hotel_id=hotel_id,
            channel=channel,
            direction=direction,
            content=content,
            status=status,
            created_at=_now(),
            guest_id=guest_id,
            booking_id=booking_id,
            language=language,
            autonomous=autonomous,
            reply_to_id=reply_to_id,
        )
        self._execute(
            "INSERT INTO messages"
            " (message_id, hotel_id, channel, direction, content, status, created_at,"
            "  guest_id, booking_id, language, autonomous, reply_to_id)"
            " VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (message.message_id, hotel_id, channel.value, direction.value, content,
             status.value, _to_text(message.created_at), guest_id, booking_id,
             language, int(autonomous), reply_to_id),
        )
        return message

    async def get_message(self, hotel_id: str, message_id: str) -> Message | None:
        row = self._fetchone(
            "SELECT * FROM messages WHERE hotel_id = ? AND message_id = ?",
            (hotel_id, message_id),
        )
        return self._row_to_message(row) if row else None

    async def annotate_message(
        self, hotel_id: str, message_id: str, intent: str, sentiment: str
    ) -> None:
        cur = self._execute(
            "UPDATE messages SET intent = ?, sentiment = ?"
            " WHERE hotel_id = ? AND message_id = ?",
            (intent, sentiment, hotel_id, message_id),
        )
        if cur.rowcount == 0:
            raise MessageNotFoundError(f"message {message_id} not found")

    async def update_message_status(
        self, hotel_id: str, message_id: str, status: MessageStatus
    ) -> None:
        cur = self._execute(
            "UPDATE messages SET status = ? WHERE hotel_id = ? AND message_id = ?",
            (status.value, hotel_id, message_id),
        )
        if cur.rowcount == 0:
            raise MessageNotFoundError(f"message {message_id} not found")

    async def list_messages(
        self, hotel_id: str, filters: MessageFilter
    ) -> tuple[list[Message], int]:
        where, params = ["hotel_id = ?"], [hotel_id]
        if filters.channel is not None:
            where.append("channel = ?")
            params.append(filters.channel.value)
        if filters.direction is not None:
            where.append("direction = ?")
            params.append(filters.direction.value)
        if filters.status is not None:
            where.append("status = ?")
            params.append(filters.status.value)
        if filters.guest_id is not None:
            where.append("guest_id = ?")
            params.append(filters.guest_id)
        if filters.booking_id is not None:
            where.append("booking_id = ?")
            params.append(filters.booking_id)
        if filters.start is not None:
            where.append("created_at >= ?")
            params.append(_to_text(filters.start))
        if filters.end is not None:
            where.append("created_at <= ?")
            params.append(_to_text(filters.end))

        rows, total = self._page(
            "messages", where, params, "created_at DESC, rowid DESC",
            filters.limit, filters.offset,
        )
        return [self._row_to_message(r) for r in rows], total

    @staticmethod
    def _row_to_message(row) -> Message:
        return Message(
            message_id=row["message_id"],
            hotel_id=row["hotel_id"],
            channel=Channel(row["channel"]),
            direction=Direction(row["direction"]),
            content=row["content"],
            status=MessageStatus(row["status"]),
            created_at=_parse_dt(row["created_at"]),
            guest_id=row["guest_id"],
            booking_id=row["booking_id"],
            language=row["language"],
            intent=row["intent"],
            sentiment=row["sentiment"],
            autonomous=bool(row["autonomous"]),
            reply_to_id=row["reply_to_id"],
        )

    # -- calls -----------------------------------------------------------------

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
        call = CallRecord(
            call_id=_new_id(),
            hotel_id=hotel_id,
            phone_number=phone_number,
            direction=direction,
            status=status,
            created_at=_now(),
            provider_call_id=provider_call_id,
            guest_id=guest_id,
            booking_id=booking_id,
        )
        self._execute(
            "INSERT INTO calls"
            " (call_id, hotel_id, phone_number, direction, status, created_at,"
            "  provider_call_id, guest_id, booking_id)"
            " VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (call.call_id, hotel_id, phone_number, direction.value, status.value,
             _to_text(call.created_at), provider_call_id, guest_id, booking_id),
        )
        return call

    async def get_call(self, hotel_id: str, call_id: str) -> CallRecord | None:
        row = self._fetchone(
            "SELECT * FROM calls WHERE hotel_id = ? AND call_id = ?",
            (hotel_id, call_id),
        )
        return self._row_to_call(row) if row else None

    async def find_call_by_provider_id(
        self, hotel_id: str, provider_call_id: str
    ) -> CallRecord | None:
        row = self._fetchone(
            "SELECT * FROM calls WHERE hotel_id = ? AND provider_call_id = ?"
            " ORDER BY created_at DESC LIMIT 1",
            (hotel_id, provider_call_id),
        )
        return self._row_to_call(row) if row else None

    async def update_call(
        self, hotel_id: str, call_id: str, update: CallUpdate
    ) -> CallRecord:
        assignments, params = [], []
        for f in fields(update):
            if f.name == "clear_classification":
                continue
            value = getattr(update, f.name)
            if value is None:
                if update.clear_classification and f.name in _CLASSIFICATION_COLUMNS:
                    assignments.append(f"{f.name} = NULL")
                continue
            assignments.append(f"{f.name} = ?")
            params.append(self._to_column(value))

        if assignments:
            cur = self._execute(
                f"UPDATE calls SET {', '.join(assignments)}"
                " WHERE hotel_id = ? AND call_id = ?",
                (*params, hotel_id, call_id),
            )
            if cur.rowcount == 0:
                raise CallNotFoundError(f"call {call_id} not found")

        call = await self.get_call(hotel_id, call_id)
        if call is None:
            raise CallNotFoundError(f"call {call_id} not found")
        return call

    @staticmethod
    def _to_column(value: Any) -> Any:
        if isinstance(value, CallStatus):
            return value.value
        if isinstance(value, datetime):
            return _to_text(value)
        return value

    async def list_calls(
        self, hotel_id: str, filters: CallFilter
    ) -> tuple[list[CallRecord], int]:
        where, params = ["hotel_id = ?"], [hotel_id]
        if filters.status is not None:
            where.append("status = ?")
            params.append(filters.status.value)
        if filters.direction is not None:
            where.append("direction = ?")
            params.append(filters.direction.value)
        if filters.guest_id is not None:
            where.append("guest_id = ?")
            params.append(filters.guest_id)
        if filters.start is not None:
            where.append("created_at >= ?")
            params.append(_to_text(filters.start))
        if filters.end is not None:
            where.append("created_at <= ?")
            params.append(_to_text(filters.end))

        rows, total = self._page(
            "calls", where, params, "created_at DESC, rowid DESC",
            filters.limit, filters.offset,
        )
        return [self._row_to_call(r) for r in rows], total

    @staticmethod
    def _row_to_call(row) -> CallRecord:
        return CallRecord(
            call_id=row["call_id"],
            hotel_id=row["hotel_id"],
            phone_number=row["phone_number"],
            direction=Direction(row["direction"]),
            status=CallStatus(row["status"]),
            created_at=_parse_dt(row["created_at"]),
            provider_call_id=row["provider_call_id"],
            guest_id=row["guest_id"],
            booking_id=row["booking_id"],
            transcript=row["transcript"],
            intent=row["intent"],
            sentiment=row["sentiment"],
            urgency=row["urgency"],
            summary=row["summary"],
            recording_url=row["recording_url"],
            duration_seconds=row["duration_seconds"],
            ended_at=_parse_dt(row["ended_at"]),
        )

    # -- follow-up tasks -------------------------------------------------------

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
        task = FollowUpTask(
            task_id=_new_id(),
            hotel_id=hotel_id,
            title=title,
            description=description,
            category=category,
            priority=priority,
            status=TaskStatus.PENDING,
            created_at=_now(),
            guest_id=guest_id,
            booking_id=booking_id,
            assignee_id=assignee_id,
            due_at=due_at,
            sla_minutes=sla_minutes,
            metadata=dict(metadata or {}),
        )
        self._execute(
            "INSERT INTO tasks"
            " (task_id, hotel_id, title, description, category, priority,"
            "  priority_rank, status, created_at, guest_id, booking_id,"
            "  assignee_id, due_at, sla_minutes, metadata)"
            " VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (task.task_id, hotel_id, title, description, category.value,
             priority.value, priority.rank, task.status.value,
             _to_text(task.created_at), guest_id, booking_id, assignee_id,
             _to_text(due_at), sla_minutes, json.dumps(task.metadata)),
        )
        return task

    async def get_task(self, hotel_id: str, task_id: str) -> FollowUpTask | None:
        row = self._fetchone(
            "SELECT * FROM tasks WHERE hotel_id = ? AND task_id = ?",
            (hotel_id, task_id),
        )
        return self._row_to_task(row) if row else None

    async def list_tasks(
        self, hotel_id: str, filters: TaskFilter
    ) -> tuple[list[FollowUpTask], int]:
        where, params = ["hotel_id = ?"], [hotel_id]
        if filters.status is not None:
            where.append("status = ?")
            params.append(filters.status.value)
        if filters.category is not None:
            where.append("category = ?")
            params.append(filters.category.value)
        if filters.priority is not None:
            where.append("priority = ?")
            params.append(filters.priority.value)
        if filters.assignee_id is not None:
            where.append("assignee_id = ?")
            params.append(filters.assignee_id)
        if filters.guest_id is not None:
            where.append("guest_id = ?")
            params.append(filters.guest_id)
        if filters.overdue:
            # Already swept, or open with a passed due_at (sla_minutes is
            # only materialized by the sweep)
            where.append("(status = ? OR (status IN (?, ?) AND due_at IS NOT NULL AND due_at < ?))")
            params.extend([
                TaskStatus.OVERDUE.value, TaskStatus.PENDING.value,
                TaskStatus.IN_PROGRESS.value, _to_text(filters.now or _now()),
            ])

        rows, total = self._page(
            "tasks", where, params,
            "priority_rank DESC, due_at IS NULL, due_at ASC, created_at DESC",
            filters.limit, filters.offset,
        )
        return [self._row_to_task(r) for r in rows], total

    async def list_open_tasks(self, hotel_id: str) -> list[FollowUpTask]:
        rows = self._fetchall(
            "SELECT * FROM tasks WHERE hotel_id = ? AND status IN (?, ?)"
            " ORDER BY created_at",
            (hotel_id, TaskStatus.PENDING.value, TaskStatus.IN_PROGRESS.value),
        )
        return [self._row_to_task(r) for r in rows]

    async def update_task_status(
        self, hotel_id: str, task_id: str, status: TaskStatus, now: datetime
    ) -> FollowUpTask:
        task = await self.get_task(hotel_id, task_id)
        if task is None:
            raise TaskNotFoundError(f"task {task_id} not found")

        completed_at = task.completed_at
        if status is TaskStatus.COMPLETED and completed_at is None:
            completed_at = now
        elif status is not TaskStatus.COMPLETED:
            completed_at = None

        self._execute(
            "UPDATE tasks SET status = ?, completed_at = ?"
            " WHERE hotel_id = ? AND task_id = ?",
            (status.value, _to_text(completed_at), hotel_id, task_id),
        )
        task.status = status
        task.completed_at = completed_at
        return task

    async def update_task(
        self, hotel_id: str, task_id: str, update: TaskUpdate
    ) -> FollowUpTask:
        assignments, params = [], []
        if update.priority is not None:
            assignments += ["priority = ?", "priority_rank = ?"]
            params += [update.priority.value, update.priority.rank]
        if update.assignee_id is not None:
            assignments.append("assignee_id = ?")
            params.append(update.assignee_id)
        if update.due_at is not None:
            assignments.append("due_at = ?")
            params.append(_to_text(update.due_at))

        if assignments:
            cur = self._execute(
                f"UPDATE tasks SET {', '.join(assignments)}"
                " WHERE hotel_id = ? AND task_id = ?",
                (*params, hotel_id, task_id),
            )
            if cur.rowcount == 0:
                raise TaskNotFoundError(f"task {task_id} not found")

        task = await self.get_task(hotel_id, task_id)
        if task is None:
            raise TaskNotFoundError(f"task {task_id} not found")
        return task

    @staticmethod
    def _row_to_task(row) -> FollowUpTask:
        return FollowUpTask(
            task_id=row["task_id"],
            hotel_id=row["hotel_id"],
            title=row["title"],
            description=row["description"],
            category=TaskCategory(row["category"]),
            priority=Priority(row["priority"]),
            status=TaskStatus(row["status"]),
            created_at=_parse_dt(row["created_at"]),
            guest_id=row["guest_id"],
            booking_id=row["booking_id"],
            assignee_id=row["assignee_id"],
            due_at=_parse_dt(row["due_at"]),
            sla_minutes=row["sla_minutes"],
            metadata=json.loads(row["metadata"] or "{}"),
            completed_at=_parse_dt(row["completed_at"]),
        )
