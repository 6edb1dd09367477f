"""
HTTP surface: provider webhooks in, tenant-scoped reads out.

    python -m frontdesk.api            # reads settings from the environment

Every response uses the envelope {"status": "success"|"error", ...}.
Read endpoints take the tenant from the X-Hotel-Id header.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, TypeVar

from fastapi import FastAPI, Header, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from frontdesk import webhooks
from frontdesk.bootstrap import Services
from frontdesk.domain.errors import (
    CallNotFoundError,
    FrontdeskError,
    MessageNotFoundError,
    TaskNotFoundError,
    TenantResolutionError,
    ValidationError,
)
from frontdesk.domain.filters import DEFAULT_LIMIT, CallFilter, MessageFilter, TaskFilter
from frontdesk.domain.records import (
    TERMINAL_CALL_STATUSES,
    CallStatus,
    Channel,
    Direction,
    MessageStatus,
    Priority,
    TaskCategory,
    TaskStatus,
)
from frontdesk.domain.store import TaskUpdate
from frontdesk.domain.tasks import assign_task
from frontdesk.pipeline import resolve_links

log = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)

_NOT_FOUND = (TenantResolutionError, MessageNotFoundError, CallNotFoundError, TaskNotFoundError)


class SendMessageBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    channel: str
    content: str
    guest_id: str | None = Field(default=None, alias="guestId")
    booking_id: str | None = Field(default=None, alias="bookingId")


class CreateTaskBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    description: str = ""
    category: str = TaskCategory.OTHER.value
    priority: str = Priority.MEDIUM.value
    guest_id: str | None = Field(default=None, alias="guestId")
    booking_id: str | None = Field(default=None, alias="bookingId")
    assignee_id: str | None = Field(default=None, alias="assigneeId")
    due_at: datetime | None = Field(default=None, alias="dueAt")
    sla_minutes: int | None = Field(default=None, alias="slaMinutes")


class TaskStatusBody(BaseModel):
    status: str


class EditTaskBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    priority: str | None = None
    assignee_id: str | None = Field(default=None, alias="assigneeId")
    due_at: datetime | None = Field(default=None, alias="dueAt")


class AssignTaskBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    assignee_id: str = Field(alias="assigneeId")


def _success(**data: Any) -> dict[str, Any]:
    return {"status": "success", "data": jsonable_encoder(data)}


def _enum(cls: type[E], raw: str | None, name: str) -> E | None:
    if raw is None or raw == "":
        return None
    try:
        return cls(raw.strip().upper())
    except ValueError as exc:
        raise ValidationError(f"invalid {name} {raw!r}") from exc


def _required_enum(cls: type[E], raw: str, name: str) -> E:
    value = _enum(cls, raw, name)
    if value is None:
        raise ValidationError(f"{name} is required")
    return value


def _tenant(x_hotel_id: str | None) -> str:
    if not x_hotel_id or not x_hotel_id.strip():
        raise ValidationError("X-Hotel-Id header is required")
    return x_hotel_id.strip()


def _status_code(exc: FrontdeskError) -> int:
    if isinstance(exc, _NOT_FOUND):
        return 404
    if isinstance(exc, ValidationError):
        return 400
    return 500


def create_app(services: Services) -> FastAPI:
    app = FastAPI(title="frontdesk")
    store = services.store
    messages = services.message_intake
    calls = services.call_intake

    @app.exception_handler(FrontdeskError)
    async def _frontdesk_error(request: Request, exc: FrontdeskError) -> JSONResponse:
        code = _status_code(exc)
        if code >= 500:
            log.error("%s %s failed: %s", request.method, request.url.path, exc)
        else:
            log.info("%s %s rejected (%d): %s", request.method, request.url.path, code, exc)
        return JSONResponse(status_code=code, content={"status": "error", "message": str(exc)})

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    # -- messages --------------------------------------------------------------

    @app.post("/api/messages/webhook/{channel}")
    async def message_webhook(
        channel: str,
        body: webhooks.MessageWebhookBody,
        x_hotel_id: str | None = Header(default=None),
    ) -> dict[str, Any]:
        result = await messages.handle_incoming_message(
            webhooks.message_request(channel, body, x_hotel_id)
        )
        return _success(
            action=result.action,
            message=result.message,
            aiResponse=result.ai_response,
            task=result.task,
        )

    @app.post("/api/messages")
    async def send_message(
        body: SendMessageBody, x_hotel_id: str | None = Header(default=None)
    ) -> dict[str, Any]:
        message = await messages.send_message(
            hotel_id=_tenant(x_hotel_id),
            channel=webhooks.parse_channel(body.channel),
            content=body.content,
            guest_id=body.guest_id,
            booking_id=body.booking_id,
        )
        return _success(message=message)

    @app.get("/api/messages")
    async def list_messages(
        x_hotel_id: str | None = Header(default=None),
        channel: str | None = None,
        direction: str | None = None,
        status: str | None = None,
        guest_id: str | None = Query(default=None, alias="guestId"),
        booking_id: str | None = Query(default=None, alias="bookingId"),
        start_date: datetime | None = Query(default=None, alias="startDate"),
        end_date: datetime | None = Query(default=None, alias="endDate"),
        limit: int = Query(default=DEFAULT_LIMIT),
        offset: int = Query(default=0),
    ) -> dict[str, Any]:
        filters = MessageFilter(
            channel=_enum(Channel, channel, "channel"),
            direction=_enum(Direction, direction, "direction"),
            status=_enum(MessageStatus, status, "status"),
            guest_id=guest_id,
            booking_id=booking_id,
            start=start_date,
            end=end_date,
            limit=limit,
            offset=offset,
        )
        items, total = await store.list_messages(_tenant(x_hotel_id), filters)
        return _success(messages=items, total=total)

    @app.get("/api/messages/{message_id}")
    async def get_message(
        message_id: str, x_hotel_id: str | None = Header(default=None)
    ) -> dict[str, Any]:
        message = await store.get_message(_tenant(x_hotel_id), message_id)
        if message is None:
            raise MessageNotFoundError("Message not found")
        return _success(message=message)

    # -- calls -----------------------------------------------------------------

    @app.post("/api/calls/webhook/twilio")
    async def twilio_voice(request: Request) -> dict[str, Any]:
        form = await request.form()
        call = await calls.handle_incoming_call(webhooks.twilio_incoming_call(form))
        return _success(call=call)

    @app.post("/api/calls/webhook/twilio/transcript")
    async def twilio_transcript(request: Request) -> dict[str, Any]:
        form = await request.form()
        dialed, call_sid, text = webhooks.twilio_transcript(form)
        call = await calls.find_provider_call(dialed, call_sid)
        call = await calls.attach_transcript(call.hotel_id, call.call_id, text)
        return _success(call=call)

    @app.post("/api/calls/webhook/twilio/status")
    async def twilio_status(request: Request) -> dict[str, Any]:
        form = await request.form()
        dialed, call_sid, completion = webhooks.twilio_completion(form)
        call = await calls.find_provider_call(dialed, call_sid)
        # Twilio also reports ringing / answered; only terminal states close the call
        if completion.status in TERMINAL_CALL_STATUSES:
            call = await calls.complete_call(call.hotel_id, call.call_id, completion)
        return _success(call=call)

    @app.get("/api/calls")
    async def list_calls(
        x_hotel_id: str | None = Header(default=None),
        status: str | None = None,
        direction: str | None = None,
        guest_id: str | None = Query(default=None, alias="guestId"),
        start_date: datetime | None = Query(default=None, alias="startDate"),
        end_date: datetime | None = Query(default=None, alias="endDate"),
        limit: int = Query(default=DEFAULT_LIMIT),
        offset: int = Query(default=0),
    ) -> dict[str, Any]:
        filters = CallFilter(
            status=_enum(CallStatus, status, "status"),
            direction=_enum(Direction, direction, "direction"),
            guest_id=guest_id,
            start=start_date,
            end=end_date,
            limit=limit,
            offset=offset,
        )
        items, total = await store.list_calls(_tenant(x_hotel_id), filters)
        return _success(calls=items, total=total)

    @app.get("/api/calls/{call_id}")
    async def get_call(call_id: str, x_hotel_id: str | None = Header(default=None)) -> dict[str, Any]:
        call = await store.get_call(_tenant(x_hotel_id), call_id)
        if call is None:
            raise CallNotFoundError("Call not found")
        return _success(call=call)

    # -- tasks -----------------------------------------------------------------

    @app.get("/api/tasks")
    async def list_tasks(
        x_hotel_id: str | None = Header(default=None),
        status: str | None = None,
        category: str | None = None,
        priority: str | None = None,
        assignee_id: str | None = Query(default=None, alias="assigneeId"),
        guest_id: str | None = Query(default=None, alias="guestId"),
        overdue: bool = False,
        limit: int = Query(default=DEFAULT_LIMIT),
        offset: int = Query(default=0),
    ) -> dict[str, Any]:
        filters = TaskFilter(
            status=_enum(TaskStatus, status, "status"),
            category=_enum(TaskCategory, category, "category"),
            priority=_enum(Priority, priority, "priority"),
            assignee_id=assignee_id,
            guest_id=guest_id,
            overdue=overdue,
            limit=limit,
            offset=offset,
        )
        items, total = await store.list_tasks(_tenant(x_hotel_id), filters)
        return _success(tasks=items, total=total)

    @app.post("/api/tasks")
    async def create_task(
        body: CreateTaskBody, x_hotel_id: str | None = Header(default=None)
    ) -> dict[str, Any]:
        hotel_id = _tenant(x_hotel_id)
        if not body.title.strip():
            raise ValidationError("title is required")
        if body.sla_minutes is not None and body.sla_minutes <= 0:
            raise ValidationError("slaMinutes must be positive")
        await resolve_links(store, hotel_id, body.guest_id, body.booking_id)
        task = await store.create_task(
            hotel_id=hotel_id,
            title=body.title,
            description=body.description,
            category=_required_enum(TaskCategory, body.category, "category"),
            priority=_required_enum(Priority, body.priority, "priority"),
            guest_id=body.guest_id,
            booking_id=body.booking_id,
            metadata={"source": "staff"},
            due_at=body.due_at,
            sla_minutes=body.sla_minutes,
            assignee_id=body.assignee_id,
        )
        return _success(task=task)

    @app.get("/api/tasks/{task_id}")
    async def get_task(task_id: str, x_hotel_id: str | None = Header(default=None)) -> dict[str, Any]:
        task = await store.get_task(_tenant(x_hotel_id), task_id)
        if task is None:
            raise TaskNotFoundError("Task not found")
        return _success(task=task)

    @app.patch("/api/tasks/{task_id}")
    async def update_task_status(
        task_id: str, body: TaskStatusBody, x_hotel_id: str | None = Header(default=None)
    ) -> dict[str, Any]:
        task = await store.update_task_status(
            _tenant(x_hotel_id),
            task_id,
            _required_enum(TaskStatus, body.status, "status"),
            datetime.now(timezone.utc),
        )
        return _success(task=task)

    @app.put("/api/tasks/{task_id}")
    async def edit_task(
        task_id: str, body: EditTaskBody, x_hotel_id: str | None = Header(default=None)
    ) -> dict[str, Any]:
        assignee_id = body.assignee_id.strip() if body.assignee_id is not None else None
        if assignee_id == "":
            raise ValidationError("assigneeId must not be blank")
        update = TaskUpdate(
            priority=_enum(Priority, body.priority, "priority"),
            assignee_id=assignee_id,
            due_at=body.due_at,
        )
        task = await store.update_task(_tenant(x_hotel_id), task_id, update)
        return _success(task=task)

    @app.patch("/api/tasks/{task_id}/assign")
    async def assign(
        task_id: str, body: AssignTaskBody, x_hotel_id: str | None = Header(default=None)
    ) -> dict[str, Any]:
        task = await assign_task(
            store, _tenant(x_hotel_id), task_id, body.assignee_id, datetime.now(timezone.utc)
        )
        return _success(task=task)

    return app


def main() -> None:
    import uvicorn

    from frontdesk.bootstrap import build_services
    from frontdesk.config import Settings

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s  %(levelname)-7s  %(name)s  %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    settings = Settings.from_env()
    app = create_app(build_services(settings))
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    main()
