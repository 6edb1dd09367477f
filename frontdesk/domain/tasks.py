"""
Task lifecycle rules: SLA and assignment.

A task is overdue when it is still open and either its explicit due time
has passed or more than sla_minutes have elapsed since it was created.
Assigning a pending task moves it to IN_PROGRESS.
"""

import logging
from datetime import datetime, timedelta

from frontdesk.domain.errors import ValidationError
from frontdesk.domain.records import OPEN_TASK_STATUSES, FollowUpTask, TaskStatus
from frontdesk.domain.store import HotelStore, TaskUpdate

log = logging.getLogger(__name__)


def sla_deadline(task: FollowUpTask) -> datetime | None:
    """The earliest moment the task counts as late, or None if it never does."""
    deadlines = []
    if task.due_at is not None:
        deadlines.append(task.due_at)
    if task.sla_minutes is not None:
        deadlines.append(task.created_at + timedelta(minutes=task.sla_minutes))
    return min(deadlines) if deadlines else None


def is_overdue(task: FollowUpTask, now: datetime) -> bool:
    if task.status not in OPEN_TASK_STATUSES:
        return False
    deadline = sla_deadline(task)
    return deadline is not None and now > deadline


async def sweep_overdue(
    store: HotelStore, hotel_id: str, now: datetime
) -> list[FollowUpTask]:
    """Mark every open, late task of one hotel as OVERDUE. Returns those tasks."""
    marked = []
    for task in await store.list_open_tasks(hotel_id):
        if not is_overdue(task, now):
            continue
        updated = await store.update_task_status(
            hotel_id, task.task_id, TaskStatus.OVERDUE, now
        )
        log.warning(
            "hotel=%s task=%s overdue (priority=%s, deadline=%s)",
            hotel_id, task.task_id, task.priority.value, sla_deadline(task),
        )
        marked.append(updated)
    return marked


async def assign_task(
    store: HotelStore, hotel_id: str, task_id: str, assignee_id: str, now: datetime
) -> FollowUpTask:
    """Hand a task to a staff member. A PENDING task is picked up (IN_PROGRESS)."""
    if not assignee_id or not assignee_id.strip():
        raise ValidationError("assignee is required")

    task = await store.update_task(hotel_id, task_id, TaskUpdate(assignee_id=assignee_id.strip()))
    if task.status is TaskStatus.PENDING:
        task = await store.update_task_status(hotel_id, task_id, TaskStatus.IN_PROGRESS, now)
    log.info("hotel=%s task=%s assigned to %s (%s)", hotel_id, task_id, task.assignee_id, task.status.value)
    return task
