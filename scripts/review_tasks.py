#!/usr/bin/env python3
"""
Front desk task CLI: list, inspect, assign and close follow-up tasks.

Usage (from project root):
    python scripts/review_tasks.py HOTEL                 # list open tasks
    python scripts/review_tasks.py HOTEL overdue         # sweep, then list overdue tasks
    python scripts/review_tasks.py HOTEL show TASK_ID    # show full task details
    python scripts/review_tasks.py HOTEL start TASK_ID   # mark in progress
    python scripts/review_tasks.py HOTEL assign TASK_ID WHO   # assign (pending tasks start)
    python scripts/review_tasks.py HOTEL done TASK_ID    # mark completed
    python scripts/review_tasks.py HOTEL cancel TASK_ID  # mark cancelled

Reads DB_PATH (default: data/frontdesk.db).
"""

import asyncio
import os
import sys
import textwrap
from datetime import datetime, timezone

# Allow running as `python scripts/review_tasks.py` from project root.
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from frontdesk.adapters.sqlite_store import SqliteHotelStore
from frontdesk.domain.errors import TaskNotFoundError, ValidationError
from frontdesk.domain.filters import MAX_LIMIT, TaskFilter
from frontdesk.domain.records import FollowUpTask, TaskStatus
from frontdesk.domain.tasks import assign_task, sla_deadline, sweep_overdue

DB_PATH = os.environ.get("DB_PATH", "data/frontdesk.db")

_TRANSITIONS = {
    "start": TaskStatus.IN_PROGRESS,
    "done": TaskStatus.COMPLETED,
    "cancel": TaskStatus.CANCELLED,
}


def _wrap(text: str, width: int = 72, indent: str = "    ") -> str:
    return textwrap.fill(text, width=width, initial_indent=indent, subsequent_indent=indent)


def _print_table(tasks: list[FollowUpTask]) -> None:
    print(f"\n{'ID':<8}  {'Priority':<8}  {'Category':<14}  {'Status':<11}  Title")
    print("-" * 80)
    for t in tasks:
        print(
            f"{t.task_id[:8]:<8}  {t.priority.value:<8}  {t.category.value:<14}"
            f"  {t.status.value:<11}  {t.title[:40]}"
        )
    print()


async def list_open(store: SqliteHotelStore, hotel_id: str) -> None:
    tasks = await store.list_open_tasks(hotel_id)
    if not tasks:
        print("No open tasks.")
        return
    tasks.sort(key=lambda t: (-t.priority.rank, t.created_at))
    _print_table(tasks)


async def list_overdue(store: SqliteHotelStore, hotel_id: str) -> None:
    now = datetime.now(timezone.utc)
    swept = await sweep_overdue(store, hotel_id, now)
    if swept:
        print(f"{len(swept)} task(s) newly marked overdue.")
    tasks, _ = await store.list_tasks(
        hotel_id, TaskFilter(overdue=True, now=now, limit=MAX_LIMIT)
    )
    if not tasks:
        print("No overdue tasks.")
        return
    _print_table(tasks)


async def _resolve(store: SqliteHotelStore, hotel_id: str, prefix: str) -> FollowUpTask | None:
    """Accept a full task id or the 8-character prefix shown in the listing."""
    task = await store.get_task(hotel_id, prefix)
    if task is not None:
        return task
    tasks, _ = await store.list_tasks(hotel_id, TaskFilter(limit=MAX_LIMIT))
    matches = [t for t in tasks if t.task_id.startswith(prefix)]
    return matches[0] if len(matches) == 1 else None


async def show_task(store: SqliteHotelStore, hotel_id: str, task_id: str) -> None:
    task = await _resolve(store, hotel_id, task_id)
    if not task:
        print(f"Task {task_id} not found.")
        return

    print(f"\n{'=' * 60}")
    print(f"  Task {task.task_id}")
    print(f"  {task.priority.value}  |  {task.category.value}  |  {task.status.value}")
    print(f"  Created: {task.created_at}")
    deadline = sla_deadline(task)
    if deadline:
        print(f"  Deadline: {deadline}")
    if task.guest_id:
        print(f"  Guest: {task.guest_id}")
    if task.assignee_id:
        print(f"  Assignee: {task.assignee_id}")
    if task.metadata.get("message_id"):
        print(f"  From message: {task.metadata['message_id']} ({task.metadata.get('channel')})")
    if task.completed_at:
        print(f"  Completed: {task.completed_at}")
    print(f"{'=' * 60}")
    print(f"\n  {task.title}\n")
    print(_wrap(task.description))
    print()


async def transition(store: SqliteHotelStore, hotel_id: str, task_id: str, cmd: str) -> None:
    task = await _resolve(store, hotel_id, task_id)
    if not task:
        print(f"Task {task_id} not found.")
        return
    try:
        updated = await store.update_task_status(
            hotel_id, task.task_id, _TRANSITIONS[cmd], datetime.now(timezone.utc)
        )
    except TaskNotFoundError:
        print(f"Task {task_id} not found.")
        return
    print(f"Task {updated.task_id[:8]} → {updated.status.value}.")


async def assign(store: SqliteHotelStore, hotel_id: str, task_id: str, assignee: str) -> None:
    task = await _resolve(store, hotel_id, task_id)
    if not task:
        print(f"Task {task_id} not found.")
        return
    try:
        updated = await assign_task(
            store, hotel_id, task.task_id, assignee, datetime.now(timezone.utc)
        )
    except ValidationError as exc:
        print(exc)
        return
    print(f"Task {updated.task_id[:8]} → {updated.assignee_id} ({updated.status.value}).")


async def main() -> None:
    if len(sys.argv) < 2:
        print(__doc__)
        return

    store = SqliteHotelStore(DB_PATH)
    hotel_id = sys.argv[1]

    if len(sys.argv) == 2:
        await list_open(store, hotel_id)
        return

    cmd = sys.argv[2]

    if cmd == "overdue":
        await list_overdue(store, hotel_id)
    elif cmd == "show" and len(sys.argv) >= 4:
        await show_task(store, hotel_id, sys.argv[3])
    elif cmd in _TRANSITIONS and len(sys.argv) >= 4:
        await transition(store, hotel_id, sys.argv[3], cmd)
    elif cmd == "assign" and len(sys.argv) >= 5:
        await assign(store, hotel_id, sys.argv[3], sys.argv[4])
    else:
        print(__doc__)


if __name__ == "__main__":
    asyncio.run(main())
