"""Client-side mirror of one process's tasks.

The mirror is patched optimistically before the remote store confirms a
write. Each optimistic patch is tracked as a ``PendingMutation`` holding a
snapshot of the task as it was, so a failed write can be reverted and the
task is marked dirty until the write is confirmed or the mirror is replaced
with server truth by a full refresh.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime
from typing import Any

import structlog

from taskboard.models import Task, TaskState
from taskboard.ordering import sort_column

logger = structlog.get_logger(__name__)

StoreListener = Callable[["TaskStore"], None]


class UnknownTaskError(KeyError):
    """The task id is not present in the mirror."""

    def __init__(self, task_id: str):
        super().__init__(task_id)
        self.task_id = task_id


@dataclass
class PendingMutation:
    """An optimistic change awaiting confirmation from the remote store."""

    task_id: str
    previous: Task
    applied: Task
    sequence: int
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass
class TaskStats:
    """Task counts for a process."""

    total: int
    by_state: dict[TaskState, int]
    overdue: int

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"total": self.total, "overdue": self.overdue}
        for state, count in self.by_state.items():
            data[state.value] = count
        return data


def _snapshot(task: Task) -> Task:
    return replace(task, checklist=list(task.checklist))


class TaskStore:
    """In-memory tasks for one process, with optimistic mutation support."""

    def __init__(self, tasks: Iterable[Task] = (), process_id: str | None = None):
        self.process_id = process_id
        self._tasks: dict[str, Task] = {}
        self._pending: dict[str, list[PendingMutation]] = {}
        self._sequence = itertools.count(1)
        self._listeners: list[StoreListener] = []
        for task in tasks:
            self._tasks[task.id] = task

        self._logger = logger.bind(component="task_store", process_id=process_id)

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks

    def get(self, task_id: str) -> Task | None:
        return self._tasks.get(task_id)

    def require(self, task_id: str) -> Task:
        """Get a task or raise UnknownTaskError."""
        task = self._tasks.get(task_id)
        if task is None:
            raise UnknownTaskError(task_id)
        return task

    def all(self) -> list[Task]:
        """All tasks in the order the remote store returned them."""
        return list(self._tasks.values())

    def column(self, state: TaskState, exclude: str | None = None) -> list[Task]:
        """Tasks in one column sorted by order key."""
        return sort_column(
            [t for t in self._tasks.values() if t.state == state and t.id != exclude]
        )

    def column_counts(self) -> dict[TaskState, int]:
        counts = {state: 0 for state in TaskState}
        for task in self._tasks.values():
            counts[task.state] += 1
        return counts

    def stats(self, today: date | None = None) -> TaskStats:
        today = today or date.today()
        return TaskStats(
            total=len(self._tasks),
            by_state=self.column_counts(),
            overdue=sum(1 for t in self._tasks.values() if t.is_overdue(today)),
        )

    # === Listeners ===

    def subscribe(self, listener: StoreListener) -> None:
        """Register a callback run after every change to the mirror."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: StoreListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as e:
                self._logger.error("store_listener_error", error=str(e))

    # === Dirty tracking ===

    def is_dirty(self, task_id: str) -> bool:
        return bool(self._pending.get(task_id))

    @property
    def dirty_ids(self) -> set[str]:
        return {task_id for task_id, pending in self._pending.items() if pending}

    def pending_for(self, task_id: str) -> list[PendingMutation]:
        return list(self._pending.get(task_id, ()))

    # === Mutations ===

    def add(self, task: Task) -> None:
        """Insert or replace a task with a server-confirmed copy."""
        self._tasks[task.id] = task
        self._notify()

    def remove(self, task_id: str) -> Task | None:
        task = self._tasks.pop(task_id, None)
        self._pending.pop(task_id, None)
        if task is not None:
            self._notify()
        return task

    def replace_all(self, tasks: Iterable[Task]) -> None:
        """Replace the mirror with server truth, discarding pending changes."""
        discarded = sum(len(p) for p in self._pending.values())
        self._tasks = {task.id: task for task in tasks}
        self._pending.clear()
        self._logger.debug(
            "store_reconciled", task_count=len(self._tasks), discarded_pending=discarded
        )
        self._notify()

    def apply_move(self, task_id: str, state: TaskState, order: float) -> PendingMutation:
        """Optimistically move a task to ``state`` at ``order``."""
        return self._apply(task_id, state=state, order=order)

    def apply_update(self, task_id: str, **fields: Any) -> PendingMutation:
        """Optimistically patch task fields."""
        return self._apply(task_id, **fields)

    def _apply(self, task_id: str, **fields: Any) -> PendingMutation:
        current = self.require(task_id)
        updated = replace(current, **fields)
        mutation = PendingMutation(
            task_id=task_id,
            previous=_snapshot(current),
            applied=updated,
            sequence=next(self._sequence),
        )
        self._tasks[task_id] = updated
        self._pending.setdefault(task_id, []).append(mutation)
        self._notify()
        return mutation

    def confirm(self, mutation: PendingMutation) -> None:
        """Mark an optimistic change as persisted."""
        pending = self._pending.get(mutation.task_id)
        if not pending or mutation not in pending:
            return
        pending.remove(mutation)
        if not pending:
            del self._pending[mutation.task_id]

    def rollback(self, mutation: PendingMutation) -> bool:
        """Revert a failed optimistic change.

        If a newer change to the same task is still pending, the visible task
        is left alone and the newer change inherits this one's snapshot, so a
        later failure of the newer change restores the pre-failure state.

        Returns:
            True if the visible task was restored.
        """
        pending = self._pending.get(mutation.task_id)
        if not pending or mutation not in pending:
            return False

        index = pending.index(mutation)
        pending.remove(mutation)
        if index < len(pending):
            pending[index].previous = mutation.previous
            self._logger.debug(
                "rollback_superseded",
                task_id=mutation.task_id,
                sequence=mutation.sequence,
            )
            return False

        if not pending:
            del self._pending[mutation.task_id]
        if mutation.task_id not in self._tasks:
            return False
        self._tasks[mutation.task_id] = mutation.previous
        self._notify()
        return True
