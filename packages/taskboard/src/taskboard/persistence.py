"""Persistence contract consumed by the board and the task editor."""

from typing import Any, Protocol

from taskboard.models import Comment, Process, Task, TaskState


class TaskPersistence(Protocol):
    """Interface of the remote task store.

    ``ProcessStoreClient`` implements it over HTTP. Write operations raise
    on failure; callers in this package catch and log.
    """

    async def list_tasks_for_process(self, process_id: str) -> list[Task]:
        """List all tasks of a process, in store order."""
        ...

    async def get_process_with_tasks(self, process_id: str) -> Process | None:
        """Get a process with its tasks embedded, or None if it doesn't exist."""
        ...

    async def create_task(self, data: dict[str, Any]) -> str:
        """Create a task from a wire-format payload and return its id."""
        ...

    async def move_task(self, task_id: str, state: TaskState, order: float) -> None:
        """Persist a task's new column and order key together."""
        ...

    async def reorder_tasks(self, orders: dict[str, float]) -> None:
        """Persist order keys for several tasks at once."""
        ...

    async def update_task(self, task_id: str, fields: dict[str, Any]) -> None:
        """Patch task fields (wire-format keys)."""
        ...

    async def delete_task(self, task_id: str) -> None:
        """Delete a task and its comments."""
        ...

    async def toggle_checklist_item(self, task_id: str, index: int) -> None:
        """Flip the completed flag of one checklist item."""
        ...

    async def list_comments(self, task_id: str) -> list[Comment]:
        """List the comment thread of a task."""
        ...

    async def add_comment(self, task_id: str, text: str) -> None:
        """Append a comment to a task."""
        ...

    async def update_process(self, process_id: str, fields: dict[str, Any]) -> None:
        """Patch process fields (wire-format keys)."""
        ...
