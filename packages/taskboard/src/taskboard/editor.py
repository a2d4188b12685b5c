"""Task detail editing: creation, field updates, checklist and comments.

All input is validated here, at the write boundary, so the board and the
timeline can trust task fields. Persistence failures are logged and
reported through the return value; optimistic changes are reverted.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from typing import Any

import structlog

from taskboard.config import get_settings
from taskboard.models import (
    ChecklistItem,
    Comment,
    ProcessState,
    Task,
    TaskPriority,
    TaskState,
    TaskValidationError,
    normalize_tags,
    parse_iso_date,
    parse_priority,
    parse_state,
)
from taskboard.ordering import anchor_for, compute_order
from taskboard.persistence import TaskPersistence
from taskboard.store import TaskStore

logger = structlog.get_logger(__name__)

# Editable task fields and their wire names.
TASK_WIRE_FIELDS = {
    "title": "titulo",
    "description": "descripcion",
    "state": "estado",
    "priority": "prioridad",
    "assignee": "asignado_a",
    "start_date": "fecha_inicio",
    "due_date": "fecha_limite",
    "tags": "etiquetas",
    "checklist": "checklist",
    "estimated_hours": "estimacion_horas",
    "actual_hours": "horas_reales",
}

PROCESS_WIRE_FIELDS = {
    "name": "nombre",
    "description": "descripcion",
    "state": "estado",
    "start_date": "fecha_inicio",
    "due_date": "fecha_limite",
    "owner_id": "responsable_id",
}


@dataclass
class TaskDraft:
    """Validated input for a new task."""

    title: str
    process_id: str
    priority: TaskPriority = TaskPriority.MEDIUM
    description: str | None = None
    start_date: date | None = None
    due_date: date | None = None
    tags: tuple[str, ...] = ()
    checklist: list[ChecklistItem] = field(default_factory=list)
    assignee: str | None = None
    order: float | None = None
    state: TaskState = TaskState.PENDING

    def to_payload(self, order: float) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "titulo": self.title,
            "proceso_id": self.process_id,
            "prioridad": self.priority.value,
            "estado": self.state.value,
            "orden": order,
        }
        if self.description:
            payload["descripcion"] = self.description
        if self.start_date:
            payload["fecha_inicio"] = self.start_date.isoformat()
        if self.due_date:
            payload["fecha_limite"] = self.due_date.isoformat()
        if self.tags:
            payload["etiquetas"] = list(self.tags)
        if self.checklist:
            payload["checklist"] = [item.to_dict() for item in self.checklist]
        if self.assignee:
            payload["asignado_a"] = self.assignee
        return payload

    def to_task(self, task_id: str, order: float) -> Task:
        return Task(
            id=task_id,
            title=self.title,
            process_id=self.process_id,
            state=self.state,
            priority=self.priority,
            order=order,
            description=self.description,
            assignee=self.assignee,
            start_date=self.start_date,
            due_date=self.due_date,
            tags=self.tags,
            checklist=list(self.checklist),
        )


def _clean_title(value: Any) -> str:
    title = str(value or "").strip()
    if not title:
        raise TaskValidationError("Task title must not be empty", "titulo")
    return title


def _clean_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _clean_checklist(items: Iterable[Any]) -> list[ChecklistItem]:
    cleaned = []
    for item in items:
        if isinstance(item, ChecklistItem):
            cleaned.append(item)
        elif isinstance(item, dict):
            cleaned.append(ChecklistItem.from_dict(item))
        else:
            raise TaskValidationError(f"Invalid checklist item: {item!r}", "checklist")
    return cleaned


def _warn_inverted_dates(start: date | None, due: date | None, **context: Any) -> None:
    if start is not None and due is not None and due < start:
        logger.warning(
            "due_date_before_start_date",
            start_date=start.isoformat(),
            due_date=due.isoformat(),
            **context,
        )


def validate_draft(
    title: Any,
    process_id: str,
    priority: Any = TaskPriority.MEDIUM,
    description: Any = None,
    start_date: Any = None,
    due_date: Any = None,
    tags: Any = None,
    checklist: Iterable[Any] | None = None,
    assignee: str | None = None,
) -> TaskDraft:
    """Validate raw form input into a TaskDraft.

    Raises:
        TaskValidationError: A field is malformed.
    """
    if not process_id:
        raise TaskValidationError("Task must belong to a process", "proceso_id")
    start = parse_iso_date(start_date, "fecha_inicio")
    due = parse_iso_date(due_date, "fecha_limite")
    _warn_inverted_dates(start, due, process_id=process_id)
    return TaskDraft(
        title=_clean_title(title),
        process_id=process_id,
        priority=parse_priority(priority),
        description=_clean_text(description),
        start_date=start,
        due_date=due,
        tags=normalize_tags(tags or ()),
        checklist=_clean_checklist(checklist or ()),
        assignee=_clean_text(assignee),
    )


def validate_task_fields(fields: dict[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
    """Validate a partial task update.

    Returns:
        (typed fields for the mirror, wire-format fields for the store)

    Raises:
        TaskValidationError: Unknown or malformed field.
    """
    typed: dict[str, Any] = {}
    for name, value in fields.items():
        if name not in TASK_WIRE_FIELDS:
            raise TaskValidationError(f"Field {name!r} cannot be edited", name)
        if name == "title":
            typed[name] = _clean_title(value)
        elif name in ("description", "assignee"):
            typed[name] = _clean_text(value)
        elif name == "state":
            typed[name] = parse_state(value)
        elif name == "priority":
            typed[name] = parse_priority(value)
        elif name in ("start_date", "due_date"):
            typed[name] = parse_iso_date(value, TASK_WIRE_FIELDS[name])
        elif name == "tags":
            typed[name] = normalize_tags(value or ())
        elif name == "checklist":
            typed[name] = _clean_checklist(value or ())
        else:
            if value is not None and (isinstance(value, bool) or not isinstance(value, int | float)):
                raise TaskValidationError(f"{name} must be a number", name)
            if value is not None and value < 0:
                raise TaskValidationError(f"{name} must not be negative", name)
            typed[name] = value

    wire: dict[str, Any] = {}
    for name, value in typed.items():
        if isinstance(value, TaskState | TaskPriority):
            value = value.value
        elif isinstance(value, date):
            value = value.isoformat()
        elif name == "tags":
            value = list(value)
        elif name == "checklist":
            value = [item.to_dict() for item in value]
        wire[TASK_WIRE_FIELDS[name]] = value
    return typed, wire


class TaskEditor:
    """Reads and writes single-task fields through the persistence contract."""

    def __init__(
        self,
        store: TaskStore,
        persistence: TaskPersistence,
        gap: float | None = None,
    ):
        self._store = store
        self._persistence = persistence
        self._gap = gap or get_settings().order_gap
        self._logger = logger.bind(component="task_editor", process_id=store.process_id)

    async def create_task(self, draft: TaskDraft) -> str | None:
        """Create a task, appended to the end of its column unless it has an order.

        Returns:
            The new task id, or None if the store rejected it.
        """
        order = draft.order
        if order is None:
            column = self._store.column(draft.state)
            order = compute_order(column, anchor_for(column), self._gap)

        try:
            task_id = await self._persistence.create_task(draft.to_payload(order))
        except Exception as e:
            self._logger.error("create_task_failed", title=draft.title, error=str(e))
            return None

        self._store.add(draft.to_task(task_id, order))
        self._logger.info("task_created", task_id=task_id, order=order)
        return task_id

    async def create_tasks(self, drafts: Iterable[TaskDraft]) -> list[str]:
        """Create several tasks in sequence; failed ones are skipped."""
        created = []
        for draft in drafts:
            task_id = await self.create_task(draft)
            if task_id is not None:
                created.append(task_id)
        return created

    async def update_task(self, task_id: str, **fields: Any) -> bool:
        """Validate and apply a partial update.

        Raises:
            TaskValidationError: A field is malformed.
            UnknownTaskError: The task is not in the mirror.
        """
        typed, wire = validate_task_fields(fields)
        if not typed:
            return True

        current = self._store.require(task_id)
        target_state = typed.get("state", current.state)
        if target_state != current.state:
            # A task entering another column goes to its end with a fresh key.
            column = self._store.column(target_state, exclude=task_id)
            order = compute_order(column, anchor_for(column), self._gap)
            typed["order"] = order
            wire["orden"] = order

        _warn_inverted_dates(
            typed.get("start_date", current.start_date),
            typed.get("due_date", current.due_date),
            task_id=task_id,
        )

        mutation = self._store.apply_update(task_id, **typed)
        try:
            await self._persistence.update_task(task_id, wire)
        except Exception as e:
            self._logger.error("update_task_failed", task_id=task_id, error=str(e))
            self._store.rollback(mutation)
            return False

        self._store.confirm(mutation)
        self._logger.info("task_updated", task_id=task_id, fields=sorted(typed))
        return True

    async def change_state(self, task_id: str, state: TaskState | str) -> bool:
        """Change a task's state from the detail panel.

        The task is appended to the end of the destination column.
        """
        return await self.update_task(task_id, state=state)

    async def delete_task(self, task_id: str) -> bool:
        """Delete a task irreversibly."""
        try:
            await self._persistence.delete_task(task_id)
        except Exception as e:
            self._logger.error("delete_task_failed", task_id=task_id, error=str(e))
            return False

        self._store.remove(task_id)
        self._logger.info("task_deleted", task_id=task_id)
        return True

    async def toggle_checklist_item(self, task_id: str, index: int) -> bool:
        """Flip one checklist item.

        Raises:
            TaskValidationError: Index out of range.
            UnknownTaskError: The task is not in the mirror.
        """
        task = self._store.require(task_id)
        if not 0 <= index < len(task.checklist):
            raise TaskValidationError(
                f"Checklist index {index} out of range for {len(task.checklist)} items",
                "checklist",
            )

        checklist = list(task.checklist)
        checklist[index] = checklist[index].toggled()
        mutation = self._store.apply_update(task_id, checklist=checklist)
        try:
            await self._persistence.toggle_checklist_item(task_id, index)
        except Exception as e:
            self._logger.error(
                "toggle_checklist_failed", task_id=task_id, index=index, error=str(e)
            )
            self._store.rollback(mutation)
            return False

        self._store.confirm(mutation)
        return True

    async def list_comments(self, task_id: str) -> list[Comment]:
        try:
            return await self._persistence.list_comments(task_id)
        except Exception as e:
            self._logger.error("list_comments_failed", task_id=task_id, error=str(e))
            return []

    async def add_comment(self, task_id: str, text: str) -> bool:
        """Post a comment. Blank comments are ignored."""
        content = text.strip()
        if not content:
            return False
        try:
            await self._persistence.add_comment(task_id, content)
        except Exception as e:
            self._logger.error("add_comment_failed", task_id=task_id, error=str(e))
            return False
        return True

    async def update_process(self, process_id: str, **fields: Any) -> bool:
        """Patch process-level fields, such as its lifecycle state.

        Raises:
            TaskValidationError: Unknown or malformed field.
        """
        wire: dict[str, Any] = {}
        for name, value in fields.items():
            if name not in PROCESS_WIRE_FIELDS:
                raise TaskValidationError(f"Process field {name!r} cannot be edited", name)
            if name == "state":
                try:
                    value = ProcessState(value).value
                except ValueError as exc:
                    raise TaskValidationError(f"Unknown process state: {value!r}", name) from exc
            elif name in ("start_date", "due_date"):
                parsed = parse_iso_date(value, PROCESS_WIRE_FIELDS[name])
                value = parsed.isoformat() if parsed else None
            elif name == "name":
                value = _clean_title(value)
            else:
                value = _clean_text(value)
            wire[PROCESS_WIRE_FIELDS[name]] = value

        try:
            await self._persistence.update_process(process_id, wire)
        except Exception as e:
            self._logger.error("update_process_failed", process_id=process_id, error=str(e))
            return False
        self._logger.info("process_updated", process_id=process_id, fields=sorted(wire))
        return True

