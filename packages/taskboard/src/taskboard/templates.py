"""Process templates: predefined task lists for standard accounting processes."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]

from taskboard.editor import TaskDraft
from taskboard.models import ChecklistItem, ProcessType, TaskPriority, TaskState, normalize_tags
from taskboard.ordering import ORDER_GAP


@dataclass(frozen=True)
class TaskTemplate:
    """A task to create when a process is instantiated."""

    title: str
    priority: TaskPriority
    start_offset: int
    due_offset: int
    description: str | None = None
    tags: tuple[str, ...] = ()
    checklist: tuple[ChecklistItem, ...] = ()


@dataclass(frozen=True)
class ProcessTemplate:
    """A named process with its default tasks."""

    name: str
    type: ProcessType
    description: str | None = None
    tasks: tuple[TaskTemplate, ...] = field(default_factory=tuple)

    def process_name(self, period: str | None = None) -> str:
        return f"{self.name} - {period}" if period else self.name


def _parse_offset(value: Any, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{label} must be an integer number of days")
    if value < 0:
        raise ValueError(f"{label} must not be negative")
    return value


def _parse_task(item: Any, label: str) -> TaskTemplate:
    if not isinstance(item, dict):
        raise ValueError(f"{label} must be a mapping")
    title = item.get("title")
    if not title:
        raise ValueError(f"{label} missing title")
    try:
        priority = TaskPriority(item.get("priority", TaskPriority.MEDIUM.value))
    except ValueError as exc:
        raise ValueError(f"{label} invalid priority: {item.get('priority')!r}") from exc

    raw_checklist = item.get("checklist") or []
    if not isinstance(raw_checklist, list):
        raise ValueError(f"{label} checklist must be a list")
    checklist = tuple(ChecklistItem(text=str(text)) for text in raw_checklist)

    return TaskTemplate(
        title=str(title),
        priority=priority,
        start_offset=_parse_offset(item.get("start_offset", 0), f"{label} start_offset"),
        due_offset=_parse_offset(item.get("due_offset", 0), f"{label} due_offset"),
        description=item.get("description"),
        tags=normalize_tags(item.get("tags") or ()),
        checklist=checklist,
    )


def parse_templates(data: Any) -> list[ProcessTemplate]:
    """Build templates from already-loaded YAML data."""
    if data is None:
        return []
    if isinstance(data, list):
        items = data
    elif isinstance(data, dict):
        items = data.get("templates") or []
    else:
        raise ValueError("templates must be a list or mapping with 'templates'")

    if not isinstance(items, list):
        raise ValueError("templates must be a list")

    results: list[ProcessTemplate] = []
    for idx, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValueError(f"templates[{idx}] must be a mapping")
        name = item.get("name")
        if not name:
            raise ValueError(f"templates[{idx}] missing name")
        try:
            process_type = ProcessType(item.get("type", ProcessType.OTHER.value))
        except ValueError as exc:
            raise ValueError(f"templates[{idx}] invalid type: {item.get('type')!r}") from exc

        raw_tasks = item.get("tasks") or []
        if not isinstance(raw_tasks, list):
            raise ValueError(f"templates[{idx}] tasks must be a list")

        results.append(
            ProcessTemplate(
                name=str(name),
                type=process_type,
                description=item.get("description"),
                tasks=tuple(
                    _parse_task(task, f"templates[{idx}].tasks[{task_idx}]")
                    for task_idx, task in enumerate(raw_tasks)
                ),
            )
        )
    return results


@lru_cache
def load_process_templates() -> list[ProcessTemplate]:
    """Load the built-in process templates from YAML."""
    templates_path = Path(__file__).resolve().parent / "templates.yaml"
    if not templates_path.exists():
        return []
    raw = templates_path.read_text(encoding="utf-8")
    return parse_templates(yaml.safe_load(raw))


def get_template(process_type: ProcessType | str) -> ProcessTemplate | None:
    """Find the built-in template for a process type."""
    process_type = ProcessType(process_type)
    for template in load_process_templates():
        if template.type == process_type:
            return template
    return None


def build_task_drafts(
    template: ProcessTemplate,
    process_id: str,
    base_date: date,
    gap: float = ORDER_GAP,
) -> list[TaskDraft]:
    """Turn a template into task drafts for a new process.

    Tasks land in the pending column in template order, spaced ``gap`` apart
    starting at zero, with dates offset from ``base_date``.
    """
    return [
        TaskDraft(
            title=task.title,
            process_id=process_id,
            priority=task.priority,
            description=task.description,
            start_date=base_date + timedelta(days=task.start_offset),
            due_date=base_date + timedelta(days=task.due_offset),
            tags=task.tags,
            checklist=list(task.checklist),
            order=index * gap,
            state=TaskState.PENDING,
        )
        for index, task in enumerate(template.tasks)
    ]
