"""Typed records for processes, tasks and task comments.

The remote store speaks a Spanish wire format (``titulo``, ``estado``,
``orden``...). Records are parsed from that format at the boundary so the
board and timeline only ever see validated, explicitly typed values.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Any


class TaskValidationError(ValueError):
    """A task field failed validation at the write boundary."""

    def __init__(self, message: str, field_name: str | None = None):
        super().__init__(message)
        self.field_name = field_name


class TaskState(str, Enum):
    """Workflow state of a task; also the board column it renders in."""

    PENDING = "pendiente"
    IN_PROGRESS = "en_progreso"
    IN_REVIEW = "en_revision"
    COMPLETED = "completada"
    BLOCKED = "bloqueada"


class TaskPriority(str, Enum):
    """Task priority. Affects visual weight only, never workflow."""

    URGENT = "urgente"
    HIGH = "alta"
    MEDIUM = "media"
    LOW = "baja"

    @property
    def rank(self) -> int:
        """Sort rank, lower is more important."""
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    TaskPriority.URGENT: 0,
    TaskPriority.HIGH: 1,
    TaskPriority.MEDIUM: 2,
    TaskPriority.LOW: 3,
}


class ProcessState(str, Enum):
    """Lifecycle of a process, independent of its tasks' states."""

    ACTIVE = "activo"
    PAUSED = "pausado"
    COMPLETED = "completado"
    CANCELLED = "cancelado"


class ProcessType(str, Enum):
    """Kind of accounting process."""

    MONTHLY_ACCOUNTING = "contabilidad_mensual"
    VAT_RETURN = "declaracion_f29"
    INCOME_TAX_RETURN = "declaracion_renta"
    ANNUAL_CLOSE = "cierre_anual"
    CLIENT_ONBOARDING = "onboarding_cliente"
    OTHER = "otro"


class CommentKind(str, Enum):
    """Kind of entry in a task's comment thread."""

    COMMENT = "comentario"
    STATE_CHANGE = "cambio_estado"
    ASSIGNMENT = "asignacion"
    SYSTEM = "sistema"


@dataclass(frozen=True)
class BoardColumn:
    """A rendered board column. Columns are not stored entities."""

    state: TaskState
    title: str


# Columns rendered on the board, in display order. Blocked tasks keep their
# own state but have no column of their own.
BOARD_COLUMNS: tuple[BoardColumn, ...] = (
    BoardColumn(TaskState.PENDING, "Pendiente"),
    BoardColumn(TaskState.IN_PROGRESS, "En Progreso"),
    BoardColumn(TaskState.IN_REVIEW, "En Revisión"),
    BoardColumn(TaskState.COMPLETED, "Completada"),
)


def parse_iso_date(value: Any, field_name: str = "date") -> date | None:
    """Parse an ISO 8601 calendar date (``YYYY-MM-DD``).

    Empty values map to None. Datetimes are rejected: task dates carry no
    time component.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        raise TaskValidationError(f"{field_name} must be a date, not a datetime", field_name)
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise TaskValidationError(f"{field_name} must be an ISO date string", field_name)
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise TaskValidationError(
            f"{field_name} is not a valid ISO date: {value!r}", field_name
        ) from exc


def parse_state(value: Any) -> TaskState:
    """Coerce a wire value into a TaskState."""
    try:
        return TaskState(value)
    except ValueError as exc:
        raise TaskValidationError(f"Unknown task state: {value!r}", "estado") from exc


def parse_priority(value: Any) -> TaskPriority:
    """Coerce a wire value into a TaskPriority."""
    try:
        return TaskPriority(value)
    except ValueError as exc:
        raise TaskValidationError(f"Unknown task priority: {value!r}", "prioridad") from exc


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text or None


@dataclass(frozen=True)
class ChecklistItem:
    """One line of a task checklist."""

    text: str
    completed: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChecklistItem:
        if "texto" not in data:
            raise TaskValidationError("checklist item missing texto", "checklist")
        return cls(text=str(data["texto"]), completed=bool(data.get("completado", False)))

    def to_dict(self) -> dict[str, Any]:
        return {"texto": self.text, "completado": self.completed}

    def toggled(self) -> ChecklistItem:
        return replace(self, completed=not self.completed)


@dataclass
class Task:
    """A task on a process board."""

    id: str
    title: str
    process_id: str
    state: TaskState = TaskState.PENDING
    priority: TaskPriority = TaskPriority.MEDIUM
    order: float = 0.0
    description: str | None = None
    assignee: str | None = None
    start_date: date | None = None
    due_date: date | None = None
    tags: tuple[str, ...] = ()
    checklist: list[ChecklistItem] = field(default_factory=list)
    estimated_hours: float | None = None
    actual_hours: float | None = None

    def __post_init__(self) -> None:
        if not self.title or not self.title.strip():
            raise TaskValidationError("Task title must not be empty", "titulo")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        """Build a task from the store's wire format."""
        task_id = data.get("_id") or data.get("id")
        if not task_id:
            raise TaskValidationError("Task is missing an id", "_id")

        try:
            order = float(data.get("orden", 0.0))
        except (TypeError, ValueError) as exc:
            raise TaskValidationError(f"Invalid orden: {data.get('orden')!r}", "orden") from exc

        raw_checklist = data.get("checklist") or []
        if not isinstance(raw_checklist, list):
            raise TaskValidationError("checklist must be a list", "checklist")

        raw_tags = data.get("etiquetas") or []
        if not isinstance(raw_tags, list):
            raise TaskValidationError("etiquetas must be a list", "etiquetas")

        return cls(
            id=str(task_id),
            title=str(data.get("titulo", "")),
            process_id=str(data.get("proceso_id", "")),
            state=parse_state(data.get("estado", TaskState.PENDING.value)),
            priority=parse_priority(data.get("prioridad", TaskPriority.MEDIUM.value)),
            order=order,
            description=_optional_str(data.get("descripcion")),
            assignee=_optional_str(data.get("asignado_a")),
            start_date=parse_iso_date(data.get("fecha_inicio"), "fecha_inicio"),
            due_date=parse_iso_date(data.get("fecha_limite"), "fecha_limite"),
            tags=normalize_tags(raw_tags),
            checklist=[ChecklistItem.from_dict(item) for item in raw_checklist],
            estimated_hours=data.get("estimacion_horas"),
            actual_hours=data.get("horas_reales"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the store's wire format."""
        data: dict[str, Any] = {
            "_id": self.id,
            "titulo": self.title,
            "proceso_id": self.process_id,
            "estado": self.state.value,
            "prioridad": self.priority.value,
            "orden": self.order,
            "etiquetas": list(self.tags),
            "checklist": [item.to_dict() for item in self.checklist],
        }
        if self.description is not None:
            data["descripcion"] = self.description
        if self.assignee is not None:
            data["asignado_a"] = self.assignee
        if self.start_date is not None:
            data["fecha_inicio"] = self.start_date.isoformat()
        if self.due_date is not None:
            data["fecha_limite"] = self.due_date.isoformat()
        if self.estimated_hours is not None:
            data["estimacion_horas"] = self.estimated_hours
        if self.actual_hours is not None:
            data["horas_reales"] = self.actual_hours
        return data

    def is_overdue(self, today: date | None = None) -> bool:
        """Check whether the due date has passed on an unfinished task."""
        if self.due_date is None:
            return False
        today = today or date.today()
        return self.due_date < today and self.state != TaskState.COMPLETED

    @property
    def is_blocked(self) -> bool:
        return self.state == TaskState.BLOCKED

    @property
    def checklist_progress(self) -> tuple[int, int]:
        """(completed items, total items)."""
        done = sum(1 for item in self.checklist if item.completed)
        return done, len(self.checklist)


def normalize_tags(tags: Any) -> tuple[str, ...]:
    """Trim, drop empties and de-duplicate tags, keeping first occurrence."""
    if isinstance(tags, str):
        tags = tags.split(",")
    seen: dict[str, None] = {}
    for tag in tags:
        cleaned = str(tag).strip()
        if cleaned:
            seen.setdefault(cleaned, None)
    return tuple(seen)


@dataclass
class Comment:
    """An entry in a task's comment thread."""

    id: str
    task_id: str
    text: str
    kind: CommentKind = CommentKind.COMMENT
    author_id: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Comment:
        created_raw = data.get("created_at")
        created_at = None
        if created_raw:
            try:
                created_at = datetime.fromisoformat(str(created_raw).replace("Z", "+00:00"))
            except ValueError:
                created_at = None
        try:
            kind = CommentKind(data.get("tipo", CommentKind.COMMENT.value))
        except ValueError:
            kind = CommentKind.COMMENT
        return cls(
            id=str(data.get("_id") or data.get("id") or ""),
            task_id=str(data.get("tarea_id", "")),
            text=str(data.get("contenido", "")),
            kind=kind,
            author_id=_optional_str(data.get("autor_id")),
            created_at=created_at,
        )


@dataclass
class Process:
    """An accounting process owning a set of tasks."""

    id: str
    name: str
    type: ProcessType = ProcessType.OTHER
    state: ProcessState = ProcessState.ACTIVE
    description: str | None = None
    period: str | None = None
    start_date: date | None = None
    due_date: date | None = None
    client_id: str | None = None
    owner_id: str | None = None
    tasks: list[Task] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Process:
        """Build a process, including embedded ``tareas`` when present."""
        try:
            process_type = ProcessType(data.get("tipo", ProcessType.OTHER.value))
            process_state = ProcessState(data.get("estado", ProcessState.ACTIVE.value))
        except ValueError as exc:
            raise TaskValidationError(f"Invalid process field: {exc}") from exc
        return cls(
            id=str(data.get("_id") or data.get("id") or ""),
            name=str(data.get("nombre", "")),
            type=process_type,
            state=process_state,
            description=_optional_str(data.get("descripcion")),
            period=_optional_str(data.get("periodo")),
            start_date=parse_iso_date(data.get("fecha_inicio"), "fecha_inicio"),
            due_date=parse_iso_date(data.get("fecha_limite"), "fecha_limite"),
            client_id=_optional_str(data.get("cliente_id")),
            owner_id=_optional_str(data.get("responsable_id")),
            tasks=[Task.from_dict(t) for t in data.get("tareas") or []],
        )
