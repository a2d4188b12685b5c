"""Pytest configuration and fixtures."""

import os
from datetime import date
from unittest.mock import AsyncMock

import pytest

# Set test environment variables before importing settings
os.environ.setdefault("TASKBOARD_STORE_TOKEN", "test-token")

from taskboard.models import Task, TaskPriority, TaskState  # noqa: E402

PROCESS_ID = "proc-1"


@pytest.fixture
def make_task():
    """Factory for tasks with sensible defaults."""

    def _make(
        task_id: str,
        state: TaskState = TaskState.PENDING,
        order: float = 0.0,
        **kwargs,
    ) -> Task:
        kwargs.setdefault("title", f"Task {task_id}")
        kwargs.setdefault("process_id", PROCESS_ID)
        kwargs.setdefault("priority", TaskPriority.MEDIUM)
        return Task(id=task_id, state=state, order=order, **kwargs)

    return _make


@pytest.fixture
def persistence():
    """Persistence double where every call succeeds."""
    store = AsyncMock()
    store.list_tasks_for_process = AsyncMock(return_value=[])
    store.get_process_with_tasks = AsyncMock(return_value=None)
    store.create_task = AsyncMock(return_value="new-task")
    store.move_task = AsyncMock(return_value=None)
    store.reorder_tasks = AsyncMock(return_value=None)
    store.update_task = AsyncMock(return_value=None)
    store.delete_task = AsyncMock(return_value=None)
    store.toggle_checklist_item = AsyncMock(return_value=None)
    store.list_comments = AsyncMock(return_value=[])
    store.add_comment = AsyncMock(return_value=None)
    store.update_process = AsyncMock(return_value=None)
    return store


@pytest.fixture
def today():
    """Fixed reference date for date-dependent tests."""
    return date(2026, 1, 7)


@pytest.fixture
def mock_task_payload():
    """A task in the store's wire format."""
    return {
        "_id": "t-100",
        "titulo": "Calcular F29",
        "descripcion": "IVA de enero",
        "proceso_id": PROCESS_ID,
        "estado": "en_progreso",
        "prioridad": "urgente",
        "orden": 2000,
        "asignado_a": "user-7",
        "fecha_inicio": "2026-01-03",
        "fecha_limite": "2026-01-05",
        "etiquetas": ["f29", "impuestos"],
        "checklist": [
            {"texto": "Descargar libro de compras", "completado": True},
            {"texto": "Revisar créditos", "completado": False},
        ],
        "estimacion_horas": 4,
    }
