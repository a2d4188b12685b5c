"""Board controller: drag-and-drop reordering of tasks across columns.

A drop resolves its destination column, computes one new order key, patches
the client mirror optimistically and schedules the persistence call without
waiting for it. A failed write is logged and, unless disabled, the
optimistic change is reverted. Nothing else in either column is touched,
except when the destination column has run out of precision and is
renumbered; those keys are tracked and reverted along with the move.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace
from typing import Any

import structlog

from taskboard.config import get_settings
from taskboard.models import BOARD_COLUMNS, BoardColumn, Task, TaskState
from taskboard.ordering import (
    Anchor,
    anchor_for,
    compute_order,
    needs_rebalance,
    rebalance_column,
)
from taskboard.persistence import TaskPersistence
from taskboard.store import PendingMutation, TaskStore
from taskboard.workflow import PERMISSIVE_POLICY, TransitionPolicy

logger = structlog.get_logger(__name__)

DropTarget = TaskState | str
TaskClickHandler = Callable[[Task], Any]
MoveHandler = Callable[[str, TaskState, float], Awaitable[None] | None]


@dataclass(frozen=True)
class MovePlan:
    """A move computed for one drop."""

    task_id: str
    source_state: TaskState
    target_state: TaskState
    previous_order: float
    new_order: float
    anchor: Anchor
    rebalanced: dict[str, float] = field(default_factory=dict)

    @property
    def changes_column(self) -> bool:
        return self.source_state != self.target_state


@dataclass
class MoveOutcome:
    """Result of persisting a move."""

    plan: MovePlan
    success: bool
    rolled_back: bool = False
    error: str | None = None


class BoardController:
    """Turns drop gestures into order-key moves on a ``TaskStore``.

    Must be driven from inside a running asyncio event loop, since
    persistence calls are scheduled as background tasks.
    """

    def __init__(
        self,
        store: TaskStore,
        persistence: TaskPersistence,
        *,
        policy: TransitionPolicy = PERMISSIVE_POLICY,
        gap: float | None = None,
        min_spacing: float | None = None,
        rollback_on_failure: bool | None = None,
        on_task_click: TaskClickHandler | None = None,
        on_move_task: MoveHandler | None = None,
    ):
        settings = get_settings()
        self._store = store
        self._persistence = persistence
        self._policy = policy
        self._gap = gap or settings.order_gap
        self._min_spacing = min_spacing or settings.min_order_spacing
        self._rollback_on_failure = (
            settings.rollback_on_failure if rollback_on_failure is None else rollback_on_failure
        )
        self._on_task_click = on_task_click
        self._on_move_task = on_move_task

        self._active_task_id: str | None = None
        self._in_flight: set[asyncio.Task[MoveOutcome]] = set()

        self._logger = logger.bind(component="board", process_id=store.process_id)

    @property
    def store(self) -> TaskStore:
        return self._store

    @property
    def policy(self) -> TransitionPolicy:
        return self._policy

    @property
    def pending(self) -> int:
        """Number of persistence calls still in flight."""
        return len(self._in_flight)

    def columns(self, include_blocked: bool = False) -> list[tuple[BoardColumn, list[Task]]]:
        """Rendered columns with their tasks sorted by order key."""
        columns = list(BOARD_COLUMNS)
        if include_blocked:
            columns.append(BoardColumn(TaskState.BLOCKED, "Bloqueada"))
        return [(col, self._store.column(col.state)) for col in columns]

    def click(self, task_id: str) -> Task | None:
        """Surface a task for detail editing."""
        task = self._store.get(task_id)
        if task is not None and self._on_task_click is not None:
            self._on_task_click(task)
        return task

    # === Drag lifecycle ===

    @property
    def active_task(self) -> Task | None:
        """Task currently being dragged."""
        if self._active_task_id is None:
            return None
        return self._store.get(self._active_task_id)

    def begin_drag(self, task_id: str) -> Task | None:
        task = self._store.get(task_id)
        self._active_task_id = task.id if task is not None else None
        return task

    def cancel_drag(self) -> None:
        """Drop outside any target: no state changes."""
        self._active_task_id = None

    def resolve_drop_target(self, drop_target: DropTarget) -> tuple[TaskState, Task | None] | None:
        """Resolve a drop target to (destination column, sibling task).

        Task ids take precedence over column ids. Returns None for targets
        that are neither.
        """
        if isinstance(drop_target, TaskState):
            return drop_target, None
        sibling = self._store.get(drop_target)
        if sibling is not None:
            return sibling.state, sibling
        try:
            return TaskState(drop_target), None
        except ValueError:
            return None

    def plan_move(self, dragged_task_id: str, drop_target: DropTarget) -> MovePlan | None:
        """Compute the move for a drop without applying it.

        Returns None when the drop changes nothing or cannot be resolved.

        Raises:
            InvalidTransitionError: The policy forbids the state change.
        """
        task = self._store.get(dragged_task_id)
        if task is None:
            self._logger.warning("drop_unknown_task", task_id=dragged_task_id)
            return None

        resolved = self.resolve_drop_target(drop_target)
        if resolved is None:
            self._logger.warning(
                "drop_target_unknown", task_id=dragged_task_id, drop_target=str(drop_target)
            )
            return None
        target_state, sibling = resolved

        if sibling is None and task.state == target_state:
            return None
        if sibling is not None and sibling.id == task.id:
            # Dropped on itself: no reference position, so it goes to the end.
            sibling = None

        self._policy.validate(task.state, target_state)

        siblings = self._store.column(target_state, exclude=task.id)
        before_id = sibling.id if sibling is not None else None
        anchor = anchor_for(siblings, before_id)

        rebalanced: dict[str, float] = {}
        if needs_rebalance(anchor, self._min_spacing):
            rebalanced = rebalance_column(siblings, self._gap)
            self._logger.info(
                "column_rebalance_required",
                state=target_state.value,
                task_count=len(rebalanced),
            )
            siblings = [_with_order(t, rebalanced[t.id]) for t in siblings]
            anchor = anchor_for(siblings, before_id)

        return MovePlan(
            task_id=task.id,
            source_state=task.state,
            target_state=target_state,
            previous_order=task.order,
            new_order=compute_order(siblings, anchor, self._gap),
            anchor=anchor,
            rebalanced=rebalanced,
        )

    def on_drop(self, dragged_task_id: str, drop_target: DropTarget) -> MovePlan | None:
        """Handle a drop: move the task optimistically and persist in the background.

        Args:
            dragged_task_id: Id of the dragged task.
            drop_target: A column (state) or the id of a sibling task; dropping
                on a sibling places the task directly before it.

        Returns:
            The applied move, or None if nothing changed.
        """
        self._active_task_id = None
        plan = self.plan_move(dragged_task_id, drop_target)
        if plan is None:
            return None

        rekeyed = [
            self._store.apply_update(task_id, order=order)
            for task_id, order in plan.rebalanced.items()
        ]
        mutation = self._store.apply_move(plan.task_id, plan.target_state, plan.new_order)

        self._logger.info(
            "task_moved",
            task_id=plan.task_id,
            from_state=plan.source_state.value,
            to_state=plan.target_state.value,
            order=plan.new_order,
        )

        job = asyncio.get_running_loop().create_task(self._persist(plan, mutation, rekeyed))
        self._in_flight.add(job)
        job.add_done_callback(self._in_flight.discard)
        return plan

    async def drain(self) -> list[MoveOutcome]:
        """Wait for every in-flight persistence call."""
        if not self._in_flight:
            return []
        return list(await asyncio.gather(*self._in_flight))

    async def _persist(
        self,
        plan: MovePlan,
        mutation: PendingMutation,
        rekeyed: list[PendingMutation],
    ) -> MoveOutcome:
        try:
            if plan.rebalanced:
                await self._persistence.reorder_tasks(plan.rebalanced)
            await self._persistence.move_task(plan.task_id, plan.target_state, plan.new_order)
        except Exception as e:
            self._logger.error(
                "move_persist_failed",
                task_id=plan.task_id,
                to_state=plan.target_state.value,
                error=str(e),
            )
            rolled_back = False
            if self._rollback_on_failure:
                rolled_back = self._store.rollback(mutation)
                for sibling in reversed(rekeyed):
                    self._store.rollback(sibling)
                self._logger.warning(
                    "move_rolled_back", task_id=plan.task_id, restored=rolled_back
                )
            return MoveOutcome(plan=plan, success=False, rolled_back=rolled_back, error=str(e))

        self._store.confirm(mutation)
        for sibling in rekeyed:
            self._store.confirm(sibling)
        if self._on_move_task is not None:
            try:
                result = self._on_move_task(plan.task_id, plan.target_state, plan.new_order)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                self._logger.error("move_callback_error", task_id=plan.task_id, error=str(e))
        return MoveOutcome(plan=plan, success=True)

    async def reload(self) -> None:
        """Replace the mirror with the store's current tasks."""
        if self._store.process_id is None:
            raise ValueError("TaskStore has no process_id to reload")
        tasks = await self._persistence.list_tasks_for_process(self._store.process_id)
        self._store.replace_all(tasks)
        self._logger.info("board_reloaded", task_count=len(tasks))


def _with_order(task: Task, order: float) -> Task:
    return replace(task, order=order)
