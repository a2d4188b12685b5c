"""Task state transition policies.

Board columns are advisory: by default any state can be reached from any
other, since dragging to any column is a supported affordance. A stricter
policy can be plugged into the board controller when a firm workflow is
wanted.
"""

from __future__ import annotations

from collections.abc import Iterable

from taskboard.models import TaskState


class InvalidTransitionError(Exception):
    """A state change is not allowed by the active policy."""

    def __init__(self, source: TaskState, target: TaskState):
        super().__init__(f"Transition {source.value} -> {target.value} is not allowed")
        self.source = source
        self.target = target


class TransitionPolicy:
    """Set of allowed (from, to) state pairs.

    ``allowed=None`` means every transition is allowed. Staying in the same
    state (a reorder within a column) is always allowed.
    """

    def __init__(
        self,
        allowed: Iterable[tuple[TaskState, TaskState]] | None = None,
        name: str = "custom",
    ):
        self._allowed = frozenset(allowed) if allowed is not None else None
        self.name = name

    @property
    def is_permissive(self) -> bool:
        return self._allowed is None

    def can_transition(self, source: TaskState, target: TaskState) -> bool:
        if source == target or self._allowed is None:
            return True
        return (source, target) in self._allowed

    def validate(self, source: TaskState, target: TaskState) -> None:
        """Raise InvalidTransitionError if the transition is not allowed."""
        if not self.can_transition(source, target):
            raise InvalidTransitionError(source, target)

    def targets(self, source: TaskState) -> list[TaskState]:
        """States reachable from ``source`` in one move."""
        return [state for state in TaskState if self.can_transition(source, state)]


def _strict_pairs() -> set[tuple[TaskState, TaskState]]:
    pairs = {
        (TaskState.PENDING, TaskState.IN_PROGRESS),
        (TaskState.IN_PROGRESS, TaskState.IN_REVIEW),
        (TaskState.IN_PROGRESS, TaskState.PENDING),
        (TaskState.IN_REVIEW, TaskState.COMPLETED),
        (TaskState.IN_REVIEW, TaskState.IN_PROGRESS),
    }
    non_terminal = (TaskState.PENDING, TaskState.IN_PROGRESS, TaskState.IN_REVIEW)
    for state in non_terminal:
        pairs.add((state, TaskState.BLOCKED))
    for state in TaskState:
        if state != TaskState.BLOCKED:
            pairs.add((TaskState.BLOCKED, state))
    return pairs


PERMISSIVE_POLICY = TransitionPolicy(None, name="permissive")

# Linear flow with review loops. Blocked is reachable from any non-terminal
# state and may return to any state.
STRICT_POLICY = TransitionPolicy(_strict_pairs(), name="strict")
