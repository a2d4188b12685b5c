"""Order key allocation for board columns.

Every task carries a floating point ``order`` that is only meaningful
relative to the other tasks in the same column. A move computes exactly one
new key that falls strictly between its new neighbours, so siblings never
need renumbering.

Keys are spaced ``ORDER_GAP`` apart on append. Inserting before the first
task uses half a gap, and inserting between two tasks bisects their keys.
Repeated bisection of the same pair eventually runs out of double precision
(roughly 50 halvings of a 1000 gap); ``needs_rebalance`` detects that and
``rebalance_column`` hands out fresh keys for that one column.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from taskboard.models import Task

ORDER_GAP = 1000.0

# Smallest spacing between neighbours that still admits a bisection.
MIN_ORDER_SPACING = 1e-6


@dataclass(frozen=True)
class Anchor:
    """Neighbours a task will sit between after an insert."""

    preceding: Task | None = None
    following: Task | None = None

    @property
    def is_append(self) -> bool:
        return self.following is None


def sort_column(tasks: Sequence[Task]) -> list[Task]:
    """Sort a column by order key. Ties keep their incoming order."""
    return sorted(tasks, key=lambda t: t.order)


def anchor_for(column_tasks: Sequence[Task], before_task_id: str | None = None) -> Anchor:
    """Resolve the anchor pair for an insert.

    Args:
        column_tasks: Destination column sorted by order, without the task
            being moved.
        before_task_id: Sibling the task is dropped onto. The task lands
            directly before it. None, or an id not in the column, appends.
    """
    if before_task_id is not None:
        for index, sibling in enumerate(column_tasks):
            if sibling.id == before_task_id:
                preceding = column_tasks[index - 1] if index > 0 else None
                return Anchor(preceding=preceding, following=sibling)

    last = column_tasks[-1] if column_tasks else None
    return Anchor(preceding=last, following=None)


def compute_order(
    column_tasks: Sequence[Task],
    anchor: Anchor,
    gap: float = ORDER_GAP,
) -> float:
    """Compute the order key for a task inserted at ``anchor``.

    Args:
        column_tasks: Destination column sorted by order, without the task
            being moved. Only consulted when the anchor is empty.
        anchor: Neighbours to insert between.
        gap: Spacing used for appends; half of it for inserts at the top.

    Returns:
        The new order key.
    """
    preceding, following = anchor.preceding, anchor.following

    if following is None:
        if preceding is None and column_tasks:
            preceding = column_tasks[-1]
        baseline = preceding.order if preceding is not None else 0.0
        return baseline + gap

    if preceding is None:
        return following.order - gap / 2

    return (preceding.order + following.order) / 2


def is_strictly_between(value: float, anchor: Anchor) -> bool:
    """Check that ``value`` sorts strictly inside the anchor pair."""
    if anchor.preceding is not None and not value > anchor.preceding.order:
        return False
    if anchor.following is not None and not value < anchor.following.order:
        return False
    return True


def needs_rebalance(anchor: Anchor, min_spacing: float = MIN_ORDER_SPACING) -> bool:
    """Check whether the anchor pair is too close together to bisect."""
    if anchor.preceding is None or anchor.following is None:
        return False
    spacing = anchor.following.order - anchor.preceding.order
    if spacing < min_spacing:
        return True
    midpoint = (anchor.preceding.order + anchor.following.order) / 2
    return not is_strictly_between(midpoint, anchor)


def rebalance_column(column_tasks: Sequence[Task], gap: float = ORDER_GAP) -> dict[str, float]:
    """Assign fresh, evenly spaced keys to one column.

    Args:
        column_tasks: Column sorted by order.
        gap: Spacing between consecutive keys.

    Returns:
        Mapping of task id to its new order key, starting at ``gap``.
    """
    return {task.id: (index + 1) * gap for index, task in enumerate(column_tasks)}
