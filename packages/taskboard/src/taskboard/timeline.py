"""Gantt timeline layout derived from a process's tasks.

Pure computation: given tasks and the current date, produce the view window,
the day and month header grids and one bar rectangle per dated task. The
result is recomputed whenever the task mirror changes and has no write path.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, timedelta

from taskboard.config import get_settings
from taskboard.models import Task, TaskPriority, TaskState

MONTH_NAMES = (
    "enero",
    "febrero",
    "marzo",
    "abril",
    "mayo",
    "junio",
    "julio",
    "agosto",
    "septiembre",
    "octubre",
    "noviembre",
    "diciembre",
)


@dataclass(frozen=True)
class TimelineConfig:
    """Geometry and padding used for a layout."""

    day_width: int = 40
    row_height: int = 32
    label_width: int = 200
    padding_before_days: int = 2
    padding_after_days: int = 5
    empty_view_days: int = 30

    @classmethod
    def from_settings(cls) -> TimelineConfig:
        settings = get_settings()
        return cls(
            day_width=settings.day_width,
            row_height=settings.row_height,
            label_width=settings.label_width,
            padding_before_days=settings.view_padding_before_days,
            padding_after_days=settings.view_padding_after_days,
            empty_view_days=settings.empty_view_days,
        )


@dataclass(frozen=True)
class DayColumn:
    """One calendar day in the grid."""

    date: date
    index: int
    left: int
    is_weekend: bool
    is_today: bool

    @property
    def label(self) -> str:
        return str(self.date.day)


@dataclass(frozen=True)
class MonthBand:
    """Consecutive days sharing the same month, for the header row."""

    label: str
    start: int
    days: int
    left: int
    width: int


@dataclass(frozen=True)
class TaskBar:
    """Bar rectangle for one task."""

    task_id: str
    title: str
    row: int
    offset_days: int
    duration_days: int
    left: int
    width: int
    top: int
    is_overdue: bool
    state: TaskState
    priority: TaskPriority


@dataclass
class TimelineLayout:
    """Complete layout of the timeline view."""

    view_start: date
    view_end: date
    today: date
    day_width: int
    rows: list[Task] = field(default_factory=list)
    days: list[DayColumn] = field(default_factory=list)
    months: list[MonthBand] = field(default_factory=list)
    bars: list[TaskBar] = field(default_factory=list)
    row_height: int = 32

    @property
    def total_days(self) -> int:
        return days_between(self.view_start, self.view_end) + 1

    @property
    def chart_width(self) -> int:
        return self.total_days * self.day_width

    @property
    def height(self) -> int:
        return len(self.rows) * self.row_height

    @property
    def today_offset(self) -> int | None:
        """Day index of today, or None when today is outside the window."""
        offset = days_between(self.view_start, self.today)
        if 0 <= offset < self.total_days:
            return offset
        return None

    @property
    def today_marker_x(self) -> float | None:
        """Horizontal centre of today's column."""
        offset = self.today_offset
        if offset is None:
            return None
        return offset * self.day_width + self.day_width / 2

    def bar_for(self, task_id: str) -> TaskBar | None:
        for bar in self.bars:
            if bar.task_id == task_id:
                return bar
        return None


def days_between(start: date, end: date) -> int:
    """Whole calendar days from ``start`` to ``end`` (negative if before)."""
    return (end - start).days


def month_label(day: date) -> str:
    return f"{MONTH_NAMES[day.month - 1]} {day.year}"


def sort_rows(tasks: Iterable[Task]) -> list[Task]:
    """Order timeline rows by start date (or due date); undated tasks last."""
    return sorted(tasks, key=lambda t: (t.start_date or t.due_date or date.max))


def view_window(
    tasks: Iterable[Task],
    today: date,
    config: TimelineConfig | None = None,
) -> tuple[date, date]:
    """Compute the inclusive [view_start, view_end] date range.

    The window starts at today and stretches to the earliest start date and
    the latest due date, then is padded on both sides. A task's other date
    also counts, so a bar built from a lone or inverted date stays visible.
    With no dates at all it shows ``empty_view_days`` forward from today.
    """
    config = config or TimelineConfig()
    dates = [d for t in tasks for d in (t.start_date, t.due_date) if d is not None]
    if not dates:
        return today, today + timedelta(days=config.empty_view_days)

    earliest = min([today, *dates])
    latest = max([today, *dates])
    return (
        earliest - timedelta(days=config.padding_before_days),
        latest + timedelta(days=config.padding_after_days),
    )


def build_days(view_start: date, view_end: date, today: date, day_width: int) -> list[DayColumn]:
    total = days_between(view_start, view_end) + 1
    columns = []
    for index in range(total):
        day = view_start + timedelta(days=index)
        columns.append(
            DayColumn(
                date=day,
                index=index,
                left=index * day_width,
                is_weekend=day.weekday() >= 5,
                is_today=day == today,
            )
        )
    return columns


def build_months(days: list[DayColumn], day_width: int) -> list[MonthBand]:
    """Group consecutive days by (month, year) into header bands."""
    bands: list[MonthBand] = []
    start = 0
    for index in range(1, len(days) + 1):
        if index < len(days):
            prev, cur = days[index - 1].date, days[index].date
            if (prev.year, prev.month) == (cur.year, cur.month):
                continue
        count = index - start
        bands.append(
            MonthBand(
                label=month_label(days[start].date),
                start=start,
                days=count,
                left=start * day_width,
                width=count * day_width,
            )
        )
        start = index
    return bands


def bar_geometry(
    task: Task,
    view_start: date,
    day_width: int = 40,
    today: date | None = None,
    row: int = 0,
    row_height: int = 32,
) -> TaskBar | None:
    """Compute the bar for one task, or None if it has no dates.

    A missing start or due date falls back to the other one. Bars are at
    least one day wide, including when the due date precedes the start.
    """
    start = task.start_date or task.due_date
    end = task.due_date or task.start_date
    if start is None or end is None:
        return None

    offset_days = days_between(view_start, start)
    duration_days = max(days_between(start, end), 1)
    return TaskBar(
        task_id=task.id,
        title=task.title,
        row=row,
        offset_days=offset_days,
        duration_days=duration_days,
        left=offset_days * day_width,
        width=max(duration_days, 1) * day_width,
        top=row * row_height,
        is_overdue=task.is_overdue(today or date.today()),
        state=task.state,
        priority=task.priority,
    )


def layout(
    tasks: Iterable[Task],
    today: date | None = None,
    config: TimelineConfig | None = None,
) -> TimelineLayout:
    """Lay out the timeline for ``tasks``.

    Args:
        tasks: Tasks of one process, in any order.
        today: Current date; defaults to the local date.
        config: Geometry and padding; defaults to ``TimelineConfig()``.
    """
    config = config or TimelineConfig()
    today = today or date.today()
    rows = sort_rows(tasks)

    view_start, view_end = view_window(rows, today, config)
    days = build_days(view_start, view_end, today, config.day_width)

    bars = []
    for row, task in enumerate(rows):
        bar = bar_geometry(task, view_start, config.day_width, today, row, config.row_height)
        if bar is not None:
            bars.append(bar)

    return TimelineLayout(
        view_start=view_start,
        view_end=view_end,
        today=today,
        day_width=config.day_width,
        rows=rows,
        days=days,
        months=build_months(days, config.day_width),
        bars=bars,
        row_height=config.row_height,
    )
