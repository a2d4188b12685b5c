"""Tests for the Gantt timeline layout."""

from datetime import date, timedelta

import pytest

from taskboard.models import TaskState
from taskboard.timeline import (
    TimelineConfig,
    bar_geometry,
    build_days,
    build_months,
    layout,
    month_label,
    sort_rows,
    view_window,
)


class TestViewWindow:
    """Tests for the view window."""

    def test_empty_set_shows_thirty_days_from_today(self, today):
        start, end = view_window([], today)

        assert start == today
        assert end == today + timedelta(days=30)

    def test_undated_tasks_count_as_empty(self, make_task, today):
        start, end = view_window([make_task("a")], today)

        assert (start, end) == (today, today + timedelta(days=30))

    def test_pads_around_dates_and_today(self, make_task, today):
        task = make_task("a", start_date=date(2026, 1, 10), due_date=date(2026, 1, 20))

        start, end = view_window([task], today)

        # today (Jan 7) is earlier than the start date
        assert start == date(2026, 1, 5)
        assert end == date(2026, 1, 25)

    def test_past_tasks_extend_to_today(self, make_task, today):
        task = make_task("a", start_date=date(2025, 12, 1), due_date=date(2025, 12, 5))

        start, end = view_window([task], today)

        assert start == date(2025, 11, 29)
        assert end == today + timedelta(days=5)

    @pytest.mark.parametrize("today_value", [date(2026, 1, 1), date(2026, 1, 12), date(2026, 3, 1)])
    def test_inverted_dates_stay_inside_window(self, make_task, today_value):
        task = make_task("a", start_date=date(2026, 1, 10), due_date=date(2026, 1, 5))

        start, end = view_window([task], today_value)

        assert start <= date(2026, 1, 8)
        assert end >= date(2026, 1, 15)

    def test_custom_padding(self, make_task, today):
        config = TimelineConfig(padding_before_days=0, padding_after_days=0)
        task = make_task("a", start_date=today, due_date=today + timedelta(days=3))

        assert view_window([task], today, config) == (today, today + timedelta(days=3))


class TestBarGeometry:
    """Tests for bar placement and sizing."""

    def test_offset_and_width(self, make_task):
        task = make_task("a", start_date=date(2026, 1, 3), due_date=date(2026, 1, 5))

        bar = bar_geometry(task, date(2026, 1, 1), today=date(2026, 1, 1))

        assert bar.offset_days == 2
        assert bar.left == 80
        assert bar.duration_days == 2
        assert bar.width == 80

    def test_single_day_task_is_one_day_wide(self, make_task):
        day = date(2026, 1, 3)
        bar = bar_geometry(make_task("a", start_date=day, due_date=day), date(2026, 1, 1))

        assert bar.duration_days == 1
        assert bar.width == 40

    def test_inverted_dates_are_one_day_wide(self, make_task):
        task = make_task("a", start_date=date(2026, 1, 10), due_date=date(2026, 1, 5))

        bar = bar_geometry(task, date(2026, 1, 1))

        assert bar.offset_days == 9
        assert bar.width == 40

    def test_missing_start_uses_due(self, make_task):
        task = make_task("a", due_date=date(2026, 1, 4))

        bar = bar_geometry(task, date(2026, 1, 1))

        assert bar.offset_days == 3
        assert bar.duration_days == 1

    def test_missing_due_uses_start(self, make_task):
        task = make_task("a", start_date=date(2026, 1, 2))

        bar = bar_geometry(task, date(2026, 1, 1))

        assert bar.offset_days == 1
        assert bar.duration_days == 1

    def test_undated_task_has_no_bar(self, make_task):
        assert bar_geometry(make_task("a"), date(2026, 1, 1)) is None

    def test_row_position(self, make_task):
        day = date(2026, 1, 3)
        bar = bar_geometry(
            make_task("a", start_date=day, due_date=day), day, row=3, row_height=32
        )

        assert bar.top == 96

    def test_overdue_flag(self, make_task, today):
        late = make_task("late", due_date=date(2026, 1, 5))
        done = make_task("done", TaskState.COMPLETED, due_date=date(2026, 1, 5))
        future = make_task("future", due_date=date(2026, 1, 9))

        assert bar_geometry(late, date(2026, 1, 1), today=today).is_overdue is True
        assert bar_geometry(done, date(2026, 1, 1), today=today).is_overdue is False
        assert bar_geometry(future, date(2026, 1, 1), today=today).is_overdue is False


class TestGrid:
    """Tests for the day and month header grids."""

    def test_days_cover_window_inclusive(self):
        days = build_days(date(2026, 1, 1), date(2026, 1, 10), date(2026, 1, 7), 40)

        assert len(days) == 10
        assert days[0].date == date(2026, 1, 1)
        assert days[-1].date == date(2026, 1, 10)
        assert days[3].left == 120
        assert [d.date for d in days if d.is_today] == [date(2026, 1, 7)]

    def test_weekends_flagged(self):
        # Jan 3 and 4 2026 are Saturday and Sunday
        days = build_days(date(2026, 1, 1), date(2026, 1, 7), date(2026, 1, 1), 40)

        assert [d.date.day for d in days if d.is_weekend] == [3, 4]

    def test_month_bands_span_boundaries(self):
        days = build_days(date(2025, 12, 28), date(2026, 2, 2), date(2026, 1, 1), 40)

        bands = build_months(days, 40)

        assert [b.label for b in bands] == ["diciembre 2025", "enero 2026", "febrero 2026"]
        assert [b.days for b in bands] == [4, 31, 2]
        assert bands[1].left == 160
        assert bands[1].width == 31 * 40
        assert sum(b.days for b in bands) == len(days)

    def test_month_label(self):
        assert month_label(date(2026, 9, 15)) == "septiembre 2026"


class TestLayout:
    """Tests for the full layout."""

    def test_rows_sorted_by_start_with_undated_last(self, make_task):
        tasks = [
            make_task("undated"),
            make_task("late", start_date=date(2026, 1, 20)),
            make_task("due-only", due_date=date(2026, 1, 10)),
            make_task("early", start_date=date(2026, 1, 2)),
        ]

        assert [t.id for t in sort_rows(tasks)] == ["early", "due-only", "late", "undated"]

    def test_layout_bars_and_rows(self, make_task, today):
        tasks = [
            make_task("b", start_date=date(2026, 1, 8), due_date=date(2026, 1, 12)),
            make_task("a", start_date=date(2026, 1, 3), due_date=date(2026, 1, 5)),
            make_task("undated"),
        ]

        result = layout(tasks, today=today)

        assert result.view_start == date(2026, 1, 1)
        assert result.view_end == date(2026, 1, 17)
        assert [t.id for t in result.rows] == ["a", "b", "undated"]
        assert [bar.task_id for bar in result.bars] == ["a", "b"]
        assert result.bar_for("a").left == 80
        assert result.bar_for("b").row == 1
        assert result.bar_for("undated") is None
        assert result.total_days == 17
        assert result.chart_width == 17 * 40
        assert result.height == 3 * 32

    def test_today_marker_inside_window(self, make_task, today):
        task = make_task("a", start_date=date(2026, 1, 3), due_date=date(2026, 1, 5))

        result = layout([task], today=today)

        assert result.today_offset == 6
        assert result.today_marker_x == 6 * 40 + 20

    def test_today_marker_absent_outside_window(self, today):
        result = layout([], today=today)
        result.today = today - timedelta(days=1)

        assert result.today_offset is None
        assert result.today_marker_x is None

    def test_empty_layout(self, today):
        result = layout([], today=today)

        assert result.bars == []
        assert result.total_days == 31
        assert result.today_offset == 0

    def test_uses_config_geometry(self, make_task, today):
        config = TimelineConfig(day_width=20, row_height=10)
        task = make_task("a", start_date=date(2026, 1, 3), due_date=date(2026, 1, 5))

        result = layout([task], today=today, config=config)

        assert result.bar_for("a").left == 2 * 20
        assert result.height == 10
