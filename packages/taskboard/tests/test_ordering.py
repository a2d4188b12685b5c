"""Tests for order key allocation."""

import math

import pytest

from taskboard.ordering import (
    ORDER_GAP,
    Anchor,
    anchor_for,
    compute_order,
    is_strictly_between,
    needs_rebalance,
    rebalance_column,
    sort_column,
)


class TestComputeOrder:
    """Tests for compute_order."""

    def test_append_to_empty_column(self):
        """Test that the first task of a column gets one gap from zero."""
        assert compute_order([], Anchor()) == ORDER_GAP

    def test_append_after_last(self, make_task):
        column = [make_task("a", order=1000), make_task("b", order=2500)]
        anchor = anchor_for(column)

        assert compute_order(column, anchor) == 3500

    def test_insert_before_first(self, make_task):
        """Test that inserting at the top uses half a gap."""
        column = [make_task("a", order=1000), make_task("b", order=2000)]
        anchor = anchor_for(column, before_task_id="a")

        assert anchor == Anchor(preceding=None, following=column[0])
        assert compute_order(column, anchor) == 500

    def test_insert_between_bisects(self, make_task):
        column = [make_task("a", order=1000), make_task("b", order=2000)]
        anchor = anchor_for(column, before_task_id="b")

        assert compute_order(column, anchor) == 1500

    def test_custom_gap(self, make_task):
        column = [make_task("a", order=10)]
        assert compute_order(column, anchor_for(column), gap=10) == 20
        assert compute_order(column, anchor_for(column, "a"), gap=10) == 5

    def test_negative_orders(self, make_task):
        """Test that keys below zero stay ordered."""
        column = [make_task("a", order=-500), make_task("b", order=-250)]
        value = compute_order(column, anchor_for(column, "b"))

        assert -500 < value < -250


class TestAnchorFor:
    """Tests for anchor resolution."""

    def test_unknown_sibling_appends(self, make_task):
        column = [make_task("a", order=1000)]
        anchor = anchor_for(column, before_task_id="missing")

        assert anchor.is_append
        assert anchor.preceding is column[0]

    def test_empty_column(self):
        anchor = anchor_for([])
        assert anchor.preceding is None
        assert anchor.following is None


class TestOrderingProperties:
    """Property checks for the allocator."""

    @pytest.mark.parametrize(
        "left,right",
        [(0.0, 1.0), (1000.0, 2000.0), (-3.5, 7.25), (1e9, 1e9 + 1), (0.1, 0.3)],
    )
    def test_between_is_strictly_inside(self, make_task, left, right):
        column = [make_task("a", order=left), make_task("b", order=right)]
        anchor = anchor_for(column, "b")
        value = compute_order(column, anchor)

        assert left < value < right
        assert is_strictly_between(value, anchor)

    def test_sequential_appends_keep_exact_spacing(self, make_task):
        """Test that 10,000 appends stay exactly one gap apart."""
        column = []
        for i in range(10_000):
            order = compute_order(column, anchor_for(column))
            column.append(make_task(str(i), order=order))

        orders = [t.order for t in column]
        assert orders[0] == ORDER_GAP
        assert all(b - a == ORDER_GAP for a, b in zip(orders, orders[1:]))

    def test_repeated_bisection_stays_ordered_for_forty_halvings(self, make_task):
        """Test that forty bisections towards the low key stay strictly ordered."""
        low = make_task("low", order=1000)
        high = make_task("high", order=2000)
        for i in range(40):
            column = [low, high]
            value = compute_order(column, anchor_for(column, high.id))
            assert low.order < value < high.order
            high = make_task(f"mid{i}", order=value)


class TestRebalance:
    """Tests for the precision-collapse safeguard."""

    def test_wide_gap_does_not_need_rebalance(self, make_task):
        anchor = Anchor(make_task("a", order=1000), make_task("b", order=2000))
        assert needs_rebalance(anchor) is False

    def test_append_never_needs_rebalance(self, make_task):
        assert needs_rebalance(Anchor(make_task("a", order=1000), None)) is False

    def test_collapsed_gap_needs_rebalance(self, make_task):
        base = 1000.0
        anchor = Anchor(make_task("a", order=base), make_task("b", order=base + 1e-9))
        assert needs_rebalance(anchor) is True

    def test_adjacent_floats_need_rebalance(self, make_task):
        """Test neighbours with no representable midpoint."""
        base = 1000.0
        anchor = Anchor(make_task("a", order=base), make_task("b", order=math.nextafter(base, 2000)))
        assert needs_rebalance(anchor, min_spacing=0.0) is True

    def test_rebalance_column_preserves_order(self, make_task):
        column = sort_column(
            [make_task("c", order=3.0), make_task("a", order=1.0), make_task("b", order=2.0)]
        )
        assert rebalance_column(column) == {"a": 1000.0, "b": 2000.0, "c": 3000.0}


class TestSortColumn:
    """Tests for column sorting."""

    def test_ties_keep_incoming_order(self, make_task):
        tasks = [make_task("x", order=1.0), make_task("y", order=1.0), make_task("z", order=0.5)]
        assert [t.id for t in sort_column(tasks)] == ["z", "x", "y"]
