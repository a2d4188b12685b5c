"""Tests for task state transition policies."""

import pytest

from taskboard.models import TaskState
from taskboard.workflow import (
    PERMISSIVE_POLICY,
    STRICT_POLICY,
    InvalidTransitionError,
    TransitionPolicy,
)


class TestPermissivePolicy:
    """Tests for the default policy."""

    def test_every_transition_allowed(self):
        for source in TaskState:
            for target in TaskState:
                assert PERMISSIVE_POLICY.can_transition(source, target)

    def test_is_permissive(self):
        assert PERMISSIVE_POLICY.is_permissive is True


class TestStrictPolicy:
    """Tests for the linear workflow policy."""

    def test_forward_flow(self):
        assert STRICT_POLICY.can_transition(TaskState.PENDING, TaskState.IN_PROGRESS)
        assert STRICT_POLICY.can_transition(TaskState.IN_PROGRESS, TaskState.IN_REVIEW)
        assert STRICT_POLICY.can_transition(TaskState.IN_REVIEW, TaskState.COMPLETED)

    def test_cannot_skip_review(self):
        assert not STRICT_POLICY.can_transition(TaskState.PENDING, TaskState.COMPLETED)

    def test_blocked_reachable_from_non_terminal(self):
        for state in (TaskState.PENDING, TaskState.IN_PROGRESS, TaskState.IN_REVIEW):
            assert STRICT_POLICY.can_transition(state, TaskState.BLOCKED)
        assert not STRICT_POLICY.can_transition(TaskState.COMPLETED, TaskState.BLOCKED)

    def test_blocked_returns_anywhere(self):
        assert set(STRICT_POLICY.targets(TaskState.BLOCKED)) == set(TaskState)

    def test_same_state_always_allowed(self):
        assert STRICT_POLICY.can_transition(TaskState.COMPLETED, TaskState.COMPLETED)

    def test_validate_raises(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            STRICT_POLICY.validate(TaskState.PENDING, TaskState.COMPLETED)

        assert exc_info.value.source == TaskState.PENDING
        assert exc_info.value.target == TaskState.COMPLETED


def test_custom_policy():
    """Test a hand-written transition table."""
    policy = TransitionPolicy({(TaskState.PENDING, TaskState.IN_PROGRESS)})

    assert policy.can_transition(TaskState.PENDING, TaskState.IN_PROGRESS)
    assert not policy.can_transition(TaskState.IN_PROGRESS, TaskState.PENDING)
    assert policy.is_permissive is False
