"""Process task board - Kanban ordering and Gantt timeline for accounting processes."""

__version__ = "0.1.0"

from taskboard.board import BoardController, MoveOutcome, MovePlan
from taskboard.client import (
    AuthenticationError,
    NotFoundError,
    ProcessStoreClient,
    RateLimitError,
    StoreAPIError,
)
from taskboard.config import configure_logging, get_settings
from taskboard.editor import TaskDraft, TaskEditor, validate_draft
from taskboard.models import (
    BOARD_COLUMNS,
    ChecklistItem,
    Comment,
    Process,
    ProcessState,
    ProcessType,
    Task,
    TaskPriority,
    TaskState,
    TaskValidationError,
)
from taskboard.ordering import ORDER_GAP, Anchor, compute_order
from taskboard.store import TaskStore
from taskboard.timeline import TimelineConfig, TimelineLayout, bar_geometry, layout
from taskboard.workflow import (
    PERMISSIVE_POLICY,
    STRICT_POLICY,
    InvalidTransitionError,
    TransitionPolicy,
)

__all__ = [
    # Version
    "__version__",
    # Data model
    "Task",
    "TaskState",
    "TaskPriority",
    "ChecklistItem",
    "Comment",
    "Process",
    "ProcessState",
    "ProcessType",
    "TaskValidationError",
    "BOARD_COLUMNS",
    # Ordering
    "ORDER_GAP",
    "Anchor",
    "compute_order",
    # Board
    "TaskStore",
    "BoardController",
    "MovePlan",
    "MoveOutcome",
    # Workflow
    "TransitionPolicy",
    "PERMISSIVE_POLICY",
    "STRICT_POLICY",
    "InvalidTransitionError",
    # Timeline
    "layout",
    "bar_geometry",
    "TimelineConfig",
    "TimelineLayout",
    # Editor
    "TaskEditor",
    "TaskDraft",
    "validate_draft",
    # Store client
    "ProcessStoreClient",
    "StoreAPIError",
    "AuthenticationError",
    "NotFoundError",
    "RateLimitError",
    # Config
    "get_settings",
    "configure_logging",
]
