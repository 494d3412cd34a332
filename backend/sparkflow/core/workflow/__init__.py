"""
SparkPro Studio Workflow - Workflow Core
========================================

Project workflow state machine: role catalog, status lattice, transition
policy, assignment engine, timeline projection and design timer.
"""

from sparkflow.core.workflow.context import Actor, WorkflowContext
from sparkflow.core.workflow.engine import (
    AssignmentEngine,
    AvailableActions,
    TransitionGate,
    TransitionResult,
)
from sparkflow.core.workflow.errors import (
    ConcurrentModificationError,
    DuplicateProjectCode,
    EmptyAssigneePool,
    IneligibleAssignee,
    IntegrityViolation,
    InvalidTransition,
    PersistenceError,
    ProjectNotFound,
    TimeTrackingError,
    Unauthorized,
    WorkflowError,
)
from sparkflow.core.workflow.policy import (
    STATE_TABLE,
    STATUS_ACTIONS,
    can_assign,
    get_next_assignees,
    next_status_for_assignment,
)
from sparkflow.core.workflow.roles import ROLE_CATALOG, role_info, role_label
from sparkflow.core.workflow.statuses import (
    STATUS_ORDER,
    StatusColor,
    status_color,
    status_label,
)
from sparkflow.core.workflow.store import SqlAlchemyWorkflowStore, WorkflowStore
from sparkflow.core.workflow.time_tracking import DesignTimer, TimerState
from sparkflow.core.workflow.timeline import (
    ProjectHistory,
    ProjectTimeline,
    TimelineEntry,
    build_timeline,
    is_history_consistent,
)

__all__ = [
    # Context
    "Actor",
    "WorkflowContext",
    # Engine
    "AssignmentEngine",
    "AvailableActions",
    "TransitionGate",
    "TransitionResult",
    # Errors
    "ConcurrentModificationError",
    "DuplicateProjectCode",
    "EmptyAssigneePool",
    "IneligibleAssignee",
    "IntegrityViolation",
    "InvalidTransition",
    "PersistenceError",
    "ProjectNotFound",
    "TimeTrackingError",
    "Unauthorized",
    "WorkflowError",
    # Policy
    "STATE_TABLE",
    "STATUS_ACTIONS",
    "can_assign",
    "get_next_assignees",
    "next_status_for_assignment",
    # Roles / statuses
    "ROLE_CATALOG",
    "role_info",
    "role_label",
    "STATUS_ORDER",
    "StatusColor",
    "status_color",
    "status_label",
    # Store
    "SqlAlchemyWorkflowStore",
    "WorkflowStore",
    # Timer / timeline
    "DesignTimer",
    "TimerState",
    "ProjectHistory",
    "ProjectTimeline",
    "TimelineEntry",
    "build_timeline",
    "is_history_consistent",
]
