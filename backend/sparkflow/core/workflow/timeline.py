"""
Timeline Projection - read-only history of a project's transitions.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from uuid import UUID

from sparkflow.core.config import settings
from sparkflow.core.models import Project, User, WorkflowAction, WorkflowStatus, WorkflowStep
from sparkflow.core.workflow.statuses import StatusColor, status_color, status_label
from sparkflow.core.workflow.store import WorkflowStore, as_utc


@dataclass
class TimelineEntry:
    """One rendered workflow step."""
    sequence: int
    action: WorkflowAction
    from_status: Optional[WorkflowStatus]
    to_status: WorkflowStatus
    status_label: str
    status_color: StatusColor
    assigned_to_id: Optional[UUID]
    assigned_to_name: Optional[str]
    assigned_by_id: Optional[UUID]
    assigned_by_name: Optional[str]
    occurred_at: datetime
    notes: Optional[str] = None


@dataclass
class ProjectHistory:
    project: Project
    entries: list[TimelineEntry] = field(default_factory=list)
    consistent: bool = True


def _step_order(step: WorkflowStep) -> tuple[datetime, int]:
    return as_utc(step.occurred_at), step.sequence


def _resolve(user_id: Optional[UUID], names: dict[UUID, str], unknown_label: str) -> Optional[str]:
    if user_id is None:
        return None
    return names.get(user_id, unknown_label)


def build_timeline(
    steps: Iterable[WorkflowStep],
    users: Iterable[User],
    unknown_label: Optional[str] = None,
) -> list[TimelineEntry]:
    """
    Render workflow steps oldest first.

    Actor names come from `users`; ids that are not among them (deleted or
    deactivated accounts) render as the unknown-user label. Steps without an
    assignee (intake) keep a None name.
    """
    if unknown_label is None:
        unknown_label = settings.UNKNOWN_USER_LABEL

    names = {user.id: user.name for user in users if user.is_active}

    return [
        TimelineEntry(
            sequence=step.sequence,
            action=step.action,
            from_status=step.from_status,
            to_status=step.to_status,
            status_label=status_label(step.to_status),
            status_color=status_color(step.to_status),
            assigned_to_id=step.assigned_to_id,
            assigned_to_name=_resolve(step.assigned_to_id, names, unknown_label),
            assigned_by_id=step.assigned_by_id,
            assigned_by_name=_resolve(step.assigned_by_id, names, unknown_label),
            occurred_at=as_utc(step.occurred_at),
            notes=step.notes,
        )
        for step in sorted(steps, key=_step_order)
    ]


def is_history_consistent(project: Project, steps: Iterable[WorkflowStep]) -> bool:
    """True if the latest step leads to the project's current status."""
    ordered = sorted(steps, key=_step_order)
    if not ordered:
        return False
    return ordered[-1].to_status == project.status


class ProjectTimeline:
    """Loads a project's history from the store and renders it."""

    def __init__(self, store: WorkflowStore, unknown_label: Optional[str] = None):
        self.store = store
        self.unknown_label = unknown_label or settings.UNKNOWN_USER_LABEL

    async def for_project(self, project_code: str) -> ProjectHistory:
        project = await self.store.read_project(project_code)
        steps = await self.store.list_workflow_steps(project.id)
        users = await self.store.list_active_users()

        return ProjectHistory(
            project=project,
            entries=build_timeline(steps, users, self.unknown_label),
            consistent=is_history_consistent(project, steps),
        )
