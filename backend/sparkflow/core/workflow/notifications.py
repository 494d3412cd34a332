"""
Workflow notifications - message templates for transition side effects.
"""

from dataclasses import dataclass, field
from typing import Optional

from sparkflow.core.models import NotificationType, WorkflowStatus
from sparkflow.core.workflow.statuses import (
    APPROVAL_STATUSES,
    REVISION_STATUSES,
    status_label,
)


@dataclass
class NotificationDraft:
    """Notification payload before it is stored."""
    type: NotificationType
    title: str
    message: str
    payload: dict = field(default_factory=dict)


def notification_type_for(status: WorkflowStatus) -> NotificationType:
    """Category of the notification raised when a project enters `status`."""
    if status in REVISION_STATUSES:
        return NotificationType.REVISION
    if status in APPROVAL_STATUSES:
        return NotificationType.APPROVAL
    if status == WorkflowStatus.COMPLETED:
        return NotificationType.COMPLETION
    return NotificationType.ASSIGNMENT


def _with_notes(message: str, notes: Optional[str]) -> str:
    if notes:
        return f"{message}\nNotes: {notes}"
    return message


class NotificationTemplates:
    """Templates for notifications raised by the assignment engine."""

    @staticmethod
    def assignment(
        project_code: str,
        status: WorkflowStatus,
        assigned_by: str,
        notes: Optional[str] = None,
    ) -> NotificationDraft:
        return NotificationDraft(
            type=NotificationType.ASSIGNMENT,
            title=f"New assignment: {project_code}",
            message=_with_notes(
                f"{assigned_by} assigned project {project_code} to you ({status_label(status)}).",
                notes,
            ),
            payload={
                "project_code": project_code,
                "status": status.value,
            },
        )

    @staticmethod
    def status_changed(
        project_code: str,
        from_status: WorkflowStatus,
        to_status: WorkflowStatus,
        changed_by: str,
        notes: Optional[str] = None,
    ) -> NotificationDraft:
        kind = notification_type_for(to_status)
        titles = {
            NotificationType.REVISION: f"Revision needed: {project_code}",
            NotificationType.APPROVAL: f"Approved: {project_code}",
            NotificationType.COMPLETION: f"Completed: {project_code}",
            NotificationType.ASSIGNMENT: f"Status update: {project_code}",
        }
        return NotificationDraft(
            type=kind,
            title=titles[kind],
            message=_with_notes(
                f"{changed_by} moved project {project_code} from "
                f"{status_label(from_status)} to {status_label(to_status)}.",
                notes,
            ),
            payload={
                "project_code": project_code,
                "from_status": from_status.value,
                "status": to_status.value,
            },
        )
