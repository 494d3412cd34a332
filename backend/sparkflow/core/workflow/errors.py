"""
Workflow errors.

Every failure the workflow core can report derives from WorkflowError so the
API layer can map the whole family to HTTP responses in one handler.
"""

from typing import Optional

from sparkflow.core.models import WorkflowStatus


class WorkflowError(Exception):
    """Base class for workflow failures."""

    code = "WORKFLOW_ERROR"

    def __init__(self, message: str, project_code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.project_code = project_code


class Unauthorized(WorkflowError):
    """Actor's role or identity does not satisfy the transition policy."""

    code = "UNAUTHORIZED_TRANSITION"


class ProjectNotFound(WorkflowError):
    code = "PROJECT_NOT_FOUND"

    def __init__(self, project_code: str):
        super().__init__(f"Project {project_code} not found", project_code)


class InvalidTransition(WorkflowError):
    """Target status is not reachable from the current status."""

    code = "INVALID_TRANSITION"

    def __init__(
        self,
        project_code: Optional[str],
        current: WorkflowStatus,
        target: Optional[WorkflowStatus] = None,
        reason: Optional[str] = None,
    ):
        msg = f"Cannot move project {project_code} out of '{current.value}'"
        if target is not None:
            msg = f"Cannot move project {project_code} from '{current.value}' to '{target.value}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg, project_code)
        self.current_status = current
        self.target_status = target
        self.reason = reason


class EmptyAssigneePool(WorkflowError):
    """No active user holds the role that receives the project next."""

    code = "ASSIGNMENT_UNAVAILABLE"

    def __init__(self, project_code: Optional[str], status: WorkflowStatus):
        super().__init__(
            f"No eligible assignees for project {project_code} at '{status.value}'",
            project_code,
        )
        self.status = status


class IneligibleAssignee(WorkflowError):
    """Requested assignee is not in the pool for the current status."""

    code = "INELIGIBLE_ASSIGNEE"


class ConcurrentModificationError(WorkflowError):
    """Stored status diverged from the status the caller acted on."""

    code = "CONCURRENT_MODIFICATION"

    def __init__(
        self,
        project_code: str,
        expected: Optional[WorkflowStatus] = None,
        actual: Optional[WorkflowStatus] = None,
        message: Optional[str] = None,
    ):
        if message is None:
            message = f"Project {project_code} changed, please refresh"
            if expected is not None and actual is not None:
                message += f" (expected '{expected.value}', found '{actual.value}')"
        super().__init__(message, project_code)
        self.expected_status = expected
        self.actual_status = actual


class IntegrityViolation(WorkflowError):
    """Stored assignee is not allowed to hold the project's current status."""

    code = "DATA_INTEGRITY"


class TimeTrackingError(WorkflowError):
    code = "TIME_TRACKING"


class PersistenceError(WorkflowError):
    """Backing store read or write failed."""

    code = "PERSISTENCE_ERROR"


class DuplicateProjectCode(WorkflowError):
    code = "DUPLICATE_PROJECT_CODE"

    def __init__(self, project_code: str):
        super().__init__(f"Project code {project_code} is already in use", project_code)
