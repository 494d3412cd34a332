"""
Assignment Engine - executes workflow transitions.

Every mutation follows the same order:

1. Read the project and its assignee, verify the assignee may hold the status.
2. Reject terminal projects and stale callers (expected_status).
3. Authorize through the transition policy.
4. Persist status/assignee in one conditional write.
5. Append the workflow step and raise the notification.

Steps 1-4 either fail loudly or commit. Step 5 runs after the state change
is durable; its failures are logged and returned as warnings.
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

import structlog

from sparkflow.core.config import settings
from sparkflow.core.models import (
    Notification,
    Project,
    User,
    WorkflowAction,
    WorkflowStatus,
    WorkflowStep,
)
from sparkflow.core.workflow.context import Actor, WorkflowContext
from sparkflow.core.workflow.errors import (
    ConcurrentModificationError,
    IntegrityViolation,
    InvalidTransition,
    PersistenceError,
    Unauthorized,
)
from sparkflow.core.workflow.notifications import NotificationDraft, NotificationTemplates
from sparkflow.core.workflow.policy import (
    authorize_assignment,
    authorize_status_update,
    available_status_updates,
    can_assign,
    check_assignee_integrity,
    get_next_assignees,
    next_status_for_assignment,
    validate_assignee,
)
from sparkflow.core.workflow.roles import can_open_projects, role_label
from sparkflow.core.workflow.statuses import is_revision, is_terminal
from sparkflow.core.workflow.store import WorkflowStore

logger = structlog.get_logger()


# ==========================================================================
# In-flight guard
# ==========================================================================

class TransitionGate:
    """
    Rejects a second transition on a project while one is running.

    Scoped to one process; the conditional write in the store covers
    everything else.
    """

    def __init__(self):
        self._in_flight: set[str] = set()

    def is_busy(self, project_code: str) -> bool:
        return project_code in self._in_flight

    @asynccontextmanager
    async def hold(self, project_code: str):
        if project_code in self._in_flight:
            raise ConcurrentModificationError(
                project_code,
                message=f"A transition on project {project_code} is already in progress",
            )
        self._in_flight.add(project_code)
        try:
            yield
        finally:
            self._in_flight.discard(project_code)


# ==========================================================================
# Results
# ==========================================================================

@dataclass
class TransitionResult:
    """Outcome of a committed transition."""
    project: Project
    action: WorkflowAction
    from_status: Optional[WorkflowStatus]
    to_status: WorkflowStatus
    step: Optional[WorkflowStep] = None
    notification: Optional[Notification] = None
    warnings: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.from_status != self.to_status


@dataclass
class AvailableActions:
    """What the current actor may do with a project right now."""
    project_code: str
    status: WorkflowStatus
    is_assignee: bool
    can_assign: bool
    assignment_target: Optional[WorkflowStatus]
    assignees: list[User] = field(default_factory=list)
    status_targets: list[WorkflowStatus] = field(default_factory=list)

    @property
    def assignment_available(self) -> bool:
        return self.can_assign and bool(self.assignees)


# ==========================================================================
# Engine
# ==========================================================================

class AssignmentEngine:
    """
    Executes assignments and status updates for one actor.

    Build one per request:

        engine = AssignmentEngine(SqlAlchemyWorkflowStore(db), WorkflowContext.for_user(user))
        result = await engine.assign("SP-00001", cs_user.id)
    """

    def __init__(
        self,
        store: WorkflowStore,
        context: WorkflowContext,
        gate: Optional[TransitionGate] = None,
        notifications_enabled: Optional[bool] = None,
    ):
        self.store = store
        self.context = context
        self.gate = gate if gate is not None else TransitionGate()
        if notifications_enabled is None:
            notifications_enabled = settings.NOTIFICATIONS_ENABLED
        self.notifications_enabled = notifications_enabled

    # ======================================================================
    # Intake
    # ======================================================================

    async def open_project(
        self,
        creative_type: str,
        brief: str,
        deadline: datetime,
        client_name: Optional[str] = None,
        client_email: Optional[str] = None,
        project_code: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> TransitionResult:
        """Create a project at intake and record its first workflow step."""
        actor = self.context.require_actor()
        if not can_open_projects(actor.role):
            raise Unauthorized(f"{role_label(actor.role)} may not open projects")

        if project_code is None:
            project_code = await self.store.next_project_code()

        project = await self.store.create_project(
            project_code=project_code,
            creative_type=creative_type,
            brief=brief,
            deadline=deadline,
            client_name=client_name,
            client_email=client_email,
            status=WorkflowStatus.INTAKE,
            assignee_id=None,
        )

        logger.info(
            "Project opened",
            project_code=project_code,
            creative_type=creative_type,
            actor=str(actor.id),
        )

        return await self._record(
            project,
            actor,
            action=WorkflowAction.INTAKE,
            from_status=None,
            assigned_to_id=None,
            notes=notes,
            draft=None,
            recipient_id=None,
        )

    # ======================================================================
    # Transitions
    # ======================================================================

    async def assign(
        self,
        project_code: str,
        assignee_id: UUID,
        notes: Optional[str] = None,
        expected_status: Optional[WorkflowStatus] = None,
    ) -> TransitionResult:
        """
        Hand a project to the next person in the pipeline.

        Moves the project to the assignment target of its current status
        (or keeps the status where no forward move exists) and notifies the
        new assignee.
        """
        actor = self.context.require_actor()

        async with self.gate.hold(project_code):
            project, _ = await self._load(project_code)
            current = project.status

            self._reject_terminal(project)
            self._check_expected(project, expected_status)
            authorize_assignment(actor, current, project_code)

            pool = get_next_assignees(current, await self.store.list_active_users())
            assignee = next((user for user in pool if user.id == assignee_id), None)
            validate_assignee(current, assignee, pool, project_code)

            target = next_status_for_assignment(current)
            patch = self._status_patch(project, target)
            patch["assignee_id"] = assignee.id

            updated = await self.store.update_project(project_code, patch, expected_status=current)

            logger.info(
                "Project assigned",
                project_code=project_code,
                from_status=current.value,
                to_status=target.value,
                actor=str(actor.id),
                assignee=str(assignee.id),
            )

            draft = NotificationTemplates.assignment(project_code, target, actor.name, notes)
            return await self._record(
                updated,
                actor,
                action=WorkflowAction.ASSIGN,
                from_status=current,
                assigned_to_id=assignee.id,
                notes=notes,
                draft=draft,
                recipient_id=assignee.id,
            )

    async def update_status(
        self,
        project_code: str,
        new_status: WorkflowStatus,
        notes: Optional[str] = None,
        expected_status: Optional[WorkflowStatus] = None,
    ) -> TransitionResult:
        """
        Move a project to `new_status` without changing its assignee.

        Setting the current status again is allowed for the assignee and
        only appends history and a notification.
        """
        actor = self.context.require_actor()

        async with self.gate.hold(project_code):
            project, _ = await self._load(project_code)
            current = project.status

            self._reject_terminal(project, new_status)
            self._check_expected(project, expected_status)
            authorize_status_update(actor, current, project.assignee_id, new_status, project_code)

            patch = self._status_patch(project, new_status)
            updated = await self.store.update_project(project_code, patch, expected_status=current)

            logger.info(
                "Project status updated",
                project_code=project_code,
                from_status=current.value,
                to_status=new_status.value,
                actor=str(actor.id),
                assignee=str(updated.assignee_id) if updated.assignee_id else None,
            )

            recipient_id = updated.assignee_id if updated.assignee_id is not None else actor.id
            draft = NotificationTemplates.status_changed(
                project_code, current, new_status, actor.name, notes
            )
            return await self._record(
                updated,
                actor,
                action=WorkflowAction.STATUS_UPDATE,
                from_status=current,
                assigned_to_id=updated.assignee_id,
                notes=notes,
                draft=draft,
                recipient_id=recipient_id,
            )

    # ======================================================================
    # Queries
    # ======================================================================

    async def available_actions(self, project_code: str) -> AvailableActions:
        """Controls the current actor should be offered for a project."""
        actor = self.context.require_actor()
        project, _ = await self._load(project_code)
        current = project.status

        if is_terminal(current):
            return AvailableActions(
                project_code=project_code,
                status=current,
                is_assignee=project.assignee_id == actor.id,
                can_assign=False,
                assignment_target=None,
            )

        allowed = can_assign(current, actor.role)
        assignees: list[User] = []
        if allowed:
            assignees = get_next_assignees(current, await self.store.list_active_users())

        return AvailableActions(
            project_code=project_code,
            status=current,
            is_assignee=project.assignee_id == actor.id,
            can_assign=allowed,
            assignment_target=next_status_for_assignment(current) if allowed else None,
            assignees=assignees,
            status_targets=available_status_updates(current, project.assignee_id, actor),
        )

    async def assignee_pool(self, project_code: str) -> list[User]:
        """Eligible assignees for a project's current status (may be empty)."""
        self.context.require_actor()
        project = await self.store.read_project(project_code)
        return get_next_assignees(project.status, await self.store.list_active_users())

    # ======================================================================
    # Internals
    # ======================================================================

    async def _load(self, project_code: str) -> tuple[Project, Optional[User]]:
        """Fresh project read plus its assignee, integrity-checked."""
        project = await self.store.read_project(project_code)

        assignee = None
        if project.assignee_id is not None:
            assignee = await self.store.get_user(project.assignee_id)
            if assignee is None:
                raise IntegrityViolation(
                    f"Project {project_code} is assigned to unknown user {project.assignee_id}",
                    project_code,
                )

        check_assignee_integrity(project.status, assignee, project_code)
        return project, assignee

    @staticmethod
    def _reject_terminal(project: Project, target: Optional[WorkflowStatus] = None) -> None:
        if is_terminal(project.status):
            raise InvalidTransition(
                project.project_code,
                project.status,
                target,
                reason="project is completed",
            )

    @staticmethod
    def _check_expected(project: Project, expected_status: Optional[WorkflowStatus]) -> None:
        if expected_status is not None and project.status != expected_status:
            raise ConcurrentModificationError(
                project.project_code,
                expected_status,
                project.status,
            )

    @staticmethod
    def _status_patch(project: Project, target: WorkflowStatus) -> dict[str, Any]:
        patch: dict[str, Any] = {"status": target}
        if target != project.status and is_revision(target):
            patch["revision_count"] = project.revision_count + 1
        return patch

    async def _record(
        self,
        project: Project,
        actor: Actor,
        action: WorkflowAction,
        from_status: Optional[WorkflowStatus],
        assigned_to_id: Optional[UUID],
        notes: Optional[str],
        draft: Optional[NotificationDraft],
        recipient_id: Optional[UUID],
    ) -> TransitionResult:
        """Append history and notify; the state change is already committed."""
        project_code, project_id, to_status = project.project_code, project.id, project.status
        result = TransitionResult(
            project=project,
            action=action,
            from_status=from_status,
            to_status=to_status,
        )

        try:
            result.step = await self.store.append_workflow_step(
                project_id=project_id,
                action=action,
                from_status=from_status,
                to_status=to_status,
                assigned_to_id=assigned_to_id,
                assigned_by_id=actor.id,
                notes=notes,
            )
        except PersistenceError as e:
            logger.warning(
                "Workflow step not recorded",
                project_code=project_code,
                to_status=to_status.value,
                error=e.message,
            )
            result.warnings.append(f"History not recorded: {e.message}")

        if draft is not None and recipient_id is not None and self.notifications_enabled:
            try:
                result.notification = await self.store.create_notification(
                    user_id=recipient_id,
                    type=draft.type,
                    title=draft.title,
                    message=draft.message,
                    payload=draft.payload,
                )
            except PersistenceError as e:
                logger.warning(
                    "Notification not sent",
                    project_code=project_code,
                    recipient=str(recipient_id),
                    error=e.message,
                )
                result.warnings.append(f"Notification not sent: {e.message}")

        if result.warnings:
            # A failed write rolls the session back, which expires loaded rows.
            try:
                result.project = await self.store.read_project(project_code)
            except PersistenceError as e:
                logger.warning("Project reload failed", project_code=project_code, error=e.message)

        return result
