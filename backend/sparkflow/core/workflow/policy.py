"""
Transition Policy - who may move a project, where to, and to whom.

Everything the board, the assignment dialog and the status buttons need is
derived from two tables:

- STATE_TABLE: per status, the roles allowed to assign, the role pool that
  receives the project, the status an assignment forwards to, and the roles
  allowed to hold the project while it sits in that status.
- STATUS_ACTIONS: direct status changes (no reassignment), each gated on the
  actor's role and on the actor being the current assignee.

All functions here are pure. The engine calls the authorize_* helpers before
writing anything; the API calls the query helpers to decide which controls
to offer.
"""

import enum
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from sparkflow.core.models import User, UserRole, WorkflowStatus
from sparkflow.core.workflow.context import Actor
from sparkflow.core.workflow.errors import (
    EmptyAssigneePool,
    IneligibleAssignee,
    IntegrityViolation,
    InvalidTransition,
    Unauthorized,
)
from sparkflow.core.workflow.roles import is_super_role, role_label
from sparkflow.core.workflow.statuses import is_terminal, stage_index


@dataclass(frozen=True)
class StatusRule:
    """Assignment rules for one status."""
    actor_roles: frozenset[UserRole] = frozenset()
    pool_roles: frozenset[UserRole] = frozenset()
    assignment_target: Optional[WorkflowStatus] = None
    holder_roles: frozenset[UserRole] = frozenset()


def _roles(*roles: UserRole) -> frozenset[UserRole]:
    return frozenset(roles)


# Client-facing statuses stay with the client-servicing side.
_CLIENT_FACING = _roles(UserRole.LEAD, UserRole.CS)

STATE_TABLE: dict[WorkflowStatus, StatusRule] = {
    WorkflowStatus.INTAKE: StatusRule(
        actor_roles=_roles(UserRole.LEAD),
        pool_roles=_roles(UserRole.CS),
        assignment_target=WorkflowStatus.ASSIGNED_TO_CS,
        holder_roles=_roles(UserRole.LEAD),
    ),
    WorkflowStatus.ASSIGNED_TO_CS: StatusRule(
        actor_roles=_roles(UserRole.CS),
        pool_roles=_roles(UserRole.DESIGN_HEAD),
        assignment_target=WorkflowStatus.ASSIGNED_TO_DESIGN_HEAD,
        holder_roles=_roles(UserRole.CS),
    ),
    WorkflowStatus.ASSIGNED_TO_DESIGN_HEAD: StatusRule(
        actor_roles=_roles(UserRole.DESIGN_HEAD),
        pool_roles=_roles(UserRole.DESIGNER),
        assignment_target=WorkflowStatus.ASSIGNED_TO_DESIGNER,
        holder_roles=_roles(UserRole.DESIGN_HEAD),
    ),
    WorkflowStatus.ASSIGNED_TO_DESIGNER: StatusRule(
        assignment_target=WorkflowStatus.IN_DESIGN,
        holder_roles=_roles(UserRole.DESIGNER),
    ),
    WorkflowStatus.IN_DESIGN: StatusRule(
        pool_roles=_roles(UserRole.QC),
        holder_roles=_roles(UserRole.DESIGNER, UserRole.QC),
    ),
    WorkflowStatus.DESIGN_COMPLETE: StatusRule(
        actor_roles=_roles(UserRole.QC),
        pool_roles=_roles(UserRole.QC),
        holder_roles=_roles(UserRole.DESIGNER, UserRole.QC),
    ),
    WorkflowStatus.IN_QC: StatusRule(
        actor_roles=_roles(UserRole.QC),
        holder_roles=_roles(UserRole.QC),
    ),
    WorkflowStatus.QC_APPROVED: StatusRule(
        # Lead is the senior CS role and takes the project back to the client.
        pool_roles=_roles(UserRole.CS, UserRole.LEAD),
        holder_roles=_roles(UserRole.QC, UserRole.CS, UserRole.LEAD),
    ),
    WorkflowStatus.QC_REVISION_NEEDED: StatusRule(
        pool_roles=_roles(UserRole.DESIGNER),
        assignment_target=WorkflowStatus.IN_DESIGN,
        holder_roles=_roles(UserRole.QC),
    ),
    WorkflowStatus.SENT_TO_CLIENT: StatusRule(
        holder_roles=_CLIENT_FACING,
    ),
    WorkflowStatus.CLIENT_APPROVED: StatusRule(
        holder_roles=_CLIENT_FACING,
    ),
    # Only Admin can move a project on from here; client revisions have no handoff.
    WorkflowStatus.REVISION_REQUESTED: StatusRule(
        holder_roles=_CLIENT_FACING,
    ),
    WorkflowStatus.COMPLETED: StatusRule(
        holder_roles=_CLIENT_FACING,
    ),
}


class Guard(str, enum.Enum):
    """How a status action combines the role and assignee checks."""
    ROLE_AND_ASSIGNEE = "role_and_assignee"
    ROLE_OR_ASSIGNEE = "role_or_assignee"


@dataclass(frozen=True)
class StatusAction:
    """A direct status change available to one role."""
    source: WorkflowStatus
    targets: frozenset[WorkflowStatus]
    role: UserRole
    label: str
    guard: Guard = Guard.ROLE_AND_ASSIGNEE

    def permits(self, actor: Actor, assignee_id: Optional[UUID]) -> bool:
        has_role = actor.role == self.role
        is_assignee = assignee_id is not None and actor.id == assignee_id
        if self.guard == Guard.ROLE_OR_ASSIGNEE:
            return has_role or is_assignee
        return has_role and is_assignee


STATUS_ACTIONS: tuple[StatusAction, ...] = (
    StatusAction(
        source=WorkflowStatus.ASSIGNED_TO_DESIGNER,
        targets=frozenset({WorkflowStatus.IN_DESIGN}),
        role=UserRole.DESIGNER,
        label="Start Design",
    ),
    StatusAction(
        source=WorkflowStatus.IN_DESIGN,
        targets=frozenset({WorkflowStatus.DESIGN_COMPLETE}),
        role=UserRole.DESIGNER,
        label="Mark Complete",
    ),
    StatusAction(
        source=WorkflowStatus.DESIGN_COMPLETE,
        targets=frozenset({
            WorkflowStatus.IN_QC,
            WorkflowStatus.QC_APPROVED,
            WorkflowStatus.QC_REVISION_NEEDED,
        }),
        role=UserRole.QC,
        label="Review Design",
    ),
    StatusAction(
        source=WorkflowStatus.IN_QC,
        targets=frozenset({
            WorkflowStatus.QC_APPROVED,
            WorkflowStatus.QC_REVISION_NEEDED,
        }),
        role=UserRole.QC,
        label="Finish Review",
    ),
    StatusAction(
        source=WorkflowStatus.QC_APPROVED,
        targets=frozenset({WorkflowStatus.SENT_TO_CLIENT}),
        role=UserRole.LEAD,
        label="Send to Client",
    ),
    StatusAction(
        source=WorkflowStatus.SENT_TO_CLIENT,
        targets=frozenset({
            WorkflowStatus.CLIENT_APPROVED,
            WorkflowStatus.REVISION_REQUESTED,
        }),
        role=UserRole.LEAD,
        label="Record Client Feedback",
    ),
    StatusAction(
        source=WorkflowStatus.CLIENT_APPROVED,
        targets=frozenset({WorkflowStatus.COMPLETED}),
        role=UserRole.LEAD,
        label="Mark as Completed",
        guard=Guard.ROLE_OR_ASSIGNEE,
    ),
)


# ==========================================================================
# Queries
# ==========================================================================

def can_assign(status: WorkflowStatus, role: UserRole) -> bool:
    """True if `role` may hand a project at `status` to someone else."""
    if is_super_role(role):
        return True
    return role in STATE_TABLE[status].actor_roles


def assignee_pool_roles(status: WorkflowStatus) -> frozenset[UserRole]:
    return STATE_TABLE[status].pool_roles


def get_next_assignees(status: WorkflowStatus, users: Iterable[User]) -> list[User]:
    """Active users eligible to receive a project at `status`, sorted by name."""
    pool = STATE_TABLE[status].pool_roles
    if not pool:
        return []
    eligible = [user for user in users if user.is_active and user.role in pool]
    return sorted(eligible, key=lambda user: (user.name.lower(), str(user.id)))


def next_status_for_assignment(status: WorkflowStatus) -> WorkflowStatus:
    """Status a project moves to when assigned; unmapped statuses stay put."""
    target = STATE_TABLE[status].assignment_target
    return target if target is not None else status


def status_actions_for(status: WorkflowStatus) -> list[StatusAction]:
    return [action for action in STATUS_ACTIONS if action.source == status]


def available_status_updates(
    status: WorkflowStatus,
    assignee_id: Optional[UUID],
    actor: Actor,
) -> list[WorkflowStatus]:
    """Targets the actor may set directly, in display order."""
    targets: set[WorkflowStatus] = set()
    for action in status_actions_for(status):
        if action.permits(actor, assignee_id):
            targets |= action.targets
    return sorted(targets, key=stage_index)


# ==========================================================================
# Guards
# ==========================================================================

def authorize_assignment(
    actor: Actor,
    status: WorkflowStatus,
    project_code: Optional[str] = None,
) -> None:
    """Raise unless `actor` may reassign a project sitting at `status`."""
    if is_terminal(status):
        raise InvalidTransition(project_code, status, reason="project is completed")
    if not can_assign(status, actor.role):
        raise Unauthorized(
            f"{role_label(actor.role)} may not assign projects at '{status.value}'",
            project_code,
        )


def validate_assignee(
    status: WorkflowStatus,
    assignee: Optional[User],
    pool: list[User],
    project_code: Optional[str] = None,
) -> None:
    """Raise unless `assignee` is in the (non-empty) pool for `status`."""
    if not pool:
        raise EmptyAssigneePool(project_code, status)
    if assignee is None or assignee.id not in {user.id for user in pool}:
        roles = ", ".join(sorted(role_label(role) for role in assignee_pool_roles(status)))
        raise IneligibleAssignee(
            f"Project {project_code} at '{status.value}' can only be assigned to: {roles}",
            project_code,
        )


def authorize_status_update(
    actor: Actor,
    status: WorkflowStatus,
    assignee_id: Optional[UUID],
    target: WorkflowStatus,
    project_code: Optional[str] = None,
) -> None:
    """
    Raise unless `actor` may move a project from `status` to `target`.

    Re-recording the current status is allowed for the assignee and Admin
    on any non-terminal status; it only appends history.
    """
    if is_terminal(status):
        raise InvalidTransition(project_code, status, target, reason="project is completed")

    if target == status:
        if actor.id == assignee_id or is_super_role(actor.role):
            return
        raise Unauthorized(
            f"Only the current assignee may update project {project_code}",
            project_code,
        )

    candidates = [action for action in status_actions_for(status) if target in action.targets]
    if not candidates:
        raise InvalidTransition(project_code, status, target, reason="no status action leads there")

    if not any(action.permits(actor, assignee_id) for action in candidates):
        raise Unauthorized(
            f"{role_label(actor.role)} may not move project {project_code} "
            f"from '{status.value}' to '{target.value}'",
            project_code,
        )


def check_assignee_integrity(
    status: WorkflowStatus,
    assignee: Optional[User],
    project_code: Optional[str] = None,
) -> None:
    """Raise IntegrityViolation if `assignee` may not hold a project at `status`."""
    if assignee is None:
        if status == WorkflowStatus.INTAKE:
            return
        raise IntegrityViolation(
            f"Project {project_code} has no assignee at '{status.value}'",
            project_code,
        )
    if assignee.role not in STATE_TABLE[status].holder_roles:
        raise IntegrityViolation(
            f"Project {project_code} is held by a {role_label(assignee.role)} "
            f"at '{status.value}', which the workflow never allows",
            project_code,
        )
