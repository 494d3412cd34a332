"""
Role Catalog - display metadata and permission predicates per studio role.
"""

from dataclasses import dataclass, field

from sparkflow.core.models import UserRole


@dataclass(frozen=True)
class RoleInfo:
    """Static description of a studio role."""
    role: UserRole
    label: str
    title: str
    description: str
    responsibilities: tuple[str, ...] = field(default_factory=tuple)
    receives_assignments: bool = True


ROLE_CATALOG: dict[UserRole, RoleInfo] = {
    UserRole.ADMIN: RoleInfo(
        role=UserRole.ADMIN,
        label="Admin",
        title="Studio Administrator",
        description="Full access; may drive any assignment in the pipeline.",
        responsibilities=(
            "Manage team members and roles",
            "Unblock stalled projects",
        ),
        receives_assignments=False,
    ),
    UserRole.LEAD: RoleInfo(
        role=UserRole.LEAD,
        label="Sr. CS",
        title="Senior Client Servicing / Lead",
        description="Owns intake and the client-facing end of the pipeline.",
        responsibilities=(
            "Triage new intake and hand it to CS",
            "Send QC-approved work to the client",
            "Record client approval or revision requests",
            "Close completed projects",
        ),
    ),
    UserRole.CS: RoleInfo(
        role=UserRole.CS,
        label="CS",
        title="Client Servicing",
        description="Qualifies the brief and routes it to the design head.",
        responsibilities=(
            "Clarify the brief with the client",
            "Assign the project to a design head",
        ),
    ),
    UserRole.DESIGN_HEAD: RoleInfo(
        role=UserRole.DESIGN_HEAD,
        label="Design Head",
        title="Design Head",
        description="Allocates projects to designers.",
        responsibilities=("Pick the designer for each project",),
    ),
    UserRole.DESIGNER: RoleInfo(
        role=UserRole.DESIGNER,
        label="Designer",
        title="Designer",
        description="Produces the creative and hands it to QC.",
        responsibilities=(
            "Start design on assigned projects",
            "Track design time",
            "Mark design complete",
        ),
    ),
    UserRole.QC: RoleInfo(
        role=UserRole.QC,
        label="QC",
        title="Quality Control",
        description="Approves designs or sends them back for revision.",
        responsibilities=(
            "Review completed designs",
            "Approve or request a revision",
        ),
    ),
    UserRole.CLIENT_SERVING: RoleInfo(
        role=UserRole.CLIENT_SERVING,
        label="Client Serving",
        title="Client Serving",
        description="Account support; read-only on the workflow.",
        receives_assignments=False,
    ),
    UserRole.CLIENT: RoleInfo(
        role=UserRole.CLIENT,
        label="Client",
        title="Client",
        description="External reviewer; never acts on the internal pipeline.",
        receives_assignments=False,
    ),
}


def role_info(role: UserRole) -> RoleInfo:
    return ROLE_CATALOG[role]


def role_label(role: UserRole) -> str:
    return ROLE_CATALOG[role].label


def is_super_role(role: UserRole) -> bool:
    """Admin overrides every assignment gate."""
    return role == UserRole.ADMIN


def can_view_all_projects(role: UserRole) -> bool:
    """Admin and Lead see the whole board; everyone else sees their queue."""
    return role in (UserRole.ADMIN, UserRole.LEAD)


def can_open_projects(role: UserRole) -> bool:
    """Roles allowed to create a project at intake."""
    return role in (UserRole.ADMIN, UserRole.LEAD, UserRole.CS)
