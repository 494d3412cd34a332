"""
SparkPro Studio Workflow - Workflow Catalog API
===============================================

Read-only metadata the board needs to render statuses and roles.
"""

from fastapi import APIRouter

from sparkflow.api.deps import CurrentUser
from sparkflow.core.schemas import RoleInfoResponse, StatusInfo
from sparkflow.core.workflow import ROLE_CATALOG, STATUS_ORDER
from sparkflow.core.workflow.policy import assignee_pool_roles
from sparkflow.core.workflow.statuses import (
    is_terminal,
    stage_index,
    status_color,
    status_label,
    successors,
)

router = APIRouter(prefix="/workflow", tags=["Workflow"])


@router.get(
    "/statuses",
    response_model=list[StatusInfo],
    summary="List workflow statuses",
)
async def list_statuses(current_user: CurrentUser) -> list[StatusInfo]:
    """All statuses in display order with labels, colors and successors."""
    return [
        StatusInfo(
            status=s,
            label=status_label(s),
            color=status_color(s),
            stage=stage_index(s),
            terminal=is_terminal(s),
            successors=sorted(successors(s), key=stage_index),
            pool_roles=sorted(assignee_pool_roles(s), key=lambda role: role.value),
        )
        for s in STATUS_ORDER
    ]


@router.get(
    "/roles",
    response_model=list[RoleInfoResponse],
    summary="List studio roles",
)
async def list_roles(current_user: CurrentUser) -> list[RoleInfoResponse]:
    """Roles with their responsibilities, for the team page."""
    return [
        RoleInfoResponse(
            role=info.role,
            label=info.label,
            title=info.title,
            description=info.description,
            responsibilities=list(info.responsibilities),
            receives_assignments=info.receives_assignments,
        )
        for info in ROLE_CATALOG.values()
    ]
