"""
SparkPro Studio Workflow - Projects API
=======================================

Project intake, the work board and workflow transitions.

Every mutation goes through the assignment engine or the design timer;
workflow errors are mapped to HTTP responses by the app-level handler.
"""

from typing import Optional

from fastapi import APIRouter, Query, status

from sparkflow.api.deps import CurrentUser, Engine, Store, Timeline, Timer
from sparkflow.core.models import Project, User, WorkflowStatus
from sparkflow.core.schemas import (
    AssignRequest,
    AvailableActionsResponse,
    ProjectCreate,
    ProjectListResponse,
    ProjectResponse,
    StatusUpdateRequest,
    TimelineEntryResponse,
    TimelineResponse,
    TimerResponse,
    TransitionResponse,
    UserSummary,
)
from sparkflow.core.workflow import TransitionResult, Unauthorized, WorkflowStore
from sparkflow.core.workflow.roles import can_view_all_projects

router = APIRouter(prefix="/projects", tags=["Projects"])


# ==========================================================================
# Helper Functions
# ==========================================================================

async def get_visible_project(project_code: str, user: User, store: WorkflowStore) -> Project:
    """Read a project the user may see: leads see everything, others their own work."""
    project = await store.read_project(project_code)
    if not can_view_all_projects(user.role) and project.assignee_id != user.id:
        raise Unauthorized(f"Project {project_code} is not assigned to you", project_code)
    return project


def to_transition_response(result: TransitionResult) -> TransitionResponse:
    return TransitionResponse(
        project=ProjectResponse.model_validate(result.project),
        action=result.action,
        from_status=result.from_status,
        to_status=result.to_status,
        step_recorded=result.step is not None,
        notification_sent=result.notification is not None,
        warnings=result.warnings,
    )


# ==========================================================================
# Intake & Board
# ==========================================================================

@router.post(
    "",
    response_model=ProjectResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Open a project at intake",
    responses={
        201: {"description": "Project opened"},
        401: {"description": "Not authenticated"},
        403: {"description": "Role may not open projects"},
        409: {"description": "Project code already in use"},
    },
)
async def create_project(
    data: ProjectCreate,
    engine: Engine,
) -> ProjectResponse:
    """
    Open a new project at intake.

    The project code is generated when not supplied. The first workflow
    step (none -> intake) is recorded with the caller as the actor.
    """
    result = await engine.open_project(
        creative_type=data.creative_type,
        brief=data.brief,
        deadline=data.deadline,
        client_name=data.client_name,
        client_email=data.client_email,
        project_code=data.project_code,
        notes=data.notes,
    )
    return ProjectResponse.model_validate(result.project)


@router.get(
    "",
    response_model=ProjectListResponse,
    summary="List projects",
    responses={
        200: {"description": "Projects visible to the current user"},
        401: {"description": "Not authenticated"},
    },
)
async def list_projects(
    current_user: CurrentUser,
    store: Store,
    status_filter: Optional[WorkflowStatus] = Query(
        None, alias="status", description="Filter by status"
    ),
    mine: bool = Query(False, description="Only projects assigned to me"),
) -> ProjectListResponse:
    """
    List projects ordered by deadline.

    Admin and Sr. CS see the whole board; everyone else sees their queue.
    """
    assignee_id = None
    if mine or not can_view_all_projects(current_user.role):
        assignee_id = current_user.id

    projects = await store.list_projects(status=status_filter, assignee_id=assignee_id)
    return ProjectListResponse(
        items=[ProjectResponse.model_validate(p) for p in projects],
        total=len(projects),
    )


@router.get(
    "/{project_code}",
    response_model=ProjectResponse,
    summary="Get project",
    responses={
        200: {"description": "Project details"},
        403: {"description": "Project not visible to this user"},
        404: {"description": "Project not found"},
    },
)
async def get_project(
    project_code: str,
    current_user: CurrentUser,
    store: Store,
) -> ProjectResponse:
    project = await get_visible_project(project_code, current_user, store)
    return ProjectResponse.model_validate(project)


# ==========================================================================
# Workflow
# ==========================================================================

@router.get(
    "/{project_code}/actions",
    response_model=AvailableActionsResponse,
    summary="Actions available to the current user",
    responses={
        200: {"description": "Controls to offer"},
        403: {"description": "Project not visible to this user"},
        404: {"description": "Project not found"},
        409: {"description": "Project data violates workflow integrity"},
    },
)
async def get_available_actions(
    project_code: str,
    current_user: CurrentUser,
    store: Store,
    engine: Engine,
) -> AvailableActionsResponse:
    """
    What the current user may do with the project right now.

    Clients hide the assignment dialog when `assignment_available` is false
    and offer only `status_targets` as status buttons.
    """
    await get_visible_project(project_code, current_user, store)
    actions = await engine.available_actions(project_code)
    return AvailableActionsResponse(
        project_code=actions.project_code,
        status=actions.status,
        is_assignee=actions.is_assignee,
        can_assign=actions.can_assign,
        assignment_available=actions.assignment_available,
        assignment_target=actions.assignment_target,
        assignees=[UserSummary.model_validate(u) for u in actions.assignees],
        status_targets=actions.status_targets,
    )


@router.get(
    "/{project_code}/assignees",
    response_model=list[UserSummary],
    summary="Eligible assignees",
    responses={
        200: {"description": "Assignee pool for the current status (may be empty)"},
        403: {"description": "Project not visible to this user"},
        404: {"description": "Project not found"},
    },
)
async def get_assignees(
    project_code: str,
    current_user: CurrentUser,
    store: Store,
    engine: Engine,
) -> list[UserSummary]:
    await get_visible_project(project_code, current_user, store)
    pool = await engine.assignee_pool(project_code)
    return [UserSummary.model_validate(u) for u in pool]


@router.post(
    "/{project_code}/assign",
    response_model=TransitionResponse,
    summary="Assign project to the next person",
    responses={
        200: {"description": "Project assigned"},
        403: {"description": "Role may not assign at this status"},
        404: {"description": "Project not found"},
        409: {"description": "Assignment unavailable or project changed"},
        422: {"description": "Assignee not eligible or project completed"},
    },
)
async def assign_project(
    project_code: str,
    data: AssignRequest,
    engine: Engine,
) -> TransitionResponse:
    result = await engine.assign(
        project_code,
        data.assignee_id,
        notes=data.notes,
        expected_status=data.expected_status,
    )
    return to_transition_response(result)


@router.post(
    "/{project_code}/status",
    response_model=TransitionResponse,
    summary="Update project status",
    responses={
        200: {"description": "Status updated"},
        403: {"description": "Not allowed to make this change"},
        404: {"description": "Project not found"},
        409: {"description": "Project changed, please refresh"},
        422: {"description": "Transition not allowed"},
    },
)
async def update_project_status(
    project_code: str,
    data: StatusUpdateRequest,
    engine: Engine,
) -> TransitionResponse:
    result = await engine.update_status(
        project_code,
        data.status,
        notes=data.notes,
        expected_status=data.expected_status,
    )
    return to_transition_response(result)


@router.get(
    "/{project_code}/timeline",
    response_model=TimelineResponse,
    summary="Project history",
    responses={
        200: {"description": "Workflow steps, oldest first"},
        403: {"description": "Project not visible to this user"},
        404: {"description": "Project not found"},
    },
)
async def get_timeline(
    project_code: str,
    current_user: CurrentUser,
    store: Store,
    timeline: Timeline,
) -> TimelineResponse:
    await get_visible_project(project_code, current_user, store)
    history = await timeline.for_project(project_code)
    return TimelineResponse(
        project_code=history.project.project_code,
        status=history.project.status,
        consistent=history.consistent,
        entries=[TimelineEntryResponse.model_validate(e) for e in history.entries],
    )


# ==========================================================================
# Design Timer
# ==========================================================================

@router.get(
    "/{project_code}/timer",
    response_model=TimerResponse,
    summary="Design timer state",
    responses={
        200: {"description": "Timer state"},
        403: {"description": "Project not visible to this user"},
        404: {"description": "Project not found"},
    },
)
async def get_timer(
    project_code: str,
    current_user: CurrentUser,
    store: Store,
    timer: Timer,
) -> TimerResponse:
    await get_visible_project(project_code, current_user, store)
    return TimerResponse.model_validate(await timer.state(project_code))


@router.post(
    "/{project_code}/timer/start",
    response_model=TimerResponse,
    summary="Start the design timer",
    responses={
        200: {"description": "Timer started"},
        403: {"description": "Only the assignee may track time"},
        422: {"description": "Timer already running"},
    },
)
async def start_timer(
    project_code: str,
    timer: Timer,
) -> TimerResponse:
    return TimerResponse.model_validate(await timer.start(project_code))


@router.post(
    "/{project_code}/timer/stop",
    response_model=TimerResponse,
    summary="Stop the design timer",
    responses={
        200: {"description": "Timer stopped, hours added"},
        403: {"description": "Only the assignee may track time"},
        422: {"description": "No timer running"},
    },
)
async def stop_timer(
    project_code: str,
    timer: Timer,
) -> TimerResponse:
    return TimerResponse.model_validate(await timer.stop(project_code))
