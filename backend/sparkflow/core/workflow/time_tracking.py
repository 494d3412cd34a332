"""
Design Timer - start/stop design time tracking on a project.

A run is open while design_start_time is set and design_end_time is unset
or older than the start. Stopping a run adds its hours to
total_design_hours.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

import structlog

from sparkflow.core.models import Project
from sparkflow.core.workflow.context import WorkflowContext
from sparkflow.core.workflow.engine import TransitionGate
from sparkflow.core.workflow.errors import TimeTrackingError, Unauthorized
from sparkflow.core.workflow.roles import is_super_role
from sparkflow.core.workflow.statuses import is_terminal
from sparkflow.core.workflow.store import WorkflowStore, as_utc, utcnow

logger = structlog.get_logger()

_HOURS = Decimal("0.01")


@dataclass
class TimerState:
    project_code: str
    running: bool
    started_at: Optional[datetime]
    stopped_at: Optional[datetime]
    total_hours: Decimal

    @classmethod
    def of(cls, project: Project) -> "TimerState":
        return cls(
            project_code=project.project_code,
            running=is_running(project),
            started_at=as_utc(project.design_start_time) if project.design_start_time else None,
            stopped_at=as_utc(project.design_end_time) if project.design_end_time else None,
            total_hours=Decimal(project.total_design_hours or 0),
        )


def is_running(project: Project) -> bool:
    if project.design_start_time is None:
        return False
    if project.design_end_time is None:
        return True
    return as_utc(project.design_end_time) < as_utc(project.design_start_time)


def elapsed_hours(started_at: datetime, stopped_at: datetime) -> Decimal:
    seconds = max((as_utc(stopped_at) - as_utc(started_at)).total_seconds(), 0)
    return (Decimal(str(seconds)) / Decimal(3600)).quantize(_HOURS, rounding=ROUND_HALF_UP)


class DesignTimer:
    """Design time tracking for the current assignee (or Admin)."""

    def __init__(
        self,
        store: WorkflowStore,
        context: WorkflowContext,
        gate: Optional[TransitionGate] = None,
    ):
        self.store = store
        self.context = context
        self.gate = gate if gate is not None else TransitionGate()

    async def _load_for_actor(self, project_code: str) -> Project:
        actor = self.context.require_actor()
        project = await self.store.read_project(project_code)

        if project.assignee_id != actor.id and not is_super_role(actor.role):
            raise Unauthorized(
                f"Only the current assignee may track time on project {project_code}",
                project_code,
            )
        if is_terminal(project.status):
            raise TimeTrackingError(f"Project {project_code} is completed", project_code)
        return project

    async def state(self, project_code: str) -> TimerState:
        self.context.require_actor()
        return TimerState.of(await self.store.read_project(project_code))

    async def start(self, project_code: str) -> TimerState:
        async with self.gate.hold(project_code):
            project = await self._load_for_actor(project_code)
            if is_running(project):
                raise TimeTrackingError(
                    f"Design timer already running on project {project_code}",
                    project_code,
                )

            updated = await self.store.update_project(
                project_code,
                {"design_start_time": utcnow(), "design_end_time": None},
                expected_status=project.status,
            )

        logger.info("Design timer started", project_code=project_code)
        return TimerState.of(updated)

    async def stop(self, project_code: str) -> TimerState:
        async with self.gate.hold(project_code):
            project = await self._load_for_actor(project_code)
            if not is_running(project):
                raise TimeTrackingError(
                    f"No design timer running on project {project_code}",
                    project_code,
                )

            stopped_at = utcnow()
            hours = elapsed_hours(project.design_start_time, stopped_at)
            total = Decimal(project.total_design_hours or 0) + hours

            updated = await self.store.update_project(
                project_code,
                {"design_end_time": stopped_at, "total_design_hours": total},
                expected_status=project.status,
            )

        logger.info(
            "Design timer stopped",
            project_code=project_code,
            hours=str(hours),
            total_hours=str(total),
        )
        return TimerState.of(updated)
