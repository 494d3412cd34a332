"""
Workflow Store - persistence interface consumed by the workflow core.

The engine never touches the session directly. WorkflowStore is the seam for
the project store, the audit log and the notification sink; the SQLAlchemy
implementation below is what the API wires in.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID, uuid4

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sparkflow.core.config import settings
from sparkflow.core.models import (
    Notification,
    NotificationType,
    Project,
    User,
    WorkflowAction,
    WorkflowStatus,
    WorkflowStep,
)
from sparkflow.core.workflow.errors import (
    ConcurrentModificationError,
    DuplicateProjectCode,
    PersistenceError,
    ProjectNotFound,
)

logger = structlog.get_logger()


# Columns the workflow core is allowed to write on a project.
WRITABLE_PROJECT_FIELDS = frozenset({
    "status",
    "assignee_id",
    "revision_count",
    "design_start_time",
    "design_end_time",
    "total_design_hours",
})


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; everything stored is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class WorkflowStore(ABC):
    """Abstract persistence interface for the workflow core."""

    @abstractmethod
    async def list_active_users(self) -> list[User]:
        """All users eligible to appear in assignee pools."""
        pass

    @abstractmethod
    async def get_user(self, user_id: UUID) -> Optional[User]:
        pass

    @abstractmethod
    async def read_project(self, project_code: str) -> Project:
        """Fresh read of a project. Raises ProjectNotFound."""
        pass

    @abstractmethod
    async def update_project(
        self,
        project_code: str,
        patch: dict[str, Any],
        expected_status: WorkflowStatus,
    ) -> Project:
        """
        Apply `patch` in a single conditional write.

        The write only lands if the stored status still equals
        `expected_status`; otherwise ConcurrentModificationError.
        """
        pass

    @abstractmethod
    async def append_workflow_step(
        self,
        project_id: UUID,
        action: WorkflowAction,
        from_status: Optional[WorkflowStatus],
        to_status: WorkflowStatus,
        assigned_to_id: Optional[UUID],
        assigned_by_id: Optional[UUID],
        notes: Optional[str] = None,
    ) -> WorkflowStep:
        pass

    @abstractmethod
    async def list_workflow_steps(self, project_id: UUID) -> list[WorkflowStep]:
        pass

    @abstractmethod
    async def create_notification(
        self,
        user_id: UUID,
        type: NotificationType,
        title: str,
        message: str,
        payload: Optional[dict] = None,
    ) -> Notification:
        pass

    @abstractmethod
    async def create_project(self, **fields: Any) -> Project:
        pass

    @abstractmethod
    async def next_project_code(self) -> str:
        pass

    @abstractmethod
    async def list_projects(
        self,
        status: Optional[WorkflowStatus] = None,
        assignee_id: Optional[UUID] = None,
    ) -> list[Project]:
        pass


class SqlAlchemyWorkflowStore(WorkflowStore):
    """WorkflowStore backed by an AsyncSession. Every write commits."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ======================================================================
    # Users
    # ======================================================================

    async def list_active_users(self) -> list[User]:
        try:
            result = await self.db.execute(
                select(User).where(User.is_active.is_(True)).order_by(User.name)
            )
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to load users: {e}") from e
        return list(result.scalars().all())

    async def get_user(self, user_id: UUID) -> Optional[User]:
        try:
            return await self.db.get(User, user_id)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to load user {user_id}: {e}") from e

    # ======================================================================
    # Projects
    # ======================================================================

    async def _find_project(self, project_code: str) -> Optional[Project]:
        result = await self.db.execute(
            select(Project)
            .where(Project.project_code == project_code)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def read_project(self, project_code: str) -> Project:
        try:
            project = await self._find_project(project_code)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to read project {project_code}: {e}", project_code) from e
        if project is None:
            raise ProjectNotFound(project_code)
        return project

    async def update_project(
        self,
        project_code: str,
        patch: dict[str, Any],
        expected_status: WorkflowStatus,
    ) -> Project:
        unknown = set(patch) - WRITABLE_PROJECT_FIELDS
        if unknown:
            raise ValueError(f"Workflow may not write project fields: {sorted(unknown)}")

        stmt = (
            update(Project)
            .where(
                Project.project_code == project_code,
                Project.status == expected_status,
            )
            .values(**patch)
            .execution_options(synchronize_session=False)
        )

        try:
            result = await self.db.execute(stmt)
            if result.rowcount == 0:
                await self.db.rollback()
                current = await self._find_project(project_code)
                if current is None:
                    raise ProjectNotFound(project_code)
                raise ConcurrentModificationError(project_code, expected_status, current.status)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError(f"Failed to update project {project_code}: {e}", project_code) from e

        return await self.read_project(project_code)

    async def create_project(self, **fields: Any) -> Project:
        project_code = fields["project_code"]
        if await self._project_code_taken(project_code):
            raise DuplicateProjectCode(project_code)

        project = Project(id=uuid4(), **fields)
        self.db.add(project)
        try:
            await self.db.commit()
            await self.db.refresh(project)
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError(f"Failed to create project {project_code}: {e}", project_code) from e
        return project

    async def _project_code_taken(self, project_code: str) -> bool:
        try:
            result = await self.db.execute(
                select(func.count()).select_from(Project).where(Project.project_code == project_code)
            )
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to check project code: {e}") from e
        return (result.scalar() or 0) > 0

    async def next_project_code(self) -> str:
        try:
            result = await self.db.execute(select(func.count()).select_from(Project))
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to count projects: {e}") from e
        serial = (result.scalar() or 0) + 1

        # Codes supplied by hand can collide with the serial; skip ahead.
        while True:
            code = f"{settings.PROJECT_CODE_PREFIX}-{serial:05d}"
            if not await self._project_code_taken(code):
                return code
            serial += 1

    async def list_projects(
        self,
        status: Optional[WorkflowStatus] = None,
        assignee_id: Optional[UUID] = None,
    ) -> list[Project]:
        query = select(Project)
        if status is not None:
            query = query.where(Project.status == status)
        if assignee_id is not None:
            query = query.where(Project.assignee_id == assignee_id)
        query = query.order_by(Project.deadline.asc(), Project.project_code.asc())
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to list projects: {e}") from e
        return list(result.scalars().all())

    # ======================================================================
    # Audit log
    # ======================================================================

    async def append_workflow_step(
        self,
        project_id: UUID,
        action: WorkflowAction,
        from_status: Optional[WorkflowStatus],
        to_status: WorkflowStatus,
        assigned_to_id: Optional[UUID],
        assigned_by_id: Optional[UUID],
        notes: Optional[str] = None,
    ) -> WorkflowStep:
        try:
            result = await self.db.execute(
                select(func.max(WorkflowStep.sequence)).where(WorkflowStep.project_id == project_id)
            )
            sequence = (result.scalar() or 0) + 1

            step = WorkflowStep(
                id=uuid4(),
                project_id=project_id,
                sequence=sequence,
                action=action,
                from_status=from_status,
                to_status=to_status,
                assigned_to_id=assigned_to_id,
                assigned_by_id=assigned_by_id,
                notes=notes,
                occurred_at=utcnow(),
            )
            self.db.add(step)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError(f"Failed to append workflow step: {e}") from e
        return step

    async def list_workflow_steps(self, project_id: UUID) -> list[WorkflowStep]:
        try:
            result = await self.db.execute(
                select(WorkflowStep)
                .where(WorkflowStep.project_id == project_id)
                .order_by(WorkflowStep.occurred_at.asc(), WorkflowStep.sequence.asc())
            )
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to load workflow steps: {e}") from e
        return list(result.scalars().all())

    # ======================================================================
    # Notifications
    # ======================================================================

    async def create_notification(
        self,
        user_id: UUID,
        type: NotificationType,
        title: str,
        message: str,
        payload: Optional[dict] = None,
    ) -> Notification:
        notification = Notification(
            id=uuid4(),
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            payload=payload,
            read_flag=False,
        )
        self.db.add(notification)
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError(f"Failed to create notification: {e}") from e

        logger.debug("Notification created", user_id=str(user_id), type=type.value)
        return notification
