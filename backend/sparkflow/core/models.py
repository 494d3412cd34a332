"""
SparkPro Studio Workflow - Database Models
==========================================

SQLAlchemy models for the workflow core.
The workflow engine only ever writes status, assignee, revision count and the
design timer columns of a project; everything else belongs to intake/CRUD.
"""

import enum
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sparkflow.core.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    """Persist enum values ('in-design'), not member names."""
    return [member.value for member in enum_cls]


# ==========================================================================
# Enums
# ==========================================================================

class UserRole(str, enum.Enum):
    """Studio roles. Role is the only axis of permission."""
    ADMIN = "admin"
    LEAD = "lead"                      # Sr. CS
    CS = "cs"
    DESIGN_HEAD = "design_head"
    DESIGNER = "designer"
    QC = "qc"
    CLIENT_SERVING = "client_serving"
    CLIENT = "client"


class WorkflowStatus(str, enum.Enum):
    """Project workflow statuses, in pipeline order."""
    INTAKE = "intake"
    ASSIGNED_TO_CS = "assigned-to-cs"
    ASSIGNED_TO_DESIGN_HEAD = "assigned-to-design-head"
    ASSIGNED_TO_DESIGNER = "assigned-to-designer"
    IN_DESIGN = "in-design"
    DESIGN_COMPLETE = "design-complete"
    IN_QC = "in-qc"
    QC_APPROVED = "qc-approved"
    QC_REVISION_NEEDED = "qc-revision-needed"
    SENT_TO_CLIENT = "sent-to-client"
    CLIENT_APPROVED = "client-approved"
    REVISION_REQUESTED = "revision-requested"
    COMPLETED = "completed"


class WorkflowAction(str, enum.Enum):
    """What produced a workflow step."""
    INTAKE = "intake"
    ASSIGN = "assign"
    STATUS_UPDATE = "status_update"


class NotificationType(str, enum.Enum):
    """Notification categories raised by transitions."""
    ASSIGNMENT = "assignment"
    REVISION = "revision"
    APPROVAL = "approval"
    COMPLETION = "completion"


# ==========================================================================
# Mixins
# ==========================================================================

class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


# ==========================================================================
# Models
# ==========================================================================

class User(Base, TimestampMixin):
    """
    Studio member account.

    Managed by the user-management screens; the workflow core only reads it.
    """

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, values_callable=_enum_values),
        default=UserRole.DESIGNER,
        nullable=False,
        index=True,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    last_login: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role.value})>"


class Project(Base, TimestampMixin):
    """
    Creative project tracked through the approval pipeline.

    project_code is the human-readable key used by every workflow operation.
    """

    __tablename__ = "projects"

    id: Mapped[UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    project_code: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        index=True,
        nullable=False,
    )

    # Classification
    creative_type: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    brief: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    deadline: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    client_name: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )
    client_email: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )

    # Workflow state
    status: Mapped[WorkflowStatus] = mapped_column(
        Enum(WorkflowStatus, values_callable=_enum_values),
        default=WorkflowStatus.INTAKE,
        nullable=False,
        index=True,
    )
    assignee_id: Mapped[Optional[UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    revision_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )

    # Design time tracking
    design_start_time: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    design_end_time: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    total_design_hours: Mapped[Decimal] = mapped_column(
        Numeric(8, 2),
        default=Decimal("0"),
        nullable=False,
    )

    # Relationships
    workflow_steps: Mapped[list["WorkflowStep"]] = relationship(
        back_populates="project",
        order_by="WorkflowStep.sequence",
        lazy="raise",
    )

    def __repr__(self) -> str:
        return f"<Project {self.project_code} [{self.status.value}]>"


class WorkflowStep(Base):
    """
    Append-only audit record of one transition.

    Rows are never updated; sequence is 1-based per project.
    """

    __tablename__ = "project_workflow_log"
    __table_args__ = (
        UniqueConstraint("project_id", "sequence", name="uq_workflow_step_sequence"),
    )

    id: Mapped[UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    project_id: Mapped[UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sequence: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )
    action: Mapped[WorkflowAction] = mapped_column(
        Enum(WorkflowAction, values_callable=_enum_values),
        nullable=False,
    )
    from_status: Mapped[Optional[WorkflowStatus]] = mapped_column(
        Enum(WorkflowStatus, values_callable=_enum_values),
        nullable=True,
    )
    to_status: Mapped[WorkflowStatus] = mapped_column(
        Enum(WorkflowStatus, values_callable=_enum_values),
        nullable=False,
    )
    assigned_to_id: Mapped[Optional[UUID]] = mapped_column(
        UUID(as_uuid=True),
        nullable=True,
    )  # no FK: historical actors may be deleted
    assigned_by_id: Mapped[Optional[UUID]] = mapped_column(
        UUID(as_uuid=True),
        nullable=True,
    )
    notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )

    project: Mapped["Project"] = relationship(back_populates="workflow_steps")

    def __repr__(self) -> str:
        source = self.from_status.value if self.from_status else "-"
        return f"<WorkflowStep #{self.sequence} {source}->{self.to_status.value}>"


class Notification(Base):
    """
    One-shot message raised by a transition.

    Only read_flag is ever mutated after insert.
    """

    __tablename__ = "notifications"

    id: Mapped[UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    user_id: Mapped[UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type: Mapped[NotificationType] = mapped_column(
        Enum(NotificationType, values_callable=_enum_values),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    message: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    payload: Mapped[Optional[dict]] = mapped_column(
        JSON,
        nullable=True,
    )
    read_flag: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Notification {self.type.value} -> {self.user_id}>"
