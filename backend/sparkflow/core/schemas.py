"""
SparkPro Studio Workflow - Pydantic Schemas
===========================================

Request and response schemas for API validation.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, computed_field

from sparkflow.core.models import (
    NotificationType,
    UserRole,
    WorkflowAction,
    WorkflowStatus,
)
from sparkflow.core.workflow.statuses import StatusColor, status_color, status_label


# ==========================================================================
# Base Schemas
# ==========================================================================

class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class TimestampSchema(BaseSchema):
    """Schema with timestamp fields."""

    created_at: datetime
    updated_at: datetime


# ==========================================================================
# Auth Schemas
# ==========================================================================

class UserLogin(BaseSchema):
    """Schema for user login."""

    email: EmailStr
    password: str


class UserResponse(TimestampSchema):
    """Schema for user in responses (no password)."""

    id: UUID
    email: EmailStr
    name: str
    role: UserRole
    is_active: bool
    last_login: Optional[datetime] = None


class UserSummary(BaseSchema):
    """Compact user for assignee pickers."""

    id: UUID
    name: str
    email: EmailStr
    role: UserRole


class TokenResponse(BaseSchema):
    """Schema for authentication tokens."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds until access token expires


# ==========================================================================
# Project Schemas
# ==========================================================================

class ProjectCreate(BaseSchema):
    """Schema for opening a project at intake."""

    project_code: Optional[str] = Field(None, min_length=1, max_length=50)
    creative_type: str = Field(min_length=1, max_length=100)
    brief: str = Field(min_length=1)
    deadline: datetime
    client_name: Optional[str] = Field(None, max_length=255)
    client_email: Optional[EmailStr] = None
    notes: Optional[str] = None


class ProjectResponse(TimestampSchema):
    """Schema for project in responses."""

    id: UUID
    project_code: str
    creative_type: str
    brief: str
    deadline: datetime
    client_name: Optional[str]
    client_email: Optional[str]
    status: WorkflowStatus
    assignee_id: Optional[UUID]
    revision_count: int
    design_start_time: Optional[datetime]
    design_end_time: Optional[datetime]
    total_design_hours: Decimal

    @computed_field  # type: ignore[misc]
    @property
    def status_label(self) -> str:
        return status_label(self.status)

    @computed_field  # type: ignore[misc]
    @property
    def status_color(self) -> StatusColor:
        return status_color(self.status)


class ProjectListResponse(BaseSchema):
    """Schema for project list."""

    items: list[ProjectResponse]
    total: int


class AssignRequest(BaseSchema):
    """Schema for assigning a project to the next person."""

    assignee_id: UUID
    notes: Optional[str] = None
    expected_status: Optional[WorkflowStatus] = None


class StatusUpdateRequest(BaseSchema):
    """Schema for a direct status change."""

    status: WorkflowStatus
    notes: Optional[str] = None
    expected_status: Optional[WorkflowStatus] = None


class TransitionResponse(BaseSchema):
    """Result of an assignment or status update."""

    project: ProjectResponse
    action: WorkflowAction
    from_status: Optional[WorkflowStatus]
    to_status: WorkflowStatus
    step_recorded: bool
    notification_sent: bool
    warnings: list[str] = []


class AvailableActionsResponse(BaseSchema):
    """Controls the current user may use on a project."""

    project_code: str
    status: WorkflowStatus
    is_assignee: bool
    can_assign: bool
    assignment_available: bool
    assignment_target: Optional[WorkflowStatus]
    assignees: list[UserSummary]
    status_targets: list[WorkflowStatus]


# ==========================================================================
# Timeline Schemas
# ==========================================================================

class TimelineEntryResponse(BaseSchema):
    """One rendered workflow step."""

    sequence: int
    action: WorkflowAction
    from_status: Optional[WorkflowStatus]
    to_status: WorkflowStatus
    status_label: str
    status_color: StatusColor
    assigned_to_id: Optional[UUID]
    assigned_to_name: Optional[str]
    assigned_by_id: Optional[UUID]
    assigned_by_name: Optional[str]
    occurred_at: datetime
    notes: Optional[str] = None


class TimelineResponse(BaseSchema):
    """Project history, oldest first."""

    project_code: str
    status: WorkflowStatus
    consistent: bool
    entries: list[TimelineEntryResponse]


class TimerResponse(BaseSchema):
    """Design timer state."""

    project_code: str
    running: bool
    started_at: Optional[datetime]
    stopped_at: Optional[datetime]
    total_hours: Decimal


# ==========================================================================
# Catalog Schemas
# ==========================================================================

class StatusInfo(BaseSchema):
    """A workflow status with display metadata."""

    status: WorkflowStatus
    label: str
    color: StatusColor
    stage: int
    terminal: bool
    successors: list[WorkflowStatus]
    pool_roles: list[UserRole]


class RoleInfoResponse(BaseSchema):
    """A studio role with its responsibilities."""

    role: UserRole
    label: str
    title: str
    description: str
    responsibilities: list[str]
    receives_assignments: bool


# ==========================================================================
# Notification Schemas
# ==========================================================================

class NotificationResponse(BaseSchema):
    """Schema for notification in responses."""

    id: UUID
    type: NotificationType
    title: str
    message: str
    payload: Optional[dict]
    read_flag: bool
    created_at: datetime


class NotificationListResponse(BaseSchema):
    """Schema for the notification inbox."""

    items: list[NotificationResponse]
    total: int
    unread: int


# ==========================================================================
# Common Response Schemas
# ==========================================================================

class MessageResponse(BaseSchema):
    """Generic message response."""

    message: str
    success: bool = True


class ErrorResponse(BaseSchema):
    """Error response schema."""

    error: str
    detail: Optional[str] = None
    code: Optional[str] = None


class HealthResponse(BaseSchema):
    """Health check response."""

    status: str
    version: str
    environment: str
    database: str
