"""
SparkPro Studio Workflow - API Dependencies
===========================================

Shared dependencies for FastAPI endpoints.
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Annotated, Optional
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sparkflow.core.config import settings
from sparkflow.core.database import get_db
from sparkflow.core.models import User
from sparkflow.core.workflow import (
    AssignmentEngine,
    DesignTimer,
    ProjectTimeline,
    SqlAlchemyWorkflowStore,
    TransitionGate,
    WorkflowContext,
    WorkflowStore,
)


# ==========================================================================
# Security
# ==========================================================================

security = HTTPBearer(auto_error=False)


# ==========================================================================
# Token Utilities
# ==========================================================================

def create_access_token(
    user_id: UUID,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a new access token.

    Args:
        user_id: User's UUID
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "exp": now + expires_delta,
        "iat": now,
        "type": "access",
        "jti": secrets.token_hex(16),
    }

    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> dict:
    """
    Decode and validate a JWT token.

    Raises:
        HTTPException: If token is invalid or expired
    """
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
        )
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


def _unauthenticated(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


# ==========================================================================
# User Dependencies
# ==========================================================================

async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """
    Get the current authenticated user.

    Raises:
        HTTPException: If not authenticated, user not found or deactivated
    """
    if credentials is None:
        raise _unauthenticated("Not authenticated")

    payload = decode_token(credentials.credentials)

    if payload.get("type") != "access":
        raise _unauthenticated("Invalid token type")

    user_id_str = payload.get("sub")
    if user_id_str is None:
        raise _unauthenticated("Invalid token payload")

    try:
        user_id = UUID(user_id_str)
    except ValueError as e:
        raise _unauthenticated("Invalid user ID in token") from e

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None:
        raise _unauthenticated("User not found")

    if not user.is_active:
        raise _unauthenticated("User account is deactivated")

    return user


# ==========================================================================
# Workflow Dependencies
# ==========================================================================

def get_transition_gate(request: Request) -> TransitionGate:
    """Process-wide in-flight guard, created on first use."""
    gate = getattr(request.app.state, "transition_gate", None)
    if gate is None:
        gate = TransitionGate()
        request.app.state.transition_gate = gate
    return gate


def get_workflow_store(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> WorkflowStore:
    return SqlAlchemyWorkflowStore(db)


def get_workflow_context(
    current_user: Annotated[User, Depends(get_current_user)],
) -> WorkflowContext:
    return WorkflowContext.for_user(current_user)


def get_assignment_engine(
    store: Annotated[WorkflowStore, Depends(get_workflow_store)],
    context: Annotated[WorkflowContext, Depends(get_workflow_context)],
    gate: Annotated[TransitionGate, Depends(get_transition_gate)],
) -> AssignmentEngine:
    return AssignmentEngine(store, context, gate=gate)


def get_design_timer(
    store: Annotated[WorkflowStore, Depends(get_workflow_store)],
    context: Annotated[WorkflowContext, Depends(get_workflow_context)],
    gate: Annotated[TransitionGate, Depends(get_transition_gate)],
) -> DesignTimer:
    return DesignTimer(store, context, gate=gate)


def get_project_timeline(
    store: Annotated[WorkflowStore, Depends(get_workflow_store)],
) -> ProjectTimeline:
    return ProjectTimeline(store)


# ==========================================================================
# Type Aliases for Dependency Injection
# ==========================================================================

CurrentUser = Annotated[User, Depends(get_current_user)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
Store = Annotated[WorkflowStore, Depends(get_workflow_store)]
Engine = Annotated[AssignmentEngine, Depends(get_assignment_engine)]
Timer = Annotated[DesignTimer, Depends(get_design_timer)]
Timeline = Annotated[ProjectTimeline, Depends(get_project_timeline)]
