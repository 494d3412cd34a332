"""
Workflow context - the explicit session passed into every workflow call.
"""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from sparkflow.core.models import User, UserRole
from sparkflow.core.workflow.errors import Unauthorized


@dataclass(frozen=True)
class Actor:
    """The authenticated user performing an action."""
    id: UUID
    name: str
    email: str
    role: UserRole

    @classmethod
    def from_user(cls, user: User) -> "Actor":
        return cls(id=user.id, name=user.name, email=user.email, role=user.role)


@dataclass(frozen=True)
class WorkflowContext:
    """
    Per-request workflow session.

    actor is None while unauthenticated; operations that mutate state call
    require_actor() and fail with Unauthorized.
    """
    actor: Optional[Actor] = None

    @classmethod
    def for_user(cls, user: Optional[User]) -> "WorkflowContext":
        return cls(actor=Actor.from_user(user) if user is not None else None)

    def require_actor(self) -> Actor:
        if self.actor is None:
            raise Unauthorized("Not authenticated")
        return self.actor
