"""
SparkPro Studio Workflow - Test Fixtures
========================================

Shared pytest fixtures for all tests.
"""

import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from sparkflow.api.auth import hash_password
from sparkflow.api.deps import create_access_token
from sparkflow.api.main import app
from sparkflow.core.database import (
    build_engine,
    create_tables,
    drop_tables,
    get_db,
    session_factory,
)
from sparkflow.core.models import (
    Project,
    User,
    UserRole,
    WorkflowAction,
    WorkflowStatus,
    WorkflowStep,
)
from sparkflow.core.workflow import (
    AssignmentEngine,
    SqlAlchemyWorkflowStore,
    TransitionGate,
    WorkflowContext,
)


# ==========================================================================
# Test Database Setup
# ==========================================================================

# Use in-memory SQLite for tests (fast)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_PASSWORD = "TestPass123!"

# Hashing once keeps the many per-test users cheap.
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


# ==========================================================================
# Database Fixtures
# ==========================================================================

@pytest_asyncio.fixture(scope="function")
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database per test."""
    engine = build_engine(TEST_DATABASE_URL, echo=False)
    await create_tables(engine)

    yield engine

    await drop_tables(engine)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session for each test."""
    async with session_factory(db_engine)() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Provide test HTTP client with database override.
    """
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.state.transition_gate = TransitionGate()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# ==========================================================================
# User Fixtures
# ==========================================================================

MakeUser = Callable[..., Awaitable[User]]


@pytest_asyncio.fixture
async def make_user(db_session: AsyncSession) -> MakeUser:
    """Factory for studio members. Password: TestPass123!"""

    async def _make(
        role: UserRole,
        name: Optional[str] = None,
        email: Optional[str] = None,
        is_active: bool = True,
    ) -> User:
        suffix = uuid4().hex[:8]
        user = User(
            id=uuid4(),
            email=email or f"{role.value}_{suffix}@example.com",
            password_hash=TEST_PASSWORD_HASH,
            name=name or f"{role.value.replace('_', ' ').title()} {suffix}",
            role=role,
            is_active=is_active,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _make


@pytest_asyncio.fixture
async def admin(make_user: MakeUser) -> User:
    return await make_user(UserRole.ADMIN, name="Ada Admin")


@pytest_asyncio.fixture
async def lead(make_user: MakeUser) -> User:
    return await make_user(UserRole.LEAD, name="Lena Lead")


@pytest_asyncio.fixture
async def cs_user(make_user: MakeUser) -> User:
    return await make_user(UserRole.CS, name="Carl Servicing")


@pytest_asyncio.fixture
async def design_head(make_user: MakeUser) -> User:
    return await make_user(UserRole.DESIGN_HEAD, name="Dana Head")


@pytest_asyncio.fixture
async def designer(make_user: MakeUser) -> User:
    return await make_user(UserRole.DESIGNER, name="Dev Designer")


@pytest_asyncio.fixture
async def qc_user(make_user: MakeUser) -> User:
    return await make_user(UserRole.QC, name="Quinn Checker")


# ==========================================================================
# Project Fixtures
# ==========================================================================

MakeProject = Callable[..., Awaitable[Project]]


@pytest_asyncio.fixture
async def make_project(db_session: AsyncSession) -> MakeProject:
    """
    Factory for projects already sitting at a given status.

    Writes a consistent history: the intake step, then (for any later
    status) one step straight to that status.
    """

    async def _make(
        status: WorkflowStatus = WorkflowStatus.INTAKE,
        assignee: Optional[User] = None,
        project_code: Optional[str] = None,
        revision_count: int = 0,
        opened_by: Optional[User] = None,
    ) -> Project:
        now = datetime.now(timezone.utc)
        project = Project(
            id=uuid4(),
            project_code=project_code or f"TEST-{uuid4().hex[:6].upper()}",
            creative_type="Social Post",
            brief="Launch campaign key visual",
            deadline=now + timedelta(days=7),
            client_name="Acme Foods",
            client_email="marketing@example.com",
            status=status,
            assignee_id=assignee.id if assignee else None,
            revision_count=revision_count,
        )
        db_session.add(project)

        db_session.add(WorkflowStep(
            id=uuid4(),
            project_id=project.id,
            sequence=1,
            action=WorkflowAction.INTAKE,
            from_status=None,
            to_status=WorkflowStatus.INTAKE,
            assigned_to_id=None,
            assigned_by_id=opened_by.id if opened_by else None,
            occurred_at=now - timedelta(minutes=10),
        ))
        if status != WorkflowStatus.INTAKE:
            db_session.add(WorkflowStep(
                id=uuid4(),
                project_id=project.id,
                sequence=2,
                action=WorkflowAction.STATUS_UPDATE,
                from_status=WorkflowStatus.INTAKE,
                to_status=status,
                assigned_to_id=assignee.id if assignee else None,
                assigned_by_id=opened_by.id if opened_by else None,
                occurred_at=now - timedelta(minutes=5),
            ))

        await db_session.commit()
        await db_session.refresh(project)
        return project

    return _make


# ==========================================================================
# Workflow Fixtures
# ==========================================================================

@pytest.fixture
def store(db_session: AsyncSession) -> SqlAlchemyWorkflowStore:
    return SqlAlchemyWorkflowStore(db_session)


@pytest.fixture
def engine_for(store: SqlAlchemyWorkflowStore) -> Callable[[Optional[User]], AssignmentEngine]:
    """Build an assignment engine acting as the given user."""

    def _engine(user: Optional[User]) -> AssignmentEngine:
        return AssignmentEngine(store, WorkflowContext.for_user(user), notifications_enabled=True)

    return _engine


# ==========================================================================
# Auth Helpers
# ==========================================================================

def auth_headers(user: User) -> dict[str, str]:
    """Get authorization headers for a user."""
    token = create_access_token(user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for() -> Callable[[User], dict[str, str]]:
    return auth_headers
