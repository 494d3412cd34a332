"""
Assignment Engine Tests
=======================

Transitions against a real (in-memory) database: state changes, history,
notifications, concurrency and the failure paths around them.
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from sqlalchemy import Update, select, update
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from sparkflow.core.models import (
    Notification,
    NotificationType,
    Project,
    User,
    UserRole,
    WorkflowAction,
    WorkflowStatus,
)
from sparkflow.core.workflow import (
    AssignmentEngine,
    ConcurrentModificationError,
    DuplicateProjectCode,
    EmptyAssigneePool,
    IneligibleAssignee,
    IntegrityViolation,
    InvalidTransition,
    PersistenceError,
    ProjectNotFound,
    SqlAlchemyWorkflowStore,
    TransitionGate,
    Unauthorized,
    WorkflowContext,
    is_history_consistent,
)


async def notifications_for(db: AsyncSession, user: User) -> list[Notification]:
    result = await db.execute(
        select(Notification)
        .where(Notification.user_id == user.id)
        .order_by(Notification.created_at)
    )
    return list(result.scalars().all())


# ==========================================================================
# Intake
# ==========================================================================

class TestOpenProject:
    """Opening a project at intake."""

    async def test_lead_opens_project(self, engine_for, lead: User, store):
        result = await engine_for(lead).open_project(
            creative_type="Brochure",
            brief="Tri-fold brochure for spring menu",
            deadline=datetime.now(timezone.utc) + timedelta(days=5),
            client_name="Bistro Nine",
        )

        project = result.project
        assert project.project_code == "SP-00001"
        assert project.status == WorkflowStatus.INTAKE
        assert project.assignee_id is None
        assert project.revision_count == 0

        steps = await store.list_workflow_steps(project.id)
        assert len(steps) == 1
        assert steps[0].action == WorkflowAction.INTAKE
        assert steps[0].from_status is None
        assert steps[0].to_status == WorkflowStatus.INTAKE
        assert steps[0].assigned_by_id == lead.id

    async def test_generated_code_skips_taken_codes(self, engine_for, make_project, lead: User):
        await make_project(project_code="SP-00002")

        result = await engine_for(lead).open_project(
            creative_type="Logo",
            brief="Wordmark refresh",
            deadline=datetime.now(timezone.utc) + timedelta(days=3),
        )

        assert result.project.project_code == "SP-00003"

    async def test_duplicate_code_rejected(self, engine_for, make_project, lead: User):
        await make_project(project_code="SP-DUP")

        with pytest.raises(DuplicateProjectCode):
            await engine_for(lead).open_project(
                creative_type="Logo",
                brief="Wordmark refresh",
                deadline=datetime.now(timezone.utc) + timedelta(days=3),
                project_code="SP-DUP",
            )

    async def test_designer_may_not_open_projects(self, engine_for, designer: User):
        with pytest.raises(Unauthorized):
            await engine_for(designer).open_project(
                creative_type="Logo",
                brief="Wordmark refresh",
                deadline=datetime.now(timezone.utc) + timedelta(days=3),
            )


# ==========================================================================
# Assignment
# ==========================================================================

class TestAssign:
    """Handing projects down the pipeline."""

    async def test_lead_assigns_intake_to_cs(
        self, engine_for, make_project, lead: User, cs_user: User, store, db_session
    ):
        """Intake assigned by the Lead lands with CS at assigned-to-cs."""
        project = await make_project(WorkflowStatus.INTAKE)

        result = await engine_for(lead).assign(project.project_code, cs_user.id, notes="Rush job")

        assert result.from_status == WorkflowStatus.INTAKE
        assert result.to_status == WorkflowStatus.ASSIGNED_TO_CS
        assert result.project.status == WorkflowStatus.ASSIGNED_TO_CS
        assert result.project.assignee_id == cs_user.id
        assert result.warnings == []

        steps = await store.list_workflow_steps(project.id)
        assert len(steps) == 2
        step = steps[-1]
        assert step.action == WorkflowAction.ASSIGN
        assert step.from_status == WorkflowStatus.INTAKE
        assert step.to_status == WorkflowStatus.ASSIGNED_TO_CS
        assert step.assigned_to_id == cs_user.id
        assert step.assigned_by_id == lead.id
        assert step.notes == "Rush job"

        inbox = await notifications_for(db_session, cs_user)
        assert len(inbox) == 1
        assert inbox[0].type == NotificationType.ASSIGNMENT
        assert inbox[0].payload["project_code"] == project.project_code
        assert "Rush job" in inbox[0].message

    async def test_assignee_outside_pool_rejected(
        self, engine_for, make_project, lead: User, cs_user: User, designer: User, store
    ):
        project = await make_project(WorkflowStatus.INTAKE)

        with pytest.raises(IneligibleAssignee):
            await engine_for(lead).assign(project.project_code, designer.id)

        project = await store.read_project(project.project_code)
        assert project.status == WorkflowStatus.INTAKE
        assert project.assignee_id is None

    async def test_inactive_user_is_not_assignable(
        self, engine_for, make_project, make_user, lead: User, cs_user: User
    ):
        retired = await make_user(UserRole.CS, name="Retired CS", is_active=False)
        project = await make_project(WorkflowStatus.INTAKE)

        with pytest.raises(IneligibleAssignee):
            await engine_for(lead).assign(project.project_code, retired.id)

    async def test_wrong_role_may_not_assign(
        self, engine_for, make_project, cs_user: User, designer: User
    ):
        project = await make_project(WorkflowStatus.INTAKE)

        with pytest.raises(Unauthorized):
            await engine_for(designer).assign(project.project_code, cs_user.id)

    async def test_unknown_project(self, engine_for, lead: User, cs_user: User):
        with pytest.raises(ProjectNotFound):
            await engine_for(lead).assign("SP-99999", cs_user.id)

    async def test_unauthenticated_context_rejected(self, engine_for, make_project, cs_user: User):
        project = await make_project(WorkflowStatus.INTAKE)

        with pytest.raises(Unauthorized):
            await engine_for(None).assign(project.project_code, cs_user.id)

    async def test_assignment_without_forward_move_keeps_status(
        self, engine_for, make_project, designer: User, qc_user: User, make_user
    ):
        """QC hands a completed design to another QC; status stays put."""
        other_qc = await make_user(UserRole.QC, name="Other QC")
        project = await make_project(WorkflowStatus.DESIGN_COMPLETE, assignee=designer)

        result = await engine_for(qc_user).assign(project.project_code, other_qc.id)

        assert result.project.status == WorkflowStatus.DESIGN_COMPLETE
        assert result.project.assignee_id == other_qc.id
        assert not result.changed


# ==========================================================================
# Status updates
# ==========================================================================

class TestUpdateStatus:
    """Direct status changes."""

    async def test_designer_starts_and_completes_design(
        self, engine_for, make_project, designer: User, store
    ):
        project = await make_project(WorkflowStatus.ASSIGNED_TO_DESIGNER, assignee=designer)
        engine = engine_for(designer)

        await engine.update_status(project.project_code, WorkflowStatus.IN_DESIGN)
        result = await engine.update_status(project.project_code, WorkflowStatus.DESIGN_COMPLETE)

        assert result.project.status == WorkflowStatus.DESIGN_COMPLETE
        assert result.project.assignee_id == designer.id

        steps = await store.list_workflow_steps(project.id)
        assert [s.to_status for s in steps][-2:] == [
            WorkflowStatus.IN_DESIGN,
            WorkflowStatus.DESIGN_COMPLETE,
        ]
        assert all(s.action == WorkflowAction.STATUS_UPDATE for s in steps[-2:])

    async def test_designer_who_is_not_assignee_is_rejected(
        self, engine_for, make_project, make_user, designer: User
    ):
        someone_else = await make_user(UserRole.DESIGNER, name="Someone Else")
        project = await make_project(WorkflowStatus.IN_DESIGN, assignee=designer)

        with pytest.raises(Unauthorized):
            await engine_for(someone_else).update_status(
                project.project_code, WorkflowStatus.DESIGN_COMPLETE
            )

    async def test_unreachable_target_is_invalid(
        self, engine_for, make_project, designer: User
    ):
        project = await make_project(WorkflowStatus.IN_DESIGN, assignee=designer)

        with pytest.raises(InvalidTransition):
            await engine_for(designer).update_status(project.project_code, WorkflowStatus.COMPLETED)

    async def test_same_status_only_appends_history(
        self, engine_for, make_project, designer: User, store, db_session
    ):
        project = await make_project(WorkflowStatus.IN_DESIGN, assignee=designer, revision_count=2)
        steps_before = len(await store.list_workflow_steps(project.id))

        result = await engine_for(designer).update_status(
            project.project_code, WorkflowStatus.IN_DESIGN, notes="Still working on it"
        )

        assert not result.changed
        assert result.project.status == WorkflowStatus.IN_DESIGN
        assert result.project.assignee_id == designer.id
        assert result.project.revision_count == 2

        steps = await store.list_workflow_steps(project.id)
        assert len(steps) == steps_before + 1
        assert steps[-1].from_status == steps[-1].to_status == WorkflowStatus.IN_DESIGN
        assert len(await notifications_for(db_session, designer)) == 1

    async def test_notification_goes_to_actor_when_unassigned(
        self, engine_for, make_project, admin: User, db_session
    ):
        project = await make_project(WorkflowStatus.INTAKE)

        await engine_for(admin).update_status(project.project_code, WorkflowStatus.INTAKE)

        inbox = await notifications_for(db_session, admin)
        assert len(inbox) == 1

    async def test_notifications_can_be_disabled(
        self, store, make_project, designer: User, db_session
    ):
        project = await make_project(WorkflowStatus.IN_DESIGN, assignee=designer)
        engine = AssignmentEngine(
            store, WorkflowContext.for_user(designer), notifications_enabled=False
        )

        result = await engine.update_status(project.project_code, WorkflowStatus.DESIGN_COMPLETE)

        assert result.notification is None
        assert result.step is not None
        assert await notifications_for(db_session, designer) == []


# ==========================================================================
# Workflow scenarios
# ==========================================================================

class TestQcRevisionLoop:
    """QC sends work back; only an authorized role can route it to design."""

    async def test_revision_then_reassign_to_designer(
        self,
        engine_for,
        make_project,
        admin: User,
        designer: User,
        qc_user: User,
        db_session,
    ):
        project = await make_project(WorkflowStatus.DESIGN_COMPLETE, assignee=qc_user)

        result = await engine_for(qc_user).update_status(
            project.project_code,
            WorkflowStatus.QC_REVISION_NEEDED,
            notes="Logo too small",
        )
        assert result.project.status == WorkflowStatus.QC_REVISION_NEEDED
        assert result.project.revision_count == 1

        inbox = await notifications_for(db_session, qc_user)
        assert inbox[-1].type == NotificationType.REVISION

        # Neither the designer nor QC may route the revision
        with pytest.raises(Unauthorized):
            await engine_for(designer).assign(project.project_code, designer.id)
        with pytest.raises(Unauthorized):
            await engine_for(qc_user).assign(project.project_code, designer.id)

        result = await engine_for(admin).assign(project.project_code, designer.id)
        assert result.project.status == WorkflowStatus.IN_DESIGN
        assert result.project.assignee_id == designer.id
        assert result.project.revision_count == 1

    async def test_client_revision_counts_too(
        self, engine_for, make_project, lead: User
    ):
        project = await make_project(WorkflowStatus.SENT_TO_CLIENT, assignee=lead, revision_count=1)

        result = await engine_for(lead).update_status(
            project.project_code, WorkflowStatus.REVISION_REQUESTED
        )

        assert result.project.revision_count == 2


class TestCompletion:
    """Closing a project and what happens after."""

    async def test_lead_completes_without_being_assignee(
        self, engine_for, make_project, lead: User, cs_user: User
    ):
        project = await make_project(WorkflowStatus.CLIENT_APPROVED, assignee=cs_user)

        result = await engine_for(lead).update_status(project.project_code, WorkflowStatus.COMPLETED)

        assert result.project.status == WorkflowStatus.COMPLETED

    async def test_assignee_completes_without_lead_role(
        self, engine_for, make_project, cs_user: User
    ):
        project = await make_project(WorkflowStatus.CLIENT_APPROVED, assignee=cs_user)

        result = await engine_for(cs_user).update_status(
            project.project_code, WorkflowStatus.COMPLETED
        )

        assert result.project.status == WorkflowStatus.COMPLETED

    async def test_other_users_may_not_complete(
        self, engine_for, make_project, make_user, cs_user: User
    ):
        other = await make_user(UserRole.CS, name="Other CS")
        project = await make_project(WorkflowStatus.CLIENT_APPROVED, assignee=cs_user)

        with pytest.raises(Unauthorized):
            await engine_for(other).update_status(project.project_code, WorkflowStatus.COMPLETED)

    async def test_nothing_leaves_completed(
        self, engine_for, make_project, admin: User, lead: User, cs_user: User, db_session
    ):
        project = await make_project(WorkflowStatus.CLIENT_APPROVED, assignee=lead)
        await engine_for(lead).update_status(project.project_code, WorkflowStatus.COMPLETED)
        inbox_before = len(await notifications_for(db_session, lead))

        with pytest.raises(InvalidTransition):
            await engine_for(lead).update_status(project.project_code, WorkflowStatus.COMPLETED)
        with pytest.raises(InvalidTransition):
            await engine_for(admin).update_status(project.project_code, WorkflowStatus.IN_DESIGN)
        with pytest.raises(InvalidTransition):
            await engine_for(admin).assign(project.project_code, cs_user.id)

        assert len(await notifications_for(db_session, lead)) == inbox_before


class TestEmptyPool:
    """Statuses nobody can be assigned at."""

    async def test_sent_to_client_assignment_unavailable(
        self, engine_for, make_project, admin: User, lead: User, cs_user: User, store
    ):
        project = await make_project(WorkflowStatus.SENT_TO_CLIENT, assignee=lead)

        assert await engine_for(admin).assignee_pool(project.project_code) == []
        with pytest.raises(EmptyAssigneePool):
            await engine_for(admin).assign(project.project_code, cs_user.id)

        project = await store.read_project(project.project_code)
        assert project.status == WorkflowStatus.SENT_TO_CLIENT
        assert project.assignee_id == lead.id


class TestFullPipeline:
    """A project walked from intake to completed."""

    async def test_happy_path(
        self,
        engine_for,
        make_project,
        admin: User,
        lead: User,
        cs_user: User,
        design_head: User,
        designer: User,
        qc_user: User,
        store,
    ):
        project = await make_project(WorkflowStatus.INTAKE)
        code = project.project_code

        await engine_for(lead).assign(code, cs_user.id)
        await engine_for(cs_user).assign(code, design_head.id)
        await engine_for(design_head).assign(code, designer.id)
        await engine_for(designer).update_status(code, WorkflowStatus.IN_DESIGN)
        await engine_for(designer).update_status(code, WorkflowStatus.DESIGN_COMPLETE)
        await engine_for(qc_user).assign(code, qc_user.id)
        await engine_for(qc_user).update_status(code, WorkflowStatus.IN_QC)
        await engine_for(qc_user).update_status(code, WorkflowStatus.QC_APPROVED)
        await engine_for(admin).assign(code, lead.id)
        await engine_for(lead).update_status(code, WorkflowStatus.SENT_TO_CLIENT)
        await engine_for(lead).update_status(code, WorkflowStatus.CLIENT_APPROVED)
        result = await engine_for(lead).update_status(code, WorkflowStatus.COMPLETED)

        assert result.project.status == WorkflowStatus.COMPLETED
        assert result.project.revision_count == 0

        steps = await store.list_workflow_steps(project.id)
        assert len(steps) == 13
        assert [s.sequence for s in steps] == list(range(1, 14))
        assert is_history_consistent(result.project, steps)
        # Every step starts where the previous one ended
        for previous, step in zip(steps, steps[1:]):
            assert step.from_status == previous.to_status


# ==========================================================================
# Concurrency
# ==========================================================================

class InterleavedWriterStore(SqlAlchemyWorkflowStore):
    """Another writer moves the project between our read and our write."""

    def __init__(self, db: AsyncSession, sneak_in: WorkflowStatus):
        super().__init__(db)
        self.sneak_in = sneak_in

    async def update_project(self, project_code, patch, expected_status):
        await self.db.execute(
            update(Project)
            .where(Project.project_code == project_code)
            .values(status=self.sneak_in)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return await super().update_project(project_code, patch, expected_status)


class TestConcurrency:
    """Stale callers and interleaved writers."""

    async def test_second_update_on_stale_status_fails(
        self, engine_for, make_project, qc_user: User, store
    ):
        """Two reviewers both acting on design-complete: only one wins."""
        project = await make_project(WorkflowStatus.DESIGN_COMPLETE, assignee=qc_user)

        first = await engine_for(qc_user).update_status(
            project.project_code,
            WorkflowStatus.QC_APPROVED,
            expected_status=WorkflowStatus.DESIGN_COMPLETE,
        )
        assert first.project.status == WorkflowStatus.QC_APPROVED

        with pytest.raises(ConcurrentModificationError) as exc_info:
            await engine_for(qc_user).update_status(
                project.project_code,
                WorkflowStatus.QC_REVISION_NEEDED,
                expected_status=WorkflowStatus.DESIGN_COMPLETE,
            )
        assert exc_info.value.actual_status == WorkflowStatus.QC_APPROVED

        project = await store.read_project(project.project_code)
        assert project.status == WorkflowStatus.QC_APPROVED
        assert project.revision_count == 0

    async def test_conditional_write_detects_interleaved_writer(
        self, db_session, make_project, qc_user: User
    ):
        project = await make_project(WorkflowStatus.DESIGN_COMPLETE, assignee=qc_user)
        racing_store = InterleavedWriterStore(db_session, sneak_in=WorkflowStatus.IN_QC)
        engine = AssignmentEngine(racing_store, WorkflowContext.for_user(qc_user))

        with pytest.raises(ConcurrentModificationError) as exc_info:
            await engine.update_status(project.project_code, WorkflowStatus.QC_APPROVED)

        assert exc_info.value.expected_status == WorkflowStatus.DESIGN_COMPLETE
        assert exc_info.value.actual_status == WorkflowStatus.IN_QC

        steps = await racing_store.list_workflow_steps(project.id)
        assert steps[-1].to_status == WorkflowStatus.DESIGN_COMPLETE

    async def test_gate_rejects_transition_in_flight(
        self, store, make_project, designer: User
    ):
        project = await make_project(WorkflowStatus.IN_DESIGN, assignee=designer)
        gate = TransitionGate()
        engine = AssignmentEngine(store, WorkflowContext.for_user(designer), gate=gate)

        async with gate.hold(project.project_code):
            assert gate.is_busy(project.project_code)
            with pytest.raises(ConcurrentModificationError):
                await engine.update_status(project.project_code, WorkflowStatus.DESIGN_COMPLETE)

        assert not gate.is_busy(project.project_code)
        result = await engine.update_status(project.project_code, WorkflowStatus.DESIGN_COMPLETE)
        assert result.project.status == WorkflowStatus.DESIGN_COMPLETE

    async def test_gate_released_after_failure(
        self, store, make_project, designer: User
    ):
        project = await make_project(WorkflowStatus.IN_DESIGN, assignee=designer)
        gate = TransitionGate()
        engine = AssignmentEngine(store, WorkflowContext.for_user(designer), gate=gate)

        with pytest.raises(InvalidTransition):
            await engine.update_status(project.project_code, WorkflowStatus.COMPLETED)

        assert not gate.is_busy(project.project_code)


# ==========================================================================
# Failure paths
# ==========================================================================

class FailingSideEffectsStore(SqlAlchemyWorkflowStore):
    """Audit log and notification sink both down."""

    async def append_workflow_step(self, *args, **kwargs):
        raise PersistenceError("audit log unavailable")

    async def create_notification(self, *args, **kwargs):
        raise PersistenceError("notification sink unavailable")


def reject_project_updates(monkeypatch, db: AsyncSession) -> None:
    """Make the database refuse every UPDATE issued through `db`."""
    execute = db.execute

    async def execute_or_fail(statement, *args, **kwargs):
        if isinstance(statement, Update):
            raise OperationalError(str(statement), {}, Exception("database is locked"))
        return await execute(statement, *args, **kwargs)

    monkeypatch.setattr(db, "execute", execute_or_fail)


class TestProjectWriteFailures:
    """A failed project update aborts before history and notification."""

    async def test_assign_aborts(
        self, monkeypatch, db_session, store, engine_for, make_project, lead: User, cs_user: User
    ):
        project = await make_project(WorkflowStatus.INTAKE)
        reject_project_updates(monkeypatch, db_session)

        with pytest.raises(PersistenceError) as exc_info:
            await engine_for(lead).assign(project.project_code, cs_user.id)

        assert exc_info.value.project_code == project.project_code
        monkeypatch.undo()

        stored = await store.read_project(project.project_code)
        assert stored.status == WorkflowStatus.INTAKE
        assert stored.assignee_id is None
        assert len(await store.list_workflow_steps(project.id)) == 1
        assert await notifications_for(db_session, cs_user) == []

    async def test_status_update_aborts(
        self, monkeypatch, db_session, store, engine_for, make_project, designer: User
    ):
        project = await make_project(WorkflowStatus.IN_DESIGN, assignee=designer)
        reject_project_updates(monkeypatch, db_session)

        with pytest.raises(PersistenceError):
            await engine_for(designer).update_status(
                project.project_code, WorkflowStatus.DESIGN_COMPLETE
            )

        monkeypatch.undo()

        stored = await store.read_project(project.project_code)
        assert stored.status == WorkflowStatus.IN_DESIGN
        steps = await store.list_workflow_steps(project.id)
        assert len(steps) == 2
        assert is_history_consistent(stored, steps)
        assert await notifications_for(db_session, designer) == []


class TestSideEffectFailures:
    """State change is kept; audit failures become warnings."""

    async def test_assignment_survives_audit_failure(
        self, db_session, make_project, lead: User, cs_user: User
    ):
        project = await make_project(WorkflowStatus.INTAKE)
        failing_store = FailingSideEffectsStore(db_session)
        engine = AssignmentEngine(failing_store, WorkflowContext.for_user(lead))

        result = await engine.assign(project.project_code, cs_user.id)

        assert result.project.status == WorkflowStatus.ASSIGNED_TO_CS
        assert result.step is None
        assert result.notification is None
        assert len(result.warnings) == 2
        assert "audit log unavailable" in result.warnings[0]

        stored = await failing_store.read_project(project.project_code)
        assert stored.status == WorkflowStatus.ASSIGNED_TO_CS
        steps = await failing_store.list_workflow_steps(project.id)
        assert not is_history_consistent(stored, steps)


class TestIntegrity:
    """Stored data the workflow never produces is reported, not accepted."""

    async def test_designer_holding_cs_stage(
        self, engine_for, make_project, cs_user: User, design_head: User, designer: User
    ):
        project = await make_project(WorkflowStatus.ASSIGNED_TO_CS, assignee=designer)

        with pytest.raises(IntegrityViolation):
            await engine_for(cs_user).assign(project.project_code, design_head.id)

    async def test_assignee_missing_from_users(
        self, engine_for, make_project, admin: User
    ):
        ghost = User(
            id=uuid4(),
            email="ghost@example.com",
            password_hash="x",
            name="Ghost",
            role=UserRole.DESIGNER,
            is_active=True,
        )
        project = await make_project(WorkflowStatus.IN_DESIGN, assignee=ghost)

        with pytest.raises(IntegrityViolation):
            await engine_for(admin).update_status(project.project_code, WorkflowStatus.IN_DESIGN)

    async def test_non_intake_without_assignee(
        self, engine_for, make_project, admin: User
    ):
        project = await make_project(WorkflowStatus.IN_QC)

        with pytest.raises(IntegrityViolation):
            await engine_for(admin).available_actions(project.project_code)


# ==========================================================================
# Available actions
# ==========================================================================

class TestAvailableActions:
    """Controls offered to the current user."""

    async def test_lead_at_intake(
        self, engine_for, make_project, lead: User, cs_user: User
    ):
        project = await make_project(WorkflowStatus.INTAKE)

        actions = await engine_for(lead).available_actions(project.project_code)

        assert actions.can_assign
        assert actions.assignment_available
        assert actions.assignment_target == WorkflowStatus.ASSIGNED_TO_CS
        assert [u.id for u in actions.assignees] == [cs_user.id]
        assert actions.status_targets == []

    async def test_designer_in_design(
        self, engine_for, make_project, designer: User
    ):
        project = await make_project(WorkflowStatus.IN_DESIGN, assignee=designer)

        actions = await engine_for(designer).available_actions(project.project_code)

        assert actions.is_assignee
        assert not actions.can_assign
        assert not actions.assignment_available
        assert actions.status_targets == [WorkflowStatus.DESIGN_COMPLETE]

    async def test_completed_offers_nothing(
        self, engine_for, make_project, admin: User, lead: User
    ):
        project = await make_project(WorkflowStatus.COMPLETED, assignee=lead)

        actions = await engine_for(admin).available_actions(project.project_code)

        assert not actions.can_assign
        assert actions.status_targets == []
