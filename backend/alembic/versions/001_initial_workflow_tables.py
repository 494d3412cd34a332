"""Initial workflow tables

Revision ID: 001_initial_workflow
Revises:
Create Date: 2026-10-19

Creates all tables for the project workflow:
- users (studio members and their roles)
- projects (workflow state and design time)
- project_workflow_log (append-only transition history)
- notifications
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001_initial_workflow'
down_revision = None
branch_labels = None
depends_on = None


WORKFLOW_STATUSES = (
    'intake', 'assigned-to-cs', 'assigned-to-design-head', 'assigned-to-designer',
    'in-design', 'design-complete', 'in-qc', 'qc-approved', 'qc-revision-needed',
    'sent-to-client', 'client-approved', 'revision-requested', 'completed',
)


def upgrade() -> None:
    # ==========================================================================
    # Create Enums
    # ==========================================================================

    user_role_enum = postgresql.ENUM(
        'admin', 'lead', 'cs', 'design_head', 'designer', 'qc', 'client_serving', 'client',
        name='userrole',
        create_type=False,
    )
    user_role_enum.create(op.get_bind(), checkfirst=True)

    workflow_status_enum = postgresql.ENUM(
        *WORKFLOW_STATUSES,
        name='workflowstatus',
        create_type=False,
    )
    workflow_status_enum.create(op.get_bind(), checkfirst=True)

    workflow_action_enum = postgresql.ENUM(
        'intake', 'assign', 'status_update',
        name='workflowaction',
        create_type=False,
    )
    workflow_action_enum.create(op.get_bind(), checkfirst=True)

    notification_type_enum = postgresql.ENUM(
        'assignment', 'revision', 'approval', 'completion',
        name='notificationtype',
        create_type=False,
    )
    notification_type_enum.create(op.get_bind(), checkfirst=True)

    # ==========================================================================
    # Users
    # ==========================================================================

    op.create_table(
        'users',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('role', user_role_enum, nullable=False, server_default='designer'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'], unique=False)

    # ==========================================================================
    # Projects
    # ==========================================================================

    op.create_table(
        'projects',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('project_code', sa.String(length=50), nullable=False),
        sa.Column('creative_type', sa.String(length=100), nullable=False),
        sa.Column('brief', sa.Text(), nullable=False),
        sa.Column('deadline', sa.DateTime(timezone=True), nullable=False),
        sa.Column('client_name', sa.String(length=255), nullable=True),
        sa.Column('client_email', sa.String(length=255), nullable=True),
        sa.Column('status', workflow_status_enum, nullable=False, server_default='intake'),
        sa.Column('assignee_id', sa.UUID(), nullable=True),
        sa.Column('revision_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('design_start_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('design_end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('total_design_hours', sa.Numeric(precision=8, scale=2), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['assignee_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_projects_project_code', 'projects', ['project_code'], unique=True)
    op.create_index('ix_projects_status', 'projects', ['status'], unique=False)
    op.create_index('ix_projects_assignee_id', 'projects', ['assignee_id'], unique=False)

    # ==========================================================================
    # Workflow log
    # ==========================================================================

    op.create_table(
        'project_workflow_log',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('project_id', sa.UUID(), nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('action', workflow_action_enum, nullable=False),
        sa.Column('from_status', workflow_status_enum, nullable=True),
        sa.Column('to_status', workflow_status_enum, nullable=False),
        sa.Column('assigned_to_id', sa.UUID(), nullable=True),
        sa.Column('assigned_by_id', sa.UUID(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('project_id', 'sequence', name='uq_workflow_step_sequence'),
    )
    op.create_index('ix_project_workflow_log_project_id', 'project_workflow_log', ['project_id'], unique=False)
    op.create_index('ix_project_workflow_log_occurred_at', 'project_workflow_log', ['occurred_at'], unique=False)

    # ==========================================================================
    # Notifications
    # ==========================================================================

    op.create_table(
        'notifications',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('type', notification_type_enum, nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=True),
        sa.Column('read_flag', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'], unique=False)
    op.create_index('ix_notifications_created_at', 'notifications', ['created_at'], unique=False)


def downgrade() -> None:
    # Drop tables in reverse order
    op.drop_table('notifications')
    op.drop_table('project_workflow_log')
    op.drop_table('projects')
    op.drop_table('users')

    # Drop enums
    op.execute("DROP TYPE IF EXISTS notificationtype")
    op.execute("DROP TYPE IF EXISTS workflowaction")
    op.execute("DROP TYPE IF EXISTS workflowstatus")
    op.execute("DROP TYPE IF EXISTS userrole")
