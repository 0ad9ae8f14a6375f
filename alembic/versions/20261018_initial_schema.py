"""Initial schema: users, permissions, projects, tasks, team and attendance.

Revision ID: 3f1a9c2d7e01
Revises:
Create Date: 2026-10-18 09:00:00.000000

Creates every table of the application. Default roles and permissions
are inserted at startup (or by scripts/seed_permissions.py), not here.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3f1a9c2d7e01'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(with_updated: bool = True) -> list:
    columns = [sa.Column('created_at', sa.DateTime(), nullable=False)]
    if with_updated:
        columns.append(sa.Column('updated_at', sa.DateTime(), nullable=False))
    return columns


def upgrade() -> None:
    """Create all tables."""
    op.create_table(
        'Users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('name', sa.String(100), nullable=True),
        sa.Column('image', sa.String(500), nullable=True),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_Users_email', 'Users', ['email'], unique=True)
    op.create_index('ix_Users_role', 'Users', ['role'], unique=False)

    op.create_table(
        'Roles',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(50), nullable=False),
        sa.Column('description', sa.String(255), nullable=True),
        sa.Column('color', sa.String(20), nullable=True),
        sa.Column('is_system', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_Roles_name', 'Roles', ['name'], unique=True)

    op.create_table(
        'Permissions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.String(255), nullable=True),
        sa.Column('category', sa.String(50), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_Permissions_name', 'Permissions', ['name'], unique=True)

    op.create_table(
        'RolePermissions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('role_id', sa.Uuid(), nullable=False),
        sa.Column('permission_id', sa.Uuid(), nullable=False),
        *_timestamps(with_updated=False),
        sa.ForeignKeyConstraint(['role_id'], ['Roles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['permission_id'], ['Permissions.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('role_id', 'permission_id', name='uq_role_permission'),
    )
    op.create_index('ix_RolePermissions_role_id', 'RolePermissions', ['role_id'], unique=False)
    op.create_index('ix_RolePermissions_permission_id', 'RolePermissions', ['permission_id'], unique=False)

    op.create_table(
        'Projects',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('start_date', sa.DateTime(), nullable=True),
        sa.Column('end_date', sa.DateTime(), nullable=True),
        sa.Column('due_date', sa.DateTime(), nullable=True),
        sa.Column('estimated_time', sa.Float(), nullable=True),
        sa.Column('total_time_spent', sa.Float(), nullable=True),
        sa.Column('created_by_id', sa.Uuid(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['created_by_id'], ['Users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_Projects_created_by_id', 'Projects', ['created_by_id'], unique=False)

    op.create_table(
        'ProjectStatuses',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('project_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('color', sa.String(20), nullable=False),
        sa.Column('description', sa.String(500), nullable=True),
        sa.Column('order', sa.Integer(), nullable=False),
        sa.Column('is_default', sa.Boolean(), nullable=False),
        sa.Column('is_completed_status', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['project_id'], ['Projects.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('project_id', 'name', name='uq_project_status_name'),
    )
    op.create_index('ix_ProjectStatuses_project_id', 'ProjectStatuses', ['project_id'], unique=False)

    op.create_table(
        'TeamMembers',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('project_id', sa.Uuid(), nullable=False),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('joined_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['Users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['project_id'], ['Projects.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'project_id', name='uq_team_member_user_project'),
    )
    op.create_index('ix_TeamMembers_user_id', 'TeamMembers', ['user_id'], unique=False)
    op.create_index('ix_TeamMembers_project_id', 'TeamMembers', ['project_id'], unique=False)

    op.create_table(
        'Tasks',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('priority', sa.String(20), nullable=False),
        sa.Column('due_date', sa.DateTime(), nullable=True),
        sa.Column('start_date', sa.DateTime(), nullable=True),
        sa.Column('end_date', sa.DateTime(), nullable=True),
        sa.Column('estimated_time', sa.Float(), nullable=True),
        sa.Column('time_spent', sa.Float(), nullable=True),
        sa.Column('project_id', sa.Uuid(), nullable=False),
        sa.Column('status_id', sa.Uuid(), nullable=True),
        sa.Column('parent_id', sa.Uuid(), nullable=True),
        sa.Column('created_by_id', sa.Uuid(), nullable=True),
        sa.Column('order', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['project_id'], ['Projects.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['status_id'], ['ProjectStatuses.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['parent_id'], ['Tasks.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by_id'], ['Users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_Tasks_priority', 'Tasks', ['priority'], unique=False)
    op.create_index('ix_Tasks_project_id', 'Tasks', ['project_id'], unique=False)
    op.create_index('ix_Tasks_status_id', 'Tasks', ['status_id'], unique=False)
    op.create_index('ix_Tasks_parent_id', 'Tasks', ['parent_id'], unique=False)

    op.create_table(
        'TaskAssignees',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('task_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        *_timestamps(with_updated=False),
        sa.ForeignKeyConstraint(['task_id'], ['Tasks.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['Users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('task_id', 'user_id', name='uq_task_assignee'),
    )
    op.create_index('ix_TaskAssignees_task_id', 'TaskAssignees', ['task_id'], unique=False)
    op.create_index('ix_TaskAssignees_user_id', 'TaskAssignees', ['user_id'], unique=False)

    op.create_table(
        'Comments',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('task_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['task_id'], ['Tasks.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['Users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_Comments_task_id', 'Comments', ['task_id'], unique=False)
    op.create_index('ix_Comments_user_id', 'Comments', ['user_id'], unique=False)

    op.create_table(
        'Activities',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('action', sa.String(50), nullable=False),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', sa.String(64), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('project_id', sa.Uuid(), nullable=True),
        sa.Column('task_id', sa.Uuid(), nullable=True),
        *_timestamps(with_updated=False),
        sa.ForeignKeyConstraint(['user_id'], ['Users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['project_id'], ['Projects.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['task_id'], ['Tasks.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_Activities_action', 'Activities', ['action'], unique=False)
    op.create_index('ix_Activities_entity_type', 'Activities', ['entity_type'], unique=False)
    op.create_index('ix_Activities_user_id', 'Activities', ['user_id'], unique=False)
    op.create_index('ix_Activities_project_id', 'Activities', ['project_id'], unique=False)
    op.create_index('ix_Activities_created_at', 'Activities', ['created_at'], unique=False)

    op.create_table(
        'Attendance',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('check_in_time', sa.DateTime(), nullable=False),
        sa.Column('check_out_time', sa.DateTime(), nullable=True),
        sa.Column('check_in_latitude', sa.Float(), nullable=True),
        sa.Column('check_in_longitude', sa.Float(), nullable=True),
        sa.Column('check_out_latitude', sa.Float(), nullable=True),
        sa.Column('check_out_longitude', sa.Float(), nullable=True),
        sa.Column('check_in_ip_address', sa.String(64), nullable=True),
        sa.Column('check_out_ip_address', sa.String(64), nullable=True),
        sa.Column('check_in_device_info', sa.String(500), nullable=True),
        sa.Column('check_out_device_info', sa.String(500), nullable=True),
        sa.Column('total_hours', sa.Float(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('project_id', sa.Uuid(), nullable=True),
        sa.Column('task_id', sa.Uuid(), nullable=True),
        sa.Column('auto_checkout', sa.Boolean(), nullable=False),
        sa.Column('adjusted_by_id', sa.Uuid(), nullable=True),
        sa.Column('adjustment_reason', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['Users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['project_id'], ['Projects.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['task_id'], ['Tasks.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['adjusted_by_id'], ['Users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_Attendance_user_id', 'Attendance', ['user_id'], unique=False)
    op.create_index('ix_Attendance_check_in_time', 'Attendance', ['check_in_time'], unique=False)

    op.create_table(
        'AttendanceSettings',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('work_hours_per_day', sa.Float(), nullable=False),
        sa.Column('work_days', sa.String(20), nullable=False),
        sa.Column('reminder_enabled', sa.Boolean(), nullable=False),
        sa.Column('reminder_time', sa.String(5), nullable=False),
        sa.Column('auto_checkout_enabled', sa.Boolean(), nullable=False),
        sa.Column('auto_checkout_time', sa.String(5), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['Users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id'),
    )

    op.create_table(
        'AttendanceCorrectionRequests',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('attendance_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('original_check_in_time', sa.DateTime(), nullable=False),
        sa.Column('original_check_out_time', sa.DateTime(), nullable=True),
        sa.Column('requested_check_in_time', sa.DateTime(), nullable=False),
        sa.Column('requested_check_out_time', sa.DateTime(), nullable=True),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('reviewed_by_id', sa.Uuid(), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(), nullable=True),
        sa.Column('review_notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['attendance_id'], ['Attendance.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['Users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['reviewed_by_id'], ['Users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_AttendanceCorrectionRequests_attendance_id',
        'AttendanceCorrectionRequests',
        ['attendance_id'],
        unique=False,
    )
    op.create_index(
        'ix_AttendanceCorrectionRequests_user_id',
        'AttendanceCorrectionRequests',
        ['user_id'],
        unique=False,
    )
    op.create_index(
        'ix_AttendanceCorrectionRequests_status',
        'AttendanceCorrectionRequests',
        ['status'],
        unique=False,
    )


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_table('AttendanceCorrectionRequests')
    op.drop_table('AttendanceSettings')
    op.drop_table('Attendance')
    op.drop_table('Activities')
    op.drop_table('Comments')
    op.drop_table('TaskAssignees')
    op.drop_table('Tasks')
    op.drop_table('TeamMembers')
    op.drop_table('ProjectStatuses')
    op.drop_table('Projects')
    op.drop_table('RolePermissions')
    op.drop_table('Permissions')
    op.drop_table('Roles')
    op.drop_table('Users')
