"""Initial internship matching schema

Revision ID: internship_v1
Revises:
Create Date: 2026-10-01 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = 'internship_v1'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _base_columns():
    return [
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    ]


def upgrade() -> None:
    # Users and profiles
    op.create_table(
        'users',
        *_base_columns(),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('email_notifications', sa.Boolean(), nullable=False, server_default='true'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_users_id'), 'users', ['id'])
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table(
        'students',
        *_base_columns(),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('university', sa.String(length=255), nullable=True),
        sa.Column('grade', sa.String(length=50), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('skills', sa.JSON(), nullable=True),
        sa.Column('links', sa.JSON(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id'),
    )
    op.create_index(op.f('ix_students_id'), 'students', ['id'])

    op.create_table(
        'companies',
        *_base_columns(),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('website', sa.String(length=500), nullable=True),
        sa.Column('industry', sa.String(length=100), nullable=True),
        sa.Column('address', sa.String(length=500), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_approved', sa.Boolean(), nullable=False, server_default='false'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id'),
    )
    op.create_index(op.f('ix_companies_id'), 'companies', ['id'])
    op.create_index(op.f('ix_companies_name'), 'companies', ['name'])

    op.create_table(
        'job_postings',
        *_base_columns(),
        sa.Column('company_id', sa.Uuid(), nullable=False),
        sa.Column('title', sa.String(length=500), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('requirements', sa.JSON(), nullable=True),
        sa.Column('salary', sa.String(length=100), nullable=True),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.ForeignKeyConstraint(['company_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_job_postings_id'), 'job_postings', ['id'])
    op.create_index(op.f('ix_job_postings_company_id'), 'job_postings', ['company_id'])
    op.create_index(op.f('ix_job_postings_status'), 'job_postings', ['status'])

    # Application lifecycle
    op.create_table(
        'applications',
        *_base_columns(),
        sa.Column('job_id', sa.Uuid(), nullable=False),
        sa.Column('student_id', sa.Uuid(), nullable=False),
        sa.Column('company_id', sa.Uuid(), nullable=False),
        sa.Column('status', sa.String(length=30), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('match_id', sa.Uuid(), nullable=True),
        sa.ForeignKeyConstraint(['job_id'], ['job_postings.id']),
        sa.ForeignKeyConstraint(['student_id'], ['users.id']),
        sa.ForeignKeyConstraint(['company_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('student_id', 'job_id', name='unique_student_job_application'),
        sa.UniqueConstraint('match_id'),
    )
    op.create_index(op.f('ix_applications_id'), 'applications', ['id'])
    op.create_index(op.f('ix_applications_job_id'), 'applications', ['job_id'])
    op.create_index('idx_applications_student_status', 'applications', ['student_id', 'status'])
    op.create_index('idx_applications_company_status', 'applications', ['company_id', 'status'])

    op.create_table(
        'active_applications',
        *_base_columns(),
        sa.Column('student_id', sa.Uuid(), nullable=False),
        sa.Column('application_id', sa.Uuid(), nullable=True),
        sa.ForeignKeyConstraint(['student_id'], ['users.id']),
        sa.ForeignKeyConstraint(['application_id'], ['applications.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('student_id'),
    )
    op.create_index(op.f('ix_active_applications_id'), 'active_applications', ['id'])

    op.create_table(
        'matches',
        *_base_columns(),
        sa.Column('application_id', sa.Uuid(), nullable=False),
        sa.Column('job_id', sa.Uuid(), nullable=False),
        sa.Column('student_id', sa.Uuid(), nullable=False),
        sa.Column('company_id', sa.Uuid(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('start_date', sa.DateTime(), nullable=False),
        sa.Column('end_date', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['application_id'], ['applications.id']),
        sa.ForeignKeyConstraint(['job_id'], ['job_postings.id']),
        sa.ForeignKeyConstraint(['student_id'], ['users.id']),
        sa.ForeignKeyConstraint(['company_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('application_id'),
    )
    op.create_index(op.f('ix_matches_id'), 'matches', ['id'])
    op.create_index(op.f('ix_matches_student_id'), 'matches', ['student_id'])
    op.create_index(op.f('ix_matches_company_id'), 'matches', ['company_id'])

    op.create_table(
        'daily_reports',
        *_base_columns(),
        sa.Column('match_id', sa.Uuid(), nullable=False),
        sa.Column('student_id', sa.Uuid(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('learning', sa.Text(), nullable=False),
        sa.Column('next_goals', sa.Text(), nullable=False),
        sa.Column('company_comment', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['match_id'], ['matches.id']),
        sa.ForeignKeyConstraint(['student_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_daily_reports_id'), 'daily_reports', ['id'])
    op.create_index('idx_daily_reports_match_date', 'daily_reports', ['match_id', 'date'])

    op.create_table(
        'evaluations',
        *_base_columns(),
        sa.Column('match_id', sa.Uuid(), nullable=False),
        sa.Column('from_id', sa.Uuid(), nullable=False),
        sa.Column('to_id', sa.Uuid(), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(['match_id'], ['matches.id']),
        sa.ForeignKeyConstraint(['from_id'], ['users.id']),
        sa.ForeignKeyConstraint(['to_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('match_id', 'from_id', name='unique_match_evaluator'),
        sa.CheckConstraint('score BETWEEN 1 AND 5', name='evaluation_score_range'),
    )
    op.create_index(op.f('ix_evaluations_id'), 'evaluations', ['id'])
    op.create_index(op.f('ix_evaluations_match_id'), 'evaluations', ['match_id'])

    # Side channels
    op.create_table(
        'notifications',
        *_base_columns(),
        sa.Column('recipient_user_id', sa.Uuid(), nullable=True),
        sa.Column('recipient_role', sa.String(length=20), nullable=True),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('link', sa.String(length=500), nullable=True),
        sa.Column('read', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('read_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['recipient_user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint(
            '(recipient_user_id IS NULL) <> (recipient_role IS NULL)',
            name='notification_single_target',
        ),
    )
    op.create_index(op.f('ix_notifications_id'), 'notifications', ['id'])
    op.create_index('idx_notifications_user_unread', 'notifications', ['recipient_user_id', 'read'])
    op.create_index('idx_notifications_role_unread', 'notifications', ['recipient_role', 'read'])
    op.create_index('idx_notifications_created_at', 'notifications', ['created_at'])

    op.create_table(
        'outbox_events',
        *_base_columns(),
        sa.Column('event_type', sa.String(length=50), nullable=False),
        sa.Column('recipient_user_id', sa.Uuid(), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('next_attempt_at', sa.DateTime(), nullable=False),
        sa.Column('dispatched_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['recipient_user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_outbox_events_id'), 'outbox_events', ['id'])
    op.create_index('idx_outbox_status_next_attempt', 'outbox_events', ['status', 'next_attempt_at'])


def downgrade() -> None:
    op.drop_table('outbox_events')
    op.drop_table('notifications')
    op.drop_table('evaluations')
    op.drop_table('daily_reports')
    op.drop_table('matches')
    op.drop_table('active_applications')
    op.drop_table('applications')
    op.drop_table('job_postings')
    op.drop_table('companies')
    op.drop_table('students')
    op.drop_table('users')
