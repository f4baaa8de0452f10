"""initial_marketplace_schema

Revision ID: 20260301_0000
Revises:
Create Date: 2026-03-01 00:00:00.000000+00:00

"""
from alembic import op
import sqlalchemy as sa


revision = '20260301_0000'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Reference data
    op.create_table(
        'skills',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_skills_name'), 'skills', ['name'], unique=True)

    op.create_table(
        'categories',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('slug', sa.String(length=100), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_categories_slug'), 'categories', ['slug'], unique=True)

    op.create_table(
        'locations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    # Users
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('password_hash', sa.String(), nullable=True),
        sa.Column('account_type', sa.Enum('CLIENT', 'FREELANCER', 'ADMIN', name='account_type'), nullable=True),
        sa.Column('name', sa.String(length=100), nullable=True),
        sa.Column('surname', sa.String(length=100), nullable=True),
        sa.Column('language', sa.String(length=2), nullable=False, server_default='pl'),
        sa.Column('company_size', sa.String(length=20), nullable=True),
        sa.Column('is_fake', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('welcome_email_sent_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index(op.f('ix_users_account_type'), 'users', ['account_type'], unique=False)

    op.create_table(
        'user_skills',
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('skill_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['skill_id'], ['skills.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('user_id', 'skill_id')
    )

    # Jobs
    op.create_table(
        'jobs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.Column('author_id', sa.Uuid(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('language', sa.String(length=20), nullable=False),
        sa.Column('billing_type', sa.String(length=20), nullable=False),
        sa.Column('hours_per_week', sa.String(length=20), nullable=True),
        sa.Column('rate', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('rate_negotiable', sa.Boolean(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('experience_level', sa.String(length=20), nullable=False),
        sa.Column('location_id', sa.Integer(), nullable=True),
        sa.Column('is_remote', sa.Boolean(), nullable=False),
        sa.Column('project_type', sa.String(length=20), nullable=False),
        sa.Column('deadline', sa.DateTime(), nullable=True),
        sa.Column('expected_offers', sa.Integer(), nullable=True),
        sa.Column('expected_applicant_types', sa.JSON(), nullable=False),
        sa.Column('preview_hash', sa.String(length=32), nullable=True),
        sa.Column('rejected_reason', sa.Text(), nullable=True),
        sa.Column('rejected_at', sa.DateTime(), nullable=True),
        sa.Column('published_at', sa.DateTime(), nullable=True),
        sa.Column('closed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id']),
        sa.ForeignKeyConstraint(['author_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['location_id'], ['locations.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('preview_hash')
    )
    op.create_index(op.f('ix_jobs_category_id'), 'jobs', ['category_id'], unique=False)
    op.create_index(op.f('ix_jobs_author_id'), 'jobs', ['author_id'], unique=False)
    op.create_index('ix_jobs_status_published_at', 'jobs', ['status', 'published_at'], unique=False)

    op.create_table(
        'job_skills',
        sa.Column('job_id', sa.Uuid(), nullable=False),
        sa.Column('skill_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['skill_id'], ['skills.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('job_id', 'skill_id')
    )

    # Applications and favorites
    op.create_table(
        'job_applications',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('job_id', sa.Uuid(), nullable=False),
        sa.Column('freelancer_id', sa.Uuid(), nullable=False),
        sa.Column('message', sa.String(length=2000), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['freelancer_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('job_id', 'freelancer_id', name='uq_job_applications_job_freelancer')
    )
    op.create_index(op.f('ix_job_applications_job_id'), 'job_applications', ['job_id'], unique=False)
    op.create_index(op.f('ix_job_applications_freelancer_id'), 'job_applications', ['freelancer_id'], unique=False)

    op.create_table(
        'favorites',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('job_id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'job_id', name='uq_favorites_user_job')
    )
    op.create_index(op.f('ix_favorites_user_id'), 'favorites', ['user_id'], unique=False)
    op.create_index(op.f('ix_favorites_job_id'), 'favorites', ['job_id'], unique=False)

    # Notifications
    op.create_table(
        'notification_preferences',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('enabled', sa.Boolean(), nullable=False),
        sa.Column('frequency', sa.String(length=20), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'type', name='uq_notification_preferences_user_type')
    )
    op.create_index(op.f('ix_notification_preferences_user_id'), 'notification_preferences', ['user_id'], unique=False)

    op.create_table(
        'notification_logs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('job_id', sa.Uuid(), nullable=True),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('dispatched', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_notification_logs_user_id'), 'notification_logs', ['user_id'], unique=False)
    op.create_index(op.f('ix_notification_logs_job_id'), 'notification_logs', ['job_id'], unique=False)
    op.create_index(op.f('ix_notification_logs_dispatched'), 'notification_logs', ['dispatched'], unique=False)

    op.create_table(
        'category_follows',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'category_id', name='uq_category_follows_user_category')
    )
    op.create_index(op.f('ix_category_follows_user_id'), 'category_follows', ['user_id'], unique=False)

    # Proposals
    op.create_table(
        'proposals',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('token', sa.String(length=64), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('reason', sa.String(length=30), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('job_id', sa.Uuid(), nullable=False),
        sa.Column('created_by_id', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('responded_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_proposals_token'), 'proposals', ['token'], unique=True)
    op.create_index(op.f('ix_proposals_email'), 'proposals', ['email'], unique=False)
    op.create_index(op.f('ix_proposals_status'), 'proposals', ['status'], unique=False)
    op.create_index(op.f('ix_proposals_job_id'), 'proposals', ['job_id'], unique=False)


def downgrade() -> None:
    op.drop_table('proposals')
    op.drop_table('category_follows')
    op.drop_table('notification_logs')
    op.drop_table('notification_preferences')
    op.drop_table('favorites')
    op.drop_table('job_applications')
    op.drop_table('job_skills')
    op.drop_table('jobs')
    op.drop_table('user_skills')
    op.drop_table('users')
    sa.Enum(name='account_type').drop(op.get_bind(), checkfirst=True)
    op.drop_table('locations')
    op.drop_table('categories')
    op.drop_table('skills')
