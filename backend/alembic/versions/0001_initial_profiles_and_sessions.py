"""Create profiles and user_sessions

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-17

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    """Create the profiles and user_sessions tables."""
    op.create_table(
        'profiles',
        sa.Column('id', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('contact_email', sa.String(length=255), nullable=True),
        sa.Column('plan', sa.String(length=20), server_default=sa.text("'free'"), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('onboarding_completed', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('telegram_chat_id', sa.String(length=64), nullable=True),
        sa.Column('job_title', sa.String(length=255), nullable=True),
        sa.Column('industry', sa.String(length=255), nullable=True),
        sa.Column('seniority', sa.String(length=100), nullable=True),
        sa.Column('tone', sa.String(length=100), nullable=True),
        sa.Column('focus', postgresql.JSONB(), nullable=True),
        sa.Column('stack_context', postgresql.JSONB(), nullable=True),
        sa.Column('audience_target', postgresql.JSONB(), nullable=True),
        sa.Column('directive_json', postgresql.JSONB(), nullable=True),
        sa.Column('onboarding_json', postgresql.JSONB(), nullable=True),
        sa.Column('personal_json', postgresql.JSONB(), nullable=True),
        sa.Column('profile_json', postgresql.JSONB(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_profiles')),
    )
    op.create_index(op.f('ix_profiles_email'), 'profiles', ['email'], unique=False)

    op.create_table(
        'user_sessions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('session_token', sa.TEXT(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('last_activity', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_user_sessions')),
    )
    op.create_index(op.f('ix_user_sessions_user_id'), 'user_sessions', ['user_id'], unique=False)
    op.create_index(op.f('ix_user_sessions_session_token'), 'user_sessions', ['session_token'], unique=True)
    op.create_index(op.f('ix_user_sessions_expires_at'), 'user_sessions', ['expires_at'], unique=False)
    op.create_index(op.f('ix_user_sessions_last_activity'), 'user_sessions', ['last_activity'], unique=False)


def downgrade():
    """Drop the profiles and user_sessions tables."""
    op.drop_table('user_sessions')
    op.drop_index(op.f('ix_profiles_email'), table_name='profiles')
    op.drop_table('profiles')
