"""Initial migration - Create all tables.

Revision ID: 001
Revises: 
Create Date: 2026-10-18 08:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create strategy_parameters table
    op.create_table(
        'strategy_parameters',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('param_key', sa.String(length=100), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('value', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_strategy_parameters')),
        sa.UniqueConstraint('param_key', name=op.f('uq_strategy_parameters_param_key')),
        sa.CheckConstraint('value >= 0 AND value <= 10', name=op.f('ck_strategy_parameters_value_range'))
    )

    # Create activities table
    op.create_table(
        'activities',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('platform', sa.String(length=100), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('discount', sa.String(length=100), nullable=False),
        sa.Column('commission_rate', sa.String(length=50), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('status', sa.Enum('UPCOMING', 'ACTIVE', 'ENDED', 'UNDECIDED', name='activitystatus'), nullable=False),
        sa.Column('room_types', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('minimum_stay', sa.Integer(), nullable=True),
        sa.Column('tag', sa.String(length=50), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_activities'))
    )
    op.create_index('ix_activities_status', 'activities', ['status'])

    # Create recommendation_requests table
    op.create_table(
        'recommendation_requests',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('requested_by', sa.String(length=200), nullable=False),
        sa.Column('weights', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('activities', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('preference', sa.String(length=50), nullable=False),
        sa.Column('model', sa.String(length=100), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_recommendation_requests'))
    )

    # Create strategies table
    op.create_table(
        'strategies',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('request_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=300), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('advantages', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('disadvantages', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('steps', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('notes', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('activity_ids', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('metrics', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('is_recommended', sa.Boolean(), nullable=False),
        sa.Column('score', sa.Float(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('applied_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('applied_by', sa.String(length=200), nullable=True),
        sa.ForeignKeyConstraint(['request_id'], ['recommendation_requests.id'], name=op.f('fk_strategies_request_id_recommendation_requests')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_strategies'))
    )
    op.create_index('ix_strategies_created_at', 'strategies', ['created_at'])
    op.create_index('ix_strategies_applied_at', 'strategies', ['applied_at'])
    op.create_index('ix_strategies_request_id', 'strategies', ['request_id'])


def downgrade() -> None:
    op.drop_table('strategies')
    op.drop_table('recommendation_requests')
    op.drop_table('activities')
    op.drop_table('strategy_parameters')
    sa.Enum(name='activitystatus').drop(op.get_bind(), checkfirst=True)
