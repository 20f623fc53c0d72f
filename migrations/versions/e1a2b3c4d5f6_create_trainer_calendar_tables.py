"""create trainer calendar tables

Revision ID: e1a2b3c4d5f6
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'e1a2b3c4d5f6'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'members',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('phone_number', sa.String(length=30), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'trainers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'member_packages',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('member_id', sa.Integer(), nullable=False),
        sa.Column('trainer_id', sa.Integer(), nullable=False),
        sa.Column('personal_quota', sa.Integer(), nullable=False),
        sa.Column('group_quota', sa.Integer(), nullable=False),
        sa.Column('self_quota', sa.Integer(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['member_id'], ['members.id']),
        sa.ForeignKeyConstraint(['trainer_id'], ['trainers.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('member_packages', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_member_packages_member_id'), ['member_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_member_packages_trainer_id'), ['trainer_id'], unique=False)

    op.create_table(
        'scheduled_sessions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('trainer_id', sa.Integer(), nullable=False),
        sa.Column('member_id', sa.Integer(), nullable=False),
        sa.Column('session_date', sa.Date(), nullable=False),
        sa.Column('session_time', sa.Time(), nullable=False),
        sa.Column('session_type', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('reason', sa.String(length=255), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['member_id'], ['members.id']),
        sa.ForeignKeyConstraint(['trainer_id'], ['trainers.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('scheduled_sessions', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_scheduled_sessions_member_id'), ['member_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_scheduled_sessions_trainer_id'), ['trainer_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_scheduled_sessions_session_date'), ['session_date'], unique=False)
        batch_op.create_index('ix_sessions_trainer_day', ['trainer_id', 'session_date'], unique=False)

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('actor_role', sa.String(length=20), nullable=True),
        sa.Column('actor_id', sa.Integer(), nullable=True),
        sa.Column('action', sa.String(length=80), nullable=False),
        sa.Column('entity', sa.String(length=80), nullable=True),
        sa.Column('entity_id', sa.String(length=80), nullable=True),
        sa.Column('ip', sa.String(length=64), nullable=True),
        sa.Column('user_agent', sa.String(length=255), nullable=True),
        sa.Column('metadata_json', sa.Text(), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )


def downgrade():
    op.drop_table('audit_logs')
    with op.batch_alter_table('scheduled_sessions', schema=None) as batch_op:
        batch_op.drop_index('ix_sessions_trainer_day')
        batch_op.drop_index(batch_op.f('ix_scheduled_sessions_session_date'))
        batch_op.drop_index(batch_op.f('ix_scheduled_sessions_trainer_id'))
        batch_op.drop_index(batch_op.f('ix_scheduled_sessions_member_id'))
    op.drop_table('scheduled_sessions')
    with op.batch_alter_table('member_packages', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_member_packages_trainer_id'))
        batch_op.drop_index(batch_op.f('ix_member_packages_member_id'))
    op.drop_table('member_packages')
    op.drop_table('trainers')
    op.drop_table('members')
