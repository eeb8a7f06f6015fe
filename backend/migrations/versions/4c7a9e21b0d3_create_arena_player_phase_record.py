"""create arena, player and phase_record tables

Revision ID: 4c7a9e21b0d3
Revises:
Create Date: 2026-10-17 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4c7a9e21b0d3'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'arena' not in existing_tables:
        op.create_table(
            'arena',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('arena_code', sa.String(length=4), nullable=True),
            sa.Column('name', sa.String(length=64), nullable=False),
            sa.Column('status', sa.String(length=32), nullable=True),
            sa.Column('min_players', sa.Integer(), nullable=False),
            sa.Column('max_players', sa.Integer(), nullable=False),
            sa.Column('allow_new_players', sa.Boolean(), nullable=False),
            sa.Column('current_phase', sa.String(length=64), nullable=True),
            sa.Column('phase_deadline', sa.Float(), nullable=True),
        )
        op.create_index('ix_arena_arena_code', 'arena', ['arena_code'], unique=True)

    if 'player' not in existing_tables:
        op.create_table(
            'player',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('name', sa.String(length=64), nullable=False),
            sa.Column('arena_id', sa.Integer(), sa.ForeignKey('arena.id'), nullable=False),
            sa.Column('is_active', sa.Boolean(), nullable=False),
        )

    if 'phase_record' not in existing_tables:
        op.create_table(
            'phase_record',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('arena_id', sa.Integer(), sa.ForeignKey('arena.id'), nullable=False),
            sa.Column('position', sa.Integer(), nullable=False),
            sa.Column('phase_name', sa.String(length=64), nullable=False),
            sa.Column('duration_sec', sa.Float(), nullable=False),
            sa.Column('started_at', sa.Float(), nullable=False),
            sa.Column('ended_at', sa.Float(), nullable=True),
            sa.Column('skipped', sa.Boolean(), nullable=False),
        )
        op.create_index('ix_phase_record_arena_id', 'phase_record', ['arena_id'])


def downgrade():
    op.drop_index('ix_phase_record_arena_id', table_name='phase_record')
    op.drop_table('phase_record')
    op.drop_table('player')
    op.drop_index('ix_arena_arena_code', table_name='arena')
    op.drop_table('arena')
