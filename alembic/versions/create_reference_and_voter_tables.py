"""create reference and voter tables

Revision ID: voters_001
Revises:
Create Date: 2026-10-16 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'voters_001'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def upgrade():
    op.create_table(
        'constituencies',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('code', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_constituencies_code', 'constituencies', ['code'])

    op.create_table(
        'blocks',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('constituency_id', sa.Integer(), sa.ForeignKey('constituencies.id'), nullable=True),
        sa.Column('code', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_blocks_constituency_id', 'blocks', ['constituency_id'])
    op.create_index('ix_blocks_code', 'blocks', ['code'])

    op.create_table(
        'booths',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('block_id', sa.Integer(), sa.ForeignKey('blocks.id'), nullable=True),
        sa.Column('code', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('location_point', sa.String(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_booths_block_id', 'booths', ['block_id'])
    op.create_index('ix_booths_code', 'booths', ['code'])

    op.create_table(
        'parts',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('booth_id', sa.Integer(), sa.ForeignKey('booths.id'), nullable=True),
        sa.Column('code', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_parts_booth_id', 'parts', ['booth_id'])
    op.create_index('ix_parts_code', 'parts', ['code'])

    op.create_table(
        'voters',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('constituency_id', sa.Integer(), sa.ForeignKey('constituencies.id'), nullable=True),
        sa.Column('block_id', sa.Integer(), sa.ForeignKey('blocks.id'), nullable=True),
        sa.Column('booth_id', sa.Integer(), sa.ForeignKey('booths.id'), nullable=True),
        sa.Column('part_id', sa.Integer(), sa.ForeignKey('parts.id'), nullable=True),
        sa.Column('voter_id', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('father_husband_name', sa.String(), nullable=True),
        sa.Column('photo', sa.Text(), nullable=True),
        sa.Column('age', sa.Integer(), nullable=True),
        sa.Column('gender', sa.String(16), nullable=False, server_default='male'),
        sa.Column('house_no', sa.String(), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('polling_station', sa.String(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
    )
    # Unique index on the natural key backs the import's duplicate handling
    op.create_index('ix_voters_voter_id', 'voters', ['voter_id'], unique=True)
    op.create_index('ix_voters_name', 'voters', ['name'])
    for column in ('constituency_id', 'block_id', 'booth_id', 'part_id'):
        op.create_index(f'ix_voters_{column}', 'voters', [column])


def downgrade():
    op.drop_table('voters')
    op.drop_table('parts')
    op.drop_table('booths')
    op.drop_table('blocks')
    op.drop_table('constituencies')
