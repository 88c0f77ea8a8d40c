"""Create activity ledger tables.

Creates contributor, activity_definition, activity and pending_message.

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSON = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def upgrade() -> None:
    op.create_table(
        'contributor',
        sa.Column('username', sa.String(255), nullable=False),
        sa.Column('display_name', sa.String(255), nullable=True),
        sa.Column('role', sa.String(64), nullable=True),
        sa.Column('title', sa.String(255), nullable=True),
        sa.Column('avatar_url', sa.Text(), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('social_profiles', JSON, nullable=True),
        sa.Column('joined_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('platform_aliases', JSON, nullable=True),
        sa.Column('meta', JSON, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('username'),
    )
    op.create_index('idx_contributor_role', 'contributor', ['role'])

    op.create_table(
        'activity_definition',
        sa.Column('slug', sa.String(64), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('points', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('icon', sa.String(64), nullable=True),
        sa.PrimaryKeyConstraint('slug'),
    )

    op.create_table(
        'activity',
        sa.Column('slug', sa.String(512), nullable=False),
        sa.Column('contributor', sa.String(255), nullable=False),
        sa.Column('activity_definition', sa.String(64), nullable=False),
        sa.Column('title', sa.Text(), nullable=True),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('link', sa.Text(), nullable=True),
        sa.Column('text', sa.Text(), nullable=True),
        sa.Column('points', sa.Integer(), nullable=True),
        sa.Column('meta', JSON, nullable=True),
        sa.ForeignKeyConstraint(['contributor'], ['contributor.username']),
        sa.ForeignKeyConstraint(['activity_definition'], ['activity_definition.slug']),
        sa.PrimaryKeyConstraint('slug'),
    )
    op.create_index('idx_activity_contributor', 'activity', ['contributor'])
    op.create_index('idx_activity_occurred_at', 'activity', ['occurred_at'])
    op.create_index('idx_activity_definition', 'activity', ['activity_definition'])

    op.create_table(
        'pending_message',
        sa.Column('id', sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column('author_alias', sa.String(64), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_pending_message_author_alias', 'pending_message', ['author_alias'])
    op.create_index('idx_pending_message_timestamp', 'pending_message', ['timestamp'])


def downgrade() -> None:
    op.drop_index('idx_pending_message_timestamp', table_name='pending_message')
    op.drop_index('idx_pending_message_author_alias', table_name='pending_message')
    op.drop_table('pending_message')

    op.drop_index('idx_activity_definition', table_name='activity')
    op.drop_index('idx_activity_occurred_at', table_name='activity')
    op.drop_index('idx_activity_contributor', table_name='activity')
    op.drop_table('activity')

    op.drop_table('activity_definition')

    op.drop_index('idx_contributor_role', table_name='contributor')
    op.drop_table('contributor')
