"""Create users and user_sessions tables

Revision ID: 3c1d9a7e52b0
Revises:
Create Date: 2026-09-28 10:14:22.518306

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1d9a7e52b0'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        sa.Column('uid', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('display_name', sa.String(), nullable=True),
        sa.Column('photo_url', sa.String(), nullable=True),
        sa.Column('is_anonymous', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('uid')
    )
    op.create_table(
        'user_sessions',
        sa.Column('token', sa.String(), nullable=False),
        sa.Column('uid', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['uid'], ['users.uid']),
        sa.PrimaryKeyConstraint('token')
    )
    op.create_index('ix_user_sessions_uid', 'user_sessions', ['uid'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_user_sessions_uid', 'user_sessions')
    op.drop_table('user_sessions')
    op.drop_table('users')
