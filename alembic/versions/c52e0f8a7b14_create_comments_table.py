"""Create comments table

Revision ID: c52e0f8a7b14
Revises: 8f4b26e1c9d3
Create Date: 2026-09-28 11:02:09.771932

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'c52e0f8a7b14'
down_revision: Union[str, Sequence[str], None] = '8f4b26e1c9d3'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'comments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('comment_id', sa.String(), nullable=False),
        sa.Column('project_id', sa.String(), nullable=False),
        sa.Column('commenter_id', sa.String(), nullable=False),
        sa.Column('timestamp', sa.Float(), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('annotations', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(
            ['project_id'], ['projects.project_id'], ondelete='CASCADE'
        ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_comments_comment_id', 'comments', ['comment_id'], unique=True)
    op.create_index('ix_comments_project_id', 'comments', ['project_id'])
    op.create_index('ix_comments_commenter_id', 'comments', ['commenter_id'])
    op.create_index('ix_comments_timestamp', 'comments', ['timestamp'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_comments_timestamp', 'comments')
    op.drop_index('ix_comments_commenter_id', 'comments')
    op.drop_index('ix_comments_project_id', 'comments')
    op.drop_index('ix_comments_comment_id', 'comments')
    op.drop_table('comments')
