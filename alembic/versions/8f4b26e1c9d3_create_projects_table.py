"""Create projects table

Revision ID: 8f4b26e1c9d3
Revises: 3c1d9a7e52b0
Create Date: 2026-09-28 10:31:47.204117

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8f4b26e1c9d3'
down_revision: Union[str, Sequence[str], None] = '3c1d9a7e52b0'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'projects',
        sa.Column('project_id', sa.String(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('video_url', sa.String(), nullable=False),
        sa.Column('owner_id', sa.String(), nullable=False),
        sa.Column('shareable_link', sa.String(), nullable=True),
        sa.Column('collaborators', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('project_id')
    )
    op.create_index('ix_projects_owner_id', 'projects', ['owner_id'])
    op.create_index(
        'ix_projects_shareable_link', 'projects', ['shareable_link'], unique=True
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_projects_shareable_link', 'projects')
    op.drop_index('ix_projects_owner_id', 'projects')
    op.drop_table('projects')
