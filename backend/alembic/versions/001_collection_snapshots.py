"""Document store table: one JSON snapshot row per collection.

Revision ID: 001_collection_snapshots
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '001_collection_snapshots'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ### Collection snapshots table ###
    op.create_table(
        'collection_snapshots',
        sa.Column('name', sa.String(64), primary_key=True),
        sa.Column('documents', sa.JSON(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table('collection_snapshots')
