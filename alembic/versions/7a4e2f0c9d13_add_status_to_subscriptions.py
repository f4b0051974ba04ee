"""add status to subscriptions

Existing rows predate email confirmation and are treated as confirmed.

Revision ID: 7a4e2f0c9d13
Revises: 3c1d9a7e5b21
Create Date: 2026-10-17 09:10:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '7a4e2f0c9d13'
down_revision: Union[str, None] = '3c1d9a7e5b21'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column('subscriptions', sa.Column('status', sa.String(32), nullable=True))
    op.execute("UPDATE subscriptions SET status = 'confirmed' WHERE status IS NULL")
    op.alter_column('subscriptions', 'status', nullable=False)


def downgrade() -> None:
    op.drop_column('subscriptions', 'status')
