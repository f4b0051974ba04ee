"""create subscription_tokens table

Revision ID: b95f61d2e840
Revises: 7a4e2f0c9d13
Create Date: 2026-10-17 09:20:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'b95f61d2e840'
down_revision: Union[str, None] = '7a4e2f0c9d13'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'subscription_tokens',
        sa.Column('sub_token', sa.Text(), primary_key=True),
        sa.Column('sub_id', sa.Uuid(as_uuid=True), sa.ForeignKey('subscriptions.id'), nullable=False),
    )
    op.create_index('ix_subscription_tokens_sub_id', 'subscription_tokens', ['sub_id'])


def downgrade() -> None:
    op.drop_index('ix_subscription_tokens_sub_id', table_name='subscription_tokens')
    op.drop_table('subscription_tokens')
