"""seller applications

Revision ID: 0002_seller_applications
Revises: 0001_baseline
Create Date: 2026-10-19 14:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0002_seller_applications'
down_revision: Union[str, None] = '0001_baseline'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

seller_application_status = sa.Enum(
    'PENDING_REVIEW', 'APPROVED', 'REJECTED',
    name='seller_application_status',
)


def upgrade() -> None:
    op.create_table(
        'seller_applications',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), unique=True, nullable=False),
        sa.Column('full_name', sa.String(), nullable=False),
        sa.Column('experience', sa.Text(), nullable=False),
        sa.Column('agent_ideas', sa.Text(), nullable=False),
        sa.Column('relevant_links', sa.Text(), nullable=True),
        sa.Column('status', seller_application_status, nullable=False, server_default='PENDING_REVIEW'),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reviewed_by', sa.String(36), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_seller_applications_status', 'seller_applications', ['status'])


def downgrade() -> None:
    op.drop_index('ix_seller_applications_status', table_name='seller_applications')
    op.drop_table('seller_applications')
    seller_application_status.drop(op.get_bind(), checkfirst=True)
