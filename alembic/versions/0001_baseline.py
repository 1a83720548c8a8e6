"""baseline

Revision ID: 0001_baseline
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001_baseline'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = sa.Enum('BUYER', 'SELLER', 'ADMIN', name='user_role')
verification_status = sa.Enum('PENDING', 'VERIFIED', 'REJECTED', name='verification_status')
agent_status = sa.Enum('DRAFT', 'UNDER_REVIEW', 'APPROVED', 'REJECTED', 'ARCHIVED', name='agent_status')
purchase_status = sa.Enum('PENDING', 'COMPLETED', 'REFUNDED', name='purchase_status')
subscription_status = sa.Enum(
    'ACTIVE', 'TRIALING', 'PAST_DUE', 'CANCELED', 'INCOMPLETE', 'LEGACY_GRACE',
    name='subscription_status',
)


def upgrade() -> None:
    # --- users ---
    op.create_table(
        'users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('email', sa.String(), unique=True, nullable=False),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('avatar_url', sa.String(), nullable=True),
        sa.Column('role', user_role, nullable=False, server_default='BUYER'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # --- seller_profiles ---
    op.create_table(
        'seller_profiles',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), unique=True, nullable=False),
        sa.Column('portfolio_url_slug', sa.String(), unique=True, nullable=False),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('verification_status', verification_status, nullable=False, server_default='PENDING'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # --- categories ---
    op.create_table(
        'categories',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('slug', sa.String(), unique=True, nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('display_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # --- agents ---
    op.create_table(
        'agents',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('seller_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('category_id', sa.String(36), sa.ForeignKey('categories.id'), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('slug', sa.String(), unique=True, nullable=False),
        sa.Column('short_description', sa.Text(), nullable=True),
        sa.Column('workflow_overview', sa.Text(), nullable=True),
        sa.Column('use_case', sa.Text(), nullable=True),
        sa.Column('setup_guide', sa.Text(), nullable=True),
        sa.Column('demo_video_url', sa.String(), nullable=True),
        sa.Column('thumbnail_url', sa.String(), nullable=True),
        sa.Column('price', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('status', agent_status, nullable=False, server_default='DRAFT'),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('featured', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('has_active_update', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_latest_version', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('version', sa.String(), nullable=False, server_default='1.0.0'),
        sa.Column('view_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('purchase_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_agents_seller_id', 'agents', ['seller_id'])
    op.create_index('ix_agents_category_id', 'agents', ['category_id'])
    op.create_index('ix_agents_status_featured_created', 'agents', ['status', 'featured', 'created_at'])

    # --- purchases ---
    op.create_table(
        'purchases',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('buyer_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('agent_id', sa.String(36), sa.ForeignKey('agents.id'), nullable=False),
        sa.Column('agent_version', sa.String(), nullable=False),
        sa.Column('amount_paid', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('status', purchase_status, nullable=False, server_default='PENDING'),
        sa.Column('source', sa.String(), nullable=True),
        sa.Column('purchased_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_purchases_buyer_id', 'purchases', ['buyer_id'])
    op.create_index('ix_purchases_agent_id', 'purchases', ['agent_id'])
    op.create_index('ix_purchases_buyer_agent_status', 'purchases', ['buyer_id', 'agent_id', 'status'])

    # --- reviews ---
    op.create_table(
        'reviews',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('buyer_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('agent_id', sa.String(36), sa.ForeignKey('agents.id'), nullable=False),
        sa.Column('agent_version', sa.String(), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('agent_id', 'agent_version', 'buyer_id', name='uq_review_agent_version_buyer'),
    )
    op.create_index('ix_reviews_buyer_id', 'reviews', ['buyer_id'])
    op.create_index('ix_reviews_agent_id', 'reviews', ['agent_id'])

    # --- subscriptions ---
    op.create_table(
        'subscriptions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), unique=True, nullable=False),
        sa.Column('status', subscription_status, nullable=False),
        sa.Column('cancel_at_period_end', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('current_period_end', sa.DateTime(timezone=True), nullable=True),
        sa.Column('trial_end', sa.DateTime(timezone=True), nullable=True),
        sa.Column('grace_period_end', sa.DateTime(timezone=True), nullable=True),
        sa.Column('provider_customer_id', sa.String(), nullable=True),
        sa.Column('provider_subscription_id', sa.String(), unique=True, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # --- support_requests ---
    op.create_table(
        'support_requests',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('agent_id', sa.String(36), sa.ForeignKey('agents.id'), nullable=True),
        sa.Column('subject', sa.String(), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='OPEN'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_support_requests_user_id', 'support_requests', ['user_id'])

    # --- admin_logs ---
    op.create_table(
        'admin_logs',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('admin_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('action', sa.String(), nullable=False),
        sa.Column('entity_type', sa.String(), nullable=False),
        sa.Column('entity_id', sa.String(), nullable=False),
        sa.Column('meta', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_admin_logs_entity', 'admin_logs', ['entity_type', 'entity_id'])


def downgrade() -> None:
    op.drop_table('admin_logs')
    op.drop_table('support_requests')
    op.drop_table('subscriptions')
    op.drop_table('reviews')
    op.drop_table('purchases')
    op.drop_table('agents')
    op.drop_table('categories')
    op.drop_table('seller_profiles')
    op.drop_table('users')

    bind = op.get_bind()
    for enum_type in (subscription_status, purchase_status, agent_status, verification_status, user_role):
        enum_type.drop(bind, checkfirst=True)
