"""Create loyalty ledger, card, usable reward and promotion tables

Revision ID: a1c4e7f20b31
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'a1c4e7f20b31'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'loyalty_accounts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('points', sa.Integer(), nullable=False),
        sa.Column('purchase_count', sa.Integer(), nullable=False),
        sa.Column('total_spent', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('tier', sa.String(length=20), nullable=False),
        sa.Column('member_since', sa.DateTime(), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('loyalty_accounts', schema=None) as batch_op:
        batch_op.create_index('ix_loyalty_accounts_user_id', ['user_id'], unique=True)

    op.create_table(
        'loyalty_monthly_spend',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('month_key', sa.String(length=7), nullable=False),
        sa.Column('amount', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.ForeignKeyConstraint(['account_id'], ['loyalty_accounts.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('account_id', 'month_key', name='uq_monthly_spend_account_month'),
    )

    op.create_table(
        'loyalty_points_history',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('points', sa.Integer(), nullable=False),
        sa.Column('source', sa.String(length=30), nullable=False),
        sa.Column('order_id', sa.String(length=64), nullable=True),
        sa.Column('reward_name', sa.String(length=100), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['account_id'], ['loyalty_accounts.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('account_id', 'source', 'order_id', name='uq_points_history_order'),
    )
    with op.batch_alter_table('loyalty_points_history', schema=None) as batch_op:
        batch_op.create_index('ix_loyalty_points_history_account_id', ['account_id'], unique=False)

    op.create_table(
        'loyalty_digital_cards',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('card_id', sa.String(length=32), nullable=False),
        sa.Column('card_type', sa.String(length=20), nullable=False),
        sa.Column('theme', sa.String(length=20), nullable=False),
        sa.Column('discount_percentage', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('issued_at', sa.DateTime(), nullable=False),
        sa.Column('refreshed_at', sa.DateTime(), nullable=True),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['account_id'], ['loyalty_accounts.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('account_id'),
        sa.UniqueConstraint('card_id'),
    )

    op.create_table(
        'loyalty_usable_rewards',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('reward_name', sa.String(length=100), nullable=False),
        sa.Column('reward_type', sa.String(length=20), nullable=False),
        sa.Column('unit', sa.String(length=10), nullable=False),
        sa.Column('value', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('points_cost', sa.Integer(), nullable=False),
        sa.Column('icon', sa.String(length=16), nullable=True),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('consumed', sa.Boolean(), nullable=False),
        sa.Column('consumed_at', sa.DateTime(), nullable=True),
        sa.Column('order_id', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['account_id'], ['loyalty_accounts.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('loyalty_usable_rewards', schema=None) as batch_op:
        batch_op.create_index('ix_loyalty_usable_rewards_account_id', ['account_id'], unique=False)
        batch_op.create_index('ix_loyalty_usable_rewards_order_id', ['order_id'], unique=False)

    op.create_table(
        'promotions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=20), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('promo_type', sa.String(length=20), nullable=False),
        sa.Column('value', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('min_spend', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('max_discount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('used', sa.Integer(), nullable=False),
        sa.Column('limit', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('starts_at', sa.DateTime(), nullable=True),
        sa.Column('ends_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('promotions', schema=None) as batch_op:
        batch_op.create_index('ix_promotions_code', ['code'], unique=True)


def downgrade():
    with op.batch_alter_table('promotions', schema=None) as batch_op:
        batch_op.drop_index('ix_promotions_code')
    op.drop_table('promotions')

    with op.batch_alter_table('loyalty_usable_rewards', schema=None) as batch_op:
        batch_op.drop_index('ix_loyalty_usable_rewards_order_id')
        batch_op.drop_index('ix_loyalty_usable_rewards_account_id')
    op.drop_table('loyalty_usable_rewards')

    op.drop_table('loyalty_digital_cards')

    with op.batch_alter_table('loyalty_points_history', schema=None) as batch_op:
        batch_op.drop_index('ix_loyalty_points_history_account_id')
    op.drop_table('loyalty_points_history')

    op.drop_table('loyalty_monthly_spend')

    with op.batch_alter_table('loyalty_accounts', schema=None) as batch_op:
        batch_op.drop_index('ix_loyalty_accounts_user_id')
    op.drop_table('loyalty_accounts')
