"""initial catalog pilot schema

Revision ID: 0a1f3c9e2b7d
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '0a1f3c9e2b7d'
down_revision = None
branch_labels = None
depends_on = None


def _json():
    return sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), 'postgresql')


def upgrade() -> None:
    op.create_table(
        'companies',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('subscription_plan', sa.String(length=32), nullable=False, server_default='trial'),
        sa.Column('product_limit', sa.Integer(), nullable=False, server_default=sa.text('5')),
        sa.Column('stripe_customer_id', sa.String(length=255), nullable=True),
        sa.Column('stripe_subscription_id', sa.String(length=255), nullable=True),
        sa.Column('subscription_status', sa.String(length=32), nullable=False, server_default='active'),
        sa.Column('current_period_end', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id', name='pk_companies'),
    )

    op.create_table(
        'users',
        sa.Column('id', sa.String(length=128), nullable=False),
        sa.Column('company_id', sa.String(length=36), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('first_name', sa.String(length=128), nullable=True),
        sa.Column('last_name', sa.String(length=128), nullable=True),
        sa.Column('profile_image_url', sa.String(length=1024), nullable=True),
        sa.Column('role', sa.String(length=16), nullable=False, server_default='member'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.CheckConstraint("role IN ('owner','admin','member')", name='ck_users_role'),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], name='fk_users_company_id_companies'),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
    )
    op.create_index('ix_users_company_id', 'users', ['company_id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'company_invitations',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('company_id', sa.String(length=36), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False, server_default='member'),
        sa.Column('invited_by', sa.String(length=128), nullable=False),
        sa.Column('token', sa.String(length=128), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('accepted_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.CheckConstraint("role IN ('admin','member')", name='ck_company_invitations_role'),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='CASCADE',
                                name='fk_company_invitations_company_id_companies'),
        sa.ForeignKeyConstraint(['invited_by'], ['users.id'], name='fk_company_invitations_invited_by_users'),
        sa.PrimaryKeyConstraint('id', name='pk_company_invitations'),
        sa.UniqueConstraint('token', name='uq_company_invitations_token'),
    )
    op.create_index('ix_company_invitations_company_id', 'company_invitations', ['company_id'])
    op.create_index('ix_company_invitations_company_email', 'company_invitations', ['company_id', 'email'])

    op.create_table(
        'api_settings',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('company_id', sa.String(length=36), nullable=False),
        sa.Column('store_hash', sa.String(length=64), nullable=False),
        sa.Column('access_token', sa.String(length=255), nullable=False),
        sa.Column('client_id', sa.String(length=255), nullable=False),
        sa.Column('show_stock', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('show_stock_status', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('last_sync_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='CASCADE',
                                name='fk_api_settings_company_id_companies'),
        sa.PrimaryKeyConstraint('id', name='pk_api_settings'),
        sa.UniqueConstraint('company_id', name='uq_api_settings_company_id'),
    )

    op.create_table(
        'products',
        sa.Column('company_id', sa.String(length=36), nullable=False),
        sa.Column('id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('sku', sa.String(length=255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=1024), nullable=True),
        sa.Column('regular_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('sale_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('stock', sa.Integer(), nullable=True),
        sa.Column('weight', sa.Numeric(10, 3), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=True),
        sa.Column('last_updated', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='CASCADE',
                                name='fk_products_company_id_companies'),
        sa.PrimaryKeyConstraint('company_id', 'id', name='pk_products'),
    )
    op.create_index('ix_products_sku', 'products', ['sku'])
    op.create_index('ix_products_company_category', 'products', ['company_id', 'category'])

    op.create_table(
        'product_variants',
        sa.Column('company_id', sa.String(length=36), nullable=False),
        sa.Column('id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('variant_sku', sa.String(length=255), nullable=True),
        sa.Column('option_values', _json(), nullable=True),
        sa.Column('regular_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('sale_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('calculated_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('stock', sa.Integer(), nullable=True),
        sa.Column('last_updated', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['company_id', 'product_id'], ['products.company_id', 'products.id'],
                                ondelete='CASCADE', name='fk_product_variants_company_id_products'),
        sa.PrimaryKeyConstraint('company_id', 'id', name='pk_product_variants'),
    )
    op.create_index('ix_product_variants_company_product', 'product_variants', ['company_id', 'product_id'])

    op.create_table(
        'price_history',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('company_id', sa.String(length=36), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('variant_id', sa.Integer(), nullable=True),
        sa.Column('old_regular_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('new_regular_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('old_sale_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('new_sale_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('change_type', sa.String(length=16), nullable=False),
        sa.Column('work_order_id', sa.String(length=36), nullable=True),
        sa.Column('changed_by', sa.String(length=128), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='CASCADE',
                                name='fk_price_history_company_id_companies'),
        sa.PrimaryKeyConstraint('id', name='pk_price_history'),
    )
    op.create_index('ix_price_history_company_product', 'price_history', ['company_id', 'product_id', 'created_at'])

    op.create_table(
        'work_orders',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('company_id', sa.String(length=36), nullable=False),
        sa.Column('created_by', sa.String(length=128), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('product_updates', _json(), nullable=False),
        sa.Column('original_prices', _json(), nullable=True),
        sa.Column('scheduled_at', sa.DateTime(), nullable=True),
        sa.Column('execute_immediately', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('archived', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.Column('executed_at', sa.DateTime(), nullable=True),
        sa.Column('undone_at', sa.DateTime(), nullable=True),
        sa.Column('error', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='CASCADE',
                                name='fk_work_orders_company_id_companies'),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], name='fk_work_orders_created_by_users'),
        sa.PrimaryKeyConstraint('id', name='pk_work_orders'),
    )
    op.create_index('ix_work_orders_company_created', 'work_orders', ['company_id', 'created_at'])
    op.create_index('ix_work_orders_status', 'work_orders', ['status'])

    op.create_table(
        'sessions',
        sa.Column('sid', sa.String(length=255), nullable=False),
        sa.Column('sess', _json(), nullable=False),
        sa.Column('expire', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('sid', name='pk_sessions'),
    )
    op.create_index('IDX_session_expire', 'sessions', ['expire'])


def downgrade() -> None:
    op.drop_index('IDX_session_expire', table_name='sessions')
    op.drop_table('sessions')
    op.drop_index('ix_work_orders_status', table_name='work_orders')
    op.drop_index('ix_work_orders_company_created', table_name='work_orders')
    op.drop_table('work_orders')
    op.drop_index('ix_price_history_company_product', table_name='price_history')
    op.drop_table('price_history')
    op.drop_index('ix_product_variants_company_product', table_name='product_variants')
    op.drop_table('product_variants')
    op.drop_index('ix_products_company_category', table_name='products')
    op.drop_index('ix_products_sku', table_name='products')
    op.drop_table('products')
    op.drop_table('api_settings')
    op.drop_index('ix_company_invitations_company_email', table_name='company_invitations')
    op.drop_index('ix_company_invitations_company_id', table_name='company_invitations')
    op.drop_table('company_invitations')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_index('ix_users_company_id', table_name='users')
    op.drop_table('users')
    op.drop_table('companies')
