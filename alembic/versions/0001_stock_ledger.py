"""Add catalogue, stock snapshot and stock ledger tables

Revision ID: 0001_stock_ledger
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_stock_ledger'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create category table
    op.create_table(
        'category',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('channel_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_category_channel_id', 'category', ['channel_id'], unique=False)
    op.create_index('ix_category_channel_name', 'category', ['channel_id', 'name'], unique=False)

    # Create product table
    op.create_table(
        'product',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('channel_id', sa.Integer(), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.Column('sku', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('cost_price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('selling_price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['category_id'], ['category.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_product_channel_id', 'product', ['channel_id'], unique=False)
    op.create_index('ix_product_category_id', 'product', ['category_id'], unique=False)
    op.create_index('ix_product_channel_sku', 'product', ['channel_id', 'sku'], unique=True)
    op.create_index('ix_product_channel_name', 'product', ['channel_id', 'name'], unique=False)

    # Create stock_snapshot table (one row per product)
    op.create_table(
        'stock_snapshot',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('channel_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), server_default='0', nullable=False),
        sa.Column('low_stock_threshold', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by_id', sa.Integer(), nullable=True),
        sa.Column('updated_by_id', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['product_id'], ['product.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('product_id', name='uq_stock_snapshot_product_id'),
    )
    op.create_index('ix_stock_snapshot_channel_id', 'stock_snapshot', ['channel_id'], unique=False)

    # Create stock_ledger_entry table (append-only)
    op.create_table(
        'stock_ledger_entry',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('channel_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('change_type', sa.Enum('IN', 'OUT', 'ADJUST', name='stockchangetype'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('net_change', sa.Integer(), nullable=False),
        sa.Column('quantity_before', sa.Integer(), nullable=False),
        sa.Column('quantity_after', sa.Integer(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('logged_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('actor_id', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['product_id'], ['product.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('quantity > 0', name='ck_stock_ledger_entry_quantity_positive'),
    )
    op.create_index('ix_stock_ledger_entry_product_id', 'stock_ledger_entry', ['product_id'], unique=False)
    op.create_index('ix_stock_ledger_entry_change_type', 'stock_ledger_entry', ['change_type'], unique=False)
    op.create_index(
        'ix_stock_ledger_channel_product_logged',
        'stock_ledger_entry',
        ['channel_id', 'product_id', 'logged_at'],
        unique=False,
    )
    op.create_index('ix_stock_ledger_channel_logged', 'stock_ledger_entry', ['channel_id', 'logged_at'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_stock_ledger_channel_logged', table_name='stock_ledger_entry')
    op.drop_index('ix_stock_ledger_channel_product_logged', table_name='stock_ledger_entry')
    op.drop_index('ix_stock_ledger_entry_change_type', table_name='stock_ledger_entry')
    op.drop_index('ix_stock_ledger_entry_product_id', table_name='stock_ledger_entry')
    op.drop_table('stock_ledger_entry')

    op.drop_index('ix_stock_snapshot_channel_id', table_name='stock_snapshot')
    op.drop_table('stock_snapshot')

    op.drop_index('ix_product_channel_name', table_name='product')
    op.drop_index('ix_product_channel_sku', table_name='product')
    op.drop_index('ix_product_category_id', table_name='product')
    op.drop_index('ix_product_channel_id', table_name='product')
    op.drop_table('product')

    op.drop_index('ix_category_channel_name', table_name='category')
    op.drop_index('ix_category_channel_id', table_name='category')
    op.drop_table('category')

    # Drop the enum type
    if op.get_bind().dialect.name == 'postgresql':
        op.execute("DROP TYPE IF EXISTS stockchangetype")
