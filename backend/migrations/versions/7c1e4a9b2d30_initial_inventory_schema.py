"""initial_inventory_schema

Revision ID: 7c1e4a9b2d30
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '7c1e4a9b2d30'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

QTY = sa.Numeric(precision=20, scale=4)

ROLE = sa.Enum('ADMIN', 'SALES', 'PROCUREMENT', 'MANAGEMENT', name='roleenum')
ITEM_KIND = sa.Enum('PRODUCT', 'RAW_MATERIAL', name='itemkind')
TXN_TYPE = sa.Enum('SALE', 'PURCHASE', 'ADJUSTMENT', 'RETURN', name='transactiontype')
REASON = sa.Enum('DAMAGED', 'DEFECTIVE', 'EXPIRED', 'OTHER', name='replacementreason')


def _stock_columns() -> list[sa.Column]:
    return [
        sa.Column('quantity', QTY, nullable=False),
        sa.Column('minimum_stock', QTY, nullable=False),
        sa.Column('maximum_stock', QTY, nullable=True),
        sa.Column('reorder_point', QTY, nullable=False),
        sa.Column('unit', sa.String(length=20), nullable=False),
        sa.Column('last_restocked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def upgrade() -> None:
    """Create users, catalog, inventory and ledger tables."""
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('username', sa.String(length=150), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('role', ROLE, nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username'),
    )

    op.create_table(
        'products',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('product_code', sa.String(length=50), nullable=False),
        sa.Column('product_name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', QTY, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('price IS NULL OR price >= 0', name='ck_product_price_non_negative'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('product_code'),
    )
    op.create_table(
        'raw_materials',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('material_code', sa.String(length=50), nullable=False),
        sa.Column('material_name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('unit_price', QTY, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('material_code'),
    )

    op.create_table(
        'product_inventory',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        *_stock_columns(),
        sa.CheckConstraint('quantity >= 0', name='ck_product_inventory_qty_non_negative'),
        sa.CheckConstraint('minimum_stock >= 0', name='ck_product_inventory_min_non_negative'),
        sa.CheckConstraint('reorder_point >= 0', name='ck_product_inventory_reorder_non_negative'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('product_id'),
    )
    op.create_table(
        'raw_material_inventory',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('raw_material_id', sa.Uuid(), nullable=False),
        *_stock_columns(),
        sa.CheckConstraint('quantity >= 0', name='ck_rm_inventory_qty_non_negative'),
        sa.CheckConstraint('minimum_stock >= 0', name='ck_rm_inventory_min_non_negative'),
        sa.CheckConstraint('reorder_point >= 0', name='ck_rm_inventory_reorder_non_negative'),
        sa.ForeignKeyConstraint(['raw_material_id'], ['raw_materials.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('raw_material_id'),
    )

    op.create_table(
        'inventory_transactions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('item_kind', ITEM_KIND, nullable=False),
        sa.Column('product_inventory_id', sa.Uuid(), nullable=True),
        sa.Column('raw_material_inventory_id', sa.Uuid(), nullable=True),
        sa.Column('transaction_type', TXN_TYPE, nullable=False),
        sa.Column('quantity_change', QTY, nullable=False),
        sa.Column('quantity_before', QTY, nullable=False),
        sa.Column('quantity_after', QTY, nullable=False),
        sa.Column('reference_id', sa.String(length=100), nullable=True),
        sa.Column('reference_type', sa.String(length=50), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint(
            '(product_inventory_id IS NULL) != (raw_material_inventory_id IS NULL)',
            name='ck_inv_txn_single_owner',
        ),
        sa.CheckConstraint('quantity_after >= 0', name='ck_inv_txn_after_non_negative'),
        sa.ForeignKeyConstraint(['product_inventory_id'], ['product_inventory.id']),
        sa.ForeignKeyConstraint(['raw_material_inventory_id'], ['raw_material_inventory.id']),
        sa.ForeignKeyConstraint(['created_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_inv_txn_product_inventory', 'inventory_transactions', ['product_inventory_id'])
    op.create_index('ix_inv_txn_raw_material_inventory', 'inventory_transactions', ['raw_material_inventory_id'])
    op.create_index('ix_inv_txn_type', 'inventory_transactions', ['transaction_type'])
    op.create_index('ix_inv_txn_created_at', 'inventory_transactions', ['created_at'])

    op.create_table(
        'product_replacements',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('sale_id', sa.String(length=100), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('quantity', QTY, nullable=False),
        sa.Column('reason', REASON, nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('quantity > 0', name='ck_replacement_qty_positive'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.ForeignKeyConstraint(['created_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_replacements_sale', 'product_replacements', ['sale_id'])
    op.create_index('ix_replacements_product', 'product_replacements', ['product_id'])
    op.create_index('ix_replacements_created_at', 'product_replacements', ['created_at'])


def downgrade() -> None:
    """Drop all tables and enum types."""
    op.drop_index('ix_replacements_created_at', table_name='product_replacements')
    op.drop_index('ix_replacements_product', table_name='product_replacements')
    op.drop_index('ix_replacements_sale', table_name='product_replacements')
    op.drop_table('product_replacements')
    op.drop_index('ix_inv_txn_created_at', table_name='inventory_transactions')
    op.drop_index('ix_inv_txn_type', table_name='inventory_transactions')
    op.drop_index('ix_inv_txn_raw_material_inventory', table_name='inventory_transactions')
    op.drop_index('ix_inv_txn_product_inventory', table_name='inventory_transactions')
    op.drop_table('inventory_transactions')
    op.drop_table('raw_material_inventory')
    op.drop_table('product_inventory')
    op.drop_table('raw_materials')
    op.drop_table('products')
    op.drop_table('users')
    for enum_name in ('replacementreason', 'transactiontype', 'itemkind', 'roleenum'):
        op.execute(f"DROP TYPE IF EXISTS {enum_name}")
