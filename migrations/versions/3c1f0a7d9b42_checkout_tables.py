"""checkout tables: catalog, cart, flash sale ledger, orders

Revision ID: 3c1f0a7d9b42
Revises:
Create Date: 2026-01-12 10:41:07.218330

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1f0a7d9b42'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade():
    op.create_table(
        "customers",
        sa.Column("user_id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_table(
        "customer_addresses",
        sa.Column("address_id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("customers.user_id"), nullable=False, index=True),
        sa.Column("address_type", sa.String(), nullable=True),
        sa.Column("address1", sa.String(), nullable=False),
        sa.Column("address2", sa.String(), nullable=True),
        sa.Column("city", sa.String(), nullable=False),
        sa.Column("state", sa.String(), nullable=True),
        sa.Column("country", sa.String(), nullable=True),
        sa.Column("zipcode", sa.String(), nullable=False),
        sa.Column("landmark", sa.String(), nullable=True),
    )
    op.create_table(
        "products",
        sa.Column("product_id", sa.Integer(), primary_key=True),
        sa.Column("vendor_id", sa.Integer(), nullable=True, index=True),
        sa.Column("product_name", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_table(
        "product_images",
        sa.Column("image_id", sa.Integer(), primary_key=True),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.product_id"), nullable=False, index=True),
        sa.Column("image_url", sa.String(), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_table(
        "product_variants",
        sa.Column("variant_id", sa.Integer(), primary_key=True),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.product_id"), nullable=False, index=True),
        sa.Column("mrp", sa.Numeric(12, 2), nullable=False),
        sa.Column("sale_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("stock", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("reward_redemption_limit", sa.Numeric(5, 2), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("stock >= 0", name="ck_product_variants_stock_non_negative"),
    )
    op.create_table(
        "cart_items",
        sa.Column("cart_item_id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("customers.user_id"), nullable=False, index=True),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.product_id"), nullable=False),
        sa.Column("variant_id", sa.Integer(), sa.ForeignKey("product_variants.variant_id"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("user_id", "variant_id", name="u_cart_user_variant"),
        sa.CheckConstraint("quantity > 0", name="ck_cart_items_quantity_positive"),
    )
    op.create_table(
        "flash_sales",
        sa.Column("flash_sale_id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("start_at", sa.DateTime(), nullable=False),
        sa.Column("end_at", sa.DateTime(), nullable=False),
        sa.Column("status", sa.String(), nullable=True, index=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_table(
        "flash_sale_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("flash_sale_id", sa.Integer(), sa.ForeignKey("flash_sales.flash_sale_id"), nullable=False, index=True),
        sa.Column("variant_id", sa.Integer(), sa.ForeignKey("product_variants.variant_id"), nullable=False, index=True),
        sa.Column("offer_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("max_qty", sa.Integer(), nullable=True),
        sa.Column("sold_qty", sa.Integer(), nullable=False, server_default="0"),
        sa.CheckConstraint("sold_qty >= 0", name="ck_flash_sale_items_sold_qty_non_negative"),
    )
    op.create_table(
        "orders",
        sa.Column("order_id", sa.Integer(), primary_key=True),
        sa.Column("order_ref", sa.String(32), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("customers.user_id"), nullable=False, index=True),
        sa.Column("company_id", sa.Integer(), nullable=True),
        sa.Column("address_id", sa.Integer(), sa.ForeignKey("customer_addresses.address_id"), nullable=False),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("status", sa.String(), nullable=False, server_default="pending", index=True),
        sa.Column("created_at", sa.DateTime(), nullable=True, index=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_orders_order_ref", "orders", ["order_ref"], unique=True)
    op.create_table(
        "order_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.order_id"), nullable=False, index=True),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.product_id"), nullable=False),
        sa.Column("variant_id", sa.Integer(), sa.ForeignKey("product_variants.variant_id"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("flash_sale_item_id", sa.Integer(), sa.ForeignKey("flash_sale_items.id"), nullable=True),
        sa.CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
    )


def downgrade():
    op.drop_table("order_items")
    op.drop_index("ix_orders_order_ref", table_name="orders")
    op.drop_table("orders")
    op.drop_table("flash_sale_items")
    op.drop_table("flash_sales")
    op.drop_table("cart_items")
    op.drop_table("product_variants")
    op.drop_table("product_images")
    op.drop_table("products")
    op.drop_table("customer_addresses")
    op.drop_table("customers")
