"""trading ledger schema

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 09:00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261018_0001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _party_table(name: str) -> None:
    op.create_table(
        name,
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=160), nullable=False),
        sa.Column("phone", sa.String(length=40), nullable=True),
        sa.Column("address", sa.String(length=255), nullable=True),
        sa.Column("opening_balance", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f(f"ix_{name}_id"), name, ["id"], unique=False)
    op.create_index(op.f(f"ix_{name}_name"), name, ["name"], unique=True)


def _invoice_money_columns() -> list[sa.Column]:
    return [
        sa.Column("sub_total", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("discount", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("grand_total", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("amount_paid", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("amount_due", sa.Numeric(precision=14, scale=2), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("sku", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=160), nullable=False),
        sa.Column("unit", sa.String(length=24), nullable=False, server_default="piece"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price", sa.Numeric(precision=12, scale=2), nullable=False, server_default="0"),
        sa.Column("stock", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_products_id"), "products", ["id"], unique=False)
    op.create_index(op.f("ix_products_sku"), "products", ["sku"], unique=True)
    op.create_index(op.f("ix_products_name"), "products", ["name"], unique=False)

    _party_table("customers")
    _party_table("suppliers")

    op.create_table(
        "purchase_invoices",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("invoice_number", sa.String(length=64), nullable=False),
        sa.Column("supplier_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.DateTime(), nullable=False),
        *_invoice_money_columns(),
        sa.Column("note", sa.String(length=255), nullable=True),
        sa.Column("created_by", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["supplier_id"], ["suppliers.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_purchase_invoices_id"), "purchase_invoices", ["id"], unique=False)
    op.create_index(op.f("ix_purchase_invoices_invoice_number"), "purchase_invoices", ["invoice_number"], unique=True)
    op.create_index(op.f("ix_purchase_invoices_supplier_id"), "purchase_invoices", ["supplier_id"], unique=False)
    op.create_index(op.f("ix_purchase_invoices_date"), "purchase_invoices", ["date"], unique=False)

    op.create_table(
        "purchase_invoice_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("invoice_id", sa.Integer(), nullable=False),
        sa.Column("line_no", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("unit", sa.String(length=24), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("amount", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.ForeignKeyConstraint(["invoice_id"], ["purchase_invoices.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("invoice_id", "line_no", name="uq_purchase_invoice_items_line"),
    )
    op.create_index(op.f("ix_purchase_invoice_items_id"), "purchase_invoice_items", ["id"], unique=False)
    op.create_index(op.f("ix_purchase_invoice_items_invoice_id"), "purchase_invoice_items", ["invoice_id"], unique=False)
    op.create_index(op.f("ix_purchase_invoice_items_product_id"), "purchase_invoice_items", ["product_id"], unique=False)

    op.create_table(
        "stock_batches",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("purchase_invoice_id", sa.Integer(), nullable=True),
        sa.Column("quantity_received", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_cost", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("received_at", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("quantity >= 0", name="ck_stock_batches_quantity_non_negative"),
        sa.CheckConstraint("quantity <= quantity_received", name="ck_stock_batches_quantity_le_received"),
        sa.CheckConstraint("unit_cost >= 0", name="ck_stock_batches_unit_cost_non_negative"),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["purchase_invoice_id"], ["purchase_invoices.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_stock_batches_id"), "stock_batches", ["id"], unique=False)
    op.create_index(op.f("ix_stock_batches_product_id"), "stock_batches", ["product_id"], unique=False)
    op.create_index(op.f("ix_stock_batches_purchase_invoice_id"), "stock_batches", ["purchase_invoice_id"], unique=False)
    op.create_index(op.f("ix_stock_batches_received_at"), "stock_batches", ["received_at"], unique=False)
    op.create_index("ix_stock_batches_fifo", "stock_batches", ["product_id", "created_at", "id"], unique=False)

    op.create_table(
        "sales_invoices",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("invoice_number", sa.String(length=64), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.DateTime(), nullable=False),
        *_invoice_money_columns(),
        sa.Column("cogs_total", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("profit", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("note", sa.String(length=255), nullable=True),
        sa.Column("created_by", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_sales_invoices_id"), "sales_invoices", ["id"], unique=False)
    op.create_index(op.f("ix_sales_invoices_invoice_number"), "sales_invoices", ["invoice_number"], unique=True)
    op.create_index(op.f("ix_sales_invoices_customer_id"), "sales_invoices", ["customer_id"], unique=False)
    op.create_index(op.f("ix_sales_invoices_date"), "sales_invoices", ["date"], unique=False)

    op.create_table(
        "sales_invoice_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("invoice_id", sa.Integer(), nullable=False),
        sa.Column("line_no", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("unit", sa.String(length=24), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("amount", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("cogs", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.ForeignKeyConstraint(["invoice_id"], ["sales_invoices.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("invoice_id", "line_no", name="uq_sales_invoice_items_line"),
    )
    op.create_index(op.f("ix_sales_invoice_items_id"), "sales_invoice_items", ["id"], unique=False)
    op.create_index(op.f("ix_sales_invoice_items_invoice_id"), "sales_invoice_items", ["invoice_id"], unique=False)
    op.create_index(op.f("ix_sales_invoice_items_product_id"), "sales_invoice_items", ["product_id"], unique=False)

    for table, party_column, party_table in (
        ("customer_payments", "customer_id", "customers"),
        ("supplier_payments", "supplier_id", "suppliers"),
    ):
        op.create_table(
            table,
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column(party_column, sa.Integer(), nullable=False),
            sa.Column("amount", sa.Numeric(precision=14, scale=2), nullable=False),
            sa.Column("method", sa.String(length=40), nullable=True),
            sa.Column("note", sa.String(length=255), nullable=True),
            sa.Column("date", sa.DateTime(), nullable=False),
            sa.Column("created_by", sa.String(length=64), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.CheckConstraint("amount >= 0", name=f"ck_{table}_amount_non_negative"),
            sa.ForeignKeyConstraint([party_column], [f"{party_table}.id"], ondelete="RESTRICT"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(op.f(f"ix_{table}_id"), table, ["id"], unique=False)
        op.create_index(op.f(f"ix_{table}_date"), table, ["date"], unique=False)
        op.create_index(f"ix_{table}_{party_column.removesuffix('_id')}_date", table, [party_column, "date"], unique=False)


def downgrade() -> None:
    for table, party in (("supplier_payments", "supplier"), ("customer_payments", "customer")):
        op.drop_index(f"ix_{table}_{party}_date", table_name=table)
        op.drop_index(op.f(f"ix_{table}_date"), table_name=table)
        op.drop_index(op.f(f"ix_{table}_id"), table_name=table)
        op.drop_table(table)

    op.drop_index(op.f("ix_sales_invoice_items_product_id"), table_name="sales_invoice_items")
    op.drop_index(op.f("ix_sales_invoice_items_invoice_id"), table_name="sales_invoice_items")
    op.drop_index(op.f("ix_sales_invoice_items_id"), table_name="sales_invoice_items")
    op.drop_table("sales_invoice_items")

    op.drop_index(op.f("ix_sales_invoices_date"), table_name="sales_invoices")
    op.drop_index(op.f("ix_sales_invoices_customer_id"), table_name="sales_invoices")
    op.drop_index(op.f("ix_sales_invoices_invoice_number"), table_name="sales_invoices")
    op.drop_index(op.f("ix_sales_invoices_id"), table_name="sales_invoices")
    op.drop_table("sales_invoices")

    op.drop_index("ix_stock_batches_fifo", table_name="stock_batches")
    op.drop_index(op.f("ix_stock_batches_received_at"), table_name="stock_batches")
    op.drop_index(op.f("ix_stock_batches_purchase_invoice_id"), table_name="stock_batches")
    op.drop_index(op.f("ix_stock_batches_product_id"), table_name="stock_batches")
    op.drop_index(op.f("ix_stock_batches_id"), table_name="stock_batches")
    op.drop_table("stock_batches")

    op.drop_index(op.f("ix_purchase_invoice_items_product_id"), table_name="purchase_invoice_items")
    op.drop_index(op.f("ix_purchase_invoice_items_invoice_id"), table_name="purchase_invoice_items")
    op.drop_index(op.f("ix_purchase_invoice_items_id"), table_name="purchase_invoice_items")
    op.drop_table("purchase_invoice_items")

    op.drop_index(op.f("ix_purchase_invoices_date"), table_name="purchase_invoices")
    op.drop_index(op.f("ix_purchase_invoices_supplier_id"), table_name="purchase_invoices")
    op.drop_index(op.f("ix_purchase_invoices_invoice_number"), table_name="purchase_invoices")
    op.drop_index(op.f("ix_purchase_invoices_id"), table_name="purchase_invoices")
    op.drop_table("purchase_invoices")

    for table in ("suppliers", "customers"):
        op.drop_index(op.f(f"ix_{table}_name"), table_name=table)
        op.drop_index(op.f(f"ix_{table}_id"), table_name=table)
        op.drop_table(table)

    op.drop_index(op.f("ix_products_name"), table_name="products")
    op.drop_index(op.f("ix_products_sku"), table_name="products")
    op.drop_index(op.f("ix_products_id"), table_name="products")
    op.drop_table("products")
