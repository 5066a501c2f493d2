"""unit prices at four places, product and line categories

Revision ID: 20261019_0002
Revises: 20261018_0001
Create Date: 2026-10-19 10:15:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261019_0002"
down_revision: Union[str, Sequence[str], None] = "20261018_0001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

UNIT_PRICE_COLUMNS = (
    ("products", "price"),
    ("stock_batches", "unit_cost"),
    ("purchase_invoice_items", "price"),
    ("sales_invoice_items", "price"),
)
CATEGORY_TABLES = ("purchase_invoice_items", "sales_invoice_items")


def upgrade() -> None:
    for table, column in UNIT_PRICE_COLUMNS:
        op.alter_column(
            table,
            column,
            existing_type=sa.Numeric(precision=12, scale=2),
            type_=sa.Numeric(precision=14, scale=4),
            existing_nullable=False,
        )

    op.add_column("products", sa.Column("category", sa.String(length=80), nullable=True))
    op.create_index(op.f("ix_products_category"), "products", ["category"], unique=False)
    for table in CATEGORY_TABLES:
        op.add_column(table, sa.Column("category", sa.String(length=80), nullable=True))


def downgrade() -> None:
    for table in CATEGORY_TABLES:
        op.drop_column(table, "category")
    op.drop_index(op.f("ix_products_category"), table_name="products")
    op.drop_column("products", "category")

    for table, column in UNIT_PRICE_COLUMNS:
        op.alter_column(
            table,
            column,
            existing_type=sa.Numeric(precision=14, scale=4),
            type_=sa.Numeric(precision=12, scale=2),
            existing_nullable=False,
        )
