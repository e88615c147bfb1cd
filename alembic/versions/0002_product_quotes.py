from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "0002_product_quotes"
down_revision = "0001_initial"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column("products", sa.Column("pricing_tiers", postgresql.JSONB(), nullable=False, server_default="[]"))
    op.add_column("products", sa.Column("tags", postgresql.JSONB(), nullable=False, server_default="[]"))
    op.add_column("products", sa.Column("weight_kg", sa.Numeric(18, 4)))
    op.add_column("products", sa.Column("volume_cbm", sa.Numeric(18, 6)))
    op.add_column("products", sa.Column("lead_time_days", sa.Integer()))
    op.add_column("products", sa.Column("quote_validity_days", sa.Integer()))

    op.create_table(
        "product_quotes",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("quote_number", sa.String(length=32), nullable=False, unique=True),
        sa.Column("product_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("products.id", ondelete="SET NULL")),
        sa.Column("customer_name", sa.String(length=255), nullable=False),
        sa.Column("customer_email", sa.String(length=255), nullable=False),
        sa.Column("customer_phone", sa.String(length=64)),
        sa.Column("preferred_channel", sa.String(length=16), nullable=False, server_default="email"),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("delivery_city", sa.String(length=128), nullable=False),
        sa.Column("delivery_country", sa.String(length=128), nullable=False),
        sa.Column("notes", sa.Text()),
        sa.Column("unit_price", sa.Numeric(18, 4), nullable=False),
        sa.Column("subtotal", sa.Numeric(18, 4), nullable=False),
        sa.Column("shipping_fee", sa.Numeric(18, 4), nullable=False),
        sa.Column("discount_name", sa.String(length=64)),
        sa.Column("discount_amount", sa.Numeric(18, 4), nullable=False, server_default="0"),
        sa.Column("total_amount", sa.Numeric(18, 4), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("eta_days", sa.Integer(), nullable=False),
        sa.Column("breakdown", postgresql.JSONB(), nullable=False, server_default="{}"),
        sa.Column("valid_until", sa.Date(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="sent"),
        sa.Column("sent_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_product_quotes_created_at", "product_quotes", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_product_quotes_created_at", table_name="product_quotes")
    op.drop_table("product_quotes")

    op.drop_column("products", "quote_validity_days")
    op.drop_column("products", "lead_time_days")
    op.drop_column("products", "volume_cbm")
    op.drop_column("products", "weight_kg")
    op.drop_column("products", "tags")
    op.drop_column("products", "pricing_tiers")
