from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

ENUMS = {
    "approle": ("ADMIN", "CUSTOMER", "EMPLOYEE", "SHIPPING_PARTNER", "ACCOUNTANT"),
    "wmsrole": ("OWNER", "ADMIN", "EMPLOYEE", "ACCOUNTANT", "VIEWER"),
    "shippingmode": ("SEA", "AIR"),
    "ratetype": (
        "AIR_KG",
        "SEA_CBM",
        "SEA_CONTAINER_20",
        "SEA_CONTAINER_40",
        "SEA_CONTAINER_40HC",
        "SEA_CONTAINER_45HC",
    ),
    "surchargetype": (
        "FUEL",
        "HANDLING",
        "CUSTOMS",
        "INSURANCE",
        "QC",
        "STORAGE",
        "DEMURRAGE",
        "DOCUMENTATION",
        "OTHER",
    ),
    "shipmentstatus": (
        "RECEIVED_FROM_SUPPLIER",
        "PROCESSING",
        "PENDING_PARTNER_ACCEPTANCE",
        "IN_TRANSIT",
        "CUSTOMS",
        "RECEIVED_AT_WAREHOUSE",
        "OUT_FOR_DELIVERY",
        "DELIVERED",
        "COMPLETED",
        "REJECTED",
    ),
    "requestpaymentstatus": ("UNPAID", "PAID"),
    "ordertype": ("STANDARD", "REORDER"),
    "orderstatus": ("PENDING_APPROVAL", "APPROVED", "IN_PROGRESS", "DELIVERED", "COMPLETED", "CANCELLED"),
    "invoicestatus": ("DRAFT", "SENT", "VIEWED", "PAID", "OVERDUE"),
    "paymentstatus": ("PENDING", "COMPLETED", "FAILED"),
}


def _enum(name: str) -> postgresql.ENUM:
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def _uuid_fk(name: str, target: str) -> sa.Column:
    return sa.Column(name, postgresql.UUID(as_uuid=True), sa.ForeignKey(target))


def upgrade() -> None:
    bind = op.get_bind()
    for name, values in ENUMS.items():
        postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)

    op.create_table(
        "profiles",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=255)),
        sa.Column("phone", sa.String(length=32)),
        sa.Column("company_name", sa.String(length=255)),
        sa.Column("role", _enum("approle"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_profiles_email", "profiles", ["email"], unique=True)

    op.create_table(
        "shipping_partners",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _uuid_fk("user_id", "profiles.id"),
        sa.Column("company_name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255)),
        sa.Column("phone", sa.String(length=32)),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "wms_customers",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("customer_code", sa.String(length=32), nullable=False, unique=True),
        sa.Column("company_name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255)),
        sa.Column("phone", sa.String(length=32)),
        sa.Column("address", sa.String(length=512)),
        sa.Column("vatin", sa.String(length=32)),
        sa.Column("vat_exempt", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "wms_customer_users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("customer_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("wms_customers.id"), nullable=False),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("role", _enum("wmsrole"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("customer_id", "user_id", name="uq_wms_customer_user"),
    )

    op.create_table(
        "agreements",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _uuid_fk("partner_id", "shipping_partners.id"),
        sa.Column("origin", sa.String(length=64), nullable=False),
        sa.Column("destination", sa.String(length=64), nullable=False),
        sa.Column("rate_type", _enum("ratetype"), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("buy_price", sa.Numeric(18, 4), nullable=False),
        sa.Column("sell_price", sa.Numeric(18, 4), nullable=False),
        sa.Column("margin_percent", sa.Numeric(9, 4), nullable=False, server_default="0"),
        sa.Column("min_charge", sa.Numeric(18, 4)),
        sa.Column("valid_from", sa.Date(), nullable=False),
        sa.Column("valid_to", sa.Date()),
        sa.Column("notes", sa.Text()),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _uuid_fk("created_by", "profiles.id"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_agreements_lane", "agreements", ["origin", "destination", "rate_type"])

    op.create_table(
        "surcharges",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("type", _enum("surchargetype"), nullable=False),
        sa.Column("amount", sa.Numeric(18, 4), nullable=False),
        sa.Column("is_percentage", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("origin", sa.String(length=64)),
        sa.Column("destination", sa.String(length=64)),
        sa.Column("rate_type", _enum("ratetype")),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("valid_from", sa.Date(), nullable=False, server_default=sa.func.current_date()),
        sa.Column("valid_to", sa.Date()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "shipment_requests",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("customer_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("origin", sa.String(length=64), nullable=False),
        sa.Column("destination", sa.String(length=64), nullable=False),
        sa.Column("shipping_mode", _enum("shippingmode"), nullable=False),
        sa.Column("rate_type", _enum("ratetype"), nullable=False),
        sa.Column("items", postgresql.JSONB(), nullable=False, server_default="[]"),
        sa.Column("calculated_cost", sa.Numeric(18, 4)),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("status", _enum("shipmentstatus"), nullable=False),
        sa.Column("payment_status", _enum("requestpaymentstatus"), nullable=False),
        sa.Column("rejection_reason", sa.Text()),
        _uuid_fk("assigned_partner_id", "shipping_partners.id"),
        _uuid_fk("driver_id", "profiles.id"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_shipment_requests_customer", "shipment_requests", ["customer_id"])

    op.create_table(
        "shipment_status_history",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "shipment_request_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("shipment_requests.id"),
            nullable=False,
        ),
        sa.Column("status", _enum("shipmentstatus"), nullable=False),
        sa.Column("location", sa.String(length=255)),
        sa.Column("notes", sa.Text()),
        _uuid_fk("changed_by", "profiles.id"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "quotes",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "shipment_request_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("shipment_requests.id"),
            nullable=False,
        ),
        _uuid_fk("agreement_id", "agreements.id"),
        sa.Column("breakdown", postgresql.JSONB(), nullable=False),
        sa.Column("buy_cost", sa.Numeric(18, 4), nullable=False),
        sa.Column("total_sell_price", sa.Numeric(18, 4), nullable=False),
        sa.Column("profit_margin_percentage", sa.Numeric(9, 4), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("valid_until", sa.Date()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "wms_inventory",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("customer_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("wms_customers.id"), nullable=False),
        sa.Column("sku", sa.String(length=64), nullable=False),
        sa.Column("product_name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.String(length=1024)),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("consumed_quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("minimum_quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("max_stock_level", sa.Integer()),
        sa.Column("price_per_unit", sa.Numeric(18, 4), nullable=False, server_default="0"),
        sa.Column("unit", sa.String(length=16), nullable=False, server_default="pcs"),
        sa.Column("location", sa.String(length=64)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("customer_id", "sku", name="uq_wms_inventory_customer_sku"),
    )

    op.create_table(
        "wms_orders",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("order_number", sa.String(length=64), nullable=False, unique=True),
        sa.Column("customer_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("wms_customers.id"), nullable=False),
        sa.Column("order_type", _enum("ordertype"), nullable=False),
        sa.Column("status", _enum("orderstatus"), nullable=False),
        sa.Column("total_amount", sa.Numeric(18, 4), nullable=False, server_default="0"),
        sa.Column("delivery_address", sa.String(length=512)),
        sa.Column("notes", sa.Text()),
        _uuid_fk("created_by", "profiles.id"),
        _uuid_fk("approved_by", "profiles.id"),
        _uuid_fk("driver_id", "profiles.id"),
        sa.Column("approved_at", sa.DateTime(timezone=True)),
        sa.Column("delivered_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "wms_order_items",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("order_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("wms_orders.id"), nullable=False),
        sa.Column("inventory_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("wms_inventory.id"), nullable=False),
        sa.Column("product_name", sa.String(length=255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("price_per_unit", sa.Numeric(18, 4), nullable=False),
        sa.Column("total_price", sa.Numeric(18, 4), nullable=False),
    )

    op.create_table(
        "wms_invoices",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("invoice_number", sa.String(length=64), nullable=False, unique=True),
        sa.Column(
            "order_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("wms_orders.id"),
            nullable=False,
            unique=True,
        ),
        sa.Column("customer_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("wms_customers.id"), nullable=False),
        sa.Column("status", _enum("invoicestatus"), nullable=False),
        sa.Column("subtotal", sa.Numeric(18, 4), nullable=False),
        sa.Column("tax_rate", sa.Numeric(9, 4), nullable=False),
        sa.Column("tax_amount", sa.Numeric(18, 4), nullable=False),
        sa.Column("total_amount", sa.Numeric(18, 4), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("vat_exempt", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("notes", sa.Text()),
        sa.Column("invoice_date", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True)),
        sa.Column("viewed_at", sa.DateTime(timezone=True)),
        sa.Column("paid_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "wms_invoice_items",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("invoice_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("wms_invoices.id"), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Numeric(18, 4), nullable=False),
        sa.Column("total_price", sa.Numeric(18, 4), nullable=False),
    )

    op.create_table(
        "payments",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("customer_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("profiles.id"), nullable=False),
        _uuid_fk("shipment_request_id", "shipment_requests.id"),
        _uuid_fk("invoice_id", "wms_invoices.id"),
        sa.Column("stripe_customer_id", sa.String(length=64)),
        sa.Column("stripe_session_id", sa.String(length=500)),
        sa.Column("stripe_payment_intent_id", sa.String(length=64)),
        sa.Column("payment_method", sa.String(length=32)),
        sa.Column("amount", sa.Numeric(18, 4), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("status", _enum("paymentstatus"), nullable=False),
        sa.Column("paid_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_payments_stripe_session_id", "payments", ["stripe_session_id"])

    op.create_table(
        "push_subscriptions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("endpoint", sa.Text(), nullable=False, unique=True),
        sa.Column("p256dh", sa.String(length=255), nullable=False),
        sa.Column("auth", sa.String(length=255), nullable=False),
        sa.Column("last_used_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "notification_preferences",
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("email_on_quote", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("email_on_status_update", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("email_on_approval", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("email_on_document", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("push_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
    )

    op.create_table(
        "email_logs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _uuid_fk("user_id", "profiles.id"),
        sa.Column("recipient", sa.String(length=255), nullable=False),
        sa.Column("template", sa.String(length=64), nullable=False),
        sa.Column("subject", sa.String(length=255), nullable=False),
        sa.Column("provider_message_id", sa.String(length=128)),
        sa.Column("sent_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "products",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("short_name", sa.String(length=64)),
        sa.Column("sku", sa.String(length=64), nullable=False),
        sa.Column("summary", sa.Text()),
        sa.Column("description", sa.Text()),
        sa.Column("price", sa.Numeric(18, 4), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="USD"),
        sa.Column("moq", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("images", postgresql.JSONB(), nullable=False, server_default="[]"),
        sa.Column("meta_title", sa.String(length=60)),
        sa.Column("meta_description", sa.String(length=160)),
        sa.Column("source_url", sa.Text()),
        sa.Column("source_hash", sa.String(length=64), unique=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("products")
    op.drop_table("email_logs")
    op.drop_table("notification_preferences")
    op.drop_table("push_subscriptions")
    op.drop_table("payments")
    op.drop_table("wms_invoice_items")
    op.drop_table("wms_invoices")
    op.drop_table("wms_order_items")
    op.drop_table("wms_orders")
    op.drop_table("wms_inventory")
    op.drop_table("quotes")
    op.drop_table("shipment_status_history")
    op.drop_table("shipment_requests")
    op.drop_table("surcharges")
    op.drop_table("agreements")
    op.drop_table("wms_customer_users")
    op.drop_table("wms_customers")
    op.drop_table("shipping_partners")
    op.drop_table("profiles")

    for name in reversed(list(ENUMS)):
        op.execute(f"DROP TYPE IF EXISTS {name}")
