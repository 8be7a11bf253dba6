"""Initial commission engine schema

Revision ID: 000_initial_schema
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "000_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create catalog, order and ledger tables."""

    # Partner companies table
    op.create_table(
        "partner_companies",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("is_active", sa.Boolean(), default=True, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), onupdate=sa.func.now()),
    )

    # Users table (members form the upline tree through upline_id)
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.Enum("admin", "member", name="userrole"), nullable=False),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column("is_active", sa.Boolean(), default=True, nullable=False),
        sa.Column(
            "customer_type",
            sa.Enum("regular", "vip", "wholesale", name="customertype"),
            server_default="regular",
            nullable=False,
        ),
        sa.Column(
            "upline_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL", name="fk_users_upline_id_users"),
            nullable=True,
        ),
        sa.Column(
            "partner_company_id",
            sa.Integer(),
            sa.ForeignKey("partner_companies.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), onupdate=sa.func.now()),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_upline_id", "users", ["upline_id"])
    op.create_index("ix_users_partner_company_id", "users", ["partner_company_id"])

    # Commission templates table
    op.create_table(
        "commission_templates",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("template_code", sa.String(50), nullable=False),
        sa.Column("template_name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.Enum("active", "inactive", name="templatestatus"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), onupdate=sa.func.now()),
    )
    op.create_index("ix_commission_templates_template_code", "commission_templates", ["template_code"], unique=True)

    # Template rule rows
    op.create_table(
        "commission_template_details",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "template_id",
            sa.Integer(),
            sa.ForeignKey("commission_templates.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("level_type", sa.String(30), nullable=False),
        sa.Column("level_number", sa.Integer(), nullable=False),
        sa.Column(
            "customer_type",
            sa.Enum("regular", "vip", "wholesale", "all", name="rulecustomertype"),
            nullable=False,
        ),
        sa.Column("commission_type", sa.Enum("percentage", "fixed", name="commissiontype"), nullable=False),
        sa.Column("commission_value", sa.Numeric(12, 2), nullable=False),
        sa.CheckConstraint("level_number >= 0", name="ck_commission_template_details_level_number_non_negative"),
    )
    op.create_index("ix_commission_template_details_template_id", "commission_template_details", ["template_id"])

    # Products table
    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("sku", sa.String(64), unique=True, nullable=True),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column(
            "commission_template_id",
            sa.Integer(),
            sa.ForeignKey("commission_templates.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), onupdate=sa.func.now()),
    )
    op.create_index("ix_products_commission_template_id", "products", ["commission_template_id"])

    # Time-based template overrides
    op.create_table(
        "time_based_templates",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "commission_template_id",
            sa.Integer(),
            sa.ForeignKey("commission_templates.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "status",
            sa.Enum("active", "inactive", name="templatestatus", create_type=False),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("start_date <= end_date", name="ck_time_based_templates_date_range"),
    )
    op.create_index("ix_time_based_templates_product_id", "time_based_templates", ["product_id"])
    op.create_index(
        "ix_time_based_templates_lookup",
        "time_based_templates",
        ["product_id", "status", "start_date", "end_date"],
    )

    # Orders table
    op.create_table(
        "orders",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("buyer_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("status", sa.Enum("pending", "completed", "cancelled", name="orderstatus"), nullable=False),
        sa.Column("placed_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("commissions_processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), onupdate=sa.func.now()),
    )
    op.create_index("ix_orders_buyer_id", "orders", ["buyer_id"])
    op.create_index("ix_orders_status", "orders", ["status"])

    # Order items table
    op.create_table(
        "order_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
    )
    op.create_index("ix_order_items_order_id", "order_items", ["order_id"])

    # Commission ledger
    op.create_table(
        "commission_calculations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id"), nullable=False),
        sa.Column("order_item_id", sa.Integer(), sa.ForeignKey("order_items.id"), nullable=False),
        sa.Column("beneficiary_id", sa.Integer(), nullable=False),
        sa.Column("beneficiary_type", sa.Enum("user", "company", name="beneficiarytype"), nullable=False),
        sa.Column("commission_level", sa.Integer(), nullable=False),
        sa.Column(
            "commission_type",
            sa.Enum("percentage", "fixed", name="commissiontype", create_type=False),
            nullable=False,
        ),
        sa.Column("commission_rate", sa.Numeric(12, 2), nullable=False),
        sa.Column("commission_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column(
            "status",
            sa.Enum("pending", "approved", "paid", name="commissionstatus"),
            nullable=False,
        ),
        sa.Column(
            "applied_template_id",
            sa.Integer(),
            sa.ForeignKey("commission_templates.id"),
            nullable=False,
        ),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_by_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("paid_by_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint(
            "order_id",
            "order_item_id",
            "beneficiary_type",
            "beneficiary_id",
            "commission_level",
            name="uq_commission_calculations_slot",
        ),
    )
    op.create_index("ix_commission_calculations_order_id", "commission_calculations", ["order_id"])
    op.create_index("ix_commission_calculations_beneficiary_id", "commission_calculations", ["beneficiary_id"])
    op.create_index("ix_commission_calculations_status", "commission_calculations", ["status"])
    op.create_index("ix_commission_calculations_created_at", "commission_calculations", ["created_at"])

    # Audit logs table
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "action",
            sa.Enum(
                "login",
                "logout",
                "calculate_commissions",
                "approve_commissions",
                "pay_commissions",
                "create_template",
                "create_time_based_template",
                name="auditaction",
            ),
            nullable=False,
        ),
        sa.Column("target_type", sa.String(50), nullable=True),
        sa.Column("target_id", sa.Integer(), nullable=True),
        sa.Column("action_metadata", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])


def downgrade() -> None:
    """Drop all tables in reverse order."""
    op.drop_table("audit_logs")
    op.drop_table("commission_calculations")
    op.drop_table("order_items")
    op.drop_table("orders")
    op.drop_table("time_based_templates")
    op.drop_table("products")
    op.drop_table("commission_template_details")
    op.drop_table("commission_templates")
    op.drop_table("users")
    op.drop_table("partner_companies")

    # Drop enums
    op.execute("DROP TYPE IF EXISTS auditaction")
    op.execute("DROP TYPE IF EXISTS commissionstatus")
    op.execute("DROP TYPE IF EXISTS beneficiarytype")
    op.execute("DROP TYPE IF EXISTS orderstatus")
    op.execute("DROP TYPE IF EXISTS commissiontype")
    op.execute("DROP TYPE IF EXISTS rulecustomertype")
    op.execute("DROP TYPE IF EXISTS templatestatus")
    op.execute("DROP TYPE IF EXISTS customertype")
    op.execute("DROP TYPE IF EXISTS userrole")
