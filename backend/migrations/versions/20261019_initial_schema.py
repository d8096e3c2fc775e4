"""Initial schema: tenants, inventory, sales, khata and supplier ledgers, reports

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
    ]


def upgrade():
    op.create_table(
        "organizations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(64), nullable=False),
        sa.Column("gstin", sa.String(15), nullable=True),
        sa.Column("state_code", sa.String(2), nullable=True),
        sa.Column("timezone", sa.String(64), nullable=False, server_default="Asia/Kolkata"),
        sa.Column("gst_enabled", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("gst_inclusive", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("next_invoice_number", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("organizations", schema=None) as batch_op:
        batch_op.create_index("ix_organizations_slug", ["slug"], unique=True)
        batch_op.create_index("ix_organizations_is_active", ["is_active"], unique=False)

    op.create_table(
        "profiles",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("org_id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(128), nullable=True),
        sa.Column("role", sa.String(16), nullable=False, server_default="staff"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("org_id", "email", name="uq_profiles_org_email"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("profiles", schema=None) as batch_op:
        batch_op.create_index("ix_profiles_org_id", ["org_id"], unique=False)

    op.create_table(
        "inventory",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("org_id", sa.Integer(), nullable=False),
        sa.Column("sku", sa.String(64), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("buy_price", sa.Numeric(14, 2), nullable=False),
        sa.Column("sell_price", sa.Numeric(14, 2), nullable=True),
        sa.Column("gst_percentage", sa.Numeric(5, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("hsn_code", sa.String(8), nullable=True),
        sa.Column("stock", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("min_stock", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("org_id", "sku", name="uq_inventory_org_sku"),
        sa.CheckConstraint("stock >= 0", name="ck_inventory_stock_non_negative"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("inventory", schema=None) as batch_op:
        batch_op.create_index("ix_inventory_org_id", ["org_id"], unique=False)
        batch_op.create_index("ix_inventory_org_name", ["org_id", "name"], unique=False)

    for table, extra in (
        ("customers", []),
        ("suppliers", [sa.Column("gstin", sa.String(15), nullable=True)]),
    ):
        op.create_table(
            table,
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("org_id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(255), nullable=False),
            sa.Column("phone", sa.String(32), nullable=True),
            sa.Column("address", sa.String(500), nullable=True),
            *extra,
            sa.Column("balance", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
            *_timestamps(),
            sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
            sa.ForeignKeyConstraint(["org_id"], ["organizations.id"]),
            sa.PrimaryKeyConstraint("id"),
            sqlite_autoincrement=True,
        )
        with op.batch_alter_table(table, schema=None) as batch_op:
            batch_op.create_index(f"ix_{table}_org_id", ["org_id"], unique=False)
            batch_op.create_index(f"ix_{table}_org_name", ["org_id", "name"], unique=False)

    op.create_table(
        "sales",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("org_id", sa.Integer(), nullable=False),
        sa.Column("inventory_id", sa.Integer(), nullable=False),
        sa.Column("batch_id", sa.String(36), nullable=False),
        sa.Column("invoice_no", sa.String(16), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Numeric(18, 8), nullable=False),
        sa.Column("sale_price", sa.Numeric(18, 8), nullable=False),
        sa.Column("unit_cost", sa.Numeric(14, 2), nullable=False),
        sa.Column("gst_rate", sa.Numeric(5, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("tax_mode", sa.String(16), nullable=False, server_default="exclusive"),
        sa.Column("jurisdiction", sa.String(8), nullable=False, server_default="intra"),
        sa.Column("taxable_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("gst_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("cgst_amount", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("sgst_amount", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("igst_amount", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("total_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("profit", sa.Numeric(14, 2), nullable=False),
        sa.Column("payment_method", sa.String(16), nullable=False),
        sa.Column("payment_status", sa.String(16), nullable=False, server_default="paid"),
        sa.Column("customer_id", sa.Integer(), nullable=True),
        sa.Column("customer_name", sa.String(255), nullable=True),
        sa.Column("customer_phone", sa.String(32), nullable=True),
        sa.Column("customer_gstin", sa.String(15), nullable=True),
        sa.Column("place_of_supply", sa.String(2), nullable=True),
        sa.Column("hsn_code", sa.String(8), nullable=True),
        sa.Column("sale_date", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"]),
        sa.ForeignKeyConstraint(["inventory_id"], ["inventory.id"]),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.ForeignKeyConstraint(["created_by"], ["profiles.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("quantity > 0", name="ck_sales_quantity_positive"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("sales", schema=None) as batch_op:
        batch_op.create_index("ix_sales_org_id", ["org_id"], unique=False)
        batch_op.create_index("ix_sales_inventory_id", ["inventory_id"], unique=False)
        batch_op.create_index("ix_sales_payment_status", ["payment_status"], unique=False)
        batch_op.create_index("ix_sales_customer_id", ["customer_id"], unique=False)
        batch_op.create_index("ix_sales_customer_gstin", ["customer_gstin"], unique=False)
        batch_op.create_index("ix_sales_org_sale_date", ["org_id", "sale_date"], unique=False)
        batch_op.create_index("ix_sales_org_batch", ["org_id", "batch_id"], unique=False)
        batch_op.create_index("ix_sales_org_invoice", ["org_id", "invoice_no"], unique=False)
        batch_op.create_index("ix_sales_org_inventory_date", ["org_id", "inventory_id", "sale_date"], unique=False)

    op.create_table(
        "khata_transactions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("org_id", sa.Integer(), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=False),
        sa.Column("type", sa.String(16), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("note", sa.String(500), nullable=True),
        sa.Column("sale_id", sa.Integer(), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("reversed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reversal_reason", sa.String(255), nullable=True),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"]),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.ForeignKeyConstraint(["sale_id"], ["sales.id"]),
        sa.ForeignKeyConstraint(["created_by"], ["profiles.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("amount > 0", name="ck_khata_transactions_amount_positive"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("khata_transactions", schema=None) as batch_op:
        batch_op.create_index("ix_khata_transactions_org_id", ["org_id"], unique=False)
        batch_op.create_index("ix_khata_transactions_customer_id", ["customer_id"], unique=False)
        batch_op.create_index("ix_khata_transactions_sale_id", ["sale_id"], unique=False)
        batch_op.create_index(
            "ix_khata_transactions_customer_created", ["customer_id", "created_at", "id"], unique=False
        )

    op.create_table(
        "supplier_transactions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("org_id", sa.Integer(), nullable=False),
        sa.Column("supplier_id", sa.Integer(), nullable=False),
        sa.Column("type", sa.String(16), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("note", sa.String(500), nullable=True),
        sa.Column("invoice_no", sa.String(64), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("reversed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reversal_reason", sa.String(255), nullable=True),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"]),
        sa.ForeignKeyConstraint(["supplier_id"], ["suppliers.id"]),
        sa.ForeignKeyConstraint(["created_by"], ["profiles.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("amount > 0", name="ck_supplier_transactions_amount_positive"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("supplier_transactions", schema=None) as batch_op:
        batch_op.create_index("ix_supplier_transactions_org_id", ["org_id"], unique=False)
        batch_op.create_index("ix_supplier_transactions_supplier_id", ["supplier_id"], unique=False)
        batch_op.create_index(
            "ix_supplier_transactions_supplier_created", ["supplier_id", "created_at", "id"], unique=False
        )

    op.create_table(
        "expenses",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("org_id", sa.Integer(), nullable=False),
        sa.Column("category", sa.String(64), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("expense_date", sa.Date(), nullable=False),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"]),
        sa.ForeignKeyConstraint(["created_by"], ["profiles.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("amount > 0", name="ck_expenses_amount_positive"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("expenses", schema=None) as batch_op:
        batch_op.create_index("ix_expenses_org_id", ["org_id"], unique=False)
        batch_op.create_index("ix_expenses_org_date", ["org_id", "expense_date"], unique=False)

    op.create_table(
        "daily_reports",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("org_id", sa.Integer(), nullable=False),
        sa.Column("report_date", sa.Date(), nullable=False),
        sa.Column("total_sale_gross", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("total_cost", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("total_profit", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("expenses", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("expense_breakdown", sa.JSON(), nullable=False),
        sa.Column("cash_sale", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("online_sale", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("online_cost", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("sale_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        *_timestamps(),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("org_id", "report_date", name="uq_daily_reports_org_date"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("daily_reports", schema=None) as batch_op:
        batch_op.create_index("ix_daily_reports_org_id", ["org_id"], unique=False)


def downgrade():
    for table in (
        "daily_reports",
        "expenses",
        "supplier_transactions",
        "khata_transactions",
        "sales",
        "suppliers",
        "customers",
        "inventory",
        "profiles",
        "organizations",
    ):
        op.drop_table(table)
