"""initial subscription lifecycle schema

Revision ID: 3f1c9a2b7d40
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "3f1c9a2b7d40"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
  op.create_table(
    "organizations",
    sa.Column("id", sa.String(), nullable=False),
    sa.Column("name", sa.String(), nullable=False),
    sa.Column("contact_name", sa.String(), nullable=True),
    sa.Column("contact_email", sa.String(), nullable=True),
    sa.Column("contact_phone", sa.String(), nullable=True),
    sa.Column("website", sa.String(), nullable=True),
    sa.Column("subscription_plan", sa.String(), nullable=True),
    sa.Column("stripe_customer_id", sa.String(), nullable=True),
    sa.Column("stripe_subscription_id", sa.String(), nullable=True),
    sa.Column("stripe_price_id", sa.String(), nullable=True),
    sa.Column("status", sa.String(), nullable=False, server_default="trialing"),
    sa.Column("trial_ends_at", sa.DateTime(timezone=True), nullable=True),
    sa.Column("current_period_start", sa.DateTime(timezone=True), nullable=True),
    sa.Column("current_period_end", sa.DateTime(timezone=True), nullable=True),
    sa.Column(
      "cancel_at_period_end", sa.Boolean(), nullable=False, server_default=sa.false()
    ),
    sa.Column("grace_period_days", sa.Integer(), nullable=True, server_default="14"),
    sa.Column("payment_failed_at", sa.DateTime(timezone=True), nullable=True),
    sa.Column("payment_retry_count", sa.Integer(), nullable=False, server_default="0"),
    sa.Column(
      "verification_status", sa.String(), nullable=False, server_default="pending"
    ),
    sa.Column("business_license", sa.String(), nullable=True),
    sa.Column("tax_id", sa.String(), nullable=True),
    sa.Column("business_address", sa.Text(), nullable=True),
    sa.Column("business_phone", sa.String(), nullable=True),
    sa.Column("verified_at", sa.DateTime(timezone=True), nullable=True),
    sa.Column("rejection_reason", sa.Text(), nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index(
    op.f("ix_organizations_stripe_customer_id"),
    "organizations",
    ["stripe_customer_id"],
    unique=True,
  )
  op.create_index(op.f("ix_organizations_status"), "organizations", ["status"])
  op.create_index(
    op.f("ix_organizations_verification_status"),
    "organizations",
    ["verification_status"],
  )

  op.create_table(
    "users",
    sa.Column("id", sa.String(), nullable=False),
    sa.Column("email", sa.String(), nullable=False),
    sa.Column("name", sa.String(), nullable=True),
    sa.Column("role", sa.String(), nullable=False, server_default="property_manager"),
    sa.Column("organization_id", sa.String(), nullable=True),
    sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"]),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

  op.create_table(
    "subscription_plans",
    sa.Column("id", sa.String(), nullable=False),
    sa.Column("name", sa.String(), nullable=False),
    sa.Column("display_name", sa.String(), nullable=False),
    sa.Column("description", sa.Text(), nullable=True),
    sa.Column("price", sa.Numeric(10, 2), nullable=False),
    sa.Column("billing_interval", sa.String(), nullable=False, server_default="monthly"),
    sa.Column("trial_days", sa.Integer(), nullable=False, server_default="14"),
    sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    sa.Column("stripe_price_id", sa.String(), nullable=True),
    sa.Column("stripe_product_id", sa.String(), nullable=True),
    sa.Column("features", sa.JSON(), nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    sa.PrimaryKeyConstraint("id"),
    sa.UniqueConstraint("name"),
  )

  op.create_table(
    "business_verification_logs",
    sa.Column("id", sa.String(), nullable=False),
    sa.Column("organization_id", sa.String(), nullable=False),
    sa.Column("verification_type", sa.String(), nullable=False),
    sa.Column("status", sa.String(), nullable=False),
    sa.Column("provider", sa.String(), nullable=False, server_default="internal"),
    sa.Column("metadata", sa.JSON(), nullable=True),
    sa.Column("verified_by", sa.String(), nullable=True),
    sa.Column("notes", sa.Text(), nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"]),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index(
    "idx_verification_log_org", "business_verification_logs", ["organization_id"]
  )
  op.create_index(
    "idx_verification_log_created", "business_verification_logs", ["created_at"]
  )

  op.create_table(
    "billing_audit_logs",
    sa.Column("id", sa.String(), nullable=False),
    sa.Column("event_type", sa.String(), nullable=False),
    sa.Column("event_timestamp", sa.DateTime(timezone=True), nullable=False),
    sa.Column("organization_id", sa.String(), nullable=True),
    sa.Column("provider", sa.String(), nullable=True),
    sa.Column("provider_event_id", sa.String(), nullable=True),
    sa.Column("event_data", sa.JSON(), nullable=True),
    sa.Column("description", sa.String(), nullable=False),
    sa.Column("actor_user_id", sa.String(), nullable=True),
    sa.Column("actor_type", sa.String(), nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"]),
    sa.PrimaryKeyConstraint("id"),
    sa.UniqueConstraint(
      "provider", "provider_event_id", name="uq_billing_audit_provider_event"
    ),
  )
  op.create_index("idx_billing_audit_org", "billing_audit_logs", ["organization_id"])
  op.create_index("idx_billing_audit_event_type", "billing_audit_logs", ["event_type"])
  op.create_index(
    "idx_billing_audit_timestamp", "billing_audit_logs", ["event_timestamp"]
  )


def downgrade() -> None:
  op.drop_index("idx_billing_audit_timestamp", table_name="billing_audit_logs")
  op.drop_index("idx_billing_audit_event_type", table_name="billing_audit_logs")
  op.drop_index("idx_billing_audit_org", table_name="billing_audit_logs")
  op.drop_table("billing_audit_logs")

  op.drop_index(
    "idx_verification_log_created", table_name="business_verification_logs"
  )
  op.drop_index("idx_verification_log_org", table_name="business_verification_logs")
  op.drop_table("business_verification_logs")

  op.drop_table("subscription_plans")

  op.drop_index(op.f("ix_users_email"), table_name="users")
  op.drop_table("users")

  op.drop_index(op.f("ix_organizations_verification_status"), table_name="organizations")
  op.drop_index(op.f("ix_organizations_status"), table_name="organizations")
  op.drop_index(op.f("ix_organizations_stripe_customer_id"), table_name="organizations")
  op.drop_table("organizations")
