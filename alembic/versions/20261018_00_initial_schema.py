"""create initial organization schema

Revision ID: 20261018_00
Revises: 
Create Date: 2026-10-18 09:10:00

"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "20261018_00"
down_revision = None
branch_labels = None
depends_on = None


def _base_columns(scoped: bool = True) -> list[sa.Column]:
    columns = [
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]
    if scoped:
        columns.append(sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=False))
    return columns


def upgrade() -> None:
    op.create_table(
        "organizations",
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=True),
        sa.Column("contact_email", sa.String(length=255), nullable=True),
        sa.Column("subscription_tier", sa.String(length=50), nullable=False),
        sa.Column("subscription_status", sa.String(length=50), nullable=False),
        sa.Column("stripe_customer_id", sa.String(length=255), nullable=True),
        sa.Column("stripe_subscription_id", sa.String(length=255), nullable=True),
        sa.Column("trial_ends_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("subscription_ends_at", sa.DateTime(timezone=True), nullable=True),
        *_base_columns(scoped=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_organizations_stripe_customer_id", "organizations", ["stripe_customer_id"], unique=True
    )

    op.create_table(
        "user_organizations",
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("role", sa.String(length=50), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("is_primary", sa.Boolean(), nullable=False),
        *_base_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("organization_id", "user_id", name="uq_user_organizations_org_user"),
    )
    op.create_index("ix_user_organizations_organization_id", "user_organizations", ["organization_id"])
    op.create_index("ix_user_organizations_user_id", "user_organizations", ["user_id"])

    op.create_table(
        "team_activity_log",
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("action", sa.String(length=80), nullable=False),
        sa.Column("entity_type", sa.String(length=80), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        *_base_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_team_activity_log_organization_id", "team_activity_log", ["organization_id"])

    op.create_table(
        "properties",
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("address", sa.String(length=500), nullable=False),
        sa.Column("property_type", sa.String(length=50), nullable=False),
        sa.Column("total_units", sa.Integer(), nullable=False),
        sa.Column("occupied_units", sa.Integer(), nullable=False),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        *_base_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_properties_organization_id", "properties", ["organization_id"])

    op.create_table(
        "residents",
        sa.Column("first_name", sa.String(length=120), nullable=False),
        sa.Column("last_name", sa.String(length=120), nullable=False),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("property_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("risk_level", sa.String(length=20), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        *_base_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["property_id"], ["properties.id"], ondelete="SET NULL"),
    )
    op.create_index("ix_residents_organization_id", "residents", ["organization_id"])
    op.create_index("ix_residents_property_id", "residents", ["property_id"])


def downgrade() -> None:
    op.drop_index("ix_residents_property_id", table_name="residents")
    op.drop_index("ix_residents_organization_id", table_name="residents")
    op.drop_table("residents")

    op.drop_index("ix_properties_organization_id", table_name="properties")
    op.drop_table("properties")

    op.drop_index("ix_team_activity_log_organization_id", table_name="team_activity_log")
    op.drop_table("team_activity_log")

    op.drop_index("ix_user_organizations_user_id", table_name="user_organizations")
    op.drop_index("ix_user_organizations_organization_id", table_name="user_organizations")
    op.drop_table("user_organizations")

    op.drop_index("ix_organizations_stripe_customer_id", table_name="organizations")
    op.drop_table("organizations")
