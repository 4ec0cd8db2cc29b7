"""enable row level security on organization scoped tables

Revision ID: 20261018_01
Revises: 20261018_00
Create Date: 2026-10-18 09:40:00

"""
from __future__ import annotations

from alembic import op


# revision identifiers, used by Alembic.
revision = "20261018_01"
down_revision = "20261018_00"
branch_labels = None
depends_on = None

SCOPED_TABLES = ("team_activity_log", "properties", "residents")


def upgrade() -> None:
    for table in SCOPED_TABLES:
        op.execute(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY")
        op.execute(
            f"CREATE POLICY {table}_organization_isolation ON {table} "
            "USING (organization_id = NULLIF(current_setting('app.current_organization_id', true), '')::uuid)"
        )


def downgrade() -> None:
    for table in SCOPED_TABLES:
        op.execute(f"DROP POLICY IF EXISTS {table}_organization_isolation ON {table}")
        op.execute(f"ALTER TABLE {table} DISABLE ROW LEVEL SECURITY")
