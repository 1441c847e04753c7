"""create allocations and user daily capacity ledger

Revision ID: 4b1e7c2d9a10
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "4b1e7c2d9a10"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "allocations",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("organization_id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("project_id", sa.String(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("allocation_percentage", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("start_date <= end_date", name="ck_allocations_date_order"),
        sa.CheckConstraint(
            "allocation_percentage >= 1 AND allocation_percentage <= 100",
            name="ck_allocations_percentage",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_allocations_org_user",
        "allocations",
        ["organization_id", "user_id"],
        unique=False,
    )
    op.create_index("idx_allocations_project", "allocations", ["project_id"], unique=False)

    op.create_table(
        "user_daily_capacity",
        sa.Column("organization_id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("capacity_date", sa.Date(), nullable=False),
        sa.Column("allocated_percentage", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.CheckConstraint("allocated_percentage >= 0", name="ck_daily_capacity_non_negative"),
        sa.PrimaryKeyConstraint("organization_id", "user_id", "capacity_date"),
    )
    op.create_index(
        "idx_daily_capacity_org_date",
        "user_daily_capacity",
        ["organization_id", "capacity_date"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("idx_daily_capacity_org_date", table_name="user_daily_capacity")
    op.drop_table("user_daily_capacity")
    op.drop_index("idx_allocations_project", table_name="allocations")
    op.drop_index("idx_allocations_org_user", table_name="allocations")
    op.drop_table("allocations")
