"""create task definitions table"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0001_create_task_defs"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "task_defs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("kind", sa.String(length=20), nullable=False, server_default="single"),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("kind in ('single', 'habit')", name="task_defs_kind_check"),
        sa.CheckConstraint(
            "end_date is null or start_date is null or end_date >= start_date",
            name="task_defs_active_dates",
        ),
    )
    op.create_index("ix_task_defs_kind", "task_defs", ["kind"], unique=False)
    op.create_index("ix_task_defs_active", "task_defs", ["active"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_task_defs_active", table_name="task_defs")
    op.drop_index("ix_task_defs_kind", table_name="task_defs")
    op.drop_table("task_defs")
