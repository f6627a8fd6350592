"""add execution logs"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0004_add_exec_logs"
down_revision = "0003_add_tags"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "exec_logs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "task_id",
            sa.String(length=36),
            sa.ForeignKey("task_defs.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("happened_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("qty", sa.Numeric(), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("source", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_exec_logs_task_id", "exec_logs", ["task_id"], unique=False)
    op.create_index("ix_exec_logs_happened_at", "exec_logs", ["happened_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_exec_logs_happened_at", table_name="exec_logs")
    op.drop_index("ix_exec_logs_task_id", table_name="exec_logs")
    op.drop_table("exec_logs")
