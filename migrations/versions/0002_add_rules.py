"""add period and time rules"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0002_add_rules"
down_revision = "0001_create_task_defs"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "period_rules",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "task_id",
            sa.String(length=36),
            sa.ForeignKey("task_defs.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("cadence", sa.String(length=20), nullable=False),
        sa.Column("times_per_period", sa.Integer(), nullable=True),
        sa.Column("period", sa.String(length=20), nullable=False, server_default="day"),
        sa.Column("days_of_week", sa.JSON(), nullable=True),
        sa.Column("week_start", sa.Integer(), nullable=True),
        sa.Column("timezone", sa.String(length=64), nullable=False, server_default="UTC"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "cadence in ('daily', 'weekly', 'monthly', 'interval')", name="period_rules_cadence_check"
        ),
        sa.CheckConstraint("times_per_period is null or times_per_period >= 0", name="period_rules_times_check"),
        sa.CheckConstraint(
            "week_start is null or (week_start between 0 and 6)", name="period_rules_week_start_check"
        ),
    )
    op.create_index("ix_period_rules_task_id", "period_rules", ["task_id"], unique=False)

    op.create_table(
        "time_rules",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "task_id",
            sa.String(length=36),
            sa.ForeignKey("task_defs.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("start_time", sa.Time(), nullable=True),
        sa.Column("end_time", sa.Time(), nullable=True),
        sa.Column("anytime", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("anytime = true or start_time is not null", name="time_rules_time_presence"),
        sa.CheckConstraint(
            "end_time is null or start_time is null or end_time > start_time",
            name="time_rules_end_after_start",
        ),
    )
    op.create_index("ix_time_rules_task_id", "time_rules", ["task_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_time_rules_task_id", table_name="time_rules")
    op.drop_table("time_rules")
    op.drop_index("ix_period_rules_task_id", table_name="period_rules")
    op.drop_table("period_rules")
