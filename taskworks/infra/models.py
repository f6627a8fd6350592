from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import relationship

from .db import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class TaskDefModel(Base):
    __tablename__ = "task_defs"
    __table_args__ = (
        CheckConstraint("kind in ('single', 'habit')", name="task_defs_kind_check"),
        CheckConstraint(
            "end_date is null or start_date is null or end_date >= start_date",
            name="task_defs_active_dates",
        ),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    kind = Column(String(20), nullable=False, default="single", index=True)
    active = Column(Boolean, nullable=False, default=True, index=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    period_rules = relationship(
        "PeriodRuleModel", order_by="PeriodRuleModel.created_at", cascade="all, delete-orphan"
    )
    time_rules = relationship(
        "TimeRuleModel", order_by="TimeRuleModel.start_time", cascade="all, delete-orphan"
    )
    task_tags = relationship("TaskTagModel", cascade="all, delete-orphan")


class PeriodRuleModel(Base):
    __tablename__ = "period_rules"
    __table_args__ = (
        CheckConstraint(
            "cadence in ('daily', 'weekly', 'monthly', 'interval')", name="period_rules_cadence_check"
        ),
        CheckConstraint("times_per_period is null or times_per_period >= 0", name="period_rules_times_check"),
        CheckConstraint("week_start is null or (week_start between 0 and 6)", name="period_rules_week_start_check"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    task_id = Column(String(36), ForeignKey("task_defs.id", ondelete="CASCADE"), nullable=False, index=True)
    cadence = Column(String(20), nullable=False)
    times_per_period = Column(Integer, nullable=True)
    period = Column(String(20), nullable=False, default="day")
    days_of_week = Column(JSON, nullable=True)
    week_start = Column(Integer, nullable=True)
    timezone = Column(String(64), nullable=False, default="UTC")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class TimeRuleModel(Base):
    __tablename__ = "time_rules"
    __table_args__ = (
        CheckConstraint("anytime = true or start_time is not null", name="time_rules_time_presence"),
        CheckConstraint(
            "end_time is null or start_time is null or end_time > start_time",
            name="time_rules_end_after_start",
        ),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    task_id = Column(String(36), ForeignKey("task_defs.id", ondelete="CASCADE"), nullable=False, index=True)
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)
    anytime = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class TagModel(Base):
    __tablename__ = "tags"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(Text, nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class TaskTagModel(Base):
    __tablename__ = "task_tags"

    task_id = Column(String(36), ForeignKey("task_defs.id", ondelete="CASCADE"), primary_key=True)
    tag_id = Column(String(36), ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    tag = relationship("TagModel")


class ExecLogModel(Base):
    __tablename__ = "exec_logs"

    id = Column(String(36), primary_key=True, default=new_id)
    task_id = Column(String(36), ForeignKey("task_defs.id", ondelete="CASCADE"), nullable=False, index=True)
    happened_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    qty = Column(Numeric(asdecimal=False), nullable=True)
    note = Column(Text, nullable=True)
    source = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
