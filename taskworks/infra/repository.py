from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload, sessionmaker

from taskworks.domain.entities import ExecutionLog, RecurrenceRule, TaskDefinition, TimeRule
from taskworks.domain.enums import Cadence, PeriodUnit, TaskKind
from taskworks.domain.errors import StorageError

from .db import get_session_factory
from .models import ExecLogModel, PeriodRuleModel, TaskDefModel, TaskTagModel, TimeRuleModel

logger = logging.getLogger(__name__)


def _to_period_rule(model: PeriodRuleModel) -> RecurrenceRule:
    return RecurrenceRule(
        id=str(model.id),
        cadence=Cadence(model.cadence),
        times_per_period=model.times_per_period,
        period=PeriodUnit(model.period),
        days=tuple(int(day) for day in (model.days_of_week or [])),
        week_start=model.week_start,
        timezone=model.timezone,
    )


def _to_time_rule(model: TimeRuleModel) -> TimeRule:
    return TimeRule(
        id=str(model.id),
        start_time=model.start_time,
        end_time=model.end_time,
        anytime=bool(model.anytime),
    )


def _to_entity(model: TaskDefModel) -> TaskDefinition:
    tags = tuple(
        link.tag.name for link in model.task_tags if link.tag is not None and link.tag.name
    )
    return TaskDefinition(
        id=str(model.id),
        title=model.title,
        description=model.description,
        kind=TaskKind(model.kind),
        active=bool(model.active),
        start_date=model.start_date,
        end_date=model.end_date,
        period_rules=tuple(_to_period_rule(rule) for rule in model.period_rules),
        time_rules=tuple(_to_time_rule(rule) for rule in model.time_rules),
        tags=tags,
    )


def _as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back naive even for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class TaskRepository:
    def __init__(self, session_factory: Optional[sessionmaker] = None) -> None:
        self._session_factory = session_factory

    def _session(self):
        factory = self._session_factory or get_session_factory()
        return factory()

    def list_tasks(self, kind: TaskKind | None = None, active_only: bool = True) -> list[TaskDefinition]:
        stmt = select(TaskDefModel).options(
            selectinload(TaskDefModel.period_rules),
            selectinload(TaskDefModel.time_rules),
            selectinload(TaskDefModel.task_tags).selectinload(TaskTagModel.tag),
        )
        if active_only:
            stmt = stmt.where(TaskDefModel.active.is_(True))
        if kind is not None:
            stmt = stmt.where(TaskDefModel.kind == kind.value)
        stmt = stmt.order_by(TaskDefModel.created_at.asc(), TaskDefModel.id.asc())

        try:
            with self._session() as session:
                return [_to_entity(task) for task in session.scalars(stmt)]
        except SQLAlchemyError as exc:
            logger.error("Failed to fetch tasks: %s", exc)
            raise StorageError("Failed to fetch tasks") from exc

    def list_execution_logs(
        self,
        start: datetime,
        end: datetime,
        task_ids: Optional[Iterable[str]] = None,
    ) -> list[ExecutionLog]:
        """Logs with ``start <= happened_at < end``, optionally limited to ``task_ids``."""

        start = _as_utc(start).astimezone(timezone.utc)
        end = _as_utc(end).astimezone(timezone.utc)
        stmt = select(ExecLogModel.task_id, ExecLogModel.happened_at, ExecLogModel.qty).where(
            ExecLogModel.happened_at >= start,
            ExecLogModel.happened_at < end,
        )
        if task_ids is not None:
            ids = list(task_ids)
            if not ids:
                return []
            stmt = stmt.where(ExecLogModel.task_id.in_(ids))
        stmt = stmt.order_by(ExecLogModel.happened_at.asc())

        try:
            with self._session() as session:
                rows = session.execute(stmt).all()
        except SQLAlchemyError as exc:
            logger.error("Failed to fetch execution logs: %s", exc)
            raise StorageError("Failed to fetch execution logs") from exc

        return [
            ExecutionLog(
                task_id=str(row.task_id),
                happened_at=_as_utc(row.happened_at),
                quantity=None if row.qty is None else float(row.qty),
            )
            for row in rows
        ]
