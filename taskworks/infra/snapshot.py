"""JSON snapshot store: the nested row shape of the SQL store, read from a file.

Expected payload::

    {
      "tasks": [{"id": "...", "title": "...", "kind": "habit", "active": true,
                 "start_date": "2024-06-01", "end_date": null,
                 "period_rules": [...], "time_rules": [...],
                 "task_tags": [{"tags": {"name": "focus"}}]}],
      "exec_logs": [{"task_id": "...", "happened_at": "2024-06-10T09:00:00+00:00", "qty": 1}]
    }

``tags`` may also be given directly as a list of names.
"""

from __future__ import annotations

import json
import logging
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

from taskworks.domain.entities import ExecutionLog, RecurrenceRule, TaskDefinition, TimeRule
from taskworks.domain.enums import Cadence, PeriodUnit, TaskKind
from taskworks.domain.errors import StorageError

logger = logging.getLogger(__name__)


def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    return date.fromisoformat(value)


def _parse_instant(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _tag_names(row: dict) -> tuple[str, ...]:
    if isinstance(row.get("tags"), list):
        return tuple(str(name) for name in row["tags"] if name)
    names = []
    for link in row.get("task_tags") or []:
        tag = (link or {}).get("tags") or {}
        name = tag.get("name")
        if isinstance(name, str) and name:
            names.append(name)
    return tuple(names)


def task_from_row(row: dict) -> TaskDefinition:
    task_id = str(row["id"])
    period_rules = tuple(
        RecurrenceRule(
            id=str(rule.get("id") or f"{task_id}-period-{index}"),
            cadence=Cadence(rule["cadence"]),
            times_per_period=rule.get("times_per_period"),
            period=PeriodUnit(rule.get("period") or "day"),
            days=tuple(int(day) for day in (rule.get("days_of_week") or [])),
            week_start=rule.get("week_start"),
            timezone=rule.get("timezone") or "UTC",
        )
        for index, rule in enumerate(row.get("period_rules") or [])
    )
    time_rules = tuple(
        TimeRule(
            id=str(rule.get("id") or f"{task_id}-time-{index}"),
            start_time=rule.get("start_time"),
            end_time=rule.get("end_time"),
            anytime=bool(rule.get("anytime", False)),
        )
        for index, rule in enumerate(row.get("time_rules") or [])
    )
    return TaskDefinition(
        id=task_id,
        title=str(row.get("title", "")),
        description=row.get("description"),
        kind=TaskKind(row.get("kind") or "single"),
        active=bool(row.get("active", True)),
        start_date=_parse_date(row.get("start_date")),
        end_date=_parse_date(row.get("end_date")),
        period_rules=period_rules,
        time_rules=time_rules,
        tags=_tag_names(row),
    )


def log_from_row(row: dict) -> ExecutionLog:
    qty = row.get("qty")
    return ExecutionLog(
        task_id=str(row["task_id"]),
        happened_at=_parse_instant(str(row["happened_at"])),
        quantity=None if qty is None else float(qty),
    )


class JsonSnapshotRepository:
    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._tasks: list[TaskDefinition] | None = None
        self._logs: list[ExecutionLog] | None = None

    def _load(self) -> None:
        if self._tasks is not None:
            return
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
            if not isinstance(payload, dict):
                raise ValueError("snapshot must be a JSON object")
            tasks = [task_from_row(row) for row in payload.get("tasks") or []]
            logs = [log_from_row(row) for row in payload.get("exec_logs") or []]
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.error("Failed to read snapshot %s: %s", self._path, exc)
            raise StorageError(f"Failed to read snapshot {self._path}") from exc
        self._tasks, self._logs = tasks, logs

    def list_tasks(self, kind: TaskKind | None = None, active_only: bool = True) -> list[TaskDefinition]:
        self._load()
        return [
            task
            for task in self._tasks or []
            if (not active_only or task.active) and (kind is None or task.kind == kind)
        ]

    def list_execution_logs(
        self,
        start: datetime,
        end: datetime,
        task_ids: Optional[Iterable[str]] = None,
    ) -> list[ExecutionLog]:
        self._load()
        ids = set(task_ids) if task_ids is not None else None
        return [
            log
            for log in self._logs or []
            if start <= log.happened_at < end and (ids is None or log.task_id in ids)
        ]
