from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, time, timedelta
from typing import Iterable, Optional, Protocol

from taskworks.config import SETTINGS, Settings
from taskworks.domain.entities import ExecutionLog, TaskDefinition
from taskworks.domain.enums import TaskKind
from taskworks.engine.cadence import target_for_date
from taskworks.engine.instants import InstantConverter
from taskworks.engine.stats import build_day_totals
from taskworks.engine.windows import build_windows

from .request_params import WindowRequest

logger = logging.getLogger(__name__)


class TaskStore(Protocol):
    def list_tasks(self, kind: TaskKind | None = None, active_only: bool = True) -> list[TaskDefinition]: ...

    def list_execution_logs(
        self,
        start: datetime,
        end: datetime,
        task_ids: Optional[Iterable[str]] = None,
    ) -> list[ExecutionLog]: ...


class BlockWindowService:
    def __init__(
        self,
        repo: TaskStore,
        settings: Settings = SETTINGS,
        converter: Optional[InstantConverter] = None,
    ) -> None:
        self._repo = repo
        self._settings = settings
        self._converter = converter if converter is not None else InstantConverter()

    def build(self, request: WindowRequest) -> list[dict] | dict:
        """Window payloads for ``request``; with ``debug`` wrapped as ``{"windows", "meta"}``."""

        options = request.to_options(self._settings.redirect_url_default)

        if request.debug:
            tasks, logs = self._fetch_tasks_and_logs(request)
        else:
            tasks, logs = self._repo.list_tasks(), []

        windows = build_windows(tasks, options, self._converter)
        payload = [window.to_payload() for window in windows]
        logger.info(
            "Computed %d windows from %d tasks for %s (%s)",
            len(payload), len(tasks), request.target_date, request.timezone,
        )
        if not request.debug:
            return payload

        return {
            "windows": payload,
            "meta": {
                "date": request.target_date.isoformat(),
                "timezone": request.timezone,
                "focus_only": request.focus_only,
                "merge_overlaps": request.merge_overlaps,
                "task_count": len(tasks),
                "window_count": len(payload),
                "completions": self._completion_counts(tasks, logs, request),
            },
        }

    def _log_range(self, request: WindowRequest) -> tuple[datetime, datetime]:
        # tasks may carry their own zones, so pad the target day by one day each side
        zone = self._converter.zone(request.timezone)
        start = datetime.combine(request.target_date - timedelta(days=1), time.min, tzinfo=zone)
        end = datetime.combine(request.target_date + timedelta(days=2), time.min, tzinfo=zone)
        return start, end

    def _fetch_tasks_and_logs(self, request: WindowRequest) -> tuple[list[TaskDefinition], list[ExecutionLog]]:
        start, end = self._log_range(request)
        with ThreadPoolExecutor(max_workers=2) as executor:
            tasks_future = executor.submit(self._repo.list_tasks)
            logs_future = executor.submit(self._repo.list_execution_logs, start, end)
            tasks = tasks_future.result()
            logs = logs_future.result()
        task_ids = {task.id for task in tasks}
        return tasks, [log for log in logs if log.task_id in task_ids]

    def _completion_counts(
        self,
        tasks: list[TaskDefinition],
        logs: list[ExecutionLog],
        request: WindowRequest,
    ) -> list[dict]:
        totals = build_day_totals(logs, tasks, request.timezone, self._converter)
        day_totals = totals.get(request.target_date, {})
        return [
            {
                "task_id": task.id,
                "title": task.title,
                "target": target_for_date(task, request.target_date),
                "completed": day_totals.get(task.id, 0),
            }
            for task in tasks
        ]
