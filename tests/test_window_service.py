from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from taskworks.config import Settings
from taskworks.domain.entities import ExecutionLog, RecurrenceRule, TaskDefinition, TimeRule
from taskworks.domain.enums import Cadence, TaskKind
from taskworks.domain.errors import StorageError
from taskworks.services.request_params import WindowRequest
from taskworks.services.window_service import BlockWindowService

SETTINGS = Settings(redirect_url_default="https://taskworks.example/focus")


class FakeRepo:
    def __init__(self, tasks: list[TaskDefinition], logs: list[ExecutionLog] | None = None) -> None:
        self.tasks = tasks
        self.logs = logs or []
        self.log_queries: list[tuple[datetime, datetime]] = []

    def list_tasks(self, kind: TaskKind | None = None, active_only: bool = True) -> list[TaskDefinition]:
        return [t for t in self.tasks if (not active_only or t.active) and (kind is None or t.kind == kind)]

    def list_execution_logs(self, start, end, task_ids=None) -> list[ExecutionLog]:
        self.log_queries.append((start, end))
        ids = set(task_ids) if task_ids is not None else None
        return [
            log for log in self.logs if start <= log.happened_at < end and (ids is None or log.task_id in ids)
        ]


class BrokenRepo(FakeRepo):
    def list_tasks(self, kind=None, active_only=True):
        raise StorageError("Failed to fetch tasks")


def _focus_task(task_id: str, start: str, end: str, times: int = 1) -> TaskDefinition:
    return TaskDefinition(
        id=task_id,
        title=task_id.title(),
        kind=TaskKind.HABIT,
        tags=("focus",),
        period_rules=(RecurrenceRule(id=f"{task_id}-p", cadence=Cadence.DAILY, times_per_period=times),),
        time_rules=(TimeRule(id=f"{task_id}-t", start_time=start, end_time=end),),
    )


def _request(**kwargs) -> WindowRequest:
    kwargs.setdefault("pre_grace_min", 0)
    kwargs.setdefault("post_grace_min", 0)
    return WindowRequest(target_date=date(2024, 6, 10), timezone="UTC", **kwargs)


def test_build_returns_window_payloads() -> None:
    repo = FakeRepo([_focus_task("reading", "09:00", "10:00"), _focus_task("coding", "09:55", "11:00")])
    service = BlockWindowService(repo, SETTINGS)

    payload = service.build(_request())

    assert payload == [
        {
            "start_at": "2024-06-10T09:00:00+00:00",
            "end_at": "2024-06-10T11:00:00+00:00",
            "reason": "Task: Reading #focus / Task: Coding #focus",
            "policy": {
                "mode": "blocklist",
                "redirect_url": "https://taskworks.example/focus",
                "severity": "strict",
            },
        }
    ]
    assert repo.log_queries == []


def test_debug_adds_metadata_and_completion_counts() -> None:
    logs = [
        ExecutionLog(task_id="reading", happened_at=datetime(2024, 6, 10, 9, 30, tzinfo=timezone.utc)),
        ExecutionLog(task_id="coding", happened_at=datetime(2024, 6, 10, 12, 0, tzinfo=timezone.utc), quantity=1),
        ExecutionLog(task_id="coding", happened_at=datetime(2024, 6, 9, 12, 0, tzinfo=timezone.utc), quantity=4),
        ExecutionLog(task_id="deleted", happened_at=datetime(2024, 6, 10, 12, 0, tzinfo=timezone.utc)),
    ]
    repo = FakeRepo(
        [_focus_task("reading", "09:00", "10:00"), _focus_task("coding", "13:00", "14:00", times=2)],
        logs,
    )
    service = BlockWindowService(repo, SETTINGS)

    result = service.build(_request(debug=True))

    assert len(result["windows"]) == 2
    meta = result["meta"]
    assert meta["date"] == "2024-06-10"
    assert meta["timezone"] == "UTC"
    assert meta["task_count"] == 2
    assert meta["window_count"] == 2
    assert meta["completions"] == [
        {"task_id": "reading", "title": "Reading", "target": 1, "completed": 1.0},
        {"task_id": "coding", "title": "Coding", "target": 2, "completed": 1.0},
    ]
    assert len(repo.log_queries) == 1


def test_storage_failure_propagates() -> None:
    service = BlockWindowService(BrokenRepo([]), SETTINGS)

    with pytest.raises(StorageError):
        service.build(_request())

    with pytest.raises(StorageError):
        service.build(_request(debug=True))
