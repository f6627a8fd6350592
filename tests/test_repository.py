from __future__ import annotations

from datetime import date, datetime, time, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from taskworks.domain.enums import Cadence, TaskKind
from taskworks.domain.errors import StorageError
from taskworks.infra.db import Base
from taskworks.infra.models import (
    ExecLogModel,
    PeriodRuleModel,
    TagModel,
    TaskDefModel,
    TaskTagModel,
    TimeRuleModel,
)
from taskworks.infra.repository import TaskRepository


@pytest.fixture
def session_factory():
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False)

    focus = TagModel(name="focus")
    with factory() as session:
        session.add_all([
            TaskDefModel(
                id="walk",
                title="Walk",
                kind="habit",
                start_date=date(2024, 6, 1),
                period_rules=[PeriodRuleModel(cadence="weekly", days_of_week=[1, 3], timezone="Asia/Tokyo")],
                time_rules=[TimeRuleModel(start_time=time(9, 0), end_time=time(10, 0))],
                task_tags=[TaskTagModel(tag=focus)],
            ),
            TaskDefModel(id="taxes", title="Taxes", kind="single"),
            TaskDefModel(id="old", title="Old", kind="habit", active=False),
        ])
        session.flush()
        session.add_all([
            ExecLogModel(task_id="walk", happened_at=datetime(2024, 6, 10, 1, 0, tzinfo=timezone.utc), qty=2),
            ExecLogModel(task_id="walk", happened_at=datetime(2024, 6, 11, 1, 0, tzinfo=timezone.utc)),
            ExecLogModel(task_id="taxes", happened_at=datetime(2024, 6, 10, 5, 0, tzinfo=timezone.utc)),
            ExecLogModel(task_id="walk", happened_at=datetime(2024, 7, 1, 0, 0, tzinfo=timezone.utc)),
        ])
        session.commit()
    return factory


def test_list_tasks_maps_nested_rows(session_factory) -> None:
    repo = TaskRepository(session_factory)

    tasks = {task.id: task for task in repo.list_tasks()}

    assert set(tasks) == {"walk", "taxes"}
    walk = tasks["walk"]
    assert walk.kind == TaskKind.HABIT
    assert walk.start_date == date(2024, 6, 1)
    assert walk.tags == ("focus",)
    assert walk.period_rules[0].cadence == Cadence.WEEKLY
    assert walk.period_rules[0].days == (1, 3)
    assert walk.period_rules[0].timezone == "Asia/Tokyo"
    assert walk.time_rules[0].start_time == time(9, 0)
    assert tasks["taxes"].period_rules == ()


def test_list_tasks_filters_by_kind_and_activity(session_factory) -> None:
    repo = TaskRepository(session_factory)

    assert [task.id for task in repo.list_tasks(kind=TaskKind.HABIT)] == ["walk"]
    assert {task.id for task in repo.list_tasks(active_only=False)} == {"walk", "taxes", "old"}


def test_list_execution_logs_by_range_and_ids(session_factory) -> None:
    repo = TaskRepository(session_factory)
    start = datetime(2024, 6, 1, tzinfo=timezone.utc)
    end = datetime(2024, 7, 1, tzinfo=timezone.utc)

    logs = repo.list_execution_logs(start, end, ["walk"])

    assert [(log.task_id, log.quantity) for log in logs] == [("walk", 2.0), ("walk", None)]
    assert all(log.happened_at.tzinfo is not None for log in logs)
    assert len(repo.list_execution_logs(start, end)) == 3
    assert repo.list_execution_logs(start, end, []) == []


def test_database_errors_become_storage_errors() -> None:
    repo = TaskRepository(sessionmaker(bind=create_engine("sqlite://")))

    with pytest.raises(StorageError):
        repo.list_tasks()
    with pytest.raises(StorageError):
        repo.list_execution_logs(datetime(2024, 6, 1, tzinfo=timezone.utc), datetime(2024, 7, 1, tzinfo=timezone.utc))
