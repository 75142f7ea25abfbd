# tests/test_aggregator.py

from datetime import datetime, timezone

import pytest

from task_common import aggregator
from task_common.models import Priority, Status, Task

from .conftest import make_task


def _mixed_tasks():
    return [
        make_task('a', subject='Maths', priority=Priority.HIGH, due='2024-05-01'),
        make_task('b', subject='Maths', priority=Priority.LOW, status=Status.IN_PROGRESS, due='2024-07-01'),
        make_task('c', subject='Physics', priority=Priority.URGENT, status=Status.COMPLETED,
                  created='2024-05-01', completed='2024-05-03', due='2024-05-02'),
        make_task('d', subject=None, priority=Priority.HIGH, status=Status.COMPLETED,
                  created='2024-05-01', completed='2024-05-02', due='2024-05-10'),
        make_task('e', subject='Physics', priority=Priority.MEDIUM, due='2024-01-01'),
    ]


def test_overdue_uses_strict_inequality(now):
    due_now = make_task('x', due=now.isoformat())
    assert aggregator.compute_overdue([due_now], now) == 0
    assert aggregator.is_overdue(due_now, now) is False


def test_completed_task_past_due_is_not_overdue(now):
    task = make_task('x', status=Status.COMPLETED, due='2024-01-01', created='2023-12-01',
                     completed='2024-02-01')
    assert aggregator.compute_overdue([task], now) == 0


def test_overdue_tasks_keeps_input_order(now):
    tasks = _mixed_tasks()
    assert [t.id for t in aggregator.overdue_tasks(tasks, now)] == ['a', 'e']


def test_group_by_counts_none_keys():
    counts = aggregator.group_by(_mixed_tasks(), aggregator.by_subject)
    assert counts == {'Maths': 2, 'Physics': 2, None: 1}


def test_group_by_priority_sums_to_total():
    tasks = _mixed_tasks()
    counts = aggregator.group_by(tasks, aggregator.by_priority)
    assert counts == {'HIGH': 2, 'LOW': 1, 'URGENT': 1, 'MEDIUM': 1}
    assert sum(counts.values()) == len(tasks)


def test_average_completion_duration_in_days():
    # c took 2 days, d took 1 day
    assert aggregator.average_completion_duration(_mixed_tasks()) == pytest.approx(1.5)


def test_average_completion_duration_is_zero_without_completed_tasks():
    assert aggregator.average_completion_duration([]) == 0
    assert aggregator.average_completion_duration([make_task('a'), make_task('b')]) == 0


def test_average_completion_ignores_completed_without_timestamp():
    task = Task(
        id='x', owner='alice', title='legacy',
        due_date=datetime(2024, 1, 2, tzinfo=timezone.utc),
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        status=Status.COMPLETED,
    )
    assert aggregator.average_completion_duration([task]) == 0


def test_productivity_score_counts_on_time_completions():
    # only d was completed on or before its due date
    assert aggregator.productivity_score(_mixed_tasks()) == pytest.approx(20.0)


def test_productivity_score_completed_on_due_date_counts():
    task = make_task('x', status=Status.COMPLETED, created='2024-01-01',
                     completed='2024-01-05', due='2024-01-05')
    assert aggregator.productivity_score([task]) == 100


def test_productivity_score_empty_is_zero():
    assert aggregator.productivity_score([]) == 0


def test_full_report_scenario_from_one_done_one_late():
    tasks = [
        make_task('a', status=Status.COMPLETED, created='2024-01-01',
                  completed='2024-01-05', due='2024-01-10'),
        make_task('b', status=Status.PENDING, created='2022-12-01', due='2023-01-01'),
    ]
    now = datetime(2024, 6, 1, tzinfo=timezone.utc)

    report = aggregator.full_report(tasks, '2022-01-01', '2024-12-31', now)

    assert report.overdue_tasks == 1
    assert report.completed_tasks == 1
    assert report.productivity_score == 50.0
    assert report.period == '2022-01-01 to 2024-12-31'


def test_full_report_empty(now):
    report = aggregator.full_report([], '2024-01-01', '2024-01-31', now)

    assert report.to_dict() == {
        'period': '2024-01-01 to 2024-01-31',
        'totalTasks': 0,
        'completedTasks': 0,
        'overdueTasks': 0,
        'tasksBySubject': {},
        'tasksByPriority': {},
        'averageCompletionTime': 0,
        'productivityScore': 0,
    }


def test_full_report_invariants(now):
    tasks = _mixed_tasks()
    report = aggregator.full_report(tasks, 's', 'e', now)

    not_completed = sum(1 for t in tasks if t.status != Status.COMPLETED)
    assert report.total_tasks == report.completed_tasks + not_completed
    assert report.overdue_tasks <= report.total_tasks - report.completed_tasks
    assert sum(report.tasks_by_priority.values()) == report.total_tasks


def test_full_report_is_idempotent(now):
    tasks = _mixed_tasks()
    first = aggregator.full_report(tasks, 's', 'e', now)
    second = aggregator.full_report(tasks, 's', 'e', now)
    assert first == second
    assert first.to_json() == second.to_json()


def test_full_report_does_not_mutate_input(now):
    tasks = _mixed_tasks()
    snapshot = list(tasks)
    aggregator.full_report(tasks, 's', 'e', now)
    assert tasks == snapshot


def test_summarize(now):
    analytics = aggregator.summarize(_mixed_tasks(), now)
    assert analytics.to_dict() == {
        'totalTasks': 5,
        'completedTasks': 2,
        'overdueTasks': 2,
        'averageCompletionTime': pytest.approx(1.5),
        'productivityScore': pytest.approx(20.0),
    }
