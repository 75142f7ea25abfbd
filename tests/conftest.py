# tests/conftest.py

from datetime import datetime, timezone

import pytest

from task_common.models import Priority, Status, Task, parse_timestamp

from .fakes import FakeDispatcher, FakeProfiles, FakeTaskStore

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


def make_task(task_id='t1', owner='alice', title='Essay draft', subject='English',
              priority=Priority.MEDIUM, status=Status.PENDING, due='2024-06-10',
              created='2024-05-01', completed=None, description=None):
    """Task factory; timestamps are given as ISO strings."""
    return Task(
        id=task_id,
        owner=owner,
        title=title,
        subject=subject,
        description=description,
        priority=priority,
        status=status,
        due_date=parse_timestamp(due, 'dueDate'),
        created_at=parse_timestamp(created, 'createdAt'),
        completed_at=parse_timestamp(completed, 'completedAt') if completed else None,
    )


@pytest.fixture()
def now():
    return NOW


@pytest.fixture()
def store():
    return FakeTaskStore([
        make_task('t1', owner='alice', subject='Maths', priority=Priority.HIGH),
        make_task('t2', owner='alice', subject='History', due='2024-05-20'),
        make_task('t3', owner='bob', subject='Maths'),
        make_task('t4', owner='alice', subject='Maths', status=Status.COMPLETED,
                  completed='2024-05-10', due='2024-05-15', created='2024-05-05'),
    ])


@pytest.fixture()
def profiles():
    return FakeProfiles({'alice': 'alice@example.edu', 'bob': 'bob@example.edu'})


@pytest.fixture()
def dispatcher():
    return FakeDispatcher()
