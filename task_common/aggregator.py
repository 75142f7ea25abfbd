"""
Task statistics for the report and analytics endpoints.

Everything here is a pure function over an already-fetched list of Task
records and a reference `now`. Nothing reads from DynamoDB, nothing mutates
its input, so the same list and `now` always produce the same result.
"""
from typing import Callable, Dict, Hashable, Iterable, List, Optional, Sequence

from task_common.models import AggregateReport, Status, Task, UserAnalytics

MILLISECONDS_PER_DAY = 86400000


def is_overdue(task: Task, now) -> bool:
    """Due strictly before `now` and not completed."""
    return task.due_date < now and task.status != Status.COMPLETED


def overdue_tasks(tasks: Iterable[Task], now) -> List[Task]:
    return [task for task in tasks if is_overdue(task, now)]


def compute_overdue(tasks: Iterable[Task], now) -> int:
    return sum(1 for task in tasks if is_overdue(task, now))


def count_completed(tasks: Iterable[Task]) -> int:
    return sum(1 for task in tasks if task.status == Status.COMPLETED)


def group_by(tasks: Iterable[Task], key_fn: Callable[[Task], Optional[Hashable]]) -> Dict:
    """
    Count tasks per key.

    Keys come out in order of first occurrence. A task whose key is None is
    counted under None rather than dropped.
    """
    counts: Dict = {}
    for task in tasks:
        key = key_fn(task)
        counts[key] = counts.get(key, 0) + 1
    return counts


def by_subject(task: Task) -> Optional[str]:
    return task.subject


def by_priority(task: Task) -> Optional[str]:
    return task.priority.value if task.priority is not None else None


def average_completion_duration(tasks: Iterable[Task]) -> float:
    """
    Mean time from creation to completion, in days.

    Only COMPLETED tasks carrying a completedAt count. Returns 0 when none do.
    """
    durations = [
        (task.completed_at - task.created_at).total_seconds() * 1000
        for task in tasks
        if task.status == Status.COMPLETED and task.completed_at is not None
    ]
    if not durations:
        return 0
    return sum(durations) / len(durations) / MILLISECONDS_PER_DAY


def productivity_score(tasks: Sequence[Task]) -> float:
    """Percentage of all tasks completed on or before their due date (0-100)."""
    if not tasks:
        return 0
    on_time = sum(
        1 for task in tasks
        if task.status == Status.COMPLETED
        and task.completed_at is not None
        and task.completed_at <= task.due_date
    )
    return on_time / len(tasks) * 100


def full_report(tasks: Sequence[Task], start_date, end_date, now) -> AggregateReport:
    """
    Build the report for one owner's tasks created between start_date and end_date.

    Args:
        tasks (Sequence[Task]): Tasks already restricted to the owner and period.
        start_date (str): Period start as given by the caller, used in the label.
        end_date (str): Period end as given by the caller, used in the label.
        now (datetime): Evaluation instant for the overdue count.

    Returns:
        AggregateReport: Immutable report value.
    """
    tasks = tuple(tasks)
    return AggregateReport(
        period=f'{start_date} to {end_date}',
        total_tasks=len(tasks),
        completed_tasks=count_completed(tasks),
        overdue_tasks=compute_overdue(tasks, now),
        tasks_by_subject=group_by(tasks, by_subject),
        tasks_by_priority=group_by(tasks, by_priority),
        average_completion_time=average_completion_duration(tasks),
        productivity_score=productivity_score(tasks),
    )


def summarize(tasks: Sequence[Task], now) -> UserAnalytics:
    """Dashboard analytics over every task an owner has."""
    tasks = tuple(tasks)
    return UserAnalytics(
        total_tasks=len(tasks),
        completed_tasks=count_completed(tasks),
        overdue_tasks=compute_overdue(tasks, now),
        average_completion_time=average_completion_duration(tasks),
        productivity_score=productivity_score(tasks),
    )
