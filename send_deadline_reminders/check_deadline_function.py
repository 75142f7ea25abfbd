"""
This function polls the task table on a schedule and looks for tasks
whose due date falls within the reminder window (three days by default).
Every unfinished task in that window gets a reminder email sent to its
owner, the same email the sendTaskReminder mutation sends on demand.
"""
import logging
import os
from datetime import datetime, timedelta, timezone

from task_common.config import Settings
from task_common.errors import TaskServiceError, ValidationError
from task_common.models import Status, Task
from task_common.notifications import build_dispatcher
from task_common.report_renderer import reminder_subject, render_reminder_html
from task_common.store import TaskStore, UserProfileStore

logger = logging.getLogger()
logger.setLevel(os.environ.get('LOG_LEVEL', 'INFO').upper())


def due_soon(tasks, now, window):
    """Unfinished tasks with now < dueDate <= now + window."""
    threshold = now + window
    return [
        task for task in tasks
        if task.status != Status.COMPLETED and now < task.due_date <= threshold
    ]


def send_reminders(store, profiles, dispatcher, now, window_days=3):
    """
    Email the owner of every task due within the window.

    Args:
        store (TaskStore): Task records to sweep.
        profiles (UserProfileStore): Owner email lookup.
        dispatcher: Object with send(destination, subject, body_markup) -> bool.
        now (datetime): Sweep instant.
        window_days (int): How far ahead to look.

    Returns:
        dict: Counts of tasks checked, due, reminded and failed. Unreadable
            records count as failed.
    """
    items = store.scan_items()
    tasks = []
    failed = 0
    for item in items:
        try:
            tasks.append(Task.from_item(item))
        except ValidationError as e:
            # A malformed record is reported and skipped
            logger.error(f"Skipping unreadable task {item.get('id')}: {e}")
            failed += 1

    upcoming = due_soon(tasks, now, timedelta(days=window_days))
    logger.info(f"{len(upcoming)} of {len(items)} tasks due within {window_days} days")

    sent = 0
    for task in upcoming:
        try:
            email = profiles.email_for(task.owner)
        except TaskServiceError as e:
            # One missing profile must not stop the sweep
            logger.error(f"No reminder for task {task.id}: {e}")
            failed += 1
            continue
        if dispatcher.send(email, reminder_subject(task), render_reminder_html(task)):
            sent += 1
        else:
            failed += 1

    return {'checked': len(items), 'due': len(upcoming), 'sent': sent, 'failed': failed}


def lambda_handler(event, context):
    """
    AWS Lambda handler triggered by an EventBridge schedule.

    Args:
        event (dict): Scheduled event data (not used in this function).
        context (object): Lambda context object providing runtime information.

    Returns:
        dict: Sweep summary, also written to CloudWatch.
    """
    settings = Settings.from_env()
    summary = send_reminders(
        TaskStore.from_settings(settings),
        UserProfileStore.from_settings(settings),
        build_dispatcher(settings),
        datetime.now(timezone.utc),
        window_days=settings.reminder_window_days,
    )
    logger.info(f"Reminder sweep finished: {summary}")
    return summary
