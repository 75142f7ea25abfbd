"""
Ownership rule for per-task operations.

A task may only be read or changed by the identity stored in its `owner`
field. A missing task and a task owned by someone else raise the same
NotFound so callers cannot discover task ids they do not own.
"""
import logging

from task_common.errors import NotFound

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = 'Task not found or unauthorized'


def is_owned_by(task, identity):
    return task is not None and bool(identity) and task.owner == identity


def require_owned_task(store, task_id, identity):
    """
    Fetch a task and check that `identity` owns it.

    Args:
        store (TaskStore): Task record store.
        task_id (str): Id of the task to act on.
        identity (str): Caller identity.

    Returns:
        Task: The owned task.

    Raises:
        NotFound: If the task is absent or owned by another identity.
    """
    task = store.get(task_id) if task_id else None
    if not is_owned_by(task, identity):
        logger.warning("Rejected access to task %s by %s", task_id, identity)
        raise NotFound(NOT_FOUND_MESSAGE)
    return task
