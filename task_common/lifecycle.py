"""
Creation and partial-update rules for tasks.

These functions turn request payloads into either a new Task or a dict of
attribute changes for TaskStore.update. A change value of None means the
attribute is removed from the item.
"""
import logging
import uuid
from datetime import timezone

from task_common.errors import ValidationError
from task_common.models import (Attachment, Priority, Status, Task, format_timestamp,
                                parse_enum, parse_timestamp)

logger = logging.getLogger(__name__)

IMMUTABLE_FIELDS = ('id', 'owner')
UPDATABLE_FIELDS = (
    'title', 'description', 'subject', 'priority', 'status', 'dueDate', 'completedAt', 'attachments',
)


def _title(value):
    if not isinstance(value, str) or not value.strip():
        raise ValidationError('Missing required field: title')
    return value.strip()


def _optional_text(value, field_name):
    if value is None or isinstance(value, str):
        return value
    raise ValidationError(f'Invalid {field_name}: {value!r}')


def _attachments(value):
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ValidationError('attachments must be a list')
    return tuple(Attachment.from_item(a) for a in value)


def _completed_at(value, now):
    completed_at = parse_timestamp(value, 'completedAt')
    if completed_at > now:
        raise ValidationError('completedAt cannot be in the future')
    return completed_at


def new_task(owner, payload, now, id_factory=None):
    """
    Validate a create request and build the Task to store.

    Args:
        owner (str): Identity creating the task; becomes the immutable owner.
        payload (dict): Request body.
        now (datetime): Creation instant.
        id_factory (callable, optional): Returns a new task id, uuid4 by default.

    Returns:
        Task: New task, PENDING/MEDIUM unless the payload says otherwise.

    Raises:
        ValidationError: On a missing title or due date, a due date in the past,
            or malformed field values.
    """
    if not isinstance(payload, dict):
        raise ValidationError('Request body must be a JSON object')
    if not payload.get('dueDate'):
        raise ValidationError('Missing required field: dueDate')
    due_date = parse_timestamp(payload['dueDate'], 'dueDate')
    start_of_day = now.astimezone(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
    if due_date < start_of_day:
        raise ValidationError('dueDate cannot be in the past')

    status = parse_enum(Status, payload.get('status') or Status.PENDING, 'status')
    completed_at = None
    if status == Status.COMPLETED:
        supplied = payload.get('completedAt')
        completed_at = _completed_at(supplied, now) if supplied else now
    elif payload.get('completedAt'):
        raise ValidationError('completedAt is only allowed for COMPLETED tasks')

    task_id = (id_factory or (lambda: str(uuid.uuid4())))()
    return Task(
        id=task_id,
        owner=owner,
        title=_title(payload.get('title')),
        description=_optional_text(payload.get('description'), 'description'),
        subject=_optional_text(payload.get('subject'), 'subject'),
        priority=parse_enum(Priority, payload.get('priority') or Priority.MEDIUM, 'priority'),
        status=status,
        due_date=due_date,
        created_at=now,
        completed_at=completed_at,
        updated_at=now,
        attachments=_attachments(payload.get('attachments')),
    )


def plan_update(task, payload, now):
    """
    Turn a partial update into attribute changes for `task`.

    Entering COMPLETED stamps completedAt with `now` unless the caller supplies
    one; leaving COMPLETED removes completedAt. `id` and `owner` are ignored.

    Returns:
        dict: Attribute name to new value, None meaning remove.

    Raises:
        ValidationError: On unknown fields, malformed values, or a completedAt
            that contradicts the resulting status.
    """
    if not isinstance(payload, dict):
        raise ValidationError('Updates must be a JSON object')

    changes = {}
    for key, value in payload.items():
        if key in IMMUTABLE_FIELDS:
            logger.info(f"Ignoring immutable field {key} in update of task {task.id}")
            continue
        if key not in UPDATABLE_FIELDS:
            raise ValidationError(f'Unknown field: {key}')
        if key == 'title':
            changes['title'] = _title(value)
        elif key in ('description', 'subject'):
            changes[key] = _optional_text(value, key)
        elif key == 'priority':
            changes['priority'] = parse_enum(Priority, value, 'priority').value
        elif key == 'dueDate':
            changes['dueDate'] = format_timestamp(parse_timestamp(value, 'dueDate'))
        elif key == 'attachments':
            attachments = _attachments(value)
            changes['attachments'] = [a.to_item() for a in attachments] if attachments else None

    if not changes and not any(k in payload for k in ('status', 'completedAt')):
        raise ValidationError('No updatable fields supplied')

    status = parse_enum(Status, payload['status'], 'status') if 'status' in payload else task.status
    supplied = payload.get('completedAt')
    if 'status' in payload:
        changes['status'] = status.value

    if status == Status.COMPLETED:
        if supplied:
            changes['completedAt'] = format_timestamp(_completed_at(supplied, now))
        elif task.completed_at is None:
            changes['completedAt'] = format_timestamp(now)
    else:
        if supplied:
            raise ValidationError('completedAt is only allowed for COMPLETED tasks')
        if task.completed_at is not None:
            changes['completedAt'] = None

    changes['updatedAt'] = format_timestamp(now)
    return changes
