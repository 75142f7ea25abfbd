"""
Typed task records and the derived report values.

DynamoDB items use the camelCase attribute names of the Amplify data model
(`dueDate`, `createdAt`, ...). Timestamps are ISO-8601 strings on the wire
and timezone-aware datetimes in Python.
"""
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional, Tuple

from task_common.errors import ValidationError


class Priority(str, Enum):
    LOW = 'LOW'
    MEDIUM = 'MEDIUM'
    HIGH = 'HIGH'
    URGENT = 'URGENT'


class Status(str, Enum):
    PENDING = 'PENDING'
    IN_PROGRESS = 'IN_PROGRESS'
    COMPLETED = 'COMPLETED'


def parse_enum(enum_cls, value, field_name):
    """Parse `value` into `enum_cls`, accepting lowercase and dashed spellings."""
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        raise ValidationError(f'Invalid {field_name}: {value!r}')
    try:
        return enum_cls(value.strip().upper().replace('-', '_'))
    except ValueError:
        raise ValidationError(f'Invalid {field_name}: {value!r}')


def parse_timestamp(value, field_name):
    """
    Parse an ISO-8601 string into an aware datetime.

    Accepts date-only strings and a trailing 'Z'. Values without an offset are
    taken as UTC.

    Raises:
        ValidationError: If the value is missing or not ISO-8601.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith('Z') or text.endswith('z'):
            text = text[:-1] + '+00:00'
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError(f'Invalid {field_name}: {value!r}')
    else:
        raise ValidationError(f'Invalid {field_name}: {value!r}')
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value):
    """Serialize an aware datetime as UTC ISO-8601 with millisecond precision."""
    return value.astimezone(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def _optional_timestamp(item, key):
    value = item.get(key)
    if value in (None, ''):
        return None
    return parse_timestamp(value, key)


@dataclass(frozen=True)
class Attachment:
    id: str
    file_name: str
    file_key: str
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    uploaded_at: Optional[str] = None

    @classmethod
    def from_item(cls, item):
        if not isinstance(item, dict) or not item.get('fileKey'):
            raise ValidationError(f'Invalid attachment: {item!r}')
        size = item.get('fileSize')
        return cls(
            id=str(item.get('id') or item['fileKey']),
            file_name=item.get('fileName') or item['fileKey'].rsplit('/', 1)[-1],
            file_key=item['fileKey'],
            file_type=item.get('fileType'),
            # DynamoDB hands numbers back as Decimal
            file_size=int(size) if isinstance(size, (int, Decimal)) else None,
            uploaded_at=item.get('uploadedAt'),
        )

    def to_item(self):
        item = {'id': self.id, 'fileName': self.file_name, 'fileKey': self.file_key}
        if self.file_type is not None:
            item['fileType'] = self.file_type
        if self.file_size is not None:
            item['fileSize'] = self.file_size
        if self.uploaded_at is not None:
            item['uploadedAt'] = self.uploaded_at
        return item


@dataclass(frozen=True)
class Task:
    """A student task as stored in the task table."""
    id: str
    owner: str
    title: str
    due_date: datetime
    created_at: datetime
    subject: Optional[str] = None
    description: Optional[str] = None
    priority: Priority = Priority.MEDIUM
    status: Status = Status.PENDING
    completed_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    attachments: Tuple[Attachment, ...] = ()

    @classmethod
    def from_item(cls, item):
        """
        Build a Task from a DynamoDB item (or an AppSync/REST payload of the same shape).

        Raises:
            ValidationError: On missing identifiers or malformed timestamps/enums.
        """
        for key in ('id', 'owner'):
            if not item.get(key):
                raise ValidationError(f'Missing required field: {key}')
        return cls(
            id=item['id'],
            owner=item['owner'],
            title=item.get('title', ''),
            due_date=parse_timestamp(item.get('dueDate'), 'dueDate'),
            created_at=parse_timestamp(item.get('createdAt'), 'createdAt'),
            subject=item.get('subject'),
            description=item.get('description'),
            priority=parse_enum(Priority, item.get('priority') or Priority.MEDIUM, 'priority'),
            status=parse_enum(Status, item.get('status') or Status.PENDING, 'status'),
            completed_at=_optional_timestamp(item, 'completedAt'),
            updated_at=_optional_timestamp(item, 'updatedAt'),
            attachments=tuple(Attachment.from_item(a) for a in item.get('attachments') or ()),
        )

    def to_item(self):
        item = {
            'id': self.id,
            'owner': self.owner,
            'title': self.title,
            'priority': self.priority.value,
            'status': self.status.value,
            'dueDate': format_timestamp(self.due_date),
            'createdAt': format_timestamp(self.created_at),
        }
        if self.subject is not None:
            item['subject'] = self.subject
        if self.description is not None:
            item['description'] = self.description
        if self.completed_at is not None:
            item['completedAt'] = format_timestamp(self.completed_at)
        if self.updated_at is not None:
            item['updatedAt'] = format_timestamp(self.updated_at)
        if self.attachments:
            item['attachments'] = [a.to_item() for a in self.attachments]
        return item


@dataclass(frozen=True)
class AggregateReport:
    """Statistics over one owner's tasks for a reporting period."""
    period: str
    total_tasks: int
    completed_tasks: int
    overdue_tasks: int
    tasks_by_subject: Dict[Optional[str], int] = field(default_factory=dict)
    tasks_by_priority: Dict[str, int] = field(default_factory=dict)
    average_completion_time: float = 0.0
    productivity_score: float = 0.0

    def to_dict(self):
        return {
            'period': self.period,
            'totalTasks': self.total_tasks,
            'completedTasks': self.completed_tasks,
            'overdueTasks': self.overdue_tasks,
            'tasksBySubject': dict(self.tasks_by_subject),
            'tasksByPriority': dict(self.tasks_by_priority),
            'averageCompletionTime': self.average_completion_time,
            'productivityScore': self.productivity_score,
        }

    def to_json(self):
        return json.dumps(self.to_dict())


@dataclass(frozen=True)
class UserAnalytics:
    total_tasks: int
    completed_tasks: int
    overdue_tasks: int
    average_completion_time: float
    productivity_score: float

    def to_dict(self):
        return {
            'totalTasks': self.total_tasks,
            'completedTasks': self.completed_tasks,
            'overdueTasks': self.overdue_tasks,
            'averageCompletionTime': self.average_completion_time,
            'productivityScore': self.productivity_score,
        }
