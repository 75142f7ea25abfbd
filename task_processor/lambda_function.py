"""
    AppSync resolver for the student task manager.

    Mutations:
        sendTaskReminder(taskId)              email the owner a reminder for one task
        generateTaskReport(startDate, endDate) email the owner a report for tasks created in the period
        bulkUpdateTasks(taskIds, updates)     apply the same partial update to several owned tasks

    Queries:
        getTasksByDueDate(owner, dueDate), getOverdueTasks(owner),
        getTasksBySubject(owner, subject), getUserAnalytics(owner)

    Errors are logged and re-raised so AppSync returns them to the client.
"""
import json
import logging
import os
from datetime import datetime, timedelta, timezone

from task_common import aggregator, report_renderer
from task_common.access import is_owned_by, require_owned_task
from task_common.config import Settings
from task_common.errors import DependencyFailure, NotFound, TaskServiceError, Unauthorized, ValidationError
from task_common.lifecycle import plan_update
from task_common.models import format_timestamp, parse_timestamp
from task_common.notifications import build_dispatcher
from task_common.store import TaskStore, UserProfileStore

# Setup logging
logger = logging.getLogger()
logger.setLevel(os.environ.get('LOG_LEVEL', 'INFO').upper())


def utc_now():
    return datetime.now(timezone.utc)


def range_bound(value, name, end_of_day=False):
    """Normalize a report bound to the stored createdAt format; date-only ends cover the whole day."""
    if not value:
        raise ValidationError(f'Missing required field: {name}')
    bound = parse_timestamp(value, name)
    if end_of_day and len(value.strip()) == 10:
        bound = bound + timedelta(days=1, milliseconds=-1)
    return format_timestamp(bound)


class TaskProcessor:
    """
    Resolves AppSync fields against injected collaborators.

    Args:
        store (TaskStore): Task records.
        profiles (UserProfileStore): Owner email lookup.
        dispatcher: Object with send(destination, subject, body_markup) -> bool.
        clock (callable): Returns the current aware datetime.
    """

    def __init__(self, store, profiles, dispatcher, clock=utc_now):
        self.store = store
        self.profiles = profiles
        self.dispatcher = dispatcher
        self.clock = clock
        self.mutations = {
            'sendTaskReminder': self.send_task_reminder,
            'generateTaskReport': self.generate_task_report,
            'bulkUpdateTasks': self.bulk_update_tasks,
        }
        self.queries = {
            'getTasksByDueDate': self.get_tasks_by_due_date,
            'getOverdueTasks': self.get_overdue_tasks,
            'getTasksBySubject': self.get_tasks_by_subject,
            'getUserAnalytics': self.get_user_analytics,
        }

    @classmethod
    def from_settings(cls, settings):
        return cls(
            TaskStore.from_settings(settings),
            UserProfileStore.from_settings(settings),
            build_dispatcher(settings),
        )

    def resolve(self, event):
        type_name = event.get('typeName')
        field_name = event.get('fieldName')
        if type_name == 'Mutation':
            resolvers = self.mutations
        elif type_name == 'Query':
            resolvers = self.queries
        else:
            raise ValidationError(f'Unknown type: {type_name}')
        if field_name not in resolvers:
            raise ValidationError(f'Unknown {type_name.lower()}: {field_name}')

        identity = (event.get('identity') or {}).get('username')
        logger.info(f"Resolving {type_name}.{field_name} for {identity}")
        return resolvers[field_name](event.get('arguments') or {}, identity)

    def _deliver(self, owner, subject, body):
        email = self.profiles.email_for(owner)
        if not self.dispatcher.send(email, subject, body):
            raise DependencyFailure('Email could not be sent')

    def _query_owner(self, args, identity):
        if not identity:
            raise Unauthorized('Not authenticated')
        owner = args.get('owner') or identity
        if owner != identity:
            raise Unauthorized('Cannot read tasks of another user')
        return owner

    # Mutations

    def send_task_reminder(self, args, identity):
        task = require_owned_task(self.store, args.get('taskId'), identity)
        self._deliver(task.owner, report_renderer.reminder_subject(task),
                      report_renderer.render_reminder_html(task))
        return 'Reminder sent successfully'

    def generate_task_report(self, args, identity):
        if not identity:
            raise Unauthorized('Not authenticated')
        start_date = args.get('startDate')
        end_date = args.get('endDate')
        lower = range_bound(start_date, 'startDate')
        upper = range_bound(end_date, 'endDate', end_of_day=True)

        tasks = self.store.list_in_range(identity, lower, upper)
        report = aggregator.full_report(tasks, start_date, end_date, self.clock())
        logger.info(f"Report for {identity}: {report.to_json()}")
        self._deliver(identity, report_renderer.report_subject(report),
                      report_renderer.render_report_html(report))
        return 'Report generated and sent to your email'

    def bulk_update_tasks(self, args, identity):
        """
        Apply `updates` to each id in `taskIds`, one at a time.

        Ids that are missing or owned by someone else are skipped. There is
        no rollback: if a later update fails, earlier ones stay applied.
        """
        task_ids = args.get('taskIds') or []
        updates = args.get('updates')
        if isinstance(updates, str):
            try:
                updates = json.loads(updates)
            except ValueError:
                raise ValidationError('updates must be a JSON object')
        if not isinstance(task_ids, list):
            raise ValidationError('taskIds must be a list')

        updated = []
        for task_id in task_ids:
            task = self.store.get(task_id)
            if not is_owned_by(task, identity):
                logger.info(f"Skipping task {task_id}: not found or not owned by {identity}")
                continue
            changes = plan_update(task, updates, self.clock())
            try:
                updated.append(self.store.update(task_id, changes, owner=identity).to_item())
            except NotFound:
                logger.info(f"Skipping task {task_id}: removed before it could be updated")
        logger.info(f"Bulk update touched {len(updated)} of {len(task_ids)} tasks")
        return updated

    # Queries

    def get_tasks_by_due_date(self, args, identity):
        owner = self._query_owner(args, identity)
        if not args.get('dueDate'):
            raise ValidationError('Missing required field: dueDate')
        due_date = format_timestamp(parse_timestamp(args['dueDate'], 'dueDate'))
        return [t.to_item() for t in self.store.list(owner, dueDate=due_date)]

    def get_overdue_tasks(self, args, identity):
        owner = self._query_owner(args, identity)
        tasks = self.store.list(owner)
        return [t.to_item() for t in aggregator.overdue_tasks(tasks, self.clock())]

    def get_tasks_by_subject(self, args, identity):
        owner = self._query_owner(args, identity)
        if 'subject' not in args:
            raise ValidationError('Missing required field: subject')
        # A null subject lists the tasks filed under no subject
        return [t.to_item() for t in self.store.list(owner, subject=args['subject'])]

    def get_user_analytics(self, args, identity):
        owner = self._query_owner(args, identity)
        return aggregator.summarize(self.store.list(owner), self.clock()).to_dict()


def build_processor():
    return TaskProcessor.from_settings(Settings.from_env())


def lambda_handler(event, context):
    """
    AWS Lambda handler invoked by AppSync direct Lambda resolvers.

    Args:
        event (dict): AppSync event with typeName, fieldName, arguments and identity.
        context (object): Lambda context object providing runtime information.

    Returns:
        The resolved field value.
    """
    logger.debug("Event: %s", json.dumps(event, default=str))
    try:
        return build_processor().resolve(event)
    except TaskServiceError as e:
        logger.warning(f"Request rejected: {e}")
        raise
    except Exception as e:
        logger.error(f"Handler error: {e}", exc_info=True)
        raise TaskServiceError('Internal server error') from e
