# DynamoDB access for task records and user profiles
import logging

import boto3
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import BotoCoreError, ClientError

from task_common.access import NOT_FOUND_MESSAGE
from task_common.errors import DependencyFailure, NotFound
from task_common.models import Task

logger = logging.getLogger(__name__)

AWS_ERRORS = (BotoCoreError, ClientError)


class TaskStore:
    """
    Task table wrapper.

    The table handle is injected so handlers and tests decide which table
    (or mock) is used; `from_settings` builds the real one.
    """

    def __init__(self, table):
        self.table = table

    @classmethod
    def from_settings(cls, settings):
        dynamodb = boto3.resource('dynamodb', config=settings.boto_config())
        return cls(dynamodb.Table(settings.tasks_table))

    def get(self, task_id):
        """Return the Task with `task_id`, or None when there is no such item."""
        try:
            response = self.table.get_item(Key={'id': task_id})
        except AWS_ERRORS as e:
            logger.error(f"get_item failed for task {task_id}: {e}")
            raise DependencyFailure('Task store unavailable') from e
        item = response.get('Item')
        return Task.from_item(item) if item else None

    def scan_items(self, filter_expression=None):
        """
        Retrieve raw items from the table, with optional filtering.
        Follows LastEvaluatedKey until every page has been read.

        Args:
            filter_expression (Attr, optional): DynamoDB filter expression to apply.

        Returns:
            list: Items as DynamoDB returned them, in scan order.

        Raises:
            DependencyFailure: If any scan call fails.
        """
        items = []
        kwargs = {}
        if filter_expression is not None:
            kwargs['FilterExpression'] = filter_expression

        while True:
            try:
                response = self.table.scan(**kwargs)
            except AWS_ERRORS as e:
                logger.error(f"Scan error: {e}")
                raise DependencyFailure('Task store unavailable') from e
            items.extend(response.get('Items', []))
            if 'LastEvaluatedKey' in response:
                kwargs['ExclusiveStartKey'] = response['LastEvaluatedKey']
                logger.debug("Fetching additional page of results...")
            else:
                break

        logger.info(f"Total tasks retrieved: {len(items)}")
        return items

    def scan(self, filter_expression=None):
        """Like scan_items, parsed into Task records."""
        return [Task.from_item(item) for item in self.scan_items(filter_expression)]

    def list(self, owner=None, **equals):
        """
        List tasks, optionally restricted to an owner and to exact attribute values.
        A value of None matches items that do not carry the attribute.

        Example: store.list('alice', subject='Maths')
        """
        condition = None
        if owner is not None:
            condition = Attr('owner').eq(owner)
        for name, value in equals.items():
            clause = Attr(name).not_exists() if value is None else Attr(name).eq(value)
            condition = clause if condition is None else condition & clause
        return self.scan(condition)

    def list_in_range(self, owner, start, end):
        """Owner's tasks whose createdAt lies between `start` and `end` (inclusive)."""
        return self.scan(Attr('owner').eq(owner) & Attr('createdAt').between(start, end))

    def put(self, task):
        try:
            self.table.put_item(Item=task.to_item())
        except AWS_ERRORS as e:
            logger.error(f"put_item failed for task {task.id}: {e}")
            raise DependencyFailure('Task store unavailable') from e
        return task

    def update(self, task_id, changes, owner=None):
        """
        Apply attribute changes to an existing task and return the stored result.

        The update only applies if the item still exists (and, when `owner`
        is given, still belongs to that owner); it never creates an item.

        Args:
            task_id (str): Id of the task to change.
            changes (dict): Attribute name to value; None removes the attribute.
            owner (str, optional): Owner the stored item must have.

        Returns:
            Task: The item as stored after the update.

        Raises:
            NotFound: If the item is gone or owned by someone else.
        """
        set_parts = []
        remove_parts = []
        names = {}
        values = {}
        for index, (key, value) in enumerate(changes.items()):
            names[f'#field{index}'] = key
            if value is None:
                remove_parts.append(f'#field{index}')
            else:
                set_parts.append(f'#field{index} = :val{index}')
                values[f':val{index}'] = value

        expression = []
        if set_parts:
            expression.append('SET ' + ', '.join(set_parts))
        if remove_parts:
            expression.append('REMOVE ' + ', '.join(remove_parts))

        condition = Attr('id').exists()
        if owner is not None:
            condition = condition & Attr('owner').eq(owner)

        kwargs = {
            'Key': {'id': task_id},
            'UpdateExpression': ' '.join(expression),
            'ConditionExpression': condition,
            'ExpressionAttributeNames': names,
            'ReturnValues': 'ALL_NEW',
        }
        if values:
            kwargs['ExpressionAttributeValues'] = values

        try:
            result = self.table.update_item(**kwargs)
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') == 'ConditionalCheckFailedException':
                logger.warning(f"Task {task_id} vanished or changed owner before update")
                raise NotFound(NOT_FOUND_MESSAGE) from e
            logger.error(f"update_item failed for task {task_id}: {e}")
            raise DependencyFailure('Task store unavailable') from e
        except BotoCoreError as e:
            logger.error(f"update_item failed for task {task_id}: {e}")
            raise DependencyFailure('Task store unavailable') from e
        return Task.from_item(result['Attributes'])

    def delete(self, task_id):
        try:
            self.table.delete_item(Key={'id': task_id})
        except AWS_ERRORS as e:
            logger.error(f"delete_item failed for task {task_id}: {e}")
            raise DependencyFailure('Task store unavailable') from e


class UserProfileStore:
    """Looks up the email address stored on a user's profile."""

    def __init__(self, table):
        self.table = table

    @classmethod
    def from_settings(cls, settings):
        dynamodb = boto3.resource('dynamodb', config=settings.boto_config())
        return cls(dynamodb.Table(settings.profiles_table))

    def email_for(self, owner):
        try:
            response = self.table.get_item(Key={'id': owner})
        except AWS_ERRORS as e:
            logger.error(f"Profile lookup failed for {owner}: {e}")
            raise DependencyFailure('Profile store unavailable') from e
        profile = response.get('Item') or {}
        email = profile.get('email')
        if not email:
            raise NotFound(f'No email on profile for user {owner}')
        return email
