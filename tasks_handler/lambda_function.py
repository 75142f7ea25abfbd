# REST CRUD for tasks behind API Gateway with a Cognito authorizer
import json
import logging
import os
from datetime import datetime, timezone

from task_common.access import require_owned_task
from task_common.config import Settings
from task_common.errors import TaskServiceError
from task_common.http import (caller_id, domain_error_response, error_response, json_body,
                              response, GENERIC_ERROR)
from task_common.lifecycle import new_task, plan_update
from task_common.store import TaskStore

# Configure logging for CloudWatch analysis
logger = logging.getLogger()
logger.setLevel(os.environ.get('LOG_LEVEL', 'INFO').upper())


class TasksApi:
    """
    Task CRUD for one caller at a time.

    Every per-task route goes through require_owned_task, so a caller only
    ever sees or changes their own tasks.
    """

    def __init__(self, store, clock=lambda: datetime.now(timezone.utc)):
        self.store = store
        self.clock = clock

    def list_tasks(self, user_id):
        tasks = self.store.list(user_id)
        logger.info(f"Found {len(tasks)} tasks for user {user_id}")
        return response(200, [t.to_item() for t in tasks])

    def get_task(self, user_id, task_id):
        task = require_owned_task(self.store, task_id, user_id)
        return response(200, task.to_item())

    def create_task(self, user_id, payload):
        task = new_task(user_id, payload, self.clock())
        logger.info(f"Saving task {task.id} for {user_id}")
        self.store.put(task)
        return response(201, task.to_item())

    def update_task(self, user_id, task_id, payload):
        task = require_owned_task(self.store, task_id, user_id)
        changes = plan_update(task, payload, self.clock())
        logger.info(f"Updating task {task_id}: {sorted(changes)}")
        return response(200, self.store.update(task_id, changes, owner=user_id).to_item())

    def delete_task(self, user_id, task_id):
        require_owned_task(self.store, task_id, user_id)
        self.store.delete(task_id)
        logger.info(f"Deleted task {task_id}")
        return response(204)

    def handle(self, event):
        method = event.get('httpMethod')
        if method == 'OPTIONS':
            return response(200)

        user_id = caller_id(event)
        if not user_id:
            return error_response(401, 'Unauthorized')

        task_id = (event.get('pathParameters') or {}).get('taskId')
        if method == 'GET':
            if task_id:
                return self.get_task(user_id, task_id)
            return self.list_tasks(user_id)
        if method == 'POST':
            return self.create_task(user_id, json_body(event))
        if method == 'PUT' and task_id:
            return self.update_task(user_id, task_id, json_body(event))
        if method == 'DELETE' and task_id:
            return self.delete_task(user_id, task_id)
        return error_response(405, 'Method not allowed')


def build_api():
    return TasksApi(TaskStore.from_settings(Settings.from_env()))


def lambda_handler(event, context):
    """
    AWS Lambda handler for /tasks and /tasks/{taskId}.

    Args:
        event (dict): API Gateway proxy event with httpMethod, pathParameters, body and authorizer claims.
        context (object): Lambda context object providing runtime information.

    Returns:
        dict: HTTP response with status code, CORS headers, and JSON body.
    """
    logger.debug("Event: %s", json.dumps(event, default=str))
    try:
        return build_api().handle(event)
    except TaskServiceError as e:
        logger.warning(f"Request rejected: {e}")
        return domain_error_response(e)
    except Exception as e:
        logger.error(f"Handler error: {str(e)}", exc_info=True)
        return error_response(500, GENERIC_ERROR)
