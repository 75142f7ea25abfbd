"""
Attachment upload/download handler.

The browser never sends file bytes through API Gateway: POST hands back a
presigned S3 PUT url, GET hands back a presigned download url (or lists the
caller's files), DELETE removes one of the caller's objects.
"""
import json
import logging
import os

from task_common.attachments import AttachmentStorage
from task_common.config import Settings
from task_common.errors import TaskServiceError, Unauthorized
from task_common.http import (caller_id, domain_error_response, error_response, response,
                              GENERIC_ERROR)

logger = logging.getLogger()
logger.setLevel(os.environ.get('LOG_LEVEL', 'INFO').upper())


def handle(event, storage):
    method = event.get('httpMethod')
    if method == 'OPTIONS':
        return response(200)

    user_id = caller_id(event)
    if not user_id:
        return error_response(401, 'Unauthorized')

    params = event.get('pathParameters') or {}
    try:
        if method == 'POST':
            result = storage.upload_url(user_id, params.get('fileName'), params.get('fileType'))
            logger.info(f"Issued upload url for {result['key']}")
            return response(200, result)
        if method == 'GET':
            if params.get('fileKey'):
                return response(200, {'downloadUrl': storage.download_url(user_id, params['fileKey'])})
            return response(200, {'files': storage.list_files(user_id)})
        if method == 'DELETE':
            storage.delete(user_id, params.get('fileKey'))
            logger.info(f"Deleted {params.get('fileKey')}")
            return response(204)
    except Unauthorized:
        # Keys outside the caller's prefix
        logger.warning(f"User {user_id} denied access to {params.get('fileKey')}")
        return error_response(403, 'Forbidden')
    return error_response(405, 'Method not allowed')


def lambda_handler(event, context):
    """
    AWS Lambda handler for attachment uploads.

    Args:
        event (dict): API Gateway proxy event with httpMethod, pathParameters and authorizer claims.
        context (object): Lambda context object providing runtime information.

    Returns:
        dict: HTTP response with status code, CORS headers, and JSON body.
    """
    logger.debug("Event: %s", json.dumps(event, default=str))
    try:
        return handle(event, AttachmentStorage.from_settings(Settings.from_env()))
    except TaskServiceError as e:
        logger.warning(f"Request rejected: {e}")
        return domain_error_response(e)
    except Exception as e:
        logger.error(f"Handler error: {str(e)}", exc_info=True)
        return error_response(500, GENERIC_ERROR)
