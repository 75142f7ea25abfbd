# Response helpers for API Gateway Lambda proxy integration
import json
from decimal import Decimal

from task_common.errors import (DependencyFailure, NotFound, TaskServiceError, Unauthorized,
                                ValidationError)

GENERIC_ERROR = 'Internal server error'

ERROR_STATUS = (
    (ValidationError, 400),
    (Unauthorized, 401),
    (NotFound, 404),
    (DependencyFailure, 502),
)


class DecimalEncoder(json.JSONEncoder):
    """
    JSON encoder for DynamoDB items.

    DynamoDB stores numbers as Decimal; they come out as int when whole and
    float otherwise.
    """
    def default(self, obj):
        if isinstance(obj, Decimal):
            return int(obj) if obj % 1 == 0 else float(obj)
        return super(DecimalEncoder, self).default(obj)


# Lambda proxy integration means CORS has to be answered from code
def cors_headers():
    return {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Headers": "Authorization,Content-Type",
        "Access-Control-Allow-Methods": "GET,POST,PUT,DELETE,OPTIONS"
    }


def response(status_code, body=None):
    """
    Format an HTTP response with CORS headers.

    Args:
        status_code (int): HTTP status code.
        body (dict or list, optional): Serialized as JSON; None gives an empty body.

    Returns:
        dict: Lambda proxy response.
    """
    return {
        'statusCode': status_code,
        'headers': cors_headers(),
        'body': '' if body is None else json.dumps(body, cls=DecimalEncoder)
    }


def error_response(status, message):
    return response(status, {'error': message})


def status_for(error):
    for error_type, status in ERROR_STATUS:
        if isinstance(error, error_type):
            return status
    return 500


def domain_error_response(error):
    """Response for a TaskServiceError; dependency details stay in the logs."""
    status = status_for(error)
    if isinstance(error, DependencyFailure) or not isinstance(error, TaskServiceError):
        return error_response(status, GENERIC_ERROR)
    return error_response(status, str(error))


def caller_id(event):
    """Cognito `sub` of the caller, or None when the request is unauthenticated."""
    claims = ((event.get('requestContext') or {}).get('authorizer') or {}).get('claims') or {}
    return claims.get('sub')


def json_body(event):
    """Parse the request body, raising ValidationError on missing or invalid JSON."""
    raw = event.get('body')
    if not raw:
        raise ValidationError('Request body is required')
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        raise ValidationError('Request body must be valid JSON')
