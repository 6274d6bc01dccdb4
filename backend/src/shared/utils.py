"""
Common utility functions for Lambda handlers.
"""
import functools
import json
from decimal import Decimal
from typing import Any, Callable, Dict, Optional

from .config import config
from .errors import JobBoardError, ValidationError
from .logging import logger, log_event


class DecimalEncoder(json.JSONEncoder):
    """JSON encoder that handles Decimal and set types from DynamoDB."""

    def default(self, o):
        if isinstance(o, Decimal):
            # Convert to int if it's a whole number, otherwise float
            if o % 1 == 0:
                return int(o)
            return float(o)
        if isinstance(o, set):
            return sorted(o)
        return super().default(o)


def format_response(
    status_code: int,
    body: Any,
    headers: Dict[str, str] = None
) -> Dict[str, Any]:
    """
    Format a standard API Gateway response with CORS headers.

    Args:
        status_code: HTTP status code
        body: Response body (will be JSON serialized)
        headers: Additional headers to include

    Returns:
        API Gateway response dict
    """
    default_headers = {
        'Access-Control-Allow-Origin': '*',
        'Access-Control-Allow-Credentials': True,
        'Access-Control-Allow-Headers': 'Content-Type,Authorization',
        'Content-Type': 'application/json'
    }

    if headers:
        default_headers.update(headers)

    return {
        'statusCode': status_code,
        'headers': default_headers,
        'body': json.dumps(body, cls=DecimalEncoder)
    }


def error_response(error: JobBoardError) -> Dict[str, Any]:
    headers = {'WWW-Authenticate': 'Bearer'} if error.status_code == 401 else None
    return format_response(error.status_code, error.to_dict(), headers)


def api_handler(func: Callable) -> Callable:
    """
    Wrap a Lambda handler: log the event, map JobBoardError to its status,
    and turn anything else into a generic 500 without leaking internals.
    """
    @functools.wraps(func)
    def wrapper(event, context):
        log_event(event)
        try:
            return func(event, context)
        except JobBoardError as e:
            log = logger.error if e.status_code >= 500 else logger.info
            log(f"{func.__module__}: {e.error_code} - {e.message}")
            return error_response(e)
        except Exception:
            logger.exception(f"Unhandled error in {func.__module__}")
            return format_response(500, {'error': 'InternalError', 'message': 'Internal Server Error'})

    return wrapper


def parse_body(event: dict) -> dict:
    """
    Parse JSON body from API Gateway event.

    Args:
        event: API Gateway Lambda proxy event

    Returns:
        Parsed body dict ({} when there is no body)

    Raises:
        ValidationError: body is not a JSON object
    """
    body = event.get('body')
    if body is None or body == '':
        return {}
    if isinstance(body, str):
        try:
            body = json.loads(body)
        except json.JSONDecodeError:
            raise ValidationError('Invalid JSON')
    if not isinstance(body, dict):
        raise ValidationError('Request body must be a JSON object')
    return body


def get_path_param(event: dict, param_name: str) -> Optional[str]:
    """Extract path parameter from event."""
    try:
        return event['pathParameters'][param_name]
    except (KeyError, TypeError):
        return None


def get_query_param(event: dict, param_name: str, default: str = None) -> Optional[str]:
    """Extract query string parameter from event."""
    params = event.get('queryStringParameters') or {}
    return params.get(param_name, default)


def session_cookie(token: str, max_age: int) -> str:
    """Set-Cookie value carrying the session token."""
    return (
        f"{config.SESSION_COOKIE_NAME}={token}; Max-Age={max_age}; "
        f"Path=/; HttpOnly; Secure; SameSite=Lax"
    )
