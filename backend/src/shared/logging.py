"""
Logging utilities for Lambda handlers.
"""
import logging

from .config import config

# Configure logger
logger = logging.getLogger('jobboard')
logger.setLevel(getattr(logging, config.LOG_LEVEL.upper(), logging.INFO))

# Add handler if not already configured
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    ))
    logger.addHandler(handler)


def describe_route(event: dict) -> str:
    """
    Route of an API Gateway event, e.g. "DELETE /tasks/{id}".
    HTTP APIs carry a routeKey; REST APIs carry httpMethod + resource.
    """
    request_context = event.get('requestContext') or {}
    route_key = request_context.get('routeKey')
    if route_key and route_key != '$default':
        return route_key
    method = event.get('httpMethod') or (request_context.get('http') or {}).get('method') or '-'
    path = event.get('resource') or event.get('rawPath') or event.get('path') or '-'
    return f"{method} {path}"


def log_event(event: dict) -> None:
    """
    Log one line per invocation: request id, route and path parameters.
    Bodies, headers and cookies carry profile data and session tokens and are
    never logged.
    """
    request_context = event.get('requestContext') or {}
    request_id = request_context.get('requestId', '-')
    logger.info(
        f"Request {request_id} {describe_route(event)} "
        f"pathParameters={event.get('pathParameters') or {}}"
    )
