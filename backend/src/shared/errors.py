"""
Error taxonomy shared by stores, the token codec and the integrity coordinator.
Every error carries the HTTP status a handler should answer with.
"""
from typing import Any, Dict, Optional


class JobBoardError(Exception):
    """Base class for all application errors."""

    status_code = 500
    error_code = 'InternalError'
    default_message = 'Internal Server Error'

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body = {'error': self.error_code, 'message': self.message}
        if self.details:
            body['details'] = self.details
        return body


class ValidationError(JobBoardError):
    """Malformed or policy-violating input."""
    status_code = 400
    error_code = 'ValidationError'
    default_message = 'Invalid request'


class EncodingError(JobBoardError):
    """Claims could not be encoded into a token."""
    status_code = 400
    error_code = 'EncodingError'
    default_message = 'Could not encode token claims'


class UnauthorizedError(JobBoardError):
    """Missing credentials."""
    status_code = 401
    error_code = 'Unauthorized'
    default_message = 'Authentication required'


class InvalidTokenError(UnauthorizedError):
    """Token failed signature, expiry or shape checks."""
    error_code = 'InvalidToken'
    default_message = 'Invalid authentication token'


class ForbiddenError(JobBoardError):
    """Authenticated but not allowed."""
    status_code = 403
    error_code = 'Forbidden'
    default_message = 'Insufficient permissions'


class NotFoundError(JobBoardError):
    """Referenced entity is absent."""
    status_code = 404
    error_code = 'NotFound'
    default_message = 'Resource not found'


class DuplicateKeyError(JobBoardError):
    """Natural key already taken."""
    status_code = 409
    error_code = 'DuplicateKey'
    default_message = 'Resource already exists'


class StoreError(JobBoardError):
    """Unexpected DynamoDB failure. The original cause is logged, never returned."""
    status_code = 500
    error_code = 'StoreError'
    default_message = 'Internal Server Error'
