"""
Domain error taxonomy shared by every service layer.

Each error carries the HTTP status it maps to and a stable error code, so
views can turn any of them into the standard ApiResponse envelope without
knowing which service raised it.
"""
import logging

from rest_framework import status
from rest_framework.views import exception_handler

from .response import ApiResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for all expected, operational errors."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = 'APP_ERROR'

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.message = message
        self.errors = errors

    def __str__(self):
        return self.message


class ValidationError(AppError):
    """Malformed, missing or out-of-range input, or an illegal state transition."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = 'VALIDATION_ERROR'


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = 'AUTHENTICATION_ERROR'


class AuthorizationError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    error_code = 'AUTHORIZATION_ERROR'


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = 'NOT_FOUND'


class ConflictError(AppError):
    """Uniqueness violation."""

    status_code = status.HTTP_409_CONFLICT
    error_code = 'CONFLICT'


class DatabaseError(AppError):
    """Unclassified persistence failure."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = 'DATABASE_ERROR'


class ExternalServiceError(AppError):
    status_code = status.HTTP_502_BAD_GATEWAY
    error_code = 'EXTERNAL_SERVICE_ERROR'

    def __init__(self, message, service=None):
        super().__init__(message)
        self.service = service


def error_response(exc):
    """Build the ApiResponse envelope for a domain error."""
    return ApiResponse.error(
        error_message=exc.message,
        error_code=exc.error_code,
        status_code=exc.status_code,
        data={'errors': exc.errors} if exc.errors else None,
    )


def envelope_exception_handler(exc, context):
    """
    DRF exception handler that keeps framework errors (authentication,
    permission, parse errors) in the same envelope as domain errors.
    """
    if isinstance(exc, AppError):
        return error_response(exc)

    response = exception_handler(exc, context)
    if response is None:
        return None

    body = response.data
    message = None
    if isinstance(body, dict):
        message = body.get('detail')
    if not message:
        message = 'Request failed'

    error_code = getattr(exc, 'default_code', None)
    return ApiResponse.error(
        error_message=str(message),
        error_code=str(error_code).upper() if error_code else None,
        status_code=response.status_code,
        data=body if not isinstance(body, dict) or set(body) != {'detail'} else None,
    )
