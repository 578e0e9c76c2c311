"""
Global exception handling decorators following KISS principle.
Simple, unified error handling for all API endpoints.
"""

import logging
from functools import wraps

from django.conf import settings

from .exceptions import AppError, error_response
from .response import ApiResponse

logger = logging.getLogger(__name__)


def _find_request(args):
    """Return the request among view arguments (function views and ViewSet methods)."""
    for arg in args:
        if hasattr(arg, 'META'):
            return arg
    return None


def _request_context(request):
    if request is None:
        return {}
    return {
        'user_id': getattr(getattr(request, 'user', None), 'id', None),
        'ip_address': request.META.get('REMOTE_ADDR'),
    }


def api_exception_handler(view_func):
    """
    Simple decorator for API exception handling.
    Replaces repetitive try-catch blocks in views.
    """
    @wraps(view_func)
    def wrapper(*args, **kwargs):
        try:
            return view_func(*args, **kwargs)

        except AppError as e:
            request = _find_request(args)
            log = logger.error if e.status_code >= 500 else logger.warning
            log(f"{e.__class__.__name__} in {view_func.__name__}", extra={
                **_request_context(request),
                'error': str(e),
                'error_code': e.error_code,
            })
            return error_response(e)

        except Exception as e:
            request = _find_request(args)
            logger.error(f"System error in {view_func.__name__}", extra={
                **_request_context(request),
                'error': str(e),
            }, exc_info=True)
            return ApiResponse.internal_error(
                data={'detail': str(e)} if settings.DEBUG else None
            )

    return wrapper

