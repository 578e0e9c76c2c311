import logging
from functools import wraps

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError

from .exceptions import AppError, ConflictError, DatabaseError

logger = logging.getLogger(__name__)


def translate_errors(message, conflict_message='Resource already exists'):
    """
    Wrap a service method so that persistence failures surface as domain errors.

    Domain errors pass through untouched, duplicate-key failures become
    ConflictError and anything else becomes DatabaseError(message).
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except AppError:
                raise
            except IntegrityError as e:
                logger.warning(f"Integrity error in {func.__name__}", extra={'error': str(e)})
                raise ConflictError(conflict_message) from e
            except Exception as e:
                logger.error(f"Unexpected error in {func.__name__}", extra={'error': str(e)}, exc_info=True)
                raise DatabaseError(message) from e
        return wrapper
    return decorator


def get_object_or_none(queryset, pk):
    """Fetch by primary key, treating malformed ids the same as missing rows."""
    try:
        return queryset.filter(pk=pk).first()
    except (ValueError, TypeError, DjangoValidationError):
        return None
