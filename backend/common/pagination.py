"""
Page/limit pagination shared by service-layer list operations.

Services never read the default page size themselves: views resolve it
from settings via page_params() and pass it in explicitly.
"""
import math

from django.conf import settings

from .exceptions import ValidationError


def page_params(request):
    """Read ?page= and ?limit= from a request, falling back to DEFAULT_PAGE_LIMIT."""
    page = _positive_int(request.query_params.get('page'), 1, 'page')
    limit = _positive_int(request.query_params.get('limit'), settings.DEFAULT_PAGE_LIMIT, 'limit')
    return page, min(limit, settings.MAX_PAGE_LIMIT)


def _positive_int(raw, default, field):
    if raw in (None, ''):
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a positive integer")
    if value < 1:
        raise ValidationError(f"{field} must be a positive integer")
    return value


def paginate(queryset, page, limit):
    """
    Slice a queryset into one page.

    Returns:
        {'items': [...], 'pagination': {'total', 'page', 'limit', 'totalPages'}}
    """
    if page < 1 or limit < 1:
        raise ValidationError('page and limit must be positive integers')

    total = queryset.count()
    offset = (page - 1) * limit
    return {
        'items': list(queryset[offset:offset + limit]),
        'pagination': {
            'total': total,
            'page': page,
            'limit': limit,
            'totalPages': math.ceil(total / limit),
        },
    }
