import re
import uuid

from .exceptions import ValidationError

PHONE_DIGITS = 10


def ensure_allowed_fields(data, allowed, context='update'):
    """Reject any key outside the allow-list instead of silently dropping it."""
    unknown = sorted(set(data) - set(allowed))
    if unknown:
        raise ValidationError(
            f"Unknown fields for {context}: {', '.join(unknown)}",
            errors={field: ['This field is not allowed.'] for field in unknown},
        )


def normalize_phone_number(value):
    """Strip non-digits and require exactly ten digits."""
    if value in (None, ''):
        raise ValidationError('Phone number is required')
    digits = re.sub(r'\D', '', str(value))
    if len(digits) != PHONE_DIGITS:
        raise ValidationError(f'Phone number must be {PHONE_DIGITS} digits')
    return digits


def parse_id_list(values, field):
    """
    Validate a non-empty list of UUID strings.

    Returns the de-duplicated ids in their original order.
    """
    if not isinstance(values, (list, tuple)) or not values:
        raise ValidationError(f"At least one {field} must be provided")
    ids = []
    for value in values:
        try:
            parsed = value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))
        except (TypeError, ValueError, AttributeError):
            raise ValidationError(f"Invalid {field} id: {value}")
        if parsed not in ids:
            ids.append(parsed)
    return ids
