import re

from rest_framework import serializers

from .exceptions import ValidationError


def _base_field(key):
    # form-encoded nesting: "availability[0]day_of_week", "documents.aadhaarCard"
    return re.split(r'[\[.]', key, maxsplit=1)[0]


class StrictSerializer(serializers.Serializer):
    """Request DTO that fails on keys it does not declare."""

    def to_internal_value(self, data):
        if hasattr(data, 'keys'):
            unknown = sorted(key for key in data.keys() if _base_field(key) not in self.fields)
            if unknown:
                raise serializers.ValidationError(
                    {field: ['This field is not allowed.'] for field in unknown}
                )
        return super().to_internal_value(data)


def validate_payload(serializer_class, data, partial=False):
    """Run a request DTO and return its validated data, raising the domain ValidationError."""
    serializer = serializer_class(data=data, partial=partial)
    if not serializer.is_valid():
        raise ValidationError('Invalid request data', errors=serializer.errors)
    return dict(serializer.validated_data)
