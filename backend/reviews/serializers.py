from rest_framework import serializers

from common.serializers import StrictSerializer
from .models import Rating


class RatingSerializer(serializers.ModelSerializer):
    """Rating with the names of what was rated."""

    subservice_name = serializers.CharField(source='subservice.name', read_only=True)
    service_name = serializers.CharField(source='service.name', read_only=True)
    provider_name = serializers.CharField(source='provider.name', read_only=True, default=None)
    user_name = serializers.CharField(source='user.name', read_only=True)
    booking_date = serializers.DateField(source='booking.date', read_only=True)

    class Meta:
        model = Rating
        fields = [
            'id', 'booking', 'booking_date', 'user', 'user_name', 'provider', 'provider_name',
            'subservice', 'subservice_name', 'service', 'service_name',
            'rating', 'feedback', 'status', 'reviewed_by', 'reviewed_at', 'review_note',
            'applied_to_provider', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


# Request bodies

class RatingCreateSerializer(StrictSerializer):
    rating = serializers.IntegerField(min_value=1, max_value=5)
    feedback = serializers.CharField(min_length=10, max_length=500, trim_whitespace=False)


class RatingUpdateSerializer(StrictSerializer):
    rating = serializers.IntegerField(min_value=1, max_value=5, required=False)
    feedback = serializers.CharField(min_length=10, max_length=500, required=False, trim_whitespace=False)


class RatingReviewSerializer(StrictSerializer):
    status = serializers.ChoiceField(choices=[Rating.Status.APPROVED, Rating.Status.REJECTED])
    review_note = serializers.CharField(max_length=200, required=False, allow_blank=True)
