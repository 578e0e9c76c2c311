"""
Providers API Serializers

This module provides serializers for service providers, their weekly
availability and the admin request bodies acting on them.
"""

from rest_framework import serializers

from common.serializers import StrictSerializer
from .models import ProviderAvailability, ServiceProvider


class ProviderAvailabilitySerializer(serializers.ModelSerializer):
    """
    Serializer for ProviderAvailability model.
    """

    day_name = serializers.CharField(source='get_day_of_week_display', read_only=True)

    class Meta:
        model = ProviderAvailability
        fields = ['day_of_week', 'day_name', 'start_time', 'end_time', 'is_available']


class CatalogRefSerializer(serializers.Serializer):
    id = serializers.UUIDField(read_only=True)
    name = serializers.CharField(read_only=True)


class ServiceProviderSerializer(serializers.ModelSerializer):
    """
    Full provider record including documents, availability and rating stats.
    """

    services = CatalogRefSerializer(many=True, read_only=True)
    subservices = CatalogRefSerializer(many=True, read_only=True)
    availability = ProviderAvailabilitySerializer(many=True, read_only=True)
    is_fully_verified = serializers.BooleanField(read_only=True)
    created_by_name = serializers.CharField(source='created_by.name', read_only=True, default=None)
    verified_by_name = serializers.CharField(source='verified_by.name', read_only=True, default=None)

    class Meta:
        model = ServiceProvider
        fields = [
            'id', 'name', 'email', 'phone_number', 'services', 'subservices',
            'street', 'city', 'state', 'pincode', 'country',
            'aadhaar_number', 'aadhaar_image', 'aadhaar_verified',
            'pan_number', 'pan_image', 'pan_verified', 'passport_photo',
            'specializations', 'experience', 'experience_unit', 'qualification', 'commission',
            'status', 'is_fully_verified', 'average_rating', 'total_ratings', 'rating_distribution',
            'availability', 'created_by', 'created_by_name', 'verified_by', 'verified_by_name',
            'verified_at', 'notes', 'suspension_reason', 'suspended_at', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class ServiceProviderListSerializer(serializers.ModelSerializer):
    """Simplified serializer for provider lists and matching results."""

    class Meta:
        model = ServiceProvider
        fields = [
            'id', 'name', 'email', 'phone_number', 'city', 'status',
            'aadhaar_verified', 'pan_verified', 'average_rating', 'total_ratings', 'created_at'
        ]


# Request bodies

class AvailabilityInputSerializer(StrictSerializer):
    day_of_week = serializers.IntegerField(min_value=0, max_value=6)
    start_time = serializers.TimeField()
    end_time = serializers.TimeField()
    is_available = serializers.BooleanField(required=False, default=True)


class ProviderWriteSerializer(StrictSerializer):
    """Create/update body. Document images may be attached as multipart files."""

    name = serializers.CharField(max_length=200)
    email = serializers.EmailField()
    phone_number = serializers.CharField(max_length=20)
    services = serializers.ListField(child=serializers.UUIDField(), required=False)
    subservices = serializers.ListField(child=serializers.UUIDField(), required=False)

    street = serializers.CharField(max_length=255, required=False, allow_blank=True)
    city = serializers.CharField(max_length=100, required=False, allow_blank=True)
    state = serializers.CharField(max_length=100, required=False, allow_blank=True)
    pincode = serializers.CharField(max_length=20, required=False, allow_blank=True)
    country = serializers.CharField(max_length=100, required=False)

    aadhaar_number = serializers.CharField(max_length=20)
    pan_number = serializers.CharField(max_length=20)

    specializations = serializers.ListField(child=serializers.CharField(max_length=100), required=False)
    experience = serializers.IntegerField(min_value=0, required=False)
    experience_unit = serializers.ChoiceField(choices=['months', 'years'], required=False)
    qualification = serializers.CharField(max_length=200, required=False, allow_blank=True)
    commission = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=0, max_value=100, required=False)
    notes = serializers.CharField(max_length=500, required=False, allow_blank=True)
    availability = AvailabilityInputSerializer(many=True, required=False)

    aadhaar_image = serializers.FileField(required=False)
    pan_image = serializers.FileField(required=False)
    passport_photo = serializers.FileField(required=False)


class VerifyDocumentsFlagsSerializer(StrictSerializer):
    aadhaarCard = serializers.BooleanField(required=False)
    panCard = serializers.BooleanField(required=False)


class VerifyProviderSerializer(StrictSerializer):
    verify_documents = VerifyDocumentsFlagsSerializer(required=False)
    notes = serializers.CharField(max_length=500, required=False, allow_blank=True)


class VerifyDocumentSerializer(StrictSerializer):
    document_type = serializers.CharField()
    verified = serializers.BooleanField()
    notes = serializers.CharField(max_length=500, required=False, allow_blank=True)


class SuspendProviderSerializer(StrictSerializer):
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True)


class AvailableProvidersQuerySerializer(StrictSerializer):
    """Query string of the matching endpoint; lists are comma separated."""

    booking = serializers.UUIDField(required=False)
    services = serializers.CharField(required=False, allow_blank=True)
    subservices = serializers.CharField(required=False, allow_blank=True)
    date = serializers.DateField(required=False)
    time = serializers.TimeField(required=False)

    def validate(self, attrs):
        for field in ('services', 'subservices'):
            if attrs.get(field):
                attrs[field] = [value.strip() for value in attrs[field].split(',') if value.strip()]
            else:
                attrs.pop(field, None)
        return attrs
