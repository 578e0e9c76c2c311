"""
Services API Serializers

This module provides serializers for the service catalog API.
"""

from rest_framework import serializers

from common.serializers import StrictSerializer
from .models import Service, Subservice


class SubserviceSerializer(serializers.ModelSerializer):
    """
    Serializer for Subservice model.
    """

    service_name = serializers.CharField(source='service.name', read_only=True)

    class Meta:
        model = Subservice
        fields = [
            'id', 'service', 'service_name', 'name', 'description', 'process',
            'original_price', 'discounted_price', 'duration',
            'created_at', 'updated_at'
        ]
        read_only_fields = fields


class ServiceSerializer(serializers.ModelSerializer):
    """
    Serializer for Service model, with its subservices.
    """

    subservices = SubserviceSerializer(many=True, read_only=True)

    class Meta:
        model = Service
        fields = [
            'id', 'name', 'description', 'process',
            'original_price', 'discounted_price', 'duration', 'image',
            'subservices', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class ServiceListSerializer(serializers.ModelSerializer):
    """Simplified serializer for service lists."""

    class Meta:
        model = Service
        fields = ['id', 'name', 'original_price', 'discounted_price', 'duration', 'image']


# Request bodies

class ServiceWriteSerializer(StrictSerializer):
    name = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_blank=True)
    process = serializers.CharField(required=False, allow_blank=True)
    original_price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    discounted_price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    duration = serializers.CharField(max_length=50)
    image = serializers.URLField(required=False, allow_blank=True)


class SubserviceWriteSerializer(StrictSerializer):
    service = serializers.UUIDField()
    name = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_blank=True)
    process = serializers.CharField(required=False, allow_blank=True)
    original_price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    discounted_price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    duration = serializers.CharField(max_length=50)
