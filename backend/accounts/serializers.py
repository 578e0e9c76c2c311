"""
Serializers for accounts app models.
"""

from rest_framework import serializers

from common.serializers import StrictSerializer
from .models import Address, User


class UserSerializer(serializers.ModelSerializer):
    """Serializer for User model."""

    class Meta:
        model = User
        fields = ['id', 'name', 'phone_number', 'email', 'avatar', 'role', 'date_joined']
        read_only_fields = fields


class AddressSerializer(serializers.ModelSerializer):
    """Serializer for Address model."""

    class Meta:
        model = Address
        fields = [
            'id', 'user', 'house_no', 'street', 'full_address', 'landmark',
            'city', 'state', 'zip_code', 'country', 'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'user', 'created_at', 'updated_at']


class SendOtpSerializer(StrictSerializer):
    phone_number = serializers.CharField()


class VerifyOtpSerializer(StrictSerializer):
    phone_number = serializers.CharField()
    otp = serializers.CharField()


class AdminLoginSerializer(StrictSerializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)


class ProfileUpdateSerializer(StrictSerializer):
    name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    avatar = serializers.URLField(required=False, allow_blank=True)


class AddressWriteSerializer(StrictSerializer):
    """Request body for creating or updating an address."""

    house_no = serializers.CharField(max_length=50, required=False, allow_blank=True)
    street = serializers.CharField(max_length=255)
    full_address = serializers.CharField(required=False, allow_blank=True)
    landmark = serializers.CharField(max_length=255, required=False, allow_blank=True)
    city = serializers.CharField(max_length=100)
    state = serializers.CharField(max_length=100)
    zip_code = serializers.CharField(max_length=20)
    country = serializers.CharField(max_length=100, required=False)
