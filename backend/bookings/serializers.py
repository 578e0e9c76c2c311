from rest_framework import serializers

from accounts.serializers import AddressSerializer
from common.serializers import StrictSerializer
from .models import Booking, BookingStatusHistory


class BookingItemSerializer(serializers.Serializer):
    """Id/name pair for the services and subservices of a booking."""

    id = serializers.UUIDField(read_only=True)
    name = serializers.CharField(read_only=True)
    discounted_price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)


class BookingSerializer(serializers.ModelSerializer):
    """Booking with its catalog items and address."""

    user_name = serializers.CharField(source='user.name', read_only=True)
    user_phone = serializers.CharField(source='user.phone_number', read_only=True)
    services = BookingItemSerializer(many=True, read_only=True)
    subservices = BookingItemSerializer(many=True, read_only=True)
    address = AddressSerializer(read_only=True)
    service_provider_name = serializers.CharField(source='service_provider.name', read_only=True, default=None)

    class Meta:
        model = Booking
        fields = [
            'id', 'user', 'user_name', 'user_phone', 'services', 'subservices', 'address',
            'service_provider', 'service_provider_name', 'date', 'time', 'status',
            'discount', 'final_price', 'assigned_at', 'assigned_by',
            'cancellation_reason', 'cancelled_at', 'completed_at', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class BookingListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for listing bookings."""

    user_name = serializers.CharField(source='user.name', read_only=True)
    service_provider_name = serializers.CharField(source='service_provider.name', read_only=True, default=None)

    class Meta:
        model = Booking
        fields = [
            'id', 'user', 'user_name', 'service_provider', 'service_provider_name',
            'date', 'time', 'status', 'final_price', 'created_at'
        ]


class BookingStatusHistorySerializer(serializers.ModelSerializer):
    """Simple status history serializer."""

    changed_by_name = serializers.CharField(source='changed_by.name', read_only=True, default=None)

    class Meta:
        model = BookingStatusHistory
        fields = ['id', 'old_status', 'new_status', 'changed_by', 'changed_by_name', 'reason', 'changed_at']
        read_only_fields = fields


# Request bodies

class BookingCreateSerializer(StrictSerializer):
    services = serializers.ListField(child=serializers.UUIDField())
    subservices = serializers.ListField(child=serializers.UUIDField())
    address = serializers.UUIDField()
    date = serializers.DateField()
    time = serializers.TimeField()
    discount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)
    final_price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)


class BookingUpdateSerializer(StrictSerializer):
    """Patch body; which keys a caller may send is decided by role in BookingService."""

    services = serializers.ListField(child=serializers.UUIDField(), required=False)
    subservices = serializers.ListField(child=serializers.UUIDField(), required=False)
    address = serializers.UUIDField(required=False)
    date = serializers.DateField(required=False)
    time = serializers.TimeField(required=False)
    status = serializers.ChoiceField(choices=Booking.Status.choices, required=False)
    discount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)
    final_price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)


class RescheduleSerializer(StrictSerializer):
    date = serializers.DateField()
    time = serializers.TimeField()


class CancelSerializer(StrictSerializer):
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True)


class StatusChangeSerializer(StrictSerializer):
    status = serializers.ChoiceField(choices=Booking.Status.choices)
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True)


class AssignProviderSerializer(StrictSerializer):
    provider = serializers.UUIDField()
