from django.contrib import admin
from .models import Booking, BookingStatusHistory


class BookingStatusHistoryInline(admin.TabularInline):
    model = BookingStatusHistory
    fields = ['old_status', 'new_status', 'changed_by', 'reason', 'changed_at']
    readonly_fields = fields
    extra = 0
    can_delete = False


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    """Admin configuration for Booking model."""

    list_display = ['id', 'user', 'service_provider', 'date', 'time', 'status', 'final_price', 'created_at']
    list_filter = ['status', 'date']
    search_fields = ['user__name', 'user__phone_number', 'service_provider__name']
    readonly_fields = ['id', 'assigned_at', 'cancelled_at', 'completed_at', 'created_at', 'updated_at']
    filter_horizontal = ['services', 'subservices']
    inlines = [BookingStatusHistoryInline]
