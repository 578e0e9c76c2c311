from django.contrib import admin
from .models import ProviderAvailability, ServiceProvider


class ProviderAvailabilityInline(admin.TabularInline):
    model = ProviderAvailability
    extra = 0


@admin.register(ServiceProvider)
class ServiceProviderAdmin(admin.ModelAdmin):
    """Admin configuration for ServiceProvider model."""

    list_display = [
        'name', 'phone_number', 'email', 'status',
        'aadhaar_verified', 'pan_verified', 'average_rating', 'total_ratings'
    ]
    list_filter = ['status', 'aadhaar_verified', 'pan_verified', 'city']
    search_fields = ['name', 'email', 'phone_number', 'aadhaar_number', 'pan_number']
    readonly_fields = [
        'id', 'average_rating', 'total_ratings', 'rating_distribution',
        'verified_by', 'verified_at', 'suspended_at', 'created_by', 'created_at', 'updated_at'
    ]
    filter_horizontal = ['services', 'subservices']
    inlines = [ProviderAvailabilityInline]

    fieldsets = (
        ('Basic Information', {
            'fields': ('name', 'email', 'phone_number', 'services', 'subservices')
        }),
        ('Address', {
            'fields': ('street', 'city', 'state', 'pincode', 'country')
        }),
        ('Documents', {
            'fields': (
                'aadhaar_number', 'aadhaar_image', 'aadhaar_verified',
                'pan_number', 'pan_image', 'pan_verified', 'passport_photo'
            )
        }),
        ('Professional', {
            'fields': ('specializations', 'experience', 'experience_unit', 'qualification', 'commission')
        }),
        ('Status', {
            'fields': ('status', 'notes', 'verified_by', 'verified_at', 'suspension_reason', 'suspended_at', 'created_by')
        }),
        ('Ratings', {
            'fields': ('average_rating', 'total_ratings', 'rating_distribution'),
            'classes': ('collapse',)
        }),
        ('Timestamps', {
            'fields': ('id', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )
