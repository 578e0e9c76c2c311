from django.contrib import admin
from .models import Rating


@admin.register(Rating)
class RatingAdmin(admin.ModelAdmin):
    """Admin configuration for Rating model."""

    list_display = ['id', 'booking', 'subservice', 'provider', 'rating', 'status', 'applied_to_provider', 'created_at']
    list_filter = ['status', 'applied_to_provider', 'rating']
    search_fields = ['feedback', 'user__name', 'provider__name', 'subservice__name']
    readonly_fields = [
        'id', 'booking', 'user', 'provider', 'subservice', 'service',
        'reviewed_by', 'reviewed_at', 'applied_to_provider', 'created_at', 'updated_at'
    ]
