from django.contrib import admin
from .models import Service, Subservice


class SubserviceInline(admin.TabularInline):
    model = Subservice
    fields = ['name', 'original_price', 'discounted_price', 'duration']
    extra = 0


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    """Admin configuration for Service model."""

    list_display = ['name', 'original_price', 'discounted_price', 'duration', 'created_at']
    search_fields = ['name', 'description']
    readonly_fields = ['id', 'created_at', 'updated_at']
    inlines = [SubserviceInline]

    fieldsets = (
        ('Basic Information', {
            'fields': ('name', 'description', 'process', 'image')
        }),
        ('Pricing', {
            'fields': ('original_price', 'discounted_price', 'duration')
        }),
        ('Timestamps', {
            'fields': ('id', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )


@admin.register(Subservice)
class SubserviceAdmin(admin.ModelAdmin):
    """Admin configuration for Subservice model."""

    list_display = ['name', 'service', 'original_price', 'discounted_price', 'duration']
    list_filter = ['service']
    search_fields = ['name', 'service__name']
    readonly_fields = ['id', 'created_at', 'updated_at']
