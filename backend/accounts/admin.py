from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import Address, Otp, User


class AddressInline(admin.TabularInline):
    """
    Inline admin interface for a user's addresses.
    """
    model = Address
    fields = ['street', 'city', 'state', 'zip_code', 'country']
    extra = 0


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    User admin with marketplace fields (role, phone number).
    """
    inlines = (AddressInline,)

    list_display = ['username', 'name', 'phone_number', 'email', 'role', 'is_active', 'date_joined']
    list_filter = ['role', 'is_active', 'is_staff', 'date_joined']
    search_fields = ['username', 'name', 'phone_number', 'email']

    fieldsets = BaseUserAdmin.fieldsets + (
        ('Marketplace', {
            'fields': ('name', 'phone_number', 'avatar', 'role'),
        }),
    )


@admin.register(Otp)
class OtpAdmin(admin.ModelAdmin):
    list_display = ['phone_number', 'expires_at', 'created_at']
    search_fields = ['phone_number']
    readonly_fields = ['created_at']
