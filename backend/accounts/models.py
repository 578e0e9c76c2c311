from django.db import models
from django.contrib.auth.models import AbstractUser
from django.core.validators import RegexValidator
from django.utils import timezone
import uuid


phone_validator = RegexValidator(r'^\d{10}$', 'Phone number must be 10 digits')


class User(AbstractUser):
    """Marketplace account: a client signing in by OTP, or an admin signing in by e-mail."""

    class Role(models.TextChoices):
        CLIENT = "client", "Client"
        ADMIN = "admin", "Admin"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    phone_number = models.CharField(
        max_length=10,
        unique=True,
        null=True,
        blank=True,
        validators=[phone_validator],
        help_text="10-digit phone number used for OTP sign-in"
    )
    name = models.CharField(max_length=150, blank=True)
    avatar = models.URLField(blank=True)
    role = models.CharField(max_length=10, choices=Role.choices, default=Role.CLIENT)

    class Meta:
        db_table = 'auth_user'

    @property
    def is_admin(self):
        return self.role == self.Role.ADMIN

    def __str__(self):
        return self.name or self.phone_number or self.email or self.username


class Otp(models.Model):
    """One-time sign-in code. At most one live code is kept per phone number."""

    phone_number = models.CharField(max_length=10, unique=True, validators=[phone_validator])
    code = models.CharField(max_length=10)
    expires_at = models.DateTimeField()
    created_at = models.DateTimeField(auto_now_add=True)

    def is_expired(self):
        return timezone.now() > self.expires_at

    def __str__(self):
        return f"Otp({self.phone_number}, expires_at={self.expires_at})"


class Address(models.Model):
    """Service address owned by a client."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='addresses')
    house_no = models.CharField(max_length=50, blank=True, help_text="House/Flat number")
    street = models.CharField(max_length=255)
    full_address = models.TextField(blank=True)
    landmark = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100)
    state = models.CharField(max_length=100)
    zip_code = models.CharField(max_length=20)
    country = models.CharField(max_length=100, default='India')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name_plural = 'Addresses'
        indexes = [
            models.Index(fields=['user', 'created_at'], name='idx_address_user_created'),
        ]

    def __str__(self):
        return f"{self.street}, {self.city} {self.zip_code}"
