import uuid
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from services.models import Service, Subservice

RATING_VALUES = (1, 2, 3, 4, 5)


def empty_rating_distribution():
    return {str(star): 0 for star in RATING_VALUES}


def average_from_distribution(distribution):
    """sum(star * count) / sum(count), rounded half-up to 2 decimals; 0 when empty."""
    count = sum(int(distribution.get(str(star), 0)) for star in RATING_VALUES)
    if not count:
        return Decimal('0.00')
    total = sum(star * int(distribution.get(str(star), 0)) for star in RATING_VALUES)
    return (Decimal(total) / Decimal(count)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)


class ServiceProvider(models.Model):
    """A service professional who can be assigned to bookings once verified."""

    class Status(models.TextChoices):
        VERIFICATION_PENDING = 'verification_pending', 'Verification Pending'
        PENDING = 'pending', 'Pending'
        ACTIVE = 'active', 'Active'
        INACTIVE = 'inactive', 'Inactive'
        SUSPENDED = 'suspended', 'Suspended'

    # API names of the identity documents, mapped to their field prefix
    DOCUMENT_TYPES = {
        'aadhaarCard': 'aadhaar',
        'panCard': 'pan',
    }

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Basic information
    name = models.CharField(max_length=200)
    email = models.EmailField(unique=True)
    phone_number = models.CharField(max_length=20, unique=True)

    # Capabilities
    services = models.ManyToManyField(Service, related_name='providers', blank=True)
    subservices = models.ManyToManyField(Subservice, related_name='providers', blank=True)

    # Address
    street = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=100, blank=True)
    pincode = models.CharField(max_length=20, blank=True)
    country = models.CharField(max_length=100, default='India')

    # Identity documents (images live in object storage)
    aadhaar_number = models.CharField(max_length=20, unique=True)
    aadhaar_image = models.URLField(max_length=500, blank=True)
    aadhaar_image_key = models.CharField(max_length=500, blank=True)
    aadhaar_verified = models.BooleanField(default=False)

    pan_number = models.CharField(max_length=20, unique=True)
    pan_image = models.URLField(max_length=500, blank=True)
    pan_image_key = models.CharField(max_length=500, blank=True)
    pan_verified = models.BooleanField(default=False)

    passport_photo = models.URLField(max_length=500, blank=True)
    passport_photo_key = models.CharField(max_length=500, blank=True)

    # Professional information
    specializations = models.JSONField(default=list, blank=True)
    experience = models.PositiveIntegerField(default=0)
    experience_unit = models.CharField(
        max_length=10,
        choices=[('months', 'Months'), ('years', 'Years')],
        default='years'
    )
    qualification = models.CharField(max_length=200, blank=True)
    commission = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal('10.00'),
        validators=[MinValueValidator(0), MaxValueValidator(100)],
        help_text="Platform commission in percent"
    )

    status = models.CharField(max_length=25, choices=Status.choices, default=Status.VERIFICATION_PENDING)

    # Ratings
    average_rating = models.DecimalField(max_digits=3, decimal_places=2, default=Decimal('0.00'))
    total_ratings = models.PositiveIntegerField(default=0)
    rating_distribution = models.JSONField(default=empty_rating_distribution)

    # Audit
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='created_providers'
    )
    verified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='verified_providers'
    )
    verified_at = models.DateTimeField(null=True, blank=True)
    notes = models.CharField(max_length=500, blank=True)
    suspension_reason = models.CharField(max_length=500, blank=True)
    suspended_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status'], name='idx_provider_status'),
            models.Index(fields=['-average_rating', '-total_ratings'], name='idx_provider_rating'),
        ]

    def __str__(self) -> str:
        return self.name

    @property
    def is_fully_verified(self):
        return self.aadhaar_verified and self.pan_verified

    def set_document_verified(self, document_type, verified):
        prefix = self.DOCUMENT_TYPES[document_type]
        setattr(self, f'{prefix}_verified', bool(verified))

    def refresh_verification_status(self):
        """Active iff both identity documents are verified."""
        self.status = self.Status.ACTIVE if self.is_fully_verified else self.Status.VERIFICATION_PENDING

    def apply_rating(self, value):
        """Fold one approved rating into the distribution, total and average."""
        distribution = {**empty_rating_distribution(), **(self.rating_distribution or {})}
        distribution[str(value)] = int(distribution[str(value)]) + 1
        self.rating_distribution = distribution
        self.total_ratings = sum(int(distribution[str(star)]) for star in RATING_VALUES)
        self.average_rating = average_from_distribution(distribution)

    def can_handle(self, service_ids, subservice_ids):
        """True when the provider offers at least one of the requested services and subservices."""
        offers_service = self.services.filter(pk__in=service_ids).exists()
        offers_subservice = self.subservices.filter(pk__in=subservice_ids).exists()
        return offers_service and offers_subservice

    def is_available_at(self, date, time):
        """True when the weekday's window is open and contains the time (bounds inclusive)."""
        window = self.availability.filter(day_of_week=date.weekday()).first()
        if window is None or not window.is_available:
            return False
        return window.start_time <= time <= window.end_time


class ProviderAvailability(models.Model):
    """Provider's weekly availability window."""

    DAYS_OF_WEEK = [
        (0, 'Monday'),
        (1, 'Tuesday'),
        (2, 'Wednesday'),
        (3, 'Thursday'),
        (4, 'Friday'),
        (5, 'Saturday'),
        (6, 'Sunday'),
    ]

    provider = models.ForeignKey(ServiceProvider, on_delete=models.CASCADE, related_name="availability")
    day_of_week = models.IntegerField(choices=DAYS_OF_WEEK)
    start_time = models.TimeField()
    end_time = models.TimeField()
    is_available = models.BooleanField(default=True)

    class Meta:
        ordering = ['day_of_week']
        constraints = [
            models.UniqueConstraint(fields=["provider", "day_of_week"], name="uq_provider_availability"),
        ]

    def __str__(self) -> str:
        return f"{self.provider.name} - {self.get_day_of_week_display()}"
