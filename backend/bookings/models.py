"""
Bookings Models

This module handles service bookings and their status lifecycle.
"""

import uuid
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models


class Booking(models.Model):
    """
    A scheduled request for one or more services/subservices by a client.

    Status moves pending -> confirmed -> completed, with pending/confirmed
    -> cancelled; completed and cancelled are terminal.
    """

    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        CONFIRMED = 'confirmed', 'Confirmed'
        COMPLETED = 'completed', 'Completed'
        CANCELLED = 'cancelled', 'Cancelled'

    ALLOWED_TRANSITIONS = {
        Status.PENDING: {Status.CONFIRMED, Status.COMPLETED, Status.CANCELLED},
        Status.CONFIRMED: {Status.COMPLETED, Status.CANCELLED},
        Status.COMPLETED: set(),
        Status.CANCELLED: set(),
    }
    TERMINAL_STATUSES = (Status.COMPLETED, Status.CANCELLED)
    ACTIVE_STATUSES = (Status.PENDING, Status.CONFIRMED)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Relationships
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='bookings')
    services = models.ManyToManyField('services.Service', related_name='bookings')
    subservices = models.ManyToManyField('services.Subservice', related_name='bookings')
    address = models.ForeignKey('accounts.Address', on_delete=models.PROTECT, related_name='bookings')
    service_provider = models.ForeignKey(
        'providers.ServiceProvider', on_delete=models.SET_NULL, null=True, blank=True, related_name='bookings'
    )

    # Scheduling
    date = models.DateField()
    time = models.TimeField()
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)

    # Pricing
    discount = models.DecimalField(
        max_digits=10, decimal_places=2, default=0, validators=[MinValueValidator(0)]
    )
    final_price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])

    # Assignment
    assigned_at = models.DateTimeField(null=True, blank=True)
    assigned_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='assigned_bookings'
    )

    # Cancellation / completion
    cancellation_reason = models.TextField(blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'status'], name='idx_booking_user_status'),
            models.Index(fields=['service_provider', 'status'], name='idx_booking_provider_status'),
            models.Index(fields=['date', 'time'], name='idx_booking_schedule'),
        ]
        constraints = [
            models.CheckConstraint(condition=models.Q(final_price__gte=0), name='booking_final_price_non_negative'),
        ]

    def __str__(self) -> str:
        return f"Booking {self.id} ({self.status})"

    @property
    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES

    def can_transition_to(self, new_status):
        return new_status in self.ALLOWED_TRANSITIONS.get(self.status, set())


class BookingStatusHistory(models.Model):
    """
    Track status changes for bookings.
    """

    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name='status_history')
    old_status = models.CharField(max_length=20, blank=True)
    new_status = models.CharField(max_length=20)
    changed_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True)
    reason = models.TextField(blank=True)
    changed_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-changed_at']
        verbose_name_plural = 'Booking status history'

    def __str__(self) -> str:
        return f"{self.booking_id}: {self.old_status} -> {self.new_status}"
