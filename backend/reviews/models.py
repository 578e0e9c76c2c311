"""
Reviews Models

Client ratings of completed work, moderated by admins before they count
towards a provider's reputation.
"""

import uuid
from django.conf import settings
from django.core.validators import MaxLengthValidator, MaxValueValidator, MinLengthValidator, MinValueValidator
from django.db import models


class Rating(models.Model):
    """
    One client rating for one subservice of a booking.

    A booking with several subservices yields one Rating per subservice,
    all created together and sharing the same score and feedback.
    """

    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        APPROVED = 'approved', 'Approved'
        REJECTED = 'rejected', 'Rejected'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    booking = models.ForeignKey('bookings.Booking', on_delete=models.PROTECT, related_name='ratings')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='ratings')
    provider = models.ForeignKey(
        'providers.ServiceProvider', on_delete=models.SET_NULL, null=True, blank=True, related_name='ratings'
    )
    subservice = models.ForeignKey('services.Subservice', on_delete=models.CASCADE, related_name='ratings')
    service = models.ForeignKey('services.Service', on_delete=models.CASCADE, related_name='ratings')

    rating = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
    feedback = models.TextField(validators=[MinLengthValidator(10), MaxLengthValidator(500)])

    # Moderation
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.PENDING)
    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='reviewed_ratings'
    )
    reviewed_at = models.DateTimeField(null=True, blank=True)
    review_note = models.CharField(max_length=200, blank=True)

    # Set once the approval has been folded into the provider aggregate
    applied_to_provider = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(fields=['booking', 'subservice'], name='uq_rating_booking_subservice'),
            models.CheckConstraint(condition=models.Q(rating__gte=1) & models.Q(rating__lte=5), name='rating_value_range'),
        ]
        indexes = [
            models.Index(fields=['subservice', 'status'], name='idx_rating_subservice_status'),
            models.Index(fields=['status', 'applied_to_provider'], name='idx_rating_applied'),
        ]

    def __str__(self) -> str:
        return f"Rating {self.rating}/5 for booking {self.booking_id} ({self.status})"
