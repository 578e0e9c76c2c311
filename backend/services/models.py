"""
Home Services Models

This module provides the service catalog: top-level services and the
billable subservices under them.
"""

import uuid
from django.core.validators import MinValueValidator
from django.db import models


class Service(models.Model):
    """
    A bookable home service.

    Examples: Plumbing, Electrical, AC Repair, etc.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200, db_index=True)
    description = models.TextField(blank=True)
    process = models.TextField(blank=True, help_text="How the service is carried out")

    # Pricing information
    original_price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    discounted_price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    duration = models.CharField(max_length=50, help_text="Human readable duration, e.g. '2 hours'")

    image = models.URLField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self) -> str:
        return self.name


class Subservice(models.Model):
    """
    A specific billable unit under a parent Service.

    Example: "Tap Replacement" under "Plumbing".
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    service = models.ForeignKey(Service, on_delete=models.CASCADE, related_name='subservices')
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    process = models.TextField(blank=True)

    original_price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    discounted_price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    duration = models.CharField(max_length=50)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['service', 'name'], name='idx_subservice_service_name'),
        ]

    def __str__(self) -> str:
        return f"{self.service.name} - {self.name}"
