"""
Small model builders shared by the app test suites.
"""
import itertools
from datetime import date, time, timedelta
from decimal import Decimal

from rest_framework.test import APIClient

from accounts.models import Address, User
from bookings.models import Booking
from providers.models import ProviderAvailability, ServiceProvider
from services.models import Service, Subservice

_sequence = itertools.count(1)


def next_id():
    return next(_sequence)


def make_client_user(**overrides):
    n = next_id()
    values = {
        'username': f'client{n}',
        'phone_number': f'9{n:09d}',
        'name': f'Client {n}',
        'role': User.Role.CLIENT,
    }
    values.update(overrides)
    return User.objects.create_user(**values)


def make_admin(**overrides):
    n = next_id()
    values = {
        'username': f'admin{n}@example.com',
        'email': f'admin{n}@example.com',
        'password': 'secret-pass',
        'name': f'Admin {n}',
        'role': User.Role.ADMIN,
        'is_staff': True,
    }
    values.update(overrides)
    return User.objects.create_user(**values)


def make_address(user, **overrides):
    values = {
        'street': '12 MG Road',
        'city': 'Bengaluru',
        'state': 'Karnataka',
        'zip_code': '560001',
    }
    values.update(overrides)
    return Address.objects.create(user=user, **values)


def make_service(**overrides):
    values = {
        'name': f'Plumbing {next_id()}',
        'original_price': Decimal('500.00'),
        'discounted_price': Decimal('450.00'),
        'duration': '1 hour',
    }
    values.update(overrides)
    return Service.objects.create(**values)


def make_subservice(service, **overrides):
    values = {
        'name': f'Tap Replacement {next_id()}',
        'original_price': Decimal('200.00'),
        'discounted_price': Decimal('180.00'),
        'duration': '30 minutes',
    }
    values.update(overrides)
    return Subservice.objects.create(service=service, **values)


def make_provider(services=(), subservices=(), availability=None, **overrides):
    """
    Build a provider. availability is a list of (day_of_week, start, end)
    tuples; by default the provider works every day from 09:00 to 18:00.
    """
    n = next_id()
    values = {
        'name': f'Provider {n}',
        'email': f'provider{n}@example.com',
        'phone_number': f'8{n:09d}',
        'aadhaar_number': f'{n:012d}',
        'pan_number': f'ABCDE{n:04d}F',
        'status': ServiceProvider.Status.ACTIVE,
        'aadhaar_verified': True,
        'pan_verified': True,
    }
    values.update(overrides)
    provider = ServiceProvider.objects.create(**values)
    provider.services.set(services)
    provider.subservices.set(subservices)
    if availability is None:
        availability = [(day, time(9, 0), time(18, 0)) for day in range(7)]
    for day, start, end in availability:
        ProviderAvailability.objects.create(provider=provider, day_of_week=day, start_time=start, end_time=end)
    return provider


def future_date(days=7):
    return date.today() + timedelta(days=days)


def make_booking(user, services, subservices, address=None, **overrides):
    values = {
        'address': address or make_address(user),
        'date': future_date(),
        'time': time(10, 0),
        'final_price': Decimal('450.00'),
    }
    values.update(overrides)
    booking = Booking.objects.create(user=user, **values)
    booking.services.set(services)
    booking.subservices.set(subservices)
    return booking


def api_client_for(user):
    client = APIClient()
    if user is not None:
        client.force_authenticate(user=user)
    return client
