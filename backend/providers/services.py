"""
Service provider management: onboarding, document verification,
matching providers to bookings and keeping rating aggregates current.
"""
import logging

from django.conf import settings
from django.db import transaction
from django.db.models import Count, Q, Sum
from django.utils import timezone

from bookings.models import Booking
from bookings.services import BookingService
from common.db import get_object_or_none, translate_errors
from common.exceptions import ConflictError, NotFoundError, ValidationError
from common.pagination import paginate
from common.validators import ensure_allowed_fields, normalize_phone_number, parse_id_list
from services.services import CatalogService
from .models import RATING_VALUES, ProviderAvailability, ServiceProvider
from .storage import DocumentStorage

logger = logging.getLogger(__name__)

PROVIDER_FIELDS = (
    'name', 'email', 'phone_number', 'services', 'subservices',
    'street', 'city', 'state', 'pincode', 'country',
    'aadhaar_number', 'pan_number',
    'specializations', 'experience', 'experience_unit', 'qualification', 'commission',
    'notes', 'availability',
)
PROVIDER_REQUIRED_FIELDS = ('name', 'email', 'phone_number', 'aadhaar_number', 'pan_number')
PROVIDER_FILTERS = ('status', 'service', 'subservice', 'verification_status', 'search')

# upload field -> (storage prefix, key field, document type whose verification it invalidates)
DOCUMENT_FIELDS = {
    'aadhaar_image': ('aadhaarCard', 'aadhaar_image_key', 'aadhaarCard'),
    'pan_image': ('panCard', 'pan_image_key', 'panCard'),
    'passport_photo': ('passportPhoto', 'passport_photo_key', None),
}

# unique column -> conflict message
UNIQUE_FIELDS = {
    'phone_number': 'Phone number already registered',
    'email': 'Email already registered',
    'aadhaar_number': 'Aadhaar number already registered',
    'pan_number': 'PAN number already registered',
}


class ProviderService:
    """Service class for service provider operations."""

    @staticmethod
    def _load(provider_id, for_update=False):
        queryset = ServiceProvider.objects.all()
        if for_update:
            queryset = queryset.select_for_update()
        provider = get_object_or_none(queryset, provider_id)
        if provider is None:
            logger.warning("Service provider not found", extra={'provider_id': str(provider_id)})
            raise NotFoundError("Service provider not found")
        return provider

    @staticmethod
    def _check_unique(values, exclude_id=None):
        for field, message in UNIQUE_FIELDS.items():
            value = values.get(field)
            if not value:
                continue
            queryset = ServiceProvider.objects.filter(**{field: value})
            if exclude_id is not None:
                queryset = queryset.exclude(pk=exclude_id)
            if queryset.exists():
                raise ConflictError(message)

    @staticmethod
    def _validate_availability(rows):
        cleaned = []
        seen_days = set()
        for row in rows or []:
            day = row.get('day_of_week')
            if day not in range(7):
                raise ValidationError(f"Invalid day_of_week: {day}")
            if day in seen_days:
                raise ValidationError(f"Duplicate availability for day {day}")
            if not row.get('start_time') or not row.get('end_time'):
                raise ValidationError("Availability needs start_time and end_time")
            if row['start_time'] > row['end_time']:
                raise ValidationError("Availability start_time must not be after end_time")
            seen_days.add(day)
            cleaned.append({
                'day_of_week': day,
                'start_time': row['start_time'],
                'end_time': row['end_time'],
                'is_available': row.get('is_available', True),
            })
        return cleaned

    @staticmethod
    def _replace_availability(provider, rows):
        provider.availability.all().delete()
        ProviderAvailability.objects.bulk_create(
            [ProviderAvailability(provider=provider, **row) for row in rows]
        )

    @staticmethod
    def _upload_documents(documents):
        """Upload attached images; returns {upload field: (url, key)}."""
        if not documents:
            return {}
        storage = DocumentStorage()
        stored = {}
        try:
            for field, uploaded_file in documents.items():
                if field not in DOCUMENT_FIELDS:
                    raise ValidationError(f"Unknown document field: {field}")
                prefix = DOCUMENT_FIELDS[field][0]
                stored[field] = storage.upload(uploaded_file, prefix)
        except Exception:
            ProviderService._discard_uploads(stored)
            raise
        return stored

    @staticmethod
    def _discard_uploads(stored):
        if not stored:
            return
        storage = DocumentStorage()
        for _url, key in stored.values():
            storage.delete(key)

    @staticmethod
    @translate_errors('Failed to create service provider', conflict_message='Service provider already registered')
    def create_provider(provider_data, admin, documents=None):
        """
        Onboard a provider. New providers always start in verification_pending.

        Args:
            provider_data: Provider fields, optional services/subservices
                id lists and weekly availability rows
            admin: Creating admin
            documents: Optional {upload field: uploaded file}

        Raises:
            ValidationError: missing or malformed fields
            NotFoundError: unknown service or subservice
            ConflictError: phone, email, Aadhaar or PAN already registered
        """
        ensure_allowed_fields(provider_data, PROVIDER_FIELDS, 'service provider')
        logger.info("Creating service provider", extra={'admin_id': str(admin.id)})

        missing = [field for field in PROVIDER_REQUIRED_FIELDS if not provider_data.get(field)]
        if missing:
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}",
                errors={field: ['This field is required.'] for field in missing},
            )

        data = dict(provider_data)
        data['phone_number'] = normalize_phone_number(data['phone_number'])
        ProviderService._check_unique(data)

        service_ids = data.pop('services', None)
        subservice_ids = data.pop('subservices', None)
        services = CatalogService.require_services(service_ids) if service_ids else []
        subservices = CatalogService.require_subservices(subservice_ids) if subservice_ids else []
        availability = ProviderService._validate_availability(data.pop('availability', None))

        stored = ProviderService._upload_documents(documents)
        try:
            with transaction.atomic():
                provider = ServiceProvider(
                    **data,
                    created_by=admin,
                    status=ServiceProvider.Status.VERIFICATION_PENDING
                )
                for field, (url, key) in stored.items():
                    setattr(provider, field, url)
                    setattr(provider, DOCUMENT_FIELDS[field][1], key)
                provider.save()
                provider.services.set(services)
                provider.subservices.set(subservices)
                ProviderService._replace_availability(provider, availability)
        except Exception:
            ProviderService._discard_uploads(stored)
            raise

        logger.info("Service provider created", extra={'provider_id': str(provider.id), 'admin_id': str(admin.id)})
        return provider

    @staticmethod
    @translate_errors('Failed to fetch service providers')
    def get_all_providers(page, limit, filters=None):
        """
        Paginated provider listing.

        filters: status, service, subservice,
        verification_status ('verified' or 'pending'), search
        """
        filters = {key: value for key, value in (filters or {}).items() if value not in (None, '')}
        ensure_allowed_fields(filters, PROVIDER_FILTERS, 'provider filters')

        queryset = ServiceProvider.objects.prefetch_related('services', 'subservices')
        if 'status' in filters:
            if filters['status'] not in ServiceProvider.Status.values:
                raise ValidationError(f"Invalid status: {filters['status']}")
            queryset = queryset.filter(status=filters['status'])
        if 'service' in filters:
            queryset = queryset.filter(services__id=parse_id_list([filters['service']], 'service')[0])
        if 'subservice' in filters:
            queryset = queryset.filter(subservices__id=parse_id_list([filters['subservice']], 'subservice')[0])

        verification_status = filters.get('verification_status')
        if verification_status == 'verified':
            queryset = queryset.filter(aadhaar_verified=True, pan_verified=True)
        elif verification_status == 'pending':
            queryset = queryset.filter(Q(aadhaar_verified=False) | Q(pan_verified=False))
        elif verification_status is not None:
            raise ValidationError("verification_status must be 'verified' or 'pending'")

        search = filters.get('search')
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search) |
                Q(email__icontains=search) |
                Q(phone_number__icontains=search) |
                Q(aadhaar_number__icontains=search) |
                Q(pan_number__icontains=search)
            )

        return paginate(queryset.distinct(), page, limit)

    @staticmethod
    @translate_errors('Failed to fetch service provider')
    def get_provider(provider_id):
        return ProviderService._load(provider_id)

    @staticmethod
    @translate_errors('Failed to update service provider', conflict_message='Service provider already registered')
    def update_provider(provider_id, patch, admin, documents=None):
        """
        Update provider fields.

        Changing a document number (or replacing its image) clears that
        document's verified flag, which takes an active provider back to
        verification_pending.
        """
        ensure_allowed_fields(patch, PROVIDER_FIELDS, 'service provider update')
        if not patch and not documents:
            raise ValidationError("No valid fields to update")

        provider = ProviderService._load(provider_id)
        data = dict(patch)
        if 'phone_number' in data:
            data['phone_number'] = normalize_phone_number(data['phone_number'])

        changed = {field: data[field] for field in UNIQUE_FIELDS if field in data and data[field] != getattr(provider, field)}
        ProviderService._check_unique(changed, exclude_id=provider.id)

        services = subservices = availability = None
        if 'services' in data:
            service_ids = data.pop('services')
            services = CatalogService.require_services(service_ids) if service_ids else []
        if 'subservices' in data:
            subservice_ids = data.pop('subservices')
            subservices = CatalogService.require_subservices(subservice_ids) if subservice_ids else []
        if 'availability' in data:
            availability = ProviderService._validate_availability(data.pop('availability'))

        invalidated = set()
        if 'aadhaar_number' in changed:
            invalidated.add('aadhaarCard')
        if 'pan_number' in changed:
            invalidated.add('panCard')

        stored = ProviderService._upload_documents(documents)
        replaced_keys = []
        try:
            with transaction.atomic():
                for field, value in data.items():
                    setattr(provider, field, value)
                for field, (url, key) in stored.items():
                    _prefix, key_field, document_type = DOCUMENT_FIELDS[field]
                    if getattr(provider, key_field):
                        replaced_keys.append(getattr(provider, key_field))
                    setattr(provider, field, url)
                    setattr(provider, key_field, key)
                    if document_type:
                        invalidated.add(document_type)

                for document_type in invalidated:
                    provider.set_document_verified(document_type, False)
                if invalidated and provider.status in (ServiceProvider.Status.ACTIVE, ServiceProvider.Status.PENDING):
                    provider.status = ServiceProvider.Status.VERIFICATION_PENDING

                provider.save()
                if services is not None:
                    provider.services.set(services)
                if subservices is not None:
                    provider.subservices.set(subservices)
                if availability is not None:
                    ProviderService._replace_availability(provider, availability)
        except Exception:
            ProviderService._discard_uploads(stored)
            raise

        if replaced_keys:
            storage = DocumentStorage()
            for key in replaced_keys:
                storage.delete(key)

        logger.info("Service provider updated", extra={
            'provider_id': str(provider.id),
            'admin_id': str(admin.id),
            'fields': sorted(patch),
            'unverified_documents': sorted(invalidated),
        })
        return provider

    @staticmethod
    @translate_errors('Failed to delete service provider')
    def delete_provider(provider_id, admin):
        provider = ProviderService._load(provider_id)
        if provider.bookings.filter(status__in=Booking.ACTIVE_STATUSES).exists():
            raise ValidationError("Cannot delete service provider with active bookings")

        keys = [provider.aadhaar_image_key, provider.pan_image_key, provider.passport_photo_key]
        provider.delete()

        if any(keys):
            storage = DocumentStorage()
            for key in keys:
                storage.delete(key)

        logger.info("Service provider deleted", extra={'provider_id': str(provider_id), 'admin_id': str(admin.id)})
        return {'message': 'Service provider deleted successfully'}

    @staticmethod
    def _record_verification(provider, admin, notes):
        provider.refresh_verification_status()
        provider.verified_by = admin
        provider.verified_at = timezone.now()
        if notes:
            provider.notes = notes
        provider.save()

    @staticmethod
    @translate_errors('Failed to verify service provider')
    def verify_provider(provider_id, admin, verify_documents=None, notes=None):
        """
        Set document verification flags and recompute status.

        Args:
            verify_documents: {'aadhaarCard': bool, 'panCard': bool}, either key optional
        """
        verify_documents = verify_documents or {}
        ensure_allowed_fields(verify_documents, ServiceProvider.DOCUMENT_TYPES, 'document verification')

        with transaction.atomic():
            provider = ProviderService._load(provider_id, for_update=True)
            for document_type, verified in verify_documents.items():
                provider.set_document_verified(document_type, verified)
            ProviderService._record_verification(provider, admin, notes)

        logger.info("Service provider verified", extra={
            'provider_id': str(provider.id),
            'admin_id': str(admin.id),
            'status': provider.status,
        })
        return provider

    @staticmethod
    @translate_errors('Failed to verify service provider documents')
    def verify_document(provider_id, admin, document_type, verified, notes=None):
        if document_type not in ServiceProvider.DOCUMENT_TYPES:
            raise ValidationError('Invalid document type. Must be "aadhaarCard" or "panCard"')

        with transaction.atomic():
            provider = ProviderService._load(provider_id, for_update=True)
            provider.set_document_verified(document_type, verified)
            ProviderService._record_verification(provider, admin, notes)

        logger.info("Service provider document verified", extra={
            'provider_id': str(provider.id),
            'document_type': document_type,
            'verified': bool(verified),
            'status': provider.status,
        })
        return provider

    @staticmethod
    @translate_errors('Failed to suspend service provider')
    def suspend_provider(provider_id, admin, reason=None):
        provider = ProviderService._load(provider_id)
        provider.status = ServiceProvider.Status.SUSPENDED
        provider.suspension_reason = (reason or 'Suspended by admin')[:500]
        provider.suspended_at = timezone.now()
        provider.save(update_fields=['status', 'suspension_reason', 'suspended_at', 'updated_at'])
        logger.info("Service provider suspended", extra={'provider_id': str(provider.id), 'admin_id': str(admin.id)})
        return provider

    @staticmethod
    @translate_errors('Failed to find available service providers')
    def get_available_providers(criteria=None):
        """
        Candidate providers for a booking, best rated first.

        criteria may name a booking (its services, subservices, date and
        time are used) or give those values directly. With
        PROVIDER_MATCHING_FILTERS on, only active providers offering the
        requested services and subservices, and open at the requested
        weekday and time, are returned.
        """
        criteria = dict(criteria or {})
        if criteria.get('booking'):
            booking = BookingService.get_booking(criteria['booking'])
            criteria = {
                'services': [service.id for service in booking.services.all()],
                'subservices': [subservice.id for subservice in booking.subservices.all()],
                'date': booking.date,
                'time': booking.time,
            }

        queryset = ServiceProvider.objects.all()
        if settings.PROVIDER_MATCHING_FILTERS:
            queryset = queryset.filter(status=ServiceProvider.Status.ACTIVE)
            if criteria.get('services'):
                queryset = queryset.filter(services__id__in=parse_id_list(criteria['services'], 'service'))
            if criteria.get('subservices'):
                queryset = queryset.filter(subservices__id__in=parse_id_list(criteria['subservices'], 'subservice'))
            day, at = criteria.get('date'), criteria.get('time')
            if day and at:
                queryset = queryset.filter(
                    availability__day_of_week=day.weekday(),
                    availability__is_available=True,
                    availability__start_time__lte=at,
                    availability__end_time__gte=at,
                )
            queryset = queryset.distinct()

        providers = list(queryset.order_by('-average_rating', '-total_ratings', 'created_at'))
        logger.info("Available service providers found", extra={
            'count': len(providers),
            'matching_filters': settings.PROVIDER_MATCHING_FILTERS,
        })
        return providers

    @staticmethod
    @translate_errors('Failed to assign service provider')
    def assign_to_booking(provider_id, booking_id, admin):
        """
        Assign a provider to a booking. Reassignment overwrites the
        previous provider, assigned_at and assigned_by together.
        The booking status is left unchanged.
        """
        logger.info("Assigning service provider to booking", extra={
            'provider_id': str(provider_id),
            'booking_id': str(booking_id),
            'admin_id': str(admin.id),
        })
        provider = ProviderService._load(provider_id)
        booking = BookingService.get_booking(booking_id)

        if booking.is_terminal:
            raise ValidationError(f"Cannot assign a provider to a {booking.status} booking")

        if settings.PROVIDER_MATCHING_FILTERS:
            if provider.status != ServiceProvider.Status.ACTIVE:
                raise ValidationError("Service provider is not active")
            service_ids = [service.id for service in booking.services.all()]
            subservice_ids = [subservice.id for subservice in booking.subservices.all()]
            if not provider.can_handle(service_ids, subservice_ids):
                raise ValidationError("Service provider cannot handle the required services")
            if not provider.is_available_at(booking.date, booking.time):
                raise ValidationError("Service provider is not available at the specified time")

        with transaction.atomic():
            booking = BookingService.lock_booking(booking_id)
            if booking.is_terminal:
                raise ValidationError(f"Cannot assign a provider to a {booking.status} booking")
            booking.service_provider = provider
            booking.assigned_at = timezone.now()
            booking.assigned_by = admin
            booking.save(update_fields=['service_provider', 'assigned_at', 'assigned_by', 'updated_at'])

        logger.info("Service provider assigned", extra={'provider_id': str(provider.id), 'booking_id': str(booking.id)})
        return BookingService.get_booking(booking.id)

    @staticmethod
    @translate_errors('Failed to get service provider statistics')
    def get_provider_stats(provider_id):
        provider = ProviderService._load(provider_id)

        rows = provider.bookings.order_by().values('status').annotate(count=Count('id'))
        by_status = {row['status']: row['count'] for row in rows}

        earnings = provider.bookings.filter(status=Booking.Status.COMPLETED).aggregate(
            total_earnings=Sum('final_price'),
            total_bookings=Count('id'),
        )
        return {
            'provider': provider,
            'bookings': {
                'total': sum(by_status.values()),
                'by_status': by_status,
            },
            'earnings': {
                'total_earnings': earnings['total_earnings'] or 0,
                'total_bookings': earnings['total_bookings'],
            },
        }

    @staticmethod
    def apply_rating(provider_id, value):
        """
        Fold one approved rating into the provider aggregate.

        Runs in its own transaction with the provider row locked so that
        concurrent approvals do not lose updates.
        """
        if value not in RATING_VALUES:
            raise ValidationError("Rating must be between 1 and 5")

        with transaction.atomic():
            provider = ProviderService._load(provider_id, for_update=True)
            provider.apply_rating(value)
            provider.save(update_fields=['rating_distribution', 'total_ratings', 'average_rating', 'updated_at'])

        logger.info("Service provider rating updated", extra={
            'provider_id': str(provider.id),
            'rating': value,
            'average_rating': str(provider.average_rating),
        })
        return provider
