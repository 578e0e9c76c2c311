"""
Booking service layer.

Owns the booking status lifecycle, ownership checks and scheduling rules.
Views stay thin and call into BookingService; every status change goes
through the transition table on the Booking model and is recorded in
BookingStatusHistory.
"""
import logging
from datetime import date as date_type, datetime, time as time_type
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.db import transaction
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_time

from accounts.models import Address
from common.db import get_object_or_none, translate_errors
from common.exceptions import AuthorizationError, NotFoundError, ValidationError
from common.pagination import paginate
from common.sms import notify
from common.validators import ensure_allowed_fields, parse_id_list
from services.services import CatalogService
from .models import Booking, BookingStatusHistory

logger = logging.getLogger(__name__)

CREATE_FIELDS = ('services', 'subservices', 'address', 'date', 'time', 'discount', 'final_price')
CLIENT_UPDATE_FIELDS = ('services', 'subservices', 'address', 'date', 'time')
ADMIN_UPDATE_FIELDS = CLIENT_UPDATE_FIELDS + ('status', 'discount', 'final_price')


def _parse_date(value):
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date_type):
        return value
    try:
        parsed = parse_date(str(value))
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValidationError(f"Invalid date: {value}")
    return parsed


def _parse_time(value):
    if isinstance(value, time_type):
        return value
    try:
        parsed = parse_time(str(value))
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValidationError(f"Invalid time: {value}")
    return parsed


def _parse_amount(value, field):
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not amount.is_finite() or amount < 0:
        raise ValidationError(f"{field} must be greater than or equal to 0")
    return amount


def _is_in_past(day, at):
    scheduled = datetime.combine(day, at)
    if settings.USE_TZ:
        scheduled = timezone.make_aware(scheduled)
    return scheduled < timezone.now()


class BookingService:
    """Service class for booking operations."""

    @staticmethod
    def _queryset():
        return (
            Booking.objects
            .select_related('user', 'address', 'service_provider', 'assigned_by')
            .prefetch_related('services', 'subservices')
        )

    @staticmethod
    def _load(booking_id):
        booking = get_object_or_none(BookingService._queryset(), booking_id)
        if booking is None:
            logger.warning("Booking not found", extra={'booking_id': str(booking_id)})
            raise NotFoundError("Booking not found")
        return booking

    @staticmethod
    def lock_booking(booking_id):
        """Re-read the booking row with select_for_update; call inside transaction.atomic()."""
        booking = get_object_or_none(Booking.objects.select_for_update(), booking_id)
        if booking is None:
            raise NotFoundError("Booking not found")
        return booking

    @staticmethod
    def _require_owner(booking, user, action):
        if booking.user_id != user.id:
            logger.warning("Booking ownership check failed", extra={
                'booking_id': str(booking.id),
                'user_id': str(user.id),
                'action': action,
            })
            raise AuthorizationError(f"You can only {action} your own bookings")

    @staticmethod
    def _require_address(address_id, owner):
        address = get_object_or_none(Address.objects.filter(user=owner), address_id)
        if address is None:
            raise NotFoundError("Address not found")
        return address

    @staticmethod
    def _apply_transition(booking, new_status, changed_by, reason=''):
        """
        Move a booking to new_status in memory and record the history row.

        Returns the model fields that changed, for save(update_fields=...).
        """
        if new_status not in Booking.Status.values:
            raise ValidationError(f"Invalid status: {new_status}")
        if not booking.can_transition_to(new_status):
            raise ValidationError(f"Cannot change booking status from {booking.status} to {new_status}")

        old_status = booking.status
        now = timezone.now()
        booking.status = new_status
        changed = ['status']
        if new_status == Booking.Status.COMPLETED:
            booking.completed_at = now
            changed.append('completed_at')
        elif new_status == Booking.Status.CANCELLED:
            booking.cancelled_at = now
            booking.cancellation_reason = reason or ''
            changed += ['cancelled_at', 'cancellation_reason']

        BookingStatusHistory.objects.create(
            booking=booking,
            old_status=old_status,
            new_status=new_status,
            changed_by=changed_by,
            reason=reason or ''
        )
        logger.info("Booking status changed", extra={
            'booking_id': str(booking.id),
            'old_status': old_status,
            'new_status': new_status,
        })
        return changed

    @staticmethod
    def _notify_client(booking, message_body):
        if not settings.BOOKING_SMS_NOTIFICATIONS:
            return False
        return notify(booking.user.phone_number, message_body)

    @staticmethod
    @translate_errors('Failed to create booking')
    def create_booking(booking_data, user):
        """
        Create a pending booking for the caller.

        Args:
            booking_data: services, subservices, address, date, time,
                final_price and optional discount
            user: Owning client

        Raises:
            ValidationError: empty or malformed id lists, bad schedule or amounts
            NotFoundError: unknown service, subservice or address
        """
        ensure_allowed_fields(booking_data, CREATE_FIELDS, 'booking')
        logger.info("Creating booking", extra={'user_id': str(user.id)})

        missing = [field for field in ('address', 'date', 'time', 'final_price') if booking_data.get(field) in (None, '')]
        if missing:
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}",
                errors={field: ['This field is required.'] for field in missing},
            )

        services = CatalogService.require_services(booking_data.get('services'))
        subservices = CatalogService.require_subservices(booking_data.get('subservices'))
        address = BookingService._require_address(booking_data['address'], user)
        booking_date = _parse_date(booking_data['date'])
        booking_time = _parse_time(booking_data['time'])
        final_price = _parse_amount(booking_data['final_price'], 'final_price')
        discount = _parse_amount(booking_data.get('discount') or 0, 'discount')

        with transaction.atomic():
            booking = Booking.objects.create(
                user=user,
                address=address,
                date=booking_date,
                time=booking_time,
                discount=discount,
                final_price=final_price,
                status=Booking.Status.PENDING
            )
            booking.services.set(services)
            booking.subservices.set(subservices)
            BookingStatusHistory.objects.create(
                booking=booking,
                old_status='',
                new_status=Booking.Status.PENDING,
                changed_by=user,
                reason='Booking created'
            )

        logger.info("Booking created", extra={'booking_id': str(booking.id), 'user_id': str(user.id)})
        return BookingService._load(booking.id)

    @staticmethod
    @translate_errors('Failed to update booking')
    def update_booking(booking_id, patch, user, is_admin=False):
        """
        Apply a patch to a booking.

        Clients may only edit their own pending bookings and only the
        scheduling/contents fields; admins may also move the status and
        adjust pricing.
        """
        booking = BookingService._load(booking_id)
        if not is_admin:
            BookingService._require_owner(booking, user, 'update')
        ensure_allowed_fields(patch, ADMIN_UPDATE_FIELDS if is_admin else CLIENT_UPDATE_FIELDS, 'booking update')
        if not patch:
            raise ValidationError("No valid fields to update")

        services = CatalogService.require_services(patch['services']) if 'services' in patch else None
        subservices = CatalogService.require_subservices(patch['subservices']) if 'subservices' in patch else None
        changes = {}
        if 'address' in patch:
            changes['address'] = BookingService._require_address(patch['address'], booking.user)
        if 'date' in patch:
            changes['date'] = _parse_date(patch['date'])
        if 'time' in patch:
            changes['time'] = _parse_time(patch['time'])
        if 'discount' in patch:
            changes['discount'] = _parse_amount(patch['discount'], 'discount')
        if 'final_price' in patch:
            changes['final_price'] = _parse_amount(patch['final_price'], 'final_price')

        with transaction.atomic():
            booking = BookingService.lock_booking(booking_id)
            if not is_admin and booking.status != Booking.Status.PENDING:
                raise ValidationError("Only pending bookings can be updated")
            for field, value in changes.items():
                setattr(booking, field, value)
            update_fields = list(changes)
            if 'status' in patch and patch['status'] != booking.status:
                update_fields += BookingService._apply_transition(booking, patch['status'], user, 'Updated by admin')
            if update_fields:
                booking.save(update_fields=update_fields + ['updated_at'])
            if services is not None:
                booking.services.set(services)
            if subservices is not None:
                booking.subservices.set(subservices)

        logger.info("Booking updated", extra={
            'booking_id': str(booking.id),
            'fields': sorted(patch),
            'by_admin': is_admin,
        })
        return BookingService._load(booking.id)

    @staticmethod
    @translate_errors('Failed to reschedule booking')
    def reschedule_booking(booking_id, new_date, new_time, user):
        """
        Move a booking to a new date and time. Status is left unchanged.

        Raises:
            ValidationError: missing/unparseable values, a past slot or a terminal booking
            AuthorizationError: caller does not own the booking
        """
        if not new_date or not new_time:
            raise ValidationError("New date and time are required")
        booking_date = _parse_date(new_date)
        booking_time = _parse_time(new_time)

        booking = BookingService._load(booking_id)
        BookingService._require_owner(booking, user, 'reschedule')
        if _is_in_past(booking_date, booking_time):
            raise ValidationError("Cannot reschedule to a past date and time")

        with transaction.atomic():
            booking = BookingService.lock_booking(booking_id)
            if booking.is_terminal:
                raise ValidationError(f"Cannot reschedule a {booking.status} booking")
            booking.date = booking_date
            booking.time = booking_time
            booking.save(update_fields=['date', 'time', 'updated_at'])

        logger.info("Booking rescheduled", extra={
            'booking_id': str(booking.id),
            'date': booking_date.isoformat(),
            'time': booking_time.isoformat(),
        })
        BookingService._notify_client(
            booking,
            f"Your booking has been rescheduled to {booking_date.isoformat()} at {booking_time.strftime('%H:%M')}."
        )
        return BookingService._load(booking.id)

    @staticmethod
    @translate_errors('Failed to cancel booking')
    def cancel_booking(booking_id, user, reason=''):
        booking = BookingService._load(booking_id)
        BookingService._require_owner(booking, user, 'cancel')

        with transaction.atomic():
            booking = BookingService.lock_booking(booking_id)
            if booking.is_terminal:
                raise ValidationError(f"Booking is already {booking.status}")
            changed = BookingService._apply_transition(booking, Booking.Status.CANCELLED, user, reason)
            booking.save(update_fields=changed + ['updated_at'])

        booking = BookingService._load(booking_id)
        BookingService._notify_client(booking, "Your booking has been cancelled.")
        return booking

    @staticmethod
    @translate_errors('Failed to change booking status')
    def change_status(booking_id, new_status, admin, reason=''):
        """Admin status transition through the state machine."""
        with transaction.atomic():
            booking = BookingService.lock_booking(booking_id)
            changed = BookingService._apply_transition(booking, new_status, admin, reason)
            booking.save(update_fields=changed + ['updated_at'])
        return BookingService._load(booking_id)

    @staticmethod
    @translate_errors('Failed to delete booking')
    def delete_booking(booking_id, user, is_admin=False):
        """
        Hard-delete a booking.

        Admins may delete any booking; owners may not delete a booking
        that is confirmed or completed. Bookings with ratings are kept
        because the provider aggregate already counts them.
        """
        booking = BookingService._load(booking_id)
        if not is_admin:
            BookingService._require_owner(booking, user, 'delete')
            if booking.status in (Booking.Status.CONFIRMED, Booking.Status.COMPLETED):
                raise ValidationError(f"Cannot delete a {booking.status} booking")
        if booking.ratings.exists():
            raise ValidationError("Cannot delete a booking that has ratings")

        booking.delete()
        logger.info("Booking deleted", extra={'booking_id': str(booking_id), 'by_admin': is_admin})
        return {'message': 'Booking deleted successfully'}

    @staticmethod
    @translate_errors('Failed to fetch bookings')
    def get_all_bookings(page, limit, status=None):
        queryset = BookingService._queryset()
        if status:
            if status not in Booking.Status.values:
                raise ValidationError(f"Invalid status: {status}")
            queryset = queryset.filter(status=status)
        return paginate(queryset, page, limit)

    @staticmethod
    @translate_errors('Failed to fetch booking')
    def get_booking(booking_id):
        return BookingService._load(booking_id)

    @staticmethod
    @translate_errors('Failed to fetch bookings')
    def get_user_bookings(user, page, limit, status=None):
        queryset = BookingService._queryset().filter(user=user)
        if status:
            if status not in Booking.Status.values:
                raise ValidationError(f"Invalid status: {status}")
            queryset = queryset.filter(status=status)
        return paginate(queryset, page, limit)

    @staticmethod
    @translate_errors('Failed to fetch booking')
    def get_user_booking(user, booking_id):
        booking = get_object_or_none(BookingService._queryset().filter(user=user), booking_id)
        if booking is None:
            raise NotFoundError("Booking not found")
        return booking

    @staticmethod
    @translate_errors('Failed to fetch bookings')
    def get_bookings_by_service(service_id):
        service_pk = parse_id_list([service_id], 'service')[0]
        return list(BookingService._queryset().filter(services__id=service_pk).distinct())

    @staticmethod
    @translate_errors('Failed to fetch bookings')
    def get_bookings_by_subservice(subservice_id):
        subservice_pk = parse_id_list([subservice_id], 'subservice')[0]
        return list(BookingService._queryset().filter(subservices__id=subservice_pk).distinct())

    @staticmethod
    @translate_errors('Failed to fetch booking history')
    def get_status_history(booking_id, user, is_admin=False):
        booking = BookingService._load(booking_id)
        if not is_admin:
            BookingService._require_owner(booking, user, 'view')
        return list(booking.status_history.select_related('changed_by'))
