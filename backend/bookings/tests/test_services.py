import uuid
from datetime import date, time, timedelta
from decimal import Decimal
from unittest import mock

from django.test import TestCase, override_settings
from django.utils import timezone

from bookings.models import Booking, BookingStatusHistory
from bookings.services import BookingService
from common.exceptions import AuthorizationError, NotFoundError, ValidationError
from common.tests.factories import (
    future_date, make_address, make_admin, make_booking, make_client_user, make_provider, make_service,
    make_subservice
)


class BookingServiceTestCase(TestCase):

    def setUp(self):
        self.client_user = make_client_user()
        self.other_user = make_client_user()
        self.admin = make_admin()
        self.service = make_service()
        self.subservice = make_subservice(self.service)
        self.address = make_address(self.client_user)

    def booking_payload(self, **overrides):
        payload = {
            'services': [str(self.service.id)],
            'subservices': [str(self.subservice.id)],
            'address': str(self.address.id),
            'date': future_date().isoformat(),
            'time': '10:30',
            'final_price': '450.00',
        }
        payload.update(overrides)
        return payload

    def make_booking(self, **overrides):
        return make_booking(self.client_user, [self.service], [self.subservice], address=self.address, **overrides)


class CreateBookingTests(BookingServiceTestCase):

    def test_create_booking(self):
        booking = BookingService.create_booking(self.booking_payload(discount='50'), self.client_user)

        self.assertEqual(booking.status, Booking.Status.PENDING)
        self.assertEqual(booking.user, self.client_user)
        self.assertEqual(booking.discount, Decimal('50'))
        self.assertEqual(list(booking.services.all()), [self.service])
        self.assertEqual(list(booking.subservices.all()), [self.subservice])
        history = BookingStatusHistory.objects.get(booking=booking)
        self.assertEqual(history.new_status, Booking.Status.PENDING)

    def test_empty_services_is_a_validation_error(self):
        with self.assertRaises(ValidationError):
            BookingService.create_booking(self.booking_payload(services=[]), self.client_user)
        self.assertFalse(Booking.objects.exists())

    def test_unknown_subservice_is_not_found(self):
        with self.assertRaises(NotFoundError):
            BookingService.create_booking(self.booking_payload(subservices=[str(uuid.uuid4())]), self.client_user)

    def test_address_must_belong_to_caller(self):
        foreign = make_address(self.other_user)
        with self.assertRaises(NotFoundError):
            BookingService.create_booking(self.booking_payload(address=str(foreign.id)), self.client_user)

    def test_negative_price_is_rejected(self):
        with self.assertRaises(ValidationError):
            BookingService.create_booking(self.booking_payload(final_price='-1'), self.client_user)

    def test_status_cannot_be_supplied(self):
        with self.assertRaises(ValidationError):
            BookingService.create_booking(self.booking_payload(status='completed'), self.client_user)

    def test_missing_schedule_is_rejected(self):
        payload = self.booking_payload()
        del payload['date']
        with self.assertRaises(ValidationError):
            BookingService.create_booking(payload, self.client_user)


class StatusLifecycleTests(BookingServiceTestCase):

    def test_confirm_then_complete(self):
        booking = self.make_booking()

        BookingService.change_status(booking.id, Booking.Status.CONFIRMED, self.admin)
        booking = BookingService.change_status(booking.id, Booking.Status.COMPLETED, self.admin)

        self.assertEqual(booking.status, Booking.Status.COMPLETED)
        self.assertIsNotNone(booking.completed_at)
        transitions = list(
            BookingStatusHistory.objects.filter(booking=booking)
            .order_by('changed_at', 'id')
            .values_list('old_status', 'new_status')
        )
        self.assertEqual(transitions, [('pending', 'confirmed'), ('confirmed', 'completed')])

    def test_terminal_status_is_final(self):
        booking = self.make_booking(status=Booking.Status.COMPLETED)
        with self.assertRaises(ValidationError):
            BookingService.change_status(booking.id, Booking.Status.CANCELLED, self.admin)
        with self.assertRaises(ValidationError):
            BookingService.change_status(booking.id, Booking.Status.PENDING, self.admin)

    def test_confirmed_cannot_go_back_to_pending(self):
        booking = self.make_booking(status=Booking.Status.CONFIRMED)
        with self.assertRaises(ValidationError):
            BookingService.change_status(booking.id, Booking.Status.PENDING, self.admin)

    def test_unknown_status_is_rejected(self):
        booking = self.make_booking()
        with self.assertRaises(ValidationError):
            BookingService.change_status(booking.id, 'archived', self.admin)

    def test_admin_update_moves_status_through_state_machine(self):
        booking = self.make_booking(status=Booking.Status.CANCELLED)
        with self.assertRaises(ValidationError):
            BookingService.update_booking(booking.id, {'status': 'pending'}, self.admin, is_admin=True)


class CancelBookingTests(BookingServiceTestCase):

    def test_owner_cancels_with_reason(self):
        booking = self.make_booking(status=Booking.Status.CONFIRMED)

        booking = BookingService.cancel_booking(booking.id, self.client_user, 'Plans changed')

        self.assertEqual(booking.status, Booking.Status.CANCELLED)
        self.assertEqual(booking.cancellation_reason, 'Plans changed')
        self.assertIsNotNone(booking.cancelled_at)

    def test_non_owner_cannot_cancel(self):
        booking = self.make_booking()
        with self.assertRaises(AuthorizationError):
            BookingService.cancel_booking(booking.id, self.other_user)

    def test_cancelled_booking_cannot_be_cancelled_again(self):
        booking = self.make_booking(status=Booking.Status.CANCELLED)
        with self.assertRaises(ValidationError):
            BookingService.cancel_booking(booking.id, self.client_user)

    @override_settings(BOOKING_SMS_NOTIFICATIONS=True)
    @mock.patch('bookings.services.notify')
    def test_cancel_notifies_client_when_enabled(self, notify):
        booking = self.make_booking()
        BookingService.cancel_booking(booking.id, self.client_user)
        notify.assert_called_once()
        self.assertEqual(notify.call_args[0][0], self.client_user.phone_number)


class RescheduleBookingTests(BookingServiceTestCase):

    def test_reschedule_keeps_status(self):
        booking = self.make_booking(status=Booking.Status.CONFIRMED)
        new_date = future_date(14)

        booking = BookingService.reschedule_booking(booking.id, new_date.isoformat(), '15:00', self.client_user)

        booking.refresh_from_db()
        self.assertEqual(booking.date, new_date)
        self.assertEqual(booking.time, time(15, 0))
        self.assertEqual(booking.status, Booking.Status.CONFIRMED)

    def test_past_slot_is_rejected(self):
        booking = self.make_booking()
        yesterday = (date.today() - timedelta(days=1)).isoformat()
        with self.assertRaises(ValidationError):
            BookingService.reschedule_booking(booking.id, yesterday, '10:00', self.client_user)

    def test_non_owner_cannot_reschedule(self):
        booking = self.make_booking()
        with self.assertRaises(AuthorizationError):
            BookingService.reschedule_booking(booking.id, future_date().isoformat(), '10:00', self.other_user)

    def test_unparseable_date_is_rejected(self):
        booking = self.make_booking()
        with self.assertRaises(ValidationError):
            BookingService.reschedule_booking(booking.id, '2024-13-45', '10:00', self.client_user)

    def test_terminal_booking_cannot_be_rescheduled(self):
        booking = self.make_booking(status=Booking.Status.COMPLETED)
        with self.assertRaises(ValidationError):
            BookingService.reschedule_booking(booking.id, future_date().isoformat(), '10:00', self.client_user)


class UpdateAndDeleteTests(BookingServiceTestCase):

    def test_client_updates_pending_booking(self):
        booking = self.make_booking()
        booking = BookingService.update_booking(booking.id, {'time': '16:45'}, self.client_user)
        self.assertEqual(booking.time, time(16, 45))

    def test_client_cannot_update_confirmed_booking(self):
        booking = self.make_booking(status=Booking.Status.CONFIRMED)
        with self.assertRaises(ValidationError):
            BookingService.update_booking(booking.id, {'time': '16:45'}, self.client_user)

    def test_client_cannot_touch_pricing(self):
        booking = self.make_booking()
        with self.assertRaises(ValidationError):
            BookingService.update_booking(booking.id, {'final_price': '1'}, self.client_user)

    def test_admin_adjusts_pricing(self):
        booking = self.make_booking()
        booking = BookingService.update_booking(
            booking.id, {'discount': '25.50', 'final_price': '424.50'}, self.admin, is_admin=True
        )
        self.assertEqual(booking.discount, Decimal('25.50'))
        self.assertEqual(booking.final_price, Decimal('424.50'))

    def test_owner_cannot_delete_confirmed_booking(self):
        booking = self.make_booking(status=Booking.Status.CONFIRMED)
        with self.assertRaises(ValidationError):
            BookingService.delete_booking(booking.id, self.client_user)
        self.assertTrue(Booking.objects.filter(pk=booking.id).exists())

    def test_owner_deletes_pending_booking(self):
        booking = self.make_booking()
        BookingService.delete_booking(booking.id, self.client_user)
        self.assertFalse(Booking.objects.filter(pk=booking.id).exists())

    def test_admin_deletes_completed_booking(self):
        booking = self.make_booking(status=Booking.Status.COMPLETED)
        BookingService.delete_booking(booking.id, self.admin, is_admin=True)
        self.assertFalse(Booking.objects.filter(pk=booking.id).exists())

    def test_non_owner_cannot_delete(self):
        booking = self.make_booking()
        with self.assertRaises(AuthorizationError):
            BookingService.delete_booking(booking.id, self.other_user)

    def test_non_owner_gets_authorization_error_before_field_check(self):
        booking = self.make_booking()
        with self.assertRaises(AuthorizationError):
            BookingService.update_booking(booking.id, {'status': 'confirmed'}, self.other_user)

    def test_missing_booking_is_reported_before_field_check(self):
        with self.assertRaises(NotFoundError):
            BookingService.update_booking(uuid.uuid4(), {'status': 'confirmed'}, self.client_user)


class StaleReadTests(BookingServiceTestCase):
    """Writes re-read the booking row under lock instead of trusting an earlier read."""

    def setUp(self):
        super().setUp()
        self.booking = self.make_booking()
        self.stale = BookingService._load(self.booking.id)

    def test_status_change_keeps_assignment_committed_after_read(self):
        provider = make_provider(services=[self.service], subservices=[self.subservice])
        Booking.objects.filter(pk=self.booking.id).update(
            service_provider=provider, assigned_at=timezone.now(), assigned_by=self.admin
        )

        with mock.patch.object(BookingService, '_load', return_value=self.stale):
            BookingService.change_status(self.booking.id, Booking.Status.CONFIRMED, self.admin)

        booking = Booking.objects.get(pk=self.booking.id)
        self.assertEqual(booking.status, Booking.Status.CONFIRMED)
        self.assertEqual(booking.service_provider, provider)
        self.assertIsNotNone(booking.assigned_at)

    def test_cancel_after_completion_is_rejected(self):
        Booking.objects.filter(pk=self.booking.id).update(status=Booking.Status.COMPLETED)

        with mock.patch.object(BookingService, '_load', return_value=self.stale):
            with self.assertRaises(ValidationError):
                BookingService.cancel_booking(self.booking.id, self.client_user, 'Too late')

        booking = Booking.objects.get(pk=self.booking.id)
        self.assertEqual(booking.status, Booking.Status.COMPLETED)
        self.assertEqual(booking.cancellation_reason, '')

    def test_client_update_after_confirmation_is_rejected(self):
        Booking.objects.filter(pk=self.booking.id).update(status=Booking.Status.CONFIRMED)

        with mock.patch.object(BookingService, '_load', return_value=self.stale):
            with self.assertRaises(ValidationError):
                BookingService.update_booking(self.booking.id, {'time': '16:45'}, self.client_user)

        self.assertEqual(Booking.objects.get(pk=self.booking.id).time, time(10, 0))

    def test_price_update_leaves_status_alone(self):
        Booking.objects.filter(pk=self.booking.id).update(status=Booking.Status.CONFIRMED)

        with mock.patch.object(BookingService, '_load', return_value=self.stale):
            BookingService.update_booking(self.booking.id, {'final_price': '400'}, self.admin, is_admin=True)

        booking = Booking.objects.get(pk=self.booking.id)
        self.assertEqual(booking.status, Booking.Status.CONFIRMED)
        self.assertEqual(booking.final_price, Decimal('400'))


class BookingQueryTests(BookingServiceTestCase):

    def test_user_bookings_are_scoped_and_filtered(self):
        self.make_booking()
        self.make_booking(status=Booking.Status.CANCELLED)
        make_booking(self.other_user, [self.service], [self.subservice])

        everything = BookingService.get_user_bookings(self.client_user, 1, 10)
        cancelled = BookingService.get_user_bookings(self.client_user, 1, 10, status='cancelled')

        self.assertEqual(everything['pagination']['total'], 2)
        self.assertEqual(cancelled['pagination']['total'], 1)

    def test_get_user_booking_hides_other_clients(self):
        booking = make_booking(self.other_user, [self.service], [self.subservice])
        with self.assertRaises(NotFoundError):
            BookingService.get_user_booking(self.client_user, booking.id)

    def test_bookings_by_subservice(self):
        booking = self.make_booking()
        other_subservice = make_subservice(self.service)
        make_booking(self.client_user, [self.service], [other_subservice])

        self.assertEqual(BookingService.get_bookings_by_subservice(self.subservice.id), [booking])
        self.assertEqual(len(BookingService.get_bookings_by_service(self.service.id)), 2)

    def test_invalid_status_filter(self):
        with self.assertRaises(ValidationError):
            BookingService.get_all_bookings(1, 10, status='archived')

    def test_history_is_owner_only(self):
        booking = self.make_booking()
        with self.assertRaises(AuthorizationError):
            BookingService.get_status_history(booking.id, self.other_user)
        self.assertEqual(BookingService.get_status_history(booking.id, self.admin, is_admin=True), [])
