import uuid
from datetime import time
from decimal import Decimal
from unittest import mock

from botocore.exceptions import ClientError
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings

from bookings.models import Booking
from common.exceptions import ConflictError, ExternalServiceError, NotFoundError, ValidationError
from common.tests.factories import (
    future_date, make_admin, make_booking, make_client_user, make_provider, make_service, make_subservice
)
from providers.models import ServiceProvider, average_from_distribution
from providers.services import ProviderService
from providers.storage import MAX_FILE_SIZE, DocumentStorage


def png(name='doc.png', size=16):
    return SimpleUploadedFile(name, b'\x89PNG' + b'0' * size, content_type='image/png')


class ProviderServiceTestCase(TestCase):

    def setUp(self):
        self.admin = make_admin()
        self.client_user = make_client_user()
        self.service = make_service()
        self.subservice = make_subservice(self.service)

    def provider_payload(self, **overrides):
        payload = {
            'name': 'Ravi Kumar',
            'email': 'ravi@example.com',
            'phone_number': '9123456780',
            'aadhaar_number': '123412341234',
            'pan_number': 'ABCDE1234F',
            'services': [str(self.service.id)],
            'subservices': [str(self.subservice.id)],
            'availability': [
                {'day_of_week': 0, 'start_time': time(9, 0), 'end_time': time(17, 0)},
            ],
        }
        payload.update(overrides)
        return payload


class CreateProviderTests(ProviderServiceTestCase):

    def test_new_provider_awaits_verification(self):
        provider = ProviderService.create_provider(self.provider_payload(), self.admin)

        self.assertEqual(provider.status, ServiceProvider.Status.VERIFICATION_PENDING)
        self.assertFalse(provider.aadhaar_verified)
        self.assertEqual(provider.created_by, self.admin)
        self.assertEqual(list(provider.services.all()), [self.service])
        self.assertEqual(provider.availability.count(), 1)

    def test_duplicate_phone_number_conflicts(self):
        ProviderService.create_provider(self.provider_payload(), self.admin)
        with self.assertRaises(ConflictError):
            ProviderService.create_provider(self.provider_payload(
                email='other@example.com', aadhaar_number='999988887777', pan_number='ZZZZZ9999Z'
            ), self.admin)

    def test_missing_required_field(self):
        payload = self.provider_payload()
        del payload['pan_number']
        with self.assertRaises(ValidationError):
            ProviderService.create_provider(payload, self.admin)

    def test_status_cannot_be_set_on_create(self):
        with self.assertRaises(ValidationError):
            ProviderService.create_provider(self.provider_payload(status='active'), self.admin)

    def test_inverted_availability_window(self):
        payload = self.provider_payload(availability=[
            {'day_of_week': 1, 'start_time': time(18, 0), 'end_time': time(9, 0)},
        ])
        with self.assertRaises(ValidationError):
            ProviderService.create_provider(payload, self.admin)

    @mock.patch('providers.services.DocumentStorage')
    def test_documents_are_uploaded(self, storage_class):
        storage_class.return_value.upload.side_effect = [
            ('https://bucket/aadhaarCard/a.png', 'aadhaarCard/a.png'),
        ]

        provider = ProviderService.create_provider(
            self.provider_payload(), self.admin, documents={'aadhaar_image': png()}
        )

        self.assertEqual(provider.aadhaar_image, 'https://bucket/aadhaarCard/a.png')
        self.assertEqual(provider.aadhaar_image_key, 'aadhaarCard/a.png')

    @mock.patch('providers.services.DocumentStorage')
    def test_conflict_is_detected_before_upload(self, storage_class):
        ProviderService.create_provider(self.provider_payload(), self.admin)
        storage_class.return_value.upload.return_value = ('https://bucket/panCard/p.png', 'panCard/p.png')

        with self.assertRaises(ConflictError):
            ProviderService.create_provider(self.provider_payload(
                phone_number='9000000001', aadhaar_number='111122223333', pan_number='PQRSX1234Y'
            ), self.admin, documents={'pan_image': png()})

        storage_class.return_value.upload.assert_not_called()


class VerificationTests(ProviderServiceTestCase):

    def setUp(self):
        super().setUp()
        self.provider = ProviderService.create_provider(self.provider_payload(), self.admin)

    def test_both_documents_verified_activates(self):
        provider = ProviderService.verify_provider(
            self.provider.id, self.admin, verify_documents={'aadhaarCard': True, 'panCard': True}, notes='All good'
        )
        self.assertEqual(provider.status, ServiceProvider.Status.ACTIVE)
        self.assertEqual(provider.verified_by, self.admin)
        self.assertIsNotNone(provider.verified_at)
        self.assertEqual(provider.notes, 'All good')

    def test_one_document_keeps_verification_pending(self):
        provider = ProviderService.verify_provider(self.provider.id, self.admin, verify_documents={'aadhaarCard': True})
        self.assertTrue(provider.aadhaar_verified)
        self.assertEqual(provider.status, ServiceProvider.Status.VERIFICATION_PENDING)

    def test_verify_single_document(self):
        ProviderService.verify_document(self.provider.id, self.admin, 'panCard', True)
        provider = ProviderService.verify_document(self.provider.id, self.admin, 'aadhaarCard', True)
        self.assertEqual(provider.status, ServiceProvider.Status.ACTIVE)

    def test_invalid_document_type(self):
        with self.assertRaises(ValidationError):
            ProviderService.verify_document(self.provider.id, self.admin, 'passport', True)

    def test_aadhaar_change_reverts_active_provider(self):
        ProviderService.verify_provider(self.provider.id, self.admin, {'aadhaarCard': True, 'panCard': True})

        provider = ProviderService.update_provider(self.provider.id, {'aadhaar_number': '555566667777'}, self.admin)

        self.assertFalse(provider.aadhaar_verified)
        self.assertTrue(provider.pan_verified)
        self.assertEqual(provider.status, ServiceProvider.Status.VERIFICATION_PENDING)

    def test_unchanged_number_keeps_verification(self):
        ProviderService.verify_provider(self.provider.id, self.admin, {'aadhaarCard': True, 'panCard': True})

        provider = ProviderService.update_provider(
            self.provider.id, {'aadhaar_number': '123412341234', 'name': 'Ravi K'}, self.admin
        )

        self.assertTrue(provider.aadhaar_verified)
        self.assertEqual(provider.status, ServiceProvider.Status.ACTIVE)

    def test_suspension_keeps_verification_notes(self):
        ProviderService.verify_provider(
            self.provider.id, self.admin, {'aadhaarCard': True, 'panCard': True}, notes='Documents checked in person'
        )

        provider = ProviderService.suspend_provider(self.provider.id, self.admin, 'Repeated no-shows')

        self.assertEqual(provider.status, ServiceProvider.Status.SUSPENDED)
        self.assertEqual(provider.suspension_reason, 'Repeated no-shows')
        self.assertIsNotNone(provider.suspended_at)
        provider.refresh_from_db()
        self.assertEqual(provider.notes, 'Documents checked in person')

    def test_suspended_provider_stays_suspended_after_number_change(self):
        ProviderService.suspend_provider(self.provider.id, self.admin, 'Complaints')
        provider = ProviderService.update_provider(self.provider.id, {'pan_number': 'NEWPN1234Q'}, self.admin)
        self.assertEqual(provider.status, ServiceProvider.Status.SUSPENDED)

    @mock.patch('providers.services.DocumentStorage')
    def test_image_replacement_unverifies_and_deletes_old_object(self, storage_class):
        ServiceProvider.objects.filter(pk=self.provider.id).update(
            aadhaar_image_key='aadhaarCard/old.png', aadhaar_verified=True, pan_verified=True,
            status=ServiceProvider.Status.ACTIVE
        )
        storage_class.return_value.upload.return_value = ('https://bucket/aadhaarCard/new.png', 'aadhaarCard/new.png')

        provider = ProviderService.update_provider(self.provider.id, {}, self.admin, documents={'aadhaar_image': png()})

        self.assertEqual(provider.aadhaar_image_key, 'aadhaarCard/new.png')
        self.assertFalse(provider.aadhaar_verified)
        self.assertEqual(provider.status, ServiceProvider.Status.VERIFICATION_PENDING)
        storage_class.return_value.delete.assert_called_once_with('aadhaarCard/old.png')


class ProviderLifecycleTests(ProviderServiceTestCase):

    def test_cannot_delete_provider_with_confirmed_booking(self):
        provider = make_provider(services=[self.service], subservices=[self.subservice])
        make_booking(
            self.client_user, [self.service], [self.subservice],
            service_provider=provider, status=Booking.Status.CONFIRMED
        )
        with self.assertRaises(ValidationError):
            ProviderService.delete_provider(provider.id, self.admin)
        self.assertTrue(ServiceProvider.objects.filter(pk=provider.id).exists())

    def test_delete_provider_with_only_completed_bookings(self):
        provider = make_provider()
        booking = make_booking(
            self.client_user, [self.service], [self.subservice],
            service_provider=provider, status=Booking.Status.COMPLETED
        )
        ProviderService.delete_provider(provider.id, self.admin)

        booking.refresh_from_db()
        self.assertIsNone(booking.service_provider)

    def test_unknown_provider(self):
        with self.assertRaises(NotFoundError):
            ProviderService.get_provider(uuid.uuid4())

    def test_list_filters(self):
        make_provider(name='Active One', services=[self.service])
        make_provider(name='Pending One', status=ServiceProvider.Status.VERIFICATION_PENDING, pan_verified=False)

        active = ProviderService.get_all_providers(1, 10, {'status': 'active'})
        pending = ProviderService.get_all_providers(1, 10, {'verification_status': 'pending'})
        by_service = ProviderService.get_all_providers(1, 10, {'service': str(self.service.id)})
        search = ProviderService.get_all_providers(1, 10, {'search': 'pending one'})

        self.assertEqual([p.name for p in active['items']], ['Active One'])
        self.assertEqual([p.name for p in pending['items']], ['Pending One'])
        self.assertEqual([p.name for p in by_service['items']], ['Active One'])
        self.assertEqual(search['pagination']['total'], 1)

    def test_stats(self):
        provider = make_provider()
        for status, price in ((Booking.Status.COMPLETED, '400'), (Booking.Status.COMPLETED, '600'),
                              (Booking.Status.CANCELLED, '100')):
            make_booking(
                self.client_user, [self.service], [self.subservice],
                service_provider=provider, status=status, final_price=Decimal(price)
            )

        stats = ProviderService.get_provider_stats(provider.id)

        self.assertEqual(stats['bookings']['total'], 3)
        self.assertEqual(stats['bookings']['by_status'], {'completed': 2, 'cancelled': 1})
        self.assertEqual(stats['earnings']['total_earnings'], Decimal('1000'))
        self.assertEqual(stats['earnings']['total_bookings'], 2)


class MatchingAndAssignmentTests(ProviderServiceTestCase):

    def setUp(self):
        super().setUp()
        self.booking = make_booking(
            self.client_user, [self.service], [self.subservice], date=future_date(), time=time(10, 0)
        )
        self.weekday = self.booking.date.weekday()

    def test_available_providers_are_filtered_and_ranked(self):
        good = make_provider(services=[self.service], subservices=[self.subservice], average_rating=Decimal('4.20'))
        best = make_provider(services=[self.service], subservices=[self.subservice], average_rating=Decimal('4.80'))
        make_provider(services=[self.service], subservices=[])
        make_provider(services=[self.service], subservices=[self.subservice], status=ServiceProvider.Status.SUSPENDED)
        make_provider(
            services=[self.service], subservices=[self.subservice],
            availability=[(self.weekday, time(12, 0), time(18, 0))]
        )

        providers = ProviderService.get_available_providers({'booking': self.booking.id})

        self.assertEqual(providers, [best, good])

    def test_window_bounds_are_inclusive(self):
        provider = make_provider(
            services=[self.service], subservices=[self.subservice],
            availability=[(self.weekday, time(10, 0), time(12, 0))]
        )
        self.assertTrue(provider.is_available_at(self.booking.date, time(10, 0)))
        self.assertTrue(provider.is_available_at(self.booking.date, time(12, 0)))
        self.assertFalse(provider.is_available_at(self.booking.date, time(12, 1)))

    @override_settings(PROVIDER_MATCHING_FILTERS=False)
    def test_filters_can_be_switched_off(self):
        provider = make_provider(status=ServiceProvider.Status.INACTIVE, availability=[])
        self.assertEqual(ProviderService.get_available_providers({'booking': self.booking.id}), [provider])

    def test_assign_sets_provider_and_keeps_status(self):
        provider = make_provider(services=[self.service], subservices=[self.subservice])

        booking = ProviderService.assign_to_booking(provider.id, self.booking.id, self.admin)

        self.assertEqual(booking.service_provider, provider)
        self.assertEqual(booking.assigned_by, self.admin)
        self.assertIsNotNone(booking.assigned_at)
        self.assertEqual(booking.status, Booking.Status.PENDING)

    def test_reassignment_overwrites_previous_provider(self):
        first = make_provider(services=[self.service], subservices=[self.subservice])
        second = make_provider(services=[self.service], subservices=[self.subservice])
        ProviderService.assign_to_booking(first.id, self.booking.id, self.admin)

        booking = ProviderService.assign_to_booking(second.id, self.booking.id, self.admin)

        self.assertEqual(booking.service_provider, second)

    def test_assign_requires_matching_subservice(self):
        provider = make_provider(services=[self.service], subservices=[make_subservice(self.service)])
        with self.assertRaises(ValidationError):
            ProviderService.assign_to_booking(provider.id, self.booking.id, self.admin)

    def test_assign_requires_availability(self):
        provider = make_provider(services=[self.service], subservices=[self.subservice], availability=[])
        with self.assertRaises(ValidationError):
            ProviderService.assign_to_booking(provider.id, self.booking.id, self.admin)

    def test_assign_to_cancelled_booking(self):
        provider = make_provider(services=[self.service], subservices=[self.subservice])
        Booking.objects.filter(pk=self.booking.id).update(status=Booking.Status.CANCELLED)
        with self.assertRaises(ValidationError):
            ProviderService.assign_to_booking(provider.id, self.booking.id, self.admin)


class RatingAggregateTests(ProviderServiceTestCase):

    def test_average_is_half_up(self):
        self.assertEqual(average_from_distribution({'5': 2, '4': 1, '3': 1}), Decimal('4.25'))
        self.assertEqual(average_from_distribution({'5': 1, '4': 1, '1': 1}), Decimal('3.33'))
        self.assertEqual(average_from_distribution({'2': 1, '3': 1}), Decimal('2.50'))
        self.assertEqual(average_from_distribution({}), Decimal('0.00'))

    def test_apply_rating_updates_aggregate(self):
        provider = make_provider()
        for value in (5, 5, 4, 3):
            ProviderService.apply_rating(provider.id, value)

        provider.refresh_from_db()
        self.assertEqual(provider.total_ratings, 4)
        self.assertEqual(provider.average_rating, Decimal('4.25'))
        self.assertEqual(provider.rating_distribution, {'1': 0, '2': 0, '3': 1, '4': 1, '5': 2})

    def test_out_of_range_rating(self):
        provider = make_provider()
        with self.assertRaises(ValidationError):
            ProviderService.apply_rating(provider.id, 6)


@override_settings(AWS_S3_BUCKET='docs', AWS_REGION='ap-south-1', AWS_ENDPOINT_URL=None)
class DocumentStorageTests(TestCase):

    def test_upload_puts_object_and_returns_url(self):
        client = mock.Mock()
        storage = DocumentStorage(client=client)

        url, key = storage.upload(png('card.PNG'), 'aadhaarCard')

        self.assertTrue(key.startswith('aadhaarCard/'))
        self.assertTrue(key.endswith('.png'))
        self.assertEqual(url, f'https://docs.s3.ap-south-1.amazonaws.com/{key}')
        kwargs = client.put_object.call_args.kwargs
        self.assertEqual(kwargs['Bucket'], 'docs')
        self.assertEqual(kwargs['ContentType'], 'image/png')

    def test_rejects_non_image(self):
        storage = DocumentStorage(client=mock.Mock())
        pdf = SimpleUploadedFile('card.pdf', b'%PDF', content_type='application/pdf')
        with self.assertRaises(ValidationError):
            storage.upload(pdf, 'panCard')

    def test_rejects_oversized_image(self):
        storage = DocumentStorage(client=mock.Mock())
        with self.assertRaises(ValidationError):
            storage.upload(png(size=MAX_FILE_SIZE), 'panCard')

    def test_s3_failure_is_external_service_error(self):
        client = mock.Mock()
        client.put_object.side_effect = ClientError({'Error': {'Code': 'AccessDenied'}}, 'PutObject')
        with self.assertRaises(ExternalServiceError):
            DocumentStorage(client=client).upload(png(), 'panCard')

    def test_delete_failure_is_reported(self):
        client = mock.Mock()
        client.delete_object.side_effect = ClientError({'Error': {'Code': 'NoSuchKey'}}, 'DeleteObject')
        self.assertFalse(DocumentStorage(client=client).delete('panCard/x.png'))
