import uuid
from unittest import mock

import httpx
from django.test import RequestFactory, SimpleTestCase, TestCase, override_settings
from django.db import IntegrityError
from rest_framework import serializers
from rest_framework.request import Request

from common.db import translate_errors
from common.decorators import api_exception_handler
from common.exceptions import (
    ConflictError, DatabaseError, ExternalServiceError, NotFoundError, ValidationError
)
from common.pagination import page_params, paginate
from common.serializers import StrictSerializer, validate_payload
from common.sms import notify, send_sms, to_e164
from common.validators import ensure_allowed_fields, normalize_phone_number, parse_id_list
from services.models import Service
from .factories import make_service


class PaginationTests(TestCase):

    def setUp(self):
        for _ in range(5):
            make_service()

    def test_paginate_returns_slice_and_metadata(self):
        result = paginate(Service.objects.all(), page=2, limit=2)
        self.assertEqual(len(result['items']), 2)
        self.assertEqual(result['pagination'], {'total': 5, 'page': 2, 'limit': 2, 'totalPages': 3})

    def test_page_past_the_end_is_empty(self):
        result = paginate(Service.objects.all(), page=4, limit=2)
        self.assertEqual(result['items'], [])
        self.assertEqual(result['pagination']['total'], 5)

    def test_non_positive_page_is_rejected(self):
        with self.assertRaises(ValidationError):
            paginate(Service.objects.all(), page=0, limit=10)

    def test_empty_queryset_has_zero_pages(self):
        result = paginate(Service.objects.none(), page=1, limit=10)
        self.assertEqual(result['pagination']['totalPages'], 0)


@override_settings(DEFAULT_PAGE_LIMIT=10, MAX_PAGE_LIMIT=50)
class PageParamsTests(SimpleTestCase):

    def _request(self, **params):
        return Request(RequestFactory().get('/', params))

    def test_defaults(self):
        self.assertEqual(page_params(self._request()), (1, 10))

    def test_limit_is_capped(self):
        self.assertEqual(page_params(self._request(page='3', limit='500')), (3, 50))

    def test_garbage_is_rejected(self):
        with self.assertRaises(ValidationError):
            page_params(self._request(page='abc'))
        with self.assertRaises(ValidationError):
            page_params(self._request(limit='-1'))


class ValidatorTests(SimpleTestCase):

    def test_unknown_fields_are_named(self):
        with self.assertRaises(ValidationError) as ctx:
            ensure_allowed_fields({'name': 'x', 'role': 'admin'}, ('name',))
        self.assertIn('role', str(ctx.exception))
        self.assertEqual(list(ctx.exception.errors), ['role'])

    def test_phone_number_is_normalized(self):
        self.assertEqual(normalize_phone_number('98765-43210'), '9876543210')
        with self.assertRaises(ValidationError):
            normalize_phone_number('12345')
        with self.assertRaises(ValidationError):
            normalize_phone_number('')

    def test_parse_id_list(self):
        first, second = uuid.uuid4(), uuid.uuid4()
        self.assertEqual(parse_id_list([str(first), first, second], 'service'), [first, second])
        with self.assertRaises(ValidationError):
            parse_id_list([], 'service')
        with self.assertRaises(ValidationError):
            parse_id_list(['not-a-uuid'], 'service')
        with self.assertRaises(ValidationError):
            parse_id_list('abc', 'service')


class _NoteSerializer(StrictSerializer):
    title = serializers.CharField()
    tags = serializers.ListField(child=serializers.CharField(), required=False)


class StrictSerializerTests(SimpleTestCase):

    def test_unknown_key_fails(self):
        with self.assertRaises(ValidationError) as ctx:
            validate_payload(_NoteSerializer, {'title': 'hello', 'owner': 'me'})
        self.assertIn('owner', ctx.exception.errors)

    def test_form_nested_keys_map_to_declared_field(self):
        serializer = _NoteSerializer(data={'title': 'hello', 'tags[0]': 'a'})
        serializer.is_valid()
        self.assertNotIn('tags[0]', serializer.errors)

    def test_valid_payload_returns_plain_dict(self):
        self.assertEqual(validate_payload(_NoteSerializer, {'title': 'hello'}), {'title': 'hello'})

    def test_partial_allows_missing_required(self):
        self.assertEqual(validate_payload(_NoteSerializer, {}, partial=True), {})


class TranslateErrorsTests(SimpleTestCase):

    def test_integrity_error_becomes_conflict(self):
        @translate_errors('boom', conflict_message='taken')
        def create():
            raise IntegrityError('UNIQUE constraint failed')

        with self.assertRaises(ConflictError) as ctx:
            create()
        self.assertEqual(str(ctx.exception), 'taken')

    def test_unexpected_error_becomes_database_error(self):
        @translate_errors('Failed to load')
        def load():
            raise RuntimeError('connection reset')

        with self.assertRaises(DatabaseError) as ctx:
            load()
        self.assertEqual(str(ctx.exception), 'Failed to load')

    def test_domain_errors_pass_through(self):
        @translate_errors('Failed to load')
        def load():
            raise NotFoundError('Thing not found')

        with self.assertRaises(NotFoundError):
            load()


class ApiExceptionHandlerTests(SimpleTestCase):

    def test_domain_error_maps_to_envelope(self):
        @api_exception_handler
        def view(request):
            raise NotFoundError('Booking not found')

        response = view(RequestFactory().get('/'))
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data, {
            'succeed': False,
            'errorMessage': 'Booking not found',
            'errorCode': 'NOT_FOUND',
        })

    def test_unexpected_error_is_internal(self):
        @api_exception_handler
        def view(request):
            raise RuntimeError('oops')

        response = view(RequestFactory().get('/'))
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.data['errorCode'], 'INTERNAL_ERROR')


@override_settings(
    SMS_ENABLED=True,
    TWILIO_ACCOUNT_SID='AC123',
    TWILIO_AUTH_TOKEN='token',
    TWILIO_FROM_NUMBER='+15550001111',
    SMS_COUNTRY_CODE='+91',
)
class SmsTests(SimpleTestCase):

    def test_to_e164(self):
        self.assertEqual(to_e164('9876543210'), '+919876543210')
        self.assertEqual(to_e164('+14155550100'), '+14155550100')

    @mock.patch('common.sms.httpx.post')
    def test_send_sms_posts_to_twilio(self, post):
        post.return_value = httpx.Response(201, json={'sid': 'SM1'})
        self.assertTrue(send_sms('9876543210', 'hello'))
        args, kwargs = post.call_args
        self.assertIn('/Accounts/AC123/Messages.json', args[0])
        self.assertEqual(kwargs['data']['To'], '+919876543210')
        self.assertEqual(kwargs['auth'], ('AC123', 'token'))

    @mock.patch('common.sms.httpx.post')
    def test_rejected_message_raises(self, post):
        post.return_value = httpx.Response(400, text='bad number')
        with self.assertRaises(ExternalServiceError):
            send_sms('9876543210', 'hello')

    @mock.patch('common.sms.httpx.post', side_effect=httpx.ConnectError('down'))
    def test_notify_swallows_delivery_failure(self, _post):
        self.assertFalse(notify('9876543210', 'hello'))

    @override_settings(SMS_ENABLED=False)
    @mock.patch('common.sms.httpx.post')
    def test_disabled_sms_is_not_sent(self, post):
        self.assertFalse(send_sms('9876543210', 'hello'))
        post.assert_not_called()
