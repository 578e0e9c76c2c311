import uuid
from decimal import Decimal

from django.test import TestCase
from rest_framework.test import APIClient

from common.exceptions import NotFoundError, ValidationError
from common.tests.factories import (
    api_client_for, make_admin, make_booking, make_client_user, make_service, make_subservice
)
from services.models import Service, Subservice
from services.services import CatalogService


class CatalogServiceTests(TestCase):

    def setUp(self):
        self.service = make_service(name='Electrical')
        self.subservice = make_subservice(self.service, name='Fan Installation')

    def test_require_services_resolves_ids(self):
        services = CatalogService.require_services([str(self.service.id)])
        self.assertEqual(services, [self.service])

    def test_require_services_rejects_empty_list(self):
        with self.assertRaises(ValidationError):
            CatalogService.require_services([])

    def test_require_subservices_reports_unknown_id(self):
        with self.assertRaises(NotFoundError):
            CatalogService.require_subservices([str(self.subservice.id), str(uuid.uuid4())])

    def test_create_subservice_under_unknown_service(self):
        with self.assertRaises(NotFoundError):
            CatalogService.create_subservice({
                'service': uuid.uuid4(),
                'name': 'Wiring',
                'original_price': Decimal('100'),
                'discounted_price': Decimal('90'),
                'duration': '1 hour',
            })

    def test_update_service_rejects_unknown_field(self):
        with self.assertRaises(ValidationError):
            CatalogService.update_service(self.service.id, {'rating': 5})

    def test_service_in_use_cannot_be_deleted(self):
        make_booking(make_client_user(), [self.service], [self.subservice])
        with self.assertRaises(ValidationError):
            CatalogService.delete_service(self.service.id)
        self.assertTrue(Service.objects.filter(pk=self.service.id).exists())

    def test_subservices_by_service(self):
        other = make_service()
        make_subservice(other)
        self.assertEqual(CatalogService.get_subservices_by_service(self.service.id), [self.subservice])


class CatalogApiTests(TestCase):

    def setUp(self):
        self.service = make_service(name='Cleaning')
        self.subservice = make_subservice(self.service, name='Sofa Cleaning')

    def test_catalog_reads_are_public(self):
        client = APIClient()
        response = client.get('/api/catalog/services/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['data']['pagination']['total'], 1)

        response = client.get(f'/api/catalog/services/{self.service.id}/')
        self.assertEqual(response.data['data']['subservices'][0]['name'], 'Sofa Cleaning')

        response = client.get(f'/api/catalog/subservices/by-service/{self.service.id}/')
        self.assertEqual(len(response.data['data']), 1)

    def test_clients_cannot_write(self):
        client = api_client_for(make_client_user())
        response = client.post('/api/catalog/services/', {
            'name': 'Painting', 'original_price': '100', 'discounted_price': '80', 'duration': '1 day'
        }, format='json')
        self.assertEqual(response.status_code, 403)

    def test_admin_creates_and_updates(self):
        client = api_client_for(make_admin())
        response = client.post('/api/catalog/subservices/', {
            'service': str(self.service.id),
            'name': 'Kitchen Cleaning',
            'original_price': '900.00',
            'discounted_price': '799.00',
            'duration': '3 hours',
        }, format='json')
        self.assertEqual(response.status_code, 201)
        subservice_id = response.data['data']['id']

        response = client.patch(f'/api/catalog/subservices/{subservice_id}/', {'duration': '4 hours'}, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(Subservice.objects.get(pk=subservice_id).duration, '4 hours')

    def test_missing_service_is_404(self):
        response = APIClient().get(f'/api/catalog/services/{uuid.uuid4()}/')
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data['errorCode'], 'NOT_FOUND')
