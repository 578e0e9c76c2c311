"""
Catalog service layer for services and subservices.

Besides CRUD, this is the lookup the booking and provider layers use to
check that referenced catalog ids exist.
"""
import logging

from common.db import get_object_or_none, translate_errors
from common.exceptions import NotFoundError, ValidationError
from common.pagination import paginate
from common.validators import ensure_allowed_fields, parse_id_list
from .models import Service, Subservice

logger = logging.getLogger(__name__)

SERVICE_FIELDS = ('name', 'description', 'process', 'original_price', 'discounted_price', 'duration', 'image')
SUBSERVICE_FIELDS = ('service', 'name', 'description', 'process', 'original_price', 'discounted_price', 'duration')


class CatalogService:
    """Service class for catalog lookups and maintenance."""

    @staticmethod
    def find_services_by_ids(ids):
        return list(Service.objects.filter(pk__in=ids))

    @staticmethod
    def find_subservices_by_ids(ids):
        return list(Subservice.objects.filter(pk__in=ids))

    @staticmethod
    def require_services(raw_ids):
        """
        Resolve a non-empty list of service ids.

        Raises:
            ValidationError: if the list is empty or an id is malformed
            NotFoundError: if any id does not exist
        """
        ids = parse_id_list(raw_ids, 'service')
        services = CatalogService.find_services_by_ids(ids)
        if len(services) != len(ids):
            raise NotFoundError('One or more services not found')
        return services

    @staticmethod
    def require_subservices(raw_ids):
        """Same contract as require_services, for subservices."""
        ids = parse_id_list(raw_ids, 'subservice')
        subservices = CatalogService.find_subservices_by_ids(ids)
        if len(subservices) != len(ids):
            raise NotFoundError('One or more subservices not found')
        return subservices

    # Services

    @staticmethod
    @translate_errors('Failed to fetch services')
    def get_all_services(page, limit):
        return paginate(Service.objects.all(), page, limit)

    @staticmethod
    @translate_errors('Failed to fetch service')
    def get_service(service_id):
        service = get_object_or_none(Service.objects.prefetch_related('subservices'), service_id)
        if service is None:
            raise NotFoundError('Service not found')
        return service

    @staticmethod
    @translate_errors('Failed to create service')
    def create_service(service_data):
        ensure_allowed_fields(service_data, SERVICE_FIELDS, 'service')
        service = Service.objects.create(**service_data)
        logger.info('Service created', extra={'service_id': str(service.id)})
        return service

    @staticmethod
    @translate_errors('Failed to update service')
    def update_service(service_id, service_data):
        ensure_allowed_fields(service_data, SERVICE_FIELDS, 'service')
        if not service_data:
            raise ValidationError('No valid fields to update')
        service = CatalogService.get_service(service_id)
        for field, value in service_data.items():
            setattr(service, field, value)
        service.save()
        logger.info('Service updated', extra={'service_id': str(service.id)})
        return service

    @staticmethod
    @translate_errors('Failed to delete service')
    def delete_service(service_id):
        service = CatalogService.get_service(service_id)
        if service.bookings.exists():
            raise ValidationError('Cannot delete a service referenced by bookings')
        service.delete()
        logger.info('Service deleted', extra={'service_id': str(service_id)})
        return {'message': 'Service deleted successfully'}

    # Subservices

    @staticmethod
    @translate_errors('Failed to fetch subservices')
    def get_all_subservices(page, limit):
        return paginate(Subservice.objects.select_related('service'), page, limit)

    @staticmethod
    @translate_errors('Failed to fetch subservice')
    def get_subservice(subservice_id):
        subservice = get_object_or_none(Subservice.objects.select_related('service'), subservice_id)
        if subservice is None:
            raise NotFoundError('Subservice not found')
        return subservice

    @staticmethod
    @translate_errors('Failed to fetch subservices')
    def get_subservices_by_service(service_id):
        service = CatalogService.get_service(service_id)
        return list(service.subservices.all())

    @staticmethod
    @translate_errors('Failed to create subservice')
    def create_subservice(subservice_data):
        ensure_allowed_fields(subservice_data, SUBSERVICE_FIELDS, 'subservice')
        data = dict(subservice_data)
        data['service'] = CatalogService.get_service(data.get('service'))
        subservice = Subservice.objects.create(**data)
        logger.info('Subservice created', extra={'subservice_id': str(subservice.id)})
        return subservice

    @staticmethod
    @translate_errors('Failed to update subservice')
    def update_subservice(subservice_id, subservice_data):
        ensure_allowed_fields(subservice_data, SUBSERVICE_FIELDS, 'subservice')
        if not subservice_data:
            raise ValidationError('No valid fields to update')
        subservice = CatalogService.get_subservice(subservice_id)
        data = dict(subservice_data)
        if 'service' in data:
            data['service'] = CatalogService.get_service(data['service'])
        for field, value in data.items():
            setattr(subservice, field, value)
        subservice.save()
        logger.info('Subservice updated', extra={'subservice_id': str(subservice.id)})
        return subservice

    @staticmethod
    @translate_errors('Failed to delete subservice')
    def delete_subservice(subservice_id):
        subservice = CatalogService.get_subservice(subservice_id)
        if subservice.bookings.exists():
            raise ValidationError('Cannot delete a subservice referenced by bookings')
        subservice.delete()
        logger.info('Subservice deleted', extra={'subservice_id': str(subservice_id)})
        return {'message': 'Subservice deleted successfully'}
