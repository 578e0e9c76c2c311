"""
KISS Services API - Simple and clean views.
"""

from rest_framework import viewsets
from rest_framework.decorators import action

from common.decorators import api_exception_handler
from common.pagination import page_params
from common.permissions import IsAdminOrReadOnly
from common.response import ApiResponse
from common.serializers import validate_payload
from .serializers import (
    ServiceListSerializer,
    ServiceSerializer,
    ServiceWriteSerializer,
    SubserviceSerializer,
    SubserviceWriteSerializer
)
from .services import CatalogService


class ServiceViewSet(viewsets.ViewSet):
    """Service catalog: public reads, admin writes."""

    permission_classes = [IsAdminOrReadOnly]

    @api_exception_handler
    def list(self, request):
        page, limit = page_params(request)
        return ApiResponse.paginated(CatalogService.get_all_services(page, limit), ServiceListSerializer)

    @api_exception_handler
    def retrieve(self, request, pk=None):
        return ApiResponse.success(data=ServiceSerializer(CatalogService.get_service(pk)).data)

    @api_exception_handler
    def create(self, request):
        data = validate_payload(ServiceWriteSerializer, request.data)
        service = CatalogService.create_service(data)
        return ApiResponse.created(data=ServiceSerializer(service).data)

    @api_exception_handler
    def update(self, request, pk=None):
        data = validate_payload(ServiceWriteSerializer, request.data, partial=True)
        service = CatalogService.update_service(pk, data)
        return ApiResponse.success(data=ServiceSerializer(service).data, message='Service updated successfully')

    partial_update = update

    @api_exception_handler
    def destroy(self, request, pk=None):
        return ApiResponse.success(message=CatalogService.delete_service(pk)['message'])


class SubserviceViewSet(viewsets.ViewSet):
    """Subservices: public reads, admin writes."""

    permission_classes = [IsAdminOrReadOnly]

    @api_exception_handler
    def list(self, request):
        page, limit = page_params(request)
        return ApiResponse.paginated(CatalogService.get_all_subservices(page, limit), SubserviceSerializer)

    @api_exception_handler
    def retrieve(self, request, pk=None):
        return ApiResponse.success(data=SubserviceSerializer(CatalogService.get_subservice(pk)).data)

    @action(detail=False, methods=['get'], url_path=r'by-service/(?P<service_id>[^/.]+)')
    @api_exception_handler
    def by_service(self, request, service_id=None):
        """Get subservices of one service."""
        subservices = CatalogService.get_subservices_by_service(service_id)
        return ApiResponse.success(data=SubserviceSerializer(subservices, many=True).data)

    @api_exception_handler
    def create(self, request):
        data = validate_payload(SubserviceWriteSerializer, request.data)
        subservice = CatalogService.create_subservice(data)
        return ApiResponse.created(data=SubserviceSerializer(subservice).data)

    @api_exception_handler
    def update(self, request, pk=None):
        data = validate_payload(SubserviceWriteSerializer, request.data, partial=True)
        subservice = CatalogService.update_subservice(pk, data)
        return ApiResponse.success(data=SubserviceSerializer(subservice).data, message='Subservice updated successfully')

    partial_update = update

    @api_exception_handler
    def destroy(self, request, pk=None):
        return ApiResponse.success(message=CatalogService.delete_subservice(pk)['message'])
