"""
Providers API Views

Admin endpoints for onboarding, verifying and matching service providers.
"""

from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated

from bookings.serializers import BookingSerializer
from common.decorators import api_exception_handler
from common.pagination import page_params
from common.permissions import IsAdminRole
from common.response import ApiResponse
from common.serializers import validate_payload
from .serializers import (
    AvailableProvidersQuerySerializer,
    ServiceProviderListSerializer,
    ServiceProviderSerializer,
    SuspendProviderSerializer,
    VerifyDocumentSerializer,
    VerifyProviderSerializer,
    ProviderWriteSerializer
)
from .services import DOCUMENT_FIELDS, PROVIDER_FILTERS, ProviderService


def _split_documents(data):
    """Separate uploaded document files from the plain provider fields."""
    documents = {field: data.pop(field) for field in list(data) if field in DOCUMENT_FIELDS}
    return data, documents


class ServiceProviderViewSet(viewsets.ViewSet):
    """
    ViewSet for managing service providers. Admin only.
    """

    permission_classes = [IsAuthenticated, IsAdminRole]
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    @api_exception_handler
    def list(self, request):
        page, limit = page_params(request)
        filters = {key: request.query_params.get(key) for key in PROVIDER_FILTERS}
        result = ProviderService.get_all_providers(page, limit, filters)
        return ApiResponse.paginated(result, ServiceProviderListSerializer)

    @api_exception_handler
    def create(self, request):
        data, documents = _split_documents(validate_payload(ProviderWriteSerializer, request.data))
        provider = ProviderService.create_provider(data, request.user, documents=documents)
        return ApiResponse.created(
            data=ServiceProviderSerializer(provider).data,
            message='Service provider created successfully'
        )

    @api_exception_handler
    def retrieve(self, request, pk=None):
        return ApiResponse.success(data=ServiceProviderSerializer(ProviderService.get_provider(pk)).data)

    @api_exception_handler
    def update(self, request, pk=None):
        data, documents = _split_documents(validate_payload(ProviderWriteSerializer, request.data, partial=True))
        provider = ProviderService.update_provider(pk, data, request.user, documents=documents)
        return ApiResponse.success(
            data=ServiceProviderSerializer(provider).data,
            message='Service provider updated successfully'
        )

    partial_update = update

    @api_exception_handler
    def destroy(self, request, pk=None):
        result = ProviderService.delete_provider(pk, request.user)
        return ApiResponse.success(message=result['message'])

    @action(detail=True, methods=['post', 'patch'])
    @api_exception_handler
    def verify(self, request, pk=None):
        """Set document verification flags and recompute the provider status."""
        data = validate_payload(VerifyProviderSerializer, request.data)
        provider = ProviderService.verify_provider(
            pk, request.user,
            verify_documents=data.get('verify_documents'),
            notes=data.get('notes')
        )
        return ApiResponse.success(data=ServiceProviderSerializer(provider).data, message='Service provider verified')

    @action(detail=True, methods=['post', 'patch'], url_path='verify-documents')
    @api_exception_handler
    def verify_documents(self, request, pk=None):
        data = validate_payload(VerifyDocumentSerializer, request.data)
        provider = ProviderService.verify_document(
            pk, request.user, data['document_type'], data['verified'], data.get('notes')
        )
        return ApiResponse.success(data=ServiceProviderSerializer(provider).data, message='Document verification updated')

    @action(detail=True, methods=['post', 'patch'])
    @api_exception_handler
    def suspend(self, request, pk=None):
        data = validate_payload(SuspendProviderSerializer, request.data)
        provider = ProviderService.suspend_provider(pk, request.user, data.get('reason'))
        return ApiResponse.success(data=ServiceProviderSerializer(provider).data, message='Service provider suspended')

    @action(detail=True, methods=['get'])
    @api_exception_handler
    def stats(self, request, pk=None):
        stats = ProviderService.get_provider_stats(pk)
        stats['provider'] = ServiceProviderListSerializer(stats['provider']).data
        return ApiResponse.success(data=stats)

    @action(detail=False, methods=['get'])
    @api_exception_handler
    def available(self, request):
        """Candidate providers for a booking, best rated first."""
        criteria = validate_payload(AvailableProvidersQuerySerializer, request.query_params)
        providers = ProviderService.get_available_providers(criteria)
        return ApiResponse.success(data=ServiceProviderListSerializer(providers, many=True).data)

    @action(detail=True, methods=['post'], url_path=r'assign/(?P<booking_id>[^/.]+)')
    @api_exception_handler
    def assign(self, request, pk=None, booking_id=None):
        booking = ProviderService.assign_to_booking(pk, booking_id, request.user)
        return ApiResponse.success(data=BookingSerializer(booking).data, message='Service provider assigned successfully')
