from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated

from common.decorators import api_exception_handler
from common.pagination import page_params
from common.permissions import IsAdminRole, is_admin
from common.response import ApiResponse
from common.serializers import validate_payload
from providers.services import ProviderService
from .serializers import (
    AssignProviderSerializer,
    BookingCreateSerializer,
    BookingListSerializer,
    BookingSerializer,
    BookingStatusHistorySerializer,
    BookingUpdateSerializer,
    CancelSerializer,
    RescheduleSerializer,
    StatusChangeSerializer
)
from .services import BookingService


class BookingViewSet(viewsets.ViewSet):
    """
    Booking API.

    Clients create and manage their own bookings; listing everything,
    status changes and provider assignment are admin-only.
    """

    admin_actions = {'list', 'change_status', 'assign_provider', 'by_service', 'by_subservice'}

    def get_permissions(self):
        if self.action in self.admin_actions:
            return [IsAuthenticated(), IsAdminRole()]
        return [IsAuthenticated()]

    @api_exception_handler
    def list(self, request):
        page, limit = page_params(request)
        result = BookingService.get_all_bookings(page, limit, request.query_params.get('status'))
        return ApiResponse.paginated(result, BookingListSerializer)

    @api_exception_handler
    def create(self, request):
        data = validate_payload(BookingCreateSerializer, request.data)
        booking = BookingService.create_booking(data, request.user)
        return ApiResponse.created(data=BookingSerializer(booking).data, message='Booking created successfully')

    @api_exception_handler
    def retrieve(self, request, pk=None):
        if is_admin(request.user):
            booking = BookingService.get_booking(pk)
        else:
            booking = BookingService.get_user_booking(request.user, pk)
        return ApiResponse.success(data=BookingSerializer(booking).data)

    @api_exception_handler
    def update(self, request, pk=None):
        data = validate_payload(BookingUpdateSerializer, request.data, partial=True)
        booking = BookingService.update_booking(pk, data, request.user, is_admin=is_admin(request.user))
        return ApiResponse.success(data=BookingSerializer(booking).data, message='Booking updated successfully')

    partial_update = update

    @api_exception_handler
    def destroy(self, request, pk=None):
        result = BookingService.delete_booking(pk, request.user, is_admin=is_admin(request.user))
        return ApiResponse.success(message=result['message'])

    @action(detail=False, methods=['get'], url_path='my')
    @api_exception_handler
    def my(self, request):
        """Bookings of the authenticated client."""
        page, limit = page_params(request)
        result = BookingService.get_user_bookings(request.user, page, limit, request.query_params.get('status'))
        return ApiResponse.paginated(result, BookingListSerializer)

    @action(detail=True, methods=['post', 'patch'])
    @api_exception_handler
    def reschedule(self, request, pk=None):
        data = validate_payload(RescheduleSerializer, request.data)
        booking = BookingService.reschedule_booking(pk, data['date'], data['time'], request.user)
        return ApiResponse.success(data=BookingSerializer(booking).data, message='Booking rescheduled successfully')

    @action(detail=True, methods=['post', 'patch'])
    @api_exception_handler
    def cancel(self, request, pk=None):
        data = validate_payload(CancelSerializer, request.data)
        booking = BookingService.cancel_booking(pk, request.user, data.get('reason', ''))
        return ApiResponse.success(data=BookingSerializer(booking).data, message='Booking cancelled successfully')

    @action(detail=True, methods=['patch', 'post'], url_path='status')
    @api_exception_handler
    def change_status(self, request, pk=None):
        """Move a booking through the status lifecycle."""
        data = validate_payload(StatusChangeSerializer, request.data)
        booking = BookingService.change_status(pk, data['status'], request.user, data.get('reason', ''))
        return ApiResponse.success(data=BookingSerializer(booking).data, message='Booking status updated')

    @action(detail=True, methods=['post', 'patch'], url_path='assign-provider')
    @api_exception_handler
    def assign_provider(self, request, pk=None):
        data = validate_payload(AssignProviderSerializer, request.data)
        booking = ProviderService.assign_to_booking(data['provider'], pk, request.user)
        return ApiResponse.success(data=BookingSerializer(booking).data, message='Provider assigned successfully')

    @action(detail=True, methods=['get'])
    @api_exception_handler
    def history(self, request, pk=None):
        """Get booking status history."""
        history = BookingService.get_status_history(pk, request.user, is_admin=is_admin(request.user))
        return ApiResponse.success(data=BookingStatusHistorySerializer(history, many=True).data)

    @action(detail=False, methods=['get'], url_path=r'by-service/(?P<service_id>[^/.]+)')
    @api_exception_handler
    def by_service(self, request, service_id=None):
        bookings = BookingService.get_bookings_by_service(service_id)
        return ApiResponse.success(data=BookingListSerializer(bookings, many=True).data)

    @action(detail=False, methods=['get'], url_path=r'by-subservice/(?P<subservice_id>[^/.]+)')
    @api_exception_handler
    def by_subservice(self, request, subservice_id=None):
        bookings = BookingService.get_bookings_by_subservice(subservice_id)
        return ApiResponse.success(data=BookingListSerializer(bookings, many=True).data)
