from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated

from common.decorators import api_exception_handler
from common.pagination import page_params
from common.permissions import IsAdminRole, is_admin
from common.response import ApiResponse
from common.serializers import validate_payload
from .serializers import RatingCreateSerializer, RatingReviewSerializer, RatingSerializer, RatingUpdateSerializer
from .services import RatingService


class RatingViewSet(viewsets.ViewSet):
    """
    Ratings API.

    Clients rate their own bookings and edit ratings until reviewed;
    moderation and the global listings are admin-only.
    """

    admin_actions = {'pending', 'all', 'review'}

    def get_permissions(self):
        if self.action in self.admin_actions:
            return [IsAuthenticated(), IsAdminRole()]
        return [IsAuthenticated()]

    @api_exception_handler
    def retrieve(self, request, pk=None):
        rating = RatingService.get_rating(pk, request.user, is_admin=is_admin(request.user))
        return ApiResponse.success(data=RatingSerializer(rating).data)

    @api_exception_handler
    def update(self, request, pk=None):
        data = validate_payload(RatingUpdateSerializer, request.data, partial=True)
        rating = RatingService.update_rating(pk, request.user, data)
        return ApiResponse.success(data=RatingSerializer(rating).data, message='Rating updated successfully')

    partial_update = update

    @api_exception_handler
    def destroy(self, request, pk=None):
        result = RatingService.delete_rating(pk, request.user)
        return ApiResponse.success(message=result['message'])

    @action(detail=False, methods=['get', 'post'], url_path=r'booking/(?P<booking_id>[^/.]+)')
    @api_exception_handler
    def booking(self, request, booking_id=None):
        """POST rates a booking (one rating per subservice); GET lists its ratings."""
        if request.method == 'POST':
            data = validate_payload(RatingCreateSerializer, request.data)
            ratings = RatingService.create_rating(booking_id, request.user, data)
            return ApiResponse.created(
                data=RatingSerializer(ratings, many=True).data,
                message='Rating submitted successfully'
            )

        ratings = RatingService.get_booking_ratings(booking_id, request.user, is_admin=is_admin(request.user))
        return ApiResponse.success(data=RatingSerializer(ratings, many=True).data)

    @action(detail=False, methods=['get'])
    @api_exception_handler
    def my(self, request):
        ratings = RatingService.get_user_ratings(request.user, request.query_params.get('status'))
        return ApiResponse.success(data=RatingSerializer(ratings, many=True).data)

    @action(detail=False, methods=['get'])
    @api_exception_handler
    def pending(self, request):
        page, limit = page_params(request)
        return ApiResponse.paginated(RatingService.get_pending_ratings(page, limit), RatingSerializer)

    @action(detail=False, methods=['get'])
    @api_exception_handler
    def all(self, request):
        page, limit = page_params(request)
        result = RatingService.get_all_ratings(page, limit, request.query_params.get('status'))
        return ApiResponse.paginated(result, RatingSerializer)

    @action(detail=True, methods=['post', 'patch'])
    @api_exception_handler
    def review(self, request, pk=None):
        """Approve or reject a pending rating."""
        data = validate_payload(RatingReviewSerializer, request.data)
        rating = RatingService.review_rating(pk, request.user, data)
        return ApiResponse.success(data=RatingSerializer(rating).data, message=f'Rating {rating.status}')

    @action(detail=False, methods=['get'], url_path=r'average/subservice/(?P<subservice_id>[^/.]+)')
    @api_exception_handler
    def average_for_subservice(self, request, subservice_id=None):
        return ApiResponse.success(data=RatingService.get_average_rating_for_subservice(subservice_id))

    @action(detail=False, methods=['get'], url_path='average/subservices')
    @api_exception_handler
    def average_for_all_subservices(self, request):
        return ApiResponse.success(data=RatingService.get_average_ratings_for_all_subservices())
