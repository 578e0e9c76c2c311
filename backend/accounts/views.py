import logging
from rest_framework import viewsets
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated, AllowAny

from common.decorators import api_exception_handler
from common.pagination import page_params
from common.permissions import is_admin
from common.response import ApiResponse
from common.serializers import validate_payload
from .serializers import (
    AddressSerializer, AddressWriteSerializer, AdminLoginSerializer,
    ProfileUpdateSerializer, SendOtpSerializer, UserSerializer, VerifyOtpSerializer
)
from .services import AddressService, OtpService, UserService

# Initialize logger for accounts API
logger = logging.getLogger(__name__)


# Authentication Views
@api_view(['POST'])
@permission_classes([AllowAny])
@api_exception_handler
def send_otp_view(request):
    """
    Issue a one-time code to a phone number.
    Creates the client account on first contact.
    """
    data = validate_payload(SendOtpSerializer, request.data)
    logger.info("OTP requested", extra={'ip_address': request.META.get('REMOTE_ADDR')})

    result = OtpService.send_otp(data['phone_number'])
    return ApiResponse.success(
        data={'is_new_user': result['is_new_user']},
        message=result['message']
    )


@api_view(['POST'])
@permission_classes([AllowAny])
@api_exception_handler
def verify_otp_view(request):
    """
    Verify a one-time code and return JWT tokens with user information.
    """
    data = validate_payload(VerifyOtpSerializer, request.data)
    result = OtpService.verify_otp(data['phone_number'], data['otp'])

    return ApiResponse.success(
        data={
            'refresh': result['tokens']['refresh'],
            'access': result['tokens']['access'],
            'user': UserSerializer(result['user']).data
        },
        message=result['message']
    )


@api_view(['POST'])
@permission_classes([AllowAny])
@api_exception_handler
def admin_login_view(request):
    """
    Admin login endpoint.
    Accepts email/password and returns JWT tokens with user information.
    """
    data = validate_payload(AdminLoginSerializer, request.data)
    logger.info("Admin login attempt", extra={
        'email': data['email'],
        'ip_address': request.META.get('REMOTE_ADDR'),
        'user_agent': request.META.get('HTTP_USER_AGENT', '')
    })

    result = UserService.authenticate_admin(data['email'], data['password'])
    return ApiResponse.success(
        data={
            'refresh': result['tokens']['refresh'],
            'access': result['tokens']['access'],
            'user': UserSerializer(result['user']).data
        },
        message=result['message']
    )


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
@api_exception_handler
def profile_view(request):
    """Read or update the caller's own profile."""
    if request.method == 'GET':
        return ApiResponse.success(data=UserSerializer(request.user).data)

    data = validate_payload(ProfileUpdateSerializer, request.data)
    user = UserService.update_profile(request.user, data)
    return ApiResponse.success(data=UserSerializer(user).data, message='Profile updated successfully')


class AddressViewSet(viewsets.ViewSet):
    """
    Address book of the authenticated client.
    Admins may read any address by id.
    """
    permission_classes = [IsAuthenticated]

    @api_exception_handler
    def list(self, request):
        page, limit = page_params(request)
        result = AddressService.get_user_addresses(request.user, page, limit)
        return ApiResponse.paginated(result, AddressSerializer)

    @api_exception_handler
    def create(self, request):
        data = validate_payload(AddressWriteSerializer, request.data)
        address = AddressService.create_address(data, request.user)
        return ApiResponse.created(data=AddressSerializer(address).data)

    @api_exception_handler
    def retrieve(self, request, pk=None):
        address = AddressService.get_address(pk, request.user, is_admin=is_admin(request.user))
        return ApiResponse.success(data=AddressSerializer(address).data)

    @api_exception_handler
    def update(self, request, pk=None):
        data = validate_payload(AddressWriteSerializer, request.data, partial=True)
        address = AddressService.update_address(pk, data, request.user)
        return ApiResponse.success(data=AddressSerializer(address).data, message='Address updated successfully')

    partial_update = update

    @api_exception_handler
    def destroy(self, request, pk=None):
        result = AddressService.delete_address(pk, request.user)
        return ApiResponse.success(message=result['message'])
