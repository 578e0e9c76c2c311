"""
Account service layer: OTP sign-in, admin authentication, profiles and addresses.
Separates business logic from views and serializers.
"""
import logging
import secrets
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.utils import timezone
from rest_framework_simplejwt.tokens import RefreshToken

from common.db import get_object_or_none, translate_errors
from common.exceptions import (
    AuthenticationError, ConflictError, NotFoundError, ValidationError
)
from common.pagination import paginate
from common.sms import send_sms
from common.validators import ensure_allowed_fields, normalize_phone_number
from .models import Address, Otp, User

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ('name', 'email', 'avatar')
ADDRESS_FIELDS = (
    'house_no', 'street', 'full_address', 'landmark', 'city', 'state', 'zip_code', 'country'
)


class UserService:
    """Service class for user accounts and tokens."""

    @staticmethod
    def generate_tokens(user):
        """
        Generate JWT tokens for user.

        The role claim lets clients branch without an extra profile call.
        """
        refresh = RefreshToken.for_user(user)
        refresh['role'] = user.role
        return {
            'refresh': str(refresh),
            'access': str(refresh.access_token)
        }

    @staticmethod
    def authenticate_admin(email, password):
        """
        Authenticate an admin by email and password.

        Returns:
            Dictionary with the admin user and a token pair

        Raises:
            ValidationError: if email or password is missing
            AuthenticationError: if credentials do not match an active admin
        """
        if not email or not password:
            raise ValidationError("Email and password are required")

        admin = User.objects.filter(email__iexact=email, role=User.Role.ADMIN).first()
        if admin is None or not admin.check_password(password):
            logger.warning("Admin login rejected", extra={'email': email})
            raise AuthenticationError("Invalid email or password")

        if not admin.is_active:
            raise AuthenticationError("Account is disabled")

        admin.last_login = timezone.now()
        admin.save(update_fields=['last_login'])

        logger.info("Admin logged in", extra={'admin_id': str(admin.id)})
        return {
            'user': admin,
            'tokens': UserService.generate_tokens(admin),
            'message': 'Authentication successful'
        }

    @staticmethod
    @translate_errors('Failed to create admin', conflict_message='Email already exists')
    def create_admin(email, password, name='', phone_number=None):
        """Create an admin account. Used by the create_admin management command."""
        if not email or not password:
            raise ValidationError("Email and password are required")

        if User.objects.filter(email__iexact=email).exists():
            raise ConflictError("Email already exists")

        if phone_number:
            phone_number = normalize_phone_number(phone_number)

        admin = User.objects.create_user(
            username=email,
            email=email,
            password=password,
            name=name,
            phone_number=phone_number or None,
            role=User.Role.ADMIN,
            is_staff=True,
        )
        logger.info("Admin created", extra={'admin_id': str(admin.id)})
        return admin

    @staticmethod
    @translate_errors('Failed to update profile', conflict_message='Email already in use')
    def update_profile(user, profile_data):
        """
        Update the caller's own profile.

        Args:
            user: User instance
            profile_data: Dictionary limited to name, email, avatar

        Returns:
            Updated User instance
        """
        ensure_allowed_fields(profile_data, PROFILE_FIELDS, 'profile update')

        for field, value in profile_data.items():
            setattr(user, field, value)
        user.save(update_fields=list(profile_data) or None)

        logger.info("Profile updated", extra={'user_id': str(user.id), 'fields': list(profile_data)})
        return user


class OtpService:
    """Phone-number sign-in with one-time codes delivered by SMS."""

    @staticmethod
    def generate_code(length=None):
        length = length or settings.OTP_LENGTH
        return ''.join(secrets.choice('0123456789') for _ in range(length))

    @staticmethod
    @translate_errors('Failed to send OTP')
    def send_otp(phone_number):
        """
        Issue a fresh code for a phone number and deliver it by SMS.

        Any previous code for the number is replaced. A client account is
        created on first contact.

        Returns:
            Dictionary with result message and whether the user is new
        """
        phone = normalize_phone_number(phone_number)
        code = OtpService.generate_code()
        expires_at = timezone.now() + timedelta(minutes=settings.OTP_EXPIRY_MINUTES)

        with transaction.atomic():
            Otp.objects.update_or_create(
                phone_number=phone,
                defaults={'code': code, 'expires_at': expires_at}
            )
            user, created = User.objects.get_or_create(
                phone_number=phone,
                defaults={'username': phone, 'role': User.Role.CLIENT}
            )
            if created:
                user.set_unusable_password()
                user.save(update_fields=['password'])
                logger.info("New client created on OTP request", extra={'user_id': str(user.id)})

        send_sms(
            phone,
            f"One-Time Password for confirming your phone number is {code}. "
            f"It expires in {settings.OTP_EXPIRY_MINUTES} minutes. Please do not share it with anyone."
        )

        logger.info("OTP issued", extra={'phone_number': phone, 'expires_at': expires_at.isoformat()})
        return {'message': 'OTP sent successfully', 'is_new_user': created}

    @staticmethod
    @translate_errors('Failed to verify OTP')
    def verify_otp(phone_number, code):
        """
        Check a code, consume it and sign the user in.

        Raises:
            ValidationError: missing input, wrong code, expired code or unknown user
        """
        if not phone_number or not code:
            raise ValidationError("Phone number and OTP are required")

        phone = normalize_phone_number(phone_number)
        otp = Otp.objects.filter(phone_number=phone, code=str(code)).first()
        if otp is None:
            logger.warning("Invalid OTP attempt", extra={'phone_number': phone})
            raise ValidationError("Invalid OTP")

        if otp.is_expired():
            otp.delete()
            logger.warning("Expired OTP attempt", extra={'phone_number': phone})
            raise ValidationError("OTP has expired")

        user = User.objects.filter(phone_number=phone).first()
        if user is None:
            raise ValidationError("User not found")

        otp.delete()
        user.last_login = timezone.now()
        user.save(update_fields=['last_login'])

        logger.info("OTP verified", extra={'user_id': str(user.id)})
        return {
            'message': 'OTP verified successfully',
            'user': user,
            'tokens': UserService.generate_tokens(user),
        }


class AddressService:
    """Address book operations; clients only ever see their own addresses."""

    @staticmethod
    @translate_errors('Failed to create address')
    def create_address(address_data, user):
        ensure_allowed_fields(address_data, ADDRESS_FIELDS, 'address')
        address = Address.objects.create(user=user, **address_data)
        logger.info("Address created", extra={'address_id': str(address.id), 'user_id': str(user.id)})
        return address

    @staticmethod
    @translate_errors('Failed to fetch addresses')
    def get_user_addresses(user, page, limit):
        return paginate(Address.objects.filter(user=user), page, limit)

    @staticmethod
    @translate_errors('Failed to fetch address')
    def get_address(address_id, user, is_admin=False):
        queryset = Address.objects.all() if is_admin else Address.objects.filter(user=user)
        address = get_object_or_none(queryset, address_id)
        if address is None:
            raise NotFoundError("Address not found")
        return address

    @staticmethod
    @translate_errors('Failed to update address')
    def update_address(address_id, address_data, user):
        ensure_allowed_fields(address_data, ADDRESS_FIELDS, 'address')
        address = AddressService.get_address(address_id, user)
        for field, value in address_data.items():
            setattr(address, field, value)
        address.save()
        logger.info("Address updated", extra={'address_id': str(address.id)})
        return address

    @staticmethod
    @translate_errors('Failed to delete address')
    def delete_address(address_id, user):
        address = AddressService.get_address(address_id, user)
        if address.bookings.exists():
            raise ValidationError("Cannot delete an address referenced by bookings")
        address.delete()
        logger.info("Address deleted", extra={'address_id': str(address_id)})
        return {'message': 'Address deleted successfully'}
