"""
Twilio SMS delivery.

Used for OTP codes and optional booking notifications. Messages are posted
straight to the Twilio Messages REST endpoint with httpx.
"""

import logging

import httpx
from django.conf import settings

from .exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

TWILIO_MESSAGES_URL = "https://api.twilio.com/2010-04-01/Accounts/{account_sid}/Messages.json"


def to_e164(phone_number: str) -> str:
    """Prefix a 10-digit national number with the configured country code."""
    if phone_number.startswith("+"):
        return phone_number
    return f"{settings.SMS_COUNTRY_CODE}{phone_number}"


def send_sms(to_phone: str, message_body: str) -> bool:
    """
    Send an SMS via Twilio.

    Args:
        to_phone: Recipient phone number (10 digits or E.164)
        message_body: SMS message content

    Returns:
        True when Twilio accepted the message, False when SMS is disabled.

    Raises:
        ExternalServiceError: if Twilio rejects the request or is unreachable.
    """
    if not settings.SMS_ENABLED:
        logger.info("SMS disabled, message not sent", extra={'to': to_phone})
        return False

    account_sid = settings.TWILIO_ACCOUNT_SID
    auth_token = settings.TWILIO_AUTH_TOKEN
    if not account_sid or not auth_token:
        raise ExternalServiceError("Twilio credentials are not configured", service="twilio")

    data = {
        "To": to_e164(to_phone),
        "From": settings.TWILIO_FROM_NUMBER,
        "Body": message_body,
    }

    try:
        response = httpx.post(
            TWILIO_MESSAGES_URL.format(account_sid=account_sid),
            data=data,
            auth=(account_sid, auth_token),
            timeout=settings.SMS_TIMEOUT_SECONDS,
        )
    except httpx.HTTPError as e:
        logger.error("Twilio request failed", extra={'to': data["To"], 'error': str(e)})
        raise ExternalServiceError("Failed to reach SMS provider", service="twilio") from e

    if response.status_code >= 400:
        logger.error("Twilio rejected message", extra={
            'to': data["To"],
            'status': response.status_code,
            'response': response.text[:500],
        })
        raise ExternalServiceError("SMS provider rejected the message", service="twilio")

    logger.info("SMS sent", extra={'to': data["To"], 'sid': response.json().get("sid")})
    return True


def notify(to_phone: str, message_body: str) -> bool:
    """Best-effort send: delivery problems are logged and reported as False."""
    if not to_phone:
        return False
    try:
        return send_sms(to_phone, message_body)
    except ExternalServiceError as e:
        logger.warning("Notification not delivered", extra={'to': to_phone, 'error': str(e)})
        return False
