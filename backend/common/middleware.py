import time
import logging
from typing import Callable

from django.conf import settings
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.utils.deprecation import MiddlewareMixin

from common.exceptions import AppError


def _user_id(request: HttpRequest):
    user = getattr(request, "user", None)
    if user is not None and user.is_authenticated:
        return str(getattr(user, "id", None))
    return None


class APILoggingMiddleware(MiddlewareMixin):
    """Lightweight API request/response logger.

    - Logs method, path, status, duration, user id (if any)
    - Controlled by settings:
      - API_LOG (default: True)
      - API_LOG_BODY (default: False): if True, logs small request bodies (<= API_LOG_MAX_BODY)
    """

    def __init__(self, get_response: Callable | None = None) -> None:
        super().__init__(get_response)
        self.logger = logging.getLogger(__name__)
        self.enabled: bool = getattr(settings, "API_LOG", True)
        self.log_body: bool = getattr(settings, "API_LOG_BODY", False)
        self.max_body_bytes: int = getattr(settings, "API_LOG_MAX_BODY", 2048)

    def process_request(self, request: HttpRequest):
        if not self.enabled:
            return None
        request._api_log_ts = time.monotonic()
        request._api_log_body = None
        if self.log_body and request.method in ("POST", "PUT", "PATCH"):
            content_type = request.META.get("CONTENT_TYPE", "")
            if content_type.startswith("application/json") and len(request.body) <= self.max_body_bytes:
                request._api_log_body = request.body.decode("utf-8", errors="ignore")
        return None

    def process_response(self, request: HttpRequest, response: HttpResponse) -> HttpResponse:
        if not self.enabled:
            return response

        start = getattr(request, "_api_log_ts", None)
        duration_ms = int((time.monotonic() - start) * 1000) if start is not None else None

        log_record = {
            "method": request.method,
            "path": request.get_full_path(),
            "status": response.status_code,
            "duration_ms": duration_ms,
            "user_id": _user_id(request),
        }
        if getattr(request, "_api_log_body", None):
            log_record["req_body"] = request._api_log_body

        self.logger.info("api", extra={"payload": log_record})
        return response


class GlobalExceptionMiddleware(MiddlewareMixin):
    """Catch-all for exceptions that escape the views.

    - Logs exception with path, method, user_id
    - Domain errors keep their status; anything else becomes a masked 500
      (the exception text is only included when DEBUG is on)
    """

    def __init__(self, get_response: Callable | None = None) -> None:
        super().__init__(get_response)
        self.logger = logging.getLogger(__name__)

    def process_exception(self, request: HttpRequest, exception: Exception):
        payload = {
            "method": request.method,
            "path": request.get_full_path(),
            "user_id": _user_id(request),
            "class": exception.__class__.__name__,
        }

        if isinstance(exception, AppError):
            self.logger.warning("domain_exception", extra={"payload": payload})
            return JsonResponse({
                "succeed": False,
                "errorMessage": exception.message,
                "errorCode": exception.error_code,
            }, status=exception.status_code)

        self.logger.exception("unhandled_exception", extra={"payload": payload})
        body = {
            "succeed": False,
            "errorMessage": "Internal server error",
            "errorCode": "INTERNAL_ERROR",
        }
        if settings.DEBUG:
            body["data"] = {"detail": str(exception)}
        return JsonResponse(body, status=500)
