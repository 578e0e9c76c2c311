"""
Response envelope shared by every endpoint.

    {"succeed": bool, "message": str, "data": any}
    {"succeed": false, "errorMessage": str, "errorCode": str, "data": any}

List endpoints put {"items": [...], "pagination": {...}} under "data".
"""
from typing import Any, Optional

from rest_framework import status
from rest_framework.response import Response


class ApiResponse:
    """Builders for the success and error envelopes."""

    @staticmethod
    def success(
        data: Any = None,
        message: Optional[str] = None,
        status_code: int = status.HTTP_200_OK
    ) -> Response:
        body = {"succeed": True, "message": message}
        if data is not None:
            body["data"] = data
        return Response(body, status=status_code)

    @staticmethod
    def error(
        error_message: str,
        error_code: Optional[str] = None,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        data: Any = None
    ) -> Response:
        """
        Build a failure envelope.

        Args:
            error_message: Human readable reason
            error_code: Stable machine readable code, e.g. NOT_FOUND
            status_code: HTTP status code
            data: Extra detail such as per-field validation errors
        """
        body = {"succeed": False, "errorMessage": error_message}
        if error_code:
            body["errorCode"] = error_code
        if data is not None:
            body["data"] = data
        return Response(body, status=status_code)

    @staticmethod
    def created(data: Any = None, message: str = "Created successfully") -> Response:
        return ApiResponse.success(data=data, message=message, status_code=status.HTTP_201_CREATED)

    @staticmethod
    def paginated(
        result: dict,
        serializer_class,
        message: Optional[str] = None,
        context: Optional[dict] = None
    ) -> Response:
        """
        Serialize one page returned by common.pagination.paginate().

        Args:
            result: {'items': [...], 'pagination': {...}}
            serializer_class: Serializer applied to each item
        """
        items = serializer_class(result['items'], many=True, context=context or {}).data
        return ApiResponse.success(
            data={'items': items, 'pagination': result['pagination']},
            message=message
        )

    @staticmethod
    def internal_error(
        error_message: str = "Internal server error",
        error_code: str = "INTERNAL_ERROR",
        data: Any = None
    ) -> Response:
        return ApiResponse.error(
            error_message=error_message,
            error_code=error_code,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            data=data
        )
